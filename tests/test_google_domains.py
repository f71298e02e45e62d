import pytest

from competitor_ads.google_domains import get_domain_settings
from competitor_ads.models import DomainSettings


def test_blank_country_defaults_to_us() -> None:
    assert get_domain_settings("") == DomainSettings(domain="google.com", gl="us")
    assert get_domain_settings(None) == DomainSettings(domain="google.com", gl="us")


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("UK", DomainSettings(domain="google.co.uk", gl="uk")),
        ("gb", DomainSettings(domain="google.co.uk", gl="uk")),
        ("JP", DomainSettings(domain="google.co.jp", gl="jp")),
        ("za", DomainSettings(domain="google.co.za", gl="za")),
        ("US", DomainSettings(domain="google.com", gl="us")),
    ],
)
def test_special_domains(code: str, expected: DomainSettings) -> None:
    assert get_domain_settings(code) == expected


def test_other_countries_use_standard_pattern() -> None:
    assert get_domain_settings(" AE ") == DomainSettings(domain="google.ae", gl="ae")
    assert get_domain_settings("de") == DomainSettings(domain="google.de", gl="de")
