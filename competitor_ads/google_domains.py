from __future__ import annotations

from competitor_ads.models import DomainSettings


DEFAULT_DOMAIN_SETTINGS = DomainSettings(domain="google.com", gl="us")

# Countries whose Google domain does not follow the google.<code> pattern.
SPECIAL_DOMAINS: dict[str, DomainSettings] = {
    "uk": DomainSettings(domain="google.co.uk", gl="uk"),
    "gb": DomainSettings(domain="google.co.uk", gl="uk"),
    "in": DomainSettings(domain="google.co.in", gl="in"),
    "jp": DomainSettings(domain="google.co.jp", gl="jp"),
    "kr": DomainSettings(domain="google.co.kr", gl="kr"),
    "nz": DomainSettings(domain="google.co.nz", gl="nz"),
    "za": DomainSettings(domain="google.co.za", gl="za"),
    "us": DEFAULT_DOMAIN_SETTINGS,
}


def get_domain_settings(country_code: object) -> DomainSettings:
    code = str(country_code or "").strip().strip("'\"").lower()
    if not code:
        return DEFAULT_DOMAIN_SETTINGS
    special = SPECIAL_DOMAINS.get(code)
    if special is not None:
        return special
    return DomainSettings(domain=f"google.{code}", gl=code)
