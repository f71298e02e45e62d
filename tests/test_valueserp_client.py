from __future__ import annotations

import json

import pytest
import requests

from competitor_ads.clients.valueserp_client import ValueSerpClient
from competitor_ads.models import DomainSettings


def _response(status_code: int, payload: object) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(payload).encode("utf-8")
    response.headers["Content-Type"] = "application/json"
    response.url = "https://api.valueserp.com/search"
    return response


UK = DomainSettings(domain="google.co.uk", gl="uk")


def test_search_ads_sends_expected_params(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_get(url: str, params: dict, timeout: int, **_: object) -> requests.Response:
        captured["url"] = url
        captured["params"] = params
        captured["timeout"] = timeout
        return _response(200, {"ads": []})

    monkeypatch.setattr(requests, "get", fake_get)

    client = ValueSerpClient(api_key="key_123", timeout_sec=20)
    ads = client.search_ads("roofers", "Watford,England,United Kingdom", UK)

    assert ads == []
    assert captured["url"] == "https://api.valueserp.com/search"
    assert captured["timeout"] == 20
    assert captured["params"] == {
        "api_key": "key_123",
        "q": "roofers",
        "location": "Watford,England,United Kingdom",
        "gl": "uk",
        "hl": "en",
        "google_domain": "google.co.uk",
        "include_ai_overview": "true",
        "ads_optimized": "true",
    }


def test_search_ads_maps_ad_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = {
        "ads": [
            {
                "position": 1,
                "block_position": "top",
                "title": "Acme Roofing - 24/7 Repairs",
                "link": "https://acme-roofing.example",
                "domain": "acme-roofing.example",
                "description": "Local roofers.",
                "sitelinks": [{"title": "Contact", "link": "https://acme-roofing.example/c"}],
                "phone": "",
            },
            {"position": 2, "title": "Best Roofs"},
        ]
    }
    monkeypatch.setattr(requests, "get", lambda url, **_: _response(200, payload))

    client = ValueSerpClient(api_key="key_123")
    ads = client.search_ads("roofers", "Watford", UK)

    assert len(ads) == 2
    first = ads[0]
    assert first.keyword == "roofers"
    assert first.position == 1
    assert first.block_position == "top"
    assert first.phone == ""
    assert json.loads(first.sitelinks)[0]["title"] == "Contact"
    assert first.extensions == ""
    assert first.scraped_at.endswith("Z")
    assert ads[1].scraped_at == first.scraped_at
    row = ads[1].as_row()
    assert len(row) == 16
    assert row[:5] == ["roofers", 2, "", "", "Best Roofs"]


def test_search_ads_raises_on_api_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        requests, "get", lambda url, **_: _response(401, {"request_info": {"success": False}})
    )

    client = ValueSerpClient(api_key="bad")
    with pytest.raises(RuntimeError) as error:
        client.search_ads("roofers", "Watford", UK)

    assert "ValueSERP API error: 401" in str(error.value)


def test_search_ads_requires_api_key() -> None:
    with pytest.raises(RuntimeError):
        ValueSerpClient(api_key="  ").search_ads("roofers", "Watford", UK)


def test_parse_ads_ignores_malformed_payload() -> None:
    assert ValueSerpClient.parse_ads({"ads": "none"}, "k", "t") == []
    assert ValueSerpClient.parse_ads(None, "k", "t") == []
    assert ValueSerpClient.parse_ads({"ads": ["bad", {"title": "ok"}]}, "k", "t")[0].title == "ok"
