from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import requests

from competitor_ads.models import DomainSettings, ScrapedAd


class ValueSerpClient:
    """ValueSERP search client returning the paid listings for a keyword."""

    JSON_FIELDS = ("sitelinks", "extensions", "rich_snippet")
    TEXT_FIELDS = (
        "position",
        "block_position",
        "relative_block_position",
        "title",
        "tracking_link",
        "link",
        "domain",
        "displayed_link",
        "description",
        "phone",
        "location",
    )

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.valueserp.com/search",
        language: str = "en",
        timeout_sec: int = 60,
    ) -> None:
        self.api_key = str(api_key or "").strip()
        self.base_url = base_url.strip() or "https://api.valueserp.com/search"
        self.language = language.strip() or "en"
        self.timeout_sec = max(5, int(timeout_sec))

    def _params(self, keyword: str, location: str, domain_settings: DomainSettings) -> dict[str, str]:
        return {
            "api_key": self.api_key,
            "q": keyword,
            "location": location,
            "gl": domain_settings.gl,
            "hl": self.language,
            "google_domain": domain_settings.domain,
            "include_ai_overview": "true",
            "ads_optimized": "true",
        }

    @staticmethod
    def _now_iso() -> str:
        return (
            datetime.now(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

    @classmethod
    def parse_ads(cls, payload: Any, keyword: str, scraped_at: str) -> list[ScrapedAd]:
        if not isinstance(payload, dict):
            return []
        raw_ads = payload.get("ads")
        if not isinstance(raw_ads, list):
            return []

        ads: list[ScrapedAd] = []
        for raw in raw_ads:
            if not isinstance(raw, dict):
                continue
            fields: dict[str, Any] = {name: raw.get(name) or "" for name in cls.TEXT_FIELDS}
            for name in cls.JSON_FIELDS:
                value = raw.get(name)
                fields[name] = json.dumps(value) if value else ""
            ads.append(ScrapedAd(keyword=keyword, scraped_at=scraped_at, **fields))
        return ads

    def search_ads(
        self,
        keyword: str,
        location: str,
        domain_settings: DomainSettings,
    ) -> list[ScrapedAd]:
        if not self.api_key:
            raise RuntimeError("ValueSERP API key is missing.")

        try:
            response = requests.get(
                self.base_url,
                params=self._params(keyword, location, domain_settings),
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise RuntimeError(
                f"ValueSERP request failed for keyword '{keyword}': {exc}"
            ) from exc

        if response.status_code != 200:
            body = response.text.strip()
            if len(body) > 240:
                body = body[:237] + "..."
            raise RuntimeError(f"ValueSERP API error: {response.status_code} - {body}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise RuntimeError(
                f"ValueSERP returned invalid JSON for keyword '{keyword}'."
            ) from exc
        return self.parse_ads(payload, keyword=keyword, scraped_at=self._now_iso())
