from __future__ import annotations

import enum
import re
from typing import Any, Iterable

from google.ads.googleads.client import GoogleAdsClient
from google.ads.googleads.errors import GoogleAdsException

from competitor_ads.config import normalize_customer_id
from competitor_ads.models import ReportTable


SEARCH_TERM_FIELDS: tuple[str, ...] = (
    "search_term_view.search_term",
    "search_term_view.status",
    "campaign.name",
    "metrics.impressions",
    "metrics.clicks",
    "metrics.cost_micros",
    "metrics.conversions",
)

_LOOKBACK_PATTERN = re.compile(r"^[A-Z0-9_]+$")


def is_valid_lookback(lookback: str) -> bool:
    return bool(_LOOKBACK_PATTERN.fullmatch(str(lookback or "").strip().upper()))


def build_search_terms_query(lookback: str) -> str:
    value = str(lookback or "").strip().upper()
    if not is_valid_lookback(value):
        raise ValueError(f"Invalid GAQL date range for DURING: {lookback!r}")
    fields = ",\n    ".join(SEARCH_TERM_FIELDS)
    return f"""
  SELECT
    {fields}
  FROM
    search_term_view
  WHERE
    segments.date DURING {value}
    AND metrics.impressions > 0
    AND campaign.advertising_channel_type = "SEARCH"
"""


def _resolve_field(row: Any, field_path: str) -> Any:
    value = row
    for part in field_path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return ""
    # proto-plus enums are IntEnum members; the sheet gets their names.
    if isinstance(value, enum.Enum):
        return value.name
    return value


def flatten_rows(rows: Iterable[Any], fields: tuple[str, ...]) -> list[list[Any]]:
    return [[_resolve_field(row, field) for field in fields] for row in rows]


class GoogleAdsReportClient:
    """Runs GAQL search-term reports through the google-ads client."""

    def __init__(
        self,
        developer_token: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        customer_id: str,
        login_customer_id: str = "",
    ) -> None:
        self.developer_token = developer_token.strip()
        self.client_id = client_id.strip()
        self.client_secret = client_secret.strip()
        self.refresh_token = refresh_token.strip()
        self.customer_id = normalize_customer_id(customer_id)
        self.login_customer_id = normalize_customer_id(login_customer_id)
        self._client: GoogleAdsClient | None = None

    def _build_client(self) -> GoogleAdsClient:
        if self._client is not None:
            return self._client
        if not self.customer_id:
            raise RuntimeError("Google Ads customer id is missing (GOOGLE_ADS_CUSTOMER_ID).")
        config: dict[str, Any] = {
            "developer_token": self.developer_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "use_proto_plus": True,
        }
        if self.login_customer_id:
            config["login_customer_id"] = self.login_customer_id
        self._client = GoogleAdsClient.load_from_dict(config)
        return self._client

    def _stream(self, query: str) -> Iterable[Any]:
        service = self._build_client().get_service("GoogleAdsService")
        for batch in service.search_stream(customer_id=self.customer_id, query=query):
            for row in batch.results:
                yield row

    def fetch_search_terms(self, lookback: str) -> ReportTable:
        query = build_search_terms_query(lookback)
        try:
            rows = flatten_rows(self._stream(query), SEARCH_TERM_FIELDS)
        except GoogleAdsException as exc:
            messages = "; ".join(error.message for error in exc.failure.errors)
            raise RuntimeError(
                f"Google Ads report failed (request_id={exc.request_id}): {messages}"
            ) from exc
        return ReportTable(headers=list(SEARCH_TERM_FIELDS), rows=rows)
