from __future__ import annotations

import os
import re
from dataclasses import dataclass


def _env(name: str, default: str = "") -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default.strip()
    value = raw.strip()
    placeholder = f"{name}="
    unquoted = value.strip("'\"").strip()
    if unquoted.lower() == placeholder.lower():
        return default.strip()
    return value if value else default.strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    return int(raw) if raw else default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if not raw:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def normalize_customer_id(raw: str) -> str:
    # Google Ads UI shows ids as 123-456-7890; the API wants digits only.
    return re.sub(r"\D+", "", str(raw or ""))


MAX_FETCH_WORKERS = 8


@dataclass(frozen=True)
class ToolkitConfig:
    ad_scraper_spreadsheet_url: str
    competitor_spreadsheet_url: str
    google_sheets_credentials_path: str
    google_sheets_token_path: str

    valueserp_api_key: str
    valueserp_base_url: str
    valueserp_language: str
    valueserp_timeout_sec: int
    scraped_ads_tab: str

    competitor_tab: str
    default_lookback: str
    companies_house_search_url: str
    companies_house_timeout_sec: int

    google_ads_developer_token: str
    google_ads_client_id: str
    google_ads_client_secret: str
    google_ads_refresh_token: str
    google_ads_login_customer_id: str
    google_ads_customer_id: str

    fetch_max_workers: int
    progress_log_every: int
    output_dir: str
    telemetry_enabled: bool

    @classmethod
    def from_env(cls) -> "ToolkitConfig":
        return cls(
            ad_scraper_spreadsheet_url=_env("AD_SCRAPER_SPREADSHEET_URL"),
            competitor_spreadsheet_url=_env("COMPETITOR_SPREADSHEET_URL"),
            google_sheets_credentials_path=_env(
                "GOOGLE_SHEETS_CREDENTIALS_PATH", "secret.json"
            ),
            google_sheets_token_path=_env(
                "GOOGLE_SHEETS_TOKEN_PATH", ".google_sheets_token.json"
            ),
            valueserp_api_key=_env("VALUESERP_API_KEY"),
            valueserp_base_url=_env(
                "VALUESERP_BASE_URL", "https://api.valueserp.com/search"
            ),
            valueserp_language=_env("VALUESERP_LANGUAGE", "en"),
            valueserp_timeout_sec=max(5, _env_int("VALUESERP_TIMEOUT_SEC", 60)),
            scraped_ads_tab=_env("SCRAPED_ADS_TAB", "Raw Scraped Ads"),
            competitor_tab=_env("COMPETITOR_TAB", "Raw Data"),
            default_lookback=_env("DEFAULT_LOOKBACK", "LAST_7_DAYS").upper(),
            companies_house_search_url=_env(
                "COMPANIES_HOUSE_SEARCH_URL",
                "https://find-and-update.company-information.service.gov.uk/advanced-search/get-results",
            ),
            companies_house_timeout_sec=max(5, _env_int("COMPANIES_HOUSE_TIMEOUT_SEC", 30)),
            google_ads_developer_token=_env("GOOGLE_ADS_DEVELOPER_TOKEN"),
            google_ads_client_id=_env("GOOGLE_ADS_CLIENT_ID"),
            google_ads_client_secret=_env("GOOGLE_ADS_CLIENT_SECRET"),
            google_ads_refresh_token=_env("GOOGLE_ADS_REFRESH_TOKEN"),
            google_ads_login_customer_id=normalize_customer_id(
                _env("GOOGLE_ADS_LOGIN_CUSTOMER_ID")
            ),
            google_ads_customer_id=normalize_customer_id(_env("GOOGLE_ADS_CUSTOMER_ID")),
            fetch_max_workers=min(
                MAX_FETCH_WORKERS, max(1, _env_int("FETCH_MAX_WORKERS", 1))
            ),
            progress_log_every=max(1, _env_int("PROGRESS_LOG_EVERY", 10)),
            output_dir=_env("OUTPUT_DIR", "Competitor Ads Runs"),
            telemetry_enabled=_env_bool("TELEMETRY_ENABLED", True),
        )

    @property
    def sheets_enabled(self) -> bool:
        return bool(self.google_sheets_credentials_path)

    @property
    def google_ads_enabled(self) -> bool:
        return bool(
            self.google_ads_developer_token
            and self.google_ads_client_id
            and self.google_ads_client_secret
            and self.google_ads_refresh_token
            and self.google_ads_customer_id
        )
