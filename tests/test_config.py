from competitor_ads.config import ToolkitConfig, normalize_customer_id


def test_defaults(monkeypatch):
    for name in (
        "SCRAPED_ADS_TAB",
        "COMPETITOR_TAB",
        "DEFAULT_LOOKBACK",
        "FETCH_MAX_WORKERS",
        "TELEMETRY_ENABLED",
        "VALUESERP_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    config = ToolkitConfig.from_env()
    assert config.scraped_ads_tab == "Raw Scraped Ads"
    assert config.competitor_tab == "Raw Data"
    assert config.default_lookback == "LAST_7_DAYS"
    assert config.fetch_max_workers == 1
    assert config.telemetry_enabled is True
    assert config.valueserp_base_url == "https://api.valueserp.com/search"


def test_placeholder_value_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("COMPETITOR_TAB", "COMPETITOR_TAB=")
    config = ToolkitConfig.from_env()
    assert config.competitor_tab == "Raw Data"


def test_fetch_workers_are_clamped(monkeypatch):
    monkeypatch.setenv("FETCH_MAX_WORKERS", "50")
    assert ToolkitConfig.from_env().fetch_max_workers == 8
    monkeypatch.setenv("FETCH_MAX_WORKERS", "0")
    assert ToolkitConfig.from_env().fetch_max_workers == 1


def test_google_ads_requires_all_credentials(monkeypatch):
    monkeypatch.setenv("GOOGLE_ADS_DEVELOPER_TOKEN", "dev")
    monkeypatch.setenv("GOOGLE_ADS_CLIENT_ID", "cid")
    monkeypatch.setenv("GOOGLE_ADS_CLIENT_SECRET", "secret")
    monkeypatch.setenv("GOOGLE_ADS_REFRESH_TOKEN", "refresh")
    monkeypatch.delenv("GOOGLE_ADS_CUSTOMER_ID", raising=False)
    assert ToolkitConfig.from_env().google_ads_enabled is False

    monkeypatch.setenv("GOOGLE_ADS_CUSTOMER_ID", "123-456-7890")
    config = ToolkitConfig.from_env()
    assert config.google_ads_enabled is True
    assert config.google_ads_customer_id == "1234567890"


def test_telemetry_can_be_disabled(monkeypatch):
    monkeypatch.setenv("TELEMETRY_ENABLED", "false")
    assert ToolkitConfig.from_env().telemetry_enabled is False


def test_normalize_customer_id():
    assert normalize_customer_id(" 987-654-3210 ") == "9876543210"
    assert normalize_customer_id("") == ""
