from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import date
import time
from typing import Any

from dotenv import find_dotenv, load_dotenv

from competitor_ads.clients.sheets_client import SheetsClient, column_letter, quote_sheet_title
from competitor_ads.clients.valueserp_client import ValueSerpClient
from competitor_ads.config import MAX_FETCH_WORKERS, ToolkitConfig
from competitor_ads.fetch_pool import map_bounded
from competitor_ads.google_domains import get_domain_settings
from competitor_ads.models import SCRAPED_AD_COLUMNS, DomainSettings, ScrapedAd
from competitor_ads.telemetry import write_run_telemetry


TOOL_NAME = "ad_scraper"


def _named_value(sheets: SheetsClient, range_name: str) -> Any:
    try:
        return sheets.get_named_value(range_name)
    except RuntimeError as exc:
        print(str(exc))
        return None


def _named_values(sheets: SheetsClient, range_name: str) -> list[Any]:
    try:
        return sheets.get_named_values(range_name)
    except RuntimeError as exc:
        print(str(exc))
        return []


def scrape_keywords(
    client: ValueSerpClient,
    keywords: list[Any],
    location: str,
    domain_settings: DomainSettings,
    max_workers: int = 1,
) -> list[ScrapedAd]:
    def scrape_one(keyword: str) -> tuple[list[ScrapedAd], str]:
        try:
            return client.search_ads(keyword, location, domain_settings), ""
        except RuntimeError as exc:
            return [], str(exc)

    # Empty cells are dropped; numeric cells are searched as text.
    queries = [str(keyword).strip() for keyword in keywords if str(keyword).strip()]
    results = map_bounded(scrape_one, queries, max_workers=max_workers)

    all_ads: list[ScrapedAd] = []
    for keyword, (ads, error) in zip(queries, results):
        if error:
            print(f"Error scraping ads for keyword '{keyword}': {error}")
        if ads:
            all_ads.extend(ads)
            print(f'Found {len(ads)} ads for "{keyword}"')
        else:
            print(f'No ads found for "{keyword}"')
    return all_ads


def write_ads_to_sheet(sheets: SheetsClient, tab_name: str, ads: list[ScrapedAd]) -> int:
    """Put new ads above the existing rows of ``tab_name``; return rows written."""
    headers = list(SCRAPED_AD_COLUMNS)
    sheet_id, _ = sheets.ensure_sheet(tab_name, headers)

    existing_rows = sheets.get_sheet_values(tab_name)[1:]
    new_rows = [ad.as_row() for ad in ads]
    combined = new_rows + existing_rows

    quoted = quote_sheet_title(tab_name)
    if existing_rows:
        width = max(len(headers), max(len(row) for row in existing_rows))
        sheets.clear_values(
            f"{quoted}!A2:{column_letter(width)}{len(existing_rows) + 1}"
        )
    if combined:
        sheets.update_values(f"{quoted}!A2", combined)

    sheets.auto_resize_columns(sheet_id, len(headers))
    return len(combined)


def run_ad_scraper(config: ToolkitConfig, sheets: SheetsClient) -> dict[str, Any]:
    started = time.time()
    summary: dict[str, Any] = {"status": "skipped", "keywords": 0, "ads": 0}

    api_key = str(_named_value(sheets, "valueSERP_API_KEY") or "").strip()
    api_key = api_key or config.valueserp_api_key
    location = str(_named_value(sheets, "location") or "").strip()
    country_code = str(_named_value(sheets, "countryCode") or "").strip()
    keywords = _named_values(sheets, "keywords")

    if not api_key:
        print("API key not found. Please set the valueSERP_API_KEY named range.")
        return summary
    if not location:
        print("Location not found. Please set the location named range.")
        return summary
    if not country_code:
        print("Country code not found. Please set the countryCode named range.")
        return summary
    if not keywords:
        print("No keywords found. Please add keywords to the keywords named range.")
        return summary

    print(
        f"Starting ad scraping for {len(keywords)} keywords in {location} ({country_code}) | "
        f"workers={config.fetch_max_workers}"
    )
    domain_settings = get_domain_settings(country_code)
    print(f"Using domain: {domain_settings.domain}, gl: {domain_settings.gl}")

    client = ValueSerpClient(
        api_key=api_key,
        base_url=config.valueserp_base_url,
        language=config.valueserp_language,
        timeout_sec=config.valueserp_timeout_sec,
    )
    ads = scrape_keywords(
        client,
        keywords,
        location,
        domain_settings,
        max_workers=config.fetch_max_workers,
    )

    summary.update(
        {
            "keywords": len(keywords),
            "ads": len(ads),
            "location": location,
            "google_domain": domain_settings.domain,
        }
    )
    if ads:
        write_ads_to_sheet(sheets, config.scraped_ads_tab, ads)
        print(f"Successfully wrote {len(ads)} ads to the {config.scraped_ads_tab} sheet")
        summary["status"] = "written"
    else:
        print("No ads found for any keywords")
        summary["status"] = "empty"
    summary["runtime_sec"] = round(time.time() - started, 2)
    return summary


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scrape competitor Google ads per keyword into a Google Sheet"
    )
    parser.add_argument(
        "--spreadsheet-url",
        dest="spreadsheet_url",
        help="Spreadsheet URL or id (default: AD_SCRAPER_SPREADSHEET_URL).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help=f"Concurrent ValueSERP requests, 1-{MAX_FETCH_WORKERS} (default: FETCH_MAX_WORKERS).",
    )
    parser.add_argument(
        "--no-telemetry",
        action="store_true",
        help="Do not write the observability JSONL line for this run.",
    )
    return parser.parse_args()


def _apply_runtime_overrides(
    config: ToolkitConfig,
    spreadsheet_url: str | None,
    workers: int | None,
    no_telemetry: bool,
) -> ToolkitConfig:
    updated = config
    if spreadsheet_url:
        updated = replace(updated, ad_scraper_spreadsheet_url=spreadsheet_url.strip())
    if workers is not None:
        updated = replace(
            updated, fetch_max_workers=min(MAX_FETCH_WORKERS, max(1, int(workers)))
        )
    if no_telemetry:
        updated = replace(updated, telemetry_enabled=False)
    return updated


def main() -> None:
    try:
        load_dotenv(find_dotenv(usecwd=True), override=False)
    except Exception:
        pass

    args = _parse_args()
    config = _apply_runtime_overrides(
        ToolkitConfig.from_env(),
        spreadsheet_url=args.spreadsheet_url,
        workers=args.workers,
        no_telemetry=args.no_telemetry,
    )
    if not config.ad_scraper_spreadsheet_url:
        raise SystemExit(
            "Spreadsheet not configured. Set AD_SCRAPER_SPREADSHEET_URL or pass --spreadsheet-url."
        )

    try:
        sheets = SheetsClient(
            spreadsheet_reference=config.ad_scraper_spreadsheet_url,
            credentials_path=config.google_sheets_credentials_path,
            token_path=config.google_sheets_token_path,
        )
        summary = run_ad_scraper(config, sheets)
    except RuntimeError as exc:
        raise SystemExit(f"Error: {exc}") from exc

    if config.telemetry_enabled:
        telemetry_path = write_run_telemetry(config.output_dir, date.today(), TOOL_NAME, summary)
        print(f"Observability log written: {telemetry_path}")


if __name__ == "__main__":
    main()
