from __future__ import annotations

import argparse
from dataclasses import replace
from datetime import date
import time
from typing import Any, Sequence

from dotenv import find_dotenv, load_dotenv

from competitor_ads.clients.companies_house_client import CompaniesHouseClient
from competitor_ads.clients.google_ads_client import GoogleAdsReportClient, is_valid_lookback
from competitor_ads.clients.sheets_client import SheetsClient, column_letter, quote_sheet_title
from competitor_ads.config import MAX_FETCH_WORKERS, ToolkitConfig
from competitor_ads.fetch_pool import map_bounded
from competitor_ads.models import CompetitorCheck, ReportTable, SkipLists
from competitor_ads.telemetry import write_run_telemetry
from competitor_ads.term_classifier import INVALID_TERM_REASON, classify, normalize_locations


TOOL_NAME = "competitor_checker"

# Checkbox named range -> location list named range, in concatenation order.
LOCATION_LIST_TOGGLES: dict[str, str] = {
    "use_england": "england_locations",
    "use_scotland": "scotland_locations",
    "use_wales": "wales_locations",
    "use_northern_ireland": "northern_ireland_locations",
    "use_broad": "broad_locations",
}

OUTPUT_COLUMNS: tuple[str, ...] = ("Is Competitor", "Companies House URL", "Skip Reason")


def _is_checked(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1", "x"}
    return bool(value)


def _normalized_list(values: Sequence[Any]) -> list[str]:
    cleaned = (str(value).strip().lower() for value in values if value)
    return [value for value in cleaned if value]


def get_locations_to_check(sheets: SheetsClient) -> list[str]:
    print("Getting location lists to check based on Control Centre settings")
    locations: list[str] = []
    for checkbox, location_range in LOCATION_LIST_TOGGLES.items():
        try:
            if not _is_checked(sheets.get_named_value(checkbox)):
                continue
            print(f"{checkbox} is checked, adding {location_range} to location check list")
            locations.extend(_normalized_list(sheets.get_named_values(location_range)))
        except RuntimeError as exc:
            print(f"Error getting {checkbox} or {location_range}: {exc}")
    print(f"Total locations to check: {len(locations)}")
    return locations


def get_skip_lists(sheets: SheetsClient) -> SkipLists:
    print("Getting skip lists from named ranges")
    try:
        skip_lists = SkipLists.from_values(
            reserved_words=sheets.get_named_values("reserved_words"),
            leading_words=sheets.get_named_values("leading_words"),
            minor_locations=sheets.get_named_values("minor_locations"),
        )
    except RuntimeError as exc:
        print(f"Error loading skip lists: {exc}")
        raise
    print(
        f"Loaded {len(skip_lists.minor_locations)} minor locations | "
        f"{len(skip_lists.reserved_words)} reserved words | "
        f"{len(skip_lists.leading_words)} leading words"
    )
    return skip_lists


def get_lookback(sheets: SheetsClient, default: str) -> str:
    try:
        value = str(sheets.get_named_value("lookback") or "").strip().upper()
    except RuntimeError as exc:
        print(f"Error getting lookback period from named range: {exc}. Using default: {default}")
        return default
    if not value:
        print(f"Lookback named range is empty. Using default: {default}")
        return default
    if not is_valid_lookback(value):
        print(f"Invalid lookback period in named range: {value!r}. Using default: {default}")
        return default
    print(f"Using lookback period from named range: {value}")
    return value


def export_search_terms(
    ads_client: GoogleAdsReportClient,
    sheets: SheetsClient,
    tab_name: str,
    lookback: str,
) -> ReportTable:
    print("Executing GAQL query to fetch search terms")
    table = ads_client.fetch_search_terms(lookback)
    sheets.replace_sheet_values(tab_name, [table.headers, *table.rows])
    print(f"Successfully exported GAQL query results to sheet | rows={len(table.rows)}")
    return table


def _registry_check(registry: CompaniesHouseClient, term: str) -> CompetitorCheck:
    try:
        count, url = registry.count_companies(term)
    except RuntimeError as exc:
        print(f'Error checking competitor for "{term}": {exc}')
        return CompetitorCheck(count=-1, url="")
    if count:
        print(f'Found {count} results for "{term}"')
    else:
        print(f'No results found for "{term}"')
    return CompetitorCheck(count=count, url=url)


def check_competitor(
    term: Any,
    locations: Sequence[str],
    skip_lists: SkipLists,
    registry: CompaniesHouseClient,
) -> CompetitorCheck:
    classification = classify(term, skip_lists, locations)
    if classification.skip:
        print(f'Skipping search term: "{term}" - {classification.reason}')
        return CompetitorCheck(count=0, url="", reason=classification.reason)
    return _registry_check(registry, term)


def resolve_output_columns(headers: Sequence[Any]) -> tuple[dict[str, int], list[tuple[int, str]]]:
    """Map each output column to a 1-based index, appending missing ones.

    Returns the mapping and the ``(index, name)`` header cells to create.
    """
    names = [str(header).strip() for header in headers]
    next_index = len(names) + 1
    columns: dict[str, int] = {}
    added: list[tuple[int, str]] = []
    for name in OUTPUT_COLUMNS:
        if name in names:
            columns[name] = names.index(name) + 1
            continue
        columns[name] = next_index
        added.append((next_index, name))
        next_index += 1
    return columns, added


def process_search_terms(
    terms: Sequence[Any],
    locations: Sequence[str],
    skip_lists: SkipLists,
    registry: CompaniesHouseClient,
    max_workers: int = 1,
    progress_every: int = 10,
) -> tuple[list[CompetitorCheck | None], dict[str, int]]:
    """Classify terms in row order, then look up the eligible ones.

    The result list is aligned with ``terms``; invalid rows map to ``None``.
    """
    total = len(terms)
    checks: list[CompetitorCheck | None] = [None] * total
    pending: list[int] = []
    location_set = normalize_locations(locations)
    for index, term in enumerate(terms):
        classification = classify(term, skip_lists, location_set)
        if classification.reason == INVALID_TERM_REASON:
            print(f"Warning: Invalid search term at row {index + 1}: {term!r}")
            continue
        if classification.skip:
            print(f'Skipping search term: "{term}" - {classification.reason}')
            checks[index] = CompetitorCheck(count=0, url="", reason=classification.reason)
            continue
        pending.append(index)

    looked_up = map_bounded(
        lambda index: _registry_check(registry, terms[index]),
        pending,
        max_workers=max_workers,
    )
    for index, check in zip(pending, looked_up):
        checks[index] = check

    counters = {"processed": 0, "competitors": 0, "skipped": 0, "errors": 0}
    for index, check in enumerate(checks):
        if check is not None:
            counters["processed"] += 1
            if check.is_competitor:
                counters["competitors"] += 1
            if check.reason:
                counters["skipped"] += 1
            if check.count < 0:
                counters["errors"] += 1
            if counters["processed"] % progress_every != 0 and index != total - 1:
                continue
        elif index != total - 1:
            continue
        print(
            f"Progress: {counters['processed']}/{total} terms processed. "
            f"Found {counters['competitors']} competitors so far. "
            f"Skipped {counters['skipped']} terms."
        )
    return checks, counters


def result_cells(check: CompetitorCheck | None) -> tuple[str, str, str]:
    if check is None:
        return "", "", ""
    return (
        "Yes" if check.is_competitor else "No",
        check.url if check.is_competitor else "",
        check.reason or "",
    )


def write_results(
    sheets: SheetsClient,
    tab_name: str,
    headers: Sequence[Any],
    checks: Sequence[CompetitorCheck | None],
) -> None:
    columns, added = resolve_output_columns(headers)
    quoted = quote_sheet_title(tab_name)
    for index, name in added:
        sheets.update_values(f"{quoted}!{column_letter(index)}1", [[name]])
        print(f'Added "{name}" column')
    if not checks:
        return

    cells = [result_cells(check) for check in checks]
    last_row = len(checks) + 1
    for position, name in enumerate(OUTPUT_COLUMNS):
        letter = column_letter(columns[name])
        sheets.update_values(
            f"{quoted}!{letter}2:{letter}{last_row}",
            [[row[position]] for row in cells],
        )


def run_competitor_checker(
    config: ToolkitConfig,
    sheets: SheetsClient,
    ads_client: GoogleAdsReportClient,
    registry: CompaniesHouseClient,
) -> dict[str, Any]:
    started = time.time()
    print("Starting competitor check script")

    locations = get_locations_to_check(sheets)
    skip_lists = get_skip_lists(sheets)
    lookback = get_lookback(sheets, config.default_lookback)

    export_search_terms(ads_client, sheets, config.competitor_tab, lookback)

    data = sheets.get_sheet_values(config.competitor_tab)
    headers = data[0] if data else []
    body = data[1:]
    print(f"Retrieved {len(body)} rows of data to process")

    terms = [row[0] if row else None for row in body]
    checks, counters = process_search_terms(
        terms,
        locations,
        skip_lists,
        registry,
        max_workers=config.fetch_max_workers,
        progress_every=config.progress_log_every,
    )
    write_results(sheets, config.competitor_tab, headers, checks)

    print(f"Script completed. Processed {counters['processed']} search terms:")
    print(f"- Found {counters['competitors']} competitors")
    print(f"- Skipped {counters['skipped']} terms")
    return {
        "status": "written",
        "lookback": lookback,
        "rows": len(body),
        "locations": len(locations),
        **counters,
        "runtime_sec": round(time.time() - started, 2),
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Flag competitor search terms via Companies House"
    )
    parser.add_argument(
        "--spreadsheet-url",
        dest="spreadsheet_url",
        help="Spreadsheet URL or id (default: COMPETITOR_SPREADSHEET_URL).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help=f"Concurrent Companies House lookups, 1-{MAX_FETCH_WORKERS} (default: FETCH_MAX_WORKERS).",
    )
    parser.add_argument(
        "--check-term",
        dest="check_term",
        help="Check a single search term against the sheet lists and exit.",
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
        updated = replace(updated, competitor_spreadsheet_url=spreadsheet_url.strip())
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
    if not config.competitor_spreadsheet_url:
        raise SystemExit(
            "Spreadsheet not configured. Set COMPETITOR_SPREADSHEET_URL or pass --spreadsheet-url."
        )

    registry = CompaniesHouseClient(
        search_url=config.companies_house_search_url,
        timeout_sec=config.companies_house_timeout_sec,
    )
    try:
        sheets = SheetsClient(
            spreadsheet_reference=config.competitor_spreadsheet_url,
            credentials_path=config.google_sheets_credentials_path,
            token_path=config.google_sheets_token_path,
        )
        if args.check_term:
            check = check_competitor(
                args.check_term,
                get_locations_to_check(sheets),
                get_skip_lists(sheets),
                registry,
            )
            competitor, url, reason = result_cells(check)
            print(f"Is Competitor: {competitor} | URL: {url or '-'} | Skip Reason: {reason or '-'}")
            return

        if not config.google_ads_enabled:
            raise SystemExit(
                "Google Ads is not configured. Provide GOOGLE_ADS_DEVELOPER_TOKEN, "
                "GOOGLE_ADS_CLIENT_ID, GOOGLE_ADS_CLIENT_SECRET, GOOGLE_ADS_REFRESH_TOKEN "
                "and GOOGLE_ADS_CUSTOMER_ID."
            )
        ads_client = GoogleAdsReportClient(
            developer_token=config.google_ads_developer_token,
            client_id=config.google_ads_client_id,
            client_secret=config.google_ads_client_secret,
            refresh_token=config.google_ads_refresh_token,
            customer_id=config.google_ads_customer_id,
            login_customer_id=config.google_ads_login_customer_id,
        )
        summary = run_competitor_checker(config, sheets, ads_client, registry)
    except (RuntimeError, ValueError) as exc:
        raise SystemExit(f"Run failed: {exc}") from exc

    if config.telemetry_enabled:
        telemetry_path = write_run_telemetry(config.output_dir, date.today(), TOOL_NAME, summary)
        print(f"Observability log written: {telemetry_path}")


if __name__ == "__main__":
    main()
