from __future__ import annotations

import re
from urllib.parse import urlencode

import requests


class CompaniesHouseClient:
    """Scrapes the result count from the Companies House advanced search page."""

    RESULTS_PATTERN = re.compile(r'<p class="govuk-heading-m">(\d+) result')

    def __init__(
        self,
        search_url: str = (
            "https://find-and-update.company-information.service.gov.uk"
            "/advanced-search/get-results"
        ),
        timeout_sec: int = 30,
    ) -> None:
        self.search_url = search_url.strip()
        self.timeout_sec = max(5, int(timeout_sec))

    def build_search_url(self, company_name: str) -> str:
        params = {
            "companyNameIncludes": company_name,
            "companyNameExcludes": "",
            "registeredOfficeAddress": "",
        }
        return f"{self.search_url}?{urlencode(params)}"

    @classmethod
    def parse_result_count(cls, html_text: str) -> int | None:
        match = cls.RESULTS_PATTERN.search(html_text or "")
        if not match:
            return None
        return int(match.group(1))

    def count_companies(self, company_name: str) -> tuple[int, str]:
        """Return ``(count, url)``; ``url`` is empty when nothing matched."""
        url = self.build_search_url(company_name)
        try:
            response = requests.get(url, timeout=self.timeout_sec)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RuntimeError(
                f"Companies House search failed for '{company_name}': {exc}"
            ) from exc

        count = self.parse_result_count(response.text)
        if count is None:
            return 0, ""
        return count, url
