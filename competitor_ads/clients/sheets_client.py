from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

import httplib2
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError


def column_letter(index: int) -> str:
    """Return the A1 column label for a 1-based column index."""
    if index < 1:
        raise ValueError(f"Column index must be positive, got {index}")
    label = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        label = chr(ord("A") + remainder) + label
    return label


def quote_sheet_title(title: str) -> str:
    return "'" + title.replace("'", "''") + "'"


class SheetsClient:
    """Google Sheets v4 access for named ranges and whole-tab reads/writes."""

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
    HTTP_TIMEOUT_SEC = 30
    API_RETRIES = 3

    def __init__(
        self,
        spreadsheet_reference: str,
        credentials_path: str,
        token_path: str = ".google_sheets_token.json",
    ) -> None:
        self.spreadsheet_id = self.extract_spreadsheet_id(spreadsheet_reference)
        if not self.spreadsheet_id:
            raise RuntimeError(
                f"Could not open spreadsheet at URL: {spreadsheet_reference!r}"
            )
        self.credentials_path = credentials_path.strip()
        self.token_path = token_path.strip() or ".google_sheets_token.json"
        self._service = None

    @staticmethod
    def extract_spreadsheet_id(reference: str) -> str:
        raw = str(reference or "").strip()
        if not raw:
            return ""
        if re.fullmatch(r"[a-zA-Z0-9_-]{20,}", raw):
            return raw

        parsed = urlparse(raw)
        if not parsed.scheme and not parsed.netloc:
            return ""

        match = re.search(r"/spreadsheets/d/([a-zA-Z0-9_-]{20,})", parsed.path)
        if match:
            return match.group(1)

        query = parse_qs(parsed.query)
        if "id" in query and query["id"]:
            candidate = query["id"][0].strip()
            if re.fullmatch(r"[a-zA-Z0-9_-]{20,}", candidate):
                return candidate
        return ""

    @staticmethod
    def _running_in_ci() -> bool:
        value = str(os.environ.get("CI", "")).strip().lower()
        return value in {"1", "true", "yes"}

    @staticmethod
    def _write_token_atomically(token_file: Path, payload: str) -> None:
        token_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = token_file.with_suffix(token_file.suffix + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(token_file)

    def _load_credentials(self):
        secret_path = Path(self.credentials_path)
        if not secret_path.exists():
            raise RuntimeError(
                f"Google Sheets credentials file not found: {self.credentials_path}"
            )

        try:
            secret_payload = json.loads(secret_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError(
                f"Invalid JSON in Google Sheets credentials file: {self.credentials_path}"
            ) from exc

        if secret_payload.get("type") == "service_account":
            return service_account.Credentials.from_service_account_file(
                str(secret_path),
                scopes=self.SCOPES,
            )

        creds: Credentials | None = None
        token_file = Path(self.token_path)
        if token_file.exists():
            creds = Credentials.from_authorized_user_file(str(token_file), self.SCOPES)

        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())

        if not creds or not creds.valid:
            if self._running_in_ci():
                raise RuntimeError(
                    "Google Sheets OAuth requires a pre-generated token in CI. "
                    "Provide GOOGLE_SHEETS_TOKEN_PATH or a service account JSON "
                    "shared on the spreadsheet."
                )
            flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), self.SCOPES)
            creds = flow.run_local_server(port=0, access_type="offline", prompt="consent")
            self._write_token_atomically(token_file, creds.to_json())
        return creds

    def _get_service(self):
        if self._service is None:
            http = AuthorizedHttp(
                self._load_credentials(),
                http=httplib2.Http(timeout=self.HTTP_TIMEOUT_SEC),
            )
            self._service = build("sheets", "v4", http=http, cache_discovery=False)
        return self._service

    def get_range_values(self, range_name: str) -> list[list[Any]]:
        service = self._get_service()
        try:
            payload = (
                service.spreadsheets()
                .values()
                .get(
                    spreadsheetId=self.spreadsheet_id,
                    range=range_name,
                    majorDimension="ROWS",
                    valueRenderOption="UNFORMATTED_VALUE",
                )
                .execute(num_retries=self.API_RETRIES)
            )
        except HttpError as exc:
            if exc.resp.status == 400:
                raise RuntimeError(f"Named range '{range_name}' not found") from exc
            raise RuntimeError(
                f"Google Sheets read failed for '{range_name}': HTTP {exc.resp.status}"
            ) from exc
        values = payload.get("values", []) if isinstance(payload, dict) else []
        return [row for row in values if isinstance(row, list)]

    def get_named_value(self, range_name: str) -> Any:
        values = self.get_range_values(range_name)
        if values and values[0]:
            return values[0][0]
        return ""

    def get_named_values(self, range_name: str) -> list[Any]:
        return [
            cell
            for row in self.get_range_values(range_name)
            for cell in row
            if cell != ""
        ]

    def _sheet_properties(self, title: str) -> dict[str, Any] | None:
        service = self._get_service()
        meta = (
            service.spreadsheets()
            .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties")
            .execute(num_retries=self.API_RETRIES)
        )
        for sheet in meta.get("sheets", []) if isinstance(meta, dict) else []:
            properties = sheet.get("properties") if isinstance(sheet, dict) else None
            if isinstance(properties, dict) and properties.get("title") == title:
                return properties
        return None

    def _batch_update(self, requests_body: list[dict[str, Any]]) -> dict[str, Any]:
        service = self._get_service()
        return (
            service.spreadsheets()
            .batchUpdate(spreadsheetId=self.spreadsheet_id, body={"requests": requests_body})
            .execute(num_retries=self.API_RETRIES)
        )

    def _add_sheet(self, title: str, frozen_rows: int = 0) -> int:
        properties: dict[str, Any] = {"title": title}
        if frozen_rows:
            properties["gridProperties"] = {"frozenRowCount": frozen_rows}
        response = self._batch_update([{"addSheet": {"properties": properties}}])
        replies = response.get("replies", []) if isinstance(response, dict) else []
        for reply in replies:
            added = (reply or {}).get("addSheet", {}).get("properties", {})
            if "sheetId" in added:
                return int(added["sheetId"])
        raise RuntimeError(f"Failed to create sheet tab '{title}'.")

    def ensure_sheet(self, title: str, headers: list[str] | None = None) -> tuple[int, bool]:
        """Return ``(sheet_id, created)``; new tabs get a bold, frozen header row."""
        properties = self._sheet_properties(title)
        if properties is not None:
            return int(properties.get("sheetId", 0)), False

        sheet_id = self._add_sheet(title, frozen_rows=1 if headers else 0)
        if headers:
            self.update_values(f"{quote_sheet_title(title)}!A1", [list(headers)])
            self._batch_update(
                [
                    {
                        "repeatCell": {
                            "range": {
                                "sheetId": sheet_id,
                                "startRowIndex": 0,
                                "endRowIndex": 1,
                                "startColumnIndex": 0,
                                "endColumnIndex": len(headers),
                            },
                            "cell": {"userEnteredFormat": {"textFormat": {"bold": True}}},
                            "fields": "userEnteredFormat.textFormat.bold",
                        }
                    }
                ]
            )
        return sheet_id, True

    def get_sheet_values(self, title: str) -> list[list[Any]]:
        return self.get_range_values(quote_sheet_title(title))

    def update_values(self, range_name: str, values: list[list[Any]]) -> None:
        service = self._get_service()
        (
            service.spreadsheets()
            .values()
            .update(
                spreadsheetId=self.spreadsheet_id,
                range=range_name,
                valueInputOption="RAW",
                body={"values": values},
            )
            .execute(num_retries=self.API_RETRIES)
        )

    def clear_values(self, range_name: str) -> None:
        service = self._get_service()
        (
            service.spreadsheets()
            .values()
            .clear(spreadsheetId=self.spreadsheet_id, range=range_name, body={})
            .execute(num_retries=self.API_RETRIES)
        )

    def replace_sheet_values(self, title: str, values: list[list[Any]]) -> None:
        self.ensure_sheet(title)
        quoted = quote_sheet_title(title)
        self.clear_values(quoted)
        if values:
            self.update_values(f"{quoted}!A1", values)

    def auto_resize_columns(self, sheet_id: int, column_count: int) -> None:
        if column_count <= 0:
            return
        self._batch_update(
            [
                {
                    "autoResizeDimensions": {
                        "dimensions": {
                            "sheetId": sheet_id,
                            "dimension": "COLUMNS",
                            "startIndex": 0,
                            "endIndex": column_count,
                        }
                    }
                }
            ]
        )
