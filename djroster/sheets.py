"""
Google Sheets row store.

Thin async wrapper over the Sheets API v4 ``values`` endpoints. The rest of
the application treats the spreadsheet as a grid of strings addressed by A1
ranges: read a range, append rows, update a range, clear a range, and
batch-update many ranges in one call.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request
from google.oauth2.service_account import Credentials

from .config import Settings
from .errors import SheetsError
from .logs import get_logger

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

Rows = List[List[str]]

# ---------- A1 helpers ----------

def quote_tab(tab: str) -> str:
    return "'" + tab.replace("'", "''") + "'"


def tab_range(tab: str, first_col: str = "A", last_col: str = "D") -> str:
    """Whole-column range, e.g. ``'HIP Roster'!A:D``."""
    return f"{quote_tab(tab)}!{first_col}:{last_col}"


def row_range(tab: str, first_row: int, last_row: Optional[int] = None,
              first_col: str = "A", last_col: str = "D") -> str:
    """1-based row block, e.g. ``'HIP Roster'!A5:D5``."""
    last_row = first_row if last_row is None else last_row
    return f"{quote_tab(tab)}!{first_col}{first_row}:{last_col}{last_row}"


def pad_row(row: Sequence[Any], width: int) -> List[str]:
    """Sheets drops trailing empty cells; pad back to a fixed width."""
    cells = ["" if c is None else str(c) for c in row[:width]]
    return cells + [""] * (width - len(cells))


# ---------- Credentials ----------

class ServiceAccountAuth:
    """Bearer tokens minted from a service-account key."""

    def __init__(self, info: Dict[str, Any]):
        self._creds = Credentials.from_service_account_info(info, scopes=SCOPES)

    async def token(self) -> str:
        if not self._creds.valid:
            # google-auth refresh is blocking
            await asyncio.to_thread(self._creds.refresh, Request())
        return self._creds.token


# ---------- Client ----------

class SheetsClient:
    """
    Async client for one spreadsheet.

    No retries: a failed call surfaces to the handler as ``SheetsError`` or
    ``httpx.HTTPError``.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        base_url: str = "https://sheets.googleapis.com/v4/spreadsheets",
        timeout: float = 15.0,
        auth: Optional[ServiceAccountAuth] = None,
        max_concurrency: int = 4,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self._base = f"{base_url.rstrip('/')}/{spreadsheet_id}"
        self._auth = auth
        self._sem = asyncio.Semaphore(max_concurrency)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SheetsClient":
        auth = None
        if settings.GOOGLE_SERVICE_ACCOUNT_JSON:
            try:
                info = json.loads(settings.GOOGLE_SERVICE_ACCOUNT_JSON)
            except json.JSONDecodeError as exc:
                raise RuntimeError("Invalid service account JSON payload.") from exc
            auth = ServiceAccountAuth(info)
        else:
            logger.warning("No service account configured; Sheets calls are unauthenticated")
        return cls(
            settings.SPREADSHEET_ID,
            base_url=settings.SHEETS_API_URL,
            timeout=settings.SHEETS_API_TIMEOUT,
            auth=auth,
            max_concurrency=settings.MAX_CONCURRENT_SHEETS_REQUESTS,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, operation: str, **kwargs) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self._auth is not None:
            headers["Authorization"] = f"Bearer {await self._auth.token()}"
        async with self._sem:
            r = await self._client.request(method, self._base + path, headers=headers, **kwargs)

        if r.is_success:
            return r.json() if r.content else {}

        try:
            body = r.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        message = (error.get("message") if isinstance(error, dict) else None) or r.text[:200]
        logger.error(
            "Sheets API call failed",
            operation=operation,
            status_code=r.status_code,
            error_message=message,
        )
        raise SheetsError(f"Sheets {operation} failed ({r.status_code}): {message}", r.status_code)

    async def get_values(self, a1: str) -> Rows:
        """
        Read a rectangular range.

        Returns:
            List of rows (trailing empty cells omitted by the API); empty when
            the tab does not exist
        """
        try:
            data = await self._request("GET", f"/values/{quote(a1, safe='')}", "get")
        except SheetsError as e:
            if e.status_code == 400 and "Unable to parse range" in str(e):
                logger.info("Missing tab treated as empty", range=a1)
                return []
            raise
        return data.get("values", [])

    async def append_rows(self, a1: str, rows: Rows) -> None:
        if not rows:
            return
        await self._request(
            "POST",
            f"/values/{quote(a1, safe='')}:append",
            "append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": rows},
        )

    async def update_values(self, a1: str, rows: Rows) -> None:
        await self._request(
            "PUT",
            f"/values/{quote(a1, safe='')}",
            "update",
            params={"valueInputOption": "RAW"},
            json={"range": a1, "majorDimension": "ROWS", "values": rows},
        )

    async def clear(self, a1: str) -> None:
        await self._request("POST", f"/values/{quote(a1, safe='')}:clear", "clear", json={})

    async def batch_update(self, data: List[Tuple[str, Rows]]) -> None:
        if not data:
            return
        await self._request(
            "POST",
            "/values:batchUpdate",
            "batchUpdate",
            json={
                "valueInputOption": "RAW",
                "data": [{"range": a1, "majorDimension": "ROWS", "values": rows} for a1, rows in data],
            },
        )
