"""
Error types and the response envelope shared by all handlers.

Every failure is reported to the client as HTTP 200 with
``{"success": false, "error": "<message>"}``; the client inspects ``success``.
"""
from typing import Any, Dict, Optional


class RosterError(Exception):
    """Bad input from the client: unknown venue, bad month label, policy violation."""


class SheetsError(Exception):
    """Non-2xx response from the Google Sheets API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def error_response(exc: Exception) -> Dict[str, Any]:
    msg = str(exc) or exc.__class__.__name__
    return {"success": False, "error": msg}


def validation_message(errors: list) -> str:
    """Flatten pydantic validation errors into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request"
