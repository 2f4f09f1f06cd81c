"""
Request bodies for the JSON API.

Fields the handlers validate themselves (venue, month, dates) are plain
strings here so a bad value comes back as a readable error message.
"""
from typing import List, Optional

from pydantic import BaseModel


class AuthRequest(BaseModel):
    password: str = ""


class BlackoutDate(BaseModel):
    date: str
    type: str = "full"  # full | morning


class BlackoutRequest(BaseModel):
    """A resident's blackout dates for one month; replaces earlier submissions."""
    dj: str
    month: str
    dates: List[BlackoutDate] = []


class AssignRequest(BaseModel):
    """One roster cell. An empty ``dj`` clears the cell."""
    venue: str
    date: str
    slot: str
    dj: Optional[str] = None
    month: str


class BatchAssignment(BaseModel):
    date: str
    slot: str
    dj: Optional[str] = None


class BatchRequest(BaseModel):
    venue: str
    month: str
    assignments: List[BatchAssignment] = []


class ClearRequest(BaseModel):
    venue: str
    month: str
