"""
Test configuration and fixtures.
"""
import re

import pytest

from djroster.cache import TTLCache
from djroster.config import Settings
from djroster.main import app, get_cache, get_settings, get_store
from djroster.service import ScheduleService

RESIDENTS = ["Alex RedWhite", "Raffo DJ"]

_A1_RE = re.compile(r"^'((?:[^']|'')+)'!([A-Z]+)(\d*)(?::([A-Z]+)(\d*))?$")


def col_index(letters):
    n = 0
    for ch in letters:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def parse_a1(a1):
    """``'Tab'!A5:D9`` -> (tab, first_col, first_row, last_col, last_row); rows may be None."""
    m = _A1_RE.match(a1)
    if m is None:
        raise ValueError(f"Unsupported A1 range: {a1!r}")
    tab, c0, r0, c1, r1 = m.groups()
    if c1 is None:
        c1, r1 = c0, r0
    return (
        tab.replace("''", "'"),
        col_index(c0),
        int(r0) if r0 else None,
        col_index(c1),
        int(r1) if r1 else None,
    )


class FakeSheets:
    """
    In-memory spreadsheet honouring the A1 ranges the app sends.

    Mirrors the API's habit of trimming trailing empty cells and rows on read.
    """

    def __init__(self, tabs=None):
        self.tabs = {name: [list(r) for r in rows] for name, rows in (tabs or {}).items()}
        self.calls = []

    def _write(self, tab, first_row, first_col, rows):
        grid = self.tabs.setdefault(tab, [])
        for i, row in enumerate(rows):
            idx = first_row - 1 + i
            while len(grid) <= idx:
                grid.append([])
            line = grid[idx]
            need = first_col + len(row)
            if len(line) < need:
                line.extend([""] * (need - len(line)))
            for j, value in enumerate(row):
                line[first_col + j] = value

    async def get_values(self, a1):
        self.calls.append(("get", a1))
        tab, c0, r0, c1, r1 = parse_a1(a1)
        grid = self.tabs.get(tab)
        if grid is None:
            return []
        start = (r0 or 1) - 1
        end = len(grid) if r1 is None else min(r1, len(grid))
        out = []
        for row in grid[start:end]:
            cells = list(row[c0:c1 + 1])
            while cells and cells[-1] == "":
                cells.pop()
            out.append(cells)
        while out and not out[-1]:
            out.pop()
        return out

    async def append_rows(self, a1, rows):
        self.calls.append(("append", a1))
        tab, c0, _r0, c1, _r1 = parse_a1(a1)
        grid = self.tabs.setdefault(tab, [])
        last = 0
        for i, row in enumerate(grid, start=1):
            if any(c != "" for c in row[c0:c1 + 1]):
                last = i
        self._write(tab, last + 1, c0, [list(r) for r in rows])

    async def update_values(self, a1, rows):
        self.calls.append(("update", a1))
        tab, c0, r0, _c1, _r1 = parse_a1(a1)
        self._write(tab, r0 or 1, c0, [list(r) for r in rows])

    async def clear(self, a1):
        self.calls.append(("clear", a1))
        tab, c0, r0, c1, r1 = parse_a1(a1)
        grid = self.tabs.get(tab, [])
        start = (r0 or 1) - 1
        end = len(grid) if r1 is None else min(r1, len(grid))
        for row in grid[start:end]:
            for j in range(c0, min(c1 + 1, len(row))):
                row[j] = ""

    async def batch_update(self, data):
        self.calls.append(("batchUpdate", len(data)))
        for a1, rows in data:
            tab, c0, r0, _c1, _r1 = parse_a1(a1)
            self._write(tab, r0 or 1, c0, [list(r) for r in rows])

    def writes(self):
        return [c for c in self.calls if c[0] != "get"]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_tabs():
    return {
        "Availability": [["Timestamp", "DJ", "Month", "Date", "Day", "Slot"]],
        "Resident Blackouts": [["DJ", "Date", "Month", "Submitted", "Type"]],
        "DJ Rates": [["Name", "Rate"], ["Alex RedWhite", "1,500"], ["Nina", "1200"], ["", ""]],
        "ARKbar Roster": [["Date", "Slot", "DJ", "Month"]],
        "HIP Roster": [["Date", "Slot", "DJ", "Month"]],
        "Love Beach Roster": [["Date", "Slot", "DJ", "Month"]],
    }


@pytest.fixture
def test_settings():
    return Settings(ADMIN_PASSWORD="letmein", RESIDENTS=RESIDENTS)


@pytest.fixture
def sheets():
    return FakeSheets(make_tabs())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def service(sheets, cache, test_settings):
    return ScheduleService(sheets, cache, test_settings)


@pytest.fixture(autouse=True)
def override_dependencies(sheets, cache, test_settings):
    """Point every request at the in-memory spreadsheet and a fresh cache."""
    app.dependency_overrides[get_store] = lambda: sheets
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield
    app.dependency_overrides.clear()
