"""
Roster store: one spreadsheet tab per venue.

Each tab holds ``[date, slot, dj, month]`` rows under a header row. A row is
identified by (date key, normalized slot, month label) and holds at most one
DJ. Rows are located by a linear scan of the tab, which is fine for a few
hundred rows per venue.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .config import Settings
from .dates import normalize_month_label, to_display, to_key
from .errors import RosterError
from .logs import get_logger
from .sheets import Rows, pad_row, row_range, tab_range
from .slots import normalize_slot

logger = get_logger(__name__)

ROSTER_HEADER = ["Date", "Slot", "DJ", "Month"]
BLANK_ROW = ["", "", "", ""]

VENUES = ("arkbar", "hip", "love")

RowKey = Tuple[str, str, str]


def venue_tab(venue: Optional[str], settings: Settings) -> str:
    """Map a venue id to its roster tab name."""
    tabs = dict(zip(VENUES, (settings.ARKBAR_TAB, settings.HIP_TAB, settings.LOVE_TAB)))
    tab = tabs.get((venue or "").strip().lower())
    if tab is None:
        raise RosterError(f"Invalid venue: {venue!r} (expected one of {', '.join(VENUES)})")
    return tab


def require_month(month: Optional[str]) -> str:
    label = normalize_month_label(month)
    if label is None:
        raise RosterError(f"Invalid month: {month!r} (expected e.g. 'March 2026')")
    return label


def _row_key(row: List[str]) -> RowKey:
    date, slot, _dj, month = row
    return (
        to_key(date) or date.strip(),
        normalize_slot(slot),
        normalize_month_label(month) or month.strip(),
    )


def _is_blank(row: List[str]) -> bool:
    return not any(c.strip() for c in row)


def _assignment_key(date: Optional[str], slot: Optional[str], label: str) -> RowKey:
    key = to_key(date)
    if key is None:
        raise RosterError(f"Invalid date: {date!r}")
    slot_n = normalize_slot(slot)
    if not slot_n:
        raise RosterError("Slot is required")
    return key, slot_n, label


def _row_values(key: RowKey, dj: str) -> List[str]:
    date_key, slot, label = key
    return [to_display(date_key), slot, dj, label]


async def _read(store, tab: str) -> Rows:
    return [pad_row(r, 4) for r in await store.get_values(tab_range(tab))]


async def get_roster(store, tab: str, month: Optional[str] = None) -> List[List[str]]:
    """
    All assignments of a venue tab.

    Header and blank rows are skipped; with ``month`` only rows of that
    month are returned.
    """
    label = require_month(month) if month else None
    out = []
    for row in (await _read(store, tab))[1:]:
        if _is_blank(row) or not row[2].strip():
            continue
        if label and (normalize_month_label(row[3]) or row[3].strip()) != label:
            continue
        out.append(row)
    return out


async def upsert_one(store, tab: str, date: str, slot: str, dj: Optional[str], month: str) -> str:
    """
    Write or clear one roster cell.

    The first row matching (date, slot, month) is updated in place, or blanked
    when ``dj`` is empty. Without a match a new row is appended.

    Returns:
        One of ``updated``, ``cleared``, ``appended``, ``unchanged``
    """
    label = require_month(month)
    key = _assignment_key(date, slot, label)
    dj = (dj or "").strip()

    rows = await _read(store, tab)
    for i, row in enumerate(rows[1:], start=2):
        if _is_blank(row) or _row_key(row) != key:
            continue
        if dj:
            await store.update_values(row_range(tab, i), [_row_values(key, dj)])
            action = "updated"
        else:
            # Blank the row instead of deleting it so row numbers stay put
            await store.update_values(row_range(tab, i), [BLANK_ROW])
            action = "cleared"
        logger.info("Roster cell written", tab=tab, row=i, date=key[0], slot=key[1], dj=dj, action=action)
        return action

    if not dj:
        return "unchanged"

    new_rows = [_row_values(key, dj)]
    if not rows:
        new_rows.insert(0, ROSTER_HEADER)
    await store.append_rows(tab_range(tab), new_rows)
    logger.info("Roster cell appended", tab=tab, date=key[0], slot=key[1], dj=dj)
    return "appended"


Assignment = Union[Dict[str, Any], Tuple[str, str, str]]


def _unpack(item: Assignment) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    if isinstance(item, dict):
        return item.get("date"), item.get("slot"), item.get("dj")
    return tuple(item)  # type: ignore[return-value]


async def upsert_batch(store, tab: str, month: str, assignments: Iterable[Assignment]) -> Dict[str, int]:
    """
    Apply many (date, slot, dj) assignments with one read and at most two writes.

    Existing rows go into a single ``batchUpdate``; new rows into a single
    append. A repeated key inside the batch keeps the last value.

    Returns:
        Counts of ``updated`` and ``appended`` rows
    """
    label = require_month(month)
    wanted: Dict[RowKey, str] = {}
    for item in assignments:
        date, slot, dj = _unpack(item)
        wanted[_assignment_key(date, slot, label)] = (dj or "").strip()

    rows = await _read(store, tab)
    index: Dict[RowKey, int] = {}
    for i, row in enumerate(rows[1:], start=2):
        if _is_blank(row):
            continue
        index.setdefault(_row_key(row), i)

    updates: List[Tuple[str, Rows]] = []
    appends: Rows = []
    for key, dj in wanted.items():
        row_no = index.get(key)
        if row_no is not None:
            updates.append((row_range(tab, row_no), [_row_values(key, dj) if dj else BLANK_ROW]))
        elif dj:
            appends.append(_row_values(key, dj))

    if updates:
        await store.batch_update(updates)
    if appends:
        header = [] if rows else [ROSTER_HEADER]
        await store.append_rows(tab_range(tab), header + appends)

    logger.info("Roster batch written", tab=tab, month=label, updated=len(updates), appended=len(appends))
    return {"updated": len(updates), "appended": len(appends)}


async def clear_month(store, tab: str, month: str) -> int:
    """
    Remove every row of ``month`` from a venue tab.

    The tab is rewritten as the header plus the remaining rows, which also
    drops rows blanked by earlier single clears.

    Returns:
        Number of rows removed
    """
    label = require_month(month)
    rows = await _read(store, tab)
    if not rows:
        return 0

    header = rows[0]
    kept: Rows = []
    removed = 0
    for row in rows[1:]:
        if _is_blank(row):
            continue
        if (normalize_month_label(row[3]) or row[3].strip()) == label:
            removed += 1
            continue
        kept.append(row)

    if removed == 0:
        return 0

    # One write over the old extent: header, kept rows, then blanks. A failed
    # write leaves the tab as it was.
    body = [header] + kept + [BLANK_ROW] * (len(rows) - 1 - len(kept))
    await store.update_values(row_range(tab, 1, len(body)), body)
    logger.info("Roster month cleared", tab=tab, month=label, removed=removed, kept=len(kept))
    return removed


def _parse_rate(value: str) -> Union[int, float, str]:
    s = value.strip().replace(",", "")
    try:
        n = float(s)
    except ValueError:
        return value.strip()
    return int(n) if n.is_integer() else n


async def list_djs(store, tab: str) -> List[Dict[str, Any]]:
    """DJ names and rates from the rate table (header in row 1)."""
    rows = await store.get_values(tab_range(tab, "A", "B"))
    djs = []
    for raw in rows[1:]:
        name, rate = pad_row(raw, 2)
        if not name.strip():
            continue
        djs.append({"name": name.strip(), "rate": _parse_rate(rate)})
    return djs
