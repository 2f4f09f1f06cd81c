"""
Availability aggregation and resident blackouts.

Four sources feed the per-slot view of a month:

* availability rows submitted by DJs through the form
* resident blackout rows (``full`` day or ``morning`` only)
* the fixed resident list
* the ``Guest DJ`` placeholder, eligible everywhere
"""
import datetime
from typing import Any, Dict, Iterable, List, Optional

from .dates import month_days, month_of, normalize_month_label, to_display, to_key
from .errors import RosterError
from .logs import get_logger
from .sheets import Rows, pad_row, row_range, tab_range
from .slots import HIP_SLOTS, MORNING_SLOTS, SLOTS, normalize_slot

logger = get_logger(__name__)

GUEST_DJ = "Guest DJ"

BLACKOUT_FULL = "full"
BLACKOUT_MORNING = "morning"
BLACKOUT_TYPES = (BLACKOUT_FULL, BLACKOUT_MORNING)

BLACKOUT_HEADER = ["DJ", "Date", "Month", "Submitted", "Type"]

# dj -> date key -> blackout type
Blackouts = Dict[str, Dict[str, str]]
# date key -> slot -> names
AvailabilityMap = Dict[str, Dict[str, List[str]]]


# ---------- Blackouts ----------

def parse_blackout_rows(rows: Rows) -> Blackouts:
    """Build the blackout lookup from raw tab rows (header in row 1)."""
    out: Blackouts = {}
    for raw in rows[1:]:
        dj, date, _month, _submitted, kind = pad_row(raw, 5)
        dj = dj.strip()
        key = to_key(date)
        if not dj or key is None:
            continue
        kind = kind.strip().lower()
        # Older rows carry no type: whole-day
        out.setdefault(dj, {})[key] = kind if kind in BLACKOUT_TYPES else BLACKOUT_FULL
    return out


async def fetch_blackouts(store, tab: str) -> Blackouts:
    rows = await store.get_values(tab_range(tab, "A", "E"))
    return parse_blackout_rows(rows)


def blackouts_for_month(blackouts: Blackouts, month: str) -> Blackouts:
    out: Blackouts = {}
    for dj, dates in blackouts.items():
        picked = {k: v for k, v in dates.items() if month_of(k) == month}
        if picked:
            out[dj] = picked
    return out


async def replace_blackouts(
    store,
    tab: str,
    dj: str,
    month: str,
    dates: Iterable[Dict[str, Any]],
    now: Optional[datetime.datetime] = None,
) -> int:
    """
    Replace every blackout row of ``dj`` for ``month`` with ``dates``.

    Args:
        store: Row store
        tab: Blackout tab name
        dj: Resident name
        month: Month label, e.g. ``March 2026``
        dates: Items of ``{"date": ..., "type": "full" | "morning"}``
        now: Submission time (defaults to current UTC time)

    Returns:
        Number of blackout rows written for the DJ

    Raises:
        RosterError: On an unknown month, date or blackout type
    """
    dj = (dj or "").strip()
    if not dj:
        raise RosterError("DJ name is required")
    label = normalize_month_label(month)
    if label is None:
        raise RosterError(f"Invalid month: {month!r}")

    wanted: Dict[str, str] = {}
    for item in dates:
        key = to_key(item.get("date"))
        if key is None:
            raise RosterError(f"Invalid date: {item.get('date')!r}")
        if month_of(key) != label:
            raise RosterError(f"Date {item.get('date')} is not in {label}")
        kind = (item.get("type") or BLACKOUT_FULL).strip().lower()
        if kind not in BLACKOUT_TYPES:
            raise RosterError(f"Invalid blackout type: {kind!r}")
        wanted[key] = kind

    stamp = (now or datetime.datetime.now(datetime.timezone.utc)).strftime("%Y-%m-%d %H:%M:%S")

    rows = await store.get_values(tab_range(tab, "A", "E"))
    kept: Rows = []
    for raw in rows[1:]:
        row = pad_row(raw, 5)
        if not any(c.strip() for c in row):
            continue
        if row[0].strip() == dj and normalize_month_label(row[2]) == label:
            continue
        kept.append(row)

    new_rows = [[dj, to_display(k), label, stamp, kind] for k, kind in sorted(wanted.items())]
    body = [BLACKOUT_HEADER] + kept + new_rows
    # Compact in a single write; blanks cover whatever the old rows reached
    body += [[""] * 5] * max(0, len(rows) - len(body))
    await store.update_values(row_range(tab, 1, len(body), "A", "E"), body)

    logger.info("Blackouts replaced", dj=dj, month=label, count=len(new_rows))
    return len(new_rows)


# ---------- Availability ----------

async def fetch_availability_rows(store, tab: str) -> Rows:
    return await store.get_values(tab_range(tab, "A", "F"))


def group_submissions(rows: Rows, month: str) -> AvailabilityMap:
    """
    Group submitted rows of one month by date key and slot.

    Names are distinct and keep first-seen order. Rows with an unparseable
    date are skipped.
    """
    grouped: AvailabilityMap = {}
    for raw in rows[1:]:
        _ts, name, row_month, date, _weekday, slot = pad_row(raw, 6)
        name = name.strip()
        if not name:
            continue
        key = to_key(date)
        if key is None:
            logger.debug("Skipping availability row with bad date", dj=name, date=date)
            continue
        label = normalize_month_label(row_month) or month_of(key)
        if label != month:
            continue
        slot = normalize_slot(slot)
        if not slot:
            continue
        names = grouped.setdefault(key, {}).setdefault(slot, [])
        if name not in names:
            names.append(name)
    return grouped


def resident_excluded(kind: Optional[str], slot: str) -> bool:
    if kind == BLACKOUT_FULL:
        return True
    if kind == BLACKOUT_MORNING:
        return slot in MORNING_SLOTS
    return False


def merge_availability(
    rows: Rows,
    month: str,
    residents: List[str],
    blackouts: Blackouts,
) -> AvailabilityMap:
    """
    Merge submissions, residents, blackouts and the guest placeholder.

    Every day of the month gets every slot of the slot table. In each slot,
    residents blacked out for it are removed, the remaining residents are
    added (never into HIP-designated slots), then ``Guest DJ`` is appended.

    Args:
        rows: Raw availability tab rows (header in row 1)
        month: Canonical month label, e.g. ``March 2026``
        residents: Resident DJ names
        blackouts: Blackout lookup for residents

    Returns:
        Mapping of date key -> slot -> eligible DJ names
    """
    grouped = group_submissions(rows, month)
    resident_set = set(residents)
    out: AvailabilityMap = {}

    for key in month_days(month):
        day = grouped.get(key, {})
        slots_out: Dict[str, List[str]] = {}
        extra = [s for s in day if s not in SLOTS]
        for slot in SLOTS + extra:
            names = [
                n for n in day.get(slot, [])
                if not (n in resident_set and resident_excluded(blackouts.get(n, {}).get(key), slot))
            ]
            if slot in SLOTS and slot not in HIP_SLOTS:
                for resident in residents:
                    if resident in names:
                        continue
                    if resident_excluded(blackouts.get(resident, {}).get(key), slot):
                        continue
                    names.append(resident)
            if GUEST_DJ not in names:
                names.append(GUEST_DJ)
            slots_out[slot] = names
        out[key] = slots_out

    return out
