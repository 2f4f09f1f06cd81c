"""
Unit tests for the roster store.
"""
import pytest

from djroster.config import Settings
from djroster.errors import RosterError
from djroster.roster import (
    clear_month,
    get_roster,
    list_djs,
    upsert_batch,
    upsert_one,
    venue_tab,
)

TAB = "HIP Roster"


def seed(sheets, rows, tab=TAB):
    sheets.tabs[tab].extend([list(r) for r in rows])


@pytest.mark.asyncio
async def test_upsert_then_get_returns_written_dj(sheets):
    action = await upsert_one(sheets, TAB, "2026-03-01", "21:00-22:00", "Nina", "March 2026")

    assert action == "appended"
    assert await get_roster(sheets, TAB, "March 2026") == [["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"]]


@pytest.mark.asyncio
async def test_upsert_updates_existing_row_in_place(sheets):
    seed(sheets, [
        ["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["1 Mar 2026", "22:00–23:00", "Kai", "March 2026"],
    ])

    action = await upsert_one(sheets, TAB, "1 Mar 2026", "21:00 - 22:00", "Kai", "march 2026")

    assert action == "updated"
    assert sheets.tabs[TAB][1] == ["1 Mar 2026", "21:00–22:00", "Kai", "March 2026"]
    assert len(sheets.tabs[TAB]) == 3
    assert ("update", "'HIP Roster'!A2:D2") in sheets.calls


@pytest.mark.asyncio
async def test_empty_dj_blanks_row_without_touching_neighbours(sheets):
    seed(sheets, [
        ["1 Mar 2026", "20:00–21:00", "Lee", "March 2026"],
        ["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["1 Mar 2026", "22:00–23:00", "Kai", "March 2026"],
    ])

    assert await upsert_one(sheets, TAB, "2026-03-01", "21:00-22:00", "", "March 2026") == "cleared"

    assert len(sheets.tabs[TAB]) == 4
    assert sheets.tabs[TAB][2] == ["", "", "", ""]
    assert await get_roster(sheets, TAB, "March 2026") == [
        ["1 Mar 2026", "20:00–21:00", "Lee", "March 2026"],
        ["1 Mar 2026", "22:00–23:00", "Kai", "March 2026"],
    ]


@pytest.mark.asyncio
async def test_clearing_missing_cell_is_a_no_op(sheets):
    assert await upsert_one(sheets, TAB, "2026-03-01", "21:00-22:00", None, "March 2026") == "unchanged"
    assert sheets.writes() == []


@pytest.mark.asyncio
async def test_same_slot_other_month_is_a_different_key(sheets):
    seed(sheets, [["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"]])

    assert await upsert_one(sheets, TAB, "1 Apr 2026", "21:00-22:00", "Kai", "April 2026") == "appended"
    assert sheets.tabs[TAB][1][2] == "Nina"


@pytest.mark.asyncio
async def test_upsert_into_empty_tab_writes_header(sheets):
    sheets.tabs["New Roster"] = []
    await upsert_one(sheets, "New Roster", "2026-03-01", "14:00-15:00", "Nina", "March 2026")
    assert sheets.tabs["New Roster"][0] == ["Date", "Slot", "DJ", "Month"]


@pytest.mark.asyncio
async def test_upsert_rejects_bad_input(sheets):
    with pytest.raises(RosterError):
        await upsert_one(sheets, TAB, "tomorrow", "21:00-22:00", "Nina", "March 2026")
    with pytest.raises(RosterError):
        await upsert_one(sheets, TAB, "2026-03-01", "21:00-22:00", "Nina", "next month")
    with pytest.raises(RosterError):
        await upsert_one(sheets, TAB, "2026-03-01", "", "Nina", "March 2026")


@pytest.mark.asyncio
async def test_batch_uses_one_update_and_one_append(sheets):
    seed(sheets, [
        ["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["2 Mar 2026", "21:00–22:00", "Lee", "March 2026"],
    ])

    counts = await upsert_batch(sheets, TAB, "March 2026", [
        {"date": "2026-03-01", "slot": "21:00-22:00", "dj": "Kai"},
        {"date": "2026-03-02", "slot": "21:00-22:00", "dj": ""},
        {"date": "2026-03-03", "slot": "21:00-22:00", "dj": "Nina"},
        ("2026-03-04", "22:00-23:00", "Lee"),
        {"date": "2026-03-05", "slot": "22:00-23:00", "dj": None},
    ])

    assert counts == {"updated": 2, "appended": 2}
    assert sheets.writes() == [("batchUpdate", 2), ("append", "'HIP Roster'!A:D")]
    assert await get_roster(sheets, TAB, "March 2026") == [
        ["1 Mar 2026", "21:00–22:00", "Kai", "March 2026"],
        ["3 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["4 Mar 2026", "22:00–23:00", "Lee", "March 2026"],
    ]


@pytest.mark.asyncio
async def test_batch_repeated_key_keeps_last_value(sheets):
    counts = await upsert_batch(sheets, TAB, "March 2026", [
        {"date": "2026-03-01", "slot": "21:00-22:00", "dj": "Kai"},
        {"date": "1 Mar 2026", "slot": "21:00–22:00", "dj": "Nina"},
    ])
    assert counts == {"updated": 0, "appended": 1}
    assert await get_roster(sheets, TAB) == [["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"]]


@pytest.mark.asyncio
async def test_batch_with_bad_date_writes_nothing(sheets):
    with pytest.raises(RosterError):
        await upsert_batch(sheets, TAB, "March 2026", [
            {"date": "2026-03-01", "slot": "21:00-22:00", "dj": "Kai"},
            {"date": "soon", "slot": "21:00-22:00", "dj": "Nina"},
        ])
    assert sheets.writes() == []


@pytest.mark.asyncio
async def test_clear_month_leaves_other_months(sheets):
    seed(sheets, [
        ["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["28 Feb 2026", "21:00–22:00", "Kai", "February 2026"],
        ["", "", "", ""],
        ["2 Mar 2026", "22:00–23:00", "Lee", "March 2026"],
        ["1 Feb 2026", "14:00–15:00", "Lee", "February 2026"],
    ])

    removed = await clear_month(sheets, TAB, "March 2026")

    assert removed == 2
    assert await get_roster(sheets, TAB, "March 2026") == []
    assert await get_roster(sheets, TAB, "February 2026") == [
        ["28 Feb 2026", "21:00–22:00", "Kai", "February 2026"],
        ["1 Feb 2026", "14:00–15:00", "Lee", "February 2026"],
    ]
    # Compacted: header plus the two remaining rows
    assert await sheets.get_values("'HIP Roster'!A:D") == [
        ["Date", "Slot", "DJ", "Month"],
        ["28 Feb 2026", "21:00–22:00", "Kai", "February 2026"],
        ["1 Feb 2026", "14:00–15:00", "Lee", "February 2026"],
    ]


@pytest.mark.asyncio
async def test_clear_month_is_a_single_write_and_failure_keeps_rows(sheets, monkeypatch):
    rows = [
        ["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["28 Feb 2026", "21:00–22:00", "Kai", "February 2026"],
    ]
    seed(sheets, rows)

    async def broken_update(a1, values):
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(sheets, "update_values", broken_update)
    with pytest.raises(RuntimeError):
        await clear_month(sheets, TAB, "March 2026")

    assert sheets.tabs[TAB][1:] == rows
    assert sheets.writes() == []

    monkeypatch.undo()
    assert await clear_month(sheets, TAB, "March 2026") == 1
    assert sheets.writes() == [("update", "'HIP Roster'!A1:D3")]


@pytest.mark.asyncio
async def test_clear_month_with_nothing_to_remove_skips_writes(sheets):
    seed(sheets, [["28 Feb 2026", "21:00–22:00", "Kai", "February 2026"]])
    assert await clear_month(sheets, TAB, "March 2026") == 0
    assert sheets.writes() == []


@pytest.mark.asyncio
async def test_get_without_month_returns_every_row(sheets):
    seed(sheets, [
        ["1 Mar 2026", "21:00–22:00", "Nina", "March 2026"],
        ["1 Apr 2026", "21:00–22:00", "Kai", "April 2026"],
    ])
    assert len(await get_roster(sheets, TAB)) == 2


@pytest.mark.asyncio
async def test_missing_tab_reads_as_empty(sheets):
    assert await get_roster(sheets, "No Such Tab", "March 2026") == []


@pytest.mark.asyncio
async def test_list_djs_parses_rates(sheets):
    assert await list_djs(sheets, "DJ Rates") == [
        {"name": "Alex RedWhite", "rate": 1500},
        {"name": "Nina", "rate": 1200},
    ]


def test_venue_tab():
    cfg = Settings()
    assert venue_tab("arkbar", cfg) == cfg.ARKBAR_TAB
    assert venue_tab(" HIP ", cfg) == cfg.HIP_TAB
    assert venue_tab("love", cfg) == cfg.LOVE_TAB
    with pytest.raises(RosterError):
        venue_tab("moonbar", cfg)
    with pytest.raises(RosterError):
        venue_tab(None, cfg)
