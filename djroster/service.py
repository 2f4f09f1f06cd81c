"""
Schedule service: the cached, policy-enforcing layer behind the routes.

Reads go through the shared ``TTLCache``; every write invalidates the
entries it could have made stale before returning, so the next read is
fetched fresh.
"""
import asyncio
from typing import Any, Dict, List, Optional

from . import availability as av
from . import roster
from .cache import BLACKOUTS_KEY, DJS_KEY, TTLCache, availability_key, roster_key
from .config import Settings
from .errors import RosterError
from .logs import get_logger
from .slots import is_hip_slot, normalize_slot

logger = get_logger(__name__)


def _name_key(name: str) -> str:
    return " ".join(name.split()).casefold()


class ScheduleService:
    def __init__(self, store, cache: TTLCache, settings: Settings):
        self.store = store
        self.cache = cache
        self.settings = settings

    @property
    def residents(self) -> List[str]:
        return self.settings.RESIDENTS

    def is_resident(self, dj: Optional[str]) -> bool:
        if not dj:
            return False
        return _name_key(dj) in {_name_key(r) for r in self.residents}

    def _venue(self, venue: Optional[str]) -> tuple:
        tab = roster.venue_tab(venue, self.settings)
        return venue.strip().lower(), tab

    # ---------- Reads ----------

    async def list_djs(self) -> List[Dict[str, Any]]:
        return await self.cache.get_or_fetch(
            DJS_KEY,
            lambda: roster.list_djs(self.store, self.settings.DJ_RATES_TAB),
            self.settings.DJ_CACHE_TTL,
        )

    async def blackouts(self) -> av.Blackouts:
        return await self.cache.get_or_fetch(
            BLACKOUTS_KEY,
            lambda: av.fetch_blackouts(self.store, self.settings.BLACKOUT_TAB),
            self.settings.BLACKOUT_CACHE_TTL,
        )

    async def availability(self, month: Optional[str]) -> Dict[str, Any]:
        """Per-slot eligible DJs for a month plus that month's blackouts."""
        label = roster.require_month(month)

        async def build():
            rows, blackouts = await asyncio.gather(
                av.fetch_availability_rows(self.store, self.settings.AVAILABILITY_TAB),
                self.blackouts(),
            )
            return {
                "availability": av.merge_availability(rows, label, self.residents, blackouts),
                "blackouts": av.blackouts_for_month(blackouts, label),
            }

        return await self.cache.get_or_fetch(
            availability_key(label), build, self.settings.AVAILABILITY_CACHE_TTL
        )

    async def roster(self, venue: Optional[str], month: Optional[str]) -> List[List[str]]:
        vid, tab = self._venue(venue)
        label = roster.require_month(month) if month else None
        return await self.cache.get_or_fetch(
            roster_key(vid, label),
            lambda: roster.get_roster(self.store, tab, label),
            None,
        )

    # ---------- Writes ----------

    async def submit_blackouts(self, dj: str, month: str, dates: List[Dict[str, Any]]) -> int:
        label = roster.require_month(month)
        try:
            return await av.replace_blackouts(self.store, self.settings.BLACKOUT_TAB, dj, label, dates)
        finally:
            self.cache.drop(BLACKOUTS_KEY)
            self.cache.drop(availability_key(label))

    async def assign(self, venue: str, date: str, slot: str, dj: Optional[str], month: str) -> str:
        vid, tab = self._venue(venue)
        label = roster.require_month(month)
        if self.is_resident(dj) and is_hip_slot(slot):
            logger.warning(
                "Rejected resident in HIP slot", venue=vid, date=date, slot=normalize_slot(slot), dj=dj
            )
            raise RosterError(f"{dj.strip()} is a resident and cannot be assigned to HIP slot {normalize_slot(slot)}")
        try:
            return await roster.upsert_one(self.store, tab, date, slot, dj, label)
        finally:
            self.cache.invalidate(vid, label)

    async def assign_batch(self, venue: str, month: str, assignments: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Bulk upsert. Residents placed into HIP slots are stripped from the
        batch and reported back under ``skipped``.
        """
        vid, tab = self._venue(venue)
        label = roster.require_month(month)

        accepted, skipped = [], []
        for a in assignments:
            if self.is_resident(a.get("dj")) and is_hip_slot(a.get("slot") or ""):
                skipped.append(a)
            else:
                accepted.append(a)
        if skipped:
            logger.warning("Stripped residents from HIP slots", venue=vid, month=label, skipped=skipped)

        try:
            counts = await roster.upsert_batch(self.store, tab, label, accepted)
        finally:
            self.cache.invalidate(vid, label)
        return {**counts, "skipped": skipped}

    async def clear(self, venue: str, month: str) -> int:
        _vid, tab = self._venue(venue)
        label = roster.require_month(month)
        try:
            return await roster.clear_month(self.store, tab, label)
        finally:
            self.cache.invalidate_all(label)
