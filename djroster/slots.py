"""
Slot table and slot-label normalization.

Slot labels arrive with a hyphen, en dash or em dash between the two times
("21:00-22:00", "21:00 – 22:00"). They are rewritten to a single en dash so
labels can be compared as plain strings.
"""
import re
from typing import List, Optional

SLOT_DASH = "–"

_DASH_RE = re.compile(r"\s*[-‒–—―]\s*")

SLOTS: List[str] = [
    "14:00–15:00",
    "15:00–16:00",
    "16:00–17:00",
    "17:00–18:00",
    "18:00–19:00",
    "19:00–20:00",
    "20:00–21:00",
    "21:00–22:00",
    "22:00–23:00",
    "23:00–00:00",
    "00:00–01:00",
    "01:00–02:00",
]

# A "morning" blackout only removes a resident from these
MORNING_SLOTS = frozenset(SLOTS[:4])

# HIP-designated slots: residents are never suggested for or assigned to them
HIP_SLOTS = frozenset(["21:00–22:00", "22:00–23:00", "23:00–00:00", "00:00–01:00"])


def normalize_slot(label: Optional[str]) -> str:
    if not label:
        return ""
    return _DASH_RE.sub(SLOT_DASH, label.strip())


def is_hip_slot(label: str) -> bool:
    return normalize_slot(label) in HIP_SLOTS
