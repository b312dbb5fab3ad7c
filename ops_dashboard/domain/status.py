"""Canonical order status and progress trail.

An order carries six independent progress flags. ``derive`` collapses them into
one status using a fixed priority (cancellation beats everything, later stages
beat earlier ones). ``derive_progress`` keeps the five forward steps separate
for progress indicators.
"""
from enum import Enum
from typing import Any, List, Mapping, NamedTuple


class StatusKind(str, Enum):
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    PROCESSING = "processing"
    PENDING = "pending"
    INACTIVE = "inactive"


class StatusResult(NamedTuple):
    status: StatusKind
    label: str


class ProgressStep(NamedTuple):
    key: str
    label: str
    completed: bool


# First match wins.
_PRIORITY = (
    ("cancelled", StatusKind.CANCELLED, "Cancelled"),
    ("delivered", StatusKind.COMPLETED, "Delivered"),
    ("shipped", StatusKind.PROCESSING, "Shipped"),
    ("processed", StatusKind.PROCESSING, "Processed"),
    ("confirmed", StatusKind.PROCESSING, "Confirmed"),
    ("placed", StatusKind.PENDING, "Placed"),
)

UNKNOWN = StatusResult(StatusKind.INACTIVE, "Unknown")

PROGRESS_STEPS = (
    ("placed", "Placed"),
    ("confirmed", "Confirmed"),
    ("processed", "Processed"),
    ("shipped", "Shipped"),
    ("delivered", "Delivered"),
)


def _flag(flags: Any, name: str) -> bool:
    if isinstance(flags, Mapping):
        return bool(flags.get(name, False))
    return bool(getattr(flags, name, False))


def derive(flags: Any) -> StatusResult:
    """Map a flag set (model or mapping) to its canonical status and label."""
    for name, kind, label in _PRIORITY:
        if _flag(flags, name):
            return StatusResult(kind, label)
    return UNKNOWN


def derive_progress(flags: Any) -> List[ProgressStep]:
    return [ProgressStep(key, label, _flag(flags, key)) for key, label in PROGRESS_STEPS]
