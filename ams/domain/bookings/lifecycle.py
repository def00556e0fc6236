"""
Booking status state machine.

pending -> confirmed -> in_progress -> completed, with cancelled and no_show
reachable from any state before completion. The default table allows every
move (any status to any status); the strict table only allows the forward
graph and freezes terminal states. Which table is active is a config switch.
"""

import enum
from typing import Mapping, Optional

from ...config import BOOKING_STRICT_TRANSITIONS
from ...exceptions import InvalidStateError, ValidationError


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ALL_STATUSES = frozenset(BookingStatus)

PERMISSIVE_TRANSITIONS: Mapping[BookingStatus, frozenset] = {status: ALL_STATUSES for status in BookingStatus}

STRICT_TRANSITIONS: Mapping[BookingStatus, frozenset] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.IN_PROGRESS: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}


def active_transitions() -> Mapping[BookingStatus, frozenset]:
    return STRICT_TRANSITIONS if BOOKING_STRICT_TRANSITIONS else PERMISSIVE_TRANSITIONS


def parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError as e:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise ValidationError(f"Invalid status '{value}'. Allowed: {allowed}") from e


def can_transition(
    current: BookingStatus,
    target: BookingStatus,
    table: Optional[Mapping[BookingStatus, frozenset]] = None,
) -> bool:
    table = table if table is not None else active_transitions()
    return target in table.get(current, frozenset())


def ensure_transition(
    current: str,
    target: str,
    table: Optional[Mapping[BookingStatus, frozenset]] = None,
) -> BookingStatus:
    """Validate a status change and return the target status."""
    current_status = parse_status(current)
    target_status = parse_status(target)
    if not can_transition(current_status, target_status, table):
        raise InvalidStateError(
            f"Cannot change booking status from {current_status.value} to {target_status.value}"
        )
    return target_status
