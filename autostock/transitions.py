"""
Legal status transitions for reservations and transfers.

Anything not listed here is rejected with InvalidStateTransition.
Terminal statuses map to an empty set. Tables are keyed by the stored
string value so raw model fields and enum members both look up.
"""

from autostock.exceptions import InvalidStateTransition
from autostock.models.enums import ReservationStatus, TransferStatus


def _table(edges):
    return {
        str(source): frozenset(str(t) for t in targets)
        for source, targets in edges.items()
    }


RESERVATION_TRANSITIONS = _table({
    ReservationStatus.PENDING: {
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLED,
        ReservationStatus.EXPIRED,
    },
    ReservationStatus.CONFIRMED: {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.EXPIRED: set(),
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
})

TRANSFER_TRANSITIONS = _table({
    TransferStatus.PENDING: {
        TransferStatus.IN_TRANSIT,
        TransferStatus.CANCELLED,
    },
    TransferStatus.IN_TRANSIT: {
        TransferStatus.COMPLETED,
        TransferStatus.CANCELLED,
        TransferStatus.FAILED,
    },
    TransferStatus.COMPLETED: set(),
    TransferStatus.CANCELLED: set(),
    TransferStatus.FAILED: set(),
})


def ensure_transition(table, current, target, **context) -> None:
    """Raise InvalidStateTransition unless current -> target is allowed."""
    allowed = table.get(str(current), frozenset())
    if str(target) not in allowed:
        raise InvalidStateTransition(
            current=str(current),
            target=str(target),
            allowed=sorted(allowed),
            **context,
        )
