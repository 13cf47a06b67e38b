"""Order status state machine.

pending -> processing -> shipped -> delivered, with cancelled reachable from
every non-terminal state. delivered and cancelled are terminal. Moves only go
forward, but a step may be skipped (pending -> delivered is allowed).
"""

from .errors import InvalidOrderStatusError, InvalidStatusTransitionError
from .models import ORDER_STATUSES

INITIAL_STATUS = "pending"
TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})

TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"processing", "shipped", "delivered", "cancelled"}),
    "processing": frozenset({"shipped", "delivered", "cancelled"}),
    "shipped": frozenset({"delivered", "cancelled"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}


def check_status(status: str) -> None:
    if status not in ORDER_STATUSES:
        raise InvalidOrderStatusError(status)


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def check_transition(order_id: str, current: str, new: str, force: bool = False) -> None:
    """
    Validate a status change.

    Args:
        force: Skip the graph check (seller correcting a mis-set status).
            The new status must still be a known status.

    Raises:
        InvalidOrderStatusError: If `new` is not an order status.
        InvalidStatusTransitionError: If the change is not in the graph.
    """
    check_status(new)
    if force:
        return
    if not can_transition(current, new):
        raise InvalidStatusTransitionError(order_id, current, new)
