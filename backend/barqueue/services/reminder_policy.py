"""Reminder eligibility.

A READY order may get exactly one reminder, and only once the cooldown has
elapsed since it became ready. The same check backs the ``can_remind``
flag in read views and the guard in the remind endpoint.
"""

from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Union

from barqueue.core.timeutils import as_utc
from barqueue.models import Order, OrderStatus

DEFAULT_COOLDOWN = timedelta(minutes=10)

# Block reasons
NOT_READY = "not_ready"
ALREADY_REMINDED = "already_reminded"
COOLDOWN = "cooldown"

OrderLike = Union[Order, Mapping[str, Any]]


def _field(order: OrderLike, name: str):
    if isinstance(order, Mapping):
        return order.get(name)
    return getattr(order, name)


def _status(order: OrderLike) -> str:
    value = _field(order, "status")
    return value.value if isinstance(value, OrderStatus) else value


def ready_reference(order: OrderLike) -> Optional[datetime]:
    """When the order became ready; legacy rows fall back to created_at."""
    return as_utc(_field(order, "ready_at") or _field(order, "created_at"))


def reminder_available_at(order: OrderLike, cooldown: timedelta = DEFAULT_COOLDOWN) -> Optional[datetime]:
    """Earliest reminder time, or None when no reminder will ever be allowed."""
    if _status(order) != OrderStatus.READY.value or _field(order, "reminded_at"):
        return None
    reference = ready_reference(order)
    return reference + cooldown if reference else None


def reminder_block_reason(
    order: OrderLike,
    now: datetime,
    cooldown: timedelta = DEFAULT_COOLDOWN,
) -> Optional[str]:
    """Why a reminder is not allowed right now, or None if it is."""
    if _status(order) != OrderStatus.READY.value:
        return NOT_READY
    if _field(order, "reminded_at"):
        return ALREADY_REMINDED
    available_at = reminder_available_at(order, cooldown)
    if available_at is None or as_utc(now) < available_at:
        return COOLDOWN
    return None


def is_reminder_eligible(
    order: OrderLike,
    now: datetime,
    cooldown: timedelta = DEFAULT_COOLDOWN,
) -> bool:
    return reminder_block_reason(order, now, cooldown) is None
