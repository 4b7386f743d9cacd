"""Order status transitions.

The only concurrency control in the system is a conditional UPDATE:

    UPDATE orders SET status='ready', ready_at=:now
    WHERE id=:id AND status='new'

Whichever caller changes the row wins; everyone else sees zero affected rows
and must not notify again. Rows that are already ``ready`` but lack a
``ready_at`` (legacy data) get the timestamp backfilled with a second
conditional UPDATE that leaves ``status`` alone.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from barqueue.core.timeutils import utcnow
from barqueue.models import Order, OrderStatus
from barqueue.services.realtime import OrderEventBus, order_events
from barqueue.services.serializers import order_to_row

logger = logging.getLogger(__name__)


class OrderNotFound(LookupError):
    """No order exists with the given id."""

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


@dataclass
class TransitionOutcome:
    """Result of ``mark_ready``.

    ``transitioned`` is True only for the caller that moved the order from
    NEW to READY; that caller alone is allowed to send the notification.
    """

    order: Order
    transitioned: bool
    backfilled: bool = False


class OrderTransitionService:
    """Compare-and-swap status changes on the orders table."""

    def __init__(
        self,
        db: Session,
        events: Optional[OrderEventBus] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.events = events or order_events
        self.clock = clock

    def mark_ready(self, order_id: int) -> TransitionOutcome:
        """Move an order to READY exactly once.

        Raises:
            OrderNotFound: the id does not exist
            SQLAlchemyError: database failure (the session is rolled back)
        """
        now = self.clock()
        try:
            result = self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.status == OrderStatus.NEW)
                .values(status=OrderStatus.READY, ready_at=now)
                .execution_options(synchronize_session=False)
            )
            changed = result.rowcount
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        order = self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            raise OrderNotFound(order_id)

        if changed == 1:
            logger.info(f"Order {order_id} marked ready")
            self.events.publish("UPDATE", order_to_row(order))
            return TransitionOutcome(order=order, transitioned=True)

        backfilled = False
        if order.ready_at is None:
            backfilled = self._backfill_ready_at(order_id, now)
            if backfilled:
                self.db.refresh(order)
                self.events.publish("UPDATE", order_to_row(order))

        logger.info(f"Order {order_id} already ready, skipping notification (backfilled={backfilled})")
        return TransitionOutcome(order=order, transitioned=False, backfilled=backfilled)

    def _backfill_ready_at(self, order_id: int, now: datetime) -> bool:
        """Set a missing ready_at on a row that is already READY."""
        try:
            result = self.db.execute(
                update(Order)
                .where(
                    Order.id == order_id,
                    Order.status == OrderStatus.READY,
                    Order.ready_at.is_(None),
                )
                .values(ready_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        if result.rowcount:
            logger.info(f"Backfilled ready_at for legacy order {order_id}")
        return bool(result.rowcount)

    def stamp_reminded(self, order_id: int) -> bool:
        """Record a confirmed reminder send. Only the first stamp sticks."""
        now = self.clock()
        try:
            result = self.db.execute(
                update(Order)
                .where(Order.id == order_id, Order.reminded_at.is_(None))
                .values(reminded_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if not result.rowcount:
            return False
        order = self.db.get(Order, order_id, populate_existing=True)
        if order is not None:
            self.events.publish("UPDATE", order_to_row(order))
        return True
