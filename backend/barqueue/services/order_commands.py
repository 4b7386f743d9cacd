"""Order commands: mark ready + notify, and send reminder.

Both commands return a ``CommandResult``. Notification is best effort: a
failed or disabled send never rolls back a committed transition.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from barqueue.core.config import Settings, settings as default_settings
from barqueue.core.result import CommandResult, Failure, Success
from barqueue.core.timeutils import utcnow
from barqueue.models import Order
from barqueue.services import reminder_policy
from barqueue.services.realtime import OrderEventBus
from barqueue.services.sms_service import DISABLED, SENT, DispatchResult, NotificationDispatcher
from barqueue.services.transition_service import OrderNotFound, OrderTransitionService

logger = logging.getLogger(__name__)

REMINDER_REJECTIONS = {
    reminder_policy.NOT_READY: "Order is not ready yet",
    reminder_policy.ALREADY_REMINDED: "A reminder was already sent for this order",
    reminder_policy.COOLDOWN: "Reminder cooldown has not elapsed yet",
}


def _dispatch_payload(dispatch: DispatchResult) -> dict:
    payload = {"channel": dispatch.channel}
    if dispatch.sid:
        payload["sid"] = dispatch.sid
    if dispatch.reason:
        payload["reason"] = dispatch.reason
    return payload


class OrderCommandService:
    """Command handlers behind the notify and remind endpoints."""

    def __init__(
        self,
        db: Session,
        dispatcher: NotificationDispatcher,
        events: Optional[OrderEventBus] = None,
        clock: Callable[[], datetime] = utcnow,
        cfg: Optional[Settings] = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.clock = clock
        self.settings = cfg or default_settings
        self.transitions = OrderTransitionService(db, events=events, clock=clock)

    @property
    def reminder_cooldown(self) -> timedelta:
        return timedelta(minutes=self.settings.reminder_cooldown_minutes)

    async def notify_ready(self, order_id: int) -> CommandResult:
        """Mark the order ready and, if this call did the transition, notify."""
        try:
            outcome = self.transitions.mark_ready(order_id)
        except OrderNotFound:
            return Failure(error="Order not found", reason="not_found", status_code=404)

        order = outcome.order
        if not outcome.transitioned:
            return Success(payload={
                "already": True,
                "channel": "none",
                "backfilled": outcome.backfilled,
                "ready_at": order.ready_at,
            })

        dispatch = await self.dispatcher.dispatch_ready(order)
        payload = _dispatch_payload(dispatch)
        payload["ready_at"] = order.ready_at

        if dispatch.status == SENT or dispatch.status == DISABLED:
            return Success(payload=payload)

        # Readiness stands even though the guest was not told
        payload["error_code"] = dispatch.error_code
        return Failure(error=dispatch.error or "SMS send failed", status_code=200, payload=payload)

    async def send_reminder(self, order_id: int) -> CommandResult:
        """Send the single permitted reminder for a ready order."""
        order = self.db.get(Order, order_id, populate_existing=True)
        if order is None:
            return Failure(error="Order not found", reason="not_found", status_code=404)

        reason = reminder_policy.reminder_block_reason(order, self.clock(), self.reminder_cooldown)
        if reason:
            logger.info(f"Reminder for order {order_id} rejected: {reason}")
            return Failure(error=REMINDER_REJECTIONS[reason], reason=reason, status_code=400)

        dispatch = await self.dispatcher.dispatch_reminder(order)
        if dispatch.status == DISABLED:
            return Failure(
                error="SMS is not available",
                reason=dispatch.reason,
                status_code=200,
                payload={"channel": "disabled"},
            )
        if dispatch.status != SENT:
            return Failure(
                error=dispatch.error or "SMS send failed",
                status_code=200,
                payload={"channel": dispatch.channel, "error_code": dispatch.error_code},
            )

        stamped = self.transitions.stamp_reminded(order_id)
        if not stamped:
            # A concurrent reminder got there first; both sends went out
            logger.warning(f"Order {order_id} was already stamped as reminded")
        return Success(payload={"channel": dispatch.channel, "sid": dispatch.sid})
