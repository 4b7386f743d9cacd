# Services module

from barqueue.services.realtime import OrderEventBus, ConnectionManager, order_events, ws_manager
from barqueue.services.sms_service import (
    SmsGateway,
    NotificationDispatcher,
    DispatchResult,
    get_notification_dispatcher,
)
from barqueue.services.transition_service import OrderTransitionService, OrderNotFound, TransitionOutcome
from barqueue.services.order_commands import OrderCommandService
from barqueue.services.read_model import OrderViews, OrderFeed, ViewFilter
