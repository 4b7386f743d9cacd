"""Order routes - guest submission and the bar / guest read views."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from barqueue.core.rate_limit import limiter
from barqueue.core.session import OptionalGuest, RequireGuest
from barqueue.core.timeutils import utcnow
from barqueue.db.session import DbSession
from barqueue.schemas.order import OrderCreate
from barqueue.services.order_service import OrderService
from barqueue.services.read_model import OrderViews, present_order
from barqueue.services.serializers import order_to_row

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
@limiter.limit("30/minute")
def place_order(
    request: Request,
    db: DbSession,
    guest: RequireGuest,
    order: OrderCreate,
):
    """Place an order for the guest identified by the X-Profile-Id header."""
    service = OrderService(db)
    created = service.create_order(guest, order.drink_id)
    views = OrderViews(db)
    return present_order(order_to_row(created), utcnow(), views.cooldown)


@router.get("/queue")
def bar_queue(db: DbSession):
    """Bar view: pending orders with priority, plus recently ready ones."""
    return OrderViews(db).bar_queue()


@router.get("/mine")
def my_orders(
    db: DbSession,
    guest: OptionalGuest,
    phone: Optional[str] = Query(None, description="Look up by phone instead of the session"),
):
    """Guest view: the caller's own pending and ready orders."""
    lookup = phone or (guest.phone if guest else None)
    if not lookup:
        raise HTTPException(
            status_code=401,
            detail={"reason": "registration_required", "redirect": "/register"},
        )
    return OrderViews(db).guest_view(lookup)


@router.get("/log")
def ready_log(db: DbSession):
    """Every ready order, oldest first."""
    return OrderViews(db).log_view()


@router.get("/ranking")
def ranking(db: DbSession):
    """Drinks per guest, most first."""
    return OrderViews(db).ranking_view()


@router.get("/{order_id}")
def get_order(db: DbSession, order_id: int):
    order = OrderService(db).get_order(order_id)
    views = OrderViews(db)
    return present_order(order_to_row(order), utcnow(), views.cooldown)
