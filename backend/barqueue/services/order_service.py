"""Guest order submission and lookups."""

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from barqueue.core.phone import normalize_phone
from barqueue.core.session import GuestSession
from barqueue.models import Drink, Order, OrderStatus
from barqueue.services.realtime import OrderEventBus, order_events
from barqueue.services.serializers import order_to_row

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, db: Session, events: Optional[OrderEventBus] = None):
        self.db = db
        self.events = events or order_events

    def create_order(self, guest: GuestSession, drink_id: int) -> Order:
        """Place a NEW order for an available drink.

        Guest name, phone and photo are copied onto the order.
        """
        drink = self.db.get(Drink, drink_id)
        if drink is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Drink not found")
        if not drink.available:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Drink '{drink.name}' is not available",
            )

        order = Order(
            profile_id=guest.profile_id,
            name=guest.name,
            phone=normalize_phone(guest.phone),
            photo_url=guest.photo_url,
            drink_id=drink.id,
            drink_name=drink.name,
            status=OrderStatus.NEW,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order {order.id} placed: {drink.name} for profile {guest.profile_id}")
        self.events.publish("INSERT", order_to_row(order))
        return order

    def get_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return order
