"""SQLAlchemy models."""

from barqueue.models.drink import Drink
from barqueue.models.profile import Profile
from barqueue.models.order import Order, OrderStatus

__all__ = ["Drink", "Profile", "Order", "OrderStatus"]
