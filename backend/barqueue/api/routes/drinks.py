"""Drink menu routes."""

from typing import List, Optional

from fastapi import APIRouter, Body, Query

from barqueue.db.session import DbSession
from barqueue.schemas.drink import DrinkAvailabilityUpdate, DrinkCreate, DrinkResponse
from barqueue.services.drink_service import DrinkService

router = APIRouter()


@router.get("", response_model=List[DrinkResponse])
def list_drinks(
    db: DbSession,
    available_only: bool = Query(False),
    order_by: str = Query("id", pattern="^(id|name)$"),
):
    """Menu, ordered by id (guest pages) or name (stock management)."""
    return DrinkService(db).list_drinks(available_only=available_only, order_by=order_by)


@router.post("", response_model=DrinkResponse, status_code=201)
def create_drink(db: DbSession, data: DrinkCreate):
    return DrinkService(db).create(data)


@router.patch("/{drink_id}/availability", response_model=DrinkResponse)
def update_availability(
    db: DbSession,
    drink_id: int,
    data: Optional[DrinkAvailabilityUpdate] = Body(None),
):
    """Mark a drink sold out / back in stock. An empty body toggles."""
    available = data.available if data else None
    return DrinkService(db).set_availability(drink_id, available)
