"""Drink menu management."""

import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from barqueue.models import Drink
from barqueue.schemas.drink import DrinkCreate

logger = logging.getLogger(__name__)


class DrinkService:
    def __init__(self, db: Session):
        self.db = db

    def list_drinks(self, available_only: bool = False, order_by: str = "id") -> List[Drink]:
        query = select(Drink)
        if available_only:
            query = query.where(Drink.available.is_(True))
        query = query.order_by(Drink.name.asc() if order_by == "name" else Drink.id.asc())
        return list(self.db.scalars(query))

    def create(self, data: DrinkCreate) -> Drink:
        existing = self.db.scalar(select(Drink).where(Drink.name == data.name))
        if existing:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Drink already exists")
        drink = Drink(**data.model_dump())
        self.db.add(drink)
        self.db.commit()
        self.db.refresh(drink)
        return drink

    def set_availability(self, drink_id: int, available: Optional[bool] = None) -> Drink:
        """Set availability, or flip it when ``available`` is None."""
        drink = self.db.get(Drink, drink_id)
        if drink is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Drink not found")
        drink.available = (not drink.available) if available is None else available
        self.db.commit()
        self.db.refresh(drink)
        logger.info(f"Drink {drink.id} ({drink.name}) available={drink.available}")
        return drink
