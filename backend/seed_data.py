"""Seed the drink menu.

Inserts a default menu so a fresh install has something to order. Drinks
that already exist (matched by name) are left untouched, so the script can
be run repeatedly.

Usage:
    cd backend
    python seed_data.py
"""

import logging
import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import select

from barqueue.core.config import settings
from barqueue.core.logging_config import configure_logging
from barqueue.db.base import Base
from barqueue.db.session import SessionLocal, engine
from barqueue.models import Drink

logger = logging.getLogger("seed_data")

DEFAULT_MENU = [
    {"name": "Caipirinha", "description": "Cachaça, lime and sugar", "ingredients": "cachaça, lime, sugar, ice"},
    {"name": "Caipiroska", "description": "Vodka caipirinha", "ingredients": "vodka, lime, sugar, ice"},
    {"name": "Negroni", "description": "Bitter and strong", "ingredients": "gin, Campari, sweet vermouth"},
    {"name": "Aperol Spritz", "description": "Light and bubbly", "ingredients": "Aperol, prosecco, soda"},
    {"name": "Mojito", "description": "Fresh mint and rum", "ingredients": "white rum, mint, lime, sugar, soda"},
    {"name": "Gin Tônica", "description": "Gin and tonic with citrus", "ingredients": "gin, tonic water, lemon peel"},
]


def seed() -> int:
    """Insert missing menu drinks. Returns the number of drinks added."""
    if settings.database_url.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        existing = set(db.scalars(select(Drink.name)))
        added = 0
        for item in DEFAULT_MENU:
            if item["name"] in existing:
                continue
            db.add(Drink(available=True, **item))
            added += 1
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding drinks: {e}")
        raise
    finally:
        db.close()

    logger.info(f"Seeded {added} drink(s), {len(DEFAULT_MENU) - added} already present")
    return added


if __name__ == "__main__":
    configure_logging()
    seed()
