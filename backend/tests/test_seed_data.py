"""Tests for the drink menu seed script."""

from sqlalchemy import func, select

import seed_data
from barqueue.db.session import SessionLocal
from barqueue.models import Drink


def test_seed_is_idempotent():
    first = seed_data.seed()
    second = seed_data.seed()

    assert first == len(seed_data.DEFAULT_MENU)
    assert second == 0

    db = SessionLocal()
    try:
        assert db.scalar(select(func.count(Drink.id))) == len(seed_data.DEFAULT_MENU)
    finally:
        db.close()
