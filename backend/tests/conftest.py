"""Pytest configuration and fixtures."""

import os
import tempfile

# Configure the app before it is imported: in-memory DB, no rate limits,
# avatars in a throwaway directory, SMS off unless a test turns it on.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("AVATAR_STORAGE_DIR", tempfile.mkdtemp(prefix="barqueue-avatars-"))
os.environ.setdefault("SMS_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from barqueue.core.config import Settings
from barqueue.db.base import Base
from barqueue.db.session import get_db
from barqueue.main import app
# Import all models to ensure they're registered with Base.metadata
from barqueue.models import *  # noqa: F401,F403
from barqueue.models import Drink, Order, OrderStatus, Profile
from barqueue.services.avatar_storage import AvatarStorage, get_avatar_storage
from barqueue.services.realtime import OrderEventBus
from barqueue.services.sms_service import NotificationDispatcher, SmsGateway, get_notification_dispatcher

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

T0 = datetime(2025, 6, 1, 21, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class TwilioStub:
    """Records gateway calls and answers like the Twilio Messages API."""

    def __init__(self, status_code: int = 201, payload: dict = None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {"sid": "SM123", "status": "queued"}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def forms(self) -> List[dict]:
        from urllib.parse import parse_qs

        return [
            {k: v[0] for k, v in parse_qs(r.content.decode()).items()}
            for r in self.requests
        ]


def sms_settings(**overrides) -> Settings:
    values = {
        "sms_enabled": True,
        "twilio_account_sid": "AC0000000000",
        "twilio_auth_token": "secret-token",
        "twilio_phone_number": "+15550001111",
        "sms_country_code": "55",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def events() -> OrderEventBus:
    return OrderEventBus()


@pytest.fixture
def twilio() -> TwilioStub:
    return TwilioStub()


@pytest.fixture
def make_dispatcher(twilio) -> Callable[..., NotificationDispatcher]:
    """Build a dispatcher whose gateway talks to the Twilio stub."""
    def _make(**overrides) -> NotificationDispatcher:
        cfg = sms_settings(**overrides)
        gateway = SmsGateway.from_settings(cfg, transport=httpx.MockTransport(twilio))
        return NotificationDispatcher(gateway, cfg)
    return _make


@pytest.fixture
def dispatcher(make_dispatcher) -> NotificationDispatcher:
    return make_dispatcher()


@pytest.fixture
def avatar_storage(tmp_path) -> AvatarStorage:
    return AvatarStorage(str(tmp_path / "avatars"), "/avatars")


@pytest.fixture(scope="function")
def client(db_session: Session, dispatcher, avatar_storage) -> Generator[TestClient, None, None]:
    """Create a test client with database, SMS and storage overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_avatar_storage] = lambda: avatar_storage
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def drinks(db_session: Session) -> dict:
    """A small menu with one sold-out drink."""
    caipirinha = Drink(name="Caipirinha", description="Cachaça, lime, sugar", available=True)
    negroni = Drink(name="Negroni", description="Gin, Campari, vermouth", available=True)
    sold_out = Drink(name="Mojito", description="Rum, mint, lime", available=False)
    db_session.add_all([caipirinha, negroni, sold_out])
    db_session.commit()
    return {"caipirinha": caipirinha, "negroni": negroni, "sold_out": sold_out}


@pytest.fixture
def guest(db_session: Session) -> Profile:
    profile = Profile(name="Ana", phone="+5511999998888", photo_url="/avatars/profiles/ana/1.jpg")
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def make_order(db_session: Session) -> Callable[..., Order]:
    """Insert an order row directly, bypassing the API."""
    def _make(
        name: str = "Ana",
        phone: str = "+5511999998888",
        drink_name: str = "Caipirinha",
        status: OrderStatus = OrderStatus.NEW,
        created_at: datetime = T0,
        ready_at: datetime = None,
        reminded_at: datetime = None,
        profile_id: str = None,
    ) -> Order:
        order = Order(
            name=name,
            phone=phone,
            drink_name=drink_name,
            status=status,
            created_at=created_at,
            ready_at=ready_at,
            reminded_at=reminded_at,
            profile_id=profile_id,
        )
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order
    return _make
