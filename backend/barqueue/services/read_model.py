"""Read views over the orders table.

Queues are not stored anywhere: each view is a filter + sort over order
rows, recomputed on every refresh. Priorities are derived positions and
the recently-ready list evicts by time alone, so views must be re-projected
periodically even when nothing changed.

``OrderFeed.subscribe`` hides how a view stays fresh. It merges push events
from the ``OrderEventBus`` into a local working set and falls back to a full
re-fetch on a fixed interval.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from barqueue.core.config import Settings, settings as default_settings
from barqueue.core.phone import normalize_phone
from barqueue.core.timeutils import as_utc, utcnow
from barqueue.models import Order, OrderStatus
from barqueue.services import reminder_policy
from barqueue.services.realtime import OrderEventBus, order_events
from barqueue.services.serializers import order_to_row, row_to_json

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

NEW = OrderStatus.NEW.value
READY = OrderStatus.READY.value

VIEWS = ("bar", "guest", "log", "ranking")


def _created_key(row: Row):
    return (as_utc(row["created_at"]), row["id"])


def _ready_reference(row: Row) -> Optional[datetime]:
    return as_utc(row.get("ready_at") or row.get("created_at"))


# ==================== PROJECTIONS ====================

def pending_queue(rows: Iterable[Row]) -> List[Row]:
    """NEW orders, oldest first, each with a 1-based ``priority``."""
    pending = sorted((r for r in rows if r["status"] == NEW), key=_created_key)
    return [dict(row, priority=index) for index, row in enumerate(pending, start=1)]


def recently_ready(rows: Iterable[Row], now: datetime, window: timedelta) -> List[Row]:
    """READY orders whose ready time is within ``window`` of now, newest first."""
    now = as_utc(now)
    recent = [
        r for r in rows
        if r["status"] == READY and _ready_reference(r) is not None and now - _ready_reference(r) <= window
    ]
    return sorted(recent, key=lambda r: (_ready_reference(r), r["id"]), reverse=True)


def guest_orders(rows: Iterable[Row], phone: str) -> Dict[str, List[Row]]:
    """A guest's own orders split by status, oldest first."""
    mine = sorted((r for r in rows if r["phone"] == phone), key=_created_key)
    return {
        "pending": [r for r in mine if r["status"] == NEW],
        "ready": [r for r in mine if r["status"] == READY],
    }


def ready_log(rows: Iterable[Row]) -> List[Row]:
    """Every READY order, oldest first."""
    return sorted((r for r in rows if r["status"] == READY), key=_created_key)


def drink_ranking(rows: Iterable[Row]) -> List[Dict[str, Any]]:
    """Order counts per guest, most drinks first, ties by most recent order.

    Guests are keyed by profile id, or by name for orders without one.
    The most recent photo seen for a guest is kept.
    """
    board: Dict[str, Dict[str, Any]] = {}
    for row in sorted(rows, key=_created_key):
        key = row.get("profile_id") or f"name:{row.get('name') or '???'}"
        entry = board.get(key)
        if entry is None:
            entry = {
                "id": key,
                "name": row.get("name") or "Guest",
                "photo_url": None,
                "count": 0,
                "last_at": None,
            }
            board[key] = entry
        entry["count"] += 1
        if row.get("photo_url"):
            entry["photo_url"] = row["photo_url"]
        entry["last_at"] = as_utc(row["created_at"])

    ranked = sorted(board.values(), key=lambda e: e["last_at"], reverse=True)
    ranked.sort(key=lambda e: e["count"], reverse=True)
    return ranked


# ==================== SERIALIZATION ====================

def present_order(row: Row, now: datetime, cooldown: timedelta) -> Dict[str, Any]:
    """JSON-ready order with the reminder gate applied."""
    return row_to_json(row, extra={
        "can_remind": reminder_policy.is_reminder_eligible(row, now, cooldown),
        "remind_available_at": reminder_policy.reminder_available_at(row, cooldown),
    })


@dataclass(frozen=True)
class ViewFilter:
    """Which projection a subscriber wants. ``phone`` is used by the guest view."""

    view: str = "bar"
    phone: Optional[str] = None

    def __post_init__(self):
        if self.view not in VIEWS:
            raise ValueError(f"Unknown view '{self.view}'")
        if self.view == "guest" and not self.phone:
            raise ValueError("The guest view needs a phone number")

    def matches(self, row: Row) -> bool:
        return self.view != "guest" or row.get("phone") == self.phone


class OrderViews:
    """Builds view snapshots from the database."""

    def __init__(
        self,
        db: Optional[Session],
        clock: Callable[[], datetime] = utcnow,
        cfg: Optional[Settings] = None,
    ):
        self.db = db
        self.clock = clock
        self.settings = cfg or default_settings

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.settings.reminder_cooldown_minutes)

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.settings.ready_window_minutes)

    def fetch_rows(self, view_filter: ViewFilter) -> List[Row]:
        """Load the rows a view needs, as plain dicts."""
        query = select(Order)
        if view_filter.view == "guest":
            query = query.where(Order.phone == view_filter.phone)
        elif view_filter.view == "log":
            query = query.where(Order.status == OrderStatus.READY)
        elif view_filter.view == "bar":
            # Older ready rows can never re-enter the trailing window
            cutoff = self.clock() - self.window
            query = query.where(
                (Order.status == OrderStatus.NEW)
                | (Order.ready_at.is_(None))
                | (Order.ready_at >= cutoff)
            )
        query = query.order_by(Order.created_at.asc(), Order.id.asc())
        return [order_to_row(order) for order in self.db.scalars(query)]

    def project(self, view_filter: ViewFilter, rows: Iterable[Row], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Apply the view's projection at ``now``."""
        now = now or self.clock()
        rows = list(rows)

        def present(items):
            return [present_order(r, now, self.cooldown) for r in items]

        if view_filter.view == "bar":
            snapshot = {
                "pending": present(pending_queue(rows)),
                "ready": present(recently_ready(rows, now, self.window)),
            }
        elif view_filter.view == "guest":
            split = guest_orders(rows, view_filter.phone)
            snapshot = {"phone": view_filter.phone, "pending": present(split["pending"]), "ready": present(split["ready"])}
        elif view_filter.view == "log":
            snapshot = {"items": present(ready_log(rows))}
        else:
            snapshot = {"items": [row_to_json(e) for e in drink_ranking(rows)]}

        snapshot["view"] = view_filter.view
        snapshot["generated_at"] = now.isoformat()
        return snapshot

    def snapshot(self, view_filter: ViewFilter) -> Dict[str, Any]:
        return self.project(view_filter, self.fetch_rows(view_filter))

    # Convenience wrappers used by the HTTP routes
    def bar_queue(self) -> Dict[str, Any]:
        return self.snapshot(ViewFilter("bar"))

    def guest_view(self, phone: str) -> Dict[str, Any]:
        return self.snapshot(ViewFilter("guest", phone=normalize_phone(phone)))

    def log_view(self) -> Dict[str, Any]:
        return self.snapshot(ViewFilter("log"))

    def ranking_view(self) -> Dict[str, Any]:
        return self.snapshot(ViewFilter("ranking"))


def merge_row(rows: Dict[int, Row], row: Row) -> None:
    """Insert or replace a row by id. Last write wins."""
    rows[row["id"]] = row


class OrderFeed:
    """Restartable stream of view snapshots.

    Each ``subscribe`` call returns an independent async iterator:

        async for snapshot in feed.subscribe(ViewFilter("bar")):
            await websocket.send_json(snapshot)

    Push events are merged as they arrive; when no event arrives within
    the view's poll interval the working set is re-fetched in full. Either
    way a fresh projection is yielded, which also ages rows out of
    time-windowed views.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        events: Optional[OrderEventBus] = None,
        clock: Callable[[], datetime] = utcnow,
        cfg: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.events = events or order_events
        self.clock = clock
        self.settings = cfg or default_settings

    def poll_interval(self, view_filter: ViewFilter) -> float:
        if view_filter.view == "bar":
            return float(self.settings.bar_poll_seconds)
        if view_filter.view == "guest":
            return float(self.settings.guest_poll_seconds)
        return float(self.settings.log_poll_seconds)

    def _load(self, view_filter: ViewFilter) -> List[Row]:
        db = self.session_factory()
        try:
            return OrderViews(db, clock=self.clock, cfg=self.settings).fetch_rows(view_filter)
        finally:
            db.close()

    def _project(self, view_filter: ViewFilter, rows: Dict[int, Row]) -> Dict[str, Any]:
        # Projection needs no session; OrderViews only uses it for fetching
        return OrderViews(None, clock=self.clock, cfg=self.settings).project(view_filter, rows.values())

    async def subscribe(self, view_filter: ViewFilter) -> AsyncIterator[Dict[str, Any]]:
        queue = self.events.subscribe()
        interval = self.poll_interval(view_filter)
        try:
            rows = {r["id"]: r for r in await asyncio.to_thread(self._load, view_filter)}
            yield self._project(view_filter, rows)

            while True:
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=interval)
                except asyncio.TimeoutError:
                    rows = {r["id"]: r for r in await asyncio.to_thread(self._load, view_filter)}
                else:
                    if view_filter.matches(message.row):
                        merge_row(rows, message.row)
                    # Drain whatever else is already queued before re-projecting
                    while not queue.empty():
                        pending = queue.get_nowait()
                        if view_filter.matches(pending.row):
                            merge_row(rows, pending.row)
                yield self._project(view_filter, rows)
        finally:
            self.events.unsubscribe(queue)
            logger.debug(f"Order feed for view '{view_filter.view}' closed")
