"""Tests for the derived order views and the order feed."""

from datetime import datetime, timedelta, timezone

import pytest

from barqueue.core.config import Settings
from barqueue.models import OrderStatus
from barqueue.services.read_model import (
    OrderFeed,
    OrderViews,
    ViewFilter,
    drink_ranking,
    guest_orders,
    pending_queue,
    ready_log,
    recently_ready,
)

T0 = datetime(2025, 6, 1, 21, 0, 0, tzinfo=timezone.utc)
WINDOW = timedelta(minutes=15)


def row(id, status="new", minutes_ago=0, ready_minutes_ago=None, **extra):
    data = {
        "id": id,
        "profile_id": None,
        "name": "Guest",
        "phone": "+5511999998888",
        "photo_url": None,
        "drink_id": None,
        "drink_name": "Caipirinha",
        "status": status,
        "created_at": T0 - timedelta(minutes=minutes_ago),
        "ready_at": None if ready_minutes_ago is None else T0 - timedelta(minutes=ready_minutes_ago),
        "reminded_at": None,
    }
    data.update(extra)
    return data


class TestPendingQueue:
    def test_oldest_first_with_priorities(self):
        rows = [row(1, minutes_ago=1), row(2, minutes_ago=5), row(3, minutes_ago=3)]

        queue = pending_queue(rows)

        assert [r["id"] for r in queue] == [2, 3, 1]
        assert [r["priority"] for r in queue] == [1, 2, 3]

    def test_priorities_shift_when_an_order_leaves(self):
        rows = [row(1, minutes_ago=5), row(2, minutes_ago=3), row(3, minutes_ago=1)]
        rows[0] = dict(rows[0], status="ready")

        queue = pending_queue(rows)

        assert [(r["id"], r["priority"]) for r in queue] == [(2, 1), (3, 2)]

    def test_ready_orders_excluded(self):
        assert pending_queue([row(1, status="ready", ready_minutes_ago=1)]) == []


class TestRecentlyReady:
    def test_included_at_fourteen_fifty_nine(self):
        r = row(1, status="ready", minutes_ago=20)
        r["ready_at"] = T0 - timedelta(minutes=14, seconds=59)
        assert [x["id"] for x in recently_ready([r], T0, WINDOW)] == [1]

    def test_excluded_after_fifteen_minutes(self):
        r = row(1, status="ready", minutes_ago=20)
        r["ready_at"] = T0 - timedelta(minutes=15, seconds=1)
        assert recently_ready([r], T0, WINDOW) == []

    def test_newest_first(self):
        rows = [
            row(1, status="ready", minutes_ago=30, ready_minutes_ago=10),
            row(2, status="ready", minutes_ago=30, ready_minutes_ago=2),
            row(3, status="ready", minutes_ago=30, ready_minutes_ago=6),
        ]
        assert [r["id"] for r in recently_ready(rows, T0, WINDOW)] == [2, 3, 1]

    def test_legacy_rows_fall_back_to_created_at(self):
        rows = [row(1, status="ready", minutes_ago=5), row(2, status="ready", minutes_ago=40)]
        assert [r["id"] for r in recently_ready(rows, T0, WINDOW)] == [1]


class TestGuestAndLog:
    def test_guest_orders_filtered_by_phone(self):
        rows = [
            row(1, minutes_ago=5),
            row(2, status="ready", minutes_ago=10, ready_minutes_ago=1),
            row(3, minutes_ago=1, phone="+5521888887777"),
        ]

        mine = guest_orders(rows, "+5511999998888")

        assert [r["id"] for r in mine["pending"]] == [1]
        assert [r["id"] for r in mine["ready"]] == [2]

    def test_ready_log_has_every_ready_order_oldest_first(self):
        rows = [
            row(1, status="ready", minutes_ago=300, ready_minutes_ago=290),
            row(2, minutes_ago=5),
            row(3, status="ready", minutes_ago=600, ready_minutes_ago=590),
        ]
        assert [r["id"] for r in ready_log(rows)] == [3, 1]


class TestDrinkRanking:
    def test_most_drinks_first_ties_by_recency(self):
        rows = [
            row(1, minutes_ago=50, profile_id="ana", name="Ana"),
            row(2, minutes_ago=40, profile_id="bia", name="Bia"),
            row(3, minutes_ago=30, profile_id="ana", name="Ana", photo_url="/avatars/ana.jpg"),
            row(4, minutes_ago=20, profile_id="caio", name="Caio"),
            row(5, minutes_ago=10, profile_id="bia", name="Bia"),
        ]

        ranking = drink_ranking(rows)

        assert [(e["id"], e["count"]) for e in ranking] == [("bia", 2), ("ana", 2), ("caio", 1)]
        ana = ranking[1]
        assert ana["photo_url"] == "/avatars/ana.jpg"

    def test_orders_without_profile_grouped_by_name(self):
        rows = [row(1, name="Zé"), row(2, name="Zé", minutes_ago=1)]
        ranking = drink_ranking(rows)
        assert len(ranking) == 1
        assert ranking[0]["count"] == 2


class TestViewFilter:
    def test_unknown_view(self):
        with pytest.raises(ValueError):
            ViewFilter("kitchen")

    def test_guest_view_needs_phone(self):
        with pytest.raises(ValueError):
            ViewFilter("guest")

    def test_matches(self):
        guest = ViewFilter("guest", phone="+5511999998888")
        assert guest.matches(row(1))
        assert not guest.matches(row(2, phone="+5521888887777"))
        assert ViewFilter("bar").matches(row(3, phone="+5521888887777"))


class TestOrderViews:
    def test_bar_snapshot_flags_reminders(self, db_session, make_order, clock):
        make_order(name="Ana", created_at=T0 - timedelta(minutes=2))
        make_order(
            name="Bia",
            status=OrderStatus.READY,
            created_at=T0 - timedelta(minutes=20),
            ready_at=T0 - timedelta(minutes=12),
        )
        make_order(
            name="Caio",
            status=OrderStatus.READY,
            created_at=T0 - timedelta(minutes=8),
            ready_at=T0 - timedelta(minutes=4),
        )

        snapshot = OrderViews(db_session, clock=clock).bar_queue()

        assert snapshot["view"] == "bar"
        assert [o["name"] for o in snapshot["pending"]] == ["Ana"]
        assert snapshot["pending"][0]["priority"] == 1
        ready = {o["name"]: o for o in snapshot["ready"]}
        assert ready["Bia"]["can_remind"] is True
        assert ready["Caio"]["can_remind"] is False
        assert ready["Caio"]["remind_available_at"] == (T0 + timedelta(minutes=6)).isoformat()

    def test_ready_orders_age_out_of_bar_view(self, db_session, make_order, clock):
        make_order(status=OrderStatus.READY, created_at=T0 - timedelta(minutes=20),
                   ready_at=T0 - timedelta(minutes=14, seconds=59))
        views = OrderViews(db_session, clock=clock)

        assert len(views.bar_queue()["ready"]) == 1
        clock.advance(seconds=2)
        assert views.bar_queue()["ready"] == []
        assert len(views.log_view()["items"]) == 1

    def test_guest_view_normalizes_phone(self, db_session, make_order, clock):
        make_order(phone="+5511999998888")
        make_order(phone="+5521888887777")

        snapshot = OrderViews(db_session, clock=clock).guest_view("(11) 99999-8888")

        assert snapshot["phone"] == "+5511999998888"
        assert len(snapshot["pending"]) == 1


class TestOrderFeed:
    @pytest.mark.asyncio
    async def test_push_events_are_merged(self, session_factory, events, clock, make_order):
        make_order(name="Ana")
        feed = OrderFeed(session_factory, events=events, clock=clock, cfg=Settings(bar_poll_seconds=3600))
        snapshots = feed.subscribe(ViewFilter("bar"))
        try:
            first = await snapshots.__anext__()
            assert [o["name"] for o in first["pending"]] == ["Ana"]
            assert events.subscriber_count == 1

            events.publish("INSERT", row(99, name="Bia", created_at=T0 + timedelta(minutes=1)))
            second = await snapshots.__anext__()
            assert [o["name"] for o in second["pending"]] == ["Ana", "Bia"]

            events.publish("UPDATE", row(99, status="ready", name="Bia",
                                         created_at=T0 + timedelta(minutes=1), ready_at=T0))
            third = await snapshots.__anext__()
            assert [o["name"] for o in third["pending"]] == ["Ana"]
            assert [o["name"] for o in third["ready"]] == ["Bia"]
        finally:
            await snapshots.aclose()
        assert events.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_poll_refresh_picks_up_missed_rows(self, session_factory, events, clock, make_order):
        feed = OrderFeed(session_factory, events=events, clock=clock, cfg=Settings(bar_poll_seconds=0))
        snapshots = feed.subscribe(ViewFilter("bar"))
        try:
            first = await snapshots.__anext__()
            assert first["pending"] == []

            # Written without publishing an event
            make_order(name="Caio")
            second = await snapshots.__anext__()
            assert [o["name"] for o in second["pending"]] == ["Caio"]
        finally:
            await snapshots.aclose()

    @pytest.mark.asyncio
    async def test_guest_feed_ignores_other_phones(self, session_factory, events, clock):
        feed = OrderFeed(session_factory, events=events, clock=clock, cfg=Settings(guest_poll_seconds=3600))
        snapshots = feed.subscribe(ViewFilter("guest", phone="+5511999998888"))
        try:
            await snapshots.__anext__()
            events.publish("INSERT", row(1, phone="+5521888887777"))
            events.publish("INSERT", row(2))
            snapshot = await snapshots.__anext__()
            assert [o["id"] for o in snapshot["pending"]] == [2]
        finally:
            await snapshots.aclose()
