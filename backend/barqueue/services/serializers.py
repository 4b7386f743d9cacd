"""Order row serialization shared by routes, events and read views."""

from typing import Any, Dict, Optional

from barqueue.core.timeutils import as_utc, isoformat
from barqueue.models import Order


def order_to_row(order: Order) -> Dict[str, Any]:
    """Snapshot an ORM order as a plain dict with aware datetimes."""
    return {
        "id": order.id,
        "profile_id": order.profile_id,
        "name": order.name,
        "phone": order.phone,
        "photo_url": order.photo_url,
        "drink_id": order.drink_id,
        "drink_name": order.drink_name,
        "status": order.status.value if hasattr(order.status, "value") else order.status,
        "created_at": as_utc(order.created_at),
        "ready_at": as_utc(order.ready_at),
        "reminded_at": as_utc(order.reminded_at),
    }


def row_to_json(row: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Render a row for JSON output (ISO-8601 timestamps)."""
    data = {
        key: isoformat(value) if key.endswith("_at") and value is not None else value
        for key, value in row.items()
    }
    if extra:
        for key, value in extra.items():
            data[key] = isoformat(value) if key.endswith("_at") and value is not None else value
    return data


