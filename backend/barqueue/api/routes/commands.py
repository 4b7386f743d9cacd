"""Command endpoints: notify, remind, upload-avatar.

These keep a flat wire contract: JSON body in, ``{"ok": ...}`` out,
with 400 for missing parameters rather than FastAPI's 422.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from barqueue.core.config import settings
from barqueue.core.file_utils import build_avatar_path, decode_base64_image
from barqueue.core.rate_limit import limiter
from barqueue.core.responses import error_response, ok_response
from barqueue.db.session import DbSession
from barqueue.schemas.commands import AvatarUpload, OrderCommand
from barqueue.services.avatar_storage import AvatarStorage, get_avatar_storage
from barqueue.services.order_commands import OrderCommandService
from barqueue.services.sms_service import NotificationDispatcher, get_notification_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter()

Dispatcher = Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)]
Storage = Annotated[AvatarStorage, Depends(get_avatar_storage)]


@router.post("/notify")
@limiter.limit("60/minute")
async def notify(
    request: Request,
    db: DbSession,
    dispatcher: Dispatcher,
    payload: Optional[OrderCommand] = None,
):
    """Mark an order ready and text the guest.

    Calling it again for the same order is a no-op that reports
    ``already: true`` and sends nothing.
    """
    order_id = payload.order_id() if payload else None
    if order_id is None:
        return error_response(400, "id is required")

    try:
        result = await OrderCommandService(db, dispatcher).notify_ready(order_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while marking order {order_id} ready: {e}")
        return error_response(500, "Database error")
    return result.to_response()


@router.post("/remind")
@limiter.limit("30/minute")
async def remind(
    request: Request,
    db: DbSession,
    dispatcher: Dispatcher,
    payload: Optional[OrderCommand] = None,
):
    """Send the one reminder a ready order is allowed."""
    order_id = payload.order_id() if payload else None
    if order_id is None:
        return error_response(400, "id is required")

    try:
        result = await OrderCommandService(db, dispatcher).send_reminder(order_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error while reminding order {order_id}: {e}")
        return error_response(500, "Database error")
    return result.to_response()


@router.post("/upload-avatar")
@limiter.limit("10/minute")
def upload_avatar(
    request: Request,
    storage: Storage,
    payload: Optional[AvatarUpload] = None,
):
    """Store a base64-encoded profile photo and return its public URL."""
    missing = payload.missing_fields() if payload else ["fileBase64", "contentType", "filename", "profileId"]
    if missing:
        return error_response(400, "Invalid parameters", missing=missing)

    try:
        content = decode_base64_image(payload.file_base64)
    except ValueError:
        return error_response(400, "fileBase64 is not valid base64")

    if len(content) > settings.avatar_max_bytes:
        return error_response(400, "Image too large after compression")

    key = build_avatar_path(payload.profile_id, payload.filename)
    try:
        url = storage.save(key, content)
    except (OSError, ValueError) as e:
        logger.error(f"Avatar upload failed for profile {payload.profile_id}: {e}")
        return error_response(500, str(e))

    return ok_response(url=url)
