"""Standardized API response helpers.

Command endpoints (notify, remind, upload-avatar) answer with an ``ok``
envelope:
    {"ok": true, ...}
    {"ok": false, "error": "<message>", ...}

Single-item endpoints return the object directly (no wrapper).
"""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok_response(status_code: int = 200, **fields: Any) -> JSONResponse:
    """Build ``{"ok": true, **fields}``."""
    content = {"ok": True}
    content.update(fields)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_response(status_code: int, error: str, **fields: Any) -> JSONResponse:
    """Build ``{"ok": false, "error": error, **fields}``."""
    content = {"ok": False, "error": error}
    content.update(fields)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
