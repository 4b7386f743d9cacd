"""Avatar upload helpers."""

import base64
import binascii
import re
import time
from typing import Optional

# Lowercase characters allowed in stored avatar names
SAFE_AVATAR_PATTERN = re.compile(r"[^a-z0-9_.-]")


def sanitize_avatar_filename(filename: str) -> str:
    """
    Make a filename safe for the avatar bucket.

    Lowercases, drops anything outside ``[a-z0-9_.-]`` and forces a ``.jpg``
    suffix (avatars are re-encoded to JPEG on the client before upload).
    """
    name = SAFE_AVATAR_PATTERN.sub("", (filename or "avatar.jpg").lower())
    name = name.lstrip(".") or "avatar.jpg"
    if not name.endswith(".jpg"):
        name = name + ".jpg"
    return name


def build_avatar_path(profile_id: str, filename: str, now_ms: Optional[int] = None) -> str:
    """Object path for a profile avatar: ``profiles/<id>/<epoch_ms>-<name>``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    safe_profile = SAFE_AVATAR_PATTERN.sub("", str(profile_id).lower()) or "unknown"
    return f"profiles/{safe_profile}/{now_ms}-{sanitize_avatar_filename(filename)}"


def decode_base64_image(data: str) -> bytes:
    """
    Decode base64 image data, tolerating a ``data:<mime>;base64,`` prefix.

    Raises:
        ValueError if the payload is not valid base64
    """
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e
