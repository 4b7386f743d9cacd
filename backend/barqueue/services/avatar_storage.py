"""Avatar storage.

Avatars are written under ``AVATAR_STORAGE_DIR`` using object-store style
keys (``profiles/<id>/<epoch_ms>-<name>.jpg``) and addressed publicly as
``AVATAR_PUBLIC_BASE_URL/<key>``. When the base URL is a relative path the
app serves the directory itself (see ``barqueue.main``).
"""

import logging
from pathlib import Path
from typing import Optional

from barqueue.core.config import settings as default_settings

logger = logging.getLogger(__name__)


class AvatarStorage:
    """Local-disk bucket for profile photos."""

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def save(self, key: str, content: bytes) -> str:
        """Write ``content`` at ``key`` (overwriting) and return its public URL.

        Raises:
            OSError: the file could not be written
            ValueError: the key escapes the storage root
        """
        target = (self.root / key).resolve()
        root = self.root.resolve()
        if root not in target.parents:
            raise ValueError(f"Invalid storage key: {key}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info(f"Stored avatar {key} ({len(content)} bytes)")
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"


_storage: Optional[AvatarStorage] = None


def get_avatar_storage() -> AvatarStorage:
    """FastAPI dependency: the shared avatar storage."""
    global _storage
    if _storage is None:
        _storage = AvatarStorage(default_settings.avatar_storage_dir, default_settings.avatar_public_base_url)
    return _storage
