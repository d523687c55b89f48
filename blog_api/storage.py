"""
Local filesystem storage for profile images.

Files are written to ``<upload_dir>/<epoch_ms>-<random><ext>`` and
exposed as ``<base_url>/<upload_dir>/<name>``; ``blog_api.main`` mounts
the upload directory as static files so the URL resolves.
"""
import logging
import random
import time
from pathlib import Path

from blog_api.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES: frozenset[str] = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
)


class LocalImageStorage:
    def __init__(self, upload_dir: str, base_url: str) -> None:
        self._upload_dir = Path(upload_dir)
        self._base_url = base_url.rstrip("/")

    @property
    def url_prefix(self) -> str:
        return f"{self._base_url}/{self._upload_dir.as_posix()}/"

    def upload_image(self, content: bytes, filename: str) -> str:
        """Write *content* to disk and return its public URL."""
        self._upload_dir.mkdir(parents=True, exist_ok=True)

        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        stored_name = f"{unique_suffix}{Path(filename or '').suffix.lower()}"
        dest_path = self._upload_dir / stored_name
        dest_path.write_bytes(content)

        logger.info("Stored image: %s (%d bytes)", dest_path, len(content))
        return f"{self.url_prefix}{stored_name}"

    def delete_image(self, image_url: str) -> bool:
        """
        Delete the file behind *image_url*.

        Returns False when the URL does not point into this storage or the
        file is already gone.
        """
        if not image_url.startswith(self.url_prefix):
            return False
        name = image_url[len(self.url_prefix):]
        if not name or "/" in name or "\\" in name or name.startswith("."):
            return False
        file_path = self._upload_dir / name
        if not file_path.is_file():
            return False
        file_path.unlink(missing_ok=True)
        logger.info("Deleted image: %s", file_path)
        return True


def get_image_storage() -> LocalImageStorage:
    """FastAPI dependency; tests override it to point at a temp directory."""
    return LocalImageStorage(settings.UPLOAD_DIR, settings.BASE_URL)
