"""Product image uploads."""

import uuid
from dataclasses import dataclass
from pathlib import Path, PurePath

import structlog

from .errors import InvalidImageError

logger = structlog.get_logger(__name__)

MAX_IMAGE_BYTES = 2 * 1024 * 1024
UPLOADS_URL_PREFIX = "/uploads"


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded file as received from the client."""

    filename: str
    content_type: str
    data: bytes


def check_image(upload: ImageUpload, max_bytes: int = MAX_IMAGE_BYTES) -> None:
    """
    Raises:
        InvalidImageError: If the file is not an image or is too large.
    """
    if not (upload.content_type or "").startswith("image/"):
        raise InvalidImageError("type", "Only image files are allowed")
    if len(upload.data) > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise InvalidImageError("size", f"Image must be less than {limit_mb:g}MB")


class ImageStore:
    """Saves accepted images under unique names in the uploads directory."""

    def __init__(self, uploads_dir: Path, max_bytes: int = MAX_IMAGE_BYTES):
        self.uploads_dir = uploads_dir
        self.max_bytes = max_bytes

    def save(self, upload: ImageUpload) -> str:
        """
        Validate and store an image.

        Returns:
            The URL path the image is served under, e.g. /uploads/image-<hex>.png.

        Raises:
            InvalidImageError: If the file is rejected. Nothing is written.
        """
        check_image(upload, self.max_bytes)

        ext = PurePath(upload.filename or "").suffix.lower()
        name = f"image-{uuid.uuid4().hex}{ext}"
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        (self.uploads_dir / name).write_bytes(upload.data)

        logger.info("image_stored", filename=name, size=len(upload.data))
        return f"{UPLOADS_URL_PREFIX}/{name}"

    def discard(self, url: str) -> None:
        """Remove an image previously returned by save(); missing files are ignored."""
        path = self.resolve(PurePath(url).name)
        if path is not None:
            path.unlink(missing_ok=True)
            logger.info("image_discarded", filename=path.name)

    def resolve(self, name: str) -> Path | None:
        """Map a served filename back to a file on disk; None if absent or unsafe."""
        if not name or PurePath(name).name != name or name.startswith("."):
            return None
        path = self.uploads_dir / name
        return path if path.is_file() else None
