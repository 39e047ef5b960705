"""Filesystem storage for uploaded profile images."""
from __future__ import annotations

import logging
import secrets
import time
from pathlib import Path
from typing import Iterable

from starlette.concurrency import run_in_threadpool

from app.core.errors import ImageTooLargeError, InvalidImageTypeError, MissingImageError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_ALLOWED_TYPES = ("image/jpeg", "image/png", "image/gif")

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)

_EXTENSIONS = {
    "image/jpeg": (".jpg", ".jpeg"),
    "image/png": (".png",),
    "image/gif": (".gif",),
}
_MAX_NAME_ATTEMPTS = 5


def sniff_image_type(content: bytes) -> str | None:
    """Identify the image type from its leading magic bytes."""

    for signature, mime_type in _SIGNATURES:
        if content.startswith(signature):
            return mime_type
    return None


class ImageStore:
    """Admit, store and remove image files under a single directory."""

    def __init__(
        self,
        directory: Path | str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
    ) -> None:
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.allowed_types = frozenset(allowed_types)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        path = (self.directory / filename).resolve()
        if path.parent != self.directory.resolve():
            raise ValueError(f"Invalid image filename: {filename!r}")
        return path

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def check(self, content: bytes, content_type: str | None, declared_size: int | None = None) -> str:
        """Apply admission control and return the verified mime type."""

        if content_type not in self.allowed_types:
            raise InvalidImageTypeError()
        if (declared_size is not None and declared_size > self.max_bytes) or len(content) > self.max_bytes:
            raise ImageTooLargeError(
                f"File size exceeds limit ({self.max_bytes // (1024 * 1024)}MB)"
            )
        if not content:
            raise MissingImageError()
        sniffed = sniff_image_type(content)
        if sniffed is None or sniffed != content_type:
            raise InvalidImageTypeError()
        return sniffed

    async def accept(
        self,
        content: bytes,
        content_type: str | None,
        original_filename: str | None = None,
        declared_size: int | None = None,
    ) -> str:
        mime_type = self.check(content, content_type, declared_size)
        extension = _extension_for(original_filename, mime_type)
        filename = await run_in_threadpool(self._write, content, extension)
        logger.info("Stored image %s (%d bytes, %s)", filename, len(content), mime_type)
        return filename

    def _write(self, content: bytes, extension: str) -> str:
        for _ in range(_MAX_NAME_ATTEMPTS):
            filename = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}{extension}"
            try:
                with open(self.directory / filename, "xb") as handle:
                    handle.write(content)
            except FileExistsError:
                continue
            return filename
        raise FileExistsError("Could not allocate a unique image filename")

    async def remove(self, filename: str) -> bool:
        """Delete a stored image. Failures are logged and reported as ``False``."""

        try:
            path = self.path_for(filename)
            await run_in_threadpool(path.unlink)
        except FileNotFoundError:
            logger.warning("Image %s already removed", filename)
            return False
        except (OSError, ValueError) as exc:
            logger.warning("Failed to remove image %s: %s", filename, exc)
            return False
        logger.info("Removed image %s", filename)
        return True


def _extension_for(original_filename: str | None, mime_type: str) -> str:
    """Keep the original extension when it agrees with the sniffed type."""

    suffix = Path(original_filename or "").suffix.lower()
    allowed = _EXTENSIONS[mime_type]
    return suffix if suffix in allowed else allowed[0]
