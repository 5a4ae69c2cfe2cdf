"""
Image upload ingestion.

Uploaded images are written to a flat directory under a server-generated
name and exposed under /uploads. No database row is created here: the
returned URL is attached to a product by the client in a later request.
"""
import logging
import os
import uuid
from pathlib import Path
from typing import BinaryIO, Iterable, Mapping, Optional

from app.config import Settings
from app.services.errors import (
    InvalidInputError,
    PayloadTooLargeError,
    StorageFailureError,
)

logger = logging.getLogger(__name__)

UPLOADS_PATH = "/uploads"
CHUNK_SIZE = 64 * 1024

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def _first_value(header: Optional[str]) -> Optional[str]:
    """Return the first entry of a comma-separated forwarding header."""
    if not header:
        return None
    value = header.split(",", 1)[0].strip()
    return value or None


def resolve_request_origin(
    scheme: str,
    headers: Mapping[str, str],
    trust_proxy: bool,
) -> str:
    """
    Build "scheme://host" for the client-facing side of a request.

    When the proxy is trusted, X-Forwarded-Proto and X-Forwarded-Host are
    honoured so the origin reflects the original request rather than the
    internal hop. Otherwise they are ignored, since any client can send them.
    """
    host = headers.get("host", "")
    if trust_proxy:
        scheme = _first_value(headers.get("x-forwarded-proto")) or scheme
        host = _first_value(headers.get("x-forwarded-host")) or host
    return f"{scheme}://{host}"


def build_public_url(
    storage_key: str,
    base_url: Optional[str] = None,
    origin: Optional[str] = None,
) -> str:
    """
    Build the public URL of a stored upload.

    A configured base_url wins over the origin derived from the request.
    Trailing slashes are trimmed so the result never contains "//uploads".
    """
    prefix = base_url.rstrip("/") if base_url else (origin or "").rstrip("/")
    return f"{prefix}{UPLOADS_PATH}/{storage_key}"


class ImageUploadService:
    """
    Validates and stores uploaded images.

    Args:
        upload_dir: Directory holding uploaded files (created at startup)
        max_size: Size ceiling in bytes
        allowed_types: Accepted MIME types
        base_url: Optional public base URL for generated links
        trust_proxy: Whether forwarding headers are trusted
    """

    def __init__(
        self,
        upload_dir: str,
        max_size: int,
        allowed_types: Iterable[str],
        base_url: Optional[str] = None,
        trust_proxy: bool = False,
    ):
        self.upload_dir = Path(upload_dir)
        self.max_size = max_size
        self.allowed_types = set(allowed_types)
        self.base_url = base_url
        self.trust_proxy = trust_proxy

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageUploadService":
        return cls(
            upload_dir=settings.UPLOAD_DIR,
            max_size=settings.MAX_UPLOAD_SIZE,
            allowed_types=settings.ALLOWED_IMAGE_TYPES,
            base_url=settings.BASE_URL,
            trust_proxy=settings.TRUST_PROXY,
        )

    def ingest(
        self,
        stream: BinaryIO,
        declared_mime_type: Optional[str],
        size_bytes: Optional[int],
        scheme: str = "http",
        headers: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Store an uploaded image and return its public URL.

        Args:
            stream: File-like object with the image bytes
            declared_mime_type: MIME type declared by the client
            size_bytes: Declared size, if known; the stream is capped either way
            scheme: Scheme of the inbound request
            headers: Headers of the inbound request

        Returns:
            Public URL of the stored image

        Raises:
            InvalidInputError: If the MIME type is not allowed
            PayloadTooLargeError: If the upload exceeds the size ceiling
            StorageFailureError: If the file cannot be written
        """
        if declared_mime_type not in self.allowed_types:
            logger.warning(f"Rejected upload with type {declared_mime_type!r}")
            raise InvalidInputError(
                "Only image files are allowed",
                fields=["image"],
            )

        if size_bytes is not None and size_bytes > self.max_size:
            logger.warning(f"Rejected upload of {size_bytes} bytes")
            raise self._too_large()

        storage_key = self.generate_storage_key(declared_mime_type)
        self._write(stream, self.upload_dir / storage_key)

        if self.base_url:
            url = build_public_url(storage_key, base_url=self.base_url)
        else:
            origin = resolve_request_origin(scheme, headers or {}, self.trust_proxy)
            url = build_public_url(storage_key, origin=origin)

        logger.info(f"Stored upload {storage_key}")
        return url

    def generate_storage_key(self, mime_type: str) -> str:
        """Return a collision-resistant file name that ignores client input."""
        return f"{uuid.uuid4().hex}{EXTENSIONS.get(mime_type, '')}"

    def _write(self, stream: BinaryIO, path: Path) -> None:
        """Copy the stream to path, enforcing the size ceiling while copying."""
        written = 0
        try:
            # "xb" refuses to overwrite an existing file
            with open(path, "xb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_size:
                        break
                    out.write(chunk)
        except OSError as e:
            self._discard(path)
            logger.error(f"Failed to write upload {path.name}: {e}")
            raise StorageFailureError("Failed to store uploaded image") from e

        if written > self.max_size:
            self._discard(path)
            logger.warning(f"Rejected upload larger than {self.max_size} bytes")
            raise self._too_large()

    def _discard(self, path: Path) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove partial upload {path.name}: {e}")

    def _too_large(self) -> PayloadTooLargeError:
        limit_mb = self.max_size / (1024 * 1024)
        return PayloadTooLargeError(f"Image exceeds the {limit_mb:g} MB size limit")
