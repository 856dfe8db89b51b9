"""
# Media Manager

This module implements the **Media Store**, the on-disk hierarchy of uploaded images.

## Layout

```
<UPLOADS_DIR>/
├── home/       avatar and banner images (5MB ceiling)
├── articles/   images embedded in article content (10MB ceiling)
├── photos/     album photos (10MB ceiling)
└── travels/    travel diary images (10MB ceiling)
```

Records store relative URLs such as `/uploads/photos/1700000000000-123456789.jpg`; the
application serves `/uploads` as static files.

## Validation

- **Extension** must be one of `jpeg`, `jpg`, `png`, `gif`, `webp`.
- **MIME type** (when the client sends one) must be an image type from the same list.
- **Content sniffing**: the leading bytes must match the signature of an allowed image
  format, so a renamed executable is rejected even with an image extension.
- **Size** must not exceed the namespace ceiling.
- **Path traversal**: any caller-supplied filename that resolves outside its namespace
  directory is rejected.

## Cleanup Policy

`delete()` is best-effort: a missing file is not an error and an unlink failure is
logged and reported as `False`, never raised.
"""

import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import UploadFile

from folio_blog.config import settings
from folio_blog.managers.logging_manager import get_logger
from folio_blog.utils.errors import InvalidFile

logger = get_logger(prefix="[MediaStore]")

URL_PREFIX = "/uploads"
NAMESPACES = ("home", "articles", "photos", "travels")
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/pjpeg", "image/png", "image/gif", "image/webp"}
GENERIC_CONTENT_TYPES = {"application/octet-stream", ""}


def sniff_image_type(data: bytes) -> Optional[str]:
    """Return the image format detected from the leading bytes, or `None`."""
    if data.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "gif"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    return None


class MediaStore:
    """
    Namespaced file store for uploaded images.

    Args:
        root: Uploads root directory; defaults to `settings.UPLOADS_DIR`.
    """

    def __init__(self, root: Optional[Path] = None):
        self._root = Path(root).resolve() if root else None

    @property
    def root(self) -> Path:
        return self._root or settings.uploads_root

    def ensure_layout(self):
        """Create the uploads root and every namespace directory."""
        for namespace in NAMESPACES:
            (self.root / namespace).mkdir(parents=True, exist_ok=True)
        logger.info("Media store ready at %s", self.root)

    def size_limit(self, namespace: str) -> int:
        if namespace == "home":
            return settings.HOME_IMAGE_MAX_BYTES
        return settings.CONTENT_IMAGE_MAX_BYTES

    def _namespace_dir(self, namespace: str) -> Path:
        if namespace not in NAMESPACES:
            raise InvalidFile(f"Unknown media namespace: {namespace}")
        directory = (self.root / namespace).resolve()
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def resolve_path(self, namespace: str, filename: str) -> Path:
        """
        Resolve a filename inside a namespace.

        Raises:
            InvalidFile: If the filename is empty or escapes the namespace directory.
        """
        directory = self._namespace_dir(namespace)
        if not filename or filename in (".", ".."):
            raise InvalidFile("Invalid filename")
        candidate = (directory / filename).resolve()
        if candidate.parent != directory:
            logger.warning("Rejected path traversal attempt: %s/%s", namespace, filename)
            raise InvalidFile("Invalid filename")
        return candidate

    @staticmethod
    def generate_filename(original_name: str) -> str:
        """Collision-resistant name: epoch millis, a random suffix and the original extension."""
        extension = Path(original_name or "").suffix.lower()
        return f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}{extension}"

    def validate(self, namespace: str, filename: str, data: bytes, content_type: Optional[str] = None):
        """
        Check an upload against the allow-lists and the namespace size ceiling.

        Raises:
            InvalidFile: On any failed check.
        """
        extension = Path(filename or "").suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise InvalidFile("Only image files are allowed (jpeg, jpg, png, gif, webp)")
        if content_type and content_type.split(";")[0].strip().lower() not in (
            ALLOWED_CONTENT_TYPES | GENERIC_CONTENT_TYPES
        ):
            raise InvalidFile(f"Invalid content type: {content_type}")
        if not data:
            raise InvalidFile("File is empty")
        limit = self.size_limit(namespace)
        if len(data) > limit:
            raise InvalidFile(f"File too large: {len(data)} bytes (max {limit})")
        if sniff_image_type(data) is None:
            raise InvalidFile("File content is not a supported image")

    def save(self, namespace: str, filename: str, data: bytes, content_type: Optional[str] = None) -> str:
        """
        Validate and store image bytes.

        Returns:
            The relative URL of the stored file, e.g. `/uploads/photos/<generated>.png`.
        """
        self.validate(namespace, filename, data, content_type)
        stored_name = self.generate_filename(filename)
        path = self.resolve_path(namespace, stored_name)
        path.write_bytes(data)
        logger.info("Stored %d bytes as %s/%s", len(data), namespace, stored_name)
        return f"{URL_PREFIX}/{namespace}/{stored_name}"

    async def save_upload(self, namespace: str, upload: UploadFile) -> str:
        """Read a multipart upload, enforcing the size ceiling while reading."""
        limit = self.size_limit(namespace)
        data = await upload.read(limit + 1)
        if len(data) > limit:
            raise InvalidFile(f"File too large (max {limit} bytes)")
        return self.save(namespace, upload.filename or "", data, upload.content_type)

    def split_url(self, url: Optional[str]) -> Optional[tuple]:
        """Return `(namespace, filename)` for a media store URL, or `None` for foreign URLs."""
        if not url or not isinstance(url, str):
            return None
        prefix = f"{URL_PREFIX}/"
        if not url.startswith(prefix):
            return None
        parts = url[len(prefix):].split("/")
        if len(parts) != 2 or parts[0] not in NAMESPACES:
            return None
        return parts[0], parts[1]

    def path_for_url(self, url: Optional[str]) -> Optional[Path]:
        located = self.split_url(url)
        if located is None:
            return None
        try:
            return self.resolve_path(*located)
        except InvalidFile:
            return None

    def exists(self, url: Optional[str]) -> bool:
        path = self.path_for_url(url)
        return bool(path and path.is_file())

    def read(self, url: str) -> bytes:
        """
        Read a stored file.

        Raises:
            FileNotFoundError: If the URL does not point to an existing file.
        """
        path = self.path_for_url(url)
        if path is None or not path.is_file():
            raise FileNotFoundError(url)
        return path.read_bytes()

    def delete(self, url: Optional[str]) -> bool:
        """Best-effort removal; returns whether a file was actually removed."""
        path = self.path_for_url(url)
        if path is None:
            return False
        try:
            path.unlink()
            logger.info("Deleted media file %s", url)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Failed to delete media file %s: %s", url, e)
            return False

    def delete_many(self, urls: List[Optional[str]]) -> int:
        return sum(1 for url in urls if self.delete(url))

    def list(self, namespace: str) -> List[Dict[str, Any]]:
        """Enumerate a namespace with size and timestamps, newest first."""
        directory = self._namespace_dir(namespace)
        entries = []
        for path in directory.iterdir():
            if not path.is_file():
                continue
            stat = path.stat()
            entries.append(
                {
                    "filename": path.name,
                    "url": f"{URL_PREFIX}/{namespace}/{path.name}",
                    "size": stat.st_size,
                    "createdAt": datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc),
                    "modifiedAt": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                }
            )
        entries.sort(key=lambda entry: entry["modifiedAt"], reverse=True)
        return entries


media_store = MediaStore()
