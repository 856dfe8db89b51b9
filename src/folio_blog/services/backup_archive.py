"""
# Backup Archive Format

Helpers shared by the exporter, the importer and the offline `validate` command.

## Layout

A backup is a ZIP file holding `data.json` (the versioned envelope) and an
`images/<namespace>/<filename>` tree. Media-pointing fields inside `data.json` are
rewritten between two forms:

| Live system                     | Archive                            |
|---------------------------------|------------------------------------|
| `/uploads/photos/1700-42.png`   | `images/photos/1700-42.png`        |

Which fields point at media is declared once per resource type (`MEDIA_FIELDS`,
`MEDIA_LIST_FIELDS`, `CONTENT_FIELDS`) and `rewrite_media` applies a conversion to all
of them, so export and import walk exactly the same fields.

## Upload Safety

`ArchiveValidator` screens uploaded archives before anything is extracted: size ceiling,
ZIP integrity, per-entry path safety, total decompressed size and compression ratio.
"""

import io
import json
import re
import zipfile
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from bson import ObjectId

from folio_blog.config import settings
from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import NAMESPACES, URL_PREFIX
from folio_blog.models.backup_models import RESOURCE_TYPES, ArchiveValidationReport
from folio_blog.utils.errors import ValidationError

logger = get_logger(prefix="[BackupArchive]")

DATA_FILE = "data.json"
IMAGES_DIR = "images"

MEDIA_FIELDS = {
    "photos": ("url", "thumbnailUrl"),
    "home": ("avatarImage", "bannerImage"),
}
MEDIA_LIST_FIELDS = {
    "travels": ("images",),
}
CONTENT_FIELDS = {
    "articles": ("content",),
}

_CONTENT_URL_RE = re.compile(
    r"(?P<open>\b(?:src|href)=[\"'])(?P<url>(?:/uploads|images)/[^\"'\s]+)(?P<close>[\"'])"
)


def to_archive_path(url: Optional[str]) -> Optional[str]:
    """`/uploads/<ns>/<file>` -> `images/<ns>/<file>`; `None` for anything else."""
    if not url or not isinstance(url, str) or not url.startswith(f"{URL_PREFIX}/"):
        return None
    parts = url[len(URL_PREFIX) + 1:].split("/")
    if len(parts) != 2 or parts[0] not in NAMESPACES or not parts[1]:
        return None
    return f"{IMAGES_DIR}/{parts[0]}/{parts[1]}"


def split_archive_path(path: Optional[str]) -> Optional[Tuple[str, str]]:
    """`images/<ns>/<file>` -> `(ns, file)`; `None` if the path is not a safe media entry."""
    if not path or not isinstance(path, str):
        return None
    parts = path.split("/")
    if len(parts) != 3 or parts[0] != IMAGES_DIR or parts[1] not in NAMESPACES:
        return None
    if parts[2] in ("", ".", "..") or "\\" in parts[2]:
        return None
    return parts[1], parts[2]


def rewrite_media(resource: str, record: Dict[str, Any], convert: Callable[[str], str]) -> Dict[str, Any]:
    """Return a copy of `record` with every media-pointing value passed through `convert`."""
    result = dict(record)
    for field in MEDIA_FIELDS.get(resource, ()):
        if result.get(field):
            result[field] = convert(result[field])
    for field in MEDIA_LIST_FIELDS.get(resource, ()):
        if isinstance(result.get(field), list):
            result[field] = [convert(value) if isinstance(value, str) else value for value in result[field]]
    for field in CONTENT_FIELDS.get(resource, ()):
        if isinstance(result.get(field), str):
            result[field] = _CONTENT_URL_RE.sub(
                lambda match: match.group("open") + convert(match.group("url")) + match.group("close"),
                result[field],
            )
    return result


def media_references(resource: str, record: Dict[str, Any]) -> List[str]:
    """Archive paths referenced by one exported record."""
    found: List[str] = []

    def collect(value: str) -> str:
        if split_archive_path(value):
            found.append(value)
        return value

    rewrite_media(resource, record, collect)
    return found


def iter_records(resource: str, section: Any) -> List[Any]:
    """Flatten one `data` section into a list of records (bookmarks are grouped, home is single)."""
    if section is None:
        return []
    if resource == "home":
        return [section] if section else []
    if resource == "bookmarks" and isinstance(section, dict):
        records = []
        for category, bookmarks in section.items():
            for bookmark in bookmarks or []:
                if isinstance(bookmark, dict) and not bookmark.get("category"):
                    bookmark = {**bookmark, "category": category}
                records.append(bookmark)
        return records
    if isinstance(section, list):
        return section
    raise ValidationError(f"Section '{resource}' has an unexpected shape")


def _json_default(value: Any):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, ObjectId):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def build_archive(envelope: Dict[str, Any], media: Dict[str, bytes]) -> bytes:
    """Package `data.json` plus the media tree into ZIP bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(DATA_FILE, json.dumps(envelope, default=_json_default, ensure_ascii=False, indent=2))
        for path in sorted(media):
            # Images are already compressed
            archive.writestr(path, media[path], compress_type=zipfile.ZIP_STORED)
    return buffer.getvalue()


def read_archive(data: bytes) -> Tuple[Dict[str, Any], Dict[str, bytes]]:
    """
    Unpack an archive into its envelope and a map of archive path -> bytes.

    Entries outside `images/<namespace>/<file>` (other than `data.json`) are ignored.

    Raises:
        ValidationError: If the bytes are not a ZIP or `data.json` is absent or malformed.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile:
        raise ValidationError("Backup file is not a valid ZIP archive")

    with archive:
        names = archive.namelist()
        if DATA_FILE not in names:
            raise ValidationError("Backup archive is missing data.json")
        try:
            envelope = json.loads(archive.read(DATA_FILE).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError(f"data.json is not valid JSON: {e}")

        valid, error = archive_validator.validate_envelope(envelope)
        if not valid:
            raise ValidationError(error)

        media: Dict[str, bytes] = {}
        for name in names:
            if name.endswith("/"):
                continue
            if split_archive_path(name) is None:
                if name != DATA_FILE:
                    logger.debug("Ignoring archive entry %s", name)
                continue
            media[name] = archive.read(name)
    return envelope, media


def inspect_archive(data: bytes) -> ArchiveValidationReport:
    """Check an archive without writing anything; never raises for bad input."""
    valid, error = archive_validator.validate_archive_bytes(data)
    if not valid:
        return ArchiveValidationReport(valid=False, errors=[error])
    try:
        envelope, media = read_archive(data)
    except ValidationError as e:
        return ArchiveValidationReport(valid=False, errors=[e.message])

    counts: Dict[str, int] = {}
    missing: List[str] = []
    errors: List[str] = []
    for resource in RESOURCE_TYPES:
        try:
            records = iter_records(resource, envelope["data"].get(resource))
        except ValidationError as e:
            errors.append(e.message)
            continue
        counts[resource] = len(records)
        for record in records:
            if isinstance(record, dict):
                missing.extend(path for path in media_references(resource, record) if path not in media)

    missing = sorted(set(missing))
    errors.extend(f"Missing media file: {path}" for path in missing)
    return ArchiveValidationReport(
        valid=not errors,
        version=envelope.get("version"),
        counts=counts,
        media_files=len(media),
        missing_media=missing,
        errors=errors,
    )


class ArchiveValidator:
    """
    Screens uploaded backup archives.

    **Limits:**
    - Max archive size: `settings.BACKUP_MAX_ARCHIVE_BYTES`
    - Max decompressed size: 4x the archive ceiling
    - Max compression ratio: 100:1
    """

    MAX_DECOMPRESSION_RATIO = 100

    @property
    def max_archive_size(self) -> int:
        return settings.BACKUP_MAX_ARCHIVE_BYTES

    @property
    def max_decompressed_size(self) -> int:
        return settings.BACKUP_MAX_ARCHIVE_BYTES * 4

    def validate_archive_bytes(self, data: bytes) -> Tuple[bool, Optional[str]]:
        """
        Validate raw archive bytes.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not data:
            return False, "File is empty"
        if len(data) > self.max_archive_size:
            return False, f"File too large: {len(data)} bytes (max {self.max_archive_size})"

        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                declared_size = 0
                for entry in archive.infolist():
                    if entry.filename.startswith("/") or ".." in entry.filename.split("/"):
                        return False, f"Unsafe archive entry: {entry.filename}"
                    declared_size += entry.file_size
                if declared_size > self.max_decompressed_size:
                    return False, f"Decompressed size exceeds limit: {declared_size}"
                if declared_size > len(data) * self.MAX_DECOMPRESSION_RATIO:
                    return False, "Potential decompression bomb detected"
                # Sizes are checked before anything is inflated
                corrupt = archive.testzip()
        except zipfile.BadZipFile:
            return False, "Backup file is not a valid ZIP archive"
        except (NotImplementedError, RuntimeError) as e:
            return False, f"Unsupported ZIP archive: {e}"
        if corrupt:
            return False, f"Corrupt archive entry: {corrupt}"
        return True, None

    def validate_envelope(self, envelope: Any) -> Tuple[bool, Optional[str]]:
        """
        Validate the structure of a parsed `data.json`.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not isinstance(envelope, dict):
            return False, "data.json must contain an object"
        version = envelope.get("version")
        if not version or not isinstance(version, str):
            return False, "Missing version field"
        supported_major = settings.BACKUP_FORMAT_VERSION.split(".")[0]
        if version.split(".")[0] != supported_major:
            return False, f"Unsupported backup version {version} (expected {supported_major}.x)"
        if not isinstance(envelope.get("data"), dict):
            return False, "Missing data field"
        return True, None


archive_validator = ArchiveValidator()
