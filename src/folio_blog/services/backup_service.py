"""
# Backup Service

Exports the whole content graph (records plus referenced media) into one portable ZIP
and imports such an archive back into a live system.

## Export

1. Every store is read concurrently with `asyncio.gather`. The reads are independent, so
   the result is not a point-in-time snapshot: a write racing the export may show up in
   some collections and not others.
2. Every media-pointing field is rewritten from `/uploads/<ns>/<file>` to
   `images/<ns>/<file>` and the file is packed under that path. A referenced file that
   cannot be read is logged and skipped, and its field keeps the original URL.
3. Annotations carry `articleTitle` and articles carry `categoryName`, the join keys the
   importer uses once ids have been regenerated.

## Import

Resource types are processed sequentially in `RESOURCE_TYPES` order so annotations are
resolved only after every article has been created. Each record is independent: ids and
timestamps are dropped (newest-first sections are replayed oldest first so the regenerated
timestamps keep their order), archived media is stored again through the media store, and any
failure is recorded as `{name, error}` without stopping the run. Importing into a
non-empty system creates duplicates.

Annotations are re-linked by exact title against the articles created by the same
import. A title with no match, or with more than one match, fails that annotation.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from folio_blog.config import settings
from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import media_store
from folio_blog.models.backup_models import RESOURCE_TYPES, ArchiveValidationReport, ImportReport, ResourceImportResult
from folio_blog.services.annotation_service import annotation_store
from folio_blog.services.article_service import article_store
from folio_blog.services.backup_archive import (
    archive_validator,
    build_archive,
    inspect_archive,
    iter_records,
    read_archive,
    rewrite_media,
    split_archive_path,
    to_archive_path,
)
from folio_blog.services.backup_metrics import backup_metrics
from folio_blog.services.bookmark_service import bookmark_store
from folio_blog.services.category_service import category_store
from folio_blog.services.event_service import event_store
from folio_blog.services.home_service import home_store
from folio_blog.services.photo_service import photo_store
from folio_blog.services.resource_store import SYSTEM_FIELDS, utcnow
from folio_blog.services.travel_service import travel_store
from folio_blog.utils.errors import BlogError, ValidationError

logger = get_logger(prefix="[BackupService]")

# Denormalized join keys; never persisted
EXPORT_ONLY_FIELDS = ("articleTitle", "categoryName", "__v")

# Exported newest first; replayed in reverse
NEWEST_FIRST_RESOURCES = ("articles", "photos", "events", "travels")


class _ImportContext:
    """Ids created so far in one import run, keyed by their human-readable names."""

    def __init__(self):
        self.categories: Dict[str, str] = {}
        self.articles: Dict[str, List[str]] = {}


def _record_name(resource: str, record: Any) -> str:
    if not isinstance(record, dict):
        return f"{resource} (invalid record)"
    for key in ("title", "name", "selectedText"):
        if record.get(key):
            return str(record[key])
    return resource


def _strip(record: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if key not in SYSTEM_FIELDS and key not in EXPORT_ONLY_FIELDS}


class BackupService:
    def __init__(self, metrics=None):
        self.metrics = metrics or backup_metrics

    # Export

    async def _snapshot(self) -> Dict[str, Any]:
        (categories, articles, photos, bookmarks, home, events, travels, annotations) = await asyncio.gather(
            category_store.list(),
            article_store.list_raw(),
            photo_store.list(include_missing=True),
            bookmark_store.list_grouped(),
            home_store.get(),
            event_store.list(),
            travel_store.list(),
            annotation_store.list_all(),
        )
        return {
            "categories": categories,
            "articles": articles,
            "photos": photos,
            "bookmarks": bookmarks,
            "home": home,
            "events": events,
            "travels": travels,
            "annotations": annotations,
        }

    def _pack_media(self, media: Dict[str, bytes]) -> Callable[[str], str]:
        """Build a converter that packs hosted files into `media` and returns their archive path."""

        def convert(url: str) -> str:
            path = to_archive_path(url)
            if path is None:
                return url
            if path in media:
                return path
            try:
                media[path] = media_store.read(url)
            except OSError as e:
                logger.warning("Skipping media file %s during export: %s", url, e)
                self.metrics.record_media_skipped(split_archive_path(path)[0])
                return url
            return path

        return convert

    async def build_envelope(self) -> Tuple[Dict[str, Any], Dict[str, bytes]]:
        """Snapshot every store and return `(envelope, media)` ready to be packaged."""
        snapshot = await self._snapshot()
        media: Dict[str, bytes] = {}
        convert = self._pack_media(media)

        category_names = {category["id"]: category["name"] for category in snapshot["categories"]}
        articles = []
        for article in snapshot["articles"]:
            article = rewrite_media("articles", article, convert)
            article["categoryName"] = category_names.get(article.get("category"))
            articles.append(article)

        data = {
            "categories": snapshot["categories"],
            "articles": articles,
            "photos": [rewrite_media("photos", photo, convert) for photo in snapshot["photos"]],
            "bookmarks": snapshot["bookmarks"],
            "home": rewrite_media("home", snapshot["home"], convert),
            "events": snapshot["events"],
            "travels": [rewrite_media("travels", travel, convert) for travel in snapshot["travels"]],
            "annotations": snapshot["annotations"],
        }
        envelope = {
            "version": settings.BACKUP_FORMAT_VERSION,
            "exportDate": utcnow(),
            "description": "Blog content backup",
            "data": data,
        }
        return envelope, media

    async def export_archive(self) -> bytes:
        """Produce the backup ZIP."""
        start = time.monotonic()
        self.metrics.record_operation_start("export")
        try:
            envelope, media = await self.build_envelope()
            archive = build_archive(envelope, media)
        except Exception:
            self.metrics.record_operation_complete("export", "failed", time.monotonic() - start)
            raise
        self.metrics.record_operation_complete("export", "success", time.monotonic() - start, len(archive))
        logger.info(
            "Exported backup: %s records, %d media files, %d bytes",
            {key: len(value) if isinstance(value, (list, dict)) else 1 for key, value in envelope["data"].items()},
            len(media),
            len(archive),
        )
        return archive

    # Import

    async def _with_restored_media(
        self,
        resource: str,
        record: Dict[str, Any],
        media: Dict[str, bytes],
        persist: Callable[[Dict[str, Any]], Awaitable[Any]],
    ):
        """Store a record's archived media, persist it, and roll the files back on failure."""
        saved: Dict[str, str] = {}

        def restore(value: str) -> str:
            located = split_archive_path(value)
            if located is None:
                return value
            if value in saved:
                return saved[value]
            if value not in media:
                raise ValidationError(f"Media file {value} is missing from the archive")
            namespace, filename = located
            saved[value] = media_store.save(namespace, filename, media[value])
            return saved[value]

        try:
            payload = rewrite_media(resource, record, restore)
            return await persist(payload)
        except Exception:
            media_store.delete_many(list(saved.values()))
            raise

    async def _import_record(self, resource: str, record: Any, media: Dict[str, bytes], context: _ImportContext):
        if not isinstance(record, dict):
            raise ValidationError("Record must be an object")
        payload = _strip(record)

        if resource == "categories":
            category = await category_store.create(payload)
            context.categories[category["name"]] = category["id"]

        elif resource == "articles":
            payload["category"] = context.categories.get(record.get("categoryName") or "")
            article = await self._with_restored_media(resource, payload, media, article_store.create)
            context.articles.setdefault(article["title"], []).append(article["id"])

        elif resource == "annotations":
            title = record.get("articleTitle")
            if not title:
                raise ValidationError("Annotation has no articleTitle")
            matches = context.articles.get(title, [])
            if not matches:
                raise ValidationError(f"No imported article titled '{title}'")
            if len(matches) > 1:
                raise ValidationError(f"Article title '{title}' is ambiguous ({len(matches)} matches)")
            payload["article"] = matches[0]
            await annotation_store.create(payload)

        elif resource == "home":
            await self._with_restored_media(resource, payload, media, home_store.upsert)

        else:
            store = {
                "photos": photo_store,
                "bookmarks": bookmark_store,
                "events": event_store,
                "travels": travel_store,
            }[resource]
            await self._with_restored_media(resource, payload, media, store.create)

    async def import_envelope(self, envelope: Dict[str, Any], media: Dict[str, bytes]) -> ImportReport:
        """Replay a parsed envelope into the stores; never atomic."""
        report = ImportReport(version=envelope["version"])
        context = _ImportContext()
        data = envelope["data"]

        for resource in RESOURCE_TYPES:
            result = ResourceImportResult()
            report.results[resource] = result
            try:
                records = iter_records(resource, data.get(resource))
            except ValidationError as e:
                result.record_failure(resource, e.message)
                continue
            if resource in NEWEST_FIRST_RESOURCES:
                records = list(reversed(records))

            for record in records:
                name = _record_name(resource, record)
                try:
                    await self._import_record(resource, record, media, context)
                    result.record_success()
                except BlogError as e:
                    result.record_failure(name, e.message)
                except Exception as e:
                    logger.error("Unexpected error importing %s %r: %s", resource, name, e, exc_info=True)
                    result.record_failure(name, str(e))

            self.metrics.record_import_result(resource, result.success, result.failed)
            if result.failed:
                logger.warning("Imported %s: %d ok, %d failed", resource, result.success, result.failed)
            else:
                logger.info("Imported %s: %d ok", resource, result.success)

        report.total_success = sum(result.success for result in report.results.values())
        report.total_failed = sum(result.failed for result in report.results.values())
        return report

    async def import_archive(self, data: bytes) -> ImportReport:
        """
        Import a backup ZIP.

        Raises:
            ValidationError: If the archive fails screening or `data.json` is absent or malformed.
        """
        start = time.monotonic()
        self.metrics.record_operation_start("import")
        try:
            valid, error = archive_validator.validate_archive_bytes(data)
            if not valid:
                self.metrics.record_validation_failure("archive")
                raise ValidationError(error)
            try:
                envelope, media = read_archive(data)
            except ValidationError:
                self.metrics.record_validation_failure("envelope")
                raise
            report = await self.import_envelope(envelope, media)
        except Exception:
            self.metrics.record_operation_complete("import", "failed", time.monotonic() - start, len(data))
            raise

        status = "success" if report.total_failed == 0 else "partial"
        self.metrics.record_operation_complete("import", status, time.monotonic() - start, len(data))
        logger.info("Import finished: %d succeeded, %d failed", report.total_success, report.total_failed)
        return report

    def validate_archive(self, data: bytes) -> ArchiveValidationReport:
        report = inspect_archive(data)
        if not report.valid:
            self.metrics.record_validation_failure("inspection")
        return report


backup_service = BackupService()
