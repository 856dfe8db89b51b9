"""
# Backup Routes

| Method | Path                    | Auth | Purpose                                        |
|--------|-------------------------|------|------------------------------------------------|
| GET    | `/api/backup/export`    | A    | download `blog-backup-<timestamp>.zip`         |
| POST   | `/api/backup/import`    | A    | multipart `file`; returns the import report    |
| POST   | `/api/backup/validate`  | A    | multipart `file`; checks without writing       |

An import is never atomic: the response lists per-resource successes and failures, and
the client is expected to show the failed items to the operator.
"""

import io

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse

from folio_blog.config import settings
from folio_blog.managers.logging_manager import get_logger
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.backup_service import backup_service
from folio_blog.services.resource_store import utcnow
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Backup Routes]")

router = APIRouter(prefix="/api/backup", tags=["backup"])


async def _read_archive_upload(file: UploadFile) -> bytes:
    limit = settings.BACKUP_MAX_ARCHIVE_BYTES
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=400, detail=f"Backup file too large (max {limit} bytes)")
    if not data:
        raise HTTPException(status_code=400, detail="Backup file is empty")
    return data


@router.get("/export")
async def export_backup(current_user: dict = Depends(get_current_user)):
    """
    Export every collection plus referenced images as one ZIP.

    Referenced images that cannot be read are skipped and logged; the export itself
    still succeeds.
    """
    try:
        archive = await backup_service.export_archive()
    except Exception as e:
        logger.error("Backup export failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to export backup")

    filename = f"blog-backup-{utcnow().strftime('%Y%m%d-%H%M%S')}.zip"
    logger.info("User %s exported backup %s", current_user["username"], filename)
    return StreamingResponse(
        io.BytesIO(archive),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_backup(file: UploadFile = File(...), current_user: dict = Depends(get_current_user)):
    """
    Import a backup ZIP into the live system.

    Records get new ids; annotations are re-linked to articles by title. Importing into
    a system that already has content creates duplicates.

    Raises:
        HTTPException(400): If the archive is rejected or `data.json` is absent or malformed.
    """
    data = await _read_archive_upload(file)
    try:
        report = await backup_service.import_archive(data)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Backup import failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import backup")

    logger.info(
        "User %s imported backup %s: %d succeeded, %d failed",
        current_user["username"],
        file.filename,
        report.total_success,
        report.total_failed,
    )
    return report.model_dump(by_alias=True)


@router.post("/validate")
async def validate_backup(file: UploadFile = File(...), current_user: dict = Depends(get_current_user)):
    data = await _read_archive_upload(file)
    try:
        return backup_service.validate_archive(data).model_dump(by_alias=True)
    except Exception as e:
        logger.error("Backup validation failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to validate backup")
