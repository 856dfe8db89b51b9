"""
Photo album routes.

Photos are created from a multipart upload (`photo` plus optional `title`,
`description` and comma-separated `tags`); updates are JSON metadata only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import BatchDeleteRequest, PhotoUpdate
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.photo_service import photo_store
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Photo Routes]")

router = APIRouter(prefix="/api/photos", tags=["photos"])


@router.get("")
async def list_photos():
    """Photos newest first; photos whose image file has gone missing are left out."""
    try:
        return await photo_store.list()
    except Exception as e:
        logger.error("Failed to list photos: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get photos")


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_photo(
    photo: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    current_user: dict = Depends(get_current_user),
):
    """
    Upload a photo.

    The title defaults to the original filename and the thumbnail is the image itself.

    Raises:
        HTTPException(400): If the file is not an allowed image or exceeds 10MB.
    """
    try:
        return await photo_store.create_from_upload(photo, title=title, description=description, tags=tags)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to upload photo: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload photo")


@router.post("/batch-delete")
async def batch_delete_photos(request: BatchDeleteRequest, current_user: dict = Depends(get_current_user)):
    try:
        deleted = await photo_store.batch_delete(request.ids)
        return {"message": f"Deleted {deleted} photos", "deletedCount": deleted}
    except Exception as e:
        logger.error("Failed to batch delete photos: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete photos")


@router.get("/{photo_id}")
async def get_photo(photo_id: str):
    try:
        return await photo_store.get(photo_id)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to get photo %s: %s", photo_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get photo")


@router.put("/{photo_id}")
async def update_photo(photo_id: str, request: PhotoUpdate, current_user: dict = Depends(get_current_user)):
    try:
        return await photo_store.update(photo_id, request.model_dump(by_alias=True, exclude_unset=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update photo %s: %s", photo_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update photo")


@router.delete("/{photo_id}")
async def delete_photo(photo_id: str, current_user: dict = Depends(get_current_user)):
    try:
        await photo_store.delete(photo_id)
        return {"message": "Photo deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete photo %s: %s", photo_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete photo")
