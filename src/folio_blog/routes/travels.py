"""
# Travel Diary Routes

Create and update take multipart forms so images can travel with the entry:

- `POST /api/travels`: entry fields plus up to 20 `images` files.
- `PUT /api/travels/{id}`: changed fields, optional `existingImages` (the URLs to keep,
  as a JSON array string or repeated form field) and new `images`, which are appended
  after the kept ones. Images no longer listed are deleted.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import BatchDeleteRequest
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.travel_service import travel_store
from folio_blog.utils.errors import BlogError, ValidationError

logger = get_logger(prefix="[Travel Routes]")

router = APIRouter(prefix="/api/travels", tags=["travels"])


def parse_existing_images(values: Optional[List[str]]) -> Optional[List[str]]:
    """Accept `existingImages` as repeated fields or as one JSON array string."""
    if values is None:
        return None
    if len(values) == 1 and values[0].strip().startswith("["):
        try:
            parsed = json.loads(values[0])
        except json.JSONDecodeError:
            raise ValidationError("existingImages must be a JSON array of URLs")
        if not isinstance(parsed, list) or not all(isinstance(value, str) for value in parsed):
            raise ValidationError("existingImages must be a JSON array of URLs")
        return parsed
    return [value for value in values if value]


def _form_fields(**fields: Any) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


@router.get("")
async def list_travels():
    try:
        return await travel_store.list()
    except Exception as e:
        logger.error("Failed to list travels: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get travels")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_travel(
    title: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    rating: Optional[int] = Form(None),
    weather: Optional[str] = Form(None),
    transport: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(get_current_user),
):
    """
    Create a travel entry with its images.

    Raises:
        HTTPException(400): If title or date is missing, or an image is rejected.
    """
    try:
        payload = _form_fields(
            title=title,
            date=date,
            location=location,
            rating=rating,
            weather=weather,
            transport=transport,
            description=description,
        )
        return await travel_store.create_with_uploads(payload, images)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to create travel: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create travel")


@router.post("/batch-delete")
async def batch_delete_travels(request: BatchDeleteRequest, current_user: dict = Depends(get_current_user)):
    try:
        deleted = await travel_store.batch_delete(request.ids)
        return {"message": f"Deleted {deleted} travels", "deletedCount": deleted}
    except Exception as e:
        logger.error("Failed to batch delete travels: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete travels")


@router.get("/{travel_id}")
async def get_travel(travel_id: str):
    try:
        return await travel_store.get(travel_id)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to get travel %s: %s", travel_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get travel")


@router.put("/{travel_id}")
async def update_travel(
    travel_id: str,
    title: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    rating: Optional[int] = Form(None),
    weather: Optional[str] = Form(None),
    transport: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    existingImages: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(get_current_user),
):
    try:
        patch = _form_fields(
            title=title,
            date=date,
            location=location,
            rating=rating,
            weather=weather,
            transport=transport,
            description=description,
        )
        return await travel_store.update_with_uploads(
            travel_id, patch, existing_images=parse_existing_images(existingImages), uploads=images
        )
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update travel %s: %s", travel_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update travel")


@router.delete("/{travel_id}")
async def delete_travel(travel_id: str, current_user: dict = Depends(get_current_user)):
    """Delete a travel entry and, best-effort, its images."""
    try:
        await travel_store.delete(travel_id)
        return {"message": "Travel deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete travel %s: %s", travel_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete travel")
