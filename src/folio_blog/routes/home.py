"""
Home/profile singleton routes.

`PUT /api/home` accepts either JSON or a multipart form. In a form, `socialLinks`,
`education`, `work`, `stats` and `siteInfo` are JSON strings, and `avatarImage` /
`bannerImage` may be image files (5MB ceiling each).
"""

import json
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.home_models import HOME_JSON_FIELDS, HomeUpdate
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.home_service import IMAGE_FIELDS, home_store
from folio_blog.utils.errors import BlogError, ValidationError, from_pydantic

logger = get_logger(prefix="[Home Routes]")

router = APIRouter(prefix="/api/home", tags=["home"])


async def parse_home_request(request: Request) -> Tuple[Dict[str, Any], Dict[str, Optional[UploadFile]]]:
    """Split a JSON or multipart home update into `(patch, {field: upload})`."""
    content_type = request.headers.get("content-type", "")
    files: Dict[str, Optional[UploadFile]] = {field: None for field in IMAGE_FIELDS}

    if content_type.startswith("multipart/form-data") or content_type.startswith("application/x-www-form-urlencoded"):
        form = await request.form()
        raw: Dict[str, Any] = {}
        for key, value in form.items():
            if isinstance(value, StarletteUploadFile):
                if key in IMAGE_FIELDS:
                    files[key] = value
                continue
            if key in HOME_JSON_FIELDS:
                try:
                    value = json.loads(value) if value else None
                except json.JSONDecodeError:
                    raise ValidationError(f"{key} must be valid JSON")
                if value is None:
                    continue
            raw[key] = value
    else:
        try:
            raw = await request.json()
        except json.JSONDecodeError:
            raise ValidationError("Request body must be JSON")
        if not isinstance(raw, dict):
            raise ValidationError("Request body must be an object")

    try:
        patch = HomeUpdate.model_validate(raw).model_dump(by_alias=True, exclude_unset=True)
    except PydanticValidationError as e:
        raise from_pydantic(e)
    return patch, files


@router.get("")
async def get_home():
    """The home document, created with defaults on first read."""
    try:
        return await home_store.get()
    except Exception as e:
        logger.error("Failed to get home: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get home content")


@router.put("")
async def update_home(request: Request, current_user: dict = Depends(get_current_user)):
    """
    Update the home document.

    Only supplied fields change. A new avatar or banner replaces the old file, which is
    then deleted.

    Raises:
        HTTPException(400): On malformed fields or a rejected image.
    """
    try:
        patch, files = await parse_home_request(request)
        return await home_store.update(patch, avatar=files["avatarImage"], banner=files["bannerImage"])
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update home: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update home content")
