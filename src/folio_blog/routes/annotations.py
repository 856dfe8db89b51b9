"""Annotation routes. Per-article reads are public; everything else needs a token."""

from fastapi import APIRouter, Depends, HTTPException, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import AnnotationCreate, AnnotationUpdate
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.annotation_service import annotation_store
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Annotation Routes]")

router = APIRouter(prefix="/api/annotations", tags=["annotations"])


@router.get("/all")
async def list_all_annotations(current_user: dict = Depends(get_current_user)):
    """Every annotation with its article title, oldest first (admin view)."""
    try:
        return await annotation_store.list_all()
    except Exception as e:
        logger.error("Failed to list annotations: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get annotations")


@router.get("/article/{article_id}")
async def list_article_annotations(article_id: str):
    """
    Annotations of one article, re-anchored against its current content.

    Each item carries `anchored: false` when its selected text no longer occurs.

    Raises:
        HTTPException(404): If the article does not exist.
    """
    try:
        return await annotation_store.list_for_article(article_id)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to list annotations for article %s: %s", article_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get annotations")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_annotation(request: AnnotationCreate, current_user: dict = Depends(get_current_user)):
    try:
        return await annotation_store.create(request.model_dump(by_alias=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to create annotation: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create annotation")


@router.put("/{annotation_id}")
async def update_annotation(
    annotation_id: str, request: AnnotationUpdate, current_user: dict = Depends(get_current_user)
):
    try:
        return await annotation_store.update(annotation_id, request.model_dump(by_alias=True, exclude_unset=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update annotation %s: %s", annotation_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update annotation")


@router.delete("/{annotation_id}")
async def delete_annotation(annotation_id: str, current_user: dict = Depends(get_current_user)):
    try:
        await annotation_store.delete(annotation_id)
        return {"message": "Annotation deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete annotation %s: %s", annotation_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete annotation")
