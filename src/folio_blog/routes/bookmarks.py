"""Bookmark routes. Reads return bookmarks grouped by their free-text category."""

from fastapi import APIRouter, Depends, HTTPException, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import BatchDeleteRequest, BookmarkCreate, BookmarkUpdate
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.bookmark_service import bookmark_store
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Bookmark Routes]")

router = APIRouter(prefix="/api/bookmarks", tags=["bookmarks"])


@router.get("")
async def list_bookmarks():
    """`{category: [bookmark, ...]}`, each group ordered by `order`."""
    try:
        return await bookmark_store.list_grouped()
    except Exception as e:
        logger.error("Failed to list bookmarks: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get bookmarks")


@router.get("/categories")
async def list_bookmark_categories():
    try:
        return await bookmark_store.categories()
    except Exception as e:
        logger.error("Failed to list bookmark categories: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get bookmark categories")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bookmark(request: BookmarkCreate, current_user: dict = Depends(get_current_user)):
    try:
        return await bookmark_store.create(request.model_dump(by_alias=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to create bookmark: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create bookmark")


@router.post("/batch-delete")
async def batch_delete_bookmarks(request: BatchDeleteRequest, current_user: dict = Depends(get_current_user)):
    try:
        deleted = await bookmark_store.batch_delete(request.ids)
        return {"message": f"Deleted {deleted} bookmarks", "deletedCount": deleted}
    except Exception as e:
        logger.error("Failed to batch delete bookmarks: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete bookmarks")


@router.put("/{bookmark_id}")
async def update_bookmark(bookmark_id: str, request: BookmarkUpdate, current_user: dict = Depends(get_current_user)):
    try:
        return await bookmark_store.update(bookmark_id, request.model_dump(by_alias=True, exclude_unset=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update bookmark %s: %s", bookmark_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update bookmark")


@router.delete("/{bookmark_id}")
async def delete_bookmark(bookmark_id: str, current_user: dict = Depends(get_current_user)):
    try:
        await bookmark_store.delete(bookmark_id)
        return {"message": "Bookmark deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete bookmark %s: %s", bookmark_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete bookmark")
