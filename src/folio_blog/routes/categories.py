"""Category routes: public reads, authenticated writes."""

from fastapi import APIRouter, Depends, HTTPException, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import BatchDeleteRequest, CategoryCreate, CategoryUpdate
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.category_service import category_store
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Category Routes]")

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories():
    """All categories ordered by `sortOrder` ascending."""
    try:
        return await category_store.list()
    except Exception as e:
        logger.error("Failed to list categories: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get categories")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(request: CategoryCreate, current_user: dict = Depends(get_current_user)):
    """
    Create a category.

    Raises:
        HTTPException(400): If the name is missing or already used.
    """
    try:
        return await category_store.create(request.model_dump(by_alias=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to create category: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create category")


@router.post("/batch-delete")
async def batch_delete_categories(request: BatchDeleteRequest, current_user: dict = Depends(get_current_user)):
    try:
        deleted = await category_store.batch_delete(request.ids)
        return {"message": f"Deleted {deleted} categories", "deletedCount": deleted}
    except Exception as e:
        logger.error("Failed to batch delete categories: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete categories")


@router.get("/{category_id}")
async def get_category(category_id: str):
    try:
        return await category_store.get(category_id)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to get category %s: %s", category_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get category")


@router.put("/{category_id}")
async def update_category(
    category_id: str, request: CategoryUpdate, current_user: dict = Depends(get_current_user)
):
    try:
        return await category_store.update(category_id, request.model_dump(by_alias=True, exclude_unset=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update category %s: %s", category_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update category")


@router.delete("/{category_id}")
async def delete_category(category_id: str, current_user: dict = Depends(get_current_user)):
    """Delete a category. Articles keep their now-dangling reference and render uncategorized."""
    try:
        await category_store.delete(category_id)
        return {"message": "Category deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete category %s: %s", category_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete category")
