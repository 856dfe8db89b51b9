"""Admin image browser over the media store namespaces."""

from fastapi import APIRouter, Depends, HTTPException

from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import URL_PREFIX, media_store
from folio_blog.routes.dependencies import get_current_user
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Upload Routes]")

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.get("/{namespace}")
async def list_uploads(namespace: str, current_user: dict = Depends(get_current_user)):
    """Files in one namespace with size and timestamps, newest first."""
    try:
        return media_store.list(namespace)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to list uploads in %s: %s", namespace, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list uploads")


@router.delete("/{namespace}/{filename}")
async def delete_upload(namespace: str, filename: str, current_user: dict = Depends(get_current_user)):
    try:
        path = media_store.resolve_path(namespace, filename)
        if not path.is_file():
            raise HTTPException(status_code=404, detail="File not found")
        media_store.delete(f"{URL_PREFIX}/{namespace}/{filename}")
        return {"message": "File deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete upload %s/%s: %s", namespace, filename, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete file")
