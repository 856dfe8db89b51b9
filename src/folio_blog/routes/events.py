"""Timeline event routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import BatchDeleteRequest, EventCreate, EventUpdate
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.event_service import event_store
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Event Routes]")

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("")
async def list_events():
    """Events with the most recent `date` first."""
    try:
        return await event_store.list()
    except Exception as e:
        logger.error("Failed to list events: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get events")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(request: EventCreate, current_user: dict = Depends(get_current_user)):
    try:
        return await event_store.create(request.model_dump(by_alias=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to create event: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create event")


@router.post("/batch-delete")
async def batch_delete_events(request: BatchDeleteRequest, current_user: dict = Depends(get_current_user)):
    try:
        deleted = await event_store.batch_delete(request.ids)
        return {"message": f"Deleted {deleted} events", "deletedCount": deleted}
    except Exception as e:
        logger.error("Failed to batch delete events: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete events")


@router.get("/{event_id}")
async def get_event(event_id: str):
    try:
        return await event_store.get(event_id)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to get event %s: %s", event_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get event")


@router.put("/{event_id}")
async def update_event(event_id: str, request: EventUpdate, current_user: dict = Depends(get_current_user)):
    try:
        return await event_store.update(event_id, request.model_dump(by_alias=True, exclude_unset=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update event %s: %s", event_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update event")


@router.delete("/{event_id}")
async def delete_event(event_id: str, current_user: dict = Depends(get_current_user)):
    try:
        await event_store.delete(event_id)
        return {"message": "Event deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete event %s: %s", event_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete event")
