"""
Travel diary store.

Entries carry an ordered list of image URLs in the `travels` media namespace.

- **Create** saves up to `TRAVEL_MAX_IMAGES` uploads and records them in upload order.
- **Update** takes the list of images to keep (`existingImages`); new uploads are appended
  after it. Images dropped from the list are deleted from the media store.
- **Delete** removes every image of the entry (best-effort).

If the record write fails, images saved for that request are removed again.
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from pymongo import DESCENDING

from folio_blog.config import settings
from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import media_store
from folio_blog.models.content_models import TravelCreate
from folio_blog.services.resource_store import ResourceStore
from folio_blog.utils.errors import InvalidFile

logger = get_logger(prefix="[TravelService]")


class TravelStore(ResourceStore):
    collection_name = "travels"
    resource_label = "Travel"
    create_model = TravelCreate
    default_sort = [("date", DESCENDING), ("createdAt", DESCENDING)]

    async def _save_uploads(self, uploads: Optional[List[UploadFile]]) -> List[str]:
        uploads = [upload for upload in (uploads or []) if upload is not None and upload.filename]
        if len(uploads) > settings.TRAVEL_MAX_IMAGES:
            raise InvalidFile(f"At most {settings.TRAVEL_MAX_IMAGES} images per request")
        saved: List[str] = []
        try:
            for upload in uploads:
                saved.append(await media_store.save_upload("travels", upload))
        except Exception:
            media_store.delete_many(saved)
            raise
        return saved

    async def create_with_uploads(
        self, payload: Dict[str, Any], uploads: Optional[List[UploadFile]] = None
    ) -> Dict[str, Any]:
        saved = await self._save_uploads(uploads)
        data = dict(payload)
        data["images"] = list(data.get("images") or []) + saved
        try:
            return await self.create(data)
        except Exception:
            media_store.delete_many(saved)
            raise

    async def update_with_uploads(
        self,
        resource_id: Any,
        patch: Dict[str, Any],
        existing_images: Optional[List[str]] = None,
        uploads: Optional[List[UploadFile]] = None,
    ) -> Dict[str, Any]:
        current = await self.get_document(resource_id)
        previous_images = list(current.get("images") or [])
        retained = previous_images if existing_images is None else list(existing_images)

        saved = await self._save_uploads(uploads)
        data = dict(patch)
        data["images"] = retained + saved
        try:
            travel = await self.update(resource_id, data)
        except Exception:
            media_store.delete_many(saved)
            raise

        dropped = [url for url in previous_images if url not in travel["images"]]
        if dropped:
            removed = media_store.delete_many(dropped)
            logger.info("Removed %d dropped images from travel %s", removed, travel["id"])
        return travel

    async def _after_delete(self, documents: List[Dict[str, Any]]):
        for document in documents:
            media_store.delete_many(document.get("images") or [])


travel_store = TravelStore()
