"""
Photo album store.

Photos are created from a multipart upload: the image goes to the `photos` namespace of
the media store and the record keeps its URL. Listing skips photos whose file has gone
missing, and deleting a photo removes its files on a best-effort basis.
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from pymongo import DESCENDING

from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import media_store
from folio_blog.models.content_models import PhotoCreate
from folio_blog.services.resource_store import ResourceStore

logger = get_logger(prefix="[PhotoService]")


def split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


class PhotoStore(ResourceStore):
    collection_name = "photos"
    resource_label = "Photo"
    create_model = PhotoCreate
    default_sort = [("createdAt", DESCENDING)]

    async def list(self, query: Optional[Dict[str, Any]] = None, include_missing: bool = False):
        photos = await super().list(query)
        if include_missing:
            return photos
        visible = []
        for photo in photos:
            # Only files we host can go missing; external URLs are kept as-is
            if media_store.split_url(photo["url"]) and not media_store.exists(photo["url"]):
                logger.info("Skipping photo %s: file %s is missing", photo["id"], photo["url"])
                continue
            visible.append(photo)
        return visible

    async def create_from_upload(
        self,
        upload: UploadFile,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = await media_store.save_upload("photos", upload)
        payload = {
            "title": title or upload.filename or "",
            "description": description or "",
            "url": url,
            "thumbnailUrl": url,
            "tags": split_tags(tags),
        }
        try:
            return await self.create(payload)
        except Exception:
            media_store.delete(url)
            raise

    async def _after_delete(self, documents: List[Dict[str, Any]]):
        urls = set()
        for document in documents:
            urls.update(url for url in (document.get("url"), document.get("thumbnailUrl")) if url)
        media_store.delete_many(sorted(urls))


photo_store = PhotoStore()
