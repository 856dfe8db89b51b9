"""
Home/profile singleton.

Exactly one document lives in the `home` collection. It is created lazily with defaults
on first read through an upsert, so concurrent first reads cannot create two documents.
"""

from typing import Any, Dict, Optional

from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument

from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import media_store
from folio_blog.models.home_models import HomeDocument
from folio_blog.services.resource_store import SYSTEM_FIELDS, utcnow
from folio_blog.utils.errors import ServerError, from_pydantic

logger = get_logger(prefix="[HomeService]")

IMAGE_FIELDS = ("avatarImage", "bannerImage")


class HomeStore:
    collection_name = "home"

    @property
    def collection(self):
        return db_manager.get_collection(self.collection_name)

    @staticmethod
    def serialize(document: Dict[str, Any]) -> Dict[str, Any]:
        result = {key: value for key, value in document.items() if key != "_id"}
        result["id"] = str(document["_id"])
        return result

    @staticmethod
    def validate(payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return HomeDocument.model_validate(payload).model_dump(by_alias=True)
        except PydanticValidationError as e:
            raise from_pydantic(e)

    async def _get_document(self) -> Dict[str, Any]:
        now = utcnow()
        defaults = HomeDocument().model_dump(by_alias=True)
        defaults["createdAt"] = now
        defaults["updatedAt"] = now
        return await self.collection.find_one_and_update(
            {},
            {"$setOnInsert": defaults},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )

    async def get(self) -> Dict[str, Any]:
        return self.serialize(await self._get_document())

    async def update(
        self,
        patch: Dict[str, Any],
        avatar: Optional[UploadFile] = None,
        banner: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """
        Apply a partial update, optionally replacing the avatar and banner images.

        Replaced images are deleted from the media store after the write succeeds.
        """
        current = await self._get_document()
        saved: Dict[str, str] = {}
        try:
            if avatar is not None and avatar.filename:
                saved["avatarImage"] = await media_store.save_upload("home", avatar)
            if banner is not None and banner.filename:
                saved["bannerImage"] = await media_store.save_upload("home", banner)

            merged = {key: value for key, value in current.items() if key not in SYSTEM_FIELDS}
            merged.update({key: value for key, value in patch.items() if key not in SYSTEM_FIELDS})
            merged.update(saved)
            data = self.validate(merged)
            data["updatedAt"] = utcnow()
            updated = await self.collection.find_one_and_update(
                {"_id": current["_id"]},
                {"$set": data},
                return_document=ReturnDocument.AFTER,
            )
            if updated is None:
                raise ServerError("Home document disappeared during update")
        except Exception:
            media_store.delete_many(list(saved.values()))
            raise

        for field in IMAGE_FIELDS:
            previous = current.get(field)
            if previous and previous != updated.get(field):
                media_store.delete(previous)
        logger.info("Home profile updated")
        return self.serialize(updated)

    async def upsert(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the singleton's content wholesale (used by backup import)."""
        current = await self._get_document()
        data = self.validate({key: value for key, value in payload.items() if key not in SYSTEM_FIELDS})
        data["updatedAt"] = utcnow()
        updated = await self.collection.find_one_and_update(
            {"_id": current["_id"]},
            {"$set": data},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ServerError("Home document disappeared during update")
        return self.serialize(updated)


home_store = HomeStore()
