"""
# Resource Store Base

Shared CRUD behaviour for every content collection (categories, articles, photos,
bookmarks, events, travels, annotations).

## Contract

| Operation              | Behaviour                                                            |
|------------------------|----------------------------------------------------------------------|
| `list(query)`          | All matching documents, sorted by the store's `default_sort`.        |
| `get(id)`              | One document; `NotFound` if absent or if the id is malformed.        |
| `create(payload)`      | Validates against `create_model`, stamps `createdAt`/`updatedAt`     |
|                        | (now, unless explicit timestamps are passed).                        |
| `update(id, patch)`    | Merges the patch into the stored document, re-validates the result,  |
|                        | writes only the patched fields and refreshes `updatedAt`.            |
| `delete(id)`           | Removes the document, then runs `_after_delete` for cascades.        |
| `batch_delete(ids)`    | Removes whichever ids exist and returns how many were deleted.       |

Documents are stored with camelCase keys. Reference fields listed in `reference_fields`
are stored as `ObjectId` and serialized back as strings. Every serialized document
exposes its identifier as `id`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger
from folio_blog.utils.errors import Conflict, NotFound, from_pydantic

logger = get_logger(prefix="[ResourceStore]")

SYSTEM_FIELDS = ("_id", "id", "createdAt", "updatedAt")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Read an ISO-8601 timestamp (or datetime); `None` when absent or unparseable."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an `ObjectId` for a valid id string, otherwise `None`."""
    if isinstance(value, ObjectId):
        return value
    if value is None or not ObjectId.is_valid(str(value)):
        return None
    return ObjectId(str(value))


class ResourceStore:
    """Generic MongoDB-backed store for one resource collection."""

    collection_name: str = ""
    resource_label: str = "Resource"
    create_model: Type[BaseModel] = BaseModel
    default_sort: List[Tuple[str, int]] = [("createdAt", DESCENDING)]
    reference_fields: Tuple[str, ...] = ()
    unique_fields: Tuple[str, ...] = ()

    @property
    def collection(self):
        return db_manager.get_collection(self.collection_name)

    def not_found(self) -> NotFound:
        return NotFound(f"{self.resource_label} not found")

    def validate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a raw payload and return the document body to persist."""
        try:
            model = self.create_model.model_validate(payload)
        except PydanticValidationError as e:
            raise from_pydantic(e)
        data = model.model_dump(by_alias=True)
        for field in self.reference_fields:
            data[field] = parse_object_id(data.get(field)) if data.get(field) else None
        return data

    def serialize(self, document: Dict[str, Any]) -> Dict[str, Any]:
        result = {key: value for key, value in document.items() if key != "_id"}
        result["id"] = str(document["_id"])
        for field in self.reference_fields:
            if isinstance(result.get(field), ObjectId):
                result[field] = str(result[field])
        return result

    async def _check_unique(self, data: Dict[str, Any], exclude_id: Optional[ObjectId] = None):
        for field in self.unique_fields:
            query: Dict[str, Any] = {field: data.get(field)}
            if exclude_id is not None:
                query["_id"] = {"$ne": exclude_id}
            if await self.collection.find_one(query):
                raise Conflict(f"{self.resource_label} {field} already exists")

    async def list(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        cursor = self.collection.find(query or {}).sort(self.default_sort)
        documents = await cursor.to_list(length=None)
        return [self.serialize(document) for document in documents]

    async def get_document(self, resource_id: Any) -> Dict[str, Any]:
        """Fetch the raw stored document."""
        object_id = parse_object_id(resource_id)
        if object_id is None:
            raise self.not_found()
        document = await self.collection.find_one({"_id": object_id})
        if document is None:
            raise self.not_found()
        return document

    async def get(self, resource_id: Any) -> Dict[str, Any]:
        return self.serialize(await self.get_document(resource_id))

    async def create(
        self,
        payload: Dict[str, Any],
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        data = self.validate(payload)
        await self._check_unique(data)
        now = utcnow()
        data["createdAt"] = created_at or now
        data["updatedAt"] = updated_at or now
        try:
            result = await self.collection.insert_one(data)
        except DuplicateKeyError:
            raise Conflict(f"{self.resource_label} already exists")
        data["_id"] = result.inserted_id
        logger.info("Created %s %s", self.resource_label.lower(), result.inserted_id)
        return self.serialize(data)

    async def update(self, resource_id: Any, patch: Dict[str, Any]) -> Dict[str, Any]:
        existing = await self.get_document(resource_id)
        merged = {key: value for key, value in existing.items() if key not in SYSTEM_FIELDS}
        merged.update({key: value for key, value in patch.items() if key not in SYSTEM_FIELDS})
        data = self.validate(merged)
        await self._check_unique(data, exclude_id=existing["_id"])
        # Unpatched fields stay untouched; counters such as views change concurrently
        changes = {key: data[key] for key in patch if key in data}
        changes["updatedAt"] = utcnow()
        try:
            updated = await self.collection.find_one_and_update(
                {"_id": existing["_id"]},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise Conflict(f"{self.resource_label} already exists")
        if updated is None:
            raise self.not_found()
        logger.info("Updated %s %s", self.resource_label.lower(), existing["_id"])
        return self.serialize(updated)

    async def delete(self, resource_id: Any) -> Dict[str, Any]:
        document = await self.get_document(resource_id)
        result = await self.collection.delete_one({"_id": document["_id"]})
        if result.deleted_count == 0:
            raise self.not_found()
        await self._after_delete([document])
        logger.info("Deleted %s %s", self.resource_label.lower(), document["_id"])
        return self.serialize(document)

    async def batch_delete(self, resource_ids: Iterable[Any]) -> int:
        object_ids = [oid for oid in (parse_object_id(value) for value in resource_ids) if oid is not None]
        if not object_ids:
            return 0
        documents = await self.collection.find({"_id": {"$in": object_ids}}).to_list(length=None)
        if not documents:
            return 0
        result = await self.collection.delete_many({"_id": {"$in": [document["_id"] for document in documents]}})
        await self._after_delete(documents)
        logger.info("Batch deleted %d %s documents", result.deleted_count, self.resource_label.lower())
        return result.deleted_count

    async def _after_delete(self, documents: List[Dict[str, Any]]):
        """Cascade hook run after documents are removed."""
