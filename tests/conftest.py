"""
Shared fixtures.

The MongoDB layer is replaced by `FakeDatabase`, an in-memory double implementing the
subset of the Motor collection API the stores use. The media store is pointed at a
per-test temporary directory.
"""

import copy
import io
import os
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import patch

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-signing-key-for-the-blog-suite")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("DEFAULT_LOG_LEVEL", "WARNING")

import pytest
from bson import ObjectId
from fastapi import UploadFile
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from starlette.datastructures import Headers

from folio_blog.database import db_manager
from folio_blog.managers.media_manager import media_store

# Smallest valid image payloads for each supported format
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00\x10JFIF" + b"\x00" * 32
GIF_BYTES = b"GIF89a" + b"\x00" * 32


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        value = document.get(key)
        if isinstance(condition, dict) and any(op.startswith("$") for op in condition):
            for op, operand in condition.items():
                if op == "$in" and value not in operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
        elif value != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    def sort(self, key_or_list, direction: Optional[int] = None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        for field, order in reversed(keys):
            self._documents.sort(
                key=lambda document: (document.get(field) is not None, document.get(field)),
                reverse=order < 0,
            )
        return self

    async def to_list(self, length: Optional[int] = None):
        return self._documents if length is None else self._documents[:length]


class FakeCollection:
    """In-memory stand-in for a Motor collection."""

    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.unique_fields: List[str] = []

    def _check_unique(self, candidate: Dict[str, Any]):
        for field in self.unique_fields:
            for document in self.documents:
                if document["_id"] != candidate["_id"] and document.get(field) == candidate.get(field):
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} index: {field}")

    async def create_index(self, keys, unique: bool = False, **kwargs):
        if unique and isinstance(keys, str):
            self.unique_fields.append(keys)
        return keys if isinstance(keys, str) else "_".join(field for field, _ in keys)

    async def insert_one(self, document: Dict[str, Any]):
        document.setdefault("_id", ObjectId())
        stored = copy.deepcopy(document)
        self._check_unique(stored)
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=document["_id"])

    def find(self, query: Optional[Dict[str, Any]] = None):
        return FakeCursor([copy.deepcopy(document) for document in self.documents if _matches(document, query or {})])

    async def find_one(self, query: Optional[Dict[str, Any]] = None):
        for document in self.documents:
            if _matches(document, query or {}):
                return copy.deepcopy(document)
        return None

    def _apply(self, document: Dict[str, Any], update: Dict[str, Any], inserting: bool):
        for key, value in update.get("$set", {}).items():
            document[key] = copy.deepcopy(value)
        for key, value in update.get("$inc", {}).items():
            document[key] = document.get(key, 0) + value
        if inserting:
            for key, value in update.get("$setOnInsert", {}).items():
                document[key] = copy.deepcopy(value)

    async def find_one_and_update(
        self, query, update, upsert: bool = False, return_document=ReturnDocument.BEFORE, **kwargs
    ):
        for document in self.documents:
            if _matches(document, query):
                before = copy.deepcopy(document)
                candidate = copy.deepcopy(document)
                self._apply(candidate, update, inserting=False)
                self._check_unique(candidate)
                document.clear()
                document.update(candidate)
                return copy.deepcopy(document) if return_document == ReturnDocument.AFTER else before
        if not upsert:
            return None
        document = {"_id": ObjectId(), **{key: value for key, value in query.items() if not key.startswith("$")}}
        self._apply(document, update, inserting=True)
        self.documents.append(document)
        return copy.deepcopy(document) if return_document == ReturnDocument.AFTER else None

    async def update_one(self, query, update, upsert: bool = False):
        result = await self.find_one_and_update(query, update, upsert=upsert)
        return SimpleNamespace(matched_count=0 if result is None else 1)

    async def delete_one(self, query):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query):
        kept = [document for document in self.documents if not _matches(document, query)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return SimpleNamespace(deleted_count=deleted)

    async def distinct(self, field: str):
        values = []
        for document in self.documents:
            if document.get(field) not in values:
                values.append(document.get(field))
        return values

    async def count_documents(self, query):
        return sum(1 for document in self.documents if _matches(document, query))


class FakeDatabase:
    def __init__(self):
        self.collections: Dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


@pytest.fixture
def fake_db():
    """Patch the database manager so every store reads and writes in memory."""
    database = FakeDatabase()
    database.get_collection("categories").unique_fields.append("name")
    database.get_collection("users").unique_fields.append("username")
    with patch.object(db_manager, "get_collection", side_effect=database.get_collection):
        yield database


@pytest.fixture
def uploads_root(tmp_path):
    """Point the media store at an empty temporary uploads root."""
    root = tmp_path / "uploads"
    original = media_store._root
    media_store._root = root.resolve()
    media_store.ensure_layout()
    yield media_store._root
    media_store._root = original


@pytest.fixture
def store_media(uploads_root):
    """Write bytes straight into the uploads root; returns the public URL."""

    def _store(namespace: str, filename: str, data: bytes = PNG_BYTES) -> str:
        (uploads_root / namespace / filename).write_bytes(data)
        return f"/uploads/{namespace}/{filename}"

    return _store


@pytest.fixture
def make_upload():
    """Build a Starlette `UploadFile` the way a multipart request would."""

    def _make(filename: str, data: bytes = PNG_BYTES, content_type: str = "image/png") -> UploadFile:
        return UploadFile(io.BytesIO(data), filename=filename, headers=Headers({"content-type": content_type}))

    return _make
