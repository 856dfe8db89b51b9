"""
Bookmark store.

Bookmarks are grouped at read time by their free-text `category` value; there is no
category collection behind it.
"""

from typing import Any, Dict, List

from pymongo import ASCENDING

from folio_blog.models.content_models import BookmarkCreate
from folio_blog.services.resource_store import ResourceStore


class BookmarkStore(ResourceStore):
    collection_name = "bookmarks"
    resource_label = "Bookmark"
    create_model = BookmarkCreate
    default_sort = [("category", ASCENDING), ("order", ASCENDING)]

    async def list_grouped(self) -> Dict[str, List[Dict[str, Any]]]:
        """Return `{category: [bookmark, ...]}` preserving category then order."""
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for bookmark in await self.list():
            grouped.setdefault(bookmark["category"], []).append(bookmark)
        return grouped

    async def categories(self) -> List[str]:
        values = await self.collection.distinct("category")
        return sorted(value for value in values if value)


bookmark_store = BookmarkStore()
