"""
# Article Service

Store for long-form articles plus the article-only operations:

- **Category population**: list/get responses embed `{id, name, icon}` for the category.
- **View counting**: `increment_views` uses an atomic `$inc`, so concurrent readers never
  lose updates.
- **Batch import**: every payload is created independently; one bad record becomes an
  entry in `errors` instead of aborting the batch. Valid `createdAt`/`updatedAt` values
  in a payload are kept, otherwise the current time is used.
- **Markdown import**: `.md` files are converted to HTML with the `markdown` library and
  fed through the batch import.
- **Cascade**: deleting articles deletes their annotations.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import markdown
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import ArticleCreate
from folio_blog.services.resource_store import ResourceStore, parse_object_id, parse_timestamp
from folio_blog.utils.errors import BlogError, ValidationError

logger = get_logger(prefix="[ArticleService]")

MARKDOWN_EXTENSIONS = ["extra", "fenced_code", "tables"]
_HEADING_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$")


def markdown_to_article(filename: str, text: str) -> Dict[str, Any]:
    """
    Build an article payload from a Markdown document.

    The title is the first level-one heading, or the file stem when there is none; the
    heading line itself is removed from the body before conversion.
    """
    title = Path(filename or "untitled").stem
    lines = text.splitlines()
    for index, line in enumerate(lines):
        match = _HEADING_RE.match(line.strip())
        if match:
            title = match.group(1)
            del lines[index]
            break
    body = "\n".join(lines).strip()
    content = markdown.markdown(body, extensions=MARKDOWN_EXTENSIONS) if body else ""
    return {"title": title, "content": content}


class ArticleStore(ResourceStore):
    collection_name = "articles"
    resource_label = "Article"
    create_model = ArticleCreate
    default_sort = [("createdAt", DESCENDING)]
    reference_fields = ("category",)

    async def _populate_categories(self, articles: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        category_ids = {article["category"] for article in articles if article.get("category")}
        by_id: Dict[str, Dict[str, Any]] = {}
        if category_ids:
            categories = db_manager.get_collection("categories")
            found = await categories.find({"_id": {"$in": [ObjectId(value) for value in category_ids]}}).to_list(
                length=None
            )
            by_id = {
                str(category["_id"]): {"id": str(category["_id"]), "name": category["name"], "icon": category.get("icon")}
                for category in found
            }
        for article in articles:
            if article.get("category"):
                article["category"] = by_id.get(article["category"])
        return articles

    async def list(self, query: Optional[Dict[str, Any]] = None, category: Optional[str] = None):
        query = dict(query or {})
        if category:
            category_id = parse_object_id(category)
            if category_id is None:
                return []
            query["category"] = category_id
        return await self._populate_categories(await super().list(query))

    async def get(self, resource_id: Any) -> Dict[str, Any]:
        article = await super().get(resource_id)
        return (await self._populate_categories([article]))[0]

    async def create(self, payload: Dict[str, Any], **timestamps) -> Dict[str, Any]:
        article = await super().create(payload, **timestamps)
        return (await self._populate_categories([article]))[0]

    async def update(self, resource_id: Any, patch: Dict[str, Any]) -> Dict[str, Any]:
        article = await super().update(resource_id, patch)
        return (await self._populate_categories([article]))[0]

    async def list_raw(self) -> List[Dict[str, Any]]:
        """Articles with `category` left as an id string."""
        return await super().list()

    async def increment_views(self, resource_id: Any) -> int:
        object_id = parse_object_id(resource_id)
        if object_id is None:
            raise self.not_found()
        updated = await self.collection.find_one_and_update(
            {"_id": object_id},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise self.not_found()
        return updated["views"]

    async def resolve_category_reference(self, value: Any) -> Optional[str]:
        """
        Turn a loosely-typed category reference into a category id.

        Accepts an id string, a populated `{id|_id, name}` object or a category name.
        Unknown names resolve to `None`.
        """
        if not value:
            return None
        if isinstance(value, dict):
            reference = value.get("id") or value.get("_id")
            if reference and parse_object_id(reference):
                value = str(reference)
            else:
                value = value.get("name")
                if not value:
                    return None
        value = str(value)
        categories = db_manager.get_collection("categories")
        if parse_object_id(value) and await categories.find_one({"_id": ObjectId(value)}):
            return value
        document = await categories.find_one({"name": value})
        return str(document["_id"]) if document else None

    async def batch_import(self, articles: List[Any]) -> Dict[str, Any]:
        """
        Create each article independently.

        Returns:
            `{message, importedCount, errorCount, importedArticles, errors}` where each
            error is `{article: <title>, error: <message>}`.
        """
        imported: List[Dict[str, Any]] = []
        errors: List[Dict[str, str]] = []

        for payload in articles:
            title = payload.get("title") if isinstance(payload, dict) else None
            try:
                if not isinstance(payload, dict):
                    raise ValidationError("Article must be an object")
                data = dict(payload)
                data["category"] = await self.resolve_category_reference(data.get("category"))
                imported.append(
                    await self.create(
                        data,
                        created_at=parse_timestamp(data.get("createdAt")),
                        updated_at=parse_timestamp(data.get("updatedAt")),
                    )
                )
            except BlogError as e:
                errors.append({"article": title or "untitled", "error": e.message})
            except Exception as e:
                logger.error("Unexpected error importing article %r: %s", title, e, exc_info=True)
                errors.append({"article": title or "untitled", "error": str(e)})

        logger.info("Batch import finished: %d imported, %d failed", len(imported), len(errors))
        return {
            "message": f"Imported {len(imported)} articles, {len(errors)} failed",
            "importedCount": len(imported),
            "errorCount": len(errors),
            "importedArticles": imported,
            "errors": errors,
        }

    async def import_markdown(self, documents: List[Dict[str, str]]) -> Dict[str, Any]:
        """Import `[{filename, text}]` Markdown documents through `batch_import`."""
        payloads = [markdown_to_article(document["filename"], document["text"]) for document in documents]
        return await self.batch_import(payloads)

    async def _after_delete(self, documents: List[Dict[str, Any]]):
        article_ids = [document["_id"] for document in documents]
        annotations = db_manager.get_collection("annotations")
        result = await annotations.delete_many({"article": {"$in": article_ids}})
        if result.deleted_count:
            logger.info("Cascade deleted %d annotations for %d articles", result.deleted_count, len(article_ids))


article_store = ArticleStore()
