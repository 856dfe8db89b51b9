"""
# Annotation Service

Reader annotations anchored to spans of an article's text.

## Re-anchoring

Stored offsets were computed against the article text at the time the annotation was
made and go stale when the article is edited. When annotations are read for an article
each one is checked against the plain-text rendering of the current content:

1. If `text[startOffset:endOffset] == selectedText`, the stored offsets are kept.
2. Otherwise the occurrence of `selectedText` closest to the stored `startOffset` is used.
3. If `selectedText` no longer occurs at all, the stored offsets are returned unchanged
   and the annotation is flagged `anchored: false`.

Reads never rewrite stored offsets.
"""

import html
from typing import Any, Dict, List, Tuple

import bleach
from pymongo import ASCENDING

from folio_blog.database import db_manager
from folio_blog.managers.logging_manager import get_logger
from folio_blog.models.content_models import AnnotationCreate
from folio_blog.services.resource_store import ResourceStore, parse_object_id
from folio_blog.utils.errors import NotFound

logger = get_logger(prefix="[AnnotationService]")


def plain_text(content: str) -> str:
    """Text of an HTML fragment with tags removed and entities decoded."""
    return html.unescape(bleach.clean(content or "", tags=[], strip=True))


def reanchor(text: str, selected_text: str, start: int, end: int) -> Tuple[int, int, bool]:
    """Return `(start, end, anchored)` for a span against the current text."""
    if text[start:end] == selected_text:
        return start, end, True
    positions = []
    index = text.find(selected_text)
    while index != -1:
        positions.append(index)
        index = text.find(selected_text, index + 1)
    if not positions:
        return start, end, False
    best = min(positions, key=lambda position: abs(position - start))
    return best, best + len(selected_text), True


class AnnotationStore(ResourceStore):
    collection_name = "annotations"
    resource_label = "Annotation"
    create_model = AnnotationCreate
    default_sort = [("createdAt", ASCENDING)]
    reference_fields = ("article",)

    @property
    def articles(self):
        return db_manager.get_collection("articles")

    async def _require_article(self, article_id: Any) -> Dict[str, Any]:
        object_id = parse_object_id(article_id)
        article = await self.articles.find_one({"_id": object_id}) if object_id else None
        if article is None:
            raise NotFound("Article not found")
        return article

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self.validate(payload)
        await self._require_article(data["article"])
        return await super().create(payload)

    async def list_all(self) -> List[Dict[str, Any]]:
        """All annotations, oldest first, each with `articleTitle` populated."""
        annotations = await self.list()
        article_ids = {parse_object_id(annotation["article"]) for annotation in annotations}
        titles: Dict[str, str] = {}
        if article_ids:
            found = await self.articles.find({"_id": {"$in": list(article_ids)}}).to_list(length=None)
            titles = {str(article["_id"]): article.get("title", "") for article in found}
        for annotation in annotations:
            annotation["articleTitle"] = titles.get(annotation["article"])
        return annotations

    async def list_for_article(self, article_id: Any) -> List[Dict[str, Any]]:
        """
        Annotations for one article, re-anchored against its current content.

        Raises:
            NotFound: If the article does not exist.
        """
        article = await self._require_article(article_id)
        text = plain_text(article.get("content", ""))
        annotations = await self.list({"article": article["_id"]})
        for annotation in annotations:
            start, end, anchored = reanchor(
                text, annotation["selectedText"], annotation["startOffset"], annotation["endOffset"]
            )
            if (start, end) != (annotation["startOffset"], annotation["endOffset"]):
                logger.debug("Re-anchored annotation %s from %d to %d", annotation["id"], annotation["startOffset"], start)
            annotation["startOffset"] = start
            annotation["endOffset"] = end
            annotation["anchored"] = anchored
        return annotations


annotation_store = AnnotationStore()
