"""
# Content Models

Pydantic models for the public content resources of the blog: categories, articles,
annotations, photos, bookmarks, timeline events and travel diary entries.

## Conventions

- Attributes are snake_case in Python and camelCase on the wire and in MongoDB
  (`sort_order` <-> `sortOrder`), via `CamelModel`.
- `*Create` models describe a complete, valid document and are used both for new
  documents and to re-validate a document after a partial update is merged in.
- `*Update` models have every field optional; only fields the client actually sent are
  applied.
- System fields (`id`, `createdAt`, `updatedAt`) never appear in request models.

## Content Safety

Article titles have all HTML removed and article bodies are cleaned with `bleach`
against a rich-text allowlist. Cleaning is idempotent, so exported content imports back
unchanged.
"""

import html
from datetime import datetime
from typing import Annotated, List, Optional

import bleach
from pydantic import AfterValidator, Field, field_validator, model_validator

from folio_blog.models.common import CamelModel, optional_object_id, required_object_id

ARTICLE_ALLOWED_TAGS = [
    "p", "br", "span", "div", "strong", "b", "em", "i", "u", "s", "strike", "del", "ins", "mark",
    "sub", "sup", "code", "pre", "kbd", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li",
    "blockquote", "a", "img", "hr", "figure", "figcaption", "table", "thead", "tbody", "tfoot",
    "tr", "th", "td", "caption",
]
ARTICLE_ALLOWED_ATTRIBUTES = {
    "*": ["class"],
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title", "width", "height"],
    "td": ["colspan", "rowspan"],
    "th": ["colspan", "rowspan"],
}


def strip_html(value: str) -> str:
    """Plain text of `value`: tags removed, entities decoded."""
    return html.unescape(bleach.clean(value, tags=[], strip=True)).strip()


def clean_rich_text(value: str) -> str:
    return bleach.clean(value, tags=ARTICLE_ALLOWED_TAGS, attributes=ARTICLE_ALLOWED_ATTRIBUTES, strip=True)


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


NonBlankStr = Annotated[str, AfterValidator(_require_text)]


# Categories
class CategoryCreate(CamelModel):
    """A category groups articles; `name` is unique across the store."""

    name: NonBlankStr = Field(..., max_length=100, description="Category name (unique)")
    icon: Optional[str] = Field(None, description="Icon name or emoji")
    sort_order: int = Field(0, description="Ascending display order")


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = None
    sort_order: Optional[int] = None


# Articles
class ArticleCreate(CamelModel):
    """
    An article with rich-text HTML content.

    **Sanitization:**
    *   **title**: All HTML tags are stripped.
    *   **content**: Only the rich-text allowlist survives; scripts and iframes are removed.
    """

    title: str = Field(..., min_length=1, max_length=300, description="Article title")
    content: str = Field(..., min_length=1, description="Article body (HTML)")
    category: Optional[str] = Field(None, description="Category id")
    tags: List[str] = Field(default_factory=list, description="Free-text tags")
    views: int = Field(0, ge=0, description="View counter")
    likes: int = Field(0, ge=0, description="Like counter")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = strip_html(v)
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        v = clean_rich_text(v)
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v):
        return optional_object_id(v)


class ArticleUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    likes: Optional[int] = Field(None, ge=0)


# Annotations
class AnnotationCreate(CamelModel):
    """
    A reader note anchored to a span of an article's text.

    Offsets index into the plain-text rendering of the article content.
    """

    article: str = Field(..., description="Owning article id")
    selected_text: str = Field(..., min_length=1, description="Annotated text span")
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0)
    comment: str = Field(..., min_length=1, description="Annotation comment")

    @field_validator("article", mode="before")
    @classmethod
    def validate_article(cls, v):
        return required_object_id(v)

    @model_validator(mode="after")
    def validate_span(self):
        if self.end_offset < self.start_offset:
            raise ValueError("endOffset must not be before startOffset")
        return self


class AnnotationUpdate(CamelModel):
    selected_text: Optional[str] = None
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    comment: Optional[str] = None


# Photos
class PhotoCreate(CamelModel):
    title: str = Field("", description="Photo title")
    description: str = Field("", description="Photo description")
    url: str = Field(..., min_length=1, description="Media store URL")
    thumbnail_url: Optional[str] = Field(None, description="Thumbnail media store URL")
    tags: List[str] = Field(default_factory=list)


class PhotoUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


# Bookmarks
class BookmarkCreate(CamelModel):
    """A navigation bookmark; `category` is a free-text grouping key, not a reference."""

    title: NonBlankStr
    url: NonBlankStr
    description: Optional[str] = None
    icon: Optional[str] = None
    category: NonBlankStr = Field(..., description="Free-text group name")
    order: int = Field(0, description="Ascending order inside the group")


class BookmarkUpdate(CamelModel):
    title: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    category: Optional[str] = None
    order: Optional[int] = None


# Timeline events
class EventCreate(CamelModel):
    title: NonBlankStr
    description: str = ""
    location: Optional[str] = None
    mood: Optional[str] = None
    date: datetime = Field(..., description="When the event happened")


class EventUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    mood: Optional[str] = None
    date: Optional[datetime] = None


# Travel diary
class TravelCreate(CamelModel):
    title: NonBlankStr
    location: Optional[str] = ""
    rating: int = Field(5, ge=1, le=5, description="Rating from 1 to 5")
    date: datetime
    weather: Optional[str] = ""
    transport: Optional[str] = ""
    description: Optional[str] = ""
    images: List[str] = Field(default_factory=list, description="Ordered media store URLs")


class TravelUpdate(CamelModel):
    title: Optional[str] = None
    location: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    date: Optional[datetime] = None
    weather: Optional[str] = None
    transport: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None


# Bulk operations
class BatchDeleteRequest(CamelModel):
    ids: List[str] = Field(..., min_length=1, description="Ids to delete")


class ArticleBatchImportRequest(CamelModel):
    articles: List[dict] = Field(..., min_length=1, description="Raw article payloads")
