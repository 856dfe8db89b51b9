"""
# Article Routes

| Method | Path                                | Auth | Purpose                                  |
|--------|-------------------------------------|------|------------------------------------------|
| GET    | `/api/articles[?category=<id>]`     | -    | list, newest first, category populated   |
| POST   | `/api/articles`                     | A    | create                                   |
| POST   | `/api/articles/batch-delete`        | A    | `{ids}` -> `{deletedCount}`              |
| POST   | `/api/articles/batch-import`        | A    | `{articles}`, partial-failure tolerant   |
| POST   | `/api/articles/import-markdown`     | A    | multipart `.md` files                    |
| POST   | `/api/articles/upload-image`        | A    | multipart `image` -> `{url}`             |
| GET    | `/api/articles/{id}`                | -    | one article                              |
| PUT    | `/api/articles/{id}`                | A    | partial update                           |
| DELETE | `/api/articles/{id}`                | A    | delete, cascading to annotations         |
| POST   | `/api/articles/{id}/views`          | -    | atomic view counter increment            |

Fixed paths are registered before `/{article_id}` so they are never captured as ids.
"""

from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from folio_blog.managers.logging_manager import get_logger
from folio_blog.managers.media_manager import media_store
from folio_blog.models.content_models import ArticleBatchImportRequest, ArticleCreate, ArticleUpdate, BatchDeleteRequest
from folio_blog.routes.dependencies import get_current_user
from folio_blog.services.article_service import article_store
from folio_blog.utils.errors import BlogError

logger = get_logger(prefix="[Article Routes]")

router = APIRouter(prefix="/api/articles", tags=["articles"])

MARKDOWN_EXTENSIONS = {".md", ".markdown"}
MAX_MARKDOWN_BYTES = 2 * 1024 * 1024


@router.get("")
async def list_articles(category: Optional[str] = None):
    try:
        return await article_store.list(category=category)
    except Exception as e:
        logger.error("Failed to list articles: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get articles")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_article(request: ArticleCreate, current_user: dict = Depends(get_current_user)):
    """
    Create an article.

    The title is stripped of HTML and the content is sanitized against the rich-text
    allowlist before it is stored.

    Raises:
        HTTPException(400): If title or content is missing or the category id is malformed.
    """
    try:
        return await article_store.create(request.model_dump(by_alias=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to create article: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create article")


@router.post("/batch-delete")
async def batch_delete_articles(request: BatchDeleteRequest, current_user: dict = Depends(get_current_user)):
    try:
        deleted = await article_store.batch_delete(request.ids)
        return {"message": f"Deleted {deleted} articles", "deletedCount": deleted}
    except Exception as e:
        logger.error("Failed to batch delete articles: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete articles")


@router.post("/batch-import")
async def batch_import_articles(request: ArticleBatchImportRequest, current_user: dict = Depends(get_current_user)):
    """
    Create many articles at once.

    Each article is attempted independently; failures are reported in `errors` as
    `{article, error}` and do not stop the batch. `category` may be an id, a populated
    category object or a category name.
    """
    try:
        return await article_store.batch_import(request.articles)
    except Exception as e:
        logger.error("Failed to batch import articles: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import articles")


@router.post("/import-markdown")
async def import_markdown(files: List[UploadFile] = File(...), current_user: dict = Depends(get_current_user)):
    """Import `.md`/`.markdown` files; the first `# ` heading becomes the title."""
    documents = []
    for upload in files:
        if Path(upload.filename or "").suffix.lower() not in MARKDOWN_EXTENSIONS:
            raise HTTPException(status_code=400, detail=f"Not a Markdown file: {upload.filename}")
        raw = await upload.read(MAX_MARKDOWN_BYTES + 1)
        if len(raw) > MAX_MARKDOWN_BYTES:
            raise HTTPException(status_code=400, detail=f"File too large: {upload.filename}")
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail=f"File is not UTF-8 text: {upload.filename}")
        documents.append({"filename": upload.filename, "text": text})

    try:
        return await article_store.import_markdown(documents)
    except Exception as e:
        logger.error("Failed to import markdown: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import markdown")


@router.post("/upload-image")
async def upload_article_image(image: UploadFile = File(...), current_user: dict = Depends(get_current_user)):
    try:
        return {"url": await media_store.save_upload("articles", image)}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to upload article image: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload image")


@router.get("/{article_id}")
async def get_article(article_id: str):
    try:
        return await article_store.get(article_id)
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to get article %s: %s", article_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get article")


@router.put("/{article_id}")
async def update_article(article_id: str, request: ArticleUpdate, current_user: dict = Depends(get_current_user)):
    try:
        return await article_store.update(article_id, request.model_dump(by_alias=True, exclude_unset=True))
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to update article %s: %s", article_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update article")


@router.delete("/{article_id}")
async def delete_article(article_id: str, current_user: dict = Depends(get_current_user)):
    """Delete an article together with all of its annotations."""
    try:
        await article_store.delete(article_id)
        return {"message": "Article deleted successfully"}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to delete article %s: %s", article_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete article")


@router.post("/{article_id}/views")
async def increment_views(article_id: str):
    try:
        return {"views": await article_store.increment_views(article_id)}
    except BlogError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Failed to increment views for %s: %s", article_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to increment views")
