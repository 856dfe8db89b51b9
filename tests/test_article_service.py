import asyncio
from datetime import datetime, timezone

import pytest

from folio_blog.services.annotation_service import annotation_store
from folio_blog.services.article_service import article_store, markdown_to_article
from folio_blog.services.category_service import category_store
from folio_blog.utils.errors import NotFound, ValidationError


async def _article(title="Hello", content="<p>Hello brave new world</p>", **extra):
    return await article_store.create({"title": title, "content": content, **extra})


@pytest.mark.asyncio
async def test_create_article_defaults_counters(fake_db):
    article = await _article(tags=["python"])

    assert article["views"] == 0
    assert article["likes"] == 0
    assert article["tags"] == ["python"]
    assert article["category"] is None


@pytest.mark.asyncio
async def test_article_html_is_sanitized(fake_db):
    article = await _article(
        title="<b>Bold</b> title",
        content='<p onclick="steal()">Hi</p><script>alert(1)</script><img src="/uploads/articles/a.png">',
    )

    assert article["title"] == "Bold title"
    assert "<script" not in article["content"]
    assert "onclick" not in article["content"]
    assert '<img src="/uploads/articles/a.png">' in article["content"]


@pytest.mark.asyncio
async def test_article_title_keeps_plain_text_characters(fake_db):
    article = await _article(title="A & B < C")

    assert article["title"] == "A & B < C"
    assert (await article_store.get(article["id"]))["title"] == "A & B < C"
    assert (await _article(title="Tom &amp; Jerry"))["title"] == "Tom & Jerry"


@pytest.mark.asyncio
async def test_update_keeps_views_counted_during_the_edit(fake_db, monkeypatch):
    article = await _article()
    read_document = article_store.get_document

    async def read_then_count_view(resource_id):
        document = await read_document(resource_id)
        await article_store.increment_views(resource_id)
        return document

    monkeypatch.setattr(article_store, "get_document", read_then_count_view)
    updated = await article_store.update(article["id"], {"title": "Renamed"})

    assert updated["title"] == "Renamed"
    assert updated["views"] == 1
    assert fake_db.get_collection("articles").documents[0]["views"] == 1


@pytest.mark.asyncio
async def test_article_requires_title_and_content(fake_db):
    with pytest.raises(ValidationError):
        await article_store.create({"title": "No body"})
    with pytest.raises(ValidationError):
        await article_store.create({"title": "<i></i>", "content": "<p>x</p>"})


@pytest.mark.asyncio
async def test_article_category_is_populated(fake_db):
    category = await category_store.create({"name": "Tech", "icon": "💻"})
    article = await _article(category=category["id"])

    assert article["category"] == {"id": category["id"], "name": "Tech", "icon": "💻"}
    listed = await article_store.list(category=category["id"])
    assert [item["id"] for item in listed] == [article["id"]]
    assert await article_store.list(category="not-an-id") == []


@pytest.mark.asyncio
async def test_list_raw_keeps_category_id(fake_db):
    category = await category_store.create({"name": "Tech"})
    await _article(category=category["id"])

    (article,) = await article_store.list_raw()
    assert article["category"] == category["id"]


@pytest.mark.asyncio
async def test_concurrent_view_increments_are_not_lost(fake_db):
    article = await _article()

    results = await asyncio.gather(*(article_store.increment_views(article["id"]) for _ in range(25)))

    assert sorted(results) == list(range(1, 26))
    assert (await article_store.get(article["id"]))["views"] == 25


@pytest.mark.asyncio
async def test_increment_views_unknown_article(fake_db):
    with pytest.raises(NotFound):
        await article_store.increment_views("65a000000000000000000000")


@pytest.mark.asyncio
async def test_deleting_article_cascades_to_annotations(fake_db):
    article = await _article()
    other = await _article(title="Other")
    for target in (article, article, other):
        await annotation_store.create(
            {"article": target["id"], "selectedText": "Hello", "startOffset": 0, "endOffset": 5, "comment": "note"}
        )

    await article_store.delete(article["id"])

    remaining = fake_db.get_collection("annotations").documents
    assert len(remaining) == 1
    assert str(remaining[0]["article"]) == other["id"]


@pytest.mark.asyncio
async def test_batch_delete_cascades_to_annotations(fake_db):
    first = await _article()
    second = await _article(title="Second")
    await annotation_store.create(
        {"article": second["id"], "selectedText": "Hello", "startOffset": 0, "endOffset": 5, "comment": "note"}
    )

    assert await article_store.batch_delete([first["id"], second["id"]]) == 2
    assert fake_db.get_collection("annotations").documents == []


@pytest.mark.asyncio
async def test_batch_import_records_partial_failures(fake_db):
    result = await article_store.batch_import(
        [
            {"title": "Good", "content": "<p>fine</p>"},
            {"title": "", "content": "<p>no title</p>"},
            "not an object",
            {"title": "Also good", "content": "<p>fine too</p>"},
        ]
    )

    assert result["importedCount"] == 2
    assert result["errorCount"] == 2
    assert [article["title"] for article in result["importedArticles"]] == ["Good", "Also good"]
    assert [error["article"] for error in result["errors"]] == ["untitled", "untitled"]
    assert len(fake_db.get_collection("articles").documents) == 2


@pytest.mark.asyncio
async def test_batch_import_resolves_category_names(fake_db):
    category = await category_store.create({"name": "Tech"})

    result = await article_store.batch_import(
        [
            {"title": "By name", "content": "<p>x</p>", "category": "Tech"},
            {"title": "By object", "content": "<p>x</p>", "category": {"_id": category["id"], "name": "Tech"}},
            {"title": "Unknown", "content": "<p>x</p>", "category": "Gardening"},
        ]
    )

    categories = [article["category"] for article in result["importedArticles"]]
    assert categories[0]["id"] == category["id"]
    assert categories[1]["id"] == category["id"]
    assert categories[2] is None


@pytest.mark.asyncio
async def test_batch_import_keeps_payload_timestamps(fake_db):
    result = await article_store.batch_import(
        [
            {
                "title": "Old",
                "content": "<p>x</p>",
                "createdAt": "2019-05-01T00:00:00Z",
                "updatedAt": "2019-06-01T08:30:00Z",
            },
            {"title": "Undated", "content": "<p>x</p>", "createdAt": "last spring"},
        ]
    )

    old, undated = result["importedArticles"]
    assert old["createdAt"] == datetime(2019, 5, 1, tzinfo=timezone.utc)
    assert old["updatedAt"] == datetime(2019, 6, 1, 8, 30, tzinfo=timezone.utc)
    assert undated["createdAt"].year >= 2024
    assert [article["title"] for article in await article_store.list()] == ["Undated", "Old"]


def test_markdown_title_comes_from_first_heading():
    article = markdown_to_article("post.md", "# Hello World\n\nSome *body* text.\n\n## Section\n")

    assert article["title"] == "Hello World"
    assert "<h1>" not in article["content"]
    assert "<em>body</em>" in article["content"]
    assert "<h2>Section</h2>" in article["content"]


def test_markdown_title_falls_back_to_file_stem():
    article = markdown_to_article("weekly-notes.markdown", "Just a paragraph.")

    assert article["title"] == "weekly-notes"
    assert article["content"] == "<p>Just a paragraph.</p>"


@pytest.mark.asyncio
async def test_import_markdown_creates_articles(fake_db):
    result = await article_store.import_markdown(
        [
            {"filename": "a.md", "text": "# First\n\nBody"},
            {"filename": "empty.md", "text": "# Only a heading"},
        ]
    )

    assert result["importedCount"] == 1
    assert result["errors"][0]["article"] == "Only a heading"
