import pytest

from folio_blog.services.annotation_service import annotation_store, plain_text, reanchor
from folio_blog.services.article_service import article_store
from folio_blog.utils.errors import NotFound, ValidationError


def test_plain_text_strips_tags_and_decodes_entities():
    assert plain_text("<p>Fish &amp; <em>chips</em></p>") == "Fish & chips"


def test_reanchor_keeps_offsets_that_still_match():
    assert reanchor("Hello brave new world", "brave", 6, 11) == (6, 11, True)


def test_reanchor_follows_moved_text():
    assert reanchor("Oh hello there, brave new world", "brave", 6, 11) == (16, 21, True)


def test_reanchor_picks_occurrence_closest_to_stored_offset():
    text = "echo one echo two echo"
    assert reanchor(text, "echo", 12, 16) == (9, 13, True)
    assert reanchor(text, "echo", 20, 24) == (18, 22, True)


def test_reanchor_flags_vanished_text():
    assert reanchor("Completely rewritten", "brave", 6, 11) == (6, 11, False)


@pytest.fixture
def annotation_payload():
    def _payload(article_id, **overrides):
        payload = {
            "article": article_id,
            "selectedText": "brave",
            "startOffset": 6,
            "endOffset": 11,
            "comment": "Nice word",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.mark.asyncio
async def test_annotation_requires_existing_article(fake_db, annotation_payload):
    with pytest.raises(NotFound):
        await annotation_store.create(annotation_payload("65a000000000000000000000"))


@pytest.mark.asyncio
async def test_annotation_rejects_inverted_span(fake_db, annotation_payload):
    article = await article_store.create({"title": "Hello", "content": "<p>Hello brave new world</p>"})
    with pytest.raises(ValidationError):
        await annotation_store.create(annotation_payload(article["id"], startOffset=11, endOffset=6))


@pytest.mark.asyncio
async def test_list_for_article_reanchors_after_edit(fake_db, annotation_payload):
    article = await article_store.create({"title": "Hello", "content": "<p>Hello brave new world</p>"})
    created = await annotation_store.create(annotation_payload(article["id"]))
    gone = await annotation_store.create(annotation_payload(article["id"], selectedText="Hello", startOffset=0, endOffset=5))

    (fresh, _) = await annotation_store.list_for_article(article["id"])
    assert (fresh["startOffset"], fresh["endOffset"], fresh["anchored"]) == (6, 11, True)

    await article_store.update(article["id"], {"content": "<p>Oh well, a brave new world</p>"})
    by_id = {annotation["id"]: annotation for annotation in await annotation_store.list_for_article(article["id"])}

    assert (by_id[created["id"]]["startOffset"], by_id[created["id"]]["endOffset"]) == (11, 16)
    assert by_id[created["id"]]["anchored"] is True
    assert (by_id[gone["id"]]["startOffset"], by_id[gone["id"]]["anchored"]) == (0, False)

    # Reads never rewrite stored offsets
    stored = await annotation_store.get(created["id"])
    assert (stored["startOffset"], stored["endOffset"]) == (6, 11)


@pytest.mark.asyncio
async def test_list_for_deleted_article_is_not_found(fake_db, annotation_payload):
    article = await article_store.create({"title": "Hello", "content": "<p>Hello brave new world</p>"})
    await annotation_store.create(annotation_payload(article["id"]))

    await article_store.delete(article["id"])

    with pytest.raises(NotFound):
        await annotation_store.list_for_article(article["id"])


@pytest.mark.asyncio
async def test_list_all_includes_article_titles(fake_db, annotation_payload):
    article = await article_store.create({"title": "Hello", "content": "<p>Hello brave new world</p>"})
    await annotation_store.create(annotation_payload(article["id"]))

    (annotation,) = await annotation_store.list_all()
    assert annotation["articleTitle"] == "Hello"
    assert annotation["article"] == article["id"]


@pytest.mark.asyncio
async def test_update_annotation_comment(fake_db, annotation_payload):
    article = await article_store.create({"title": "Hello", "content": "<p>Hello brave new world</p>"})
    annotation = await annotation_store.create(annotation_payload(article["id"]))

    updated = await annotation_store.update(annotation["id"], {"comment": "Even nicer"})

    assert updated["comment"] == "Even nicer"
    assert updated["article"] == article["id"]
