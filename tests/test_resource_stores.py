from datetime import datetime, timezone

import pytest

from folio_blog.services.bookmark_service import bookmark_store
from folio_blog.services.category_service import category_store
from folio_blog.services.event_service import event_store
from folio_blog.services.resource_store import parse_timestamp
from folio_blog.utils.errors import Conflict, NotFound, ValidationError


@pytest.mark.asyncio
async def test_create_category_returns_id_and_fields(fake_db):
    category = await category_store.create({"name": "Tech", "icon": "💻", "sortOrder": 1})

    assert category["id"]
    assert category["name"] == "Tech"
    assert category["sortOrder"] == 1
    assert "_id" not in category
    assert category["createdAt"] == category["updatedAt"]

    fetched = await category_store.get(category["id"])
    assert fetched["name"] == "Tech"


@pytest.mark.asyncio
async def test_categories_are_listed_by_sort_order(fake_db):
    await category_store.create({"name": "Later", "sortOrder": 2})
    await category_store.create({"name": "First", "sortOrder": 1})
    await category_store.create({"name": "Last", "sortOrder": 5})

    names = [category["name"] for category in await category_store.list()]
    assert names == ["First", "Later", "Last"]


@pytest.mark.asyncio
async def test_duplicate_category_name_is_a_conflict(fake_db):
    await category_store.create({"name": "Tech"})
    with pytest.raises(Conflict):
        await category_store.create({"name": "Tech"})
    assert len(fake_db.get_collection("categories").documents) == 1


@pytest.mark.asyncio
async def test_renaming_onto_an_existing_name_is_a_conflict(fake_db):
    await category_store.create({"name": "Tech"})
    life = await category_store.create({"name": "Life"})
    with pytest.raises(Conflict):
        await category_store.update(life["id"], {"name": "Tech"})


@pytest.mark.asyncio
async def test_blank_category_name_is_rejected(fake_db):
    with pytest.raises(ValidationError) as exc_info:
        await category_store.create({"name": "   "})
    assert "name" in exc_info.value.message


@pytest.mark.asyncio
async def test_partial_update_keeps_unspecified_fields(fake_db):
    category = await category_store.create({"name": "Tech", "icon": "💻", "sortOrder": 3})

    updated = await category_store.update(category["id"], {"icon": "🖥"})

    assert updated["icon"] == "🖥"
    assert updated["name"] == "Tech"
    assert updated["sortOrder"] == 3
    assert updated["createdAt"] == category["createdAt"]
    assert updated["updatedAt"] >= category["updatedAt"]


@pytest.mark.asyncio
@pytest.mark.parametrize("resource_id", ["not-an-id", "", "65a000000000000000000000"])
async def test_unknown_or_malformed_ids_are_not_found(fake_db, resource_id):
    with pytest.raises(NotFound):
        await category_store.get(resource_id)
    with pytest.raises(NotFound):
        await category_store.update(resource_id, {"name": "x"})
    with pytest.raises(NotFound):
        await category_store.delete(resource_id)


@pytest.mark.asyncio
async def test_delete_removes_document(fake_db):
    category = await category_store.create({"name": "Tech"})
    await category_store.delete(category["id"])
    with pytest.raises(NotFound):
        await category_store.get(category["id"])


@pytest.mark.asyncio
async def test_batch_delete_counts_only_existing_ids(fake_db):
    first = await category_store.create({"name": "A"})
    second = await category_store.create({"name": "B"})
    kept = await category_store.create({"name": "C"})

    deleted = await category_store.batch_delete([first["id"], second["id"], "65a000000000000000000000", "garbage"])

    assert deleted == 2
    assert [category["id"] for category in await category_store.list()] == [kept["id"]]


@pytest.mark.asyncio
async def test_batch_delete_with_no_valid_ids(fake_db):
    assert await category_store.batch_delete(["garbage"]) == 0


@pytest.mark.asyncio
async def test_bookmarks_are_grouped_by_category_and_ordered(fake_db):
    await bookmark_store.create({"title": "PyPI", "url": "https://pypi.org", "category": "Python", "order": 2})
    await bookmark_store.create({"title": "Docs", "url": "https://docs.python.org", "category": "Python", "order": 1})
    await bookmark_store.create({"title": "MDN", "url": "https://developer.mozilla.org", "category": "Web"})

    grouped = await bookmark_store.list_grouped()

    assert list(grouped) == ["Python", "Web"]
    assert [bookmark["title"] for bookmark in grouped["Python"]] == ["Docs", "PyPI"]
    assert await bookmark_store.categories() == ["Python", "Web"]


@pytest.mark.asyncio
async def test_bookmark_requires_category(fake_db):
    with pytest.raises(ValidationError):
        await bookmark_store.create({"title": "PyPI", "url": "https://pypi.org"})


@pytest.mark.asyncio
async def test_events_are_listed_newest_first(fake_db):
    await event_store.create({"title": "Old", "date": "2022-03-01T00:00:00Z"})
    await event_store.create({"title": "New", "date": "2024-06-01T00:00:00Z"})
    await event_store.create({"title": "Middle", "date": "2023-01-15T00:00:00Z"})

    assert [event["title"] for event in await event_store.list()] == ["New", "Middle", "Old"]


@pytest.mark.asyncio
async def test_event_requires_a_date(fake_db):
    with pytest.raises(ValidationError) as exc_info:
        await event_store.create({"title": "Undated"})
    assert "date" in exc_info.value.message


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2019-05-01T00:00:00Z", datetime(2019, 5, 1, tzinfo=timezone.utc)),
        ("2019-05-01T10:00:00+02:00", datetime(2019, 5, 1, 8, tzinfo=timezone.utc)),
        ("2019-05-01", datetime(2019, 5, 1, tzinfo=timezone.utc)),
        ("yesterday", None),
        ("", None),
        (None, None),
        (1556668800, None),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected
