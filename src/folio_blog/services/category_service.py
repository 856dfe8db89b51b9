"""Category store: unique names, ordered by `sortOrder`."""

from pymongo import ASCENDING

from folio_blog.models.content_models import CategoryCreate
from folio_blog.services.resource_store import ResourceStore


class CategoryStore(ResourceStore):
    collection_name = "categories"
    resource_label = "Category"
    create_model = CategoryCreate
    default_sort = [("sortOrder", ASCENDING), ("createdAt", ASCENDING)]
    unique_fields = ("name",)


category_store = CategoryStore()
