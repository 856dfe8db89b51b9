"""Timeline event store, newest date first."""

from pymongo import DESCENDING

from folio_blog.models.content_models import EventCreate
from folio_blog.services.resource_store import ResourceStore


class EventStore(ResourceStore):
    collection_name = "events"
    resource_label = "Event"
    create_model = EventCreate
    default_sort = [("date", DESCENDING), ("createdAt", DESCENDING)]


event_store = EventStore()
