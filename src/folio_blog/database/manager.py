"""
# Database Manager

This module owns the **MongoDB connection lifecycle** for the Folio Blog backend.
It wraps a single Motor client and hands out collections to the resource stores.

## Responsibilities

- **Connection**: `connect()` builds the Motor client with pool settings and retries with
  exponential backoff (1s, 2s) before giving up.
- **Health**: `health_check()` pings the server without raising.
- **Collections**: `get_collection(name)` returns a Motor collection for the stores.
- **Indexes**: `create_indexes()` ensures the uniqueness and sort indexes the stores rely on.
  Index failures are logged and do not abort startup.

## Collections

| Collection    | Indexes                                  |
|---------------|------------------------------------------|
| `users`       | `username` (unique)                      |
| `categories`  | `name` (unique), `sortOrder`             |
| `articles`    | `createdAt`, `category`                  |
| `annotations` | `article`, `createdAt`                   |
| `bookmarks`   | `(category, order)`                      |
| `events`      | `date`                                   |
| `travels`     | `date`                                   |
| `photos`      | `createdAt`                              |

## Usage Example

```python
from folio_blog.database import db_manager

await db_manager.connect()
articles = db_manager.get_collection("articles")
await articles.find_one({"title": "Hello"})
await db_manager.disconnect()
```
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from folio_blog.config import settings
from folio_blog.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

MAX_POOL_SIZE = 50
MIN_POOL_SIZE = 5


class DatabaseManager:
    """
    Manages the MongoDB connection and collection access.

    **Lifecycle:**
    1. **Instantiation**: `client` and `database` start as `None`.
    2. **Connection**: `connect()` establishes the client and pings the server.
    3. **Operations**: stores call `get_collection()`.
    4. **Shutdown**: `disconnect()` closes the pool.

    Attributes:
        client: The Motor client, `None` until connected.
        database: The selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    async def connect(self):
        """
        Establish the MongoDB connection with exponential backoff.

        Credentials from `MONGODB_USERNAME`/`MONGODB_PASSWORD` are injected into the
        connection string when both are set.

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after all attempts.
            ConnectionFailure: If authentication fails on the last attempt.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)

                if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
                    password = settings.MONGODB_PASSWORD.get_secret_value()
                    connection_string = (
                        f"mongodb://{settings.MONGODB_USERNAME}:"
                        f"{password}@"
                        f"{settings.MONGODB_URL.replace('mongodb://', '')}"
                    )
                    db_logger.debug("Using authenticated connection to MongoDB")
                else:
                    connection_string = settings.MONGODB_URL
                    db_logger.debug("Using unauthenticated connection to MongoDB")

                db_logger.info(
                    "MongoDB connection config - Database: %s, MaxPool: %d, MinPool: %d, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_DATABASE,
                    MAX_POOL_SIZE,
                    MIN_POOL_SIZE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    connection_string,
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=MAX_POOL_SIZE,
                    minPoolSize=MIN_POOL_SIZE,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    async def disconnect(self):
        """Close the Motor client and release pooled connections."""
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client:
            self.client.close()
            perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
            db_logger.info("Successfully disconnected from MongoDB")
        else:
            db_logger.warning("Disconnect called but no active MongoDB connection found")

    async def health_check(self) -> bool:
        """
        Ping MongoDB.

        Returns:
            `True` if the server responds, `False` otherwise. Never raises.
        """
        start_time = time.time()
        try:
            if self.client is None:
                health_logger.warning("Health check failed: No database client available")
                return False
            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            health_logger.error("Database health check failed: %s", e)
            return False
        except Exception as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a Motor collection from the connected database.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            raise ConnectionError("Database not connected")
        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes the resource stores depend on."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        index_specs: Dict[str, list] = {
            "users": [("username", {"unique": True})],
            "categories": [("name", {"unique": True}), ("sortOrder", {})],
            "articles": [([("createdAt", DESCENDING)], {}), ("category", {})],
            "annotations": [("article", {}), ([("createdAt", ASCENDING)], {})],
            "bookmarks": [([("category", ASCENDING), ("order", ASCENDING)], {})],
            "events": [([("date", DESCENDING)], {})],
            "travels": [([("date", DESCENDING)], {})],
            "photos": [([("createdAt", DESCENDING)], {})],
        }

        for collection_name, specs in index_specs.items():
            db_logger.info("Creating indexes for '%s' collection", collection_name)
            collection = self.get_collection(collection_name)
            for field_spec, options in specs:
                await self._create_index_if_not_exists(collection, field_spec, options)

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)
        db_logger.info("Database indexes created successfully")

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()
        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except Exception as e:
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time)
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)


db_manager = DatabaseManager()
