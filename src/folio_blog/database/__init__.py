"""
# Database Package

Persistence layer for the Folio Blog backend, built on **Motor** (async MongoDB driver).

The `db_manager` instance is a **module-level singleton** so that a single connection pool
is shared by every resource store. It is created at import time without I/O; the actual
connection is made during application startup via `db_manager.connect()`.

```python
from folio_blog.database import db_manager

await db_manager.connect()
categories = db_manager.get_collection("categories")
```
"""

from folio_blog.database.manager import DatabaseManager, db_manager

__all__ = ["DatabaseManager", "db_manager"]
