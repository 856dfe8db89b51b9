"""
# Backup Models

Models for the portable backup archive and the reports produced when it is imported.

## Archive Layout

```
blog-backup-<timestamp>.zip
├── data.json
└── images/
    ├── articles/<filename>
    ├── home/<filename>
    ├── photos/<filename>
    └── travels/<filename>
```

`data.json` holds the envelope `{version, exportDate, description, data}`, where `data` maps
each entry of `RESOURCE_TYPES` to its records (bookmarks grouped by category, home as a
single object). Every media-pointing field inside it, including images inlined in article
content, is an archive-relative path (`images/<namespace>/<filename>`), and every
annotation carries the title of its article (`articleTitle`) so it can be re-linked after
ids are regenerated.
"""

from typing import Dict, List, Optional

from pydantic import Field

from folio_blog.models.common import CamelModel

# Import order; annotations must follow articles
RESOURCE_TYPES = [
    "categories",
    "articles",
    "photos",
    "bookmarks",
    "events",
    "travels",
    "home",
    "annotations",
]


class ImportItemError(CamelModel):
    name: str
    error: str


class ResourceImportResult(CamelModel):
    success: int = 0
    failed: int = 0
    errors: List[ImportItemError] = Field(default_factory=list)

    def record_success(self):
        self.success += 1

    def record_failure(self, name: str, error: str):
        self.failed += 1
        self.errors.append(ImportItemError(name=name, error=error))


class ImportReport(CamelModel):
    """Per-resource outcome of a backup import; never atomic."""

    version: str
    results: Dict[str, ResourceImportResult] = Field(default_factory=dict)
    total_success: int = 0
    total_failed: int = 0


class ArchiveValidationReport(CamelModel):
    valid: bool
    version: Optional[str] = None
    counts: Dict[str, int] = Field(default_factory=dict)
    media_files: int = 0
    missing_media: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
