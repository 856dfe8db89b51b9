"""
# Logging Manager

Central logger factory for the Folio Blog backend.

Every module obtains its logger through `get_logger(prefix="[Component]")`. The prefix is
prepended to each record so log lines from different subsystems can be told apart
without a structured logging backend.

```python
logger = get_logger(prefix="[Article Routes]")
logger.info("Created article %s", article_id)
```
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from folio_blog.config import settings

ROOT_LOGGER_NAME = "folio_blog"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


class PrefixAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER_NAME)
    level = getattr(logging, str(settings.DEFAULT_LOG_LEVEL).upper(), logging.INFO)
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> PrefixAdapter:
    """
    Return a prefixed logger under the `folio_blog` namespace.

    Args:
        name: Child logger name (defaults to the root application logger).
        prefix: Text prepended to every message, e.g. `"[DATABASE]"`.
    """
    _configure_root()
    logger_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME
    return PrefixAdapter(logging.getLogger(logger_name), {"prefix": prefix})


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log an application lifecycle event (startup, shutdown, router setup)."""
    lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
    if details:
        rendered = ", ".join(f"{key}={value}" for key, value in details.items())
        lifecycle_logger.info("%s: %s", event, rendered)
    else:
        lifecycle_logger.info("%s", event)
