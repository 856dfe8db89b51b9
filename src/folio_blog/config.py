"""
# Configuration Management Module

This module provides the **configuration system** for the Folio Blog backend.
Built on **Pydantic Settings**, it loads values from a config file or the process
environment, validates them at import time and exposes a single global `settings` object.

## Loading Order

1. **Environment Variable**: `FOLIO_BLOG_CONFIG_PATH` pointing at a config file.
2. **Folio Config**: `.folio` file in the project root.
3. **Dotenv Config**: `.env` file in the project root.
4. **Environment Only**: if no file is found, plain environment variables are used.

Values found in the config file are pushed into the environment with `python-dotenv`
so that every consumer sees the same values.

## Security

- `SECRET_KEY` has no usable default and is rejected when empty or when it looks like a
  placeholder (`"change"`, `"0000"`).
- `MONGODB_URL` must be non-empty.

## Usage Example

```python
from folio_blog.config import settings

print(settings.MONGODB_DATABASE)
secret = settings.SECRET_KEY.get_secret_value()
```
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
FOLIO_FILENAME: str = ".folio"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "FOLIO_BLOG_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determine the configuration file path.

    Checks, in order, the `FOLIO_BLOG_CONFIG_PATH` environment variable, a `.folio` file
    and a `.env` file in the project root.

    Returns:
        Optional[str]: Path to the configuration file, or `None` for environment-only mode.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    folio_path: Path = PROJECT_ROOT / FOLIO_FILENAME
    if folio_path.exists():
        return str(folio_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, CORS.
    *   **Security**: JWT signing secret, algorithm and token lifetime.
    *   **Database**: MongoDB connection details.
    *   **Media**: Uploads root and per-namespace size ceilings.
    *   **Backup**: Archive format version and upload ceiling.
    *   **Admin bootstrap**: Default credentials for the create-admin command.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 3001
    DEBUG: bool = False
    CORS_ORIGINS: str = ""
    DEFAULT_LOG_LEVEL: str = "INFO"

    # JWT configuration
    SECRET_KEY: SecretStr = SecretStr("")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # MongoDB configuration
    MONGODB_URL: str = ""
    MONGODB_DATABASE: str = "book-notes"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Media store
    UPLOADS_DIR: str = "uploads"
    HOME_IMAGE_MAX_BYTES: int = 5 * 1024 * 1024
    CONTENT_IMAGE_MAX_BYTES: int = 10 * 1024 * 1024
    TRAVEL_MAX_IMAGES: int = 20

    # Backup / restore
    BACKUP_FORMAT_VERSION: str = "1.0.0"
    BACKUP_MAX_ARCHIVE_BYTES: int = 500 * 1024 * 1024

    # Admin bootstrap
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_PASSWORD: SecretStr = SecretStr("admin123")

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def no_hardcoded_secrets(cls, v: Any, info: Any) -> Any:
        """
        Validate that the signing secret is set and is not a placeholder.

        Raises:
            ValueError: If the value is empty or contains placeholder text.
        """
        if not v or "change" in str(v).lower() or "0000" in str(v) or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .folio and not hardcoded!")
        return v

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """Validate that the MongoDB URL is not empty."""
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .folio and not empty!")
        return v

    @field_validator("HOME_IMAGE_MAX_BYTES", "CONTENT_IMAGE_MAX_BYTES", "TRAVEL_MAX_IMAGES", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """Validate that limits are positive integers."""
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @property
    def is_production(self) -> bool:
        """`True` when running with `DEBUG=False`."""
        return not self.DEBUG

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins parsed from the comma-separated `CORS_ORIGINS` value."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def uploads_root(self) -> Path:
        """Absolute path of the media uploads root."""
        return Path(self.UPLOADS_DIR).resolve()


settings: Settings = Settings()
