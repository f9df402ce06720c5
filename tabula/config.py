"""
Tabula configuration — all environment variables in one place.

Read from environment at import time. Nothing is required; every setting
has a default suitable for an in-memory database.
"""

from __future__ import annotations

import os


class Settings:
    """Library settings from environment variables."""

    # Pagination
    PAGE_SIZE: int = int(os.environ.get("TABULA_PAGE_SIZE", "50"))

    # Schema defaults
    PROPERTY_WIDTH: int = int(os.environ.get("TABULA_PROPERTY_WIDTH", "200"))
    DATABASE_NAME: str = os.environ.get("TABULA_DATABASE_NAME", "Untitled Database")
    DATABASE_ICON: str = os.environ.get("TABULA_DATABASE_ICON", "🗄️")

    # Attribution for created_by / last_edited_by
    DEFAULT_ACTOR: str = os.environ.get("TABULA_DEFAULT_ACTOR", "user")

    # Snapshot format
    SNAPSHOT_VERSION: int = 1


# Singleton instance
settings = Settings()

if settings.PAGE_SIZE < 1:
    raise RuntimeError("TABULA_PAGE_SIZE must be a positive integer")
