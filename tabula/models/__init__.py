"""
Pydantic models for Tabula.

The JSON wire shapes of an exported database. No imports from the store.
"""

from tabula.models.database import (
    BoardSettingsModel,
    DatabaseModel,
    FilterModel,
    PermissionsModel,
    PropertyModel,
    RecordModel,
    SelectOptionModel,
    SortModel,
    ViewModel,
)

__all__ = [
    "BoardSettingsModel",
    "DatabaseModel",
    "FilterModel",
    "PermissionsModel",
    "PropertyModel",
    "RecordModel",
    "SelectOptionModel",
    "SortModel",
    "ViewModel",
]
