"""Wire models for the exported database document."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tabula.config import settings

# Python attributes stay snake_case; the JSON document is camelCase
_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SelectOptionModel(BaseModel):
    """One choice of a SELECT / MULTI_SELECT property."""

    model_config = _CAMEL

    id: str
    name: str
    color: str = "#6b7280"


class PropertyModel(BaseModel):
    """A schema column."""

    model_config = _CAMEL

    id: str = Field(min_length=1)
    name: str
    type: str
    required: bool = False
    is_visible: bool = True
    order: int = 0
    width: int = settings.PROPERTY_WIDTH
    select_options: list[SelectOptionModel] | None = None
    description: str | None = None


class RecordModel(BaseModel):
    """
    One row. `properties` is keyed by property id and left untyped;
    extra top-level fields written through record updates survive the trip.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = Field(min_length=1)
    properties: dict[str, Any] = Field(default_factory=dict)
    created_at: str
    updated_at: str
    created_by: str | None = None
    last_edited_by: str | None = None


class FilterModel(BaseModel):
    model_config = _CAMEL

    property_id: str
    operator: str
    value: Any = None


class SortModel(BaseModel):
    model_config = _CAMEL

    property_id: str
    direction: Literal["asc", "desc"] = "asc"


class BoardSettingsModel(BaseModel):
    model_config = _CAMEL

    show_ungrouped: bool = True


class ViewModel(BaseModel):
    """A saved lens over the records."""

    model_config = _CAMEL

    id: str = Field(min_length=1)
    name: str
    type: str = "TABLE"
    is_default: bool = False
    filters: list[FilterModel] = Field(default_factory=list)
    sorts: list[SortModel] = Field(default_factory=list)
    visible_properties: list[str] | None = None
    group_by: str | None = None
    board_settings: BoardSettingsModel | None = None


class PermissionsModel(BaseModel):
    model_config = _CAMEL

    can_edit: bool = True
    can_delete: bool = True
    can_share: bool = True
    can_manage_views: bool = True
    can_manage_properties: bool = True


class DatabaseModel(BaseModel):
    """
    The exported document: database metadata, schema, records and views.
    Selection, search and pagination are session state and not part of it.
    """

    model_config = _CAMEL

    version: int = settings.SNAPSHOT_VERSION
    id: str | None = None
    name: str = settings.DATABASE_NAME
    icon: str | None = settings.DATABASE_ICON
    description: str | None = ""
    is_frozen: bool = False
    is_shared: bool = False
    permissions: PermissionsModel = Field(default_factory=PermissionsModel)
    properties: list[PropertyModel] = Field(default_factory=list)
    records: list[RecordModel] = Field(default_factory=list)
    views: list[ViewModel] = Field(default_factory=list)
    current_view_id: str | None = None
