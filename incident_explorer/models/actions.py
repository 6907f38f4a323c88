"""Inbound session actions sent by the rendering layer over the WebSocket.

Each message names one State Store transition (or a viewport update) and
is validated at the boundary; the ``action`` field discriminates.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from incident_explorer.domain.enums import ExtentMode, Language, TimeStep
from incident_explorer.domain.extent import ExtentBounds


class SetLanguage(BaseModel):
    action: Literal["set_language"]
    lang: Language


class SetBasemap(BaseModel):
    action: Literal["set_basemap"]
    basemap: str = Field(..., min_length=1, max_length=128)


class SetTimeExtent(BaseModel):
    action: Literal["set_time_extent"]
    start: datetime
    end: datetime


class SetCategories(BaseModel):
    action: Literal["set_categories"]
    categories: list[str] = Field(default_factory=list)


class SetSheets(BaseModel):
    action: Literal["set_sheets"]
    sheets: list[str] = Field(default_factory=list)


class ToggleCategory(BaseModel):
    action: Literal["toggle_category"]
    name: str


class SetExtentMode(BaseModel):
    action: Literal["set_extent_mode"]
    mode: ExtentMode


class SetGranularity(BaseModel):
    action: Literal["set_granularity"]
    step: TimeStep


class ResetFilters(BaseModel):
    action: Literal["reset_filters"]


class SetViewBounds(BaseModel):
    action: Literal["set_view_bounds"]
    bounds: ExtentBounds | None = None


SessionAction = Annotated[
    Union[
        SetLanguage,
        SetBasemap,
        SetTimeExtent,
        SetCategories,
        SetSheets,
        ToggleCategory,
        SetExtentMode,
        SetGranularity,
        ResetFilters,
        SetViewBounds,
    ],
    Field(discriminator="action"),
]

session_action_adapter: TypeAdapter[SessionAction] = TypeAdapter(SessionAction)
