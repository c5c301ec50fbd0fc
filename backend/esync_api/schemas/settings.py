"""
eSync+ API — App Settings and Sidebar Schemas
==============================================

What:  Models for the key/value settings endpoints, the module registry and
       the sidebar configuration.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from esync_api.navigation import SEPARATOR_COLORS, SEPARATOR_THICKNESSES


class AppSettingsUpdate(BaseModel):
    category: str = Field(min_length=1, max_length=100)
    settings: Dict[str, Any] = Field(description="key: value pairs; values are stored as text")


class AppSettingsUpdateResponse(BaseModel):
    success: bool = True
    category: str
    count: int = Field(description="Number of keys written")


class AppModuleResponse(BaseModel):
    id: str
    label: str
    path: str


class SidebarMenuItem(BaseModel):
    """
    One sidebar entry. Order in the list is display order.

    `module_id` wins over `link`: when set, the stored link is the module's
    path. `icon_data_url` is the older inline form of `icon_path`.
    """
    id: str = Field(max_length=100)
    type: Literal["menu", "separator"] = "menu"
    label: str = Field(default="", max_length=255)
    link: str = Field(default="", max_length=500)
    module_id: Optional[str] = None
    icon_path: Optional[str] = None
    icon_data_url: Optional[str] = None
    separator_color: Optional[str] = None
    separator_thickness: Optional[int] = None

    @field_validator("separator_color")
    @classmethod
    def validate_separator_color(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SEPARATOR_COLORS:
            raise ValueError(f"Invalid separator_color '{v}'. Must be one of: {sorted(SEPARATOR_COLORS)}")
        return v

    @field_validator("separator_thickness")
    @classmethod
    def validate_separator_thickness(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in SEPARATOR_THICKNESSES:
            raise ValueError(f"Invalid separator_thickness {v}. Must be one of: {list(SEPARATOR_THICKNESSES)}")
        return v


class SidebarHeader(BaseModel):
    title: str = Field(default="", max_length=100)
    logo_path: Optional[str] = Field(default=None, max_length=500)


class SidebarResponse(BaseModel):
    header: SidebarHeader
    menus: List[SidebarMenuItem]
