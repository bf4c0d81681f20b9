"""User-facing application preferences."""

from enum import Enum
from pydantic import Field

from .base import CamelModel


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class AppSettings(CamelModel):
    """Preferences stored under the settings key."""
    notifications: bool = Field(default=True, description="Whether notifications are enabled")
    auto_backup: bool = Field(default=True, description="Whether automatic backup is enabled")
    theme: Theme = Field(default=Theme.LIGHT)
    language: str = Field(default="pt-BR", description="UI language tag")
