"""Authenticated session model."""

from pydantic import Field

from .base import CamelModel
from .user import User


class AuthSession(CamelModel):
    """The signed-in user and their token."""
    user: User
    token: str = Field(..., min_length=1)
