"""User data models.

Users are a tagged union discriminated by ``role``: admins, doctors (who
carry a specialty) and patients share the same base fields.
"""

from enum import Enum
from typing import Annotated, Literal, Union
from pydantic import Field, TypeAdapter

from .base import CamelModel


class UserRole(str, Enum):
    """Roles a user can hold."""
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


class BaseUser(CamelModel):
    """Fields shared by every user role."""
    id: str = Field(..., min_length=1, description="Unique user ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email")
    image: str = Field(..., description="Avatar URL")


class Admin(BaseUser):
    role: Literal["admin"] = UserRole.ADMIN.value


class Doctor(BaseUser):
    role: Literal["doctor"] = UserRole.DOCTOR.value
    specialty: str = Field(..., description="Medical specialty")


class Patient(BaseUser):
    role: Literal["patient"] = UserRole.PATIENT.value


User = Annotated[Union[Admin, Doctor, Patient], Field(discriminator="role")]

user_adapter: TypeAdapter = TypeAdapter(User)
