"""Registered user collection."""

from typing import Any, List, Optional

from ..errors import ValidationError
from ..models import Admin, Doctor, Patient, User, UserRole, user_adapter
from ..storage import StorageKeys
from .base import CollectionRepository


class UserRepository(CollectionRepository[User]):
    """
    Registered users of every role.

    Emails are unique across the collection, compared case-insensitively.
    """

    key = StorageKeys.REGISTERED_USERS
    adapter = user_adapter
    models = (Admin, Doctor, Patient)
    entity_name = "user"

    def _check_new(self, records: List[Any], entity: User) -> None:
        super()._check_new(records, entity)
        email = entity.email.lower()
        if any(isinstance(r, dict) and str(r.get("email", "")).lower() == email for r in records):
            raise ValidationError(f"email {entity.email} is already registered")

    async def find_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        for user in await self.get_all():
            if user.email.lower() == email:
                return user
        return None

    async def with_role(self, role: UserRole) -> List[User]:
        role_value = UserRole(role).value
        return [u for u in await self.get_all() if u.role == role_value]

    async def doctors(self) -> List[User]:
        return await self.with_role(UserRole.DOCTOR)

    async def patients(self) -> List[User]:
        return await self.with_role(UserRole.PATIENT)
