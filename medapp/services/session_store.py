"""Persistence of the signed-in identity."""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..models import AuthSession, User, user_adapter
from ..repositories import UserRepository
from ..storage import KeyValueStore, StorageKeys

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Stores the current user and token under their two keys.

    Both keys are always written or removed together.
    """

    def __init__(self, store: KeyValueStore, users: UserRepository):
        self.store = store
        self.users = users

    @staticmethod
    def _validate_user(user: Any) -> User:
        try:
            return user_adapter.validate_python(user)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid user: {e}") from e

    async def sign_in(self, user: Any, token: str) -> AuthSession:
        """Persist user and token as one write."""
        if not token:
            raise ValidationError("token must be a non-empty string")
        user = self._validate_user(user)
        await self.store.set_many({
            StorageKeys.USER: user.to_document(),
            StorageKeys.TOKEN: token,
        })
        logger.info(f"Session stored for {user.id}")
        return AuthSession(user=user, token=token)

    async def register(self, user: Any, token: str) -> AuthSession:
        """Add a new user to the registered users and sign them in."""
        user = await self.users.add(user)
        return await self.sign_in(user, token)

    async def sign_out(self) -> None:
        await self.store.remove_many([StorageKeys.USER, StorageKeys.TOKEN])
        logger.info("Session cleared")

    async def current_user(self) -> Optional[User]:
        stored = await self.store.get(StorageKeys.USER)
        if stored is None:
            return None
        try:
            return self._validate_user(stored)
        except ValidationError as e:
            logger.error(f"Error loading stored user: {e}")
            return None

    async def current_token(self) -> Optional[str]:
        token = await self.store.get(StorageKeys.TOKEN)
        return token if isinstance(token, str) else None

    async def current_session(self) -> Optional[AuthSession]:
        user = await self.current_user()
        token = await self.current_token()
        if user is None or token is None:
            return None
        return AuthSession(user=user, token=token)

    async def update_user(self, user: Any) -> User:
        """Rewrite the stored user, e.g. after a profile edit."""
        user = self._validate_user(user)
        await self.store.set(StorageKeys.USER, user.to_document())
        return user
