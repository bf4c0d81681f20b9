"""Notification collection."""

from pydantic import TypeAdapter

from ..models import Notification
from ..storage import StorageKeys
from .base import CollectionRepository


class NotificationRepository(CollectionRepository[Notification]):
    """Notifications for every user, stored under the notifications key."""

    key = StorageKeys.NOTIFICATIONS
    adapter = TypeAdapter(Notification)
    models = (Notification,)
    entity_name = "notification"
