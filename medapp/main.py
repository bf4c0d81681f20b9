"""
Main entry point for the medical app data layer.
Builds the storage stack and serves it over HTTP.
"""

import logging
from typing import Optional

from aiohttp import web
from dotenv import load_dotenv

from config.settings import Settings, get_settings
from medapp.api.routes import create_app
from medapp.models import AppSettings
from medapp.repositories import (
    AppointmentRepository,
    NotificationRepository,
    SettingsRepository,
    UserRepository,
)
from medapp.services import (
    AppointmentService,
    BackupManager,
    NotificationCenter,
    SessionStore,
    StatisticsService,
)
from medapp.storage import InMemoryBackend, JsonFileBackend, KeyValueStore, PersistentBackend, TTLCache

logger = logging.getLogger(__name__)


def create_backend(settings: Settings) -> PersistentBackend:
    """Build the persistent medium selected in settings."""
    if settings.storage_backend == "memory":
        return InMemoryBackend()
    return JsonFileBackend(settings.storage_path)


class DataLayer:
    """Owns one store, one cache and every repository and service on top."""

    def __init__(self, settings: Optional[Settings] = None, backend: Optional[PersistentBackend] = None):
        """
        Initialize the data layer.

        Args:
            settings: Application settings, loaded from the environment if omitted
            backend: Persistent medium, built from settings if omitted
        """
        self.settings = settings or get_settings()

        self.cache = TTLCache()
        self.store = KeyValueStore(
            backend=backend or create_backend(self.settings),
            cache=self.cache,
            namespace=self.settings.storage_namespace,
        )

        ttl = self.settings.collection_cache_ttl_minutes
        self.appointments = AppointmentRepository(self.store, ttl_minutes=ttl)
        self.notification_repository = NotificationRepository(self.store, ttl_minutes=ttl)
        self.users = UserRepository(self.store, ttl_minutes=ttl)
        self.app_settings = SettingsRepository(
            self.store,
            defaults=AppSettings(
                language=self.settings.default_language,
                theme=self.settings.default_theme,
            ),
        )

        self.notifications = NotificationCenter(self.notification_repository)
        self.statistics = StatisticsService(self.appointments, self.users)
        self.backups = BackupManager(
            self.store,
            self.appointments,
            self.notification_repository,
            self.users,
            self.app_settings,
        )
        self.sessions = SessionStore(self.store, self.users)
        self.scheduling = AppointmentService(self.appointments, self.notifications)

        logger.info(f"DataLayer initialized with {type(self.store.backend).__name__}")


def run_api_server(settings: Optional[Settings] = None) -> None:
    """Run the HTTP API server."""
    settings = settings or get_settings()
    data_layer = DataLayer(settings)
    app = create_app(data_layer)
    web.run_app(app, host=settings.api_host, port=settings.api_port)


def main() -> None:
    """Main entry point."""
    # override=True ensures .env values take precedence
    load_dotenv(override=True)
    get_settings.cache_clear()
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info(f"Starting API server ({settings.environment})")
    run_api_server(settings)


if __name__ == "__main__":
    main()
