"""Startup and shutdown for an application embedding Valta.

Usage:
    async with lifespan() as coordinator:
        await coordinator.start_activity(activity_id)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from valta.config import Settings, settings as default_settings
from valta.db.storage import (
    StorageService,
    SupabaseStorageProvider,
    create_storage_client,
)
from valta.exceptions import StorageError, SyncError
from valta.logging import configure_logging
from valta.services.refresh_service import RefreshScheduler
from valta.services.sync_service import SyncCoordinator

logger = logging.getLogger(__name__)


async def create_coordinator(settings: Settings) -> SyncCoordinator:
    client = await create_storage_client(settings)
    provider = SupabaseStorageProvider(client, settings.storage_bucket)
    return SyncCoordinator(StorageService(provider, settings=settings))


@asynccontextmanager
async def lifespan(
    settings: Optional[Settings] = None,
) -> AsyncIterator[SyncCoordinator]:
    """Configure logging, load the shared store and keep it refreshed."""
    settings = settings or default_settings
    log_file = configure_logging(settings)
    logger.info(f"Starting {settings.app_name} {settings.app_version}, logging to {log_file}")

    coordinator = await create_coordinator(settings)
    try:
        await coordinator.load_data()
    except (StorageError, SyncError) as e:
        logger.warning(f"Initial load failed: {e}. Will retry on the next refresh.")

    scheduler = RefreshScheduler(coordinator, settings.sync_interval_seconds)
    await scheduler.start()
    try:
        yield coordinator
    finally:
        scheduler.stop()
        logger.info(f"Stopped {settings.app_name}")
