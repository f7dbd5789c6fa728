"""Application startup and shutdown for Watchkeeper.

startup() brings persisted state to a consistent baseline before any
watcher runs; shutdown() tears watchers and background tasks down within
bounded time. lifespan() wraps both for use as an async context manager.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ..models import LIVE_STATUSES, EndpointStatus, EnsureDefaults, SetAdmin, SetStatus
from ..structured_logging import get_logger, setup_logging
from .container import ApplicationContainer

logger = get_logger("watchkeeper.lifespan")


async def ensure_admin(container: ApplicationContainer) -> None:
    """Create the main admin on first run and make sure it is flagged admin."""
    admin = container.config.admin
    user = await container.user_service.ensure_user(admin.user_id, admin.display_name)
    if not user.is_admin:
        await container.users.update(admin.user_id, SetAdmin(True))
        logger.info("Main admin flag restored", user_id=admin.user_id)


async def reset_stale_statuses(container: ApplicationContainer) -> int:
    """
    Mark endpoints left in a live status by a previous process as Stopped.

    No session survives a restart, so these statuses are stale by definition.
    """
    reset = await container.endpoints.update_where(
        lambda endpoint: endpoint.status in LIVE_STATUSES, SetStatus(EndpointStatus.STOPPED)
    )
    if reset:
        logger.info("Stale watcher statuses reset", count=reset)
    return reset


async def startup(container: ApplicationContainer) -> None:
    """Prepare persisted state and start background work."""
    logger.info("Starting Watchkeeper")

    await ensure_admin(container)
    await container.config_repository.apply(EnsureDefaults())
    seeded = await container.catalog.seed_if_empty()
    await reset_stale_statuses(container)
    await container.sweeper.start()

    container.started = True
    logger.info("Watchkeeper started", seeded_versions=seeded)


async def shutdown(container: ApplicationContainer, timeout: float = 5.0) -> None:
    """Stop the sweeper, close every watcher and cancel remaining tasks."""
    logger.info("Shutting down Watchkeeper")

    await container.sweeper.stop()
    closed = await container.session_manager.shutdown()
    finished = await container.task_registry.shutdown_all(timeout=timeout)

    container.started = False
    logger.info("Watchkeeper shutdown complete", closed_sessions=closed, tasks_finished=finished)


@asynccontextmanager
async def lifespan(container: ApplicationContainer) -> AsyncIterator[ApplicationContainer]:
    """
    Run startup before the body and shutdown after it.

    Shutdown runs even if the body raises or is cancelled.
    """
    setup_logging(container.config.to_dict())
    await startup(container)
    try:
        yield container
    finally:
        try:
            await shutdown(container)
        except asyncio.CancelledError:
            logger.warning("Shutdown interrupted")
            raise
