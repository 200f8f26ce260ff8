"""
Service dependency container.

Centralizes service creation and access without global state mutation
inside the API modules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitstore.services.details import DetailsService
    from gitstore.services.health import HealthCheckService
    from gitstore.services.upstream import ContentStoreClient


class ServiceContainer:
    """Container for all application services.

    Services are injected via FastAPI's Depends() mechanism.
    """

    def __init__(
        self,
        content_store: ContentStoreClient,
        details_service: DetailsService,
        health_service: HealthCheckService,
    ) -> None:
        """Initialize service container with all required services."""
        self.content_store = content_store
        self.details_service = details_service
        self.health_service = health_service


_container: ServiceContainer | None = None


def init_container(
    content_store: ContentStoreClient,
    details_service: DetailsService,
    health_service: HealthCheckService,
) -> None:
    """Initialize service container (called once in FastAPI lifespan).

    Args:
        content_store: ContentStoreClient shared by all services
        details_service: DetailsService for details aggregation
        health_service: HealthCheckService for readiness checks
    """
    global _container

    _container = ServiceContainer(
        content_store=content_store,
        details_service=details_service,
        health_service=health_service,
    )


def get_container() -> ServiceContainer:
    """Get service container (use via FastAPI Depends).

    Returns:
        ServiceContainer with all initialized services

    Raises:
        RuntimeError: If container not initialized (lifespan not running)
    """
    if _container is None:
        msg = "Service container not initialized - application lifespan may not be running"
        raise RuntimeError(msg)
    return _container


def reset_container() -> None:
    """Drop the current container (application shutdown and tests)."""
    global _container
    _container = None
