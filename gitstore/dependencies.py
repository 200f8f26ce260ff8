from __future__ import annotations

from typing import TYPE_CHECKING

from gitstore.services.container import get_container

if TYPE_CHECKING:
    from gitstore.services.details import DetailsService
    from gitstore.services.health import HealthCheckService


async def get_details_service() -> DetailsService:
    """Get details service via dependency injection."""
    container = get_container()
    return container.details_service


async def get_health_service() -> HealthCheckService:
    """Get health check service via dependency injection."""
    container = get_container()
    return container.health_service
