"""Health check service."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from gitstore.exceptions import GitStoreError, UpstreamRateLimitedError
from gitstore.models.health import HealthCheckResponse, HealthStatus, ServiceHealth

if TYPE_CHECKING:
    from gitstore.services.upstream import ContentStoreClient

logger = logging.getLogger(__name__)


class HealthCheckService:
    """Service for checking system health."""

    def __init__(self, client: ContentStoreClient, version: str = "unknown") -> None:
        """
        Initialize health check service.

        Args:
            client: Content store client
            version: Application version string
        """
        self.client = client
        self.version = version

    async def check_upstream_health(self) -> ServiceHealth:
        """
        Check the content store.

        Rate limiting counts as degraded: the store is up but refusing work.
        """
        start = time.perf_counter()

        try:
            repo = await self.client.check_reachable()
        except UpstreamRateLimitedError as e:
            return ServiceHealth(
                name="content_store",
                status=HealthStatus.DEGRADED,
                message="Content store rate limited",
                details={"retry_after": e.retry_after},
            )
        except GitStoreError as e:
            logger.warning("Content store health check failed", extra=e.context)
            return ServiceHealth(
                name="content_store",
                status=HealthStatus.UNHEALTHY,
                message=f"Content store check failed: {e}",
            )

        elapsed = (time.perf_counter() - start) * 1000

        return ServiceHealth(
            name="content_store",
            status=HealthStatus.HEALTHY,
            message="Content store reachable",
            response_time_ms=elapsed,
            details={
                "repository": repo.get("full_name") if isinstance(repo, dict) else None,
                "branch": self.client.config.branch,
            },
        )

    async def check_health(self) -> HealthCheckResponse:
        """
        Perform complete health check.

        Returns:
            HealthCheckResponse with overall status and dependency details
        """
        services = [await self.check_upstream_health()]

        if any(s.status == HealthStatus.UNHEALTHY for s in services):
            overall_status = HealthStatus.UNHEALTHY
        elif any(s.status == HealthStatus.DEGRADED for s in services):
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY

        return HealthCheckResponse(
            status=overall_status,
            version=self.version,
            services=services,
        )
