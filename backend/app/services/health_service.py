"""
Health service.
Reports uptime and the state of the billing database.
"""

import time
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.services.base_service import BaseService
from app.db.repositories.health_repository import HealthRepository
from app.schemas.health import HealthResponse


class HealthService(BaseService):
    """Service for health check operations. One instance lives for the whole process."""

    def __init__(self):
        super().__init__()
        self.start_time = time.time()

    async def get_health(self, session: AsyncSession) -> HealthResponse:
        """
        Get system health status.

        Args:
            session: Request-scoped database session

        Returns:
            HealthResponse with status, uptime, and checks
        """
        uptime_seconds = int(time.time() - self.start_time)
        uptime_str = f"PT{uptime_seconds}S"  # ISO 8601 duration format

        repo = HealthRepository(session=session)
        checks = {"database": "ok" if await repo.check_database() else "error"}
        if checks["database"] == "ok":
            checks["billing_tables"] = "ok" if await repo.check_billing_tables() else "error"

        status = "ok" if all(check == "ok" for check in checks.values()) else "degraded"

        return HealthResponse(
            status=status,
            version=settings.VERSION,
            uptime=uptime_str,
            checks=checks,
        )
