"""
Dependency injection container using dependency-injector.
The health service lives for the whole process; billing controllers are
built per request around the request's session.
"""

from dependency_injector import containers, providers

from app.core.config import settings
from app.services.health_service import HealthService
from app.controllers.health_controller import HealthController
from app.controllers.proposal_controller import ProposalController
from app.controllers.bill_controller import BillController


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    config = providers.Configuration()

    health_service = providers.Singleton(HealthService)

    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )

    # Callers pass session=<AsyncSession>
    proposal_controller = providers.Factory(ProposalController)
    bill_controller = providers.Factory(BillController)


_container: Container = None


def build_container() -> Container:
    container = Container()
    container.config.from_dict({
        "version": settings.VERSION,
        "default_currency": settings.DEFAULT_CURRENCY,
    })
    return container


def get_container() -> Container:
    """Return the process container, building it on first use outside the app lifespan."""
    global _container
    if _container is None:
        _container = build_container()
    return _container


def set_container(container: Container) -> None:
    global _container
    _container = container
