"""
Dependency injection container using dependency-injector.
Holds the process-wide singletons.
"""

from dependency_injector import containers, providers

from fx_catalog.db.session import get_session_factory
from fx_catalog.services.health_service import HealthService
from fx_catalog.controllers.health_controller import HealthController


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""
    
    # Configuration
    config = providers.Configuration()
    
    # Services
    health_service = providers.Singleton(
        HealthService,
        session_factory_provider=get_session_factory,
    )
    
    # Controllers
    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )


# Global container instance
_container: Container = None


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def set_container(container: Container) -> None:
    global _container
    _container = container
