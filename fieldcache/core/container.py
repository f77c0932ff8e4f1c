"""Dependency injection container for the field cache."""

from dependency_injector import containers, providers

from fieldcache.core.config import Settings
from fieldcache.core.cache import RedisBackend, create_redis_client
from fieldcache.core.database import Database
from fieldcache.core.logging import configure_logging, get_logger
from fieldcache.services.field_cache import FieldCache
from fieldcache.services.registry import FieldRegistry

logger = get_logger(__name__)


def _entity_loader(database: Database):
    return database.load


class Container(containers.DeclarativeContainer):
    """Field cache dependency injection container."""

    # Settings
    settings = providers.Singleton(
        Settings,
    )

    # Shared Redis client, built once from REDISTOGO_URL / REDIS_URL / REDIS_DB_NUM
    redis_client = providers.Singleton(
        create_redis_client,
        settings=settings
    )

    backend = providers.Singleton(
        RedisBackend,
        client=redis_client
    )

    # Entity loader for read-through by identifier
    database = providers.Singleton(
        Database,
        settings=settings
    )

    # Process-wide field registry, written while entity types are defined
    registry = providers.Singleton(
        FieldRegistry
    )

    field_cache = providers.Singleton(
        FieldCache,
        backend=backend,
        registry=registry,
        loader=providers.Callable(_entity_loader, database=database),
        single_flight=settings.provided.cache_single_flight,
    )


def startup(container: Container) -> FieldCache:
    """Configure logging, connect Redis and the database, return the field cache."""
    configure_logging(container.settings())
    container.backend().startup()
    container.database().startup()
    logger.info("Field cache started")
    return container.field_cache()


def shutdown(container: Container) -> None:
    container.backend().shutdown()
    container.database().shutdown()
    logger.info("Field cache shutdown complete")
