"""Dependency injection container."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from db_viewer.infrastructure.config import Config, get_config
from db_viewer.infrastructure.metrics import MetricsRegistry, get_metrics

T = TypeVar("T")


class Container:
    """
    Simple dependency injection container.

    Supports singleton and factory registrations with lazy initialization.
    """

    def __init__(self) -> None:
        """Initialize the container."""
        self._factories: dict[type, Callable[[Container], Any]] = {}
        self._instances: dict[type, Any] = {}

    def register_singleton(self, interface: type[T], instance: T) -> None:
        """
        Register a ready-made instance.

        Args:
            interface: The interface/type to register
            instance: The singleton instance
        """
        self._instances[interface] = instance

    def register_factory(
        self,
        interface: type[T],
        factory: Callable[[Container], T],
    ) -> None:
        """
        Register a factory function for lazy instantiation.

        The factory runs on first resolve; its result is reused afterwards.

        Args:
            interface: The interface/type to register
            factory: Factory function that takes the container and returns an instance
        """
        self._factories[interface] = factory
        self._instances.pop(interface, None)

    def resolve(self, interface: type[T]) -> T:
        """
        Resolve a dependency.

        Raises:
            KeyError: If no registration exists for the interface
        """
        if interface in self._instances:
            return self._instances[interface]

        if interface in self._factories:
            instance = self._factories[interface](self)
            self._instances[interface] = instance
            return instance

        raise KeyError(f"No registration found for {interface}")

    def has(self, interface: type) -> bool:
        """Check if an interface is registered."""
        return interface in self._factories or interface in self._instances

    def clear(self) -> None:
        """Clear all registrations and instances."""
        self._factories.clear()
        self._instances.clear()


def create_container(config: Config | None = None, metrics: MetricsRegistry | None = None) -> Container:
    """Wire the default adapters for one viewer process.

    Registered:
        Config, MetricsRegistry, SqliteEngineFactory, AsyncioTimerScheduler.
    """
    # Adapters import infrastructure modules, so they are imported here.
    from db_viewer.adapters.outbound import AsyncioTimerScheduler, SqliteEngineFactory

    container = Container()
    container.register_singleton(Config, config or get_config())
    container.register_factory(MetricsRegistry, lambda _: metrics or get_metrics())
    container.register_factory(SqliteEngineFactory, lambda _: SqliteEngineFactory())
    container.register_factory(AsyncioTimerScheduler, lambda _: AsyncioTimerScheduler())
    return container


# Global container instance
_container: Container | None = None


def get_container() -> Container:
    """Get the global container instance."""
    global _container
    if _container is None:
        _container = create_container()
    return _container


def reset_container() -> None:
    """Reset the global container (useful for testing)."""
    global _container
    if _container is not None:
        _container.clear()
    _container = None
