"""A small service container wired once at startup.

Collaborators are registered by name, either as ready values or as factories
that run once on first resolution. Classes declare the names they need in a
``requires`` tuple and are built with :meth:`ServiceContainer.spawn`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, TypeVar

from .errors import ServiceResolutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LazyFactory:
    """Factory for lazy instantiation of a singleton service."""

    def __init__(self, factory_func: Callable[["ServiceContainer"], Any]):
        self._factory_func = factory_func
        self._instance: Any = None
        self._created = False

    def get(self, container: "ServiceContainer") -> Any:
        if not self._created:
            start_time = time.perf_counter()
            self._instance = self._factory_func(container)
            self._created = True
            create_time = time.perf_counter() - start_time
            logger.debug(f"Lazy created {self._factory_func.__name__} service in {create_time:.3f}s")
        return self._instance

    def is_created(self) -> bool:
        return self._created


class ServiceContainer:
    def __init__(self) -> None:
        self._services: Dict[str, LazyFactory] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._services

    def singleton(self, name: str, factory: Callable[["ServiceContainer"], Any]) -> None:
        """Register a factory; it receives the container and runs at most once."""
        if name in self._services:
            logger.warning(f"Service '{name}' is being replaced")
        self._services[name] = LazyFactory(factory)

    def value(self, name: str, obj: Any) -> None:
        """Register an already constructed object."""
        self.singleton(name, lambda _container: obj)

    def resolve(self, name: str) -> Any:
        try:
            factory = self._services[name]
        except KeyError:
            raise ServiceResolutionError(name) from None
        return factory.get(self)

    def spawn(self, cls: Callable[..., T], **kwargs: Any) -> T:
        """Instantiate ``cls``, filling every name in ``cls.requires`` not given in ``kwargs``."""
        for name in getattr(cls, "requires", ()):
            if name not in kwargs:
                kwargs[name] = self.resolve(name)
        return cls(**kwargs)
