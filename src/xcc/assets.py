"""Lazy dependency and namespace registry shared with plugins.

Plugins receive the :class:`AssetManager` in their ``init_dependencies`` and
``init_namespaces`` hooks. Dependencies are registered as module names and
imported on first access; namespaces map a dotted prefix onto a directory so
that command classes can be referenced as ``"prefix.module:ClassName"`` without
the plugin directory being on ``sys.path``.
"""

import importlib
import importlib.util
import logging
import sys
import time
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Optional, Tuple, Union

from .errors import CommandResolutionError

logger = logging.getLogger(__name__)


class LazyModule:
    """Lazy module loader that imports modules only when first accessed."""

    def __init__(self, module_name: str, package: Optional[str] = None):
        self._module_name = module_name
        self._package = package
        self._module: Optional[ModuleType] = None

    @property
    def loaded(self) -> bool:
        return self._module is not None

    def load(self) -> ModuleType:
        if self._module is None:
            start_time = time.perf_counter()
            self._module = importlib.import_module(self._module_name, self._package)
            load_time = time.perf_counter() - start_time
            logger.debug(f"Lazy loaded module {self._module_name} in {load_time:.3f}s")
        return self._module

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.load(), name)

    def __dir__(self) -> list:
        return dir(self.load())


class AssetManager:
    """Registry of lazily imported dependencies and plugin namespaces."""

    def __init__(self) -> None:
        self._dependencies: Dict[str, LazyModule] = {}
        self._aliases: Dict[str, str] = {}
        self._namespaces: Dict[str, Path] = {}

    # ------------------------------------------------------------------ #
    #   Dependencies
    # ------------------------------------------------------------------ #
    def register_dependencies(self, dependencies: Dict[str, str]) -> None:
        """Register ``alias -> module name`` pairs. Nothing is imported yet."""
        for alias, module_name in dependencies.items():
            if alias in self._dependencies:
                logger.warning(f"Dependency '{alias}' re-registered as {module_name}")
            self._dependencies[alias] = LazyModule(module_name)

    def add_dependency_aliases(self, aliases: Dict[str, str]) -> None:
        """Register ``alias -> existing dependency name`` pairs."""
        self._aliases.update(aliases)

    def dep(self, name: str) -> LazyModule:
        name = self._aliases.get(name, name)
        try:
            return self._dependencies[name]
        except KeyError:
            raise KeyError(f"Unknown dependency '{name}'") from None

    def deps(self, *names: str) -> Tuple[LazyModule, ...]:
        return tuple(self.dep(name) for name in names)

    # ------------------------------------------------------------------ #
    #   Namespaces
    # ------------------------------------------------------------------ #
    @property
    def namespaces(self) -> Dict[str, Path]:
        return dict(self._namespaces)

    def register_namespace(self, prefix: str, directory: Union[str, Path]) -> None:
        """Map the dotted ``prefix`` onto ``directory``."""
        self._namespaces[prefix.strip(".")] = Path(directory).resolve()
        logger.debug(f"Registered namespace {prefix} -> {directory}")

    def _namespace_file(self, module_name: str) -> Optional[Path]:
        # Longest registered prefix wins
        for prefix in sorted(self._namespaces, key=len, reverse=True):
            if module_name == prefix or module_name.startswith(prefix + "."):
                rest = module_name[len(prefix):].strip(".")
                base = self._namespaces[prefix]
                if not rest:
                    return base / "__init__.py"
                candidate = base.joinpath(*rest.split("."))
                if candidate.with_suffix(".py").is_file():
                    return candidate.with_suffix(".py")
                return candidate / "__init__.py"
        return None

    def import_module(self, module_name: str) -> ModuleType:
        """Import ``module_name`` from a registered namespace, else normally."""
        if module_name in sys.modules:
            return sys.modules[module_name]
        path = self._namespace_file(module_name)
        if path is None:
            return importlib.import_module(module_name)
        if not path.is_file():
            raise ModuleNotFoundError(f"No module file for {module_name} at {path}")
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ModuleNotFoundError(f"Cannot build an import spec for {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[module_name]
            raise
        return module

    def resolve_class(self, ref: Union[str, type]) -> type:
        """Resolve a class object or a ``"package.module:ClassName"`` reference."""
        if isinstance(ref, type):
            return ref
        module_name, sep, attr = ref.partition(":")
        if not sep:
            module_name, _, attr = ref.rpartition(".")
        if not module_name or not attr:
            raise CommandResolutionError(ref, "expected 'package.module:ClassName'")
        try:
            module = self.import_module(module_name)
        except Exception as exc:
            raise CommandResolutionError(ref, f"{type(exc).__name__}: {exc}") from exc
        try:
            resolved = getattr(module, attr)
        except AttributeError:
            raise CommandResolutionError(ref, f"module {module_name} has no attribute {attr}") from None
        if not isinstance(resolved, type):
            raise CommandResolutionError(ref, "not a class")
        return resolved
