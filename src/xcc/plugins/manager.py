"""Plugin loading and lifecycle hook execution."""

from __future__ import annotations

import importlib.util
import inspect
import itertools
import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Union

import yaml
from pydantic import ValidationError

from xcc.errors import LifecycleHookError, PluginLoadError, UnsupportedPackageManagerError
from xcc.plugins.models import PluginDescriptor, PluginPackageMetadata

if TYPE_CHECKING:
    from xcc.assets import AssetManager
    from xcc.commands.loader import CommandLoader
    from xcc.pm.inspector import Inspector
    from xcc.services import ServiceContainer
    from xcc.settings import AppSettings

logger = logging.getLogger(__name__)

PLUGIN_ENTRY_FILE = "xcc_plugin.py"
PLUGIN_METADATA_FILE = "plugin.yaml"

BUILTIN_PLUGIN_PATH = Path(__file__).resolve().parent.parent / "builtin"

_module_counter = itertools.count()


class PluginManager:
    """Loads plugins from directories and runs their init hooks."""

    def __init__(
        self,
        command_loader: CommandLoader,
        assets: AssetManager,
        services: ServiceContainer,
        settings: Optional[AppSettings] = None,
        inspector: Optional[Inspector] = None,
    ) -> None:
        self.command_loader = command_loader
        self.assets = assets
        self.services = services
        self.settings = settings
        self.inspector = inspector
        self._plugins: List[PluginDescriptor] = []

    @property
    def plugins(self) -> List[PluginDescriptor]:
        """Loaded plugins, in load order."""
        return list(self._plugins)

    async def load_plugins(self) -> List[PluginDescriptor]:
        """Load the built-in plugin, configured plugin paths, then discovered plugins."""
        paths: List[Union[str, Path]] = [BUILTIN_PLUGIN_PATH]
        if self.settings is not None:
            paths.extend(self.settings.plugin_paths)
            if self.settings.discover_plugins:
                paths.extend(await self._discover())

        loaded = []
        for path in paths:
            loaded.append(await self.load_plugin_at(path))
        return loaded

    async def _discover(self) -> List[Path]:
        if self.inspector is None or self.settings is None:
            return []
        try:
            candidates = await self.inspector.get_global_modules_matching(self.settings.plugin_prefix)
        except UnsupportedPackageManagerError as exc:
            logger.warning(f"Plugin discovery skipped: {exc.message}")
            return []
        found = [Path(c) for c in candidates if (Path(c) / PLUGIN_ENTRY_FILE).is_file()]
        logger.info(f"Discovered {len(found)} installed plugin(s)")
        return found

    async def load_plugin_at(self, path: Union[str, Path]) -> PluginDescriptor:
        """Load the plugin rooted at ``path`` and run its hooks.

        Raises:
            PluginLoadError: entry file or metadata missing, broken or malformed
            LifecycleHookError: one of the plugin's hooks failed
        """
        root = Path(path).expanduser().resolve()
        plugin = self._load_entry(root)
        metadata = self._load_metadata(root)

        # Stamp package information onto the descriptor
        plugin = replace(
            plugin, package_name=metadata.name, version=metadata.version, path=str(root)
        )
        logger.info(f"Loading plugin '{plugin.name}' ({plugin.package_name}:{plugin.version}) from {root}")

        await self._run_hook(plugin, "init_dependencies", self.assets)
        await self._run_hook(plugin, "init_namespaces", self.assets)
        await self._run_hook(plugin, "init_services", self.services, self.services.spawn)
        await self._run_hook(plugin, "init_commands", self.command_loader)

        self._plugins.append(plugin)
        return plugin

    def _load_entry(self, root: Path) -> PluginDescriptor:
        entry = root / PLUGIN_ENTRY_FILE
        if not entry.is_file():
            raise PluginLoadError(str(root), f"{PLUGIN_ENTRY_FILE} not found")

        module_name = f"_xcc_plugin_{next(_module_counter)}"
        spec = importlib.util.spec_from_file_location(module_name, entry)
        if spec is None or spec.loader is None:
            raise PluginLoadError(str(root), f"cannot import {entry}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise PluginLoadError(str(root), f"{type(exc).__name__}: {exc}") from exc

        plugin = getattr(module, "plugin", None)
        if not isinstance(plugin, PluginDescriptor):
            raise PluginLoadError(
                str(root), f"{PLUGIN_ENTRY_FILE} must define `plugin` as a PluginDescriptor"
            )
        return plugin

    def _load_metadata(self, root: Path) -> PluginPackageMetadata:
        metadata_path = root / PLUGIN_METADATA_FILE
        try:
            raw = yaml.safe_load(metadata_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise PluginLoadError(str(root), f"{PLUGIN_METADATA_FILE} not found") from None
        except (OSError, yaml.YAMLError) as exc:
            raise PluginLoadError(str(root), f"unreadable {PLUGIN_METADATA_FILE}: {exc}") from exc

        if not isinstance(raw, dict):
            raise PluginLoadError(str(root), f"{PLUGIN_METADATA_FILE} must be a mapping")
        try:
            return PluginPackageMetadata.model_validate(raw)
        except ValidationError as exc:
            raise PluginLoadError(str(root), f"invalid {PLUGIN_METADATA_FILE}: {exc}") from exc

    async def _run_hook(self, plugin: PluginDescriptor, hook_name: str, *args: Any) -> None:
        hook = getattr(plugin, hook_name)
        if hook is None:
            return
        logger.debug(f"Running {hook_name}() for plugin '{plugin.name}'")
        try:
            result = hook(plugin, *args)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            details = getattr(exc, "message", None) or f"{type(exc).__name__}: {exc}"
            raise LifecycleHookError(plugin.name, hook_name, details) from exc
