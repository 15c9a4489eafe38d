"""
xcc command-line entry point.

The :class:`Controller` wires the collaborators once at startup, loads the
plugins (which register their commands on the click group), and then hands
``argv`` to click.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, Sequence, Union

import click
from pydantic import ValidationError

from . import __version__
from .assets import AssetManager
from .commands.loader import CommandLoader
from .errors import ConfigError, XccError
from .logging_config import configure_logging
from .output import OutputHandler
from .paths import WorkingDirectory
from .plugins.manager import PluginManager
from .pm.inspector import Inspector
from .services import ServiceContainer
from .settings import AppSettings

logger = logging.getLogger(__name__)

PROG_NAME = "xcc"


class Controller:
    """The main controller of the xcc CLI."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        out: Optional[OutputHandler] = None,
        cwd: Union[str, WorkingDirectory, None] = None,
        inspector: Optional[Inspector] = None,
    ) -> None:
        self.settings = settings or AppSettings()
        self.out = out or OutputHandler()
        self.assets = AssetManager()
        self.services = ServiceContainer()
        self.group = self._build_group()
        self.command_loader = CommandLoader(
            self.group, self.out, self.assets, self.services, prog_name=PROG_NAME
        )
        self.plugin_manager = PluginManager(
            self.command_loader,
            self.assets,
            self.services,
            settings=self.settings,
            inspector=inspector or Inspector(),
        )
        self._prep_dependencies(cwd)

    @property
    def version(self) -> str:
        return __version__

    def _prep_dependencies(self, cwd: Union[str, WorkingDirectory, None]) -> None:
        services = self.services
        services.value("settings", self.settings)
        services.value("out", self.out)
        services.value("assets", self.assets)
        services.value("command_loader", self.command_loader)
        services.value("plugin_manager", self.plugin_manager)
        services.value("pm_inspector", self.plugin_manager.inspector)

        if isinstance(cwd, WorkingDirectory):
            services.value("cwd", cwd)
        else:
            services.singleton("cwd", lambda _container: WorkingDirectory(cwd))

    def _build_group(self) -> click.Group:
        controller = self

        @click.group(
            name=PROG_NAME,
            context_settings={"help_option_names": ["-h", "--help"]},
        )
        @click.version_option(__version__, "--version", prog_name=PROG_NAME)
        def xcc() -> None:
            """xcc - the pluggable command dispatcher.

            Commands are contributed by plugins; run `xcc list-commands -d`
            to see where each one comes from.
            """
            # Only reached when a sub-command runs, never for --version/--help
            controller.say_hello()

        return xcc

    def say_hello(self) -> None:
        out = self.out
        greeting = (
            out.color("XCC", "yellow")
            + out.color(f" v{self.version}", "green")
            + "\n"
            + out.color("The pluggable command dispatcher", "grey")
        )
        out.greet(greeting)

    async def boot(self) -> click.Group:
        """Load all plugins; any failure aborts startup."""
        plugins = await self.plugin_manager.load_plugins()
        logger.info(f"Loaded {len(plugins)} plugin(s), {len(self.command_loader.entries)} command(s)")
        return self.group


def build_cli(settings: Optional[AppSettings] = None, **kwargs) -> Controller:
    """Create a controller and load its plugins."""
    controller = Controller(settings=settings, **kwargs)
    asyncio.run(controller.boot())
    return controller


def main(argv: Optional[Sequence[str]] = None) -> None:
    try:
        try:
            settings = AppSettings()
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
        configure_logging(settings.log_level, settings.log_format)
        controller = build_cli(settings)
    except XccError as exc:
        exc.show()
        sys.exit(exc.exit_code)

    controller.group.main(args=list(argv) if argv is not None else None, prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
