"""Provides the 'node-watch' command."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

from xcc.commands.base import BaseModuleCommand
from xcc.process import ProcessSupervisor

logger = logging.getLogger(__name__)


class NodeWatch(BaseModuleCommand):
    command = "node-watch"
    description = "Executes a Node.js script (i.e. application) and restarts it when the project source changes."
    examples = (
        "node-watch",
        "node-watch -f ./lib/index.js",
        "node-watch -i python3 -f app.py",
    )
    requires = ("cwd", "settings", "assets")

    def __init__(self, settings, assets, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.settings = settings
        self.assets = assets
        self.project_marker = settings.project_marker
        self.supervisor: Optional[ProcessSupervisor] = None
        # Change source for the watch loop; None means watchfiles.awatch
        self.watcher_factory = None

    @classmethod
    def configure(cls, cmd, out) -> None:
        cmd.option(
            "-f",
            "--file",
            metavar="STRING",
            default=None,
            help="Allows the script to be specified instead of the default.",
        ).option(
            "-i",
            "--interpreter",
            metavar="BINARY",
            default=None,
            help="Runs the script with BINARY instead of XCC_NODE_BINARY (default: node).",
        )

    async def resolve_script(self) -> Path:
        return self.cwd.normalize_child_path(self.options.get("file") or self.settings.default_script)

    async def build_argv(self) -> List[str]:
        interpreter = self.options.get("interpreter") or self.settings.node_binary
        return [interpreter, str(await self.resolve_script())]

    async def get_watch_paths(self) -> List[str]:
        module_root = await self.get_module_root()
        root = module_root if module_root is not None else self.cwd
        return [str(root.root)]

    def get_watcher_factory(self):
        if self.watcher_factory is not None:
            return self.watcher_factory
        return self.assets.dep("watchfiles").awatch

    async def execute(self) -> None:
        watch_paths = await self.get_watch_paths()
        logger.info(f"node-watch watching {watch_paths}")

        self.supervisor = ProcessSupervisor(
            self.out,
            self.build_argv,
            restart_delay_ms=self.settings.restart_delay_ms,
            cwd=str(self.cwd.root),
        )

        # The supervisor's start() is both the first run and every re-run
        await self.execute_and_watch(
            self.supervisor.start,
            watch_paths,
            watch_options={},
            debounce_ms=self.settings.debounce_ms,
            enable_watch_debug=self.settings.watch_debug,
            on_stop=self.supervisor.stop,
            watcher_factory=self.get_watcher_factory(),
        )
