import io
import itertools
import textwrap
from pathlib import Path

import click
import pytest
from rich.console import Console

from xcc.assets import AssetManager
from xcc.commands.loader import CommandLoader
from xcc.output import OutputHandler
from xcc.services import ServiceContainer
from xcc.settings import AppSettings

# ----------------------------------------------------------------------
# Console output captured in memory
# ----------------------------------------------------------------------
class CapturedOutput(OutputHandler):
    """OutputHandler writing to a StringIO so tests can read it back."""

    def __init__(self):
        self.buffer = io.StringIO()
        super().__init__(
            Console(file=self.buffer, force_terminal=False, color_system=None, width=200, soft_wrap=True)
        )

    @property
    def text(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture
def out():
    return CapturedOutput()


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment."""
    return AppSettings(
        _env_file=None,
        plugin_paths=[],
        discover_plugins=False,
        debounce_ms=500,
        restart_delay_ms=5,
    )


@pytest.fixture
def command_loader(out):
    services = ServiceContainer()
    loader = CommandLoader(click.Group("xcc"), out, AssetManager(), services)
    services.value("command_loader", loader)
    return loader


# ----------------------------------------------------------------------
# Plugin directories on disk
# ----------------------------------------------------------------------
COMMAND_PLUGIN = '''
from xcc.commands.base import BaseCommand
from xcc.plugins.models import PluginDescriptor

{classes}

async def init_commands(plugin, command_loader):
    await command_loader.add_commands(plugin, [{class_names}])

plugin = PluginDescriptor(name="{name}", description="Test plugin {name}", init_commands=init_commands)
'''

COMMAND_CLASS = '''
class Command_{ident}(BaseCommand):
    command = "{slug}"
    description = "Runs {slug}"

    async def execute(self):
        self.out.log("ran {slug}")
'''


@pytest.fixture
def write_plugin(tmp_path):
    """Write a plugin directory and return its path."""
    counter = itertools.count()

    def _write(source: str, metadata="name: test-plugin\nversion: 0.1.0\n", dirname=None) -> Path:
        root = tmp_path / (dirname or f"plugin_{next(counter)}")
        root.mkdir()
        (root / "xcc_plugin.py").write_text(textwrap.dedent(source))
        if metadata is not None:
            (root / "plugin.yaml").write_text(metadata)
        return root

    return _write


@pytest.fixture
def command_plugin(write_plugin):
    """Write a plugin contributing one command per slug."""

    def _write(name: str, *slugs: str, version: str = "0.1.0") -> Path:
        classes = "\n".join(
            COMMAND_CLASS.format(ident=i, slug=slug) for i, slug in enumerate(slugs)
        )
        class_names = ", ".join(f"Command_{i}" for i in range(len(slugs)))
        source = COMMAND_PLUGIN.format(classes=classes, class_names=class_names, name=name)
        return write_plugin(source, metadata=f"name: {name}-pkg\nversion: {version}\n")

    return _write

