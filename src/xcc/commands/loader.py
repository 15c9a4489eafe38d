"""Command registry and dispatch.

Plugins add commands through :class:`CommandLoader`. Each command class becomes
a :class:`PluginCommand` on the root click group; click handles parsing, the
loader keeps an ordered registry for introspection and wraps each click
callback so that the command's async ``execute()`` runs on an event loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Union

import click

from xcc.errors import CommandExecutionError, XccError

if TYPE_CHECKING:
    from xcc.assets import AssetManager
    from xcc.commands.base import BaseCommand
    from xcc.output import OutputHandler
    from xcc.plugins.models import PluginDescriptor
    from xcc.services import ServiceContainer

logger = logging.getLogger(__name__)

CommandRef = Union[str, type]
HelpHook = Callable[[click.Context, click.HelpFormatter], None]

# Exit status after SIGTERM, as a shell would report it
TERMINATED_EXIT_CODE = 128 + signal.SIGTERM
INTERRUPTED_EXIT_CODE = 128 + signal.SIGINT


class PluginCommand(click.Command):
    """A click command that plugins configure with chained calls."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._help_hooks: List[HelpHook] = []

    def option(self, *param_decls: str, **attrs: Any) -> "PluginCommand":
        self.params.append(click.Option(param_decls, **attrs))
        return self

    def argument(self, *param_decls: str, **attrs: Any) -> "PluginCommand":
        self.params.append(click.Argument(param_decls, **attrs))
        return self

    def describe(self, text: str) -> "PluginCommand":
        self.help = text
        self.short_help = None
        return self

    def on_help(self, hook: HelpHook) -> "PluginCommand":
        """Add a hook that writes extra text at the end of ``--help``."""
        self._help_hooks.append(hook)
        return self

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        super().format_epilog(ctx, formatter)
        for hook in self._help_hooks:
            hook(ctx, formatter)


def examples_help(examples: Sequence[str], prog_name: str = "xcc") -> HelpHook:
    def write_examples(ctx: click.Context, formatter: click.HelpFormatter) -> None:
        with formatter.section("Examples"):
            for example in examples:
                formatter.write_text(f"$ {prog_name} {example}")

    return write_examples


@dataclass(frozen=True)
class CommandEntry:
    """One registered command."""

    command_cls: type
    class_ref: str
    plugin: PluginDescriptor
    click_command: PluginCommand

    @property
    def command(self) -> str:
        return self.command_cls.command

    @property
    def description(self) -> str:
        return self.command_cls.description


def _flatten(items: Iterable[Any]) -> List[Any]:
    flat: List[Any] = []
    for item in items:
        if isinstance(item, (list, tuple)):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat


class CommandLoader:
    """Registers plugin commands on the click group and dispatches them."""

    def __init__(
        self,
        group: click.Group,
        out: OutputHandler,
        assets: AssetManager,
        services: ServiceContainer,
        prog_name: str = "xcc",
    ) -> None:
        self.group = group
        self.out = out
        self.assets = assets
        self.services = services
        self.prog_name = prog_name
        self._entries: List[CommandEntry] = []

    @property
    def entries(self) -> List[CommandEntry]:
        return list(self._entries)

    def list(self, find: Optional[str] = None) -> List[CommandEntry]:
        """Registered commands in registration order, optionally filtered by slug substring."""
        if not find:
            return list(self._entries)
        return [entry for entry in self._entries if find in entry.command]

    async def add_commands(self, plugin: PluginDescriptor, *command_refs: Any) -> None:
        """Add several commands at once; nested lists are flattened."""
        await asyncio.gather(
            *(self.add_command(plugin, ref) for ref in _flatten(command_refs))
        )

    async def add_command(self, plugin: PluginDescriptor, command_ref: CommandRef) -> CommandEntry:
        """Add one command class, usually from a plugin's ``init_commands`` hook."""
        cls = self.assets.resolve_class(command_ref)
        class_ref = command_ref if isinstance(command_ref, str) else f"{cls.__module__}:{cls.__qualname__}"
        slug = cls.command

        previous = [entry for entry in self._entries if entry.command == slug]
        if previous:
            logger.warning(
                f"Command '{slug}' from plugin '{plugin.name}' replaces the one "
                f"registered by plugin '{previous[-1].plugin.name}'"
            )

        cmd = PluginCommand(slug)
        cmd.describe(f"{cls.description} (Plugin:{plugin.name})")

        # The command class configures its own options
        result = cls.configure(cmd, self.out)
        if asyncio.iscoroutine(result):
            await result

        if cls.examples:
            cmd.on_help(examples_help(cls.examples, self.prog_name))

        cmd.callback = self._build_action(cls, plugin, slug)
        self.group.add_command(cmd)

        entry = CommandEntry(command_cls=cls, class_ref=class_ref, plugin=plugin, click_command=cmd)
        self._entries.append(entry)
        logger.debug(f"Registered command '{slug}' from plugin '{plugin.name}'")
        return entry

    def _build_action(self, cls: type, plugin: PluginDescriptor, name: str) -> Callable[..., None]:
        def command_action(**params: Any) -> None:
            try:
                asyncio.run(_run_until_terminated(self.dispatch(cls, plugin, name, params)))
            except asyncio.CancelledError:
                self.out.star("Stopped.")
                raise click.exceptions.Exit(TERMINATED_EXIT_CODE)
            except KeyboardInterrupt:
                # asyncio.run cancels the command before re-raising Ctrl-C
                self.out.star("Stopped.")
                raise click.exceptions.Exit(INTERRUPTED_EXIT_CODE)

        return command_action

    async def dispatch(
        self, cls: type, plugin: PluginDescriptor, name: str, options: Dict[str, Any]
    ) -> Any:
        """Instantiate the command class for this invocation and await ``execute()``."""
        out = self.out
        out.log(
            " "
            + out.symbol("pointer", "yellow")
            + " "
            + out.color("Executing command: ", "bold")
            + out.color(f"'{name}'", "cyan")
            + "\n"
        )

        handler: BaseCommand = self.services.spawn(
            cls, out=out, options=options, plugin=plugin, command_loader=self
        )
        try:
            result = await handler.execute()
        except XccError:
            raise
        except Exception as exc:
            raise CommandExecutionError(name, f"{type(exc).__name__}: {exc}") from exc

        # Bottom pad after command completes
        out.log("\n")
        return result


async def _run_until_terminated(coro: Awaitable[Any]) -> Any:
    """Await ``coro``, cancelling it when the process receives SIGTERM."""
    task = asyncio.ensure_future(coro)
    loop = asyncio.get_running_loop()
    installed = False
    with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
        installed = True
    try:
        return await task
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGTERM)
