"""Base classes for xcc commands.

A command class describes itself through class attributes (``command``,
``description``, ``examples``) and a ``configure()`` classmethod that attaches
options to its click command. The dispatcher creates a fresh instance for every
invocation and awaits ``execute()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, ClassVar, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from xcc.watch import DEFAULT_DEBOUNCE_MS, WatchSupervisor

if TYPE_CHECKING:
    from xcc.commands.loader import PluginCommand
    from xcc.output import OutputHandler
    from xcc.paths import WorkingDirectory
    from xcc.plugins.models import PluginDescriptor


class BaseCommand:
    """The base class that all CLI commands inherit from."""

    #: Command slug on the command line
    command: ClassVar[str] = ""
    description: ClassVar[str] = ""
    #: Invocations shown under "Examples" in --help, without the program name
    examples: ClassVar[Optional[Sequence[str]]] = None
    #: Service names injected as keyword arguments at construction
    requires: ClassVar[Tuple[str, ...]] = ()

    def __init__(
        self,
        out: OutputHandler,
        options: Mapping[str, Any],
        plugin: Optional[PluginDescriptor] = None,
        **_extra: Any,
    ) -> None:
        self._out = out
        self._options = dict(options)
        self._plugin = plugin

    @property
    def out(self) -> OutputHandler:
        return self._out

    @property
    def options(self) -> Dict[str, Any]:
        """Parsed command-line options for this invocation."""
        return self._options

    @property
    def plugin(self) -> Optional[PluginDescriptor]:
        return self._plugin

    @classmethod
    def configure(cls, cmd: PluginCommand, out: OutputHandler) -> None:
        """Attach options to ``cmd``. The default command takes none."""

    async def execute(self) -> Any:
        raise NotImplementedError

    async def execute_and_watch(
        self,
        work: Callable[[], Any],
        watch_paths: Iterable[str],
        watch_options: Optional[Dict[str, Any]] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        enable_watch_debug: bool = False,
        on_stop: Optional[Callable[[], Awaitable[Any]]] = None,
        **supervisor_kwargs: Any,
    ) -> None:
        """Run ``work`` now and again after every debounced change under ``watch_paths``.

        Blocks until cancelled.
        """
        on_event = None
        if enable_watch_debug:
            out = self.out

            def on_event(change: str, path: str) -> None:
                out.log(out.color("- watch -", "grey") + f" {change} " + out.color(path, "cyan"))

        supervisor = WatchSupervisor(
            work,
            watch_paths,
            watch_options=watch_options,
            debounce_ms=debounce_ms,
            on_event=on_event,
            on_stop=on_stop,
            **supervisor_kwargs,
        )
        await supervisor.run_and_watch()


class BaseModuleCommand(BaseCommand):
    """A base class for commands that work inside a project directory."""

    requires: ClassVar[Tuple[str, ...]] = ("cwd",)

    #: File whose presence marks the project root
    project_marker: ClassVar[str] = "package.json"

    def __init__(self, cwd: WorkingDirectory, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._cwd = cwd
        self._module_root: Optional[WorkingDirectory] = None
        self._module_root_searched = False

    @property
    def cwd(self) -> WorkingDirectory:
        return self._cwd

    async def get_module_root(self) -> Optional[WorkingDirectory]:
        """Nearest directory at or above the working directory holding the project marker."""
        if not self._module_root_searched:
            self._module_root = self._cwd.search_up(self.project_marker)
            self._module_root_searched = True
        return self._module_root
