"""Supervision of a single long-running child process.

State machine::

    NO_PROCESS -> STARTING -> RUNNING -> EXITING -> NO_PROCESS -> (restart_delay) -> STARTING

``start()`` never spawns while a child is alive: it sends SIGTERM and lets the
exit handler restart. Every exit schedules a restart, whether the child was
terminated for a change, exited cleanly, or failed; only ``stop()`` ends the
cycle.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set, Union

from .output import OutputHandler

logger = logging.getLogger(__name__)

ArgvResolver = Callable[[], Union[Sequence[str], Awaitable[Sequence[str]]]]

DEFAULT_RESTART_DELAY_MS = 5

# Longest child output line held in memory before it is relayed in pieces
MAX_RELAY_LINE = 1024 * 1024


class ProcessState(str, Enum):
    NO_PROCESS = "no_process"
    STARTING = "starting"
    RUNNING = "running"
    EXITING = "exiting"


class ExitReason(str, Enum):
    NOT_EXITED = "not_exited"
    CHANGE_RESTART = "change_restart"
    NATURAL = "natural"


def classify_exit(returncode: Optional[int]) -> ExitReason:
    """Signal terminations (negative codes) count as change-triggered restarts."""
    if returncode is None or returncode < 0:
        return ExitReason.CHANGE_RESTART
    return ExitReason.NATURAL


class ProcessSupervisor:
    """Owns at most one child process and restarts it whenever it exits."""

    def __init__(
        self,
        out: OutputHandler,
        resolve_argv: ArgvResolver,
        restart_delay_ms: int = DEFAULT_RESTART_DELAY_MS,
        cwd: Optional[str] = None,
        kill_timeout: float = 5.0,
        spawn: Optional[Callable[..., Awaitable[Any]]] = None,
    ) -> None:
        self.out = out
        self.resolve_argv = resolve_argv
        self.restart_delay_ms = restart_delay_ms
        self.cwd = cwd
        self.kill_timeout = kill_timeout
        self._spawn = spawn or asyncio.create_subprocess_exec

        self.state = ProcessState.NO_PROCESS
        self.spawn_count = 0
        self.exit_count = 0
        self.last_exit_code: Optional[int] = None
        self._process: Any = None
        self._relays: List[asyncio.Task] = []
        self._exit_task: Optional[asyncio.Task] = None
        self._restart_handle: Optional[asyncio.TimerHandle] = None
        self._background: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._stopping = False

    @property
    def process(self) -> Any:
        return self._process

    @property
    def exit_reason(self) -> ExitReason:
        if self._process is not None or self.exit_count == 0:
            return ExitReason.NOT_EXITED
        return classify_exit(self.last_exit_code)

    async def start(self) -> None:
        if self._stopping:
            return
        async with self._lock:
            if self._process is not None:
                # The exit handler spawns the replacement
                self._terminate()
                return
            await self._start_locked()

    async def _start_locked(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

        self.state = ProcessState.STARTING
        argv = self.resolve_argv()
        if inspect.isawaitable(argv):
            argv = await argv
        argv = [str(a) for a in argv]

        self.out.chevron(f"Running: '{' '.join(argv)}'", 1, "cyan", "green")
        self.out.div()

        try:
            process = await self._spawn(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except OSError as exc:
            self.state = ProcessState.NO_PROCESS
            logger.warning(f"Failed to spawn {argv[0]}: {exc}")
            self.out.child_line("stderr", f"Failed to start '{argv[0]}': {exc}")
            return

        self.spawn_count += 1
        self._process = process
        self._relays = [
            asyncio.create_task(self._relay("stdout", process.stdout)),
            asyncio.create_task(self._relay("stderr", process.stderr)),
        ]
        self._exit_task = asyncio.create_task(self._wait_exit(process))
        self.state = ProcessState.RUNNING
        logger.info(f"Spawned child pid={getattr(process, 'pid', None)}")

    def _terminate(self) -> None:
        process = self._process
        if process is None or process.returncode is not None:
            return
        self.state = ProcessState.EXITING
        try:
            process.terminate()
        except ProcessLookupError:
            # Already gone; the exit handler still runs
            pass

    async def _relay(self, stream_name: str, stream: Optional[asyncio.StreamReader]) -> None:
        if stream is None:
            return
        pending = b""
        while True:
            try:
                raw = await stream.readuntil(b"\n")
            except asyncio.IncompleteReadError as exc:
                # EOF, possibly after an unterminated last line
                if pending or exc.partial:
                    self._emit_line(stream_name, pending + exc.partial)
                return
            except asyncio.LimitOverrunError as exc:
                # Line longer than the reader limit: drain it from the buffer
                pending += await stream.read(max(exc.consumed, 1))
                if len(pending) >= MAX_RELAY_LINE:
                    self._emit_line(stream_name, pending)
                    pending = b""
                continue
            self._emit_line(stream_name, pending + raw)
            pending = b""

    def _emit_line(self, stream_name: str, raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
        self.out.child_line(stream_name, line)

    async def _wait_exit(self, process: Any) -> None:
        code = await process.wait()

        # Let the relays drain what the child wrote before it exited
        if self._relays:
            _, pending = await asyncio.wait(self._relays, timeout=1.0)
            for task in pending:
                task.cancel()

        self.exit_count += 1
        self.last_exit_code = code
        self._report_exit(code)

        self._relays = []
        self._process = None
        self._exit_task = None
        self.state = ProcessState.NO_PROCESS

        if not self._stopping:
            self._schedule_restart()

    def _report_exit(self, code: Optional[int]) -> None:
        out = self.out
        out.div()
        if self._stopping:
            out.star("Child process stopped.")
        elif classify_exit(code) is ExitReason.CHANGE_RESTART:
            out.star("Changes detected; restarting the process ...")
        elif code == 0:
            out.star("Child process exited with code " + out.color("0", "green"))
        else:
            out.star("Child process exited with code " + out.color(code, "red"))
        out.blank()

    def _schedule_restart(self) -> None:
        loop = asyncio.get_running_loop()
        self._restart_handle = loop.call_later(self.restart_delay_ms / 1000, self._restart)

    def _restart(self) -> None:
        self._restart_handle = None
        task = asyncio.ensure_future(self._restart_if_idle())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _restart_if_idle(self) -> None:
        if self._stopping:
            return
        async with self._lock:
            # A change-triggered start may have spawned while this waited
            if self._process is None:
                await self._start_locked()

    async def stop(self) -> None:
        """Terminate the child without restarting it."""
        self._stopping = True
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None
        # Let an in-flight spawn finish so its child is not orphaned
        async with self._lock:
            process, exit_task = self._process, self._exit_task
        if process is None or exit_task is None:
            return
        self._terminate()
        try:
            await asyncio.wait_for(asyncio.shield(exit_task), self.kill_timeout)
        except asyncio.TimeoutError:
            logger.warning("Child ignored SIGTERM; killing it")
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await exit_task
