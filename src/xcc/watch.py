"""Debounced re-execution of a unit of work on file-system changes.

:class:`WatchSupervisor` runs its work once, then again every time a burst of
change notifications has been quiet for ``debounce_ms`` (trailing-edge
debounce: notifications inside the window restart the countdown, only one
re-run happens per burst).

:meth:`WatchSupervisor.run_and_watch` does not return under normal operation.
A foreground watch command runs until the task is cancelled, which the CLI does
on SIGINT/SIGTERM; cancellation drops any pending re-run and awaits the
optional ``on_stop`` coroutine before propagating.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional, Set, Tuple

from watchfiles import Change, awatch

logger = logging.getLogger(__name__)

Work = Callable[[], Any]
WatcherFactory = Callable[..., AsyncIterator[Set[Tuple[Change, str]]]]

DEFAULT_DEBOUNCE_MS = 500


class WatchState(str, Enum):
    IDLE = "idle"
    SETTLED = "settled"
    PENDING_RERUN = "pending_rerun"


class WatchSupervisor:
    """Runs ``work`` now and after every debounced change to ``watch_paths``."""

    def __init__(
        self,
        work: Work,
        watch_paths: Iterable[str],
        watch_options: Optional[Dict[str, Any]] = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        watcher_factory: Optional[WatcherFactory] = None,
        on_event: Optional[Callable[[str, str], None]] = None,
        on_stop: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> None:
        self.work = work
        self.watch_paths = [str(p) for p in watch_paths]
        self.watch_options = dict(watch_options or {})
        self.debounce_ms = debounce_ms
        self.watcher_factory = watcher_factory or awatch
        self.on_event = on_event
        self.on_stop = on_stop

        self.state = WatchState.IDLE
        self.run_count = 0
        self.last_result: Any = None
        self.last_path: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def run_now(self) -> Any:
        """Invoke the work once without awaiting it."""
        self.run_count += 1
        result = self.work()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._work_done)
            result = task
        self.last_result = result
        return result

    def _work_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # The watch loop stays alive; the next change retries the work.
            logger.error("Watched work failed", exc_info=exc)

    def notify(self, path: Optional[str] = None) -> None:
        """Register one change notification, restarting the debounce countdown."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self.last_path = path
        self._timer = loop.call_later(self.debounce_ms / 1000, self._fire)
        self.state = WatchState.PENDING_RERUN

    def _fire(self) -> None:
        self._timer = None
        self.state = WatchState.SETTLED
        logger.debug(f"Re-running watched work after change to {self.last_path}")
        self._run_guarded()

    def _run_guarded(self) -> None:
        try:
            self.run_now()
        except Exception:
            logger.exception("Watched work failed")

    def cancel_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.state = WatchState.SETTLED

    async def run_and_watch(self) -> None:
        try:
            self._run_guarded()
            self.state = WatchState.SETTLED
            logger.info(f"Watching {len(self.watch_paths)} path(s) for changes")

            async for changes in self.watcher_factory(*self.watch_paths, **self.watch_options):
                for change, path in changes:
                    if self.on_event is not None:
                        self.on_event(change.name, path)
                    # Atomic saves replace the file, which arrives as an addition
                    if change != Change.deleted:
                        self.notify(path)
            logger.warning("Change notifications ended; waiting for termination")
            await asyncio.Event().wait()
        finally:
            self.cancel_pending()
            if self.on_stop is not None:
                await self.on_stop()


async def run_and_watch(
    work: Work,
    watch_paths: Iterable[str],
    watch_options: Optional[Dict[str, Any]] = None,
    debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    **kwargs: Any,
) -> None:
    """Shortcut for ``WatchSupervisor(...).run_and_watch()``."""
    supervisor = WatchSupervisor(work, watch_paths, watch_options, debounce_ms, **kwargs)
    await supervisor.run_and_watch()
