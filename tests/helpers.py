"""
Utility helpers used by several test modules.
"""

import asyncio
import itertools
from typing import List, Optional, Set, Tuple

from watchfiles import Change


async def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01):
    """Poll ``predicate`` until it is true or fail after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


class FakeProcess:
    """Stands in for asyncio.subprocess.Process; the test decides when it exits."""

    _pids = itertools.count(4000)

    def __init__(self, argv):
        self.argv = list(argv)
        self.pid = next(self._pids)
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.returncode: Optional[int] = None
        self.terminate_calls = 0
        self.kill_calls = 0
        self._exited = asyncio.Event()

    def write(self, stream_name: str, text: str) -> None:
        getattr(self, stream_name).feed_data(text.encode())

    def exit(self, code: Optional[int]) -> None:
        if self._exited.is_set():
            return
        self.returncode = code
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.exit(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        self.exit(-9)

    async def wait(self) -> Optional[int]:
        await self._exited.wait()
        return self.returncode


class FakeSpawner:
    """Replacement for asyncio.create_subprocess_exec that records every spawn."""

    def __init__(self, error: Optional[BaseException] = None):
        self.processes: List[FakeProcess] = []
        self.kwargs: List[dict] = []
        self.error = error
        # When set, spawning blocks until the event is set
        self.gate: Optional[asyncio.Event] = None

    async def __call__(self, *argv, **kwargs):
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        process = FakeProcess(argv)
        self.processes.append(process)
        self.kwargs.append(kwargs)
        return process

    @property
    def live(self) -> List[FakeProcess]:
        return [p for p in self.processes if p.returncode is None]


class QueueWatcher:
    """A change source fed by the test instead of the file system."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.paths: Tuple[str, ...] = ()
        self.options: dict = {}

    def __call__(self, *paths, **options):
        self.paths = paths
        self.options = options
        return self._iterate()

    async def _iterate(self):
        while True:
            changes: Set[Tuple[Change, str]] = await self.queue.get()
            if changes is None:
                return
            yield changes

    def modify(self, path: str) -> None:
        self.queue.put_nowait({(Change.modified, path)})

    def send(self, change: Change, path: str) -> None:
        self.queue.put_nowait({(change, path)})

    def close(self) -> None:
        self.queue.put_nowait(None)
