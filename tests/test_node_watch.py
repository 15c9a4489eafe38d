"""
Tests for the node-watch command.
"""

import asyncio
import sys

import pytest
import watchfiles

from helpers import QueueWatcher, wait_until
from xcc.assets import AssetManager
from xcc.builtin.node_watch import NodeWatch
from xcc.paths import WorkingDirectory


def make_command(out, settings, cwd, **options):
    assets = AssetManager()
    assets.register_dependencies({"watchfiles": "watchfiles"})
    return NodeWatch(
        settings=settings, assets=assets, cwd=WorkingDirectory(cwd), out=out, options=options
    )


class TestArgv:
    @pytest.mark.asyncio
    async def test_defaults(self, out, settings, tmp_path):
        cmd = make_command(out, settings, tmp_path)
        assert await cmd.build_argv() == ["node", str(tmp_path.resolve() / "index.js")]

    @pytest.mark.asyncio
    async def test_file_option_is_resolved_against_cwd(self, out, settings, tmp_path):
        cmd = make_command(out, settings, tmp_path, file="./lib/../src/server.js")
        assert await cmd.build_argv() == ["node", str(tmp_path.resolve() / "src" / "server.js")]

    @pytest.mark.asyncio
    async def test_absolute_file_is_kept(self, out, settings, tmp_path):
        script = tmp_path / "elsewhere" / "app.js"
        cmd = make_command(out, settings, tmp_path / "sub", file=str(script))
        (tmp_path / "sub").mkdir()
        assert (await cmd.build_argv())[1] == str(script)

    @pytest.mark.asyncio
    async def test_interpreter_option_and_setting(self, out, settings, tmp_path):
        cmd = make_command(out, settings, tmp_path, interpreter="python3", file="app.py")
        assert (await cmd.build_argv())[0] == "python3"

        settings.node_binary = "/opt/node/bin/node"
        cmd = make_command(out, settings, tmp_path)
        assert (await cmd.build_argv())[0] == "/opt/node/bin/node"


class TestWatchPaths:
    @pytest.mark.asyncio
    async def test_module_root_is_watched(self, out, settings, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        nested = tmp_path / "src" / "routes"
        nested.mkdir(parents=True)

        cmd = make_command(out, settings, nested)

        assert await cmd.get_watch_paths() == [str(tmp_path.resolve())]

    @pytest.mark.asyncio
    async def test_falls_back_to_cwd(self, out, settings, tmp_path):
        settings.project_marker = "xcc-test-marker-that-does-not-exist.json"
        cmd = make_command(out, settings, tmp_path)
        assert await cmd.get_watch_paths() == [str(tmp_path.resolve())]


@pytest.mark.asyncio
async def test_execute_runs_and_restarts_the_script(out, settings, tmp_path):
    (tmp_path / "package.json").write_text("{}")
    script = tmp_path / "app.py"
    script.write_text("import time\nprint('app started', flush=True)\ntime.sleep(30)\n")
    settings.debounce_ms = 20

    cmd = make_command(out, settings, tmp_path, interpreter=sys.executable, file="app.py")
    watcher = QueueWatcher()
    cmd.watcher_factory = watcher
    task = asyncio.create_task(cmd.execute())

    await wait_until(lambda: out.text.count("app started") == 1, timeout=10)
    assert watcher.paths == (str(tmp_path.resolve()),)

    watcher.modify(str(script))
    await wait_until(lambda: out.text.count("app started") == 2, timeout=10)
    assert cmd.supervisor.spawn_count == 2
    assert "Changes detected; restarting the process ..." in out.text

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert cmd.supervisor.process is None
    assert "Child process stopped." in out.text


def test_watches_with_the_registered_watchfiles(out, settings, tmp_path):
    cmd = make_command(out, settings, tmp_path)
    assert cmd.get_watcher_factory() is watchfiles.awatch

    cmd.watcher_factory = QueueWatcher()
    assert cmd.get_watcher_factory() is cmd.watcher_factory


def test_options_are_declared():
    from xcc.commands.loader import PluginCommand

    cmd = PluginCommand("node-watch")
    NodeWatch.configure(cmd, out=None)
    assert {p.name for p in cmd.params} == {"file", "interpreter"}
