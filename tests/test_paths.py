import os
from pathlib import Path

from xcc.paths import WorkingDirectory


def test_defaults_to_process_cwd(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert WorkingDirectory().root == tmp_path.resolve()


def test_normalize_child_path(tmp_path):
    cwd = WorkingDirectory(tmp_path)
    root = tmp_path.resolve()

    assert cwd.normalize_child_path("index.js") == root / "index.js"
    assert cwd.normalize_child_path("./a/./b/../c.js") == root / "a" / "c.js"
    assert cwd.normalize_child_path("../sibling.js") == root.parent / "sibling.js"
    assert cwd.normalize_child_path("/srv//app/../main.js") == Path("/srv/main.js")


def test_home_is_expanded(tmp_path):
    assert WorkingDirectory(tmp_path).normalize_child_path("~/x.js") == Path(
        os.path.normpath(Path("~/x.js").expanduser())
    )


def test_search_up(tmp_path):
    (tmp_path / "package.json").write_text("{}")
    deep = tmp_path / "a" / "b"
    deep.mkdir(parents=True)

    found = WorkingDirectory(deep).search_up("package.json")

    assert found is not None
    assert found.root == tmp_path.resolve()
    assert WorkingDirectory(deep).search_up("xcc-no-such-marker.lock") is None
