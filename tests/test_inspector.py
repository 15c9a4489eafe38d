"""
Tests for package manager introspection used by plugin discovery.
"""

from pathlib import Path

import pytest

from xcc.errors import UnsupportedPackageManagerError
from xcc.pm import Inspector


@pytest.fixture
def site_packages(tmp_path):
    for name in (
        "xcc_plugin_alpha",
        "xcc_plugin_beta",
        "requests",
        "xcc_plugin_alpha-1.0.dist-info",
        "__pycache__",
    ):
        (tmp_path / name).mkdir()
    (tmp_path / "xcc_plugin_file.py").write_text("")
    return tmp_path


class StubInspector(Inspector):
    def __init__(self, pm_name, global_path=None):
        super().__init__()
        self.pm_name = pm_name
        self.global_path = global_path

    async def get_pm_name_for_cli(self):
        return self.pm_name

    async def get_pip_global_path(self):
        return str(self.global_path)


class TestModulesAt:
    @pytest.mark.asyncio
    async def test_lists_package_directories(self, site_packages):
        modules = await Inspector().get_modules_at(site_packages)
        assert [p.name for p in modules] == ["requests", "xcc_plugin_alpha", "xcc_plugin_beta"]

    @pytest.mark.asyncio
    async def test_match_and_return_shapes(self, site_packages):
        inspector = Inspector()

        as_strings = await inspector.get_modules_at(site_packages, "xcc_plugin_", return_string_paths=True)
        assert as_strings == [str(site_packages / "xcc_plugin_alpha"), str(site_packages / "xcc_plugin_beta")]

        as_object = await inspector.get_modules_at(site_packages, "beta", return_as_object=True)
        assert as_object == {"xcc_plugin_beta": site_packages / "xcc_plugin_beta"}

    @pytest.mark.asyncio
    async def test_missing_location(self, tmp_path):
        assert await Inspector().get_modules_at(tmp_path / "nowhere") == []


class TestGlobalModules:
    @pytest.mark.asyncio
    async def test_pip_installs_are_searched(self, site_packages):
        inspector = StubInspector("pip", site_packages)
        found = await inspector.get_global_modules_matching("xcc_plugin_")
        assert found == [site_packages / "xcc_plugin_alpha", site_packages / "xcc_plugin_beta"]

    @pytest.mark.asyncio
    async def test_unsupported_package_manager(self):
        with pytest.raises(UnsupportedPackageManagerError) as exc_info:
            await StubInspector("conda").get_global_path()
        assert exc_info.value.pm_name == "conda"

    @pytest.mark.asyncio
    async def test_unknown_distribution(self):
        assert await Inspector(distribution="xcc-not-installed-anywhere").get_pm_name_for_cli() == "unknown"

    def test_cli_root_path(self):
        assert (Inspector().cli_root_path / "cli.py").is_file()
        assert isinstance(Inspector().cli_root_path, Path)
