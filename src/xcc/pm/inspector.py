"""Resolves information about installed packages and the package manager used for xcc."""

from __future__ import annotations

import logging
import sysconfig
from importlib import metadata
from pathlib import Path
from typing import Dict, List, Optional, Union

from xcc.errors import UnsupportedPackageManagerError

logger = logging.getLogger(__name__)

# Directories in site-packages that are never importable plugin roots
_SKIP_SUFFIXES = (".dist-info", ".egg-info", ".data")
_SKIP_NAMES = {"__pycache__"}


class Inspector:
    """A utility for locating the global modules of the package manager that installed xcc."""

    def __init__(self, distribution: str = "xcc") -> None:
        self.distribution = distribution

    @property
    def cli_root_path(self) -> Path:
        """Root directory of the xcc package itself."""
        return Path(__file__).resolve().parent.parent

    async def get_pm_name_for_cli(self) -> str:
        """Name of the installer recorded for the xcc distribution, or ``"unknown"``."""
        try:
            installer = metadata.distribution(self.distribution).read_text("INSTALLER")
        except metadata.PackageNotFoundError:
            return "unknown"
        return (installer or "unknown").strip() or "unknown"

    async def get_pip_global_path(self) -> str:
        return sysconfig.get_paths()["purelib"]

    async def get_uv_global_path(self) -> str:
        # uv installs into the interpreter's own site-packages, like pip
        return sysconfig.get_paths()["purelib"]

    async def get_global_path(self) -> str:
        pm_name = await self.get_pm_name_for_cli()

        if pm_name.lower() == "pip":
            return await self.get_pip_global_path()
        if pm_name.lower() == "uv":
            return await self.get_uv_global_path()
        raise UnsupportedPackageManagerError(pm_name)

    async def get_global_directory(self) -> Path:
        return Path(await self.get_global_path())

    async def get_modules_at(
        self,
        location: Union[str, Path],
        match: Optional[str] = None,
        return_string_paths: bool = False,
        return_as_object: bool = False,
    ) -> Union[List[Path], List[str], Dict[str, Path]]:
        """List package directories at ``location`` whose name contains ``match``."""
        location = Path(location)
        if not location.is_dir():
            logger.debug(f"No module directory at {location}")
            return {} if return_as_object else []

        modules = sorted(
            p
            for p in location.iterdir()
            if p.is_dir()
            and p.name not in _SKIP_NAMES
            and not p.name.endswith(_SKIP_SUFFIXES)
            and (match is None or match in p.name)
        )
        if return_as_object:
            return {p.name: p for p in modules}
        if return_string_paths:
            return [str(p) for p in modules]
        return modules

    async def get_global_modules(self, match: Optional[str] = None, **opts) -> Union[List[Path], List[str], Dict[str, Path]]:
        global_dir = await self.get_global_directory()
        return await self.get_modules_at(global_dir, match=match, **opts)

    async def get_global_modules_matching(self, match: str) -> List[Path]:
        return await self.get_global_modules(match=match)
