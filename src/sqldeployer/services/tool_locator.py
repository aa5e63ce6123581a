"""Locates the sqlpackage and sqlcmd executables."""

import glob
import os
import re
import shutil
import sys
from typing import Dict, List, Mapping, Optional, Sequence

from packaging import version

from sqldeployer.constants import SQLCMD, SQLCMD_ENV_VAR, SQLPACKAGE, SQLPACKAGE_ENV_VAR
from sqldeployer.errors import DeployerError
from sqldeployer.errors_catalog import actionable_error

_VERSION_PART = re.compile(r"^\D*?(\d+(?:\.\d+)*)$")


def _windows_roots(environ: Mapping[str, str]) -> List[str]:
    roots = []
    for key in ("ProgramFiles", "ProgramFiles(x86)"):
        value = environ.get(key)
        if value and value not in roots:
            roots.append(value)
    return roots or ["C:\\Program Files", "C:\\Program Files (x86)"]


def default_search_patterns(environ: Mapping[str, str]) -> Dict[str, List[str]]:
    """Well-known install locations, in priority order, per tool."""
    home = os.path.expanduser("~")
    if sys.platform == "win32":
        roots = _windows_roots(environ)
        return {
            SQLPACKAGE: [
                os.path.join(root, "Microsoft SQL Server", "*", "DAC", "bin", "SqlPackage.exe")
                for root in roots
            ]
            + [
                os.path.join(
                    root,
                    "Microsoft Visual Studio",
                    "*",
                    "*",
                    "Common7",
                    "IDE",
                    "Extensions",
                    "Microsoft",
                    "SQLDB",
                    "DAC",
                    "SqlPackage.exe",
                )
                for root in roots
            ]
            + [os.path.join(home, ".dotnet", "tools", "sqlpackage.exe")],
            SQLCMD: [
                os.path.join(
                    root,
                    "Microsoft SQL Server",
                    "Client SDK",
                    "ODBC",
                    "*",
                    "Tools",
                    "Binn",
                    "SQLCMD.EXE",
                )
                for root in roots
            ],
        }

    return {
        SQLPACKAGE: [
            os.path.join(home, ".dotnet", "tools", "sqlpackage"),
            "/opt/sqlpackage/sqlpackage",
        ],
        SQLCMD: ["/opt/mssql-tools*/bin/sqlcmd"],
    }


def path_version_key(path: str):
    """Sort key built from every versioned component of ``path``."""
    key = []
    for part in re.split(r"[\\/]", path):
        match = _VERSION_PART.match(part)
        if match:
            key.append(version.parse(match.group(1)))
    return tuple(key)


class ToolLocator:
    """Resolves tool paths from explicit settings, environment, PATH and install dirs."""

    ENV_VARS = {SQLPACKAGE: SQLPACKAGE_ENV_VAR, SQLCMD: SQLCMD_ENV_VAR}
    OPTIONS = {SQLPACKAGE: "sqlpackage-path", SQLCMD: "sqlcmd-path"}

    def __init__(
        self,
        logger,
        sqlpackage_path: Optional[str] = None,
        sqlcmd_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        which=shutil.which,
        search_patterns: Optional[Dict[str, Sequence[str]]] = None,
    ):
        self.logger = logger
        self.explicit_paths = {SQLPACKAGE: sqlpackage_path, SQLCMD: sqlcmd_path}
        self.environ = os.environ if environ is None else environ
        self.which = which
        self.search_patterns = (
            search_patterns if search_patterns is not None else default_search_patterns(self.environ)
        )

    def get_sqlpackage_path(self) -> str:
        return self.locate(SQLPACKAGE)

    def get_sqlcmd_path(self) -> str:
        return self.locate(SQLCMD)

    def locate(self, tool: str) -> str:
        option = self.OPTIONS[tool]

        explicit = self.explicit_paths.get(tool)
        if explicit:
            if not os.path.isfile(explicit):
                raise DeployerError(
                    actionable_error("tool_path_missing", tool=tool, path=explicit, option=option)
                )
            self.logger.debug("Using configured %s: %s", tool, explicit)
            return explicit

        from_env = self.environ.get(self.ENV_VARS[tool])
        if from_env:
            if os.path.isfile(from_env):
                self.logger.debug("Using %s from %s: %s", tool, self.ENV_VARS[tool], from_env)
                return from_env
            self.logger.warning(
                "%s points to a missing file, ignoring it: %s",
                self.ENV_VARS[tool],
                from_env,
            )

        on_path = self.which(tool)
        if on_path:
            self.logger.debug("Found %s on PATH: %s", tool, on_path)
            return on_path

        for pattern in self.search_patterns.get(tool, []):
            matches = [path for path in glob.glob(pattern) if os.path.isfile(path)]
            if matches:
                best = max(matches, key=path_version_key)
                self.logger.debug("Found %s in install directory: %s", tool, best)
                return best

        raise DeployerError(actionable_error("tool_not_found", tool=tool, option=option))
