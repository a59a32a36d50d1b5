# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
import os.path
from typing import List, Optional

from .logs import getLogger
from .parsing import (
    gem_command_changed,
    gem_list_reports_installed,
    parse_executable_directory,
)
from .shell import Execute, ExecutionResult, execute as default_execute
from .util import BootstrapFailure, ToolEnvironmentParseError

logger = getLogger("bundleconverge.gem")


class GemPackage:
    """
    Installs gems with the given ``gem`` binary, similar to a ``gem_package`` resource:
    either pinned to an exact version or upgraded to the latest.
    """

    def __init__(self, gem_binary: str, execute: Optional[Execute] = None) -> None:
        self.gem_binary = gem_binary
        self.execute = execute or default_execute

    def _run(self, *args: str) -> ExecutionResult:
        return self.execute([self.gem_binary] + list(args))

    def is_installed(self, name: str, version: Optional[str] = None) -> bool:
        args = ["list", "--installed", f"^{name}$"]
        if version:
            args += ["--version", version]
        result = self._run(*args)
        # gem list --installed exits with 1 when it prints false
        if not result.error and not result.timeout:
            output = str(result.stdout)
            if gem_list_reports_installed(output):
                return True
            if output.strip().endswith("false"):
                return False
        raise BootstrapFailure(f"could not check if {name} is installed", result)

    def _install_args(self, name: str, version: Optional[str] = None) -> List[str]:
        args = ["install", name]
        if version:
            args += ["--version", version]
        return args + ["--no-document"]

    def ensure_package(self, name: str, version: Optional[str] = None) -> bool:
        """
        Install ``name`` at exactly ``version``, or upgrade it to the latest version if ``version`` is None.
        Returns True if gem reported installing something.

        Raises:
            BootstrapFailure: if gem fails.
        """
        if version:
            if self.is_installed(name, version):
                logger.verbose("%s %s is already installed", name, version)
                return False
            logger.info("installing %s %s", name, version)
            result = self._run(*self._install_args(name, version))
        elif self.is_installed(name):
            logger.verbose("upgrading %s", name)
            result = self._run("update", name, "--no-document")
        else:
            logger.info("installing latest %s", name)
            result = self._run(*self._install_args(name))
        if not result.success:
            raise BootstrapFailure(f"failed to install {name}", result)
        return gem_command_changed(str(result.stdout))

    def executable_directory(self) -> str:
        """
        The directory gem installs executables into (``Gem.bindir``),
        parsed from ``gem environment`` so the resource needs minimal configuration.

        Raises:
            ToolEnvironmentParseError: if the output has no EXECUTABLE DIRECTORY line.
            BootstrapFailure: if gem fails.
        """
        result = self._run("environment")
        if not result.success:
            raise BootstrapFailure("gem environment failed", result)
        bindir = parse_executable_directory(str(result.stdout))
        if bindir is None:
            raise ToolEnvironmentParseError(
                f"Cannot find EXECUTABLE DIRECTORY: {result.stdout}"
            )
        return bindir

    def binary_path(self, executable: str) -> str:
        return os.path.join(self.executable_directory(), executable)
