# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Converges a ``bundle_install`` resource: installs bundler then the gems in the Gemfile.

Each action goes through these phases::

    idle -> bootstrapping -> resolving -> executing -> classified
                                                    \\-> failed

The resource isn't idempotent itself, it will always run ``bundle install`` (or ``update``).
Whether the action changed anything is decided from bundler's output.
"""
import shlex
from enum import Enum
from typing import List, Optional, Union

from .gem import GemPackage
from .gemfile import find_gemfile
from .logs import getLogger, truncate
from .parsing import bundle_installed_gems
from .planner import bundler_command
from .shell import Execute, ExecutionResult, execute as default_execute
from .state import DesiredState
from .support import Action, Status
from .util import ProcessExecutionFailure

logger = getLogger("bundleconverge.provider")

BUNDLER_GEM = "bundler"
BUNDLER_EXECUTABLE = "bundle"
GEMFILE_ENV_VAR = "BUNDLE_GEMFILE"

_unresolved = object()


class ProviderPhase(str, Enum):
    idle = "idle"
    bootstrapping = "bootstrapping"
    resolving = "resolving"
    executing = "executing"
    classified = "classified"
    failed = "failed"


class ConvergeResult:
    """
    Represents the result of an action that ran (or would have run, in dry run mode).

    ``modified`` is True if the action changed the target environment.
    """

    def __init__(
        self,
        action: str,
        success: bool,
        modified: bool,
        status: Status,
        command: Optional[List[str]] = None,
        gemfile: Optional[str] = None,
        result: Optional[ExecutionResult] = None,
    ) -> None:
        self.action = action
        self.success = success
        self.modified = modified
        self.status = status
        self.command = command
        self.gemfile = gemfile
        self.result = result

    @property
    def cmd(self) -> str:
        return shlex.join(self.command or [])

    def __str__(self) -> str:
        return (
            f"{self.action} changes: "
            + (
                " ".join(
                    filter(
                        None,
                        [
                            self.success and "success" or "",
                            self.modified and "modified" or "",
                            self.status.name,
                        ],
                    )
                )
                or "none"
            )
            + "\n   "
            + truncate(self.cmd, 240)
        )


class BundleInstallProvider:
    """
    The default provider for a ``bundle_install`` resource.

    Args:
        state: The fully resolved desired state.
        execute: Runs commands, defaults to :func:`bundleconverge.shell.execute`.
        dry_run: Report what would run without running anything.
        gem_package: Installs bundler, defaults to a :class:`GemPackage` for the state's gem binary.
    """

    def __init__(
        self,
        state: DesiredState,
        execute: Optional[Execute] = None,
        dry_run: bool = False,
        gem_package: Optional[GemPackage] = None,
    ) -> None:
        self.state = state
        self.execute = execute or default_execute
        self.dry_run = dry_run
        self.gem_package = gem_package or GemPackage(
            state.absolute_gem_binary, self.execute
        )
        self.phase = ProviderPhase.idle
        self._gemfile_path: object = _unresolved
        self._bundler_binary: Optional[str] = None

    def _set_phase(self, phase: ProviderPhase) -> None:
        logger.trace("bundle_install %s: %s -> %s", self.state.path, self.phase.value, phase.value)
        self.phase = phase

    def action_install(self) -> ConvergeResult:
        "Install bundler and the gems in the Gemfile."
        return self.run_action(Action.install)

    def action_update(self) -> ConvergeResult:
        "Install bundler and update the gems in the Gemfile."
        return self.run_action(Action.update)

    def run_action(self, action: Union[Action, str]) -> ConvergeResult:
        action = Action(action)
        try:
            self._set_phase(ProviderPhase.bootstrapping)
            self.install_bundler()
            self._set_phase(ProviderPhase.resolving)
            gemfile = self.gemfile_path
            return self.run_bundler(action.value, gemfile)
        except Exception:
            self._set_phase(ProviderPhase.failed)
            raise

    def install_bundler(self) -> None:
        """Install bundler using the gem binary.
        Installing or upgrading bundler never counts as a change to the resource."""
        if self.dry_run:
            logger.verbose("dry run: skipping bundler installation")
            return
        modified = self.gem_package.ensure_package(
            BUNDLER_GEM, self.state.bundler_version
        )
        if modified:
            logger.verbose("installed bundler %s", self.state.bundler_version or "(latest)")

    @property
    def gemfile_path(self) -> Optional[str]:
        "The absolute path to the Gemfile, or None if it wasn't found."
        if self._gemfile_path is _unresolved:
            self._gemfile_path = find_gemfile(self.state.path)
        return self._gemfile_path  # type: ignore

    @property
    def bundler_binary(self) -> str:
        "Absolute path to the bundle binary to run."
        if self._bundler_binary is None:
            self._bundler_binary = self.gem_package.binary_path(BUNDLER_EXECUTABLE)
        return self._bundler_binary

    def bundler_command(self, action: str) -> List[str]:
        binary = BUNDLER_EXECUTABLE if self.dry_run else self.bundler_binary
        return bundler_command(binary, action, self.state)

    def run_bundler(self, action: str, gemfile: Optional[str]) -> ConvergeResult:
        command = self.bundler_command(action)
        if self.dry_run:
            logger.info("Would run bundle %s: %s", action, shlex.join(command))
            self._set_phase(ProviderPhase.classified)
            return ConvergeResult(
                action, True, True, Status.pending, command=command, gemfile=gemfile
            )
        if gemfile is None:
            logger.warning(
                "no Gemfile found for %s, leaving %s unset", self.state.path, GEMFILE_ENV_VAR
            )
        self._set_phase(ProviderPhase.executing)
        logger.info("Running bundle %s for %s", action, gemfile or self.state.path)
        result = self.execute(
            command,
            env={GEMFILE_ENV_VAR: gemfile},
            user=self.state.user,
            timeout=self.state.timeout,
        )
        if not result.success:
            raise ProcessExecutionFailure(result)
        # Look for a line like 'Installing $gemname $version' to know if we did anything.
        modified = bundle_installed_gems(str(result.stdout))
        self._set_phase(ProviderPhase.classified)
        logger.verbose(
            "bundle %s %s", action, "installed gems" if modified else "made no changes"
        )
        return ConvergeResult(
            action,
            True,
            modified,
            Status.ok,
            command=command,
            gemfile=gemfile,
            result=result,
        )
