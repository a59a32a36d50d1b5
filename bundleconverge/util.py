# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
import re
import os.path
from collections.abc import Mapping
from shutil import which
from typing import Any, List, Optional, Tuple, TYPE_CHECKING

from jsonschema import Draft7Validator
import jsonschema.exceptions
from click.termui import unstyle

if TYPE_CHECKING:
    from .shell import ExecutionResult

__all__ = [
    "BundleConvergeError",
    "ConfigurationError",
    "ManifestPathError",
    "ToolEnvironmentParseError",
    "ProcessExecutionFailure",
    "BootstrapFailure",
    "which",
    "clean_output",
    "find_schema_errors",
    "expand_path",
]


class BundleConvergeError(Exception):
    pass


class ConfigurationError(BundleConvergeError):
    def __init__(
        self,
        message: object,
        errors: Optional[List[Exception]] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []


class ManifestPathError(BundleConvergeError):
    def __init__(self, path: str) -> None:
        super().__init__(f"path does not exist: {path}")
        self.path = path


class ToolEnvironmentParseError(BundleConvergeError):
    pass


def _describe_result(result: "ExecutionResult") -> str:
    if result.timeout:
        summary = f"timed out after {result.timeout} seconds"
    elif result.error:
        summary = f"failed to run: {result.error}"
    else:
        summary = f"exited with code {result.returncode}"
    return (
        f"{summary}\nstdout:\n{result.stdout or ''}\nstderr:\n{result.stderr or ''}"
    )


class ProcessExecutionFailure(BundleConvergeError):
    """The bundle command did not complete successfully.
    ``result`` holds the captured :class:`~bundleconverge.shell.ExecutionResult`."""

    def __init__(self, result: "ExecutionResult") -> None:
        super().__init__(f'"{result.cmd}" {_describe_result(result)}')
        self.result = result


class BootstrapFailure(BundleConvergeError):
    def __init__(self, message: str, result: "ExecutionResult") -> None:
        super().__init__(f"{message}: {_describe_result(result)}")
        self.result = result


def clean_output(value: str) -> str:
    return re.sub(r"[\x00-\x08\x0e-\x1f\x7f-\x9f]", "", unstyle(value))


def expand_path(path: str, base: Optional[str] = None) -> str:
    "Like Ruby's File.expand_path: expands ~ and makes ``path`` absolute relative to ``base``"
    path = os.path.expanduser(path)
    if base is not None:
        path = os.path.join(os.path.abspath(os.path.expanduser(base)), path)
    return os.path.abspath(path)


def find_schema_errors(
    obj: Any, schema: Mapping
) -> Optional[Tuple[str, List[object]]]:
    Draft7Validator.check_schema(schema)
    validator = Draft7Validator(schema)
    errors = list(validator.iter_errors(obj))
    error = jsonschema.exceptions.best_match(errors)
    if not error:
        return None
    message = "%s in %s" % (
        error.message,
        "/".join([str(p) for p in error.absolute_path]),
    )
    return message, errors
