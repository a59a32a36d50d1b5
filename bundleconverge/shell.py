# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Runs external commands and captures their output.

:func:`execute` is the default process collaborator used by the provider and the gem bootstrap;
anything with the same signature can be substituted.
"""
import os
import shlex
import subprocess
from typing import Dict, List, Mapping, Optional, Sequence, Union

from typing_extensions import Protocol

from .logs import getLogger, truncate
from .util import clean_output

logger = getLogger("bundleconverge.shell")


class ExecutionResult:
    """
    The outcome of running a command:

    cmd
        the command line as a string
    returncode
        None if the process didn't complete
    stdout, stderr
        captured output, decoded if possible
    timeout
        None unless a timeout occurred
    error
        the exception if the process couldn't be run
    """

    def __init__(
        self,
        cmd: str,
        returncode: Optional[int],
        stdout: Union[None, str, bytes] = None,
        stderr: Union[None, str, bytes] = None,
        timeout: Optional[float] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timeout = timeout
        self.error = error

    @property
    def success(self) -> bool:
        return not self.error and not self.timeout and self.returncode == 0

    def __repr__(self) -> str:
        return f"ExecutionResult({self.cmd!r}, returncode={self.returncode})"


class Execute(Protocol):
    def __call__(
        self,
        argv: Sequence[str],
        env: Optional[Mapping[str, Optional[str]]] = None,
        user: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ExecutionResult:
        ...


def _decode(data: Union[None, str, bytes]) -> Union[str, bytes]:
    if data is None:
        return ""
    if isinstance(data, bytes):
        # leave as binary if that fails
        try:
            return clean_output(data.decode())
        except UnicodeDecodeError:
            return data
    return clean_output(data)


def make_env(env: Optional[Mapping[str, Optional[str]]] = None) -> Dict[str, str]:
    "Copy os.environ and apply ``env``, where None values remove the variable."
    environ = dict(os.environ)
    for key, value in (env or {}).items():
        if value is None:
            environ.pop(key, None)
        else:
            environ[key] = value
    return environ


def execute(
    argv: Sequence[str],
    env: Optional[Mapping[str, Optional[str]]] = None,
    user: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ExecutionResult:
    """
    Run ``argv`` (without a shell) and wait for it to finish.
    Failures are reported in the returned :class:`ExecutionResult`, not raised.
    """
    cmd: List[str] = list(argv)
    cmdStr = shlex.join(cmd)
    logger.trace("executing %s", cmdStr)
    kwargs = {}
    if user:
        kwargs["user"] = user
    try:
        completed = subprocess.run(
            cmd,
            env=make_env(env),
            timeout=timeout,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            **kwargs,
        )
    except subprocess.TimeoutExpired as err:
        result = ExecutionResult(
            cmdStr, None, _decode(err.stdout), _decode(err.stderr), timeout=timeout
        )
    except Exception as err:
        result = ExecutionResult(cmdStr, None, error=err)
    else:
        result = ExecutionResult(
            cmdStr,
            completed.returncode,
            _decode(completed.stdout),
            _decode(completed.stderr),
        )
    log_result(result)
    return result


def log_result(result: ExecutionResult) -> None:
    if result.success:
        logger.verbose("ran: %s", result.cmd)
        logger.debug("output: %s", truncate(str(result.stdout)))
    else:
        logger.warning("command failed: %s", result.cmd)
        if result.error:
            logger.info("error running command", exc_info=result.error)
        else:
            logger.info(
                "return code: %s, stderr: %s",
                result.returncode,
                truncate(str(result.stderr)),
            )
