# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Builds the bundle command line for a :class:`~bundleconverge.state.DesiredState`.
Nothing here touches the filesystem or runs processes.
"""
from typing import List

from .state import DesiredState
from .support import Action
from .util import BundleConvergeError

DEFAULT_VENDOR_PATH = "vendor/bundle"


def bundler_options(state: DesiredState) -> List[str]:
    "Command line options for ``bundle install`` or ``bundle update``."
    opts: List[str] = []
    if state.binstubs:
        opts.append(
            "--binstubs"
            + (f"={state.binstubs}" if isinstance(state.binstubs, str) else "")
        )
    if state.vendor:
        opts.append(
            "--path="
            + (state.vendor if isinstance(state.vendor, str) else DEFAULT_VENDOR_PATH)
        )
    if state.deployment:
        opts.append("--deployment")
    if state.jobs is not None:
        opts.append(f"--jobs={state.jobs}")
    if state.retry is not None:
        opts.append(f"--retry={state.retry}")
    if state.without:
        opts.append("--without")
        opts.extend(state.without)
    return opts


def bundler_command(bundler_binary: str, action: str, state: DesiredState) -> List[str]:
    try:
        command = Action(action).value
    except ValueError:
        raise BundleConvergeError(f'unsupported bundle action "{action}"')
    return [bundler_binary, command] + bundler_options(state)
