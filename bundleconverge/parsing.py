# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Scrapes the text output of ``gem`` and ``bundle``.

Neither tool versions its output so these functions match the exact formats
below and nothing else:

``gem environment`` reports the directory executables are installed into with a line like::

    - EXECUTABLE DIRECTORY: /usr/local/bin

``bundle install`` and ``bundle update`` print a line for each gem they actually install::

    Installing rake 13.0.1
"""
import re
from typing import Optional

EXECUTABLE_DIRECTORY_RE = re.compile(r"EXECUTABLE DIRECTORY: (.*?)\r?$", re.MULTILINE)

INSTALLING_MARKER = "Installing"


def parse_executable_directory(output: str) -> Optional[str]:
    "Return the first EXECUTABLE DIRECTORY in ``gem environment`` output, or None."
    match = EXECUTABLE_DIRECTORY_RE.search(output or "")
    if match:
        return match.group(1)
    return None


def bundle_installed_gems(output: str) -> bool:
    "Whether bundle install or update output says it installed anything."
    return INSTALLING_MARKER in (output or "")


def gem_list_reports_installed(output: str) -> bool:
    "Parse the output of ``gem list --installed``, which is ``true`` or ``false``."
    return (output or "").strip().splitlines()[-1:] == ["true"]


def gem_command_changed(output: str) -> bool:
    """Whether ``gem install`` or ``gem update`` output reports a newly installed gem, e.g.
    ``Successfully installed bundler-2.4.22``."""
    return "Successfully installed" in (output or "")
