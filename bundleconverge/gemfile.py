# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
import os.path
from typing import Optional

from .util import ManifestPathError

GEMFILE = "Gemfile"


def find_gemfile(path: str) -> Optional[str]:
    """
    Find the absolute path to the Gemfile bundler would use for ``path``.
    This mirrors bundler's internal search logic by scanning up to parent folders as needed.

    If ``path`` is a file it is returned as is (in absolute form), whatever its name.
    Returns None if no Gemfile was found, in which case bundler itself will report the error.

    Raises:
        ManifestPathError: if ``path`` doesn't exist.
    """
    path = os.path.abspath(os.path.expanduser(path))
    if os.path.isfile(path):
        # We got a path to a real file, use that.
        return path
    if not os.path.exists(path):
        raise ManifestPathError(path)
    # walk back until path == dirname(path) meaning we are at the root
    next_path = os.path.dirname(path)
    while path != next_path:
        possible_path = os.path.join(path, GEMFILE)
        if os.path.isfile(possible_path):
            return possible_path
        path = next_path
        next_path = os.path.dirname(path)
    return None
