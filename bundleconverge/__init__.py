# SPDX-License-Identifier: MIT
# Copyright (c) 2020 Adam Souzis
from importlib.metadata import PackageNotFoundError, version

from bundleconverge import logs


# We need to initialize logging before any logger is created
logs.initialize_logging()


def __version__() -> str:
    try:
        return version("bundleconverge")
    except PackageNotFoundError:
        return "0.0.0"
