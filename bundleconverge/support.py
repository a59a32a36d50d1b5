# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Enums shared between the provider and the command line.
"""
from enum import Enum


class Status(int, Enum):
    ok = 1
    "The action ran."
    pending = 4
    "Dry run: the action would have run."

    @property
    def color(self):
        return {
            Status.ok: "green",
            Status.pending: "white",
        }[self]


class Action(str, Enum):
    "Actions a ``bundle_install`` resource supports, named after the bundle subcommand they run."

    install = "install"
    update = "update"
