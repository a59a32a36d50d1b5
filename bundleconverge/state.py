# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Desired state for a ``bundle_install`` resource.

Defaults are resolved once by :func:`resolve_defaults` before a provider runs,
producing an immutable :class:`DesiredState`. Attributes can also be loaded from
a YAML document, for example::

    path: /opt/my_app
    bundler_version: 2.4.22
    deployment: true
    without: [test, development]
"""
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ruamel.yaml import YAML

from .logs import getLogger
from .util import (
    ConfigurationError,
    ManifestPathError,
    expand_path,
    find_schema_errors,
    which,
)

logger = getLogger("bundleconverge.state")

_string_or_int = {"type": ["string", "integer"]}
_flag_or_string = {"anyOf": [{"type": "boolean"}, {"type": "string", "minLength": 1}]}

SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "path": {"type": "string", "minLength": 1},
        "binstubs": _flag_or_string,
        "bundler_version": {"type": ["string", "null"]},
        "deployment": {"type": "boolean"},
        "gem_binary": {"type": ["string", "null"]},
        "jobs": _string_or_int,
        "retry": _string_or_int,
        "user": {"type": ["string", "null"]},
        "vendor": _flag_or_string,
        "without": {
            "anyOf": [
                {"type": "string"},
                {"type": "array", "items": {"type": "string"}},
            ]
        },
        "timeout": {"type": ["number", "null"], "exclusiveMinimum": 0},
    },
    "required": ["path"],
    "additionalProperties": False,
}


@dataclass(frozen=True)
class RubyRuntime:
    """A ruby installation the resource can inherit its gem binary from."""

    gem_binary: str


@dataclass
class ResolveContext:
    """What defaults are resolved against."""

    parent_ruby: Optional[RubyRuntime] = None
    which: Callable[[str], Optional[str]] = which


@dataclass(frozen=True)
class DesiredState:
    path: str
    "Path to the Gemfile or to a directory that contains a Gemfile."
    gem_binary: str
    "The ``gem`` executable used to install bundler and to locate its binary directory."
    binstubs: Union[bool, str] = False
    "Generate binstubs, into the given directory if it is a string."
    bundler_version: Optional[str] = None
    "Pin bundler to this version. If None bundler is upgraded to the latest version."
    deployment: bool = False
    jobs: Optional[Union[int, str]] = None
    retry: Optional[Union[int, str]] = None
    user: Optional[str] = None
    "Run bundler as this user."
    vendor: Union[bool, str] = False
    "Install gems into the project, into ``vendor/bundle`` unless given a path."
    without: Tuple[str, ...] = field(default_factory=tuple)
    "Gem groups to exclude, in order."
    timeout: Optional[float] = None

    @property
    def absolute_gem_binary(self) -> str:
        # relative gem binaries are relative to the project
        base = self.path
        if os.path.isfile(base):
            base = os.path.dirname(base)
        return expand_path(self.gem_binary, base)


def _default_gem_binary(context: ResolveContext) -> Optional[str]:
    if context.parent_ruby:
        return context.parent_ruby.gem_binary
    return context.which("gem")


def resolve_defaults(context: ResolveContext, **attributes: Any) -> DesiredState:
    """
    Validate ``attributes`` and fill in the defaults that depend on ``context``.

    Raises:
        ConfigurationError: if the attributes are invalid or no gem binary can be found.
        ManifestPathError: if ``path`` doesn't exist.
    """
    attributes = {k: v for k, v in attributes.items() if v is not None}
    if isinstance(attributes.get("path"), os.PathLike):
        attributes["path"] = os.fspath(attributes["path"])
    if isinstance(attributes.get("without"), tuple):
        attributes["without"] = list(attributes["without"])
    errors = find_schema_errors(attributes, SCHEMA)
    if errors:
        raise ConfigurationError(
            f"invalid bundle_install attributes: {errors[0]}", errors[1]  # type: ignore
        )
    path = expand_path(attributes["path"])
    if not os.path.exists(path):
        raise ManifestPathError(path)
    attributes["path"] = path

    if not attributes.get("gem_binary"):
        gem_binary = _default_gem_binary(context)
        if not gem_binary:
            raise ConfigurationError(
                "gem_binary not set and no gem executable found on PATH"
            )
        logger.debug("using default gem binary %s", gem_binary)
        attributes["gem_binary"] = gem_binary

    without = attributes.get("without")
    if without is not None:
        if isinstance(without, str):
            without = [without]
        attributes["without"] = tuple(without)
    return DesiredState(**attributes)


def load_desired_state(stream: Any, path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load bundle_install attributes from a YAML stream or string.
    A relative ``path`` attribute is interpreted relative to the directory containing ``path``.
    """
    yaml = YAML(typ="safe")
    doc = yaml.load(stream)
    if doc is None:
        doc = {}
    if not isinstance(doc, Mapping):
        raise ConfigurationError(
            f"expected a mapping of bundle_install attributes in {path or 'document'}"
        )
    attributes = dict(doc)
    if path and isinstance(attributes.get("path"), str):
        attributes["path"] = expand_path(
            attributes["path"], os.path.dirname(os.path.abspath(path))
        )
    return attributes
