#!/usr/bin/env python
# Copyright (c) 2020 Adam Souzis
# SPDX-License-Identifier: MIT
"""
Converges a project's gems to its Gemfile.

For each action, make sure bundler is installed, then run ``bundle install`` or
``bundle update`` and report whether anything changed.
"""

import functools
import logging
import os
import shlex
import sys
import traceback
from typing import Any, Dict, Optional

import rich_click as click

from . import __version__, logs
from .logs import Levels
from .provider import BundleInstallProvider, ConvergeResult
from .state import ResolveContext, RubyRuntime, load_desired_state, resolve_defaults
from .support import Action, Status
from .util import BundleConvergeError

if os.environ.get("PY_COLORS") == "0":
    click.rich_click.COLOR_SYSTEM = None  # disable colors
click.rich_click.STYLE_OPTION = "green"
click.rich_click.STYLE_COMMAND = "bold green"
click.rich_click.OPTION_ENVVAR_FIRST = False
click.rich_click.ENVVAR_STRING = "(${})"

_latestResults = []  # for testing, results of the current invocation


def option_group(*options):
    # helper to reuse option decorators
    return lambda func: functools.reduce(lambda a, b: b(a), options, func)


def _flag_or_value(ctx, param, value):
    # "--vendor" alone means true, "--vendor=dir" a custom directory
    if value is None or value == "":
        return None
    if value == "true":
        return True
    if value == "false":
        return False
    return value


attributeOptions = option_group(
    click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        help="YAML file with bundle_install attributes (command line options take precedence)",
    ),
    click.option(
        "--binstubs",
        is_flag=False,
        flag_value="true",
        default=None,
        callback=_flag_or_value,
        help="Generate binstubs, use --binstubs=DIR for a custom directory (a separate argument is taken as DIR)",
    ),
    click.option(
        "--bundler-version",
        help="Install this version of bundler (default: upgrade to latest)",
    ),
    click.option(
        "--deployment/--no-deployment",
        default=None,
        help="Install in deployment mode",
    ),
    click.option(
        "--gem-binary",
        envvar="BUNDLECONVERGE_GEM",
        show_envvar=True,
        help="Path to the gem executable (default: gem found on PATH)",
    ),
    click.option(
        "--ruby",
        envvar="BUNDLECONVERGE_RUBY_GEM",
        help="gem executable of the parent ruby runtime, used if --gem-binary isn't set",
    ),
    click.option("--jobs", type=int, help="Number of parallel install jobs"),
    click.option("--retry", type=int, help="Number of times bundler retries network requests"),
    click.option("--user", help="Run bundler as this user"),
    click.option(
        "--vendor",
        is_flag=False,
        flag_value="true",
        default=None,
        callback=_flag_or_value,
        help="Install gems into the project (vendor/bundle), use --vendor=DIR for another path (a separate argument is taken as DIR)",
    ),
    click.option(
        "--without",
        multiple=True,
        help="Exclude this gem group (can be repeated)",
    ),
    click.option("--timeout", type=float, help="Seconds to wait for bundler"),
)


@click.group()
@click.pass_context
@click.option(
    "-v",
    "--verbose",
    count=True,
    metavar="",
    help="Verbose mode (-vv or -vvv for more)",
)
@click.option(
    "-q",
    "--quiet",
    default=False,
    is_flag=True,
    help="Only output critical errors to the stdout",
)
@click.option(
    "--logfile",
    default=None,
    envvar="BUNDLECONVERGE_LOGFILE",
    show_envvar=True,
    help="Log messages to file (at DEBUG level)",
)
@click.option(
    "--loglevel",
    envvar="BUNDLECONVERGE_LOGGING",
    show_envvar=True,
    help="One of trace debug verbose warning info error critical (overrides -v)",
)
@click.version_option(version=__version__(), prog_name="bundleconverge")
def cli(ctx, verbose=0, quiet=False, loglevel=None, logfile=None):
    """Install the gems in a Gemfile with bundler."""
    ctx.ensure_object(dict)
    _latestResults.clear()
    effective_log_level = detect_log_level(loglevel, quiet, verbose)
    ctx.obj["verbose"] = detect_verbose_level(effective_log_level)
    if logfile:
        logs.add_log_file(logfile, effective_log_level)
    logs.set_console_log_level(effective_log_level)
    logging.debug("initialized logging")


def detect_log_level(loglevel: Optional[str], quiet: bool, verbose: int) -> Levels:
    if quiet:
        effective_log_level = Levels.CRITICAL
    else:
        loglevel_env = os.getenv("BUNDLECONVERGE_LOGGING")
        if loglevel_env:
            effective_log_level = Levels[loglevel_env.upper()]
        else:
            levels = [Levels.INFO, Levels.VERBOSE, Levels.DEBUG, Levels.TRACE]
            effective_log_level = levels[min(verbose, 3)]
    if loglevel:
        effective_log_level = Levels[loglevel.upper()]
    return effective_log_level


def detect_verbose_level(effective_log_level: Levels) -> int:
    if effective_log_level is Levels.VERBOSE:
        verbose = 1
    elif effective_log_level is Levels.DEBUG:
        verbose = 2
    elif effective_log_level is Levels.TRACE:
        verbose = 3
    elif effective_log_level is Levels.CRITICAL:
        verbose = -1
    else:
        verbose = 0
    return verbose


def _make_provider(path: str, options: Dict[str, Any]) -> BundleInstallProvider:
    config_file = options.pop("config_file", None)
    dryrun = options.pop("dryrun", False)
    ruby = options.pop("ruby", None)
    attributes: Dict[str, Any] = {}
    if config_file:
        with open(config_file) as f:
            attributes = load_desired_state(f, config_file)
    if options.get("without") == ():
        options.pop("without")
    attributes.update({k: v for k, v in options.items() if v is not None})
    if path:
        attributes["path"] = path
    elif "path" not in attributes:
        attributes["path"] = "."
    context = ResolveContext(parent_ruby=RubyRuntime(ruby) if ruby else None)
    state = resolve_defaults(context, **attributes)
    return BundleInstallProvider(state, dry_run=dryrun)


def _report(result: ConvergeResult) -> None:
    _latestResults.append(result)
    style = result.status.color
    if result.modified:
        verdict = "would change" if result.status is Status.pending else "changed"
    else:
        verdict = "unchanged"
    click.secho(f"bundle {result.action}: {verdict}", fg=style)


def _run(action: Action, path: str, options: Dict[str, Any]) -> None:
    provider = _make_provider(path, options)
    result = provider.run_action(action)
    _report(result)


@cli.command()
@click.pass_context
@click.argument("path", default="", type=click.Path(exists=False))
@attributeOptions
@click.option(
    "--dryrun",
    default=False,
    is_flag=True,
    help="Do not modify anything, just do a dry run.",
)
def install(ctx, path: str, **options):
    """
    Install bundler and the gems in the Gemfile at or above PATH
    (default: the current directory).
    """
    return _run(Action.install, path, options)


@cli.command()
@click.pass_context
@click.argument("path", default="", type=click.Path(exists=False))
@attributeOptions
@click.option(
    "--dryrun",
    default=False,
    is_flag=True,
    help="Do not modify anything, just do a dry run.",
)
def update(ctx, path: str, **options):
    """
    Install bundler and update the gems in the Gemfile at or above PATH
    (default: the current directory).
    """
    return _run(Action.update, path, options)


@cli.command(short_help="Show the Gemfile and command that would be used")
@click.pass_context
@click.argument("path", default="", type=click.Path(exists=False))
@attributeOptions
@click.option(
    "--action",
    type=click.Choice([a.value for a in Action]),
    default=Action.install.value,
    help="The bundle subcommand to plan",
)
def plan(ctx, path: str, action: str, **options):
    """
    Print the Gemfile bundler would use for PATH and the bundle command line,
    without running anything.
    """
    options["dryrun"] = True
    provider = _make_provider(path, options)
    click.echo(f"Gemfile: {provider.gemfile_path or '(not found)'}")
    click.echo(f"Command: {shlex.join(provider.bundler_command(action))}")


def main():
    obj = {"standalone_mode": False}
    try:
        rv = cli(standalone_mode=False, obj=obj)
        sys.exit(rv or 0)
    except click.Abort:
        click.secho("Aborted!", fg="red", err=True)
        sys.exit(1)
    except click.ClickException as e:
        if obj.get("verbose", 0) > 0:
            traceback.print_exc(file=sys.stderr)
        click.secho(f"Error: {e.format_message()}", fg="red", err=True)
        sys.exit(e.exit_code)
    except BundleConvergeError as err:
        if obj.get("verbose", 0) > 0:
            traceback.print_exc(file=sys.stderr)
        click.secho(f"Error: {err}", fg="red", err=True)
        sys.exit(1)
    except Exception as err:
        if obj.get("verbose", 0) > 0:
            traceback.print_exc(file=sys.stderr)
        else:
            click.secho("Exiting with error: " + str(err), fg="red", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
