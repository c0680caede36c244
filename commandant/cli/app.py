"""
Commandant CLI Application - Built with Click.

Commands:
- dry-run: validate a commander against options without executing it
- run: full lifecycle in non-raising mode
- list: registered commanders and their argument constraints
- errors: a commander's error catalog
"""

import importlib
import json
import os
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from commandant import __version__
from commandant.core.commander import Commander
from commandant.core.registry import CommanderRegistry
from commandant.core.supervisor import Supervisor

console = Console()


# ============================================================================
# CLI Group
# ============================================================================


class OrderedGroup(click.Group):
    """Click Group that lists commands in the order they were added."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.version_option(version=__version__, prog_name="commandant")
def cli():
    """
    Commandant - units of work with validate / execute / notify lifecycles.

    \b
    Analysis (no side effects):
        dry-run          Validate a commander against options
        list             List registered commanders
        errors           Show a commander's error catalog
    \b
    Execution:
        run              Validate, execute and notify a commander

    TARGET is written as ``package.module:ClassName``.
    """


# ============================================================================
# Helpers
# ============================================================================


def _import_module(module_name: str):
    # Modules are resolved relative to the working directory, like `python -m`
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())
    try:
        return importlib.import_module(module_name)
    except ImportError as e:
        msg = f"cannot import module '{module_name}': {e}"
        raise click.BadParameter(msg) from e


def load_target(target: str) -> type[Commander]:
    """Resolve ``module:ClassName`` (or ``module.ClassName``) to a commander class."""
    if ":" in target:
        module_name, _, class_name = target.partition(":")
    else:
        module_name, _, class_name = target.rpartition(".")

    if not module_name or not class_name:
        msg = f"'{target}' is not of the form module:ClassName"
        raise click.BadParameter(msg, param_hint="TARGET")

    module = _import_module(module_name)
    commander_cls = getattr(module, class_name, None)
    if not isinstance(commander_cls, type) or not issubclass(commander_cls, Commander):
        msg = f"'{class_name}' in '{module_name}' is not a Commander"
        raise click.BadParameter(msg, param_hint="TARGET")
    return commander_cls


def parse_options(pairs: tuple[str, ...], options_json: str | None) -> dict[str, Any]:
    """
    Merge ``--options`` JSON with ``-o key=value`` pairs (pairs win).

    Pair values are decoded as JSON when possible (``-o count=3`` gives an
    int, ``-o tags='["a"]'`` a list) and kept as strings otherwise.
    """
    options: dict[str, Any] = {}
    if options_json:
        try:
            decoded = json.loads(options_json)
        except json.JSONDecodeError as e:
            msg = f"invalid JSON: {e}"
            raise click.BadParameter(msg, param_hint="--options") from e
        if not isinstance(decoded, dict):
            msg = "must be a JSON object"
            raise click.BadParameter(msg, param_hint="--options")
        options.update(decoded)

    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            msg = f"'{pair}' is not of the form key=value"
            raise click.BadParameter(msg, param_hint="--option")
        try:
            options[key] = json.loads(raw)
        except json.JSONDecodeError:
            options[key] = raw

    return options


def _kind(commander_cls: type) -> str:
    return "supervisor" if issubclass(commander_cls, Supervisor) else "commander"


def _display_outcome(commander: Commander, action: str) -> None:
    if commander.success:
        console.print(Panel(f"[green]✓ {escape(commander.name)} {action} passed[/green]", title="Success"))
    else:
        console.print(Panel(f"[red]✗ {escape(commander.name)} {action} failed[/red]", title="Error"))

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("State", commander.state.value)
    if commander.failure:
        code = getattr(commander.error, "code", None)
        table.add_row("Error", type(commander.error).__name__)
        if code:
            table.add_row("Code", escape(code))
        table.add_row("Message", escape(commander.message or ""))
    elif commander.return_value is not None:
        table.add_row("Result", escape(repr(commander.return_value)))
    console.print(table)


option_pairs = click.option(
    "--option", "-o", "pairs", multiple=True, help="Option as key=value (repeatable)"
)
options_json = click.option("--options", "options_json", default=None, help="Options as a JSON object")


# ============================================================================
# Commands
# ============================================================================


@cli.command(name="dry-run")
@click.argument("target")
@option_pairs
@options_json
def dry_run_cmd(target: str, pairs: tuple[str, ...], options_json: str | None):
    """Validate TARGET against the given options without executing it."""
    commander_cls = load_target(target)
    commander = commander_cls.dry_run(parse_options(pairs, options_json))
    _display_outcome(commander, "validation")
    sys.exit(0 if commander.success else 1)


@cli.command(name="run")
@click.argument("target")
@option_pairs
@options_json
@click.option("--no-notify", is_flag=True, help="Skip the notify phase")
def run_cmd(target: str, pairs: tuple[str, ...], options_json: str | None, no_notify: bool):
    """Validate, execute and notify TARGET."""
    commander_cls = load_target(target)
    commander = commander_cls.run(parse_options(pairs, options_json), notify=not no_notify)
    _display_outcome(commander, "run")
    sys.exit(0 if commander.success else 1)


@cli.command(name="list")
@click.option("--module", "-m", "modules", multiple=True, help="Module to import before listing (repeatable)")
def list_cmd(modules: tuple[str, ...]):
    """List registered commanders and their argument constraints."""
    for module_name in modules:
        _import_module(module_name)

    specs = [
        (commander_cls, spec)
        for commander_cls, spec in CommanderRegistry.get_all().items()
        if commander_cls not in (Commander, Supervisor)
    ]
    if not specs:
        console.print("[yellow]No commanders registered.[/yellow] Pass modules with -m.")
        return

    table = Table(title="Registered Commanders", show_header=True)
    table.add_column("Commander", style="cyan")
    table.add_column("Kind")
    table.add_column("Module", style="dim")
    table.add_column("Arguments")

    for commander_cls, spec in sorted(specs, key=lambda item: (item[0].__module__, item[1].name)):
        arguments = ", ".join(f"{a.name}: {a.expected}" for a in spec.arguments) or "-"
        table.add_row(spec.name, _kind(commander_cls), commander_cls.__module__, escape(arguments))

    console.print(table)


@cli.command(name="errors")
@click.argument("target")
@click.option("--prefix", is_flag=True, help="Show codes with the commander prefix")
def errors_cmd(target: str, prefix: bool):
    """Show the error catalog of TARGET."""
    commander_cls = load_target(target)

    table = Table(title=f"{commander_cls.__name__} errors", show_header=True)
    table.add_column("Code", style="cyan", no_wrap=True)
    table.add_column("Message")
    for code, message in commander_cls.possible_errors(with_prefix=prefix).items():
        table.add_row(escape(code), escape(message))

    console.print(table)
