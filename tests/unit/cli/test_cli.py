"""Tests for the commandant CLI."""

import json
from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner
from rich.console import Console

from commandant.cli import app
from commandant.cli.app import cli, load_target, parse_options
from commandant.cli.main import main
from examples.entries.commanders import AppendEntries, AppendEntry

ENTRY = "examples.entries.commanders:AppendEntry"
ENTRIES = "examples.entries.commanders:AppendEntries"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables wide enough that cell contents are never wrapped."""
    monkeypatch.setattr(app, "console", Console(width=200))


def as_json(**options):
    return json.dumps(options)


class TestHelpers:
    def test_load_target_colon_form(self):
        assert load_target(ENTRY) is AppendEntry

    def test_load_target_dotted_form(self):
        assert load_target("examples.entries.commanders.AppendEntries") is AppendEntries

    def test_load_target_rejects_non_commander(self):
        with pytest.raises(click.BadParameter, match="is not a Commander"):
            load_target("examples.entries.commanders:EXECUTED")

    def test_load_target_rejects_unknown_module(self):
        with pytest.raises(click.BadParameter, match="cannot import module"):
            load_target("examples.nowhere:Thing")

    def test_load_target_rejects_malformed(self):
        with pytest.raises(click.BadParameter):
            load_target("AppendEntry")

    def test_parse_options_pairs_decode_json(self):
        options = parse_options(("count=3", "tags=[\"a\"]", "name=widget"), None)

        assert options == {"count": 3, "tags": ["a"], "name": "widget"}

    def test_parse_options_pairs_override_json(self):
        options = parse_options(("count=5",), '{"count": 1, "sku": "A"}')

        assert options == {"count": 5, "sku": "A"}

    def test_parse_options_rejects_bad_input(self):
        with pytest.raises(click.BadParameter):
            parse_options((), "{not json")
        with pytest.raises(click.BadParameter):
            parse_options((), "[1, 2]")
        with pytest.raises(click.BadParameter):
            parse_options(("novalue",), None)


class TestDryRunCommand:
    def test_valid_options(self, runner):
        result = runner.invoke(cli, ["dry-run", ENTRY, "--options", as_json(entries=[], notifications=[])])

        assert result.exit_code == 0
        assert "AppendEntry validation passed" in result.output
        assert "validated" in result.output

    def test_failing_condition(self, runner):
        result = runner.invoke(cli, ["dry-run", ENTRY, "-o", "entries=[1, 2]", "-o", "notifications=[]"])

        assert result.exit_code == 1
        assert "AppendEntry validation failed" in result.output
        assert "Array cannot have multiple elements" in result.output
        assert "append_entry-array_has_multiple" in result.output

    def test_argument_mismatch(self, runner):
        result = runner.invoke(cli, ["dry-run", ENTRY, "-o", "entries=oops", "-o", "notifications=[]"])

        assert result.exit_code == 1
        assert "ArgumentMismatch" in result.output

    def test_bad_target(self, runner):
        result = runner.invoke(cli, ["dry-run", "examples.entries.commanders:Missing"])

        assert result.exit_code == 2


class TestRunCommand:
    def test_run_success(self, runner):
        result = runner.invoke(cli, ["run", ENTRIES, "--options", as_json(entries=[], notifications=[])])

        assert result.exit_code == 0
        assert "AppendEntries run passed" in result.output
        assert "done" in result.output
        assert "The returned object is slightly different" in result.output

    def test_run_without_notify(self, runner):
        result = runner.invoke(
            cli, ["run", ENTRIES, "--no-notify", "--options", as_json(entries=[], notifications=[])]
        )

        assert result.exit_code == 0
        assert "executed" in result.output

    def test_run_failure(self, runner):
        result = runner.invoke(
            cli, ["run", ENTRIES, "--options", as_json(entries=[], notifications=[], raise_error=True)]
        )

        assert result.exit_code == 1
        assert "execution_failed" in result.output
        assert "Array cannot have multiple elements" in result.output


class TestListCommand:
    def test_lists_module_commanders(self, runner):
        result = runner.invoke(cli, ["list", "-m", "examples.entries.commanders"])

        assert result.exit_code == 0
        assert "AppendEntry" in result.output
        assert "AppendEntries" in result.output
        assert "supervisor" in result.output
        assert "entries: list" in result.output

    def test_unknown_module(self, runner):
        result = runner.invoke(cli, ["list", "-m", "examples.nowhere"])

        assert result.exit_code == 2


class TestErrorsCommand:
    def test_catalog(self, runner):
        result = runner.invoke(cli, ["errors", ENTRIES])

        assert result.exit_code == 0
        assert "array_not_blank" in result.output
        assert "Inline error raised" in result.output
        assert "invalid_state_transition" in result.output

    def test_prefixed_catalog(self, runner):
        result = runner.invoke(cli, ["errors", ENTRY, "--prefix"])

        assert result.exit_code == 0
        assert "append_entry-array_has_multiple" in result.output


class TestEntryPoint:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "commandant" in result.output

    def test_main_invokes_cli(self):
        with patch("commandant.cli.app.cli") as mock_cli:
            main()

        mock_cli.assert_called_once_with()
