"""End-to-end tests for the bale command line."""

import json
import logging
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from bale_cli.main import cli
from bale_cli.main import forwarded_args
from bale_cli.paths import MARKER_FILE

PLUGIN = '''
class Banner:
    slug = "banner"

    def transform(self, source, context):
        return "/* banner */\\n" + source


plugin = Banner
'''


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("BALE_LOG_PATH", raising=False)
    return CliRunner()


@pytest.fixture
def interactive():
    with patch("bale_cli.main._stdin_is_tty", return_value=True):
        yield


@pytest.fixture
def piped():
    with patch("bale_cli.main._stdin_is_tty", return_value=False):
        yield


@pytest.fixture
def app(project):
    (project / "a.js").write_text("var a = 1;\n")
    (project / "b.js").write_text("var b = 2;\n")
    return project


class TestForwardedArgs:
    def test_tokens_after_subcommand(self):
        assert forwarded_args(["deploy", "--prod", "x"], "deploy") == ["--prod", "x"]

    def test_skips_bale_option_values(self):
        assert forwarded_args(["--use", "deploy", "deploy", "a"], "deploy") == ["a"]

    def test_flags_before_subcommand(self):
        assert forwarded_args(["--quiet", "deploy"], "deploy") == []

    def test_equals_form_takes_no_extra_token(self):
        assert forwarded_args(["--root=x", "deploy", "y"], "deploy") == ["y"]


class TestHelp:
    def test_no_arguments_shows_help(self, runner, project, interactive):
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_output_without_entries_shows_help(self, runner, project, interactive):
        result = runner.invoke(cli, ["--output", "dist"])
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "bale" in result.output


class TestBuild:
    def test_single_entry_to_stdout(self, runner, app, interactive):
        result = runner.invoke(cli, ["--quiet", "a.js"])
        assert result.exit_code == 0, result.output
        assert result.output == "var a = 1;\n"

    def test_plugins_from_command_line(self, runner, app, interactive):
        (app / "banner.py").write_text(PLUGIN)
        result = runner.invoke(cli, ["--quiet", "--use", "banner", "a.js"])
        assert result.exit_code == 0, result.output
        assert result.output == "/* banner */\nvar a = 1;\n"

    def test_plugins_from_settings(self, runner, app, interactive):
        (app / ".bale" / "plugins").mkdir(parents=True)
        (app / ".bale" / "plugins" / "banner.py").write_text(PLUGIN)
        (app / MARKER_FILE).write_text("use: [banner]\n")

        result = runner.invoke(cli, ["--quiet", "a.js"])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("/* banner */")

    def test_broken_plugin_fails_the_run_after_building(self, runner, app, interactive):
        (app / "banner.py").write_text(PLUGIN)
        (app / "broken.py").write_text("raise RuntimeError('no way')\n")

        result = runner.invoke(cli, ["--quiet", "--use", "broken,banner", "a.js"])

        assert result.exit_code == 1
        assert "Plugin 'broken' failed to load" in result.output
        assert "/* banner */\nvar a = 1;\n" in result.output

    def test_stdin_build(self, runner, project, piped):
        result = runner.invoke(cli, ["--quiet", "--type", "css"], input="a { color: red }")
        assert result.exit_code == 0, result.output
        assert result.output == "a { color: red }"

    def test_stdin_build_reports_from_stdin(self, runner, project, piped):
        result = runner.invoke(cli, ["--type", "css"], input="a { }")
        assert result.exit_code == 0, result.output
        assert "from stdin" in result.output
        assert "source.css" not in result.output

    def test_entry_file_named_source_is_shown_by_name(self, runner, project, interactive):
        (project / "source.js").write_text("var s = 1;\n")

        result = runner.invoke(cli, ["source.js"])

        assert result.exit_code == 0, result.output
        assert "building source.js" in result.output
        assert "from stdin" not in result.output

    def test_status_events_reach_the_debug_log(self, runner, app, interactive, monkeypatch):
        log_path = app / "bale.jsonl"
        monkeypatch.setenv("BALE_LOG_PATH", str(log_path))
        root_logger = logging.getLogger()
        handlers, level = list(root_logger.handlers), root_logger.level
        try:
            result = runner.invoke(cli, ["a.js"])
        finally:
            root_logger.handlers[:] = handlers
            root_logger.setLevel(level)

        assert result.exit_code == 0, result.output
        records = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert [r["event"] for r in records if r["logger"] == "bale_cli.events"] == [
            "installing",
            "installed",
            "building",
            "built",
        ]

    def test_batch_into_directory(self, runner, app, interactive):
        result = runner.invoke(cli, ["--quiet", "--copy", "a.js", "b.js", "out"])

        assert result.exit_code == 0, result.output
        assert (app / "out" / "a.js").read_text() == "var a = 1;\n"
        assert (app / "out" / "b.js").read_text() == "var b = 2;\n"

    def test_multiple_entries_default_to_dist(self, runner, app, interactive):
        result = runner.invoke(cli, ["--quiet", "a.js", "b.js"])

        assert result.exit_code == 0, result.output
        assert (app / "dist" / "a.js").is_symlink()
        assert (app / "dist" / "b.js").is_symlink()

    def test_explicit_output(self, runner, app, interactive):
        result = runner.invoke(cli, ["--quiet", "--copy", "--output", "public", "a.js"])

        assert result.exit_code == 0, result.output
        assert (app / "public" / "a.js").exists()

    def test_batch_failure_exits_nonzero(self, runner, app, interactive):
        result = runner.invoke(cli, ["--copy", "a.js", "missing.js", "out"])

        assert result.exit_code == 1
        assert "missing.js" in result.output
        assert (app / "out" / "a.js").exists()

    def test_missing_single_entry_fails(self, runner, app, interactive):
        result = runner.invoke(cli, ["--quiet", "missing.js"])
        assert result.exit_code == 1
        assert "Cannot find entry missing.js" in result.output

    def test_unmatched_glob_is_dropped(self, runner, app, interactive):
        result = runner.invoke(cli, ["--quiet", "a.js", "src/*.ts"])
        assert result.exit_code == 0, result.output
        assert result.output == "var a = 1;\n"

    def test_explicit_root(self, runner, tmp_path, app, interactive):
        other = tmp_path / "other"
        other.mkdir()
        (other / "banner.py").write_text(PLUGIN)

        result = runner.invoke(cli, ["--quiet", "--root", str(other), "--use", "banner", "a.js"])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("/* banner */")

    def test_unknown_option(self, runner, app, interactive):
        result = runner.invoke(cli, ["a.js", "--bogus"])
        assert result.exit_code == 2
        assert "--bogus" in result.output


class TestSubcommands:
    def test_dispatches_and_propagates_exit_code(self, runner, project):
        with patch("bale_cli.main.dispatch", return_value=5) as dispatch:
            result = runner.invoke(cli, ["deploy", "--force", "prod"])

        assert result.exit_code == 5
        dispatch.assert_called_once_with("deploy", ["--force", "prod"])

    def test_missing_subcommand(self, runner, project, tmp_path, monkeypatch):
        monkeypatch.setenv("PATH", str(tmp_path / "empty"))
        with patch("bale_cli.subcommands.candidate_dirs", return_value=[tmp_path / "empty"]):
            result = runner.invoke(cli, ["nothere"])

        assert result.exit_code == 1
        assert "bale-nothere does not exist" in result.output

    def test_file_argument_is_not_a_subcommand(self, runner, app, interactive):
        with patch("bale_cli.main.dispatch") as dispatch:
            runner.invoke(cli, ["--quiet", "a.js"])
        dispatch.assert_not_called()
