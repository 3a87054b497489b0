"""Tests for CLI entry point."""

import os

import pytest
from click.testing import CliRunner

from agent_exec.cli import EXIT_SPAWN_FAILURE, EXIT_TIMEOUT, main, parse_timeout
from agent_exec.types import TIMEOUT_MESSAGE, TRUNCATION_MARKER

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX shell commands")


@pytest.fixture
def runner():
    return CliRunner()


class TestParseTimeout:
    @pytest.mark.parametrize(
        "text, expected",
        [("30s", 30.0), ("100ms", 0.1), ("5m", 300.0), ("2.5", 2.5), (" 1S ", 1.0), ("0", 0.0)],
    )
    def test_valid(self, text, expected):
        assert parse_timeout(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "abc", "10h", "-1s"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_timeout(text)


@posix_only
class TestRunCommand:
    def test_success(self, runner):
        result = runner.invoke(main, ["run", "echo hello", "-e", "sh"])
        assert result.exit_code == 0
        assert "hello" in result.output

    def test_default_executor(self, runner):
        result = runner.invoke(main, ["run", "echo default"])
        assert result.exit_code == 0
        assert "default" in result.output

    def test_exit_code_propagated(self, runner):
        result = runner.invoke(main, ["run", "exit 3"])
        assert result.exit_code == 3

    def test_timeout(self, runner):
        result = runner.invoke(main, ["run", "sleep 10", "--timeout", "100ms"])
        assert result.exit_code == EXIT_TIMEOUT
        assert TIMEOUT_MESSAGE in result.output

    def test_max_output(self, runner):
        result = runner.invoke(main, ["run", "printf '%020d' 0", "--max-output", "5"])
        assert result.exit_code == 0
        assert "00000" + TRUNCATION_MARKER in result.output

    def test_invalid_timeout(self, runner):
        result = runner.invoke(main, ["run", "true", "--timeout", "soon"])
        assert result.exit_code == 2
        assert "Invalid timeout" in result.output

    def test_spawn_failure(self, runner, monkeypatch):
        def _fail(*args, **kwargs):
            raise FileNotFoundError("no such shell")

        monkeypatch.setattr("agent_exec.executor.asyncio.create_subprocess_exec", _fail)
        result = runner.invoke(main, ["run", "true"])
        assert result.exit_code == EXIT_SPAWN_FAILURE
        assert "Execution error: no such shell" in result.output

    def test_verbose_flag(self, runner):
        result = runner.invoke(main, ["-v", "run", "echo hi"])
        assert result.exit_code == 0


class TestExecutorsCommand:
    def test_lists_executors(self, runner, monkeypatch):
        monkeypatch.setattr("agent_exec.cli.available_executors", lambda: ["bash", "sh"])
        result = runner.invoke(main, ["executors"])
        assert result.exit_code == 0
        assert result.output.split() == ["bash", "sh"]

    def test_none_found(self, runner, monkeypatch):
        monkeypatch.setattr("agent_exec.cli.available_executors", lambda: [])
        result = runner.invoke(main, ["executors"])
        assert result.exit_code == 1
