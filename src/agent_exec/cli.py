"""CLI entry point for running a single command under a deadline."""

from __future__ import annotations

import logging
import sys

import click

from agent_exec.executor import CommandExecutor
from agent_exec.shells import available_executors, is_windows
from agent_exec.types import MAX_OUTPUT_BYTES, ExecutorConfig

EXIT_TIMEOUT = 124
EXIT_SPAWN_FAILURE = 127


def parse_timeout(s: str) -> float:
    """Parse a timeout string like '100ms', '30s' or '5m' to seconds."""
    s = s.strip().lower()
    try:
        if s.endswith("ms"):
            value = float(s[:-2]) / 1000
        elif s.endswith("s"):
            value = float(s[:-1])
        elif s.endswith("m"):
            value = float(s[:-1]) * 60
        else:
            value = float(s)
    except ValueError:
        raise ValueError(f"Invalid timeout: {s!r}") from None
    if value < 0:
        raise ValueError(f"Timeout must not be negative: {s!r}")
    return value


def _timeout_callback(ctx: click.Context, param: click.Parameter, value: str) -> float:
    try:
        return parse_timeout(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log execution details to stderr")
def main(verbose: bool):
    """agent-exec: run shell commands with a deadline and bounded output."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@main.command()
@click.argument("command")
@click.option(
    "-e", "--executor", "executor_type",
    default=None,
    help="Executor type (bash, sh, zsh, cmd, powershell, pwsh); platform default if omitted",
)
@click.option("--timeout", default="30s", callback=_timeout_callback, help="Deadline, e.g. 500ms, 30s, 5m")
@click.option("--max-output", default=MAX_OUTPUT_BYTES, type=click.IntRange(min=0), help="Output cap in bytes")
@click.option("--no-kill", is_flag=True, help="Leave the process running when the deadline passes")
def run(command: str, executor_type: str | None, timeout: float, max_output: int, no_kill: bool):
    """Run COMMAND once and print its combined output."""
    if executor_type is None:
        executor_type = "powershell" if is_windows() else "sh"

    config = ExecutorConfig(max_output_bytes=max_output, kill_on_timeout=not no_kill)
    result = CommandExecutor(config).execute_sync(executor_type, command, timeout)

    if result.output:
        click.echo(result.output, err=not result.success and result.exit_code is None)

    if result.timed_out:
        sys.exit(EXIT_TIMEOUT)
    if result.spawn_failed:
        sys.exit(EXIT_SPAWN_FAILURE)
    if result.exit_code is None:
        # Killed by a signal
        sys.exit(1)
    sys.exit(result.exit_code)


@main.command()
def executors():
    """List executor types whose shells are installed on this host."""
    names = available_executors()
    if not names:
        click.echo("No supported shells found", err=True)
        sys.exit(1)
    for name in names:
        click.echo(name)


if __name__ == "__main__":
    main()
