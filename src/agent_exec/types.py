"""Core types for command execution."""

from __future__ import annotations

from dataclasses import dataclass


# Fixed strings and limits that callers match against
MAX_OUTPUT_BYTES = 1_048_576
TIMEOUT_MESSAGE = "Command timed out"
TRUNCATION_MARKER = "\n... [output truncated]"
SPAWN_ERROR_PREFIX = "Execution error: "


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a single command run.

    ``exit_code`` is only set when the process actually ran to completion
    and exited normally; it is ``None`` on timeout, spawn failure, or death
    by signal.
    """

    success: bool = False
    output: str = ""
    exit_code: int | None = None

    @property
    def timed_out(self) -> bool:
        return self.exit_code is None and self.output == TIMEOUT_MESSAGE

    @property
    def spawn_failed(self) -> bool:
        return self.exit_code is None and self.output.startswith(SPAWN_ERROR_PREFIX)


@dataclass(frozen=True)
class ExecutorConfig:
    max_output_bytes: int = MAX_OUTPUT_BYTES
    kill_on_timeout: bool = True
    reap_timeout_seconds: float = 0.5
    platform: str | None = None
