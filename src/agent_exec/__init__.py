"""Deadline-bounded shell command execution for automation agents."""

from agent_exec.types import (
    MAX_OUTPUT_BYTES,
    SPAWN_ERROR_PREFIX,
    TIMEOUT_MESSAGE,
    TRUNCATION_MARKER,
    ExecutionResult,
    ExecutorConfig,
)
from agent_exec.shells import (
    Invocation,
    ShellKind,
    available_executors,
    is_windows,
    resolve_invocation,
    resolve_shell,
)
from agent_exec.truncation import TruncationResult, find_char_boundary, truncate_output
from agent_exec.executor import CommandExecutor
