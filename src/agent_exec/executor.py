"""Deadline-bounded command execution."""

from __future__ import annotations

import asyncio
import logging
import math
import os
import signal
import subprocess
from datetime import timedelta

from agent_exec.shells import Invocation, resolve_invocation
from agent_exec.truncation import truncate_output
from agent_exec.types import (
    SPAWN_ERROR_PREFIX,
    TIMEOUT_MESSAGE,
    ExecutionResult,
    ExecutorConfig,
)

logger = logging.getLogger(__name__)

_WINDOWS_HOST = os.name == "nt"


def _to_seconds(time_limit: float | timedelta) -> float:
    if isinstance(time_limit, timedelta):
        time_limit = time_limit.total_seconds()
    seconds = float(time_limit)
    if math.isnan(seconds) or seconds < 0:
        logger.debug("Time limit %r is not a valid duration, using 0", time_limit)
        return 0.0
    return seconds


def _spawn_error(exc: BaseException) -> ExecutionResult:
    return ExecutionResult(success=False, output=f"{SPAWN_ERROR_PREFIX}{exc}", exit_code=None)


class CommandExecutor:
    """Runs shell commands under a wall-clock deadline.

    Holds nothing but an immutable config, so one instance can serve any
    number of concurrent ``execute`` calls.
    """

    def __init__(self, config: ExecutorConfig | None = None) -> None:
        self._config = config or ExecutorConfig()

    @property
    def config(self) -> ExecutorConfig:
        return self._config

    async def execute(
        self,
        executor_type: str,
        command: str,
        time_limit: float | timedelta,
    ) -> ExecutionResult:
        """Run ``command`` with the shell named by ``executor_type``.

        Every failure is reported through the returned ``ExecutionResult``.
        Only cancellation of the calling task propagates, after the child
        process tree has been killed.
        """
        invocation = resolve_invocation(executor_type, command, self._config.platform)
        logger.debug("Executing command with %s: %s", executor_type, command)

        limit = _to_seconds(time_limit)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + limit

        try:
            proc = await self._spawn(invocation)
        except (OSError, ValueError) as e:
            logger.error("Command execution failed: %s", e)
            return _spawn_error(e)

        remaining = max(deadline - loop.time(), 0.0)
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning("Command timed out after %.3fs: %s", limit, command)
            if self._config.kill_on_timeout:
                await self._terminate(proc)
            return ExecutionResult(success=False, output=TIMEOUT_MESSAGE, exit_code=None)
        except asyncio.CancelledError:
            _kill_tree_now(proc)
            await asyncio.shield(self._reap(proc))
            raise
        except Exception as e:
            logger.exception("Command execution failed while waiting for output")
            _kill_tree_now(proc)
            await self._reap(proc)
            return _spawn_error(e)

        return self._build_result(proc.returncode, stdout, stderr)

    def execute_sync(
        self,
        executor_type: str,
        command: str,
        time_limit: float | timedelta,
    ) -> ExecutionResult:
        """Blocking wrapper around :meth:`execute` for callers without a loop."""
        return asyncio.run(self.execute(executor_type, command, time_limit))

    async def _spawn(self, invocation: Invocation) -> asyncio.subprocess.Process:
        kwargs: dict[str, object] = {}
        if _WINDOWS_HOST:
            kwargs["creationflags"] = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
        else:
            kwargs["start_new_session"] = True
        return await asyncio.create_subprocess_exec(
            *invocation.argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **kwargs,
        )

    def _build_result(
        self, returncode: int | None, stdout: bytes | None, stderr: bytes | None
    ) -> ExecutionResult:
        combined = (stdout or b"").decode("utf-8", errors="replace") + (
            stderr or b""
        ).decode("utf-8", errors="replace")
        truncated = truncate_output(combined.strip(), self._config.max_output_bytes)
        if truncated.was_truncated:
            logger.debug(
                "Output truncated from %d to %d bytes",
                truncated.original_bytes,
                self._config.max_output_bytes,
            )

        # Negative return codes mean death by signal; no exit status exists
        exit_code = returncode if returncode is not None and returncode >= 0 else None
        return ExecutionResult(
            success=returncode == 0,
            output=truncated.text,
            exit_code=exit_code,
        )

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """Kill the process and its descendants, then reap it."""
        if _WINDOWS_HOST:
            await _taskkill(proc.pid)
        _kill_tree_now(proc)
        await self._reap(proc)

    async def _reap(self, proc: asyncio.subprocess.Process) -> None:
        """Wait briefly for a killed process to exit, then drop its pipes.

        A descendant that left the process group can keep the pipes open
        after the group is dead; closing the transport stops waiting on it.
        """
        try:
            await asyncio.wait_for(proc.wait(), timeout=self._config.reap_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error("Process %d not reaped within %.2fs", proc.pid, self._config.reap_timeout_seconds)
        _close_pipes(proc)


def _close_pipes(proc: asyncio.subprocess.Process) -> None:
    # asyncio.subprocess.Process has no public close; its transport owns the pipes
    transport = getattr(proc, "_transport", None)
    if transport is not None:
        transport.close()


def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
    # The child leads its own session, so its pid is the group id. Signal
    # the group even after the leader exits: descendants may hold the pipes.
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        pass


def _kill_tree_now(proc: asyncio.subprocess.Process) -> None:
    if not _WINDOWS_HOST:
        _signal_group(proc, signal.SIGKILL)
    elif proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass


async def _taskkill(pid: int) -> None:
    try:
        killer = await asyncio.create_subprocess_exec(
            "taskkill", "/T", "/F", "/PID", str(pid),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        await killer.wait()
    except OSError as e:
        logger.warning("taskkill failed for pid %d: %s", pid, e)
