"""Shell resolution: map a logical executor type to a concrete invocation."""

from __future__ import annotations

import logging
import os
import platform as _platform
import shutil
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ShellKind(str, Enum):
    POWERSHELL = "powershell"
    PWSH = "pwsh"
    CMD = "cmd"
    BASH = "bash"
    ZSH = "zsh"
    SH = "sh"


_PS_FLAGS = ("-NoProfile", "-NonInteractive", "-Command")

# shell -> (program, flags preceding the command)
_SHELL_COMMANDS: dict[ShellKind, tuple[str, tuple[str, ...]]] = {
    ShellKind.POWERSHELL: ("powershell.exe", _PS_FLAGS),
    ShellKind.PWSH: ("pwsh.exe", _PS_FLAGS),
    ShellKind.CMD: ("cmd.exe", ("/C",)),
    ShellKind.BASH: ("/bin/bash", ("-c",)),
    ShellKind.ZSH: ("/bin/zsh", ("-c",)),
    ShellKind.SH: ("/bin/sh", ("-c",)),
}

# Executor type names accepted per platform family, in advertised order
WINDOWS_EXECUTORS: dict[str, ShellKind] = {
    "powershell": ShellKind.POWERSHELL,
    "ps": ShellKind.POWERSHELL,
    "pwsh": ShellKind.PWSH,
    "powershell7": ShellKind.PWSH,
    "cmd": ShellKind.CMD,
}

POSIX_EXECUTORS: dict[str, ShellKind] = {
    "bash": ShellKind.BASH,
    "zsh": ShellKind.ZSH,
    "sh": ShellKind.SH,
}

WINDOWS_DEFAULT = ShellKind.POWERSHELL
POSIX_DEFAULT = ShellKind.SH


@dataclass(frozen=True)
class Invocation:
    """A concrete interpreter call that runs one command string."""

    shell: ShellKind
    program: str
    args: tuple[str, ...]

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def is_windows(platform: str | None = None) -> bool:
    """Classify a platform name (default: the host) as Windows-like."""
    name = (platform or _platform.system()).lower()
    return name.startswith("win") or name == "nt"


def resolve_shell(executor_type: str, platform: str | None = None) -> ShellKind:
    """Pick the shell for ``executor_type``, falling back to the platform default."""
    if is_windows(platform):
        table, default = WINDOWS_EXECUTORS, WINDOWS_DEFAULT
    else:
        table, default = POSIX_EXECUTORS, POSIX_DEFAULT

    shell = table.get(executor_type)
    if shell is None:
        logger.debug("Unknown executor %r, using default %s", executor_type, default.value)
        return default
    return shell


def resolve_invocation(
    executor_type: str, command: str, platform: str | None = None
) -> Invocation:
    """Build the invocation that runs ``command`` as a single shell argument."""
    shell = resolve_shell(executor_type, platform)
    program, flags = _SHELL_COMMANDS[shell]
    return Invocation(shell=shell, program=program, args=(*flags, command))


def available_executors(platform: str | None = None) -> list[str]:
    """Executor type names whose interpreter exists on this host."""
    table = WINDOWS_EXECUTORS if is_windows(platform) else POSIX_EXECUTORS
    names: list[str] = []
    for name, shell in table.items():
        program = _SHELL_COMMANDS[shell][0]
        if os.path.isabs(program):
            found = os.access(program, os.X_OK)
        else:
            found = shutil.which(program) is not None
        if found:
            names.append(name)
    return names
