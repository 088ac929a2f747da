# command_executor.py

import json
import logging
import os
import shlex
import subprocess
import sys
from typing import Optional, Sequence, Union

from exceptions import CommandExecutionError, UnsupportedPlatformError
from models.command_result import CommandResult

logger = logging.getLogger(__name__)

Command = Union[str, Sequence[str]]


def get_shell_invocation(command: str) -> list:
    """
    Wraps a command string in the platform shell: 'sh -c' on POSIX, 'cmd /c' on Windows.
    """
    if sys.platform == "win32":
        return ["cmd", "/c", command]
    if os.name == "posix":
        return ["sh", "-c", command]
    raise UnsupportedPlatformError(f"Unknown platform '{sys.platform}', cannot resolve a shell.")


def _display(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


def run_command(command: Command, cwd: Optional[str] = None, timeout: Optional[float] = None) -> CommandResult:
    """
    Runs an external command to completion and returns its captured output.

    A string is handed to the platform shell; a sequence of arguments is executed
    directly without one. stdin is closed, stdout and stderr are captured.

    Raises CommandExecutionError on a non-zero exit code, on timeout, or when the
    process cannot be started. A structured audit record is logged either way.
    """
    display = _display(command)
    args = get_shell_invocation(command) if isinstance(command, str) else list(command)
    logger.debug(f"Executing command: {display} in {cwd or os.getcwd()}")

    try:
        completed = subprocess.run(
            args,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        stdout = _decode(e.stdout)
        stderr = _decode(e.stderr)
        logger.error(json.dumps({
            "command": display,
            "stdout": stdout,
            "stderr": stderr,
            "exception": f"Timed out after {timeout} seconds",
        }))
        raise CommandExecutionError(display, stdout, stderr or f"Timed out after {timeout} seconds", None) from e
    except OSError as e:
        logger.error(json.dumps({"command": display, "exception": str(e)}))
        raise CommandExecutionError(display, "", str(e), None) from e

    record = {
        "command": display,
        "stdout": completed.stdout,
        "stderr": completed.stderr,
        "exitCode": completed.returncode,
    }

    if completed.returncode != 0:
        logger.error(json.dumps(record))
        raise CommandExecutionError(display, completed.stdout, completed.stderr, completed.returncode)

    logger.info(json.dumps(record))
    return CommandResult(
        command=display,
        exit_code=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


def _decode(data) -> str:
    # TimeoutExpired carries bytes even when text=True was requested.
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
