from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Optional

from .errors import ShellError
from .logger import get_logger

logger = get_logger(__name__)

Runner = Callable[..., tuple[str, str]]


def exec_shell_return_strings(command: str, *args: str, cwd: Optional[Path] = None) -> tuple[str, str]:
    """Run a command and return its stdout and stderr.

    Raises ShellError when the command is missing or exits non-zero.
    """
    cmd = [command, *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=True)
    except FileNotFoundError as error:
        raise ShellError(f"Command not found: {command}") from error
    except subprocess.CalledProcessError as error:
        stderr = (error.stderr or "").strip()
        logger.error("Command failed: %s", " ".join(cmd))
        if stderr:
            logger.error("Error output: %s", stderr)
        raise ShellError(
            f"{' '.join(cmd)} exited with status {error.returncode}: {stderr}",
            stdout=error.stdout or "",
            stderr=error.stderr or "",
        ) from error
    return result.stdout, result.stderr


def _escape_replacement(value: str) -> str:
    return value.replace("\\", "\\\\").replace("/", "\\/").replace("&", "\\&")


def substitution_pattern(placeholder: str, value: str) -> str:
    return f's/{placeholder}/"{_escape_replacement(value)}"/'


def replace_placeholder(path: Path, placeholder: str, value: str, runner: Runner = exec_shell_return_strings) -> None:
    """Replace ``placeholder`` in ``path`` with the quoted ``value`` using ``sed -i``."""
    pattern = substitution_pattern(placeholder, value)
    logger.debug("Detokenizing %s with %s", path, pattern)
    runner("sed", "-i", pattern, str(path))
