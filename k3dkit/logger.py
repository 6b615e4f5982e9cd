"""Logging for k3dkit.

Module loggers are children of the ``k3dkit`` logger. Handlers and the level
live on that parent only, so one call to ``set_verbose`` reaches every module.
"""
from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "k3dkit"
LOG_FILE = Path.home() / ".k1" / "logs" / "k3dkit.log"

console = Console(stderr=True)


def _root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return root


def set_verbose(verbose: bool) -> None:
    _root().setLevel(logging.DEBUG if verbose else logging.INFO)


def setup_file_logging(log_file: Path | None = None, verbose: bool = False) -> Path:
    """Also write k3dkit logs to ``log_file`` (default ``~/.k1/logs/k3dkit.log``)."""
    target = (log_file or LOG_FILE).resolve()
    root = _root()

    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == target:
            set_verbose(verbose)
            return target

    target.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(target, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)
    set_verbose(verbose)

    root.info("k3dkit logging initialized: %s", target)
    return target


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name``; output goes through the ``k3dkit`` handlers."""
    _root()
    return logging.getLogger(name)
