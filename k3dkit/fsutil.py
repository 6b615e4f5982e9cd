from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Callable

from .errors import FilesystemError

SkipPredicate = Callable[[str], bool]


def should_skip(path: str | os.PathLike[str]) -> bool:
    """Return True for version-control metadata and terraform working directories."""
    text = os.fspath(path)
    if text.endswith(".git"):
        return True
    return text.find("/.terraform") > 0


def _ignore_for(skip: SkipPredicate) -> Callable[[str, list[str]], set[str]]:
    def ignore(directory: str, names: list[str]) -> set[str]:
        return {name for name in names if skip(os.path.join(directory, name))}

    return ignore


def copy_path(src: Path, dst: Path, skip: SkipPredicate = should_skip) -> None:
    """Copy a file or merge a directory tree into ``dst``, overwriting existing files."""
    if skip(os.fspath(src)):
        return
    if not os.path.lexists(src):
        raise FilesystemError(f"Copy source does not exist: {src}")

    try:
        if src.is_dir() and not src.is_symlink():
            shutil.copytree(src, dst, symlinks=True, ignore=_ignore_for(skip), dirs_exist_ok=True)
        else:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst, follow_symlinks=False)
    except (OSError, shutil.Error) as error:
        raise FilesystemError(f"Failed to copy {src} to {dst}: {error}") from error


def remove_path(path: Path) -> None:
    """Delete a file or directory tree. Missing paths are left alone."""
    if not os.path.lexists(path):
        return

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as error:
        raise FilesystemError(f"Failed to remove {path}: {error}") from error
