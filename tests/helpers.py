"""Filesystem helpers shared by the test modules."""

import os
import shutil
from pathlib import Path

from anysync.utils.shell import CommandResult


def python_mirror(args: list[str], **_kwargs: object) -> CommandResult:
    """Emulate ``rsync -a --delete <src>/ <dst>`` with shutil."""
    src = Path(args[-2].rstrip("/"))
    dst = Path(args[-1])
    if not src.is_dir():
        return CommandResult("", f'rsync: change_dir "{src}" failed: No such file or directory', 23)

    dst.mkdir(exist_ok=True)
    for child in dst.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
    return CommandResult("", "", 0)


def write_tree(root: Path, files: dict[str, str]) -> None:
    """Create files (and parent directories) below root."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def read_tree(root: Path) -> dict[str, str]:
    """Read all regular files below root into a relative-path mapping."""
    result: dict[str, str] = {}
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            path = Path(dirpath) / name
            result[str(path.relative_to(root))] = path.read_text()
    return result
