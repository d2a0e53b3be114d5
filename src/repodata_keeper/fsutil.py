"""Filesystem primitives used by the retention policy."""

from __future__ import annotations

import os
import shutil
from pathlib import Path


def list_dir(path: Path) -> list[str]:
    """Return a snapshot of the entry names in a directory.

    Only direct entries are listed. The directory handle is closed before
    returning, so callers may delete or create entries while iterating
    over the result.

    Raises:
        OSError: If the directory cannot be opened or read
    """
    with os.scandir(path) as it:
        return [entry.name for entry in it]


def copy_preserving(src: Path, dst: Path) -> None:
    """Copy ``src`` to ``dst`` keeping timestamps, permissions and ownership.

    Directories are copied recursively. Symlinks are recreated rather than
    followed. Ownership is only copied when the process is allowed to
    change it.

    A failed copy leaves nothing behind at ``dst``, so a later run does not
    mistake a partial copy for a finished one.

    Raises:
        OSError: If the copy fails
    """
    created = not os.path.lexists(dst)
    try:
        _copy(src, dst)
    except OSError:
        if created and os.path.lexists(dst):
            remove_path(dst)
        raise


def _copy(src: Path, dst: Path) -> None:
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    elif src.is_dir():
        shutil.copytree(src, dst, symlinks=True, copy_function=shutil.copy2)
        for root, dirs, files in os.walk(src):
            rel = Path(root).relative_to(src)
            for name in [*dirs, *files]:
                _copy_owner(Path(root) / name, dst / rel / name)
    else:
        shutil.copy2(src, dst, follow_symlinks=False)

    _copy_owner(src, dst)


def _copy_owner(src: Path, dst: Path) -> None:
    """Copy uid/gid from src to dst where permitted."""
    if not hasattr(os, "lchown"):
        return

    st = os.lstat(src)
    try:
        os.lchown(dst, st.st_uid, st.st_gid)
    except PermissionError:
        # Unprivileged processes may only keep their own ownership
        pass


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree.

    Raises:
        OSError: If the removal fails
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
