"""
Path helpers for the synchronization engine.

All engine paths are absolute, normalized strings so they can be compared
directly against the paths stored inside resource references.
"""

import logging
import os
import shutil
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Return an absolute, normalized version of a path string."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def paths_equal(first: str, second: str) -> bool:
    """Compare two paths the way the host filesystem would."""
    return os.path.normcase(normalize_path(first)) == os.path.normcase(normalize_path(second))


def is_path_located_in(path: str, directory: str) -> bool:
    """
    Check whether a path is located inside a directory.

    The check works on path boundaries, so ``/data/ab`` is not located
    in ``/data/a``. A directory is not located inside itself.
    """
    if not path or not directory:
        return False
    child = os.path.normcase(os.path.normpath(path))
    parent = os.path.normcase(os.path.normpath(directory)).rstrip(os.sep)
    return child.startswith(parent + os.sep)


def rebase_path(path: str, old_root: str, new_root: str) -> str:
    """Re-express a path relative to ``old_root`` as a path below ``new_root``."""
    relative = os.path.relpath(normalize_path(path), normalize_path(old_root))
    if relative == os.curdir:
        return normalize_path(new_root)
    return normalize_path(os.path.join(new_root, relative))


def is_hidden_path(path: str, ignored_names: Optional[Iterable[str]] = None) -> bool:
    """
    Check whether any component of a path is hidden.

    Dot-prefixed components and any name listed in ``ignored_names`` count
    as hidden.
    """
    ignored = set(ignored_names or ())
    for part in os.path.normpath(os.fspath(path)).split(os.sep):
        if not part:
            continue
        if part.startswith('.') or part in ignored:
            return True
    return False


def is_directory_empty(path: str) -> bool:
    """Return True for an existing directory without any entries."""
    if not os.path.isdir(path):
        return False
    with os.scandir(path) as entries:
        return next(entries, None) is None


def delete_empty_directory(path: str, recursive: bool = True) -> bool:
    """
    Delete a directory only if it is empty.

    With ``recursive`` set, empty subdirectories are removed first, so a
    directory holding nothing but empty folders is removed as a whole.
    Never deletes files.

    Returns:
        True if the directory was removed
    """
    if not path or not os.path.isdir(path):
        return False

    if recursive:
        with os.scandir(path) as entries:
            subdirs = [entry.path for entry in entries if entry.is_dir(follow_symlinks=False)]
        for subdir in subdirs:
            delete_empty_directory(subdir, recursive=True)

    if not is_directory_empty(path):
        return False

    try:
        os.rmdir(path)
    except OSError as e:
        logger.debug(f"Could not remove empty directory {path}: {e}")
        return False

    logger.debug(f"Removed empty directory {path}")
    return True


def copy_directory(source: str, destination: str) -> None:
    """Copy a directory tree, merging into an existing destination."""
    shutil.copytree(source, destination, dirs_exist_ok=True)
