"""
Filesystem infrastructure for cookbookvendor.

Small wrappers around shutil/pathlib for the directory operations an
install performs: create the cookbook root, remove stale trees, move a
fetched snapshot into place. Everything is logged so an interrupted
install can be reconstructed from the log.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def make_dir(path: PathLike) -> bool:
    """
    Create a directory and its parents.

    Returns:
        True if the directory was created, False if it already existed
    """
    path = Path(path)
    if path.is_dir():
        return False
    logger.debug(f"Creating directory {path}")
    path.mkdir(parents=True, exist_ok=True)
    return True


def delete_path(path: PathLike) -> bool:
    """
    Remove a file, symlink or directory tree if it exists.

    Returns:
        True if something was removed
    """
    path = Path(path)
    if path.is_symlink() or path.is_file():
        logger.debug(f"Removing file {path}")
        path.unlink()
        return True
    if path.is_dir():
        logger.debug(f"Removing directory {path}")
        shutil.rmtree(path)
        return True
    return False


def move_tree(source: PathLike, destination: PathLike) -> Path:
    """
    Move a directory tree to a destination that must not exist yet.

    Works across filesystems (scratch space is usually on /tmp).

    Raises:
        FileExistsError: if the destination already exists
    """
    source = Path(source)
    destination = Path(destination)
    if destination.exists():
        raise FileExistsError(f"Refusing to move {source} over existing {destination}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    logger.debug(f"Moving {source} to {destination}")
    return Path(shutil.move(str(source), str(destination)))
