"""
Filesystem helpers shared by manifest generation and archive building.
"""
import logging
import os
from pathlib import Path
from typing import List, Tuple

logger = logging.getLogger(__name__)


def _inside(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root)
        return True
    except ValueError:
        return False


def walk_tree(root: Path) -> Tuple[List[Path], List[Path]]:
    """
    Walk root iteratively and return (directories, files), both sorted.

    Symlinked directories are never descended into. Symlinked files are kept
    only when they resolve to a regular file inside root.
    """
    root = Path(root)
    resolved_root = root.resolve()
    directories: List[Path] = []
    files: List[Path] = []

    stack = [root]
    while stack:
        current = stack.pop()
        with os.scandir(current) as entries:
            for entry in entries:
                path = Path(entry.path)
                if entry.is_symlink():
                    if entry.is_file() and _inside(path, resolved_root):
                        files.append(path)
                    else:
                        logger.warning(f"Skipping symlink outside bundle or to directory: {path}")
                    continue
                if entry.is_dir(follow_symlinks=False):
                    directories.append(path)
                    stack.append(path)
                elif entry.is_file(follow_symlinks=False):
                    files.append(path)

    directories.sort()
    files.sort()
    return directories, files


def relative_name(path: Path, root: Path) -> str:
    """Archive-style name: forward slashes, no leading ./"""
    return Path(path).relative_to(root).as_posix()
