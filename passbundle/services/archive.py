"""
Archive Builder

Zips a staged pass directory into a .pkpass bundle.
"""
import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Union

from passbundle.core.errors import ArchiveError
from passbundle.utils.fs import relative_name, walk_tree

logger = logging.getLogger(__name__)


def _write_entries(zf: zipfile.ZipFile, source_dir: Path) -> int:
    directories, files = walk_tree(source_dir)
    for directory in directories:
        # Explicit entries keep empty directories
        zf.writestr(relative_name(directory, source_dir) + "/", b"")
    for path in files:
        zf.writestr(relative_name(path, source_dir), path.read_bytes())
    return len(directories) + len(files)


def build_archive(source_dir: Union[str, Path], destination: Union[str, Path],
                  overwrite: bool = False) -> Path:
    """
    Create a zip at destination containing every file and directory under source_dir.

    Entry names are relative to source_dir. The archive is written next to
    destination first and moved into place only once complete.

    Raises:
        ArchiveError: destination exists without overwrite, or the archive
            could not be opened or written
    """
    source_dir = Path(source_dir)
    destination = Path(destination)

    if not source_dir.is_dir():
        raise ArchiveError(f"Pass directory does not exist: {source_dir}")
    if destination.exists() and not overwrite:
        raise ArchiveError(f"Couldn't open zip file, it already exists: {destination}")

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
        )
    except OSError as e:
        raise ArchiveError(f"Couldn't open zip file: {destination}") from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            with zipfile.ZipFile(fh, "w", zipfile.ZIP_DEFLATED) as zf:
                count = _write_entries(zf, source_dir)
        # mkstemp creates 0600 files
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, destination)
    except (OSError, zipfile.BadZipFile) as e:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as unlink_error:
            logger.warning(f"Could not remove partial archive {tmp_path}: {unlink_error}")
        raise ArchiveError(f"Couldn't write zip file: {destination}") from e

    logger.debug(f"Wrote {count} entries to {destination}")
    return destination
