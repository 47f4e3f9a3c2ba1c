"""
Bundle Stager

Lays out pass.json, images and localization folders in a staging directory
in the structure the .pkpass archive expects.
"""
import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Union

from passbundle.core.errors import BundleIOError, DirectoryConflict, ValidationError
from passbundle.models.pass_content import Image, PassContent

logger = logging.getLogger(__name__)


def validate_serial_number(pass_content: PassContent) -> None:
    if not pass_content.serial_number:
        raise ValidationError("Pass must have a serial number to be packaged")
    serial = pass_content.serial_number
    separators = {"/", "\\", os.sep, os.altsep} - {None}
    # The serial names the staging directory and the bundle under output_path
    if serial in (".", "..") or any(sep in serial for sep in separators):
        raise ValidationError(f"Serial number must be a single path component: {serial!r}")


def _prepare_directory(pass_dir: Path, overwrite: bool) -> None:
    if pass_dir.exists():
        if not overwrite:
            raise DirectoryConflict(f"Temporary pass directory already exists: {pass_dir}")
        if not pass_dir.is_dir():
            raise BundleIOError(f"Temporary pass path is not a directory: {pass_dir}")
        return
    try:
        pass_dir.mkdir(parents=True)
    except OSError as e:
        raise BundleIOError(f"Couldn't create temporary pass directory: {pass_dir}") from e


def _write_file(path: Path, content: bytes) -> None:
    try:
        path.write_bytes(content)
    except OSError as e:
        raise BundleIOError(f"Couldn't write {path}") from e


def _copy_images(images: Iterable[Image], target_dir: Path) -> None:
    for image in images:
        destination = target_dir / image.filename
        try:
            shutil.copyfile(image.path, destination)
        except OSError as e:
            raise BundleIOError(f"Couldn't copy image {image.path} to {destination}") from e
        logger.debug(f"Staged image {image.path} as {destination.name}")


def stage_bundle(pass_content: PassContent, pass_dir: Union[str, Path], overwrite: bool = False) -> Path:
    """
    Write pass.json, images and localizations into pass_dir.

    Args:
        pass_content: Pass to stage
        pass_dir: Staging directory, created with parents when missing
        overwrite: Reuse pass_dir when it already exists

    Returns:
        The staging directory path

    Raises:
        ValidationError: serial number is empty or not a single path component (raised before any I/O)
        DirectoryConflict: pass_dir exists and overwrite is disabled
        BundleIOError: a directory or file could not be created
    """
    validate_serial_number(pass_content)

    pass_dir = Path(pass_dir)
    _prepare_directory(pass_dir, overwrite)

    _write_file(pass_dir / "pass.json", pass_content.serialize())
    _copy_images(pass_content.images, pass_dir)

    for localization in pass_content.localizations:
        localization_dir = pass_dir / localization.directory_name
        try:
            localization_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BundleIOError(f"Couldn't create localization directory: {localization_dir}") from e

        _write_file(localization_dir / "pass.strings", localization.strings_file_output().encode("utf-8"))
        _copy_images(localization.images, localization_dir)

    logger.debug(
        f"Staged pass {pass_content.serial_number} in {pass_dir} "
        f"({len(pass_content.images)} images, {len(pass_content.localizations)} localizations)"
    )
    return pass_dir
