"""
Manifest Generator

Builds manifest.json: archive-relative path -> SHA-1 hex digest for every
regular file in the staged bundle.
"""
import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, Union

from passbundle.core.errors import BundleIOError
from passbundle.utils.fs import relative_name, walk_tree

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
SIGNATURE_FILENAME = "signature"

# Generated artifacts never describe themselves
_EXCLUDED = {MANIFEST_FILENAME, SIGNATURE_FILENAME}


def file_digest(path: Path) -> str:
    try:
        return hashlib.sha1(Path(path).read_bytes()).hexdigest()
    except OSError as e:
        raise BundleIOError(f"Couldn't read {path} for manifest") from e


def compute_manifest(pass_dir: Union[str, Path]) -> Dict[str, str]:
    """Return {relative path: sha1 hex} for every staged file."""
    pass_dir = Path(pass_dir)
    try:
        _directories, files = walk_tree(pass_dir)
    except OSError as e:
        raise BundleIOError(f"Couldn't list pass directory {pass_dir}") from e

    manifest = {}
    for path in files:
        name = relative_name(path, pass_dir)
        if name in _EXCLUDED:
            continue
        manifest[name] = file_digest(path)
    return manifest


def serialize_manifest(manifest: Dict[str, str]) -> bytes:
    # json.dumps never escapes "/" so paths stay as-is
    return json.dumps(manifest, sort_keys=True, ensure_ascii=False).encode("utf-8")


def write_manifest(pass_dir: Union[str, Path]) -> Path:
    """Compute the manifest for pass_dir and write it to pass_dir/manifest.json."""
    pass_dir = Path(pass_dir)
    manifest = compute_manifest(pass_dir)
    manifest_path = pass_dir / MANIFEST_FILENAME
    try:
        manifest_path.write_bytes(serialize_manifest(manifest))
    except OSError as e:
        raise BundleIOError(f"Couldn't write {manifest_path}") from e

    logger.debug(f"Wrote manifest with {len(manifest)} entries to {manifest_path}")
    return manifest_path
