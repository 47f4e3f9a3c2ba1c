"""
Bundle inspection

Reads a finished .pkpass and reports structural problems: missing required
files, manifest entries without a file, files the manifest does not cover and
digest mismatches. Does not verify the signature.
"""
import hashlib
import json
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from passbundle.core.errors import ArchiveError
from passbundle.services.manifest import MANIFEST_FILENAME, SIGNATURE_FILENAME

logger = logging.getLogger(__name__)

REQUIRED_FILES = ["pass.json", MANIFEST_FILENAME, SIGNATURE_FILENAME]


@dataclass
class BundleReport:
    entries: List[str] = field(default_factory=list)
    manifest: Dict[str, str] = field(default_factory=dict)
    missing_files: List[str] = field(default_factory=list)
    unlisted_files: List[str] = field(default_factory=list)
    missing_from_bundle: List[str] = field(default_factory=list)
    digest_mismatches: List[str] = field(default_factory=list)

    @property
    def files(self) -> List[str]:
        return [name for name in self.entries if not name.endswith("/")]

    @property
    def directories(self) -> List[str]:
        return [name for name in self.entries if name.endswith("/")]

    @property
    def is_valid(self) -> bool:
        return not (
            self.missing_files
            or self.unlisted_files
            or self.missing_from_bundle
            or self.digest_mismatches
        )


def inspect_bundle(bundle_path: Union[str, Path], require_signature: bool = True) -> BundleReport:
    """
    Inspect a .pkpass archive.

    Raises:
        ArchiveError: the file is not a readable zip, or manifest.json is not JSON
    """
    report = BundleReport()
    required = [name for name in REQUIRED_FILES if require_signature or name != SIGNATURE_FILENAME]

    try:
        with zipfile.ZipFile(bundle_path, "r") as zf:
            report.entries = sorted(zf.namelist())
            files = set(report.files)
            report.missing_files = [name for name in required if name not in files]

            if MANIFEST_FILENAME not in files:
                return report

            try:
                report.manifest = json.loads(zf.read(MANIFEST_FILENAME).decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise ArchiveError(f"manifest.json in {bundle_path} is not valid JSON") from e

            content_files = files - {MANIFEST_FILENAME, SIGNATURE_FILENAME}
            listed = set(report.manifest)
            report.unlisted_files = sorted(content_files - listed)
            report.missing_from_bundle = sorted(listed - content_files)
            for name in sorted(listed & content_files):
                if hashlib.sha1(zf.read(name)).hexdigest() != report.manifest[name]:
                    report.digest_mismatches.append(name)
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError(f"Couldn't read bundle: {bundle_path}") from e

    if not report.is_valid:
        logger.warning(
            f"Bundle {bundle_path} failed inspection: missing={report.missing_files} "
            f"unlisted={report.unlisted_files} stale={report.missing_from_bundle} "
            f"mismatched={report.digest_mismatches}"
        )
    return report
