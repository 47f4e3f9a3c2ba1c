"""
Pass Factory

Creates .pkpass bundles: stages pass content in a temporary directory named
after the serial number, writes manifest.json, signs it, zips the directory
to <output_path>/<serial><extension> and removes the staging directory.
"""
import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from passbundle.core.certificates import CertificateMaterial, load_certificate_material
from passbundle.core.config import Settings, get_settings, validate_config
from passbundle.core.errors import (
    BundleIOError,
    CleanupError,
    DirectoryConflict,
    PassPackagingError,
    SignatureError,
)
from passbundle.models.pass_content import PassContent
from passbundle.services.archive import build_archive
from passbundle.services.bundle_stager import stage_bundle, validate_serial_number
from passbundle.services.manifest import SIGNATURE_FILENAME, write_manifest
from passbundle.services.signature import SIGNATURE_MODES, sign_manifest
from passbundle.utils.log import get_logger, log_package_event

logger = logging.getLogger(__name__)
event_logger = get_logger("passbundle.events")

PASS_EXTENSION = ".pkpass"


class PassFactory:
    """
    Packages PassContent into signed .pkpass files.

    Configuration is fixed at construction; each package() call only depends
    on the pass it is given. Two calls for the same serial number share a
    staging directory and must not run concurrently.
    """

    def __init__(
        self,
        pass_type_identifier: Optional[str] = None,
        team_identifier: Optional[str] = None,
        organization_name: Optional[str] = None,
        certificates: Optional[CertificateMaterial] = None,
        output_path: Union[str, Path] = ".",
        overwrite: bool = False,
        skip_signature: bool = False,
        signature_mode: str = "detached",
        bundle_extension: str = PASS_EXTENSION,
    ):
        if signature_mode not in SIGNATURE_MODES:
            raise ValueError(f"signature_mode must be one of {SIGNATURE_MODES}, got {signature_mode!r}")
        self._pass_type_identifier = pass_type_identifier
        self._team_identifier = team_identifier
        self._organization_name = organization_name
        self._certificates = certificates
        self._output_path = Path(output_path)
        self._overwrite = overwrite
        self._skip_signature = skip_signature
        self._signature_mode = signature_mode
        self._bundle_extension = bundle_extension

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PassFactory":
        settings = settings or get_settings()
        validate_config(settings)

        certificates = None
        if settings.signing_enabled:
            certificates = load_certificate_material(
                settings.APPLE_WALLET_CERT_P12_PATH,
                settings.APPLE_WALLET_CERT_P12_PASSWORD,
                settings.APPLE_WALLET_WWDR_CERT_PATH,
            )

        return cls(
            pass_type_identifier=settings.APPLE_WALLET_PASS_TYPE_ID or None,
            team_identifier=settings.APPLE_WALLET_TEAM_ID or None,
            organization_name=settings.APPLE_WALLET_ORGANIZATION_NAME or None,
            certificates=certificates,
            output_path=settings.pass_output_path,
            overwrite=settings.pass_overwrite,
            skip_signature=settings.pass_skip_signature,
            signature_mode=settings.pass_signature_mode,
            bundle_extension=settings.pass_bundle_extension,
        )

    @staticmethod
    def serialize(pass_content: PassContent) -> bytes:
        return pass_content.serialize()

    def pass_directory(self, pass_content: PassContent) -> Path:
        return self._output_path / pass_content.serial_number

    def bundle_path(self, pass_content: PassContent) -> Path:
        return self._output_path / f"{pass_content.serial_number}{self._bundle_extension}"

    def package(self, pass_content: PassContent) -> Path:
        """
        Create a .pkpass file for pass_content.

        Returns:
            Path of the written bundle

        Raises:
            ValidationError: serial number is empty or not a single path component
            DirectoryConflict: staging directory exists and overwrite is disabled
            BundleIOError: a filesystem operation failed
            SignatureError: signing or signature extraction failed
            ArchiveError: the bundle could not be written
            CleanupError: the bundle was written but the staging directory could not be removed
        """
        validate_serial_number(pass_content)
        serial = pass_content.serial_number
        pass_content = self._populate_required_information(pass_content)

        pass_dir = self.pass_directory(pass_content)
        try:
            stage_bundle(pass_content, pass_dir, overwrite=self._overwrite)
            log_package_event(event_logger, "stage", serial, True, {"dir": str(pass_dir)})

            manifest_path = write_manifest(pass_dir)
            log_package_event(event_logger, "manifest", serial, True)

            self._sign(manifest_path)

            bundle = build_archive(pass_dir, self.bundle_path(pass_content), overwrite=self._overwrite)
            log_package_event(event_logger, "archive", serial, True, {"bundle": str(bundle)})
        except DirectoryConflict as e:
            # The existing directory is not ours to remove
            log_package_event(event_logger, "stage", serial, False, {"error": e.message})
            raise
        except PassPackagingError as e:
            log_package_event(event_logger, "package", serial, False, {"error": e.message})
            if pass_dir.exists():
                cleanup_error = self._remove_pass_directory(pass_dir)
                if cleanup_error is not None:
                    e.cleanup_error = cleanup_error
            raise
        except Exception as e:
            logger.error(f"Unexpected error packaging pass {serial}: {e}", exc_info=True)
            if pass_dir.exists():
                cleanup_error = self._remove_pass_directory(pass_dir)
                if cleanup_error is not None:
                    setattr(e, "cleanup_error", cleanup_error)
            raise

        cleanup_error = self._remove_pass_directory(pass_dir)
        if cleanup_error is not None:
            raise cleanup_error

        logger.info(f"Created pass bundle {bundle} (signed={not self._skip_signature})")
        return bundle

    def _sign(self, manifest_path: Path) -> None:
        if self._skip_signature:
            logger.warning("Signature skipped; bundle will not be accepted by Wallet")
            # A reused staging directory may still hold an earlier run's signature
            stale_signature = manifest_path.parent / SIGNATURE_FILENAME
            try:
                stale_signature.unlink(missing_ok=True)
            except OSError as e:
                raise BundleIOError(f"Couldn't remove stale signature file: {stale_signature}") from e
            return
        if self._certificates is None:
            raise SignatureError("No certificate material configured for signing")
        sign_manifest(manifest_path, self._certificates, mode=self._signature_mode)

    def _populate_required_information(self, pass_content: PassContent) -> PassContent:
        updates = {}
        if not pass_content.pass_type_identifier and self._pass_type_identifier:
            updates["pass_type_identifier"] = self._pass_type_identifier
        if not pass_content.team_identifier and self._team_identifier:
            updates["team_identifier"] = self._team_identifier
        if not pass_content.organization_name and self._organization_name:
            updates["organization_name"] = self._organization_name
        if not updates:
            return pass_content
        return pass_content.model_copy(update=updates)

    def _remove_pass_directory(self, pass_dir: Path) -> Optional[CleanupError]:
        try:
            shutil.rmtree(pass_dir)
        except OSError as e:
            logger.error(f"Failed to remove temporary pass directory {pass_dir}: {e}")
            cleanup_error = CleanupError(f"Couldn't remove temporary pass directory: {pass_dir}")
            cleanup_error.__cause__ = e
            return cleanup_error
        return None
