"""
Signature Producer

Signs manifest.json with a CMS/PKCS#7 detached signature and stores the raw
DER blob as the bundle's `signature` file.

Two modes:
- detached: cryptography emits the DER SignedData directly (default)
- smime: sign into an S/MIME envelope, write it to `signature`, then pull the
  base64 smime.p7s part back out and overwrite the file with the raw bytes
"""
import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import pkcs7

from passbundle.core.certificates import CertificateMaterial
from passbundle.core.errors import SignatureError
from passbundle.services.manifest import SIGNATURE_FILENAME

logger = logging.getLogger(__name__)

SIGNATURE_MODES = ("detached", "smime")

# The signature part of the envelope starts right after this header value
SMIME_PAYLOAD_MARKER = 'filename="smime.p7s"'
# and ends at the next multipart boundary line (a run of dashes)
_BOUNDARY_LINE = re.compile(r"^-{2,}", re.MULTILINE)


def _build_signature(manifest_bytes: bytes, material: CertificateMaterial,
                     encoding: serialization.Encoding) -> bytes:
    options = [pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary]
    try:
        builder = (
            pkcs7.PKCS7SignatureBuilder()
            .set_data(manifest_bytes)
            .add_signer(material.certificate, material.private_key, hashes.SHA256())
            .add_certificate(material.intermediate)
        )
        return builder.sign(encoding, options)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.error(f"Failed to sign manifest: {e}")
        raise SignatureError(f"Couldn't sign manifest: {e}") from e


def extract_signature_payload(envelope: str) -> bytes:
    """
    Extract the raw signature bytes from an S/MIME signed-message envelope.

    Raises:
        SignatureError: marker or boundary missing, payload not base64, or empty
    """
    begin = envelope.find(SMIME_PAYLOAD_MARKER)
    if begin == -1:
        raise SignatureError("Signature envelope has no smime.p7s part")
    remainder = envelope[begin + len(SMIME_PAYLOAD_MARKER):]

    end = _BOUNDARY_LINE.search(remainder)
    if end is None:
        raise SignatureError("Signature envelope has no closing boundary")
    encoded = "".join(remainder[:end.start()].split())

    try:
        payload = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SignatureError("Signature payload is not valid base64") from e

    if not payload:
        raise SignatureError("Signature payload is empty")
    return payload


def _write_signature(signature_path: Path, content: bytes) -> None:
    try:
        signature_path.write_bytes(content)
    except OSError as e:
        raise SignatureError(f"Couldn't write signature file: {signature_path}") from e


def _read_manifest(manifest_path: Path) -> bytes:
    try:
        return manifest_path.read_bytes()
    except OSError as e:
        raise SignatureError(f"Couldn't read manifest file: {manifest_path}") from e


def sign_manifest(manifest_path: Union[str, Path], material: CertificateMaterial,
                  mode: str = "detached") -> Path:
    """
    Write a detached signature over manifest.json to a sibling `signature` file.

    Args:
        manifest_path: Path to the staged manifest.json
        material: Signing key, certificate and WWDR intermediate
        mode: "detached" or "smime"

    Returns:
        Path of the written signature file

    Raises:
        SignatureError: signing failed, or the envelope could not be turned into
            a non-empty signature
    """
    if mode not in SIGNATURE_MODES:
        raise SignatureError(f"Unknown signature mode: {mode}")

    manifest_path = Path(manifest_path)
    signature_path = manifest_path.parent / SIGNATURE_FILENAME
    manifest_bytes = _read_manifest(manifest_path)

    if mode == "detached":
        signature = _build_signature(manifest_bytes, material, serialization.Encoding.DER)
        if not signature:
            raise SignatureError("Signing produced an empty signature")
        _write_signature(signature_path, signature)
        logger.debug(f"Wrote DER detached signature ({len(signature)} bytes) to {signature_path}")
        return signature_path

    envelope = _build_signature(manifest_bytes, material, serialization.Encoding.SMIME)
    _write_signature(signature_path, envelope)

    try:
        envelope_text = signature_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SignatureError("Couldn't read signature file.") from e

    signature = extract_signature_payload(envelope_text)
    _write_signature(signature_path, signature)
    logger.debug(f"Extracted {len(signature)} byte signature from S/MIME envelope at {signature_path}")
    return signature_path
