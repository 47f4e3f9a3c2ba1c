"""
Signing certificate material.

Loads the pass type certificate and private key from a PKCS#12 container and
the WWDR intermediate certificate (PEM or DER) into an immutable value that a
PassFactory holds for its lifetime.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import logging

from cryptography import x509
from cryptography.hazmat.primitives.serialization.pkcs12 import (
    PKCS12PrivateKeyTypes,
    load_key_and_certificates,
)

from passbundle.core.errors import BundleIOError, SignatureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificateMaterial:
    private_key: PKCS12PrivateKeyTypes
    certificate: x509.Certificate
    intermediate: x509.Certificate
    password: Optional[str] = None


def _read_bytes(path: Union[str, Path], label: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        logger.error(f"Could not read {label} file {path}: {e}")
        raise BundleIOError(f"Could not read {label} file: {path}") from e


def load_wwdr_certificate(wwdr_path: Union[str, Path]) -> x509.Certificate:
    """Load the intermediate certificate, accepting PEM or DER encoding."""
    data = _read_bytes(wwdr_path, "WWDR certificate")
    try:
        return x509.load_pem_x509_certificate(data)
    except ValueError:
        pass
    try:
        return x509.load_der_x509_certificate(data)
    except ValueError as e:
        raise SignatureError(f"WWDR certificate is neither PEM nor DER: {wwdr_path}") from e


def load_certificate_material(
    p12_path: Union[str, Path],
    p12_password: Optional[str],
    wwdr_path: Union[str, Path],
) -> CertificateMaterial:
    """
    Load signing material from a PKCS#12 file and the WWDR intermediate.

    Raises:
        BundleIOError: a certificate file could not be read
        SignatureError: the container could not be decrypted or holds no key/certificate
    """
    p12_data = _read_bytes(p12_path, "P12 certificate")
    password_bytes = p12_password.encode() if p12_password else None
    try:
        private_key, cert, _additional = load_key_and_certificates(p12_data, password_bytes)
    except ValueError as e:
        logger.error(f"Failed to load P12 certificate {p12_path}: {e}")
        raise SignatureError("Error reading certificate file") from e

    if private_key is None or cert is None:
        raise SignatureError(f"P12 file does not contain both a private key and a certificate: {p12_path}")

    wwdr_cert = load_wwdr_certificate(wwdr_path)
    logger.debug("Loaded P12 certificate and WWDR intermediate certificate")

    return CertificateMaterial(
        private_key=private_key,
        certificate=cert,
        intermediate=wwdr_cert,
        password=p12_password,
    )
