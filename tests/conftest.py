"""
Pytest configuration and fixtures for passbundle tests.

Provides throwaway signing certificates, sample media files and a factory
writing into the test's tmp_path.
"""
import sys
import pathlib
import datetime

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from passbundle.core.certificates import CertificateMaterial
from passbundle.models.pass_content import Image, Localization, PassContent
from passbundle.services.pass_factory import PassFactory

P12_PASSWORD = "test-p12-password"

# Not a real PNG decoder target, only bytes to copy and hash
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _name(common_name: str) -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Passbundle Tests"),
    ])


def _key_usage(cert_sign: bool) -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=True,
        content_commitment=False,
        key_encipherment=False,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=cert_sign,
        crl_sign=cert_sign,
        encipher_only=False,
        decipher_only=False,
    )


@pytest.fixture(scope="session")
def signing_chain():
    """
    Generate an intermediate (self-signed CA) and a pass signing certificate.

    Returns (ca_key, ca_cert, signer_key, signer_cert).
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    ca_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(_name("Test WWDR Intermediate"))
        .issuer_name(_name("Test WWDR Intermediate"))
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(_key_usage(cert_sign=True), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key()), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    signer_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    signer_cert = (
        x509.CertificateBuilder()
        .subject_name(_name("Pass Type ID: pass.com.example.test"))
        .issuer_name(ca_cert.subject)
        .public_key(signer_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(_key_usage(cert_sign=False), critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(signer_key.public_key()), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()), critical=False
        )
        .sign(ca_key, hashes.SHA256())
    )
    return ca_key, ca_cert, signer_key, signer_cert


@pytest.fixture(scope="session")
def p12_password():
    return P12_PASSWORD


@pytest.fixture(scope="session")
def certificate_material(signing_chain):
    _ca_key, ca_cert, signer_key, signer_cert = signing_chain
    return CertificateMaterial(
        private_key=signer_key,
        certificate=signer_cert,
        intermediate=ca_cert,
        password=P12_PASSWORD,
    )


@pytest.fixture(scope="session")
def certificate_files(signing_chain, tmp_path_factory):
    """Write the chain as a password protected .p12 plus a PEM WWDR file."""
    _ca_key, ca_cert, signer_key, signer_cert = signing_chain
    cert_dir = tmp_path_factory.mktemp("certs")

    p12_path = cert_dir / "pass.p12"
    p12_path.write_bytes(pkcs12.serialize_key_and_certificates(
        b"pass",
        signer_key,
        signer_cert,
        None,
        serialization.BestAvailableEncryption(P12_PASSWORD.encode()),
    ))

    wwdr_path = cert_dir / "wwdr.pem"
    wwdr_path.write_bytes(ca_cert.public_bytes(serialization.Encoding.PEM))

    return p12_path, wwdr_path


@pytest.fixture
def media_dir(tmp_path):
    directory = tmp_path / "media"
    directory.mkdir()
    (directory / "icon.png").write_bytes(PNG_BYTES + b"icon")
    (directory / "icon@2x.png").write_bytes(PNG_BYTES + b"icon-retina")
    (directory / "logo.png").write_bytes(PNG_BYTES + b"logo")
    (directory / "strip.png").write_bytes(PNG_BYTES + b"strip-fr")
    return directory


@pytest.fixture
def output_dir(tmp_path):
    directory = tmp_path / "output"
    directory.mkdir()
    return directory


@pytest.fixture
def sample_pass(media_dir):
    """ABC123 pass: one icon, one English localization without media"""
    return PassContent(
        serial_number="ABC123",
        description="Boarding pass",
        structure={"boardingPass": {"transitType": "PKTransitTypeAir"}},
        images=[Image(path=media_dir / "icon.png", context="icon")],
        localizations=[Localization(language="en", strings={"GATE": "A12"})],
    )


@pytest.fixture
def rich_pass(media_dir):
    return PassContent(
        serial_number="RICH-001",
        description="Store card",
        images=[
            Image(path=media_dir / "icon.png", context="icon"),
            Image(path=media_dir / "icon@2x.png", context="icon", retina=True),
            Image(path=media_dir / "logo.png", context="logo"),
        ],
        localizations=[
            Localization(language="en", strings={"GATE": "A12", "SEAT": "14C"}),
            Localization(
                language="fr",
                strings={"GATE": "Porte A12"},
                images=[Image(path=media_dir / "strip.png", context="strip", retina=True)],
            ),
        ],
    )


@pytest.fixture
def factory(certificate_material, output_dir):
    return PassFactory(
        pass_type_identifier="pass.com.example.test",
        team_identifier="TEAM123456",
        organization_name="Example Org",
        certificates=certificate_material,
        output_path=output_dir,
    )
