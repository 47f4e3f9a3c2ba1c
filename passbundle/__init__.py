"""
passbundle - builds signed .pkpass bundles for Apple Wallet
"""
from passbundle.core.certificates import CertificateMaterial, load_certificate_material
from passbundle.core.errors import (
    ArchiveError,
    BundleIOError,
    CleanupError,
    DirectoryConflict,
    PassPackagingError,
    SignatureError,
    ValidationError,
)
from passbundle.models.pass_content import Image, Localization, PassContent
from passbundle.services.pass_factory import PassFactory

__version__ = "0.1.0"

__all__ = [
    "ArchiveError",
    "BundleIOError",
    "CertificateMaterial",
    "CleanupError",
    "DirectoryConflict",
    "Image",
    "Localization",
    "PassContent",
    "PassFactory",
    "PassPackagingError",
    "SignatureError",
    "ValidationError",
    "load_certificate_material",
]
