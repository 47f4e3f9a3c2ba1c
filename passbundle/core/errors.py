"""
Packaging errors.

Every stage of the pass packaging pipeline raises one of these so callers can
catch PassPackagingError for the whole pipeline or a subclass for one stage.
"""
from typing import Optional


class PassPackagingError(Exception):
    """Base exception for pass packaging failures"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Set by the orchestrator when removing the staging directory also failed
        self.cleanup_error: Optional["CleanupError"] = None


class ValidationError(PassPackagingError, ValueError):
    """Pass content violates a packaging precondition"""
    pass


class BundleIOError(PassPackagingError):
    """A filesystem read, write or create failed"""
    pass


class DirectoryConflict(BundleIOError):
    """Staging directory already exists and overwrite is disabled"""
    pass


class ArchiveError(BundleIOError):
    """Archive could not be opened or written"""
    pass


class CleanupError(BundleIOError):
    """Staging directory could not be removed"""
    pass


class SignatureError(PassPackagingError):
    """Manifest signing or signature extraction failed"""
    pass
