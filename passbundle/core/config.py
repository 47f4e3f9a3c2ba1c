from pydantic_settings import BaseSettings
from functools import lru_cache
import logging
import os

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Logging
    log_level: str = "INFO"

    # Output
    pass_output_path: str = "."  # staging dirs and .pkpass files land here
    pass_overwrite: bool = False
    pass_bundle_extension: str = ".pkpass"

    # Signing
    # Skipping the signature produces an unsigned bundle; only use in tests
    pass_skip_signature: bool = False
    pass_signature_mode: str = "detached"  # detached or smime

    # Apple Wallet Configuration
    APPLE_WALLET_PASS_TYPE_ID: str = ""
    APPLE_WALLET_TEAM_ID: str = ""
    APPLE_WALLET_ORGANIZATION_NAME: str = ""
    APPLE_WALLET_CERT_P12_PATH: str = ""
    APPLE_WALLET_CERT_P12_PASSWORD: str = ""
    APPLE_WALLET_WWDR_CERT_PATH: str = ""

    @property
    def signing_enabled(self) -> bool:
        return not self.pass_skip_signature


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def validate_config(settings: Settings) -> None:
    """Validate configuration before packaging. Raises ValueError if invalid."""
    if settings.pass_signature_mode not in ("detached", "smime"):
        error_msg = f"PASS_SIGNATURE_MODE must be 'detached' or 'smime', got {settings.pass_signature_mode!r}"
        logger.error(error_msg)
        raise ValueError(error_msg)

    if not settings.pass_bundle_extension.startswith("."):
        error_msg = f"PASS_BUNDLE_EXTENSION must start with '.', got {settings.pass_bundle_extension!r}"
        logger.error(error_msg)
        raise ValueError(error_msg)

    if settings.signing_enabled:
        missing = []
        if not settings.APPLE_WALLET_CERT_P12_PATH or not os.path.exists(settings.APPLE_WALLET_CERT_P12_PATH):
            missing.append("APPLE_WALLET_CERT_P12_PATH")
        if not settings.APPLE_WALLET_WWDR_CERT_PATH or not os.path.exists(settings.APPLE_WALLET_WWDR_CERT_PATH):
            missing.append("APPLE_WALLET_WWDR_CERT_PATH")

        if missing:
            error_msg = f"Pass signing enabled but missing required configuration: {', '.join(missing)}"
            logger.error(error_msg)
            raise ValueError(error_msg)
        logger.info("Pass signing configuration validated")
