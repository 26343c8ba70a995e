"""
Resolve the identity used to sign OCI API requests.

Deployed functions receive resource principal credentials through the
environment; local runs fall back to the OCI CLI config file.
"""

from __future__ import annotations

from pathlib import Path

from audit_archiver.core.config import Settings
from audit_archiver.core.crypto.request_signing import SigningIdentity
from audit_archiver.core.errors import ConfigError
from audit_archiver.core.logging import get_logger
from audit_archiver.core.security.oci_config import load_oci_config

logger = get_logger(__name__)

RESOURCE_PRINCIPAL_KEY_PREFIX = "ST$"
_LOCAL_CONFIG_KEYS = ("tenancy", "user", "fingerprint", "key_file")


def _read_value_or_file(value: str) -> str:
    """Resource principal variables hold either the value itself or a file path."""
    candidate = Path(value)
    if candidate.is_absolute() and candidate.is_file():
        return candidate.read_text(encoding="utf-8").strip()
    return value.strip()


def resource_principal_identity(rpst: str, private_pem: str) -> SigningIdentity:
    """Build the identity for a resource principal session token and key."""
    token = _read_value_or_file(rpst)
    private_key = _read_value_or_file(private_pem)
    return SigningIdentity(
        key_id=f"{RESOURCE_PRINCIPAL_KEY_PREFIX}{token}",
        private_key=private_key,
    )


def local_config_identity(config_file: str, profile: str | None = None) -> SigningIdentity:
    """Build an API-key identity from an OCI CLI config profile."""
    config = load_oci_config(config_file, profile)
    missing = [key for key in _LOCAL_CONFIG_KEYS if key not in config]
    if missing:
        raise ConfigError(f"OCI config profile is missing: {', '.join(missing)}")

    key_path = Path(config["key_file"]).expanduser()
    try:
        private_key = key_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read API signing key {key_path}: {exc}") from exc

    return SigningIdentity(
        key_id=f"{config['tenancy']}/{config['user']}/{config['fingerprint']}",
        private_key=private_key,
        passphrase=config.get("pass_phrase") or config.get("passphrase"),
    )


def load_signing_identity(settings: Settings) -> SigningIdentity:
    """Prefer resource principal credentials, else the local OCI config file."""
    rpst = settings.oci_resource_principal_rpst
    private_pem = settings.oci_resource_principal_private_pem
    if rpst and private_pem:
        logger.debug("loading_resource_principal_identity")
        return resource_principal_identity(rpst, private_pem)

    logger.debug("loading_local_oci_config", config_file=settings.oci_config_file)
    return local_config_identity(settings.oci_config_file, settings.oci_config_profile)
