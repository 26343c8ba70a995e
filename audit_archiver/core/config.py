"""
Application configuration using Pydantic Settings.
All configuration is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Legacy variable names used by the function deployment (``OBJ_STORE_URL``,
    ``IDCS_URL``, ``IDCS_SECRET_ID``, ``MIN_TIME``) are accepted as aliases.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Core Application Settings
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    api_v1_prefix: str = "/api/v1"
    project_name: str = "IDCS Audit Archiver"
    version: str = "0.1.0"

    # ==========================================================================
    # Object Storage Configuration
    # ==========================================================================
    obj_store_bucket_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("obj_store_bucket_url", "obj_store_url"),
        description="Full bucket URL including region, namespace and bucket name",
    )
    oci_region: str | None = Field(default=None, description="Region code, e.g. ap-sydney-1")

    # ==========================================================================
    # IDCS Configuration
    # ==========================================================================
    idcs_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("idcs_base_url", "idcs_url"),
        description="IDCS host, e.g. idcs-<id>.identity.oraclecloud.com",
    )
    idcs_cert_secret_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("idcs_cert_secret_id", "idcs_secret_id"),
        description="OCID of the vault secret holding the assertion signing key",
    )
    idcs_cert_alias: str | None = Field(
        default=None, description="Alias of the public certificate uploaded to IDCS"
    )
    idcs_client_id: str | None = Field(
        default=None, description="IDCS client with audit read privileges"
    )
    idcs_signing_key_id: str | None = Field(
        default=None,
        description="OCID of a vault key used to sign assertions remotely instead of a secret",
    )
    kms_crypto_endpoint: str | None = Field(
        default=None,
        description="Crypto endpoint of the vault holding idcs_signing_key_id",
    )

    # ==========================================================================
    # Export Run Limits
    # ==========================================================================
    max_events: int = Field(
        default=2500,
        ge=1,
        description="Maximum number of audit events archived in one run",
    )
    min_elapsed_seconds: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("min_elapsed_seconds", "min_elapsed_time", "min_time"),
        description="Minimum time since the last archived event before a run proceeds",
    )
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # ==========================================================================
    # Signing Identity
    # ==========================================================================
    oci_config_file: str = Field(default="~/.oci/config")
    oci_config_profile: str | None = Field(default=None)
    oci_resource_principal_rpst: str | None = Field(
        default=None,
        description="Resource principal session token, or a path to a file holding it",
    )
    oci_resource_principal_private_pem: str | None = Field(
        default=None,
        description="Resource principal private key, or a path to a file holding it",
    )

    # ==========================================================================
    # Observability
    # ==========================================================================
    metrics_auth_token: str = Field(
        default="",
        description="Bearer token required to scrape /metrics outside development",
    )

    @property
    def uses_remote_signing(self) -> bool:
        """Assertions are signed by the vault key when one is configured."""
        return bool(self.idcs_signing_key_id)

    def missing_export_settings(self) -> list[str]:
        """Names of settings an export run cannot proceed without."""
        required = {
            "obj_store_bucket_url": self.obj_store_bucket_url,
            "oci_region": self.oci_region,
            "idcs_base_url": self.idcs_base_url,
            "idcs_cert_alias": self.idcs_cert_alias,
            "idcs_client_id": self.idcs_client_id,
        }
        if self.uses_remote_signing:
            required["kms_crypto_endpoint"] = self.kms_crypto_endpoint
        else:
            required["idcs_cert_secret_id"] = self.idcs_cert_secret_id
        return [name for name, value in required.items() if not value]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated environment variable parsing.
    """
    return Settings()
