"""
Publisher configuration.

Settings come from TFPP_* environment variables, overridden by
command-line flags. The usual Terraform Cloud variables are accepted
as fallbacks for the token and address.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from provider_publisher.catalog.models import ReleaseMetadata
from provider_publisher.core.exceptions import ConfigurationError
from provider_publisher.core.models import ProviderIdentity, VersionIdentity
from provider_publisher.registry.client import DEFAULT_ADDRESS, RegistryConfig

# field -> environment variables, first match wins
ENV_VARS: dict[str, tuple[str, ...]] = {
    "token": ("TFPP_TOKEN", "TFE_TOKEN"),
    "organization": ("TFPP_ORGANIZATION",),
    "address": ("TFPP_ADDRESS", "TFE_ADDRESS"),
    "name": ("TFPP_NAME",),
    "version": ("TFPP_VERSION",),
    "key_id": ("TFPP_FINGERPRINT", "GPG_FINGERPRINT"),
    "artifacts_path": ("TFPP_ARTIFACTS",),
    "metadata_path": ("TFPP_METADATA",),
    "root": ("TFPP_ROOT",),
    "targets": ("TFPP_ARTIFACT",),
    "timeout_seconds": ("TFPP_TIMEOUT",),
}

REQUIRED = ("token", "organization", "name", "version", "key_id")


class PublisherConfig(BaseModel):
    """Configuration for one publish run."""

    token: str = ""
    organization: str = ""
    address: str = DEFAULT_ADDRESS
    name: str = ""
    version: str = ""
    key_id: str = ""
    artifacts_path: Path = Path("dist/artifacts.json")
    metadata_path: Path = Path("dist/metadata.json")
    root: Path | None = None
    targets: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=lambda: ["5.0"])
    timeout_seconds: int = 60
    dry_run: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> "PublisherConfig":
        """
        Load configuration from the environment.

        Args:
            **overrides: Values that take precedence over the environment;
                None values are ignored

        Returns:
            PublisherConfig

        Raises:
            ConfigurationError: If a value has the wrong type
        """
        values: dict[str, Any] = {}
        sources: dict[str, str] = {}
        for key, env_vars in ENV_VARS.items():
            for env_var in env_vars:
                value = os.getenv(env_var)
                if value:
                    values[key] = value
                    sources[key] = env_var
                    break

        if isinstance(values.get("targets"), str):
            values["targets"] = [t.strip() for t in values["targets"].split(",") if t.strip()]

        for key, value in overrides.items():
            if value is None or value == []:
                continue
            values[key] = value
            sources.pop(key, None)

        try:
            return cls(**values)
        except ValidationError as e:
            error = e.errors()[0]
            key = str(error["loc"][0]) if error["loc"] else ""
            env_var = sources.get(key) or ENV_VARS.get(key, (None,))[0]
            raise ConfigurationError(
                f"Invalid setting '{key}': {error['msg']}",
                env_var=env_var,
                config_key=key,
            )

    def with_metadata(self, metadata: ReleaseMetadata) -> "PublisherConfig":
        """Fill in name and version from goreleaser metadata when unset."""
        updates = {}
        if not self.name:
            updates["name"] = metadata.project_name
        if not self.version:
            updates["version"] = metadata.version
        return self.model_copy(update=updates)

    def validate_required(self) -> None:
        """
        Check that every setting the publish run needs is present.

        Raises:
            ConfigurationError: Naming the first missing setting
        """
        for key in REQUIRED:
            if not getattr(self, key):
                env_var = ENV_VARS[key][0]
                raise ConfigurationError(
                    f"Missing required setting '{key}'. "
                    f"Pass it as a flag or set {env_var}.",
                    env_var=env_var,
                    config_key=key,
                )

    def registry_config(self) -> RegistryConfig:
        """Connection settings for the registry client."""
        return RegistryConfig(
            token=self.token,
            address=self.address,
            timeout_seconds=self.timeout_seconds,
            protocols=self.protocols,
        )

    def provider_identity(self) -> ProviderIdentity:
        return ProviderIdentity.from_project_name(self.organization, self.name)

    def version_identity(self) -> VersionIdentity:
        return VersionIdentity(provider=self.provider_identity(), version=self.version)
