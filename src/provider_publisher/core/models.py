"""
Core data models for Provider Publisher.

Identities are derived once from inputs and never change. Remote entities
mirror what the registry returned on the last read or create; their
upload flags are owned by the server and are never set locally.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from provider_publisher.core.exceptions import FormatError

PROJECT_PREFIX = "terraform-provider-"


class RegistryName(Enum):
    """Registry scopes a provider can live in."""

    PRIVATE = "private"
    PUBLIC = "public"


@dataclass(frozen=True)
class ProviderIdentity:
    """Key of a provider in an organization's registry."""

    organization: str
    name: str
    namespace: str = ""
    registry_name: RegistryName = RegistryName.PRIVATE

    def __post_init__(self) -> None:
        # Private providers are always namespaced by their organization
        if not self.namespace:
            object.__setattr__(self, "namespace", self.organization)

    @classmethod
    def from_project_name(cls, organization: str, project_name: str) -> "ProviderIdentity":
        """Build an identity from a goreleaser project name."""
        name = project_name
        if name.startswith(PROJECT_PREFIX):
            name = name[len(PROJECT_PREFIX):]
        return cls(organization=organization, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class VersionIdentity:
    """Key of a provider version."""

    provider: ProviderIdentity
    version: str

    def __post_init__(self) -> None:
        # Git tags are usually v-prefixed, the registry wants bare semver
        if self.version.startswith("v"):
            object.__setattr__(self, "version", self.version[1:])

    def __str__(self) -> str:
        return f"{self.provider}/{self.version}"


@dataclass(frozen=True)
class PlatformIdentity:
    """Key of a single OS/architecture build of a version."""

    version: VersionIdentity
    os: str
    arch: str

    def __str__(self) -> str:
        return f"{self.version}/{self.os}_{self.arch}"


def _require_link(links: dict[str, Any], key: str, resource: str) -> str:
    url = links.get(key)
    if not url:
        raise FormatError(
            f"Registry response for {resource} has no '{key}' link",
            source=resource,
        )
    return str(url)


class Provider(BaseModel):
    """A provider as stored in the registry."""

    id: str
    organization: str
    namespace: str
    name: str
    registry_name: RegistryName = RegistryName.PRIVATE

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Provider":
        """Build from a JSON:API `registry-providers` resource object."""
        attributes = data.get("attributes") or {}
        # JSON:API allows null for any of these members
        relationships = data.get("relationships") or {}
        org_data = (relationships.get("organization") or {}).get("data") or {}
        organization = org_data.get("id") or attributes.get("namespace") or ""
        return cls(
            id=data.get("id") or "",
            organization=organization,
            namespace=attributes.get("namespace") or "",
            name=attributes.get("name") or "",
            registry_name=RegistryName(attributes.get("registry-name") or "private"),
        )


class Version(BaseModel):
    """A provider version as stored in the registry."""

    id: str
    version: str
    key_id: str | None = None
    protocols: list[str] = Field(default_factory=list)
    shasums_uploaded: bool = False
    shasums_sig_uploaded: bool = False
    links: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Version":
        """Build from a JSON:API `registry-provider-versions` resource object."""
        attributes = data.get("attributes") or {}
        return cls(
            id=data.get("id") or "",
            version=attributes.get("version") or "",
            key_id=attributes.get("key-id"),
            protocols=attributes.get("protocols") or [],
            shasums_uploaded=bool(attributes.get("shasums-uploaded", False)),
            shasums_sig_uploaded=bool(attributes.get("shasums-sig-uploaded", False)),
            links=data.get("links") or {},
        )

    def shasums_upload_url(self) -> str:
        """Server-issued URL the checksums file is PUT to."""
        return _require_link(self.links, "shasums-upload", f"version {self.version}")

    def shasums_sig_upload_url(self) -> str:
        """Server-issued URL the checksums signature is PUT to."""
        return _require_link(self.links, "shasums-sig-upload", f"version {self.version}")


class Platform(BaseModel):
    """A platform build of a version as stored in the registry."""

    id: str
    os: str
    arch: str
    shasum: str = ""
    filename: str = ""
    binary_uploaded: bool = False
    links: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Platform":
        """Build from a JSON:API `registry-provider-platforms` resource object."""
        attributes = data.get("attributes") or {}
        return cls(
            id=data.get("id") or "",
            os=attributes.get("os") or "",
            arch=attributes.get("arch") or "",
            shasum=attributes.get("shasum") or "",
            filename=attributes.get("filename") or "",
            binary_uploaded=bool(attributes.get("provider-binary-uploaded", False)),
            links=data.get("links") or {},
        )

    def binary_upload_url(self) -> str:
        """Server-issued URL the archive is PUT to."""
        return _require_link(
            self.links, "provider-binary-upload", f"platform {self.os}_{self.arch}"
        )
