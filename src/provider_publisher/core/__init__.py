"""
Provider Publisher Core Module.

Provides identities, registry entity models and the error taxonomy.
"""

__all__ = [
    "PlatformIdentity",
    "Platform",
    "Provider",
    "ProviderIdentity",
    "RegistryName",
    "Version",
    "VersionIdentity",
    # Exceptions
    "PublisherError",
    "RegistryError",
    "NotFoundError",
    "AuthError",
    "TransportError",
    "RateLimitError",
    "FormatError",
    "ArtifactIOError",
    "ConfigurationError",
    "ArtifactMatchError",
    "ChecksumMismatchError",
]

from provider_publisher.core.exceptions import (
    ArtifactIOError,
    ArtifactMatchError,
    AuthError,
    ChecksumMismatchError,
    ConfigurationError,
    FormatError,
    NotFoundError,
    PublisherError,
    RateLimitError,
    RegistryError,
    TransportError,
)
from provider_publisher.core.models import (
    Platform,
    PlatformIdentity,
    Provider,
    ProviderIdentity,
    RegistryName,
    Version,
    VersionIdentity,
)
