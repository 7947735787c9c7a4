"""
Provider Publisher Catalog Module.

Reads the artifacts and release metadata goreleaser leaves in dist/.
"""

__all__ = [
    "Artifact",
    "ArtifactExtra",
    "ArtifactType",
    "Catalog",
    "ReleaseMetadata",
    "file_sha256",
    "load_catalog",
    "load_metadata",
]

from provider_publisher.catalog.models import (
    Artifact,
    ArtifactExtra,
    ArtifactType,
    Catalog,
    ReleaseMetadata,
)
from provider_publisher.catalog.reader import file_sha256, load_catalog, load_metadata
