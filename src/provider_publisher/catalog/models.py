"""
Pydantic models for the goreleaser artifact catalog.

Mirrors the records goreleaser writes to dist/artifacts.json and
dist/metadata.json. Only the fields the publish pipeline reads are
declared; everything else goreleaser emits is kept as extra data.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from provider_publisher.core.exceptions import ArtifactMatchError, ConfigurationError

CHECKSUM_PREFIX = "sha256:"


class ArtifactType(Enum):
    """goreleaser artifact types the pipeline cares about."""

    ARCHIVE = "Archive"
    CHECKSUM = "Checksum"
    SIGNATURE = "Signature"
    OTHER = "Other"


class ArtifactExtra(BaseModel):
    """The free-form `extra` block of a goreleaser artifact."""

    binary: str | None = Field(default=None, alias="Binary")
    binaries: list[str] = Field(default_factory=list, alias="Binaries")
    ext: str | None = Field(default=None, alias="Ext")
    id: str | None = Field(default=None, alias="ID")
    checksum: str | None = Field(default=None, alias="Checksum")
    format: str | None = Field(default=None, alias="Format")

    model_config = {"extra": "allow", "populate_by_name": True}

    @field_validator("binaries", mode="before")
    @classmethod
    def validate_binaries(cls, v):
        """goreleaser writes null for archives without binaries."""
        return v or []


class Artifact(BaseModel):
    """A single build output listed in artifacts.json."""

    name: str
    path: str
    goos: str | None = None
    goarch: str | None = None
    goarm: str | None = None
    internal_type: int | None = None
    type: ArtifactType = ArtifactType.OTHER
    extra: ArtifactExtra = Field(default_factory=ArtifactExtra)

    model_config = {"extra": "allow", "frozen": True}

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        """Convert string to ArtifactType enum, unknown types become OTHER."""
        if isinstance(v, str):
            try:
                return ArtifactType(v)
            except ValueError:
                return ArtifactType.OTHER
        return v

    @field_validator("extra", mode="before")
    @classmethod
    def validate_extra(cls, v):
        return v or {}

    def sha256(self) -> str | None:
        """Hex digest recorded by goreleaser, without the algorithm prefix."""
        checksum = self.extra.checksum
        if not checksum:
            return None
        if checksum.startswith(CHECKSUM_PREFIX):
            checksum = checksum[len(CHECKSUM_PREFIX):]
        return checksum.lower() or None

    def platform(self) -> tuple[str, str]:
        """
        OS and architecture this artifact was built for.

        Uses goos/goarch when goreleaser recorded them, otherwise parses
        the `<project>_<version>_<os>_<arch>.<ext>` archive naming scheme.

        Raises:
            ConfigurationError: If neither source yields a platform
        """
        if self.goos and self.goarch:
            return self.goos, self.goarch

        parts = self.name.split("_")
        if len(parts) < 4:
            raise ConfigurationError(
                f"Cannot determine OS/arch of artifact {self.name}",
                details={"artifact": self.name},
            )
        # Versions contain dots, so only the arch segment carries the extension
        return parts[-2], parts[-1].split(".", 1)[0]


@dataclass(frozen=True)
class Catalog:
    """
    The ordered artifacts of one release.

    Paths in artifacts.json are relative to the goreleaser project
    directory, which `root` points at.
    """

    artifacts: tuple[Artifact, ...]
    root: Path

    def __len__(self) -> int:
        return len(self.artifacts)

    def __iter__(self):
        return iter(self.artifacts)

    def of_type(self, artifact_type: ArtifactType) -> list[Artifact]:
        """All artifacts with the given type, in catalog order."""
        return [a for a in self.artifacts if a.type == artifact_type]

    def archives(self) -> list[Artifact]:
        """All Archive artifacts, in catalog order."""
        return self.of_type(ArtifactType.ARCHIVE)

    def find_single(self, artifact_type: ArtifactType) -> Artifact:
        """
        Return the only artifact of a type.

        Raises:
            ArtifactMatchError: If there are zero or several of them
        """
        found = self.of_type(artifact_type)
        if len(found) != 1:
            raise ArtifactMatchError(
                f"Expected exactly one {artifact_type.value} artifact, found {len(found)}",
                target=artifact_type.value,
                candidates=[a.name for a in found],
            )
        return found[0]

    def match_archive(self, target: str) -> Artifact:
        """
        Resolve a requested target to exactly one archive.

        `target` may be a full archive filename or a platform fragment
        such as `darwin_arm64` or `darwin/arm64`. Every archive whose
        filename contains it is a candidate; there is no tie-break.

        Raises:
            ArtifactMatchError: If zero or several archives match
        """
        needle = target.strip().replace("/", "_")
        if not needle:
            raise ArtifactMatchError("Empty artifact target", target=target)

        matches = [a for a in self.archives() if needle in a.name]
        if not matches:
            raise ArtifactMatchError(
                f"No archive artifact matches '{target}'",
                target=target,
                candidates=[a.name for a in self.archives()],
            )
        if len(matches) > 1:
            raise ArtifactMatchError(
                f"Artifact target '{target}' is ambiguous",
                target=target,
                candidates=[a.name for a in matches],
            )
        return matches[0]

    def resolve_path(self, artifact: Artifact) -> Path:
        """Filesystem location of an artifact."""
        path = Path(artifact.path)
        if path.is_absolute():
            return path
        return self.root / path


class RuntimeInfo(BaseModel):
    """Platform goreleaser itself ran on."""

    goos: str | None = None
    goarch: str | None = None


class ReleaseMetadata(BaseModel):
    """Release information from dist/metadata.json."""

    project_name: str
    tag: str | None = None
    previous_tag: str | None = None
    version: str
    commit: str | None = None
    date: datetime | None = None
    runtime: RuntimeInfo = Field(default_factory=RuntimeInfo)

    model_config = {"extra": "allow"}
