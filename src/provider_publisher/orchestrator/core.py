"""
Orchestrator Core - idempotent provisioning and upload.

Drives provider -> version -> platform find-or-create against an injected
registry client and uploads whatever the registry reports as missing.
Every run starts from fresh reads, so an interrupted run is resumed by
running it again.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Generic, TypeVar

from provider_publisher.catalog.models import Artifact, ArtifactType, Catalog
from provider_publisher.catalog.reader import file_sha256
from provider_publisher.core.exceptions import ChecksumMismatchError, NotFoundError
from provider_publisher.core.models import (
    Platform,
    PlatformIdentity,
    Provider,
    ProviderIdentity,
    Version,
    VersionIdentity,
)
from provider_publisher.registry.client import RegistryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityState(Enum):
    """Where a find-or-create is in its lifecycle."""

    UNKNOWN = "unknown"
    FOUND = "found"
    NOT_FOUND = "not_found"
    ENSURED = "ensured"


class StepKind(Enum):
    """What a publish step did to the registry."""

    FOUND = "found"
    CREATED = "created"
    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    PLANNED = "planned"


@dataclass
class PublishStep:
    """One observable action of a publish run."""

    kind: StepKind
    resource: str
    detail: str = ""


@dataclass
class EnsureOutcome(Generic[T]):
    """Result of a single find-or-create."""

    checked: EntityState
    state: EntityState
    entity: T | None = None

    @property
    def created(self) -> bool:
        return self.checked == EntityState.NOT_FOUND and self.state == EntityState.ENSURED


def ensure_entity(
    resource: str,
    read: Callable[[], T],
    create: Callable[[], T],
    *,
    dry_run: bool = False,
) -> EnsureOutcome[T]:
    """
    Read an entity and create it only if the registry says it is missing.

    Any error other than NotFoundError from the read is propagated, as is
    every error from the create.

    Args:
        resource: Human-readable name used in logs
        read: Fetches the entity, raising NotFoundError if absent
        create: Creates the entity
        dry_run: Stop after the read instead of creating

    Returns:
        EnsureOutcome; `entity` is None only for a dry run of a missing entity
    """
    try:
        entity = read()
    except NotFoundError:
        if dry_run:
            logger.info(f"{resource} not found. Would create.")
            return EnsureOutcome(checked=EntityState.NOT_FOUND, state=EntityState.NOT_FOUND)
        logger.info(f"{resource} not found. Creating.")
        return EnsureOutcome(
            checked=EntityState.NOT_FOUND,
            state=EntityState.ENSURED,
            entity=create(),
        )

    logger.debug(f"{resource} already exists")
    return EnsureOutcome(checked=EntityState.FOUND, state=EntityState.ENSURED, entity=entity)


@dataclass
class PublishRequest:
    """Everything needed to publish one provider version."""

    version: VersionIdentity
    key_id: str
    catalog: Catalog
    targets: list[str] = field(default_factory=list)


@dataclass
class PublishResult:
    """Ordered record of what a publish run did."""

    version: VersionIdentity
    dry_run: bool = False
    steps: list[PublishStep] = field(default_factory=list)

    def of_kind(self, kind: StepKind) -> list[PublishStep]:
        return [s for s in self.steps if s.kind == kind]

    @property
    def created(self) -> list[PublishStep]:
        """Resources created during the run."""
        return self.of_kind(StepKind.CREATED)

    @property
    def uploaded(self) -> list[PublishStep]:
        """Files uploaded during the run."""
        return self.of_kind(StepKind.UPLOADED)

    @property
    def changed(self) -> bool:
        """True if the run mutated the registry."""
        return bool(self.created or self.uploaded)


class Publisher:
    """
    Publish workflow for one provider version.

    Executes:
    - Provider, version and platform find-or-create
    - Checksum, signature and archive uploads the registry reports missing
    - Artifact resolution before any remote call
    """

    def __init__(self, client: RegistryClient, *, dry_run: bool = False):
        """Initialize with the registry client to publish through."""
        self._client = client
        self._dry_run = dry_run
        self._steps: list[PublishStep] = []

    def _record(self, kind: StepKind, resource: str, detail: str = "") -> None:
        self._steps.append(PublishStep(kind=kind, resource=resource, detail=detail))

    def _record_outcome(self, outcome: EnsureOutcome, resource: str) -> None:
        if outcome.created:
            self._record(StepKind.CREATED, resource)
        elif outcome.checked == EntityState.FOUND:
            self._record(StepKind.FOUND, resource)
        else:
            self._record(StepKind.PLANNED, resource, "create")

    # Entities

    def ensure_provider(self, identity: ProviderIdentity) -> Provider | None:
        """Find or create the provider."""
        resource = f"Provider {identity}"
        outcome = ensure_entity(
            resource,
            lambda: self._client.read_provider(identity),
            lambda: self._client.create_provider(identity),
            dry_run=self._dry_run,
        )
        self._record_outcome(outcome, resource)
        return outcome.entity

    def ensure_version(self, identity: VersionIdentity, key_id: str) -> Version | None:
        """
        Find or create the version.

        The returned Version carries the upload flags and URLs of this
        read; they are not reused across runs.
        """
        resource = f"Version {identity}"
        outcome = ensure_entity(
            resource,
            lambda: self._client.read_version(identity),
            lambda: self._client.create_version(identity, key_id),
            dry_run=self._dry_run,
        )
        self._record_outcome(outcome, resource)
        return outcome.entity

    def ensure_platform(
        self, identity: VersionIdentity, archive: Artifact, catalog: Catalog
    ) -> Platform | None:
        """Find or create the platform an archive was built for."""
        os_name, arch = archive.platform()
        platform_id = PlatformIdentity(version=identity, os=os_name, arch=arch)
        resource = f"Platform {platform_id}"

        def create() -> Platform:
            shasum = self.resolve_checksum(archive, catalog)
            return self._client.create_platform(platform_id, shasum, archive.name)

        outcome = ensure_entity(
            resource,
            lambda: self._client.read_platform(platform_id),
            create,
            dry_run=self._dry_run,
        )
        if outcome.state == EntityState.NOT_FOUND:
            # Validate the archive even when nothing is created
            self.resolve_checksum(archive, catalog)
        self._record_outcome(outcome, resource)
        return outcome.entity

    def _plan_create(self, resource: str) -> None:
        """Record a create whose parent does not exist yet, without reading."""
        logger.info(f"{resource} would be created with its parent.")
        self._record(StepKind.PLANNED, resource, "create")

    def _plan_platform(
        self, identity: VersionIdentity, archive: Artifact, catalog: Catalog
    ) -> None:
        os_name, arch = archive.platform()
        platform_id = PlatformIdentity(version=identity, os=os_name, arch=arch)
        self.resolve_checksum(archive, catalog)
        self._plan_create(f"Platform {platform_id}")

    # Uploads

    def _upload(self, url: Callable[[], str], path: Path, resource: str) -> None:
        if self._dry_run:
            logger.info(f"Would upload {path.name}")
            self._record(StepKind.PLANNED, resource, "upload")
            return
        logger.info(f"Uploading {path.name}")
        self._client.upload_file(url(), path)
        self._record(StepKind.UPLOADED, resource, str(path))

    def ensure_sums_uploaded(self, version: Version, catalog: Catalog) -> None:
        """Upload the checksums file unless the registry already has it."""
        if version.shasums_uploaded:
            self._record(StepKind.SKIPPED, "SHA256SUMS", "already uploaded")
            return
        logger.info("Shasums have not been uploaded, uploading now.")
        artifact = catalog.find_single(ArtifactType.CHECKSUM)
        self._upload(version.shasums_upload_url, catalog.resolve_path(artifact), "SHA256SUMS")

    def ensure_sig_uploaded(self, version: Version, catalog: Catalog) -> None:
        """Upload the checksums signature unless the registry already has it."""
        if version.shasums_sig_uploaded:
            self._record(StepKind.SKIPPED, "SHA256SUMS.sig", "already uploaded")
            return
        logger.info("Shasums signature has not been uploaded, uploading now.")
        artifact = catalog.find_single(ArtifactType.SIGNATURE)
        self._upload(
            version.shasums_sig_upload_url, catalog.resolve_path(artifact), "SHA256SUMS.sig"
        )

    def ensure_binary_uploaded(
        self, platform: Platform, archive: Artifact, catalog: Catalog
    ) -> None:
        """Upload an archive unless the registry already has it."""
        if platform.binary_uploaded:
            self._record(StepKind.SKIPPED, archive.name, "already uploaded")
            return
        self._upload(platform.binary_upload_url, catalog.resolve_path(archive), archive.name)

    # Resolution

    def resolve_archives(self, catalog: Catalog, targets: list[str]) -> list[Artifact]:
        """
        Map requested targets to archives.

        With no targets every archive in the catalog is published. Each
        target must match exactly one archive and every archive must map
        to a platform.

        Raises:
            ArtifactMatchError: If a target matches zero or several archives
            ConfigurationError: If an archive's platform cannot be derived
        """
        if targets:
            archives = []
            for target in targets:
                archive = catalog.match_archive(target)
                if archive not in archives:
                    archives.append(archive)
        else:
            archives = catalog.archives()

        for archive in archives:
            archive.platform()
        return archives

    def resolve_checksum(self, archive: Artifact, catalog: Catalog) -> str:
        """
        SHA-256 of an archive, checked against what goreleaser recorded.

        Raises:
            ArtifactIOError: If the archive cannot be read
            ChecksumMismatchError: If the recorded checksum is wrong
        """
        actual = file_sha256(catalog.resolve_path(archive))
        recorded = archive.sha256()
        if recorded and recorded != actual:
            raise ChecksumMismatchError(
                f"Checksum of {archive.name} does not match artifacts.json",
                artifact=archive.name,
                expected=recorded,
                actual=actual,
            )
        return actual

    # Driving loop

    def publish(self, request: PublishRequest) -> PublishResult:
        """
        Provision and upload everything one version needs.

        Order: provider, version, checksums and signature, then one
        platform and archive per resolved target. Targets are resolved
        before any remote call. Re-running against a complete registry
        performs reads only.

        Raises:
            PublisherError: On the first failure; nothing is rolled back
        """
        self._steps = []
        result = PublishResult(version=request.version, dry_run=self._dry_run)
        catalog = request.catalog

        archives = self.resolve_archives(catalog, request.targets)

        provider = self.ensure_provider(request.version.provider)
        if provider is not None:
            version = self.ensure_version(request.version, request.key_id)
        else:
            # Dry run: children of a provider that does not exist are not read
            version = None
            self._plan_create(f"Version {request.version}")

        if version is not None:
            self.ensure_sums_uploaded(version, catalog)
            self.ensure_sig_uploaded(version, catalog)
        else:
            catalog.find_single(ArtifactType.CHECKSUM)
            catalog.find_single(ArtifactType.SIGNATURE)
            self._record(StepKind.PLANNED, "SHA256SUMS", "upload")
            self._record(StepKind.PLANNED, "SHA256SUMS.sig", "upload")

        for archive in archives:
            if version is None:
                self._plan_platform(request.version, archive, catalog)
                self._record(StepKind.PLANNED, archive.name, "upload")
                continue
            platform = self.ensure_platform(request.version, archive, catalog)
            if platform is not None:
                self.ensure_binary_uploaded(platform, archive, catalog)
            else:
                self._record(StepKind.PLANNED, archive.name, "upload")

        result.steps = list(self._steps)
        logger.info(
            f"Published {request.version}: {len(result.created)} created, "
            f"{len(result.uploaded)} uploaded"
        )
        return result
