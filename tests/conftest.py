"""Pytest configuration and fixtures."""

import hashlib
import json
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from provider_publisher.core.exceptions import NotFoundError
from provider_publisher.core.models import (
    Platform,
    PlatformIdentity,
    Provider,
    ProviderIdentity,
    Version,
    VersionIdentity,
)

PROJECT = "terraform-provider-hashicups"
VERSION = "0.1.0"
PLATFORMS = [("darwin", "arm64"), ("linux", "amd64")]

MUTATING_CALLS = {"create_provider", "create_version", "create_platform", "upload_file"}


def archive_name(os_name: str, arch: str) -> str:
    return f"{PROJECT}_{VERSION}_{os_name}_{arch}.zip"


def write_dist(
    root: Path,
    platforms: list[tuple[str, str]] | None = None,
    extra_artifacts: list[dict] | None = None,
) -> Path:
    """Write a goreleaser-style dist/ folder and return the artifacts.json path."""
    dist = root / "dist"
    dist.mkdir(parents=True, exist_ok=True)

    artifacts = []
    for os_name, arch in platforms if platforms is not None else PLATFORMS:
        name = archive_name(os_name, arch)
        content = f"zip-{os_name}-{arch}".encode()
        (dist / name).write_bytes(content)
        artifacts.append(
            {
                "name": name,
                "path": f"dist/{name}",
                "goos": os_name,
                "goarch": arch,
                "internal_type": 1,
                "type": "Archive",
                "extra": {
                    "Binaries": [f"{PROJECT}_v{VERSION}"],
                    "Checksum": "sha256:" + hashlib.sha256(content).hexdigest(),
                    "Format": "zip",
                    "ID": "default",
                },
            }
        )

    sums = f"{PROJECT}_{VERSION}_SHA256SUMS"
    (dist / sums).write_text("deadbeef  archive.zip\n")
    artifacts.append(
        {"name": sums, "path": f"dist/{sums}", "internal_type": 12, "type": "Checksum", "extra": {}}
    )
    sig = f"{sums}.sig"
    (dist / sig).write_bytes(b"signature")
    artifacts.append(
        {"name": sig, "path": f"dist/{sig}", "internal_type": 13, "type": "Signature", "extra": None}
    )

    artifacts.extend(extra_artifacts or [])

    manifest = dist / "artifacts.json"
    manifest.write_text(json.dumps(artifacts))
    (dist / "metadata.json").write_text(
        json.dumps(
            {
                "project_name": PROJECT,
                "tag": f"v{VERSION}",
                "previous_tag": "v0.0.9",
                "version": VERSION,
                "commit": "abc123",
                "date": "2024-05-01T12:00:00Z",
                "runtime": {"goos": "linux", "goarch": "amd64"},
            }
        )
    )
    return manifest


class FakeRegistry:
    """
    In-memory registry honouring the RegistryClient contract.

    Upload flags flip server-side when a file is uploaded to the URL
    issued for it, and every read returns a fresh copy.
    """

    def __init__(self) -> None:
        self.providers: dict[ProviderIdentity, Provider] = {}
        self.versions: dict[VersionIdentity, Version] = {}
        self.platforms: dict[PlatformIdentity, Platform] = {}
        self.uploads: dict[str, tuple[str, object]] = {}
        self.uploaded_files: list[Path] = []
        self.calls: list[tuple[str, str]] = []

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in MUTATING_CALLS]

    def count(self, call: str) -> int:
        return sum(1 for c in self.calls if c[0] == call)

    def read_provider(self, identity: ProviderIdentity) -> Provider:
        self.calls.append(("read_provider", str(identity)))
        if identity not in self.providers:
            raise NotFoundError(resource_type="provider", resource_id=str(identity))
        return self.providers[identity].model_copy()

    def create_provider(self, identity: ProviderIdentity) -> Provider:
        self.calls.append(("create_provider", str(identity)))
        assert identity not in self.providers, "provider created twice"
        self.providers[identity] = Provider(
            id=f"prov-{len(self.providers) + 1}",
            organization=identity.organization,
            namespace=identity.namespace,
            name=identity.name,
        )
        return self.providers[identity].model_copy()

    def _version_links(self, identity: VersionIdentity) -> dict[str, str]:
        sums_url = f"https://archivist.test/v1/object/sums-{identity.version}?sig=x"
        sig_url = f"https://archivist.test/v1/object/sig-{identity.version}?sig=x"
        self.uploads[sums_url] = ("shasums_uploaded", identity)
        self.uploads[sig_url] = ("shasums_sig_uploaded", identity)
        return {"shasums-upload": sums_url, "shasums-sig-upload": sig_url}

    def read_version(self, identity: VersionIdentity) -> Version:
        self.calls.append(("read_version", str(identity)))
        if identity not in self.versions:
            raise NotFoundError(resource_type="version", resource_id=str(identity))
        version = self.versions[identity]
        return version.model_copy(update={"links": self._version_links(identity)})

    def create_version(self, identity: VersionIdentity, key_id: str) -> Version:
        self.calls.append(("create_version", str(identity)))
        assert identity not in self.versions, "version created twice"
        self.versions[identity] = Version(id=f"provver-{identity.version}", version=identity.version, key_id=key_id)
        return self.versions[identity].model_copy(update={"links": self._version_links(identity)})

    def read_platform(self, identity: PlatformIdentity) -> Platform:
        self.calls.append(("read_platform", str(identity)))
        if identity not in self.platforms:
            raise NotFoundError(resource_type="platform", resource_id=str(identity))
        return self._with_platform_link(identity)

    def create_platform(self, identity: PlatformIdentity, shasum: str, filename: str) -> Platform:
        self.calls.append(("create_platform", str(identity)))
        assert identity not in self.platforms, "platform created twice"
        assert shasum, "platform created without checksum"
        self.platforms[identity] = Platform(
            id=f"provpltfrm-{identity.os}-{identity.arch}",
            os=identity.os,
            arch=identity.arch,
            shasum=shasum,
            filename=filename,
        )
        return self._with_platform_link(identity)

    def _with_platform_link(self, identity: PlatformIdentity) -> Platform:
        url = f"https://archivist.test/v1/object/bin-{identity.os}-{identity.arch}?sig=x"
        self.uploads[url] = ("binary_uploaded", identity)
        return self.platforms[identity].model_copy(update={"links": {"provider-binary-upload": url}})

    def upload_file(self, url: str, path: Path) -> None:
        self.calls.append(("upload_file", Path(path).name))
        assert Path(path).exists(), f"uploading missing file {path}"
        flag, key = self.uploads[url]
        self.uploaded_files.append(Path(path))
        if flag == "binary_uploaded":
            self.platforms[key] = self.platforms[key].model_copy(update={flag: True})
        else:
            self.versions[key] = self.versions[key].model_copy(update={flag: True})


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def manifest_path(temp_dir: Path) -> Path:
    """A dist/ folder with two platforms, checksums and signature."""
    return write_dist(temp_dir)


@pytest.fixture
def fake_registry() -> FakeRegistry:
    """An empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture
def provider_id() -> ProviderIdentity:
    return ProviderIdentity.from_project_name("hashicorp-demo", PROJECT)


@pytest.fixture
def version_id(provider_id: ProviderIdentity) -> VersionIdentity:
    return VersionIdentity(provider=provider_id, version=VERSION)
