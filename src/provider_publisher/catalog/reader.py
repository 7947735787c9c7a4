"""
Catalog Reader - load goreleaser manifests from disk.

Both manifests are read once per run and never written.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from provider_publisher.catalog.models import Artifact, Catalog, ReleaseMetadata
from provider_publisher.core.exceptions import ArtifactIOError, FormatError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _read_json(path: Path) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ArtifactIOError(f"Manifest not found: {path}", path=str(path))
    except UnicodeDecodeError as e:
        raise FormatError(f"Manifest {path} is not valid UTF-8: {e}", source=str(path))
    except OSError as e:
        raise ArtifactIOError(f"Cannot read manifest {path}: {e}", path=str(path))

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise FormatError(f"Manifest {path} is not valid JSON: {e}", source=str(path))


def _validation_messages(error: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in error.errors()
    ]


def load_catalog(manifest_path: Path, root: Path | None = None) -> Catalog:
    """
    Load dist/artifacts.json into a Catalog.

    Args:
        manifest_path: Path to the goreleaser artifacts manifest
        root: Directory artifact paths are relative to. Defaults to the
            parent of the manifest's directory, the goreleaser project root.

    Returns:
        Catalog with artifacts in manifest order

    Raises:
        ArtifactIOError: If the manifest is missing or unreadable
        FormatError: If the content is not a list of artifact records
    """
    manifest_path = Path(manifest_path)
    data = _read_json(manifest_path)

    if not isinstance(data, list):
        raise FormatError(
            f"Manifest {manifest_path} must contain a JSON array of artifacts",
            source=str(manifest_path),
        )

    artifacts = []
    for index, record in enumerate(data):
        try:
            artifacts.append(Artifact.model_validate(record))
        except ValidationError as e:
            raise FormatError(
                f"Artifact #{index} in {manifest_path} is malformed",
                source=str(manifest_path),
                validation_errors=_validation_messages(e),
            )

    if root is None:
        root = manifest_path.parent.parent

    logger.debug(f"Loaded {len(artifacts)} artifacts from {manifest_path}")
    return Catalog(artifacts=tuple(artifacts), root=Path(root))


def load_metadata(path: Path) -> ReleaseMetadata:
    """
    Load dist/metadata.json.

    Raises:
        ArtifactIOError: If the file is missing or unreadable
        FormatError: If the content does not match the metadata shape
    """
    path = Path(path)
    data = _read_json(path)

    try:
        return ReleaseMetadata.model_validate(data)
    except ValidationError as e:
        raise FormatError(
            f"Release metadata {path} is malformed",
            source=str(path),
            validation_errors=_validation_messages(e),
        )


def file_sha256(path: Path) -> str:
    """
    Stream a file through SHA-256.

    Raises:
        ArtifactIOError: If the file cannot be read
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise ArtifactIOError(f"Cannot read artifact {path}: {e}", path=str(path))
    return digest.hexdigest()
