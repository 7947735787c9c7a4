"""
Streaming uploads to server-issued upload URLs.

Upload URLs are pre-signed and time-bounded. They must not be sent the
registry API token, and a failed upload is never retried here.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterator
from urllib.parse import urlsplit, urlunsplit

import httpx

from provider_publisher.core.exceptions import ArtifactIOError, TransportError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def redact_url(url: str) -> str:
    """Drop the query string, which carries the upload signature."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _iter_chunks(f: BinaryIO) -> Iterator[bytes]:
    for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
        yield chunk


def upload_file(client: httpx.Client, url: str, path: Path) -> None:
    """
    PUT a file to an upload URL without reading it into memory.

    Args:
        client: HTTP client to send the request with
        url: Upload URL issued by the registry
        path: Local file to upload

    Raises:
        ArtifactIOError: If the file cannot be opened
        TransportError: On network failure or any status other than 200
    """
    path = Path(path)
    try:
        size = path.stat().st_size
        f = open(path, "rb")
    except OSError as e:
        raise ArtifactIOError(f"Cannot open artifact {path}: {e}", path=str(path))

    logger.debug(f"PUT {path.name} ({size} bytes) to {redact_url(url)}")

    with f:
        try:
            response = client.put(
                url,
                content=_iter_chunks(f),
                headers={"Content-Length": str(size)},
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"Upload of {path.name} failed: {e}",
                url=redact_url(url),
                operation="upload",
            )

    if response.status_code != 200:
        body = response.text
        raise TransportError(
            f"received {response.status_code} instead of 200: {body}",
            status_code=response.status_code,
            body=body,
            url=redact_url(url),
            operation="upload",
        )
