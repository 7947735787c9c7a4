"""
Registry Client - Terraform Cloud private provider registry.

Thin typed access to the three registry resources the publish workflow
touches, plus streaming uploads to the URLs the registry hands out.
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from provider_publisher.core.exceptions import (
    AuthError,
    ConfigurationError,
    FormatError,
    NotFoundError,
    RateLimitError,
    TransportError,
)
from provider_publisher.core.models import (
    Platform,
    PlatformIdentity,
    Provider,
    ProviderIdentity,
    Version,
    VersionIdentity,
)
from provider_publisher.registry.upload import upload_file

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "https://app.terraform.io"
JSON_API = "application/vnd.api+json"


class RegistryClient(Protocol):
    """
    Operations the publish workflow needs from a registry.

    Reads raise NotFoundError when the resource does not exist. Any other
    failure raises another PublisherError subclass.
    """

    def read_provider(self, identity: ProviderIdentity) -> Provider: ...

    def create_provider(self, identity: ProviderIdentity) -> Provider: ...

    def read_version(self, identity: VersionIdentity) -> Version: ...

    def create_version(self, identity: VersionIdentity, key_id: str) -> Version: ...

    def read_platform(self, identity: PlatformIdentity) -> Platform: ...

    def create_platform(
        self, identity: PlatformIdentity, shasum: str, filename: str
    ) -> Platform: ...

    def upload_file(self, url: str, path: Path) -> None: ...


class RegistryConfig(BaseModel):
    """Connection settings for the registry API."""

    token: str = ""
    address: str = DEFAULT_ADDRESS
    timeout_seconds: int = 60
    protocols: list[str] = Field(default_factory=lambda: ["5.0"])


class TFERegistryClient:
    """
    RegistryClient backed by the Terraform Cloud / Enterprise API.

    The API token is attached per request, so the same HTTP client can
    be used for pre-signed uploads without leaking the token.
    """

    def __init__(self, config: RegistryConfig, http_client: httpx.Client | None = None):
        """
        Initialize the client.

        Args:
            config: Registry connection settings
            http_client: Optional pre-built HTTP client, mostly for tests
        """
        if not config.token:
            raise ConfigurationError(
                "Registry API token is not configured",
                config_key="token",
            )
        self._config = config
        self._api_url = config.address.rstrip("/") + "/api/v2"
        self._client = http_client or httpx.Client(timeout=config.timeout_seconds)

    # Paths

    def _provider_collection(self, identity: ProviderIdentity) -> str:
        return f"/organizations/{quote(identity.organization)}/registry-providers"

    def _provider_path(self, identity: ProviderIdentity) -> str:
        return (
            f"{self._provider_collection(identity)}/{identity.registry_name.value}"
            f"/{quote(identity.namespace)}/{quote(identity.name)}"
        )

    def _version_path(self, identity: VersionIdentity) -> str:
        return f"{self._provider_path(identity.provider)}/versions/{quote(identity.version)}"

    def _platform_path(self, identity: PlatformIdentity) -> str:
        return (
            f"{self._version_path(identity.version)}/platforms"
            f"/{quote(identity.os)}/{quote(identity.arch)}"
        )

    # Providers

    def read_provider(self, identity: ProviderIdentity) -> Provider:
        """Read a provider by identity."""
        data = self._request(
            "GET",
            self._provider_path(identity),
            resource_type="provider",
            resource_id=str(identity),
        )
        return Provider.from_api(data)

    def create_provider(self, identity: ProviderIdentity) -> Provider:
        """Create a provider in the organization's registry."""
        body = {
            "data": {
                "type": "registry-providers",
                "attributes": {
                    "name": identity.name,
                    "namespace": identity.namespace,
                    "registry-name": identity.registry_name.value,
                },
            }
        }
        data = self._request(
            "POST",
            self._provider_collection(identity),
            body=body,
            resource_type="provider",
            resource_id=str(identity),
        )
        return Provider.from_api(data)

    # Versions

    def read_version(self, identity: VersionIdentity) -> Version:
        """Read a provider version, including its upload flags and links."""
        data = self._request(
            "GET",
            self._version_path(identity),
            resource_type="version",
            resource_id=str(identity),
        )
        return Version.from_api(data)

    def create_version(self, identity: VersionIdentity, key_id: str) -> Version:
        """Create a provider version signed with the given GPG key."""
        body = {
            "data": {
                "type": "registry-provider-versions",
                "attributes": {
                    "version": identity.version,
                    "key-id": key_id,
                    "protocols": self._config.protocols,
                },
            }
        }
        data = self._request(
            "POST",
            f"{self._provider_path(identity.provider)}/versions",
            body=body,
            resource_type="version",
            resource_id=str(identity),
        )
        return Version.from_api(data)

    # Platforms

    def read_platform(self, identity: PlatformIdentity) -> Platform:
        """Read a platform, including its upload flag and link."""
        data = self._request(
            "GET",
            self._platform_path(identity),
            resource_type="platform",
            resource_id=str(identity),
        )
        return Platform.from_api(data)

    def create_platform(
        self, identity: PlatformIdentity, shasum: str, filename: str
    ) -> Platform:
        """Create a platform for an archive with a known checksum."""
        body = {
            "data": {
                "type": "registry-provider-version-platforms",
                "attributes": {
                    "os": identity.os,
                    "arch": identity.arch,
                    "shasum": shasum,
                    "filename": filename,
                },
            }
        }
        data = self._request(
            "POST",
            f"{self._version_path(identity.version)}/platforms",
            body=body,
            resource_type="platform",
            resource_id=str(identity),
        )
        return Platform.from_api(data)

    # Uploads

    def upload_file(self, url: str, path: Path) -> None:
        """Stream a local file to an upload URL."""
        upload_file(self._client, url, path)

    # Transport

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    def _request(
        self,
        method: str,
        path: str,
        *,
        resource_type: str,
        resource_id: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Send an API request and return the JSON:API `data` object.

        Retries only on 429; every other failure is raised immediately.
        """
        url = f"{self._api_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._config.token}",
            "Accept": JSON_API,
        }
        content = None
        if body is not None:
            headers["Content-Type"] = JSON_API
            content = json.dumps(body)

        operation = "read" if method == "GET" else "create"
        logger.debug(f"{method} {url}")

        try:
            response = self._client.request(method, url, headers=headers, content=content)
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error during {resource_type} {operation}: {e}",
                url=url,
                operation=operation,
            )

        self._raise_for_status(response, resource_type, resource_id, operation)

        try:
            payload = response.json()
        except ValueError:
            raise FormatError(
                f"Registry returned a non-JSON {resource_type} response",
                source=url,
            )

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise FormatError(
                f"Registry {resource_type} response has no data object",
                source=url,
            )
        return data

    def _raise_for_status(
        self,
        response: httpx.Response,
        resource_type: str,
        resource_id: str,
        operation: str,
    ) -> None:
        """Convert non-success responses into the error taxonomy."""
        status_code = response.status_code
        if response.is_success:
            return

        if status_code == 404:
            raise NotFoundError(
                f"{resource_type.capitalize()} {resource_id} not found",
                resource_type=resource_type,
                resource_id=resource_id,
            )
        if status_code in (401, 403):
            raise AuthError(
                f"Registry rejected the API token during {resource_type} {operation}",
                status_code=status_code,
                operation=operation,
            )
        if status_code == 429:
            raise RateLimitError(body=response.text, url=str(response.request.url))

        raise TransportError(
            f"received {status_code} during {resource_type} {operation}: {response.text}",
            status_code=status_code,
            body=response.text,
            url=str(response.request.url),
            operation=operation,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *args):
        """Context manager exit."""
        self.close()
