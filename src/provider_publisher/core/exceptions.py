"""
Provider Publisher Exception Hierarchy.

Defines all custom exceptions used by the publish pipeline.
Every error except NotFoundError on a read is fatal to a run.
"""

from typing import Any


class PublisherError(Exception):
    """
    Base exception for all Provider Publisher errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a PublisherError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class RegistryError(PublisherError):
    """
    Errors returned by the remote registry.

    Raised when a registry call fails, including:
    - Resource not found
    - Rejected credentials
    - Non-success HTTP responses and network failures
    """

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a RegistryError.

        Args:
            message: Human-readable error message
            resource_type: Type of registry resource involved
            resource_id: Identifier of the resource involved
            operation: Operation being performed
            details: Optional structured data for debugging
        """
        details = details or {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        if operation:
            details["operation"] = operation

        super().__init__(message, details=details)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.operation = operation


class NotFoundError(RegistryError):
    """Raised when a requested resource does not exist in the registry."""

    def __init__(
        self,
        message: str = "Resource not found",
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
    ):
        super().__init__(
            message,
            resource_type=resource_type,
            resource_id=resource_id,
            operation="read",
        )


class AuthError(RegistryError):
    """Raised when the registry rejects the API token."""

    def __init__(
        self,
        message: str = "Registry rejected the API token",
        *,
        status_code: int | None = None,
        operation: str | None = None,
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, operation=operation, details=details)
        self.status_code = status_code


class TransportError(RegistryError):
    """
    Network or HTTP failure talking to the registry or an upload URL.

    Carries the HTTP status code and response body when the server
    answered; both are None for connection-level failures.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        url: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a TransportError.

        Args:
            message: Human-readable error message
            status_code: HTTP status code if the server responded
            body: Response body if the server responded
            url: Request URL, without query string
            operation: Operation being performed
            details: Optional structured data for debugging
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        if url:
            details["url"] = url

        super().__init__(message, operation=operation, details=details)
        self.status_code = status_code
        self.body = body
        self.url = url


class RateLimitError(TransportError):
    """Raised when the registry API answers 429."""

    def __init__(
        self,
        message: str = "Registry rate limit exceeded",
        *,
        body: str | None = None,
        url: str | None = None,
    ):
        super().__init__(message, status_code=429, body=body, url=url)


class FormatError(PublisherError):
    """
    Raised when a document does not parse into the expected shape.

    Covers goreleaser manifests on disk as well as registry responses
    that are missing required attributes or links.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        validation_errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if source:
            details["source"] = source
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(message, details=details)
        self.source = source
        self.validation_errors = validation_errors or []


class ArtifactIOError(PublisherError):
    """Raised when a manifest or artifact file is missing or unreadable."""

    def __init__(self, message: str, *, path: str | None = None):
        details = {"path": path} if path else {}
        super().__init__(message, details=details)
        self.path = path


class ConfigurationError(PublisherError):
    """
    Errors in configuration or artifact selection.

    Raised when:
    - Required flags or environment variables are not set
    - A requested target does not resolve to exactly one archive
    - Artifact metadata contradicts the file on disk
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            config_key: Configuration key if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key


class ArtifactMatchError(ConfigurationError):
    """Raised when a target matches zero or several catalog artifacts."""

    def __init__(
        self,
        message: str,
        *,
        target: str | None = None,
        candidates: list[str] | None = None,
    ):
        details: dict[str, Any] = {}
        if target:
            details["target"] = target
        if candidates:
            details["candidates"] = candidates
        super().__init__(message, details=details)
        self.target = target
        self.candidates = candidates or []


class ChecksumMismatchError(ConfigurationError):
    """Raised when an archive's recorded checksum does not match its content."""

    def __init__(
        self,
        message: str = "Checksum mismatch",
        *,
        artifact: str | None = None,
        expected: str | None = None,
        actual: str | None = None,
    ):
        details = {"artifact": artifact, "expected": expected, "actual": actual}
        super().__init__(message, details=details)
        self.artifact = artifact
        self.expected = expected
        self.actual = actual


def format_exception(error: Exception) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, PublisherError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
