"""
Provider Publisher Registry Module.

Provides the registry client contract and its Terraform Cloud implementation.
"""

__all__ = [
    "DEFAULT_ADDRESS",
    "RegistryClient",
    "RegistryConfig",
    "TFERegistryClient",
    "upload_file",
]

from provider_publisher.registry.client import (
    DEFAULT_ADDRESS,
    RegistryClient,
    RegistryConfig,
    TFERegistryClient,
)
from provider_publisher.registry.upload import upload_file
