"""
Provider Publisher - publish goreleaser builds to a private provider registry.

Takes the dist/ output of goreleaser and makes sure the provider, version
and platforms exist in a Terraform Cloud private registry, uploading
whatever files the registry does not have yet.
"""

__version__ = "0.1.0"

# Overwritten by the release build
__commit__ = "none"
__date__ = "unknown"

__all__ = []
