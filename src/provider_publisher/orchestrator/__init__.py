"""
Provider Publisher Orchestrator Module.

Provides the idempotent provision-and-upload workflow.
"""

__all__ = [
    "EntityState",
    "Publisher",
    "PublishRequest",
    "PublishResult",
    "PublishStep",
    "StepKind",
    "ensure_entity",
]

from provider_publisher.orchestrator.core import (
    EntityState,
    Publisher,
    PublishRequest,
    PublishResult,
    PublishStep,
    StepKind,
    ensure_entity,
)
