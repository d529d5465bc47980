"""
Error taxonomy for memograph.

Every invariant violation is raised before any write happens, so catching
one of these never leaves the store half-modified.
"""

from __future__ import annotations

from typing import Optional


class MemographError(Exception):
    """
    Base class for all engine errors.
    """


class ValidationError(MemographError):
    """
    Rejected input: bad enum value, empty required field, broken invariant.
    """

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidEdgeError(ValidationError):
    """
    Edge would connect a node to itself.
    """


class WeightOutOfRangeError(ValidationError):
    """
    Edge weight outside the closed interval [0.0, 1.0].
    """


class NotFoundError(MemographError):
    """
    Unknown id, or an id owned by another tenant.

    Both cases produce the same message so existence never leaks
    across owners.
    """

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(MemographError):
    """
    Write would duplicate a uniquely keyed row.
    """


class InvalidTransitionError(MemographError):
    """
    Illegal governance state change. Never touches the store.
    """

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"transition {current} -> {target} is not allowed"
        )
        self.current = current
        self.target = target


class ExternalCapabilityError(MemographError):
    """
    Embedding or completion provider failed, timed out,
    or returned output that does not match the expected schema.
    """

    def __init__(self, capability: str, reason: str) -> None:
        super().__init__(f"{capability} failed: {reason}")
        self.capability = capability
        self.reason = reason
