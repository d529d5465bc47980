from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type, TypeVar
from uuid import uuid4

import numpy as np

from memograph.errors import ValidationError
from memograph.utils.helpers import in_unit_interval
from memograph.utils.time import iso_timestamp, utc_now


# ---------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------


class NodeType(str, Enum):
    NOTE = "Note"
    CLAIM = "Claim"
    EVIDENCE = "Evidence"
    SOURCE = "Source"
    PERSON = "Person"
    DEFINITION = "Definition"


class EdgeType(str, Enum):
    RELATED_TO = "related_to"
    SUPPORTS = "supports"
    REFUTES = "refutes"
    DEFINES = "defines"
    CAUSED_BY = "caused_by"
    DERIVED_FROM = "derived_from"
    EXAMPLE_OF = "example_of"
    PART_OF = "part_of"


class GovernanceStatus(str, Enum):
    ACTIVE = "Active"
    EXPERIMENTAL = "Experimental"
    DEPRECATED = "Deprecated"


class Creator(str, Enum):
    USER = "User"
    AI = "AI"


class ProvenanceAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MERGE = "merge"
    SPLIT = "split"
    APPROVE = "approve"
    DEPRECATE = "deprecate"
    EXTRACT_GRAPH = "extract_graph"
    SUMMARIZE = "summarize"
    LINK_SUGGEST = "link_suggest"


class ProvenanceMethod(str, Enum):
    MANUAL = "manual"
    EXTRACT_GRAPH = "extract_graph"
    SUMMARIZE = "summarize"
    LINK_SUGGEST = "link_suggest"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Any, *, field_name: str) -> E:
    """
    Coerce a raw value into an enum member or raise ValidationError.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            f"invalid {field_name} '{value}' (expected one of: {allowed})",
            field=field_name,
        ) from None


# ---------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class Provenance:
    """
    Who or what produced an entity, and how confidently.

    source_node_id is a back-reference only; it never owns the node.
    """

    creator: Creator = Creator.USER
    model: Optional[str] = None
    model_version: Optional[str] = None
    source_node_id: Optional[str] = None
    confidence: Optional[float] = None
    method: Optional[ProvenanceMethod] = ProvenanceMethod.MANUAL

    def __post_init__(self) -> None:
        if self.confidence is None:
            return
        if isinstance(self.confidence, bool) or not isinstance(self.confidence, (int, float)):
            raise ValidationError(
                "confidence must be a number",
                field="provenance.confidence",
            )
        if not in_unit_interval(self.confidence):
            raise ValidationError(
                f"confidence {self.confidence} outside [0, 1]",
                field="provenance.confidence",
            )

    @property
    def is_ai(self) -> bool:
        return self.creator == Creator.AI

    @staticmethod
    def user() -> "Provenance":
        return Provenance()

    @staticmethod
    def ai(
        *,
        model: Optional[str],
        method: ProvenanceMethod,
        model_version: Optional[str] = None,
        source_node_id: Optional[str] = None,
        confidence: Optional[float] = None,
    ) -> "Provenance":
        return Provenance(
            creator=Creator.AI,
            model=model,
            model_version=model_version,
            source_node_id=source_node_id,
            confidence=confidence,
            method=method,
        )

    @staticmethod
    def from_dict(payload: Optional[Dict[str, Any]]) -> "Provenance":
        payload = payload or {}
        method = payload.get("method", ProvenanceMethod.MANUAL.value)
        return Provenance(
            creator=parse_enum(
                Creator, payload.get("creator", Creator.USER.value), field_name="provenance.creator"
            ),
            model=payload.get("model"),
            model_version=payload.get("model_version"),
            source_node_id=payload.get("source_node_id"),
            confidence=payload.get("confidence"),
            method=(
                None
                if method is None
                else parse_enum(ProvenanceMethod, method, field_name="provenance.method")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creator": self.creator.value,
            "model": self.model,
            "model_version": self.model_version,
            "source_node_id": self.source_node_id,
            "confidence": self.confidence,
            "method": self.method.value if self.method is not None else None,
        }


# ---------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class Node:
    """
    Typed, governed knowledge unit owned by exactly one tenant.
    """

    id: str
    owner_id: str

    title: str
    content: str
    type: NodeType
    status: GovernanceStatus
    provenance: Provenance

    created_at: datetime
    updated_at: datetime

    folder_id: Optional[str] = None
    tags: Tuple[str, ...] = ()
    word_count: int = 0

    # Derived index data; never part of equality or audit snapshots.
    embedding: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    @staticmethod
    def create(
        *,
        owner_id: str,
        title: str,
        content: str,
        type: NodeType,
        status: GovernanceStatus,
        provenance: Provenance,
        word_count: int,
        folder_id: Optional[str] = None,
        tags: Tuple[str, ...] = (),
    ) -> "Node":
        now = utc_now()
        return Node(
            id=str(uuid4()),
            owner_id=owner_id,
            title=title,
            content=content,
            type=type,
            status=status,
            provenance=provenance,
            created_at=now,
            updated_at=now,
            folder_id=folder_id,
            tags=tags,
            word_count=word_count,
        )

    def evolve(self, **changes: Any) -> "Node":
        """
        Copy with changes applied and updated_at bumped.
        """
        return replace(self, updated_at=utc_now(), **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "folder_id": self.folder_id,
            "title": self.title,
            "content": self.content,
            "type": self.type.value,
            "status": self.status.value,
            "provenance": self.provenance.to_dict(),
            "tags": list(self.tags),
            "word_count": self.word_count,
            "has_embedding": self.embedding is not None,
            "created_at": iso_timestamp(self.created_at),
            "updated_at": iso_timestamp(self.updated_at),
        }


# ---------------------------------------------------------------------
# Edge
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class Edge:
    """
    Directed, typed, weighted relationship between two distinct nodes.

    Holds only weak references (ids) to its endpoints.
    """

    id: str
    owner_id: str

    source_id: str
    target_id: str
    type: EdgeType
    status: GovernanceStatus
    weight: float
    provenance: Provenance

    created_at: datetime
    updated_at: datetime

    label: Optional[str] = None

    @staticmethod
    def create(
        *,
        owner_id: str,
        source_id: str,
        target_id: str,
        type: EdgeType,
        status: GovernanceStatus,
        weight: float,
        provenance: Provenance,
        label: Optional[str] = None,
    ) -> "Edge":
        now = utc_now()
        return Edge(
            id=str(uuid4()),
            owner_id=owner_id,
            source_id=source_id,
            target_id=target_id,
            type=type,
            status=status,
            weight=weight,
            provenance=provenance,
            created_at=now,
            updated_at=now,
            label=label,
        )

    @property
    def key(self) -> Tuple[str, str, EdgeType]:
        return (self.source_id, self.target_id, self.type)

    def other_end(self, node_id: str) -> str:
        return self.target_id if self.source_id == node_id else self.source_id

    def evolve(self, **changes: Any) -> "Edge":
        return replace(self, updated_at=utc_now(), **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "type": self.type.value,
            "status": self.status.value,
            "weight": self.weight,
            "label": self.label,
            "provenance": self.provenance.to_dict(),
            "created_at": iso_timestamp(self.created_at),
            "updated_at": iso_timestamp(self.updated_at),
        }


# ---------------------------------------------------------------------
# Provenance log
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ProvenanceLogEntry:
    """
    Immutable audit record.

    Target references are weak: deleting the target nulls them,
    it never deletes the entry.
    """

    id: str
    owner_id: str
    action: ProvenanceAction
    actor: Creator
    created_at: datetime

    model_id: Optional[str] = None
    model_version: Optional[str] = None
    target_node_id: Optional[str] = None
    target_edge_id: Optional[str] = None
    description: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(
        *,
        owner_id: str,
        action: ProvenanceAction,
        actor: Creator,
        model_id: Optional[str] = None,
        model_version: Optional[str] = None,
        target_node_id: Optional[str] = None,
        target_edge_id: Optional[str] = None,
        description: Optional[str] = None,
        before_state: Optional[Dict[str, Any]] = None,
        after_state: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ProvenanceLogEntry":
        return ProvenanceLogEntry(
            id=str(uuid4()),
            owner_id=owner_id,
            action=action,
            actor=actor,
            created_at=utc_now(),
            model_id=model_id,
            model_version=model_version,
            target_node_id=target_node_id,
            target_edge_id=target_edge_id,
            description=description,
            before_state=before_state,
            after_state=after_state,
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "action": self.action.value,
            "actor": self.actor.value,
            "model_id": self.model_id,
            "model_version": self.model_version,
            "target_node_id": self.target_node_id,
            "target_edge_id": self.target_edge_id,
            "description": self.description,
            "before_state": self.before_state,
            "after_state": self.after_state,
            "metadata": self.metadata,
            "created_at": iso_timestamp(self.created_at),
        }
