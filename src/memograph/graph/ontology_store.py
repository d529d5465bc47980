from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from memograph.errors import (
    InvalidEdgeError,
    NotFoundError,
    ValidationError,
    WeightOutOfRangeError,
)
from memograph.graph.graph_schema import (
    Creator,
    Edge,
    EdgeType,
    GovernanceStatus,
    Node,
    NodeType,
    Provenance,
    ProvenanceAction,
    ProvenanceLogEntry,
    parse_enum,
)
from memograph.graph.graph_store import GraphStore
from memograph.graph.lifecycle import Transition, plan_transition
from memograph.utils.helpers import in_unit_interval, unique_tags
from memograph.utils.text import word_count


_NODE_FIELDS = {"title", "content", "type", "folder_id", "tags"}


@dataclass(frozen=True)
class DeletionReport:
    """
    What a node deletion removed, and the audit entry describing it.
    """

    node: Node
    removed_edges: List[Edge]
    log_entry: ProvenanceLogEntry


@dataclass(frozen=True)
class InboxItem:
    node: Node
    edge_count: int


@dataclass(frozen=True)
class ArgumentLink:
    """
    One claim paired with a node that supports or refutes it.
    """

    claim: Node
    relationship: EdgeType
    evidence: Node
    weight: float
    edge_id: str


class OntologyStore:
    """
    Validated, audited access to the knowledge graph.

    Each public mutation checks every invariant first, then writes the
    entity and its single provenance log entry inside one transaction.
    """

    def __init__(self, graph: GraphStore) -> None:
        self.graph = graph

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def create_node(
        self,
        owner_id: str,
        *,
        title: str,
        content: str = "",
        type: NodeType | str = NodeType.NOTE,
        status: GovernanceStatus | str | None = None,
        folder_id: Optional[str] = None,
        tags: Iterable[str] = (),
        provenance: Optional[Provenance] = None,
    ) -> Node:
        _require_owner(owner_id)
        provenance = provenance or Provenance.user()

        node = Node.create(
            owner_id=owner_id,
            title=_require_title(title),
            content=_require_text(content, "content"),
            type=parse_enum(NodeType, type, field_name="type"),
            status=_initial_status(provenance, status),
            provenance=provenance,
            word_count=word_count(content),
            folder_id=folder_id,
            tags=unique_tags(tags),
        )

        with self.graph.transaction():
            self.graph.insert_node(node)
            self.append_log(
                owner_id,
                ProvenanceAction.CREATE,
                actor=provenance.creator,
                model_id=provenance.model,
                model_version=provenance.model_version,
                target_node_id=node.id,
                after_state=node.to_dict(),
            )

        logging.getLogger("memograph.store").info(
            "node created id=%s type=%s status=%s creator=%s",
            node.id,
            node.type.value,
            node.status.value,
            provenance.creator.value,
        )
        return node

    def get_node(self, owner_id: str, node_id: str) -> Node:
        node = self.graph.get_node(owner_id, node_id)
        if node is None:
            raise NotFoundError("node", node_id)
        return node

    def list_nodes(
        self,
        owner_id: str,
        *,
        folder_id: Optional[str] = None,
        status: GovernanceStatus | str | None = None,
    ) -> List[Node]:
        nodes = self.graph.nodes(owner_id)
        if folder_id is not None:
            nodes = [n for n in nodes if n.folder_id == folder_id]
        if status is not None:
            wanted = parse_enum(GovernanceStatus, status, field_name="status")
            nodes = [n for n in nodes if n.status == wanted]
        return _newest_first(nodes)

    def update_node(
        self,
        owner_id: str,
        node_id: str,
        *,
        actor: Creator = Creator.USER,
        model_id: Optional[str] = None,
        **changes: Any,
    ) -> Node:
        """
        Edit content fields. Status changes go through transitions.
        """
        if "status" in changes:
            raise ValidationError(
                "status cannot be edited directly; use approve or deprecate",
                field="status",
            )
        unknown = sorted(set(changes) - _NODE_FIELDS)
        if unknown:
            raise ValidationError(f"unknown node field '{unknown[0]}'", field=unknown[0])

        fields: Dict[str, Any] = {}
        if "title" in changes:
            fields["title"] = _require_title(changes["title"])
        if "content" in changes:
            fields["content"] = _require_text(changes["content"], "content")
            fields["word_count"] = word_count(fields["content"])
        if "type" in changes:
            fields["type"] = parse_enum(NodeType, changes["type"], field_name="type")
        if "folder_id" in changes:
            fields["folder_id"] = changes["folder_id"]
        if "tags" in changes:
            fields["tags"] = unique_tags(changes["tags"] or ())

        with self.graph.transaction():
            before = self.get_node(owner_id, node_id)
            fields = {k: v for k, v in fields.items() if getattr(before, k) != v}
            if not fields:
                return before

            if "title" in fields or "content" in fields:
                # Stale vector; the indexer recomputes it.
                fields["embedding"] = None

            after = before.evolve(**fields)
            self.graph.replace_node(after)
            self.append_log(
                owner_id,
                ProvenanceAction.UPDATE,
                actor=actor,
                model_id=model_id,
                target_node_id=node_id,
                before_state=before.to_dict(),
                after_state=after.to_dict(),
                metadata={"fields": sorted(k for k in fields if k != "embedding")},
            )
        return after

    def transition_node_status(
        self,
        owner_id: str,
        node_id: str,
        new_status: GovernanceStatus | str,
        *,
        actor: Creator = Creator.USER,
        model_id: Optional[str] = None,
    ) -> Transition[Node]:
        target = parse_enum(GovernanceStatus, new_status, field_name="status")
        with self.graph.transaction():
            before = self.get_node(owner_id, node_id)
            action = plan_transition(before.status, target)
            if action is None:
                return Transition(entity=before, action=None, log_entry=None)

            after = before.evolve(status=target)
            self.graph.replace_node(after)
            entry = self.append_log(
                owner_id,
                action,
                actor=actor,
                model_id=model_id,
                target_node_id=node_id,
                description=f"Node {action.value}: {before.status.value} -> {target.value}",
                before_state=before.to_dict(),
                after_state=after.to_dict(),
            )
        return Transition(entity=after, action=action, log_entry=entry)

    def delete_node(
        self,
        owner_id: str,
        node_id: str,
        *,
        actor: Creator = Creator.USER,
    ) -> DeletionReport:
        """
        Remove a node, cascading to its edges.

        Log entries that pointed at the node or the cascaded edges
        survive with their target reference nulled.
        """
        with self.graph.transaction():
            node, removed = self.graph.remove_node(owner_id, node_id)
            removed_ids = [e.id for e in removed]
            self.graph.null_log_targets(owner_id, node_ids=[node_id], edge_ids=removed_ids)
            entry = self.append_log(
                owner_id,
                ProvenanceAction.DELETE,
                actor=actor,
                description=f"Node deleted with {len(removed)} edges",
                before_state=node.to_dict(),
                metadata={"node_id": node_id, "cascaded_edge_ids": removed_ids},
            )

        logging.getLogger("memograph.store").info(
            "node deleted id=%s cascaded_edges=%s",
            node_id,
            len(removed),
        )
        return DeletionReport(node=node, removed_edges=removed, log_entry=entry)

    def set_node_embedding(
        self,
        owner_id: str,
        node_id: str,
        vector: Optional[np.ndarray],
    ) -> Node:
        """
        Store a derived embedding. Not audited, does not bump updated_at.
        """
        return self.graph.set_embedding(owner_id, node_id, vector)

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def create_edge(
        self,
        owner_id: str,
        source_id: str,
        target_id: str,
        type: EdgeType | str = EdgeType.RELATED_TO,
        weight: float = 1.0,
        label: Optional[str] = None,
        provenance: Optional[Provenance] = None,
    ) -> Edge:
        _require_owner(owner_id)
        provenance = provenance or Provenance.user()
        edge_type = parse_enum(EdgeType, type, field_name="type")

        if source_id == target_id:
            raise InvalidEdgeError(
                "edge source and target must differ (self-loops are not allowed)",
                field="target_id",
            )
        _require_weight(weight)

        edge = Edge.create(
            owner_id=owner_id,
            source_id=source_id,
            target_id=target_id,
            type=edge_type,
            status=(
                GovernanceStatus.EXPERIMENTAL
                if provenance.is_ai
                else GovernanceStatus.ACTIVE
            ),
            weight=float(weight),
            provenance=provenance,
            label=label,
        )

        with self.graph.transaction():
            self.get_node(owner_id, source_id)
            self.get_node(owner_id, target_id)
            self.graph.insert_edge(edge)
            self.append_log(
                owner_id,
                ProvenanceAction.CREATE,
                actor=provenance.creator,
                model_id=provenance.model,
                model_version=provenance.model_version,
                target_edge_id=edge.id,
                after_state=edge.to_dict(),
            )

        logging.getLogger("memograph.store").info(
            "edge created id=%s %s -[%s]-> %s status=%s",
            edge.id,
            source_id,
            edge_type.value,
            target_id,
            edge.status.value,
        )
        return edge

    def get_edge(self, owner_id: str, edge_id: str) -> Edge:
        edge = self.graph.get_edge(owner_id, edge_id)
        if edge is None:
            raise NotFoundError("edge", edge_id)
        return edge

    def list_edges(
        self,
        owner_id: str,
        *,
        status: GovernanceStatus | str | None = None,
    ) -> List[Edge]:
        """
        Every edge the owner has, oldest first, optionally of one status.
        """
        edges = self.graph.edges(owner_id)
        if status is not None:
            wanted = parse_enum(GovernanceStatus, status, field_name="status")
            edges = [e for e in edges if e.status == wanted]
        return sorted(edges, key=lambda e: (e.created_at, e.id))

    def edges_for_node(self, owner_id: str, node_id: str) -> List[Edge]:
        """
        Non-deprecated edges touching a node.
        """
        self.get_node(owner_id, node_id)
        edges = [
            e
            for e in self.graph.incident_edges(owner_id, node_id)
            if e.status != GovernanceStatus.DEPRECATED
        ]
        return sorted(edges, key=lambda e: (e.created_at, e.id))

    def update_edge_type(
        self,
        owner_id: str,
        edge_id: str,
        new_type: EdgeType | str,
        *,
        actor: Creator = Creator.USER,
    ) -> Edge:
        edge_type = parse_enum(EdgeType, new_type, field_name="type")
        with self.graph.transaction():
            before = self.get_edge(owner_id, edge_id)
            if before.type == edge_type:
                return before

            after = before.evolve(type=edge_type)
            self.graph.replace_edge(after)
            self.append_log(
                owner_id,
                ProvenanceAction.UPDATE,
                actor=actor,
                target_edge_id=edge_id,
                before_state=before.to_dict(),
                after_state=after.to_dict(),
                metadata={"fields": ["type"]},
            )
        return after

    def transition_edge_status(
        self,
        owner_id: str,
        edge_id: str,
        new_status: GovernanceStatus | str,
        *,
        actor: Creator = Creator.USER,
        model_id: Optional[str] = None,
    ) -> Transition[Edge]:
        target = parse_enum(GovernanceStatus, new_status, field_name="status")
        with self.graph.transaction():
            before = self.get_edge(owner_id, edge_id)
            action = plan_transition(before.status, target)
            if action is None:
                return Transition(entity=before, action=None, log_entry=None)

            after = before.evolve(status=target)
            self.graph.replace_edge(after)
            entry = self.append_log(
                owner_id,
                action,
                actor=actor,
                model_id=model_id,
                target_edge_id=edge_id,
                description=f"Edge {action.value}: {before.status.value} -> {target.value}",
                before_state=before.to_dict(),
                after_state=after.to_dict(),
            )
        return Transition(entity=after, action=action, log_entry=entry)

    def delete_edge(
        self,
        owner_id: str,
        edge_id: str,
        *,
        actor: Creator = Creator.USER,
    ) -> Edge:
        with self.graph.transaction():
            edge = self.graph.remove_edge(owner_id, edge_id)
            self.graph.null_log_targets(owner_id, edge_ids=[edge_id])
            self.append_log(
                owner_id,
                ProvenanceAction.DELETE,
                actor=actor,
                description="Edge deleted",
                before_state=edge.to_dict(),
                metadata={"edge_id": edge_id},
            )
        return edge

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def inbox(self, owner_id: str) -> List[InboxItem]:
        """
        Experimental nodes awaiting review, newest first.
        """
        return [
            InboxItem(node=n, edge_count=len(self.graph.incident_edges(owner_id, n.id)))
            for n in self.list_nodes(owner_id, status=GovernanceStatus.EXPERIMENTAL)
        ]

    def argumentation(self, owner_id: str) -> List[ArgumentLink]:
        """
        Claims paired with every node linked to them by supports/refutes.
        """
        links: List[ArgumentLink] = []
        for claim in self.list_nodes(owner_id):
            if claim.type != NodeType.CLAIM:
                continue
            edges = [
                e
                for e in self.graph.incident_edges(owner_id, claim.id)
                if e.type in (EdgeType.SUPPORTS, EdgeType.REFUTES)
            ]
            edges.sort(key=lambda e: (e.type.value, -e.weight, e.id))
            for edge in edges:
                evidence = self.graph.get_node(owner_id, edge.other_end(claim.id))
                if evidence is None:
                    continue
                links.append(
                    ArgumentLink(
                        claim=claim,
                        relationship=edge.type,
                        evidence=evidence,
                        weight=edge.weight,
                        edge_id=edge.id,
                    )
                )
        return links

    # ------------------------------------------------------------------
    # Provenance log
    # ------------------------------------------------------------------

    def append_log(
        self,
        owner_id: str,
        action: ProvenanceAction,
        *,
        actor: Creator,
        model_id: Optional[str] = None,
        model_version: Optional[str] = None,
        target_node_id: Optional[str] = None,
        target_edge_id: Optional[str] = None,
        description: Optional[str] = None,
        before_state: Optional[Dict[str, Any]] = None,
        after_state: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ProvenanceLogEntry:
        _require_owner(owner_id)
        entry = ProvenanceLogEntry.create(
            owner_id=owner_id,
            action=action,
            actor=actor,
            model_id=model_id,
            model_version=model_version,
            target_node_id=target_node_id,
            target_edge_id=target_edge_id,
            description=description,
            before_state=before_state,
            after_state=after_state,
            metadata=metadata,
        )
        self.graph.append_log(entry)
        return entry

    def list_logs(
        self,
        owner_id: str,
        *,
        node_id: Optional[str] = None,
        edge_id: Optional[str] = None,
        action: ProvenanceAction | str | None = None,
        limit: Optional[int] = None,
    ) -> List[ProvenanceLogEntry]:
        if limit is not None and limit < 0:
            raise ValidationError("limit must not be negative", field="limit")
        entries = self.graph.logs(owner_id)
        if node_id is not None:
            entries = [e for e in entries if e.target_node_id == node_id]
        if edge_id is not None:
            entries = [e for e in entries if e.target_edge_id == edge_id]
        if action is not None:
            wanted = parse_enum(ProvenanceAction, action, field_name="action")
            entries = [e for e in entries if e.action == wanted]
        # Appended in commit order; newest first.
        entries.reverse()
        return entries[:limit] if limit is not None else entries


# ---------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------


def _require_owner(owner_id: str) -> None:
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise ValidationError("owner_id must not be empty", field="owner_id")


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    return value


def _require_title(title: Any) -> str:
    title = _require_text(title, "title")
    if not title.strip():
        raise ValidationError("title must not be empty", field="title")
    return title


def _require_weight(weight: Any) -> None:
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise ValidationError("weight must be a number", field="weight")
    if not in_unit_interval(weight):
        raise WeightOutOfRangeError(
            f"weight {weight} outside [0.0, 1.0]",
            field="weight",
        )


def _initial_status(
    provenance: Provenance,
    requested: GovernanceStatus | str | None,
) -> GovernanceStatus:
    """
    AI-authored content is always Experimental, whatever was requested.
    """
    if provenance.is_ai:
        return GovernanceStatus.EXPERIMENTAL
    if requested is None:
        return GovernanceStatus.ACTIVE
    status = parse_enum(GovernanceStatus, requested, field_name="status")
    if status == GovernanceStatus.DEPRECATED:
        raise ValidationError("nodes cannot be created as Deprecated", field="status")
    return status


def _newest_first(nodes: List[Node]) -> List[Node]:
    return sorted(nodes, key=lambda n: (n.created_at, n.id), reverse=True)
