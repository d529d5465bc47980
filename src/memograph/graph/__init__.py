"""
Graph subsystem for memograph.

Defines the governed knowledge graph:
- typed nodes and edges with provenance
- owner-partitioned persistence with atomic transactions
- the audited mutation surface and bounded traversal
"""

from memograph.graph.graph_schema import (
    Node,
    Edge,
    NodeType,
    EdgeType,
    GovernanceStatus,
    Creator,
    Provenance,
    ProvenanceAction,
    ProvenanceMethod,
    ProvenanceLogEntry,
)
from memograph.graph.graph_store import GraphStore
from memograph.graph.graph_query import GraphQueryEngine, NeighborContext
from memograph.graph.lifecycle import Transition, plan_transition
from memograph.graph.ontology_store import (
    OntologyStore,
    DeletionReport,
    InboxItem,
    ArgumentLink,
)

__all__ = [
    "Node",
    "Edge",
    "NodeType",
    "EdgeType",
    "GovernanceStatus",
    "Creator",
    "Provenance",
    "ProvenanceAction",
    "ProvenanceMethod",
    "ProvenanceLogEntry",
    "GraphStore",
    "GraphQueryEngine",
    "NeighborContext",
    "Transition",
    "plan_transition",
    "OntologyStore",
    "DeletionReport",
    "InboxItem",
    "ArgumentLink",
]
