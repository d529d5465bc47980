from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Set, Tuple

from memograph.errors import NotFoundError, ValidationError
from memograph.graph.graph_schema import EdgeType, GovernanceStatus, Node
from memograph.graph.graph_store import GraphStore


@dataclass(frozen=True)
class NeighborContext:
    """
    One node reached by a bounded traversal, with the edge that reached it.
    """

    node: Node
    edge_id: str
    edge_type: EdgeType
    weight: float
    direction: str
    depth: int

    def to_dict(self) -> dict:
        return {
            "node": self.node.to_dict(),
            "edge_id": self.edge_id,
            "edge_type": self.edge_type.value,
            "weight": self.weight,
            "direction": self.direction,
            "depth": self.depth,
        }


class GraphQueryEngine:
    """
    Bounded traversal over one owner's partition.

    Edges are walked in both directions; only non-deprecated edges and
    non-deprecated nodes are ever crossed.
    """

    def __init__(self, store: GraphStore, *, max_depth: int = 3) -> None:
        self.store = store
        self.max_depth = max_depth

    def neighbor_context(
        self,
        node_id: str,
        owner_id: str,
        depth: int = 1,
    ) -> List[NeighborContext]:
        if isinstance(depth, bool) or not isinstance(depth, int):
            raise ValidationError("depth must be an integer", field="depth")
        if not 1 <= depth <= self.max_depth:
            raise ValidationError(
                f"depth must be between 1 and {self.max_depth}",
                field="depth",
            )
        if self.store.get_node(owner_id, node_id) is None:
            raise NotFoundError("node", node_id)

        # Marked on discovery, so equal-length parallel paths and cycles
        # back to the origin never produce a second entry.
        visited: Set[str] = {node_id}
        frontier: Deque[Tuple[str, int]] = deque([(node_id, 0)])
        results: List[NeighborContext] = []

        while frontier:
            current, level = frontier.popleft()
            if level >= depth:
                continue

            edges = sorted(
                self.store.incident_edges(owner_id, current),
                key=lambda e: (e.created_at, e.id),
            )
            for edge in edges:
                if edge.status == GovernanceStatus.DEPRECATED:
                    continue
                neighbor_id = edge.other_end(current)
                if neighbor_id in visited:
                    continue
                neighbor = self.store.get_node(owner_id, neighbor_id)
                if neighbor is None or neighbor.status == GovernanceStatus.DEPRECATED:
                    continue

                visited.add(neighbor_id)
                results.append(
                    NeighborContext(
                        node=neighbor,
                        edge_id=edge.id,
                        edge_type=edge.type,
                        weight=edge.weight,
                        direction="outgoing" if edge.source_id == current else "incoming",
                        depth=level + 1,
                    )
                )
                frontier.append((neighbor_id, level + 1))

        return results
