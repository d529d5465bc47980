from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import networkx as nx
import numpy as np

from memograph.errors import ConflictError, NotFoundError, ValidationError
from memograph.graph.graph_schema import (
    Edge,
    EdgeType,
    Node,
    ProvenanceLogEntry,
)


EdgeKey = Tuple[str, str, EdgeType]


class _Partition:
    """
    All rows of a single owner.

    Edges are keyed by their type inside the MultiDiGraph, so the
    (source, target, type) triple can exist at most once.
    """

    def __init__(self) -> None:
        self.graph = nx.MultiDiGraph()
        self.edge_index: Dict[str, EdgeKey] = {}
        self.logs: List[ProvenanceLogEntry] = []


class GraphStore:
    """
    Authoritative in-memory persistence, partitioned by owner id.

    Every read and write takes the owner id and only ever sees that
    owner's partition. Writes go through `transaction()`, which keeps an
    undo journal and rolls all of them back if the block raises.
    """

    def __init__(self, *, dimension: int = 1536) -> None:
        self.dimension = dimension
        self._partitions: Dict[str, _Partition] = {}
        self._lock = threading.RLock()
        self._local = threading.local()

    # -------------------- Transactions --------------------

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Atomic unit of work. Nested blocks join the outermost one.
        """
        with self._lock:
            if getattr(self._local, "journal", None) is not None:
                yield
                return

            self._local.journal = []
            try:
                yield
            except BaseException:
                for undo in reversed(self._local.journal):
                    undo()
                raise
            finally:
                self._local.journal = None

    def _record(self, undo: Callable[[], None]) -> None:
        self._local.journal.append(undo)

    def _partition(self, owner_id: str, *, create: bool = False) -> Optional[_Partition]:
        part = self._partitions.get(owner_id)
        if part is None and create:
            part = _Partition()
            self._partitions[owner_id] = part
        return part

    # -------------------- Nodes --------------------

    def insert_node(self, node: Node) -> None:
        with self.transaction():
            part = self._partition(node.owner_id, create=True)
            if part.graph.has_node(node.id):
                raise ConflictError(f"node '{node.id}' already exists")
            part.graph.add_node(node.id, data=node)
            self._record(lambda: part.graph.remove_node(node.id))

    def get_node(self, owner_id: str, node_id: str) -> Optional[Node]:
        with self._lock:
            part = self._partition(owner_id)
            if part is None or not part.graph.has_node(node_id):
                return None
            return part.graph.nodes[node_id]["data"]

    def replace_node(self, node: Node) -> None:
        with self.transaction():
            part = self._partition(node.owner_id)
            if part is None or not part.graph.has_node(node.id):
                raise NotFoundError("node", node.id)
            previous = part.graph.nodes[node.id]["data"]
            part.graph.nodes[node.id]["data"] = node

            def undo() -> None:
                part.graph.nodes[node.id]["data"] = previous

            self._record(undo)

    def remove_node(self, owner_id: str, node_id: str) -> Tuple[Node, List[Edge]]:
        """
        Delete a node and every edge touching it.
        """
        with self.transaction():
            part = self._partition(owner_id)
            if part is None or not part.graph.has_node(node_id):
                raise NotFoundError("node", node_id)
            node = part.graph.nodes[node_id]["data"]

            removed = [self.remove_edge(owner_id, e.id) for e in self.incident_edges(owner_id, node_id)]

            part.graph.remove_node(node_id)
            self._record(lambda: part.graph.add_node(node_id, data=node))
            return node, removed

    def set_embedding(self, owner_id: str, node_id: str, vector: Optional[np.ndarray]) -> Node:
        if vector is not None:
            vector = np.asarray(vector, dtype=np.float32)
            if vector.ndim != 1 or vector.shape[0] != self.dimension:
                raise ValidationError(
                    f"embedding must have {self.dimension} dimensions, got {vector.shape}",
                    field="embedding",
                )
        with self.transaction():
            node = self.get_node(owner_id, node_id)
            if node is None:
                raise NotFoundError("node", node_id)
            updated = replace(node, embedding=vector)
            self.replace_node(updated)
            return updated

    def nodes(self, owner_id: str) -> List[Node]:
        with self._lock:
            part = self._partition(owner_id)
            if part is None:
                return []
            return [data["data"] for _, data in part.graph.nodes(data=True)]

    # -------------------- Edges --------------------

    def insert_edge(self, edge: Edge) -> None:
        with self.transaction():
            part = self._partition(edge.owner_id)
            for endpoint in (edge.source_id, edge.target_id):
                if part is None or not part.graph.has_node(endpoint):
                    raise NotFoundError("node", endpoint)
            if part.graph.has_edge(edge.source_id, edge.target_id, key=edge.type):
                raise ConflictError(
                    f"edge {edge.source_id} -[{edge.type.value}]-> {edge.target_id} already exists"
                )
            self._attach_edge(part, edge)
            self._record(lambda: self._detach_edge(part, edge))

    def get_edge(self, owner_id: str, edge_id: str) -> Optional[Edge]:
        with self._lock:
            part = self._partition(owner_id)
            if part is None or edge_id not in part.edge_index:
                return None
            s, t, k = part.edge_index[edge_id]
            return part.graph.edges[s, t, k]["data"]

    def find_edge(
        self,
        owner_id: str,
        source_id: str,
        target_id: str,
        edge_type: EdgeType,
    ) -> Optional[Edge]:
        with self._lock:
            part = self._partition(owner_id)
            if part is None or not part.graph.has_edge(source_id, target_id, key=edge_type):
                return None
            return part.graph.edges[source_id, target_id, edge_type]["data"]

    def replace_edge(self, edge: Edge) -> None:
        """
        Overwrite an edge; a changed type moves it to its new key.
        """
        with self.transaction():
            part = self._partition(edge.owner_id)
            previous = self.get_edge(edge.owner_id, edge.id)
            if previous is None:
                raise NotFoundError("edge", edge.id)
            if previous.key != edge.key and part.graph.has_edge(
                edge.source_id, edge.target_id, key=edge.type
            ):
                raise ConflictError(
                    f"edge {edge.source_id} -[{edge.type.value}]-> {edge.target_id} already exists"
                )
            self._detach_edge(part, previous)
            self._attach_edge(part, edge)

            def undo() -> None:
                self._detach_edge(part, edge)
                self._attach_edge(part, previous)

            self._record(undo)

    def remove_edge(self, owner_id: str, edge_id: str) -> Edge:
        with self.transaction():
            part = self._partition(owner_id)
            edge = self.get_edge(owner_id, edge_id)
            if edge is None:
                raise NotFoundError("edge", edge_id)
            self._detach_edge(part, edge)
            self._record(lambda: self._attach_edge(part, edge))
            return edge

    def incident_edges(self, owner_id: str, node_id: str) -> List[Edge]:
        """
        Edges where the node is either source or target.
        """
        with self._lock:
            part = self._partition(owner_id)
            if part is None or not part.graph.has_node(node_id):
                return []
            out_edges = part.graph.out_edges(node_id, keys=True, data="data")
            in_edges = part.graph.in_edges(node_id, keys=True, data="data")
            return [e for _, _, _, e in out_edges] + [e for _, _, _, e in in_edges]

    def edges(self, owner_id: str) -> List[Edge]:
        with self._lock:
            part = self._partition(owner_id)
            if part is None:
                return []
            return [e for _, _, _, e in part.graph.edges(keys=True, data="data")]

    @staticmethod
    def _attach_edge(part: _Partition, edge: Edge) -> None:
        part.graph.add_edge(edge.source_id, edge.target_id, key=edge.type, data=edge)
        part.edge_index[edge.id] = edge.key

    @staticmethod
    def _detach_edge(part: _Partition, edge: Edge) -> None:
        s, t, k = part.edge_index.pop(edge.id)
        part.graph.remove_edge(s, t, key=k)

    # -------------------- Provenance log --------------------

    def append_log(self, entry: ProvenanceLogEntry) -> None:
        with self.transaction():
            part = self._partition(entry.owner_id, create=True)
            part.logs.append(entry)
            self._record(lambda: part.logs.remove(entry))

    def null_log_targets(
        self,
        owner_id: str,
        *,
        node_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
    ) -> int:
        """
        ON DELETE SET NULL for log target references.
        """
        node_ids = set(node_ids)
        edge_ids = set(edge_ids)
        with self.transaction():
            part = self._partition(owner_id)
            if part is None:
                return 0
            touched: List[Tuple[int, ProvenanceLogEntry]] = []
            for i, entry in enumerate(part.logs):
                hit_node = entry.target_node_id in node_ids
                hit_edge = entry.target_edge_id in edge_ids
                if not (hit_node or hit_edge):
                    continue
                touched.append((i, entry))
                part.logs[i] = replace(
                    entry,
                    target_node_id=None if hit_node else entry.target_node_id,
                    target_edge_id=None if hit_edge else entry.target_edge_id,
                )

            def undo() -> None:
                for i, entry in touched:
                    part.logs[i] = entry

            self._record(undo)
            return len(touched)

    def logs(self, owner_id: str) -> List[ProvenanceLogEntry]:
        with self._lock:
            part = self._partition(owner_id)
            return list(part.logs) if part is not None else []

    # -------------------- Analytics --------------------

    def node_count(self, owner_id: str) -> int:
        with self._lock:
            part = self._partition(owner_id)
            return part.graph.number_of_nodes() if part is not None else 0

    def edge_count(self, owner_id: str) -> int:
        with self._lock:
            part = self._partition(owner_id)
            return part.graph.number_of_edges() if part is not None else 0
