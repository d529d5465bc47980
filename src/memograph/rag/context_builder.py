from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from memograph.graph.graph_query import NeighborContext
from memograph.graph.graph_schema import Node


BLOCK_SEPARATOR = "\n\n---\n\n"


@dataclass(frozen=True)
class SourceContext:
    """
    One retrieved source node with the neighborhood shown alongside it.
    """

    node: Node
    similarity: float
    context: List[NeighborContext]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node": self.node.to_dict(),
            "similarity": self.similarity,
            "context": [c.to_dict() for c in self.context],
        }


class ContextBuilder:
    """
    Renders sources into the numbered blocks the answer cites.

    Block N always describes sources[N-1], so `[Source N]` in an answer
    maps back to the returned source list.
    """

    def build(self, sources: List[SourceContext]) -> str:
        return BLOCK_SEPARATOR.join(
            self.render_block(i, source) for i, source in enumerate(sources, start=1)
        )

    def render_block(self, index: int, source: SourceContext) -> str:
        node = source.node
        header = (
            f'[Source {index}: "{node.title}" '
            f"({node.type.value}, similarity: {round(source.similarity * 100)}%)]"
        )
        return f"{header}\n{node.content}\n{self.render_neighbors(source.context)}"

    @staticmethod
    def render_neighbors(context: List[NeighborContext]) -> str:
        if not context:
            return "(No connections)"
        lines = [
            f"  - [{c.edge_type.value}] {c.node.title} ({c.direction})"
            for c in context
        ]
        return "Connected notes:\n" + "\n".join(lines)
