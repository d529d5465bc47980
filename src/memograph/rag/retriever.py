from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from memograph.config.settings import CapabilityConfig, RetrievalConfig
from memograph.embeddings.encoder import EmbeddingEncoder
from memograph.embeddings.similarity import SimilarityComputer
from memograph.errors import ValidationError
from memograph.graph.graph_query import GraphQueryEngine, NeighborContext
from memograph.graph.graph_schema import GovernanceStatus, Node
from memograph.graph.ontology_store import OntologyStore
from memograph.utils.text import trigram_similarity, truncate
from memograph.utils.time import elapsed_ms
from memograph.utils.timeouts import call_with_timeout


# ---------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ScoredNode:
    """
    A node with its similarity (vector search) or rank (text search).
    """

    node: Node
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"node": self.node.to_dict(), "score": self.score}


@dataclass(frozen=True)
class HybridHit:
    node: Node
    score: float
    context: List[NeighborContext]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node": self.node.to_dict(),
            "score": self.score,
            "context": [c.to_dict() for c in self.context],
        }


# ---------------------------------------------------------------------
# Retriever
# ---------------------------------------------------------------------


class GraphRetriever:
    """
    The three ranking primitives over one owner's graph.

    Vector search, trigram text search and bounded neighbor traversal
    are independent reads. Deprecated nodes never rank, and every
    ordering breaks ties by node id so identical input gives identical
    output.
    """

    def __init__(
        self,
        store: OntologyStore,
        *,
        config: RetrievalConfig | None = None,
        encoder: EmbeddingEncoder | None = None,
        capabilities: CapabilityConfig | None = None,
    ) -> None:
        self.store = store
        self.config = config or RetrievalConfig()
        self.encoder = encoder
        self.capabilities = capabilities or CapabilityConfig()
        self.query_engine = GraphQueryEngine(
            store.graph,
            max_depth=self.config.max_traversal_depth,
        )

    # ------------------------------------------------------------------
    # Vector search
    # ------------------------------------------------------------------

    def search_by_vector(
        self,
        owner_id: str,
        query_vector: np.ndarray,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> List[ScoredNode]:
        threshold = self.config.vector_threshold if threshold is None else threshold
        limit = _require_limit(self.config.vector_limit if limit is None else limit)

        query = np.asarray(query_vector, dtype=np.float32)
        dimension = self.store.graph.dimension
        if query.ndim != 1 or query.shape[0] != dimension:
            raise ValidationError(
                f"query vector must have {dimension} dimensions, got {query.shape}",
                field="query_vector",
            )

        t0 = time.perf_counter()
        candidates = [
            n
            for n in self.store.graph.nodes(owner_id)
            if n.embedding is not None and n.status != GovernanceStatus.DEPRECATED
        ]
        scores = SimilarityComputer.cosine_many(query, [n.embedding for n in candidates])

        hits = [
            ScoredNode(node=n, score=float(s))
            for n, s in zip(candidates, scores)
            if s > threshold
        ]
        hits = _ranked(hits)[:limit]

        logging.getLogger("memograph.retrieval").info(
            "vector search candidates=%s hits=%s threshold=%.2f in %.2f ms",
            len(candidates),
            len(hits),
            threshold,
            elapsed_ms(t0),
        )
        return hits

    # ------------------------------------------------------------------
    # Text search
    # ------------------------------------------------------------------

    def search_by_text(
        self,
        owner_id: str,
        query_text: str,
        limit: Optional[int] = None,
    ) -> List[ScoredNode]:
        """
        Trigram match on title and content; rank is the better of the two.
        """
        limit = _require_limit(self.config.text_limit if limit is None else limit)
        if not isinstance(query_text, str):
            raise ValidationError("query must be a string", field="query")
        if not query_text.strip():
            return []

        t0 = time.perf_counter()
        threshold = self.config.text_similarity_threshold
        hits: List[ScoredNode] = []
        for node in self.store.graph.nodes(owner_id):
            if node.status == GovernanceStatus.DEPRECATED:
                continue
            title_sim = trigram_similarity(node.title, query_text)
            content_sim = trigram_similarity(node.content, query_text)
            if title_sim < threshold and content_sim < threshold:
                continue
            hits.append(ScoredNode(node=node, score=max(title_sim, content_sim)))

        hits = _ranked(hits)[:limit]
        logging.getLogger("memograph.retrieval").info(
            "text search hits=%s in %.2f ms",
            len(hits),
            elapsed_ms(t0),
        )
        return hits

    # ------------------------------------------------------------------
    # Graph neighborhood
    # ------------------------------------------------------------------

    def neighbor_context(
        self,
        node_id: str,
        owner_id: str,
        depth: int = 1,
    ) -> List[NeighborContext]:
        return self.query_engine.neighbor_context(node_id, owner_id, depth)

    # ------------------------------------------------------------------
    # Composite lookups
    # ------------------------------------------------------------------

    def find_similar(
        self,
        owner_id: str,
        text: str,
        top_k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[ScoredNode]:
        """
        Existing notes closest in meaning to a piece of text.
        """
        if self.encoder is None:
            raise ValidationError("no embedding encoder configured", field="encoder")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text must not be empty", field="text")

        text = truncate(text, self.capabilities.max_embed_chars)
        vector = call_with_timeout(
            lambda: self.encoder.encode_one(text),
            capability="embed",
            timeout_s=self.capabilities.embed_timeout_s,
        )
        return self.search_by_vector(
            owner_id,
            vector,
            threshold=self.config.similar_threshold if threshold is None else threshold,
            limit=self.config.similar_top_k if top_k is None else top_k,
        )

    def hybrid_search(
        self,
        owner_id: str,
        query_text: str,
        top_k: Optional[int] = None,
    ) -> List[HybridHit]:
        """
        Top text matches, each enriched with its depth-1 neighborhood.
        """
        top_k = _require_limit(self.config.hybrid_top_k if top_k is None else top_k)
        return [
            HybridHit(
                node=hit.node,
                score=hit.score,
                context=self.neighbor_context(hit.node.id, owner_id, 1),
            )
            for hit in self.search_by_text(owner_id, query_text)[:top_k]
        ]


def _require_limit(limit: Any) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("limit must be a positive integer", field="limit")
    return limit


def _ranked(hits: List[ScoredNode]) -> List[ScoredNode]:
    return sorted(hits, key=lambda h: (-h.score, h.node.id))
