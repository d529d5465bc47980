from __future__ import annotations

import logging
from typing import Any, Dict

from memograph.config.settings import MemographConfig
from memograph.embeddings.encoder import EmbeddingEncoder
from memograph.embeddings.indexer import NodeEmbeddingIndexer
from memograph.errors import ExternalCapabilityError
from memograph.extraction.pipeline import ExtractionPipeline
from memograph.extraction.summarizer import Summarizer
from memograph.governance.controller import GovernanceController
from memograph.graph.graph_schema import Node
from memograph.graph.graph_store import GraphStore
from memograph.graph.ontology_store import OntologyStore
from memograph.rag.generator import CompletionBackend, LLMGenerator
from memograph.rag.graphrag import GraphRAGOrchestrator
from memograph.rag.retriever import GraphRetriever


class KnowledgeService:
    """
    Wiring layer for memograph.

    This is the ONLY place where:
    - config is interpreted
    - capabilities are attached to components
    - components share one store
    """

    def __init__(
        self,
        *,
        graph: GraphStore,
        encoder: EmbeddingEncoder,
        backend: CompletionBackend,
        config: MemographConfig,
        auto_embed: bool = True,
    ) -> None:

        self.config = config
        self.auto_embed = auto_embed

        # ---------------- Store ----------------

        self.store = OntologyStore(graph)

        # ---------------- Retrieval ----------------

        self.indexer = NodeEmbeddingIndexer(
            self.store,
            encoder,
            capabilities=config.capabilities,
        )

        self.retriever = GraphRetriever(
            self.store,
            config=config.retrieval,
            encoder=encoder,
            capabilities=config.capabilities,
        )

        # ---------------- AI ----------------

        self.extraction = ExtractionPipeline(
            self.store,
            backend,
            config=config.extraction,
            capabilities=config.capabilities,
        )

        self.summarizer = Summarizer(
            self.store,
            backend,
            capabilities=config.capabilities,
        )

        self.governance = GovernanceController(
            self.store,
            backend,
            capabilities=config.capabilities,
        )

        self.graphrag = GraphRAGOrchestrator(
            self.store,
            self.retriever,
            encoder,
            LLMGenerator(backend, capabilities=config.capabilities),
            config=config.graphrag,
            capabilities=config.capabilities,
        )

    # ------------------------------------------------------------------
    # Node writes that keep the vector index fresh
    # ------------------------------------------------------------------

    def create_node(self, owner_id: str, **fields: Any) -> Node:
        node = self.store.create_node(owner_id, **fields)
        return self._refresh_embedding(owner_id, node)

    def update_node(self, owner_id: str, node_id: str, changes: Dict[str, Any]) -> Node:
        node = self.store.update_node(owner_id, node_id, **changes)
        return self._refresh_embedding(owner_id, node)

    def _refresh_embedding(self, owner_id: str, node: Node) -> Node:
        if not self.auto_embed or node.embedding is not None:
            return node
        try:
            return self.indexer.embed_node(owner_id, node.id)
        except ExternalCapabilityError as exc:
            # The node is committed; it stays out of vector search until re-embedded.
            logging.getLogger("memograph.embeddings").warning(
                "auto-embed failed node=%s: %s",
                node.id,
                exc,
            )
            return node

    def stats(self, owner_id: str) -> Dict[str, int]:
        graph = self.store.graph
        return {
            "nodes": graph.node_count(owner_id),
            "edges": graph.edge_count(owner_id),
            "inbox": len(self.store.inbox(owner_id)),
        }
