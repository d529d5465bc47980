from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from memograph.config.settings import (
    CapabilityConfig,
    GraphRAGConfig,
    ModelConfig,
    resolve_model,
)
from memograph.embeddings.encoder import EmbeddingEncoder
from memograph.errors import ValidationError
from memograph.graph.graph_schema import Creator, ProvenanceAction
from memograph.graph.ontology_store import OntologyStore
from memograph.rag.context_builder import ContextBuilder, SourceContext
from memograph.rag.generator import Generator
from memograph.rag.retriever import GraphRetriever
from memograph.utils.text import truncate
from memograph.utils.time import elapsed_ms
from memograph.utils.timeouts import call_with_timeout


@dataclass(frozen=True)
class GraphRAGResult:
    """
    A cited answer and the sources its [Source N] markers refer to.
    """

    answer: str
    sources: List[SourceContext]
    model: ModelConfig
    context_text: str
    log_entry_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": [s.to_dict() for s in self.sources],
            "model": self.model.model_id,
            "log_entry_id": self.log_entry_id,
        }


class GraphRAGOrchestrator:
    """
    Question answering over one owner's graph.

    Embed the question, rank nodes by vector similarity, attach each
    hit's immediate neighborhood, ask the completion capability for a
    grounded answer, then audit the query. No store lock is held while
    the capabilities run.
    """

    def __init__(
        self,
        store: OntologyStore,
        retriever: GraphRetriever,
        encoder: EmbeddingEncoder,
        generator: Generator,
        *,
        config: GraphRAGConfig | None = None,
        capabilities: CapabilityConfig | None = None,
        context_builder: ContextBuilder | None = None,
    ) -> None:
        self.store = store
        self.retriever = retriever
        self.encoder = encoder
        self.generator = generator
        self.config = config or GraphRAGConfig()
        self.capabilities = capabilities or CapabilityConfig()
        self.context_builder = context_builder or ContextBuilder()

    def run(
        self,
        owner_id: str,
        question: str,
        model: Optional[str] = None,
    ) -> GraphRAGResult:
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("question must not be empty", field="question")
        model_config = resolve_model(model, default=self.capabilities.answer_model)
        log = logging.getLogger("memograph.graphrag")

        # ===============================================================
        # 1. Embed the question
        # ===============================================================

        t_embed = time.perf_counter()
        embed_text = truncate(question, self.capabilities.max_embed_chars)
        query_vector = call_with_timeout(
            lambda: self.encoder.encode_one(embed_text),
            capability="embed",
            timeout_s=self.capabilities.embed_timeout_s,
        )
        embed_ms = elapsed_ms(t_embed)

        # ===============================================================
        # 2. Vector search
        # ===============================================================

        t_retrieval = time.perf_counter()
        hits = self.retriever.search_by_vector(
            owner_id,
            query_vector,
            threshold=self.config.vector_threshold,
            limit=self.config.top_k,
        )

        # ===============================================================
        # 3. Neighborhood per hit
        # ===============================================================

        sources = [
            SourceContext(
                node=hit.node,
                similarity=hit.score,
                context=self.retriever.neighbor_context(
                    hit.node.id,
                    owner_id,
                    self.config.neighbor_depth,
                ),
            )
            for hit in hits
        ]
        retrieval_ms = elapsed_ms(t_retrieval)

        # ===============================================================
        # 4. Context bundle
        # ===============================================================

        context_text = self.context_builder.build(sources)

        # ===============================================================
        # 5. Grounded completion
        # ===============================================================

        t_generate = time.perf_counter()
        answer = self.generator.generate(question, context_text, model=model_config)
        generate_ms = elapsed_ms(t_generate)

        # ===============================================================
        # 6. Audit
        # ===============================================================

        source_ids = [s.node.id for s in sources]
        with self.store.graph.transaction():
            entry = self.store.append_log(
                owner_id,
                ProvenanceAction.SUMMARIZE,
                actor=Creator.AI,
                model_id=model_config.model_id,
                model_version=model_config.model_version,
                description=f'GraphRAG query: "{question[:100]}"',
                metadata={
                    "question": question,
                    "source_node_ids": source_ids,
                    "source_count": len(source_ids),
                },
            )

        log.info(
            "graphrag sources=%s model=%s embed=%.2f ms retrieval=%.2f ms generate=%.2f ms",
            len(sources),
            model_config.model_id,
            embed_ms,
            retrieval_ms,
            generate_ms,
        )

        return GraphRAGResult(
            answer=answer,
            sources=sources,
            model=model_config,
            context_text=context_text,
            log_entry_id=entry.id,
        )
