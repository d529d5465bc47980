"""
Retrieval-Augmented Generation (RAG) subsystem for memograph.

This module performs:
- vector, trigram and neighborhood retrieval
- numbered context blocks for citation
- grounded answer generation through a completion capability
"""

from memograph.rag.retriever import GraphRetriever, ScoredNode, HybridHit
from memograph.rag.context_builder import ContextBuilder, SourceContext
from memograph.rag.generator import (
    CompletionBackend,
    Generator,
    LLMGenerator,
    GRAPHRAG_SYSTEM_PROMPT,
    bounded_complete,
)
from memograph.rag.graphrag import GraphRAGOrchestrator, GraphRAGResult

__all__ = [
    "GraphRetriever",
    "ScoredNode",
    "HybridHit",
    "ContextBuilder",
    "SourceContext",
    "CompletionBackend",
    "Generator",
    "LLMGenerator",
    "GRAPHRAG_SYSTEM_PROMPT",
    "bounded_complete",
    "GraphRAGOrchestrator",
    "GraphRAGResult",
]
