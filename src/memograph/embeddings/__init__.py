"""
Embedding subsystem for memograph.

Provides the `embed(text) -> vector` capability, similarity primitives
and node indexing used by vector search and GraphRAG.
"""

from memograph.embeddings.encoder import EmbeddingEncoder
from memograph.embeddings.similarity import SimilarityComputer
from memograph.embeddings.indexer import NodeEmbeddingIndexer, node_text

__all__ = [
    "EmbeddingEncoder",
    "SimilarityComputer",
    "NodeEmbeddingIndexer",
    "node_text",
]
