"""
memograph
=========

A governed personal knowledge graph with hybrid retrieval.

Every unit of knowledge is a typed, provenance-tracked node in a
directed semantic graph; AI-authored content enters as Experimental
and only a reviewer promotes it. Answers are grounded in vector,
trigram and neighborhood retrieval and cite their sources.

Public API:
- GraphStore
- OntologyStore
- GraphRetriever
- ExtractionPipeline
- GraphRAGOrchestrator
- GovernanceController
"""

from memograph.graph.graph_store import GraphStore
from memograph.graph.ontology_store import OntologyStore
from memograph.rag.retriever import GraphRetriever
from memograph.rag.graphrag import GraphRAGOrchestrator
from memograph.extraction.pipeline import ExtractionPipeline
from memograph.governance.controller import GovernanceController

__all__ = [
    "GraphStore",
    "OntologyStore",
    "GraphRetriever",
    "ExtractionPipeline",
    "GraphRAGOrchestrator",
    "GovernanceController",
]

__version__ = "0.1.0"
