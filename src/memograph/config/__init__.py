"""
Configuration layer for memograph.

Configuration in memograph is:
- Explicit (passed, not global)
- Typed (validated at construction time)
- Immutable (frozen dataclasses)
"""

from memograph.config.settings import (
    ModelConfig,
    KNOWN_MODELS,
    resolve_model,
    StoreConfig,
    RetrievalConfig,
    GraphRAGConfig,
    ExtractionConfig,
    CapabilityConfig,
    MemographConfig,
)

__all__ = [
    "ModelConfig",
    "KNOWN_MODELS",
    "resolve_model",
    "StoreConfig",
    "RetrievalConfig",
    "GraphRAGConfig",
    "ExtractionConfig",
    "CapabilityConfig",
    "MemographConfig",
]
