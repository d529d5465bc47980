from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Optional

from memograph.errors import ValidationError

# ---------------------------------------------------------------------
# External model selection
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ModelConfig:
    """
    Provider + model identity for one capability call.

    Passed per request; there is no process-wide "selected model".
    """

    provider: Literal["google", "openai", "huggingface"]
    model_id: str
    model_version: Optional[str] = None


KNOWN_MODELS: Dict[str, ModelConfig] = {
    "gemini-2.5-flash": ModelConfig(provider="google", model_id="gemini-2.5-flash"),
    "gemini-2.5-pro": ModelConfig(provider="google", model_id="gemini-2.5-pro"),
    "gpt-4o-mini": ModelConfig(provider="openai", model_id="gpt-4o-mini"),
}


def resolve_model(
    model_id: Optional[str],
    *,
    default: ModelConfig,
    registry: Optional[Dict[str, ModelConfig]] = None,
) -> ModelConfig:
    if model_id is None:
        return default
    models = KNOWN_MODELS if registry is None else registry
    if model_id == default.model_id:
        return default
    if model_id not in models:
        raise ValidationError(f"unknown model '{model_id}'", field="model")
    return models[model_id]


# ---------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class StoreConfig:
    """
    Fixed per deployment: every stored embedding has this length.
    """

    embedding_dimension: int = 1536


# ---------------------------------------------------------------------
# Retrieval primitives
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class RetrievalConfig:
    """
    Defaults for the three ranking primitives and the lookups built on them.
    """

    vector_threshold: float = 0.7
    vector_limit: int = 10
    text_similarity_threshold: float = 0.3
    text_limit: int = 20
    max_traversal_depth: int = 3
    similar_threshold: float = 0.5
    similar_top_k: int = 3
    hybrid_top_k: int = 5


# ---------------------------------------------------------------------
# GraphRAG
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class GraphRAGConfig:
    vector_threshold: float = 0.4
    top_k: int = 5
    neighbor_depth: int = 1


# ---------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractionConfig:
    title_max_chars: int = 100
    max_input_chars: int = 50000


# ---------------------------------------------------------------------
# External capabilities
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class CapabilityConfig:
    """
    Timeouts (seconds) for external calls and the default models.

    A timeout of 0 disables the bound.
    """

    embed_timeout_s: float = 30.0
    completion_timeout_s: float = 120.0
    max_embed_chars: int = 8000
    answer_model: ModelConfig = field(
        default_factory=lambda: KNOWN_MODELS["gemini-2.5-flash"]
    )
    analysis_model: ModelConfig = field(
        default_factory=lambda: KNOWN_MODELS["gemini-2.5-pro"]
    )


# ---------------------------------------------------------------------
# Root configuration object
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class MemographConfig:
    """
    Root configuration object for memograph.

    This object is intended to be:
    - constructed explicitly
    - passed through all major subsystems
    - treated as immutable system policy
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    graphrag: GraphRAGConfig = field(default_factory=GraphRAGConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    capabilities: CapabilityConfig = field(default_factory=CapabilityConfig)
