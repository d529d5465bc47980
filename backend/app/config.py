from dataclasses import dataclass
from dynaconf import Dynaconf
from backend.app.constants import DEFAULTS

from memograph.config.settings import (
    KNOWN_MODELS,
    StoreConfig,
    RetrievalConfig,
    GraphRAGConfig,
    ExtractionConfig,
    CapabilityConfig,
    MemographConfig,
)

settings = Dynaconf(
    envvar_prefix="MEMOGRAPH",
    load_dotenv=True,
    settings_files=[],
)

# Environment wins over DEFAULTS.
for _key, _value in DEFAULTS.items():
    settings.setdefault(_key, _value)


@dataclass(frozen=True)
class AppConfig:
    # ---------------- App ----------------
    app_name: str = settings.get("APP_NAME", "memograph-backend")
    api_prefix: str = settings.get("API_PREFIX", "")

    # ---------------- Capabilities ----------------
    llm_model: str = settings.get("LLM_MODEL")
    hf_token: str = settings.get("HF_TOKEN")
    embedding_model: str = settings.get("EMBEDDING_MODEL")
    embedding_device: str = settings.get("EMBEDDING_DEVICE", "cpu")

    max_new_tokens: int = settings.get("LLM_MAX_NEW_TOKENS")
    temperature: float = settings.get("LLM_TEMPERATURE")
    top_p: float = settings.get("LLM_TOP_P")

    auto_embed: bool = settings.get("AUTO_EMBED")

    # ---------------- Memograph Policy ----------------
    memograph: MemographConfig = MemographConfig(
        store=StoreConfig(
            embedding_dimension=settings.get("EMBEDDING_DIMENSION"),
        ),
        retrieval=RetrievalConfig(
            vector_threshold=settings.get("VECTOR_THRESHOLD"),
            vector_limit=settings.get("VECTOR_LIMIT"),
            text_similarity_threshold=settings.get("TEXT_SIMILARITY_THRESHOLD"),
            text_limit=settings.get("TEXT_LIMIT"),
            max_traversal_depth=settings.get("MAX_TRAVERSAL_DEPTH"),
            similar_threshold=settings.get("SIMILAR_THRESHOLD"),
            similar_top_k=settings.get("SIMILAR_TOP_K"),
            hybrid_top_k=settings.get("HYBRID_TOP_K"),
        ),
        graphrag=GraphRAGConfig(
            vector_threshold=settings.get("GRAPHRAG_VECTOR_THRESHOLD"),
            top_k=settings.get("GRAPHRAG_TOP_K"),
            neighbor_depth=settings.get("GRAPHRAG_NEIGHBOR_DEPTH"),
        ),
        extraction=ExtractionConfig(
            title_max_chars=settings.get("EXTRACTION_TITLE_MAX_CHARS"),
            max_input_chars=settings.get("EXTRACTION_MAX_INPUT_CHARS"),
        ),
        capabilities=CapabilityConfig(
            embed_timeout_s=settings.get("EMBED_TIMEOUT_S"),
            completion_timeout_s=settings.get("COMPLETION_TIMEOUT_S"),
            max_embed_chars=settings.get("MAX_EMBED_CHARS"),
            answer_model=KNOWN_MODELS[settings.get("ANSWER_MODEL")],
            analysis_model=KNOWN_MODELS[settings.get("ANALYSIS_MODEL")],
        ),
    )

    # ---------------- Seed Data ----------------
    processed_dir: str = settings.get("PROCESSED_DIR")
    seed_owner_id: str = settings.get("SEED_OWNER_ID")
