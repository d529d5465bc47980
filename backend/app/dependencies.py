from functools import lru_cache
import logging
from pathlib import Path
import time

from fastapi import Header

from memograph.errors import ValidationError
from memograph.graph.graph_store import GraphStore
from memograph.rag.hf_chat_backend import HuggingFaceChatBackend
from memograph.embeddings.hf_encoder import HuggingFaceEmbeddingEncoder

from backend.app.config import AppConfig
from backend.app.services.knowledge_service import KnowledgeService
from backend.app.loaders.graph_loader import load_graph_from_processed


@lru_cache
def get_config() -> AppConfig:
    return AppConfig()


@lru_cache
def get_graph_store() -> GraphStore:
    config = get_config()
    return GraphStore(dimension=config.memograph.store.embedding_dimension)


@lru_cache
def get_embedding_encoder() -> HuggingFaceEmbeddingEncoder:
    config = get_config()

    t0 = time.perf_counter()
    encoder = HuggingFaceEmbeddingEncoder(
        model_name=config.embedding_model,
        dimension=config.memograph.store.embedding_dimension,
        device=config.embedding_device,
    )
    logging.getLogger("memograph.startup").info(
        "[startup] embedding encoder init in %.3fs",
        time.perf_counter() - t0,
    )
    return encoder


@lru_cache
def get_completion_backend() -> HuggingFaceChatBackend:
    config = get_config()

    t0 = time.perf_counter()
    backend = HuggingFaceChatBackend(
        model_name=config.llm_model,
        hf_token=config.hf_token,
        max_new_tokens=config.max_new_tokens,
        temperature=config.temperature,
        top_p=config.top_p,
    )
    logging.getLogger("memograph.startup").info(
        "[startup] LLM backend init in %.3fs",
        time.perf_counter() - t0,
    )
    return backend


@lru_cache
def get_knowledge_service() -> KnowledgeService:
    config = get_config()
    logger = logging.getLogger("memograph.startup")

    t0 = time.perf_counter()
    service = KnowledgeService(
        graph=get_graph_store(),
        encoder=get_embedding_encoder(),
        backend=get_completion_backend(),
        config=config.memograph,
        auto_embed=config.auto_embed,
    )

    processed_dir = Path(config.processed_dir)
    if config.seed_owner_id and processed_dir.exists():
        report = load_graph_from_processed(
            store=service.store,
            processed_dir=processed_dir,
            owner_id=config.seed_owner_id,
            indexer=service.indexer if config.auto_embed else None,
        )
        logger.info(
            "[startup] seeded nodes=%s edges=%s skipped=%s",
            report.nodes,
            report.edges,
            len(report.skipped),
        )
    logger.info("[startup] get_knowledge_service total %.3fs", time.perf_counter() - t0)
    return service


def get_owner_id(x_owner_id: str = Header(...)) -> str:
    """
    Authenticated owner id, set by the upstream auth layer.
    """
    if not x_owner_id.strip():
        raise ValidationError("X-Owner-Id header must not be empty", field="X-Owner-Id")
    return x_owner_id.strip()
