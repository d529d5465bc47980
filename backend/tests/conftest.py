from __future__ import annotations

import json
import time
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.app.main import create_app
from backend.app.config import AppConfig
from backend.app.dependencies import get_knowledge_service
from backend.app.services.knowledge_service import KnowledgeService

from memograph.config.settings import (
    CapabilityConfig,
    MemographConfig,
    ModelConfig,
    StoreConfig,
)
from memograph.embeddings.encoder import EmbeddingEncoder
from memograph.graph.graph_store import GraphStore
from memograph.graph.ontology_store import OntologyStore


DIM = 8
OWNER = "owner-a"
OTHER_OWNER = "owner-b"


def unit(*components: float) -> np.ndarray:
    """
    DIM-length vector with the given leading components, zeros after.
    """
    vec = np.zeros(DIM, dtype=np.float32)
    vec[: len(components)] = components
    return vec


class DummyEncoder(EmbeddingEncoder):
    """
    Looks texts up in a table; anything unknown maps to `default`.
    """

    def __init__(
        self,
        table: Optional[Dict[str, np.ndarray]] = None,
        default: Optional[np.ndarray] = None,
        delay_s: float = 0.0,
    ) -> None:
        super().__init__(dimension=DIM)
        self.table = dict(table or {})
        self.default = unit(1.0) if default is None else default
        self.delay_s = delay_s
        self.calls: List[str] = []

    def _encode_one(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if self.delay_s:
            time.sleep(self.delay_s)
        return self.table.get(text, self.default)


Response = Union[str, dict, Exception, Callable[[str, str], str]]


class ScriptedBackend:
    """
    Completion backend returning queued responses in order.

    Dicts are serialized to JSON, exceptions are raised, callables get
    (system_prompt, user_prompt). The last response repeats once the
    queue runs out.
    """

    def __init__(self, *responses: Response, delay_s: float = 0.0) -> None:
        self.responses = list(responses) or ["ok"]
        self.delay_s = delay_s
        self.calls: List[Dict[str, Any]] = []

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: ModelConfig,
        json_output: bool = False,
    ) -> str:
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "model": model.model_id,
                "json": json_output,
            }
        )
        if self.delay_s:
            time.sleep(self.delay_s)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        if callable(response):
            return response(system_prompt, user_prompt)
        return response


def make_config(**capabilities: Any) -> MemographConfig:
    return MemographConfig(
        store=StoreConfig(embedding_dimension=DIM),
        capabilities=CapabilityConfig(**capabilities),
    )


@pytest.fixture()
def graph() -> GraphStore:
    return GraphStore(dimension=DIM)


@pytest.fixture()
def store(graph: GraphStore) -> OntologyStore:
    return OntologyStore(graph)


@pytest.fixture()
def encoder() -> DummyEncoder:
    return DummyEncoder()


@pytest.fixture()
def backend() -> ScriptedBackend:
    return ScriptedBackend("dummy answer")


@pytest.fixture()
def service(graph: GraphStore, encoder: DummyEncoder, backend: ScriptedBackend) -> KnowledgeService:
    return KnowledgeService(
        graph=graph,
        encoder=encoder,
        backend=backend,
        config=make_config(),
        auto_embed=True,
    )


@pytest.fixture()
def client(service: KnowledgeService):
    @asynccontextmanager
    async def _no_lifespan(_: FastAPI):
        yield

    app = create_app(AppConfig())
    app.router.lifespan_context = _no_lifespan

    app.dependency_overrides[get_knowledge_service] = lambda: service
    with TestClient(app, headers={"X-Owner-Id": OWNER}) as test_client:
        yield test_client
    app.dependency_overrides.clear()
