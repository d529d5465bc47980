from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Protocol

from memograph.config.settings import CapabilityConfig, ModelConfig
from memograph.utils.time import elapsed_ms
from memograph.utils.timeouts import call_with_timeout


GRAPHRAG_SYSTEM_PROMPT = (
    "You are a knowledge assistant for a personal knowledge graph. "
    "Answer questions based ONLY on the provided sources. "
    "For each claim in your answer, cite which source supports it using "
    "[Source N] notation. If sources contain conflicting information, "
    "acknowledge both perspectives. If the sources don't contain enough "
    "information, say so clearly."
)


class CompletionBackend(Protocol):
    """
    External `complete(system, user) -> text` capability.

    With `json_output=True` the backend is asked for syntactically valid
    JSON; callers still validate the shape themselves.
    """

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: ModelConfig,
        json_output: bool = False,
    ) -> str: ...


def bounded_complete(
    backend: CompletionBackend,
    system_prompt: str,
    user_prompt: str,
    *,
    model: ModelConfig,
    capabilities: CapabilityConfig,
    json_output: bool = False,
) -> str:
    """
    One completion call under the configured timeout.
    """
    t0 = time.perf_counter()
    text = call_with_timeout(
        lambda: backend.complete(
            system_prompt,
            user_prompt,
            model=model,
            json_output=json_output,
        ),
        capability="complete",
        timeout_s=capabilities.completion_timeout_s,
    )
    logging.getLogger("memograph.capability").info(
        "completion model=%s chars=%s in %.2f ms",
        model.model_id,
        len(text or ""),
        elapsed_ms(t0),
    )
    return text or ""


class Generator(ABC):
    """
    Turns a rendered context bundle and a question into an answer.
    """

    @abstractmethod
    def generate(self, question: str, context_text: str, *, model: ModelConfig) -> str:
        raise NotImplementedError


class LLMGenerator(Generator):
    """
    Completion-backed generator using the fixed grounding instruction.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        *,
        capabilities: CapabilityConfig | None = None,
        system_prompt: str = GRAPHRAG_SYSTEM_PROMPT,
    ) -> None:
        if backend is None:
            raise ValueError("completion backend must be provided")

        self.backend = backend
        self.capabilities = capabilities or CapabilityConfig()
        self.system_prompt = system_prompt

    def generate(self, question: str, context_text: str, *, model: ModelConfig) -> str:
        return bounded_complete(
            self.backend,
            self.system_prompt,
            self.build_user_prompt(question, context_text),
            model=model,
            capabilities=self.capabilities,
        )

    @staticmethod
    def build_user_prompt(question: str, context_text: str) -> str:
        return (
            "Based on these notes from the knowledge graph:\n\n"
            f"{context_text}\n\nQuestion: {question}"
        )
