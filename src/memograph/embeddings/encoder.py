from __future__ import annotations

import hashlib
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Iterable, List

import numpy as np

from memograph.errors import ExternalCapabilityError


class EmbeddingEncoder(ABC):
    """
    Abstract `embed(text) -> vector` capability.

    Every vector it returns has exactly `dimension` components, the
    length fixed for the deployment's stored embeddings.
    """

    def __init__(self, dimension: int, *, cache_size: int = 2048) -> None:
        self.dimension = dimension
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, np.ndarray]" = OrderedDict()
        self._cache_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encode(self, texts: Iterable[str]) -> List[np.ndarray]:
        """
        Encode multiple texts, reusing cached vectors for repeated inputs.
        """
        embeddings: List[np.ndarray] = []

        for text in texts:
            key = self._hash(text)
            with self._cache_lock:
                cached = self._cache.get(key)
                if cached is not None:
                    self._cache.move_to_end(key)
            if cached is None:
                cached = self._checked(self._encode_one(text))
                self._remember(key, cached)
            embeddings.append(cached)

        return embeddings

    def encode_one(self, text: str) -> np.ndarray:
        return self.encode([text])[0]

    # ------------------------------------------------------------------
    # Implementation contract
    # ------------------------------------------------------------------

    @abstractmethod
    def _encode_one(self, text: str) -> np.ndarray:
        """
        Encode a single text into a vector.
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def _checked(self, vector: np.ndarray) -> np.ndarray:
        vector = np.asarray(vector, dtype=np.float32)
        if vector.ndim != 1 or vector.shape[0] != self.dimension:
            raise ExternalCapabilityError(
                "embed",
                f"expected {self.dimension} dimensions, got {vector.shape}",
            )
        return vector

    def _remember(self, key: str, vector: np.ndarray) -> None:
        if self.cache_size <= 0:
            return
        with self._cache_lock:
            self._cache[key] = vector
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)

    def _hash(self, text: str) -> str:
        payload = f"{self.__class__.__name__}:{self.dimension}:{text}"
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
