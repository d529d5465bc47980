from __future__ import annotations

from typing import Sequence

import numpy as np


class SimilarityComputer:
    """
    Cosine similarity between a query vector and stored embeddings.
    """

    @staticmethod
    def cosine(a: np.ndarray, b: np.ndarray) -> float:
        """
        Cosine similarity; 0.0 when either vector has zero norm.
        """
        denom = np.linalg.norm(a) * np.linalg.norm(b)
        if denom == 0.0:
            return 0.0
        return float(np.dot(a, b) / denom)

    @staticmethod
    def cosine_many(query: np.ndarray, candidates: Sequence[np.ndarray]) -> np.ndarray:
        """
        Vectorized cosine of one query against a stack of candidates.
        """
        if len(candidates) == 0:
            return np.zeros(0, dtype=np.float64)

        matrix = np.vstack(candidates).astype(np.float64)
        query = np.asarray(query, dtype=np.float64)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        out = np.zeros(len(candidates), dtype=np.float64)
        nonzero = norms > 0
        out[nonzero] = dots[nonzero] / norms[nonzero]
        return out
