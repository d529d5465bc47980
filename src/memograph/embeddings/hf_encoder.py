from __future__ import annotations

import numpy as np
import torch
from transformers import AutoModel, AutoTokenizer

from memograph.embeddings.encoder import EmbeddingEncoder


class HuggingFaceEmbeddingEncoder(EmbeddingEncoder):
    """
    HuggingFace sentence encoder with mask-aware mean pooling.

    The model's native width rarely matches the deployment dimension,
    so vectors are zero-padded or truncated to fit it.
    """

    def __init__(
        self,
        *,
        model_name: str,
        dimension: int = 1536,
        device: str = "cpu",
        normalize: bool = True,
        max_length: int = 512,
    ) -> None:
        self.model_name = model_name
        self.device = device
        self.normalize = normalize
        self.max_length = max_length

        tokenizer = AutoTokenizer.from_pretrained(model_name)
        model = AutoModel.from_pretrained(model_name)

        model.to(device)
        model.eval()

        self.tokenizer = tokenizer
        self.model = model
        self.native_dimension = int(model.config.hidden_size)

        super().__init__(dimension=dimension)

    def _encode_one(self, text: str) -> np.ndarray:
        with torch.no_grad():
            inputs = self.tokenizer(
                text,
                return_tensors="pt",
                truncation=True,
                max_length=self.max_length,
                padding=True,
            ).to(self.device)

            outputs = self.model(**inputs)

            token_embeddings = outputs.last_hidden_state
            mask = inputs["attention_mask"].unsqueeze(-1).expand(token_embeddings.size())
            summed = (token_embeddings * mask).sum(dim=1)
            counts = mask.sum(dim=1).clamp(min=1e-9)

            embedding = summed / counts

        vec = embedding.squeeze(0).cpu().numpy().astype(np.float32)

        if self.normalize:
            norm = np.linalg.norm(vec)
            if norm > 0:
                vec = vec / norm

        return fit_dimension(vec, self.dimension)


def fit_dimension(vec: np.ndarray, dimension: int) -> np.ndarray:
    """
    Zero-pad or truncate a vector to exactly `dimension` components.
    """
    if vec.shape[0] >= dimension:
        return vec[:dimension]
    return np.pad(vec, (0, dimension - vec.shape[0]))
