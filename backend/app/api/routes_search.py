from typing import List, Optional

import numpy as np
from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    HybridHitOut,
    ScoredNodeOut,
    SimilarRequest,
    VectorSearchRequest,
)
from backend.app.dependencies import get_knowledge_service, get_owner_id
from backend.app.services.knowledge_service import KnowledgeService

router = APIRouter()


@router.post("/vector", response_model=List[ScoredNodeOut])
def search_by_vector(
    request: VectorSearchRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    hits = service.retriever.search_by_vector(
        owner_id,
        np.asarray(request.vector, dtype=np.float32),
        threshold=request.threshold,
        limit=request.limit,
    )
    return [h.to_dict() for h in hits]


@router.get("/text", response_model=List[ScoredNodeOut])
def search_by_text(
    q: str,
    limit: Optional[int] = None,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [h.to_dict() for h in service.retriever.search_by_text(owner_id, q, limit)]


@router.post("/similar", response_model=List[ScoredNodeOut])
def find_similar(
    request: SimilarRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    hits = service.retriever.find_similar(
        owner_id,
        request.text,
        top_k=request.top_k,
        threshold=request.threshold,
    )
    return [h.to_dict() for h in hits]


@router.get("/hybrid", response_model=List[HybridHitOut])
def hybrid_search(
    q: str,
    top_k: Optional[int] = None,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [h.to_dict() for h in service.retriever.hybrid_search(owner_id, q, top_k)]
