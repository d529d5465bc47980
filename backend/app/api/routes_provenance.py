from typing import List, Optional

from fastapi import APIRouter, Depends

from backend.app.api.schemas import ArgumentLinkOut, LogEntryOut
from backend.app.dependencies import get_knowledge_service, get_owner_id
from backend.app.services.knowledge_service import KnowledgeService

router = APIRouter()


@router.get("/logs", response_model=List[LogEntryOut])
def list_logs(
    node_id: Optional[str] = None,
    edge_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: Optional[int] = None,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    entries = service.store.list_logs(
        owner_id,
        node_id=node_id,
        edge_id=edge_id,
        action=action,
        limit=limit,
    )
    return [e.to_dict() for e in entries]


@router.get("/argumentation", response_model=List[ArgumentLinkOut])
def argumentation(
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [
        {
            "claim": link.claim.to_dict(),
            "relationship": link.relationship.value,
            "evidence": link.evidence.to_dict(),
            "weight": link.weight,
            "edge_id": link.edge_id,
        }
        for link in service.store.argumentation(owner_id)
    ]
