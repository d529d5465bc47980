from typing import List, Optional

from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    EdgeCreateRequest,
    EdgeOut,
    EdgeTransitionOut,
    EdgeUpdateRequest,
)
from backend.app.dependencies import get_knowledge_service, get_owner_id
from backend.app.services.knowledge_service import KnowledgeService

router = APIRouter()


def _transition_out(transition) -> dict:
    return {
        "edge": transition.entity.to_dict(),
        "action": transition.action.value if transition.action else None,
        "changed": transition.changed,
        "log_entry_id": transition.log_entry.id if transition.log_entry else None,
    }


@router.post("", response_model=EdgeOut, status_code=201)
def create_edge(
    request: EdgeCreateRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    edge = service.store.create_edge(
        owner_id,
        request.source_id,
        request.target_id,
        type=request.type,
        weight=request.weight,
        label=request.label,
    )
    return edge.to_dict()


@router.get("", response_model=List[EdgeOut])
def list_edges(
    status: Optional[str] = None,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [e.to_dict() for e in service.store.list_edges(owner_id, status=status)]


@router.get("/{edge_id}", response_model=EdgeOut)
def get_edge(
    edge_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.store.get_edge(owner_id, edge_id).to_dict()


@router.patch("/{edge_id}", response_model=EdgeOut)
def update_edge_type(
    edge_id: str,
    request: EdgeUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.store.update_edge_type(owner_id, edge_id, request.type).to_dict()


@router.delete("/{edge_id}", response_model=EdgeOut)
def delete_edge(
    edge_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.store.delete_edge(owner_id, edge_id).to_dict()


@router.post("/{edge_id}/approve", response_model=EdgeTransitionOut)
def approve_edge(
    edge_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return _transition_out(service.governance.approve_edge(owner_id, edge_id))


@router.post("/{edge_id}/deprecate", response_model=EdgeTransitionOut)
def deprecate_edge(
    edge_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return _transition_out(service.governance.deprecate_edge(owner_id, edge_id))
