from typing import List, Optional

from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    DeletionOut,
    EdgeOut,
    InboxItemOut,
    NeighborOut,
    NodeCreateRequest,
    NodeOut,
    NodeTransitionOut,
    NodeUpdateRequest,
    StatsResponse,
)
from backend.app.dependencies import get_knowledge_service, get_owner_id
from backend.app.services.knowledge_service import KnowledgeService

router = APIRouter()


def _transition_out(transition) -> dict:
    return {
        "node": transition.entity.to_dict(),
        "action": transition.action.value if transition.action else None,
        "changed": transition.changed,
        "log_entry_id": transition.log_entry.id if transition.log_entry else None,
    }


@router.post("", response_model=NodeOut, status_code=201)
def create_node(
    request: NodeCreateRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.create_node(owner_id, **request.model_dump()).to_dict()


@router.get("", response_model=List[NodeOut])
def list_nodes(
    folder_id: Optional[str] = None,
    status: Optional[str] = None,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [
        n.to_dict()
        for n in service.store.list_nodes(owner_id, folder_id=folder_id, status=status)
    ]


@router.get("/inbox", response_model=List[InboxItemOut])
def inbox(
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [
        {"node": item.node.to_dict(), "edge_count": item.edge_count}
        for item in service.store.inbox(owner_id)
    ]


@router.get("/stats", response_model=StatsResponse)
def stats(
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.stats(owner_id)


@router.get("/{node_id}", response_model=NodeOut)
def get_node(
    node_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.store.get_node(owner_id, node_id).to_dict()


@router.patch("/{node_id}", response_model=NodeOut)
def update_node(
    node_id: str,
    request: NodeUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    changes = request.model_dump(exclude_unset=True)
    return service.update_node(owner_id, node_id, changes).to_dict()


@router.delete("/{node_id}", response_model=DeletionOut)
def delete_node(
    node_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    report = service.store.delete_node(owner_id, node_id)
    return {
        "node_id": report.node.id,
        "removed_edge_ids": [e.id for e in report.removed_edges],
        "log_entry_id": report.log_entry.id,
    }


@router.post("/{node_id}/approve", response_model=NodeTransitionOut)
def approve_node(
    node_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return _transition_out(service.governance.approve_node(owner_id, node_id))


@router.post("/{node_id}/deprecate", response_model=NodeTransitionOut)
def deprecate_node(
    node_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return _transition_out(service.governance.deprecate_node(owner_id, node_id))


@router.post("/{node_id}/embed", response_model=NodeOut)
def embed_node(
    node_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.indexer.embed_node(owner_id, node_id).to_dict()


@router.get("/{node_id}/context", response_model=List[NeighborOut])
def node_context(
    node_id: str,
    depth: int = 1,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [c.to_dict() for c in service.retriever.neighbor_context(node_id, owner_id, depth)]


@router.get("/{node_id}/edges", response_model=List[EdgeOut])
def node_edges(
    node_id: str,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return [e.to_dict() for e in service.store.edges_for_node(owner_id, node_id)]
