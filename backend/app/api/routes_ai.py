from fastapi import APIRouter, Depends

from backend.app.api.schemas import (
    ArgumentationCheckResponse,
    ExtractionResponse,
    ExtractRequest,
    GraphRAGRequest,
    GraphRAGResponse,
    LinkSuggestRequest,
    LinkSuggestResponse,
    SummarizeRequest,
    SummarizeResponse,
)
from backend.app.dependencies import get_knowledge_service, get_owner_id
from backend.app.services.knowledge_service import KnowledgeService

router = APIRouter()


@router.post("/extract", response_model=ExtractionResponse)
def extract(
    request: ExtractRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    report = service.extraction.run(
        owner_id,
        request.text,
        source_node_id=request.source_node_id,
        model=request.model,
    )
    return report.to_dict()


@router.post("/graph-rag", response_model=GraphRAGResponse)
def graph_rag(
    request: GraphRAGRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.graphrag.run(owner_id, request.question, model=request.model).to_dict()


@router.post("/link-suggest", response_model=LinkSuggestResponse)
def link_suggest(
    request: LinkSuggestRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    report = service.governance.link_suggest(owner_id, request.node_ids, model=request.model)
    return report.to_dict()


@router.post("/summarize", response_model=SummarizeResponse)
def summarize(
    request: SummarizeRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    result = service.summarizer.summarize(owner_id, request.node_id, model=request.model)
    return {
        "node_id": result.node_id,
        **result.analysis.model_dump(),
        "log_entry_id": result.log_entry.id,
    }


@router.post("/argumentation-check", response_model=ArgumentationCheckResponse)
def argumentation_check(
    request: SummarizeRequest,
    owner_id: str = Depends(get_owner_id),
    service: KnowledgeService = Depends(get_knowledge_service),
):
    result = service.summarizer.check_argumentation(owner_id, request.node_id, model=request.model)
    return {
        "node_id": result.node_id,
        "evidence_ids": result.evidence_ids,
        **result.assessment.model_dump(),
        "log_entry_id": result.log_entry.id,
    }
