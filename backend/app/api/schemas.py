from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


# ---------------- Graph entities ----------------


class ProvenanceOut(BaseModel):
    creator: str
    model: Optional[str] = None
    model_version: Optional[str] = None
    source_node_id: Optional[str] = None
    confidence: Optional[float] = None
    method: Optional[str] = None


class NodeOut(BaseModel):
    id: str
    owner_id: str
    folder_id: Optional[str] = None
    title: str
    content: str
    type: str
    status: str
    provenance: ProvenanceOut
    tags: List[str]
    word_count: int
    has_embedding: bool
    created_at: str
    updated_at: str


class EdgeOut(BaseModel):
    id: str
    owner_id: str
    source_id: str
    target_id: str
    type: str
    status: str
    weight: float
    label: Optional[str] = None
    provenance: ProvenanceOut
    created_at: str
    updated_at: str


class LogEntryOut(BaseModel):
    id: str
    owner_id: str
    action: str
    actor: str
    model_id: Optional[str] = None
    model_version: Optional[str] = None
    target_node_id: Optional[str] = None
    target_edge_id: Optional[str] = None
    description: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any]
    created_at: str


# ---------------- Node requests ----------------


class NodeCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    content: str = ""
    type: str = "Note"
    status: Optional[str] = None
    folder_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class NodeUpdateRequest(BaseModel):
    """
    Partial update. Only fields present in the request body are applied;
    `status` is accepted here only so the store can reject it explicitly.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    content: Optional[str] = None
    type: Optional[str] = None
    folder_id: Optional[str] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None


class InboxItemOut(BaseModel):
    node: NodeOut
    edge_count: int


class NodeTransitionOut(BaseModel):
    node: NodeOut
    action: Optional[str] = None
    changed: bool
    log_entry_id: Optional[str] = None


class DeletionOut(BaseModel):
    node_id: str
    removed_edge_ids: List[str]
    log_entry_id: str


class NeighborOut(BaseModel):
    node: NodeOut
    edge_id: str
    edge_type: str
    weight: float
    direction: str
    depth: int


# ---------------- Edge requests ----------------


class EdgeCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source_id: str
    target_id: str
    type: str = "related_to"
    weight: float = 1.0
    label: Optional[str] = None


class EdgeUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str


class EdgeTransitionOut(BaseModel):
    edge: EdgeOut
    action: Optional[str] = None
    changed: bool
    log_entry_id: Optional[str] = None


# ---------------- Search ----------------


class VectorSearchRequest(BaseModel):
    vector: List[float]
    threshold: Optional[float] = None
    limit: Optional[int] = None


class SimilarRequest(BaseModel):
    text: str
    top_k: Optional[int] = None
    threshold: Optional[float] = None


class ScoredNodeOut(BaseModel):
    node: NodeOut
    score: float


class HybridHitOut(BaseModel):
    node: NodeOut
    score: float
    context: List[NeighborOut]


# ---------------- AI ----------------


class ExtractRequest(BaseModel):
    text: str
    source_node_id: Optional[str] = None
    model: Optional[str] = None


class ExtractionResponse(BaseModel):
    state: str
    model: str
    nodes_created: int
    edges_created: int
    node_ids: List[str]
    edge_ids: List[str]
    proposed: Dict[str, int]
    skipped: List[str]
    reason: Optional[str] = None
    log_entry_id: Optional[str] = None


class GraphRAGRequest(BaseModel):
    question: str
    model: Optional[str] = None


class SourceOut(BaseModel):
    node: NodeOut
    similarity: float
    context: List[NeighborOut]


class GraphRAGResponse(BaseModel):
    answer: str
    sources: List[SourceOut]
    model: str
    log_entry_id: str


class LinkSuggestRequest(BaseModel):
    node_ids: List[str]
    model: Optional[str] = None


class LinkSuggestResponse(BaseModel):
    model: str
    proposed: int
    edges_created: int
    edge_ids: List[str]
    skipped: List[str]
    log_entry_id: Optional[str] = None


class SummarizeRequest(BaseModel):
    node_id: str
    model: Optional[str] = None


class SummarizeResponse(BaseModel):
    node_id: str
    summary: str
    claim: str
    grounds: List[str]
    qualifier: float
    log_entry_id: str


class ArgumentationCheckResponse(BaseModel):
    node_id: str
    evidence_ids: List[str]
    assessment: str
    missing_evidence: List[str]
    potential_rebuttals: List[str]
    suggested_qualifier: float
    reasoning: str
    log_entry_id: str


# ---------------- Provenance ----------------


class ArgumentLinkOut(BaseModel):
    claim: NodeOut
    relationship: str
    evidence: NodeOut
    weight: float
    edge_id: str


class StatsResponse(BaseModel):
    nodes: int
    edges: int
    inbox: int
