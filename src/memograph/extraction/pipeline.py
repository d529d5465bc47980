from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from memograph.config.settings import (
    CapabilityConfig,
    ExtractionConfig,
    ModelConfig,
    resolve_model,
)
from memograph.errors import ExternalCapabilityError, MemographError, ValidationError
from memograph.extraction.prompts import EXTRACTION_SYSTEM_PROMPT, extraction_user_prompt
from memograph.extraction.schema import ToulminExtraction, parse_capability_output
from memograph.graph.graph_schema import (
    Creator,
    Provenance,
    ProvenanceAction,
    ProvenanceMethod,
)
from memograph.graph.ontology_store import OntologyStore
from memograph.rag.generator import CompletionBackend, bounded_complete
from memograph.utils.text import truncate
from memograph.utils.time import elapsed_ms


class ExtractionState(str, Enum):
    SUBMITTED = "Submitted"
    ANALYZED = "Analyzed"
    COMMITTED = "Committed"
    FAILED = "Failed"


@dataclass
class ExtractionReport:
    """
    Outcome of one extraction run.

    A Committed report may still be partial: items the store rejected
    are listed in `skipped` and counted as proposed but not created.
    """

    state: ExtractionState
    model_id: str
    proposed_claims: int = 0
    proposed_entities: int = 0
    proposed_relationships: int = 0
    node_ids: List[str] = field(default_factory=list)
    edge_ids: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    reason: Optional[str] = None
    log_entry_id: Optional[str] = None

    @property
    def nodes_created(self) -> int:
        return len(self.node_ids)

    @property
    def edges_created(self) -> int:
        return len(self.edge_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "model": self.model_id,
            "nodes_created": self.nodes_created,
            "edges_created": self.edges_created,
            "node_ids": list(self.node_ids),
            "edge_ids": list(self.edge_ids),
            "proposed": {
                "claims": self.proposed_claims,
                "entities": self.proposed_entities,
                "relationships": self.proposed_relationships,
            },
            "skipped": list(self.skipped),
            "reason": self.reason,
            "log_entry_id": self.log_entry_id,
        }


class ExtractionPipeline:
    """
    Free text -> Toulmin decomposition -> Experimental nodes and edges.

    Submitted -> Analyzed -> Committed | Failed. The reasoning capability
    runs with no store lock held; each created item then commits in its
    own transaction together with its audit entry.
    """

    def __init__(
        self,
        store: OntologyStore,
        backend: CompletionBackend,
        *,
        config: ExtractionConfig | None = None,
        capabilities: CapabilityConfig | None = None,
    ) -> None:
        self.store = store
        self.backend = backend
        self.config = config or ExtractionConfig()
        self.capabilities = capabilities or CapabilityConfig()

    def run(
        self,
        owner_id: str,
        text: str,
        source_node_id: Optional[str] = None,
        model: Optional[str] = None,
    ) -> ExtractionReport:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text must not be empty", field="text")
        if len(text) > self.config.max_input_chars:
            raise ValidationError(
                f"text exceeds {self.config.max_input_chars} characters",
                field="text",
            )
        if source_node_id is not None:
            self.store.get_node(owner_id, source_node_id)
        model_config = resolve_model(model, default=self.capabilities.analysis_model)

        log = logging.getLogger("memograph.extraction")
        log.info("extraction submitted chars=%s model=%s", len(text), model_config.model_id)

        # ===============================================================
        # 1. Analyze
        # ===============================================================

        t_analyze = time.perf_counter()
        try:
            raw = bounded_complete(
                self.backend,
                EXTRACTION_SYSTEM_PROMPT,
                extraction_user_prompt(text),
                model=model_config,
                capabilities=self.capabilities,
                json_output=True,
            )
            extraction = parse_capability_output(ToulminExtraction, raw)
        except ExternalCapabilityError as exc:
            log.warning("extraction failed: %s", exc)
            return ExtractionReport(
                state=ExtractionState.FAILED,
                model_id=model_config.model_id,
                reason=str(exc),
            )
        analyze_ms = elapsed_ms(t_analyze)

        report = ExtractionReport(
            state=ExtractionState.ANALYZED,
            model_id=model_config.model_id,
            proposed_claims=len(extraction.claims),
            proposed_entities=len(extraction.entities),
            proposed_relationships=len(extraction.relationships),
        )

        # ===============================================================
        # 2. Commit
        # ===============================================================

        t_commit = time.perf_counter()
        claim_nodes = self._commit_claims(owner_id, extraction, source_node_id, model_config, report)
        self._commit_entities(owner_id, extraction, source_node_id, model_config, report)
        self._commit_relationships(owner_id, extraction, claim_nodes, source_node_id, model_config, report)

        with self.store.graph.transaction():
            entry = self.store.append_log(
                owner_id,
                ProvenanceAction.EXTRACT_GRAPH,
                actor=Creator.AI,
                model_id=model_config.model_id,
                model_version=model_config.model_version,
                target_node_id=source_node_id,
                description=(
                    f"Extracted {report.nodes_created} nodes and "
                    f"{report.edges_created} edges from text"
                ),
                metadata={
                    "source_node_id": source_node_id,
                    "created_node_ids": list(report.node_ids),
                    "created_edge_ids": list(report.edge_ids),
                    "extraction_summary": {
                        "claims": report.proposed_claims,
                        "entities": report.proposed_entities,
                        "relationships": report.proposed_relationships,
                    },
                    "skipped": list(report.skipped),
                },
            )

        report.state = ExtractionState.COMMITTED
        report.log_entry_id = entry.id

        log.info(
            "extraction committed nodes=%s edges=%s skipped=%s analyze=%.2f ms commit=%.2f ms",
            report.nodes_created,
            report.edges_created,
            len(report.skipped),
            analyze_ms,
            elapsed_ms(t_commit),
        )
        return report

    # ------------------------------------------------------------------
    # Commit stages
    # ------------------------------------------------------------------

    def _commit_claims(
        self,
        owner_id: str,
        extraction: ToulminExtraction,
        source_node_id: Optional[str],
        model: ModelConfig,
        report: ExtractionReport,
    ) -> Dict[int, str]:
        """
        Returns claim index -> created node id, for claims that committed.
        """
        claim_nodes: Dict[int, str] = {}
        for i, claim in enumerate(extraction.claims):
            try:
                node = self.store.create_node(
                    owner_id,
                    title=truncate(claim.text, self.config.title_max_chars),
                    content=claim.text,
                    type=claim.type,
                    provenance=self._provenance(model, source_node_id, claim.qualifier),
                )
            except MemographError as exc:
                self._skip(report, f"claim[{i}]", exc)
                continue
            claim_nodes[i] = node.id
            report.node_ids.append(node.id)
        return claim_nodes

    def _commit_entities(
        self,
        owner_id: str,
        extraction: ToulminExtraction,
        source_node_id: Optional[str],
        model: ModelConfig,
        report: ExtractionReport,
    ) -> None:
        for i, entity in enumerate(extraction.entities):
            try:
                node = self.store.create_node(
                    owner_id,
                    title=truncate(entity.name, self.config.title_max_chars),
                    content=f"Entity: {entity.name}",
                    type=entity.type,
                    provenance=self._provenance(model, source_node_id, None),
                )
            except MemographError as exc:
                self._skip(report, f"entity[{i}]", exc)
                continue
            report.node_ids.append(node.id)

    def _commit_relationships(
        self,
        owner_id: str,
        extraction: ToulminExtraction,
        claim_nodes: Dict[int, str],
        source_node_id: Optional[str],
        model: ModelConfig,
        report: ExtractionReport,
    ) -> None:
        for i, rel in enumerate(extraction.relationships):
            source_id = claim_nodes.get(rel.source_index)
            target_id = claim_nodes.get(rel.target_index)
            if source_id is None or target_id is None:
                self._skip(report, f"relationship[{i}]", "unresolved claim index")
                continue
            if source_id == target_id:
                self._skip(report, f"relationship[{i}]", "self-referencing relationship")
                continue
            try:
                edge = self.store.create_edge(
                    owner_id,
                    source_id,
                    target_id,
                    type=rel.type,
                    weight=rel.weight,
                    provenance=self._provenance(model, source_node_id, None),
                )
            except MemographError as exc:
                self._skip(report, f"relationship[{i}]", exc)
                continue
            report.edge_ids.append(edge.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _provenance(
        model: ModelConfig,
        source_node_id: Optional[str],
        confidence: Optional[float],
    ) -> Provenance:
        return Provenance.ai(
            model=model.model_id,
            model_version=model.model_version,
            method=ProvenanceMethod.EXTRACT_GRAPH,
            source_node_id=source_node_id,
            confidence=confidence,
        )

    @staticmethod
    def _skip(report: ExtractionReport, item: str, reason: Any) -> None:
        logging.getLogger("memograph.extraction").warning("skipped %s: %s", item, reason)
        report.skipped.append(f"{item}: {reason}")
