from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from memograph.config.settings import CapabilityConfig, resolve_model
from memograph.errors import ValidationError
from memograph.extraction.prompts import (
    ARGUMENTATION_CHECK_SYSTEM_PROMPT,
    SUMMARIZE_SYSTEM_PROMPT,
    argumentation_user_prompt,
    summarize_user_prompt,
)
from memograph.extraction.schema import (
    ArgumentationAssessment,
    SummaryAnalysis,
    parse_capability_output,
)
from memograph.graph.graph_schema import (
    Creator,
    EdgeType,
    GovernanceStatus,
    NodeType,
    ProvenanceAction,
    ProvenanceLogEntry,
)
from memograph.graph.ontology_store import OntologyStore
from memograph.rag.generator import CompletionBackend, bounded_complete


@dataclass(frozen=True)
class SummaryResult:
    node_id: str
    analysis: SummaryAnalysis
    log_entry: ProvenanceLogEntry


@dataclass(frozen=True)
class ArgumentationCheckResult:
    node_id: str
    evidence_ids: List[str]
    assessment: ArgumentationAssessment
    log_entry: ProvenanceLogEntry


class Summarizer:
    """
    Single-node analyses: a Toulmin summary and an argumentation check.

    Read-only with respect to the graph; only the audit entry is written.
    """

    def __init__(
        self,
        store: OntologyStore,
        backend: CompletionBackend,
        *,
        capabilities: CapabilityConfig | None = None,
    ) -> None:
        self.store = store
        self.backend = backend
        self.capabilities = capabilities or CapabilityConfig()

    def summarize(
        self,
        owner_id: str,
        node_id: str,
        model: Optional[str] = None,
    ) -> SummaryResult:
        node = self.store.get_node(owner_id, node_id)
        model_config = resolve_model(model, default=self.capabilities.analysis_model)

        raw = bounded_complete(
            self.backend,
            SUMMARIZE_SYSTEM_PROMPT,
            summarize_user_prompt(node.content or node.title),
            model=model_config,
            capabilities=self.capabilities,
            json_output=True,
        )
        analysis = parse_capability_output(SummaryAnalysis, raw)

        with self.store.graph.transaction():
            entry = self.store.append_log(
                owner_id,
                ProvenanceAction.SUMMARIZE,
                actor=Creator.AI,
                model_id=model_config.model_id,
                model_version=model_config.model_version,
                target_node_id=node_id,
                description="AI summarize analysis completed",
                metadata={"node_ids": [node_id], "result": analysis.model_dump()},
            )

        logging.getLogger("memograph.extraction").info(
            "summarized node=%s qualifier=%.2f",
            node_id,
            analysis.qualifier,
        )
        return SummaryResult(node_id=node_id, analysis=analysis, log_entry=entry)

    def check_argumentation(
        self,
        owner_id: str,
        node_id: str,
        model: Optional[str] = None,
    ) -> ArgumentationCheckResult:
        """
        Assess whether a claim's connected evidence is sufficient.

        Evidence is every non-deprecated node linked to the claim by a
        non-deprecated supports or refutes edge.
        """
        claim = self.store.get_node(owner_id, node_id)
        if claim.type != NodeType.CLAIM:
            raise ValidationError(
                f"argumentation check needs a Claim, got {claim.type.value}",
                field="node_id",
            )
        model_config = resolve_model(model, default=self.capabilities.analysis_model)

        links = []
        for edge in self.store.edges_for_node(owner_id, node_id):
            if edge.type not in (EdgeType.SUPPORTS, EdgeType.REFUTES):
                continue
            evidence = self.store.get_node(owner_id, edge.other_end(node_id))
            if evidence.status == GovernanceStatus.DEPRECATED:
                continue
            links.append((edge.type, evidence, edge.weight))

        raw = bounded_complete(
            self.backend,
            ARGUMENTATION_CHECK_SYSTEM_PROMPT,
            argumentation_user_prompt(claim, links),
            model=model_config,
            capabilities=self.capabilities,
            json_output=True,
        )
        assessment = parse_capability_output(ArgumentationAssessment, raw)
        evidence_ids = [evidence.id for _, evidence, _ in links]

        with self.store.graph.transaction():
            entry = self.store.append_log(
                owner_id,
                ProvenanceAction.SUMMARIZE,
                actor=Creator.AI,
                model_id=model_config.model_id,
                model_version=model_config.model_version,
                target_node_id=node_id,
                description="AI argumentation_check analysis completed",
                metadata={
                    "analysis": "argumentation_check",
                    "node_ids": [node_id] + evidence_ids,
                    "result": assessment.model_dump(),
                },
            )

        logging.getLogger("memograph.extraction").info(
            "argumentation check node=%s evidence=%s assessment=%s",
            node_id,
            len(evidence_ids),
            assessment.assessment,
        )
        return ArgumentationCheckResult(
            node_id=node_id,
            evidence_ids=evidence_ids,
            assessment=assessment,
            log_entry=entry,
        )
