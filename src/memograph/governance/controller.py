from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from memograph.config.settings import CapabilityConfig, ModelConfig, resolve_model
from memograph.errors import MemographError, ValidationError
from memograph.extraction.prompts import LINK_SUGGEST_SYSTEM_PROMPT, link_suggest_user_prompt
from memograph.extraction.schema import LinkSuggestion, LinkSuggestions, parse_capability_output
from memograph.graph.graph_schema import (
    Creator,
    Edge,
    GovernanceStatus,
    Node,
    Provenance,
    ProvenanceAction,
    ProvenanceMethod,
)
from memograph.graph.lifecycle import Transition
from memograph.graph.ontology_store import OntologyStore
from memograph.rag.generator import CompletionBackend, bounded_complete


@dataclass
class LinkSuggestReport:
    model_id: str
    proposed: int = 0
    edge_ids: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    log_entry_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model_id,
            "proposed": self.proposed,
            "edges_created": len(self.edge_ids),
            "edge_ids": list(self.edge_ids),
            "skipped": list(self.skipped),
            "log_entry_id": self.log_entry_id,
        }


class GovernanceController:
    """
    Lifecycle transitions and AI link suggestions.

    Approve and deprecate delegate to the store's single transition
    path; link suggestions always land as Experimental edges awaiting
    review.
    """

    def __init__(
        self,
        store: OntologyStore,
        backend: CompletionBackend | None = None,
        *,
        capabilities: CapabilityConfig | None = None,
    ) -> None:
        self.store = store
        self.backend = backend
        self.capabilities = capabilities or CapabilityConfig()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def approve_node(self, owner_id: str, node_id: str, *, actor: Creator = Creator.USER) -> Transition[Node]:
        return self._logged(
            self.store.transition_node_status(owner_id, node_id, GovernanceStatus.ACTIVE, actor=actor),
            "node",
        )

    def deprecate_node(self, owner_id: str, node_id: str, *, actor: Creator = Creator.USER) -> Transition[Node]:
        return self._logged(
            self.store.transition_node_status(owner_id, node_id, GovernanceStatus.DEPRECATED, actor=actor),
            "node",
        )

    def approve_edge(self, owner_id: str, edge_id: str, *, actor: Creator = Creator.USER) -> Transition[Edge]:
        return self._logged(
            self.store.transition_edge_status(owner_id, edge_id, GovernanceStatus.ACTIVE, actor=actor),
            "edge",
        )

    def deprecate_edge(self, owner_id: str, edge_id: str, *, actor: Creator = Creator.USER) -> Transition[Edge]:
        return self._logged(
            self.store.transition_edge_status(owner_id, edge_id, GovernanceStatus.DEPRECATED, actor=actor),
            "edge",
        )

    @staticmethod
    def _logged(transition: Transition, kind: str) -> Transition:
        logging.getLogger("memograph.governance").info(
            "%s %s action=%s status=%s",
            kind,
            transition.entity.id,
            transition.action.value if transition.action else "noop",
            transition.entity.status.value,
        )
        return transition

    # ------------------------------------------------------------------
    # Link suggestion
    # ------------------------------------------------------------------

    def link_suggest(
        self,
        owner_id: str,
        node_ids: Sequence[str],
        model: Optional[str] = None,
    ) -> LinkSuggestReport:
        """
        Ask the completion capability for links among the given nodes.
        """
        if self.backend is None:
            raise ValidationError("no completion backend configured", field="backend")
        node_ids = list(dict.fromkeys(node_ids))
        if len(node_ids) < 2:
            raise ValidationError("link suggestion needs at least two nodes", field="node_ids")

        nodes = [self.store.get_node(owner_id, nid) for nid in node_ids]
        model_config = resolve_model(model, default=self.capabilities.analysis_model)

        raw = bounded_complete(
            self.backend,
            LINK_SUGGEST_SYSTEM_PROMPT,
            link_suggest_user_prompt(nodes),
            model=model_config,
            capabilities=self.capabilities,
            json_output=True,
        )
        parsed = parse_capability_output(LinkSuggestions, raw)
        return self.apply_link_suggestions(
            owner_id,
            parsed.suggestions,
            model=model_config,
            node_ids=node_ids,
        )

    def apply_link_suggestions(
        self,
        owner_id: str,
        suggestions: Sequence[LinkSuggestion],
        *,
        model: ModelConfig | None = None,
        node_ids: Optional[Sequence[str]] = None,
    ) -> LinkSuggestReport:
        """
        Turn validated suggestions into Experimental edges.

        Suggestions pointing outside `node_ids` (when given), or rejected
        by the store, are skipped and reported.
        """
        model = model or self.capabilities.analysis_model
        allowed = set(node_ids) if node_ids is not None else None
        report = LinkSuggestReport(model_id=model.model_id, proposed=len(suggestions))
        log = logging.getLogger("memograph.governance")

        for i, suggestion in enumerate(suggestions):
            if allowed is not None and not {suggestion.source_id, suggestion.target_id} <= allowed:
                reason = "endpoint outside the requested nodes"
                log.warning("skipped suggestion[%s]: %s", i, reason)
                report.skipped.append(f"suggestion[{i}]: {reason}")
                continue
            try:
                edge = self.store.create_edge(
                    owner_id,
                    suggestion.source_id,
                    suggestion.target_id,
                    type=suggestion.type,
                    weight=suggestion.weight,
                    label=suggestion.reason or None,
                    provenance=Provenance.ai(
                        model=model.model_id,
                        model_version=model.model_version,
                        method=ProvenanceMethod.LINK_SUGGEST,
                        confidence=suggestion.weight,
                    ),
                )
            except MemographError as exc:
                log.warning("skipped suggestion[%s]: %s", i, exc)
                report.skipped.append(f"suggestion[{i}]: {exc}")
                continue
            report.edge_ids.append(edge.id)

        requested = list(node_ids) if node_ids is not None else []
        with self.store.graph.transaction():
            entry = self.store.append_log(
                owner_id,
                ProvenanceAction.LINK_SUGGEST,
                actor=Creator.AI,
                model_id=model.model_id,
                model_version=model.model_version,
                target_node_id=requested[0] if requested else None,
                description="AI link_suggest analysis completed",
                metadata={
                    "node_ids": requested,
                    "result": {"suggestions": [s.model_dump() for s in suggestions]},
                    "created_edge_ids": list(report.edge_ids),
                    "skipped": list(report.skipped),
                },
            )
        report.log_entry_id = entry.id

        log.info(
            "link_suggest proposed=%s created=%s skipped=%s",
            report.proposed,
            len(report.edge_ids),
            len(report.skipped),
        )
        return report
