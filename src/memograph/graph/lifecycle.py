from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from memograph.errors import InvalidTransitionError
from memograph.graph.graph_schema import (
    GovernanceStatus,
    ProvenanceAction,
    ProvenanceLogEntry,
)


Active = GovernanceStatus.ACTIVE
Experimental = GovernanceStatus.EXPERIMENTAL
Deprecated = GovernanceStatus.DEPRECATED

# (current, target) -> action. Deprecated is terminal.
_TRANSITIONS = {
    (Experimental, Active): ProvenanceAction.APPROVE,
    (Active, Deprecated): ProvenanceAction.DEPRECATE,
    (Experimental, Deprecated): ProvenanceAction.DEPRECATE,
}

# Re-requesting the state an entity already holds is a silent no-op.
_NO_OPS = {
    (Active, Active),
    (Deprecated, Deprecated),
}


def plan_transition(
    current: GovernanceStatus,
    target: GovernanceStatus,
) -> Optional[ProvenanceAction]:
    """
    Resolve a requested status change into the action to log.

    Returns None when nothing would change. Raises InvalidTransitionError
    for every other pair, including anything into Experimental and
    anything out of Deprecated.
    """
    if (current, target) in _NO_OPS:
        return None
    action = _TRANSITIONS.get((current, target))
    if action is None:
        raise InvalidTransitionError(current.value, target.value)
    return action


T = TypeVar("T")


@dataclass(frozen=True)
class Transition(Generic[T]):
    """
    Outcome of a governance transition on a node or edge.

    `action` and `log_entry` are None when the request was a no-op.
    """

    entity: T
    action: Optional[ProvenanceAction]
    log_entry: Optional[ProvenanceLogEntry]

    @property
    def changed(self) -> bool:
        return self.action is not None
