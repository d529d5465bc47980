"""
Governance subsystem for memograph.

Every node and edge moves through Experimental, Active and Deprecated;
every move is audited.
"""

from memograph.governance.controller import GovernanceController, LinkSuggestReport

__all__ = [
    "GovernanceController",
    "LinkSuggestReport",
]
