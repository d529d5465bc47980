import pytest

from memograph.errors import ExternalCapabilityError, InvalidTransitionError, NotFoundError, ValidationError
from memograph.governance.controller import GovernanceController
from memograph.graph.graph_schema import (
    Creator,
    GovernanceStatus,
    Provenance,
    ProvenanceAction,
    ProvenanceMethod,
)
from memograph.graph.lifecycle import plan_transition

from conftest import OTHER_OWNER, OWNER, ScriptedBackend, make_config


A = GovernanceStatus.ACTIVE
X = GovernanceStatus.EXPERIMENTAL
D = GovernanceStatus.DEPRECATED


@pytest.mark.parametrize(
    "current,target,action",
    [
        (X, A, ProvenanceAction.APPROVE),
        (A, D, ProvenanceAction.DEPRECATE),
        (X, D, ProvenanceAction.DEPRECATE),
        (A, A, None),
        (D, D, None),
    ],
)
def test_allowed_transitions(current, target, action):
    assert plan_transition(current, target) == action


@pytest.mark.parametrize("current,target", [(D, A), (D, X), (A, X), (X, X)])
def test_forbidden_transitions(current, target):
    with pytest.raises(InvalidTransitionError):
        plan_transition(current, target)


@pytest.fixture()
def controller(store):
    return GovernanceController(store, capabilities=make_config().capabilities)


def _ai_node(store, title):
    return store.create_node(
        OWNER,
        title=title,
        type="Claim",
        provenance=Provenance.ai(model="gemini-2.5-pro", method=ProvenanceMethod.EXTRACT_GRAPH),
    )


# -------------------- Lifecycle --------------------


def test_approve_promotes_and_logs(store, controller):
    node = _ai_node(store, "Pending claim")

    result = controller.approve_node(OWNER, node.id)

    assert result.changed
    assert result.entity.status == A
    entry = result.log_entry
    assert entry.action == ProvenanceAction.APPROVE
    assert entry.actor == Creator.USER
    assert entry.before_state["status"] == "Experimental"
    assert entry.after_state["status"] == "Active"


def test_repeated_approve_is_a_silent_no_op(store, controller):
    node = _ai_node(store, "Pending claim")
    controller.approve_node(OWNER, node.id)
    before = len(store.list_logs(OWNER))

    again = controller.approve_node(OWNER, node.id)

    assert not again.changed
    assert again.log_entry is None
    assert len(store.list_logs(OWNER)) == before


def test_deprecated_is_terminal(store, controller):
    node = store.create_node(OWNER, title="Old idea")
    controller.deprecate_node(OWNER, node.id)
    before = len(store.list_logs(OWNER))

    with pytest.raises(InvalidTransitionError):
        controller.approve_node(OWNER, node.id)

    assert store.get_node(OWNER, node.id).status == D
    assert len(store.list_logs(OWNER)) == before
    assert not controller.deprecate_node(OWNER, node.id).changed


def test_deprecating_a_node_leaves_its_edges_alone(store, controller):
    a = store.create_node(OWNER, title="A")
    b = store.create_node(OWNER, title="B")
    edge = store.create_edge(OWNER, a.id, b.id)

    controller.deprecate_node(OWNER, a.id)

    assert store.get_edge(OWNER, edge.id).status == A


def test_edge_lifecycle(store, controller):
    a = store.create_node(OWNER, title="A")
    b = store.create_node(OWNER, title="B")
    edge = store.create_edge(
        OWNER,
        a.id,
        b.id,
        provenance=Provenance.ai(model="gpt-4o-mini", method=ProvenanceMethod.LINK_SUGGEST),
    )

    approved = controller.approve_edge(OWNER, edge.id)
    assert approved.entity.status == A
    assert approved.log_entry.target_edge_id == edge.id

    deprecated = controller.deprecate_edge(OWNER, edge.id)
    assert deprecated.entity.status == D
    assert store.edges_for_node(OWNER, a.id) == []

    with pytest.raises(InvalidTransitionError):
        controller.approve_edge(OWNER, edge.id)


def test_transitions_respect_ownership(store, controller):
    foreign = store.create_node(OTHER_OWNER, title="Theirs")
    with pytest.raises(NotFoundError):
        controller.deprecate_node(OWNER, foreign.id)
    assert store.get_node(OTHER_OWNER, foreign.id).status == A


# -------------------- Link suggestion --------------------


def _suggestion(source, target, type="supports", weight=0.8, reason="shared topic"):
    return {
        "source_id": source,
        "target_id": target,
        "type": type,
        "weight": weight,
        "reason": reason,
    }


def test_link_suggest_creates_experimental_edges(store):
    a = store.create_node(OWNER, title="A", content="alpha")
    b = store.create_node(OWNER, title="B", content="beta")
    backend = ScriptedBackend({"suggestions": [_suggestion(a.id, b.id)]})
    controller = GovernanceController(store, backend, capabilities=make_config().capabilities)

    report = controller.link_suggest(OWNER, [a.id, b.id])

    [edge_id] = report.edge_ids
    edge = store.get_edge(OWNER, edge_id)
    assert edge.status == X
    assert edge.label == "shared topic"
    assert edge.weight == 0.8
    assert edge.provenance.confidence == 0.8
    assert edge.provenance.method == ProvenanceMethod.LINK_SUGGEST
    assert edge.provenance.model == "gemini-2.5-pro"

    assert backend.calls[0]["json"] is True
    assert a.id in backend.calls[0]["user"]

    entry = store.list_logs(OWNER, action="link_suggest")[0]
    assert entry.id == report.log_entry_id
    assert entry.actor == Creator.AI
    assert entry.metadata["node_ids"] == [a.id, b.id]
    assert entry.metadata["created_edge_ids"] == [edge_id]


def test_link_suggest_skips_bad_suggestions(store):
    a = store.create_node(OWNER, title="A")
    b = store.create_node(OWNER, title="B")
    outsider = store.create_node(OWNER, title="Outsider")
    backend = ScriptedBackend(
        {
            "suggestions": [
                _suggestion(a.id, b.id),
                _suggestion(a.id, b.id),
                _suggestion(a.id, a.id),
                _suggestion(b.id, a.id, weight=1.5),
                _suggestion(a.id, outsider.id),
            ]
        }
    )
    controller = GovernanceController(store, backend, capabilities=make_config().capabilities)

    report = controller.link_suggest(OWNER, [a.id, b.id], model="gpt-4o-mini")

    assert report.proposed == 5
    assert len(report.edge_ids) == 1
    assert len(report.skipped) == 4
    assert report.to_dict()["model"] == "gpt-4o-mini"
    assert store.graph.edge_count(OWNER) == 1


def test_link_suggest_needs_two_distinct_nodes(store):
    a = store.create_node(OWNER, title="A")
    controller = GovernanceController(store, ScriptedBackend("{}"), capabilities=make_config().capabilities)

    with pytest.raises(ValidationError):
        controller.link_suggest(OWNER, [a.id, a.id])


def test_link_suggest_rejects_unknown_model(store):
    a = store.create_node(OWNER, title="A")
    b = store.create_node(OWNER, title="B")
    controller = GovernanceController(store, ScriptedBackend("{}"), capabilities=make_config().capabilities)

    with pytest.raises(ValidationError) as exc:
        controller.link_suggest(OWNER, [a.id, b.id], model="not-a-model")
    assert exc.value.field == "model"


def test_malformed_suggestions_write_nothing(store):
    a = store.create_node(OWNER, title="A")
    b = store.create_node(OWNER, title="B")
    backend = ScriptedBackend({"suggestions": [{"source_id": a.id}]})
    controller = GovernanceController(store, backend, capabilities=make_config().capabilities)
    before = len(store.list_logs(OWNER))

    with pytest.raises(ExternalCapabilityError):
        controller.link_suggest(OWNER, [a.id, b.id])

    assert store.graph.edge_count(OWNER) == 0
    assert len(store.list_logs(OWNER)) == before
