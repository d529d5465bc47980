import pytest

from memograph.errors import ExternalCapabilityError, NotFoundError, ValidationError
from memograph.extraction.pipeline import ExtractionPipeline, ExtractionState
from memograph.extraction.schema import (
    SummaryAnalysis,
    ToulminExtraction,
    parse_capability_output,
    strip_json_fence,
)
from memograph.extraction.summarizer import Summarizer
from memograph.graph.graph_schema import (
    Creator,
    GovernanceStatus,
    NodeType,
    ProvenanceAction,
    ProvenanceMethod,
)

from conftest import OWNER, ScriptedBackend, make_config


TEXT = "Water boils at 100C at sea level. Lower pressure at altitude lowers the boiling point."


def _claim(text, qualifier=0.8, type="Claim"):
    return {"text": text, "qualifier": qualifier, "type": type}


def _rel(source, target, type="supports", weight=0.9):
    return {"source_index": source, "target_index": target, "type": type, "weight": weight}


def _pipeline(store, *responses, **capabilities):
    return ExtractionPipeline(
        store,
        ScriptedBackend(*responses),
        capabilities=make_config(**capabilities).capabilities,
    )


def _nothing_written(store, before_logs):
    return store.graph.node_count(OWNER) == 0 and len(store.list_logs(OWNER)) == before_logs


# -------------------- Happy path --------------------


def test_extraction_commits_claims_and_resolvable_relationships(store):
    pipeline = _pipeline(
        store,
        {
            "claims": [
                _claim("Water boils at 100C at sea level", 0.9),
                _claim("Measurements at sea level observe 100C", 0.8, "Evidence"),
                _claim("Boiling point drops with altitude", 0.7),
            ],
            "relationships": [_rel(1, 0), _rel(0, 5)],
            "entities": [],
        },
    )

    report = pipeline.run(OWNER, TEXT)

    assert report.state == ExtractionState.COMMITTED
    assert report.nodes_created == 3
    assert report.edges_created == 1
    assert report.proposed_relationships == 2
    assert len(report.skipped) == 1
    assert "relationship[1]" in report.skipped[0]

    nodes = [store.get_node(OWNER, nid) for nid in report.node_ids]
    assert all(n.status == GovernanceStatus.EXPERIMENTAL for n in nodes)
    assert all(n.provenance.creator == Creator.AI for n in nodes)
    assert [n.provenance.confidence for n in nodes] == [0.9, 0.8, 0.7]
    assert nodes[1].type == NodeType.EVIDENCE

    edge = store.get_edge(OWNER, report.edge_ids[0])
    assert (edge.source_id, edge.target_id) == (nodes[1].id, nodes[0].id)
    assert edge.status == GovernanceStatus.EXPERIMENTAL
    assert edge.provenance.method == ProvenanceMethod.EXTRACT_GRAPH

    entry = store.list_logs(OWNER, action="extract_graph")[0]
    assert entry.id == report.log_entry_id
    assert entry.description == "Extracted 3 nodes and 1 edges from text"
    assert entry.metadata["extraction_summary"] == {
        "claims": 3,
        "entities": 0,
        "relationships": 2,
    }
    assert entry.metadata["created_node_ids"] == report.node_ids


def test_entities_become_nodes_outside_the_claim_index(store):
    pipeline = _pipeline(
        store,
        {
            "claims": [_claim("Pressure governs boiling")],
            "relationships": [_rel(0, 1)],
            "entities": [{"name": "Blaise Pascal", "type": "Person"}],
        },
    )

    report = pipeline.run(OWNER, TEXT)

    assert report.nodes_created == 2
    assert report.edges_created == 0
    entity = store.get_node(OWNER, report.node_ids[1])
    assert entity.type == NodeType.PERSON
    assert entity.content == "Entity: Blaise Pascal"
    assert entity.provenance.confidence is None


def test_long_claim_titles_are_truncated(store):
    text = "x" * 150
    report = _pipeline(store, {"claims": [_claim(text)]}).run(OWNER, TEXT)

    node = store.get_node(OWNER, report.node_ids[0])
    assert len(node.title) == 100
    assert node.content == text


def test_source_node_is_recorded_as_provenance(store):
    source = store.create_node(OWNER, title="Notebook page", content=TEXT)
    report = _pipeline(store, {"claims": [_claim("Water boils at 100C")]}).run(
        OWNER, TEXT, source_node_id=source.id
    )

    node = store.get_node(OWNER, report.node_ids[0])
    assert node.provenance.source_node_id == source.id
    entry = store.list_logs(OWNER, action="extract_graph")[0]
    assert entry.target_node_id == source.id
    assert entry.metadata["source_node_id"] == source.id


def test_fenced_json_is_accepted(store):
    fenced = '```json\n{"claims": [{"text": "A", "qualifier": 0.5, "type": "Claim"}]}\n```'
    report = _pipeline(store, fenced).run(OWNER, TEXT)
    assert report.nodes_created == 1


def test_items_the_store_rejects_are_skipped(store):
    pipeline = _pipeline(
        store,
        {
            "claims": [_claim("Overconfident", 1.4), _claim("Fine", 0.5), _claim("   ")],
            "relationships": [_rel(0, 1), _rel(1, 1)],
        },
    )

    report = pipeline.run(OWNER, TEXT)

    assert report.state == ExtractionState.COMMITTED
    assert report.nodes_created == 1
    assert report.edges_created == 0
    assert len(report.skipped) == 4


# -------------------- Failure --------------------


@pytest.mark.parametrize(
    "response",
    [
        "Sure! Here are the claims you asked for.",
        {"claims": [], "relationships": [], "entities": [], "notes": "extra"},
        {"claims": [{"text": "A", "qualifier": "high", "type": "Claim"}]},
        {"claims": [_claim("A", type="Opinion")]},
        RuntimeError("provider unavailable"),
        "",
    ],
)
def test_bad_capability_output_fails_without_writes(store, response):
    before = len(store.list_logs(OWNER))
    report = _pipeline(store, response).run(OWNER, TEXT)

    assert report.state == ExtractionState.FAILED
    assert report.reason
    assert report.node_ids == []
    assert _nothing_written(store, before)


def test_capability_timeout_fails_without_writes(store):
    pipeline = ExtractionPipeline(
        store,
        ScriptedBackend({"claims": [_claim("late")]}, delay_s=0.5),
        capabilities=make_config(completion_timeout_s=0.05).capabilities,
    )

    report = pipeline.run(OWNER, TEXT)

    assert report.state == ExtractionState.FAILED
    assert "timed out" in report.reason
    assert _nothing_written(store, 0)


@pytest.mark.parametrize("text", ["", "   ", "x" * 50001])
def test_input_text_is_validated(store, text):
    with pytest.raises(ValidationError):
        _pipeline(store, {}).run(OWNER, text)


def test_unknown_source_node_is_not_found(store):
    with pytest.raises(NotFoundError):
        _pipeline(store, {}).run(OWNER, TEXT, source_node_id="missing")


def test_empty_extraction_still_commits_a_summary(store):
    report = _pipeline(store, {"claims": [], "relationships": [], "entities": []}).run(OWNER, TEXT)

    assert report.state == ExtractionState.COMMITTED
    assert report.nodes_created == 0
    assert store.list_logs(OWNER)[0].action == ProvenanceAction.EXTRACT_GRAPH


# -------------------- Schema --------------------


def test_strip_json_fence_leaves_plain_json_alone():
    assert strip_json_fence('{"a": 1}') == '{"a": 1}'
    assert strip_json_fence('```\n{"a": 1}\n```') == '{"a": 1}'


def test_schema_errors_name_the_location():
    with pytest.raises(ExternalCapabilityError) as exc:
        parse_capability_output(ToulminExtraction, '{"claims": [{"text": 3}]}')
    assert "claims.0.text" in str(exc.value)


# -------------------- Summarizer --------------------


def test_summarize_logs_analysis_without_touching_the_node(store):
    node = store.create_node(OWNER, title="Boiling", content=TEXT)
    analysis = {
        "summary": "Boiling depends on pressure.",
        "claim": "Water boils at 100C at sea level",
        "grounds": ["sea level measurements"],
        "qualifier": 0.85,
    }
    backend = ScriptedBackend(analysis)
    summarizer = Summarizer(store, backend, capabilities=make_config().capabilities)

    result = summarizer.summarize(OWNER, node.id, model="gemini-2.5-flash")

    assert result.analysis == SummaryAnalysis(**analysis)
    assert store.get_node(OWNER, node.id) == node
    assert TEXT in backend.calls[0]["user"]
    assert backend.calls[0]["model"] == "gemini-2.5-flash"

    entry = result.log_entry
    assert entry.action == ProvenanceAction.SUMMARIZE
    assert entry.target_node_id == node.id
    assert entry.metadata["result"]["qualifier"] == 0.85


def test_summarize_rejects_out_of_range_qualifier(store):
    node = store.create_node(OWNER, title="Boiling", content=TEXT)
    backend = ScriptedBackend({"summary": "s", "claim": "c", "grounds": [], "qualifier": 2.0})
    summarizer = Summarizer(store, backend, capabilities=make_config().capabilities)

    with pytest.raises(ExternalCapabilityError):
        summarizer.summarize(OWNER, node.id)
    assert len(store.list_logs(OWNER)) == 1


# -------------------- Argumentation check --------------------


ASSESSMENT = {
    "assessment": "moderate",
    "missing_evidence": ["measurements at altitude"],
    "potential_rebuttals": ["pressure changes the boiling point"],
    "suggested_qualifier": 0.6,
    "reasoning": "One direct measurement supports the claim.",
}


def test_argumentation_check_sends_claim_with_live_evidence(store):
    claim = store.create_node(OWNER, title="Water boils at 100C", content="at sea level", type="Claim")
    support = store.create_node(OWNER, title="Sea level data", content="measured at 100C", type="Evidence")
    retired = store.create_node(OWNER, title="Old reading", content="99C", type="Evidence")
    loose = store.create_node(OWNER, title="Kitchen note")
    stale = store.create_node(OWNER, title="Stale evidence", type="Evidence")
    store.create_edge(OWNER, support.id, claim.id, type="supports", weight=0.9)
    store.create_edge(OWNER, retired.id, claim.id, type="refutes", weight=0.4)
    store.transition_node_status(OWNER, retired.id, "Deprecated")
    store.create_edge(OWNER, loose.id, claim.id, type="related_to")
    stale_edge = store.create_edge(OWNER, stale.id, claim.id, type="supports")
    store.transition_edge_status(OWNER, stale_edge.id, "Deprecated")

    backend = ScriptedBackend(ASSESSMENT)
    summarizer = Summarizer(store, backend, capabilities=make_config().capabilities)

    result = summarizer.check_argumentation(OWNER, claim.id)

    assert result.evidence_ids == [support.id]
    assert result.assessment.assessment == "moderate"
    assert backend.calls[0]["json"] is True
    user = backend.calls[0]["user"]
    assert user.startswith("CLAIM AND EVIDENCE:\nCLAIM: Water boils at 100C\nat sea level\n")
    assert "- [supports, weight 0.90] Sea level data: measured at 100C" in user
    assert "Old reading" not in user
    assert "Kitchen note" not in user
    assert "Stale evidence" not in user

    entry = result.log_entry
    assert entry.action == ProvenanceAction.SUMMARIZE
    assert entry.actor == Creator.AI
    assert entry.target_node_id == claim.id
    assert entry.metadata == {
        "analysis": "argumentation_check",
        "node_ids": [claim.id, support.id],
        "result": ASSESSMENT,
    }


def test_argumentation_check_without_evidence_says_so(store):
    claim = store.create_node(OWNER, title="Lonely claim", type="Claim")
    backend = ScriptedBackend(ASSESSMENT)
    summarizer = Summarizer(store, backend, capabilities=make_config().capabilities)

    result = summarizer.check_argumentation(OWNER, claim.id)

    assert result.evidence_ids == []
    assert backend.calls[0]["user"].endswith("EVIDENCE:\n(No connected evidence)")


def test_argumentation_check_needs_a_claim(store):
    note = store.create_node(OWNER, title="Just a note")
    backend = ScriptedBackend(ASSESSMENT)
    summarizer = Summarizer(store, backend, capabilities=make_config().capabilities)

    with pytest.raises(ValidationError):
        summarizer.check_argumentation(OWNER, note.id)
    assert backend.calls == []


@pytest.mark.parametrize(
    "change",
    [{"assessment": "solid"}, {"suggested_qualifier": 1.5}, {"verdict": "ok"}],
)
def test_argumentation_check_rejects_malformed_assessment(store, change):
    claim = store.create_node(OWNER, title="Claim", type="Claim")
    summarizer = Summarizer(
        store,
        ScriptedBackend({**ASSESSMENT, **change}),
        capabilities=make_config().capabilities,
    )

    with pytest.raises(ExternalCapabilityError):
        summarizer.check_argumentation(OWNER, claim.id)
    assert store.list_logs(OWNER, action="summarize") == []
