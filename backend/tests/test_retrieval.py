import numpy as np
import pytest

from memograph.config.settings import CapabilityConfig
from memograph.embeddings.indexer import NodeEmbeddingIndexer
from memograph.errors import ExternalCapabilityError, NotFoundError, ValidationError
from memograph.graph.graph_schema import EdgeType
from memograph.rag.retriever import GraphRetriever

from conftest import DIM, OTHER_OWNER, OWNER, DummyEncoder, unit


@pytest.fixture()
def retriever(store):
    return GraphRetriever(store, encoder=DummyEncoder())


def _note(store, title, vector=None, content=""):
    node = store.create_node(OWNER, title=title, content=content)
    if vector is not None:
        node = store.set_node_embedding(OWNER, node.id, vector)
    return node


# -------------------- Vector search --------------------


def test_vector_threshold_is_strict(store, retriever):
    _note(store, "Exact", unit(1.0))

    assert retriever.search_by_vector(OWNER, unit(1.0), threshold=1.0) == []
    hits = retriever.search_by_vector(OWNER, unit(1.0), threshold=0.99)
    assert [h.node.title for h in hits] == ["Exact"]
    assert hits[0].score == pytest.approx(1.0)


def test_vector_results_rank_by_score_then_id(store, retriever):
    twin_a = _note(store, "Twin A", unit(1.0))
    twin_b = _note(store, "Twin B", unit(1.0))
    near = _note(store, "Near", unit(1.0, 0.5))
    _note(store, "Orthogonal", unit(0.0, 1.0))
    _note(store, "No vector")

    hits = retriever.search_by_vector(OWNER, unit(1.0), threshold=0.5)

    twins = sorted([twin_a.id, twin_b.id])
    assert [h.node.id for h in hits] == twins + [near.id]
    assert hits[2].score == pytest.approx(1.0 / np.sqrt(1.25))


def test_vector_search_respects_limit_and_owner(store, retriever):
    for i in range(4):
        _note(store, f"N{i}", unit(1.0))
    foreign = store.create_node(OTHER_OWNER, title="Foreign")
    store.set_node_embedding(OTHER_OWNER, foreign.id, unit(1.0))

    hits = retriever.search_by_vector(OWNER, unit(1.0), threshold=0.0, limit=2)
    assert len(hits) == 2
    assert all(h.node.owner_id == OWNER for h in hits)


def test_deprecated_nodes_never_rank(store, retriever):
    node = _note(store, "Retired", unit(1.0), content="retired water notes")
    store.transition_node_status(OWNER, node.id, "Deprecated")

    assert retriever.search_by_vector(OWNER, unit(1.0), threshold=0.0) == []
    assert retriever.search_by_text(OWNER, "retired water notes") == []


def test_query_vector_dimension_is_checked(retriever):
    with pytest.raises(ValidationError):
        retriever.search_by_vector(OWNER, np.ones(DIM - 1))


@pytest.mark.parametrize("limit", [0, -3, True])
def test_limit_must_be_positive(retriever, limit):
    with pytest.raises(ValidationError):
        retriever.search_by_vector(OWNER, unit(1.0), limit=limit)


# -------------------- Text search --------------------


def test_text_search_matches_title_or_content(store, retriever):
    exact = _note(store, "water boils")
    partial = _note(store, "Water boils at 100C")
    in_body = _note(store, "Kitchen notes", content="the water boils quickly")
    _note(store, "Quantum mechanics")

    hits = retriever.search_by_text(OWNER, "water boils")

    assert hits[0].node.id == exact.id
    assert hits[0].score == pytest.approx(1.0)
    assert {h.node.id for h in hits} == {exact.id, partial.id, in_body.id}
    partial_hit = next(h for h in hits if h.node.id == partial.id)
    assert partial_hit.score == pytest.approx(12 / 20)


@pytest.mark.parametrize("query", ["", "   "])
def test_blank_text_query_returns_nothing(store, retriever, query):
    _note(store, "Anything")
    assert retriever.search_by_text(OWNER, query) == []


def test_text_search_is_case_insensitive(store, retriever):
    node = _note(store, "Photosynthesis")
    hits = retriever.search_by_text(OWNER, "PHOTOSYNTHESIS")
    assert [h.node.id for h in hits] == [node.id]


def test_text_search_matches_non_ascii_words(store, retriever):
    korean = _note(store, "물은 끓는다", content="해수면에서 측정")
    accented = _note(store, "Café crème")

    hits = retriever.search_by_text(OWNER, "물은 끓는다")
    assert [h.node.id for h in hits] == [korean.id]
    assert hits[0].score == pytest.approx(1.0)

    hits = retriever.search_by_text(OWNER, "CAFÉ")
    assert [h.node.id for h in hits] == [accented.id]
    assert hits[0].score == pytest.approx(0.5)


# -------------------- Neighbor context --------------------


def test_incoming_edge_is_reported_from_the_target(store, retriever):
    claim = _note(store, "Claim")
    evidence = _note(store, "Evidence")
    edge = store.create_edge(OWNER, evidence.id, claim.id, type="supports", weight=0.8)

    [ctx] = retriever.neighbor_context(claim.id, OWNER)
    assert ctx.node.id == evidence.id
    assert ctx.edge_id == edge.id
    assert ctx.edge_type == EdgeType.SUPPORTS
    assert ctx.weight == 0.8
    assert ctx.direction == "incoming"
    assert ctx.depth == 1

    [back] = retriever.neighbor_context(evidence.id, OWNER)
    assert back.node.id == claim.id
    assert back.direction == "outgoing"


def test_two_cycle_never_returns_origin(store, retriever):
    a = _note(store, "A")
    b = _note(store, "B")
    store.create_edge(OWNER, a.id, b.id, type="supports")
    store.create_edge(OWNER, b.id, a.id)

    for depth in (1, 2, 3):
        result = retriever.neighbor_context(a.id, OWNER, depth)
        assert [c.node.id for c in result] == [b.id]


def test_parallel_paths_yield_one_entry_per_node(store, retriever):
    a = _note(store, "A")
    b = _note(store, "B")
    c = _note(store, "C")
    d = _note(store, "D")
    store.create_edge(OWNER, a.id, b.id)
    store.create_edge(OWNER, a.id, c.id)
    store.create_edge(OWNER, b.id, d.id)
    store.create_edge(OWNER, c.id, d.id)

    shallow = retriever.neighbor_context(a.id, OWNER, 1)
    assert {x.node.id for x in shallow} == {b.id, c.id}

    deep = retriever.neighbor_context(a.id, OWNER, 2)
    assert sorted(x.node.id for x in deep) == sorted([b.id, c.id, d.id])
    assert next(x for x in deep if x.node.id == d.id).depth == 2


def test_deprecated_edges_and_nodes_are_not_crossed(store, retriever):
    a = _note(store, "A")
    b = _note(store, "B")
    c = _note(store, "C")
    dead_edge = store.create_edge(OWNER, a.id, b.id)
    store.create_edge(OWNER, a.id, c.id)
    store.transition_edge_status(OWNER, dead_edge.id, "Deprecated")
    store.transition_node_status(OWNER, c.id, "Deprecated")

    assert retriever.neighbor_context(a.id, OWNER, 3) == []


@pytest.mark.parametrize("depth", [0, 4, -1, "2", 1.5])
def test_depth_must_be_within_bounds(store, retriever, depth):
    a = _note(store, "A")
    with pytest.raises(ValidationError):
        retriever.neighbor_context(a.id, OWNER, depth)


def test_neighbor_context_of_foreign_node_is_not_found(store, retriever):
    foreign = store.create_node(OTHER_OWNER, title="Foreign")
    with pytest.raises(NotFoundError):
        retriever.neighbor_context(foreign.id, OWNER)


# -------------------- Composite lookups --------------------


def test_find_similar_embeds_the_text(store):
    encoder = DummyEncoder(table={"boiling water": unit(1.0, 0.1)})
    retriever = GraphRetriever(store, encoder=encoder)
    close = _note(store, "Close", unit(1.0))
    _note(store, "Far", unit(0.0, 1.0))

    hits = retriever.find_similar(OWNER, "boiling water")

    assert [h.node.id for h in hits] == [close.id]
    assert encoder.calls == ["boiling water"]


def test_find_similar_requires_text(retriever):
    with pytest.raises(ValidationError):
        retriever.find_similar(OWNER, "  ")


def test_find_similar_without_encoder(store):
    with pytest.raises(ValidationError):
        GraphRetriever(store).find_similar(OWNER, "anything")


def test_slow_encoder_surfaces_as_capability_error(store):
    retriever = GraphRetriever(
        store,
        encoder=DummyEncoder(delay_s=0.5),
        capabilities=CapabilityConfig(embed_timeout_s=0.05),
    )
    with pytest.raises(ExternalCapabilityError) as exc:
        retriever.find_similar(OWNER, "anything")
    assert exc.value.capability == "embed"


def test_hybrid_search_attaches_neighborhoods(store, retriever):
    hit = _note(store, "Photosynthesis basics")
    neighbor = _note(store, "Chlorophyll")
    store.create_edge(OWNER, neighbor.id, hit.id, type="part_of")

    results = retriever.hybrid_search(OWNER, "photosynthesis")

    assert [r.node.id for r in results] == [hit.id]
    assert [(c.node.id, c.direction) for c in results[0].context] == [
        (neighbor.id, "incoming")
    ]
    assert results[0].to_dict()["context"][0]["edge_type"] == "part_of"


# -------------------- Indexing --------------------


class _EditDuringEncode(DummyEncoder):
    """
    Renames a node the first time it is asked to encode anything.
    """

    def __init__(self, store, node_id):
        super().__init__()
        self.store = store
        self.node_id = node_id

    def _encode_one(self, text):
        if not self.calls:
            self.store.update_node(OWNER, self.node_id, title="Renamed")
        return super()._encode_one(text)


def test_vector_from_stale_text_is_not_stored(store):
    node = _note(store, "Original")
    indexer = NodeEmbeddingIndexer(store, _EditDuringEncode(store, node.id))

    result = indexer.embed_node(OWNER, node.id)

    assert result.title == "Renamed"
    assert result.embedding is None
    assert store.get_node(OWNER, node.id).embedding is None

    assert indexer.embed_node(OWNER, node.id).embedding is not None
    assert indexer.encoder.calls == ["Original", "Renamed"]
