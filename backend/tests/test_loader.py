import pandas as pd

from backend.app.loaders.graph_loader import load_graph_from_processed
from memograph.graph.graph_schema import Creator, EdgeType, GovernanceStatus

from conftest import OWNER


def _write(tmp_path, nodes, edges=None):
    pd.DataFrame(nodes).to_parquet(tmp_path / "nodes.parquet")
    if edges is not None:
        pd.DataFrame(edges).to_parquet(tmp_path / "edges.parquet")


def test_missing_directory_loads_nothing(store, tmp_path):
    report = load_graph_from_processed(store=store, processed_dir=tmp_path, owner_id=OWNER)
    assert report.nodes == 0
    assert store.graph.node_count(OWNER) == 0


def test_rows_are_imported_through_the_store(store, tmp_path):
    _write(
        tmp_path,
        nodes=[
            {"id": "n1", "title": "Water", "content": "boils at 100C", "type": "Claim", "tags": "physics, water"},
            {"id": "n2", "title": "Sea level data", "content": "", "type": "Evidence", "tags": None},
            {"id": "n3", "title": "", "content": "no title", "type": "Note", "tags": None},
        ],
        edges=[
            {"source": "n2", "target": "n1", "type": "supports", "weight": 0.8, "label": None},
            {"source": "n1", "target": "n3", "type": "related_to", "weight": None, "label": None},
            {"source": "n1", "target": "n1", "type": "related_to", "weight": 1.0, "label": None},
            {"source": "n1", "target": "n2", "type": "supports", "weight": 3.0, "label": None},
        ],
    )

    report = load_graph_from_processed(store=store, processed_dir=tmp_path, owner_id=OWNER)

    assert report.nodes == 2
    assert report.edges == 1
    assert len(report.skipped) == 4
    assert set(report.id_map) == {"n1", "n2"}

    water = store.get_node(OWNER, report.id_map["n1"])
    assert water.tags == ("physics", "water")
    assert water.status == GovernanceStatus.ACTIVE

    [edge] = store.graph.edges(OWNER)
    assert edge.type == EdgeType.SUPPORTS
    assert edge.weight == 0.8

    creates = store.list_logs(OWNER, action="create")
    assert len(creates) == 3
    assert all(e.actor == Creator.USER for e in creates)


def test_seeded_nodes_are_embedded_when_an_indexer_is_given(service, tmp_path):
    _write(tmp_path, nodes=[{"id": "a", "title": "Alpha"}, {"id": "b", "title": "Beta"}])

    report = load_graph_from_processed(
        store=service.store,
        processed_dir=tmp_path,
        owner_id=OWNER,
        indexer=service.indexer,
    )

    assert report.embedded == 2
    assert all(n.embedding is not None for n in service.store.list_nodes(OWNER))
