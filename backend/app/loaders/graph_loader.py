from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from memograph.embeddings.indexer import NodeEmbeddingIndexer
from memograph.errors import MemographError
from memograph.graph.ontology_store import OntologyStore


@dataclass
class LoadReport:
    nodes: int = 0
    edges: int = 0
    embedded: int = 0
    skipped: List[str] = field(default_factory=list)
    id_map: Dict[str, str] = field(default_factory=dict)


def load_graph_from_processed(
    *,
    store: OntologyStore,
    processed_dir: Path,
    owner_id: str,
    indexer: Optional[NodeEmbeddingIndexer] = None,
) -> LoadReport:
    """
    Import nodes/edges from parquet files through the Ontology Store.

    nodes.parquet: id, title, and optionally content, type, status,
    folder_id, tags. edges.parquet: source, target, and optionally type,
    weight, label. File ids are mapped to fresh node ids; rows the store
    rejects are skipped and reported. Every row is audited as a User
    create, like any other write.
    """
    report = LoadReport()
    nodes_path = processed_dir / "nodes.parquet"
    edges_path = processed_dir / "edges.parquet"

    if not nodes_path.exists():
        return report

    logger = logging.getLogger("memograph.load_graph")
    t0 = time.perf_counter()
    nodes_df = pd.read_parquet(nodes_path)
    edges_df = pd.read_parquet(edges_path) if edges_path.exists() else pd.DataFrame()
    logger.info(
        "read nodes=%s edges=%s in %.3fs",
        len(nodes_df),
        len(edges_df),
        time.perf_counter() - t0,
    )

    t_nodes = time.perf_counter()
    for i, row in enumerate(nodes_df.to_dict(orient="records")):
        external_id = str(row.get("id", i))
        try:
            node = store.create_node(
                owner_id,
                title=_text(row.get("title")),
                content=_text(row.get("content")),
                type=_text(row.get("type")) or "Note",
                status=_text(row.get("status")) or None,
                folder_id=_text(row.get("folder_id")) or None,
                tags=_tags(row.get("tags")),
            )
        except MemographError as exc:
            logger.warning("skipped node row %s: %s", external_id, exc)
            report.skipped.append(f"node {external_id}: {exc}")
            continue
        report.id_map[external_id] = node.id
        report.nodes += 1
    logger.info("added nodes=%s in %.3fs", report.nodes, time.perf_counter() - t_nodes)

    t_edges = time.perf_counter()
    for i, row in enumerate(edges_df.to_dict(orient="records")):
        source = report.id_map.get(str(row.get("source")))
        target = report.id_map.get(str(row.get("target")))
        if source is None or target is None:
            report.skipped.append(f"edge row {i}: unknown endpoint")
            continue
        weight = row.get("weight")
        try:
            store.create_edge(
                owner_id,
                source,
                target,
                type=_text(row.get("type")) or "related_to",
                weight=1.0 if _missing(weight) else float(weight),
                label=_text(row.get("label")) or None,
            )
        except MemographError as exc:
            logger.warning("skipped edge row %s: %s", i, exc)
            report.skipped.append(f"edge row {i}: {exc}")
            continue
        report.edges += 1
    logger.info("added edges=%s in %.3fs", report.edges, time.perf_counter() - t_edges)

    if indexer is not None:
        report.embedded = indexer.embed_missing(owner_id)

    return report


def _missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _text(value: Any) -> str:
    return "" if _missing(value) else str(value)


def _tags(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    try:
        return [str(t) for t in list(value)]
    except TypeError:
        return []
