from __future__ import annotations

import logging
import time

from memograph.config.settings import CapabilityConfig
from memograph.embeddings.encoder import EmbeddingEncoder
from memograph.graph.graph_schema import GovernanceStatus, Node
from memograph.graph.ontology_store import OntologyStore
from memograph.utils.text import truncate
from memograph.utils.time import elapsed_ms
from memograph.utils.timeouts import call_with_timeout


def node_text(node: Node) -> str:
    """
    The text a node is embedded from.
    """
    if not node.content:
        return node.title
    return f"{node.title}\n\n{node.content}"


class NodeEmbeddingIndexer:
    """
    Computes and stores node embeddings.

    The encoder runs outside any store transaction; only the final
    write of the vector takes the lock.
    """

    def __init__(
        self,
        store: OntologyStore,
        encoder: EmbeddingEncoder,
        *,
        capabilities: CapabilityConfig | None = None,
    ) -> None:
        self.store = store
        self.encoder = encoder
        self.capabilities = capabilities or CapabilityConfig()

    def embed_text(self, text: str):
        text = truncate(text, self.capabilities.max_embed_chars)
        return call_with_timeout(
            lambda: self.encoder.encode_one(text),
            capability="embed",
            timeout_s=self.capabilities.embed_timeout_s,
        )

    def embed_node(self, owner_id: str, node_id: str) -> Node:
        """
        Embed a node's current text.

        If the title or content changes while the encoder runs, the vector
        is dropped and the node is returned as it now stands.
        """
        node = self.store.get_node(owner_id, node_id)
        text = node_text(node)
        vector = self.embed_text(text)
        with self.store.graph.transaction():
            current = self.store.get_node(owner_id, node_id)
            if node_text(current) != text:
                logging.getLogger("memograph.embeddings").info(
                    "node %s changed while embedding; vector discarded",
                    node_id,
                )
                return current
            return self.store.set_node_embedding(owner_id, node_id, vector)

    def embed_missing(self, owner_id: str) -> int:
        """
        Embed every non-deprecated node that has no vector yet.
        """
        t0 = time.perf_counter()
        count = 0
        for node in self.store.list_nodes(owner_id):
            if node.embedding is not None or node.status == GovernanceStatus.DEPRECATED:
                continue
            if self.embed_node(owner_id, node.id).embedding is not None:
                count += 1

        logging.getLogger("memograph.embeddings").info(
            "embedded %s nodes in %.2f ms",
            count,
            elapsed_ms(t0),
        )
        return count
