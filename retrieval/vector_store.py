"""
In-memory per-URL vector indexes.

Each fetched page gets its own `TemporaryVectorStore`, registered under the raw
URL string so later queries against the same page skip fetching and embedding.
Similarity is brute-force cosine over a NumPy matrix with pre-computed norms.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from langchain_core.documents import Document

from .embedding import EmbeddedDocument

logger = logging.getLogger(__name__)


class TemporaryVectorStore:
    """Cosine-similarity index over the embedded chunks of one page."""

    def __init__(self, identifier: str, embedded_documents: Sequence[EmbeddedDocument] = ()) -> None:
        self.identifier = identifier
        self._documents: List[Document] = []
        self._embeddings: Optional[np.ndarray] = None
        self._norms: Optional[np.ndarray] = None
        if embedded_documents:
            self.set(embedded_documents)

    def __len__(self) -> int:
        return len(self._documents)

    def set(self, embedded_documents: Sequence[EmbeddedDocument]) -> None:
        """Replace the indexed chunks."""

        self._documents = [item.document for item in embedded_documents]
        if not self._documents:
            self._embeddings = np.empty((0, 0), dtype=np.float32)
            self._norms = np.empty((0,), dtype=np.float32)
            return
        self._embeddings = np.array([item.embedding for item in embedded_documents], dtype=np.float32)
        self._norms = np.linalg.norm(self._embeddings, axis=1)
        logger.info(
            "Indexed %d chunks for %s, shape=%s",
            len(self._documents),
            self.identifier,
            self._embeddings.shape,
        )

    def search(self, query_embedding: Sequence[float], top_k: int = 4) -> List[Tuple[Document, float]]:
        """Return up to `top_k` `(document, score)` pairs, best first."""

        if not self._documents or self._embeddings is None or top_k <= 0:
            return []

        query = np.array(query_embedding, dtype=np.float32)
        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return []

        denominators = self._norms * query_norm
        denominators[denominators == 0] = np.inf
        similarities = np.dot(self._embeddings, query) / denominators

        if top_k >= len(similarities):
            top_indices = np.argsort(similarities)[::-1]
        else:
            top_indices = np.argpartition(similarities, -top_k)[-top_k:]
            top_indices = top_indices[np.argsort(similarities[top_indices])[::-1]]

        return [(self._documents[idx], float(similarities[idx])) for idx in top_indices]


class VectorStoreRegistry:
    """Keyed collection of per-URL stores, safe for concurrent inserts."""

    def __init__(self) -> None:
        self._stores: Dict[str, TemporaryVectorStore] = {}
        self._lock = threading.Lock()

    def get(self, identifier: str) -> Optional[TemporaryVectorStore]:
        with self._lock:
            return self._stores.get(identifier)

    def create(self, identifier: str, embedded_documents: Sequence[EmbeddedDocument]) -> TemporaryVectorStore:
        store = TemporaryVectorStore(identifier, embedded_documents)
        with self._lock:
            self._stores[identifier] = store
        return store

    def remove(self, identifier: str) -> None:
        with self._lock:
            self._stores.pop(identifier, None)

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)


default_registry = VectorStoreRegistry()
