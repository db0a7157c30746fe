"""OpenAI embeddings for page chunks and queries."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence

from langchain_core.documents import Document
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmbeddedDocument:
    """A chunk together with its embedding vector."""

    document: Document
    embedding: List[float]


class OpenAIEmbedder:
    """Batches chunk texts through the OpenAI embeddings endpoint."""

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        batch_size: int = 64,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._model = model or os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
        self._batch_size = max(1, batch_size)
        if client is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise EnvironmentError("OPENAI_API_KEY is not set.")
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url or os.getenv("OPENAI_API_BASE_URL", "https://api.openai.com/v1"),
            )
        self._client = client

    @property
    def model(self) -> str:
        return self._model

    async def embed_documents(self, documents: Sequence[Document]) -> List[EmbeddedDocument]:
        embedded: List[EmbeddedDocument] = []
        for start in range(0, len(documents), self._batch_size):
            batch = list(documents[start : start + self._batch_size])
            vectors = await self._embed_texts([doc.page_content for doc in batch])
            embedded.extend(EmbeddedDocument(document=doc, embedding=vec) for doc, vec in zip(batch, vectors))
        logger.info("Embedded %d chunks with %s", len(embedded), self._model)
        return embedded

    async def embed_query(self, text: str) -> List[float]:
        vectors = await self._embed_texts([text])
        return vectors[0]

    async def _embed_texts(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        logger.debug("Requesting %d embeddings from %s", len(texts), self._model)
        response = await self._client.embeddings.create(model=self._model, input=texts)
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]
