"""
Pytest configuration and fixtures for the website query and widget tests.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest
from langchain_core.documents import Document

from agents.retrieval_qa import QAResult
from retrieval.embedding import EmbeddedDocument
from retrieval.vector_store import TemporaryVectorStore, VectorStoreRegistry


class FakeLoader:
    """Returns a short synthetic page per URL."""

    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages = pages or {}
        self.loaded: List[str] = []

    async def load(self, urls: Sequence[str]) -> List[Document]:
        documents = []
        for url in urls:
            self.loaded.append(url)
            text = self.pages.get(url, f"Content of {url}. " * 5)
            documents.append(Document(page_content=text, metadata={"url": url, "title": url}))
        return documents


class FakeEmbedder:
    """Deterministic letter-count vectors; can be told to fail for given URLs."""

    def __init__(self, fail_for: Sequence[str] = ()) -> None:
        self.fail_for = set(fail_for)
        self.error = RuntimeError("embedding failed")
        self.embedded_urls: List[str] = []

    @staticmethod
    def vector(text: str) -> List[float]:
        lowered = text.lower()
        return [float(lowered.count(letter)) + 0.1 for letter in "aeiou"]

    async def embed_documents(self, documents: Sequence[Document]) -> List[EmbeddedDocument]:
        for doc in documents:
            url = doc.metadata.get("url")
            if url in self.fail_for:
                raise self.error
            self.embedded_urls.append(url)
        return [EmbeddedDocument(document=doc, embedding=self.vector(doc.page_content)) for doc in documents]

    async def embed_query(self, text: str) -> List[float]:
        return self.vector(text)


class FakeChain:
    """Answers after an optional per-URL delay; records URLs whose call was cancelled."""

    def __init__(self, store: TemporaryVectorStore, delays: Dict[str, float], cancelled: List[str]) -> None:
        self.store = store
        self.delays = delays
        self.cancelled = cancelled

    async def call(self, question: str) -> QAResult:
        try:
            await asyncio.sleep(self.delays.get(self.store.identifier, 0))
        except asyncio.CancelledError:
            self.cancelled.append(self.store.identifier)
            raise
        return QAResult(answer=f"{self.store.identifier} says: {question}")


class ProgressRecorder:
    def __init__(self) -> None:
        self.messages: List[str] = []

    async def __call__(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def fake_loader() -> FakeLoader:
    return FakeLoader()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def registry() -> VectorStoreRegistry:
    return VectorStoreRegistry()


@pytest.fixture
def progress() -> ProgressRecorder:
    return ProgressRecorder()


@pytest.fixture
def chain_delays() -> Dict[str, float]:
    return {}


@pytest.fixture
def chain_cancellations() -> List[str]:
    return []


@pytest.fixture
def make_agent(fake_loader, fake_embedder, registry, progress, chain_delays, chain_cancellations):
    """Build a WebsiteQueryAgent wired to fakes; keyword overrides win."""
    from agents.website_query_agent import WebsiteQueryAgent

    def factory(**overrides):
        kwargs = dict(
            report_progress=progress,
            loader=fake_loader,
            embedder=fake_embedder,
            registry=registry,
            qa_chain_factory=lambda store: FakeChain(store, chain_delays, chain_cancellations),
        )
        kwargs.update(overrides)
        return WebsiteQueryAgent(**kwargs)

    return factory


@pytest.fixture(autouse=True)
def no_openai_key(monkeypatch):
    """Tests never talk to OpenAI."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
