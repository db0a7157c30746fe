"""
Retrieval building blocks used by the website query agent: loading pages,
splitting them into chunks, embedding the chunks and indexing them per URL.
"""

from .embedding import EmbeddedDocument, OpenAIEmbedder  # noqa: F401
from .text_splitter import build_text_splitter  # noqa: F401
from .vector_store import TemporaryVectorStore, VectorStoreRegistry, default_registry  # noqa: F401
from .web_loader import WebLoader  # noqa: F401

__all__ = [
    "EmbeddedDocument",
    "OpenAIEmbedder",
    "TemporaryVectorStore",
    "VectorStoreRegistry",
    "WebLoader",
    "build_text_splitter",
    "default_registry",
]
