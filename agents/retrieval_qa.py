"""RetrievalQAChain: answers a question from the chunks of one indexed page."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from autogen_agentchat.agents import AssistantAgent
from autogen_agentchat.base import TaskResult
from autogen_agentchat.messages import BaseChatMessage, ModelClientStreamingChunkEvent
from autogen_core.models import ChatCompletionClient, ModelInfo
from autogen_ext.models.openai import OpenAIChatCompletionClient
from langchain_core.documents import Document

from retrieval.embedding import OpenAIEmbedder
from retrieval.vector_store import TemporaryVectorStore

from .qa_prompts import QA_SYSTEM_PROMPT, qa_prompt

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], Awaitable[None]]


@dataclass(slots=True)
class QAResult:
    answer: str
    source_documents: List[Document] = field(default_factory=list)


class RetrievalQAChain:
    """Retrieves the closest chunks and asks a streaming chat model to answer."""

    def __init__(
        self,
        *,
        vector_store: TemporaryVectorStore,
        embedder: OpenAIEmbedder,
        model_client: ChatCompletionClient,
        top_k: int = 4,
        on_token: Optional[TokenCallback] = None,
    ) -> None:
        self._vector_store = vector_store
        self._embedder = embedder
        self._model_client = model_client
        self._top_k = max(1, top_k)
        self._on_token = on_token

    async def call(self, question: str) -> QAResult:
        if not question or not question.strip():
            raise ValueError("Question must be a non-empty string.")

        query_embedding = await self._embedder.embed_query(question)
        hits = self._vector_store.search(query_embedding, top_k=self._top_k)
        documents = [doc for doc, _ in hits]
        logger.info(
            "Retrieved %d chunks from %s for question: %s",
            len(documents),
            self._vector_store.identifier,
            question,
        )

        prompt = qa_prompt(question=question, context=self._format_context(documents))
        assistant = self._build_assistant()
        result: Optional[TaskResult] = None
        async for item in assistant.run_stream(task=prompt):
            if isinstance(item, ModelClientStreamingChunkEvent):
                if self._on_token is not None:
                    await self._on_token(item.content)
            elif isinstance(item, TaskResult):
                result = item
        if result is None:
            raise RuntimeError("Retrieval QA stream ended without a result.")

        answer = self._extract_text(result.messages, preferred_source=assistant.name)
        logger.debug("Retrieval QA answer for %s: %s", self._vector_store.identifier, answer)
        return QAResult(answer=answer, source_documents=documents)

    def _build_assistant(self) -> AssistantAgent:
        # A fresh agent per call; concurrent URLs never share conversation state.
        return AssistantAgent(
            name="website_qa",
            model_client=self._model_client,
            system_message=QA_SYSTEM_PROMPT,
            description="Answers questions from retrieved web page chunks.",
            tools=[],
            model_client_stream=True,
        )

    @staticmethod
    def _format_context(documents: Iterable[Document]) -> str:
        return "\n\n".join(doc.page_content for doc in documents)

    @staticmethod
    def _last_chat_message(messages: Iterable[Any], preferred_source: Optional[str] = None) -> BaseChatMessage:
        candidate: Optional[BaseChatMessage] = None
        for message in reversed(list(messages)):
            if not isinstance(message, BaseChatMessage):
                continue
            if preferred_source and getattr(message, "source", None) == preferred_source:
                return message
            if candidate is None:
                candidate = message
        if candidate:
            return candidate
        raise RuntimeError("Assistant did not produce a chat response.")

    def _extract_text(self, messages: Iterable[Any], preferred_source: Optional[str]) -> str:
        final_message = self._last_chat_message(messages, preferred_source=preferred_source)
        return final_message.to_text().strip()


def build_deterministic_chat_client(
    *,
    openai_model_name: Optional[str] = None,
    api_key: Optional[str] = None,
) -> ChatCompletionClient:
    """Zero-temperature OpenAI client used for every retrieval-QA call."""

    api_key = api_key or os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise EnvironmentError("OPENAI_API_KEY is not set.")
    model_info: ModelInfo = {
        "vision": False,
        "function_calling": False,
        "json_output": False,
        "structured_output": False,
        "family": "openai",
    }
    client_kwargs: Dict[str, Any] = {
        "model": openai_model_name or os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"),
        "api_key": api_key,
        "base_url": os.getenv("OPENAI_API_BASE_URL", "https://api.openai.com/v1"),
        "temperature": 0,
        "include_name_in_message": False,
        "model_info": model_info,
    }
    return OpenAIChatCompletionClient(**client_kwargs)
