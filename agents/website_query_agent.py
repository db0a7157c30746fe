"""
Website Query Agent (OpenAI + per-URL vector indexes)

- Answers a question about one or more web pages.
- Each page is fetched, chunked, embedded and indexed once; the index is kept
  under the raw URL string and reused by later queries.
- Answers come from a retrieval-QA chain over a zero-temperature, streaming
  OpenAI chat client (Microsoft AutoGen agentchat/core/ext stack).

Required env:
  - OPENAI_API_KEY (unless every OpenAI-backed collaborator is injected)
Optional env:
  - OPENAI_API_BASE_URL, OPENAI_CHAT_MODEL, OPENAI_EMBEDDING_MODEL
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union
from urllib.parse import urlparse
from uuid import uuid4

from autogen_core.models import ChatCompletionClient
from autogen_core.tools import FunctionTool

from retrieval.embedding import OpenAIEmbedder
from retrieval.text_splitter import CHUNK_OVERLAP, CHUNK_SIZE, build_text_splitter
from retrieval.vector_store import TemporaryVectorStore, VectorStoreRegistry, default_registry
from retrieval.web_loader import WebLoader
from website_task_state import WebsiteTaskState

from .qa_prompts import (
    QUERY_WEBSITE_DESCRIPTION,
    QUERY_WEBSITE_TOOL,
    QUERY_WEBSITE_TOOL_NAME,
    finished_reading_message,
)
from .query_models import QueryWebsiteArguments, QueryWebsiteResult
from .retrieval_qa import QAResult, RetrievalQAChain, build_deterministic_chat_client

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], Awaitable[None]]

FAILED_READING_MESSAGE = "Failed reading websites."


class QAChain(Protocol):
    async def call(self, question: str) -> QAResult: ...


ChainFactory = Callable[[TemporaryVectorStore], QAChain]


async def _ignore_progress(_: str) -> None:
    return None


def is_valid_url(url_string: str) -> bool:
    """True for absolute http(s) URLs that name a host."""

    try:
        parsed = urlparse(url_string.strip())
    except (AttributeError, ValueError):
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


@dataclass(slots=True)
class _QueryRun:
    """State owned by one `aquery` call: task snapshots and its interaction log."""

    query: str
    urls: List[str]
    states: List[WebsiteTaskState] = field(default_factory=list)
    log: Optional[Dict[str, Any]] = None
    log_path: Optional[Path] = None


class WebsiteQueryAgent:
    """Answers a query against a set of web pages, one concurrent task per URL."""

    name: str = QUERY_WEBSITE_TOOL_NAME
    description: str = QUERY_WEBSITE_DESCRIPTION
    argument_schema: Dict[str, Any] = QUERY_WEBSITE_TOOL["input_schema"]

    def __init__(
        self,
        *,
        report_progress: Optional[ProgressCallback] = None,
        openai_model_name: Optional[str] = None,
        embedding_model_name: Optional[str] = None,
        top_k: int = 4,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        loader: Optional[WebLoader] = None,
        splitter: Optional[Any] = None,
        embedder: Optional[OpenAIEmbedder] = None,
        registry: Optional[VectorStoreRegistry] = None,
        model_client: Optional[ChatCompletionClient] = None,
        qa_chain_factory: Optional[ChainFactory] = None,
        log_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self._report_progress = report_progress or _ignore_progress
        self._top_k = max(1, top_k)
        self._loader = loader or WebLoader()
        self._splitter = splitter or build_text_splitter(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        self._embedder = embedder or OpenAIEmbedder(model=embedding_model_name)
        self._registry = registry if registry is not None else default_registry

        if qa_chain_factory is None:
            self._model_client = model_client or build_deterministic_chat_client(
                openai_model_name=openai_model_name,
            )
            qa_chain_factory = self._build_chain
        else:
            self._model_client = model_client
        self._qa_chain_factory = qa_chain_factory

        self._log_dir = Path(log_dir) if log_dir is not None else None
        self._last_task_states: List[WebsiteTaskState] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def prepare(self) -> None:
        await self._report("Reading..")

    async def call(self, arguments: Union[QueryWebsiteArguments, Mapping[str, Any]]) -> QueryWebsiteResult:
        if not isinstance(arguments, QueryWebsiteArguments):
            arguments = QueryWebsiteArguments.model_validate(arguments)
        return await self.aquery(arguments.query, arguments.urls)

    def invoke(self, query: str, urls: Sequence[str]) -> QueryWebsiteResult:
        return asyncio.run(self.aquery(query, urls))

    async def aquery(self, query: str, urls: Sequence[str]) -> QueryWebsiteResult:
        if not query or not query.strip():
            raise ValueError("Query must be a non-empty string.")

        run = _QueryRun(query=query, urls=list(urls))
        self._start_interaction_log(run)
        logger.info("Answering query against %d urls: %s", len(run.urls), query)

        try:
            tasks = []
            for url_string in run.urls:
                if not is_valid_url(url_string):
                    logger.info("Skipping invalid url: %r", url_string)
                    continue
                state = WebsiteTaskState(url=url_string)
                run.states.append(state)
                tasks.append(asyncio.create_task(self._answer_for_url(run, state)))

            answers = await self._collect_answers(tasks)
            await self._report(finished_reading_message(run.urls), run)
        except Exception as exc:
            logger.exception("Failed reading websites for query: %s", query)
            await self._report(FAILED_READING_MESSAGE, run)
            self._finalize_interaction_log(run, answers=None, error=str(exc))
            raise
        finally:
            self._last_task_states = run.states

        logger.info("Collected %d answers.", len(answers))
        self._finalize_interaction_log(run, answers=answers)
        return QueryWebsiteResult(answers=answers)

    def as_function_tool(self) -> FunctionTool:
        """Expose the agent to other AutoGen assistants as a function tool."""

        return FunctionTool(
            func=self._run_function_tool,
            name=self.name,
            description=self.description,
        )

    @property
    def task_states(self) -> List[WebsiteTaskState]:
        """Return per-URL task snapshots from the most recently finished query."""

        return list(self._last_task_states)

    # ------------------------------------------------------------------
    # Per-URL pipeline
    # ------------------------------------------------------------------
    async def _answer_for_url(self, run: _QueryRun, state: WebsiteTaskState) -> str:
        url = state.url
        try:
            await self._report(f"Loading {url}..", run)

            store = self._registry.get(url)
            if store is not None:
                logger.info("Reusing cached index for %s", url)
                state.cache_hit = True
            else:
                documents = await self._loader.load([url])
                state.advance("processing")
                await self._report(f"Processing {url}..", run)
                chunks = self._splitter.transform_documents(documents)
                state.chunk_count = len(chunks)

                state.advance("embedding")
                await self._report(f"Embedding {url}..", run)
                embedded = await self._embedder.embed_documents(chunks)
                store = self._registry.create(url, embedded)

            state.advance("generating")
            await self._report("Generating answers..", run)
            chain = self._qa_chain_factory(store)
            result = await chain.call(run.query)
        except Exception as exc:
            state.advance("failed")
            state.error = str(exc)
            raise

        state.answer = result.answer
        state.advance("done")
        return result.answer

    async def _collect_answers(self, tasks: List["asyncio.Task[str]"]) -> List[str]:
        answers: List[str] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                answers.append(await next_done)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return answers

    def _build_chain(self, store: TemporaryVectorStore) -> QAChain:
        return RetrievalQAChain(
            vector_store=store,
            embedder=self._embedder,
            model_client=self._model_client,
            top_k=self._top_k,
        )

    async def _run_function_tool(self, query: str, urls: List[str]) -> str:
        """Wrapper used by AutoGen assistants to call queryWebsite."""

        await self.prepare()
        result = await self.aquery(query, urls)
        return result.bot_readable_content

    async def _report(self, message: str, run: Optional[_QueryRun] = None) -> None:
        if run is not None:
            self._log_step(run, message)
        await self._report_progress(message)

    # ------------------------------------------------------------------
    # Logging helpers
    # ------------------------------------------------------------------
    def _start_interaction_log(self, run: _QueryRun) -> None:
        if self._log_dir is None:
            return
        try:
            self._log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:  # pragma: no cover - filesystem issues
            logger.warning("Unable to create log directory %s: %s", self._log_dir, exc)
        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        file_name = f"website_query_{timestamp}_{uuid4().hex[:8]}.json"
        run.log_path = self._log_dir / file_name
        run.log = {
            "timestamp": timestamp,
            "query": run.query,
            "urls": run.urls,
            "progress": [],
        }

    def _log_step(self, run: _QueryRun, message: str) -> None:
        if not run.log:
            return
        run.log.setdefault("progress", []).append(
            {
                "timestamp": datetime.utcnow().isoformat(timespec="seconds") + "Z",
                "message": message,
            }
        )

    def _finalize_interaction_log(
        self, run: _QueryRun, *, answers: Optional[List[str]], error: Optional[str] = None
    ) -> None:
        if not run.log or not run.log_path:
            return
        if answers is not None:
            run.log["answers"] = answers
        if error:
            run.log["error"] = error
        run.log["tasks"] = [asdict(state) for state in run.states]
        try:
            serialized = json.dumps(run.log, indent=2, ensure_ascii=False)
            run.log_path.write_text(serialized, encoding="utf-8")
            logger.info("Wrote interaction log to %s", run.log_path)
        except OSError as exc:  # pragma: no cover - filesystem issues
            logger.warning("Failed to write interaction log %s: %s", run.log_path, exc)
