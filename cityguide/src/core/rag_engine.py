"""
City Guide - RAG Engine
========================
Orchestrates one chat turn: resolve context → compose prompt → stream
the Gemini reply.

Flow
----
    1. Take the last message of the transcript as the question.
    2. Resolve context:
         a. PDF index attached → top ``SEARCH_RESULTS_LIMIT`` chunks,
            joined by newlines.
         b. No index, or nothing found → web search for
            ``"<topic> <question>"`` plus the Wikipedia summary of
            ``<topic>``.
    3. Compose the prompt (greeting + instructions + context + question).
    4. Map the earlier turns to LangChain messages (``user`` → human,
       anything else → AI) and send them with the prompt to Gemini in
       streaming mode.
    5. Relay the token stream.

The first chunk is awaited inside ``open_stream`` so that a failure to
reach the model surfaces before any bytes are sent to the client.

Usage:
    from cityguide.src.core.rag_engine import RAGManager
    rag = RAGManager(vector_store)
    tokens = await rag.open_stream([{"role": "user", "content": "Best beaches?"}])
    async for token in tokens:
        ...
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from cityguide.config.prompt_templates import FALLBACK_CONTEXT_TEMPLATE, GREETING, NO_CONTEXT_PLACEHOLDER, RAG_PROMPT_TEMPLATE
from cityguide.config.settings import settings
from cityguide.src.core.web_context import WebContextFetcher
from cityguide.src.database.vector_store import CityVectorStore
from cityguide.src.utils.logger import get_logger

logger = get_logger(__name__)


# ── Types ─────────────────────────────────────────────────────────────

class ChatTurn(Protocol):
    """Anything with a ``role`` and ``content`` (pydantic model or plain object)."""

    role: str
    content: str


@dataclass(frozen=True)
class ContextResult:
    """Resolved context and where it came from."""

    text: str
    source: Literal["document", "web"]


# ══════════════════════════════════════════════════════════════════════
#  RAG MANAGER
# ══════════════════════════════════════════════════════════════════════


class RAGManager:
    """
    Context resolution, prompt composition and streamed generation.

    Parameters
    ----------
    vector_store
        The PDF index, or ``None`` until the startup build attaches one.
    web_fetcher
        Optional custom ``WebContextFetcher``.
    llm
        Optional chat model exposing ``astream(messages)``.  Defaults to
        ``ChatGoogleGenerativeAI``, created on first use.
    """

    __slots__ = ("_store", "_web", "_llm")

    def __init__(self, vector_store: CityVectorStore | None = None, web_fetcher: WebContextFetcher | None = None, llm: object | None = None) -> None:
        self._store = vector_store
        self._web = web_fetcher or WebContextFetcher()
        self._llm = llm


    @staticmethod
    def _init_llm() -> object:
        """Initialise the Gemini chat model via LangChain."""
        from langchain_google_genai import ChatGoogleGenerativeAI

        llm = ChatGoogleGenerativeAI(model=settings.LLM_MODEL, temperature=settings.LLM_TEMPERATURE, google_api_key=settings.GOOGLE_API_KEY.get_secret_value())
        logger.info("LLM initialised: %s (temperature=%.1f)", settings.LLM_MODEL, settings.LLM_TEMPERATURE)
        return llm


    @property
    def llm(self) -> object:
        if self._llm is None:
            self._llm = self._init_llm()
        return self._llm


    @property
    def vector_store(self) -> CityVectorStore | None:
        return self._store


    def attach_store(self, store: CityVectorStore | None) -> None:
        """Install the index built at startup (``None`` keeps the web fallback)."""
        self._store = store
        if store is not None:
            logger.info("[RAG] Vector store attached: %r", store)


    @property
    def web_fetcher(self) -> WebContextFetcher:
        return self._web

    # ══════════════════════════════════════════════════════════════════
    #  CONTEXT RESOLUTION
    # ══════════════════════════════════════════════════════════════════

    async def resolve_context(self, question: str) -> ContextResult:
        """Return PDF context for *question*, falling back to the web."""
        if self._store is not None:
            t_search = time.perf_counter()
            # Row count and query embedding both block; keep them off the event loop
            results = await asyncio.to_thread(self._store.search_if_ready, question, settings.SEARCH_RESULTS_LIMIT)
            context = "\n".join(str(result.get("text", "")) for result in results)
            logger.info("[RAG] Index search: %d chunk(s) in %.1fms", len(results), (time.perf_counter() - t_search) * 1000)
            if context:
                return ContextResult(text=context, source="document")

        logger.info("[RAG] No PDF context — using web fallback for topic '%s'.", settings.FALLBACK_TOPIC)
        topic = settings.FALLBACK_TOPIC
        web_results = await self._web.web_search(f"{topic} {question}")
        wiki_summary = await self._web.wikipedia_summary(topic)
        return ContextResult(text=FALLBACK_CONTEXT_TEMPLATE.format(web_results=web_results, wiki_summary=wiki_summary), source="web")

    # ══════════════════════════════════════════════════════════════════
    #  PROMPT FORMATTING
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def compose_prompt(question: str, context: str) -> str:
        """Build the single text block sent as the final user turn."""
        return RAG_PROMPT_TEMPLATE.format(greeting=GREETING, topic=settings.FALLBACK_TOPIC, context=context or NO_CONTEXT_PLACEHOLDER, question=question)


    @staticmethod
    def format_history(messages: Sequence[ChatTurn]) -> list[BaseMessage]:
        """Map every turn but the last to LangChain messages."""
        history: list[BaseMessage] = []
        for message in messages[:-1]:
            if message.role == "user":
                history.append(HumanMessage(content=message.content))
            else:
                history.append(AIMessage(content=message.content))
        return history

    # ══════════════════════════════════════════════════════════════════
    #  GENERATION
    # ══════════════════════════════════════════════════════════════════

    async def open_stream(self, messages: Sequence[ChatTurn]) -> AsyncIterator[str]:
        """
        Start a streamed reply to the last message of *messages*.

        Raises
        ------
        ValueError
            If *messages* is empty.
        """
        if not messages:
            raise ValueError("At least one message is required.")

        question = messages[-1].content
        context = await self.resolve_context(question)
        prompt = self.compose_prompt(question, context.text)
        chat = self.format_history(messages) + [HumanMessage(content=prompt)]
        logger.info("[RAG] Prompt ready: %d chars, %d prior turn(s), context from %s.", len(prompt), len(chat) - 1, context.source)

        stream = self.llm.astream(chat)  # type: ignore[attr-defined]
        try:
            first = await stream.__anext__()
        except StopAsyncIteration:
            logger.warning("[RAG] Model returned an empty stream.")
            first = None
        except Exception:
            await stream.aclose()
            raise
        return self._relay(first, stream)


    @staticmethod
    async def _relay(first: object | None, stream: AsyncIterator[object]) -> AsyncIterator[str]:
        t_start = time.perf_counter()
        sent = 0
        if first is not None:
            text = chunk_text(first)
            sent += len(text)
            if text:
                yield text
            try:
                async for chunk in stream:
                    text = chunk_text(chunk)
                    if text:
                        sent += len(text)
                        yield text
            except Exception:
                logger.exception("[RAG] Stream interrupted after %d chars.", sent)
                return
        logger.info("[RAG] Stream complete: %d chars in %.1fms", sent, (time.perf_counter() - t_start) * 1000)


def chunk_text(chunk: object) -> str:
    """Return the text of a streamed message chunk (string or content parts)."""
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return ""
