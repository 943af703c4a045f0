"""Search / activate / interrupt handling for the Stack Overflow launcher plugin."""

from __future__ import annotations

import asyncio
import contextlib
from functools import partial
from typing import AsyncIterable, Callable, Protocol

from stackoverflow_plugin.domain.models import Post, SearchOutcome
from stackoverflow_plugin.launcher.protocol import (
    LauncherRequest,
    PluginResponse,
    RequestKind,
    ResponseSink,
    SearchEntry,
)
from stackoverflow_plugin.launcher.render import DescriptionMode, render_post
from stackoverflow_plugin.logging import logger
from stackoverflow_plugin.services.exceptions import SearchFailed
from stackoverflow_plugin.services.results import ResultStore
from stackoverflow_plugin.utils.browser import open_url
from stackoverflow_plugin.utils.query import DEFAULT_PREFIX, normalize_query

PLUGIN_NAME = "stackoverflow"
OUTCOME_QUEUE_SIZE = 8


class PostSearcher(Protocol):
    async def search_posts(self, term: str) -> list[Post]: ...


class StackOverflowPlugin:
    """Coordinates search tasks, the result dispatcher and the host sink.

    Each accepted query runs in its own task tagged with a generation number.
    Outcomes go through a queue to :meth:`dispatch_results`, which swaps them
    into the :class:`ResultStore` and streams ``Append`` + ``Finished`` to the
    host. Outcomes whose generation is no longer current are dropped.
    """

    name = PLUGIN_NAME

    def __init__(
        self,
        searcher: PostSearcher,
        sink: ResponseSink,
        *,
        store: ResultStore | None = None,
        opener: Callable[[str], None] = open_url,
        query_prefix: str = DEFAULT_PREFIX,
        description_mode: DescriptionMode = "tags",
    ) -> None:
        self._searcher = searcher
        self._sink = sink
        self._store = store or ResultStore()
        self._opener = opener
        self._query_prefix = query_prefix
        self._render = partial(render_post, description_mode=description_mode)
        self._outcomes: asyncio.Queue[SearchOutcome] = asyncio.Queue(maxsize=OUTCOME_QUEUE_SIZE)
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def results(self) -> ResultStore:
        return self._store

    def render_results(self) -> list[SearchEntry]:
        return self._store.render_current(self._render)

    async def search(self, query: str) -> None:
        term = normalize_query(query, self._query_prefix)
        # Any new query supersedes a search still in flight, even one we ignore.
        self._cancel_pending()
        generation = self._store.next_generation()
        if term is None:
            logger.debug("search_ignored", query=query, generation=generation)
            await self._sink.send(PluginResponse.finished())
            return

        task = asyncio.create_task(self._run_search(term, generation), name=f"search-{generation}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("search_started", term=term, generation=generation)

    async def activate(self, index: int) -> None:
        post = self._store.get(index)
        if post is None:
            logger.error("post_not_found", index=index, available=len(self._store))
        else:
            logger.info("post_activated", index=index, link=post.link)
            self._opener(post.link)

        await self._sink.send(PluginResponse.close())

    async def interrupt(self) -> None:
        cancelled = self._cancel_pending()
        generation = self._store.clear()
        logger.debug("search_interrupted", cancelled=cancelled, generation=generation)
        await self._sink.send(PluginResponse.finished())

    async def handle(self, request: LauncherRequest) -> bool:
        """Route one host request; returns ``False`` once the host asked us to exit."""

        if request.kind is RequestKind.SEARCH:
            await self.search(request.query or "")
        elif request.kind is RequestKind.ACTIVATE:
            await self.activate(request.index if request.index is not None else -1)
        elif request.kind is RequestKind.INTERRUPT:
            await self.interrupt()
        elif request.kind is RequestKind.EXIT:
            return False
        else:
            logger.debug("request_unsupported", kind=request.kind.value)
        return True

    async def run(self, requests: AsyncIterable[LauncherRequest]) -> None:
        dispatcher = asyncio.create_task(self.dispatch_results(), name="dispatch-results")
        try:
            async for request in requests:
                if not await self.handle(request):
                    break
        finally:
            self._cancel_pending()
            dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await dispatcher
        logger.info("plugin_stopped")

    async def dispatch_results(self) -> None:
        while True:
            outcome = await self._outcomes.get()
            try:
                await self._deliver(outcome)
            finally:
                self._outcomes.task_done()

    async def drain(self) -> None:
        """Wait until every started search has finished and its outcome was handled."""

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._outcomes.join()

    async def _run_search(self, term: str, generation: int) -> None:
        try:
            posts: list[Post] | None = await self._searcher.search_posts(term)
        except SearchFailed as exc:
            logger.error("search_failed", term=term, generation=generation, error=str(exc))
            posts = None
        except asyncio.CancelledError:
            logger.debug("search_cancelled", term=term, generation=generation)
            raise
        except Exception:
            logger.exception("search_crashed", term=term, generation=generation)
            posts = None
        await self._outcomes.put(SearchOutcome(generation=generation, posts=posts))

    async def _deliver(self, outcome: SearchOutcome) -> None:
        if outcome.posts is None:
            if self._store.is_current(outcome.generation):
                await self._sink.send(PluginResponse.finished())
            return

        # Rendered inside the store lock; the sends below happen after it is released.
        entries = self._store.replace(outcome.generation, outcome.posts, self._render)
        if entries is None:
            logger.debug("stale_results_dropped", generation=outcome.generation)
            return

        for entry in entries:
            if not self._store.is_current(outcome.generation):
                logger.debug("delivery_superseded", generation=outcome.generation)
                return
            await self._sink.send(PluginResponse.append(entry))
        if not self._store.is_current(outcome.generation):
            logger.debug("delivery_superseded", generation=outcome.generation)
            return
        await self._sink.send(PluginResponse.finished())
        logger.info("search_delivered", generation=outcome.generation, count=len(entries))

    def _cancel_pending(self) -> int:
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        return len(pending)


__all__ = ["PLUGIN_NAME", "PostSearcher", "StackOverflowPlugin"]
