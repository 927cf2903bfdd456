"""
Search Service - Cross-entity search over trades, notes and influencers.

search() is a plain request/response scan. DebouncedSearch wraps any
scan function for type-ahead use: only the last query submitted in a
quiet window is scanned, and results of superseded queries are dropped.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal

from config import config
from db import get_db
from db.repositories import SearchRepository
from exceptions import InvalidQuery


logger = logging.getLogger(__name__)

ResultType = Literal["trade", "note", "influencer"]
ScanFn = Callable[[str], "list[SearchResult] | Awaitable[list[SearchResult]]"]


@dataclass(frozen=True)
class SearchResult:
    """A single search hit."""
    type: ResultType
    id: int
    title: str
    subtitle: str | None = None


def search(query: str) -> list[SearchResult]:
    """
    Case-insensitive substring search across the journal.

    Results are grouped trades, then notes, then influencers, each
    ordered by id and capped by the configured per-type limits.
    A blank query returns no results without touching the database.
    Otherwise the query is matched as given, surrounding whitespace
    included.

    Raises:
        InvalidQuery: If query is not a string.
        PersistenceError: If the store fails.
    """
    if not isinstance(query, str):
        raise InvalidQuery(f"Search query must be a string, got {type(query).__name__}")

    if not query.strip():
        return []

    settings = config.search
    db = get_db()
    with db.session() as session:
        raw = SearchRepository(session).search_raw(
            query,
            trade_limit=settings.trade_limit,
            note_limit=settings.note_limit,
            influencer_limit=settings.influencer_limit,
        )

        results = [
            SearchResult(type="trade", id=t.id, title=t.token_symbol, subtitle=t.token_name)
            for t in raw["trades"]
        ]
        results.extend(
            SearchResult(
                type="note",
                id=note.trade_id,
                title=symbol,
                subtitle=(note.pre_trade_thesis or note.market_narrative or "")[: settings.subtitle_length],
            )
            for note, symbol in raw["notes"]
        )
        results.extend(
            SearchResult(type="influencer", id=i.id, title=i.name, subtitle=i.platform)
            for i in raw["influencers"]
        )

    logger.debug(f"Search {query!r}: {len(results)} results")
    return results


class DebouncedSearch:
    """
    Debounce wrapper around a scan function.

    Each submit() restarts the quiet-window timer. When the timer fires,
    the scan runs for the most recent query and its results are published
    to `latest` (and the optional callback).

    A submission owns a single task covering both the wait and the scan.
    A newer submit() or a cancel() cancels that task, whichever stage it
    is in, so at most one scan is ever in flight and nothing superseded
    or cancelled is published.

    Must be used from within a running event loop.

    Usage:
        searcher = DebouncedSearch(on_results=render)
        searcher.submit("w")
        searcher.submit("wi")
        results = await searcher.submit("wif")
    """

    def __init__(
        self,
        scan: ScanFn | None = None,
        wait_ms: int | None = None,
        on_results: Callable[[list[SearchResult]], None] | None = None,
    ):
        self.scan = scan or search
        self.wait_ms = config.search.debounce_ms if wait_ms is None else wait_ms
        self.on_results = on_results
        self.latest: list[SearchResult] | None = None

        self._generation = 0
        self._task: asyncio.Task | None = None
        self._scanning = False

    @property
    def generation(self) -> int:
        """Number of submissions and cancellations so far."""
        return self._generation

    @property
    def pending(self) -> bool:
        """Whether a query is waiting for its quiet window to end."""
        return self.active and not self._scanning

    @property
    def active(self) -> bool:
        """Whether a submission is waiting or scanning."""
        return self._task is not None and not self._task.done()

    def submit(self, query: str) -> asyncio.Task:
        """
        Schedule a scan for query, superseding any earlier submission.

        Returns:
            Task resolving to the results. It is cancelled if a newer
            query is submitted or cancel() is called before it finishes.
        """
        if not isinstance(query, str):
            raise InvalidQuery(f"Search query must be a string, got {type(query).__name__}")

        self.cancel()
        task = asyncio.get_running_loop().create_task(self._run(query, self._generation))
        self._task = task
        return task

    def cancel(self) -> None:
        """Cancel the current submission, whether waiting or scanning."""
        self._generation += 1
        if self.active:
            self._task.cancel()
        self._task = None
        self._scanning = False

    async def _run(self, query: str, generation: int) -> list[SearchResult] | None:
        await asyncio.sleep(self.wait_ms / 1000)

        self._scanning = True
        try:
            results = self.scan(query)
            if inspect.isawaitable(results):
                results = await results
        finally:
            if generation == self._generation:
                self._scanning = False

        # Scans that swallow cancellation still finish here
        if generation != self._generation:
            logger.debug(f"Discarding stale results for {query!r}")
            return None

        self.latest = results
        if self.on_results:
            self.on_results(results)
        return results
