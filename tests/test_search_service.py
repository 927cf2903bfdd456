"""
Unit tests for cross-entity search.

Tests:
- Blank queries short-circuit without a database session
- Case-insensitive matching and grouping/ordering of results
- Debounced submission (only the last query scans)
- Superseded or cancelled scans never publish
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from exceptions import InvalidQuery
from services.influencer_service import create_influencer
from services.note_service import save_trade_note
from services.search_service import DebouncedSearch, SearchResult, search
from services.trade_service import create_trade


def _trade(symbol, name=None, **extra):
    return create_trade(token_symbol=symbol, token_name=name, entry_price=1.0, quantity=1, **extra).trade


class TestSearch:
    """Test the plain search function."""

    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    def test_blank_query_skips_database(self, query):
        """Blank queries return nothing and never open a session."""
        with patch("services.search_service.get_db") as mock_get_db:
            assert search(query) == []
            mock_get_db.assert_not_called()

    def test_non_string_query_rejected(self):
        with pytest.raises(InvalidQuery):
            search(None)

    def test_case_insensitive_match(self):
        trade = _trade("WIF", "dogwifhat")

        assert search("wif") == [SearchResult(type="trade", id=trade.id, title="WIF", subtitle="dogwifhat")]
        assert search("DOGWIF") == search("wif")

    def test_matches_contract_address(self):
        trade = _trade("BONK", token_contract_address="DezXAZ8z7Pnrn")
        assert [r.id for r in search("xaz8")] == [trade.id]

    def test_wildcards_are_literal(self):
        """LIKE metacharacters in the query are matched literally."""
        _trade("WIF")
        assert search("%") == []
        assert search("_") == []

    def test_surrounding_whitespace_is_matched(self):
        """Only blank queries are trimmed; otherwise whitespace is part of the term."""
        bare = _trade("PEPE")
        named = _trade("PEPE2", "Pepe Coin")

        assert [r.id for r in search("pepe")] == [bare.id, named.id]
        assert [r.id for r in search("pepe ")] == [named.id]
        assert search(" pepe") == []

    def test_groups_and_ordering(self):
        """Trades first, then notes, then influencers; each by id."""
        first = _trade("MOON", "Moon Token")
        second = _trade("MOONCAT")
        other = _trade("WIF")
        save_trade_note(other.id, pre_trade_thesis="Riding the moon narrative")
        influencer = create_influencer("MoonCaller", "twitter").influencer

        results = search("moon")

        assert [(r.type, r.id) for r in results] == [
            ("trade", first.id),
            ("trade", second.id),
            ("note", other.id),
            ("influencer", influencer.id),
        ]
        assert results[2].title == "WIF"
        assert results[3].subtitle == "twitter"

    def test_note_subtitle_is_truncated(self):
        trade = _trade("WIF")
        save_trade_note(trade.id, market_narrative="x" * 80 + " needle")

        note = next(r for r in search("needle") if r.type == "note")

        assert note.subtitle == "x" * 50

    def test_per_type_limits(self):
        for i in range(12):
            _trade(f"PEPE{i}")
        for i in range(7):
            create_influencer(f"pepe fan {i}", "telegram")

        results = search("pepe")

        assert sum(r.type == "trade" for r in results) == 10
        assert sum(r.type == "influencer" for r in results) == 5

    def test_deterministic(self):
        _trade("SOL")
        _trade("SOLANA")
        assert search("sol") == search("sol")


class TestDebouncedSearch:
    """Test debounced submission."""

    def test_only_last_query_is_scanned(self):
        """Rapid keystrokes inside the quiet window scan once."""
        scan = MagicMock(side_effect=lambda q: [SearchResult(type="trade", id=1, title=q)])
        published = []

        async def run():
            searcher = DebouncedSearch(scan=scan, wait_ms=20, on_results=published.append)
            searcher.submit("a")
            searcher.submit("ap")
            results = await searcher.submit("app")
            return searcher, results

        searcher, results = asyncio.run(run())

        scan.assert_called_once_with("app")
        assert results[0].title == "app"
        assert searcher.latest == results
        assert published == [results]
        assert searcher.generation == 3

    def test_superseded_scan_is_cancelled(self):
        """A scan still in flight when a newer query arrives never publishes."""
        published = []

        async def slow_scan(query):
            await asyncio.sleep(0.05 if query == "slow" else 0)
            return [SearchResult(type="trade", id=1, title=query)]

        async def run():
            searcher = DebouncedSearch(scan=slow_scan, wait_ms=0, on_results=published.append)
            stale = searcher.submit("slow")
            await asyncio.sleep(0.01)  # timer fired, scan in flight
            fresh = searcher.submit("fast")
            return searcher, stale, await fresh

        searcher, stale, fresh_results = asyncio.run(run())

        assert stale.cancelled()
        assert fresh_results[0].title == "fast"
        assert searcher.latest == fresh_results
        assert published == [fresh_results]

    def test_scans_never_overlap(self):
        """At most one scan runs at a time, however quickly queries arrive."""
        counts = {"running": 0, "peak": 0}

        async def counting_scan(query):
            counts["running"] += 1
            counts["peak"] = max(counts["peak"], counts["running"])
            try:
                await asyncio.sleep(0.05 if query == "slow" else 0)
                return [SearchResult(type="trade", id=1, title=query)]
            finally:
                counts["running"] -= 1

        async def run():
            searcher = DebouncedSearch(scan=counting_scan, wait_ms=0)
            searcher.submit("slow")
            await asyncio.sleep(0.01)
            return await searcher.submit("fast")

        results = asyncio.run(run())

        assert results[0].title == "fast"
        assert counts["peak"] == 1
        assert counts["running"] == 0

    def test_cancel_during_scan_publishes_nothing(self):
        """Cancelling after the timer fired drops the in-flight scan."""
        published = []

        async def slow_scan(query):
            await asyncio.sleep(0.05)
            return [SearchResult(type="trade", id=1, title=query)]

        async def run():
            searcher = DebouncedSearch(scan=slow_scan, wait_ms=0, on_results=published.append)
            task = searcher.submit("abc")
            await asyncio.sleep(0.01)
            assert searcher.active
            assert not searcher.pending

            searcher.cancel()
            await asyncio.gather(task, return_exceptions=True)
            return searcher, task

        searcher, task = asyncio.run(run())

        assert task.cancelled()
        assert published == []
        assert searcher.latest is None
        assert not searcher.active

    def test_cancel_stops_pending_scan(self):
        scan = MagicMock(return_value=[])

        async def run():
            searcher = DebouncedSearch(scan=scan, wait_ms=20)
            searcher.submit("abc")
            assert searcher.pending
            searcher.cancel()
            await asyncio.sleep(0.05)
            return searcher

        searcher = asyncio.run(run())

        scan.assert_not_called()
        assert searcher.latest is None

    def test_default_scan_hits_database(self):
        trade = _trade("JUP", "Jupiter")

        async def run():
            return await DebouncedSearch(wait_ms=0).submit("jup")

        assert [r.id for r in asyncio.run(run())] == [trade.id]

    def test_non_string_rejected(self):
        async def run():
            DebouncedSearch(scan=MagicMock()).submit(42)

        with pytest.raises(InvalidQuery):
            asyncio.run(run())
