"""
Unit tests for notes, influencers, reviews and settings.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from db import get_db
from db.models import EmotionalState
from exceptions import PersistenceError
from services.influencer_service import (
    create_call,
    create_influencer,
    delete_call,
    delete_influencer,
    get_all_influencers,
    get_influencer,
    list_influencer_calls,
    update_call,
    update_influencer,
)
from services.note_service import (
    delete_token_note,
    get_all_token_notes,
    get_token_note,
    get_trade_note,
    save_token_note,
    save_trade_note,
)
from services.review_service import create_review, delete_review, get_reviews, update_review
from services.settings_service import SettingsStore
from services.trade_service import create_trade, delete_trade


def _trade(symbol="WIF"):
    return create_trade(token_symbol=symbol, entry_price=1.0, quantity=1).trade


class TestTradeNotes:
    """Test per-trade notes."""

    def test_create_then_update(self):
        trade = _trade()

        first = save_trade_note(trade.id, pre_trade_thesis="Breakout", emotional_state="calm")
        second = save_trade_note(trade.id, lessons_learned="Size down")

        assert first.created
        assert not second.created
        note = get_trade_note(trade.id)
        assert note.pre_trade_thesis == "Breakout"
        assert note.lessons_learned == "Size down"
        assert note.emotional_state == EmotionalState.CALM

    @pytest.mark.parametrize("confidence", [0, 11, "high"])
    def test_confidence_out_of_range(self, confidence):
        trade = _trade()
        result = save_trade_note(trade.id, confidence_level=confidence)

        assert not result.success
        assert get_trade_note(trade.id) is None

    def test_invalid_emotion(self):
        result = save_trade_note(_trade().id, emotional_state="bored")
        assert not result.success

    def test_unknown_field(self):
        result = save_trade_note(_trade().id, mood="calm")
        assert not result.success

    def test_missing_trade(self):
        assert not save_trade_note(999, pre_trade_thesis="x").success

    def test_note_deleted_with_trade(self):
        trade = _trade()
        save_trade_note(trade.id, pre_trade_thesis="x")

        delete_trade(trade.id)

        assert get_trade_note(trade.id) is None


class TestTokenNotes:
    """Test position-level token notes."""

    def test_upsert_by_symbol(self):
        save_token_note("wif", thesis="Dog season", confidence_level=8)
        save_token_note("WIF", sell_reason="Took profit")

        note = get_token_note("Wif")
        assert note.token_symbol == "WIF"
        assert note.thesis == "Dog season"
        assert note.sell_reason == "Took profit"
        assert [n.token_symbol for n in get_all_token_notes()] == ["WIF"]

    def test_empty_symbol(self):
        assert not save_token_note("  ", thesis="x").success

    def test_delete(self):
        save_token_note("WIF", thesis="x")

        assert delete_token_note("wif")
        assert get_token_note("WIF") is None
        assert not delete_token_note("WIF")


class TestInfluencers:
    """Test influencers and their calls."""

    def test_delete_cascades_to_calls(self):
        """Deleting an influencer removes all of its calls."""
        keep = create_influencer("Keeper", "twitter").influencer
        gone = create_influencer("Ansem", "twitter").influencer
        create_call(gone.id, call_date="2025-01-01", call_content="WIF")
        create_call(gone.id, call_date="2025-01-02", call_content="BONK")
        kept_call = create_call(keep.id, call_date="2025-01-03").call

        assert delete_influencer(gone.id).success

        assert [i.id for i in get_all_influencers()] == [keep.id]
        assert list_influencer_calls(gone.id) == []
        assert [c.id for c in list_influencer_calls()] == [kept_call.id]

    def test_calls_newest_first(self):
        influencer = create_influencer("Ansem", "twitter").influencer
        old = create_call(influencer.id, call_date="2025-01-01").call
        new = create_call(influencer.id, call_date="2025-03-01").call

        assert [c.id for c in list_influencer_calls(influencer.id)] == [new.id, old.id]

    def test_deleting_trade_unlinks_call(self):
        influencer = create_influencer("Ansem", "twitter").influencer
        trade = _trade()
        call = create_call(influencer.id, trade_id=trade.id).call

        delete_trade(trade.id)

        assert list_influencer_calls()[0].id == call.id
        assert list_influencer_calls()[0].trade_id is None

    def test_call_validation(self):
        influencer = create_influencer("Ansem", "twitter").influencer

        assert not create_call(999).success
        assert not create_call(influencer.id, trade_id=999).success
        assert not create_call(influencer.id, call_date="yesterday").success

    def test_update_and_delete_call(self):
        influencer = create_influencer("Ansem", "twitter").influencer
        call = create_call(influencer.id).call

        assert update_call(call.id, your_result="+40%").success
        assert list_influencer_calls()[0].your_result == "+40%"
        assert delete_call(call.id).success
        assert not delete_call(call.id).success

    def test_influencer_validation(self):
        assert not create_influencer("", "twitter").success
        influencer = create_influencer("Ansem", "twitter").influencer
        assert not update_influencer(influencer.id, platform=" ").success
        assert update_influencer(influencer.id, handle="@blknoiz06").success
        assert get_influencer(influencer.id).handle == "@blknoiz06"
        assert get_influencer(999) is None


class TestReviews:
    """Test periodic reviews."""

    def test_crud(self):
        result = create_review("weekly", "2025-01-06", "2025-01-12", content="Overtraded")
        assert result.success

        assert update_review(result.review.id, key_learnings="Fewer trades").success
        reviews = get_reviews("weekly")
        assert reviews[0].key_learnings == "Fewer trades"
        assert reviews[0].date_range_start == datetime(2025, 1, 6)

        assert delete_review(result.review.id).success
        assert get_reviews() == []

    def test_invalid_range(self):
        assert not create_review("monthly", "2025-02-01", "2025-01-01").success

    def test_invalid_type(self):
        assert not create_review("yearly", "2025-01-01", "2025-12-31").success


class TestSettingsStore:
    """Test the key-value settings store."""

    def test_set_replaces(self, journal_db):
        settings = SettingsStore(journal_db)

        settings.set("theme", "light")
        settings.set("theme", "dark")

        assert settings.get("theme") == "dark"
        assert settings.all() == {"theme": "dark"}

    def test_defaults(self, journal_db):
        settings = SettingsStore(journal_db)

        assert settings.get("missing") is None
        assert settings.get("missing", "x") == "x"
        assert settings.get_theme() == "dark"

    def test_theme_validation(self, journal_db):
        settings = SettingsStore(journal_db)

        settings.set_theme("light")
        assert settings.get_theme() == "light"
        with pytest.raises(ValueError):
            settings.set_theme("neon")

    def test_delete(self, journal_db):
        settings = SettingsStore(journal_db)
        settings.set("k", "v")

        assert settings.delete("k")
        assert not settings.delete("k")


class TestPersistenceErrors:
    """Test that store failures surface as PersistenceError."""

    def test_sqlalchemy_error_is_wrapped(self):
        with patch(
            "db.repositories.TradeRepository.count",
            side_effect=OperationalError("SELECT 1", {}, Exception("disk I/O error")),
        ):
            from db.repositories import TradeRepository

            with pytest.raises(PersistenceError) as exc_info:
                with get_db().session() as session:
                    TradeRepository(session).count()

        assert isinstance(exc_info.value.__cause__, OperationalError)
