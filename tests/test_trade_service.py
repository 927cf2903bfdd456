"""
Unit tests for the trade service.

Tests:
- P&L calculation for both directions
- pnl/status invariant enforced when writing trades
- Bulk/CSV import and hidden tokens
- Duplicate removal
"""

from datetime import datetime

import pytest

from db.models import TradeStatus
from db.repositories import TradeFilters
from services.note_service import get_token_note, save_token_note
from services.tag_service import create_tag, get_token_tag_ids, set_token_tags
from services.trade_service import (
    bulk_import_trades,
    calculate_pnl,
    close_trade,
    create_trade,
    delete_and_hide_token,
    delete_trade,
    get_hidden_tokens,
    get_trade,
    hide_token,
    import_trades_csv,
    is_token_hidden,
    list_trades,
    remove_duplicate_trades,
    unhide_token,
    update_trade,
)


def _record(symbol="WIF", **overrides):
    record = {
        "token_symbol": symbol,
        "direction": "buy",
        "entry_price": 1.0,
        "quantity": 100,
        "entry_date": "2025-01-15T10:00:00",
    }
    record.update(overrides)
    return record


class TestCalculatePnl:
    """Test realized P&L math."""

    def test_buy_profit(self):
        assert calculate_pnl(1.0, 1.5, 100, "buy") == (50.0, 50.0)

    def test_buy_loss(self):
        amount, percent = calculate_pnl(2.0, 1.0, 10, "buy")
        assert amount == -10.0
        assert percent == -50.0

    def test_sell_profits_when_price_falls(self):
        amount, percent = calculate_pnl(2.0, 1.5, 10, "sell")
        assert amount == 5.0
        assert percent == 25.0


class TestTradeLifecycle:
    """Test create, close, update and delete."""

    def test_open_trade_has_no_pnl(self):
        result = create_trade(**_record())

        assert result.success
        assert result.trade.status == TradeStatus.OPEN
        assert result.trade.pnl_amount is None
        assert result.trade.total_value == 100.0
        assert result.trade.token_symbol == "WIF"

    def test_symbol_is_upper_cased(self):
        assert create_trade(**_record("bonk")).trade.token_symbol == "BONK"

    def test_closed_trade_gets_pnl(self):
        result = create_trade(**_record(status="closed", exit_price=1.25))

        assert result.success
        assert result.trade.pnl_amount == pytest.approx(25.0)
        assert result.trade.pnl_percent == pytest.approx(25.0)

    def test_closed_without_exit_price_rejected(self):
        result = create_trade(**_record(status="closed"))

        assert not result.success
        assert "exit price" in result.errors[0]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"entry_price": 0},
            {"entry_price": -1},
            {"quantity": 0},
            {"quantity": "abc"},
            {"direction": "long"},
            {"status": "pending"},
            {"token_symbol": "  "},
            {"entry_date": "not a date"},
        ],
    )
    def test_invalid_input_rejected(self, overrides):
        result = create_trade(**_record(**overrides))

        assert not result.success
        assert result.trade is None
        assert result.errors

    def test_close_trade(self):
        trade = create_trade(**_record()).trade

        result = close_trade(trade.id, exit_price=0.8, exit_date="2025-02-01")

        assert result.success
        stored = get_trade(trade.id)
        assert stored.status == TradeStatus.CLOSED
        assert stored.exit_date == datetime(2025, 2, 1)
        assert stored.pnl_amount == pytest.approx(-20.0)

    def test_close_missing_trade(self):
        result = close_trade(999, exit_price=1.0)
        assert not result.success

    def test_reopening_clears_pnl(self):
        trade = create_trade(**_record(status="closed", exit_price=2.0)).trade

        result = update_trade(trade.id, status="open")

        assert result.success
        stored = get_trade(trade.id)
        assert stored.pnl_amount is None
        assert stored.pnl_percent is None

    def test_update_recomputes_pnl(self):
        trade = create_trade(**_record(status="closed", exit_price=2.0)).trade

        update_trade(trade.id, quantity=50)

        stored = get_trade(trade.id)
        assert stored.pnl_amount == pytest.approx(50.0)
        assert stored.total_value == pytest.approx(50.0)

    def test_delete_trade(self):
        trade = create_trade(**_record()).trade

        assert delete_trade(trade.id).success
        assert get_trade(trade.id) is None
        assert not delete_trade(trade.id).success

    def test_list_filters(self):
        create_trade(**_record("WIF", entry_date="2025-01-01"))
        create_trade(**_record("BONK", entry_date="2025-02-01", status="closed", exit_price=2.0))
        create_trade(**_record("POPCAT", entry_date="2025-03-01"))

        closed = list_trades(TradeFilters(status=TradeStatus.CLOSED))
        assert [t.token_symbol for t in closed] == ["BONK"]

        in_range = list_trades(TradeFilters(start_date=datetime(2025, 2, 1), end_date=datetime(2025, 3, 1)))
        assert [t.token_symbol for t in in_range] == ["POPCAT", "BONK"]

        assert [t.token_symbol for t in list_trades(TradeFilters(search="pop"))] == ["POPCAT"]


class TestImport:
    """Test bulk and CSV import."""

    def test_bulk_import(self):
        result = bulk_import_trades([_record("WIF"), _record("BONK", status="closed", exit_price=3.0)])

        assert result.success
        assert result.imported == 2
        assert len(list_trades()) == 2

    def test_invalid_row_aborts_import(self):
        result = bulk_import_trades([_record("WIF"), _record("BAD", quantity=-1)])

        assert not result.success
        assert result.imported == 0
        assert "Row 2" in result.errors[0]
        assert list_trades() == []

    def test_hidden_tokens_are_skipped(self):
        hide_token("SCAM")
        hide_token("0xDEAD")

        result = bulk_import_trades([
            _record("WIF"),
            _record("scam"),
            _record("OTHER", token_contract_address="0xdead"),
        ])

        assert result.imported == 1
        assert result.skipped_hidden == 2

    def test_csv_import(self, tmp_path):
        path = tmp_path / "trades.csv"
        path.write_text(
            "token_symbol,direction,entry_price,quantity,entry_date,exit_price,status\n"
            "WIF,buy,1.0,100,2025-01-15,,open\n"
            "BONK,sell,2.0,10,2025-01-16,1.0,closed\n"
        )

        result = import_trades_csv(path)

        assert result.success
        assert result.imported == 2
        bonk = next(t for t in list_trades() if t.token_symbol == "BONK")
        assert bonk.pnl_amount == pytest.approx(10.0)


class TestHiddenTokens:
    """Test hiding tokens."""

    def test_hide_is_case_insensitive(self):
        assert hide_token("WIF")
        assert not hide_token("wif")
        assert is_token_hidden("Wif")
        assert get_hidden_tokens() == ["wif"]

    def test_unhide(self):
        hide_token("WIF")
        assert unhide_token("WIF")
        assert not is_token_hidden("wif")
        assert not unhide_token("WIF")

    def test_delete_and_hide_token(self):
        create_trade(**_record("SCAM"))
        create_trade(**_record("RUG", token_contract_address="0xAbC"))
        keep = create_trade(**_record("WIF")).trade
        save_token_note("SCAM", thesis="never again")
        tag = create_tag("Rug", "meta").tag
        set_token_tags("SCAM", [tag.id])

        removed = delete_and_hide_token("scam", "0xabc")

        assert removed == 2
        assert [t.id for t in list_trades()] == [keep.id]
        assert get_token_note("SCAM") is None
        assert get_token_tag_ids("SCAM") == []
        assert is_token_hidden("SCAM")
        assert is_token_hidden("0xABC")


class TestDedupe:
    """Test duplicate trade removal."""

    def test_same_signature_is_duplicate(self):
        first = create_trade(**_record("WIF", tx_signature="sig1")).trade
        create_trade(**_record("WIF", quantity=5, tx_signature="sig1"))

        result = remove_duplicate_trades()

        assert result.removed == 1
        assert result.kept == 1
        assert [t.id for t in list_trades()] == [first.id]

    def test_same_token_side_quantity_and_day(self):
        create_trade(**_record("WIF", quantity=100.001, entry_date="2025-01-15T09:00:00"))
        create_trade(**_record("wif", quantity=100.004, entry_date="2025-01-15T18:30:00"))

        assert remove_duplicate_trades().removed == 1

    def test_distinct_trades_are_kept(self):
        create_trade(**_record("WIF"))
        create_trade(**_record("WIF", direction="sell"))
        create_trade(**_record("WIF", entry_date="2025-01-16"))
        create_trade(**_record("WIF", quantity=200))

        result = remove_duplicate_trades()

        assert result.removed == 0
        assert result.kept == 4
