"""
Trade Service - Handles trade logging, closing, editing and housekeeping.

This service layer provides the business logic for:
- Trade CRUD with validation at the persistence boundary
- Realized P&L computation when a trade is closed
- Bulk/CSV import and duplicate removal
- Hidden tokens that must not come back after an import

The pnl/status invariant (P&L only on closed trades) is enforced here,
so everything downstream may assume validated records.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from config import config
from db import get_db, Trade, TradeDirection, TradeStatus
from db.repositories import (
    HiddenTokenRepository,
    TagRepository,
    TokenNoteRepository,
    TradeFilters,
    TradeRepository,
)


logger = logging.getLogger(__name__)

TRADE_FIELDS = (
    "token_symbol",
    "token_name",
    "token_chain",
    "token_contract_address",
    "direction",
    "entry_price",
    "exit_price",
    "quantity",
    "entry_date",
    "exit_date",
    "platform",
    "status",
    "tx_signature",
)


# ──────────────────────────────────────────────────────────────────────────────
# Result DTOs
# ──────────────────────────────────────────────────────────────────────────────


@dataclass
class TradeResult:
    """Result object for single-trade operations."""
    trade: Trade | None
    success: bool
    message: str = ""
    errors: list[str] = field(default_factory=list)


@dataclass
class ImportResult:
    """Result of a bulk import."""
    imported: int
    skipped_hidden: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class DedupeResult:
    """Result of duplicate trade removal."""
    removed: int
    kept: int


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────


def calculate_pnl(
    entry_price: float,
    exit_price: float,
    quantity: float,
    direction: TradeDirection | str,
) -> tuple[float, float]:
    """
    Realized P&L of a closed position.

    A buy profits when price rises, a sell when it falls.

    Returns:
        Tuple of (amount, percent) where percent is relative to entry price.

    Example:
        >>> calculate_pnl(1.0, 1.5, 100, "buy")
        (50.0, 50.0)
    """
    if TradeDirection(direction) == TradeDirection.BUY:
        price_diff = exit_price - entry_price
    else:
        price_diff = entry_price - exit_price
    amount = price_diff * quantity
    percent = (price_diff / entry_price) * 100 if entry_price else 0.0
    return amount, percent


def parse_date(value: datetime | str | None) -> datetime | None:
    """Accept a datetime or an ISO date/datetime string."""
    if value is None or isinstance(value, datetime):
        return value
    value = str(value).strip()
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _validate_trade_fields(data: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """
    Normalize raw trade input and derive computed fields.

    Returns:
        Tuple of (model fields, errors). Fields are only usable when
        errors is empty.
    """
    errors: list[str] = []
    fields = {k: data.get(k) for k in TRADE_FIELDS if k in data}

    symbol = str(fields.get("token_symbol") or "").strip()
    if not symbol:
        errors.append("Token symbol is required")
    fields["token_symbol"] = symbol.upper()

    try:
        fields["direction"] = TradeDirection(fields.get("direction") or TradeDirection.BUY)
    except ValueError:
        errors.append(f"Invalid direction: {fields.get('direction')}")

    try:
        fields["status"] = TradeStatus(fields.get("status") or TradeStatus.OPEN)
    except ValueError:
        errors.append(f"Invalid status: {fields.get('status')}")

    for key in ("entry_price", "quantity"):
        value = _to_float(fields.get(key))
        if value is None or value <= 0:
            errors.append(f"{key.replace('_', ' ').capitalize()} must be positive")
        else:
            fields[key] = value

    if fields.get("exit_price") is not None:
        exit_price = _to_float(fields["exit_price"])
        if exit_price is None or exit_price < 0:
            errors.append("Exit price must not be negative")
        fields["exit_price"] = exit_price

    try:
        fields["entry_date"] = parse_date(fields.get("entry_date")) or datetime.now()
        fields["exit_date"] = parse_date(fields.get("exit_date"))
    except ValueError as e:
        errors.append(f"Invalid date: {e}")

    if errors:
        return fields, errors

    fields["total_value"] = fields["entry_price"] * fields["quantity"]

    if fields["status"] == TradeStatus.CLOSED:
        if fields.get("exit_price") is None:
            errors.append("A closed trade needs an exit price")
            return fields, errors
        amount, percent = calculate_pnl(
            fields["entry_price"], fields["exit_price"], fields["quantity"], fields["direction"]
        )
        fields["pnl_amount"] = amount
        fields["pnl_percent"] = percent
    else:
        fields["pnl_amount"] = None
        fields["pnl_percent"] = None

    return fields, errors


# ──────────────────────────────────────────────────────────────────────────────
# Trade CRUD Operations
# ──────────────────────────────────────────────────────────────────────────────


def create_trade(**data) -> TradeResult:
    """
    Log a new trade.

    Args:
        **data: Trade fields (token_symbol, direction, entry_price,
            quantity, entry_date, optional exit_price/exit_date/status...).

    Returns:
        TradeResult with the created trade or validation errors.

    Example:
        >>> result = create_trade(token_symbol="WIF", direction="buy",
        ...                       entry_price=1.2, quantity=500)
        >>> print(result.message)
        "✅ Trade #1 logged: WIF"
    """
    fields, errors = _validate_trade_fields(data)
    if errors:
        return TradeResult(
            trade=None,
            success=False,
            message=f"❌ {errors[0]}",
            errors=errors,
        )

    db = get_db()
    with db.session() as session:
        repo = TradeRepository(session)
        trade = repo.create(**fields)

        logger.info(f"Created trade {trade.id}: {trade.token_symbol} {trade.status.value}")
        return TradeResult(
            trade=trade,
            success=True,
            message=f"✅ Trade #{trade.id} logged: {trade.token_symbol}",
        )


def update_trade(trade_id: int, **updates) -> TradeResult:
    """
    Update a trade, re-deriving total value and P&L from the merged fields.

    Args:
        trade_id: Trade to update
        **updates: Any subset of the trade input fields

    Returns:
        TradeResult with the updated trade or errors.
    """
    db = get_db()
    with db.session() as session:
        repo = TradeRepository(session)

        trade = repo.get_by_id(trade_id)
        if not trade:
            return TradeResult(
                trade=None,
                success=False,
                message=f"❌ Trade #{trade_id} not found",
                errors=["Trade not found"],
            )

        merged = {key: getattr(trade, key) for key in TRADE_FIELDS}
        merged.update({k: v for k, v in updates.items() if k in TRADE_FIELDS})

        fields, errors = _validate_trade_fields(merged)
        if errors:
            return TradeResult(
                trade=trade,
                success=False,
                message=f"❌ {errors[0]}",
                errors=errors,
            )

        repo.update(trade_id, **fields)

        logger.info(f"Updated trade {trade_id}")
        return TradeResult(
            trade=trade,
            success=True,
            message=f"✅ Trade #{trade_id} updated",
        )


def close_trade(
    trade_id: int,
    exit_price: float,
    exit_date: datetime | str | None = None,
) -> TradeResult:
    """
    Close a trade at an exit price and record realized P&L.

    Args:
        trade_id: Trade to close
        exit_price: Exit price per unit
        exit_date: Exit date (defaults to now)
    """
    return update_trade(
        trade_id,
        exit_price=exit_price,
        exit_date=parse_date(exit_date) or datetime.now(),
        status=TradeStatus.CLOSED,
    )


def delete_trade(trade_id: int) -> TradeResult:
    """Delete a trade (its note and tag links go with it)."""
    db = get_db()
    with db.session() as session:
        repo = TradeRepository(session)

        if not repo.delete(trade_id):
            return TradeResult(
                trade=None,
                success=False,
                message=f"❌ Trade #{trade_id} not found",
                errors=["Trade not found"],
            )

        logger.info(f"Deleted trade {trade_id}")
        return TradeResult(
            trade=None,
            success=True,
            message=f"✅ Trade #{trade_id} deleted",
        )


def get_trade(trade_id: int) -> Trade | None:
    """Get a trade by its ID."""
    db = get_db()
    with db.session() as session:
        return TradeRepository(session).get_by_id(trade_id)


def list_trades(filters: TradeFilters | None = None) -> list[Trade]:
    """List trades, newest entry first."""
    db = get_db()
    with db.session() as session:
        return list(TradeRepository(session).list_trades(filters))


# ──────────────────────────────────────────────────────────────────────────────
# Import & Housekeeping
# ──────────────────────────────────────────────────────────────────────────────


def bulk_import_trades(records: Sequence[dict[str, Any]]) -> ImportResult:
    """
    Import many trades in one transaction.

    Records for hidden tokens are skipped. Any invalid record aborts
    the whole import and nothing is written.
    """
    db = get_db()
    with db.session() as session:
        repo = TradeRepository(session)
        hidden = set(HiddenTokenRepository(session).get_all())

        prepared = []
        skipped = 0
        errors: list[str] = []

        for index, record in enumerate(records):
            fields, record_errors = _validate_trade_fields(record)
            if record_errors:
                errors.extend(f"Row {index + 1}: {e}" for e in record_errors)
                continue

            contract = (fields.get("token_contract_address") or "").lower()
            if fields["token_symbol"].lower() in hidden or (contract and contract in hidden):
                skipped += 1
                continue

            prepared.append(fields)

        if errors:
            logger.warning(f"Import rejected: {len(errors)} invalid rows")
            return ImportResult(imported=0, skipped_hidden=skipped, errors=errors)

        for fields in prepared:
            repo.create(**fields)

        logger.info(f"Imported {len(prepared)} trades ({skipped} hidden skipped)")
        return ImportResult(imported=len(prepared), skipped_hidden=skipped)


def import_trades_csv(path: Path | str) -> ImportResult:
    """
    Import trades from a CSV file whose columns match trade field names.

    Empty cells are treated as missing values.
    """
    df = pd.read_csv(path, dtype=str)
    df = df.where(pd.notna(df), None)
    return bulk_import_trades(df.to_dict(orient="records"))


def _dedupe_key(trade: Trade) -> str:
    token_id = (trade.token_contract_address or "").lower() or trade.token_symbol.upper()
    quantity = f"{trade.quantity:.{config.dedupe.quantity_decimals}f}"
    return f"{token_id}-{trade.direction.value}-{quantity}-{trade.entry_date.date().isoformat()}"


def remove_duplicate_trades() -> DedupeResult:
    """
    Remove duplicate trades, keeping the earliest record.

    A trade is a duplicate when it repeats an earlier transaction
    signature, or when token, direction, rounded quantity and entry day
    all match an earlier trade.
    """
    db = get_db()
    with db.session() as session:
        repo = TradeRepository(session)
        trades = repo.get_all_oldest_first()

        seen: set[str] = set()
        duplicate_ids: list[int] = []

        for trade in trades:
            if trade.tx_signature:
                sig_key = f"sig:{trade.tx_signature}"
                if sig_key in seen:
                    duplicate_ids.append(trade.id)
                    continue
                seen.add(sig_key)

            key = _dedupe_key(trade)
            if key in seen:
                duplicate_ids.append(trade.id)
            else:
                seen.add(key)

        removed = repo.delete_many(duplicate_ids)
        kept = len(trades) - removed

        logger.info(f"Removed {removed} duplicate trades, kept {kept}")
        return DedupeResult(removed=removed, kept=kept)


def get_hidden_tokens() -> list[str]:
    """All hidden token identifiers."""
    db = get_db()
    with db.session() as session:
        return HiddenTokenRepository(session).get_all()


def hide_token(identifier: str) -> bool:
    """Hide a token symbol or contract address from future imports."""
    db = get_db()
    with db.session() as session:
        return HiddenTokenRepository(session).hide(identifier)


def unhide_token(identifier: str) -> bool:
    """Allow a previously hidden token again."""
    db = get_db()
    with db.session() as session:
        return HiddenTokenRepository(session).unhide(identifier)


def is_token_hidden(identifier: str) -> bool:
    """Whether a token symbol or contract address is hidden."""
    db = get_db()
    with db.session() as session:
        return HiddenTokenRepository(session).is_hidden(identifier)


def delete_and_hide_token(symbol: str, contract_address: str | None = None) -> int:
    """
    Delete every trade, token note and token tag for a token, then hide it.

    Returns:
        Number of trades deleted.
    """
    db = get_db()
    with db.session() as session:
        trade_repo = TradeRepository(session)
        hidden_repo = HiddenTokenRepository(session)

        trades = trade_repo.list_by_token(symbol, contract_address)
        removed = trade_repo.delete_many([t.id for t in trades])

        TokenNoteRepository(session).delete_by_symbol(symbol)
        TagRepository(session).set_token_tags(symbol, [])

        hidden_repo.hide(symbol)
        if contract_address:
            hidden_repo.hide(contract_address)

        logger.info(f"Deleted {removed} trades for {symbol.upper()} and hid token")
        return removed
