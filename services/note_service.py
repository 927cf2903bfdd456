"""
Note Service - Orchestrates trade and token journal notes.

Provides a service layer for creating, editing, and querying notes.
A trade carries at most one note; a token symbol carries at most one
position-level note.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from db import get_db
from db.models import EmotionalState, TokenNote, TradeNote
from db.repositories import TokenNoteRepository, TradeNoteRepository, TradeRepository


logger = logging.getLogger(__name__)

TRADE_NOTE_FIELDS = (
    "pre_trade_thesis",
    "market_narrative",
    "post_trade_reflection",
    "lessons_learned",
    "rich_content",
    "confidence_level",
    "emotional_state",
)

TOKEN_NOTE_FIELDS = (
    "thesis",
    "narrative",
    "reflection",
    "lessons_learned",
    "rich_content",
    "confidence_level",
    "emotional_state",
    "sell_reason",
    "copy_trader",
)


@dataclass
class NoteResult:
    """Result object for note operations."""
    note: TradeNote | TokenNote | None
    created: bool
    errors: list[str] = field(default_factory=list)
    status_message: str = ""

    @property
    def success(self) -> bool:
        """Whether the operation was successful."""
        return self.note is not None and len(self.errors) == 0


def _validate_note_fields(data: dict[str, Any], allowed: Sequence[str]) -> tuple[dict, list[str]]:
    """Keep known fields and validate confidence and emotional state."""
    errors = []
    fields = {k: v for k, v in data.items() if k in allowed}

    confidence = fields.get("confidence_level")
    if confidence is not None:
        try:
            confidence = int(confidence)
        except (TypeError, ValueError):
            confidence = None
        if confidence is None or not 1 <= confidence <= 10:
            errors.append("Confidence level must be between 1 and 10")
        fields["confidence_level"] = confidence

    emotion = fields.get("emotional_state")
    if emotion:
        try:
            fields["emotional_state"] = EmotionalState(emotion)
        except ValueError:
            errors.append(f"Invalid emotional state: {emotion}")
    elif "emotional_state" in fields:
        fields["emotional_state"] = None

    unknown = sorted(set(data) - set(allowed))
    if unknown:
        errors.append(f"Unknown note fields: {', '.join(unknown)}")

    return fields, errors


# ──────────────────────────────────────────────────────────────────────────────
# Trade Notes
# ──────────────────────────────────────────────────────────────────────────────


def get_trade_note(trade_id: int) -> TradeNote | None:
    """Get the note attached to a trade."""
    db = get_db()
    with db.session() as session:
        return TradeNoteRepository(session).get_for_trade(trade_id)


def save_trade_note(trade_id: int, **data) -> NoteResult:
    """
    Create or update the note of a trade.

    Only the supplied fields are written; the rest keep their values.

    Example:
        >>> result = save_trade_note(1, pre_trade_thesis="Breakout", emotional_state="calm")
        >>> print(result.status_message)
        "✅ Note saved for trade #1"
    """
    fields, errors = _validate_note_fields(data, TRADE_NOTE_FIELDS)
    if errors:
        return NoteResult(
            note=None,
            created=False,
            errors=errors,
            status_message=f"❌ {errors[0]}",
        )

    db = get_db()
    with db.session() as session:
        trade_repo = TradeRepository(session)
        note_repo = TradeNoteRepository(session)

        if not trade_repo.get_by_id(trade_id):
            return NoteResult(
                note=None,
                created=False,
                errors=[f"Trade {trade_id} not found"],
                status_message=f"❌ Trade #{trade_id} not found",
            )

        created = note_repo.get_for_trade(trade_id) is None
        note = note_repo.upsert(trade_id, **fields)

        logger.info(f"{'Created' if created else 'Updated'} note for trade {trade_id}")
        return NoteResult(
            note=note,
            created=created,
            status_message=f"✅ Note saved for trade #{trade_id}",
        )


# ──────────────────────────────────────────────────────────────────────────────
# Token Notes
# ──────────────────────────────────────────────────────────────────────────────


def get_token_note(symbol: str) -> TokenNote | None:
    """Get the position-level note for a token symbol."""
    db = get_db()
    with db.session() as session:
        return TokenNoteRepository(session).get_by_symbol(symbol)


def get_all_token_notes() -> list[TokenNote]:
    """All token notes ordered by symbol."""
    db = get_db()
    with db.session() as session:
        return list(TokenNoteRepository(session).get_all())


def save_token_note(symbol: str, **data) -> NoteResult:
    """Create or update the position-level note for a token symbol."""
    symbol = symbol.strip().upper()
    if not symbol:
        return NoteResult(
            note=None,
            created=False,
            errors=["Token symbol is required"],
            status_message="❌ Token symbol is required",
        )

    fields, errors = _validate_note_fields(data, TOKEN_NOTE_FIELDS)
    if errors:
        return NoteResult(
            note=None,
            created=False,
            errors=errors,
            status_message=f"❌ {errors[0]}",
        )

    db = get_db()
    with db.session() as session:
        repo = TokenNoteRepository(session)
        created = repo.get_by_symbol(symbol) is None
        note = repo.upsert(symbol, **fields)

        logger.info(f"{'Created' if created else 'Updated'} token note for {symbol}")
        return NoteResult(
            note=note,
            created=created,
            status_message=f"✅ Note saved for {symbol}",
        )


def delete_token_note(symbol: str) -> bool:
    """Delete the note for a token symbol."""
    db = get_db()
    with db.session() as session:
        removed = TokenNoteRepository(session).delete_by_symbol(symbol)

    if removed:
        logger.info(f"Deleted token note for {symbol.upper()}")
    return removed > 0
