"""
SQLAlchemy ORM Models for the Trading Journal.

Defines all database entities:
- Trades (token positions with realized P&L once closed)
- Trade notes and token-level notes
- Tags (hierarchical lookup, many-to-many with trades and tokens)
- Influencers and their calls
- Periodic reviews, settings and hidden tokens
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# Association table for Trade <-> Tag many-to-many relationship
trade_tags = Table(
    "trade_tags",
    Base.metadata,
    Column("trade_id", Integer, ForeignKey("trades.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Index("idx_trade_tags_tag", "tag_id"),  # For "find trades by tag" queries
)

# Position-level tags keyed by token symbol (no Trade row required)
token_tags = Table(
    "token_tags",
    Base.metadata,
    Column("token_symbol", String(50), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class TradeDirection(str, Enum):
    """Side of the trade."""
    BUY = "buy"
    SELL = "sell"


class TradeStatus(str, Enum):
    """Lifecycle status of a trade."""
    OPEN = "open"
    CLOSED = "closed"
    PARTIAL = "partial"


class EmotionalState(str, Enum):
    """Emotional state recorded in a trade note."""
    FOMO = "fomo"
    TOBLAST = "toblast"
    CALM = "calm"
    DISTRACTED = "distracted"
    UNCERTAIN = "uncertain"
    LOCKED_IN = "locked_in"
    UNSURE = "unsure"


class TagCategory(str, Enum):
    """Category of a tag."""
    NARRATIVE = "narrative"
    TECHNICAL = "technical"
    META = "meta"


class ReviewType(str, Enum):
    """Cadence of a periodic review."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class Trade(Base):
    """
    A single buy/sell position record.

    pnl_amount/pnl_percent stay NULL until the trade is closed; the
    service layer is the only writer and enforces that invariant.
    """
    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_symbol: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    token_name: Mapped[Optional[str]] = mapped_column(String(255))
    token_chain: Mapped[Optional[str]] = mapped_column(String(50))
    token_contract_address: Mapped[Optional[str]] = mapped_column(String(100))
    direction: Mapped[TradeDirection] = mapped_column(
        SQLEnum(TradeDirection, native_enum=False, length=10,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    entry_price: Mapped[float] = mapped_column(Float, nullable=False)
    exit_price: Mapped[Optional[float]] = mapped_column(Float)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    total_value: Mapped[float] = mapped_column(Float, nullable=False)
    entry_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    exit_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    platform: Mapped[Optional[str]] = mapped_column(String(100))
    status: Mapped[TradeStatus] = mapped_column(
        SQLEnum(TradeStatus, native_enum=False, length=10,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TradeStatus.OPEN,
    )
    pnl_amount: Mapped[Optional[float]] = mapped_column(Float)
    pnl_percent: Mapped[Optional[float]] = mapped_column(Float)
    tx_signature: Mapped[Optional[str]] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    note: Mapped[Optional["TradeNote"]] = relationship(
        "TradeNote", back_populates="trade", uselist=False, cascade="all, delete-orphan"
    )
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary=trade_tags, back_populates="trades"
    )

    __table_args__ = (
        Index("idx_trades_entry_date", "entry_date"),
        Index("idx_trades_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Trade(id={self.id}, token={self.token_symbol}, status={self.status})>"


class TradeNote(Base):
    """
    Journal note for a single trade (at most one per trade).

    The emotional_state recorded here drives the by-emotion analytics.
    """
    __tablename__ = "trade_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trade_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("trades.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    pre_trade_thesis: Mapped[Optional[str]] = mapped_column(Text)
    market_narrative: Mapped[Optional[str]] = mapped_column(Text)
    post_trade_reflection: Mapped[Optional[str]] = mapped_column(Text)
    lessons_learned: Mapped[Optional[str]] = mapped_column(Text)
    rich_content: Mapped[Optional[str]] = mapped_column(Text)
    confidence_level: Mapped[Optional[int]] = mapped_column(Integer)
    emotional_state: Mapped[Optional[EmotionalState]] = mapped_column(
        SQLEnum(EmotionalState, native_enum=False, length=20,
                values_callable=lambda e: [m.value for m in e]),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    trade: Mapped["Trade"] = relationship("Trade", back_populates="note")

    __table_args__ = (
        CheckConstraint(
            "confidence_level IS NULL OR (confidence_level >= 1 AND confidence_level <= 10)",
            name="ck_trade_notes_confidence",
        ),
    )

    def __repr__(self) -> str:
        return f"<TradeNote(id={self.id}, trade_id={self.trade_id})>"


class TokenNote(Base):
    """
    Position-level journal note, one per token symbol.

    Symbols are stored upper-cased so lookups are case-insensitive.
    """
    __tablename__ = "token_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_symbol: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    thesis: Mapped[Optional[str]] = mapped_column(Text)
    narrative: Mapped[Optional[str]] = mapped_column(Text)
    reflection: Mapped[Optional[str]] = mapped_column(Text)
    lessons_learned: Mapped[Optional[str]] = mapped_column(Text)
    rich_content: Mapped[Optional[str]] = mapped_column(Text)
    confidence_level: Mapped[Optional[int]] = mapped_column(Integer)
    emotional_state: Mapped[Optional[EmotionalState]] = mapped_column(
        SQLEnum(EmotionalState, native_enum=False, length=20,
                values_callable=lambda e: [m.value for m in e]),
    )
    sell_reason: Mapped[Optional[str]] = mapped_column(Text)
    copy_trader: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<TokenNote(id={self.id}, token={self.token_symbol})>"


class Tag(Base):
    """
    Tag entity for categorizing trades and tokens.

    parent_tag_id is a lookup relation only: deleting a parent sets
    the children's parent to NULL rather than deleting them.
    Tag names are case-insensitive unique (enforced at service layer).
    """
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category: Mapped[TagCategory] = mapped_column(
        SQLEnum(TagCategory, native_enum=False, length=20,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    parent_tag_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="SET NULL"), nullable=True
    )
    color: Mapped[Optional[str]] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    trades: Mapped[list["Trade"]] = relationship(
        "Trade", secondary=trade_tags, back_populates="tags"
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name!r}, category={self.category})>"


class Influencer(Base):
    """
    A caller/influencer whose calls are tracked against trades.

    Deleting an influencer removes all of its calls.
    """
    __tablename__ = "influencers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    platform: Mapped[str] = mapped_column(String(50), nullable=False)
    handle: Mapped[Optional[str]] = mapped_column(String(100))
    link: Mapped[Optional[str]] = mapped_column(String(500))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    calls: Mapped[list["InfluencerCall"]] = relationship(
        "InfluencerCall",
        back_populates="influencer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Influencer(id={self.id}, name={self.name!r}, platform={self.platform})>"


class InfluencerCall(Base):
    """
    A single call made by an influencer, optionally linked to a trade.

    The trade link is cleared (not cascaded) when the trade is deleted.
    """
    __tablename__ = "influencer_calls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    influencer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("influencers.id", ondelete="CASCADE"), nullable=False
    )
    trade_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("trades.id", ondelete="SET NULL"), nullable=True
    )
    call_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    call_content: Mapped[Optional[str]] = mapped_column(Text)
    source_link: Mapped[Optional[str]] = mapped_column(String(500))
    your_result: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    influencer: Mapped["Influencer"] = relationship("Influencer", back_populates="calls")

    __table_args__ = (
        Index("idx_influencer_calls_influencer", "influencer_id"),
    )

    def __repr__(self) -> str:
        return f"<InfluencerCall(id={self.id}, influencer_id={self.influencer_id})>"


class Review(Base):
    """Periodic (weekly/monthly/custom) trading review."""
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[ReviewType] = mapped_column(
        SQLEnum(ReviewType, native_enum=False, length=20,
                values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    date_range_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    date_range_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text)
    key_learnings: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, type={self.type})>"


class Setting(Base):
    """Persisted key-value setting (theme, preferences)."""
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Setting(key={self.key!r})>"


class HiddenToken(Base):
    """
    Token identifier (symbol or contract address, lower-cased) that
    should not reappear after an import or sync.
    """
    __tablename__ = "hidden_tokens"

    identifier: Mapped[str] = mapped_column(String(100), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<HiddenToken(identifier={self.identifier!r})>"
