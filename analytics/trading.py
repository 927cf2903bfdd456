"""
Trading analytics module.

Aggregates realized performance over a set of journal trades:
win rate, P&L totals, profit factor, per-tag and per-emotion
breakdowns and a monthly P&L series.

Conventions:
- Only closed trades (status == closed with pnl_amount set) contribute
- Trades with pnl_amount == 0 are neither winners nor losers
- profit_factor is math.inf (PROFIT_FACTOR_NO_LOSSES) when there are
  winners but no losers, and 0.0 when there are neither
- Monthly buckets use exit_date, falling back to entry_date when a
  closed trade has no exit_date recorded
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol, Sequence

import pandas as pd

from config import config
from db import get_db
from db.models import TradeStatus
from db.repositories import TagRepository, TradeFilters, TradeNoteRepository, TradeRepository
from exceptions import DataIntegrityError


PROFIT_FACTOR_NO_LOSSES = math.inf


class TradeLike(Protocol):
    """Shape the aggregator reads from a trade (ORM row or snapshot)."""
    id: int
    status: str
    pnl_amount: float | None
    entry_date: datetime | str
    exit_date: datetime | str | None


class TagLike(Protocol):
    """Shape the aggregator reads from a tag."""
    id: int
    name: str
    category: str
    color: str | None


@dataclass(frozen=True)
class TradeSnapshot:
    """Detached, immutable copy of the trade fields analytics needs."""
    id: int
    status: str
    pnl_amount: float | None
    entry_date: datetime
    exit_date: datetime | None = None


@dataclass(frozen=True)
class TagSnapshot:
    """Detached copy of a tag."""
    id: int
    name: str
    category: str
    color: str | None = None


@dataclass
class TagPerformance:
    """Aggregated performance of closed trades carrying one tag."""
    name: str
    category: str
    color: str | None
    trade_count: int = 0
    wins: int = 0
    total_pnl: float = 0.0


@dataclass
class EmotionPerformance:
    """Aggregated performance of closed trades noted with one emotional state."""
    emotional_state: str
    trade_count: int = 0
    wins: int = 0
    total_pnl: float = 0.0


@dataclass
class MonthlyPnl:
    """Realized P&L for one calendar month."""
    month: str
    total_pnl: float
    trade_count: int


@dataclass
class Analytics:
    """Summary statistics over the closed trades of a trade set."""
    total_trades: int
    winners: int
    losers: int
    win_rate: float
    total_pnl: float
    avg_win: float
    avg_loss: float
    biggest_win: float
    biggest_loss: float
    profit_factor: float
    by_tag: list[TagPerformance] = field(default_factory=list)
    by_emotion: list[EmotionPerformance] = field(default_factory=list)
    monthly_pnl: list[MonthlyPnl] = field(default_factory=list)

    @property
    def has_no_losses(self) -> bool:
        """True when profit_factor carries the no-losses sentinel."""
        return math.isinf(self.profit_factor)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict view (profit_factor may be math.inf)."""
        return asdict(self)

    def monthly_pnl_frame(self) -> pd.DataFrame:
        """Monthly series as a DataFrame with a cumulative P&L column."""
        if not self.monthly_pnl:
            return pd.DataFrame(columns=["month", "total_pnl", "trade_count", "cumulative_pnl"])
        df = pd.DataFrame([asdict(m) for m in self.monthly_pnl])
        df["cumulative_pnl"] = df["total_pnl"].cumsum()
        return df


def _as_datetime(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _check_integrity(trade: TradeLike) -> bool:
    """
    Validate the pnl/status invariant and report whether the trade is closed.

    Raises:
        DataIntegrityError: P&L present on a non-closed trade, or a
            closed trade without P&L.
    """
    is_closed = trade.status == TradeStatus.CLOSED
    if trade.pnl_amount is not None and not is_closed:
        raise DataIntegrityError(
            f"Trade {trade.id} has pnl_amount but status is "
            f"{getattr(trade.status, 'value', trade.status)}",
            record_id=trade.id,
        )
    if is_closed and trade.pnl_amount is None:
        raise DataIntegrityError(
            f"Trade {trade.id} is closed but has no pnl_amount",
            record_id=trade.id,
        )
    return is_closed


def _bucket_month(trade: TradeLike, month_format: str) -> str:
    bucket_date = trade.exit_date if trade.exit_date is not None else trade.entry_date
    return _as_datetime(bucket_date).strftime(month_format)


def _by_tag(
    closed: Sequence[TradeLike],
    tag_associations: Mapping[int, Iterable[TagLike]],
) -> list[TagPerformance]:
    buckets: dict[int, TagPerformance] = {}
    for trade in closed:
        for tag in tag_associations.get(trade.id, ()):
            bucket = buckets.get(tag.id)
            if bucket is None:
                bucket = buckets[tag.id] = TagPerformance(
                    name=tag.name,
                    category=str(getattr(tag.category, "value", tag.category)),
                    color=tag.color,
                )
            bucket.trade_count += 1
            bucket.wins += 1 if trade.pnl_amount > 0 else 0
            bucket.total_pnl += trade.pnl_amount
    return sorted(buckets.values(), key=lambda b: (-b.total_pnl, b.name))


def _by_emotion(
    closed: Sequence[TradeLike],
    emotion_associations: Mapping[int, str | None],
) -> list[EmotionPerformance]:
    buckets: dict[str, EmotionPerformance] = {}
    for trade in closed:
        state = emotion_associations.get(trade.id)
        if not state:
            continue
        state = str(getattr(state, "value", state))
        bucket = buckets.setdefault(state, EmotionPerformance(emotional_state=state))
        bucket.trade_count += 1
        bucket.wins += 1 if trade.pnl_amount > 0 else 0
        bucket.total_pnl += trade.pnl_amount
    return sorted(buckets.values(), key=lambda b: (-b.total_pnl, b.emotional_state))


def _monthly(closed: Sequence[TradeLike], month_format: str) -> list[MonthlyPnl]:
    if not closed:
        return []

    df = pd.DataFrame([
        {"month": _bucket_month(t, month_format), "pnl": float(t.pnl_amount)}
        for t in closed
    ])
    grouped = df.groupby("month", sort=True)["pnl"].agg(["sum", "count"])

    return [
        MonthlyPnl(month=str(month), total_pnl=float(row["sum"]), trade_count=int(row["count"]))
        for month, row in grouped.iterrows()
    ]


def compute_analytics(
    trades: Iterable[TradeLike],
    tag_associations: Mapping[int, Iterable[TagLike]] | None = None,
    emotion_associations: Mapping[int, str | None] | None = None,
    month_format: str | None = None,
) -> Analytics:
    """
    Compute trading analytics over a trade set.

    Pure function: reads its inputs, returns a fresh Analytics value.

    Args:
        trades: All trades in scope (any status); pre-filter by date
            range before calling if needed.
        tag_associations: trade_id -> tags attached to that trade.
        emotion_associations: trade_id -> emotional state from the
            trade's note. Missing or empty states are skipped.
        month_format: strftime format for monthly buckets.

    Returns:
        Analytics over the closed trades.

    Raises:
        DataIntegrityError: If any trade violates the pnl/status invariant.
    """
    tag_associations = tag_associations or {}
    emotion_associations = emotion_associations or {}
    month_format = month_format or config.analytics.month_format

    closed = [t for t in trades if _check_integrity(t)]

    wins = [t.pnl_amount for t in closed if t.pnl_amount > 0]
    losses = [t.pnl_amount for t in closed if t.pnl_amount < 0]

    gross_profit = sum(wins)
    gross_loss = sum(losses)

    if losses:
        profit_factor = gross_profit / abs(gross_loss)
    elif wins:
        profit_factor = PROFIT_FACTOR_NO_LOSSES
    else:
        profit_factor = 0.0

    closed_count = len(closed)

    return Analytics(
        total_trades=closed_count,
        winners=len(wins),
        losers=len(losses),
        win_rate=(len(wins) / closed_count * 100) if closed_count else 0.0,
        total_pnl=float(sum(t.pnl_amount for t in closed)),
        avg_win=gross_profit / len(wins) if wins else 0.0,
        avg_loss=gross_loss / len(losses) if losses else 0.0,
        biggest_win=max(wins) if wins else 0.0,
        biggest_loss=min(losses) if losses else 0.0,
        profit_factor=profit_factor,
        by_tag=_by_tag(closed, tag_associations),
        by_emotion=_by_emotion(closed, emotion_associations),
        monthly_pnl=_monthly(closed, month_format),
    )


class TradingAnalyzer:
    """
    Loads journal snapshots from the store and runs compute_analytics.

    Persistence failures propagate to the caller unchanged.
    """

    def __init__(self):
        self.config = config.analytics

    def load_snapshots(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> tuple[list[TradeSnapshot], dict[int, list[TagSnapshot]], dict[int, str]]:
        """
        Read trades (entry_date within the inclusive range) and their
        tag/emotion associations into detached snapshots.
        """
        db = get_db()

        with db.session() as session:
            trade_repo = TradeRepository(session)
            tag_repo = TagRepository(session)
            note_repo = TradeNoteRepository(session)

            trades = trade_repo.list_trades(
                TradeFilters(start_date=start_date, end_date=end_date)
            )
            snapshots = [
                TradeSnapshot(
                    id=t.id,
                    status=t.status.value,
                    pnl_amount=t.pnl_amount,
                    entry_date=t.entry_date,
                    exit_date=t.exit_date,
                )
                for t in trades
            ]
            trade_ids = [s.id for s in snapshots]

            tags = {
                trade_id: [
                    TagSnapshot(id=tag.id, name=tag.name, category=tag.category.value, color=tag.color)
                    for tag in trade_tags
                ]
                for trade_id, trade_tags in tag_repo.get_tags_for_trades(trade_ids).items()
            }
            emotions = note_repo.get_emotions_for_trades(trade_ids)

        return snapshots, tags, emotions

    def compute(
        self,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Analytics:
        """Analytics for trades entered within the optional date range."""
        trades, tags, emotions = self.load_snapshots(start_date, end_date)
        return compute_analytics(trades, tags, emotions, month_format=self.config.month_format)


def compute_trading_analytics(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> Analytics:
    """Convenience wrapper around TradingAnalyzer().compute()."""
    return TradingAnalyzer().compute(start_date, end_date)
