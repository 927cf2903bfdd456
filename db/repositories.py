"""
Repository pattern for data access operations.

Provides a clean abstraction layer between business logic and database operations.
Each repository wraps a live Session; commit/rollback is owned by the caller.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.orm import Session

from db.models import (
    HiddenToken,
    Influencer,
    InfluencerCall,
    Review,
    ReviewType,
    Setting,
    Tag,
    TagCategory,
    TokenNote,
    Trade,
    TradeNote,
    TradeStatus,
    token_tags,
    trade_tags,
)


@dataclass
class TradeFilters:
    """Optional filters for trade listings (all combined with AND)."""
    status: TradeStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None
    tag_ids: list[int] | None = None


def _contains(column, term: str):
    """Case-insensitive substring predicate with LIKE wildcards escaped."""
    return column.icontains(term, autoescape=True)


class TradeRepository:
    """Repository for trade operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, trade_id: int) -> Trade | None:
        """Get trade by ID."""
        return self.session.get(Trade, trade_id)

    def list_trades(self, filters: TradeFilters | None = None) -> Sequence[Trade]:
        """
        List trades matching the filters, newest entry first.

        Date bounds apply to entry_date and are inclusive.
        """
        stmt = select(Trade)
        filters = filters or TradeFilters()

        if filters.status:
            stmt = stmt.where(Trade.status == filters.status)
        if filters.start_date:
            stmt = stmt.where(Trade.entry_date >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(Trade.entry_date <= filters.end_date)
        if filters.search:
            stmt = stmt.where(
                or_(
                    _contains(Trade.token_symbol, filters.search),
                    _contains(Trade.token_name, filters.search),
                )
            )
        if filters.tag_ids:
            tagged = select(trade_tags.c.trade_id).where(trade_tags.c.tag_id.in_(filters.tag_ids))
            stmt = stmt.where(Trade.id.in_(tagged))

        stmt = stmt.order_by(Trade.entry_date.desc(), Trade.id.desc())
        return self.session.scalars(stmt).all()

    def list_by_token(self, symbol: str, contract_address: str | None = None) -> Sequence[Trade]:
        """Trades matching a symbol (case-insensitive) or contract address."""
        conditions = [func.upper(Trade.token_symbol) == symbol.upper()]
        if contract_address:
            conditions.append(func.lower(Trade.token_contract_address) == contract_address.lower())
        stmt = select(Trade).where(or_(*conditions)).order_by(Trade.entry_date)
        return self.session.scalars(stmt).all()

    def get_all_oldest_first(self) -> Sequence[Trade]:
        """All trades in insertion order (used by duplicate detection)."""
        stmt = select(Trade).order_by(Trade.created_at, Trade.id)
        return self.session.scalars(stmt).all()

    def create(self, **fields) -> Trade:
        """Create a new trade."""
        trade = Trade(**fields)
        self.session.add(trade)
        self.session.flush()  # Get the ID
        return trade

    def update(self, trade_id: int, **fields) -> Trade | None:
        """Apply field updates to a trade."""
        trade = self.get_by_id(trade_id)
        if trade:
            for key, value in fields.items():
                setattr(trade, key, value)
            self.session.flush()
        return trade

    def delete(self, trade_id: int) -> bool:
        """Delete a trade (note and tag links cascade, calls are unlinked)."""
        trade = self.get_by_id(trade_id)
        if trade:
            self.session.delete(trade)
            self.session.flush()
            return True
        return False

    def delete_many(self, trade_ids: Sequence[int]) -> int:
        """Delete several trades by ID. Returns number removed."""
        if not trade_ids:
            return 0
        removed = 0
        for trade_id in trade_ids:
            if self.delete(trade_id):
                removed += 1
        return removed

    def count(self) -> int:
        """Total number of trades."""
        return self.session.scalar(select(func.count(Trade.id))) or 0


class TradeNoteRepository:
    """Repository for per-trade notes."""

    def __init__(self, session: Session):
        self.session = session

    def get_for_trade(self, trade_id: int) -> TradeNote | None:
        """Get the note attached to a trade."""
        stmt = select(TradeNote).where(TradeNote.trade_id == trade_id)
        return self.session.scalar(stmt)

    def get_emotions_for_trades(self, trade_ids: Sequence[int]) -> dict[int, str]:
        """
        Map trade_id -> emotional state value for trades that have one.

        Trades without a note or without a recorded state are absent.
        """
        if not trade_ids:
            return {}
        stmt = (
            select(TradeNote.trade_id, TradeNote.emotional_state)
            .where(
                TradeNote.trade_id.in_(trade_ids),
                TradeNote.emotional_state.is_not(None),
            )
        )
        return {
            row.trade_id: row.emotional_state.value
            for row in self.session.execute(stmt).all()
        }

    def upsert(self, trade_id: int, **fields) -> TradeNote:
        """Create the trade's note or update the supplied fields."""
        note = self.get_for_trade(trade_id)
        if note is None:
            note = TradeNote(trade_id=trade_id, **fields)
            self.session.add(note)
        else:
            for key, value in fields.items():
                setattr(note, key, value)
        self.session.flush()
        return note


class TokenNoteRepository:
    """Repository for position-level token notes."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_symbol(self, symbol: str) -> TokenNote | None:
        """Get the note for a token symbol (case-insensitive)."""
        stmt = select(TokenNote).where(TokenNote.token_symbol == symbol.upper())
        return self.session.scalar(stmt)

    def get_all(self) -> Sequence[TokenNote]:
        """All token notes ordered by symbol."""
        return self.session.scalars(select(TokenNote).order_by(TokenNote.token_symbol)).all()

    def upsert(self, symbol: str, **fields) -> TokenNote:
        """Create or update the note for a token symbol."""
        note = self.get_by_symbol(symbol)
        if note is None:
            note = TokenNote(token_symbol=symbol.upper(), **fields)
            self.session.add(note)
        else:
            for key, value in fields.items():
                setattr(note, key, value)
        self.session.flush()
        return note

    def delete_by_symbol(self, symbol: str) -> int:
        """Delete the note for a token symbol."""
        result = self.session.execute(
            delete(TokenNote).where(TokenNote.token_symbol == symbol.upper())
        )
        return result.rowcount or 0


class TagRepository:
    """Repository for tag operations and trade/token associations."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, tag_id: int) -> Tag | None:
        """Get tag by ID."""
        return self.session.get(Tag, tag_id)

    def get_by_name(self, name: str) -> Tag | None:
        """Get tag by name (case-insensitive)."""
        stmt = select(Tag).where(func.lower(Tag.name) == name.strip().lower())
        return self.session.scalar(stmt)

    def get_all(self) -> Sequence[Tag]:
        """Get all tags ordered by name."""
        stmt = select(Tag).order_by(Tag.name)
        return self.session.scalars(stmt).all()

    def get_by_category(self, category: TagCategory) -> Sequence[Tag]:
        """Get tags of one category."""
        stmt = select(Tag).where(Tag.category == category).order_by(Tag.name)
        return self.session.scalars(stmt).all()

    def get_children(self, parent_id: int) -> Sequence[Tag]:
        """Tags whose parent is the given tag."""
        stmt = select(Tag).where(Tag.parent_tag_id == parent_id).order_by(Tag.name)
        return self.session.scalars(stmt).all()

    def create(
        self,
        name: str,
        category: TagCategory,
        parent_tag_id: int | None = None,
        color: str | None = None,
    ) -> Tag:
        """Create a new tag."""
        tag = Tag(
            name=name.strip(),
            category=category,
            parent_tag_id=parent_tag_id,
            color=color,
        )
        self.session.add(tag)
        self.session.flush()
        return tag

    def rename(self, tag_id: int, new_name: str) -> Tag | None:
        """Rename a tag."""
        tag = self.get_by_id(tag_id)
        if tag:
            tag.name = new_name.strip()
            self.session.flush()
        return tag

    def delete(self, tag_id: int) -> bool:
        """
        Delete a tag and its associations.

        Children are detached (parent set to NULL), never deleted.
        """
        tag = self.get_by_id(tag_id)
        if not tag:
            return False
        self.session.execute(
            update(Tag).where(Tag.parent_tag_id == tag_id).values(parent_tag_id=None)
        )
        self.session.execute(delete(token_tags).where(token_tags.c.tag_id == tag_id))
        self.session.delete(tag)
        self.session.flush()
        return True

    def get_tag_ids_for_trade(self, trade_id: int) -> list[int]:
        """IDs of tags attached to a trade."""
        stmt = (
            select(trade_tags.c.tag_id)
            .where(trade_tags.c.trade_id == trade_id)
            .order_by(trade_tags.c.tag_id)
        )
        return list(self.session.scalars(stmt).all())

    def get_tags_for_trade(self, trade_id: int) -> Sequence[Tag]:
        """Tags attached to a trade, ordered by name."""
        stmt = (
            select(Tag)
            .join(trade_tags, trade_tags.c.tag_id == Tag.id)
            .where(trade_tags.c.trade_id == trade_id)
            .order_by(Tag.name)
        )
        return self.session.scalars(stmt).all()

    def get_tags_for_trades(self, trade_ids: Sequence[int]) -> dict[int, list[Tag]]:
        """Map trade_id -> attached tags for a batch of trades."""
        if not trade_ids:
            return {}
        stmt = (
            select(trade_tags.c.trade_id, Tag)
            .join(Tag, trade_tags.c.tag_id == Tag.id)
            .where(trade_tags.c.trade_id.in_(trade_ids))
            .order_by(trade_tags.c.trade_id, Tag.id)
        )
        result: dict[int, list[Tag]] = {}
        for trade_id, tag in self.session.execute(stmt).all():
            result.setdefault(trade_id, []).append(tag)
        return result

    def set_trade_tags(self, trade_id: int, tag_ids: Sequence[int]) -> None:
        """Replace the tags attached to a trade."""
        self.session.execute(delete(trade_tags).where(trade_tags.c.trade_id == trade_id))
        unique_ids = list(dict.fromkeys(tag_ids))
        if unique_ids:
            self.session.execute(
                insert(trade_tags),
                [{"trade_id": trade_id, "tag_id": tag_id} for tag_id in unique_ids],
            )
        self.session.flush()

    def get_tag_ids_for_token(self, symbol: str) -> list[int]:
        """IDs of tags attached to a token symbol."""
        stmt = (
            select(token_tags.c.tag_id)
            .where(token_tags.c.token_symbol == symbol.upper())
            .order_by(token_tags.c.tag_id)
        )
        return list(self.session.scalars(stmt).all())

    def set_token_tags(self, symbol: str, tag_ids: Sequence[int]) -> None:
        """Replace the tags attached to a token symbol."""
        symbol = symbol.upper()
        self.session.execute(delete(token_tags).where(token_tags.c.token_symbol == symbol))
        unique_ids = list(dict.fromkeys(tag_ids))
        if unique_ids:
            self.session.execute(
                insert(token_tags),
                [{"token_symbol": symbol, "tag_id": tag_id} for tag_id in unique_ids],
            )
        self.session.flush()

    def get_all_with_trade_counts(self) -> list[tuple[Tag, int]]:
        """Get all tags with the number of trades carrying each."""
        stmt = (
            select(Tag, func.count(trade_tags.c.trade_id))
            .outerjoin(trade_tags, trade_tags.c.tag_id == Tag.id)
            .group_by(Tag.id)
            .order_by(Tag.name)
        )
        return [(tag, count) for tag, count in self.session.execute(stmt).all()]


class InfluencerRepository:
    """Repository for influencers."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, influencer_id: int) -> Influencer | None:
        """Get influencer by ID."""
        return self.session.get(Influencer, influencer_id)

    def get_all(self) -> Sequence[Influencer]:
        """All influencers ordered by name."""
        stmt = select(Influencer).order_by(Influencer.name, Influencer.id)
        return self.session.scalars(stmt).all()

    def create(self, **fields) -> Influencer:
        """Create a new influencer."""
        influencer = Influencer(**fields)
        self.session.add(influencer)
        self.session.flush()
        return influencer

    def update(self, influencer_id: int, **fields) -> Influencer | None:
        """Apply field updates to an influencer."""
        influencer = self.get_by_id(influencer_id)
        if influencer:
            for key, value in fields.items():
                setattr(influencer, key, value)
            self.session.flush()
        return influencer

    def delete(self, influencer_id: int) -> bool:
        """Delete an influencer and all of its calls."""
        influencer = self.get_by_id(influencer_id)
        if influencer:
            self.session.execute(
                delete(InfluencerCall).where(InfluencerCall.influencer_id == influencer_id)
            )
            self.session.delete(influencer)
            self.session.flush()
            return True
        return False


class InfluencerCallRepository:
    """Repository for influencer calls."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, call_id: int) -> InfluencerCall | None:
        """Get call by ID."""
        return self.session.get(InfluencerCall, call_id)

    def list_calls(self, influencer_id: int | None = None) -> Sequence[InfluencerCall]:
        """All calls, or those of one influencer, newest first."""
        stmt = select(InfluencerCall)
        if influencer_id is not None:
            stmt = stmt.where(InfluencerCall.influencer_id == influencer_id)
        stmt = stmt.order_by(InfluencerCall.call_date.desc(), InfluencerCall.id.desc())
        return self.session.scalars(stmt).all()

    def create(self, **fields) -> InfluencerCall:
        """Create a new call."""
        call = InfluencerCall(**fields)
        self.session.add(call)
        self.session.flush()
        return call

    def update(self, call_id: int, **fields) -> InfluencerCall | None:
        """Apply field updates to a call."""
        call = self.get_by_id(call_id)
        if call:
            for key, value in fields.items():
                setattr(call, key, value)
            self.session.flush()
        return call

    def delete(self, call_id: int) -> bool:
        """Delete a call."""
        call = self.get_by_id(call_id)
        if call:
            self.session.delete(call)
            self.session.flush()
            return True
        return False


class ReviewRepository:
    """Repository for periodic reviews."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, review_id: int) -> Review | None:
        """Get review by ID."""
        return self.session.get(Review, review_id)

    def get_all(self, review_type: ReviewType | None = None) -> Sequence[Review]:
        """Reviews newest period first."""
        stmt = select(Review)
        if review_type:
            stmt = stmt.where(Review.type == review_type)
        stmt = stmt.order_by(Review.date_range_start.desc(), Review.id.desc())
        return self.session.scalars(stmt).all()

    def create(self, **fields) -> Review:
        """Create a review."""
        review = Review(**fields)
        self.session.add(review)
        self.session.flush()
        return review

    def update(self, review_id: int, **fields) -> Review | None:
        """Apply field updates to a review."""
        review = self.get_by_id(review_id)
        if review:
            for key, value in fields.items():
                setattr(review, key, value)
            self.session.flush()
        return review

    def delete(self, review_id: int) -> bool:
        """Delete a review."""
        review = self.get_by_id(review_id)
        if review:
            self.session.delete(review)
            self.session.flush()
            return True
        return False


class SettingRepository:
    """Repository for key-value settings."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, key: str) -> str | None:
        """Get a setting value."""
        setting = self.session.get(Setting, key)
        return setting.value if setting else None

    def set(self, key: str, value: str) -> None:
        """Insert or replace a setting."""
        setting = self.session.get(Setting, key)
        if setting:
            setting.value = value
        else:
            self.session.add(Setting(key=key, value=value))
        self.session.flush()

    def delete(self, key: str) -> bool:
        """Remove a setting."""
        setting = self.session.get(Setting, key)
        if setting:
            self.session.delete(setting)
            self.session.flush()
            return True
        return False

    def get_all(self) -> dict[str, str]:
        """All settings as a dict."""
        return {s.key: s.value for s in self.session.scalars(select(Setting)).all()}


class HiddenTokenRepository:
    """Repository for hidden token identifiers."""

    def __init__(self, session: Session):
        self.session = session

    def get_all(self) -> list[str]:
        """All hidden identifiers, sorted."""
        stmt = select(HiddenToken.identifier).order_by(HiddenToken.identifier)
        return list(self.session.scalars(stmt).all())

    def is_hidden(self, identifier: str) -> bool:
        """Whether an identifier is hidden."""
        return self.session.get(HiddenToken, identifier.lower()) is not None

    def hide(self, identifier: str) -> bool:
        """Hide an identifier. Returns False if it was already hidden."""
        normalized = identifier.lower()
        if self.session.get(HiddenToken, normalized) is not None:
            return False
        self.session.add(HiddenToken(identifier=normalized))
        self.session.flush()
        return True

    def unhide(self, identifier: str) -> bool:
        """Unhide an identifier."""
        hidden = self.session.get(HiddenToken, identifier.lower())
        if hidden:
            self.session.delete(hidden)
            self.session.flush()
            return True
        return False


class SearchRepository:
    """
    Raw cross-entity matching for the search service.

    Every query is a case-insensitive substring match ordered by id.
    """

    def __init__(self, session: Session):
        self.session = session

    def match_trades(self, term: str, limit: int) -> Sequence[Trade]:
        """Trades whose symbol, name or contract address contain the term."""
        stmt = (
            select(Trade)
            .where(
                or_(
                    _contains(Trade.token_symbol, term),
                    _contains(Trade.token_name, term),
                    _contains(Trade.token_contract_address, term),
                )
            )
            .order_by(Trade.id)
            .limit(limit)
        )
        return self.session.scalars(stmt).all()

    def match_notes(self, term: str, limit: int) -> list[tuple[TradeNote, str]]:
        """Trade notes whose free-text fields contain the term, with the trade symbol."""
        stmt = (
            select(TradeNote, Trade.token_symbol)
            .join(Trade, TradeNote.trade_id == Trade.id)
            .where(
                or_(
                    _contains(TradeNote.pre_trade_thesis, term),
                    _contains(TradeNote.market_narrative, term),
                    _contains(TradeNote.post_trade_reflection, term),
                    _contains(TradeNote.lessons_learned, term),
                    _contains(TradeNote.rich_content, term),
                )
            )
            .order_by(TradeNote.trade_id)
            .limit(limit)
        )
        return [(note, symbol) for note, symbol in self.session.execute(stmt).all()]

    def match_influencers(self, term: str, limit: int) -> Sequence[Influencer]:
        """Influencers whose name or handle contain the term."""
        stmt = (
            select(Influencer)
            .where(or_(_contains(Influencer.name, term), _contains(Influencer.handle, term)))
            .order_by(Influencer.id)
            .limit(limit)
        )
        return self.session.scalars(stmt).all()

    def search_raw(
        self,
        term: str,
        trade_limit: int,
        note_limit: int,
        influencer_limit: int,
    ) -> dict[str, list]:
        """All raw matches grouped by entity type."""
        return {
            "trades": list(self.match_trades(term, trade_limit)),
            "notes": self.match_notes(term, note_limit),
            "influencers": list(self.match_influencers(term, influencer_limit)),
        }
