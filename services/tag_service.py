"""
Tag Service - Manages journal tags with case-insensitive uniqueness.

This service layer provides the business logic for:
- Tag CRUD with case-insensitive uniqueness enforcement
- Parent/child lookup (deleting a parent detaches its children)
- Attach/detach tags to/from trades and token symbols
- Tag listing with trade counts

Designed to be consumed by the CLI or any other front end.
"""

import logging
from dataclasses import dataclass, field
from typing import Sequence

from db import get_db, Tag, TagCategory
from db.repositories import TagRepository, TradeRepository


logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Result DTOs
# ──────────────────────────────────────────────────────────────────────────────


@dataclass
class TagResult:
    """Result object for tag operations."""
    tag: Tag | None
    success: bool
    message: str
    errors: list[str] = field(default_factory=list)


@dataclass
class TagWithCount:
    """Tag with associated trade count."""
    tag: Tag
    trade_count: int


@dataclass
class TagListResult:
    """Result for tag list queries."""
    tags: list[TagWithCount]
    total: int


@dataclass
class TradeTagsResult:
    """Result for trade tag operations."""
    trade_id: int
    tags: list[Tag]
    success: bool
    message: str


def _validate_name(name: str) -> str | None:
    if not name:
        return "Tag name cannot be empty"
    if len(name) > 100:
        return "Tag name too long (max 100 chars)"
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Tag CRUD Operations
# ──────────────────────────────────────────────────────────────────────────────


def create_tag(
    name: str,
    category: TagCategory | str,
    parent_tag_id: int | None = None,
    color: str | None = None,
) -> TagResult:
    """
    Create a new tag with case-insensitive uniqueness.

    Args:
        name: Tag name (will be stripped)
        category: narrative, technical or meta
        parent_tag_id: Optional parent tag
        color: Optional display color

    Returns:
        TagResult with created tag or error if name exists.

    Example:
        >>> result = create_tag("Memecoin", "narrative")
        >>> print(result.message)
        "✅ Tag 'Memecoin' created"
    """
    name = name.strip()

    error = _validate_name(name)
    if error:
        return TagResult(tag=None, success=False, message=f"❌ {error}", errors=[error])

    try:
        category = TagCategory(category)
    except ValueError:
        return TagResult(
            tag=None,
            success=False,
            message=f"❌ Invalid category: {category}",
            errors=[f"Category must be one of: {', '.join(c.value for c in TagCategory)}"],
        )

    db = get_db()
    with db.session() as session:
        repo = TagRepository(session)

        # Check for case-insensitive duplicate
        existing = repo.get_by_name(name)
        if existing:
            return TagResult(
                tag=existing,
                success=False,
                message=f"❌ Tag '{existing.name}' already exists",
                errors=[f"A tag with name '{name}' already exists (case-insensitive)"],
            )

        if parent_tag_id is not None and not repo.get_by_id(parent_tag_id):
            return TagResult(
                tag=None,
                success=False,
                message=f"❌ Parent tag #{parent_tag_id} not found",
                errors=["Parent tag not found"],
            )

        tag = repo.create(name, category, parent_tag_id=parent_tag_id, color=color)

        logger.info(f"Created tag: {tag.name} ({category.value})")
        return TagResult(
            tag=tag,
            success=True,
            message=f"✅ Tag '{tag.name}' created",
        )


def get_tag_by_id(tag_id: int) -> Tag | None:
    """Get a tag by its ID."""
    db = get_db()
    with db.session() as session:
        return TagRepository(session).get_by_id(tag_id)


def get_tag_by_name(name: str) -> Tag | None:
    """Get a tag by name (case-insensitive)."""
    db = get_db()
    with db.session() as session:
        return TagRepository(session).get_by_name(name)


def get_tags_by_category(category: TagCategory | str) -> list[Tag]:
    """Tags of one category, ordered by name."""
    db = get_db()
    with db.session() as session:
        return list(TagRepository(session).get_by_category(TagCategory(category)))


def get_child_tags(parent_id: int) -> list[Tag]:
    """Tags whose parent is the given tag."""
    db = get_db()
    with db.session() as session:
        return list(TagRepository(session).get_children(parent_id))


def get_all_tags() -> TagListResult:
    """
    Get all tags with their trade counts.

    Returns:
        TagListResult with tags sorted by name.
    """
    db = get_db()
    with db.session() as session:
        repo = TagRepository(session)
        tags = [
            TagWithCount(tag=tag, trade_count=count)
            for tag, count in repo.get_all_with_trade_counts()
        ]
        return TagListResult(tags=tags, total=len(tags))


def rename_tag(tag_id: int, new_name: str) -> TagResult:
    """
    Rename a tag with case-insensitive uniqueness check.

    Args:
        tag_id: ID of tag to rename
        new_name: New name for the tag
    """
    new_name = new_name.strip()

    error = _validate_name(new_name)
    if error:
        return TagResult(tag=None, success=False, message=f"❌ {error}", errors=[error])

    db = get_db()
    with db.session() as session:
        repo = TagRepository(session)

        tag = repo.get_by_id(tag_id)
        if not tag:
            return TagResult(
                tag=None,
                success=False,
                message=f"❌ Tag with ID {tag_id} not found",
                errors=["Tag not found"],
            )

        # Same tag may change the case of its own name
        existing = repo.get_by_name(new_name)
        if existing and existing.id != tag_id:
            return TagResult(
                tag=tag,
                success=False,
                message=f"❌ Tag '{existing.name}' already exists",
                errors=[f"A tag with name '{new_name}' already exists"],
            )

        old_name = tag.name
        repo.rename(tag_id, new_name)

        logger.info(f"Renamed tag: {old_name} -> {new_name}")
        return TagResult(
            tag=tag,
            success=True,
            message=f"✅ Tag renamed from '{old_name}' to '{new_name}'",
        )


def delete_tag(tag_id: int) -> TagResult:
    """
    Delete a tag.

    Trade and token associations are removed. Child tags are kept and
    become top-level tags.
    """
    db = get_db()
    with db.session() as session:
        repo = TagRepository(session)

        tag = repo.get_by_id(tag_id)
        if not tag:
            return TagResult(
                tag=None,
                success=False,
                message=f"❌ Tag with ID {tag_id} not found",
                errors=["Tag not found"],
            )

        tag_name = tag.name
        children = len(repo.get_children(tag_id))
        repo.delete(tag_id)

        logger.info(f"Deleted tag: {tag_name} ({children} children detached)")
        return TagResult(
            tag=None,
            success=True,
            message=f"✅ Tag '{tag_name}' deleted",
        )


# ──────────────────────────────────────────────────────────────────────────────
# Trade & Token Tagging
# ──────────────────────────────────────────────────────────────────────────────


def get_trade_tags(trade_id: int) -> list[Tag]:
    """Tags attached to a trade, ordered by name."""
    db = get_db()
    with db.session() as session:
        return list(TagRepository(session).get_tags_for_trade(trade_id))


def set_trade_tags(trade_id: int, tag_ids: Sequence[int]) -> TradeTagsResult:
    """
    Replace the tags attached to a trade.

    Args:
        trade_id: Trade to tag
        tag_ids: Complete new set of tag IDs (empty clears all tags)
    """
    db = get_db()
    with db.session() as session:
        trade_repo = TradeRepository(session)
        tag_repo = TagRepository(session)

        if not trade_repo.get_by_id(trade_id):
            return TradeTagsResult(
                trade_id=trade_id,
                tags=[],
                success=False,
                message=f"❌ Trade #{trade_id} not found",
            )

        missing = [tid for tid in tag_ids if not tag_repo.get_by_id(tid)]
        if missing:
            return TradeTagsResult(
                trade_id=trade_id,
                tags=list(tag_repo.get_tags_for_trade(trade_id)),
                success=False,
                message=f"❌ Tags not found: {', '.join(map(str, missing))}",
            )

        tag_repo.set_trade_tags(trade_id, tag_ids)
        tags = list(tag_repo.get_tags_for_trade(trade_id))

        logger.info(f"Set {len(tags)} tags on trade {trade_id}")
        return TradeTagsResult(
            trade_id=trade_id,
            tags=tags,
            success=True,
            message=f"✅ Trade #{trade_id} tagged: {', '.join(t.name for t in tags) or '(none)'}",
        )


def get_token_tag_ids(symbol: str) -> list[int]:
    """IDs of tags attached to a token symbol."""
    db = get_db()
    with db.session() as session:
        return TagRepository(session).get_tag_ids_for_token(symbol)


def set_token_tags(symbol: str, tag_ids: Sequence[int]) -> bool:
    """
    Replace the tags attached to a token symbol.

    Returns:
        False if any tag ID does not exist (nothing is changed).
    """
    db = get_db()
    with db.session() as session:
        repo = TagRepository(session)

        if any(not repo.get_by_id(tid) for tid in tag_ids):
            return False

        repo.set_token_tags(symbol, tag_ids)

    logger.info(f"Set {len(set(tag_ids))} tags on token {symbol.upper()}")
    return True
