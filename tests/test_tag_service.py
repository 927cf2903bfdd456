"""
Unit tests for the tag service.

Tests:
- Case-insensitive unique names and category validation
- Parent tags (deleting a parent detaches its children)
- Trade and token tagging
"""

from services.tag_service import (
    create_tag,
    delete_tag,
    get_all_tags,
    get_child_tags,
    get_tag_by_id,
    get_tags_by_category,
    get_token_tag_ids,
    get_trade_tags,
    rename_tag,
    set_token_tags,
    set_trade_tags,
)
from services.trade_service import create_trade, delete_trade


def _trade(symbol="WIF"):
    return create_trade(token_symbol=symbol, entry_price=1.0, quantity=1).trade


class TestCreateTag:
    """Test tag creation rules."""

    def test_create(self):
        result = create_tag("  Memecoin ", "narrative", color="#f59e0b")

        assert result.success
        assert result.tag.name == "Memecoin"
        assert result.tag.category.value == "narrative"

    def test_duplicate_name_case_insensitive(self):
        create_tag("Memecoin", "narrative")

        result = create_tag("MEMECOIN", "meta")

        assert not result.success
        assert result.tag.name == "Memecoin"

    def test_invalid_category(self):
        result = create_tag("Breakout", "fundamental")
        assert not result.success
        assert "narrative" in result.errors[0]

    def test_empty_name(self):
        assert not create_tag("   ", "meta").success

    def test_missing_parent(self):
        result = create_tag("Child", "meta", parent_tag_id=42)
        assert not result.success

    def test_by_category(self):
        create_tag("Memecoin", "narrative")
        create_tag("Breakout", "technical")

        assert [t.name for t in get_tags_by_category("technical")] == ["Breakout"]


class TestRenameAndDelete:
    """Test renaming and deleting tags."""

    def test_rename(self):
        tag = create_tag("memes", "narrative").tag

        assert rename_tag(tag.id, "Memes").success
        assert get_tag_by_id(tag.id).name == "Memes"

    def test_rename_to_existing_name(self):
        create_tag("Memecoin", "narrative")
        other = create_tag("AI", "narrative").tag

        assert not rename_tag(other.id, "memecoin").success

    def test_delete_parent_detaches_children(self):
        """Children survive with no parent."""
        parent = create_tag("Memecoin", "narrative").tag
        child = create_tag("Dog coins", "narrative", parent_tag_id=parent.id).tag
        assert [t.id for t in get_child_tags(parent.id)] == [child.id]

        assert delete_tag(parent.id).success

        survivor = get_tag_by_id(child.id)
        assert survivor is not None
        assert survivor.parent_tag_id is None
        assert get_tag_by_id(parent.id) is None

    def test_delete_removes_associations(self):
        tag = create_tag("Breakout", "technical").tag
        trade = _trade()
        set_trade_tags(trade.id, [tag.id])
        set_token_tags("WIF", [tag.id])

        delete_tag(tag.id)

        assert get_trade_tags(trade.id) == []
        assert get_token_tag_ids("WIF") == []

    def test_delete_missing(self):
        assert not delete_tag(999).success


class TestTagging:
    """Test attaching tags to trades and tokens."""

    def test_set_trade_tags_replaces(self):
        a = create_tag("Breakout", "technical").tag
        b = create_tag("Memecoin", "narrative").tag
        trade = _trade()

        set_trade_tags(trade.id, [a.id, b.id, a.id])
        assert [t.name for t in get_trade_tags(trade.id)] == ["Breakout", "Memecoin"]

        set_trade_tags(trade.id, [b.id])
        assert [t.name for t in get_trade_tags(trade.id)] == ["Memecoin"]

    def test_unknown_tag_rejected(self):
        trade = _trade()
        result = set_trade_tags(trade.id, [123])

        assert not result.success
        assert get_trade_tags(trade.id) == []

    def test_unknown_trade_rejected(self):
        tag = create_tag("Breakout", "technical").tag
        assert not set_trade_tags(999, [tag.id]).success

    def test_trade_counts(self):
        tag = create_tag("Memecoin", "narrative").tag
        create_tag("Unused", "meta")
        for symbol in ("WIF", "BONK"):
            set_trade_tags(_trade(symbol).id, [tag.id])

        counts = {item.tag.name: item.trade_count for item in get_all_tags().tags}

        assert counts == {"Memecoin": 2, "Unused": 0}

    def test_deleting_trade_drops_its_tags(self):
        tag = create_tag("Memecoin", "narrative").tag
        trade = _trade()
        set_trade_tags(trade.id, [tag.id])

        delete_trade(trade.id)

        assert get_all_tags().tags[0].trade_count == 0

    def test_token_tags(self):
        tag = create_tag("Memecoin", "narrative").tag

        assert set_token_tags("wif", [tag.id])
        assert get_token_tag_ids("WIF") == [tag.id]
        assert not set_token_tags("wif", [999])
        assert get_token_tag_ids("WIF") == [tag.id]

    def test_tag_ids_for_trade(self, journal_db):
        from db.repositories import TagRepository

        a = create_tag("Breakout", "technical").tag
        b = create_tag("Memecoin", "narrative").tag
        trade = _trade()
        set_trade_tags(trade.id, [b.id, a.id])

        with journal_db.session() as session:
            assert TagRepository(session).get_tag_ids_for_trade(trade.id) == sorted([a.id, b.id])
