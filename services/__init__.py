"""
Services layer for business logic orchestration.

Provides reusable services that can be consumed by the CLI or any other front end.
"""

from services.trade_service import (
    DedupeResult,
    ImportResult,
    TradeResult,
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
from services.note_service import (
    NoteResult,
    get_all_token_notes,
    get_token_note,
    get_trade_note,
    save_token_note,
    save_trade_note,
)
from services.tag_service import (
    TagListResult,
    TagResult,
    TagWithCount,
    create_tag,
    delete_tag,
    get_all_tags,
    get_trade_tags,
    rename_tag,
    set_token_tags,
    set_trade_tags,
)
from services.influencer_service import (
    CallResult,
    InfluencerResult,
    create_call,
    create_influencer,
    delete_call,
    delete_influencer,
    get_all_influencers,
    list_influencer_calls,
)
from services.review_service import (
    ReviewResult,
    create_review,
    delete_review,
    get_reviews,
    update_review,
)
from services.settings_service import SettingsStore
from services.search_service import (
    DebouncedSearch,
    SearchResult,
    search,
)

__all__ = [
    # Trade service
    "DedupeResult",
    "ImportResult",
    "TradeResult",
    "bulk_import_trades",
    "calculate_pnl",
    "close_trade",
    "create_trade",
    "delete_and_hide_token",
    "delete_trade",
    "get_hidden_tokens",
    "get_trade",
    "hide_token",
    "import_trades_csv",
    "is_token_hidden",
    "list_trades",
    "remove_duplicate_trades",
    "unhide_token",
    "update_trade",
    # Note service
    "NoteResult",
    "get_all_token_notes",
    "get_token_note",
    "get_trade_note",
    "save_token_note",
    "save_trade_note",
    # Tag service
    "TagListResult",
    "TagResult",
    "TagWithCount",
    "create_tag",
    "delete_tag",
    "get_all_tags",
    "get_trade_tags",
    "rename_tag",
    "set_token_tags",
    "set_trade_tags",
    # Influencer service
    "CallResult",
    "InfluencerResult",
    "create_call",
    "create_influencer",
    "delete_call",
    "delete_influencer",
    "get_all_influencers",
    "list_influencer_calls",
    # Review service
    "ReviewResult",
    "create_review",
    "delete_review",
    "get_reviews",
    "update_review",
    # Settings
    "SettingsStore",
    # Search
    "DebouncedSearch",
    "SearchResult",
    "search",
]
