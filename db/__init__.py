"""
Database package initialization.

Exports commonly used components for convenient imports:
    from db import get_db, Trade, Tag, etc.
"""

from db.models import (
    Base,
    EmotionalState,
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
    TradeDirection,
    TradeNote,
    TradeStatus,
    token_tags,
    trade_tags,
)
from db.session import (
    DatabaseManager,
    get_db,
    init_db,
    set_db,
)
from db.repositories import (
    InfluencerCallRepository,
    InfluencerRepository,
    SearchRepository,
    TagRepository,
    TradeFilters,
    TradeRepository,
)

__all__ = [
    # Models
    "Base",
    "EmotionalState",
    "HiddenToken",
    "Influencer",
    "InfluencerCall",
    "Review",
    "ReviewType",
    "Setting",
    "Tag",
    "TagCategory",
    "TokenNote",
    "Trade",
    "TradeDirection",
    "TradeNote",
    "TradeStatus",
    "token_tags",
    "trade_tags",
    # Session management
    "DatabaseManager",
    "get_db",
    "init_db",
    "set_db",
    # Repositories
    "InfluencerCallRepository",
    "InfluencerRepository",
    "SearchRepository",
    "TagRepository",
    "TradeFilters",
    "TradeRepository",
]
