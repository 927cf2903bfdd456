"""
Database initialization script.

Creates all tables and optionally seeds with sample journal data.
Safe to run multiple times (idempotent).
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from db.session import init_db, get_db
from db.repositories import TradeRepository
from services.influencer_service import create_call, create_influencer
from services.note_service import save_trade_note
from services.tag_service import create_tag, get_tag_by_name, set_trade_tags
from services.trade_service import create_trade


SAMPLE_TAGS = [
    {"name": "Memecoin", "category": "narrative", "color": "#f59e0b"},
    {"name": "AI Agents", "category": "narrative", "color": "#8b5cf6"},
    {"name": "Breakout", "category": "technical", "color": "#10b981"},
    {"name": "Copy Trade", "category": "meta", "color": "#3b82f6"},
]

SAMPLE_TRADES = [
    {
        "trade": {"token_symbol": "WIF", "token_name": "dogwifhat", "token_chain": "solana",
                  "direction": "buy", "entry_price": 1.20, "exit_price": 1.80, "quantity": 500,
                  "entry_date": "2025-01-15", "exit_date": "2025-02-01", "status": "closed",
                  "platform": "Jupiter"},
        "tags": ["Memecoin", "Breakout"],
        "note": {"pre_trade_thesis": "Dog coins leading the rotation, clean breakout on 4h",
                 "emotional_state": "calm", "confidence_level": 7},
    },
    {
        "trade": {"token_symbol": "AI16Z", "token_name": "ai16z", "token_chain": "solana",
                  "direction": "buy", "entry_price": 0.90, "exit_price": 0.60, "quantity": 1000,
                  "entry_date": "2025-01-20", "exit_date": "2025-02-10", "status": "closed",
                  "platform": "Photon"},
        "tags": ["AI Agents", "Copy Trade"],
        "note": {"pre_trade_thesis": "Aped after a call without waiting for a retest",
                 "emotional_state": "fomo", "confidence_level": 3,
                 "lessons_learned": "Wait for the retest"},
    },
    {
        "trade": {"token_symbol": "BONK", "token_name": "Bonk", "token_chain": "solana",
                  "direction": "buy", "entry_price": 0.00002, "quantity": 10_000_000,
                  "entry_date": "2025-03-02", "status": "open", "platform": "Jupiter"},
        "tags": ["Memecoin"],
        "note": None,
    },
]


def create_sample_data():
    """
    Create sample data for testing/demo purposes.

    This is optional and can be skipped in production.
    Skipped entirely when the journal already has trades.
    """
    db = get_db()
    with db.session() as session:
        if TradeRepository(session).count():
            print("  Journal already has trades, skipping sample data")
            return

    for tag_data in SAMPLE_TAGS:
        result = create_tag(**tag_data)
        if result.success:
            print(f"  Added tag: {tag_data['name']}")

    trade_ids = []
    for sample in SAMPLE_TRADES:
        result = create_trade(**sample["trade"])
        if not result.success:
            print(f"  {result.message}")
            continue

        trade = result.trade
        trade_ids.append(trade.id)
        print(f"  Logged trade: {trade.token_symbol} {trade.direction.value} {trade.quantity:,.0f}")

        tag_ids = [get_tag_by_name(name).id for name in sample["tags"]]
        set_trade_tags(trade.id, tag_ids)

        if sample["note"]:
            save_trade_note(trade.id, **sample["note"])

    influencer = create_influencer("Ansem", "twitter", handle="@blknoiz06").influencer
    create_call(influencer.id, call_date="2025-01-14", call_content="WIF looks ready",
                trade_id=trade_ids[0] if trade_ids else None)
    print(f"  Added influencer: {influencer.name}")


def main():
    """Initialize database and optionally create sample data."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize trading journal database")
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Create sample data for testing",
    )
    args = parser.parse_args()

    # Initialize database with tables
    db = init_db()
    print("✅ Database initialized")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        print("\n📦 Creating sample data...")
        create_sample_data()
        print("✅ Sample data created")


if __name__ == "__main__":
    main()
