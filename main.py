"""
Trading Journal - Main Entry Point.

A local-first personal journal for crypto trades: log trades, annotate
them with notes, tags and influencer calls, and review realized
performance.

Usage:
    # Initialize database
    python main.py init

    # Log trades
    python main.py add-trade WIF --direction buy --price 1.20 --quantity 500 --date 2025-01-15
    python main.py add-trade BONK --price 0.00002 --quantity 1000000 --exit-price 0.00003 --status closed

    # Close a trade
    python main.py close-trade 1 --price 1.80 --date 2025-02-01

    # View trades and analytics
    python main.py trades --status closed --limit 10
    python main.py analytics --since 2025-01-01

    # Search across trades, notes and influencers
    python main.py search wif

    # Tags
    python main.py tag add Memecoin --category narrative
    python main.py tag attach 1 --tags 1 2
    python main.py tag list

    # Influencers
    python main.py influencers add Ansem --platform twitter --handle @blknoiz06
    python main.py influencers list

    # Housekeeping
    python main.py import-csv trades.csv
    python main.py dedupe
    python main.py hide SCAM --contract 0xdeadbeef

    # Settings
    python main.py setting theme light
"""

import argparse
import logging
import math
import sys

from analytics.trading import compute_trading_analytics
from config import config
from db import init_db, TagCategory, TradeStatus
from db.repositories import TradeFilters
from exceptions import JournalError
from services.influencer_service import (
    create_influencer,
    delete_influencer,
    get_all_influencers,
    list_influencer_calls,
)
from services.search_service import search
from services.settings_service import SettingsStore
from services.tag_service import (
    create_tag,
    delete_tag,
    get_all_tags,
    rename_tag,
    set_trade_tags,
)
from services.trade_service import (
    close_trade,
    create_trade,
    delete_and_hide_token,
    import_trades_csv,
    list_trades,
    parse_date,
    remove_duplicate_trades,
)


def _fmt_money(value: float) -> str:
    return f"${value:+,.{config.ui.decimal_places}f}"


def cmd_init(args):
    """Initialize the database."""
    db = init_db(args.db_url, if_drop=args.if_drop)
    if args.if_drop:
        print("⚠️ Existing tables dropped.")
    print("✅ Database initialized successfully")
    print(f"   Location: {db.db_url}")


def cmd_add_trade(args):
    """Log a new trade."""
    init_db()

    result = create_trade(
        token_symbol=args.symbol,
        token_name=args.name,
        token_chain=args.chain,
        token_contract_address=args.contract,
        direction=args.direction,
        entry_price=args.price,
        quantity=args.quantity,
        entry_date=args.date,
        exit_price=args.exit_price,
        exit_date=args.exit_date,
        platform=args.platform,
        status=args.status,
    )
    print(result.message)
    if result.success and result.trade.pnl_amount is not None:
        print(f"   Realized P&L: {_fmt_money(result.trade.pnl_amount)} ({result.trade.pnl_percent:+.1f}%)")
    return 0 if result.success else 1


def cmd_close_trade(args):
    """Close a trade at an exit price."""
    init_db()

    result = close_trade(args.trade_id, exit_price=args.price, exit_date=args.date)
    print(result.message)
    if result.success:
        print(f"   Realized P&L: {_fmt_money(result.trade.pnl_amount)} ({result.trade.pnl_percent:+.1f}%)")
    return 0 if result.success else 1


def cmd_trades(args):
    """List trades."""
    init_db()

    filters = TradeFilters(
        status=TradeStatus(args.status) if args.status else None,
        start_date=parse_date(args.since),
        end_date=parse_date(args.until),
        search=args.search,
    )
    trades = list_trades(filters)[: args.limit]

    if not trades:
        print("No trades found.")
        return

    print(f"\n💼 Trades ({len(trades)})")
    print("-" * 84)
    print(f"{'ID':>5} {'Date':<12} {'Token':<10} {'Side':<5} {'Quantity':>14} {'Entry':>12} {'Status':<8} {'P&L':>12}")
    print("-" * 84)

    for trade in trades:
        pnl_str = _fmt_money(trade.pnl_amount) if trade.pnl_amount is not None else "-"
        print(
            f"{trade.id:>5} {trade.entry_date:%Y-%m-%d}   {trade.token_symbol:<10} {trade.direction.value:<5} "
            f"{trade.quantity:>14,.2f} {trade.entry_price:>12.6g} {trade.status.value:<8} {pnl_str:>12}"
        )


def cmd_analytics(args):
    """Show realized performance analytics."""
    init_db()

    analytics = compute_trading_analytics(parse_date(args.since), parse_date(args.until))

    if math.isinf(analytics.profit_factor):
        profit_factor = "∞"
    else:
        profit_factor = f"{analytics.profit_factor:.2f}"

    print("\n📊 Trading Analytics")
    print("-" * 44)
    print(f"   Closed Trades:   {analytics.total_trades:>12}")
    print(f"   Winners/Losers:  {analytics.winners:>5} / {analytics.losers:<5}")
    print(f"   Win Rate:        {analytics.win_rate:>11.{config.ui.percentage_decimal_places}f}%")
    print(f"   Total P&L:       {_fmt_money(analytics.total_pnl):>12}")
    print(f"   Avg Win:         {_fmt_money(analytics.avg_win):>12}")
    print(f"   Avg Loss:        {_fmt_money(analytics.avg_loss):>12}")
    print(f"   Biggest Win:     {_fmt_money(analytics.biggest_win):>12}")
    print(f"   Biggest Loss:    {_fmt_money(analytics.biggest_loss):>12}")
    print(f"   Profit Factor:   {profit_factor:>12}")

    if analytics.by_tag:
        print("\n🏷️ By Tag")
        for tag in analytics.by_tag:
            print(f"   {tag.name:<20} {tag.trade_count:>4} trades {tag.wins:>4} wins {_fmt_money(tag.total_pnl):>12}")

    if analytics.by_emotion:
        print("\n🧠 By Emotion")
        for emotion in analytics.by_emotion:
            print(
                f"   {emotion.emotional_state:<20} {emotion.trade_count:>4} trades "
                f"{emotion.wins:>4} wins {_fmt_money(emotion.total_pnl):>12}"
            )

    frame = analytics.monthly_pnl_frame()
    if not frame.empty:
        print("\n📅 Monthly P&L")
        for _, row in frame.iterrows():
            print(
                f"   {row['month']:<8} {int(row['trade_count']):>4} trades "
                f"{_fmt_money(row['total_pnl']):>12}  cum {_fmt_money(row['cumulative_pnl']):>12}"
            )


def cmd_search(args):
    """Search trades, notes and influencers."""
    init_db()

    results = search(" ".join(args.query))
    if not results:
        print("No matches.")
        return

    icons = {"trade": "💼", "note": "📝", "influencer": "📣"}
    for result in results:
        subtitle = f" - {result.subtitle}" if result.subtitle else ""
        print(f"{icons[result.type]} [{result.type} #{result.id}] {result.title}{subtitle}")


def cmd_tag(args):
    """Manage tags."""
    init_db()

    if args.action == "list":
        listing = get_all_tags()
        if not listing.total:
            print("No tags yet.")
            return
        print(f"\n🏷️ Tags ({listing.total})")
        for item in listing.tags:
            parent = f" (parent #{item.tag.parent_tag_id})" if item.tag.parent_tag_id else ""
            print(f"   #{item.tag.id:<4} {item.tag.name:<20} {item.tag.category.value:<10} {item.trade_count:>4} trades{parent}")
        return

    if args.action == "add":
        result = create_tag(args.name, args.category, parent_tag_id=args.parent, color=args.color)
    elif args.action == "rename":
        result = rename_tag(args.tag_id, args.name)
    elif args.action == "delete":
        result = delete_tag(args.tag_id)
    else:
        result = set_trade_tags(args.trade_id, args.tags or [])

    print(result.message)
    return 0 if result.success else 1


def cmd_influencers(args):
    """Manage influencers and list their calls."""
    init_db()

    if args.action == "add":
        result = create_influencer(args.name, args.platform, handle=args.handle, link=args.link)
        print(result.message)
        return 0 if result.success else 1

    if args.action == "delete":
        result = delete_influencer(args.influencer_id)
        print(result.message)
        return 0 if result.success else 1

    if args.action == "calls":
        calls = list_influencer_calls(args.influencer_id)
        if not calls:
            print("No calls recorded.")
            return
        for call in calls:
            trade = f" -> trade #{call.trade_id}" if call.trade_id else ""
            print(f"   {call.call_date:%Y-%m-%d} [#{call.influencer_id}] {(call.call_content or '')[:60]}{trade}")
        return

    influencers = get_all_influencers()
    if not influencers:
        print("No influencers tracked yet.")
        return
    print(f"\n📣 Influencers ({len(influencers)})")
    for influencer in influencers:
        handle = f" {influencer.handle}" if influencer.handle else ""
        print(f"   #{influencer.id:<4} {influencer.name:<20} {influencer.platform}{handle}")


def cmd_dedupe(args):
    """Remove duplicate trades."""
    init_db()

    result = remove_duplicate_trades()
    print(f"✅ Removed {result.removed} duplicate trades, kept {result.kept}")


def cmd_import_csv(args):
    """Import trades from a CSV file."""
    init_db()

    result = import_trades_csv(args.path)
    if not result.success:
        print(f"❌ Import failed ({len(result.errors)} errors)")
        for error in result.errors[:10]:
            print(f"   {error}")
        return 1

    print(f"✅ Imported {result.imported} trades")
    if result.skipped_hidden:
        print(f"   Skipped {result.skipped_hidden} trades for hidden tokens")


def cmd_hide(args):
    """Delete all trades for a token and hide it from future imports."""
    init_db()

    removed = delete_and_hide_token(args.symbol, args.contract)
    print(f"✅ Deleted {removed} trades and hid {args.symbol.upper()}")


def cmd_setting(args):
    """Read or write settings."""
    db = init_db()
    settings = SettingsStore(db)

    if args.key is None:
        for key, value in sorted(settings.all().items()):
            print(f"   {key} = {value}")
        return

    if args.value is None:
        value = settings.get(args.key)
        print(value if value is not None else f"{args.key} is not set")
        return

    if args.key == "theme":
        settings.set_theme(args.value)
    else:
        settings.set(args.key, args.value)
    print(f"✅ {args.key} = {args.value}")


def main():
    """Main CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    parser = argparse.ArgumentParser(
        description="Crypto Trading Journal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    init = subparsers.add_parser("init", help="Initialize database")
    init.add_argument("--db-url", help="Custom database URL", default=None)
    init.add_argument("--if-drop", action="store_true", help="Drop existing tables before creating")

    # add-trade command
    add_trade = subparsers.add_parser("add-trade", help="Log a trade")
    add_trade.add_argument("symbol", help="Token symbol")
    add_trade.add_argument("--direction", choices=["buy", "sell"], default="buy")
    add_trade.add_argument("--price", type=float, required=True, help="Entry price per unit")
    add_trade.add_argument("--quantity", type=float, required=True, help="Token quantity")
    add_trade.add_argument("--date", help="Entry date (YYYY-MM-DD, default: now)")
    add_trade.add_argument("--exit-price", type=float, help="Exit price (for closed trades)")
    add_trade.add_argument("--exit-date", help="Exit date (YYYY-MM-DD)")
    add_trade.add_argument("--status", choices=[s.value for s in TradeStatus], default="open")
    add_trade.add_argument("--name", help="Token name")
    add_trade.add_argument("--chain", help="Chain (e.g. solana)")
    add_trade.add_argument("--contract", help="Token contract address")
    add_trade.add_argument("--platform", help="Trading platform")

    # close-trade command
    close = subparsers.add_parser("close-trade", help="Close a trade")
    close.add_argument("trade_id", type=int, help="Trade ID")
    close.add_argument("--price", type=float, required=True, help="Exit price per unit")
    close.add_argument("--date", help="Exit date (YYYY-MM-DD, default: now)")

    # trades command
    trades = subparsers.add_parser("trades", help="List trades")
    trades.add_argument("--status", choices=[s.value for s in TradeStatus], help="Filter by status")
    trades.add_argument("--since", help="Start date (YYYY-MM-DD)")
    trades.add_argument("--until", help="End date (YYYY-MM-DD)")
    trades.add_argument("--search", help="Token symbol/name contains")
    trades.add_argument("--limit", type=int, default=20, help="Max number of trades to show")

    # analytics command
    analytics = subparsers.add_parser("analytics", help="Show trading analytics")
    analytics.add_argument("--since", help="Start date (YYYY-MM-DD)")
    analytics.add_argument("--until", help="End date (YYYY-MM-DD)")

    # search command
    search_cmd = subparsers.add_parser("search", help="Search trades, notes and influencers")
    search_cmd.add_argument("query", nargs="+", help="Search text")

    # tag command
    tag = subparsers.add_parser("tag", help="Manage tags")
    tag_actions = tag.add_subparsers(dest="action", required=True)
    tag_actions.add_parser("list", help="List tags with trade counts")
    tag_add = tag_actions.add_parser("add", help="Create a tag")
    tag_add.add_argument("name")
    tag_add.add_argument("--category", choices=[c.value for c in TagCategory], required=True)
    tag_add.add_argument("--parent", type=int, help="Parent tag ID")
    tag_add.add_argument("--color", help="Display color")
    tag_rename = tag_actions.add_parser("rename", help="Rename a tag")
    tag_rename.add_argument("tag_id", type=int)
    tag_rename.add_argument("name")
    tag_delete = tag_actions.add_parser("delete", help="Delete a tag")
    tag_delete.add_argument("tag_id", type=int)
    tag_attach = tag_actions.add_parser("attach", help="Replace the tags of a trade")
    tag_attach.add_argument("trade_id", type=int)
    tag_attach.add_argument("--tags", type=int, nargs="*", help="Tag IDs (none clears)")

    # influencers command
    influencers = subparsers.add_parser("influencers", help="Manage influencers")
    influencer_actions = influencers.add_subparsers(dest="action")
    influencer_actions.add_parser("list", help="List influencers")
    influencer_add = influencer_actions.add_parser("add", help="Add an influencer")
    influencer_add.add_argument("name")
    influencer_add.add_argument("--platform", required=True)
    influencer_add.add_argument("--handle")
    influencer_add.add_argument("--link")
    influencer_delete = influencer_actions.add_parser("delete", help="Delete an influencer and its calls")
    influencer_delete.add_argument("influencer_id", type=int)
    influencer_calls = influencer_actions.add_parser("calls", help="List calls")
    influencer_calls.add_argument("--influencer-id", type=int, help="Only this influencer")

    # dedupe command
    subparsers.add_parser("dedupe", help="Remove duplicate trades")

    # import-csv command
    import_csv = subparsers.add_parser("import-csv", help="Import trades from CSV")
    import_csv.add_argument("path", help="CSV file with trade columns")

    # hide command
    hide = subparsers.add_parser("hide", help="Delete a token's trades and hide it")
    hide.add_argument("symbol", help="Token symbol")
    hide.add_argument("--contract", help="Token contract address")

    # setting command
    setting = subparsers.add_parser("setting", help="Read or write settings")
    setting.add_argument("key", nargs="?", help="Setting key (omit to list all)")
    setting.add_argument("value", nargs="?", help="New value (omit to read)")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "add-trade": cmd_add_trade,
        "close-trade": cmd_close_trade,
        "trades": cmd_trades,
        "analytics": cmd_analytics,
        "search": cmd_search,
        "tag": cmd_tag,
        "influencers": cmd_influencers,
        "dedupe": cmd_dedupe,
        "import-csv": cmd_import_csv,
        "hide": cmd_hide,
        "setting": cmd_setting,
    }

    try:
        return commands[args.command](args)
    except (JournalError, ValueError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
