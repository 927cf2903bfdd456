"""
Analytics package initialization.

Exports commonly used analytics functions for convenient imports:
    from analytics import compute_analytics, TradingAnalyzer, etc.
"""

from analytics.trading import (
    PROFIT_FACTOR_NO_LOSSES,
    Analytics,
    EmotionPerformance,
    MonthlyPnl,
    TagPerformance,
    TagSnapshot,
    TradeSnapshot,
    TradingAnalyzer,
    compute_analytics,
    compute_trading_analytics,
)

__all__ = [
    "PROFIT_FACTOR_NO_LOSSES",
    "Analytics",
    "EmotionPerformance",
    "MonthlyPnl",
    "TagPerformance",
    "TagSnapshot",
    "TradeSnapshot",
    "TradingAnalyzer",
    "compute_analytics",
    "compute_trading_analytics",
]
