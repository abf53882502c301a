"""
PaperTrading Ledger - Trading Engine Module

Core trading functionality including:
- Opening and closing stock and option positions
- Portfolio valuation at live prices
"""
from papertrade.core.trading.ledger_service import (
    TradeService,
    StockOpenResult,
    OptionOpenResult,
    CloseResult,
)
from papertrade.core.trading.valuation import (
    PortfolioView,
    PositionValuation,
    PriceLookup,
    valuate,
)

__all__ = [
    # Trade operations
    "TradeService",
    "StockOpenResult",
    "OptionOpenResult",
    "CloseResult",

    # Valuation
    "PortfolioView",
    "PositionValuation",
    "PriceLookup",
    "valuate",
]
