"""
PaperTrading Ledger - Data Models
"""
from papertrade.db.models.position import (
    CONTRACT_MULTIPLIER,
    ClosedOptionTrade,
    ClosedStockTrade,
    ClosedTrade,
    OptionPosition,
    OptionType,
    Position,
    StockPosition,
)
from papertrade.db.models.ledger import Ledger, STARTING_BALANCE

__all__ = [
    "CONTRACT_MULTIPLIER",
    "ClosedOptionTrade",
    "ClosedStockTrade",
    "ClosedTrade",
    "Ledger",
    "OptionPosition",
    "OptionType",
    "Position",
    "STARTING_BALANCE",
    "StockPosition",
]
