"""
PaperTrading Ledger - Valuation Engine

Values open positions at live prices without touching the stored ledger.

Stock positions are marked to the quoted price. Options are carried at
cost basis since no option pricing model is applied; the underlying's
quote is reported alongside when available. A failed quote never fails
the whole view: that position falls back to its cost basis.
"""
import asyncio
from decimal import Decimal
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

from papertrade.db.models.ledger import Ledger, STARTING_BALANCE
from papertrade.db.models.position import ClosedTrade, Money, Position
from papertrade.utils.exceptions import QuoteUnavailableError


PriceLookup = Callable[[str], Awaitable[Decimal]]


class PositionValuation(BaseModel):
    """Open position with its current value and unrealized P/L."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    position: Position
    current_price: Optional[Money] = None
    underlying_price: Optional[Money] = None
    current_value: Money
    unrealized_pl: Money = Field(alias="unrealizedPL")
    unrealized_percent: Money
    quote_available: bool = True

    @model_serializer(mode="wrap")
    def flatten_position(self, handler):
        # Rows carry the position fields at top level
        row = handler(self)
        return {**row.pop("position"), **row}


class PortfolioView(BaseModel):
    """Read-only valuated view of the ledger."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    balance: Money
    open_positions: List[PositionValuation]
    closed_trades: List[ClosedTrade]
    total_realized_pl: Money = Field(alias="totalRealizedPL")
    total_unrealized_pl: Money = Field(alias="totalUnrealizedPL")
    total_portfolio_value: Money
    total_return: Money
    total_return_percent: Money


async def _fetch_prices(
    symbols: List[str],
    price_lookup: PriceLookup,
) -> Dict[str, Optional[Decimal]]:
    async def fetch(symbol: str) -> Tuple[str, Optional[Decimal]]:
        try:
            price = await price_lookup(symbol)
            return symbol, price if isinstance(price, Decimal) else Decimal(str(price))
        except QuoteUnavailableError as e:
            logger.warning(f"Error getting price for {symbol}: {e.message}")
            return symbol, None

    results = await asyncio.gather(*(fetch(s) for s in symbols))
    return dict(results)


def _value_position(position: Position, price: Optional[Decimal]) -> PositionValuation:
    cost_basis = position.cost_basis

    if position.type == "option":
        return PositionValuation(
            position=position,
            underlying_price=price,
            current_value=cost_basis,
            unrealized_pl=Decimal("0"),
            unrealized_percent=Decimal("0"),
            quote_available=price is not None,
        )

    if price is None:
        return PositionValuation(
            position=position,
            current_value=cost_basis,
            unrealized_pl=Decimal("0"),
            unrealized_percent=Decimal("0"),
            quote_available=False,
        )

    current_value = position.shares * price
    unrealized_pl = current_value - cost_basis
    return PositionValuation(
        position=position,
        current_price=price,
        current_value=current_value,
        unrealized_pl=unrealized_pl,
        unrealized_percent=unrealized_pl / cost_basis * 100,
    )


async def valuate(
    ledger: Ledger,
    price_lookup: PriceLookup,
    initial_capital: Decimal = STARTING_BALANCE,
) -> PortfolioView:
    """
    Value every open position in ``ledger`` at current prices.

    Args:
        ledger: Ledger snapshot to value
        price_lookup: async symbol -> price, raising QuoteUnavailableError
        initial_capital: Baseline for total return

    Returns:
        PortfolioView with per-position and aggregate figures
    """
    symbols = list(dict.fromkeys(p.symbol for p in ledger.open_positions))
    prices = await _fetch_prices(symbols, price_lookup) if symbols else {}

    valuations = [_value_position(p, prices.get(p.symbol)) for p in ledger.open_positions]

    total_value = ledger.balance + sum((v.current_value for v in valuations), Decimal("0"))
    total_unrealized = sum((v.unrealized_pl for v in valuations), Decimal("0"))
    total_return = total_value - initial_capital

    return PortfolioView(
        balance=ledger.balance,
        open_positions=valuations,
        closed_trades=list(ledger.closed_trades),
        total_realized_pl=ledger.total_realized_pl,
        total_unrealized_pl=total_unrealized,
        total_portfolio_value=total_value,
        total_return=total_return,
        total_return_percent=total_return / initial_capital * 100,
    )
