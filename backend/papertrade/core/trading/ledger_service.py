"""
PaperTrading Ledger - Trade Service

Opens and closes stock and option positions against the ledger.

Each operation is exactly one LedgerStore transaction: inputs are
validated up front, solvency and position lookups are checked against
the ledger read inside the transaction, and a rejected trade leaves
the stored ledger untouched.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from loguru import logger

from papertrade.core.trading.valuation import PortfolioView, PriceLookup, valuate
from papertrade.db.ledger_store import LedgerStore
from papertrade.db.models.ledger import Ledger
from papertrade.db.models.position import (
    ClosedOptionTrade,
    ClosedStockTrade,
    OptionPosition,
    OptionType,
    StockPosition,
)
from papertrade.utils.exceptions import (
    InsufficientFundsError,
    InvalidInputError,
    LedgerError,
    PositionNotFoundError,
    WrongPositionTypeError,
)


@dataclass(frozen=True)
class StockOpenResult:
    """Result of opening a stock position."""
    position: StockPosition
    new_balance: Decimal


@dataclass(frozen=True)
class OptionOpenResult:
    """Result of opening an option position."""
    position: OptionPosition
    new_balance: Decimal


@dataclass(frozen=True)
class CloseResult:
    """Result of closing a position."""
    trade: Union[ClosedStockTrade, ClosedOptionTrade]
    new_balance: Decimal


def _to_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number")
    try:
        # str() keeps float inputs at their printed value
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not result.is_finite():
        raise InvalidInputError(f"{name} must be finite")
    return result


def _positive(value: Any, name: str) -> Decimal:
    result = _to_decimal(value, name)
    if result <= 0:
        raise InvalidInputError(f"{name} must be positive")
    return result


def _positive_int(value: Any, name: str) -> int:
    result = _positive(value, name)
    if result != result.to_integral_value():
        raise InvalidInputError(f"{name} must be a whole number")
    return int(result)


def _symbol(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("Symbol is required")
    if len(value.strip()) > 20:
        raise InvalidInputError(f"Symbol too long: {value!r}")
    return value.strip().upper()


def _apply_open(ledger: Ledger, position: Union[StockPosition, OptionPosition]) -> Ledger:
    cost = position.cost_basis
    if cost > ledger.balance:
        raise InsufficientFundsError(required=cost, available=ledger.balance)
    return ledger.evolve(
        balance=ledger.balance - cost,
        open_positions=ledger.open_positions + (position,),
    )


def _apply_close(
    ledger: Ledger,
    index: int,
    trade: Union[ClosedStockTrade, ClosedOptionTrade],
) -> Ledger:
    remaining = ledger.open_positions[:index] + ledger.open_positions[index + 1:]
    return ledger.evolve(
        balance=ledger.balance + trade.proceeds,
        open_positions=remaining,
        closed_trades=ledger.closed_trades + (trade,),
        total_realized_pl=ledger.total_realized_pl + trade.profit_loss,
    )


class TradeService:
    """
    Trade Service

    Responsible for:
    - Opening and closing stock positions
    - Opening and closing option positions
    - Resetting the account
    - Building the valuated portfolio view
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def open_stock(self, symbol: str, quantity: Any, price: Any) -> StockOpenResult:
        """
        Buy ``quantity`` shares of ``symbol`` at ``price``.

        Raises:
            InvalidInputError: quantity or price not positive
            InsufficientFundsError: cost exceeds the cash balance
        """
        position = StockPosition(
            symbol=_symbol(symbol),
            shares=_positive_int(quantity, "Quantity"),
            entry_price=_positive(price, "Price"),
        )

        ledger = await self._commit(
            lambda current: _apply_open(current, position),
            f"open stock {position.symbol}",
        )

        logger.info(
            f"Opened stock: {position.shares} {position.symbol} @ {position.entry_price} "
            f"(cost {position.cost_basis:,.2f}, balance {ledger.balance:,.2f})"
        )
        return StockOpenResult(position=position, new_balance=ledger.balance)

    async def close_stock(self, symbol: str, current_price: Any) -> CloseResult:
        """
        Sell the first open stock position in ``symbol``, in full.

        Raises:
            InvalidInputError: price not positive
            PositionNotFoundError: no open stock position in ``symbol``
        """
        symbol = _symbol(symbol)
        exit_price = _positive(current_price, "Current price")

        def close(current: Ledger) -> Ledger:
            found = current.find_stock(symbol)
            if found is None:
                raise PositionNotFoundError(f"No open position found for {symbol}")
            index, position = found
            return _apply_close(current, index, position.settle(exit_price))

        ledger = await self._commit(close, f"close stock {symbol}")

        trade = ledger.closed_trades[-1]
        logger.info(
            f"Closed stock: {trade.shares} {trade.symbol} @ {trade.exit_price} "
            f"(P/L {trade.profit_loss:,.2f}, balance {ledger.balance:,.2f})"
        )
        return CloseResult(trade=trade, new_balance=ledger.balance)

    async def open_option(
        self,
        symbol: str,
        option_type: Any,
        strike: Any,
        expiration: Union[date, str],
        premium: Any,
        contracts: Any,
    ) -> OptionOpenResult:
        """
        Buy ``contracts`` option contracts at ``premium`` per share.

        Raises:
            InvalidInputError: contracts, premium or strike not positive,
                or an unknown option type or expiration
            InsufficientFundsError: cost exceeds the cash balance
        """
        try:
            if isinstance(option_type, OptionType):
                kind = option_type
            else:
                kind = OptionType(str(option_type).strip().lower())
        except ValueError:
            raise InvalidInputError(f"Option type must be 'call' or 'put', got {option_type!r}")
        try:
            expires = expiration if isinstance(expiration, date) else date.fromisoformat(str(expiration))
        except ValueError:
            raise InvalidInputError(f"Expiration must be an ISO date, got {expiration!r}")

        position = OptionPosition(
            symbol=_symbol(symbol),
            option_type=kind,
            strike=_positive(strike, "Strike"),
            expiration=expires,
            contracts=_positive_int(contracts, "Contracts"),
            entry_premium=_positive(premium, "Premium"),
        )

        ledger = await self._commit(
            lambda current: _apply_open(current, position),
            f"open option {position.symbol}",
        )

        logger.info(
            f"Opened option: {position.contracts}x {position.symbol} {position.strike} "
            f"{position.option_type.value} {position.expiration} @ {position.entry_premium} "
            f"(cost {position.cost_basis:,.2f}, balance {ledger.balance:,.2f})"
        )
        return OptionOpenResult(position=position, new_balance=ledger.balance)

    async def close_option(self, position_id: str, exit_premium: Any) -> CloseResult:
        """
        Close the option position ``position_id`` at ``exit_premium``.

        A zero premium closes a contract that expired worthless.

        Raises:
            InvalidInputError: negative premium
            PositionNotFoundError: no open position with that id
            WrongPositionTypeError: the position is a stock
        """
        premium = _to_decimal(exit_premium, "Exit premium")
        if premium < 0:
            raise InvalidInputError("Exit premium cannot be negative")

        def close(current: Ledger) -> Ledger:
            found = current.find_position(str(position_id))
            if found is None:
                raise PositionNotFoundError(f"Position {position_id} not found")
            index, position = found
            if not isinstance(position, OptionPosition):
                raise WrongPositionTypeError(f"Position {position_id} is not an option")
            return _apply_close(current, index, position.settle(premium))

        ledger = await self._commit(close, f"close option {position_id}")

        trade = ledger.closed_trades[-1]
        logger.info(
            f"Closed option: {trade.contracts}x {trade.symbol} {trade.strike} "
            f"{trade.option_type.value} @ {trade.exit_premium} "
            f"(P/L {trade.profit_loss:,.2f}, balance {ledger.balance:,.2f})"
        )
        return CloseResult(trade=trade, new_balance=ledger.balance)

    async def reset(self) -> Ledger:
        """Start over with a fresh account."""
        return await self.store.reset()

    async def get_ledger(self) -> Ledger:
        """Current ledger snapshot."""
        return await self.store.load()

    async def get_portfolio(self, price_lookup: PriceLookup) -> PortfolioView:
        """Current ledger valued at live prices."""
        ledger = await self.store.load()
        return await valuate(ledger, price_lookup, initial_capital=self.store.starting_balance)

    async def _commit(self, fn, description: str) -> Ledger:
        try:
            return await self.store.transact(fn)
        except LedgerError as e:
            logger.warning(f"Rejected {description}: {e.message}")
            raise
