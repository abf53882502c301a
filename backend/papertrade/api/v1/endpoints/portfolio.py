"""
PaperTrading Ledger - Portfolio Endpoints

API endpoints for viewing the portfolio, opening and closing
positions, and resetting the account.
"""
from typing import NoReturn

from fastapi import APIRouter, Depends
from loguru import logger

from papertrade.core.trading import PriceLookup, TradeService
from papertrade.dependencies import get_price_lookup, get_trade_service
from papertrade.schemas.portfolio import (
    BuyStockRequest,
    ClosePositionRequest,
    TradeRequest,
)
from papertrade.utils.exceptions import (
    LedgerError,
    PaperTradingException,
    PositionNotFoundError,
    QuoteUnavailableError,
    raise_bad_request,
    raise_internal_error,
    raise_not_found,
)


router = APIRouter()


# ==================== Helper Functions ====================

def raise_for_error(error: PaperTradingException) -> NoReturn:
    """Translate a ledger or market data error into an HTTP error."""
    if isinstance(error, PositionNotFoundError):
        raise_not_found(error.message)
    if isinstance(error, (LedgerError, QuoteUnavailableError)):
        raise_bad_request(error.message)
    logger.error(f"Ledger failure: {error.code} - {error.message}")
    raise_internal_error(error.message)


def dump(model) -> dict:
    """Serialize a ledger model the way it is persisted."""
    return model.model_dump(mode="json", by_alias=True)


# ==================== Endpoints ====================

@router.get("")
async def get_portfolio(
    service: TradeService = Depends(get_trade_service),
    price_lookup: PriceLookup = Depends(get_price_lookup),
):
    """
    Get the portfolio valued at live prices.

    Positions whose quote is unavailable are carried at cost basis.
    """
    try:
        view = await service.get_portfolio(price_lookup)
    except PaperTradingException as e:
        raise_for_error(e)
    return {"success": True, "portfolio": dump(view)}


@router.post("/trade")
async def open_position(
    request: TradeRequest,
    service: TradeService = Depends(get_trade_service),
    price_lookup: PriceLookup = Depends(get_price_lookup),
):
    """Buy a stock or an option."""
    try:
        if isinstance(request, BuyStockRequest):
            price = request.price
            if price is None:
                price = await price_lookup(request.symbol)
            result = await service.open_stock(request.symbol, request.quantity, price)
        else:
            details = request.option_details
            result = await service.open_option(
                request.symbol,
                details.type,
                details.strike,
                details.expiration,
                details.premium,
                request.quantity,
            )
    except PaperTradingException as e:
        raise_for_error(e)

    return {
        "success": True,
        "position": dump(result.position),
        "newBalance": float(result.new_balance),
    }


@router.post("/close")
async def close_position(
    request: ClosePositionRequest,
    service: TradeService = Depends(get_trade_service),
    price_lookup: PriceLookup = Depends(get_price_lookup),
):
    """Close an option by id, or the first stock position in a symbol."""
    try:
        if request.is_option:
            result = await service.close_option(request.position_id, request.exit_premium)
        else:
            price = request.current_price
            if price is None:
                price = await price_lookup(request.symbol)
            result = await service.close_stock(request.symbol, price)
    except PaperTradingException as e:
        raise_for_error(e)

    return {
        "success": True,
        "trade": dump(result.trade),
        "newBalance": float(result.new_balance),
    }


@router.post("/reset")
async def reset_portfolio(
    service: TradeService = Depends(get_trade_service),
):
    """Reset the account to its starting balance."""
    try:
        ledger = await service.reset()
    except PaperTradingException as e:
        raise_for_error(e)
    return {"success": True, "portfolio": dump(ledger)}
