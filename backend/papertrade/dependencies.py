"""
PaperTrading Ledger - Dependencies
Dependency injection for FastAPI endpoints
"""
from fastapi import HTTPException, Request, status

from papertrade.core.trading import PriceLookup, TradeService


def get_trade_service(request: Request) -> TradeService:
    """
    Trade service dependency.

    Returns:
        TradeService bound to the application's ledger store
    """
    service = getattr(request.app.state, "trade_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ledger store not initialized"
        )
    return service


def get_price_lookup(request: Request) -> PriceLookup:
    """
    Price lookup dependency.

    Returns:
        Async callable symbol -> price
    """
    lookup = getattr(request.app.state, "price_lookup", None)
    if lookup is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Quote provider not initialized"
        )
    return lookup
