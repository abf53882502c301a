"""
PaperTrading Ledger - Custom Exceptions
Application-specific exceptions with HTTP error handling
"""
from decimal import Decimal
from typing import Optional, Any, Dict
from fastapi import HTTPException, status


class PaperTradingException(Exception):
    """Base exception for PaperTrading Ledger."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


# =========================
# Ledger Exceptions
# =========================

class LedgerError(PaperTradingException):
    """Errors raised by a rejected ledger transaction."""
    pass


class InvalidInputError(LedgerError):
    """Non-positive quantity, price, premium or contracts."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message=message, code="INVALID_INPUT")


class InsufficientFundsError(LedgerError):
    """Trade cost exceeds the cash balance."""

    def __init__(
        self,
        required: Optional[Decimal] = None,
        available: Optional[Decimal] = None,
        message: Optional[str] = None
    ):
        if message is None:
            if required is not None and available is not None:
                message = (
                    f"Insufficient funds. Available: ${available:,.2f}, "
                    f"Required: ${required:,.2f}"
                )
            else:
                message = "Insufficient funds"
        details = {}
        if required is not None:
            details["required"] = str(required)
        if available is not None:
            details["available"] = str(available)
        super().__init__(message=message, code="INSUFFICIENT_FUNDS", details=details)


class PositionNotFoundError(LedgerError):
    """No matching open position for a close request."""

    def __init__(self, message: str = "Position not found"):
        super().__init__(message=message, code="POSITION_NOT_FOUND")


class WrongPositionTypeError(LedgerError):
    """Close request targets a position of the other kind."""

    def __init__(self, message: str = "Wrong position type"):
        super().__init__(message=message, code="WRONG_POSITION_TYPE")


# =========================
# Market Data Exceptions
# =========================

class MarketDataError(PaperTradingException):
    """Market data related errors."""
    pass


class QuoteUnavailableError(MarketDataError):
    """Price lookup failed for a symbol."""

    def __init__(self, symbol: str = "", reason: str = ""):
        self.symbol = symbol
        message = f"Quote unavailable for {symbol}" if symbol else "Quote unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message=message, code="QUOTE_UNAVAILABLE")


# =========================
# Storage Exceptions
# =========================

class StoreIOError(PaperTradingException):
    """Ledger record could not be read, decoded or written."""

    def __init__(self, message: str = "Ledger storage error"):
        super().__init__(message=message, code="STORE_IO")


# =========================
# HTTP Exception Helpers
# =========================

def raise_not_found(message: str = "Resource not found"):
    """Raise 404 Not Found exception."""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=message
    )


def raise_bad_request(message: str = "Bad request"):
    """Raise 400 Bad Request exception."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=message
    )


def raise_internal_error(message: str = "Internal server error"):
    """Raise 500 Internal Server Error exception."""
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message
    )
