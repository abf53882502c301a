"""
PaperTrading Ledger - Portfolio Schemas
"""
from datetime import date
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union
from fastapi import Body
from pydantic import BaseModel, Field, model_validator


class BuyStockRequest(BaseModel):
    """Buy shares; without a price the live quote is used."""
    action: Literal["buy_stock"]
    symbol: str = Field(..., description="Stock ticker symbol")
    quantity: Decimal = Field(..., description="Number of shares")
    price: Optional[Decimal] = Field(None, description="Price per share")


class OptionDetails(BaseModel):
    """Contract terms for an option purchase."""
    type: str = Field(..., description="call or put")
    strike: Decimal
    expiration: date
    premium: Decimal = Field(..., description="Premium per share")


class BuyOptionRequest(BaseModel):
    """Buy option contracts."""
    action: Literal["buy_option"]
    symbol: str = Field(..., description="Underlying ticker symbol")
    quantity: Decimal = Field(..., description="Number of contracts")
    option_details: OptionDetails


# Discriminated on "action"
TradeRequest = Annotated[
    Union[BuyStockRequest, BuyOptionRequest],
    Body(discriminator="action"),
]


class ClosePositionRequest(BaseModel):
    """
    Close a position.

    Options are closed by ``position_id`` and ``exit_premium``;
    stocks by ``symbol`` with an optional ``current_price``.
    """
    symbol: Optional[str] = None
    current_price: Optional[Decimal] = None
    position_id: Optional[str] = None
    exit_premium: Optional[Decimal] = None

    @model_validator(mode="after")
    def check_target(self) -> "ClosePositionRequest":
        if self.position_id is None and self.symbol is None:
            raise ValueError("Either position_id or symbol is required")
        if self.position_id is not None and self.exit_premium is None:
            raise ValueError("exit_premium is required to close an option")
        return self

    @property
    def is_option(self) -> bool:
        return self.position_id is not None
