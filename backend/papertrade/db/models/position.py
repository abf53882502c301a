"""
PaperTrading Ledger - Position Models

Open positions are a tagged union on ``type``:
- StockPosition: cost_basis = shares * entry_price
- OptionPosition: cost_basis = entry_premium * 100 * contracts

Closing a position turns it into the matching ClosedTrade variant,
which carries every position field plus the exit details.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Shares per standard option contract
CONTRACT_MULTIPLIER = 100

# Money is Decimal in memory and a plain JSON number on disk
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_position_id() -> str:
    return uuid4().hex


class OptionType(str, Enum):
    """Option contract type."""
    CALL = "call"
    PUT = "put"


class LedgerModel(BaseModel):
    """Base for persisted ledger records (immutable, camelCase on disk)."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _PositionFields(LedgerModel):
    id: str = Field(default_factory=new_position_id)
    symbol: str = Field(..., min_length=1, max_length=20)
    entry_date: datetime = Field(default_factory=utcnow)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()


class StockPosition(_PositionFields):
    """Open equity position."""
    type: Literal["stock"] = "stock"
    shares: int = Field(..., gt=0)
    entry_price: Money = Field(..., gt=0)

    @computed_field(alias="costBasis")
    @property
    def cost_basis(self) -> Money:
        return self.shares * self.entry_price

    def proceeds_at(self, exit_price: Decimal) -> Decimal:
        return self.shares * exit_price

    def settle(self, exit_price: Decimal, exit_date: datetime | None = None) -> "ClosedStockTrade":
        """Close the full position at ``exit_price``."""
        return ClosedStockTrade(
            **dict(self),
            exit_price=exit_price,
            exit_date=exit_date or utcnow(),
            proceeds=self.proceeds_at(exit_price),
        )


class OptionPosition(_PositionFields):
    """Open option position (long calls or puts)."""
    type: Literal["option"] = "option"
    option_type: OptionType
    strike: Money = Field(..., gt=0)
    expiration: date
    contracts: int = Field(..., gt=0)
    entry_premium: Money = Field(..., gt=0)

    @computed_field(alias="costBasis")
    @property
    def cost_basis(self) -> Money:
        return self.entry_premium * CONTRACT_MULTIPLIER * self.contracts

    def proceeds_at(self, exit_premium: Decimal) -> Decimal:
        return exit_premium * CONTRACT_MULTIPLIER * self.contracts

    def settle(self, exit_premium: Decimal, exit_date: datetime | None = None) -> "ClosedOptionTrade":
        """Close all contracts at ``exit_premium``."""
        return ClosedOptionTrade(
            **dict(self),
            exit_premium=exit_premium,
            exit_date=exit_date or utcnow(),
            proceeds=self.proceeds_at(exit_premium),
        )


class _ClosedFields(LedgerModel):
    exit_date: datetime
    proceeds: Money

    @computed_field(alias="profitLoss")
    @property
    def profit_loss(self) -> Money:
        return self.proceeds - self.cost_basis

    @computed_field(alias="percentReturn")
    @property
    def percent_return(self) -> Money:
        return self.profit_loss / self.cost_basis * 100


class ClosedStockTrade(_ClosedFields, StockPosition):
    """Stock position closed in full."""
    exit_price: Money = Field(..., ge=0)


class ClosedOptionTrade(_ClosedFields, OptionPosition):
    """Option position closed in full."""
    exit_premium: Money = Field(..., ge=0)


Position = Annotated[
    Union[StockPosition, OptionPosition],
    Field(discriminator="type"),
]

ClosedTrade = Annotated[
    Union[ClosedStockTrade, ClosedOptionTrade],
    Field(discriminator="type"),
]
