"""
PaperTrading Ledger - Ledger Model

The single persisted record: cash balance, open positions,
closed trades and cumulative realized P/L.
"""
from datetime import datetime
from decimal import Decimal
from typing import Tuple

from pydantic import AliasChoices, Field, ValidationError, model_validator

from papertrade.db.models.position import (
    ClosedTrade,
    LedgerModel,
    Money,
    Position,
    utcnow,
)
from papertrade.utils.exceptions import StoreIOError


STARTING_BALANCE = Decimal("1000000")


class Ledger(LedgerModel):
    """Immutable snapshot of the account ledger."""

    balance: Money = Field(..., ge=0)
    open_positions: Tuple[Position, ...] = ()
    closed_trades: Tuple[ClosedTrade, ...] = ()
    # Older records store this as "totalPL"
    total_realized_pl: Money = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("totalRealizedPL", "totalPL"),
        serialization_alias="totalRealizedPL",
    )
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_unique_position_ids(self) -> "Ledger":
        ids = [p.id for p in self.open_positions]
        if len(ids) != len(set(ids)):
            raise ValueError("Open position ids must be unique")
        return self

    @classmethod
    def fresh(cls, starting_balance: Decimal = STARTING_BALANCE) -> "Ledger":
        """New ledger with full starting cash and no history."""
        return cls(balance=starting_balance)

    def evolve(self, **changes) -> "Ledger":
        """Return a validated copy with ``changes`` applied."""
        return type(self)(**{**dict(self), **changes})

    def find_position(self, position_id: str) -> Tuple[int, Position] | None:
        for index, position in enumerate(self.open_positions):
            if position.id == position_id:
                return index, position
        return None

    def find_stock(self, symbol: str) -> Tuple[int, Position] | None:
        """First open stock position for ``symbol`` in insertion order."""
        symbol = symbol.strip().upper()
        for index, position in enumerate(self.open_positions):
            if position.type == "stock" and position.symbol == symbol:
                return index, position
        return None

    def to_record(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_record(cls, raw: str | bytes) -> "Ledger":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise StoreIOError(f"Ledger record is corrupt: {e.error_count()} validation error(s)") from e
