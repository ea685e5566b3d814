from dataclasses import dataclass, field
from enum import Enum
from decimal import Decimal
from datetime import date, datetime
from typing import FrozenSet, Optional

class TradeType(Enum):
    BUY = "buy"
    SELL = "sell"

@dataclass(frozen=True)
class Trade:
    """ Single ledger entry. Edited only by full replacement in the ledger. """
    id: str
    code: str          # Aggregation key, e.g. "600519" or "AAPL"
    name: str
    type: TradeType
    price: Decimal
    quantity: int
    timestamp: datetime  # Date-only inputs are stored at midnight
    commission: Optional[Decimal] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def date(self) -> date:
        return self.timestamp.date()

    @property
    def amount(self) -> Decimal:
        """ Gross trade amount, commission excluded. """
        return self.price * self.quantity

    @property
    def fee(self) -> Decimal:
        return self.commission if self.commission is not None else Decimal("0")

@dataclass
class Position:
    code: str
    name: str
    total_quantity: int
    total_cost: Decimal    # Cost basis of the units still held
    average_cost: Decimal
    # None means "price unknown" and propagates through every field below
    current_price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None
    profit_loss: Optional[Decimal] = None
    profit_loss_percent: Optional[Decimal] = None

@dataclass
class PortfolioTotals:
    total_cost: Decimal
    total_market_value: Optional[Decimal] = None
    total_profit_loss: Optional[Decimal] = None
    total_profit_loss_percent: Optional[Decimal] = None

@dataclass
class AnalysisPoint:
    date: date
    cost_of_trade: Decimal     # price * quantity of the trade(s)
    realized_profit: Decimal   # 0 for buys
    cumulative_cost: Decimal   # Running net cost basis across all codes
