from decimal import Decimal
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import logging

from .types import Trade, TradeType, Position, PortfolioTotals

HUNDRED = Decimal("100")

@dataclass
class Holding:
    """ Running weighted-average accumulator for one code. """
    name: str
    quantity: int = 0
    cost: Decimal = Decimal("0")

    def buy(self, trade: Trade) -> Decimal:
        added = trade.amount + trade.fee
        self.cost += added
        self.quantity += trade.quantity
        return added

    def sell(self, trade: Trade) -> Decimal:
        """
        Removes the cost basis of the sold units and returns it.
        Selling more than held is capped at the held quantity; selling
        from an empty holding changes nothing (no short positions).
        """
        if self.quantity <= 0:
            return Decimal("0")

        sold_quantity = min(trade.quantity, self.quantity)
        if sold_quantity == self.quantity:
            # Full close takes the whole basis, no division residue left behind
            cost_of_sold = self.cost
        else:
            cost_of_sold = self.cost / self.quantity * sold_quantity

        self.cost -= cost_of_sold
        self.quantity -= sold_quantity
        return cost_of_sold


def sort_trades(trades: Iterable[Trade]) -> List[Trade]:
    """ Chronological order. sorted() is stable so equal timestamps keep ledger order. """
    return sorted(trades, key=lambda t: t.timestamp)


def calculate_positions(trades: Sequence[Trade], prices: Optional[Mapping[str, Decimal]] = None) -> List[Position]:
    """
    Folds the ledger into one open position per code using weighted-average cost.

    Args:
        trades: Ledger snapshot, any order.
        prices: Current price per code. Keys must match Trade.code exactly;
            a missing key means the price is unknown.

    Returns:
        Fresh Position objects for every code still held, in first-trade order.
    """
    prices = prices or {}
    holdings: Dict[str, Holding] = {}

    for trade in sort_trades(trades):
        holding = holdings.get(trade.code)
        if holding is None:
            holding = Holding(name=trade.name)
            holdings[trade.code] = holding

        if trade.type == TradeType.BUY:
            holding.buy(trade)
        elif trade.type == TradeType.SELL:
            if trade.quantity > holding.quantity:
                logging.debug(f"Sell of {trade.quantity} {trade.code} exceeds holding {holding.quantity}. Capped.")
            holding.sell(trade)
        else:
            logging.warning(f"Unknown trade type {trade.type} for trade {trade.id}. Skipped.")
            continue

        # Most recent non-empty name wins
        if trade.name:
            holding.name = trade.name

    positions = []
    for code, holding in holdings.items():
        if holding.quantity <= 0:
            continue
        positions.append(_build_position(code, holding, prices.get(code)))
    return positions


def _build_position(code: str, holding: Holding, current_price: Optional[Decimal]) -> Position:
    average_cost = holding.cost / holding.quantity if holding.quantity > 0 else Decimal("0")

    position = Position(
        code=code,
        name=holding.name,
        total_quantity=holding.quantity,
        total_cost=holding.cost,
        average_cost=average_cost,
    )

    if current_price is not None:
        market_value = current_price * holding.quantity
        profit_loss = market_value - holding.cost
        position.current_price = current_price
        position.market_value = market_value
        position.profit_loss = profit_loss
        position.profit_loss_percent = (
            profit_loss / holding.cost * HUNDRED if holding.cost > 0 else Decimal("0")
        )
    return position


def calculate_totals(positions: Sequence[Position]) -> PortfolioTotals:
    """
    Sums a position set. Market value only counts positions with a known price;
    if no position has one, every price-derived total stays None.
    """
    total_cost = Decimal("0")
    total_market_value = Decimal("0")
    has_any_price = False

    for pos in positions:
        total_cost += pos.total_cost
        if pos.market_value is not None:
            total_market_value += pos.market_value
            has_any_price = True

    if not has_any_price:
        return PortfolioTotals(total_cost=total_cost)

    total_profit_loss = total_market_value - total_cost
    total_profit_loss_percent = None
    if total_cost > 0:
        total_profit_loss_percent = total_profit_loss / total_cost * HUNDRED

    return PortfolioTotals(
        total_cost=total_cost,
        total_market_value=total_market_value,
        total_profit_loss=total_profit_loss,
        total_profit_loss_percent=total_profit_loss_percent,
    )
