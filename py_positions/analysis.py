from decimal import Decimal
from typing import Dict, List, Sequence

from .types import Trade, TradeType, AnalysisPoint
from .calculator import Holding, sort_trades

def analyze_trade_history(trades: Sequence[Trade]) -> List[AnalysisPoint]:
    """
    Replays a trade subset chronologically and emits one point per trade:
    the gross trade amount, the profit realized by a sell against the
    average cost at that moment, and the running cost basis over all codes.
    """
    holdings: Dict[str, Holding] = {}
    cumulative_cost = Decimal("0")
    points = []

    for trade in sort_trades(trades):
        holding = holdings.setdefault(trade.code, Holding(name=trade.name))
        realized_profit = Decimal("0")

        if trade.type == TradeType.BUY:
            cumulative_cost += holding.buy(trade)
        elif trade.type == TradeType.SELL and holding.quantity > 0:
            cost_of_sold = holding.sell(trade)
            # Proceeds use the full sell quantity, as booked
            realized_profit = trade.amount - trade.fee - cost_of_sold
            cumulative_cost -= cost_of_sold

        points.append(AnalysisPoint(
            date=trade.date,
            cost_of_trade=trade.amount,
            realized_profit=realized_profit,
            cumulative_cost=cumulative_cost,
        ))

    return points


def collapse_by_date(points: Sequence[AnalysisPoint]) -> List[AnalysisPoint]:
    """
    Merges points sharing a date: trade amounts and realized profits are summed,
    the cumulative cost of the last point of the day is kept. Ascending by date.
    """
    by_date: Dict = {}
    for p in points:
        existing = by_date.get(p.date)
        if existing is None:
            by_date[p.date] = AnalysisPoint(
                date=p.date,
                cost_of_trade=p.cost_of_trade,
                realized_profit=p.realized_profit,
                cumulative_cost=p.cumulative_cost,
            )
        else:
            existing.cost_of_trade += p.cost_of_trade
            existing.realized_profit += p.realized_profit
            existing.cumulative_cost = p.cumulative_cost

    return [by_date[d] for d in sorted(by_date)]
