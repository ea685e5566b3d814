import pandas as pd
from typing import Sequence

from .types import Trade, Position, AnalysisPoint

POSITION_COLUMNS = [
    "Code", "Name", "Quantity", "Average_Cost", "Total_Cost",
    "Current_Price", "Market_Value", "Profit_Loss", "Profit_Loss_Pct",
]
TRADE_COLUMNS = ["ID", "Date", "Code", "Name", "Type", "Price", "Quantity", "Amount", "Commission", "Tags"]
ANALYSIS_COLUMNS = ["Date", "Trade_Amount", "Realized_Profit", "Cumulative_Cost"]


def _num(value):
    """ Decimal -> float for display; None stays missing (NaN), never 0. """
    return float(value) if value is not None else None


def positions_frame(positions: Sequence[Position]) -> pd.DataFrame:
    rows = [{
        "Code": p.code,
        "Name": p.name,
        "Quantity": p.total_quantity,
        "Average_Cost": _num(p.average_cost),
        "Total_Cost": _num(p.total_cost),
        "Current_Price": _num(p.current_price),
        "Market_Value": _num(p.market_value),
        "Profit_Loss": _num(p.profit_loss),
        "Profit_Loss_Pct": _num(p.profit_loss_percent),
    } for p in positions]
    return pd.DataFrame(rows, columns=POSITION_COLUMNS)


def trades_frame(trades: Sequence[Trade]) -> pd.DataFrame:
    rows = [{
        "ID": t.id,
        "Date": pd.Timestamp(t.timestamp),
        "Code": t.code,
        "Name": t.name,
        "Type": t.type.value,
        "Price": _num(t.price),
        "Quantity": t.quantity,
        "Amount": _num(t.amount),
        "Commission": _num(t.commission),
        "Tags": ", ".join(sorted(t.tags)),
    } for t in trades]
    return pd.DataFrame(rows, columns=TRADE_COLUMNS)


def analysis_frame(points: Sequence[AnalysisPoint]) -> pd.DataFrame:
    rows = [{
        "Date": pd.Timestamp(p.date),
        "Trade_Amount": _num(p.cost_of_trade),
        "Realized_Profit": _num(p.realized_profit),
        "Cumulative_Cost": _num(p.cumulative_cost),
    } for p in points]
    return pd.DataFrame(rows, columns=ANALYSIS_COLUMNS)
