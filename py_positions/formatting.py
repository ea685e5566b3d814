from decimal import Decimal
from typing import Optional

def format_money(value: Optional[Decimal]) -> str:
    """ 1234.5 -> '1,234.50'. Unknown values render as '-'. """
    if value is None:
        return "-"
    return f"{value:,.2f}"

def format_percent(value: Optional[Decimal]) -> str:
    """ Signed percentage, e.g. '+3.25%'. Unknown values render as '-'. """
    if value is None:
        return "-"
    if value == 0:
        return "0.00%"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"

def format_price(value: Optional[Decimal]) -> str:
    if value is None:
        return "-"
    return f"{value:.3f}"
