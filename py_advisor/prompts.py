from typing import Sequence

from py_positions.types import Position, PortfolioTotals
from py_positions.formatting import format_money, format_percent
from .types import AISettings

SYSTEM_PROMPT = """You are a professional investment advisor assistant. Your task is to analyse the user's holdings and give recommendations.
Answers must be professional, objective and rigorous, and always include a risk notice.

Follow these formatting rules:
1. Use **bold** for key words, instrument names, important figures and core conclusions.
2. Use lists starting with - or * to organise multiple points.
3. Keep paragraphs short; number the important recommendations.
4. Use ### for section headings.

Current portfolio overview:
- Total market value: {market_value}
- Total profit/loss: {profit_loss} ({profit_loss_percent})
- Number of holdings: {count}
"""

WEB_SEARCH_NOTE = "\nWeb search is enabled: take the latest market data and news into account."

SELECTED_ANALYSIS_REQUEST = (
    "\n\nPlease analyse the selected trades in detail: cost distribution, "
    "reasons for the profit or loss, and suggested next steps."
)


def build_system_prompt(positions: Sequence[Position], totals: PortfolioTotals, settings: AISettings) -> str:
    prompt = SYSTEM_PROMPT.format(
        market_value=format_money(totals.total_market_value),
        profit_loss=format_money(totals.total_profit_loss),
        profit_loss_percent=format_percent(totals.total_profit_loss_percent),
        count=len(positions),
    )
    if settings.enable_web_search:
        prompt += WEB_SEARCH_NOTE
    return prompt


def position_line(p: Position) -> str:
    return (
        f"- {p.name} ({p.code}): quantity {p.total_quantity}, "
        f"average cost {p.average_cost:.3f}, current P/L {format_percent(p.profit_loss_percent)}"
    )


def build_portfolio_summary(positions: Sequence[Position], totals: PortfolioTotals, selected: bool = False) -> str:
    """
    User message asking for an analysis. With selected=True the summary
    describes a hand-picked trade subset and carries its totals.
    """
    if selected:
        header = (
            "### Selected trades summary\n"
            f"- Total cost: {format_money(totals.total_cost)}\n"
            f"- Market value: {format_money(totals.total_market_value)}\n"
            f"- Total P/L: {format_money(totals.total_profit_loss)} "
            f"({format_percent(totals.total_profit_loss_percent)})"
        )
    else:
        header = "Please analyse my current holdings and give recommendations:"

    lines = "\n".join(position_line(p) for p in positions)
    summary = f"{header}\n{lines}"
    if selected:
        summary += SELECTED_ANALYSIS_REQUEST
    return summary
