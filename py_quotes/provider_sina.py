import re
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

import requests

from .types import IQuoteProvider, StockQuote, QuoteFetchError
from .codes import get_full_code, is_a_share_code

SINA_QUOTE_URL = "https://hq.sinajs.cn/list={codes}"
SINA_CHART_URL = "https://image.sinajs.cn/newchart/{kind}/n/{full_code}.gif"
CHART_KINDS = ("min", "daily", "weekly", "monthly")

# The endpoint refuses requests without a finance.sina.com.cn referer
HEADERS = {
    "Referer": "https://finance.sina.com.cn",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}

_LINE_RE = re.compile(r'hq_str_(\w+)="(.*)"')


def parse_sina_line(line: str, code: str) -> Optional[StockQuote]:
    """
    Parses one line of the quote response:
        var hq_str_sh600519="NAME,open,prev_close,price,high,low,...";
    Returns None for empty payloads (unknown or suspended codes) or a zero price.
    """
    match = re.search(r'="(.*)"', line)
    if not match or not match.group(1):
        return None

    parts = match.group(1).split(",")
    if len(parts) < 4:
        return None

    try:
        prev_close = Decimal(parts[2])
        price = Decimal(parts[3])
    except (InvalidOperation, ValueError):
        return None

    if not price.is_finite() or price == 0:
        return None

    change = price - prev_close
    change_percent = change / prev_close * 100 if prev_close > 0 else Decimal("0")

    return StockQuote(
        code=code,
        name=parts[0],
        price=price,
        change=change,
        change_percent=change_percent,
    )


def chart_url(code: str, kind: str = "daily") -> str:
    """ K-line / intraday GIF chart for an A-share code. """
    if kind not in CHART_KINDS:
        raise ValueError(f"Unknown chart kind '{kind}'. Expected one of {CHART_KINDS}")
    return SINA_CHART_URL.format(kind=kind, full_code=get_full_code(code))


class SinaQuoteProvider(IQuoteProvider):
    def __init__(self, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def supports(self, code: str) -> bool:
        return is_a_share_code(code)

    def fetch_quotes(self, codes: List[str]) -> Dict[str, StockQuote]:
        if not codes:
            return {}

        # One full code may stand for several ledger spellings ('600519', 'SH600519')
        requested: Dict[str, List[str]] = {}
        for code in codes:
            requested.setdefault(get_full_code(code), []).append(code)

        url = SINA_QUOTE_URL.format(codes=",".join(requested))
        try:
            response = self.session.get(url, headers=HEADERS, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise QuoteFetchError(f"Sina request failed for {len(requested)} code(s): {e}")

        text = response.content.decode("gbk", errors="replace")

        results: Dict[str, StockQuote] = {}
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            m = _LINE_RE.search(line)
            if not m:
                continue
            full_code = m.group(1).lower()
            for code in requested.get(full_code, []):
                quote = parse_sina_line(line, code)
                if quote is not None:
                    results[code] = quote
                else:
                    logging.debug(f"Sina returned no usable quote for {code}")
        return results
