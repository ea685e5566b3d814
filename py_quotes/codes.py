import re
from datetime import datetime
from typing import Optional

_PREFIX_RE = re.compile(r"^(sh|sz|bj)", re.IGNORECASE)
_A_SHARE_RE = re.compile(r"^(sh|sz|bj)?\d{6}$", re.IGNORECASE)

# First digit of a six digit A-share code -> exchange
_MARKET_BY_DIGIT = {
    "6": "sh",  # Shanghai main board
    "5": "sh",  # Shanghai ETFs / funds
    "0": "sz",  # Shenzhen main board
    "3": "sz",  # ChiNext
    "1": "sz",  # Shenzhen ETFs / LOFs / bonds
    "4": "bj",  # Beijing
    "8": "bj",
}

def strip_market_prefix(code: str) -> str:
    return _PREFIX_RE.sub("", code.strip())

def is_a_share_code(code: str) -> bool:
    return bool(_A_SHARE_RE.match(code.strip()))

def get_full_code(code: str) -> str:
    """ '600519' -> 'sh600519'. Codes that already carry a prefix are only lower-cased. """
    code = code.strip()
    if _PREFIX_RE.match(code):
        return code.lower()

    clean = strip_market_prefix(code)
    market = _MARKET_BY_DIGIT.get(clean[:1], "sz")
    return f"{market}{clean}"

def is_market_open(now: Optional[datetime] = None) -> bool:
    """
    A-share continuous trading sessions, local exchange time:
    Mon-Fri 09:30-11:30 and 13:00-15:00 (both ends inclusive).
    """
    now = now or datetime.now()
    if now.weekday() >= 5:
        return False

    hhmm = now.hour * 100 + now.minute
    if 930 <= hhmm <= 1130:
        return True
    if 1300 <= hhmm <= 1500:
        return True
    return False
