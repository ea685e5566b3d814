import re
import time
import logging
from typing import List, Optional

import requests

from .types import InstrumentMatch
from .codes import strip_market_prefix

TENCENT_SEARCH_URL = "https://smartbox.gtimg.cn/s3/"
MAX_RESULTS = 10

_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")


def unescape_unicode(text: str) -> str:
    """ Turns literal '\\u534a' sequences into characters. """
    return _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


def parse_search_response(text: str) -> List[InstrumentMatch]:
    """
    Parses 'v_hint="sh~600519~NAME~pinyin~GP-A^sz~000001~NAME~...";'
    Entries are separated by '^', fields by '~'.
    """
    match = re.search(r'="([^"]+)"', text)
    if not match:
        return []

    results = []
    for item in match.group(1).split("^"):
        parts = item.split("~")
        if len(parts) < 3:
            continue
        results.append(InstrumentMatch(market=parts[0], code=parts[1], name=unescape_unicode(parts[2])))
    return results[:MAX_RESULTS]


def search_instruments(query: str, timeout: float = 5.0, session: Optional[requests.Session] = None) -> List[InstrumentMatch]:
    """ Code / name / pinyin lookup for the trade form. Errors yield an empty list. """
    clean = strip_market_prefix(query.strip().upper()) if query else ""
    if not clean:
        return []

    http = session or requests
    params = {"q": clean, "t": "all", "_": int(time.time() * 1000)}
    try:
        response = http.get(TENCENT_SEARCH_URL, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logging.warning(f"Instrument search failed for '{clean}': {e}")
        return []

    return parse_search_response(response.content.decode("gbk", errors="replace"))
