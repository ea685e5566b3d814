from dataclasses import dataclass, field
from enum import Enum
from decimal import Decimal
from typing import Dict, List

class ProviderType(Enum):
    SINA = "SINA"
    YAHOO = "YAHOO"

@dataclass
class ProviderConfig:
    name: ProviderType
    priority: int = 1

@dataclass
class QuoteConfig:
    providers: List[ProviderConfig]
    poll_interval_seconds: float = 2.0
    request_timeout_seconds: float = 5.0
    data_dir: str = "./data"

@dataclass
class StockQuote:
    code: str    # Ledger code the quote was requested for
    name: str
    price: Decimal
    change: Decimal = Decimal("0")          # Versus previous close
    change_percent: Decimal = Decimal("0")
    manual: bool = False

@dataclass
class InstrumentMatch:
    """ One hit of the instrument search box. """
    market: str  # sh / sz / bj / us / hk ...
    code: str
    name: str

class IQuoteProvider:
    """ Interface for all quote providers """
    def supports(self, code: str) -> bool:
        raise NotImplementedError

    def fetch_quotes(self, codes: List[str]) -> Dict[str, StockQuote]:
        """ Returns quotes keyed by the requested code. Codes without data are left out. """
        raise NotImplementedError

class QuoteFetchError(Exception):
    pass
