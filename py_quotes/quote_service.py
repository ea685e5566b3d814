import logging
from decimal import Decimal
from typing import Dict, List, Optional, Iterable

from .types import QuoteConfig, ProviderType, IQuoteProvider, StockQuote, QuoteFetchError
from .error_logger import QuoteErrorLogger
from .provider_sina import SinaQuoteProvider
from .provider_yahoo import YahooQuoteProvider


class QuoteService:
    """
    Holds the latest quotes and manual price overrides and turns them into the
    price map the position calculator consumes. Fetch failures are logged and
    never raised to the caller; a code without a quote simply has no price.
    """

    def __init__(self, providers: List[IQuoteProvider], error_logger: Optional[QuoteErrorLogger] = None):
        self.providers = providers  # Sorted by priority already
        self.error_logger = error_logger
        self.quotes: Dict[str, StockQuote] = {}
        self.manual_prices: Dict[str, StockQuote] = {}
        self.last_error: Optional[str] = None

    def refresh(self, codes: Iterable[str]) -> Dict[str, StockQuote]:
        """
        Fetches quotes for the codes, trying providers in priority order and
        falling through to the next provider for codes still missing.
        Returns the quotes fetched by this call.
        """
        remaining = list(dict.fromkeys(c for c in codes if c))
        if not remaining:
            return {}

        self.last_error = None
        fetched: Dict[str, StockQuote] = {}
        errors: List[str] = []

        for provider in self.providers:
            batch = [c for c in remaining if provider.supports(c)]
            if not batch:
                continue

            provider_name = provider.__class__.__name__
            try:
                logging.debug(f"Fetching {len(batch)} quote(s) from {provider_name}")
                result = provider.fetch_quotes(batch)
            except QuoteFetchError as e:
                logging.warning(f"Provider {provider_name} failed: {e}")
                errors.append(str(e))
                continue
            except Exception as e:
                logging.exception(f"Unexpected error in provider {provider_name}: {e}")
                errors.append(f"{provider_name}: {e}")
                continue

            fetched.update(result)
            remaining = [c for c in remaining if c not in result]
            if not remaining:
                break

        for code in remaining:
            logging.warning(f"No quote available for {code}")
            if self.error_logger:
                reason = errors[-1] if errors else "No provider returned a quote"
                self.error_logger.log_failure(code, "ALL", reason)

        if fetched or not errors:
            self.quotes = fetched
        else:
            # Keep the previous quotes when the whole refresh failed
            self.last_error = "Failed to fetch quotes, please retry later"
        return fetched

    def set_manual_price(self, code: str, price: Decimal, name: Optional[str] = None) -> StockQuote:
        if price is None or price <= 0:
            raise ValueError(f"Manual price for {code} must be positive (got {price})")
        existing = self.quotes.get(code) or self.manual_prices.get(code)
        quote = StockQuote(
            code=code,
            name=name or (existing.name if existing else code),
            price=price,
            manual=True,
        )
        self.manual_prices[code] = quote
        return quote

    def clear_manual_price(self, code: str) -> None:
        self.manual_prices.pop(code, None)

    def get_quote(self, code: str) -> Optional[StockQuote]:
        return self.manual_prices.get(code) or self.quotes.get(code)

    def price_map(self) -> Dict[str, Decimal]:
        """ code -> current price. Manual overrides win over fetched quotes. """
        prices = {code: q.price for code, q in self.quotes.items()}
        prices.update({code: q.price for code, q in self.manual_prices.items()})
        return prices


def build_quote_service(config: QuoteConfig, error_logger: Optional[QuoteErrorLogger] = None) -> QuoteService:
    providers: List[IQuoteProvider] = []
    # Instantiate Providers based on Config
    for p_conf in config.providers:
        if p_conf.name == ProviderType.SINA:
            providers.append(SinaQuoteProvider(timeout=config.request_timeout_seconds))
        elif p_conf.name == ProviderType.YAHOO:
            providers.append(YahooQuoteProvider())
    return QuoteService(providers, error_logger)
