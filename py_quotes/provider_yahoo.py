import yfinance as yf
from decimal import Decimal
from typing import Dict, List
import logging
from .types import IQuoteProvider, StockQuote, QuoteFetchError
from .codes import get_full_code, is_a_share_code, strip_market_prefix

# Exchange prefix -> Yahoo suffix
_YAHOO_SUFFIX = {"sh": ".SS", "sz": ".SZ", "bj": ".BJ"}

def to_yahoo_symbol(code: str) -> str:
    """ '600519' -> '600519.SS'; non A-share codes ('AAPL') pass through. """
    if is_a_share_code(code):
        market = get_full_code(code)[:2]
        return f"{strip_market_prefix(code)}{_YAHOO_SUFFIX[market]}"
    return code.strip().upper()

class YahooQuoteProvider(IQuoteProvider):
    def supports(self, code: str) -> bool:
        return bool(code.strip())

    def fetch_quotes(self, codes: List[str]) -> Dict[str, StockQuote]:
        results: Dict[str, StockQuote] = {}
        errors = []
        for code in codes:
            try:
                results[code] = self.fetch_quote(code)
            except QuoteFetchError as e:
                logging.warning(str(e))
                errors.append(code)

        if codes and not results:
            raise QuoteFetchError(f"Yahoo returned no quotes for {', '.join(errors)}")
        return results

    def fetch_quote(self, code: str) -> StockQuote:
        symbol = to_yahoo_symbol(code)
        try:
            ticker_obj = yf.Ticker(symbol)
            info = ticker_obj.info or {}

            # Different keys depending on yfinance version/asset type
            price = None
            for k in ['currentPrice', 'regularMarketPrice', 'bid', 'ask']:
                if info.get(k) is not None:
                    price = info[k]
                    break

            if price is None:
                # Fallback: get last close from 1d history
                hist = ticker_obj.history(period="1d")
                if not hist.empty:
                    price = hist['Close'].iloc[-1]

            if price is None or float(price) == 0:
                raise QuoteFetchError(f"Could not determine current price for {symbol}")

            price_dec = Decimal(str(float(price)))
            prev_close = info.get('previousClose') or info.get('regularMarketPreviousClose')
            change = Decimal("0")
            change_percent = Decimal("0")
            if prev_close:
                prev_dec = Decimal(str(float(prev_close)))
                change = price_dec - prev_dec
                if prev_dec > 0:
                    change_percent = change / prev_dec * 100

            return StockQuote(
                code=code,
                name=info.get('shortName') or info.get('longName') or code,
                price=price_dec,
                change=change,
                change_percent=change_percent,
            )

        except QuoteFetchError:
            raise
        except Exception as e:
            # Wrap library exceptions into QuoteFetchError for the QuoteService
            raise QuoteFetchError(f"Yahoo Price Error for {symbol}: {e}")
