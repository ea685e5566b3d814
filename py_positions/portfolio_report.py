import sys
import argparse
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from py_ledger.store import LedgerStore
from py_ledger.ledger import filter_trades
from py_quotes.config_loader import load_config
from py_quotes.error_logger import QuoteErrorLogger
from py_quotes.quote_service import build_quote_service
from .calculator import calculate_positions, calculate_totals
from .analysis import analyze_trade_history, collapse_by_date
from .frames import positions_frame, analysis_frame
from .formatting import format_money, format_percent

# Setup Logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

def parse_price_args(items: List[str]) -> Dict[str, Decimal]:
    """ ['600519=1700.5', 'AAPL=190'] -> {code: price} """
    prices = {}
    for item in items or []:
        code, sep, value = item.partition("=")
        if not sep or not code.strip():
            raise argparse.ArgumentTypeError(f"Invalid price '{item}'. Expected CODE=PRICE")
        try:
            price = Decimal(value.strip())
        except InvalidOperation:
            raise argparse.ArgumentTypeError(f"Invalid price value in '{item}'")
        if price <= 0:
            raise argparse.ArgumentTypeError(f"Price must be positive in '{item}'")
        prices[code.strip().upper()] = price
    return prices

def main(argv: List[str] = None) -> int:
    parser = argparse.ArgumentParser(description="Stock Position Report")
    parser.add_argument("--ledger", default="./data/ledger.json", help="Ledger JSON file (default: ./data/ledger.json)")
    parser.add_argument("--config", default="providers.json", help="Quote provider config (default: providers.json)")
    parser.add_argument("--price", action="append", default=[], metavar="CODE=PRICE", help="Manual price, repeatable")
    parser.add_argument("--fetch", action="store_true", help="Fetch live quotes for all held codes")
    parser.add_argument("--filter", default="", help="Only trades whose code or name contains this text")
    parser.add_argument("--tag", action="append", default=[], help="Only trades carrying this tag, repeatable")
    parser.add_argument("--analysis", help="Write the per-date analysis series to this CSV file")
    args = parser.parse_args(argv)

    try:
        manual_prices = parse_price_args(args.price)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    ledger = LedgerStore(args.ledger).load()
    trades = filter_trades(ledger.trades, args.filter, args.tag)
    logging.info(f"Loaded {len(ledger)} trade(s), {len(trades)} after filtering.")

    prices: Dict[str, Decimal] = {}
    if args.fetch:
        config = load_config(args.config)
        service = build_quote_service(config, QuoteErrorLogger(config.data_dir))
        codes = sorted({t.code for t in trades})
        service.refresh(codes)
        if service.last_error:
            logging.warning(service.last_error)
        prices = service.price_map()
    prices.update(manual_prices)

    positions = calculate_positions(trades, prices)
    totals = calculate_totals(positions)

    if positions:
        print(positions_frame(positions).to_string(index=False))
    else:
        print("No open positions.")

    print()
    print(f"Total cost:         {format_money(totals.total_cost)}")
    print(f"Total market value: {format_money(totals.total_market_value)}")
    print(f"Total P/L:          {format_money(totals.total_profit_loss)} ({format_percent(totals.total_profit_loss_percent)})")

    if args.analysis:
        points = collapse_by_date(analyze_trade_history(trades))
        analysis_frame(points).to_csv(args.analysis, sep=";", index=False, date_format="%Y-%m-%d")
        logging.info(f"Analysis written to {args.analysis}")

    return 0

if __name__ == "__main__":
    sys.exit(main())
