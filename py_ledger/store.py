import json
import os
import shutil
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Tuple

from py_positions.types import Trade
from .ledger import TradeLedger
from .validation import build_trade, TradeValidationError


class LedgerFormatError(Exception):
    pass


def trade_to_dict(trade: Trade, exact: bool = False) -> Dict[str, Any]:
    """
    Export record with camelCase keys (stockCode, stockName) as used by existing export files.
    Money is written as JSON numbers unless exact is set, in which case the
    Decimal text is kept so the ledger file reloads to the same values.
    """
    money = str if exact else float

    if trade.timestamp.time() == time(0, 0):
        date_str = trade.timestamp.date().isoformat()
    else:
        date_str = trade.timestamp.isoformat()

    record: Dict[str, Any] = {
        "id": trade.id,
        "stockCode": trade.code,
        "stockName": trade.name,
        "type": trade.type.value,
        "price": money(trade.price),
        "quantity": trade.quantity,
        "date": date_str,
    }
    if trade.commission is not None:
        record["commission"] = money(trade.commission)
    if trade.tags:
        record["tags"] = sorted(trade.tags)
    return record


def trade_from_dict(data: Dict[str, Any]) -> Trade:
    if not isinstance(data, dict):
        raise TradeValidationError(f"Trade record must be an object (got {type(data).__name__})")
    return build_trade(
        code=data.get("stockCode", data.get("code")),
        name=data.get("stockName", data.get("name")),
        trade_type=data.get("type"),
        price=data.get("price"),
        quantity=data.get("quantity"),
        timestamp=data.get("date", data.get("timestamp")),
        commission=data.get("commission"),
        tags=data.get("tags"),
        trade_id=data.get("id"),
    )


def trades_from_records(records: Any) -> Tuple[List[Trade], int]:
    """
    Decodes an exported JSON array. Malformed records are skipped and counted.
    Returns (trades, skipped_count).
    """
    if not isinstance(records, list):
        raise LedgerFormatError("Import file must contain a JSON array of trade records")

    trades = []
    skipped = 0
    for i, rec in enumerate(records):
        try:
            trades.append(trade_from_dict(rec))
        except TradeValidationError as e:
            logging.warning(f"Skipping record {i} on import: {e}")
            skipped += 1
    return trades, skipped


def export_trades(trades: List[Trade]) -> str:
    return json.dumps([trade_to_dict(t) for t in trades], indent=2, ensure_ascii=False)


def import_trades_json(text: str) -> Tuple[List[Trade], int]:
    try:
        records = json.loads(text)
    except json.JSONDecodeError as e:
        raise LedgerFormatError(f"Import file is not valid JSON: {e}")
    return trades_from_records(records)


def export_filename(today: date = None) -> str:
    today = today or date.today()
    return f"stock_trades_{today.isoformat()}.json"


class LedgerStore:
    """ Persists the ledger and pinned tags to a single JSON file. """

    def __init__(self, path: str = "./data/ledger.json"):
        self.path = path

    def load(self) -> TradeLedger:
        if not os.path.exists(self.path):
            logging.info(f"Ledger file {self.path} not found. Starting with an empty ledger.")
            return TradeLedger()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if not isinstance(data, dict) or "trades" not in data:
                raise ValueError("Missing 'trades' key in ledger file")

            trades, skipped = trades_from_records(data["trades"])
            if skipped:
                logging.warning(f"{skipped} unreadable trade(s) dropped from {self.path}")

            pinned = data.get("pinned_tags", [])
            if not isinstance(pinned, list):
                pinned = []

            ledger = TradeLedger(pinned_tags=[str(p) for p in pinned])
            ledger.import_trades(trades)
            return ledger

        except (json.JSONDecodeError, ValueError, LedgerFormatError) as e:
            logging.warning(f"Ledger corruption detected in {self.path}: {e}")
            self._backup_corrupt_file()
            return TradeLedger()

    def save(self, ledger: TradeLedger) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = self.path + ".tmp"
        data = {
            "saved_at": datetime.now().isoformat(timespec="seconds"),
            "trades": [trade_to_dict(t, exact=True) for t in ledger.trades],
            "pinned_tags": list(ledger.pinned_tags),
        }

        try:
            # Atomic Write
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logging.error(f"Failed to save ledger {self.path}: {e}")
            if os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass
            raise

    def _backup_corrupt_file(self):
        try:
            backup_path = self.path + ".corrupt"
            shutil.move(self.path, backup_path)
            logging.info(f"Moved corrupt file to {backup_path}")
        except OSError as e:
            logging.error(f"Failed to backup corrupt file {self.path}: {e}")
