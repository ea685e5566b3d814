"""
Integration tests for ledger persistence and JSON import/export.
Exports use the stockCode / stockName / date layout; both directions are covered.
"""
import json
import os
import sys
import pytest
from datetime import date, datetime
from decimal import Decimal

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from py_positions.types import TradeType
from py_ledger.ledger import TradeLedger
from py_ledger.store import (
    LedgerStore, LedgerFormatError, trade_to_dict, trade_from_dict,
    export_trades, import_trades_json, export_filename,
)
from py_ledger.validation import build_trade


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "data" / "ledger.json"


@pytest.fixture
def sample_trades():
    return [
        build_trade("600519", "1700.5", 100, "2024-03-01", name="Kweichow Moutai",
                    commission="5", tags=["long", "core"], trade_id="t1"),
        build_trade("AAPL", "190.25", 10, "2024-03-02T14:30:00", trade_type="sell", trade_id="t2"),
    ]


# =============================================================================
# Record encoding
# =============================================================================

class TestRecordEncoding:

    def test_export_keys(self, sample_trades):
        record = trade_to_dict(sample_trades[0])
        assert record == {
            "id": "t1",
            "stockCode": "600519",
            "stockName": "Kweichow Moutai",
            "type": "buy",
            "price": 1700.5,
            "quantity": 100,
            "date": "2024-03-01",
            "commission": 5.0,
            "tags": ["core", "long"],
        }

    def test_optional_fields_omitted(self, sample_trades):
        record = trade_to_dict(sample_trades[1])
        assert "commission" not in record
        assert "tags" not in record
        assert record["date"] == "2024-03-02T14:30:00"
        assert record["type"] == "sell"

    def test_alternate_keys_accepted(self):
        trade = trade_from_dict({
            "id": "x1", "code": "tsla", "name": "Tesla", "type": "buy",
            "price": 250, "quantity": 3, "timestamp": "2024-04-01",
        })
        assert trade.code == "TSLA"
        assert trade.name == "Tesla"
        assert trade.timestamp == datetime(2024, 4, 1)

    def test_export_filename(self):
        assert export_filename(date(2024, 3, 1)) == "stock_trades_2024-03-01.json"


# =============================================================================
# JSON import / export
# =============================================================================

class TestImportExport:

    def test_export_then_import(self, sample_trades):
        trades, skipped = import_trades_json(export_trades(sample_trades))
        assert skipped == 0
        assert trades == sample_trades

    def test_invalid_records_are_skipped(self):
        text = json.dumps([
            {"id": "a", "stockCode": "X", "type": "buy", "price": 10, "quantity": 5, "date": "2024-01-01"},
            {"id": "b", "stockCode": "X", "type": "buy", "price": -1, "quantity": 5, "date": "2024-01-01"},
            {"id": "c", "stockCode": "X", "type": "hold", "price": 10, "quantity": 5, "date": "2024-01-01"},
            "not a record",
            {"id": "d", "stockCode": "X", "stockName": 123, "type": "buy", "price": 10, "quantity": 5, "date": "2024-01-01"},
            {"id": "e", "stockCode": "X", "type": "buy", "price": 10, "quantity": 5, "date": "2024-01-01", "tags": 5},
        ])
        trades, skipped = import_trades_json(text)
        assert [t.id for t in trades] == ["a"]
        assert skipped == 5

    def test_non_array_rejected(self):
        with pytest.raises(LedgerFormatError):
            import_trades_json('{"trades": []}')

    def test_invalid_json_rejected(self):
        with pytest.raises(LedgerFormatError):
            import_trades_json("not json")


# =============================================================================
# LedgerStore
# =============================================================================

class TestLedgerStore:

    def test_missing_file_gives_empty_ledger(self, ledger_path):
        ledger = LedgerStore(str(ledger_path)).load()
        assert len(ledger) == 0
        assert ledger.pinned_tags == []

    def test_save_and_load(self, ledger_path, sample_trades):
        store = LedgerStore(str(ledger_path))
        store.save(TradeLedger(sample_trades, pinned_tags=["core"]))

        assert ledger_path.exists()
        assert not os.path.exists(str(ledger_path) + ".tmp")

        loaded = store.load()
        assert list(loaded.trades) == sample_trades
        assert loaded.pinned_tags == ["core"]
        assert loaded.get("t1").commission == Decimal("5")
        assert loaded.get("t2").type == TradeType.SELL

        with open(ledger_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        assert "saved_at" in data
        assert data["trades"][0]["stockCode"] == "600519"

    def test_corrupt_file_backed_up(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text("{ not json", encoding="utf-8")

        ledger = LedgerStore(str(ledger_path)).load()

        assert len(ledger) == 0
        assert not ledger_path.exists()
        assert os.path.exists(str(ledger_path) + ".corrupt")

    def test_missing_trades_key_is_corrupt(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text('{"pinned_tags": []}', encoding="utf-8")

        ledger = LedgerStore(str(ledger_path)).load()

        assert len(ledger) == 0
        assert os.path.exists(str(ledger_path) + ".corrupt")

    def test_unreadable_trades_dropped_on_load(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text(json.dumps({
            "trades": [
                {"id": "a", "stockCode": "X", "type": "buy", "price": 10, "quantity": 5, "date": "2024-01-01"},
                {"id": "b", "stockCode": "X", "type": "buy", "price": 10, "quantity": 0, "date": "2024-01-01"},
            ],
            "pinned_tags": "oops",
        }), encoding="utf-8")

        ledger = LedgerStore(str(ledger_path)).load()

        assert [t.id for t in ledger.trades] == ["a"]
        assert ledger.pinned_tags == []
        assert ledger_path.exists()

    def test_mistyped_fields_dropped_on_load(self, ledger_path):
        ledger_path.parent.mkdir(parents=True)
        ledger_path.write_text(json.dumps({
            "trades": [
                {"id": "a", "stockCode": "X", "type": "buy", "price": 10, "quantity": 5, "date": "2024-01-01"},
                {"id": "b", "stockCode": "X", "stockName": {"en": "X"}, "type": "buy",
                 "price": 10, "quantity": 5, "date": "2024-01-02"},
                {"id": "c", "stockCode": "X", "type": "buy", "price": 10, "quantity": 5,
                 "date": "2024-01-03", "tags": "core"},
            ],
        }), encoding="utf-8")

        ledger = LedgerStore(str(ledger_path)).load()

        assert [t.id for t in ledger.trades] == ["a"]
        assert ledger_path.exists()
        assert not os.path.exists(str(ledger_path) + ".corrupt")

    def test_decimal_precision_survives_reload(self, ledger_path):
        price = Decimal("0.123456789012345678901")
        commission = Decimal("0.000000000000000001")
        trade = build_trade("X", price, 3, "2024-01-01", commission=commission, trade_id="p1")
        store = LedgerStore(str(ledger_path))
        store.save(TradeLedger([trade]))

        loaded = store.load().get("p1")

        assert loaded.price == price
        assert loaded.commission == commission
        assert loaded.price * loaded.quantity == Decimal("0.370370367037037036703")

    def test_export_still_writes_numbers(self, sample_trades):
        record = json.loads(export_trades(sample_trades))[0]
        assert isinstance(record["price"], float)
        assert isinstance(record["commission"], float)
