import unittest
import sys
import os
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from py_ledger.ledger import TradeLedger, filter_trades, search_trades
from py_ledger.validation import build_trade, TradeValidationError
from py_positions.calculator import calculate_positions


class TestTradeLedger(unittest.TestCase):

    def setUp(self):
        self.t1 = build_trade("600519", "1700", 100, "2024-01-02", name="Kweichow Moutai", tags=["long"], trade_id="t1")
        self.t2 = build_trade("000001", "10.5", 1000, "2024-01-03", name="Ping An Bank", tags=["swing", "bank"], trade_id="t2")
        self.t3 = build_trade("AAPL", "190", 10, "2024-01-04", name="Apple", trade_id="t3")
        self.ledger = TradeLedger([self.t1, self.t2, self.t3])

    def test_add_and_get(self):
        self.assertEqual(len(self.ledger), 3)
        self.assertIs(self.ledger.get("t2"), self.t2)
        self.assertIsNone(self.ledger.get("missing"))

    def test_add_duplicate_id_raises(self):
        with self.assertRaises(ValueError):
            self.ledger.add(replace(self.t3, price=Decimal("200")))

    def test_add_invalid_trade_raises(self):
        with self.assertRaises(TradeValidationError):
            self.ledger.add(replace(self.t3, id="t4", quantity=0))
        self.assertEqual(len(self.ledger), 3)

    def test_zone_aware_timestamp_is_rejected(self):
        aware = replace(self.t3, id="t4", timestamp=datetime(2024, 1, 5, 9, 30, tzinfo=timezone(timedelta(hours=8))))
        with self.assertRaises(TradeValidationError):
            self.ledger.add(aware)
        with self.assertRaises(TradeValidationError):
            self.ledger.replace("t3", replace(self.t3, timestamp=aware.timestamp))

        # The ledger stays sortable
        positions = calculate_positions(self.ledger.trades)
        self.assertEqual([p.code for p in positions], ["600519", "000001", "AAPL"])

    def test_snapshot_is_not_affected_by_later_edits(self):
        snapshot = self.ledger.trades
        self.ledger.delete("t1")
        self.assertEqual(len(snapshot), 3)
        self.assertEqual(len(self.ledger.trades), 2)

    def test_replace_keeps_position(self):
        edited = replace(self.t2, quantity=500)
        self.ledger.replace("t2", edited)
        self.assertEqual([t.id for t in self.ledger.trades], ["t1", "t2", "t3"])
        self.assertEqual(self.ledger.get("t2").quantity, 500)

    def test_replace_unknown_id_raises(self):
        with self.assertRaises(KeyError):
            self.ledger.replace("missing", replace(self.t2, id="missing"))

    def test_replace_with_other_id_raises(self):
        with self.assertRaises(ValueError):
            self.ledger.replace("t2", self.t3)

    def test_delete(self):
        self.assertTrue(self.ledger.delete("t1"))
        self.assertFalse(self.ledger.delete("t1"))
        self.assertEqual([t.id for t in self.ledger.trades], ["t2", "t3"])

    def test_delete_many(self):
        self.assertEqual(self.ledger.delete_many(["t1", "t3", "missing"]), 2)
        self.assertEqual([t.id for t in self.ledger.trades], ["t2"])

    def test_clear(self):
        self.ledger.clear()
        self.assertEqual(len(self.ledger), 0)

    def test_import_skips_existing_ids(self):
        new = build_trade("TSLA", "250", 5, "2024-02-01", trade_id="t9")
        added = self.ledger.import_trades([self.t1, new, new])
        self.assertEqual(added, 1)
        self.assertEqual([t.id for t in self.ledger.trades], ["t1", "t2", "t3", "t9"])

    def test_all_tags_sorted(self):
        self.assertEqual(self.ledger.all_tags(), ["bank", "long", "swing"])

    def test_toggle_pin(self):
        self.assertTrue(self.ledger.toggle_pin("long"))
        self.assertEqual(self.ledger.pinned_tags, ["long"])
        self.assertFalse(self.ledger.toggle_pin("long"))
        self.assertEqual(self.ledger.pinned_tags, [])

    def test_instruments_use_first_name(self):
        self.ledger.add(build_trade("600519", "1800", 10, "2024-05-01", name="Moutai", trade_id="t5"))
        instruments = self.ledger.instruments()
        self.assertEqual(instruments["600519"], "Kweichow Moutai")
        self.assertEqual(list(instruments), ["600519", "000001", "AAPL"])


class TestTradeFilters(unittest.TestCase):

    def setUp(self):
        self.trades = [
            build_trade("600519", "1700", 100, "2024-01-02", name="Kweichow Moutai", tags=["long"], trade_id="t1"),
            build_trade("000001", "10.5", 1000, "2024-01-03", name="Ping An Bank", tags=["swing", "bank"], trade_id="t2"),
            build_trade("601398", "5", 1000, "2024-01-03", name="ICBC", tags=["bank"], trade_id="t3"),
        ]

    def ids(self, trades):
        return [t.id for t in trades]

    def test_no_filter_returns_everything(self):
        self.assertEqual(self.ids(filter_trades(self.trades)), ["t1", "t2", "t3"])

    def test_text_matches_code_or_name(self):
        self.assertEqual(self.ids(filter_trades(self.trades, "6005")), ["t1"])
        self.assertEqual(self.ids(filter_trades(self.trades, "ping an")), ["t2"])

    def test_all_selected_tags_required(self):
        self.assertEqual(self.ids(filter_trades(self.trades, tags=["bank"])), ["t2", "t3"])
        self.assertEqual(self.ids(filter_trades(self.trades, tags=["bank", "swing"])), ["t2"])
        self.assertEqual(self.ids(filter_trades(self.trades, tags=["bank", "long"])), [])

    def test_text_and_tags_combine(self):
        self.assertEqual(self.ids(filter_trades(self.trades, "icbc", ["bank"])), ["t3"])

    def test_filter_text_does_not_match_tags(self):
        self.assertEqual(filter_trades(self.trades, "swing"), [])

    def test_search_matches_tags(self):
        self.assertEqual(self.ids(search_trades(self.trades, "SWI")), ["t2"])
        self.assertEqual(self.ids(search_trades(self.trades, "bank")), ["t2", "t3"])
        self.assertEqual(self.ids(search_trades(self.trades, "")), ["t1", "t2", "t3"])


if __name__ == '__main__':
    unittest.main()
