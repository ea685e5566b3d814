import unittest
import json
import os
import shutil
import sys
import tempfile
from decimal import Decimal

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from py_dashboard.data_loader import create_app_state
from py_ledger.store import LedgerStore
from py_ledger.validation import build_trade
from py_quotes.provider_sina import SinaQuoteProvider


class TestDashboardState(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.data_dir = os.path.join(self.test_dir, "data")
        self.config_path = os.path.join(self.test_dir, "providers.json")
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump({
                "providers": {"sina": {"enabled": True, "priority": 1}},
                "poll_interval_seconds": 5,
                "data_dir": self.data_dir,
            }, f)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_files_live_in_data_dir(self):
        app = create_app_state(self.config_path)

        self.assertEqual(app.config.poll_interval_seconds, 5.0)
        self.assertEqual(app.store.path, os.path.join(self.data_dir, "ledger.json"))
        self.assertEqual(app.conversations.path, os.path.join(self.data_dir, "ai_conversations.json"))
        self.assertEqual(app.settings_path, os.path.join(self.data_dir, "ai_settings.json"))
        self.assertEqual([type(p) for p in app.quotes.providers], [SinaQuoteProvider])
        self.assertTrue(os.path.exists(os.path.join(self.data_dir, "quote_errors.csv")))
        self.assertEqual(len(app.ledger), 0)
        self.assertEqual(app.prefs_path, os.path.join(self.data_dir, "ui_prefs.json"))
        self.assertEqual(app.prefs.recent_searches, [])

    def test_save_ledger_persists_edits(self):
        app = create_app_state(self.config_path)
        app.ledger.add(build_trade("600519", "1700", 100, "2024-03-01", trade_id="t1"))
        app.ledger.toggle_pin("core")
        app.save_ledger()

        reloaded = LedgerStore(os.path.join(self.data_dir, "ledger.json")).load()
        self.assertEqual(reloaded.get("t1").price, Decimal("1700"))
        self.assertEqual(reloaded.pinned_tags, ["core"])

        # A fresh dashboard session sees the saved ledger
        self.assertEqual(len(create_app_state(self.config_path).ledger), 1)

    def test_save_prefs_carries_over_to_next_session(self):
        app = create_app_state(self.config_path)
        app.prefs.remember_search("512480")
        app.prefs.remember_stock("512480", "Semiconductor ETF")
        app.save_prefs()

        fresh = create_app_state(self.config_path)
        self.assertEqual(fresh.prefs.recent_searches, ["512480"])
        self.assertEqual(fresh.prefs.last_stock, {"code": "512480", "name": "Semiconductor ETF"})


if __name__ == '__main__':
    unittest.main()
