import os
from dataclasses import dataclass
from typing import Optional

import streamlit as st

from py_ledger.ledger import TradeLedger
from py_ledger.store import LedgerStore
from py_quotes.config_loader import load_config
from py_quotes.error_logger import QuoteErrorLogger
from py_quotes.quote_service import QuoteService, build_quote_service
from py_quotes.types import QuoteConfig
from py_advisor.conversations import ConversationStore
from py_dashboard.preferences import UiPreferences, load_preferences, save_preferences

@dataclass
class AppState:
    """ Everything the dashboard keeps alive between Streamlit reruns. """
    config: QuoteConfig
    store: LedgerStore
    ledger: TradeLedger
    quotes: QuoteService
    conversations: ConversationStore
    settings_path: str
    prefs: UiPreferences
    prefs_path: str

    def save_ledger(self) -> None:
        self.store.save(self.ledger)

    def save_prefs(self) -> None:
        save_preferences(self.prefs, self.prefs_path)

def create_app_state(config_path: str = "providers.json") -> AppState:
    config = load_config(config_path)
    store = LedgerStore(os.path.join(config.data_dir, "ledger.json"))
    prefs_path = os.path.join(config.data_dir, "ui_prefs.json")
    return AppState(
        config=config,
        store=store,
        ledger=store.load(),
        quotes=build_quote_service(config, QuoteErrorLogger(config.data_dir)),
        conversations=ConversationStore(os.path.join(config.data_dir, "ai_conversations.json")),
        settings_path=os.path.join(config.data_dir, "ai_settings.json"),
        prefs=load_preferences(prefs_path),
        prefs_path=prefs_path,
    )

def get_app_state(config_path: Optional[str] = None) -> AppState:
    if "app" not in st.session_state:
        st.session_state.app = create_app_state(config_path or os.environ.get("STOCK_TRACKER_CONFIG", "providers.json"))
    return st.session_state.app
