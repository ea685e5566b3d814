import os
import sys
import logging

import streamlit as st

# Streamlit puts only this directory on sys.path; the sibling packages live one level up
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from py_ledger.ledger import filter_trades
from py_dashboard.data_loader import get_app_state
from py_dashboard.filter_input import render_filter_input
from py_dashboard.positions_view import render_positions_tab
from py_dashboard.trades_view import render_trades_tab
from py_dashboard.advisor_view import render_advisor_tab

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

# --- Page Config ---
st.set_page_config(
    page_title="Stock Tracker",
    layout="wide",
    initial_sidebar_state="collapsed"
)

st.title("Stock Tracker")

# --- State ---
app = get_app_state()

# --- Global Filter ---
text, tags = render_filter_input(app)
trades = filter_trades(app.ledger.trades, text, tags)

if text or tags:
    st.caption(f"{len(trades)} of {len(app.ledger)} trades match the filter.")

st.markdown("---")

# --- Tabs ---
tab_positions, tab_trades, tab_advisor = st.tabs(["Positions", "Trades", "AI Advisor"])

with tab_positions:
    render_positions_tab(app, trades)

with tab_trades:
    render_trades_tab(app, trades)

with tab_advisor:
    render_advisor_tab(app, trades)
