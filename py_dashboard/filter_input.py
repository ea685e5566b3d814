import streamlit as st
from typing import List, Tuple

from py_dashboard.data_loader import AppState

def render_filter_input(app: AppState) -> Tuple[str, List[str]]:
    """
    Renders the global filter shared by all tabs.
    Pinned tags are preselected on the first run of a session.

    Returns:
        (text, tags) to pass to filter_trades.
    """
    ledger = app.ledger
    all_tags = ledger.all_tags()

    if "filter_tags" not in st.session_state:
        st.session_state.filter_tags = [t for t in ledger.pinned_tags if t in all_tags]

    with st.container():
        col_text, col_tags, col_pin = st.columns([2, 3, 1])
        with col_text:
            text = st.text_input("Search", key="filter_text", placeholder="Code or name")
        with col_tags:
            # Drop selections whose tag no longer exists in the ledger
            st.session_state.filter_tags = [t for t in st.session_state.filter_tags if t in all_tags]
            tags = st.multiselect("Tags", options=all_tags, key="filter_tags")
        with col_pin:
            pin_tag = st.selectbox("Pin", options=[""] + all_tags, key="pin_tag",
                                   format_func=lambda t: t if not t else (f"★ {t}" if t in ledger.pinned_tags else t),
                                   help="Pinned tags are preselected when the dashboard opens")
            if st.button("Toggle pin", disabled=not pin_tag):
                ledger.toggle_pin(pin_tag)
                app.save_ledger()
                st.rerun()

    return text, tags
