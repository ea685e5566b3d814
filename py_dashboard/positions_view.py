import streamlit as st
from decimal import Decimal
from typing import Sequence

from py_positions.types import Trade
from py_positions.calculator import calculate_positions, calculate_totals
from py_positions.frames import positions_frame
from py_positions.formatting import format_money, format_percent
from py_quotes.codes import is_market_open
from py_dashboard.data_loader import AppState


def _ensure_quotes(app: AppState, codes: Sequence[str]):
    """ Loads quotes once whenever the set of ledger codes changes. """
    key = tuple(sorted(codes))
    if codes and st.session_state.get("quoted_codes") != key:
        with st.spinner("Loading quotes..."):
            app.quotes.refresh(codes)
        st.session_state.quoted_codes = key


def render_totals(totals):
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Cost", format_money(totals.total_cost))
    c2.metric("Market Value", format_money(totals.total_market_value))
    c3.metric("Profit / Loss", format_money(totals.total_profit_loss))
    c4.metric("Profit / Loss %", format_percent(totals.total_profit_loss_percent))


def render_manual_price(app: AppState, positions):
    with st.expander("Set price manually"):
        with st.form("manual_price_form", clear_on_submit=True):
            col_code, col_price = st.columns(2)
            code = col_code.selectbox("Code", options=[p.code for p in positions])
            price = col_price.number_input("Price", min_value=0.0, step=0.001, format="%.3f")
            submitted = st.form_submit_button("Apply")
        if submitted and code:
            if price <= 0:
                st.error("Price must be positive.")
            else:
                name = next((p.name for p in positions if p.code == code), None)
                app.quotes.set_manual_price(code, Decimal(str(price)), name)
                st.rerun()

        if app.quotes.error_logger:
            counts = app.quotes.error_logger.failure_counts()
            if counts:
                st.caption("Codes without quotes so far: " + ", ".join(f"{c} ({n}x)" for c, n in counts.items()))

        overrides = sorted(app.quotes.manual_prices)
        if overrides:
            clear_code = st.selectbox("Manual overrides", options=overrides, key="clear_manual_code")
            if st.button("Use live price again"):
                app.quotes.clear_manual_price(clear_code)
                st.rerun()


def render_positions_tab(app: AppState, trades: Sequence[Trade]):
    codes = sorted({t.code for t in trades})
    _ensure_quotes(app, codes)

    interval = app.config.poll_interval_seconds if is_market_open() else None

    @st.fragment(run_every=interval)
    def _positions():
        # Live polling only while the exchange is in session
        if interval and codes and is_market_open():
            app.quotes.refresh(codes)

        col_title, col_refresh = st.columns([4, 1])
        col_title.markdown("### Positions")
        if col_refresh.button("Refresh quotes", disabled=not codes):
            app.quotes.refresh(codes)
        if app.quotes.last_error:
            st.error(app.quotes.last_error)

        positions = calculate_positions(trades, app.quotes.price_map())
        totals = calculate_totals(positions)

        render_totals(totals)

        if not positions:
            st.info("No open positions.")
            return

        df = positions_frame(positions)
        st.dataframe(
            df,
            hide_index=True,
            use_container_width=True,
            column_config={
                "Average_Cost": st.column_config.NumberColumn("Avg Cost", format="%.3f"),
                "Total_Cost": st.column_config.NumberColumn("Cost", format="%.2f"),
                "Current_Price": st.column_config.NumberColumn("Price", format="%.3f"),
                "Market_Value": st.column_config.NumberColumn("Market Value", format="%.2f"),
                "Profit_Loss": st.column_config.NumberColumn("P/L", format="%.2f"),
                "Profit_Loss_Pct": st.column_config.NumberColumn("P/L %", format="%.2f%%"),
            },
        )

        render_manual_price(app, positions)

        if st.button("Ask AI about these holdings"):
            st.session_state.pending_analysis = {"positions": positions, "totals": totals, "selected": False}
            # Full rerun so the advisor tab picks the request up
            st.rerun()

    _positions()
