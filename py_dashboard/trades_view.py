import streamlit as st
from datetime import date
from typing import List, Optional, Sequence

from py_positions.types import Trade, TradeType
from py_positions.analysis import analyze_trade_history
from py_positions.calculator import calculate_positions, calculate_totals
from py_positions.frames import trades_frame
from py_ledger.ledger import search_trades
from py_ledger.validation import build_trade, TradeValidationError
from py_ledger.store import export_trades, export_filename, import_trades_json, LedgerFormatError
from py_quotes.codes import is_a_share_code
from py_quotes.provider_sina import chart_url, CHART_KINDS
from py_quotes.search import search_instruments
from py_dashboard.data_loader import AppState
from py_dashboard.charts import render_analysis_chart


def _use_recent_search(text: str):
    st.session_state.instrument_query = text


def render_recent_searches(app: AppState):
    recent = app.prefs.recent_searches
    if not recent:
        return
    cols = st.columns(len(recent) + 1)
    for i, text in enumerate(recent):
        cols[i].button(text, key=f"recent_search_{i}", on_click=_use_recent_search, args=(text,))
    if cols[-1].button("Clear", key="recent_search_clear"):
        app.prefs.clear_searches()
        app.save_prefs()
        st.rerun()


def render_instrument_search(app: AppState):
    """ Lookup box filling the trade form's code and name. """
    query = st.text_input("Find instrument", key="instrument_query", placeholder="Code or name, e.g. 512480")
    render_recent_searches(app)
    if not query:
        return
    matches = search_instruments(query)
    if not matches:
        st.caption("No matches.")
        return
    if app.prefs.recent_searches[:1] != [query.strip()]:
        app.prefs.remember_search(query)
        app.save_prefs()
    labels = [f"{m.market}{m.code} {m.name}" for m in matches]
    choice = st.selectbox("Matches", options=range(len(matches)), format_func=lambda i: labels[i], key="instrument_choice")
    if st.button("Use instrument"):
        app.prefs.remember_stock(matches[choice].code, matches[choice].name)
        app.save_prefs()
        st.rerun()


def render_trade_form(app: AppState, editing: Optional[Trade] = None):
    """ Add form, or edit form when a trade is given. Edits replace the whole trade. """
    last = app.prefs.last_stock
    key = f"trade_form_{editing.id}" if editing else "trade_form_new"

    with st.form(key, clear_on_submit=editing is None):
        st.markdown("#### " + ("Edit trade" if editing else "Add trade"))
        c1, c2 = st.columns(2)
        code = c1.text_input("Code *", value=editing.code if editing else last["code"])
        name = c2.text_input("Name", value=editing.name if editing else last["name"])

        c3, c4, c5 = st.columns(3)
        trade_type = c3.radio("Type *", options=[TradeType.BUY, TradeType.SELL], horizontal=True,
                              index=1 if editing and editing.type == TradeType.SELL else 0,
                              format_func=lambda t: t.value.capitalize())
        price = c4.text_input("Price *", value=str(editing.price) if editing else "")
        quantity = c5.text_input("Quantity *", value=str(editing.quantity) if editing else "")

        c6, c7 = st.columns(2)
        trade_date = c6.date_input("Date", value=editing.date if editing else date.today())
        commission = c7.text_input("Commission", value=str(editing.commission) if editing and editing.commission is not None else "")

        default_tags = sorted(editing.tags) if editing else list(app.ledger.pinned_tags)
        tags_text = st.text_input("Tags (comma separated)", value=", ".join(default_tags))

        submitted = st.form_submit_button("Save" if editing else "Add")

    if not submitted:
        return

    try:
        trade = build_trade(
            code=code,
            name=name,
            trade_type=trade_type,
            price=price,
            quantity=quantity,
            timestamp=trade_date,
            commission=commission,
            tags=[t for t in tags_text.split(",")],
            trade_id=editing.id if editing else None,
        )
    except TradeValidationError as e:
        st.error(str(e))
        return

    if editing:
        app.ledger.replace(editing.id, trade)
        st.session_state.pop("editing_id", None)
    else:
        app.ledger.add(trade)
        app.prefs.remember_stock(trade.code, trade.name)
        app.save_prefs()
    app.save_ledger()
    st.rerun()


def render_import_export(app: AppState):
    col_exp, col_imp = st.columns(2)
    with col_exp:
        if len(app.ledger):
            st.download_button(
                "Export JSON",
                data=export_trades(list(app.ledger.trades)),
                file_name=export_filename(),
                mime="application/json",
            )
        else:
            st.caption("No trades to export.")
    with col_imp:
        uploaded = st.file_uploader("Import JSON", type=["json"], key="import_file")
        if uploaded is not None and st.button("Import"):
            try:
                trades, skipped = import_trades_json(uploaded.getvalue().decode("utf-8"))
            except (LedgerFormatError, UnicodeDecodeError) as e:
                st.error(f"Import failed: {e}")
                return
            added = app.ledger.import_trades(trades)
            app.save_ledger()
            st.success(f"Imported {added} trade(s). {len(trades) - added} duplicate(s), {skipped} invalid record(s) skipped.")


def render_kline(code: str):
    if not is_a_share_code(code):
        st.caption(f"No chart available for {code}.")
        return
    kind = st.radio("Chart", options=list(CHART_KINDS), horizontal=True, index=1, key="kline_kind")
    st.image(chart_url(code, kind), caption=code)


def render_trades_tab(app: AppState, trades: Sequence[Trade]):
    render_instrument_search(app)

    editing_id = st.session_state.get("editing_id")
    editing = app.ledger.get(editing_id) if editing_id else None
    render_trade_form(app, editing)
    if editing and st.button("Cancel edit"):
        st.session_state.pop("editing_id", None)
        st.rerun()

    st.markdown("---")
    st.markdown("### Trades")
    search = st.text_input("Search trades", key="trade_search", placeholder="Code, name or tag")
    visible: List[Trade] = sorted(search_trades(trades, search), key=lambda t: t.timestamp, reverse=True)

    if not visible:
        st.info("No trades match." if trades else "No trades recorded yet.")
        render_import_export(app)
        return

    df = trades_frame(visible)
    event = st.dataframe(
        df.drop(columns=["ID"]),
        hide_index=True,
        use_container_width=True,
        on_select="rerun",
        selection_mode="multi-row",
        key="trade_table",
    )
    selected = [visible[i] for i in event.selection.rows]

    c1, c2, c3, c4 = st.columns(4)
    if c1.button("Edit", disabled=len(selected) != 1):
        st.session_state.editing_id = selected[0].id
        st.rerun()
    if c2.button(f"Delete ({len(selected)})", disabled=not selected):
        app.ledger.delete_many(t.id for t in selected)
        app.save_ledger()
        st.rerun()
    show_analysis = c3.toggle("Analyse selection", disabled=not selected)
    if c4.button("Ask AI about selection", disabled=not selected):
        positions = calculate_positions(selected, app.quotes.price_map())
        st.session_state.pending_analysis = {
            "positions": positions,
            "totals": calculate_totals(positions),
            "selected": True,
        }
        st.info("Analysis queued. Open the AI Advisor tab.")

    if show_analysis and selected:
        render_analysis_chart(analyze_trade_history(selected))

    if len({t.code for t in selected}) == 1:
        render_kline(selected[0].code)

    st.markdown("---")
    render_import_export(app)
