import streamlit as st
from typing import Sequence

from py_positions.types import Trade
from py_positions.calculator import calculate_positions, calculate_totals
from py_advisor.types import AISettings
from py_advisor.settings import load_settings, save_settings
from py_advisor.client import ChatClient
from py_advisor.prompts import build_system_prompt, build_portfolio_summary
from py_dashboard.data_loader import AppState

ANALYSIS_TITLE = "Trade analysis"


def render_settings(app: AppState) -> AISettings:
    settings = load_settings(app.settings_path)
    with st.expander("AI settings", expanded=not settings.api_key):
        with st.form("ai_settings_form"):
            api_key = st.text_input("API key", value=settings.api_key, type="password")
            base_url = st.text_input("Base URL", value=settings.base_url)
            model = st.text_input("Model", value=settings.model)
            temperature = st.slider("Temperature", min_value=0.0, max_value=2.0, value=float(settings.temperature), step=0.1)
            use_deep_thinking = st.checkbox("Deep thinking (reasoner model)", value=settings.use_deep_thinking)
            enable_web_search = st.checkbox("Mention web search in the prompt", value=settings.enable_web_search)
            if st.form_submit_button("Save settings"):
                settings = AISettings(
                    api_key=api_key.strip(),
                    base_url=base_url.strip(),
                    model=model.strip(),
                    temperature=temperature,
                    use_deep_thinking=use_deep_thinking,
                    enable_web_search=enable_web_search,
                )
                save_settings(settings, app.settings_path)
                st.success("Settings saved.")
    return settings


def render_conversation_list(app: AppState):
    store = app.conversations
    if st.button("New chat", use_container_width=True):
        store.new_conversation()
        st.rerun()

    for conv in store.conversations:
        col_title, col_del = st.columns([4, 1])
        label = ("▶ " if conv.id == store.active_id else "") + conv.title
        if col_title.button(label, key=f"conv_{conv.id}", use_container_width=True):
            store.switch(conv.id)
            st.rerun()
        if col_del.button("✕", key=f"conv_del_{conv.id}"):
            store.delete(conv.id)
            st.rerun()


def render_messages(conversation):
    for message in conversation.messages:
        with st.chat_message(message.role):
            if message.reasoning_content:
                with st.expander("Reasoning"):
                    st.markdown(message.reasoning_content)
            st.markdown(message.content)


def render_advisor_tab(app: AppState, trades: Sequence[Trade]):
    settings = render_settings(app)
    store = app.conversations

    positions = calculate_positions(trades, app.quotes.price_map())
    totals = calculate_totals(positions)
    system_prompt = build_system_prompt(positions, totals, settings)
    client = ChatClient(settings)

    # Analysis requests queued by the positions and trades tabs
    pending = st.session_state.pop("pending_analysis", None)
    if pending:
        conv = store.new_conversation(ANALYSIS_TITLE)
        summary = build_portfolio_summary(pending["positions"], pending["totals"], pending["selected"])
        with st.spinner("Waiting for the advisor..."):
            store.send(conv.id, summary, system_prompt, client)

    col_list, col_chat = st.columns([1, 3])
    with col_list:
        render_conversation_list(app)

    with col_chat:
        conv = store.active
        if conv is None:
            st.info("Start a new chat or ask about your holdings from the Positions tab.")
        else:
            render_messages(conv)

        text = st.chat_input("Ask about your portfolio")
        if text:
            with st.spinner("Waiting for the advisor..."):
                store.send(store.active_id, text, system_prompt, client)
            st.rerun()
