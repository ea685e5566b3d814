import streamlit as st
import plotly.graph_objects as go
import pandas as pd
from typing import List, Sequence

from py_positions.types import AnalysisPoint
from py_positions.analysis import collapse_by_date
from py_positions.frames import analysis_frame

ANALYSIS_TRACES = {
    'Trade Amount': {
        'col': 'Trade_Amount',
        'color': '#4a90e2',
        'default': True,
        'help': 'Gross amount traded on the day. Formula: Σ price × quantity'
    },
    'Realized Profit': {
        'col': 'Realized_Profit',
        'color': '#2ecc71',
        'default': True,
        'help': 'Profit booked by sells on the day against the average cost at the time of the sell, after commission.'
    },
    'Cumulative Cost': {
        'col': 'Cumulative_Cost',
        'color': '#f1c40f',
        'default': True,
        'help': 'Cost basis still held across the selected trades after the last trade of the day.'
    },
}


def build_analysis_figure(df: pd.DataFrame, selected_traces: List[str]) -> go.Figure:
    """ Line chart of the per-date analysis frame; one trace per selected series. """
    fig = go.Figure()

    for label in selected_traces:
        config = ANALYSIS_TRACES[label]
        fig.add_trace(go.Scatter(
            x=df['Date'],
            y=df[config['col']],
            mode='lines+markers' if len(df) > 1 else 'markers',
            name=label,
            line=dict(color=config['color'], width=2),
            marker=dict(size=8 if len(df) > 1 else 12),
            hovertemplate="%{x|%Y-%m-%d}<br>" + label + ": %{y:,.2f}<extra></extra>",
        ))

    fig.update_layout(
        template="plotly_dark",
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        margin=dict(l=0, r=0, t=20, b=0),
        height=400,
        yaxis=dict(tickformat=",.0f", zeroline=True),
        xaxis=dict(showgrid=False, title="Date"),
        showlegend=True,
    )
    return fig


def render_analysis_chart(points: Sequence[AnalysisPoint], key_prefix: str = "analysis"):
    """
    Renders the trade analysis chart for a projected trade subset.
    Points are collapsed to one per calendar date before plotting.
    """
    st.markdown("### Trade Analysis")

    collapsed = collapse_by_date(points)
    if not collapsed:
        st.info("Not enough data to draw the chart.")
        return

    df = analysis_frame(collapsed)

    selected_traces = []
    cols = st.columns(len(ANALYSIS_TRACES))
    for i, (label, config) in enumerate(ANALYSIS_TRACES.items()):
        with cols[i]:
            if st.checkbox(label, value=config['default'], key=f"{key_prefix}_toggle_{label}", help=config['help']):
                selected_traces.append(label)

    if not selected_traces:
        st.warning("Select at least one series.")
        return

    st.plotly_chart(build_analysis_figure(df, selected_traces), use_container_width=True)
