"""
OKR Dashboard — Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from okr_dashboard.config import DATA_DIR
from okr_dashboard.dashboard import (
    get_monthly_frame,
    get_overview,
    get_owner_frame,
    get_quarterly_frame,
    get_trend_analysis,
    get_weightage_frame,
)
from okr_dashboard.ingest import load_all
from okr_dashboard.kpis import STATUS_LABELS
from okr_dashboard.models import DatasetKey
from okr_dashboard.store import DatasetStore

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="OKR Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

RAG_COLORS = {
    "green": "#2ecc71",
    "amber": "#f39c12",
    "red": "#e74c3c",
    "grey": "#95a5a6",
}


# ---------------------------------------------------------------------------
# Data loading (cached, short TTL so saved workbook edits show up)
# ---------------------------------------------------------------------------
@st.cache_data(ttl=10)
def load_all_data(data_dir: str):
    store = DatasetStore()
    load_all(store, data_dir)
    return {
        "functions": store.functions(),
        "years": {func: store.years(func) for func in store.functions()},
        "datasets": {key: store.get(key) for key in store.keys()},
    }


data = load_all_data(str(DATA_DIR))

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("OKR Dashboard")
st.sidebar.markdown("Business-Metrics Oversight")
st.sidebar.divider()

if not data["functions"]:
    st.warning(f"No input workbooks found in {DATA_DIR}. Run `python main.py template` to create one.")
    st.stop()

selected_function = st.sidebar.selectbox("Function", data["functions"])
years = data["years"][selected_function]
selected_fy = st.sidebar.selectbox("Fiscal Year", years, index=len(years) - 1)

page = st.sidebar.radio(
    "Navigate",
    ["Overview", "Monthly", "Quarterly", "Account Owners", "Analysis"],
)

st.sidebar.divider()
st.sidebar.caption(f"Data directory: {DATA_DIR}")

dataset = data["datasets"][DatasetKey(selected_function, selected_fy)]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def rag_card(label: str, actual, target, pct, rag: str, unit: str = ""):
    color = RAG_COLORS.get(rag, RAG_COLORS["grey"])
    actual_str = f"{actual:,.2f}" if actual is not None else "N/A"
    target_str = f"{target:,.2f}" if target is not None else "N/A"
    pct_str = f"{pct * 100:.1f}%" if pct is not None else "N/A"

    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{actual_str} <span style="font-size: 14px; color: #888;">{unit}</span></div>
            <div style="font-size: 13px; color: #666;">
                Target: {target_str} {unit} &nbsp;|&nbsp;
                <span style="color: {color}; font-weight: 600;">{pct_str}</span>
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def color_status(val):
    color = RAG_COLORS.get(val, "#333")
    return f"background-color: {color}22; color: {color}"


def csv_download(df: pd.DataFrame, name: str):
    st.download_button(
        "Download CSV",
        df.to_csv(index=False).encode("utf-8"),
        file_name=f"{selected_function}_{selected_fy}_{name}.csv",
        mime="text/csv",
        key=f"download_{name}",
    )


def target_vs_achievement(df: pd.DataFrame, x: str, title: str, unit: str = ""):
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=df[x],
        y=df["achievement"],
        name="Achievement",
        marker_color=[RAG_COLORS.get(s, "#95a5a6") for s in df["status"]],
    ))
    fig.add_trace(go.Scatter(
        x=df[x],
        y=df["target"],
        name="Target",
        mode="lines+markers",
        line=dict(color="#34495e", width=2, dash="dash"),
        marker=dict(size=8),
    ))
    fig.update_layout(
        title=title,
        yaxis_title=unit,
        height=380,
        plot_bgcolor="rgba(0,0,0,0)",
    )
    st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Overview
# ===========================================================================
if page == "Overview":
    st.title(f"{selected_function} Overview")
    st.caption(f"Fiscal year: **{selected_fy}**")

    overview = get_overview(dataset)

    annual = overview["annual"]
    if annual:
        st.subheader("Annual KPIs")
        cols = st.columns(3)
        for i, metric in enumerate(annual.values()):
            with cols[i % 3]:
                rag_card(
                    metric["label"], metric["achievement"], metric["target"],
                    metric["percentage"], metric["status"], metric["unit"],
                )

    st.subheader("Billing & Collection")
    cols = st.columns(3)
    for col, (label, key) in zip(cols, [("On-time Billing", "billing"), ("On-time Collection", "collection")]):
        with col:
            m = overview[key]
            rag_card(label, m["achievement"], m["target"], m["percentage"], m["status"], "Cr")
    with cols[2]:
        pipeline = overview["pipeline"]
        st.metric("Open Pipeline", f"{pipeline['open_pipeline']:,.2f} Cr")
        st.metric(
            "Pipeline Coverage",
            f"{pipeline['coverage']:.2f}x",
            help=f"Remaining ARR target: {pipeline['remaining_target']:,.2f} Cr",
        )

    st.divider()

    col1, col2 = st.columns([2, 1])
    with col1:
        st.subheader("Weightages")
        weights = get_weightage_frame(dataset)
        if weights.empty:
            st.info("No Weightages sheet in this workbook.")
        else:
            if overview["weight_total"] != 100:
                st.warning(f"Weightages total {overview['weight_total']:g}, expected 100.")
            st.dataframe(weights, use_container_width=True, hide_index=True)
            st.metric("Weighted OKR Score", f"{overview['weighted_score'] * 100:.1f}%")

    with col2:
        st.subheader("RAG Status")
        if not dataset.rag_metrics:
            st.info("No RAG Metrics sheet in this workbook.")
        for metric in dataset.rag_metrics or ():
            color = RAG_COLORS.get(metric.value, RAG_COLORS["grey"])
            st.markdown(
                f"<div style='border-left: 3px solid {color}; padding: 4px 8px; margin: 4px 0;'>"
                f"<b>{metric.label}</b>: <span style='color: {color};'>{metric.value.upper()}</span></div>",
                unsafe_allow_html=True,
            )


# ===========================================================================
# PAGE: Monthly
# ===========================================================================
elif page == "Monthly":
    st.title("Monthly Billing & Collection")

    tab1, tab2 = st.tabs(["Billing", "Collection"])
    for tab, name, records, totals in (
        (tab1, "billing", dataset.monthly_billing, dataset.billing_totals),
        (tab2, "collection", dataset.monthly_collection, dataset.collection_totals),
    ):
        with tab:
            df = get_monthly_frame(records)
            if df.empty:
                st.info(f"No monthly {name} data available.")
                continue

            col1, col2, col3 = st.columns(3)
            with col1:
                st.metric("Total Target", f"{totals.total_target:,.2f} Cr")
            with col2:
                st.metric("Total Achieved", f"{totals.total_achievement:,.2f} Cr")
            with col3:
                st.metric("Achievement", f"{totals.achievement_percentage * 100:.1f}%")

            target_vs_achievement(df, "month", f"Monthly {name.title()}: Achievement vs Target", "INR Cr")

            fig = go.Figure()
            fig.add_trace(go.Scatter(
                x=df["month"], y=df["cumulative_achievement"],
                name="Cumulative Achievement", fill="tozeroy",
                line=dict(color="#3498db"),
            ))
            fig.add_trace(go.Scatter(
                x=df["month"], y=df["cumulative_target"],
                name="Cumulative Target",
                line=dict(color="#e74c3c", dash="dash"),
            ))
            fig.update_layout(
                title=f"Cumulative {name.title()}",
                yaxis_title="INR Cr",
                height=350,
                plot_bgcolor="rgba(0,0,0,0)",
            )
            st.plotly_chart(fig, use_container_width=True)

            styled = df.style.map(color_status, subset=["status"])
            st.dataframe(styled, use_container_width=True, hide_index=True)
            csv_download(df, f"monthly_{name}")


# ===========================================================================
# PAGE: Quarterly
# ===========================================================================
elif page == "Quarterly":
    st.title("Quarterly Metrics")

    series = [
        ("QBRs Held", "qbrs", dataset.quarterly_qbrs, ""),
        ("Hero Stories", "hero_stories", dataset.quarterly_hero_stories, ""),
        ("ARR", "arr", dataset.quarterly_arr, "INR Cr"),
        ("Service Revenue", "service_rev", dataset.quarterly_service_rev, "INR Cr"),
    ]
    tabs = st.tabs([label for label, *_ in series])
    for tab, (label, name, records, unit) in zip(tabs, series):
        with tab:
            df = get_quarterly_frame(records)
            if df.empty:
                st.info(f"No {label} data available.")
                continue
            target_vs_achievement(df, "quarter", f"{label}: Achievement vs Target", unit)
            styled = df.style.map(color_status, subset=["status"])
            st.dataframe(styled, use_container_width=True, hide_index=True)
            csv_download(df, f"quarterly_{name}")


# ===========================================================================
# PAGE: Account Owners
# ===========================================================================
elif page == "Account Owners":
    st.title("Account Owner Performance (YTD)")

    owners = get_owner_frame(dataset)
    if owners.empty:
        st.warning("No account owner data available.")
    else:
        fig = go.Figure()
        for column, label, color in (
            ("arr_achievement", "ARR Achievement", "#9b59b6"),
            ("billing", "Billing", "#3498db"),
            ("collection", "Collection", "#2ecc71"),
        ):
            fig.add_trace(go.Bar(x=owners["name"], y=owners[column], name=label, marker_color=color))
        fig.update_layout(
            barmode="group",
            yaxis_title="INR Cr",
            height=420,
            plot_bgcolor="rgba(0,0,0,0)",
        )
        fig.add_hline(y=0, line_dash="dash", line_color="#888")
        st.plotly_chart(fig, use_container_width=True)

        st.dataframe(owners, use_container_width=True, hide_index=True)
        csv_download(owners, "account_owners")


# ===========================================================================
# PAGE: Analysis
# ===========================================================================
elif page == "Analysis":
    st.title("Trend Analysis")
    st.caption("Simple statistics over the months reported so far. Indicative only.")

    analysis = get_trend_analysis(dataset)

    cols = st.columns(2)
    for col, name in zip(cols, ("billing", "collection")):
        trend = analysis[name]
        with col:
            st.subheader(name.title())
            st.metric("Trend", trend["direction"], delta=f"{trend['slope']:+.2f} Cr / month")
            st.metric("Projected Year End", f"{trend['predicted_year_end']:,.2f} Cr")
            if trend["average_rate"] is not None:
                st.metric("Average Monthly Achievement", f"{trend['average_rate'] * 100:.1f}%")
            st.markdown(
                f"Best month: **{trend['best_month'] or 'N/A'}** &nbsp;|&nbsp; "
                f"Worst month: **{trend['worst_month'] or 'N/A'}**"
            )

            df = get_monthly_frame(getattr(dataset, f"monthly_{name}"))
            reported = df.dropna(subset=["achievement"])
            if not reported.empty:
                fig = go.Figure()
                fig.add_trace(go.Scatter(
                    x=reported["month"], y=reported["achievement"],
                    name="Achievement", mode="lines+markers",
                    line=dict(color="#3498db"),
                ))
                fig.add_trace(go.Scatter(
                    x=reported["month"], y=trend["moving_average"],
                    name="3-month Average",
                    line=dict(color="#f39c12", dash="dot"),
                ))
                fig.add_trace(go.Scatter(
                    x=reported["month"],
                    y=[trend["intercept"] + trend["slope"] * i for i in range(len(reported))],
                    name="Linear Trend",
                    line=dict(color="#e74c3c", dash="dash"),
                ))
                fig.update_layout(height=350, plot_bgcolor="rgba(0,0,0,0)")
                st.plotly_chart(fig, use_container_width=True)

    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        st.metric("Billing vs Collection Correlation", f"{analysis['correlation']:.2f}")
    with col2:
        st.metric("Weightage Total", f"{dataset.weight_total:g}", help="Expected to total 100")

    weights = get_weightage_frame(dataset)
    if not weights.empty:
        fig = go.Figure(go.Pie(labels=weights["label"], values=weights["weight"], hole=0.4))
        fig.update_layout(height=350, margin=dict(l=10, r=10, t=10, b=10))
        st.plotly_chart(fig, use_container_width=True)

    legend = " &nbsp;|&nbsp; ".join(
        f"<span style='color: {RAG_COLORS[k]};'>■</span> {v}" for k, v in STATUS_LABELS.items()
    )
    st.markdown(legend, unsafe_allow_html=True)
