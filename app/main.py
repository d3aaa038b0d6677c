import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dataclasses import replace
from datetime import date

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
import structlog

from flow.config import FlowSettings
from flow.domain import UNITS, Recurring, UnknownRecurrence
from flow.functional import find_transaction, validate_transaction_input
from flow.logging_config import configure_logging
from flow.projection import cashflow_frame, default_end_date
from flow.recurrence import next_occurrence
from flow.services import default_forecast_service
from flow.transforms import (
    add_transaction,
    delete_transaction,
    load_transactions,
    save_transactions,
    total_amount,
    update_transaction,
)

settings = FlowSettings()
configure_logging(verbose=settings.verbose, log_json=settings.log_json)
log = structlog.get_logger("app.main")

st.set_page_config(page_title="Flow", layout="wide")

if "transactions" not in st.session_state:
    st.session_state.transactions = load_transactions(settings.data_path)
    log.info("transactions.loaded", count=len(st.session_state.transactions), path=str(settings.data_path))


def commit(trans):
    st.session_state.transactions = trans
    save_transactions(settings.data_path, trans)
    log.info("transactions.saved", count=len(trans))


def describe_recurrence(rec) -> str:
    if isinstance(rec, Recurring):
        unit = rec.unit.lower()
        return f"every {unit}" if rec.interval == 1 else f"every {rec.interval} {unit}s"
    if isinstance(rec, UnknownRecurrence):
        return f"unknown ({rec.raw_type})"
    return "once"


def transaction_form(key: str, defaults=None):
    """Render the add/edit form; returns the raw submission or None."""
    d = defaults or {}
    with st.form(key, clear_on_submit=defaults is None):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Transaction Name", value=d.get("name", ""))
            amount = st.text_input("Amount (− outflow, + inflow)", value=str(d.get("amount", "")))
            base_date = st.date_input("Date of Transaction", value=d.get("base_date", date.today()))
        with col2:
            kinds = ["ONE_TIME", "RECURRING"]
            kind = st.selectbox("Recurrence", kinds, index=kinds.index(d.get("recurrence", "ONE_TIME")))
            interval = st.number_input("Every", min_value=1, step=1, value=max(1, int(d.get("interval", 1))))
            unit = st.selectbox("Unit", list(UNITS), index=list(UNITS).index(d.get("unit", "MONTH")))
        submitted = st.form_submit_button("Save")
    if not submitted:
        return None
    return {"name": name, "amount": amount, "base_date": base_date, "recurrence": kind, "interval": interval, "unit": unit}


trans = st.session_state.transactions
today = date.today()

st.title("Flow")

end_date = st.sidebar.date_input(
    "Forecast End Date",
    value=default_end_date(today, settings.horizon_years),
    key="forecast_end",
)

k1, k2 = st.columns(2)
with k1:
    st.metric("Total Balance", f"{total_amount(trans):,.2f}")
with k2:
    st.metric("Forecast End Date", end_date.strftime("%Y-%m-%d"))

report = default_forecast_service().forecast(trans, end_date)
for v in report["validation"]:
    for msg in v["messages"]:
        st.warning(msg)

st.subheader("Cash Flow Chart")
df = cashflow_frame(report["points"])
if df.empty:
    st.info("Add a transaction to see the projected cash flow.")
else:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=df["date"], y=df["balance"], mode="lines", name="Balance", line_shape="hv"))
    fig.add_hline(y=0, line_dash="dot", line_color="gray")
    fig.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig, use_container_width=True)

    summary = report["result"]
    s1, s2, s3 = st.columns(3)
    s1.metric("Projected Balance", f"{summary.get('final_balance', 0):,.2f}")
    s2.metric("Lowest Balance", f"{summary.get('lowest_balance') or 0:,.2f}", help=str(summary.get("lowest_date")))
    first_negative = summary.get("first_negative_date")
    s3.metric("First Negative Day", first_negative.strftime("%Y-%m-%d") if first_negative else "-")

st.divider()

st.subheader("Transactions")
if trans:
    rows = []
    for t in trans:
        upcoming = next_occurrence(t, today)
        rows.append({
            "Name": t.name,
            "Amount": t.amount,
            "Base Date": t.base_date.strftime("%Y-%m-%d"),
            "Recurrence": describe_recurrence(t.recurrence),
            "Next": upcoming.strftime("%Y-%m-%d") if upcoming else "-",
        })
    st.dataframe(pd.DataFrame(rows), use_container_width=True)
else:
    st.info("No transactions yet.")

with st.expander("➕ Add Transaction", expanded=not trans):
    submission = transaction_form("add_form")
    if submission is not None:
        result = validate_transaction_input(submission)
        if result.is_right():
            commit(add_transaction(trans, result.get_or_else(None)))
            st.rerun()
        else:
            st.error(result.get_error()["message"])

if trans:
    labels = {f"{t.name} ({t.base_date:%Y-%m-%d}) #{t.id[:6]}": t.id for t in trans}
    chosen = st.selectbox("Select transaction", list(labels.keys()))
    selected = find_transaction(trans, labels[chosen]).get_or_else(None)

    if selected is not None:
        rec = selected.recurrence
        defaults = {
            "name": selected.name,
            "amount": selected.amount,
            "base_date": selected.base_date,
            "recurrence": "RECURRING" if isinstance(rec, Recurring) else "ONE_TIME",
            "interval": max(1, rec.interval) if isinstance(rec, Recurring) else 1,
            "unit": rec.unit if isinstance(rec, Recurring) and rec.unit in UNITS else "MONTH",
        }
        with st.expander("✏️ Edit Transaction"):
            submission = transaction_form(f"edit_{selected.id}", defaults)
            if submission is not None:
                result = validate_transaction_input(submission)
                if result.is_right():
                    # keep the original id so the edit replaces the record
                    edited = replace(result.get_or_else(None), id=selected.id)
                    commit(update_transaction(trans, edited))
                    st.rerun()
                else:
                    st.error(result.get_error()["message"])

        if st.button("Delete transaction", type="primary"):
            commit(delete_transaction(trans, selected.id))
            st.rerun()
