r"""frontend/pages/3_Order_Suggestions.py

Streamlit page for reorder suggestions.

The selection lives in a ``SelectionLedger`` kept in session state, so a
checkbox click is one toggle and the bulk action approves the checked rows
in the order they were checked.  Approvals and stepper clicks are sent to
the API, which records them in the audit log.
"""

from __future__ import annotations

from typing import Any, Dict

import pandas as pd
import requests
import streamlit as st

from utils.api import SUGGESTIONS_PATH, api_get, api_post, error_detail, load_payload
from backend.app.models.schemas import OrderSuggestion
from backend.app.services.selection_service import SelectionLedger, index_suggestions, step_quantity

LEDGER_KEY = "order_selection"
QUANTITIES_KEY = "order_quantities"


def _ledger() -> SelectionLedger:
    if LEDGER_KEY not in st.session_state:
        st.session_state[LEDGER_KEY] = SelectionLedger()
    return st.session_state[LEDGER_KEY]


def _quantities() -> Dict[str, int]:
    if QUANTITIES_KEY not in st.session_state:
        try:
            st.session_state[QUANTITIES_KEY] = dict(api_get("/suggestions/quantities").get("quantities") or {})
        except requests.RequestException:
            st.session_state[QUANTITIES_KEY] = {}
    return st.session_state[QUANTITIES_KEY]


def _record_quantity(book_id: Any, quantity: int) -> None:
    api_post(f"/suggestions/{book_id}/quantity", {"quantity": quantity})
    _quantities()[str(book_id)] = quantity


def _approve(suggestion: OrderSuggestion) -> None:
    quantity = _quantities().get(str(suggestion.book_id), suggestion.suggested_quantity)
    api_post(
        "/approvals",
        {
            "bookId": suggestion.book_id,
            "action": "approve",
            "qty": int(quantity or 0),
            "reason": suggestion.reason or "approved from dashboard",
        },
    )


def _on_toggle(book_id: Any) -> None:
    _ledger().toggle(book_id)


def _on_step(book_id: Any, displayed: int, delta: int) -> None:
    try:
        step_quantity(book_id, displayed, delta, _record_quantity)
    except requests.RequestException as exc:
        st.session_state["order_error"] = f"Failed to update quantity: {error_detail(exc)}"


st.title("📦 Order Suggestions")
st.caption("Review reorder suggestions ranked by urgency and approve them individually or in bulk.")

payload = load_payload("Order suggestions", SUGGESTIONS_PATH)

if payload is not None:
    try:
        summary = api_post("/suggestions/summary", payload)
    except requests.RequestException as exc:
        st.error(f"API error: {error_detail(exc)}")
        st.stop()

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Suggestions", summary.get("totalSuggestions", 0))
    c2.metric("Order value", f"¥{summary.get('totalOrderValue', 0.0):,.0f}")
    roi = summary.get("expectedRoiPct")
    c3.metric("Expected ROI", f"{roi:.1f}%" if roi is not None else "n/a")
    utilisation = summary.get("budgetUtilisationPct")
    c4.metric("Budget used", f"{utilisation:.1f}%" if utilisation is not None else "n/a")
    if summary.get("priority"):
        st.caption(f"Priority: {summary['priority']} · type: {summary.get('suggestionType') or 'n/a'}")

    error = st.session_state.pop("order_error", None)
    if error:
        st.error(error)

    ranked = summary.get("suggestions") or []
    suggestions = [OrderSuggestion.model_validate(entry["suggestion"]) for entry in ranked]
    by_id = index_suggestions(suggestions)
    ledger = _ledger()
    quantities = _quantities()

    if not ranked:
        st.info("No order suggestions in this payload.")

    header = st.columns([0.5, 3, 1.5, 1, 2, 1.5])
    for column, label in zip(header, ["", "Book", "Urgency", "Stock", "Quantity", ""]):
        column.markdown(f"**{label}**")

    for entry, suggestion in zip(ranked, suggestions):
        book_id = suggestion.book_id
        displayed = quantities.get(str(book_id), suggestion.suggested_quantity or 0)
        presentation = entry.get("presentation") or {}

        cols = st.columns([0.5, 3, 1.5, 1, 2, 1.5])
        cols[0].checkbox(
            "select",
            value=book_id in ledger.state,
            key=f"select::{book_id}",
            on_change=_on_toggle,
            args=(book_id,),
            label_visibility="collapsed",
        )
        cols[1].markdown(f"**{suggestion.book_title or book_id}**  \n{suggestion.reason or ''}")
        cols[2].markdown(
            f"<span style='color:{presentation.get('color', '#9e9e9e')}'>{entry.get('urgencyClass')}</span>",
            unsafe_allow_html=True,
        )
        cols[3].write(suggestion.current_stock if suggestion.current_stock is not None else "–")

        minus, value, plus = cols[4].columns(3)
        minus.button("−", key=f"minus::{book_id}", on_click=_on_step, args=(book_id, displayed, -1))
        value.write(displayed)
        plus.button("+", key=f"plus::{book_id}", on_click=_on_step, args=(book_id, displayed, 1))
        if displayed < 0:
            cols[4].caption("⚠️ Below zero; the API will reject an approval at this quantity.")

        if cols[5].button("Approve", key=f"approve::{book_id}"):
            try:
                _approve(suggestion)
            except requests.RequestException as exc:
                st.error(f"Failed to approve {suggestion.book_title or book_id}: {error_detail(exc)}")
            else:
                st.success(f"✅ Approved {suggestion.book_title or book_id}")

    st.markdown("---")
    selected = ledger.selected
    left, right = st.columns(2)
    if left.button(f"Approve selected ({len(selected)})", disabled=not selected, type="primary"):
        try:
            result = ledger.bulk_approve(by_id, _approve)
        except requests.RequestException as exc:
            st.error(f"Bulk approval stopped: {error_detail(exc)}. The selection was kept.")
        else:
            for book_id in selected:
                st.session_state.pop(f"select::{book_id}", None)
            message = f"✅ Approved {len(result.approved)} suggestion(s)."
            if result.skipped:
                message += f" {len(result.skipped)} selected id(s) were no longer in the payload."
            st.session_state["order_notice"] = message
            st.rerun()
    if right.button("Clear selection", disabled=not selected):
        for book_id in selected:
            st.session_state.pop(f"select::{book_id}", None)
        ledger.clear()
        st.rerun()

    notice = st.session_state.pop("order_notice", None)
    if notice:
        st.success(notice)

    if suggestions:
        with st.expander("Suggestion details"):
            st.dataframe(
                pd.DataFrame([s.model_dump(by_alias=True) for s in suggestions]),
                use_container_width=True,
                hide_index=True,
            )

    optimization = payload.get("optimization") if isinstance(payload, dict) else None
    if isinstance(optimization, dict) and optimization.get("optimizationRecommendations"):
        st.subheader("Optimization recommendations")
        st.markdown("\n".join(f"- {item}" for item in optimization["optimizationRecommendations"]))
