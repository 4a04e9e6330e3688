"""Streamlit page where the supervisor approves or rejects escalated quotations."""
from pathlib import Path

import streamlit as st

# Allow running via "streamlit run quoteflow/ui/dashboard.py" without installing the package
# by ensuring the repository root is on ``sys.path``.
if __package__ in {None, ""}:
    import sys

    sys.path.append(str(Path(__file__).resolve().parents[2]))

from quoteflow.core.utils import get_config_value
from quoteflow.export.sinks import CsvDraftStore
from quoteflow.processing.templates import format_amount
from quoteflow.review.workflow import (
    line_items_for_display,
    load_review_rows,
    mark_status,
    pending_rows,
    rows_for_display,
    status_summary,
)


def _store() -> CsvDraftStore:
    return CsvDraftStore(Path(get_config_value("DRAFT_STORE", "output/quotations.csv")))


def _render_summary(rows) -> None:
    summary = status_summary(rows)
    columns = st.columns(4)
    columns[0].metric("Pending review", summary["pending"])
    columns[1].metric("Approved", summary["approved"])
    columns[2].metric("Rejected", summary["rejected"])
    columns[3].metric("Awaiting client info", summary["needs_info"])


def _decide(store: CsvDraftStore, draft_id: str, decision: str) -> None:
    try:
        mark_status(store, draft_id, decision)
    except (KeyError, ValueError) as exc:
        # Decided elsewhere since the page was loaded.
        st.error(str(exc))
        return
    st.rerun()


def _render_pending(store: CsvDraftStore, rows, currency: str) -> None:
    pending = pending_rows(rows)
    if not pending:
        st.info("No quotations waiting for review.")
        return

    for row in pending:
        total = format_amount(float(row.get("Total") or 0), currency)
        with st.expander(f"{row['Client_Name']} <{row['Client_Email']}> - {total}"):
            st.caption(f"Draft {row['Id']} saved {row['Saved_At']}")
            st.table(line_items_for_display(row, currency))
            if row.get("Notes"):
                st.write(row["Notes"])
            approve, reject = st.columns(2)
            if approve.button("Approve", key=f"approve-{row['Id']}"):
                _decide(store, row["Id"], "approved")
            if reject.button("Reject", key=f"reject-{row['Id']}"):
                _decide(store, row["Id"], "rejected")


def main() -> None:
    st.set_page_config(page_title="Quotation review", layout="wide")
    st.title("Quotation review")

    store = _store()
    currency = get_config_value("CURRENCY", "Kz")
    rows = load_review_rows(store)

    _render_summary(rows)
    st.subheader("Waiting for approval")
    _render_pending(store, rows, currency)
    st.subheader("All quotations")
    st.dataframe(rows_for_display(rows), use_container_width=True)


if __name__ == "__main__":
    main()
