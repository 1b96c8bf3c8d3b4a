"""Streamlit UI for Nesting Studio."""
from __future__ import annotations

from pathlib import Path
from typing import List

import pandas as pd
import plotly.express as px
import streamlit as st

from nestingstudio import (
    ColumnClassification,
    DatasetStore,
    EmptySheetError,
    NestingResult,
    SelectionError,
    UsageLog,
    aggregate,
    build_order_sheet,
    build_size_sheet,
    load_config,
    load_uploaded_dataset,
    nesting_to_excel_bytes,
    parse_order_input,
    suggest_orders,
    validate_selection,
)

st.set_page_config(page_title="Nesting Studio", layout="wide")

CONFIG_PATH = Path("config/config.yaml")
CONFIG = load_config(CONFIG_PATH if CONFIG_PATH.exists() else None)
STORE = DatasetStore(CONFIG.storage)
USAGE = UsageLog(CONFIG.telemetry)
SUGGESTION_LIMIT = 50

if "opened" not in st.session_state:
    USAGE.record("APP_OPEN")
    st.session_state["opened"] = True


def _display_size_chart(result: NestingResult) -> None:
    frame = pd.DataFrame(
        {"Size": [item.size for item in result.breakdown], "Qty": [item.qty for item in result.breakdown]}
    )
    fig = px.bar(frame, x="Size", y="Qty", text_auto=True, title="Quantity per size")
    fig.update_xaxes(type="category")
    st.plotly_chart(fig, use_container_width=True)


st.title("Nesting Studio")
st.write("Combine order quantities per size across selected purchase orders.")

with st.sidebar:
    st.header("Datasets")
    uploaded = st.file_uploader("Upload order sheet", type=["xlsx", "xls", "xlsm", "csv"])
    custom_name = st.text_input("Dataset name (optional)")
    if st.button("Save dataset") and uploaded is not None:
        try:
            dataset = load_uploaded_dataset(uploaded.getvalue(), uploaded.name, config=CONFIG.classifier)
        except (EmptySheetError, ValueError) as exc:
            st.error(f"Failed to parse file: {exc}")
        else:
            dataset.name = custom_name.strip()
            STORE.save(dataset)
            st.session_state["active_dataset"] = dataset.dataset_id
            st.session_state.pop("result", None)
            st.success(f"Saved '{dataset.name}'")

    datasets = STORE.list_datasets()
    if not datasets:
        st.info("Upload an order sheet to begin.")
        st.stop()

    ids = [dataset.dataset_id for dataset in datasets]
    active_id = st.session_state.get("active_dataset", ids[0])
    active_id = st.selectbox(
        "Active dataset",
        ids,
        index=ids.index(active_id) if active_id in ids else 0,
        format_func=lambda dataset_id: STORE.get(dataset_id).name,
    )
    if active_id != st.session_state.get("active_dataset"):
        st.session_state["active_dataset"] = active_id
        st.session_state.pop("result", None)
        st.session_state.pop("picked_orders", None)

    if st.button("Delete dataset"):
        STORE.delete(active_id)
        st.session_state.pop("active_dataset", None)
        st.session_state.pop("result", None)
        st.rerun()

dataset = STORE.get(active_id)

with st.expander("Column setup", expanded=False):
    size_columns = st.multiselect("Size columns", dataset.headers, default=dataset.size_columns)
    info_options = ColumnClassification(
        headers=dataset.headers,
        order_column=dataset.order_column,
        size_columns=size_columns,
    ).info_candidates
    info_columns = st.multiselect(
        "Info columns",
        info_options,
        default=[column for column in dataset.info_columns if column in info_options],
    )
dataset = dataset.configure(size_columns=size_columns, info_columns=info_columns)

# A result computed under another column setup no longer matches the tables below.
column_setup = (tuple(dataset.size_columns), tuple(dataset.info_columns))
if st.session_state.get("column_setup") != column_setup:
    st.session_state["column_setup"] = column_setup
    st.session_state.pop("result", None)

st.subheader("Select orders")
st.caption(f"{len(dataset.so_numbers)} orders available")
query = st.text_input("Find order number", "")
already_picked = [order for order in st.session_state.get("picked_orders", []) if order in dataset.so_numbers]
options = list(dict.fromkeys([*already_picked, *suggest_orders(query, dataset, limit=SUGGESTION_LIMIT)]))
picked: List[str] = st.multiselect("Order numbers", options, key="picked_orders")
typed = st.text_area("Or paste order numbers", "")
if st.button("Generate nesting", type="primary"):
    try:
        selected = validate_selection([*picked, *parse_order_input(typed)], dataset)
    except SelectionError as exc:
        st.error(str(exc))
    else:
        result = aggregate(dataset, selected, CONFIG.aggregation)
        USAGE.record(
            "GENERATE_NESTING",
            selected_orders=selected,
            total_qty=result.total_qty,
            order_count=result.order_count,
        )
        st.session_state["result"] = result

result = st.session_state.get("result")
if result is None:
    st.info("Select orders and generate the nesting report.")
    st.stop()

st.metric("Total pairs", f"{result.total_qty:,.0f}")
if result.info_columns:
    st.caption("Showing: " + ", ".join(result.info_columns))
st.subheader("Size breakdown")
st.dataframe(build_size_sheet(result, dataset), use_container_width=True)
if not result.is_empty:
    _display_size_chart(result)
st.subheader("Order summary")
st.dataframe(build_order_sheet(result), use_container_width=True)

if st.download_button(
    "Export Excel",
    data=nesting_to_excel_bytes(result, dataset),
    file_name=CONFIG.output.workbook,
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
):
    USAGE.record(
        "EXPORT_EXCEL",
        selected_orders=result.selected_orders,
        total_qty=result.total_qty,
        order_count=result.order_count,
    )
