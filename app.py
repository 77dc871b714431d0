# app.py
from __future__ import annotations

import io
import json
import time
from typing import Any, Dict, Optional

import pandas as pd
import streamlit as st

from adas_scrub.config import ScrubOptions
from adas_scrub.constants import ScrubStatus
from adas_scrub.engine import ScrubEngine, scrub_estimate
from adas_scrub.extractor import quick_scan, summarize_operations
from adas_scrub.formatting import (
    format_compact,
    format_full,
    format_preview,
    format_voice_summary,
    to_records,
)
from adas_scrub.io_excel import load_ro_excel, write_result

# --------------------------------
# Page setup
# --------------------------------
st.set_page_config(page_title="ADAS Estimate Scrub", layout="wide")
st.title("ADAS Estimate Scrub (Estimate vs External Report)")

options = ScrubOptions.from_env()

STATUS_BADGE = {
    ScrubStatus.ALIGNED: ("success", "✅ ALIGNED"),
    ScrubStatus.NEEDS_REVIEW: ("warning", "⚠️ NEEDS REVIEW"),
    ScrubStatus.NO_CALIBRATION_NEEDED: ("info", "ℹ️ NO CALIBRATION NEEDED"),
    ScrubStatus.ERROR: ("error", "❌ ERROR"),
}


def _parse_json(text: str, label: str) -> Optional[Any]:
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        st.warning(f"{label} is not valid JSON and was ignored: {e}")
        return None


# --------------------------------
# Sidebar: optional sources
# --------------------------------
with st.sidebar:
    st.header("Optional sources")
    kb_file = st.file_uploader(
        "Knowledge base (JSON: brand -> {triggers, exclusions})", type=["json"]
    )
    kb_by_brand: Dict[str, Any] = {}
    if kb_file is not None:
        try:
            kb_by_brand = json.load(kb_file)
            st.success(f"Loaded knowledge base for {len(kb_by_brand)} brand(s).")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            st.error(f"Could not read knowledge base: {e}")
            kb_by_brand = {}

    brand = st.selectbox("Brand", [""] + sorted(kb_by_brand.keys()))
    ai_json = st.text_area("AI analysis (JSON, optional)", height=150)

tab_single, tab_batch = st.tabs(["Single estimate", "Batch (Excel)"])

# --------------------------------
# Single estimate
# --------------------------------
with tab_single:
    col_l, col_r = st.columns(2)
    with col_l:
        estimate_text = st.text_area("Estimate text", height=320)
    with col_r:
        report_text = st.text_area("External report calibrations (; or , separated)", height=220)
        stated = st.text_input("Stated report count (optional)")

    if estimate_text.strip():
        qs = quick_scan(estimate_text)
        if not qs.has_adas_relevant_repairs:
            st.info(f"Quick scan: {qs.total_operations} operation(s), none ADAS-relevant.")

    if st.button("Scrub", type="primary"):
        result = scrub_estimate(
            estimate_text,
            report_text=report_text or None,
            stated_count=stated or None,
            ai=_parse_json(ai_json, "AI analysis"),
            kb=kb_by_brand.get(brand) if brand else None,
            options=options,
        )

        kind, label = STATUS_BADGE[result.status]
        getattr(st, kind)(f"{label} - {result.status_message}")

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Estimate", result.estimate_count)
        c2.metric("Report", result.report_count)
        c3.metric("Verified", len(result.verified))
        c4.metric("Need review", len(result.to_review))

        st.subheader("Notes")
        st.code(format_compact(result, options.preview_max_items), language=None)
        st.code(format_preview(result, options.preview_max_items), language=None)
        st.caption(format_voice_summary(result))

        records = to_records(result)
        if records:
            st.subheader("Calibrations")
            st.dataframe(pd.DataFrame(records), use_container_width=True, hide_index=True)

        with st.expander("Operations detected"):
            if result.operations:
                st.dataframe(
                    pd.DataFrame([{
                        "Operation": op.operation_verb,
                        "Part": op.raw_part_text,
                        "Canonical": op.canonical_part,
                        "Category": op.category.value,
                        "Line": op.source_line_text,
                    } for op in result.operations]),
                    use_container_width=True, hide_index=True,
                )
                st.json(summarize_operations(result.operations))
            else:
                st.info("No repair operations detected.")

        with st.expander("Full report"):
            st.text(format_full(result, options.full_max_operations))

# --------------------------------
# Batch
# --------------------------------
with tab_batch:
    uploaded = st.file_uploader("Upload Excel with repair orders", type=["xlsx", "xls"])
    skip_quick = st.checkbox("Skip line extraction when quick scan finds no ADAS repair", value=False)

    if uploaded is not None:
        df = load_ro_excel(uploaded)
        st.success(f"Loaded {len(df)} rows.")

        if st.button("Scrub all"):
            t0 = time.time()
            engine = ScrubEngine(options=options, kb_by_brand=kb_by_brand)
            rows = engine.scrub_batch(df, skip_without_adas=skip_quick)
            out_df = engine.to_dataframe(rows)
            stats = engine.get_statistics(rows)
            duration = time.time() - t0

            st.success(f"✅ Processed {len(rows)} ROs in {duration:.1f}s")

            cols = st.columns(len(stats["status"]))
            for col, (status, n) in zip(cols, stats["status"].items()):
                col.metric(status, n)

            with st.expander("📈 Statistics"):
                st.json(stats)

            status_filter = st.multiselect(
                "Status", list(stats["status"].keys()), default=list(stats["status"].keys())
            )
            view = out_df[out_df["Scrub_Status"].isin(status_filter)].drop(columns=["Full_Report"])
            st.dataframe(view, use_container_width=True, height=500)

            buf = io.BytesIO()
            write_result(out_df, buf)
            st.download_button(
                label="Download RO_scrubbed.xlsx",
                data=buf.getvalue(),
                file_name="RO_scrubbed.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )
