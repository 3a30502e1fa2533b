"""
Streamlit dashboard for simulated exoplanet detections.

Run with:
    streamlit run src/exominer_demo/dashboard/app.py
"""

import asyncio
import logging

import streamlit as st

from exominer_demo.data.types import DetectionStatus, FalsePositiveType, GeneratorConfig, PlanetType
from exominer_demo.errors import InvalidInputError
from exominer_demo.generation.generator import SyntheticDetectionGenerator
from exominer_demo.utils.app_utils import (
    COLUMN_GROUPS,
    create_status_badge,
    initialize_session_state,
    light_curve_frames,
    records_to_table,
    results_summary,
)

logger = logging.getLogger(__name__)


@st.cache_resource
def load_generator() -> SyntheticDetectionGenerator:
    return SyntheticDetectionGenerator(GeneratorConfig())


def render_analysis_tab(generator: SyntheticDetectionGenerator):
    st.subheader("Analyze New Star")

    with st.form("analyze"):
        target_id = st.text_input("TIC ID", placeholder="e.g. 12345679")
        sector = st.number_input("Sector", min_value=1, value=1, step=1)

        with st.expander("Developer overrides"):
            status = st.selectbox("Status", [None] + list(DetectionStatus),
                                  format_func=lambda s: "Random" if s is None else s.value)
            planet_type = st.selectbox("Planet type", [None] + list(PlanetType),
                                       format_func=lambda p: "Derived" if p is None else p.value)
            fp_type = st.selectbox("False-positive type", [None] + list(FalsePositiveType),
                                   format_func=lambda f: "Random" if f is None else f.value)

        submitted = st.form_submit_button("Analyze")

    if submitted:
        overrides = {'status': status, 'planet_type': planet_type, 'false_positive_type': fp_type}
        try:
            with st.spinner("Analyzing..."):
                record = asyncio.run(generator.generate(target_id, int(sector), overrides))
        except InvalidInputError as e:
            st.error(str(e))
        else:
            st.session_state.accumulator.insert(record)
            st.session_state.selected_key = record.key
            st.success(f"{record.target_id}: {record.status.value} (p={record.probability:.4f})")

    records = st.session_state.accumulator.list()
    if not records:
        st.info("No analyses performed yet. Enter a TIC ID and sector to begin.")
        return

    st.session_state.visible_groups = st.multiselect(
        "Extra columns", COLUMN_GROUPS, default=st.session_state.visible_groups
    )
    st.dataframe(records_to_table(records, st.session_state.visible_groups), use_container_width=True)


def render_detail_tab():
    accumulator = st.session_state.accumulator
    keys = accumulator.keys()
    if not keys:
        st.info("Select a star from the analysis table to view details")
        return

    index = keys.index(st.session_state.selected_key) if st.session_state.selected_key in keys else 0
    key = st.selectbox("Selected star", keys, index=index, format_func=lambda k: f"{k[0]} (sector {k[1]})")
    st.session_state.selected_key = key

    record = accumulator.get(*key)
    st.markdown(create_status_badge(record.status), unsafe_allow_html=True)
    st.metric("Probability", f"{record.probability:.2%}")
    if record.planet_type:
        st.write(f"Planet type: **{record.planet_type.value}**")
    if record.false_positive_type:
        st.write(f"False-positive type: **{record.false_positive_type.value}**")

    frames = light_curve_frames(record)
    st.line_chart(frames['light_curve'], x='time', y='flux')
    col1, col2 = st.columns(2)
    col1.line_chart(frames['phase_days'], x='phase', y='flux')
    col2.line_chart(frames['phase_hours'], x='phase', y='flux')
    st.bar_chart(frames['features'], x='name', y='importance')


def render_results_tab():
    summary = results_summary(st.session_state.accumulator.list())
    cols = st.columns(4)
    cols[0].metric("Exoplanets", summary['exoplanets'])
    cols[1].metric("False Positives", summary['false_positives'])
    cols[2].metric("Candidates", summary['candidates'])
    cols[3].metric("Total", summary['total'])


def main():
    st.set_page_config(page_title="ExoMiner Exoplanet Detection", layout="wide")
    generator = load_generator()
    initialize_session_state(generator.config.default_mission_prefix)

    st.title("ExoMiner Exoplanet Detection")
    st.caption("Simulated exoplanet discovery results for TESS-style targets")

    analysis, detail, results = st.tabs(["Analysis", "Dashboard", "Results"])

    with analysis:
        render_analysis_tab(generator)
    with detail:
        render_detail_tab()
    with results:
        render_results_tab()


if __name__ == "__main__":
    main()
