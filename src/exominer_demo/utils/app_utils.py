"""
Utility functions for the Streamlit dashboard.

Display tokens are a stateless mapping from classification to label and
colour; nothing here feeds back into generation.
"""

import streamlit as st
import pandas as pd
from typing import Dict, Any, Iterable, List, Optional, Sequence

from ..data.types import (
    CANDIDATE_THRESHOLD,
    EXOPLANET_THRESHOLD,
    DetectionRecord,
    DetectionStatus,
)
from ..store.accumulator import ResultAccumulator, record_summary_row


STATUS_DISPLAY = {
    DetectionStatus.EXOPLANET: {'label': 'Exoplanet', 'headline': 'Validated Exoplanet', 'color': '#10b981'},
    DetectionStatus.CANDIDATE: {'label': 'Candidate', 'headline': 'Candidate', 'color': '#eab308'},
    DetectionStatus.FALSE_POSITIVE: {'label': 'False Positive', 'headline': 'False Positive', 'color': '#ef4444'},
}

# Optional column groups of the analysis table
COLUMN_GROUPS = ('stellar', 'ruwe', 'dvr', 'tce')


def initialize_session_state(default_mission_prefix: str = 'TIC'):
    """Initialize Streamlit session state variables."""

    if 'accumulator' not in st.session_state:
        st.session_state.accumulator = ResultAccumulator(default_mission_prefix=default_mission_prefix)

    if 'selected_key' not in st.session_state:
        st.session_state.selected_key = None

    if 'visible_groups' not in st.session_state:
        st.session_state.visible_groups = []


def status_display(status: DetectionStatus) -> Dict[str, str]:
    """Label, headline and colour for a status."""
    return dict(STATUS_DISPLAY[status])


def probability_display(probability: float) -> Dict[str, str]:
    """Headline and colour for a raw probability, using the classification thresholds."""
    if probability > EXOPLANET_THRESHOLD:
        return status_display(DetectionStatus.EXOPLANET)
    if probability >= CANDIDATE_THRESHOLD:
        return status_display(DetectionStatus.CANDIDATE)
    return status_display(DetectionStatus.FALSE_POSITIVE)


def create_status_badge(status: DetectionStatus) -> str:
    """Create a coloured status badge."""
    token = STATUS_DISPLAY[status]

    return f"""
    <span style="background-color: {token['color']}; color: white; padding: 4px 8px;
                 border-radius: 12px; font-size: 0.8em; font-weight: bold;">
        {token['label']}
    </span>
    """


def results_summary(records: Iterable[DetectionRecord]) -> Dict[str, int]:
    """Count records per classification."""
    summary = {'exoplanets': 0, 'candidates': 0, 'false_positives': 0, 'total': 0}
    keys = {
        DetectionStatus.EXOPLANET: 'exoplanets',
        DetectionStatus.CANDIDATE: 'candidates',
        DetectionStatus.FALSE_POSITIVE: 'false_positives',
    }

    for record in records:
        summary[keys[record.status]] += 1
        summary['total'] += 1

    return summary


def records_to_table(
    records: Sequence[DetectionRecord],
    groups: Optional[Iterable[str]] = None
) -> pd.DataFrame:
    """
    Build the analysis table.

    Args:
        records: Records in display order
        groups: Optional column groups to include ('stellar', 'ruwe', 'dvr', 'tce')

    Returns:
        DataFrame with one row per record
    """
    groups = set(groups or [])
    unknown = groups - set(COLUMN_GROUPS)
    if unknown:
        raise ValueError(f"Unknown column groups: {sorted(unknown)}")

    rows: List[Dict[str, Any]] = []
    for record in records:
        row = record_summary_row(record)
        row['status'] = STATUS_DISPLAY[record.status]['label']

        if 'stellar' in groups:
            for name, value in record.stellar_parameters.to_dict().items():
                row[f'star_{name}'] = value

        if 'ruwe' in groups:
            row['gaia_ruwe'] = record.gaia_ruwe

        if 'dvr' in groups:
            row['dvr'] = record.spoc_dvr.value
            row['dvr_uncertainty'] = record.spoc_dvr.uncertainty
            row['dvr_flag'] = record.spoc_dvr.flag.value

        if 'tce' in groups:
            row['tce_period'] = record.tce.period
            row['tce_duration'] = record.tce.duration
            row['tce_depth'] = record.tce.depth

        rows.append(row)

    return pd.DataFrame(rows)


def star_map_points(records: Iterable[DetectionRecord]) -> pd.DataFrame:
    """Project RA/Dec onto percentage map coordinates."""
    points = [
        {
            'target_id': record.target_id,
            'x': record.right_ascension / 360 * 100,
            'y': (record.declination + 90) / 180 * 100,
            'status': record.status.value,
            'probability': record.probability,
        }
        for record in records
    ]
    return pd.DataFrame(points, columns=['target_id', 'x', 'y', 'status', 'probability'])


def light_curve_frames(record: DetectionRecord) -> Dict[str, pd.DataFrame]:
    """Time series of a record as chart-ready DataFrames."""
    return {
        'light_curve': pd.DataFrame([p.to_dict() for p in record.light_curve]),
        'phase_days': pd.DataFrame([p.to_dict() for p in record.phase_days]),
        'phase_hours': pd.DataFrame([p.to_dict() for p in record.phase_hours]),
        'features': pd.DataFrame([f.to_dict() for f in record.feature_importances]),
    }
