"""
In-memory accumulation of detection records for a dashboard session.
"""

import logging
import threading
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from ..data.types import MISSION_PREFIXES, DetectionRecord, DetectionStatus, canonical_target_id
from ..errors import InvalidInputError


DUPLICATE_POLICIES = ('append', 'upsert')

SUMMARY_COLUMNS = [
    'target_id', 'sector', 'status', 'probability', 'planet_type',
    'false_positive_type', 'period', 'transit_depth', 'planet_radius',
    'magnitude', 'ra', 'dec', 'analyzed_at'
]


def record_summary_row(record: DetectionRecord) -> Dict[str, Any]:
    """Flatten a record into one table row (no time series)."""
    return {
        'target_id': record.target_id,
        'sector': record.sector,
        'status': record.status.value,
        'probability': record.probability,
        'planet_type': record.planet_type.value if record.planet_type else None,
        'false_positive_type': record.false_positive_type.value if record.false_positive_type else None,
        'period': record.period,
        'transit_depth': record.transit_depth,
        'planet_radius': record.planet_radius,
        'magnitude': record.magnitude,
        'ra': record.right_ascension,
        'dec': record.declination,
        'analyzed_at': record.analyzed_at
    }


class ResultAccumulator:
    """
    Ordered collection of detection records keyed by (target id, sector).

    Records are kept most-recent-first. With the 'append' policy a repeated
    key adds a second entry; with 'upsert' the older entry is replaced and
    the new one moves to the front. Inserts are serialized by a lock.
    """

    def __init__(self, duplicate_policy: str = 'append', default_mission_prefix: str = 'TIC'):
        """
        Initialize accumulator.

        Args:
            duplicate_policy: 'append' or 'upsert'
            default_mission_prefix: Prefix assumed for unprefixed ids on lookup;
                should match the generator's configuration
        """
        if duplicate_policy not in DUPLICATE_POLICIES:
            raise ValueError(f"Duplicate policy must be one of {DUPLICATE_POLICIES}")

        if default_mission_prefix not in MISSION_PREFIXES:
            raise ValueError(f"Mission prefix must be one of {MISSION_PREFIXES}")

        self.duplicate_policy = duplicate_policy
        self.default_mission_prefix = default_mission_prefix
        self._records: List[DetectionRecord] = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def insert(self, record: DetectionRecord) -> None:
        """Prepend a record."""
        with self._lock:
            if self.duplicate_policy == 'upsert':
                replaced = len(self._records)
                self._records = [r for r in self._records if r.key != record.key]
                replaced -= len(self._records)
                if replaced:
                    self.logger.debug(f"Replaced {replaced} record(s) for {record.key}")
            self._records.insert(0, record)

    def get(self, target_id: str, sector: int) -> Optional[DetectionRecord]:
        """
        Look up the most recent record for a key.

        The target id is canonicalized with the default mission prefix, so
        '12345679' finds 'TIC 12345679'. Unusable ids find nothing.
        """
        try:
            key = (canonical_target_id(target_id, self.default_mission_prefix), sector)
        except InvalidInputError:
            self.logger.debug(f"Lookup with unusable target id {target_id!r}")
            return None

        with self._lock:
            for record in self._records:
                if record.key == key:
                    return record
        return None

    def list(self, status: Optional[DetectionStatus] = None) -> List[DetectionRecord]:
        """Return records most-recent-first, optionally filtered by status."""
        with self._lock:
            records = list(self._records)
        if status is not None:
            records = [r for r in records if r.status is status]
        return records

    def keys(self) -> List[Tuple[str, int]]:
        """Distinct keys in most-recent-first order."""
        return list(dict.fromkeys(record.key for record in self.list()))

    def status_counts(self) -> Dict[DetectionStatus, int]:
        counts = Counter(record.status for record in self.list())
        return {status: counts.get(status, 0) for status in DetectionStatus}

    def to_dataframe(self) -> pd.DataFrame:
        """Summary table with one row per record, most recent first."""
        rows = [record_summary_row(record) for record in self.list()]
        if not rows:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)
        return pd.DataFrame(rows)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, key: Tuple[str, int]) -> bool:
        target_id, sector = key
        return self.get(target_id, sector) is not None
