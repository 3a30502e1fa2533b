"""Data handling modules for simulated detection records."""

from .types import (
    DetectionRecord,
    DetectionStatus,
    PlanetType,
    FalsePositiveType,
    DvrFlag,
    AnalysisOverrides,
    GeneratorConfig,
    classify_probability,
    planet_type_for_radius,
    canonical_target_id
)
from .schema_migration import SchemaHarmonizer, record_from_dict, migrate_legacy_record

__all__ = [
    'DetectionRecord',
    'DetectionStatus',
    'PlanetType',
    'FalsePositiveType',
    'DvrFlag',
    'AnalysisOverrides',
    'GeneratorConfig',
    'classify_probability',
    'planet_type_for_radius',
    'canonical_target_id',
    'SchemaHarmonizer',
    'record_from_dict',
    'migrate_legacy_record'
]
