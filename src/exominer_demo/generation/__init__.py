"""Synthetic generation of detection records."""

from .generator import SyntheticDetectionGenerator
from .light_curves import LightCurveSynthesizer
from .sampling import (
    ClassificationSampler,
    StellarParameterSampler,
    TransitParameterSampler
)

__all__ = [
    'SyntheticDetectionGenerator',
    'LightCurveSynthesizer',
    'ClassificationSampler',
    'StellarParameterSampler',
    'TransitParameterSampler'
]
