"""
Parameter sampling for simulated detection results.

Every sampler draws from an explicitly passed numpy Generator so a fixed
seed reproduces a whole record.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..data.types import (
    AnalysisOverrides,
    DetectionStatus,
    DvrFlag,
    FalsePositiveType,
    FeatureImportance,
    PlanetType,
    SpocDifferenceVector,
    StellarParameters,
    TransitCandidateEvent,
    classify_probability,
    planet_type_for_radius,
)

logger = logging.getLogger(__name__)


# Probability sub-range for each forced status
PROBABILITY_RANGES: Dict[DetectionStatus, Tuple[float, float]] = {
    DetectionStatus.FALSE_POSITIVE: (0.0, 0.49),
    DetectionStatus.CANDIDATE: (0.50, 0.99),
    DetectionStatus.EXOPLANET: (0.99, 1.00),
}

PLANET_RADIUS_RANGES: Dict[PlanetType, Tuple[float, float]] = {
    PlanetType.TERRESTRIAL: (0.8, 1.5),
    PlanetType.SUPER_EARTH: (1.5, 2.5),
    PlanetType.NEPTUNE_LIKE: (2.5, 6.0),
    PlanetType.GAS_GIANT: (6.0, 12.0),
}
UNCONDITIONED_RADIUS_RANGE = (0.8, 12.0)

FEATURE_IMPORTANCE_RANGES: List[Tuple[str, float, float]] = [
    ('Transit Depth', 0.35, 0.50),
    ('Duration', 0.25, 0.35),
    ('Odd/Even Difference', 0.15, 0.25),
    ('Centroid Offset', 0.10, 0.15),
    ('Transit Shape', 0.08, 0.13),
]

# Long catalog ids are truncated to their trailing digits before use as a phase offset
MAX_SEED_DIGITS = 15
FALLBACK_SEED_RANGE = (0.0, 10000.0)

DVR_PASS_PROBABILITY = 0.8


def target_seed(target_id: str, rng: np.random.Generator) -> float:
    """
    Derive the light-curve phase seed from the digits of a target id.

    Identifiers without digits fall back to a random seed.
    """
    digits = re.sub(r'\D', '', target_id)
    if not digits:
        seed = float(rng.uniform(*FALLBACK_SEED_RANGE))
        logger.debug(f"No digits in target id {target_id!r}, using random seed {seed:.3f}")
        return seed
    return float(int(digits[-MAX_SEED_DIGITS:]))


class ClassificationSampler:
    """
    Samples detection probability and the labels that follow from it.

    Without overrides the three outcomes are equally likely. Status is always
    re-derived from the sampled probability.
    """

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def sample_probability(self, status: Optional[DetectionStatus] = None) -> float:
        """Sample a probability, restricted to the sub-range of a forced status."""
        if status is None:
            r = self.rng.random()
            if r < 1 / 3:
                status = DetectionStatus.FALSE_POSITIVE
            elif r < 2 / 3:
                status = DetectionStatus.CANDIDATE
            else:
                status = DetectionStatus.EXOPLANET

        if status is DetectionStatus.EXOPLANET:
            return self._sample_exoplanet_probability()

        low, high = PROBABILITY_RANGES[status]
        return float(low + self.rng.random() * (high - low))

    def _sample_exoplanet_probability(self) -> float:
        # Upper-inclusive draw; rounding can land exactly on the threshold, so redraw
        low, high = PROBABILITY_RANGES[DetectionStatus.EXOPLANET]
        while True:
            probability = float(high - self.rng.random() * (high - low))
            if probability > low:
                return probability

    def sample_false_positive_type(self) -> FalsePositiveType:
        members = list(FalsePositiveType)
        return members[int(self.rng.integers(len(members)))]

    def sample(
        self,
        overrides: Optional[AnalysisOverrides] = None
    ) -> Tuple[float, DetectionStatus, Optional[PlanetType], Optional[FalsePositiveType], float]:
        """
        Sample a consistent classification.

        Returns:
            Tuple of (probability, status, planet_type, false_positive_type, planet_radius)
        """
        overrides = overrides or AnalysisOverrides()

        probability = self.sample_probability(overrides.resolved_status)
        status = classify_probability(probability)

        planet_type = None
        false_positive_type = None

        if status is DetectionStatus.EXOPLANET:
            if overrides.planet_type is not None:
                planet_type = overrides.planet_type
                planet_radius = self.sample_planet_radius(planet_type)
            else:
                planet_radius = self.sample_planet_radius()
                planet_type = planet_type_for_radius(planet_radius)
        else:
            planet_radius = self.sample_planet_radius()
            if status is DetectionStatus.FALSE_POSITIVE:
                false_positive_type = overrides.false_positive_type or self.sample_false_positive_type()

        return probability, status, planet_type, false_positive_type, planet_radius

    def sample_planet_radius(self, planet_type: Optional[PlanetType] = None) -> float:
        """Sample a planet radius in Earth radii, conditioned on its size class if known."""
        if planet_type is None:
            return float(self.rng.uniform(*UNCONDITIONED_RADIUS_RANGE))

        low, high = PLANET_RADIUS_RANGES[planet_type]
        while True:
            radius = float(self.rng.uniform(low, high))
            if planet_type_for_radius(radius) is planet_type:
                return radius


class StellarParameterSampler:
    """Samples host-star and vetting diagnostics from fixed uniform ranges."""

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

        self.teff_range = (4000.0, 8000.0)
        self.logg_range = (3.5, 5.5)
        self.feh_range = (-0.5, 0.5)
        self.radius_range = (0.5, 2.5)
        self.mass_range = (0.5, 2.0)
        self.ruwe_range = (0.8, 1.6)
        self.dvr_range = (0.85, 0.99)
        self.dvr_uncertainty_range = (0.01, 0.05)

    def sample_stellar_parameters(self) -> StellarParameters:
        return StellarParameters(
            teff=float(self.rng.uniform(*self.teff_range)),
            logg=float(self.rng.uniform(*self.logg_range)),
            feh=float(self.rng.uniform(*self.feh_range)),
            radius=float(self.rng.uniform(*self.radius_range)),
            mass=float(self.rng.uniform(*self.mass_range))
        )

    def sample_gaia_ruwe(self) -> float:
        return float(self.rng.uniform(*self.ruwe_range))

    def sample_spoc_dvr(self) -> SpocDifferenceVector:
        value = float(self.rng.uniform(*self.dvr_range))
        uncertainty = float(self.rng.uniform(*self.dvr_uncertainty_range))
        flag = DvrFlag.PASS if self.rng.random() < DVR_PASS_PROBABILITY else DvrFlag.WARN
        return SpocDifferenceVector(value=value, uncertainty=uncertainty, flag=flag)


class TransitParameterSampler:
    """Samples TCE ephemeris and sky position."""

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

        self.period_range = (2.0, 12.0)          # days
        self.duration_range = (0.1, 0.4)         # hours
        self.depth_range = (0.005, 0.025)        # fractional
        self.transit_depth_range = (0.5, 2.5)    # percent, table column
        self.magnitude_range = (10.0, 15.0)

    def sample_tce(self) -> TransitCandidateEvent:
        return TransitCandidateEvent(
            period=float(self.rng.uniform(*self.period_range)),
            duration=float(self.rng.uniform(*self.duration_range)),
            depth=float(self.rng.uniform(*self.depth_range))
        )

    def sample_transit_depth(self) -> float:
        return float(self.rng.uniform(*self.transit_depth_range))

    def sample_magnitude(self) -> float:
        return float(self.rng.uniform(*self.magnitude_range))

    def sample_sky_position(self) -> Tuple[float, float]:
        """Return (right ascension, declination) in degrees."""
        ra = float(self.rng.uniform(0.0, 360.0)) % 360.0
        dec = float(self.rng.uniform(-90.0, 90.0))
        return ra, dec


def sample_feature_importances(rng: np.random.Generator) -> Tuple[FeatureImportance, ...]:
    """Assign each model feature an importance and sort descending."""
    features = [
        FeatureImportance(name=name, importance=float(rng.uniform(low, high)))
        for name, low, high in FEATURE_IMPORTANCE_RANGES
    ]
    features.sort(key=lambda feature: feature.importance, reverse=True)
    return tuple(features)
