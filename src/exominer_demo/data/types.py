"""
Core data types and structures for simulated exoplanet detections.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..errors import InvalidInputError


# Probability cut points for the three-way classification
EXOPLANET_THRESHOLD = 0.99
CANDIDATE_THRESHOLD = 0.50

# Planet radius breakpoints (Earth radii)
TERRESTRIAL_MAX_RADIUS = 1.5
SUPER_EARTH_MAX_RADIUS = 2.5
NEPTUNE_LIKE_MAX_RADIUS = 6.0

MISSION_PREFIXES = ('KIC', 'EPIC', 'TIC')

_PREFIXED_TARGET = re.compile(
    r'^(?P<prefix>KIC|EPIC|TIC)[\s_-]*(?P<rest>\d.*)$', re.IGNORECASE
)


def _normalize_label(label: str) -> str:
    return re.sub(r'[^a-z0-9]', '', label.lower())


class LabelEnum(Enum):
    """Enum whose members can be looked up from loosely formatted labels."""

    @classmethod
    def parse(cls, label: Any, field_name: Optional[str] = None):
        """
        Resolve a member from an instance, its value or its name.

        Matching ignores case, spaces, hyphens and underscores, so
        'false-positive', 'False Positive' and 'FALSE_POSITIVE' all resolve.
        """
        if isinstance(label, cls):
            return label
        if not isinstance(label, str):
            raise InvalidInputError(
                f"{cls.__name__} label must be a string", field=field_name, value=label
            )

        wanted = _normalize_label(label)
        for member in cls:
            if wanted in (_normalize_label(member.value), _normalize_label(member.name)):
                return member

        raise InvalidInputError(
            f"Unknown {cls.__name__} label: {label!r}", field=field_name, value=label
        )


class DetectionStatus(LabelEnum):
    """Classification assigned to an analyzed target."""
    EXOPLANET = "exoplanet"
    CANDIDATE = "candidate"
    FALSE_POSITIVE = "false-positive"


class PlanetType(LabelEnum):
    """Size class of a validated exoplanet."""
    TERRESTRIAL = "Terrestrial"
    SUPER_EARTH = "Super Earth"
    NEPTUNE_LIKE = "Neptune-Like"
    GAS_GIANT = "Gas Giant"


class FalsePositiveType(LabelEnum):
    """Astrophysical or instrumental origin of a false-positive signal."""
    ECLIPSING_BINARY = "Eclipsing Binary"
    BACKGROUND_ECLIPSING_BINARY = "Background Eclipsing Binary"
    GRAZING_ECLIPSING_BINARY = "Grazing Eclipsing Binary"
    INSTRUMENTAL_ARTIFACT = "Instrumental Artifact"
    STELLAR_VARIABILITY = "Stellar Variability"
    CONTAMINATION = "Contamination"


class DvrFlag(LabelEnum):
    """Quality flag on the SPOC difference-vector score."""
    PASS = "PASS"
    WARN = "WARN"


def classify_probability(probability: float) -> DetectionStatus:
    """Map a detection probability onto its status using the fixed thresholds."""
    if probability > EXOPLANET_THRESHOLD:
        return DetectionStatus.EXOPLANET
    if probability >= CANDIDATE_THRESHOLD:
        return DetectionStatus.CANDIDATE
    return DetectionStatus.FALSE_POSITIVE


def planet_type_for_radius(radius: float) -> PlanetType:
    """Map a planet radius (Earth radii) onto its size class."""
    if radius < TERRESTRIAL_MAX_RADIUS:
        return PlanetType.TERRESTRIAL
    if radius < SUPER_EARTH_MAX_RADIUS:
        return PlanetType.SUPER_EARTH
    if radius < NEPTUNE_LIKE_MAX_RADIUS:
        return PlanetType.NEPTUNE_LIKE
    return PlanetType.GAS_GIANT


def canonical_target_id(target_id: str, default_prefix: str = 'TIC') -> str:
    """
    Normalize a catalog identifier to '<PREFIX> <id>' form.

    Examples:
        '12345679'      -> 'TIC 12345679'
        'TIC12345679'   -> 'TIC 12345679'
        'epic-20123456' -> 'EPIC 20123456'
    """
    if not isinstance(target_id, str) or not target_id.strip():
        raise InvalidInputError("Target id must be a non-empty string", field='target_id', value=target_id)

    stripped = ' '.join(target_id.split())
    match = _PREFIXED_TARGET.match(stripped)
    if match:
        return f"{match.group('prefix').upper()} {match.group('rest')}"
    return f"{default_prefix} {stripped}"


def validate_sector(sector: Any) -> int:
    """Check that a sector/campaign index is an integer >= 1."""
    if isinstance(sector, bool) or not isinstance(sector, int):
        raise InvalidInputError("Sector must be an integer", field='sector', value=sector)
    if sector < 1:
        raise InvalidInputError("Sector must be >= 1", field='sector', value=sector)
    return sector


@dataclass(frozen=True)
class StellarParameters:
    """Host star properties."""

    teff: float      # Effective temperature (K)
    logg: float      # Surface gravity (cgs, log10)
    feh: float       # Metallicity [Fe/H]
    radius: float    # Solar radii
    mass: float      # Solar masses

    def to_dict(self) -> Dict[str, float]:
        return {
            'teff': float(self.teff),
            'logg': float(self.logg),
            'feh': float(self.feh),
            'radius': float(self.radius),
            'mass': float(self.mass)
        }


@dataclass(frozen=True)
class SpocDifferenceVector:
    """SPOC difference-vector quality score."""

    value: float
    uncertainty: float
    flag: DvrFlag

    def to_dict(self) -> Dict[str, Any]:
        return {
            'value': float(self.value),
            'uncertainty': float(self.uncertainty),
            'flag': self.flag.value
        }


@dataclass(frozen=True)
class TransitCandidateEvent:
    """Periodic dimming pattern flagged as a possible transit."""

    period: float     # days
    duration: float   # hours
    depth: float      # fractional

    def __post_init__(self):
        if self.period <= 0:
            raise ValueError("Period must be positive")

        if self.duration <= 0:
            raise ValueError("Transit duration must be positive")

        if self.depth <= 0:
            raise ValueError("Transit depth must be positive")

    def to_dict(self) -> Dict[str, float]:
        return {
            'period': float(self.period),
            'duration': float(self.duration),
            'depth': float(self.depth)
        }


@dataclass(frozen=True)
class LightCurvePoint:
    time: float
    flux: float

    def to_dict(self) -> Dict[str, float]:
        return {'time': float(self.time), 'flux': float(self.flux)}


@dataclass(frozen=True)
class PhasePoint:
    phase: float
    flux: float

    def to_dict(self) -> Dict[str, float]:
        return {'phase': float(self.phase), 'flux': float(self.flux)}


@dataclass(frozen=True)
class FeatureImportance:
    name: str
    importance: float

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'importance': float(self.importance)}


@dataclass(frozen=True)
class AnalysisOverrides:
    """
    Forced classification for demos and tests.

    A planet type implies an exoplanet status and a false-positive type
    implies a false-positive status when no status is given.
    """

    status: Optional[DetectionStatus] = None
    planet_type: Optional[PlanetType] = None
    false_positive_type: Optional[FalsePositiveType] = None

    def __post_init__(self):
        if self.planet_type is not None and self.false_positive_type is not None:
            raise InvalidInputError(
                "Planet type and false-positive type are mutually exclusive",
                field='overrides', value=(self.planet_type, self.false_positive_type)
            )

        if self.planet_type is not None and self.status not in (None, DetectionStatus.EXOPLANET):
            raise InvalidInputError(
                "Planet type can only be forced together with an exoplanet status",
                field='planet_type', value=self.planet_type.value
            )

        if self.false_positive_type is not None and self.status not in (None, DetectionStatus.FALSE_POSITIVE):
            raise InvalidInputError(
                "False-positive type can only be forced together with a false-positive status",
                field='false_positive_type', value=self.false_positive_type.value
            )

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> 'AnalysisOverrides':
        """Build overrides from a dict using snake_case or camelCase keys."""
        if not mapping:
            return cls()

        def pick(*keys):
            for key in keys:
                if mapping.get(key) is not None:
                    return mapping[key]
            return None

        status = pick('status')
        planet_type = pick('planet_type', 'planetType')
        false_positive_type = pick('false_positive_type', 'falsePositiveType')

        return cls(
            status=DetectionStatus.parse(status, 'status') if status is not None else None,
            planet_type=PlanetType.parse(planet_type, 'planet_type') if planet_type is not None else None,
            false_positive_type=(
                FalsePositiveType.parse(false_positive_type, 'false_positive_type')
                if false_positive_type is not None else None
            )
        )

    @property
    def resolved_status(self) -> Optional[DetectionStatus]:
        """Status implied by these overrides, or None for random classification."""
        if self.status is not None:
            return self.status
        if self.planet_type is not None:
            return DetectionStatus.EXOPLANET
        if self.false_positive_type is not None:
            return DetectionStatus.FALSE_POSITIVE
        return None

    @property
    def is_empty(self) -> bool:
        return self.resolved_status is None


@dataclass(frozen=True)
class DetectionRecord:
    """Simulated analysis result for one (target, sector) pair."""

    target_id: str
    sector: int
    probability: float
    status: DetectionStatus
    planet_radius: float          # Earth radii
    period: float                 # days
    transit_depth: float          # percent
    magnitude: float
    right_ascension: float        # degrees
    declination: float            # degrees
    stellar_parameters: StellarParameters
    gaia_ruwe: float
    spoc_dvr: SpocDifferenceVector
    tce: TransitCandidateEvent
    light_curve: Tuple[LightCurvePoint, ...]
    phase_days: Tuple[PhasePoint, ...]
    phase_hours: Tuple[PhasePoint, ...]
    feature_importances: Tuple[FeatureImportance, ...]
    analyzed_at: datetime
    planet_type: Optional[PlanetType] = None
    false_positive_type: Optional[FalsePositiveType] = None

    def __post_init__(self):
        """Validate the record's classification invariants."""
        if not self.target_id or not self.target_id.strip():
            raise ValueError("Target id cannot be empty")

        if isinstance(self.sector, bool) or not isinstance(self.sector, int) or self.sector < 1:
            raise ValueError("Sector must be an integer >= 1")

        if not (0 <= self.probability <= 1):
            raise ValueError("Probability must be between 0 and 1")

        if self.status is not classify_probability(self.probability):
            raise ValueError("Status must match the probability thresholds")

        if self.status is DetectionStatus.EXOPLANET:
            if self.planet_type is None:
                raise ValueError("Exoplanet records require a planet type")
            if self.planet_type is not planet_type_for_radius(self.planet_radius):
                raise ValueError("Planet type must match the planet radius")
        elif self.planet_type is not None:
            raise ValueError("Only exoplanet records carry a planet type")

        if self.status is DetectionStatus.FALSE_POSITIVE:
            if self.false_positive_type is None:
                raise ValueError("False-positive records require a false-positive type")
        elif self.false_positive_type is not None:
            raise ValueError("Only false-positive records carry a false-positive type")

        if not (0 <= self.right_ascension < 360):
            raise ValueError("Right ascension must be in [0, 360)")

        if not (-90 <= self.declination <= 90):
            raise ValueError("Declination must be in [-90, 90]")

        importances = [feature.importance for feature in self.feature_importances]
        if any(value <= 0 for value in importances):
            raise ValueError("Feature importances must be positive")
        if any(a < b for a, b in zip(importances, importances[1:])):
            raise ValueError("Feature importances must be sorted in descending order")

    @property
    def key(self) -> Tuple[str, int]:
        """Composite lookup key (target id, sector)."""
        return (self.target_id, self.sector)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready mapping with camelCase keys."""
        return {
            'targetId': self.target_id,
            'sector': self.sector,
            'probability': float(self.probability),
            'status': self.status.value,
            'planetType': self.planet_type.value if self.planet_type else None,
            'falsePositiveType': self.false_positive_type.value if self.false_positive_type else None,
            'planetRadius': float(self.planet_radius),
            'period': float(self.period),
            'transitDepth': float(self.transit_depth),
            'magnitude': float(self.magnitude),
            'rightAscension': float(self.right_ascension),
            'declination': float(self.declination),
            'stellarParameters': self.stellar_parameters.to_dict(),
            'gaiaAstrometricQuality': float(self.gaia_ruwe),
            'spocDifferenceVector': self.spoc_dvr.to_dict(),
            'transitCandidateEvent': self.tce.to_dict(),
            'lightCurve': [point.to_dict() for point in self.light_curve],
            'phaseDays': [point.to_dict() for point in self.phase_days],
            'phaseHours': [point.to_dict() for point in self.phase_hours],
            'featureImportances': [feature.to_dict() for feature in self.feature_importances],
            'analyzedAt': self.analyzed_at.isoformat()
        }


@dataclass
class GeneratorConfig:
    """Configuration for the synthetic detection generator."""

    latency_seconds: float = 2.0
    light_curve_points: int = 100
    light_curve_baseline: float = 100.0
    light_curve_amplitude: float = 2.0
    light_curve_noise: float = 0.5
    transit_window: Tuple[int, int] = (40, 50)   # exclusive bounds
    transit_dip: float = 3.0
    phase_days_points: int = 100
    phase_days_halfwidth: int = 10
    phase_hours_points: int = 80
    phase_hours_halfwidth: int = 8
    phase_hours_span: float = 10.0
    phase_dip: float = 0.01
    phase_noise: float = 0.002
    default_mission_prefix: str = 'TIC'
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate generator configuration."""
        if self.latency_seconds < 0:
            raise ValueError("Latency must be non-negative")

        for name in ('light_curve_points', 'phase_days_points', 'phase_hours_points'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

        start, end = self.transit_window
        if start >= end:
            raise ValueError("Transit window start must precede its end")

        if self.phase_hours_span <= 0:
            raise ValueError("Phase span must be positive")

        if self.light_curve_noise < 0 or self.phase_noise < 0:
            raise ValueError("Noise amplitudes must be non-negative")

        if self.default_mission_prefix not in MISSION_PREFIXES:
            raise ValueError(f"Mission prefix must be one of {MISSION_PREFIXES}")
