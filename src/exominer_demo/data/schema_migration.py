"""
Schema harmonization for serialized detection records.

Two payload revisions exist: the canonical one (English labels, phaseDays +
phaseHours, falsePositiveType) and a legacy one (Spanish planet-type labels,
a single foldedPhase series, ticId / spocDvr / gaiaRuwe field names).
Both are converted into a canonical DetectionRecord.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from ..errors import InvalidInputError
from .types import (
    DetectionRecord,
    DetectionStatus,
    DvrFlag,
    FalsePositiveType,
    FeatureImportance,
    LightCurvePoint,
    PhasePoint,
    PlanetType,
    SpocDifferenceVector,
    StellarParameters,
    TransitCandidateEvent,
    canonical_target_id,
    classify_probability,
    planet_type_for_radius,
    validate_sector,
)


# Marks a field without a default in SchemaHarmonizer._parse_field
_MISSING = object()


class SchemaRevision:
    CANONICAL = "canonical"
    LEGACY = "legacy"


class SchemaHarmonizer:
    """
    Converts record payloads of either revision into DetectionRecords.
    """

    def __init__(self, fallback_false_positive_type: Optional[FalsePositiveType] = None):
        """
        Initialize the harmonizer.

        Args:
            fallback_false_positive_type: Type assigned to legacy false positives,
                which never carried one. Without it such payloads are rejected.
        """
        self.logger = logging.getLogger(__name__)
        self.fallback_false_positive_type = fallback_false_positive_type

        # Legacy (Spanish) planet type labels
        self.legacy_planet_types = {
            'TERRESTRE': PlanetType.TERRESTRIAL,
            'SUPER TIERRA': PlanetType.SUPER_EARTH,
            'TIPO NEPTUNO': PlanetType.NEPTUNE_LIKE,
            'GIGANTE GASEOSO': PlanetType.GAS_GIANT
        }

        # Legacy status spellings
        self.legacy_statuses = {
            'EXOPLANETA': DetectionStatus.EXOPLANET,
            'CANDIDATO': DetectionStatus.CANDIDATE,
            'FALSO POSITIVO': DetectionStatus.FALSE_POSITIVE
        }

    def detect_revision(self, payload: Mapping[str, Any]) -> str:
        """Tell which schema revision a payload uses."""
        if 'targetId' in payload and 'phaseDays' in payload:
            return SchemaRevision.CANONICAL
        if 'ticId' in payload or 'foldedPhase' in payload or 'spocDvr' in payload:
            return SchemaRevision.LEGACY
        if 'targetId' in payload:
            return SchemaRevision.CANONICAL
        raise InvalidInputError("Payload has no target identifier", field='targetId', value=None)

    def harmonize_planet_type(self, label: Any) -> Optional[PlanetType]:
        if label is None:
            return None
        if isinstance(label, str) and label.strip().upper() in self.legacy_planet_types:
            return self.legacy_planet_types[label.strip().upper()]
        return PlanetType.parse(label, 'planetType')

    def harmonize_status(self, label: Any) -> Optional[DetectionStatus]:
        if label is None:
            return None
        if isinstance(label, str) and label.strip().upper() in self.legacy_statuses:
            return self.legacy_statuses[label.strip().upper()]
        return DetectionStatus.parse(label, 'status')

    def to_record(self, payload: Mapping[str, Any]) -> DetectionRecord:
        """
        Convert a payload of either revision into a canonical record.

        Status is recomputed from probability. Labels that contradict the
        recomputed status or the planet radius are corrected and logged.

        Raises:
            InvalidInputError: On missing or malformed fields and unknown labels
        """
        revision = self.detect_revision(payload)
        legacy = revision == SchemaRevision.LEGACY

        def field(key: str, parser: Callable[[Any], Any], default: Any = _MISSING) -> Any:
            return self._parse_field(payload, key, revision, parser, default)

        target_id = field('ticId' if legacy else 'targetId', canonical_target_id)
        sector = field('sector', validate_sector)
        probability = field('probability', float)
        planet_radius = field('radius' if legacy else 'planetRadius', float)

        status = classify_probability(probability)
        labelled_status = self.harmonize_status(payload.get('status'))
        if labelled_status is not None and labelled_status is not status:
            self.logger.warning(
                f"{target_id}: stored status {labelled_status.value} disagrees with "
                f"probability {probability:.4f}, using {status.value}"
            )

        planet_type, false_positive_type = self._resolve_labels(payload, target_id, status, planet_radius)

        if legacy and 'foldedPhase' in payload:
            phase_days = field('foldedPhase', self._phase_points)
        else:
            phase_days = field('phaseDays', self._phase_points, default=())
        phase_hours = field('phaseHours', self._phase_points, default=())

        tce = field('tce' if legacy else 'transitCandidateEvent', self._tce)

        try:
            return DetectionRecord(
                target_id=target_id,
                sector=sector,
                probability=probability,
                status=status,
                planet_type=planet_type,
                false_positive_type=false_positive_type,
                planet_radius=planet_radius,
                period=field('period', float, default=tce.period),
                transit_depth=field('transitDepth', float, default=0.0),
                magnitude=field('magnitude', float),
                right_ascension=field('ra' if legacy else 'rightAscension', float),
                declination=field('dec' if legacy else 'declination', float),
                stellar_parameters=field('stellarParameters', self._stellar_parameters),
                gaia_ruwe=field('gaiaRuwe' if legacy else 'gaiaAstrometricQuality', float),
                spoc_dvr=field('spocDvr' if legacy else 'spocDifferenceVector',
                               lambda dvr: self._spoc_dvr(dvr, legacy)),
                tce=tce,
                light_curve=field('lightCurve', self._light_curve_points, default=()),
                phase_days=phase_days,
                phase_hours=phase_hours,
                feature_importances=field('features' if legacy else 'featureImportances',
                                          self._features, default=()),
                analyzed_at=self._timestamp(payload.get('analyzedAt'))
            )
        except InvalidInputError:
            raise
        except ValueError as e:
            raise InvalidInputError(f"{target_id}: inconsistent {revision} payload: {e}",
                                    field=None, value=None) from e

    def _resolve_labels(
        self,
        payload: Mapping[str, Any],
        target_id: str,
        status: DetectionStatus,
        planet_radius: float
    ) -> Tuple[Optional[PlanetType], Optional[FalsePositiveType]]:
        planet_type = self.harmonize_planet_type(payload.get('planetType'))
        fp_label = payload.get('falsePositiveType')
        false_positive_type = (
            FalsePositiveType.parse(fp_label, 'falsePositiveType') if fp_label is not None else None
        )

        if status is DetectionStatus.EXOPLANET:
            derived = planet_type_for_radius(planet_radius)
            if planet_type is not None and planet_type is not derived:
                self.logger.warning(
                    f"{target_id}: planet type {planet_type.value} does not match radius "
                    f"{planet_radius:.2f}, using {derived.value}"
                )
            return derived, None

        if planet_type is not None:
            self.logger.warning(f"{target_id}: dropping planet type on {status.value} record")

        if status is DetectionStatus.FALSE_POSITIVE:
            if false_positive_type is None:
                false_positive_type = self.fallback_false_positive_type
            if false_positive_type is None:
                raise InvalidInputError(
                    f"{target_id}: false-positive record has no falsePositiveType",
                    field='falsePositiveType', value=None
                )
            return None, false_positive_type

        return None, None

    @staticmethod
    def _parse_field(
        payload: Mapping[str, Any],
        key: str,
        revision: str,
        parser: Callable[[Any], Any],
        default: Any = _MISSING
    ) -> Any:
        """Parse one top-level field, reporting missing or malformed content as InvalidInputError."""
        if key not in payload:
            if default is not _MISSING:
                return default
            raise InvalidInputError(f"Missing field {key!r} in {revision} payload", field=key, value=None)

        try:
            return parser(payload[key])
        except InvalidInputError:
            raise
        except KeyError as e:
            raise InvalidInputError(f"Field {key!r} is missing {e.args[0]!r} in {revision} payload",
                                    field=f"{key}.{e.args[0]}", value=None) from e
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed field {key!r} in {revision} payload: {e}",
                                    field=key, value=payload[key]) from e

    @staticmethod
    def _tce(tce: Mapping[str, Any]) -> TransitCandidateEvent:
        return TransitCandidateEvent(
            period=float(tce['period']),
            duration=float(tce['duration']),
            depth=float(tce['depth'])
        )

    @staticmethod
    def _light_curve_points(points: Iterable[Mapping[str, Any]]) -> Tuple[LightCurvePoint, ...]:
        return tuple(LightCurvePoint(time=float(p['time']), flux=float(p['flux'])) for p in points)

    @staticmethod
    def _phase_points(points: Iterable[Mapping[str, Any]]) -> Tuple[PhasePoint, ...]:
        return tuple(PhasePoint(phase=float(p['phase']), flux=float(p['flux'])) for p in points)

    @staticmethod
    def _stellar_parameters(params: Mapping[str, Any]) -> StellarParameters:
        return StellarParameters(
            teff=float(params['teff']),
            logg=float(params['logg']),
            feh=float(params['feh']),
            radius=float(params['radius']),
            mass=float(params['mass'])
        )

    @staticmethod
    def _spoc_dvr(dvr: Mapping[str, Any], legacy: bool) -> SpocDifferenceVector:
        if legacy:
            return SpocDifferenceVector(
                value=float(dvr['dvr']),
                uncertainty=float(dvr['dvrUncertainty']),
                flag=DvrFlag.parse(dvr['dvrFlag'], 'dvrFlag')
            )
        return SpocDifferenceVector(
            value=float(dvr['value']),
            uncertainty=float(dvr['uncertainty']),
            flag=DvrFlag.parse(dvr['flag'], 'flag')
        )

    @staticmethod
    def _features(features: Iterable[Mapping[str, Any]]) -> Tuple[FeatureImportance, ...]:
        parsed = [FeatureImportance(name=str(f['name']), importance=float(f['importance'])) for f in features]
        parsed.sort(key=lambda feature: feature.importance, reverse=True)
        return tuple(parsed)

    @staticmethod
    def _timestamp(value: Any) -> datetime:
        if value is None:
            return datetime.now(timezone.utc)
        if isinstance(value, datetime):
            return value
        text = str(value)
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidInputError(f"Invalid analyzedAt timestamp: {value!r}",
                                    field='analyzedAt', value=value) from e


def record_from_dict(
    payload: Mapping[str, Any],
    fallback_false_positive_type: Optional[FalsePositiveType] = None
) -> DetectionRecord:
    """Load a record from a payload of either schema revision."""
    return SchemaHarmonizer(fallback_false_positive_type).to_record(payload)


def migrate_legacy_record(
    payload: Mapping[str, Any],
    fallback_false_positive_type: Optional[FalsePositiveType] = None
) -> Dict[str, Any]:
    """Rewrite a payload of either revision into the canonical serialized form."""
    return record_from_dict(payload, fallback_false_positive_type).to_dict()
