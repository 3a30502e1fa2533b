"""
Synthetic detection generator.

Stands in for a real vetting model: maps a target id and sector onto a
randomized but internally consistent detection record after an artificial
inference delay.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np

from ..data.types import (
    AnalysisOverrides,
    DetectionRecord,
    GeneratorConfig,
    canonical_target_id,
    validate_sector,
)
from .light_curves import LightCurveSynthesizer
from .sampling import (
    ClassificationSampler,
    StellarParameterSampler,
    TransitParameterSampler,
    sample_feature_importances,
    target_seed,
)

OverridesLike = Union[AnalysisOverrides, Mapping[str, Any], None]


class SyntheticDetectionGenerator:
    """
    Generates simulated detection records.

    Randomness comes from an injectable numpy Generator; pass a seeded one
    (or set config.seed) for reproducible output.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize generator.

        Args:
            config: Generator configuration (defaults to GeneratorConfig())
            rng: Random source; built from config.seed when omitted
        """
        self.config = config or GeneratorConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.logger = logging.getLogger(__name__)

        self.classification_sampler = ClassificationSampler(self.rng)
        self.stellar_sampler = StellarParameterSampler(self.rng)
        self.transit_sampler = TransitParameterSampler(self.rng)
        self.light_curves = LightCurveSynthesizer(self.config, self.rng)

        self.generated_count = 0

    def _prepare_request(
        self,
        target_id: str,
        sector: int,
        overrides: OverridesLike
    ) -> Tuple[str, int, AnalysisOverrides]:
        try:
            canonical_id = canonical_target_id(target_id, self.config.default_mission_prefix)
            sector = validate_sector(sector)
            if not isinstance(overrides, AnalysisOverrides):
                overrides = AnalysisOverrides.from_mapping(overrides)
        except ValueError as e:
            self.logger.warning(f"Rejected analysis request ({target_id!r}, {sector!r}): {e}")
            raise

        return canonical_id, sector, overrides

    def build_record(
        self,
        target_id: str,
        sector: int,
        overrides: OverridesLike = None
    ) -> DetectionRecord:
        """
        Build a detection record immediately, without the simulated delay.

        Args:
            target_id: Catalog identifier, with or without mission prefix
            sector: Observation sector or campaign (>= 1)
            overrides: Optional forced status / planet type / false-positive type

        Returns:
            New DetectionRecord

        Raises:
            InvalidInputError: If the target id, sector or overrides are unusable
        """
        canonical_id, sector, overrides = self._prepare_request(target_id, sector, overrides)

        seed = target_seed(canonical_id, self.rng)

        probability, status, planet_type, false_positive_type, planet_radius = (
            self.classification_sampler.sample(overrides)
        )

        stellar_parameters = self.stellar_sampler.sample_stellar_parameters()
        gaia_ruwe = self.stellar_sampler.sample_gaia_ruwe()
        spoc_dvr = self.stellar_sampler.sample_spoc_dvr()

        tce = self.transit_sampler.sample_tce()
        transit_depth = self.transit_sampler.sample_transit_depth()
        magnitude = self.transit_sampler.sample_magnitude()
        ra, dec = self.transit_sampler.sample_sky_position()

        record = DetectionRecord(
            target_id=canonical_id,
            sector=sector,
            probability=probability,
            status=status,
            planet_type=planet_type,
            false_positive_type=false_positive_type,
            planet_radius=planet_radius,
            period=tce.period,
            transit_depth=transit_depth,
            magnitude=magnitude,
            right_ascension=ra,
            declination=dec,
            stellar_parameters=stellar_parameters,
            gaia_ruwe=gaia_ruwe,
            spoc_dvr=spoc_dvr,
            tce=tce,
            light_curve=self.light_curves.light_curve(seed),
            phase_days=self.light_curves.phase_days(),
            phase_hours=self.light_curves.phase_hours(),
            feature_importances=sample_feature_importances(self.rng),
            analyzed_at=datetime.now(timezone.utc)
        )

        self.generated_count += 1
        self.logger.info(
            f"Generated {record.status.value} for {record.target_id} sector {record.sector} "
            f"(p={record.probability:.4f})"
        )

        return record

    async def generate(
        self,
        target_id: str,
        sector: int,
        overrides: OverridesLike = None
    ) -> DetectionRecord:
        """
        Simulate an inference call for one target.

        Input is validated before the delay so bad requests fail fast.
        """
        self._prepare_request(target_id, sector, overrides)

        if self.config.latency_seconds > 0:
            await asyncio.sleep(self.config.latency_seconds)

        return self.build_record(target_id, sector, overrides)

    async def generate_batch(
        self,
        requests: Iterable[Union[Tuple[str, int], Tuple[str, int, OverridesLike]]]
    ) -> List[DetectionRecord]:
        """
        Run several generations concurrently.

        Args:
            requests: (target_id, sector) or (target_id, sector, overrides) tuples

        Returns:
            Records in request order

        Raises:
            InvalidInputError: If any request is unusable; nothing is generated then
        """
        requests = list(requests)
        for request in requests:
            self._prepare_request(*self._unpack_request(request))

        tasks = [self.generate(*self._unpack_request(request)) for request in requests]
        return list(await asyncio.gather(*tasks))

    @staticmethod
    def _unpack_request(request) -> Tuple[str, int, OverridesLike]:
        if len(request) == 2:
            target_id, sector = request
            return target_id, sector, None
        target_id, sector, overrides = request
        return target_id, sector, overrides
