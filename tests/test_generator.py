"""
Tests for the synthetic detection generator and its samplers.
"""

import asyncio
import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from exominer_demo.data.types import (
    AnalysisOverrides,
    DetectionStatus,
    FalsePositiveType,
    GeneratorConfig,
    PlanetType,
    classify_probability,
    planet_type_for_radius,
)
from exominer_demo.errors import InvalidInputError
from exominer_demo.generation.generator import SyntheticDetectionGenerator
from exominer_demo.generation.light_curves import LightCurveSynthesizer
from exominer_demo.generation.sampling import (
    FEATURE_IMPORTANCE_RANGES,
    ClassificationSampler,
    sample_feature_importances,
    target_seed,
)


class TestClassificationSampler:
    """Test probability and label sampling"""

    def setup_method(self):
        self.sampler = ClassificationSampler(np.random.default_rng(7))

    @pytest.mark.parametrize("status,low,high", [
        (DetectionStatus.EXOPLANET, 0.99, 1.0),
        (DetectionStatus.CANDIDATE, 0.50, 0.99),
        (DetectionStatus.FALSE_POSITIVE, 0.0, 0.49),
    ])
    def test_forced_probability_ranges(self, status, low, high):
        for _ in range(500):
            probability = self.sampler.sample_probability(status)
            assert low <= probability <= high
            assert classify_probability(probability) is status

    def test_exoplanet_probability_strictly_above_threshold(self):
        probabilities = [self.sampler.sample_probability(DetectionStatus.EXOPLANET) for _ in range(1000)]
        assert min(probabilities) > 0.99
        assert max(probabilities) <= 1.0

    def test_unforced_sampling_covers_all_statuses(self):
        statuses = {self.sampler.sample()[1] for _ in range(300)}
        assert statuses == set(DetectionStatus)

    @pytest.mark.parametrize("planet_type", list(PlanetType))
    def test_radius_conditioned_on_planet_type(self, planet_type):
        for _ in range(200):
            radius = self.sampler.sample_planet_radius(planet_type)
            assert planet_type_for_radius(radius) is planet_type

    def test_unconditioned_radius_range(self):
        radii = [self.sampler.sample_planet_radius() for _ in range(500)]
        assert min(radii) >= 0.8
        assert max(radii) < 12.0

    def test_forced_false_positive_type_kept(self):
        overrides = AnalysisOverrides(false_positive_type=FalsePositiveType.INSTRUMENTAL_ARTIFACT)
        probability, status, planet_type, fp_type, _ = self.sampler.sample(overrides)

        assert status is DetectionStatus.FALSE_POSITIVE
        assert planet_type is None
        assert fp_type is FalsePositiveType.INSTRUMENTAL_ARTIFACT
        assert probability < 0.5


class TestTargetSeed:
    """Test light-curve seed derivation from target ids"""

    def setup_method(self):
        self.rng = np.random.default_rng(0)

    def test_digits_used(self):
        assert target_seed('TIC 12345679', self.rng) == 12345679.0

    def test_mixed_id_digits_concatenated(self):
        assert target_seed('TIC Kepler-22b', self.rng) == 22.0

    def test_no_digits_falls_back_to_random(self):
        seed = target_seed('TIC Kepler', self.rng)
        assert 0.0 <= seed < 10000.0

    def test_long_ids_truncated(self):
        seed = target_seed('TIC ' + '9' * 40, self.rng)
        assert seed == float('9' * 15)
        assert np.isfinite(np.sin(seed))


class TestFeatureImportances:
    """Test feature importance sampling"""

    def test_sorted_and_in_range(self):
        rng = np.random.default_rng(3)
        ranges = {name: (low, high) for name, low, high in FEATURE_IMPORTANCE_RANGES}

        for _ in range(100):
            features = sample_feature_importances(rng)
            values = [f.importance for f in features]

            assert len(features) == 5
            assert values == sorted(values, reverse=True)
            for feature in features:
                low, high = ranges[feature.name]
                assert low <= feature.importance <= high


class TestLightCurveSynthesizer:
    """Test synthetic light-curve generation"""

    def setup_method(self):
        self.config = GeneratorConfig(latency_seconds=0.0)
        self.synthesizer = LightCurveSynthesizer(self.config, np.random.default_rng(11))

    def test_series_lengths(self):
        assert len(self.synthesizer.light_curve(1.0)) == 100
        assert len(self.synthesizer.phase_days()) == 100
        assert len(self.synthesizer.phase_hours()) == 80

    def test_transit_dip_in_raw_flux(self):
        flux = self.synthesizer.raw_flux(0.0)
        index = np.arange(len(flux))
        expected = 100 + np.sin(index / 10) * 2

        in_transit = (index > 40) & (index < 50)
        residual = flux - expected

        assert np.all(np.abs(residual[~in_transit]) <= 0.25)
        assert np.all(np.abs(residual[in_transit] + 3.0) <= 0.25)

    def test_phase_days_axis_and_dip(self):
        points = self.synthesizer.phase_days()
        phases = np.array([p.phase for p in points])
        flux = np.array([p.flux for p in points])

        assert phases[0] == pytest.approx(-1.0)
        assert phases[50] == pytest.approx(0.0)
        assert flux[50] < 0.995
        assert flux[0] > 0.995

    def test_phase_hours_axis(self):
        phases = [p.phase for p in self.synthesizer.phase_hours()]
        assert phases[0] == pytest.approx(-5.0)
        assert phases[40] == pytest.approx(0.0)
        assert max(phases) < 5.0


class TestSyntheticDetectionGenerator:
    """Test detection record generation"""

    def test_status_follows_probability(self, generator):
        for i in range(200):
            record = generator.build_record(str(1000 + i), 1)
            assert record.status is classify_probability(record.probability)

    def test_label_presence_rules(self, generator):
        for i in range(200):
            record = generator.build_record(str(2000 + i), 1)

            if record.status is DetectionStatus.EXOPLANET:
                assert record.planet_type is planet_type_for_radius(record.planet_radius)
                assert record.false_positive_type is None
            elif record.status is DetectionStatus.FALSE_POSITIVE:
                assert record.false_positive_type is not None
                assert record.planet_type is None
            else:
                assert record.planet_type is None
                assert record.false_positive_type is None

    def test_period_matches_tce(self, generator):
        record = generator.build_record('12345679', 1)
        assert record.period == record.tce.period

    def test_feature_importances_sorted(self, generator):
        record = generator.build_record('12345679', 1)
        values = [f.importance for f in record.feature_importances]
        assert values == sorted(values, reverse=True)

    def test_not_idempotent(self, generator):
        first = generator.build_record('12345679', 1)
        second = generator.build_record('12345679', 1)

        assert first.key == second.key
        assert first.probability != second.probability

    def test_gas_giant_override(self, fast_config):
        generator = SyntheticDetectionGenerator(fast_config)

        record = asyncio.run(
            generator.generate("TIC 12345679", 1, {'status': 'exoplanet', 'planetType': 'Gas Giant'})
        )

        assert record.status is DetectionStatus.EXOPLANET
        assert record.planet_type is PlanetType.GAS_GIANT
        assert record.probability > 0.99
        assert 6.0 <= record.planet_radius < 12.0

    @pytest.mark.parametrize("status,low,high", [
        ('exoplanet', 0.99, 1.0),
        ('candidate', 0.50, 0.99),
        ('false-positive', 0.0, 0.49),
    ])
    def test_status_override_ranges(self, generator, status, low, high):
        for i in range(50):
            record = generator.build_record(str(3000 + i), 2, {'status': status})
            assert record.status.value == status
            assert low <= record.probability <= high

    def test_non_numeric_target(self, generator):
        record = generator.build_record('Kepler', 1)

        assert record.target_id == 'TIC Kepler'
        assert len(record.light_curve) == 100

    def test_target_id_canonicalized(self, generator):
        assert generator.build_record('12345679', 1).target_id == 'TIC 12345679'
        assert generator.build_record('kic 10000000', 1).target_id == 'KIC 10000000'

    def test_default_mission_prefix(self, rng):
        generator = SyntheticDetectionGenerator(
            GeneratorConfig(latency_seconds=0.0, default_mission_prefix='KIC'), rng=rng
        )
        assert generator.build_record('757450', 1).target_id == 'KIC 757450'

    def test_seeded_generators_reproduce(self):
        config = GeneratorConfig(latency_seconds=0.0, seed=123)
        first = SyntheticDetectionGenerator(config).build_record('25155310', 4)
        second = SyntheticDetectionGenerator(config).build_record('25155310', 4)

        first_payload = first.to_dict()
        second_payload = second.to_dict()
        first_payload.pop('analyzedAt')
        second_payload.pop('analyzedAt')

        assert first_payload == second_payload

    def test_generated_count(self, generator):
        generator.build_record('1', 1)
        generator.build_record('2', 1)
        assert generator.generated_count == 2

    @pytest.mark.parametrize("target_id,sector", [
        ('', 1),
        ('   ', 1),
        ('12345679', 0),
        ('12345679', -1),
    ])
    def test_invalid_requests(self, generator, target_id, sector):
        with pytest.raises(InvalidInputError):
            asyncio.run(generator.generate(target_id, sector))
        assert generator.generated_count == 0

    def test_invalid_override_label(self, generator):
        with pytest.raises(InvalidInputError, match="Unknown PlanetType"):
            generator.build_record('12345679', 1, {'planet_type': 'Hot Jupiter'})

    def test_inconsistent_overrides(self, generator):
        with pytest.raises(InvalidInputError):
            generator.build_record('12345679', 1, {'status': 'candidate', 'planet_type': 'Gas Giant'})

    def test_latency_applied(self, rng):
        generator = SyntheticDetectionGenerator(GeneratorConfig(latency_seconds=0.05), rng=rng)

        loop_time = []

        async def run():
            loop = asyncio.get_running_loop()
            start = loop.time()
            await generator.generate('12345679', 1)
            loop_time.append(loop.time() - start)

        asyncio.run(run())
        assert loop_time[0] >= 0.04

    def test_batch_preserves_order(self, generator):
        requests = [('300', 1), ('100', 2), ('200', 3, {'status': 'candidate'})]

        records = asyncio.run(generator.generate_batch(requests))

        assert [r.key for r in records] == [('TIC 300', 1), ('TIC 100', 2), ('TIC 200', 3)]
        assert records[2].status is DetectionStatus.CANDIDATE

    @pytest.mark.parametrize("bad_request", [
        ('', 1),
        ('400', 0),
        ('500', 1, {'status': 'candidate', 'planet_type': 'Gas Giant'}),
    ])
    def test_batch_rejected_before_generation(self, generator, bad_request):
        requests = [('100', 1), ('200', 2, {'status': 'exoplanet'}), bad_request, ('300', 3)]

        with pytest.raises(InvalidInputError):
            asyncio.run(generator.generate_batch(requests))

        assert generator.generated_count == 0

    def test_batch_accepts_generator_input(self, generator):
        records = asyncio.run(generator.generate_batch((str(i), 1) for i in range(3)))
        assert [r.target_id for r in records] == ['TIC 0', 'TIC 1', 'TIC 2']

    @pytest.mark.slow
    def test_batch_runs_concurrently(self, rng):
        generator = SyntheticDetectionGenerator(GeneratorConfig(latency_seconds=0.2), rng=rng)
        elapsed = []

        async def run():
            loop = asyncio.get_running_loop()
            start = loop.time()
            await generator.generate_batch([(str(i), 1) for i in range(10)])
            elapsed.append(loop.time() - start)

        asyncio.run(run())
        assert elapsed[0] < 1.0
