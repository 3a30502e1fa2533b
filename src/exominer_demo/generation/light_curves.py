"""
Synthetic light-curve generation for simulated detections.

Produces a raw flux series with a box-shaped transit dip plus two
phase-folded views (orbital phase in days and hours around mid-transit).
Each call draws fresh noise.
"""

from typing import Tuple

import numpy as np

from ..data.types import GeneratorConfig, LightCurvePoint, PhasePoint


class LightCurveSynthesizer:
    """
    Builds the light-curve series attached to a detection record.

    Features:
    - Sinusoidal stellar variability with a target-dependent phase offset
    - Uniform photometric noise
    - Box transit injected inside a fixed cadence window
    - Folded curves with the dip centered at phase 0
    """

    def __init__(self, config: GeneratorConfig, rng: np.random.Generator):
        """
        Initialize light-curve synthesizer.

        Args:
            config: Generator configuration with series lengths and amplitudes
            rng: Random source for noise
        """
        self.config = config
        self.rng = rng

    def raw_flux(self, seed: float) -> np.ndarray:
        """
        Generate the raw flux series.

        Args:
            seed: Phase offset of the stellar variability term

        Returns:
            Flux array of length config.light_curve_points
        """
        cfg = self.config
        index = np.arange(cfg.light_curve_points)

        variability = np.sin(index / 10 + seed) * cfg.light_curve_amplitude
        noise = (self.rng.random(cfg.light_curve_points) - 0.5) * cfg.light_curve_noise

        start, end = cfg.transit_window
        in_transit = (index > start) & (index < end)

        return cfg.light_curve_baseline + variability + noise - np.where(in_transit, cfg.transit_dip, 0.0)

    def folded_flux(self, n_points: int, halfwidth: int) -> np.ndarray:
        """Normalized folded flux with the dip centered on the middle sample."""
        index = np.arange(n_points)
        noise = (self.rng.random(n_points) - 0.5) * self.config.phase_noise
        in_transit = np.abs(index - n_points // 2) < halfwidth
        return 1.0 + noise - np.where(in_transit, self.config.phase_dip, 0.0)

    def light_curve(self, seed: float) -> Tuple[LightCurvePoint, ...]:
        flux = self.raw_flux(seed)
        return tuple(
            LightCurvePoint(time=float(i), flux=float(value))
            for i, value in enumerate(flux)
        )

    def phase_days(self) -> Tuple[PhasePoint, ...]:
        """Folded curve over orbital phase -1 to 1."""
        n_points = self.config.phase_days_points
        phase = np.arange(n_points) / n_points * 2 - 1
        flux = self.folded_flux(n_points, self.config.phase_days_halfwidth)
        return tuple(PhasePoint(phase=float(p), flux=float(f)) for p, f in zip(phase, flux))

    def phase_hours(self) -> Tuple[PhasePoint, ...]:
        """Folded curve over hours from mid-transit."""
        n_points = self.config.phase_hours_points
        span = self.config.phase_hours_span
        phase = np.arange(n_points) / n_points * span - span / 2
        flux = self.folded_flux(n_points, self.config.phase_hours_halfwidth)
        return tuple(PhasePoint(phase=float(p), flux=float(f)) for p, f in zip(phase, flux))
