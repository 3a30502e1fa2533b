"""
ExoMiner Demo: simulated exoplanet detection results
An educational dashboard backend modeled after TESS/Kepler vetting workflows.
"""

__version__ = "1.0.0"
__author__ = "NASA Space Apps 2025 Team"
