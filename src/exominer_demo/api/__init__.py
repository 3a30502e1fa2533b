"""HTTP API for the detection dashboard."""

from .endpoints import DetectionAPI, create_api

__all__ = ['DetectionAPI', 'create_api']
