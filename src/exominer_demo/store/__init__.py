"""Session storage for detection records."""

from .accumulator import ResultAccumulator

__all__ = ['ResultAccumulator']
