"""
trialdata processing - extraction, binning, aggregation, alignment and metadata merging.

Import stages directly:
- `from trialdata.processing.pipeline import convert`
- `from trialdata.processing.binning import bin_signal, BINNER_REGISTRY`
- `from trialdata.processing.centering import center_signals`
"""

__all__ = []
