"""
trialdata Data Module

Import classes directly from submodules:
- `from trialdata.data.records import RawSignalRecord`
- `from trialdata.data.schemas import SignalSpec, SourceFileSpec, ConversionParams`
- `from trialdata.data.imports import load_file`
"""

from .records import BinnedSignal, ExtractedSignal, RawSignalRecord

__all__ = ["BinnedSignal", "ExtractedSignal", "RawSignalRecord"]
