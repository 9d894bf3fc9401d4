"""
trialdata - Convert heterogeneous neurophysiology recordings into time-aligned trial data.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

try:
    __version__ = version("trialdata")
except PackageNotFoundError:
    __version__ = "unknown"

# Project paths (src/trialdata/__init__.py -> parents[2] -> project root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"

from trialdata.data.schemas import (
    ConversionParams,
    ConversionSummary,
    EMGFilterConfig,
    SignalSpec,
    SignalType,
    SourceFileSpec,
)
from trialdata.processing.centering import center_signals
from trialdata.processing.pipeline import convert

__all__ = [
    "PROJECT_ROOT",
    "DATA_DIR",
    "convert",
    "center_signals",
    "ConversionParams",
    "ConversionSummary",
    "EMGFilterConfig",
    "SignalSpec",
    "SignalType",
    "SourceFileSpec",
]
