"""Delimited table adapter.

Loads user-supplied signals from CSV/TSV files: one column per channel, one
row per sample, with an optional time column used to infer the sample rate.
"""

import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from trialdata.data.records import RawSignalRecord
from trialdata.exceptions import ParseError

from .base_adapter import BaseAdapter

logger = logging.getLogger(__name__)

_TIME_COLUMNS = ("time", "timestamp", "t")


class TableAdapter(BaseAdapter):
    """Adapter for CSV/TSV signal tables.

    Params:
        sample_rate: Sample rate in Hz (inferred from the time column if omitted)
        time_column: Name of the time column (default: first of time/timestamp/t)
        duration: Recording duration in seconds (default: n_samples / sample_rate)
    """

    NAME = "table"
    EXTENSIONS = {".csv", ".tsv"}

    @classmethod
    def _parse(cls, path: Path, params: dict[str, Any]) -> RawSignalRecord:
        sep = "\t" if path.suffix.lower() == ".tsv" else ","
        df = pd.read_csv(path, sep=sep)
        if df.empty:
            raise ParseError(f"No rows in {path.name}")

        time_column = params.get("time_column")
        if time_column is None:
            time_column = next((c for c in df.columns if str(c).lower() in _TIME_COLUMNS), None)
        elif time_column not in df.columns:
            raise ParseError(f"Time column '{time_column}' not in {list(df.columns)}")

        sample_rate = params.get("sample_rate")
        if time_column is not None:
            times = df.pop(time_column).to_numpy(dtype=np.float64)
            if sample_rate is None and len(times) > 1:
                sample_rate = 1.0 / float(np.median(np.diff(times)))

        non_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
        if non_numeric:
            raise ParseError(f"Non-numeric columns in {path.name}: {non_numeric}")

        duration = params.get("duration")
        if duration is None and sample_rate:
            duration = len(df) / float(sample_rate)

        logger.debug(f"Loaded table {path.name}: {df.shape}")
        return RawSignalRecord(
            data=df.to_numpy(dtype=np.float64),
            labels=[str(c) for c in df.columns],
            sample_rate=float(sample_rate) if sample_rate else None,
            duration=duration,
        )
