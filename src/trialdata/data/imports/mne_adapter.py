"""MNE-readable file adapter.

Loads continuous recordings in any format ``mne.io.read_raw`` understands
(FIF, EDF/BDF, BrainVision, EEGLAB).
"""

import logging
from pathlib import Path
from typing import Any

import mne
import numpy as np

from trialdata.data.records import RawSignalRecord

from .base_adapter import BaseAdapter

logger = logging.getLogger(__name__)


class MNEAdapter(BaseAdapter):
    """Adapter for MNE-readable continuous recordings.

    Params:
        picks: Channel names or types to keep (default: all channels)
    """

    NAME = "mne"
    EXTENSIONS = {".fif", ".edf", ".bdf", ".vhdr", ".set"}

    @classmethod
    def _parse(cls, path: Path, params: dict[str, Any]) -> RawSignalRecord:
        raw = mne.io.read_raw(path, preload=True, verbose=False)

        picks = params.get("picks")
        if picks is not None:
            raw.pick(picks)

        sample_rate = float(raw.info["sfreq"])
        data = raw.get_data().T.astype(np.float64)  # (samples, channels)

        metadata: dict[str, Any] = {}
        if raw.info.get("meas_date") is not None:
            metadata["meas_date"] = raw.info["meas_date"].isoformat()
        if raw.info.get("experimenter"):
            metadata["experimenter"] = raw.info["experimenter"]

        logger.debug(f"Loaded {len(raw.ch_names)} channels from {path.name} @ {sample_rate} Hz")
        return RawSignalRecord(
            data=data,
            labels=list(raw.ch_names),
            sample_rate=sample_rate,
            duration=raw.n_times / sample_rate,
            metadata=metadata,
        )
