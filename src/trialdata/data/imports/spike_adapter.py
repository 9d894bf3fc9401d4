"""Spike event adapter.

Loads spike-sorted events stored as parallel ``channel`` / ``unit`` /
``timestamp`` arrays in an ``.npz`` archive and turns them into one spike-time
list per (channel, unit).
"""

import logging
from pathlib import Path
from typing import Any

import numpy as np

from trialdata.data.records import RawSignalRecord
from trialdata.exceptions import ParseError

from .base_adapter import BaseAdapter

logger = logging.getLogger(__name__)

_REQUIRED_KEYS = ("channel", "unit", "timestamp")
_KNOWN_KEYS = set(_REQUIRED_KEYS) | {"time_resolution", "duration", "sample_rate"}


def split_units(
    channels: np.ndarray,
    units: np.ndarray,
    spike_times: np.ndarray,
    spiking_channels: list[int] | None = None,
    exclude_units: list[int] | set[int] | None = None,
    strip_sort: bool = False,
) -> tuple[list[np.ndarray], list[tuple[int, int]]]:
    """Group spike times by (channel, unit).

    Args:
        channels: Electrode of each spike
        units: Sort code of each spike
        spike_times: Time of each spike in seconds
        spiking_channels: Channels to keep, in output order (default: all, ascending)
        exclude_units: Sort codes to drop before grouping
        strip_sort: Merge the remaining units of a channel into unit 0

    Returns:
        (spike time arrays, (channel, unit) labels), one entry per unit
    """
    if spiking_channels is None:
        spiking_channels = np.unique(channels).tolist()
    excluded = np.isin(units, list(exclude_units or []))

    data: list[np.ndarray] = []
    labels: list[tuple[int, int]] = []
    for channel in spiking_channels:
        chan_mask = (channels == channel) & ~excluded
        if not chan_mask.any():
            continue

        if strip_sort:
            labels.append((int(channel), 0))
            data.append(np.sort(spike_times[chan_mask]))
            continue

        for unit in np.unique(units[chan_mask]):
            labels.append((int(channel), int(unit)))
            data.append(np.sort(spike_times[chan_mask & (units == unit)]))

    return data, labels


class SpikeEventAdapter(BaseAdapter):
    """Adapter for spike-sorted event archives.

    The archive holds ``channel``, ``unit`` and ``timestamp`` arrays (one entry
    per spike) plus optional ``time_resolution`` (timestamp ticks per second,
    default 1), ``duration`` and ``sample_rate`` scalars. Other scalars become
    record metadata.

    Params:
        spiking_channels: Channels to keep (default: all)
        exclude_units: Sort codes to drop
        strip_sort: Collapse sort codes per channel
        read_waveforms: Accepted for compatibility; waveforms are not loaded
    """

    NAME = "spikes"
    EXTENSIONS = {".npz"}

    @classmethod
    def _parse(cls, path: Path, params: dict[str, Any]) -> RawSignalRecord:
        with np.load(path, allow_pickle=False) as archive:
            missing = [key for key in _REQUIRED_KEYS if key not in archive.files]
            if missing:
                raise ParseError(f"{path.name} is missing spike arrays: {missing}")

            channels = archive["channel"].astype(np.int64).ravel()
            units = archive["unit"].astype(np.int64).ravel()
            timestamps = archive["timestamp"].astype(np.float64).ravel()
            if not (len(channels) == len(units) == len(timestamps)):
                raise ParseError(
                    f"{path.name}: channel/unit/timestamp lengths differ "
                    f"({len(channels)}, {len(units)}, {len(timestamps)})"
                )

            time_resolution = float(archive["time_resolution"]) if "time_resolution" in archive.files else 1.0
            duration = float(archive["duration"]) if "duration" in archive.files else None
            sample_rate = float(archive["sample_rate"]) if "sample_rate" in archive.files else time_resolution
            metadata = {
                key: archive[key].item()
                for key in archive.files
                if key not in _KNOWN_KEYS and archive[key].ndim == 0
            }

        if params.get("read_waveforms"):
            logger.warning("Spike waveforms requested but not implemented; skipping")

        data, labels = split_units(
            channels,
            units,
            timestamps / time_resolution,
            spiking_channels=params.get("spiking_channels"),
            exclude_units=params.get("exclude_units"),
            strip_sort=params.get("strip_sort", False),
        )
        logger.debug(f"Found {len(labels)} units on {len({c for c, _ in labels})} channels in {path.name}")

        return RawSignalRecord(
            data=data, labels=labels, sample_rate=sample_rate, duration=duration, metadata=metadata
        )
