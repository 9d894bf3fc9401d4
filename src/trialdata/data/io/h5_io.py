"""
Core H5 I/O operations.

Saving and loading TrialData structures, and caching parsed RawSignalRecords
so large spike files are not re-parsed on every conversion.
"""

import json
import logging
from pathlib import Path
from typing import Any

import h5py
import numpy as np

from trialdata.data.records import RawSignalRecord
from trialdata.utils.serialization import jsonify

logger = logging.getLogger(__name__)

_FIELD_ORDER_ATTR = "__field_order__"
_SCALARS_ATTR = "__scalars__"
_SUMMARY_ATTR = "__conversion_summary__"
_KIND_ATTR = "kind"


def _is_label_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def save_trial_data(path: str | Path, trial_data: dict[str, Any], summary: Any = None) -> None:
    """
    Save a TrialData mapping to an H5 file.

    Arrays become datasets, string lists become string datasets, and all other
    fields are stored together as a JSON attribute. Field order is preserved.

    Args:
        path: Output H5 path (overwritten)
        trial_data: TrialData mapping
        summary: Optional ConversionSummary stored alongside
    """
    scalars = {}
    with h5py.File(path, "w") as h5f:
        for name, value in trial_data.items():
            if isinstance(value, np.ndarray) and value.dtype.kind in "biuf":
                ds = h5f.create_dataset(name, data=value)
                ds.attrs[_KIND_ATTR] = "array"
            elif _is_label_list(value):
                ds = h5f.create_dataset(name, data=np.array(value, dtype=h5py.string_dtype()))
                ds.attrs[_KIND_ATTR] = "labels"
            else:
                scalars[name] = value

        h5f.attrs[_FIELD_ORDER_ATTR] = json.dumps(list(trial_data.keys()))
        h5f.attrs[_SCALARS_ATTR] = json.dumps(jsonify(scalars))
        if summary is not None:
            h5f.attrs[_SUMMARY_ATTR] = json.dumps(jsonify(summary))

    logger.info(f"Saved TrialData with {len(trial_data)} fields to {path}")


def load_trial_data(path: str | Path) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """
    Load a TrialData mapping saved by save_trial_data.

    Returns:
        (trial_data, summary dict or None)
    """
    with h5py.File(path, "r") as h5f:
        order = json.loads(h5f.attrs[_FIELD_ORDER_ATTR])
        scalars = json.loads(h5f.attrs[_SCALARS_ATTR])
        summary = json.loads(h5f.attrs[_SUMMARY_ATTR]) if _SUMMARY_ATTR in h5f.attrs else None

        fields: dict[str, Any] = {}
        for name in h5f.keys():
            ds = h5f[name]
            if ds.attrs.get(_KIND_ATTR) == "labels":
                fields[name] = [str(v) for v in ds.asstr()[()]]
            else:
                fields[name] = ds[()]

    fields.update(scalars)
    trial_data = {name: fields[name] for name in order if name in fields}
    logger.debug(f"Loaded TrialData with {len(trial_data)} fields from {path}")
    return trial_data, summary


def save_record(path: str | Path, record: RawSignalRecord) -> None:
    """Cache a parsed RawSignalRecord to H5."""
    with h5py.File(path, "w") as h5f:
        if record.is_spike_record:
            h5f.attrs[_KIND_ATTR] = "spikes"
            h5f.create_dataset("labels", data=np.array(record.labels, dtype=np.int64).reshape(-1, 2))
            units = h5f.create_group("units")
            for i, spike_times in enumerate(record.data):
                units.create_dataset(str(i), data=np.asarray(spike_times, dtype=np.float64))
        else:
            h5f.attrs[_KIND_ATTR] = "continuous"
            h5f.create_dataset("data", data=record.data)
            h5f.create_dataset("labels", data=np.array(record.labels, dtype=h5py.string_dtype()))

        if record.sample_rate is not None:
            h5f.attrs["sample_rate"] = record.sample_rate
        if record.duration is not None:
            h5f.attrs["duration"] = record.duration
        h5f.attrs["metadata"] = json.dumps(jsonify(record.metadata))

    logger.debug(f"Cached record ({record.n_channels} channels) to {path}")


def load_record(path: str | Path) -> RawSignalRecord:
    """Load a RawSignalRecord cached by save_record."""
    with h5py.File(path, "r") as h5f:
        if h5f.attrs[_KIND_ATTR] == "spikes":
            labels = [tuple(int(v) for v in row) for row in h5f["labels"][()]]
            data = [h5f["units"][str(i)][()] for i in range(len(labels))]
        else:
            data = h5f["data"][()]
            labels = [str(v) for v in h5f["labels"].asstr()[()]]

        sample_rate = float(h5f.attrs["sample_rate"]) if "sample_rate" in h5f.attrs else None
        duration = float(h5f.attrs["duration"]) if "duration" in h5f.attrs else None
        metadata = json.loads(h5f.attrs["metadata"])

    return RawSignalRecord(
        data=data, labels=labels, sample_rate=sample_rate, duration=duration, metadata=metadata
    )
