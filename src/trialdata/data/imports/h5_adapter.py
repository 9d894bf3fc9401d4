"""H5 file adapter.

Loads continuous data from HDF5 files with channel labels stored as dataset
attributes, and file-level attributes as record metadata.
"""

import ast
import logging
from pathlib import Path
from typing import Any

import h5py
import numpy as np

from trialdata.data.records import RawSignalRecord
from trialdata.exceptions import ParseError

from .base_adapter import BaseAdapter

logger = logging.getLogger(__name__)

# Columns to filter out from channel data
_METADATA_COLUMNS = {"timestamp", "local_timestamp"}


def _find_data_datasets(h5_file: h5py.File) -> list[str]:
    """Find 2-D or structured data datasets (not Event* datasets) in H5 file."""
    return [
        k
        for k in h5_file.keys()
        if not k.startswith("Event") and isinstance(h5_file[k], h5py.Dataset) and h5_file[k].ndim in (1, 2)
    ]


def _decode_value(value: Any) -> Any:
    """Decode bytes to str and numpy scalars to Python scalars."""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    if isinstance(value, np.generic):
        return value.item()
    return value


class H5Adapter(BaseAdapter):
    """Adapter for continuous HDF5 recordings.

    Params:
        dataset: Dataset name (default: first data dataset)
        sample_rate: Fallback sample rate when the file stores none
    """

    NAME = "h5"
    EXTENSIONS = {".h5", ".hdf5"}

    @classmethod
    def _parse(cls, path: Path, params: dict[str, Any]) -> RawSignalRecord:
        with h5py.File(path, "r") as f:
            ds_name = params.get("dataset")
            if ds_name is None:
                data_datasets = _find_data_datasets(f)
                if not data_datasets:
                    raise ParseError(f"No data datasets found in {path.name}")
                ds_name = data_datasets[0]
            elif ds_name not in f:
                raise ParseError(f"Dataset '{ds_name}' not found. Available: {list(f.keys())}")

            ds = f[ds_name]
            ds_data = ds[()]

            if ds_data.dtype.names:
                labels = [name for name in ds_data.dtype.names if name.lower() not in _METADATA_COLUMNS]
                data = np.column_stack([ds_data[label].astype(np.float64) for label in labels])
            else:
                data = np.asarray(ds_data, dtype=np.float64)
                if data.ndim == 1:
                    data = data[:, np.newaxis]
                if "channel_labels" in ds.attrs:
                    labels = cls._decode_labels(ds.attrs["channel_labels"])
                else:
                    labels = [f"ch_{i}" for i in range(data.shape[1])]
                if len(labels) != data.shape[1]:
                    raise ParseError(
                        f"{path.name}:{ds_name} has {data.shape[1]} columns but {len(labels)} labels"
                    )
                keep = [i for i, label in enumerate(labels) if label.lower() not in _METADATA_COLUMNS]
                data = data[:, keep]
                labels = [labels[i] for i in keep]

            sample_rate = ds.attrs.get("sampling_frequency", ds.attrs.get("sample_rate"))
            if sample_rate is None:
                sample_rate = f.attrs.get("sample_rate", params.get("sample_rate"))
            if sample_rate is None:
                raise ParseError(f"No sample rate stored in {path.name} and none given")
            sample_rate = float(sample_rate)

            duration = ds.attrs.get("duration")
            duration = float(duration) if duration is not None else data.shape[0] / sample_rate

            metadata = {
                key: _decode_value(value)
                for key, value in f.attrs.items()
                if key not in ("sample_rate", "sampling_frequency") and np.ndim(value) == 0
            }

        logger.debug(f"Loaded {ds_name}: {data.shape[0]} samples x {data.shape[1]} channels @ {sample_rate} Hz")
        return RawSignalRecord(
            data=data, labels=labels, sample_rate=sample_rate, duration=duration, metadata=metadata
        )

    @staticmethod
    def _decode_labels(labels) -> list[str]:
        """Decode channel labels from H5 attributes."""
        if isinstance(labels, (bytes, str)):
            text = labels.decode("utf-8") if isinstance(labels, bytes) else labels
            try:
                return [str(label) for label in ast.literal_eval(text)]
            except (ValueError, SyntaxError):
                return [text]

        return [l.decode("utf-8") if isinstance(l, bytes) else str(l) for l in labels]
