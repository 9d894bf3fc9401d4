"""Shared record types passed between adapters, extractor and binner."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from trialdata.exceptions import InvariantViolationError, ParseError


def _as_labels(labels: Any) -> list:
    """Normalize labels to a list of str or (channel, unit) tuples."""
    if labels is None:
        return []
    if isinstance(labels, np.ndarray) and labels.ndim == 2:
        return [tuple(int(v) for v in row) for row in labels]
    out = []
    for label in labels:
        if isinstance(label, bytes):
            out.append(label.decode("utf-8"))
        elif isinstance(label, (tuple, list, np.ndarray)):
            out.append(tuple(int(v) for v in label))
        else:
            out.append(str(label))
    return out


@dataclass
class RawSignalRecord:
    """Standardized output from raw adapters.

    ``data`` is a (samples, channels) array for continuous sources, or a list
    of 1-D spike-time arrays (seconds), one per unit, for spike sources.
    """

    data: np.ndarray | list[np.ndarray]
    labels: list
    sample_rate: float | None = None
    duration: float | None = None  # seconds; resolved later when missing
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.labels = _as_labels(self.labels)
        if self.metadata is None:
            self.metadata = {}
        if not self.is_spike_record:
            data = np.asarray(self.data)
            if data.ndim == 1:
                data = data[:, np.newaxis]
            self.data = data

    @property
    def is_spike_record(self) -> bool:
        return isinstance(self.data, list)

    @property
    def n_channels(self) -> int:
        if self.is_spike_record:
            return len(self.data)
        return self.data.shape[1]

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "RawSignalRecord":
        """Build a record from a plain ``{duration, sample_rate, data, labels, metadata}`` mapping."""
        if "data" not in mapping:
            raise ParseError(f"Adapter output has no 'data' entry (keys: {list(mapping)})")
        data = mapping["data"]
        # A plain list holds per-unit spike times; anything else is a dense matrix
        if isinstance(data, list):
            data = [np.asarray(ts, dtype=np.float64).ravel() for ts in data]
        labels = mapping.get("labels")
        if labels is None:
            n = len(data) if isinstance(data, list) else (np.shape(data)[1] if np.ndim(data) == 2 else 1)
            labels = [f"ch_{i}" for i in range(n)]
        return cls(
            data=data,
            labels=labels,
            sample_rate=mapping.get("sample_rate"),
            duration=mapping.get("duration"),
            metadata=dict(mapping.get("metadata") or {}),
        )


@dataclass
class ExtractedSignal:
    """A source record narrowed to one requested signal."""

    name: str
    type: str
    data: np.ndarray | list[np.ndarray]
    labels: list
    sample_rate: float | None
    duration: float | None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class BinnedSignal:
    """A signal on the common bin grid (or untimed, for events and meta)."""

    name: str
    type: str
    values: np.ndarray
    labels: list
    time_axis: np.ndarray | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.time_axis is not None and len(self.values) != len(self.time_axis):
            raise InvariantViolationError(
                f"Signal '{self.name}' has {len(self.values)} rows but "
                f"{len(self.time_axis)} time bins"
            )

    @property
    def is_time_indexed(self) -> bool:
        return self.time_axis is not None
