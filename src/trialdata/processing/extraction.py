"""
Signal extraction: narrow a parsed source record to the columns one signal asks for.
"""

from collections.abc import Sequence
from typing import Any

import numpy as np

from trialdata.data.records import ExtractedSignal, RawSignalRecord
from trialdata.data.schemas import SignalSpec
from trialdata.exceptions import AmbiguousSelectorError, InvariantViolationError, LabelNotFoundError
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)


def _is_integer(value: Any) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _is_unit_pair(value: Any) -> bool:
    return isinstance(value, tuple) and len(value) == 2 and all(_is_integer(v) for v in value)


def _selector_items(selector: Any, has_unit_labels: bool) -> list:
    """Flatten a selector into a list of label keys or indices."""
    if isinstance(selector, str) or _is_integer(selector):
        return [selector]
    if has_unit_labels and _is_unit_pair(selector):
        return [selector]
    if isinstance(selector, np.ndarray):
        if selector.ndim != 1:
            raise AmbiguousSelectorError(f"Index arrays must be 1-D, got shape {selector.shape}")
        return selector.tolist()
    if isinstance(selector, (Sequence, range)):
        return list(selector)
    raise AmbiguousSelectorError(f"Cannot interpret label selector {selector!r}")


def resolve_selector(selector: Any, labels: list, n_columns: int) -> list[int]:
    """
    Resolve a label selector to zero-based column indices.

    Args:
        selector: None (all columns), label name(s), (channel, unit) pair(s),
            or a zero-based index set
        labels: Labels of the source record
        n_columns: Number of columns (or units) in the source record

    Returns:
        Column indices in request order
    """
    if selector is None:
        return list(range(n_columns))

    has_unit_labels = any(isinstance(label, tuple) for label in labels)
    items = _selector_items(selector, has_unit_labels)
    if not items:
        return list(range(n_columns))

    if all(isinstance(item, str) for item in items) or (
        has_unit_labels and all(_is_unit_pair(item) for item in items)
    ):
        keys = [item if isinstance(item, str) else tuple(int(v) for v in item) for item in items]
        positions: dict = {}
        for i, label in enumerate(labels):
            positions.setdefault(label, i)
        missing = [key for key in keys if key not in positions]
        if missing:
            raise LabelNotFoundError(f"Label(s) {missing} not found. Available: {labels}")
        return [positions[key] for key in keys]

    if all(_is_integer(item) for item in items):
        indices = [int(item) for item in items]
        out_of_range = [i for i in indices if not 0 <= i < n_columns]
        if out_of_range:
            raise LabelNotFoundError(
                f"Column index(es) {out_of_range} out of range for {n_columns} columns"
            )
        return indices

    raise AmbiguousSelectorError(
        f"Label selector {selector!r} must be label names or one set of integer indices"
    )


def _apply_transform(spec: SignalSpec, data: np.ndarray, labels: list) -> tuple[np.ndarray, list]:
    """Run the channels-major transform and restore (samples, channels) layout."""
    out = np.asarray(spec.transform(data.T.copy()))
    if out.ndim == 1:
        out = out[np.newaxis, :]
    out = out.T

    if out.shape[1] != len(labels):
        logger.debug(f"Transform on '{spec.name}' changed channels {len(labels)} -> {out.shape[1]}")
        labels = [spec.name] if out.shape[1] == 1 else [f"{spec.name}_{i}" for i in range(out.shape[1])]
    return out, labels


def extract_signal(record: RawSignalRecord, spec: SignalSpec) -> ExtractedSignal:
    """
    Extract one requested signal from a parsed record.

    The record is never modified; selected data is copied.

    Args:
        record: Parsed source record
        spec: Requested signal

    Returns:
        ExtractedSignal carrying the selected columns and the record's rate, duration and metadata
    """
    indices = resolve_selector(spec.label_selector, record.labels, record.n_channels)
    labels = [record.labels[i] for i in indices]

    if record.is_spike_record:
        if spec.transform is not None:
            raise InvariantViolationError(f"Cannot transform spike-time lists ({spec.name})")
        data = [np.array(record.data[i], dtype=np.float64) for i in indices]
    else:
        data = record.data[:, indices]
        if spec.transform is not None:
            data, labels = _apply_transform(spec, data, labels)

    logger.debug(f"Extracted '{spec.name}' ({spec.type}): {len(labels)} channels")
    return ExtractedSignal(
        name=spec.name,
        type=spec.type,
        data=data,
        labels=labels,
        sample_rate=record.sample_rate,
        duration=record.duration,
        metadata=dict(record.metadata),
    )
