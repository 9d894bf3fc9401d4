"""
Metadata merging and canonical field ordering for TrialData.
"""

from collections.abc import Mapping
from typing import Any

import numpy as np

from trialdata.constants import (
    BIN_SIZE_FIELD,
    EVENT_PREFIX,
    LABEL_SUFFIXES,
    LEADING_META_FIELDS,
    SPIKES_SUFFIX,
)
from trialdata.data.records import BinnedSignal
from trialdata.data.schemas import SignalType
from trialdata.processing.aggregation import meta_signal_fields
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)

# Sort groups
_LEADING, _META, _BIN_SIZE, _EVENTS, _SIGNALS = range(5)


def _signal_base(name: str) -> tuple[str, int]:
    """Base name shared by a signal and its label companion, and its rank within the pair."""
    for suffix in LABEL_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)], 1
    if name.endswith(SPIKES_SUFFIX):
        return name[: -len(SPIKES_SUFFIX)], 0
    return name, 0


def _field_sort_key(name: str, value: Any) -> tuple[int, int, str, int, str]:
    if name in LEADING_META_FIELDS:
        return (_LEADING, LEADING_META_FIELDS.index(name), "", 0, name)
    if name == BIN_SIZE_FIELD:
        return (_BIN_SIZE, 0, "", 0, name)
    if name.startswith(EVENT_PREFIX):
        return (_EVENTS, 0, name, 0, name)
    if name.endswith(LABEL_SUFFIXES) or (isinstance(value, np.ndarray) and value.ndim == 2):
        base, rank = _signal_base(name)
        return (_SIGNALS, 0, base, rank, name)
    return (_META, 0, name, 0, name)


def reorder_fields(trial_data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return TrialData with a canonical, stable key order.

    Identity metadata (monkey, date, task, ...) comes first, then other
    metadata alphabetically, ``bin_size``, ``idx_*`` fields, and finally
    signal arrays each followed by its label companion.
    """
    ordered = sorted(trial_data.items(), key=lambda item: _field_sort_key(*item))
    return dict(ordered)


def merge_metadata(
    trial_data: dict[str, Any],
    binned: list[BinnedSignal],
    global_meta: Mapping[str, Any] | None,
    bin_size: float,
) -> dict[str, Any]:
    """
    Fold per-signal and global metadata into TrialData.

    Per-signal metadata (and the fields carried by meta signals) is applied in
    processing order, last writer wins; global metadata then overrides it, and
    ``bin_size`` is set last.

    Returns:
        TrialData in canonical field order
    """
    for sig in binned:
        fields = dict(sig.metadata)
        if sig.type == SignalType.META.value:
            fields.update(meta_signal_fields(sig))
        for key, value in fields.items():
            if isinstance(trial_data.get(key), np.ndarray) and trial_data[key].ndim == 2:
                logger.warning(f"Metadata field '{key}' from '{sig.name}' overwrites a signal")
            trial_data[key] = value

    if global_meta:
        trial_data.update(global_meta)
    else:
        logger.warning("No global metadata provided")

    trial_data[BIN_SIZE_FIELD] = bin_size
    return reorder_fields(trial_data)
