"""
Time alignment: trim every timed field to the shortest time axis, then index triggers and events.
"""

from typing import Any

import numpy as np

from trialdata.constants import EVENT_PREFIX, LABEL_SUFFIXES, TIME_AXIS_SUFFIX
from trialdata.exceptions import InvariantViolationError
from trialdata.processing.aggregation import AggregatedSignals
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)


def time_axis_fields(trial_data: dict[str, Any]) -> list[str]:
    """Names of fields holding a time axis (``*_t``)."""
    return [name for name in trial_data if name.endswith(TIME_AXIS_SUFFIX)]


def align_time(trial_data: dict[str, Any]) -> int | None:
    """
    Truncate all timed fields to the shortest time axis and drop the time axes.

    Modifies ``trial_data`` in place. Label companions (``*_names``,
    ``*_unit_guide``) index channels and are left untouched.

    Returns:
        Common row count, or None when there are no time axes
    """
    t_fields = time_axis_fields(trial_data)
    if not t_fields:
        logger.debug("No time axes to align")
        return None

    t_min = min(len(trial_data[name]) for name in t_fields)

    for name, value in list(trial_data.items()):
        if name in t_fields or name.endswith(LABEL_SUFFIXES):
            continue
        if isinstance(value, np.ndarray) and value.ndim >= 1 and value.shape[0] > t_min:
            logger.debug(f"Trimming '{name}' from {value.shape[0]} to {t_min} rows")
            trial_data[name] = value[:t_min]

    for name in t_fields:
        del trial_data[name]

    logger.info(f"Aligned {len(t_fields)} time axes to {t_min} bins")
    return t_min


def _as_index_array(values: Any) -> np.ndarray:
    """Flatten precomputed event indices, as integers when they are whole numbers."""
    arr = np.asarray(values)
    if arr.ndim == 2 and arr.shape[1] == 1:
        arr = arr.ravel()
    if arr.dtype.kind == "f" and arr.size and np.all(np.isfinite(arr)) and np.all(arr == np.round(arr)):
        arr = arr.astype(np.int64)
    return arr


def index_events(aggregated: AggregatedSignals, t_min: int | None) -> dict[str, np.ndarray]:
    """
    Build ``idx_{name}`` fields for triggers and events.

    Trigger indices are the nonzero bins within the first ``t_min`` bins, so
    they are expressed in post-alignment bin coordinates. Event indices are
    passed through.

    Returns:
        Mapping of ``idx_{name}`` to index arrays
    """
    indices: dict[str, np.ndarray] = {}

    def _store(name: str, value: np.ndarray) -> None:
        key = f"{EVENT_PREFIX}{name}"
        if key in indices or key in aggregated.trial_data:
            raise InvariantViolationError(f"Field '{key}' is produced by more than one signal")
        indices[key] = value

    for sig in aggregated.triggers:
        counts = np.asarray(sig.values).sum(axis=1)
        if t_min is not None:
            counts = counts[:t_min]
        _store(sig.name, np.flatnonzero(counts))

    for sig in aggregated.events:
        _store(sig.name, _as_index_array(sig.values))

    return indices
