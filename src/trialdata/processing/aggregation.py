"""
Grouping of binned signals into TrialData fields.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from trialdata.constants import (
    EMG_FIELD,
    LABEL_SUFFIXES,
    NAMES_SUFFIX,
    SPIKES_SUFFIX,
    TIME_AXIS_SUFFIX,
    UNIT_GUIDE_SUFFIX,
)
from trialdata.data.records import BinnedSignal
from trialdata.data.schemas import SignalType
from trialdata.exceptions import InvariantViolationError, UnsupportedSignalTypeError
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)


@dataclass
class AggregatedSignals:
    """TrialData fields for timed signals, plus index signals converted after alignment."""

    trial_data: dict[str, Any] = field(default_factory=dict)
    triggers: list[BinnedSignal] = field(default_factory=list)
    events: list[BinnedSignal] = field(default_factory=list)


def _set_new_field(trial_data: dict[str, Any], name: str, value: Any) -> None:
    if name in trial_data:
        raise InvariantViolationError(f"Field '{name}' is produced by more than one signal")
    trial_data[name] = value


def _add_spikes(trial_data: dict[str, Any], sig: BinnedSignal) -> None:
    """One spikes / unit guide / time axis triple per spike source."""
    _set_new_field(trial_data, f"{sig.name}{SPIKES_SUFFIX}", sig.values)
    _set_new_field(
        trial_data,
        f"{sig.name}{UNIT_GUIDE_SUFFIX}",
        np.array(sig.labels, dtype=np.int64).reshape(-1, 2),
    )
    _set_new_field(trial_data, f"{sig.name}{SPIKES_SUFFIX}{TIME_AXIS_SUFFIX}", sig.time_axis)


def _emg_column_names(sig: BinnedSignal) -> list[str]:
    if sig.values.shape[1] == 1:
        return [sig.name]
    return [f"{sig.name}_{label}" for label in sig.labels]


def _add_emg(trial_data: dict[str, Any], signals: list[BinnedSignal]) -> None:
    """Concatenate all EMG signals into one block sharing the first signal's time axis."""
    reference = signals[0]
    for sig in signals[1:]:
        if len(sig.time_axis) != len(reference.time_axis) or not np.allclose(
            sig.time_axis, reference.time_axis
        ):
            raise InvariantViolationError(
                f"EMG '{sig.name}' has {len(sig.time_axis)} bins but '{reference.name}' has "
                f"{len(reference.time_axis)}; EMG signals must share a time axis"
            )

    names: list[str] = []
    for sig in signals:
        names.extend(_emg_column_names(sig))

    _set_new_field(trial_data, EMG_FIELD, np.hstack([sig.values for sig in signals]))
    _set_new_field(trial_data, f"{EMG_FIELD}{NAMES_SUFFIX}", names)
    _set_new_field(trial_data, f"{EMG_FIELD}{TIME_AXIS_SUFFIX}", reference.time_axis)


def _add_generic(trial_data: dict[str, Any], sig: BinnedSignal) -> None:
    if sig.name.endswith(TIME_AXIS_SUFFIX):
        raise InvariantViolationError(
            f"Generic signal '{sig.name}' would be mistaken for a time axis"
        )
    if sig.name.endswith(LABEL_SUFFIXES):
        raise InvariantViolationError(
            f"Generic signal '{sig.name}' would be mistaken for a channel label list"
        )
    _set_new_field(trial_data, sig.name, sig.values)
    _set_new_field(trial_data, f"{sig.name}{TIME_AXIS_SUFFIX}", sig.time_axis)


def meta_signal_fields(sig: BinnedSignal) -> dict[str, Any]:
    """Fields carried by a meta signal: one per selected column, keyed by its label."""
    values = np.asarray(sig.values)
    if values.ndim == 1:
        values = values[:, np.newaxis]

    fields: dict[str, Any] = {}
    for i, label in enumerate(sig.labels):
        column = values[:, i]
        key = label if isinstance(label, str) else f"{sig.name}_{i}"
        fields[key] = column[0].item() if len(column) == 1 else column.copy()
    return fields


def aggregate(binned: list[BinnedSignal]) -> AggregatedSignals:
    """
    Group binned signals by type into TrialData fields.

    Spike sources get ``{name}_spikes`` / ``{name}_unit_guide`` / ``{name}_spikes_t``,
    EMG signals are merged into ``emg`` / ``emg_names`` / ``emg_t``, and generic
    signals become ``{name}`` / ``{name}_t``. Triggers and events are held back
    so they can be indexed in post-alignment bins. Meta signals are folded in
    by the metadata merger.

    Args:
        binned: Binned signals in processing order

    Returns:
        AggregatedSignals
    """
    by_type: dict[str, list[BinnedSignal]] = {t.value: [] for t in SignalType}
    for sig in binned:
        by_type.setdefault(sig.type, []).append(sig)

    if by_type[SignalType.LFP.value]:
        raise UnsupportedSignalTypeError("LFP signals are not supported")

    result = AggregatedSignals()
    td = result.trial_data

    for sig in by_type[SignalType.SPIKES.value]:
        _add_spikes(td, sig)

    if by_type[SignalType.EMG.value]:
        _add_emg(td, by_type[SignalType.EMG.value])

    for sig in by_type[SignalType.GENERIC.value]:
        _add_generic(td, sig)

    result.triggers = by_type[SignalType.TRIGGER.value]
    result.events = by_type[SignalType.EVENT.value]

    logger.info(
        f"Aggregated {len(binned)} signals into {len(td)} fields "
        f"({len(result.triggers)} triggers, {len(result.events)} events pending)"
    )
    return result
