"""
Type-specific binning of extracted signals onto the common time grid.

Each signal type has its own binner; all timed binners produce a
BinnedSignal whose row count equals its time axis length.
"""

from collections.abc import Callable

import numpy as np

from trialdata.data.records import BinnedSignal, ExtractedSignal
from trialdata.data.schemas import ConversionParams, SignalType
from trialdata.exceptions import (
    DurationUnresolvedError,
    InvariantViolationError,
    SampleRateError,
    UnknownTypeError,
    UnsupportedSignalTypeError,
)
from trialdata.processing.filters import decimate, decimation_factor, emg_envelope
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)


def make_time_axis(duration: float, bin_size: float, extra_bins: int = 0) -> np.ndarray:
    """Bin start times ``0, bin_size, ..., duration`` (inclusive when it divides evenly)."""
    n_bins = int(np.floor(duration / bin_size + 1e-9))
    return bin_size * np.arange(n_bins + 1 + extra_bins)


def _typical_spacing(time_axis: np.ndarray, default: float) -> float:
    """Most common spacing between consecutive time points."""
    if len(time_axis) < 2:
        return default
    spacings, counts = np.unique(np.round(np.diff(time_axis), 12), return_counts=True)
    return float(spacings[np.argmax(counts)])


def bin_spikes(units: list[np.ndarray], edges: np.ndarray) -> np.ndarray:
    """
    Histogram spike times of each unit into bins.

    Args:
        units: Spike times (seconds), one array per unit
        edges: Bin edges; N edges give N - 1 bins, the last bin closed on the right

    Returns:
        (bins, units) count matrix
    """
    counts = np.zeros((max(len(edges) - 1, 0), len(units)), dtype=np.int64)
    for i, spike_times in enumerate(units):
        counts[:, i], _ = np.histogram(spike_times, bins=edges)
    return counts


def detect_rising_edges(data: np.ndarray, threshold: float) -> np.ndarray:
    """
    Sample indices where the signal rises above ``threshold``.

    An edge fires at sample i when ``data[i] > threshold`` and
    ``data[i - 1] <= threshold`` on any channel; sample 0 never fires.
    """
    above = np.asarray(data) > threshold
    if above.ndim == 1:
        above = above[:, np.newaxis]
    rising = above[1:] & ~above[:-1]
    return np.flatnonzero(rising.any(axis=1)) + 1


def _require_duration(sig: ExtractedSignal) -> float:
    if sig.duration is None:
        raise DurationUnresolvedError(f"No duration known for '{sig.name}' ({sig.type})")
    return float(sig.duration)


def _require_sample_rate(sig: ExtractedSignal) -> float:
    if not sig.sample_rate:
        raise SampleRateError(f"No sample rate known for '{sig.name}' ({sig.type})")
    return float(sig.sample_rate)


def _require_dense(sig: ExtractedSignal) -> np.ndarray:
    if isinstance(sig.data, list):
        raise InvariantViolationError(f"'{sig.name}' ({sig.type}) needs continuous data, got spike times")
    return sig.data


def _match_rows(sig: ExtractedSignal, values: np.ndarray, time_axis: np.ndarray) -> BinnedSignal:
    """Cut values and time axis to the shorter of the two."""
    n_rows = min(len(values), len(time_axis))
    if len(values) != len(time_axis):
        logger.debug(
            f"'{sig.name}': {len(values)} rows vs {len(time_axis)} time bins, keeping {n_rows}"
        )
    return BinnedSignal(
        name=sig.name,
        type=sig.type,
        values=values[:n_rows],
        labels=sig.labels,
        time_axis=time_axis[:n_rows],
        metadata=sig.metadata,
    )


def _bin_spikes(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    if not isinstance(sig.data, list):
        raise InvariantViolationError(f"'{sig.name}' (spikes) needs a spike-time record")
    # one extra bin so spikes at the final sample are kept
    time_axis = make_time_axis(_require_duration(sig), params.bin_size, extra_bins=1)
    edges = np.append(time_axis, time_axis[-1] + _typical_spacing(time_axis, params.bin_size))
    return BinnedSignal(
        name=sig.name,
        type=sig.type,
        values=bin_spikes(sig.data, edges),
        labels=sig.labels,
        time_axis=time_axis,
        metadata=sig.metadata,
    )


def _bin_emg(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    data = _require_dense(sig)
    sample_rate = _require_sample_rate(sig)
    time_axis = make_time_axis(_require_duration(sig), params.bin_size)
    envelope = emg_envelope(data, sample_rate, params.emg_filter)
    values = decimate(envelope, decimation_factor(params.bin_size, sample_rate))
    return _match_rows(sig, values, time_axis)


def _bin_trigger(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    data = _require_dense(sig)
    sample_rate = _require_sample_rate(sig)
    time_axis = make_time_axis(_require_duration(sig), params.bin_size)
    trigger_times = detect_rising_edges(data, params.trigger_threshold) / sample_rate
    counts, _ = np.histogram(trigger_times, bins=time_axis)
    logger.debug(f"'{sig.name}': {len(trigger_times)} trigger edges")
    return _match_rows(sig, counts[:, np.newaxis], time_axis)


def _bin_generic(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    data = _require_dense(sig)
    sample_rate = _require_sample_rate(sig)
    time_axis = make_time_axis(_require_duration(sig), params.bin_size)
    values = decimate(data, decimation_factor(params.bin_size, sample_rate))
    return _match_rows(sig, values, time_axis)


def _passthrough(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    values = np.array(_require_dense(sig), copy=True)
    return BinnedSignal(
        name=sig.name, type=sig.type, values=values, labels=sig.labels, metadata=sig.metadata
    )


def _bin_lfp(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    raise UnsupportedSignalTypeError(f"LFP signals are not supported ({sig.name})")


# Registry of binners (keyed by SignalType)
BINNER_REGISTRY: dict[SignalType, Callable[[ExtractedSignal, ConversionParams], BinnedSignal]] = {
    SignalType.SPIKES: _bin_spikes,
    SignalType.EMG: _bin_emg,
    SignalType.LFP: _bin_lfp,
    SignalType.TRIGGER: _bin_trigger,
    SignalType.EVENT: _passthrough,
    SignalType.META: _passthrough,
    SignalType.GENERIC: _bin_generic,
}


def bin_signal(sig: ExtractedSignal, params: ConversionParams) -> BinnedSignal:
    """
    Bin one extracted signal according to its type.

    Args:
        sig: Extracted signal with a resolved duration
        params: Conversion parameters (bin size, trigger threshold, EMG filter)

    Returns:
        BinnedSignal on the common grid (no time axis for event and meta signals)
    """
    try:
        signal_type = SignalType(sig.type)
    except ValueError:
        raise UnknownTypeError(
            f"Signal type '{sig.type}' not recognized ({sig.name}). "
            f"Available: {[t.value for t in SignalType]}"
        ) from None

    binned = BINNER_REGISTRY[signal_type](sig, params)
    logger.debug(f"Binned '{sig.name}' ({sig.type}): {np.shape(binned.values)}")
    return binned
