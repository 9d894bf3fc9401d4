"""
Unit tests for trialdata.processing.binning and trialdata.processing.filters.

Tests cover:
- Spike histogramming and trigger edge detection
- Per-type binners and the rows == time axis invariant
- Decimation and EMG envelope filtering
- Unsupported, unknown and under-specified signals
"""

import numpy as np
import pytest

from trialdata.data.records import ExtractedSignal
from trialdata.data.schemas import ConversionParams, EMGFilterConfig, SignalType
from trialdata.exceptions import (
    DurationUnresolvedError,
    InvariantViolationError,
    SampleRateError,
    UnknownTypeError,
    UnsupportedSignalTypeError,
)
from trialdata.processing.binning import (
    BINNER_REGISTRY,
    bin_signal,
    bin_spikes,
    detect_rising_edges,
    make_time_axis,
)
from trialdata.processing.filters import decimate, decimation_factor, emg_envelope


def make_signal(name='sig', type='generic', data=None, labels=None, sample_rate=1000.0, duration=1.0):
    if data is None:
        data = np.zeros((1000, 1))
    if labels is None:
        labels = [name] if not isinstance(data, list) else [(1, i) for i in range(len(data))]
    return ExtractedSignal(
        name=name, type=type, data=data, labels=labels,
        sample_rate=sample_rate, duration=duration, metadata={},
    )


class TestTimeAxis:
    """Test suite for make_time_axis()."""

    def test_inclusive_of_duration(self):
        np.testing.assert_allclose(make_time_axis(0.03, 0.01), [0.0, 0.01, 0.02, 0.03])

    def test_partial_bin_is_dropped(self):
        assert len(make_time_axis(0.035, 0.01)) == 4

    def test_extra_bins(self):
        assert len(make_time_axis(1.0, 0.01, extra_bins=1)) == 102


class TestBinSpikes:
    """Test suite for bin_spikes()."""

    def test_one_spike_per_bin(self):
        counts = bin_spikes([np.array([0.005, 0.015, 0.025])], np.array([0, 0.01, 0.02, 0.03, 0.04]))
        np.testing.assert_array_equal(counts[:, 0], [1, 1, 1, 0])

    def test_columns_are_units(self):
        units = [np.array([0.001, 0.002]), np.array([0.031]), np.array([])]
        counts = bin_spikes(units, np.array([0, 0.01, 0.02, 0.03, 0.04]))
        assert counts.shape == (4, 3)
        assert counts.dtype == np.int64
        np.testing.assert_array_equal(counts.sum(axis=0), [2, 1, 0])


class TestDetectRisingEdges:
    """Test suite for detect_rising_edges()."""

    def test_edges_at_threshold_crossings(self):
        trace = np.array([0, 0, 2, 2, 0, 0, 2, 2])
        np.testing.assert_array_equal(detect_rising_edges(trace, 1.0), [2, 6])

    def test_first_sample_never_fires(self):
        np.testing.assert_array_equal(detect_rising_edges(np.array([5, 5, 0, 5]), 1.0), [3])

    def test_value_at_threshold_is_not_above(self):
        assert len(detect_rising_edges(np.array([0, 1, 1, 0]), 1.0)) == 0

    def test_any_channel_fires(self):
        trace = np.array([[0, 0], [2, 0], [2, 0], [0, 2]])
        np.testing.assert_array_equal(detect_rising_edges(trace, 1.0), [1, 3])


class TestFilters:
    """Test suite for decimation and EMG envelope filters."""

    def test_decimation_factor_rounds(self):
        assert decimation_factor(0.01, 1000.0) == 10
        assert decimation_factor(0.01, 2034.5) == 20
        assert decimation_factor(0.01, 100.0) == 1

    def test_decimation_factor_too_low_rate(self):
        with pytest.raises(SampleRateError):
            decimation_factor(0.01, 20.0)

    def test_decimate_output_length(self):
        data = np.random.default_rng(1).standard_normal((1005, 2))
        assert decimate(data, 10).shape == (101, 2)

    def test_decimate_factor_one_copies(self):
        data = np.ones((5, 1))
        out = decimate(data, 1)
        np.testing.assert_array_equal(out, data)
        assert out is not data

    def test_decimate_keeps_slow_signal(self):
        """A DC level passes the anti-aliasing filter within the passband ripple."""
        out = decimate(np.full((1000, 1), 3.0), 10)
        np.testing.assert_allclose(out, 3.0, rtol=0.02)

    def test_emg_envelope_is_smooth_and_positive_on_average(self):
        rng = np.random.default_rng(2)
        raw = rng.standard_normal((2000, 1)) * 100
        envelope = emg_envelope(raw, 1000.0, EMGFilterConfig())
        assert envelope.shape == raw.shape
        assert envelope.mean() > 0
        assert np.abs(np.diff(envelope[:, 0])).max() < np.abs(np.diff(raw[:, 0])).max()

    def test_emg_envelope_short_signal(self):
        envelope = emg_envelope(np.array([[1.0], [-2.0], [3.0]]), 100.0, EMGFilterConfig())
        assert envelope.shape == (3, 1)
        assert np.all(np.isfinite(envelope))

    def test_emg_envelope_input_not_modified(self):
        raw = np.random.default_rng(3).standard_normal((500, 2))
        original = raw.copy()
        emg_envelope(raw, 1000.0, EMGFilterConfig())
        np.testing.assert_array_equal(raw, original)


class TestBinSignal:
    """Test suite for bin_signal() dispatch."""

    @pytest.fixture
    def params(self):
        return ConversionParams(bin_size=0.01)

    def test_registry_covers_every_type(self):
        assert set(BINNER_REGISTRY) == set(SignalType)

    def test_spikes(self, params):
        sig = make_signal(type='spikes', data=[np.array([0.005, 0.999, 1.0])], duration=1.0)
        binned = bin_signal(sig, params)
        assert binned.values.shape == (102, 1)
        assert len(binned.time_axis) == 102
        assert binned.values.sum() == 3

    @pytest.mark.parametrize('signal_type', ['emg', 'generic', 'trigger'])
    def test_rows_match_time_axis(self, params, signal_type):
        data = make_signal(type=signal_type).data
        data[105:115] = 5.0
        binned = bin_signal(make_signal(type=signal_type, data=data), params)
        assert binned.values.shape[0] == len(binned.time_axis) == 100

    def test_generic_decimates(self, params):
        sig = make_signal(data=np.column_stack([np.full(1000, 2.0), np.full(1000, -1.0)]), labels=['x', 'y'])
        binned = bin_signal(sig, params)
        assert binned.values.shape == (100, 2)
        np.testing.assert_allclose(binned.values[:, 0], 2.0, rtol=0.02)
        assert binned.labels == ['x', 'y']

    def test_trigger_counts_edges_per_bin(self, params):
        trace = np.zeros((1000, 1))
        trace[105:110] = 5.0
        trace[505:510] = 5.0
        binned = bin_signal(make_signal(name='go', type='trigger', data=trace), params)
        np.testing.assert_array_equal(np.flatnonzero(binned.values[:, 0]), [10, 50])

    def test_trigger_threshold_param(self):
        trace = np.zeros((1000, 1))
        trace[105:110] = 0.5
        binned = bin_signal(make_signal(type='trigger', data=trace), ConversionParams(trigger_threshold=0.25))
        assert binned.values.sum() == 1

    @pytest.mark.parametrize('signal_type', ['event', 'meta'])
    def test_passthrough_has_no_time_axis(self, params, signal_type):
        sig = make_signal(type=signal_type, data=np.array([[3.0], [7.0]]))
        binned = bin_signal(sig, params)
        assert not binned.is_time_indexed
        np.testing.assert_array_equal(binned.values, [[3.0], [7.0]])

    @pytest.mark.parametrize('signal_type', ['event', 'meta'])
    def test_passthrough_rejects_spike_times(self, params, signal_type):
        sig = make_signal(type=signal_type, data=[np.array([0.1, 0.2]), np.array([0.3])])
        with pytest.raises(InvariantViolationError):
            bin_signal(sig, params)

    def test_lfp_is_unsupported(self, params):
        with pytest.raises(UnsupportedSignalTypeError):
            bin_signal(make_signal(type='lfp'), params)

    def test_unknown_type(self, params):
        with pytest.raises(UnknownTypeError):
            bin_signal(make_signal(type='eeg'), params)

    def test_missing_duration(self, params):
        with pytest.raises(DurationUnresolvedError):
            bin_signal(make_signal(duration=None), params)

    def test_missing_sample_rate(self, params):
        with pytest.raises(SampleRateError):
            bin_signal(make_signal(type='emg', sample_rate=None), params)
