"""
Unit tests for trialdata.data.imports adapters.

Tests cover:
- Adapter dispatch by name and extension
- H5, spike archive, CSV and MNE-readable recordings
- Custom callable adapters
- Error wrapping for unreadable content
"""

import h5py
import mne
import numpy as np
import pytest

from trialdata.data.imports import (
    ADAPTER_REGISTRY,
    H5Adapter,
    MNEAdapter,
    SpikeEventAdapter,
    TableAdapter,
    get_adapter,
    is_supported_format,
    load_file,
    split_units,
)
from trialdata.data.records import RawSignalRecord
from trialdata.exceptions import FileFormatError, ParseError


class TestAdapterDispatch:
    """Test suite for get_adapter() and load_file()."""

    @pytest.mark.parametrize('filename,expected', [
        ('a.h5', H5Adapter),
        ('a.HDF5', H5Adapter),
        ('a.npz', SpikeEventAdapter),
        ('a.csv', TableAdapter),
        ('a.tsv', TableAdapter),
        ('a_raw.fif', MNEAdapter),
        ('a.edf', MNEAdapter),
    ])
    def test_by_extension(self, filename, expected):
        assert get_adapter(filename) is expected

    def test_by_name(self):
        assert get_adapter('data.bin', 'H5') is H5Adapter
        assert set(ADAPTER_REGISTRY) == {'h5', 'mne', 'table', 'spikes'}

    def test_unknown_extension(self):
        with pytest.raises(FileFormatError):
            get_adapter('session.nev')
        assert not is_supported_format('session.ns5')

    def test_unknown_name(self):
        with pytest.raises(FileFormatError):
            get_adapter('a.h5', 'blackrock')

    def test_missing_file(self, temp_directory):
        with pytest.raises(ParseError, match='Recording not found') as exc_info:
            load_file(temp_directory / 'missing.h5')
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_custom_adapter_record(self, temp_directory):
        record = RawSignalRecord(data=np.zeros((4, 1)), labels=['x'], sample_rate=10.0, duration=0.4)
        assert load_file(temp_directory / 'x.bin', adapter=lambda path, params: record) is record

    def test_custom_adapter_mapping(self, temp_directory):
        def adapter(path, params):
            assert params == {'gain': 2}
            return {'data': [np.array([0.1, 0.2])], 'duration': 1.0}

        record = load_file(temp_directory / 'x.bin', {'gain': 2}, adapter=adapter)
        assert record.is_spike_record
        assert record.labels == ['ch_0']

    def test_custom_adapter_bad_output(self, temp_directory):
        with pytest.raises(ParseError):
            load_file(temp_directory / 'x.bin', adapter=lambda path, params: [1, 2, 3])


class TestH5Adapter:
    """Test suite for H5Adapter."""

    def test_labels_rate_and_metadata(self, continuous_h5_file):
        record = load_file(continuous_h5_file)
        assert record.labels == ['bicep', 'tricep', 'force', 'trig']
        assert record.data.shape == (1000, 4)
        assert record.sample_rate == 1000.0
        assert record.duration == pytest.approx(1.0)
        assert record.metadata == {'monkey': 'Chewie', 'task': 'CO'}

    def test_structured_dataset_drops_timestamps(self, temp_directory):
        path = temp_directory / 'structured.h5'
        dtype = np.dtype([('timestamp', 'f8'), ('C3', 'f4'), ('C4', 'f4')])
        rows = np.zeros(50, dtype=dtype)
        rows['C4'] = 1.0
        with h5py.File(path, 'w') as h5f:
            ds = h5f.create_dataset('EEG', data=rows)
            ds.attrs['sampling_frequency'] = 250.0

        record = load_file(path)
        assert record.labels == ['C3', 'C4']
        np.testing.assert_array_equal(record.data[:, 1], 1.0)
        assert record.duration == pytest.approx(0.2)

    def test_missing_dataset(self, continuous_h5_file):
        with pytest.raises(ParseError):
            load_file(continuous_h5_file, {'dataset': 'LFP'})

    def test_no_sample_rate(self, temp_directory):
        path = temp_directory / 'norate.h5'
        with h5py.File(path, 'w') as h5f:
            h5f.create_dataset('Signals', data=np.zeros((10, 2)))
        with pytest.raises(ParseError):
            load_file(path)
        record = load_file(path, {'sample_rate': 10.0})
        assert record.labels == ['ch_0', 'ch_1']
        assert record.duration == pytest.approx(1.0)

    def test_corrupt_file_is_parse_error(self, temp_directory):
        path = temp_directory / 'corrupt.h5'
        path.write_bytes(b'not an hdf5 file')
        with pytest.raises(ParseError) as exc_info:
            load_file(path)
        assert exc_info.value.__cause__ is not None


class TestSpikeEventAdapter:
    """Test suite for SpikeEventAdapter and split_units()."""

    def test_units_and_timestamps(self, spike_npz_file):
        record = load_file(spike_npz_file, {'exclude_units': [255]})
        assert record.labels == [(1, 1), (1, 2), (2, 1)]
        np.testing.assert_allclose(record.data[0], [0.005, 0.015])
        assert record.duration == 1.0
        assert record.metadata == {'array_name': 'M1'}

    def test_missing_arrays(self, temp_directory):
        path = temp_directory / 'bad.npz'
        np.savez(path, channel=np.array([1]))
        with pytest.raises(ParseError):
            load_file(path)

    def test_split_units_channel_selection_order(self):
        channels = np.array([1, 2, 3, 2])
        units = np.array([1, 1, 1, 2])
        times = np.array([0.1, 0.2, 0.3, 0.4])
        data, labels = split_units(channels, units, times, spiking_channels=[3, 2])
        assert labels == [(3, 1), (2, 1), (2, 2)]
        np.testing.assert_array_equal(data[0], [0.3])

    def test_split_units_excludes_before_strip_sort(self):
        channels = np.array([1, 1, 1])
        units = np.array([1, 255, 2])
        times = np.array([0.3, 0.2, 0.1])
        data, labels = split_units(channels, units, times, exclude_units={255}, strip_sort=True)
        assert labels == [(1, 0)]
        np.testing.assert_array_equal(data[0], [0.1, 0.3])


class TestTableAdapter:
    """Test suite for TableAdapter."""

    def test_rate_from_time_column(self, force_csv_file):
        record = load_file(force_csv_file)
        assert record.labels == ['force_x', 'force_y']
        assert record.sample_rate == pytest.approx(100.0)
        assert record.duration == pytest.approx(1.0)
        assert record.data.shape == (100, 2)

    def test_non_numeric_column(self, temp_directory):
        path = temp_directory / 'labels.csv'
        path.write_text('time,state\n0.0,rest\n0.1,move\n')
        with pytest.raises(ParseError):
            load_file(path)


class TestMNEAdapter:
    """Test suite for MNEAdapter."""

    @pytest.fixture
    def fif_file(self, temp_directory):
        info = mne.create_info(['EMG1', 'EMG2', 'STI'], sfreq=200.0, ch_types=['emg', 'emg', 'stim'])
        data = np.vstack([np.ones(400), 2 * np.ones(400), np.zeros(400)])
        path = temp_directory / 'session_raw.fif'
        mne.io.RawArray(data, info, verbose=False).save(path, verbose=False)
        return path

    def test_reads_fif(self, fif_file):
        record = load_file(fif_file)
        assert record.labels == ['EMG1', 'EMG2', 'STI']
        assert record.data.shape == (400, 3)
        assert record.sample_rate == 200.0
        assert record.duration == pytest.approx(2.0)
        np.testing.assert_allclose(record.data[:, 1], 2.0)

    def test_picks(self, fif_file):
        record = load_file(fif_file, {'picks': ['EMG2']})
        assert record.labels == ['EMG2']
