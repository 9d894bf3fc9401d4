"""
Pytest configuration and fixtures for the trialdata test suite.

Recording files are generated on the fly with h5py, numpy and pandas.
"""

import shutil
import tempfile
from pathlib import Path

import h5py
import numpy as np
import pandas as pd
import pytest

from trialdata.data.records import RawSignalRecord

SAMPLE_RATE = 1000.0
N_SAMPLES = 1000  # 1 s
SPIKE_TICKS_PER_SECOND = 30000


def make_pulses(n_samples, onsets, width=10, level=5.0):
    """Square pulses of ``width`` samples starting at each onset."""
    trace = np.zeros(n_samples)
    for onset in onsets:
        trace[onset:onset + width] = level
    return trace


@pytest.fixture
def temp_directory():
    """Create a temporary directory."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def continuous_h5_file(temp_directory):
    """H5 recording with two EMG channels, one force channel and a trigger line."""
    path = temp_directory / 'session.h5'
    rng = np.random.default_rng(0)
    data = np.column_stack([
        rng.standard_normal(N_SAMPLES),
        rng.standard_normal(N_SAMPLES),
        np.linspace(0.0, 1.0, N_SAMPLES),
        make_pulses(N_SAMPLES, onsets=[105, 505]),
    ])

    with h5py.File(path, 'w') as h5f:
        h5f.attrs['monkey'] = 'Chewie'
        h5f.attrs['task'] = 'CO'
        h5f.attrs['sample_rate'] = SAMPLE_RATE
        ds = h5f.create_dataset('Signals', data=data)
        ds.attrs['channel_labels'] = ['bicep', 'tricep', 'force', 'trig']

    return path


@pytest.fixture
def spike_npz_file(temp_directory):
    """Spike archive with two channels, sorted units and 255 noise codes."""
    path = temp_directory / 'spikes.npz'
    # (channel, unit, seconds)
    spikes = [
        (1, 1, 0.005), (1, 1, 0.015), (1, 2, 0.025),
        (1, 255, 0.030), (2, 1, 0.500), (2, 1, 0.995),
    ]
    channel, unit, seconds = (np.array(col) for col in zip(*spikes))
    np.savez(
        path,
        channel=channel,
        unit=unit,
        timestamp=np.round(seconds * SPIKE_TICKS_PER_SECOND).astype(np.int64),
        time_resolution=np.array(SPIKE_TICKS_PER_SECOND),
        duration=np.array(1.0),
        array_name=np.array('M1'),
    )
    return path


@pytest.fixture
def force_csv_file(temp_directory):
    """CSV table sampled at 100 Hz with a time column."""
    path = temp_directory / 'force.csv'
    t = np.arange(100) / 100.0
    pd.DataFrame({
        'time': t,
        'force_x': np.sin(2 * np.pi * t),
        'force_y': np.cos(2 * np.pi * t),
    }).to_csv(path, index=False)
    return path


@pytest.fixture
def continuous_record():
    """In-memory continuous record with three labelled channels."""
    data = np.arange(30, dtype=np.float64).reshape(10, 3)
    return RawSignalRecord(
        data=data,
        labels=['ch1', 'ch2', 'ch3'],
        sample_rate=100.0,
        duration=0.1,
        metadata={'monkey': 'Chewie'},
    )


@pytest.fixture
def spike_record():
    """In-memory spike record with three units."""
    return RawSignalRecord(
        data=[
            np.array([0.005, 0.015, 0.025]),
            np.array([0.012]),
            np.array([], dtype=np.float64),
        ],
        labels=[(1, 1), (1, 2), (3, 1)],
        sample_rate=30000.0,
        duration=0.03,
    )
