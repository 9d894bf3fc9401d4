"""
Zero-phase filtering and decimation used by the binner.

All functions take and return (samples, channels) arrays and never modify their input.
"""

import numpy as np
from scipy import signal

from trialdata.constants import DECIMATE_CUTOFF_RATIO, DECIMATE_FILTER_ORDER, DECIMATE_RIPPLE_DB
from trialdata.data.schemas import EMGFilterConfig
from trialdata.exceptions import SampleRateError
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)


def _sosfiltfilt(sos: np.ndarray, data: np.ndarray) -> np.ndarray:
    """Forward-backward filter along samples, shrinking the edge padding for short signals."""
    n_samples = data.shape[0]
    if n_samples < 2:
        return data.copy()
    padlen = min(3 * (2 * len(sos) + 1), n_samples - 1)
    return signal.sosfiltfilt(sos, data, axis=0, padlen=padlen)


def _clamp_cutoff(cutoff: float, sample_rate: float, label: str) -> float:
    """Keep a cutoff strictly below Nyquist."""
    nyquist = 0.5 * sample_rate
    if cutoff >= nyquist:
        adjusted = nyquist * 0.99
        logger.warning(f"Adjusted {label} cutoff {cutoff} Hz to {adjusted:.2f} Hz (Nyquist {nyquist} Hz)")
        return adjusted
    return cutoff


def decimation_factor(bin_size: float, sample_rate: float) -> int:
    """Integer downsampling factor that maps ``sample_rate`` onto ``bin_size`` bins."""
    factor = int(np.floor(bin_size * sample_rate + 0.5))
    if factor < 1:
        raise SampleRateError(
            f"Sample rate {sample_rate} Hz is too low for {bin_size * 1000:g} ms bins"
        )
    return factor


def decimate(data: np.ndarray, factor: int) -> np.ndarray:
    """
    Low-pass filter and downsample by an integer factor.

    Uses a Chebyshev Type I anti-aliasing filter at 80% of the output Nyquist
    (matching scipy.signal.decimate), applied forward and backward, followed by
    stride decimation. Output has ceil(n_samples / factor) rows.

    Args:
        data: (samples, channels) array
        factor: Downsampling factor (1 = no-op)

    Returns:
        Decimated (samples, channels) array
    """
    data = np.asarray(data, dtype=np.float64)
    if factor == 1:
        return data.copy()

    sos = signal.cheby1(
        DECIMATE_FILTER_ORDER, DECIMATE_RIPPLE_DB, DECIMATE_CUTOFF_RATIO / factor, output="sos"
    )
    return _sosfiltfilt(sos, data)[::factor]


def emg_envelope(data: np.ndarray, sample_rate: float, config: EMGFilterConfig) -> np.ndarray:
    """
    EMG envelope: high-pass, full-wave rectify, low-pass.

    Args:
        data: Raw EMG (samples, channels)
        sample_rate: Sampling rate in Hz
        config: Filter cutoffs and order

    Returns:
        Envelope at the original sampling rate
    """
    data = np.asarray(data, dtype=np.float64)
    highpass = _clamp_cutoff(config.highpass_cutoff, sample_rate, "EMG high-pass")
    lowpass = _clamp_cutoff(config.lowpass_cutoff, sample_rate, "EMG low-pass")

    sos_high = signal.butter(config.order, highpass, btype="highpass", fs=sample_rate, output="sos")
    sos_low = signal.butter(config.order, lowpass, btype="lowpass", fs=sample_rate, output="sos")

    return _sosfiltfilt(sos_low, np.abs(_sosfiltfilt(sos_high, data)))
