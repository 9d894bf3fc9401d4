"""
trialdata Constants

Defaults for conversion parameters and the TrialData field naming convention.
"""

from trialdata import __version__

# --- Version & Identity ---
VERSION = __version__

# --- Binning ---
DEFAULT_BIN_SIZE = 0.01  # 10 ms bins
DEFAULT_EXCLUDE_UNITS = frozenset({255})  # 255 marks unsortable noise
DEFAULT_TRIGGER_THRESHOLD = 1.0  # Rising-edge threshold for trigger channels

# --- EMG envelope (high pass -> rectify -> low pass) ---
EMG_HIGHPASS_CUTOFF = 10.0  # Hz
EMG_LOWPASS_CUTOFF = 20.0  # Hz
EMG_FILTER_ORDER = 4  # Butterworth poles

# --- Decimation anti-aliasing (matches scipy.signal.decimate defaults) ---
DECIMATE_FILTER_ORDER = 8  # Chebyshev Type I
DECIMATE_RIPPLE_DB = 0.05
DECIMATE_CUTOFF_RATIO = 0.8  # Fraction of the output Nyquist

# --- Field naming ---
TIME_AXIS_SUFFIX = "_t"
EVENT_PREFIX = "idx_"
SPIKES_SUFFIX = "_spikes"
UNIT_GUIDE_SUFFIX = "_unit_guide"
NAMES_SUFFIX = "_names"
EMG_FIELD = "emg"
BIN_SIZE_FIELD = "bin_size"

# Label companions index channels, not time, so alignment never truncates them
LABEL_SUFFIXES = (UNIT_GUIDE_SUFFIX, NAMES_SUFFIX)

# Identity fields placed first in the canonical field order
LEADING_META_FIELDS = ("monkey", "date", "task", "trial_id", "result", "target_direction")

# --- Data Storage ---
CACHE_FILE_SUFFIX = ".record.h5"
