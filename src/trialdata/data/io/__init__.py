"""
Data I/O - TrialData persistence and parsed-record caching.

Examples:
    from trialdata.data.io import save_trial_data, load_trial_data
    save_trial_data('session.h5', trial_data, summary)
    trial_data, summary = load_trial_data('session.h5')
"""

from .h5_io import load_record, load_trial_data, save_record, save_trial_data

__all__ = [
    "load_record",
    "load_trial_data",
    "save_record",
    "save_trial_data",
]
