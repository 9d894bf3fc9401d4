"""Mean-centering of time-varying TrialData signals."""

from collections.abc import Iterable, Sequence
from typing import Any

import numpy as np

from trialdata.constants import LABEL_SUFFIXES
from trialdata.exceptions import LabelNotFoundError
from trialdata.utils.logger_central import get_logger

logger = get_logger(__name__)


def _signal_fields(trial: dict[str, Any]) -> list[str]:
    """2-D numeric fields, excluding label companions."""
    return [
        name
        for name, value in trial.items()
        if isinstance(value, np.ndarray)
        and value.ndim == 2
        and value.dtype.kind in "biuf"
        and not name.endswith(LABEL_SUFFIXES)
    ]


def center_signals(
    trial_data: dict[str, Any] | Sequence[dict[str, Any]],
    signals: str | Iterable[str] | None = None,
    use_trials: Iterable[int] | None = None,
) -> tuple[dict[str, Any] | list[dict[str, Any]], dict[str, np.ndarray]]:
    """
    Subtract the per-column mean from time-varying signals.

    Means are computed over all rows of all trials, then subtracted in the
    selected trials. Inputs are not modified; changed fields are replaced in
    shallow copies of the trials.

    Args:
        trial_data: One TrialData or a list of trials
        signals: Field name(s) to center (None = every 2-D numeric signal)
        use_trials: Indices of the trials to center (None or empty = all)

    Returns:
        (centered trial data, {field: column means})
    """
    single = isinstance(trial_data, dict)
    trials = [dict(trial) for trial in ([trial_data] if single else trial_data)]
    if not trials:
        return [], {}

    if signals is None:
        names = _signal_fields(trials[0])
    elif isinstance(signals, str):
        names = [signals]
    else:
        names = list(signals)

    for name in names:
        missing = [i for i, trial in enumerate(trials) if name not in trial]
        if missing:
            raise LabelNotFoundError(f"Field '{name}' not found in trials {missing}")

    selected = list(use_trials or [])
    if not selected:
        selected = range(len(trials))

    means: dict[str, np.ndarray] = {}
    for name in names:
        stacked = np.concatenate([np.asarray(trial[name], dtype=np.float64) for trial in trials])
        means[name] = stacked.mean(axis=0)
        for i in selected:
            trials[i][name] = np.asarray(trials[i][name], dtype=np.float64) - means[name]
        logger.debug(f"Centered '{name}' in {len(selected)} trials")

    return (trials[0] if single else trials), means
