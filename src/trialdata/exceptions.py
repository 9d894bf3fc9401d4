"""
Error types raised by trialdata.

Every conversion is all-or-nothing: these propagate to the caller of
``convert`` and no partial TrialData is returned.
"""


class TrialDataError(Exception):
    """Base class for all trialdata errors."""


class FileFormatError(TrialDataError):
    """No adapter is registered for the file extension."""


class ParseError(TrialDataError):
    """An adapter could not parse the file content."""


class LabelNotFoundError(TrialDataError, KeyError):
    """A requested label or column index is not present in the source record."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class AmbiguousSelectorError(TrialDataError):
    """A label selector mixes names and indices or nests index sets."""


class UnsupportedSignalTypeError(TrialDataError):
    """The signal type is recognised but not implemented (LFP)."""


class UnknownTypeError(TrialDataError):
    """The signal type is not recognised."""


class InvariantViolationError(TrialDataError):
    """Signals cannot be combined without breaking a TrialData invariant."""


class DurationUnresolvedError(TrialDataError):
    """No duration is known for a signal that needs a time axis."""


class SampleRateError(TrialDataError):
    """Sample rate is missing or too low for the requested bin size."""
