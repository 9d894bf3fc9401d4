"""
Pydantic configuration schemas for trial data conversion.

SignalSpec / SourceFileSpec: declarative description of which signals to pull from which files.
ConversionParams: validated conversion parameters with documented defaults.
ConversionSummary: provenance record returned alongside the TrialData.
"""

from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from trialdata.constants import (
    DEFAULT_BIN_SIZE,
    DEFAULT_EXCLUDE_UNITS,
    DEFAULT_TRIGGER_THRESHOLD,
    EMG_FILTER_ORDER,
    EMG_HIGHPASS_CUTOFF,
    EMG_LOWPASS_CUTOFF,
    VERSION,
)

# Channels-major matrix in, channels-major matrix out
SignalTransform = Callable[[np.ndarray], np.ndarray]


class SignalType(str, Enum):
    """Semantic type of a requested signal; decides how it is binned and grouped."""

    SPIKES = "spikes"
    EMG = "emg"
    LFP = "lfp"
    TRIGGER = "trigger"
    EVENT = "event"
    META = "meta"
    GENERIC = "generic"


# Types without a dense matrix to transform
_UNTRANSFORMABLE = {SignalType.SPIKES.value, SignalType.META.value}


class SignalSpec(BaseModel):
    """Request for one named output signal from a source file.

    ``type`` is stored as a lowercase string; unknown types are rejected when
    the signal is binned, not here.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Output signal name")
    type: str = Field(..., description="Signal type (spikes, emg, trigger, event, meta, generic)")
    label_selector: Any = Field(
        None, description="Label name(s), zero-based column index set, or (channel, unit) pair(s)"
    )
    transform: SignalTransform | None = Field(
        None, description="Function applied to the channels-major selected data"
    )

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> str:
        """Accept SignalType members and any capitalisation."""
        if isinstance(v, SignalType):
            return v.value
        if not isinstance(v, str):
            raise ValueError(f"Signal type must be a string, got: {v!r}")
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def validate_name_not_empty(cls, v: str) -> str:
        """Ensure name is not just whitespace."""
        if not v.strip():
            raise ValueError("Signal name cannot be empty or whitespace")
        return v.strip()

    @model_validator(mode="after")
    def validate_transform_target(self):
        """Spike lists and meta carriers have no matrix to transform."""
        if self.transform is not None and self.type in _UNTRANSFORMABLE:
            raise ValueError(f"Transforms are not supported for '{self.type}' signals ({self.name})")
        return self


class SourceFileSpec(BaseModel):
    """One source file plus the ordered signals to take from it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    file_path: Path = Field(..., description="Path to the recording file")
    adapter: str | Callable[..., Any] | None = Field(
        None, description="Registered adapter name or callable(path, adapter_params)"
    )
    adapter_params: dict[str, Any] = Field(
        default_factory=dict, description="Extra parameters passed to the adapter"
    )
    signals: list[SignalSpec] = Field(..., min_length=1, description="Signals to extract")


class EMGFilterConfig(BaseModel):
    """EMG envelope filter: high pass, rectify, low pass (Butterworth, zero phase)."""

    model_config = ConfigDict(extra="forbid")

    highpass_cutoff: float = Field(EMG_HIGHPASS_CUTOFF, gt=0, description="High-pass cutoff in Hz")
    lowpass_cutoff: float = Field(EMG_LOWPASS_CUTOFF, gt=0, description="Envelope low-pass cutoff in Hz")
    order: int = Field(EMG_FILTER_ORDER, ge=1, le=10, description="Butterworth filter order")


class ConversionParams(BaseModel):
    """Complete conversion configuration."""

    model_config = ConfigDict(extra="forbid")

    bin_size: float = Field(DEFAULT_BIN_SIZE, gt=0, description="Bin width in seconds")
    exclude_units: set[int] = Field(
        default_factory=lambda: set(DEFAULT_EXCLUDE_UNITS), description="Sort codes to drop"
    )
    strip_sort: bool = Field(False, description="Collapse all sort codes on a channel into one unit")
    add_waveforms: bool = Field(False, description="Load spike waveforms (not implemented)")
    add_spike_times: bool = Field(False, description="Add unbinned spike times (not implemented)")

    trigger_threshold: float = Field(
        DEFAULT_TRIGGER_THRESHOLD, description="Threshold for trigger rising-edge detection"
    )
    emg_filter: EMGFilterConfig = Field(
        default_factory=EMGFilterConfig, description="EMG envelope filter configuration"
    )
    spiking_channels: list[int] | None = Field(
        None, description="Electrode channels kept from spike files (None = all)"
    )

    meta: dict[str, Any] = Field(
        default_factory=dict, description="Global metadata copied into the TrialData"
    )

    cache_dir: Path | None = Field(None, description="Directory for parsed-record caches")
    refresh_cache: bool = Field(False, description="Re-parse files even if a cache exists")
    log_dir: Path | None = Field(None, description="Directory for a conversion log file (None = no file)")

    def adapter_defaults(self) -> dict[str, Any]:
        """Parameters every adapter receives unless a source overrides them."""
        return {
            "exclude_units": sorted(self.exclude_units),
            "strip_sort": self.strip_sort,
            "spiking_channels": self.spiking_channels,
            "read_waveforms": self.add_waveforms,
        }


class SourceSummary(BaseModel):
    """Provenance for one parsed source file."""

    file_path: str
    adapter: str
    signals: list[dict[str, str]] = Field(default_factory=list)


class ConversionSummary(BaseModel):
    """Effective parameters used by a conversion run."""

    created_at: datetime = Field(default_factory=datetime.now)
    version: str = VERSION
    bin_size: float
    exclude_units: list[int]
    strip_sort: bool
    add_waveforms: bool
    add_spike_times: bool
    trigger_threshold: float
    n_bins: int | None = Field(None, description="Common row count after alignment")
    sources: list[SourceSummary] = Field(default_factory=list)

    @classmethod
    def from_params(
        cls, params: ConversionParams, sources: list[SourceSummary], n_bins: int | None
    ) -> "ConversionSummary":
        return cls(
            bin_size=params.bin_size,
            exclude_units=sorted(params.exclude_units),
            strip_sort=params.strip_sort,
            add_waveforms=params.add_waveforms,
            add_spike_times=params.add_spike_times,
            trigger_threshold=params.trigger_threshold,
            n_bins=n_bins,
            sources=sources,
        )
