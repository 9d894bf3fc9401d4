"""
Conversion pipeline for trialdata.

Parses every source file once, extracts the requested signals, resolves
missing durations, bins, aggregates, aligns and merges metadata into a
single TrialData mapping.
"""

import hashlib
import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from trialdata.constants import CACHE_FILE_SUFFIX
from trialdata.data.imports import adapter_name, load_file
from trialdata.data.io import load_record, save_record
from trialdata.data.records import BinnedSignal, ExtractedSignal, RawSignalRecord
from trialdata.data.schemas import ConversionParams, ConversionSummary, SourceFileSpec, SourceSummary
from trialdata.exceptions import TrialDataError
from trialdata.processing.aggregation import aggregate
from trialdata.processing.alignment import align_time, index_events
from trialdata.processing.binning import bin_signal
from trialdata.processing.extraction import extract_signal
from trialdata.processing.metadata import merge_metadata
from trialdata.utils.logger_central import configure_file_logging, get_logger
from trialdata.utils.serialization import jsonify

logger = get_logger(__name__)


def _validate_params(params: ConversionParams | Mapping[str, Any] | None) -> ConversionParams:
    if params is None:
        return ConversionParams()
    if isinstance(params, ConversionParams):
        return params
    return ConversionParams.model_validate(dict(params))


def _validate_sources(sources: Any) -> list[SourceFileSpec]:
    if isinstance(sources, (SourceFileSpec, Mapping)):
        sources = [sources]
    if not isinstance(sources, Sequence) or isinstance(sources, str):
        raise TypeError(f"Expected SourceFileSpec or a list of them, got {type(sources).__name__}")
    return [
        src if isinstance(src, SourceFileSpec) else SourceFileSpec.model_validate(src)
        for src in sources
    ]


class _RecordCache:
    """Parsed records for one conversion, optionally backed by H5 files in ``cache_dir``."""

    def __init__(self, cache_dir: Path | None = None, refresh: bool = False):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.refresh = refresh
        self._records: dict[tuple[str, str, str], RawSignalRecord] = {}

    def _key(self, source: SourceFileSpec, adapter_params: dict[str, Any]) -> tuple[str, str, str]:
        adapter = source.adapter
        adapter_id = f"callable:{id(adapter)}" if callable(adapter) else str(adapter)
        params_key = json.dumps(jsonify(adapter_params), sort_keys=True)
        return str(source.file_path.resolve()), adapter_id, params_key

    def _disk_path(self, source: SourceFileSpec, key: tuple[str, str, str]) -> Path:
        digest = hashlib.sha1("|".join(key).encode("utf-8")).hexdigest()[:12]
        return self.cache_dir / f"{source.file_path.stem}_{digest}{CACHE_FILE_SUFFIX}"

    def get(self, source: SourceFileSpec, adapter_params: dict[str, Any]) -> RawSignalRecord:
        key = self._key(source, adapter_params)
        if key in self._records:
            logger.debug(f"Reusing parsed record for {source.file_path.name}")
            return self._records[key]

        disk_path = None
        if self.cache_dir is not None and not callable(source.adapter):
            disk_path = self._disk_path(source, key)

        if disk_path is not None and disk_path.exists() and not self.refresh:
            logger.info(f"Loading cached record {disk_path.name}")
            record = load_record(disk_path)
        else:
            record = load_file(source.file_path, adapter_params, source.adapter)
            if disk_path is not None:
                disk_path.parent.mkdir(parents=True, exist_ok=True)
                save_record(disk_path, record)
                logger.info(f"Cached parsed record to {disk_path}")

        self._records[key] = record
        return record


def _resolve_durations(signals: list[ExtractedSignal]) -> None:
    """Fill missing durations with the longest known duration."""
    known = [sig.duration for sig in signals if sig.duration is not None]
    if not known:
        return
    fallback = max(known)
    for sig in signals:
        if sig.duration is None:
            logger.debug(f"'{sig.name}' has no duration, using {fallback:.3f} s")
            sig.duration = fallback


def _extract_all(
    sources: list[SourceFileSpec], params: ConversionParams
) -> tuple[list[ExtractedSignal], list[SourceSummary]]:
    cache = _RecordCache(params.cache_dir, params.refresh_cache)
    extracted: list[ExtractedSignal] = []
    summaries: list[SourceSummary] = []

    for source in sources:
        adapter_params = {**params.adapter_defaults(), **source.adapter_params}
        record = cache.get(source, adapter_params)
        logger.info(
            f"Source {source.file_path.name}: {record.n_channels} channels, "
            f"{len(source.signals)} signals requested"
        )
        for spec in source.signals:
            extracted.append(extract_signal(record, spec))
        summaries.append(
            SourceSummary(
                file_path=str(source.file_path),
                adapter=adapter_name(source.adapter, source.file_path),
                signals=[{"name": spec.name, "type": spec.type} for spec in source.signals],
            )
        )

    return extracted, summaries


def convert(
    sources: SourceFileSpec | Sequence[SourceFileSpec],
    params: ConversionParams | Mapping[str, Any] | None = None,
) -> tuple[dict[str, Any], ConversionSummary]:
    """
    Convert source recordings into one time-aligned TrialData mapping.

    Args:
        sources: One SourceFileSpec or an ordered list of them (dicts are validated)
        params: ConversionParams, a dict of its fields, or None for defaults

    Returns:
        (trial_data, summary)

    Raises:
        TrialDataError: Any conversion failure; no partial output is returned
        pydantic.ValidationError: Invalid params or source specs
    """
    params = _validate_params(params)
    sources = _validate_sources(sources)

    if params.log_dir is not None:
        configure_file_logging(log_dir=params.log_dir)

    if params.add_waveforms:
        logger.warning("add_waveforms is not implemented; waveforms are not loaded")
    if params.add_spike_times:
        logger.warning("add_spike_times is not implemented; only binned spikes are returned")

    logger.info(f"Converting {len(sources)} sources at {params.bin_size * 1000:g} ms bins")

    try:
        extracted, source_summaries = _extract_all(sources, params)
        _resolve_durations(extracted)

        binned: list[BinnedSignal] = [bin_signal(sig, params) for sig in extracted]

        aggregated = aggregate(binned)
        trial_data = aggregated.trial_data
        t_min = align_time(trial_data)
        trial_data.update(index_events(aggregated, t_min))

        trial_data = merge_metadata(trial_data, binned, params.meta, params.bin_size)
    except TrialDataError as e:
        logger.error(f"Conversion failed: {e}", exc_info=True)
        raise

    summary = ConversionSummary.from_params(params, source_summaries, t_min)
    logger.info(f"Conversion complete: {len(trial_data)} fields, {t_min} bins")
    return trial_data, summary
