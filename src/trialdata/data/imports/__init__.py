"""Raw file adapters producing canonical RawSignalRecords."""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from trialdata.data.records import RawSignalRecord
from trialdata.exceptions import FileFormatError, ParseError

from .base_adapter import BaseAdapter
from .h5_adapter import H5Adapter
from .mne_adapter import MNEAdapter
from .spike_adapter import SpikeEventAdapter, split_units
from .table_adapter import TableAdapter

# Registry of built-in adapters (lowercase keys)
ADAPTER_REGISTRY: dict[str, type[BaseAdapter]] = {
    H5Adapter.NAME: H5Adapter,
    MNEAdapter.NAME: MNEAdapter,
    TableAdapter.NAME: TableAdapter,
    SpikeEventAdapter.NAME: SpikeEventAdapter,
}


def get_adapter(file_path: str | Path, adapter: str | None = None) -> type[BaseAdapter]:
    """Resolve an adapter by name, or by file extension when no name is given."""
    if adapter is not None:
        try:
            return ADAPTER_REGISTRY[adapter.lower()]
        except KeyError:
            raise FileFormatError(
                f"Unknown adapter '{adapter}'. Available: {sorted(ADAPTER_REGISTRY)}"
            ) from None

    ext = Path(file_path).suffix.lower()
    for adapter_cls in ADAPTER_REGISTRY.values():
        if ext in adapter_cls.EXTENSIONS:
            return adapter_cls
    raise FileFormatError(f"Unsupported format: '{ext}' ({Path(file_path).name})")


def adapter_name(adapter: str | Callable[..., Any] | None, file_path: str | Path) -> str:
    """Human-readable name of the adapter used for a file."""
    if callable(adapter):
        return getattr(adapter, "__name__", type(adapter).__name__)
    return get_adapter(file_path, adapter).NAME


def load_file(
    file_path: str | Path,
    adapter_params: dict[str, Any] | None = None,
    adapter: str | Callable[..., Any] | None = None,
) -> RawSignalRecord:
    """Load a file into a RawSignalRecord.

    Args:
        file_path: Path to the recording
        adapter_params: Options forwarded to the adapter
        adapter: Registered adapter name, a custom callable ``(path, params)``,
            or None to pick by extension

    Returns:
        Canonical record for the file
    """
    if callable(adapter):
        result = adapter(file_path, adapter_params or {})
        if isinstance(result, RawSignalRecord):
            return result
        if isinstance(result, Mapping):
            return RawSignalRecord.from_mapping(result)
        raise ParseError(
            f"Custom adapter returned {type(result).__name__}, expected RawSignalRecord or mapping"
        )

    return get_adapter(file_path, adapter).parse(file_path, adapter_params)


def is_supported_format(file_path: str | Path) -> bool:
    """Check if a built-in adapter handles the file extension."""
    ext = Path(file_path).suffix.lower()
    return any(ext in adapter_cls.EXTENSIONS for adapter_cls in ADAPTER_REGISTRY.values())


__all__ = [
    "ADAPTER_REGISTRY",
    "BaseAdapter",
    "H5Adapter",
    "MNEAdapter",
    "SpikeEventAdapter",
    "TableAdapter",
    "adapter_name",
    "get_adapter",
    "is_supported_format",
    "load_file",
    "split_units",
]
