"""Abstract base class for raw file adapters.

Defines the interface that all adapters must implement: parse a file into a
canonical RawSignalRecord, or fail with ParseError.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from trialdata.data.records import RawSignalRecord
from trialdata.exceptions import ParseError, TrialDataError

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """Abstract base class for raw signal adapters.

    Subclasses list the file extensions they handle and implement ``_parse``.
    Library errors raised while reading are re-raised as ParseError.
    """

    NAME: str = ""
    EXTENSIONS: set[str] = set()

    @classmethod
    def parse(cls, file_path: str | Path, adapter_params: dict[str, Any] | None = None) -> RawSignalRecord:
        """Parse a file into a RawSignalRecord.

        Args:
            file_path: Path to the recording
            adapter_params: Adapter-specific options

        Returns:
            Canonical record for the file
        """
        path = Path(file_path)
        try:
            path.stat()
        except FileNotFoundError as e:
            raise ParseError(f"Recording not found: {path}") from e

        logger.info(f"Parsing {path.name} with {cls.__name__}")
        try:
            record = cls._parse(path, adapter_params or {})
        except TrialDataError:
            raise
        except (OSError, KeyError, ValueError, TypeError, IndexError) as e:
            raise ParseError(f"Failed to parse {path.name}: {e}") from e

        logger.info(
            f"Parsed {path.name}: {record.n_channels} channels, "
            f"sample_rate={record.sample_rate}, duration={record.duration}"
        )
        return record

    @classmethod
    @abstractmethod
    def _parse(cls, path: Path, params: dict[str, Any]) -> RawSignalRecord:
        """Read the file and build the record."""
        ...
