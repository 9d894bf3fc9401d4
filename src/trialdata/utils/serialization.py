"""
JSON serialization utilities for trialdata.

Provides safe JSON encoding for TrialData fields and conversion summaries,
including numpy arrays, label tuples, sets, paths and Pydantic models.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np


def jsonify(obj: Any) -> dict | list | str | int | float | bool | None:
    """
    Recursively convert object to JSON-serializable format.

    Handles: dict, list/tuple, set, datetime, Path, numpy arrays/scalars, Pydantic models.
    Falls back to str() for unknown types.

    Args:
        obj: Any Python object

    Returns:
        JSON-serializable version of the object
    """
    if isinstance(obj, dict):
        return {str(k): jsonify(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [jsonify(item) for item in obj]
    elif isinstance(obj, (set, frozenset)):
        return [jsonify(item) for item in sorted(obj)]
    elif isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, (np.integer, np.floating, np.bool_)):
        return obj.item()
    elif hasattr(obj, "model_dump") and callable(obj.model_dump):
        return jsonify(obj.model_dump())
    elif isinstance(obj, (int, float, str, bool, type(None))):
        return obj
    else:
        return str(obj)


def write_json(data: Any, filepath: str) -> None:
    """
    Write data to JSON file.

    Args:
        data: Dictionary or Pydantic model to serialize
        filepath: Path to write JSON file
    """
    serializable = jsonify(data)
    with open(filepath, "w") as f:
        json.dump(serializable, f, indent=2)
