"""
Utilities package for trialdata.
"""

from trialdata.utils.serialization import jsonify, write_json

__all__ = ["jsonify", "write_json"]
