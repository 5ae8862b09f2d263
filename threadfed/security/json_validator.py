"""
Size and nesting limits for JSON fetched from other servers
"""
import json
from typing import Any, Dict
from flask import current_app


class SafeJSONParser:
    """
    Parses remote JSON, refusing payloads that are too big or nested too deeply
    to be a real ActivityPub object.
    """

    DEFAULT_MAX_SIZE = 1_000_000  # 1MB
    DEFAULT_MAX_DEPTH = 50

    def __init__(self):
        self.max_size = current_app.config.get('MAX_JSON_SIZE', self.DEFAULT_MAX_SIZE)
        self.max_depth = current_app.config.get('MAX_JSON_DEPTH', self.DEFAULT_MAX_DEPTH)

    def parse(self, data: bytes) -> Dict[str, Any]:
        """
        Raises:
            ValueError: if the payload is empty, too large, too deep, malformed or not a JSON object
        """
        if not data:
            raise ValueError("Empty JSON data")

        if len(data) > self.max_size:
            raise ValueError(f"JSON too large: {len(data)} bytes exceeds maximum of {self.max_size}")

        try:
            result = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        except RecursionError:
            raise ValueError(f"JSON nested too deeply (max depth: {self.max_depth})")

        if not isinstance(result, dict):
            raise ValueError("JSON payload is not an object")

        if self._depth(result) > self.max_depth:
            raise ValueError(f"JSON nested too deeply (max depth: {self.max_depth})")

        return result

    def _depth(self, value, level=1) -> int:
        if level > self.max_depth:
            return level
        if isinstance(value, dict):
            return max([self._depth(v, level + 1) for v in value.values()], default=level)
        if isinstance(value, list):
            return max([self._depth(v, level + 1) for v in value], default=level)
        return level
