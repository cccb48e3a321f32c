"""
aqfetch/adapters/json_feed.py

Adapter for upstreams that already publish the raw result document as JSON.
"""

from __future__ import annotations

from typing import Any

from aqfetch.adapters.base import BaseAdapter
from aqfetch.domain.source import Source
from aqfetch.errors import AdapterError


class JSONFeedAdapter(BaseAdapter):
    """
    GET `source.url` and return the decoded document unchanged.
    """

    name = "json_feed"

    def fetch_data(self, source: Source) -> dict[str, Any]:
        if not source.url:
            raise AdapterError(f"{source.name}: source has no url configured.")

        payload = self._get_json(source, source.url)
        if not isinstance(payload, dict):
            raise AdapterError(f"{source.name}: expected a JSON object, got {type(payload).__name__}.")
        return payload
