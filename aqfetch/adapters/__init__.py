"""
aqfetch/adapters package marker.
"""

from aqfetch.adapters.base import BaseAdapter
from aqfetch.adapters.json_feed import JSONFeedAdapter
from aqfetch.adapters.registry import AdapterRegistry, build_adapter_registry

__all__ = [
    "AdapterRegistry",
    "BaseAdapter",
    "JSONFeedAdapter",
    "build_adapter_registry",
]
