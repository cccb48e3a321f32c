"""
Source configuration exports.
"""

from aqfetch.sources.loader import load_sources, select_source

__all__ = ["load_sources", "select_source"]
