"""
aqfetch/domain/source.py

Configured upstream producer of measurements.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Source:
    """
    One upstream data producer, its adapter and who to alert when it fails.
    """

    name: str
    adapter: str
    country: str
    city: str
    contacts: tuple[str, ...] = ()
    url: str | None = None
    source_url: str | None = None
    description: str | None = None
    active: bool = True
