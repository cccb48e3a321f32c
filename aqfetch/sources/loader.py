"""
JSON loader for source definitions.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from aqfetch.domain.source import Source
from aqfetch.errors import SourceConfigError

logger = logging.getLogger(__name__)


def load_sources(*, sources_path: str) -> list[Source]:
    """
    Load active sources from every `*.json` file under `sources_path`.

    Each file holds a JSON array of source objects, or an object with a
    `sources` array. Files are read in name order and flattened. A single
    file path is accepted as well.
    """

    path = Path(sources_path)
    if path.is_dir():
        files = sorted(path.glob("*.json"))
    elif path.is_file():
        files = [path]
    else:
        raise SourceConfigError(f"Source configuration not found: {path}")

    sources: list[Source] = []
    seen: set[str] = set()
    for file_path in files:
        for source in _load_file(file_path):
            if source.name in seen:
                raise SourceConfigError(f"Duplicate source name '{source.name}' in {file_path}.")
            seen.add(source.name)
            if not source.active:
                logger.info("Skipping inactive source name=%s", source.name)
                continue
            sources.append(source)

    logger.info("Loaded %d active sources from %d files.", len(sources), len(files))
    return sources


def select_source(sources: list[Source], name: str) -> Source:
    """
    Return the source with exactly this name.
    """

    for source in sources:
        if source.name == name:
            return source
    raise SourceConfigError(f"No known source named '{name}'.")


def _load_file(file_path: Path) -> list[Source]:
    try:
        raw_data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SourceConfigError(f"Unable to read source file {file_path}: {exc}") from exc

    entries = raw_data.get("sources", []) if isinstance(raw_data, dict) else raw_data
    if not isinstance(entries, list):
        raise SourceConfigError(f"Invalid source file {file_path}: expected a list of sources.")

    parsed: list[Source] = []
    for index, entry in enumerate(entries):
        source = _parse_entry(entry)
        if source is None:
            logger.warning("Skipping malformed source entry file=%s index=%s", file_path.name, index)
            continue
        parsed.append(source)
    return parsed


def _parse_entry(entry: object) -> Source | None:
    if not isinstance(entry, dict):
        return None

    name = _optional_str(entry.get("name"))
    adapter = _optional_str(entry.get("adapter"))
    country = _optional_str(entry.get("country"))
    city = _optional_str(entry.get("city"))
    if not name or not adapter or not country or not city:
        return None

    return Source(
        name=name,
        adapter=adapter,
        country=country,
        city=city,
        contacts=_normalize_contacts(entry.get("contacts")),
        url=_optional_str(entry.get("url")),
        source_url=_optional_str(entry.get("sourceURL")),
        description=_optional_str(entry.get("description")),
        active=_optional_bool(entry.get("active"), True),
    )


def _normalize_contacts(contacts: object) -> tuple[str, ...]:
    if isinstance(contacts, str):
        contacts = [contacts]
    if not isinstance(contacts, list):
        return ()
    return tuple(item.strip() for item in contacts if isinstance(item, str) and item.strip())


def _optional_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _optional_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default
