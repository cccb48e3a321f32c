"""
Adapter registry populated once at startup.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterator, Mapping

import requests

from aqfetch.adapters.base import BaseAdapter
from aqfetch.adapters.json_feed import JSONFeedAdapter
from aqfetch.config import ExternalHTTPSettings
from aqfetch.errors import AdapterNotFoundError

BUILTIN_ADAPTERS: tuple[type[BaseAdapter], ...] = (JSONFeedAdapter,)


class AdapterRegistry:
    """
    Mapping from adapter name to a ready adapter instance.
    """

    def __init__(self, adapters: Mapping[str, BaseAdapter] | None = None) -> None:
        self._adapters: dict[str, BaseAdapter] = dict(adapters or {})

    def register(self, adapter: BaseAdapter, *, name: str | None = None) -> None:
        self._adapters[name or adapter.name] = adapter

    def get(self, name: str) -> BaseAdapter:
        adapter = self._adapters.get(name)
        if adapter is None:
            raise AdapterNotFoundError(name)
        return adapter

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __iter__(self) -> Iterator[str]:
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    def names(self) -> list[str]:
        return sorted(self._adapters)


def build_adapter_registry(
    *,
    http_settings: ExternalHTTPSettings,
    extra_adapters: list[str] | None = None,
    session: requests.Session | None = None,
) -> AdapterRegistry:
    """
    Instantiate built-in adapters plus any `module.path:ClassName` extras.
    """

    registry = AdapterRegistry()
    adapter_classes = list(BUILTIN_ADAPTERS)
    adapter_classes.extend(load_adapter_class(path) for path in extra_adapters or [])
    for adapter_class in adapter_classes:
        registry.register(adapter_class(http_settings=http_settings, session=session))
    return registry


def load_adapter_class(path: str) -> type[BaseAdapter]:
    if ":" not in path:
        raise ValueError(f"Invalid adapter class '{path}'. Use 'module.path:ClassName'.")

    module_path, class_name = path.split(":", 1)
    module = importlib.import_module(module_path)
    loaded = getattr(module, class_name, None)
    if loaded is None:
        raise ValueError(f"Unable to resolve adapter class '{path}'.")
    if not isinstance(loaded, type) or not issubclass(loaded, BaseAdapter):
        raise ValueError(f"Class '{path}' must inherit from BaseAdapter.")
    return loaded
