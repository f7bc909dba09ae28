"""
Adapter registry

An explicit lookup from language name or file extension to an adapter.
It is built once at startup and handed to the engine. After ``seal()`` it
is read-only, so lookups need no locking.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .base import LanguageAdapter
from .python_adapter import PythonAdapter
from .tree_sitter_adapter import JavaScriptAdapter, TypeScriptAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters keyed by language name; registration is last-wins per name."""

    def __init__(self) -> None:
        self._adapters: Dict[str, LanguageAdapter] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> AdapterRegistry:
        """End the registration phase."""
        self._sealed = True
        return self

    def _check_mutable(self) -> None:
        if self._sealed:
            raise RuntimeError("adapter registry is sealed; register adapters at startup")

    def register(self, adapter: LanguageAdapter) -> None:
        self._check_mutable()
        previous = self._adapters.get(adapter.name)
        self._adapters[adapter.name] = adapter
        if previous is not None:
            logger.info("Replaced %s adapter %r with %r", adapter.name, previous, adapter)
        else:
            logger.info("Registered %s adapter for %s", adapter.name, ', '.join(adapter.extensions))

    def unregister(self, name: str) -> bool:
        self._check_mutable()
        removed = self._adapters.pop(name, None)
        if removed is not None:
            logger.info("Unregistered %s adapter", name)
        return removed is not None

    def get_adapter(self, name: str) -> Optional[LanguageAdapter]:
        return self._adapters.get(name)

    def get_adapter_for_file(self, file_path: str) -> Optional[LanguageAdapter]:
        """Adapter with the longest extension matching ``file_path``, or None.

        Ties go to the adapter registered first. None means "skip this file".
        """
        lowered = file_path.lower()
        best: Optional[LanguageAdapter] = None
        best_length = 0
        for adapter in self._adapters.values():
            for extension in adapter.extensions:
                if lowered.endswith(extension.lower()) and len(extension) > best_length:
                    best, best_length = adapter, len(extension)
        if best is not None and not best.supports_file(file_path):
            return None
        return best

    def adapters(self) -> List[LanguageAdapter]:
        return list(self._adapters.values())

    def supported_extensions(self) -> List[str]:
        return sorted({ext for adapter in self._adapters.values() for ext in adapter.extensions})

    def __contains__(self, name: str) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def create_default_registry() -> AdapterRegistry:
    """Registry with the built-in Python, TypeScript and JavaScript adapters, sealed."""
    registry = AdapterRegistry()
    for adapter in (PythonAdapter(), TypeScriptAdapter(), JavaScriptAdapter()):
        registry.register(adapter)
    return registry.seal()
