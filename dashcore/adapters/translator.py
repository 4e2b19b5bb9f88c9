from __future__ import annotations

"""Mapping-backed translator for hosts without an i18n runtime."""

from typing import Mapping, Optional


class CatalogTranslator:
    """Resolve message keys from nested or flat string tables.

    Keys are dotted paths (``"error.network"``). A missing key is returned
    unchanged, which callers treat as "no translation found".
    """

    def __init__(self, catalog: Optional[Mapping[str, object]] = None) -> None:
        self._catalog: Mapping[str, object] = dict(catalog or {})

    def __call__(self, key: str) -> str:
        flat = self._catalog.get(key)
        if isinstance(flat, str):
            return flat
        node: object = self._catalog
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return key
            node = node[part]
        return node if isinstance(node, str) else key


__all__ = ["CatalogTranslator"]
