"""Collection helpers shared by the registry, normalizer and stores."""

from __future__ import annotations

import random
import string
from typing import Any, Callable, Dict, List, Tuple


Issue = Dict[str, Any]

_ALPHABET = string.ascii_lowercase + string.digits


def issue(code: str, message: str, path: str | None = None, detail: dict | None = None) -> Issue:
    return {"code": code, "message": message, "path": path, "detail": detail}


def random_chars(size: int = 5) -> str:
    return "".join(random.choice(_ALPHABET) for _ in range(size))


def has_key(obj: Any, key: str) -> bool:
    return isinstance(obj, dict) and key in obj


def has_id(entity: Any) -> bool:
    """True when ``entity`` is a mapping carrying a usable ``id``.

    ``None`` and the empty string count as missing; ``0`` is a valid id.
    """
    if not isinstance(entity, dict):
        return False
    value = entity.get("id")
    return value is not None and value != ""


def iter_members(container: Any) -> List[Any]:
    """Members of a relation field: mapping values or list items."""
    if isinstance(container, dict):
        return list(container.values())
    if isinstance(container, (list, tuple)):
        return list(container)
    return []


def filter_obj(obj: Dict[str, Any], test: Callable[[Any, str], bool], first: bool = False) -> Any:
    """Filter a keyed collection with ``test(value, key)``.

    Returns the matching sub-mapping, or the first matching value (``None``
    when nothing matches) if ``first`` is set.
    """
    if not isinstance(obj, dict):
        raise TypeError("The thing you try to filter is not a mapping.")
    results: Dict[str, Any] = {}
    for key, value in obj.items():
        if test(value, key):
            if first:
                return value
            results[key] = value
    if first:
        return None
    return results


def _text_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


def sort_results_by_text(results: Dict[str, dict], field_name: str) -> List[Tuple[str, Any]]:
    """Sort a ``{id: record}`` collection on a text field, case-insensitively.

    Returns ``[(id, value), ...]``; the sort is stable.
    """
    pairs = [(key, record.get(field_name) if isinstance(record, dict) else None) for key, record in results.items()]
    return sorted(pairs, key=lambda pair: _text_key(pair[1]))
