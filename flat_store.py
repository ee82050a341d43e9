"""Per-type ``id -> record`` container."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List


Record = Dict[str, Any]


def store_key(record_id: Any) -> str:
    return str(record_id)


class FlatStore:
    """System of record for one entity type.

    Keys are the string form of the record id, so ``1`` and ``"1"`` address
    the same record. Only the owning store module writes to it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._records: Dict[str, Record] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: Any) -> bool:
        return store_key(record_id) in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._records.keys()))

    def ids(self) -> List[str]:
        return list(self._records.keys())

    def get(self, record_id: Any) -> Record | None:
        record = self._records.get(store_key(record_id))
        return copy.deepcopy(record) if record is not None else None

    def records(self) -> Dict[str, Record]:
        return copy.deepcopy(self._records)

    def put(self, record_id: Any, record: Record) -> None:
        self._records[store_key(record_id)] = copy.deepcopy(record)

    def remove(self, record_id: Any) -> bool:
        return self._records.pop(store_key(record_id), None) is not None

    def clear(self) -> None:
        self._records.clear()
