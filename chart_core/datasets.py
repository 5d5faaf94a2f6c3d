from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from chart_core.errors import ConfigurationError, DatasetConflict, DatasetNotFound

logger = logging.getLogger(__name__)


def infer_columns(rows: Iterable[Mapping[str, Any]]) -> List[str]:
    """Ordered union of row keys; the first row's key order wins."""
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            seen.setdefault(str(key), None)
    return list(seen)


def _freeze_rows(rows: Iterable[Mapping[str, Any]]) -> Tuple[Mapping[str, Any], ...]:
    return tuple(MappingProxyType({str(k): v for k, v in row.items()}) for row in rows)


@dataclass(frozen=True)
class Dataset:
    id: int
    name: str
    columns: Tuple[str, ...]
    rows: Tuple[Mapping[str, Any], ...]
    owner: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def visible_to(self, owner: Optional[str]) -> bool:
        return self.owner is None or self.owner == owner

    def to_dict(self, *, include_rows: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "columns": list(self.columns),
            "rowCount": self.row_count,
            "owner": self.owner,
            "createdAt": self.created_at.isoformat(timespec="seconds"),
        }
        if include_rows:
            payload["data"] = [dict(r) for r in self.rows]
        return payload


class DatasetStore:
    """In-memory dataset store.

    Datasets are immutable once stored; rows are kept as read-only mappings so a
    query can never change what the next query sees. Datasets without an owner are
    visible to every caller.
    """

    def __init__(self) -> None:
        self._datasets: Dict[int, Dataset] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._datasets)

    def _name_taken(self, name: str, owner: Optional[str]) -> bool:
        return any(ds.name == name and ds.owner == owner for ds in self._datasets.values())

    def _insert(self, name: str, rows: List[Mapping[str, Any]], owner: Optional[str]) -> Dataset:
        ds = Dataset(
            id=self._next_id,
            name=name,
            columns=tuple(infer_columns(rows)),
            rows=_freeze_rows(rows),
            owner=owner,
        )
        self._datasets[ds.id] = ds
        self._next_id += 1
        logger.info("Stored dataset %d '%s' (%d rows, %d columns)", ds.id, ds.name, ds.row_count, len(ds.columns))
        return ds

    def create(self, name: str, rows: Iterable[Mapping[str, Any]], owner: Optional[str] = None) -> Dataset:
        name = (name or "").strip()
        if not name:
            raise ConfigurationError("name", "Dataset name is required")
        rows = list(rows)
        with self._lock:
            if self._name_taken(name, owner):
                raise DatasetConflict(name)
            return self._insert(name, rows, owner)

    def add_unique(self, name: str, rows: Iterable[Mapping[str, Any]], owner: Optional[str] = None) -> Dataset:
        """Store under ``name``, or ``name (1)``, ``name (2)``... when it is taken."""
        base = (name or "").strip()
        if not base:
            raise ConfigurationError("name", "Dataset name is required")
        rows = list(rows)
        with self._lock:
            candidate = base
            counter = 1
            while self._name_taken(candidate, owner):
                candidate = f"{base} ({counter})"
                counter += 1
            return self._insert(candidate, rows, owner)

    def get(self, dataset_id: int, owner: Optional[str] = None) -> Dataset:
        with self._lock:
            ds = self._datasets.get(dataset_id)
        if ds is None or not ds.visible_to(owner):
            raise DatasetNotFound(dataset_id, owner)
        return ds

    def list(self, owner: Optional[str] = None) -> List[Dataset]:
        with self._lock:
            visible = [ds for ds in self._datasets.values() if ds.visible_to(owner)]
        return sorted(visible, key=lambda ds: (ds.created_at, ds.id), reverse=True)

    def delete(self, dataset_id: int, owner: Optional[str] = None) -> None:
        with self._lock:
            self.get(dataset_id, owner)
            del self._datasets[dataset_id]
        logger.info("Deleted dataset %d", dataset_id)

    def load_json(self, path: Path | str) -> List[Dataset]:
        """Seed the store from ``[{"name": ..., "rows": [...], "owner": ...}, ...]``."""
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        loaded = []
        for entry in raw:
            loaded.append(self.add_unique(entry["name"], entry.get("rows") or [], owner=entry.get("owner")))
        logger.info("Loaded %d datasets from %s", len(loaded), path)
        return loaded
