"""
Dataset Registry

Process-local session state for uploaded datasets. Rows are normalized once
on registration and kept in memory only; nothing is written to disk, so a
restart forgets every dataset.
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .values import Dataset

logger = logging.getLogger("csvinsight.registry")


class DatasetRegistry:
    """
    In-memory map of dataset id to ``Dataset``.
    Thread-safe implementation for concurrent access.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._datasets: Dict[str, Dataset] = {}
        self._registered_at: Dict[str, str] = {}

    def register(self, records: Sequence[Mapping[str, Any]], name: str) -> Dict[str, Any]:
        """Normalize ``records`` into a new dataset and return its summary."""
        dataset = Dataset.from_records(records, name=name)
        dataset_id = str(uuid.uuid4())
        with self._lock:
            self._datasets[dataset_id] = dataset
            self._registered_at[dataset_id] = datetime.utcnow().isoformat()
            summary = self._summary(dataset_id, dataset)
        logger.info(
            "Registered dataset %s '%s' (%d rows, %d columns)",
            dataset_id, name, dataset.row_count, dataset.column_count,
        )
        return summary

    def get(self, dataset_id: str) -> Optional[Dataset]:
        with self._lock:
            return self._datasets.get(dataset_id)

    def get_summary(self, dataset_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            dataset = self._datasets.get(dataset_id)
            return self._summary(dataset_id, dataset) if dataset else None

    def list(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [self._summary(i, d) for i, d in self._datasets.items()]

    def remove(self, dataset_id: str) -> Optional[Dataset]:
        """Forget a dataset; returns it, or ``None`` if it was unknown."""
        with self._lock:
            self._registered_at.pop(dataset_id, None)
            return self._datasets.pop(dataset_id, None)

    def clear(self) -> None:
        with self._lock:
            self._datasets.clear()
            self._registered_at.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._datasets)

    def _summary(self, dataset_id: str, dataset: Dataset) -> Dict[str, Any]:
        return {
            "id": dataset_id,
            "name": dataset.name,
            "revision": dataset.revision,
            "row_count": dataset.row_count,
            "column_count": dataset.column_count,
            "columns": list(dataset.columns),
            "registered_at": self._registered_at.get(dataset_id),
        }


dataset_registry = DatasetRegistry()
