"""In-memory history of research calls for the current session."""

import logging
import threading
from typing import Optional

from ..observability.models import ResearchRecord

logger = logging.getLogger(__name__)


class ResearchHistory:
    """Bounded, thread-safe record list; the oldest entries are dropped first."""

    def __init__(self, max_entries: int = 100):
        self.max_entries = max_entries
        self._records: dict[str, ResearchRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: ResearchRecord) -> None:
        with self._lock:
            self._records[record.id] = record
            while len(self._records) > self.max_entries:
                oldest = next(iter(self._records))
                del self._records[oldest]

    def update(self, record: ResearchRecord) -> None:
        """Replace a record in place, keeping its position."""
        with self._lock:
            if record.id not in self._records:
                logger.warning(f"Unknown research record {record.id}")
                return
            self._records[record.id] = record

    def get(self, record_id: str) -> Optional[ResearchRecord]:
        return self._records.get(record_id)

    def list(self) -> list[ResearchRecord]:
        """All records, newest first."""
        return list(reversed(self._records.values()))

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
