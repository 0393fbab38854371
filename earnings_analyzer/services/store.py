# =============================================================================
# Analysis Store - In-Memory Registry of Analysis Records
# =============================================================================
#
# Process-wide registry used by the demo deployment. One instance is created
# in the application lifespan and shared by the upload handler, the
# background analysis task, and the dashboard read path. Tests construct a
# fresh instance each time.
#
# STRUCTURE:
#   _records: dict[id, AnalysisRecord]   - lookup
#   _order:   list[id]                   - most-recent-first iteration
#
# CONCURRENCY:
# Every operation takes `_lock` for the duration of a few dict/list
# operations only, never across an await, so unrelated uploads' analysis
# calls stay fully concurrent. Records are frozen and replaced on update
# (copy-on-write): a reader holding a record never sees it half-updated.
#
# Updates are field-wise overlays. Two updates touching disjoint fields
# both survive; two updates touching the same field are last-writer-wins.
# The pipeline gives each record a single terminal writer, so an update to
# a record that is already terminal is logged as a warning.
# =============================================================================

from __future__ import annotations

import logging
import threading
import uuid
from datetime import UTC, datetime
from typing import Any

from earnings_analyzer.exceptions import RecordNotFoundError
from earnings_analyzer.models.analysis import (
    AnalysisPatch,
    AnalysisRecord,
    lifecycle_violation,
)

logger = logging.getLogger(__name__)


class AnalysisStore:
    """Ordered, thread-safe registry of AnalysisRecords keyed by id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, AnalysisRecord] = {}
        self._order: list[str] = []

    def add(self, fields: dict[str, Any]) -> AnalysisRecord:
        """
        Insert a new record at the front of iteration order.

        Assigns `id` and `created_at` when the caller does not supply them.
        Raises pydantic.ValidationError if the fields do not form a valid
        record; raises ValueError if the supplied id is already taken.
        """
        values = dict(fields)
        if not values.get("id"):
            values["id"] = uuid.uuid4().hex
        if values.get("created_at") is None:
            values["created_at"] = datetime.now(UTC)
        record = AnalysisRecord.model_validate(values)

        with self._lock:
            if record.id in self._records:
                raise ValueError(f"Duplicate analysis id: {record.id}")
            self._records[record.id] = record
            self._order.insert(0, record.id)

        logger.debug("Added analysis record %s (%s)", record.id, record.status)
        return record

    def update(
        self,
        record_id: str,
        patch: AnalysisPatch | dict[str, Any],
    ) -> AnalysisRecord:
        """
        Merge the fields set on `patch` into the record with `record_id`.

        Fields not set on the patch are left untouched. `id`, `created_at`
        and the metadata fields cannot appear in a patch.

        Raises:
            RecordNotFoundError: No record with this id exists.
            ValueError: The merged record would not be in exactly one of
                processing, processed or error.
        """
        if not isinstance(patch, AnalysisPatch):
            patch = AnalysisPatch.model_validate(patch)
        changes = patch.changes()

        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFoundError(record_id)

            problem = lifecycle_violation(
                changes.get("processing", current.processing),
                changes.get("processed", current.processed),
                changes.get("error", current.error),
            )
            if problem:
                raise ValueError(f"Rejected update to {record_id}: {problem}")

            if current.is_terminal and changes:
                logger.warning(
                    "Analysis record %s already terminal (%s); applying "
                    "second update to fields %s",
                    record_id, current.status, sorted(changes),
                )

            updated = current.model_copy(update=changes)
            self._records[record_id] = updated

        logger.debug(
            "Updated analysis record %s: %s -> %s",
            record_id, current.status, updated.status,
        )
        return updated

    def get(self, record_id: str) -> AnalysisRecord | None:
        with self._lock:
            return self._records.get(record_id)

    def get_all(self) -> list[AnalysisRecord]:
        """All records, most recently added first."""
        with self._lock:
            return [self._records[record_id] for record_id in self._order]

    def get_processing_count(self) -> int:
        with self._lock:
            return sum(1 for r in self._records.values() if r.processing)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._records)

    def __len__(self) -> int:
        return self.size
