"""
Append-only intervention log.

The log is the source of truth for every derived count (shocks given, doses
given) and for the medication-sequencing recommendation. Records are never
edited or removed; a session reset discards the whole log.
"""

from collections import Counter
from collections.abc import Iterator
from datetime import datetime, timedelta

import structlog

from arrest_assist.domain.models import (
    MEDICATION_KINDS,
    InterventionKind,
    InterventionRecord,
)

logger = structlog.get_logger(__name__)


class InterventionLog:
    """Ordered, append-only sequence of intervention records."""

    def __init__(self) -> None:
        self._records: list[InterventionRecord] = []

    def append(self, record: InterventionRecord) -> InterventionRecord:
        self._records.append(record)
        logger.debug(
            "intervention_appended",
            kind=record.kind.value,
            elapsed=record.elapsed_at_recording,
            position=len(self._records),
        )
        return record

    @property
    def entries(self) -> tuple[InterventionRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[InterventionRecord]:
        return iter(tuple(self._records))

    def count_of(self, kind: InterventionKind) -> int:
        return sum(1 for record in self._records if record.kind == kind)

    def last(self) -> InterventionRecord | None:
        return self._records[-1] if self._records else None

    def last_of(self, *kinds: InterventionKind) -> InterventionRecord | None:
        for record in reversed(self._records):
            if record.kind in kinds:
                return record
        return None

    def last_medication(self) -> InterventionKind | None:
        """Kind of the most recently given drug, if any."""
        record = self.last_of(*MEDICATION_KINDS)
        return record.kind if record else None

    def summary(self) -> dict[InterventionKind, int]:
        """Counts per kind, including kinds that were never recorded."""
        counts = Counter(record.kind for record in self._records)
        return {kind: counts.get(kind, 0) for kind in InterventionKind}

    def next_dose_estimate(
        self, interval_seconds: int, *kinds: InterventionKind
    ) -> datetime | None:
        """
        Wall-clock estimate of when the next dose of ``kinds`` is due.

        Display-only: based on the last matching record's wall-clock time,
        it ignores pauses and never feeds back into the session countdowns.
        """
        record = self.last_of(*kinds)
        if record is None:
            return None
        return record.wall_clock_time + timedelta(seconds=interval_seconds)
