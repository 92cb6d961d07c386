"""
Alert observer layer.

The engine only sets flags and bumps per-alert counters. AlertMonitor diffs
consecutive snapshots and turns every newly signalled alert into an AlertEvent
for sound/animation drivers registered as listeners.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

import structlog

from arrest_assist.domain.models import AlertKind, SessionSnapshot

logger = structlog.get_logger(__name__)

AlertListener = Callable[["AlertEvent"], None]


@dataclass
class AlertEvent:
    """An alert that should be rendered or sounded."""

    kind: AlertKind
    elapsed: str
    timestamp: datetime


class AlertMonitor:
    """Turns alert counter transitions into AlertEvents."""

    def __init__(
        self,
        history_size: int = 100,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.alert_history: deque[AlertEvent] = deque(maxlen=history_size)
        self._listeners: list[AlertListener] = []
        self._seen: dict[AlertKind, int] = {kind: 0 for kind in AlertKind}
        self._session_id: UUID | None = None
        self._now = now or (lambda: datetime.now(UTC))
        self.logger = logger.bind(component="alert_monitor")

    def add_listener(self, listener: AlertListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AlertListener) -> None:
        self._listeners.remove(listener)

    def observe(self, snapshot: SessionSnapshot) -> list[AlertEvent]:
        """Emit one event per alert signalled since the previous snapshot."""
        events: list[AlertEvent] = []
        now = self._now()

        if snapshot.session_id != self._session_id:
            # A new session starts counting from zero, even if its reset snapshot was never seen
            self._session_id = snapshot.session_id
            self._seen = {kind: 0 for kind in AlertKind}

        for kind in AlertKind:
            count = snapshot.alert_counts.get(kind, 0)
            seen = self._seen[kind]
            events.extend(
                AlertEvent(kind=kind, elapsed=snapshot.elapsed, timestamp=now)
                for _ in range(count - seen)
            )
            self._seen[kind] = count

        for event in events:
            self.alert_history.append(event)
            self.logger.info("alert_raised", kind=event.kind.value, elapsed=event.elapsed)
            self._dispatch(event)

        return events

    def _dispatch(self, event: AlertEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self.logger.exception("alert_listener_failed", kind=event.kind.value, error=str(e))
