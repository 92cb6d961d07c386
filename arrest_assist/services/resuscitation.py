"""
Resuscitation protocol state machine.

Owns the single live ResuscitationSession and is its only writer:
- Phase transitions (idle -> assessing -> in progress <-> paused, reset)
- Reminder countdowns advanced by tick()
- Alert flags raised on countdown edges and rhythm transitions
- The append-only intervention log

Alerts are exposed as state only: a flag plus a per-alert counter that is
incremented every time the alert is signalled. Sound and animation drivers
watch snapshots (see alerts.AlertMonitor) instead of being called from here.

Expected misuse (a command before start()) comes back as a Result error,
everything else that is out of phase is a logged no-op.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

import structlog

from arrest_assist.config import ProtocolConfig
from arrest_assist.domain.errors import PreconditionNotMet
from arrest_assist.domain.models import (
    ANTIARRHYTHMIC_KINDS,
    ROSC_DETAIL,
    AlertKind,
    InterventionKind,
    InterventionRecord,
    MedicationRecommendation,
    Rhythm,
    SessionPhase,
    SessionSnapshot,
    format_elapsed,
)
from arrest_assist.services.intervention_log import InterventionLog
from arrest_assist.services.medication_advisor import recommend_from_log
from arrest_assist.services.result import Result

logger = structlog.get_logger(__name__)

CommandResult = Result[SessionSnapshot, PreconditionNotMet]

_CLOCK_RUNNING_PHASES = frozenset({SessionPhase.ASSESSING, SessionPhase.IN_PROGRESS})
_RHYTHM_SELECTION_PHASES = _CLOCK_RUNNING_PHASES


@dataclass
class ResuscitationSession:
    """Mutable state of one resuscitation attempt."""

    session_id: UUID = field(default_factory=uuid4)
    phase: SessionPhase = SessionPhase.IDLE
    elapsed_seconds: int = 0
    rhythm: Rhythm = Rhythm.UNSET
    previous_rhythm: Rhythm = Rhythm.UNSET
    is_first_non_shockable_selection: bool = False

    rhythm_check_countdown: int = 0
    # None until the first epinephrine dose; both epinephrine countdowns derive from it
    seconds_since_epinephrine: int | None = None

    rhythm_check_due: bool = False
    epinephrine_due: bool = False
    shock_urgent: bool = False

    alert_counts: dict[AlertKind, int] = field(
        default_factory=lambda: {kind: 0 for kind in AlertKind}
    )
    interventions: InterventionLog = field(default_factory=InterventionLog)


class ResuscitationEngine:
    """
    Drives a single resuscitation session.

    Not thread-safe: the clock and user commands must be issued from the same
    thread of control (one asyncio event loop), which serializes them.
    """

    def __init__(
        self,
        protocol: ProtocolConfig | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.protocol = protocol or ProtocolConfig()
        self._now = now or (lambda: datetime.now(UTC))
        self.session = ResuscitationSession()
        self.logger = logger.bind(component="resuscitation_engine")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def log(self) -> InterventionLog:
        return self.session.interventions

    @property
    def is_clock_running(self) -> bool:
        return self.session.phase in _CLOCK_RUNNING_PHASES

    @property
    def snapshot(self) -> SessionSnapshot:
        s = self.session
        epinephrine_min, epinephrine_max = self._epinephrine_countdowns()
        return SessionSnapshot(
            session_id=s.session_id,
            phase=s.phase,
            elapsed_seconds=s.elapsed_seconds,
            rhythm=s.rhythm,
            previous_rhythm=s.previous_rhythm,
            is_first_non_shockable_selection=s.is_first_non_shockable_selection,
            rhythm_check_countdown=s.rhythm_check_countdown,
            epinephrine_countdown_min=epinephrine_min,
            epinephrine_countdown_max=epinephrine_max,
            rhythm_check_due=s.rhythm_check_due,
            epinephrine_due=s.epinephrine_due,
            epinephrine_overdue=(
                s.seconds_since_epinephrine is not None
                and s.seconds_since_epinephrine >= self.protocol.epinephrine_max_interval_seconds
            ),
            shock_urgent=s.shock_urgent,
            alert_counts=dict(s.alert_counts),
            interventions=s.interventions.entries,
        )

    def next_recommended_medication(self) -> MedicationRecommendation:
        return recommend_from_log(self.session.rhythm, self.session.interventions)

    def next_epinephrine_at(self) -> datetime | None:
        """Wall-clock estimate for display; see InterventionLog.next_dose_estimate."""
        return self.log.next_dose_estimate(
            self.protocol.epinephrine_min_interval_seconds, InterventionKind.EPINEPHRINE
        )

    def next_antiarrhythmic_at(self) -> datetime | None:
        return self.log.next_dose_estimate(
            self.protocol.antiarrhythmic_interval_seconds, *ANTIARRHYTHMIC_KINDS
        )

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def tick(self) -> SessionSnapshot:
        """
        Advance the session by one second.

        All threshold checks use pre-tick values so each edge fires exactly
        once. A no-op unless the clock is running (assessing or in progress).
        """
        s = self.session
        if not self.is_clock_running:
            return self.snapshot

        s.elapsed_seconds += 1

        previous_rhythm_check = s.rhythm_check_countdown
        s.rhythm_check_countdown = max(0, previous_rhythm_check - 1)
        if previous_rhythm_check == 1:
            s.rhythm_check_due = True
            self._signal(AlertKind.RHYTHM_CHECK)
            self.logger.info("rhythm_check_due", elapsed=format_elapsed(s.elapsed_seconds))

        if s.rhythm != Rhythm.UNSET and s.seconds_since_epinephrine is not None:
            previous_min, _ = self._epinephrine_countdowns()
            s.seconds_since_epinephrine += 1
            if previous_min == 1:
                s.epinephrine_due = True
                self._signal(AlertKind.EPINEPHRINE)
                self.logger.info("epinephrine_due", elapsed=format_elapsed(s.elapsed_seconds))

        return self.snapshot

    # ------------------------------------------------------------------
    # Phase transitions
    # ------------------------------------------------------------------

    def start(self) -> CommandResult:
        s = self.session
        if s.phase != SessionPhase.IDLE:
            return self._ignored("start")

        s.phase = SessionPhase.ASSESSING
        s.rhythm_check_countdown = self.protocol.rhythm_check_interval_seconds
        self._append(InterventionKind.COMPRESSION_START, "Compressions started")
        self.logger.info("session_started")
        return Result.ok(self.snapshot)

    def select_rhythm(self, new_rhythm: Rhythm) -> CommandResult:
        s = self.session
        if s.phase == SessionPhase.IDLE:
            return self._rejected("select_rhythm")
        if s.phase not in _RHYTHM_SELECTION_PHASES:
            return self._ignored("select_rhythm")

        self._reset_rhythm_check()

        if new_rhythm != s.rhythm:
            s.previous_rhythm = s.rhythm

            if (
                s.rhythm == Rhythm.UNSET
                and new_rhythm == Rhythm.NON_SHOCKABLE
                and s.phase == SessionPhase.ASSESSING
            ):
                # Epinephrine is due immediately on the first non-shockable rhythm
                s.is_first_non_shockable_selection = True
                s.epinephrine_due = True
                self._signal(AlertKind.EPINEPHRINE)

            if new_rhythm == Rhythm.SHOCKABLE and s.rhythm in (Rhythm.UNSET, Rhythm.NON_SHOCKABLE):
                self._raise_shock_urgent()
            else:
                s.shock_urgent = False

            s.rhythm = new_rhythm
            s.phase = SessionPhase.IN_PROGRESS
            self._append(InterventionKind.RHYTHM_CHECK, f"Rhythm identified: {new_rhythm.value}")
            self.logger.info(
                "rhythm_selected",
                rhythm=new_rhythm.value,
                previous_rhythm=s.previous_rhythm.value,
            )
        elif new_rhythm == Rhythm.SHOCKABLE:
            self._raise_shock_urgent()
            self._append(
                InterventionKind.RHYTHM_CHECK,
                f"Rhythm identified: {new_rhythm.value} (still shockable)",
            )
            self.logger.info("rhythm_reconfirmed", rhythm=new_rhythm.value)

        return Result.ok(self.snapshot)

    def pause(self) -> CommandResult:
        s = self.session
        if s.phase == SessionPhase.IDLE:
            return self._rejected("pause")
        if s.phase != SessionPhase.IN_PROGRESS:
            return self._ignored("pause")

        s.phase = SessionPhase.PAUSED
        self.logger.info("session_paused", elapsed=format_elapsed(s.elapsed_seconds))
        return Result.ok(self.snapshot)

    def resume(self) -> CommandResult:
        s = self.session
        if s.phase == SessionPhase.IDLE:
            return self._rejected("resume")
        if s.phase != SessionPhase.PAUSED:
            return self._ignored("resume")

        s.phase = SessionPhase.IN_PROGRESS
        self.logger.info("session_resumed", elapsed=format_elapsed(s.elapsed_seconds))
        return Result.ok(self.snapshot)

    def reset(self) -> CommandResult:
        """Discard the whole session, log included. Always safe to call."""
        discarded = len(self.session.interventions)
        self.session = ResuscitationSession()
        self.logger.info("session_reset", discarded_interventions=discarded)
        return Result.ok(self.snapshot)

    # ------------------------------------------------------------------
    # Interventions
    # ------------------------------------------------------------------

    def add_intervention(self, kind: InterventionKind, detail: str | None = None) -> CommandResult:
        s = self.session
        if s.phase == SessionPhase.IDLE:
            return self._rejected("add_intervention")

        self._append(kind, detail)

        if kind == InterventionKind.EPINEPHRINE:
            s.seconds_since_epinephrine = 0
            s.epinephrine_due = False
            s.is_first_non_shockable_selection = False
        elif kind == InterventionKind.SHOCK:
            self._reset_rhythm_check()
            s.shock_urgent = False
        # Antiarrhythmics and rhythm checks (ROSC included) only touch the log

        return Result.ok(self.snapshot)

    def record_shock(self) -> CommandResult:
        return self.add_intervention(InterventionKind.SHOCK)

    def record_rosc(self) -> CommandResult:
        """Document return of spontaneous circulation and pause the protocol."""
        result = self.add_intervention(InterventionKind.RHYTHM_CHECK, ROSC_DETAIL)
        if result.is_err():
            return result
        return self.pause()

    def acknowledge_and_resume(self) -> CommandResult:
        return self.resume()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _epinephrine_countdowns(self) -> tuple[int, int]:
        since = self.session.seconds_since_epinephrine
        if since is None:
            return 0, 0
        return (
            max(0, self.protocol.epinephrine_min_interval_seconds - since),
            max(0, self.protocol.epinephrine_max_interval_seconds - since),
        )

    def _reset_rhythm_check(self) -> None:
        self.session.rhythm_check_countdown = self.protocol.rhythm_check_interval_seconds
        self.session.rhythm_check_due = False

    def _raise_shock_urgent(self) -> None:
        self.session.shock_urgent = True
        self._signal(AlertKind.SHOCK)
        self.logger.info("shock_urgent", elapsed=format_elapsed(self.session.elapsed_seconds))

    def _signal(self, alert: AlertKind) -> None:
        self.session.alert_counts[alert] += 1

    def _append(self, kind: InterventionKind, detail: str | None) -> InterventionRecord:
        record = InterventionRecord(
            kind=kind,
            elapsed_at_recording=format_elapsed(self.session.elapsed_seconds),
            wall_clock_time=self._now(),
            detail=detail,
        )
        self.session.interventions.append(record)
        self.logger.info(
            "intervention_recorded",
            kind=kind.value,
            elapsed=record.elapsed_at_recording,
            detail=detail,
        )
        return record

    def _rejected(self, command: str) -> CommandResult:
        error = PreconditionNotMet(command, self.session.phase)
        self.logger.warning("command_rejected", command=command, error=str(error))
        return Result.err(error)

    def _ignored(self, command: str) -> CommandResult:
        self.logger.debug("command_ignored", command=command, phase=self.session.phase.value)
        return Result.ok(self.snapshot)
