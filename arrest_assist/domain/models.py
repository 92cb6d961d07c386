"""
Domain models for the cardiac-arrest resuscitation session.

These models represent the core clinical concepts and are framework-agnostic.
Records handed out of the engine are frozen Pydantic models; the live session
state itself is owned and mutated only by the engine.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SessionPhase(str, Enum):
    """Lifecycle phase of a resuscitation session."""

    IDLE = "idle"
    ASSESSING = "assessing"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"


class Rhythm(str, Enum):
    """Cardiac rhythm classification at the last rhythm check."""

    UNSET = "unset"
    SHOCKABLE = "shockable"  # VF / pulseless VT
    NON_SHOCKABLE = "non-shockable"  # asystole / PEA


class InterventionKind(str, Enum):
    """Actions that can be documented in the intervention log."""

    COMPRESSION_START = "compression_start"
    SHOCK = "shock"
    EPINEPHRINE = "epinephrine"
    AMIODARONE = "amiodarone"
    LIDOCAINE = "lidocaine"
    RHYTHM_CHECK = "rhythm_check"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_medication(self) -> bool:
        return self in MEDICATION_KINDS


_DISPLAY_NAMES: dict[InterventionKind, str] = {
    InterventionKind.COMPRESSION_START: "Chest compressions",
    InterventionKind.SHOCK: "Shock",
    InterventionKind.EPINEPHRINE: "Epinephrine",
    InterventionKind.AMIODARONE: "Amiodarone",
    InterventionKind.LIDOCAINE: "Lidocaine",
    InterventionKind.RHYTHM_CHECK: "Rhythm check",
}

MEDICATION_KINDS = frozenset(
    {InterventionKind.EPINEPHRINE, InterventionKind.AMIODARONE, InterventionKind.LIDOCAINE}
)
ANTIARRHYTHMIC_KINDS = frozenset({InterventionKind.AMIODARONE, InterventionKind.LIDOCAINE})


class AlertKind(str, Enum):
    """Reminders the engine raises for the presentation layer."""

    RHYTHM_CHECK = "rhythm_check"
    EPINEPHRINE = "epinephrine"
    SHOCK = "shock"


class MedicationCategory(str, Enum):
    EPINEPHRINE = "epinephrine"
    ANTIARRHYTHMIC = "antiarrhythmic"


ROSC_DETAIL = "ROSC detected"


def format_elapsed(seconds: int) -> str:
    """Format elapsed seconds as ``mm:ss`` (minutes are not wrapped at 60)."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


class InterventionRecord(BaseModel):
    """Single timestamped entry of the intervention log."""

    model_config = ConfigDict(frozen=True)

    kind: InterventionKind
    elapsed_at_recording: str = Field(pattern=r"^\d{2,}:\d{2}$")
    wall_clock_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    detail: str | None = None

    @property
    def display_name(self) -> str:
        return self.kind.display_name


class MedicationRecommendation(BaseModel):
    """Next medication suggested by the advisor."""

    model_config = ConfigDict(frozen=True)

    category: MedicationCategory
    medication: InterventionKind
    dose_mg: int = Field(gt=0)

    @property
    def label(self) -> str:
        return f"{self.medication.display_name} {self.dose_mg} mg"


class SessionSnapshot(BaseModel):
    """Read-only view of the session for rendering."""

    model_config = ConfigDict(frozen=True)

    session_id: UUID
    phase: SessionPhase
    elapsed_seconds: int = Field(ge=0)
    rhythm: Rhythm
    previous_rhythm: Rhythm
    is_first_non_shockable_selection: bool

    rhythm_check_countdown: int = Field(ge=0)
    epinephrine_countdown_min: int = Field(ge=0)
    epinephrine_countdown_max: int = Field(ge=0)

    rhythm_check_due: bool
    epinephrine_due: bool
    epinephrine_overdue: bool
    shock_urgent: bool

    alert_counts: dict[AlertKind, int]
    interventions: tuple[InterventionRecord, ...]

    @property
    def elapsed(self) -> str:
        return format_elapsed(self.elapsed_seconds)

    @property
    def is_paused(self) -> bool:
        return self.phase == SessionPhase.PAUSED
