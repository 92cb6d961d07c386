"""Error types surfaced by the resuscitation engine."""

from arrest_assist.domain.models import SessionPhase


class ArrestAssistError(Exception):
    """Base class for engine errors."""


class PreconditionNotMet(ArrestAssistError):
    """A command was issued before the session was started."""

    def __init__(self, command: str, phase: SessionPhase) -> None:
        super().__init__(f"{command}() requires a started session (phase is {phase.value})")
        self.command = command
        self.phase = phase
