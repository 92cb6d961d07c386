"""
Core services for the application.

This package contains the resuscitation engine, its session clock, the
intervention log, the medication advisor and the alert observer layer.
"""

from .alerts import AlertEvent, AlertMonitor
from .intervention_log import InterventionLog
from .medication_advisor import recommend_from_log, recommend_medication
from .resuscitation import ResuscitationEngine, ResuscitationSession
from .result import Result
from .session_clock import SessionClock

__all__ = [
    "AlertEvent",
    "AlertMonitor",
    "InterventionLog",
    "recommend_from_log",
    "recommend_medication",
    "ResuscitationEngine",
    "ResuscitationSession",
    "Result",
    "SessionClock",
]
