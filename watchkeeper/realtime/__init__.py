"""Watcher sessions: lifecycle, session table, restarts and reconciliation."""

from .endpoint_state_machine import EndpointLifecycle, LifecycleEvent, TransitionNotAllowed
from .reconciliation import ReconciliationSweeper
from .restart_scheduler import RestartScheduler
from .session_manager import SessionManager, StartOutcome, StartSignal, StopOutcome, StopSignal
from .session_models import Session, SessionTable

__all__ = [
    "EndpointLifecycle",
    "LifecycleEvent",
    "ReconciliationSweeper",
    "RestartScheduler",
    "Session",
    "SessionManager",
    "SessionTable",
    "StartOutcome",
    "StartSignal",
    "StopOutcome",
    "StopSignal",
    "TransitionNotAllowed",
]
