"""
Watcher lifecycle state machine for a single endpoint.

One State per persisted EndpointStatus. Illegal transitions (for example a
late "became live" after the watcher was stopped) raise
TransitionNotAllowed instead of reaching the store.

Transitions:
- stopped/unsupported/connect_failed/reconnecting/unknown → searching: search
- searching/connecting/active → searching: search (stale statuses from a previous run)
- searching → connecting: probe_succeeded
- searching → unsupported: probe_unsupported
- searching/connecting → connect_failed: fail
- connecting → active: go_live
- connecting/active → reconnecting: lose_connection
- any → stopped: halt
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from ..logging_config import get_logger
from ..models import EndpointStatus

logger = get_logger(__name__)

__all__ = ["EndpointLifecycle", "LifecycleEvent", "TransitionNotAllowed"]


class LifecycleEvent(Enum):
    """Events that trigger lifecycle transitions."""

    SEARCH = "search"
    PROBE_SUCCEEDED = "probe_succeeded"
    PROBE_UNSUPPORTED = "probe_unsupported"
    FAIL = "fail"
    GO_LIVE = "go_live"
    LOSE_CONNECTION = "lose_connection"
    HALT = "halt"


class EndpointLifecycle(StateMachine):
    """
    Lifecycle of one endpoint's watcher.

    Each live Session owns one instance, seeded from the persisted status
    when the session is reserved. The session manager persists ``status``
    after every successful transition.
    """

    validate_disconnected_states = False

    stopped = State("Stopped", value=EndpointStatus.STOPPED, initial=True)
    searching = State("Searching", value=EndpointStatus.SEARCHING)
    connecting = State("Connecting", value=EndpointStatus.CONNECTING)
    active = State("Active", value=EndpointStatus.ACTIVE)
    reconnecting = State("Reconnecting", value=EndpointStatus.RECONNECTING)
    unsupported = State("Unsupported", value=EndpointStatus.UNSUPPORTED)
    connect_failed = State("Connect Failed", value=EndpointStatus.CONNECT_FAILED)
    unknown = State("Unknown", value=EndpointStatus.UNKNOWN)

    search = (
        stopped.to(searching)
        | unsupported.to(searching)
        | connect_failed.to(searching)
        | reconnecting.to(searching)
        | unknown.to(searching)
        | searching.to(searching)
        | connecting.to(searching)
        | active.to(searching)
    )
    probe_succeeded = searching.to(connecting)
    probe_unsupported = searching.to(unsupported)
    fail = searching.to(connect_failed) | connecting.to(connect_failed)
    go_live = connecting.to(active)
    lose_connection = connecting.to(reconnecting) | active.to(reconnecting)
    halt = (
        stopped.to(stopped)
        | searching.to(stopped)
        | connecting.to(stopped)
        | active.to(stopped)
        | reconnecting.to(stopped)
        | unsupported.to(stopped)
        | connect_failed.to(stopped)
        | unknown.to(stopped)
    )

    def __init__(self, endpoint_id: str, status: EndpointStatus = EndpointStatus.STOPPED):
        # on_enter_state runs during super().__init__ for the start state
        self.endpoint_id = endpoint_id
        self.transition_count = 0
        self.last_transition_at: datetime | None = None

        super().__init__(start_value=EndpointStatus(status))

    @property
    def status(self) -> EndpointStatus:
        return EndpointStatus(self.current_state_value)

    def can(self, event: LifecycleEvent) -> bool:
        return event.value in {allowed.id for allowed in self.allowed_events}

    def fire(self, event: LifecycleEvent) -> EndpointStatus:
        """
        Apply event and return the new status.

        Raises:
            TransitionNotAllowed: If the current status does not accept event
        """
        self.send(event.value)
        self.transition_count += 1
        self.last_transition_at = datetime.now(UTC)
        return self.status

    def on_enter_state(self, state: State, event=None, source: State | None = None, **kwargs) -> None:
        """Log every transition, including the seeded start state."""
        logger.info(
            "Watcher lifecycle transition",
            endpoint_id=self.endpoint_id,
            trigger_event=str(event) if event else "initial",
            from_state=source.value.value if source is not None and source.value is not None else None,
            to_state=state.value.value,
        )

    def get_stats(self) -> dict[str, Any]:
        return {
            "endpoint_id": self.endpoint_id,
            "status": self.status.value,
            "transition_count": self.transition_count,
            "last_transition_at": self.last_transition_at.isoformat() if self.last_transition_at else None,
        }
