"""
Department-employee task workflow layered on top of report status.

    pending --approve--> approved --start--> in-progress --resolve--> resolved
       |                    |                    |
       +--drop(reason)------+--------------------+------> dropped
       +--request_reassignment--> pending-request --grant_reassignment--> pending

resolved and dropped are terminal.
"""
from __future__ import annotations

from dataclasses import dataclass, replace

from errors import WorkflowTransitionError

PENDING = "pending"
APPROVED = "approved"
IN_PROGRESS = "in-progress"
RESOLVED = "resolved"
DROPPED = "dropped"
PENDING_REQUEST = "pending-request"

TASK_STATES = (PENDING, APPROVED, IN_PROGRESS, RESOLVED, DROPPED, PENDING_REQUEST)
TERMINAL_STATES = (RESOLVED, DROPPED)

# action -> {from_state: to_state}
TRANSITIONS: dict[str, dict[str, str]] = {
    "approve": {PENDING: APPROVED},
    "start": {PENDING: IN_PROGRESS, APPROVED: IN_PROGRESS},
    "resolve": {APPROVED: RESOLVED, IN_PROGRESS: RESOLVED},
    "drop": {PENDING: DROPPED, APPROVED: DROPPED, IN_PROGRESS: DROPPED},
    "request_reassignment": {PENDING: PENDING_REQUEST, APPROVED: PENDING_REQUEST, IN_PROGRESS: PENDING_REQUEST},
    "grant_reassignment": {PENDING_REQUEST: PENDING},
}


@dataclass(frozen=True)
class TaskState:
    status: str = PENDING
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES


def allowed_actions(state: TaskState) -> list[str]:
    return sorted(action for action, edges in TRANSITIONS.items() if state.status in edges)


def transition(state: TaskState, action: str, reason: str | None = None) -> TaskState:
    edges = TRANSITIONS.get(action)
    if edges is None:
        raise WorkflowTransitionError(f"Unknown action: {action}")
    if state.status not in edges:
        raise WorkflowTransitionError(f"Cannot {action} a task that is {state.status}")

    if action == "drop":
        note = (reason or "").strip()
        if not note:
            raise WorkflowTransitionError("A reason is required to drop a task")
        return replace(state, status=DROPPED, reason=note)

    return replace(state, status=edges[state.status], reason=None)
