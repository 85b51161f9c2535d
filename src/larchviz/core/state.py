"""Shared state container for per-item visualization orchestration.

All mutable orchestration state lives in one :class:`OrchestratorState`
owned by the session and shared by the tracker, the bulk orchestrator and
the edit coordinator. Nothing else writes to it.

Mutation Rule
-------------
Every change replaces a whole mapping (copy, modify the copy, assign) instead
of mutating a container in place. Combined with the single-threaded event
loop, this means an observer never sees a half-applied update and no lock is
required: the only suspension points are gateway calls, and no mapping is
held across one.

State Derivation
----------------
The visualization state of an id is derived, not stored:

===========  ==============================================
State        Condition (first match wins)
===========  ==============================================
PENDING      id is in ``in_flight``
FAILED       id has an entry in ``errors``
RESOLVED     id has an entry in ``artifacts``
IDLE         none of the above
===========  ==============================================

So the three observable states are mutually exclusive by construction, and a
recorded error always hides a stale artifact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ServiceError


class VisualizationState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class OrchestratorState:
    """Session-wide orchestration state.

    Attributes
    ----------
    in_flight : frozenset[str]
        Ids with a visualization call outstanding
    artifacts : dict[str, str]
        Latest successful artifact per id
    errors : dict[str, ServiceError]
        Visualization failure per id, cleared on the next request
    bulk_running : bool
        True while a render-all run is active
    active_edit_id : str | None
        Target of the single global edit session, if any
    edit_error : ServiceError | None
        Outcome of the last failed edit
    edit_instructions : dict[str, str]
        Pending refinement instruction text per id
    """

    in_flight: frozenset[str] = frozenset()
    artifacts: dict[str, str] = field(default_factory=dict)
    errors: dict[str, ServiceError] = field(default_factory=dict)
    bulk_running: bool = False
    active_edit_id: str | None = None
    edit_error: ServiceError | None = None
    edit_instructions: dict[str, str] = field(default_factory=dict)

    def state_of(self, entity_id: str) -> VisualizationState:
        if entity_id in self.in_flight:
            return VisualizationState.PENDING
        if entity_id in self.errors:
            return VisualizationState.FAILED
        if entity_id in self.artifacts:
            return VisualizationState.RESOLVED
        return VisualizationState.IDLE

    def snapshot(self, entity_ids: list[str]) -> dict[str, dict]:
        """Serializable per-id view for display layers."""
        view = {}
        for entity_id in entity_ids:
            current = self.state_of(entity_id)
            error = self.errors.get(entity_id)
            view[entity_id] = {
                "state": current.value,
                "artifact": (
                    self.artifacts.get(entity_id)
                    if current is VisualizationState.RESOLVED
                    else None
                ),
                "error": error.to_wire() if error and current is VisualizationState.FAILED else None,
                "editing": self.active_edit_id == entity_id,
            }
        return view
