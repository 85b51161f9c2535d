"""Per-item visualization state tracking.

:class:`VisualizationTracker` drives one gateway ``visualize`` call per
request and records the outcome in the shared :class:`OrchestratorState`.

Transitions
-----------
======================  =====================  =========================
From                    Event                  To
======================  =====================  =========================
Idle / Failed           request                Pending
Pending                 gateway success        Resolved
Pending                 gateway failure        Failed
Resolved                request                Pending
Pending                 request                (ignored)
Resolved, under edit    request                (ignored)
======================  =====================  =========================

A re-request from Resolved keeps the previous artifact in place; it is only
overwritten by the next success. If that request fails the error hides the
old artifact until a later success.

Failures never escape :meth:`VisualizationTracker.request_visualization`:
they are classified and stored per id, so callers such as the bulk loop can
simply await it.
"""

from __future__ import annotations

import logging

from .errors import ErrorKind, ServiceError, classify_error
from .gateway import GatewayBase
from .state import OrchestratorState, VisualizationState

logger = logging.getLogger(__name__)


class VisualizationTracker:
    """Issue visualization calls and keep per-id state consistent."""

    def __init__(
        self,
        gateway: GatewayBase,
        state: OrchestratorState | None = None,
        aspect_ratio: str = "16:9",
    ) -> None:
        self.gateway = gateway
        self.state = state if state is not None else OrchestratorState()
        self.aspect_ratio = aspect_ratio

    def state_of(self, entity_id: str) -> VisualizationState:
        return self.state.state_of(entity_id)

    def display_artifact(self, entity_id: str) -> str | None:
        """The artifact to show for *entity_id*, or None.

        Only a Resolved id displays its artifact; Failed ids never show a
        stale one.
        """
        if self.state_of(entity_id) is VisualizationState.RESOLVED:
            return self.state.artifacts[entity_id]
        return None

    def error_for(self, entity_id: str) -> ServiceError | None:
        return self.state.errors.get(entity_id)

    async def request_visualization(self, entity_id: str, prompt_text: str) -> None:
        """Render *prompt_text* for *entity_id*.

        A request for an id that is already Pending, or whose artifact is
        being edited, is ignored: no state change and no gateway call.
        """
        state = self.state
        if entity_id in state.in_flight:
            logger.debug(f"Visualization already pending for {entity_id}, ignoring request")
            return
        if entity_id == state.active_edit_id:
            logger.debug(f"{entity_id} is being edited, ignoring visualization request")
            return

        # Enter Pending before the first suspension point.
        state.in_flight = state.in_flight | {entity_id}
        if entity_id in state.errors:
            state.errors = {k: v for k, v in state.errors.items() if k != entity_id}

        logger.info(f"Visualizing {entity_id}")
        try:
            result = await self.gateway.visualize(prompt_text, aspect_ratio=self.aspect_ratio)
        except Exception as e:
            error = classify_error(e)
            logger.warning(f"Visualization of {entity_id} failed ({error.kind.value}): {e}")
        else:
            if result.ok:
                error = None
                state.artifacts = {**state.artifacts, entity_id: result.artifact}
                logger.info(f"Visualization of {entity_id} resolved")
            else:
                error = result.error or ServiceError(ErrorKind.UNKNOWN, "No image generated")
                logger.warning(
                    f"Visualization of {entity_id} returned no image ({error.kind.value}): "
                    f"{error.message}"
                )
        finally:
            state.in_flight = state.in_flight - {entity_id}

        if error is not None:
            state.errors = {**state.errors, entity_id: error}

    async def retry(self, entity_id: str, prompt_text: str) -> None:
        """Re-run a Failed visualization. No-op for any other state."""
        if self.state_of(entity_id) is not VisualizationState.FAILED:
            logger.debug(f"Retry ignored for {entity_id}: not in failed state")
            return
        await self.request_visualization(entity_id, prompt_text)

    def forget(self, entity_ids: list[str]) -> None:
        """Drop artifacts and errors for ids that no longer belong to any collection.

        Pending ids are left alone; their outstanding call still completes.
        """
        drop = set(entity_ids) - self.state.in_flight
        if not drop:
            return
        self.state.artifacts = {k: v for k, v in self.state.artifacts.items() if k not in drop}
        self.state.errors = {k: v for k, v in self.state.errors.items() if k not in drop}
        self.state.edit_instructions = {
            k: v for k, v in self.state.edit_instructions.items() if k not in drop
        }
