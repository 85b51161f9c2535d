"""Refinement of already-rendered artifacts.

One edit session may be active across the whole session at a time; the
marker is ``OrchestratorState.active_edit_id``. While an edit is running,
visualization requests for the entity under edit are ignored so the edit
and a fresh render never race to replace the same artifact. Requests for
other entities are not affected.

An edit failure is reported through ``edit_error`` only. The entity's
visualization state is left alone because its current artifact is still
valid.
"""

from __future__ import annotations

import logging

from .errors import ErrorKind, ServiceError, classify_error
from .state import VisualizationState
from .tracker import VisualizationTracker

logger = logging.getLogger(__name__)


class EditCoordinator:
    """Apply follow-up instructions to rendered images, one edit at a time."""

    def __init__(self, tracker: VisualizationTracker) -> None:
        self.tracker = tracker

    @property
    def active_edit_id(self) -> str | None:
        return self.tracker.state.active_edit_id

    @property
    def last_error(self) -> ServiceError | None:
        return self.tracker.state.edit_error

    def set_instruction(self, entity_id: str, instruction: str) -> None:
        state = self.tracker.state
        state.edit_instructions = {**state.edit_instructions, entity_id: instruction}

    def instruction_for(self, entity_id: str) -> str:
        return self.tracker.state.edit_instructions.get(entity_id, "")

    async def refine(self, entity_id: str, instruction: str | None = None) -> bool:
        """Edit the Resolved artifact of *entity_id*.

        Args:
            entity_id: Target entity.
            instruction: Refinement text. Defaults to the buffered instruction
                for the entity.

        Returns:
            True if the artifact was replaced.
        """
        state = self.tracker.state
        if instruction is None:
            instruction = self.instruction_for(entity_id)

        if not instruction.strip():
            logger.debug(f"Edit of {entity_id} ignored: empty instruction")
            return False
        if self.tracker.state_of(entity_id) is not VisualizationState.RESOLVED:
            logger.debug(f"Edit of {entity_id} ignored: no resolved artifact")
            return False
        if state.active_edit_id is not None:
            logger.debug(f"Edit of {entity_id} ignored: {state.active_edit_id} is being edited")
            return False

        state.active_edit_id = entity_id
        state.edit_error = None
        current = state.artifacts[entity_id]
        logger.info(f"Editing {entity_id}: {instruction[:60]}")
        try:
            result = await self.tracker.gateway.edit(current, instruction)
            if result.ok:
                state.artifacts = {**state.artifacts, entity_id: result.artifact}
                state.edit_instructions = {
                    k: v for k, v in state.edit_instructions.items() if k != entity_id
                }
                logger.info(f"Edit of {entity_id} applied")
                return True
            state.edit_error = result.error or ServiceError(
                ErrorKind.UNKNOWN, "Failed to edit image."
            )
        except Exception as e:
            state.edit_error = classify_error(e)
        finally:
            state.active_edit_id = None

        logger.warning(
            f"Edit of {entity_id} failed ({state.edit_error.kind.value}): {state.edit_error.message}"
        )
        return False
