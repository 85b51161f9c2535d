"""Sequential "render all" over a collection of prompt entities.

The bulk run drains the collection one entity at a time and awaits each
visualization to completion before starting the next, so a bulk run never
has more than one gateway call outstanding.

Entities already Resolved or Pending are skipped, which makes re-running the
bulk action resume from the first unresolved entity. Failed entities are
attempted again.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import PromptEntity
from .state import VisualizationState
from .tracker import VisualizationTracker

logger = logging.getLogger(__name__)

SKIPPED_STATES = frozenset({VisualizationState.RESOLVED, VisualizationState.PENDING})


class BulkOrchestrator:
    """Render every unresolved entity of a collection, one at a time."""

    def __init__(self, tracker: VisualizationTracker) -> None:
        self.tracker = tracker

    @property
    def running(self) -> bool:
        return self.tracker.state.bulk_running

    async def render_all(self, entities: Iterable[PromptEntity]) -> int:
        """Visualize every entity that is not Resolved or Pending.

        A call while another bulk run is active is a silent no-op.

        Returns:
            Number of visualization requests issued by this run.
        """
        state = self.tracker.state
        targets = list(entities)
        if state.bulk_running or not targets:
            logger.debug("render_all ignored: bulk run active or nothing to render")
            return 0

        state.bulk_running = True
        issued = 0
        logger.info(f"Bulk render started for {len(targets)} prompts")
        try:
            for entity in targets:
                if self.tracker.state_of(entity.id) in SKIPPED_STATES:
                    continue
                await self.tracker.request_visualization(entity.id, entity.content)
                issued += 1
        except Exception:
            logger.error("Bulk render interrupted", exc_info=True)
            raise
        finally:
            state.bulk_running = False
            logger.info(f"Bulk render finished after {issued} requests")
        return issued
