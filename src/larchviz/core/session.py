"""Session wiring for the prompt studio.

A :class:`StudioSession` bundles everything one user works with: the gateway,
the entity store, the shared orchestration state and the three components
that operate on it. Each user gets their own session; sessions share
nothing.

    >>> session = create_session()
    >>> await session.generate(GenerationRequest(concept="a pocket park"))
    >>> await session.render_all("recent")
    >>> session.view("recent")

Entity lookups go through the store, so callers address entities by id and
the session supplies the current prompt text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from .adapters import GeminiGateway, ProxyGateway  # noqa: F401  (registers gateways)
from .bulk import BulkOrchestrator
from .config import LarchvizConfig, config as default_config
from .editing import EditCoordinator
from .gateway import GatewayBase, gateway_registry
from .models import GalleryItem, GenerationRequest, PromptEntity
from .persistence import JsonFilePersistence, PersistenceAdapter
from .prompt_tools import export_session
from .state import OrchestratorState, VisualizationState
from .store import EntityStore
from .tracker import VisualizationTracker

logger = logging.getLogger(__name__)

Scope = Literal["recent", "saved"]


@dataclass
class StudioSession:
    """All per-user state and the operations over it."""

    config: LarchvizConfig
    gateway: GatewayBase
    store: EntityStore
    state: OrchestratorState = field(default_factory=OrchestratorState)

    def __post_init__(self) -> None:
        self.tracker = VisualizationTracker(
            self.gateway, self.state, aspect_ratio=self.config.default_aspect_ratio
        )
        self.bulk = BulkOrchestrator(self.tracker)
        self.editor = EditCoordinator(self.tracker)

    def _require(self, entity_id: str) -> PromptEntity:
        entity = self.store.find(entity_id)
        if entity is None:
            raise KeyError(f"Unknown prompt id: {entity_id}")
        return entity

    async def generate(self, request: GenerationRequest) -> list[PromptEntity]:
        """Replace the recent collection and drop state of the replaced prompts.

        Render state of every previous recent prompt that is not saved is
        forgotten. A request that leaves ``count`` unset asks for
        ``config.default_prompt_count`` prompts.
        """
        if "count" not in request.model_fields_set:
            request = request.model_copy(update={"count": self.config.default_prompt_count})

        previous = [p.id for p in self.store.recent]
        entities = await self.store.generate(request)
        if entities:
            self.tracker.forget(
                [entity_id for entity_id in previous if not self.store.is_saved(entity_id)]
            )
        return entities

    async def visualize(self, entity_id: str) -> VisualizationState:
        entity = self._require(entity_id)
        await self.tracker.request_visualization(entity.id, entity.content)
        return self.tracker.state_of(entity.id)

    async def retry(self, entity_id: str) -> VisualizationState:
        entity = self._require(entity_id)
        await self.tracker.retry(entity.id, entity.content)
        return self.tracker.state_of(entity.id)

    async def render_all(self, scope: Scope = "recent") -> int:
        return await self.bulk.render_all(self.store.collection(scope))

    async def refine(self, entity_id: str, instruction: str | None = None) -> bool:
        return await self.editor.refine(entity_id, instruction)

    def toggle_saved(self, entity_id: str) -> bool:
        return self.store.toggle_saved(self._require(entity_id))

    def edit_content(self, entity_id: str, new_text: str) -> bool:
        return self.store.edit_content(entity_id, new_text)

    def share_to_gallery(self, entity_id: str, category: str) -> GalleryItem:
        """Snapshot a Resolved prompt into the gallery.

        Raises:
            ValueError: If the prompt has no displayable artifact.
        """
        entity = self._require(entity_id)
        artifact = self.tracker.display_artifact(entity_id)
        if artifact is None:
            raise ValueError(f"Prompt {entity_id} has no rendered image to share")
        return self.store.share_to_gallery(entity, artifact, category)

    def export(self, scope: Scope, style: str, category: str) -> str:
        return export_session(self.store.collection(scope), scope, style, category)

    def view(self, scope: Scope = "recent") -> list[dict]:
        """Entities of *scope* merged with their visualization state."""
        entities = self.store.collection(scope)
        states = self.state.snapshot([p.id for p in entities])
        return [
            {**p.to_wire(), **states[p.id], "saved": self.store.is_saved(p.id)} for p in entities
        ]

    async def close(self) -> None:
        await self.gateway.aclose()


def create_session(
    config: LarchvizConfig | None = None,
    gateway: GatewayBase | None = None,
    persistence: PersistenceAdapter | None = None,
) -> StudioSession:
    """Build a session, defaulting each collaborator from configuration.

    Args:
        config: Configuration (default: the global instance)
        gateway: Gateway to use (default: ``config.gateway_backend`` from the registry)
        persistence: Storage adapter (default: JSON files in ``config.data_dir``)

    Returns:
        A ready StudioSession with saved prompts, gallery and theme loaded
    """
    config = config or default_config
    if gateway is None:
        gateway = gateway_registry.instantiate(config.gateway_backend, config)
    if persistence is None:
        persistence = JsonFilePersistence(config.data_dir)

    store = EntityStore(gateway, persistence, gallery_max_items=config.gallery_max_items)
    session = StudioSession(config=config, gateway=gateway, store=store)
    logger.info(
        f"Created session with {gateway.name} gateway, {len(store.saved)} saved prompts, "
        f"{len(store.gallery)} gallery items"
    )
    return session
