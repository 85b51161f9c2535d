"""In-memory entity collections with synchronous persistence.

The store owns three collections and one preference:

- **recent**: the working set from the latest generation. Only ever replaced
  wholesale by :meth:`EntityStore.generate`; never persisted.
- **saved**: prompts the user bookmarked. Newest first.
- **gallery**: detached :class:`GalleryItem` snapshots, newest first, capped
  at ``gallery_max_items`` with the oldest evicted.
- **theme**: ``"dark"`` or ``"light"``.

Every mutation of saved, gallery or theme writes the complete value through
the persistence adapter before the call returns. There is no dirty tracking:
the adapter always holds the latest in-memory state.
"""

from __future__ import annotations

import logging
import uuid
from typing import Literal

from pydantic import TypeAdapter, ValidationError

from .errors import ServiceError, classify_error
from .gateway import GatewayBase
from .models import GalleryItem, GenerationRequest, PromptEntity
from .persistence import GALLERY_ITEMS_KEY, SAVED_PROMPTS_KEY, THEME_KEY, PersistenceAdapter

logger = logging.getLogger(__name__)

Theme = Literal["dark", "light"]

_PROMPT_LIST = TypeAdapter(list[PromptEntity])
_GALLERY_LIST = TypeAdapter(list[GalleryItem])


class EntityStore:
    """Recent, saved and gallery collections plus the theme preference."""

    def __init__(
        self,
        gateway: GatewayBase,
        persistence: PersistenceAdapter,
        gallery_max_items: int = 60,
    ) -> None:
        self.gateway = gateway
        self.persistence = persistence
        self.gallery_max_items = gallery_max_items

        self.recent: list[PromptEntity] = []
        self.saved: list[PromptEntity] = self._load_list(SAVED_PROMPTS_KEY, _PROMPT_LIST)
        self.gallery: list[GalleryItem] = self._load_list(GALLERY_ITEMS_KEY, _GALLERY_LIST)
        self.theme: Theme = "dark" if persistence.load(THEME_KEY) == "dark" else "light"

        self.is_generating = False
        self.last_error: ServiceError | None = None

    def _load_list(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.persistence.load(key, [])
        try:
            return adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid persisted collection '{key}': {e}")
            return []

    def _sync_saved(self) -> None:
        self.persistence.save(SAVED_PROMPTS_KEY, [p.to_wire() for p in self.saved])

    def _sync_gallery(self) -> None:
        self.persistence.save(GALLERY_ITEMS_KEY, [item.to_wire() for item in self.gallery])

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, request: GenerationRequest) -> list[PromptEntity]:
        """Replace the recent collection with a fresh gateway result.

        The saved collection is never touched. On failure the classified
        error is kept in ``last_error`` and recent stays as it was.

        Returns:
            The new recent collection, or an empty list if nothing changed.
        """
        if not request.concept.strip():
            logger.debug("Ignoring generation request with a blank concept")
            return []

        self.is_generating = True
        self.last_error = None
        try:
            entities = await self.gateway.generate(request)
        except Exception as e:
            self.last_error = classify_error(e)
            logger.warning(f"Prompt generation failed ({self.last_error.kind.value}): {e}")
            return []
        finally:
            self.is_generating = False

        previous = {p.id for p in self.recent}
        self.recent = self._with_unique_ids(entities, previous)
        logger.info(f"Generated {len(self.recent)} prompts for concept '{request.concept[:40]}'")
        return list(self.recent)

    def _with_unique_ids(
        self, entities: list[PromptEntity], previous: set[str] | frozenset[str] = frozenset()
    ) -> list[PromptEntity]:
        """Re-key entities whose id is blank, repeated, or already in use.

        An id is in use when a different saved prompt holds it, or when the
        previous recent collection held it and it is not that same saved
        prompt. A fresh prompt therefore never inherits render state that
        belongs to an older one.
        """
        saved_by_id = {p.id: p for p in self.saved}
        seen: set[str] = set()
        result = []
        for entity in entities:
            saved = saved_by_id.get(entity.id)
            same_saved = saved is not None and saved == entity
            taken = not same_saved and (saved is not None or entity.id in previous)
            if not entity.id or entity.id in seen or taken:
                entity = entity.model_copy(update={"id": uuid.uuid4().hex})
            seen.add(entity.id)
            result.append(entity)
        return result

    # ------------------------------------------------------------------
    # Saved collection
    # ------------------------------------------------------------------

    def is_saved(self, entity_id: str) -> bool:
        return any(p.id == entity_id for p in self.saved)

    def toggle_saved(self, entity: PromptEntity) -> bool:
        """Add *entity* to the front of saved, or remove it if already there.

        Returns:
            True if the entity is saved after the call.
        """
        if self.is_saved(entity.id):
            self.saved = [p for p in self.saved if p.id != entity.id]
            now_saved = False
        else:
            self.saved = [entity, *self.saved]
            now_saved = True

        self._sync_saved()
        logger.info(f"{'Saved' if now_saved else 'Unsaved'} prompt {entity.id}")
        return now_saved

    def edit_content(self, entity_id: str, new_text: str) -> bool:
        """Rewrite the prompt text of *entity_id* in every collection holding it.

        Returns:
            True if at least one collection contained the id.
        """

        def rewrite(collection: list[PromptEntity]) -> tuple[list[PromptEntity], bool]:
            found = False
            updated = []
            for p in collection:
                if p.id == entity_id:
                    p = p.model_copy(update={"content": new_text})
                    found = True
                updated.append(p)
            return updated, found

        self.recent, in_recent = rewrite(self.recent)
        saved, in_saved = rewrite(self.saved)
        if in_saved:
            self.saved = saved
            self._sync_saved()

        if not (in_recent or in_saved):
            logger.debug(f"edit_content: no collection contains {entity_id}")
        return in_recent or in_saved

    def find(self, entity_id: str) -> PromptEntity | None:
        """Look an entity up in recent first, then saved."""
        for p in (*self.recent, *self.saved):
            if p.id == entity_id:
                return p
        return None

    def collection(self, scope: Literal["recent", "saved"]) -> list[PromptEntity]:
        return list(self.recent if scope == "recent" else self.saved)

    # ------------------------------------------------------------------
    # Gallery
    # ------------------------------------------------------------------

    def share_to_gallery(self, entity: PromptEntity, artifact: str, category: str) -> GalleryItem:
        """Snapshot a rendered prompt into the gallery (newest first)."""
        item = GalleryItem(
            artifact=artifact,
            title=entity.title,
            category=category,
            content=entity.content,
        )
        self.import_gallery_items([item])
        return item

    def import_gallery_items(self, items: list[GalleryItem]) -> None:
        """Prepend *items*, evicting the oldest beyond the cap."""
        self.gallery = [*items, *self.gallery][: self.gallery_max_items]
        self._sync_gallery()
        logger.info(f"Gallery now holds {len(self.gallery)} items")

    def clear_gallery(self) -> None:
        self.gallery = []
        self._sync_gallery()

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def set_theme(self, theme: Theme) -> None:
        if theme not in ("dark", "light"):
            raise ValueError(f"Theme must be 'dark' or 'light', got {theme!r}")
        self.theme = theme
        self.persistence.save(THEME_KEY, theme)
