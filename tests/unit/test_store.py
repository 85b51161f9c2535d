"""Unit tests for EntityStore collections and persistence sync."""

from __future__ import annotations

import pytest

from larchviz.core.errors import ErrorKind
from larchviz.core.models import GalleryItem, GenerationRequest
from larchviz.core.persistence import (
    GALLERY_ITEMS_KEY,
    SAVED_PROMPTS_KEY,
    THEME_KEY,
    MemoryPersistence,
)
from larchviz.core.store import EntityStore


@pytest.fixture
def store(fake_gateway, persistence) -> EntityStore:
    return EntityStore(fake_gateway, persistence, gallery_max_items=60)


def saved_ids(persistence: MemoryPersistence) -> list[str]:
    return [p["id"] for p in persistence.values[SAVED_PROMPTS_KEY]]


class TestGenerate:
    """Tests for EntityStore.generate."""

    @pytest.mark.asyncio
    async def test_replaces_recent(self, store, make_entity):
        store.recent = [make_entity(9)]

        result = await store.generate(GenerationRequest(concept="pocket park", count=3))

        assert [p.id for p in result] == ["p0", "p1", "p2"]
        assert [p.id for p in store.recent] == ["p0", "p1", "p2"]

    @pytest.mark.asyncio
    async def test_does_not_touch_saved(self, store, persistence, make_entity):
        store.toggle_saved(make_entity(7))
        writes = persistence.write_count

        await store.generate(GenerationRequest(concept="pocket park"))

        assert [p.id for p in store.saved] == ["p7"]
        assert persistence.write_count == writes

    @pytest.mark.asyncio
    async def test_blank_concept_is_noop(self, store, fake_gateway):
        assert await store.generate(GenerationRequest(concept="   ")) == []
        assert fake_gateway.calls == []

    @pytest.mark.asyncio
    async def test_failure_keeps_recent_and_records_error(self, store, fake_gateway, make_entity):
        store.recent = [make_entity(9)]
        fake_gateway.generate_error = Exception("Requested entity was not found.")

        assert await store.generate(GenerationRequest(concept="park")) == []

        assert [p.id for p in store.recent] == ["p9"]
        assert store.last_error.kind is ErrorKind.API
        assert store.is_generating is False

    @pytest.mark.asyncio
    async def test_duplicate_and_blank_ids_are_rekeyed(self, store, fake_gateway, make_entity):
        fake_gateway.entities = [make_entity(0), make_entity(0, title="dup"), make_entity(1, id="")]

        result = await store.generate(GenerationRequest(concept="park"))

        ids = [p.id for p in result]
        assert ids[0] == "p0"
        assert len(set(ids)) == 3
        assert all(ids)

    @pytest.mark.asyncio
    async def test_id_clashing_with_different_saved_prompt_is_rekeyed(
        self, store, fake_gateway, make_entity
    ):
        store.toggle_saved(make_entity(0, content="an older prompt"))

        result = await store.generate(GenerationRequest(concept="park"))

        assert result[0].id != "p0"
        assert result[0].content == "prompt text 0"


    @pytest.mark.asyncio
    async def test_ids_of_previous_recent_are_rekeyed(self, store, fake_gateway, make_entity):
        await store.generate(GenerationRequest(concept="first"))
        fake_gateway.entities = [make_entity(i, content=f"new prompt {i}") for i in range(3)]

        result = await store.generate(GenerationRequest(concept="second"))

        assert not {p.id for p in result} & {"p0", "p1", "p2"}
        assert [p.content for p in result] == ["new prompt 0", "new prompt 1", "new prompt 2"]

    @pytest.mark.asyncio
    async def test_identical_saved_prompt_keeps_its_id(self, store, make_entity):
        await store.generate(GenerationRequest(concept="first"))
        store.toggle_saved(store.recent[0])

        result = await store.generate(GenerationRequest(concept="first"))

        assert result[0].id == "p0"
        assert result[1].id != "p1"


class TestToggleSaved:
    """Tests for save membership."""

    def test_adds_to_front_once(self, store, persistence, make_entity):
        store.toggle_saved(make_entity(1))
        assert store.toggle_saved(make_entity(2)) is True

        assert [p.id for p in store.saved] == ["p2", "p1"]
        assert saved_ids(persistence) == ["p2", "p1"]
        assert store.is_saved("p2")

    def test_toggle_again_removes(self, store, persistence, make_entity):
        store.toggle_saved(make_entity(1))
        assert store.toggle_saved(make_entity(1)) is False

        assert store.saved == []
        assert saved_ids(persistence) == []
        assert not store.is_saved("p1")

    def test_double_toggle_restores_start_state(self, store, make_entity):
        store.toggle_saved(make_entity(1))
        start = list(store.saved)

        store.toggle_saved(make_entity(2))
        store.toggle_saved(make_entity(2))

        assert store.saved == start

    def test_every_toggle_writes_through(self, store, persistence, make_entity):
        store.toggle_saved(make_entity(1))
        store.toggle_saved(make_entity(1))
        assert persistence.write_count == 2


class TestEditContent:
    """Tests for propagating prompt text edits."""

    def test_updates_both_collections(self, store, persistence, make_entity):
        store.recent = [make_entity(0), make_entity(1)]
        store.toggle_saved(make_entity(0))

        assert store.edit_content("p0", "new text") is True

        assert store.recent[0].content == "new text"
        assert store.saved[0].content == "new text"
        assert persistence.values[SAVED_PROMPTS_KEY][0]["content"] == "new text"

    def test_recent_only(self, store, persistence, make_entity):
        store.recent = [make_entity(0)]
        store.toggle_saved(make_entity(5))
        writes = persistence.write_count

        store.edit_content("p0", "new text")

        assert store.recent[0].content == "new text"
        assert [p.id for p in store.saved] == ["p5"]
        assert store.saved[0].content == "prompt text 5"
        assert persistence.write_count == writes

    def test_saved_only(self, store, make_entity):
        store.toggle_saved(make_entity(3))

        store.edit_content("p3", "new text")

        assert store.saved[0].content == "new text"
        assert store.recent == []

    def test_unknown_id(self, store):
        assert store.edit_content("missing", "x") is False

    def test_keeps_other_fields(self, store, make_entity):
        store.recent = [make_entity(0)]
        store.edit_content("p0", "new text")
        assert store.recent[0].title == "Prompt 0"
        assert store.recent[0].technical_details == ["Bioswale", "Corten Steel"]


class TestGallery:
    """Tests for gallery snapshots."""

    def test_share_prepends_snapshot(self, store, persistence, make_entity):
        store.share_to_gallery(make_entity(0), "data:image/png;base64,AA==", "Photorealistic")
        item = store.share_to_gallery(make_entity(1), "data:image/png;base64,AQ==", "Comic Style")

        assert store.gallery[0] is item
        assert item.title == "Prompt 1"
        assert item.content == "prompt text 1"
        assert [g["title"] for g in persistence.values[GALLERY_ITEMS_KEY]] == ["Prompt 1", "Prompt 0"]

    def test_snapshot_is_detached_from_entity(self, store, make_entity):
        store.recent = [make_entity(0)]
        store.share_to_gallery(store.recent[0], "data:image/png;base64,AA==", "Photorealistic")

        store.edit_content("p0", "edited later")

        assert store.gallery[0].content == "prompt text 0"

    def test_cap_evicts_oldest(self, fake_gateway, persistence, make_entity):
        store = EntityStore(fake_gateway, persistence, gallery_max_items=3)
        for i in range(5):
            store.share_to_gallery(make_entity(i), f"data:image/png;base64,{i}", "Photorealistic")

        assert [g.title for g in store.gallery] == ["Prompt 4", "Prompt 3", "Prompt 2"]
        assert len(persistence.values[GALLERY_ITEMS_KEY]) == 3

    def test_clear(self, store, persistence, make_entity):
        store.share_to_gallery(make_entity(0), "data:image/png;base64,AA==", "Photorealistic")
        store.clear_gallery()

        assert store.gallery == []
        assert persistence.values[GALLERY_ITEMS_KEY] == []


class TestLoading:
    """Tests for restoring persisted state."""

    def test_restores_saved_gallery_and_theme(self, fake_gateway, make_entity):
        item = GalleryItem(artifact="data:image/png;base64,AA==", title="t", category="c", content="x")
        persistence = MemoryPersistence(
            {
                SAVED_PROMPTS_KEY: [make_entity(4).to_wire()],
                GALLERY_ITEMS_KEY: [item.to_wire()],
                THEME_KEY: "dark",
            }
        )

        store = EntityStore(fake_gateway, persistence)

        assert [p.id for p in store.saved] == ["p4"]
        assert store.gallery == [item]
        assert store.theme == "dark"
        assert store.recent == []

    def test_invalid_saved_collection_is_discarded(self, fake_gateway):
        persistence = MemoryPersistence({SAVED_PROMPTS_KEY: [{"id": "x"}]})
        assert EntityStore(fake_gateway, persistence).saved == []


class TestTheme:
    def test_set_theme_persists(self, store, persistence):
        store.set_theme("dark")
        assert persistence.values[THEME_KEY] == "dark"

    def test_defaults_to_light(self, store):
        assert store.theme == "light"

    def test_rejects_unknown_theme(self, store):
        with pytest.raises(ValueError):
            store.set_theme("sepia")  # type: ignore[arg-type]
