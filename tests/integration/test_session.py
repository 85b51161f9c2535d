"""End-to-end session tests against the scripted gateway.

These walk through a full studio session: generate prompts, render them one
by one and in bulk, recover from failures, refine an image, share it to the
gallery and export the collection.
"""

from __future__ import annotations

import pytest

from larchviz.core.errors import ErrorKind, ServiceError
from larchviz.core.gateway import GatewayResult
from larchviz.core.models import GenerationRequest
from larchviz.core.persistence import GALLERY_ITEMS_KEY, JsonFilePersistence
from larchviz.core.session import create_session
from larchviz.core.state import VisualizationState


def safety_block() -> GatewayResult:
    return GatewayResult(
        error=ServiceError(ErrorKind.SAFETY, "Visualization blocked by safety filters.")
    )


class TestSessionScenario:
    @pytest.mark.asyncio
    async def test_generate_render_and_recover(self, session, fake_gateway):
        entities = await session.generate(GenerationRequest(concept="pocket park", count=3))
        ids = [p.id for p in entities]
        fake_gateway.visualize_outcomes[entities[1].content] = safety_block()

        assert await session.visualize(ids[0]) is VisualizationState.RESOLVED
        assert await session.visualize(ids[1]) is VisualizationState.FAILED
        assert session.tracker.error_for(ids[1]).kind is ErrorKind.SAFETY
        fake_gateway.calls.clear()
        del fake_gateway.visualize_outcomes[entities[1].content]

        issued = await session.render_all("recent")

        # Resolved entities are skipped; the failed one is retried.
        assert issued == 2
        assert fake_gateway.calls_for("visualize") == [entities[1].content, entities[2].content]
        assert all(
            session.tracker.state_of(i) is VisualizationState.RESOLVED for i in ids
        )

    @pytest.mark.asyncio
    async def test_view_merges_state(self, session, fake_gateway):
        await session.generate(GenerationRequest(concept="pocket park"))
        fake_gateway.visualize_outcomes["prompt text 1"] = ConnectionError("offline")
        await session.visualize("p0")
        await session.visualize("p1")
        session.toggle_saved("p2")

        view = {item["id"]: item for item in session.view("recent")}

        assert view["p0"]["state"] == "resolved"
        assert view["p0"]["artifact"].startswith("data:image/png;base64,")
        assert view["p1"]["state"] == "failed"
        assert view["p1"]["error"]["type"] == "network"
        assert view["p1"]["artifact"] is None
        assert view["p2"]["state"] == "idle"
        assert view["p2"]["saved"] is True
        assert view["p0"]["technicalDetails"] == ["Bioswale", "Corten Steel"]

    @pytest.mark.asyncio
    async def test_regenerate_drops_stale_state(self, session, fake_gateway, make_entity):
        await session.generate(GenerationRequest(concept="first"))
        await session.visualize("p0")
        session.toggle_saved("p0")
        await session.visualize("p1")

        fake_gateway.entities = [make_entity(i) for i in range(5, 8)]
        await session.generate(GenerationRequest(concept="second"))

        assert session.tracker.state_of("p0") is VisualizationState.RESOLVED
        assert session.tracker.state_of("p1") is VisualizationState.IDLE

    @pytest.mark.asyncio
    async def test_regenerate_with_reused_ids_starts_idle(self, session, fake_gateway, make_entity):
        await session.generate(GenerationRequest(concept="first"))
        await session.render_all("recent")

        fake_gateway.entities = [make_entity(i, content=f"new prompt {i}") for i in range(3)]
        entities = await session.generate(GenerationRequest(concept="second"))
        fake_gateway.calls.clear()

        assert [p.content for p in entities] == ["new prompt 0", "new prompt 1", "new prompt 2"]
        assert all(
            session.tracker.state_of(p.id) is VisualizationState.IDLE for p in entities
        )
        assert session.tracker.display_artifact("p0") is None

        assert await session.render_all("recent") == 3
        assert fake_gateway.calls_for("visualize") == [p.content for p in entities]

    @pytest.mark.asyncio
    async def test_regenerate_keeps_state_of_saved_prompt(self, session, fake_gateway, make_entity):
        await session.generate(GenerationRequest(concept="first"))
        await session.visualize("p0")
        session.toggle_saved("p0")

        fake_gateway.entities = [make_entity(0), make_entity(1, content="new prompt 1")]
        entities = await session.generate(GenerationRequest(concept="again", count=2))

        assert entities[0].id == "p0"
        assert session.tracker.state_of("p0") is VisualizationState.RESOLVED
        assert session.tracker.state_of(entities[1].id) is VisualizationState.IDLE

    @pytest.mark.asyncio
    async def test_count_defaults_to_configured_prompt_count(
        self, test_config, fake_gateway, persistence, make_entity
    ):
        test_config.default_prompt_count = 5
        fake_gateway.entities = [make_entity(i) for i in range(8)]
        session = create_session(test_config, gateway=fake_gateway, persistence=persistence)

        assert len(await session.generate(GenerationRequest(concept="park"))) == 5
        assert len(await session.generate(GenerationRequest(concept="park", count=2))) == 2

    @pytest.mark.asyncio
    async def test_unknown_id(self, session):
        with pytest.raises(KeyError):
            await session.visualize("nope")


class TestRefineAndShare:
    @pytest.mark.asyncio
    async def test_refine_then_share(self, session, persistence):
        await session.generate(GenerationRequest(concept="pocket park"))
        await session.visualize("p0")

        assert await session.refine("p0", "add a water feature") is True
        item = session.share_to_gallery("p0", "Photorealistic")

        assert item.artifact == session.tracker.display_artifact("p0")
        assert item.title == "Prompt 0"
        assert persistence.values[GALLERY_ITEMS_KEY][0]["id"] == item.id

    @pytest.mark.asyncio
    async def test_share_requires_rendered_image(self, session):
        await session.generate(GenerationRequest(concept="pocket park"))
        with pytest.raises(ValueError):
            session.share_to_gallery("p0", "Photorealistic")

    @pytest.mark.asyncio
    async def test_edit_content_changes_next_render(self, session, fake_gateway):
        await session.generate(GenerationRequest(concept="pocket park"))
        session.edit_content("p0", "rewritten prompt")

        await session.visualize("p0")

        assert fake_gateway.calls_for("visualize") == ["rewritten prompt"]


class TestExport:
    @pytest.mark.asyncio
    async def test_export_recent(self, session):
        await session.generate(GenerationRequest(concept="pocket park"))

        text = session.export("recent", "Modernist", "Photorealistic")

        assert text.startswith("LA Visual Prompt Engine - RECENT SESSION")
        assert "[3] Prompt 2" in text

    def test_export_empty_saved(self, session):
        assert session.export("saved", "Modernist", "Photorealistic") == ""


class TestPersistenceAcrossSessions:
    @pytest.mark.asyncio
    async def test_saved_and_theme_survive_restart(self, test_config, fake_gateway):
        first = create_session(test_config, gateway=fake_gateway)
        await first.generate(GenerationRequest(concept="pocket park"))
        first.toggle_saved("p1")
        first.store.set_theme("dark")

        second = create_session(
            test_config, gateway=fake_gateway, persistence=JsonFilePersistence(test_config.data_dir)
        )

        assert [p.id for p in second.store.saved] == ["p1"]
        assert second.store.theme == "dark"
        assert second.store.recent == []
