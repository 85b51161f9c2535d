"""Shared pytest fixtures for larchviz tests."""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from larchviz.core.config import LarchvizConfig
from larchviz.core.gateway import GatewayBase, GatewayResult, to_data_url
from larchviz.core.models import GenerationRequest, PromptEntity, TemplateDescriptor
from larchviz.core.persistence import MemoryPersistence
from larchviz.core.session import StudioSession, create_session


class FakeGateway(GatewayBase):
    """Scripted in-process gateway.

    - ``visualize_outcomes`` / ``edit_outcomes`` map a prompt text or
      instruction to a GatewayResult or an exception to raise. Unscripted
      calls succeed with a deterministic artifact.
    - ``gate``, when set, holds every call until the event is set, so tests
      can observe Pending state.
    - ``calls`` records ``(capability, argument)`` in call order and
      ``max_active`` the highest number of overlapping calls.
    """

    name = "fake"
    description = "Scripted gateway for tests"

    def __init__(self, config: LarchvizConfig, entities: list[PromptEntity] | None = None) -> None:
        super().__init__(config)
        self.entities = entities or []
        self.generate_error: Exception | None = None
        self.visualize_outcomes: dict[str, GatewayResult | Exception] = {}
        self.edit_outcomes: dict[str, GatewayResult | Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def _enter(self, capability: str, argument: str) -> None:
        self.calls.append((capability, argument))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
        finally:
            self.active -= 1

    def calls_for(self, capability: str) -> list[str]:
        return [argument for name, argument in self.calls if name == capability]

    async def generate(self, request: GenerationRequest) -> list[PromptEntity]:
        await self._enter("generate", request.concept)
        if self.generate_error is not None:
            raise self.generate_error
        return self.entities[: request.count]

    async def visualize(self, prompt_text: str, aspect_ratio: str = "16:9") -> GatewayResult:
        await self._enter("visualize", prompt_text)
        outcome = self.visualize_outcomes.get(prompt_text)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome or GatewayResult(artifact=to_data_url(f"render:{prompt_text}".encode()))

    async def edit(self, artifact: str, instruction: str) -> GatewayResult:
        await self._enter("edit", instruction)
        outcome = self.edit_outcomes.get(instruction)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome or GatewayResult(artifact=to_data_url(f"edit:{instruction}".encode()))

    async def random_template(self) -> TemplateDescriptor:
        await self._enter("random_template", "")
        return TemplateDescriptor(
            id="tpl-1",
            label="Sponge City Plaza",
            icon="droplets",
            description="A plaza that floods on purpose",
            style="Modernist",
            category="Photorealistic",
        )

    async def aclose(self) -> None:
        self.closed = True


def build_entity(index: int, **overrides) -> PromptEntity:
    fields = {
        "id": f"p{index}",
        "title": f"Prompt {index}",
        "perspective": "Eye-level Perspective",
        "content": f"prompt text {index}",
        "technical_details": ["Bioswale", "Corten Steel"],
    }
    fields.update(overrides)
    return PromptEntity(**fields)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> LarchvizConfig:
    """Create a test configuration with a temporary data directory."""
    return LarchvizConfig(
        _env_file=None,
        api_key="test-key",
        data_dir=temp_dir / "data",
        gallery_max_items=60,
    )


@pytest.fixture
def entities() -> list[PromptEntity]:
    return [build_entity(i) for i in range(3)]


@pytest.fixture
def fake_gateway(test_config: LarchvizConfig, entities: list[PromptEntity]) -> FakeGateway:
    return FakeGateway(test_config, entities=entities)


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def session(
    test_config: LarchvizConfig, fake_gateway: FakeGateway, persistence: MemoryPersistence
) -> StudioSession:
    return create_session(test_config, gateway=fake_gateway, persistence=persistence)


@pytest.fixture
def make_entity():
    """Factory for PromptEntity objects with ids ``p<index>``."""
    return build_entity
