"""Data models for prompt entities, gallery items and gateway payloads.

Entities that cross the gateway boundary or the persistence boundary are
Pydantic models so that malformed payloads fail validation in one place.
Everything serializes with the camelCase wire names the prompt generator
and the persisted collections use (``technicalDetails``, ``mimeType``,
``createdAt``); Python code uses the snake_case attribute names.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LandscapeStyle(str, Enum):
    """Design style constraint sent with a generation request."""

    MODERNIST = "Modernist"
    XERISCAPE = "Xeriscape/Dry"
    ZEN = "Zen Garden"
    WILD = "Wild/Rewilded"
    TROPICAL = "Tropical"
    MEDITERRANEAN = "Mediterranean"
    MINIMALIST = "Minimalist"
    INDUSTRIAL = "Industrial/Urban"
    ENGLISH_GARDEN = "English Landscape"


class VisualisationCategory(str, Enum):
    """Visual category the generated prompts must adhere to."""

    PHOTOREALISTIC = "Photorealistic"
    DIAGRAM = "Diagram Graphic"
    COMIC = "Comic Style"
    CALENDAR = "Flowering Calendar"
    DETAIL = "Technical Detail"
    SECTION = "Schnitt (Section)"
    ISOMETRIC = "Isometric Graphic"
    EXPLODED = "Exploded Drawing"
    MASTERPLAN = "Masterplan Render"
    MOODBOARD = "Texture Moodboard"
    AXONOMETRIC = "Axonometric Cutaway"


class PerspectiveType(str, Enum):
    EYE_LEVEL = "Eye-level Perspective"
    AERIAL = "Aerial/Birdseye View"
    PLAN = "Site Plan/Layout"
    SECTION = "Cross-section Detail"
    MACRO = "Planting/Macro Detail"


class _WireModel(BaseModel):
    """Base model serialized with camelCase keys, accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PromptEntity(_WireModel):
    """A single generated design prompt.

    Attributes:
        id: Opaque unique identifier, stable across content edits.
        title: Short human-readable title.
        perspective: Perspective or category label.
        content: The long-form image prompt. The only user-editable field.
        technical_details: Ordered short technical tags.
    """

    id: str = ""
    title: str
    perspective: str
    content: str
    technical_details: list[str] = Field(default_factory=list)


class ReferenceImage(_WireModel):
    """Optional inline image sent along with a generation request."""

    data: str = Field(..., description="Base64-encoded image bytes.")
    mime_type: str = Field(..., description="MIME type such as 'image/png'.")


class GenerationRequest(_WireModel):
    """Parameters for turning a concept into prompt entities."""

    concept: str
    style: LandscapeStyle = LandscapeStyle.MODERNIST
    category: VisualisationCategory = VisualisationCategory.PHOTOREALISTIC
    count: int = Field(default=3, ge=1, le=10)
    reference_image: ReferenceImage | None = None


class TemplateDescriptor(_WireModel):
    """A randomly generated starting template for the concept form."""

    id: str
    label: str
    icon: str
    description: str
    style: str
    category: str


class GalleryItem(_WireModel):
    """Denormalized snapshot of a rendered prompt.

    Once created the item has no link back to the entity it came from.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    artifact: str
    title: str
    category: str
    content: str
    created_at: datetime = Field(default_factory=datetime.now)
