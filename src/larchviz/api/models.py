"""Pydantic request models for the gateway proxy API.

Field names follow the camelCase JSON the browser client sends; Python code
uses the snake_case attributes.

Models
------
GeneratePromptsRequest
    Payload for ``POST /api/generate-prompts``.
VisualizeRequest
    Payload for ``POST /api/visualize``.
EditImageRequest
    Payload for ``POST /api/edit-image``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from larchviz.core.models import GenerationRequest


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GeneratePromptsRequest(GenerationRequest):
    """Request body for ``POST /api/generate-prompts``.

    Same fields as :class:`~larchviz.core.models.GenerationRequest`:
    ``concept``, ``style``, ``category``, ``count`` (1-10) and an optional
    ``referenceImage`` of ``{data, mimeType}``.
    """


class VisualizeRequest(_CamelModel):
    """Request body for ``POST /api/visualize``.

    Attributes:
        prompt: Prompt text to render.
        aspect_ratio: Aspect ratio such as ``"16:9"``.
    """

    prompt: str = Field(default="", description="Prompt text to render.")
    aspect_ratio: str = Field(default="16:9", description="Aspect ratio, e.g. '16:9'.")


class EditImageRequest(_CamelModel):
    """Request body for ``POST /api/edit-image``.

    Attributes:
        base64_image: Current image as a ``data:`` URL.
        instruction: Refinement instruction.
    """

    base64_image: str = Field(..., description="Current image as a data URL.")
    instruction: str = Field(default="", description="Refinement instruction.")
