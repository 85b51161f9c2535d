"""Gemini gateway using the google-genai SDK directly.

Uses the async client (``client.aio.models.generate_content``) so that every
gateway call is a real suspension point on the event loop.

Models
------
- ``config.text_model`` for prompt and template generation, with a JSON
  response schema so the body can be validated by Pydantic.
- ``config.image_model`` for visualization and editing. Image bytes come back
  as ``inline_data`` parts and are returned as ``data:`` URLs.

Failure Mapping
---------------
- ``finish_reason == SAFETY`` on a visualization -> ``GatewayResult`` with a
  ``safety`` error (not a generic failure)
- no image part in a completed response -> ``GatewayResult`` with an
  ``unknown`` "No image generated" error
- empty or unparsable JSON body -> ``MalformedResponseError`` (``parse``)
- SDK / transport exceptions propagate for the caller to classify
"""

from __future__ import annotations

import logging

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from ..config import LarchvizConfig
from ..errors import DEFAULT_MESSAGES, ErrorKind, MalformedResponseError, ServiceError
from ..gateway import GatewayBase, GatewayResult, gateway_registry, split_data_url, to_data_url
from ..models import GenerationRequest, PromptEntity, TemplateDescriptor

logger = logging.getLogger(__name__)

_PROMPT_LIST = TypeAdapter(list[PromptEntity])

CATEGORY_GUIDANCE = """\
- If "Diagram Graphic", focus on clean lines, overlays, and conceptual clarity.
- If "Photorealistic", focus on textures, lighting, and real-world physics.
- If "Flowering Calendar", focus on seasonal planting shifts and color charts.
- If "Isometric", ensure a 45-degree orthographic projection.
- If "Exploded Drawing", describe layers separated vertically: plants on top, hardscape and substrate in the middle, geology and drainage at the bottom.
- If "Schnitt (Section)", describe a vertical cut-through showing soil layers, roots, and heights.
- If "Masterplan Render", describe a top-down artistic plan with shadows, texture-mapped grass and water, and clear scale indicators.
- If "Axonometric Cutaway", show a 3D corner of the site with internal construction build-ups visible."""

PROMPT_SYSTEM_INSTRUCTION = """\
You are an expert Landscape Architect and AI Prompt Engineer.
Translate the Core Concept into highly detailed, technical, and atmospheric image prompts optimized for an image model.

Visualisation Category: {category}.
Ensure all prompts strictly adhere to the visual style of this category.
{guidance}

Each prompt should also include:
1. Primary viewpoint/perspective matching the category.
2. Specific planting palette (botanical names where appropriate).
3. Hardscape materials (e.g., weathered steel, limestone, reclaimed timber).
4. Atmospheric lighting (e.g., golden hour, misty morning, dappled shade).
5. Technical architectural terms (e.g., level changes, drainage swales, gabion walls).

Style Constraint: {style}
Generate exactly {count} unique prompts."""

TEMPLATE_SYSTEM_INSTRUCTION = """\
You are a creative Landscape Design Consultant.
Generate a single, highly imaginative and unique landscape architectural "Template".
Respond with a JSON object with id, label, icon, description, style and category."""

PROMPT_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "id": types.Schema(type=types.Type.STRING),
            "title": types.Schema(type=types.Type.STRING, description="Short descriptive title"),
            "perspective": types.Schema(type=types.Type.STRING),
            "content": types.Schema(
                type=types.Type.STRING, description="The actual long-form AI image prompt"
            ),
            "technicalDetails": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                description="Key architectural features included",
            ),
        },
        required=["id", "title", "perspective", "content", "technicalDetails"],
    ),
)

TEMPLATE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        name: types.Schema(type=types.Type.STRING)
        for name in ("id", "label", "icon", "description", "style", "category")
    },
    required=["id", "label", "icon", "description", "style", "category"],
)


def _first_image(response: types.GenerateContentResponse) -> str | None:
    """Return the first inline image of the first candidate as a data URL."""
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return None
    for part in candidates[0].content.parts or []:
        if part.inline_data and part.inline_data.data:
            return to_data_url(part.inline_data.data, part.inline_data.mime_type or "image/png")
    return None


def _blocked_by_safety(response: types.GenerateContentResponse) -> bool:
    candidates = response.candidates or []
    return bool(candidates) and candidates[0].finish_reason == types.FinishReason.SAFETY


class GeminiGateway(GatewayBase):
    """Gateway backed by Google's Gemini models."""

    name = "gemini"
    description = "Direct google-genai SDK calls to Gemini text and image models"

    def __init__(self, config: LarchvizConfig, client: genai.Client | None = None) -> None:
        super().__init__(config)
        self._client = client

    def _get_client(self) -> genai.Client:
        """Lazy-init the genai client."""
        if self._client is None:
            if not self.config.api_key:
                logger.warning("No API key configured; Gemini calls will be rejected")
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    async def generate(self, request: GenerationRequest) -> list[PromptEntity]:
        parts = [types.Part.from_text(text=f"Core Concept: {request.concept}")]
        if request.reference_image is not None:
            data, mime_type = split_data_url(request.reference_image.data)
            parts.append(
                types.Part.from_bytes(data=data, mime_type=request.reference_image.mime_type or mime_type)
            )

        system_instruction = PROMPT_SYSTEM_INSTRUCTION.format(
            category=request.category.value,
            guidance=CATEGORY_GUIDANCE,
            style=request.style.value,
            count=request.count,
        )
        logger.info(f"Generating {request.count} prompts with {self.config.text_model}")
        response = await self._get_client().aio.models.generate_content(
            model=self.config.text_model,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=PROMPT_SCHEMA,
            ),
        )

        if not response.text:
            raise MalformedResponseError("Empty response from model")
        try:
            return _PROMPT_LIST.validate_json(response.text)
        except ValidationError as e:
            raise MalformedResponseError(f"Failed to parse model JSON: {e}") from e

    async def visualize(self, prompt_text: str, aspect_ratio: str = "16:9") -> GatewayResult:
        response = await self._get_client().aio.models.generate_content(
            model=self.config.image_model,
            contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt_text)])],
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
            ),
        )

        if _blocked_by_safety(response):
            logger.warning("Visualization blocked by safety filters")
            return GatewayResult(
                error=ServiceError(ErrorKind.SAFETY, DEFAULT_MESSAGES[ErrorKind.SAFETY])
            )

        artifact = _first_image(response)
        if artifact is None:
            return GatewayResult(error=ServiceError(ErrorKind.UNKNOWN, "No image generated"))
        return GatewayResult(artifact=artifact)

    async def edit(self, artifact: str, instruction: str) -> GatewayResult:
        data, mime_type = split_data_url(artifact)
        response = await self._get_client().aio.models.generate_content(
            model=self.config.image_model,
            contents=[
                types.Content(
                    role="user",
                    parts=[
                        types.Part.from_bytes(data=data, mime_type=mime_type),
                        types.Part.from_text(text=instruction),
                    ],
                )
            ],
        )

        if _blocked_by_safety(response):
            return GatewayResult(
                error=ServiceError(ErrorKind.SAFETY, "Edit blocked by safety filters.")
            )

        edited = _first_image(response)
        if edited is None:
            return GatewayResult(error=ServiceError(ErrorKind.UNKNOWN, "Edit did not return an image"))
        return GatewayResult(artifact=edited)

    async def random_template(self) -> TemplateDescriptor:
        response = await self._get_client().aio.models.generate_content(
            model=self.config.text_model,
            contents="Generate one random professional landscape template.",
            config=types.GenerateContentConfig(
                system_instruction=TEMPLATE_SYSTEM_INSTRUCTION,
                response_mime_type="application/json",
                response_schema=TEMPLATE_SCHEMA,
            ),
        )

        if not response.text:
            raise MalformedResponseError("Empty response from model")
        try:
            return TemplateDescriptor.model_validate_json(response.text)
        except ValidationError as e:
            raise MalformedResponseError(f"Failed to parse model JSON: {e}") from e


gateway_registry.register(GeminiGateway)
