"""HTTP gateway that talks to the larchviz proxy server.

The proxy (see :mod:`larchviz.api.main`) holds the API key and answers every
call with an envelope instead of raising::

    {"data": ..., "error": {"type": ..., "message": ..., "details": ...} | null}
    {"url": ...,  "error": ...}

This client unwraps those envelopes. A body that is not JSON at all becomes a
``parse`` error, an envelope error is raised as an already-classified
``GatewayError``, and httpx transport failures propagate so the classifier
files them under ``network``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter

from ..config import LarchvizConfig
from ..errors import GatewayError, ServiceError, parse_error
from ..gateway import GatewayBase, GatewayResult, gateway_registry
from ..models import GenerationRequest, PromptEntity, TemplateDescriptor

logger = logging.getLogger(__name__)

_PROMPT_LIST = TypeAdapter(list[PromptEntity])


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    """Parse an envelope, turning an unreadable body into a parse error envelope."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return {"data": None, "error": parse_error(str(e), "Invalid JSON from server").to_wire()}
    if not isinstance(body, dict):
        return {"data": None, "error": parse_error(repr(body), "Unexpected response shape").to_wire()}
    return body


def _envelope_error(body: dict[str, Any]) -> ServiceError | None:
    error = body.get("error")
    return ServiceError.from_wire(error) if isinstance(error, dict) else None


class ProxyGateway(GatewayBase):
    """Gateway backed by the proxy server's REST endpoints."""

    name = "proxy"
    description = "HTTP client for the larchviz gateway proxy"

    def __init__(self, config: LarchvizConfig, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(config)
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.proxy_base_url,
                timeout=self.config.proxy_timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._get_client().post(path, json=payload)
        logger.debug(f"POST {path} -> {response.status_code}")
        return _safe_json(response)

    async def generate(self, request: GenerationRequest) -> list[PromptEntity]:
        body = await self._post("/api/generate-prompts", request.to_wire())
        error = _envelope_error(body)
        if error is not None:
            raise GatewayError(error)
        return _PROMPT_LIST.validate_python(body.get("data") or [])

    async def visualize(self, prompt_text: str, aspect_ratio: str = "16:9") -> GatewayResult:
        body = await self._post("/api/visualize", {"prompt": prompt_text, "aspectRatio": aspect_ratio})
        return GatewayResult(artifact=body.get("url"), error=_envelope_error(body))

    async def edit(self, artifact: str, instruction: str) -> GatewayResult:
        body = await self._post(
            "/api/edit-image", {"base64Image": artifact, "instruction": instruction}
        )
        return GatewayResult(artifact=body.get("url"), error=_envelope_error(body))

    async def random_template(self) -> TemplateDescriptor:
        body = await self._post("/api/generate-random-template", {})
        error = _envelope_error(body)
        if error is not None:
            raise GatewayError(error)
        if body.get("data") is None:
            raise GatewayError(parse_error(message="Empty response from model"))
        return TemplateDescriptor.model_validate(body["data"])

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


gateway_registry.register(ProxyGateway)
