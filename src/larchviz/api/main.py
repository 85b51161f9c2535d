"""LArch Visual gateway proxy - FastAPI application.

The proxy keeps the API key on the server and exposes the four gateway
capabilities over HTTP. Every route answers with an envelope rather than a
bare payload so the client can surface a classified error uniformly:

- ``{"data": ..., "error": null | {type, message, details}}`` for
  generation routes
- ``{"url": ..., "error": ...}`` for image routes

Unexpected upstream exceptions are classified with
:func:`~larchviz.core.errors.classify_error` and returned with status 500 and
the same envelope shape.

Endpoints
---------
========  ================================  ==============================
Method    Path                              Purpose
========  ================================  ==============================
GET       ``/api/health``                   Liveness and gateway name
POST      ``/api/generate-random-template`` One random starting template
POST      ``/api/generate-prompts``         Concept -> prompt entities
POST      ``/api/visualize``                Prompt -> image data URL
POST      ``/api/edit-image``               Image + instruction -> image
========  ================================  ==============================

Usage
-----
CLI (installed entry point)::

    larchviz

Direct invocation::

    python -m larchviz.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from larchviz import __version__
from larchviz.api.models import EditImageRequest, GeneratePromptsRequest, VisualizeRequest
from larchviz.core.config import config
from larchviz.core.errors import classify_error
from larchviz.core.gateway import GatewayBase, gateway_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the upstream gateway on startup and release it on shutdown.

    The proxy always talks to Gemini directly; a gateway injected on
    ``app.state`` beforehand (as tests do) is kept as-is.
    """
    if getattr(app.state, "gateway", None) is None:
        app.state.gateway = gateway_registry.instantiate("gemini", config)
        if not config.api_key:
            logger.warning("LARCHVIZ_API_KEY is not set. Proxy endpoints will fail without a valid key.")

    yield

    await app.state.gateway.aclose()
    logger.info("Gateway closed on shutdown.")


app = FastAPI(
    title="LArch Visual Gateway Proxy",
    description="Server-side proxy for prompt generation, visualization and image editing.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _gateway(request: Request) -> GatewayBase:
    return request.app.state.gateway


def _failure(exc: Exception, empty_key: str, empty_value) -> JSONResponse:
    """Envelope an unexpected exception with its classified error."""
    logger.error(f"Gateway call failed: {exc}", exc_info=True)
    error = classify_error(exc)
    return JSONResponse(status_code=500, content={empty_key: empty_value, "error": error.to_wire()})


@app.get("/api/health")
async def health(request: Request) -> dict:
    return {"status": "ok", "version": __version__, "gateway": _gateway(request).name}


@app.post("/api/generate-random-template")
async def generate_random_template(request: Request):
    try:
        template = await _gateway(request).random_template()
    except Exception as e:
        return _failure(e, "data", None)
    return {"data": template.to_wire(), "error": None}


@app.post("/api/generate-prompts")
async def generate_prompts(req: GeneratePromptsRequest, request: Request):
    if "count" not in req.model_fields_set:
        req = req.model_copy(update={"count": config.default_prompt_count})
    try:
        entities = await _gateway(request).generate(req)
    except Exception as e:
        return _failure(e, "data", [])
    return {"data": [p.to_wire() for p in entities], "error": None}


@app.post("/api/visualize")
async def visualize(req: VisualizeRequest, request: Request):
    try:
        result = await _gateway(request).visualize(req.prompt, aspect_ratio=req.aspect_ratio)
    except Exception as e:
        return _failure(e, "url", None)
    return {"url": result.artifact, "error": result.error.to_wire() if result.error else None}


@app.post("/api/edit-image")
async def edit_image(req: EditImageRequest, request: Request):
    try:
        result = await _gateway(request).edit(req.base64_image, req.instruction)
    except Exception as e:
        return _failure(e, "url", None)
    return {"url": result.artifact, "error": result.error.to_wire() if result.error else None}


def main() -> None:
    """Launch the uvicorn ASGI server on ``config.server_host:config.server_port``.

    Registered as the ``larchviz`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "larchviz.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
