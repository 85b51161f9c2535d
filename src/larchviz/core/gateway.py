"""Base class and registry for remote generation gateways.

A gateway is the boundary to the generative-model service. The rest of the
package treats it as a black box with four asynchronous capabilities:

- **generate**: concept + parameters -> list of prompt entities
- **visualize**: prompt text -> rendered image (``data:`` URL)
- **edit**: existing image + instruction -> revised image
- **random_template**: -> one template descriptor

Gateway Contract
----------------
``visualize`` and ``edit`` return a :class:`GatewayResult`. A result with an
artifact is a success. A result without one is a completed call that produced
no image; ``error`` then says why when the gateway knows (for example a
``SAFETY`` finish signal is reported as a ``safety`` error).

Transport-level failures are raised. A gateway that has already classified a
failure raises :class:`~larchviz.core.errors.GatewayError`; anything else is
classified by the caller.

Implementations register themselves with ``gateway_registry`` so the session
can pick one by name from configuration:

    >>> from larchviz.core.gateway import gateway_registry
    >>> gateway = gateway_registry.instantiate("gemini", config)
    >>> result = await gateway.visualize("a rain garden at dusk")
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .config import LarchvizConfig
from .errors import ServiceError
from .models import GenerationRequest, PromptEntity, TemplateDescriptor

logger = logging.getLogger(__name__)


def to_data_url(data: bytes | str, mime_type: str = "image/png") -> str:
    """Encode image bytes (or an already base64 string) as a ``data:`` URL."""
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{data}"


def split_data_url(artifact: str) -> tuple[bytes, str]:
    """Decode a ``data:`` URL into ``(bytes, mime_type)``.

    A bare base64 payload without the ``data:`` header is treated as PNG.
    """
    header, sep, payload = artifact.partition(",")
    if not sep:
        return base64.b64decode(artifact), "image/png"
    mime_type = header.removeprefix("data:").split(";")[0] or "image/png"
    return base64.b64decode(payload), mime_type


@dataclass(frozen=True)
class GatewayResult:
    """Outcome of a visualize or edit call that completed without raising."""

    artifact: str | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return bool(self.artifact)


class GatewayBase(ABC):
    """Abstract base class for all generation gateways.

    Attributes
    ----------
    name : str
        Registry key (e.g. "gemini")
    description : str
        Brief description of the transport
    config : LarchvizConfig
        Configuration object containing model and transport settings
    """

    name: str = "base"
    description: str = "Base class for generation gateways"

    def __init__(self, config: LarchvizConfig) -> None:
        self.config = config
        logger.info(f"Initialized {self.name} gateway")

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> list[PromptEntity]:
        """Turn a concept into prompt entities.

        Raises
        ------
        Exception
            Transport failures, or MalformedResponseError for unreadable bodies
        """

    @abstractmethod
    async def visualize(self, prompt_text: str, aspect_ratio: str = "16:9") -> GatewayResult:
        """Render a prompt into an image."""

    @abstractmethod
    async def edit(self, artifact: str, instruction: str) -> GatewayResult:
        """Apply a refinement instruction to an existing image."""

    @abstractmethod
    async def random_template(self) -> TemplateDescriptor:
        """Produce one random starting template."""

    async def aclose(self) -> None:
        """Release transport resources. Default is a no-op."""

    def get_gateway_info(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


class GatewayRegistry:
    """Registry of available gateway implementations, keyed by name."""

    def __init__(self) -> None:
        self._gateways: dict[str, type[GatewayBase]] = {}

    def register(self, gateway_class: type[GatewayBase]) -> type[GatewayBase]:
        """Register a gateway class. Usable as a class decorator."""
        gateway_name = gateway_class.name

        if gateway_name in self._gateways:
            logger.warning(f"Gateway '{gateway_name}' is already registered, overwriting")

        self._gateways[gateway_name] = gateway_class
        logger.debug(f"Registered gateway: {gateway_name}")
        return gateway_class

    def instantiate(self, gateway_name: str, config: LarchvizConfig) -> GatewayBase:
        """Create an instance of a registered gateway.

        Raises
        ------
        KeyError
            If gateway_name is not registered
        """
        if gateway_name not in self._gateways:
            available = ", ".join(self.list_available())
            raise KeyError(f"Gateway '{gateway_name}' not found. Available gateways: {available}")

        instance = self._gateways[gateway_name](config=config)
        logger.info(f"Instantiated gateway: {gateway_name}")
        return instance

    def list_available(self) -> list[str]:
        return list(self._gateways.keys())


# Global gateway registry instance
gateway_registry = GatewayRegistry()
