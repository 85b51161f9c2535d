"""Gateway implementations.

Importing this package registers every gateway with ``gateway_registry``.
"""

from .gemini import GeminiGateway
from .proxy import ProxyGateway

__all__ = ["GeminiGateway", "ProxyGateway"]
