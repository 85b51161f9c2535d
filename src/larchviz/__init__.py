"""LArch Visual - landscape architecture prompt studio with per-item image visualization."""

__version__ = "0.1.0"

from larchviz.core.config import LarchvizConfig, config
from larchviz.core.gateway import GatewayBase, gateway_registry

# Import adapters to ensure they're registered
from larchviz.core.adapters import GeminiGateway, ProxyGateway  # noqa: F401

__all__ = [
    "GatewayBase",
    "gateway_registry",
    "LarchvizConfig",
    "config",
    "GeminiGateway",
    "ProxyGateway",
]
