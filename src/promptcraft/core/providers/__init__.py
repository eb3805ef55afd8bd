"""
Gateway providers: the protocol the session calls and the built-in Gemini implementation.
"""

from promptcraft.core.providers.base import GatewayProvider as GatewayProvider
from promptcraft.core.providers.gemini import GeminiProvider


def default_provider() -> GatewayProvider:
    """Return the built-in provider used when a session is created without one."""
    return GeminiProvider()


__all__ = ["GatewayProvider", "GeminiProvider", "default_provider"]
