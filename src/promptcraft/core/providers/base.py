"""
Provider protocol for the generative API gateway.

Defines the four calls the session makes. Implementations are synchronous;
the session runs them off the event loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from promptcraft.core.config import Config

if TYPE_CHECKING:
    from promptcraft.core.compiler import RequestDescriptor
    from promptcraft.core.models import ExpansionResult, PreviewResult, TextResult


class GatewayProvider(Protocol):
    """Protocol for generative API providers.

    Each call takes a compiled RequestDescriptor and returns a parsed result.
    May raise ConfigurationError, APIError, NetworkError or RequestTimeoutError.
    Malformed structured output must yield an empty result, not an exception.
    """

    def expand(self, request: RequestDescriptor, config: Config) -> ExpansionResult:
        """Run an expansion; returns the ordered {title, content} pairs and usage."""
        ...

    def extract(self, request: RequestDescriptor, config: Config) -> TextResult:
        """Run an image extraction; returns the prompt text and usage."""
        ...

    def modify(self, request: RequestDescriptor, config: Config) -> TextResult:
        """Run a modification; returns the rewritten prompt and usage."""
        ...

    def preview(self, request: RequestDescriptor, config: Config) -> PreviewResult:
        """Render a preview image; returns a data URI and usage."""
        ...
