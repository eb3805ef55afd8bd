"""
Data model for promptcraft sessions.

PromptRecord is immutable; updates produce a new record via dataclasses.replace
so the ledger can apply identity-keyed map-and-replace updates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class GenerationKind(str, Enum):
    TEXT = "text"
    VISION = "vision"


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting returned by the API; only total_token_count feeds the ledger."""

    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0

    @classmethod
    def from_api(cls, metadata: dict[str, Any] | None) -> "TokenUsage | None":
        """Build from a usageMetadata object; None when the API sent none."""
        if not metadata or not isinstance(metadata, dict):
            return None

        def _n(key: str) -> int:
            value = metadata.get(key)
            return int(value) if isinstance(value, (int, float)) else 0

        return cls(
            prompt_token_count=_n("promptTokenCount"),
            candidates_token_count=_n("candidatesTokenCount"),
            total_token_count=_n("totalTokenCount"),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "promptTokenCount": self.prompt_token_count,
            "candidatesTokenCount": self.candidates_token_count,
            "totalTokenCount": self.total_token_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TokenUsage":
        return cls(
            prompt_token_count=int(data.get("promptTokenCount") or 0),
            candidates_token_count=int(data.get("candidatesTokenCount") or 0),
            total_token_count=int(data.get("totalTokenCount") or 0),
        )


@dataclass(frozen=True)
class PromptRecord:
    """One generated prompt shown as a card; owned by the SessionLedger."""

    id: str
    title: str
    content: str
    style: str
    kind: GenerationKind = GenerationKind.TEXT
    preview_url: str | None = None
    source_image_url: str | None = field(default=None, repr=False)
    is_generating_preview: bool = False
    usage: TokenUsage | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the persisted storage layout (camelCase keys)."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "style": self.style,
            "isGeneratingPreview": self.is_generating_preview,
            "type": self.kind.value,
        }
        if self.preview_url is not None:
            data["previewUrl"] = self.preview_url
        if self.source_image_url is not None:
            data["sourceImageUrl"] = self.source_image_url
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PromptRecord":
        usage = data.get("usage")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            content=str(data.get("content", "")),
            style=str(data.get("style", "")),
            kind=GenerationKind(data.get("type", GenerationKind.TEXT.value)),
            preview_url=data.get("previewUrl"),
            source_image_url=data.get("sourceImageUrl"),
            is_generating_preview=bool(data.get("isGeneratingPreview", False)),
            usage=TokenUsage.from_dict(usage) if isinstance(usage, dict) else None,
        )


@dataclass(frozen=True)
class PromptDraft:
    """A {title, content} pair returned by an expansion."""

    title: str
    content: str


@dataclass(frozen=True)
class ExpansionResult:
    prompts: list[PromptDraft]
    usage: TokenUsage | None = None


@dataclass(frozen=True)
class TextResult:
    """Result of an extraction or modification: the prompt text."""

    text: str
    usage: TokenUsage | None = None


@dataclass(frozen=True)
class PreviewResult:
    """Result of preview synthesis; image_url is a data URI."""

    image_url: str
    usage: TokenUsage | None = None


@dataclass(frozen=True)
class LedgerStats:
    """Budget view of the ledger. percent_used is not clamped at 100."""

    cumulative_tokens: int
    daily_limit: int
    remaining_budget: int
    percent_used: float


__all__ = [
    "ExpansionResult",
    "GenerationKind",
    "LedgerStats",
    "PreviewResult",
    "PromptDraft",
    "PromptRecord",
    "TextResult",
    "TokenUsage",
]
