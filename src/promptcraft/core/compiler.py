"""
Request compilation: turn a seed or image plus option selections into an API request.

Every function here is pure. The returned RequestDescriptor is handed to a
gateway provider unchanged; nothing in this module performs I/O beyond reading
the bundled templates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from promptcraft.core.config import Config, get_config
from promptcraft.core.images import normalize_mime_type
from promptcraft.core.options import (
    ModelTier,
    OptionSelection,
    constraint_block,
    density_directive,
    generator_guidance,
)
from promptcraft.core.prompts_loader import (
    get_expansion_task,
    get_expansion_template,
    get_extraction_template,
    get_modification_template,
    get_surprise_contents,
)
from promptcraft.utils.exceptions import ValidationError

SURPRISE_PREFIX = "SURPRISE_ME:"
SURPRISE_SEED = SURPRISE_PREFIX + " Unique masterpiece"
PREVIEW_ASPECT_RATIO = "1:1"

# Structured output required from an expansion
EXPANSION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "prompts": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "content": {"type": "STRING"},
                },
                "required": ["title", "content"],
            },
        }
    },
    "required": ["prompts"],
}


class RequestOperation(str, Enum):
    EXPAND = "expand"
    EXTRACT = "extract"
    MODIFY = "modify"
    PREVIEW = "preview"


@dataclass(frozen=True)
class InlineImage:
    data: bytes = field(repr=False)
    mime_type: str


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything a provider needs to execute one call."""

    operation: RequestOperation
    model: str
    text: str
    image: InlineImage | None = None
    system_instruction: str | None = None
    response_mime_type: str | None = None
    response_schema: dict[str, Any] | None = None
    temperature: float | None = None
    response_modalities: tuple[str, ...] = ()
    image_aspect_ratio: str | None = None
    model_tier: ModelTier = ModelTier.FLASH
    # Text returned when a modification comes back empty
    fallback_text: str = ""


def text_model_for(tier: ModelTier, config: Config) -> str:
    """Return the text model configured for tier."""
    return config.pro_text_model if tier is ModelTier.PRO else config.flash_text_model


def compile_expansion(
    seed: str,
    options: OptionSelection,
    surprise: bool = False,
    config: Config | None = None,
) -> RequestDescriptor:
    """
    Compile an expand-seed-to-prompts request.

    Args:
        seed: User seed text; ignored when surprise is set
        options: Option snapshot for this request
        surprise: Invent concepts from scratch instead of expanding the seed.
            A seed starting with SURPRISE_PREFIX also selects surprise mode.
        config: Optional config; if None, uses shared config from get_config()

    Returns:
        RequestDescriptor asking for {prompts: [{title, content}]}

    Raises:
        ValidationError: If seed is empty and surprise is not set
    """
    surprise = surprise or (seed or "").startswith(SURPRISE_PREFIX)
    if not surprise and (not seed or not seed.strip()):
        raise ValidationError("Seed cannot be empty", field="seed")
    config = config or get_config()

    system = get_expansion_template().format(
        task=get_expansion_task(surprise),
        generator=options.generator.value,
        generator_guidance=generator_guidance(options.generator),
        constraints=constraint_block(options),
        density=density_directive(options.density),
    )
    return RequestDescriptor(
        operation=RequestOperation.EXPAND,
        model=text_model_for(options.model_tier, config),
        text=get_surprise_contents() if surprise else seed.strip(),
        system_instruction=system,
        response_mime_type="application/json",
        response_schema=EXPANSION_SCHEMA,
        model_tier=options.model_tier,
    )


def compile_extraction(
    image_bytes: bytes,
    mime_type: str,
    options: OptionSelection,
    config: Config | None = None,
) -> RequestDescriptor:
    """
    Compile an extract-prompt-from-image request.

    Raises:
        ValidationError: If image_bytes is empty or mime_type is not a supported image type
    """
    if not image_bytes:
        raise ValidationError("Image data is empty", field="image")
    normalized = normalize_mime_type(mime_type)
    if normalized is None:
        raise ValidationError(f"Unsupported image type: {mime_type!r}", field="mime_type")
    config = config or get_config()

    instruction = get_extraction_template().format(
        generator=options.generator.value,
        generator_guidance=generator_guidance(options.generator),
        density=density_directive(options.density, vision=True),
        constraints=constraint_block(options),
    )
    return RequestDescriptor(
        operation=RequestOperation.EXTRACT,
        model=config.vision_model,
        text=instruction,
        image=InlineImage(data=image_bytes, mime_type=normalized),
        temperature=0.4,
        model_tier=options.model_tier,
    )


def compile_modification(
    existing_content: str,
    instruction: str,
    options: OptionSelection | None = None,
    config: Config | None = None,
) -> RequestDescriptor:
    """
    Compile a request to rewrite existing_content incorporating instruction.

    Raises:
        ValidationError: If instruction is empty
    """
    if not instruction or not instruction.strip():
        raise ValidationError("Modification instruction cannot be empty", field="instruction")
    config = config or get_config()
    tier = options.model_tier if options is not None else ModelTier.FLASH

    return RequestDescriptor(
        operation=RequestOperation.MODIFY,
        model=text_model_for(tier, config),
        text=get_modification_template().format(
            content=existing_content, instruction=instruction.strip()
        ),
        temperature=0.7,
        model_tier=tier,
        fallback_text=existing_content,
    )


def compile_preview_request(prompt_content: str, config: Config | None = None) -> RequestDescriptor:
    """
    Compile an image-synthesis request for a preview.

    Raises:
        ValidationError: If prompt_content is empty
    """
    if not prompt_content or not prompt_content.strip():
        raise ValidationError("Prompt cannot be empty", field="prompt")
    config = config or get_config()

    return RequestDescriptor(
        operation=RequestOperation.PREVIEW,
        model=config.image_model,
        text=prompt_content,
        response_modalities=("IMAGE",),
        image_aspect_ratio=PREVIEW_ASPECT_RATIO,
    )
