"""
Option catalogs for prompt requests.

Each catalog is a closed enumeration whose values are the labels shown to the
user and embedded in instructions. The NEUTRAL / UNIVERSAL members mean
"impose no constraint" and are never written into an instruction verbatim;
the fixed fallback sentences below are used instead.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from promptcraft.utils.exceptions import ValidationError


class ImageGenerator(str, Enum):
    UNIVERSAL = "Universal (General)"
    MIDJOURNEY = "Midjourney v6"
    DALLE3 = "DALL-E 3"
    FLUX = "Flux.1 (Realism)"
    SDXL = "Stable Diffusion XL"
    LEONARDO = "Leonardo AI"
    META_AI = "Meta AI (Llama 3)"


class VisualStyle(str, Enum):
    NEUTRAL = "Neutral / Auto"
    CINEMATIC = "Cinematic Masterpiece"
    PHOTOREALISTIC = "Hyper-Photorealistic"
    DIGITAL_ART = "Professional Digital Art"
    CYBERPUNK = "Cyberpunk / High-Tech"
    ANIME = "Modern Anime / Studio Ghibli"
    STEAMPUNK = "Steampunk / Clockwork"
    SYNTHWAVE = "Synthwave / 80s Retro"
    DOUBLE_EXPOSURE = "Double Exposure Art"
    VAPORWAVE = "Vaporwave Aesthetic"
    ISOMETRIC = "Isometric 3D Render"
    UKIYO_E = "Ukiyo-e (Japanese Woodblock)"
    POP_ART = "Pop Art / Andy Warhol"
    OIL_PAINTING = "Classic Oil Painting"
    MINIMALIST = "Minimalist / Flat Design"
    FANTASY = "High Fantasy / Epic"
    SURREALISM = "Surrealism / Dali Style"
    PIXEL_ART = "High-Def Pixel Art"
    DARK_ACADEMIA = "Dark Academia / Gothic"
    STREET_PHOTOGRAPHY = "Candid Street Photography"
    NOIR = "Film Noir / Monochrome"
    PENCIL_SKETCH = "Hand-drawn Pencil Sketch"
    WATERCOLOR = "Fluid Watercolor"
    BAROQUE = "Baroque / Ornate / Grandiose"
    CLAYMATION = "Claymation / Stop-motion"
    STAINED_GLASS = "Gothic Stained Glass"
    GLITCH_ART = "Digital Glitch Art"
    GRAFFITI = "Graffiti / Street Art"
    RENAISSANCE = "Renaissance Masterpiece"
    PLASTIC_TOY = "Plastic Toy / Vinyl Figure"


class LightingMode(str, Enum):
    NEUTRAL = "Neutral / Auto"
    GOLDEN_HOUR = "Golden Hour (Warm)"
    NEON_GLOW = "Neon / Cyber Glow"
    RIM_LIGHTING = "Cinematic Rim Lighting"
    VOLUMETRIC = "Volumetric Light / Tyndall"
    DAPPLED_LIGHT = "Dappled Sunbeams"
    CHIAROSCURO = "Chiaroscuro / Caravaggio"
    MOODY = "Moody & Atmospheric"
    SOFT_STUDIO = "Soft Studio / High-Key"
    NATURAL = "Natural Sunlight"
    MOONLIGHT = "Ethereal Moonlight"
    CANDLELIGHT = "Candlelight / Warm Glow"
    AURORA = "Aurora / Plasma Glow"
    BIOLUMINESCENT = "Bioluminescent / Bio-glow"
    REMBRANDT = "Rembrandt Lighting"
    GOD_RAYS = "Heavenly God Rays"
    BLACKLIGHT = "Ultraviolet / Blacklight"
    FIRE_LIGHT = "Flickering Firelight"
    FLAT_LOG = "Flat & Neutral (Raw Color)"


class Perspective(str, Enum):
    NEUTRAL = "Neutral / Auto"
    WIDE_ANGLE = "Wide Angle (Contextual)"
    FISHEYE = "Extreme Fisheye (180°)"
    MACRO = "Macro / Close-up"
    LOW_ANGLE = "Low Angle (Heroic)"
    WORM_EYE = "Worm's Eye View"
    BIRD_EYE = "Bird's Eye View"
    SATELLITE = "Satellite / Orbital"
    TILT_SHIFT = "Tilt-Shift (Miniature)"
    PANORAMIC = "Extreme Panoramic"
    EYE_LEVEL = "Standard Eye Level"
    DUTCH_ANGLE = "Dutch Angle (Tilted)"
    POV = "First-Person (POV)"
    TELEPHOTO = "Telephoto Compression"
    TOP_DOWN = "Top-down (Flat Lay)"
    SIDE_PROFILE = "Side Profile Silhouette"
    DRONE_SHOT = "Dynamic Drone Shot"


class DensityMode(str, Enum):
    CONCISE = "concise"
    EXTENDED = "extended"


class ModelTier(str, Enum):
    FLASH = "flash"
    PRO = "pro"


NEUTRAL_STYLE_LINE = "Style: Neutral (follow the inherent aesthetic of the input)"
NEUTRAL_LIGHTING_LINE = "Lighting: Natural/Auto (no forced lighting effects)"
NEUTRAL_PERSPECTIVE_LINE = "Perspective: Standard (no specific lens distortion)"

UNIVERSAL_GUIDANCE = (
    "Use a universal high-quality prompt format suitable for any modern image generator."
)

GENERATOR_GUIDANCE: dict[ImageGenerator, str] = {
    ImageGenerator.UNIVERSAL: UNIVERSAL_GUIDANCE,
    ImageGenerator.MIDJOURNEY: (
        "Optimize for Midjourney v6. Use high-impact stylistic keywords, artistic descriptors, "
        "and end prompts with optional parameters like '--v 6.0' or '--stylize'. Use commas to "
        "separate concepts. Focus on mood and texture."
    ),
    ImageGenerator.DALLE3: (
        "Optimize for DALL-E 3. Use descriptive, logical, and detailed full sentences. Explain "
        "the scene as if describing it to a master painter. Focus on clarity and composition. "
        "Avoid technical jargon."
    ),
    ImageGenerator.FLUX: (
        "Optimize for Flux.1. Use highly descriptive natural language. Focus on hyper-realism, "
        "textures, and if relevant, describe text that should appear in the image clearly "
        "(using quotes)."
    ),
    ImageGenerator.SDXL: (
        "Optimize for Stable Diffusion XL. Use keyword-heavy formatting (tags), weights if "
        "necessary, and specific technical terms like '8k resolution', 'highly detailed', "
        "'masterpiece', and 'intricate textures'."
    ),
    ImageGenerator.LEONARDO: (
        "Optimize for Leonardo AI. Use cinematic and evocative descriptors. Focus on mood, "
        "specialized lighting terms, and creative flair suitable for professional digital art."
    ),
    ImageGenerator.META_AI: (
        "Optimize for Meta AI (Llama 3 Image Gen). Use a balanced mix of natural language and "
        "stylistic keywords. Focus on clear subject description and environmental context."
    ),
}

_DENSITY_DIRECTIVES = {
    (DensityMode.CONCISE, False): "Extremely concise, minimal, keyword-driven (tokens)",
    (DensityMode.EXTENDED, False): "Extended, descriptive, and immersive (natural language)",
    (DensityMode.CONCISE, True): "Extremely concise keywords",
    (DensityMode.EXTENDED, True): "Descriptive and atmospheric sentences",
}


@dataclass(frozen=True)
class OptionSelection:
    """Immutable snapshot of the user's option selections for one request."""

    style: VisualStyle = VisualStyle.NEUTRAL
    lighting: LightingMode = LightingMode.NEUTRAL
    perspective: Perspective = Perspective.NEUTRAL
    generator: ImageGenerator = ImageGenerator.UNIVERSAL
    density: DensityMode = DensityMode.EXTENDED
    model_tier: ModelTier = ModelTier.FLASH

    @property
    def is_concise(self) -> bool:
        return self.density is DensityMode.CONCISE

    def with_changes(self, **changes: Any) -> "OptionSelection":
        """Return a new snapshot with the given fields replaced (values parsed like from_labels)."""
        unknown = sorted(set(changes) - set(_FIELD_TYPES))
        if unknown:
            raise ValidationError(f"Unknown option: {unknown[0]}", field=unknown[0])
        parsed = {name: parse_option(_FIELD_TYPES[name], value) for name, value in changes.items()}
        return replace(self, **parsed)

    @classmethod
    def from_labels(cls, **labels: str | None) -> "OptionSelection":
        """
        Build a selection from user-supplied member names or labels.

        Fields passed as None keep their default.

        Raises:
            ValidationError: If a field name or value is not recognised
        """
        return cls().with_changes(**{k: v for k, v in labels.items() if v is not None})


_FIELD_TYPES: dict[str, type[Enum]] = {
    "style": VisualStyle,
    "lighting": LightingMode,
    "perspective": Perspective,
    "generator": ImageGenerator,
    "density": DensityMode,
    "model_tier": ModelTier,
}


def parse_option(enum_cls: type[Enum], value: Any) -> Any:
    """
    Resolve value to a member of enum_cls.

    Accepts a member, a member name ("CYBERPUNK", "cyberpunk") or a label
    ("Cyberpunk / High-Tech"), case-insensitively.

    Raises:
        ValidationError: If nothing matches
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if wanted in (member.name.lower(), str(member.value).lower()):
                return member
    field = enum_cls.__name__
    raise ValidationError(
        f"Unknown {field} value: {value!r}. Choose one of: "
        f"{', '.join(m.name.lower() for m in enum_cls)}",
        field=field,
    )


def option_field_types() -> dict[str, type[Enum]]:
    """Return the mapping of OptionSelection field name to its enumeration."""
    return dict(_FIELD_TYPES)


def generator_guidance(generator: ImageGenerator) -> str:
    """Return the fixed stylistic guidance for generator; unknown values get the universal text."""
    return GENERATOR_GUIDANCE.get(generator, UNIVERSAL_GUIDANCE)


def constraint_lines(selection: OptionSelection) -> list[str]:
    """Return the style, lighting and perspective constraint lines for an instruction."""
    lines = []
    if selection.style is not VisualStyle.NEUTRAL:
        lines.append(f"Preferred Style: {selection.style.value}")
    else:
        lines.append(NEUTRAL_STYLE_LINE)

    if selection.lighting is not LightingMode.NEUTRAL:
        lines.append(f"Lighting: {selection.lighting.value}")
    else:
        lines.append(NEUTRAL_LIGHTING_LINE)

    if selection.perspective is not Perspective.NEUTRAL:
        lines.append(f"View/Lens: {selection.perspective.value}")
    else:
        lines.append(NEUTRAL_PERSPECTIVE_LINE)
    return lines


def constraint_block(selection: OptionSelection) -> str:
    return "\n".join(constraint_lines(selection))


def density_directive(density: DensityMode, vision: bool = False) -> str:
    """Return the detail-level directive; vision phrasing is used for image extraction."""
    return _DENSITY_DIRECTIVES[(density, vision)]


__all__ = [
    "DensityMode",
    "GENERATOR_GUIDANCE",
    "ImageGenerator",
    "LightingMode",
    "ModelTier",
    "NEUTRAL_LIGHTING_LINE",
    "NEUTRAL_PERSPECTIVE_LINE",
    "NEUTRAL_STYLE_LINE",
    "OptionSelection",
    "Perspective",
    "UNIVERSAL_GUIDANCE",
    "VisualStyle",
    "constraint_block",
    "constraint_lines",
    "density_directive",
    "generator_guidance",
    "option_field_types",
    "parse_option",
]
