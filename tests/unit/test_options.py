"""Unit tests for option catalogs and OptionSelection."""

import pytest

from promptcraft.core.options import (
    GENERATOR_GUIDANCE,
    NEUTRAL_LIGHTING_LINE,
    NEUTRAL_PERSPECTIVE_LINE,
    NEUTRAL_STYLE_LINE,
    UNIVERSAL_GUIDANCE,
    DensityMode,
    ImageGenerator,
    LightingMode,
    ModelTier,
    OptionSelection,
    Perspective,
    VisualStyle,
    constraint_block,
    constraint_lines,
    density_directive,
    generator_guidance,
    option_field_types,
    parse_option,
)
from promptcraft.utils.exceptions import ValidationError


@pytest.mark.unit
class TestCatalogs:
    def test_every_catalog_has_neutral_or_universal_first(self):
        assert list(VisualStyle)[0] is VisualStyle.NEUTRAL
        assert list(LightingMode)[0] is LightingMode.NEUTRAL
        assert list(Perspective)[0] is Perspective.NEUTRAL
        assert list(ImageGenerator)[0] is ImageGenerator.UNIVERSAL

    def test_catalog_sizes(self):
        assert len(ImageGenerator) == 7
        assert len(VisualStyle) == 30
        assert len(LightingMode) == 19
        assert len(Perspective) == 17

    def test_labels_are_unique(self):
        for enum_cls in (VisualStyle, LightingMode, Perspective, ImageGenerator):
            labels = [m.value for m in enum_cls]
            assert len(labels) == len(set(labels))

    def test_every_generator_has_guidance(self):
        for generator in ImageGenerator:
            assert GENERATOR_GUIDANCE[generator]

    def test_universal_guidance(self):
        assert generator_guidance(ImageGenerator.UNIVERSAL) == UNIVERSAL_GUIDANCE

    def test_unknown_generator_falls_back_to_universal(self):
        assert generator_guidance("not-a-generator") == UNIVERSAL_GUIDANCE  # type: ignore[arg-type]

    def test_midjourney_guidance_mentions_version(self):
        assert "--v 6.0" in generator_guidance(ImageGenerator.MIDJOURNEY)


@pytest.mark.unit
class TestParseOption:
    def test_member_passes_through(self):
        assert parse_option(VisualStyle, VisualStyle.CYBERPUNK) is VisualStyle.CYBERPUNK

    def test_name_case_insensitive(self):
        assert parse_option(VisualStyle, "cyberpunk") is VisualStyle.CYBERPUNK
        assert parse_option(VisualStyle, "CYBERPUNK") is VisualStyle.CYBERPUNK

    def test_label(self):
        assert parse_option(LightingMode, "Golden Hour (Warm)") is LightingMode.GOLDEN_HOUR
        assert parse_option(ImageGenerator, "midjourney v6") is ImageGenerator.MIDJOURNEY

    def test_surrounding_whitespace_ignored(self):
        assert parse_option(ModelTier, "  pro ") is ModelTier.PRO

    def test_unknown_raises_with_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_option(Perspective, "sideways")
        assert exc_info.value.field == "Perspective"
        assert "sideways" in str(exc_info.value)

    def test_non_string_raises(self):
        with pytest.raises(ValidationError):
            parse_option(DensityMode, 3)


@pytest.mark.unit
class TestOptionSelection:
    def test_defaults(self):
        sel = OptionSelection()
        assert sel.style is VisualStyle.NEUTRAL
        assert sel.lighting is LightingMode.NEUTRAL
        assert sel.perspective is Perspective.NEUTRAL
        assert sel.generator is ImageGenerator.UNIVERSAL
        assert sel.density is DensityMode.EXTENDED
        assert sel.model_tier is ModelTier.FLASH
        assert sel.is_concise is False

    def test_with_changes_returns_new_snapshot(self):
        sel = OptionSelection()
        changed = sel.with_changes(style="anime", density="concise")
        assert changed.style is VisualStyle.ANIME
        assert changed.is_concise is True
        assert sel.style is VisualStyle.NEUTRAL

    def test_with_changes_unknown_field(self):
        with pytest.raises(ValidationError) as exc_info:
            OptionSelection().with_changes(colour="red")
        assert exc_info.value.field == "colour"

    def test_from_labels_skips_none(self):
        sel = OptionSelection.from_labels(style=None, generator="flux")
        assert sel.style is VisualStyle.NEUTRAL
        assert sel.generator is ImageGenerator.FLUX

    def test_is_hashable_and_comparable(self):
        a = OptionSelection.from_labels(style="anime")
        b = OptionSelection(style=VisualStyle.ANIME)
        assert a == b
        assert len({a, b}) == 1

    def test_field_types_cover_all_fields(self):
        assert set(option_field_types()) == {
            "style",
            "lighting",
            "perspective",
            "generator",
            "density",
            "model_tier",
        }


@pytest.mark.unit
class TestConstraintLines:
    def test_all_neutral_uses_fixed_sentences(self):
        assert constraint_lines(OptionSelection()) == [
            NEUTRAL_STYLE_LINE,
            NEUTRAL_LIGHTING_LINE,
            NEUTRAL_PERSPECTIVE_LINE,
        ]

    def test_selected_values_are_labelled(self):
        sel = OptionSelection(
            style=VisualStyle.CYBERPUNK,
            lighting=LightingMode.NEON_GLOW,
            perspective=Perspective.DRONE_SHOT,
        )
        assert constraint_lines(sel) == [
            "Preferred Style: Cyberpunk / High-Tech",
            "Lighting: Neon / Cyber Glow",
            "View/Lens: Dynamic Drone Shot",
        ]

    def test_neutral_label_never_embedded(self):
        block = constraint_block(OptionSelection(lighting=LightingMode.MOODY))
        assert "Neutral / Auto" not in block
        assert NEUTRAL_STYLE_LINE in block
        assert "Lighting: Moody & Atmospheric" in block


@pytest.mark.unit
class TestDensityDirective:
    def test_text_directives_differ_by_density(self):
        concise = density_directive(DensityMode.CONCISE)
        extended = density_directive(DensityMode.EXTENDED)
        assert concise and extended and concise != extended

    def test_vision_phrasing(self):
        assert density_directive(DensityMode.CONCISE, vision=True) == "Extremely concise keywords"
        assert (
            density_directive(DensityMode.EXTENDED, vision=True)
            == "Descriptive and atmospheric sentences"
        )
