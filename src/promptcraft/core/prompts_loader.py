"""
Load instruction templates from the bundled prompts.yaml file.

Templates are defined in src/promptcraft/prompts.yaml and loaded once per process.
Add new keys there and expose them through a getter below.
"""

import importlib.resources
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from promptcraft.utils.exceptions import ConfigurationError

# Module-level cache for parsed prompts
_prompts_data: dict[str, Any] | None = None


def _require_placeholders(template: str, names: tuple[str, ...]) -> str:
    missing = [n for n in names if "{" + n + "}" not in template]
    if missing:
        raise ValueError(f"missing placeholder(s): {', '.join('{' + n + '}' for n in missing)}")
    return template


class ExpansionPrompt(BaseModel):
    """Schema for the seed expansion templates."""

    system: str = Field(..., min_length=1, description="System instruction template")
    task_expand: str = Field(..., min_length=1)
    task_surprise: str = Field(..., min_length=1)
    surprise_contents: str = Field(..., min_length=1)

    @field_validator("system")
    @classmethod
    def _system_placeholders(cls, v: str) -> str:
        return _require_placeholders(
            v, ("task", "generator", "generator_guidance", "constraints", "density")
        )


class ExtractionPrompt(BaseModel):
    """Schema for the image deconstruction instruction."""

    instruction: str = Field(..., min_length=1)

    @field_validator("instruction")
    @classmethod
    def _instruction_placeholders(cls, v: str) -> str:
        return _require_placeholders(
            v, ("generator", "generator_guidance", "constraints", "density")
        )


class ModificationPrompt(BaseModel):
    """Schema for the rewrite-with-instruction template."""

    template: str = Field(..., min_length=1)

    @field_validator("template")
    @classmethod
    def _template_placeholders(cls, v: str) -> str:
        return _require_placeholders(v, ("content", "instruction"))


class PromptsSchema(BaseModel):
    """Schema for prompts.yaml configuration file."""

    model_config = {"extra": "allow"}  # Allow additional keys for future expansion

    expansion: ExpansionPrompt
    extraction: ExtractionPrompt
    modification: ModificationPrompt


def _load_prompts() -> dict[str, Any]:
    """Load and parse prompts.yaml from the package. Cached after first call.

    Returns:
        Dictionary of prompt data.

    Raises:
        ConfigurationError: If YAML is missing, malformed, or fails validation.
    """
    global _prompts_data
    if _prompts_data is not None:
        return _prompts_data

    try:
        with (
            importlib.resources.files("promptcraft")
            .joinpath("prompts.yaml")
            .open(encoding="utf-8") as f
        ):
            raw = f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(
            "prompts.yaml not found. This file is required and should be bundled with the package."
        ) from e

    _prompts_data = parse_prompts(raw)
    return _prompts_data


def parse_prompts(raw: str) -> dict[str, Any]:
    """
    Parse and validate prompts.yaml content.

    Raises:
        ConfigurationError: If YAML is malformed, empty, or fails validation.
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse prompts.yaml: {e}. Check YAML syntax and formatting."
        ) from e

    if data is None:
        raise ConfigurationError(
            "prompts.yaml is empty. Expected 'expansion', 'extraction' and 'modification' sections."
        )

    # Validate structure with Pydantic
    try:
        PromptsSchema(**data)
    except ValidationError as e:
        errors = "\n".join(
            [f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        )
        raise ConfigurationError(f"Invalid prompts.yaml structure:\n{errors}") from e
    except TypeError as e:
        raise ConfigurationError(f"Invalid prompts.yaml structure: {e}") from e

    return data


def get_prompt(key: str, subkey: str | None = None) -> str | None:
    """
    Get a prompt string from prompts.yaml.

    Args:
        key: Top-level key (e.g. "expansion").
        subkey: Optional subkey (e.g. "system") for nested value.

    Returns:
        The prompt string, or None if not found.
    """
    data = _load_prompts()
    value = data.get(key)
    if value is None:
        return None
    if subkey is not None:
        value = value.get(subkey) if isinstance(value, dict) else None
    return value if isinstance(value, str) else None


def _required(key: str, subkey: str) -> str:
    value = get_prompt(key, subkey)
    if not value:
        raise ConfigurationError(f"{key}.{subkey} not found in prompts.yaml. This key is required.")
    return value


def get_expansion_template() -> str:
    """Return the expansion system instruction template."""
    return _required("expansion", "system")


def get_expansion_task(surprise: bool) -> str:
    """Return the task sentence for a normal expansion or a surprise request."""
    return _required("expansion", "task_surprise" if surprise else "task_expand")


def get_surprise_contents() -> str:
    """Return the user content sent in place of a seed for surprise requests."""
    return _required("expansion", "surprise_contents")


def get_extraction_template() -> str:
    """Return the image deconstruction instruction template."""
    return _required("extraction", "instruction")


def get_modification_template() -> str:
    """Return the rewrite template (placeholders {content} and {instruction})."""
    return _required("modification", "template")
