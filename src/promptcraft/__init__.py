"""
promptcraft - Prompt engineering studio for AI image generators

Turns a short seed concept or an uploaded image into detailed, generator-specific
image prompts, refines them in place, and renders quick preview images through
the Gemini API. Generated records and token usage persist across runs.

Library usage:
- Create a PromptSession (optionally with your own provider, config or store), call
  start() to restore saved state, then await its commands (submit_seed, submit_image,
  submit_modification, request_preview). Call close() to write pending state.
- Configuration can be passed per session (PromptSession(config=my_config)) or via the
  shared config: use get_config() / set_config() and omit the config argument.
- Logging: control verbosity with set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  PROMPTCRAFT_VERBOSITY env (0/1/2) is read when the CLI runs.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("promptcraft")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from promptcraft.core.compiler import (
    RequestDescriptor,
    compile_expansion,
    compile_extraction,
    compile_modification,
    compile_preview_request,
)
from promptcraft.core.config import (
    DAILY_TOKEN_LIMIT,
    DEFAULT_BASE_URL,
    Config,
    get_config,
    set_config,
)
from promptcraft.core.ledger import SessionLedger
from promptcraft.core.models import (
    GenerationKind,
    LedgerStats,
    PromptRecord,
    TokenUsage,
)
from promptcraft.core.options import (
    DensityMode,
    ImageGenerator,
    LightingMode,
    ModelTier,
    OptionSelection,
    Perspective,
    VisualStyle,
)
from promptcraft.core.persistence import LocalStore, PersistenceBridge
from promptcraft.core.providers import GatewayProvider, GeminiProvider
from promptcraft.core.reconciler import Operation, OperationKind, OperationStatus
from promptcraft.core.session import PromptSession, clean_prompt_text
from promptcraft.logging_config import configure_logging, set_verbosity
from promptcraft.utils.exceptions import (
    APIError,
    ConfigurationError,
    ImageProcessingError,
    NetworkError,
    PromptcraftError,
    RequestTimeoutError,
    ValidationError,
)

__all__ = [
    "APIError",
    "Config",
    "ConfigurationError",
    "DAILY_TOKEN_LIMIT",
    "DEFAULT_BASE_URL",
    "DensityMode",
    "GatewayProvider",
    "GeminiProvider",
    "GenerationKind",
    "ImageGenerator",
    "ImageProcessingError",
    "LedgerStats",
    "LightingMode",
    "LocalStore",
    "ModelTier",
    "NetworkError",
    "Operation",
    "OperationKind",
    "OperationStatus",
    "OptionSelection",
    "PersistenceBridge",
    "Perspective",
    "PromptRecord",
    "PromptSession",
    "PromptcraftError",
    "RequestDescriptor",
    "RequestTimeoutError",
    "SessionLedger",
    "TokenUsage",
    "ValidationError",
    "VisualStyle",
    "clean_prompt_text",
    "compile_expansion",
    "compile_extraction",
    "compile_modification",
    "compile_preview_request",
    "configure_logging",
    "get_config",
    "set_config",
    "set_verbosity",
]
