"""
Logging configuration for promptcraft.

Nothing is configured at import time. A library user who never calls
set_verbosity or configure_logging gets no handler from us.

Verbosity levels:
- 0: INFO, operation outcomes and token accounting
- 1: INFO, plus seed and prompt text
- 2: DEBUG, plus API requests, ledger updates and storage writes

The CLI reads PROMPTCRAFT_VERBOSITY; -v/-q flags take precedence over it.
"""

import logging
import os

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "promptcraft"
VERBOSITY_ENV = "PROMPTCRAFT_VERBOSITY"
MAX_VERBOSITY = 2
PROMPT_LOG_MAX = 2000

# verbosity -> (root level, prompt text logged)
_LEVELS = {
    0: (logging.INFO, False),
    1: (logging.INFO, True),
    2: (logging.DEBUG, True),
}

_log_prompts = False


def _root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root


def _clamp(level: int) -> int:
    return max(0, min(MAX_VERBOSITY, level))


def set_verbosity(level: int) -> None:
    """Set verbosity 0, 1 or 2; out-of-range values are clamped."""
    global _log_prompts
    log_level, _log_prompts = _LEVELS[_clamp(level)]
    _root().setLevel(log_level)


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """Apply CLI flags: quiet means WARNING and above with no prompt text."""
    global _log_prompts
    if quiet:
        _root().setLevel(logging.WARNING)
        _log_prompts = False
        return
    set_verbosity(verbose_level)


def log_prompts() -> bool:
    return _log_prompts


def log_prompt_text(logger: logging.Logger, label: str, text: str) -> None:
    """Log prompt text at INFO when verbosity allows it, cut to PROMPT_LOG_MAX characters."""
    if not _log_prompts:
        return
    if len(text) > PROMPT_LOG_MAX:
        text = text[:PROMPT_LOG_MAX] + "..."
    logger.info("%s: %s", label, text)


def get_verbosity_from_env() -> int:
    """Read PROMPTCRAFT_VERBOSITY; non-integers count as 0, integers are clamped to 0..2."""
    try:
        return _clamp(int(os.environ.get(VERBOSITY_ENV, "0").strip()))
    except ValueError:
        return 0


def get_logger(name: str) -> logging.Logger:
    """Return a logger in the promptcraft hierarchy (e.g. "core.ledger" -> "promptcraft.core.ledger")."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


__all__ = [
    "configure_logging",
    "get_logger",
    "get_verbosity_from_env",
    "log_prompt_text",
    "log_prompts",
    "set_verbosity",
]
