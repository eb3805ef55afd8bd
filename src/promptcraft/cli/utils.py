"""
Utility functions for the CLI.

This module contains helper functions used by CLI commands,
such as path generation and exit code constants.
"""

import re
from datetime import datetime

EXIT_SUCCESS = 0
EXIT_API_OR_NETWORK = 1
EXIT_VALIDATION_OR_CONFIG = 2

_MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def extension_for_data_url(data_url: str) -> str:
    """Return a file extension for a data URL's MIME type (png when unknown)."""
    match = re.match(r"data:([^;,]+)", data_url or "")
    return _MIME_EXTENSIONS.get(match.group(1).lower(), "png") if match else "png"


def default_preview_path(record_id: str, fmt: str = "png") -> str:
    """Return default preview path: promptcraft_<id>_<YYYYMMDD>_<HHMMSS>.<ext> in current directory."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    ext = fmt if fmt else "png"
    return f"promptcraft_{record_id}_{timestamp}.{ext}"


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_API_OR_NETWORK",
    "EXIT_VALIDATION_OR_CONFIG",
    "default_preview_path",
    "extension_for_data_url",
]
