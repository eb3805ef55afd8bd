"""
Exceptions raised by promptcraft.

Every failure the core can surface to a user derives from PromptcraftError,
whose message property is the single line shown to that user.
"""


class PromptcraftError(Exception):
    """Base exception for all promptcraft errors."""

    default_message = "An error occurred."

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args and self.args[0] else self.default_message


class ValidationError(PromptcraftError):
    """A seed, instruction, image or option value was rejected before any call was made."""

    default_message = "Validation failed."

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class ConfigurationError(PromptcraftError):
    """Missing key, unusable setting, or a model tier the configured keys cannot unlock."""

    default_message = "Invalid configuration."


class APIError(PromptcraftError):
    """
    The Gemini API rejected a call or returned nothing usable.

    Attributes:
        status_code: HTTP status, or 0 when the failure was in the response body
        response: Raw response text, when there was one
    """

    default_message = "API request failed."

    def __init__(self, message: str, status_code: int = 0, response: str = "") -> None:
        self.status_code = status_code
        self.response = response
        super().__init__(message)


class NetworkError(PromptcraftError):
    """The API could not be reached."""

    default_message = "Network error."

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        self.original_error = original_error
        super().__init__(message)


class RequestTimeoutError(PromptcraftError):
    default_message = "Request timed out."


class ImageProcessingError(PromptcraftError):
    """An uploaded image or a returned preview could not be read, decoded or written."""

    default_message = "Image processing failed."

    def __init__(self, message: str, image_path: str = "") -> None:
        self.image_path = image_path
        super().__init__(message)
