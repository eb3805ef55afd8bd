"""
Gemini gateway provider.

Handles HTTP communication with the Gemini generateContent REST endpoint for
expansion, image extraction, modification and preview rendering.
"""

import base64
import json
import time
from typing import Any

import requests

from promptcraft.core.compiler import RequestDescriptor
from promptcraft.core.config import PRO_KEY_REQUIRED_MESSAGE, Config
from promptcraft.core.images import create_data_url
from promptcraft.core.models import (
    ExpansionResult,
    PreviewResult,
    PromptDraft,
    TextResult,
    TokenUsage,
)
from promptcraft.core.options import ModelTier
from promptcraft.logging_config import get_logger, log_prompt_text
from promptcraft.utils.exceptions import (
    APIError,
    ConfigurationError,
    NetworkError,
    RequestTimeoutError,
)

logger = get_logger(__name__)

_DEBUG_TRUNCATE_THRESHOLD = 200
_DEBUG_NEVER_TRUNCATE_KEYS = frozenset({"text", "message"})


def _truncate_image_data_for_log(obj: Any, parent_key: str | None = None) -> Any:
    """Recursively replace long base64/data URL strings with placeholders for safe logging."""
    if isinstance(obj, dict):
        return {k: _truncate_image_data_for_log(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_truncate_image_data_for_log(v, None) for v in obj]
    if isinstance(obj, str) and len(obj) >= _DEBUG_TRUNCATE_THRESHOLD:
        if parent_key in _DEBUG_NEVER_TRUNCATE_KEYS:
            return obj
        if obj.startswith("data:"):
            return f"<data URL, {len(obj)} chars>"
        return f"<string, {len(obj)} chars>"
    return obj


def _strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (``` or ```json) if present."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.split("\n")
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _candidate_parts(result: dict[str, Any]) -> list[dict[str, Any]]:
    candidates = result.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return [p for p in parts if isinstance(p, dict)]


def _response_text(result: dict[str, Any]) -> str:
    """Concatenate the non-thought text parts of the first candidate."""
    return "".join(
        p["text"]
        for p in _candidate_parts(result)
        if isinstance(p.get("text"), str) and not p.get("thought")
    )


def parse_expansion_text(text: str) -> list[PromptDraft]:
    """
    Parse the structured expansion output into drafts.

    Unparsable JSON, a missing prompts array, or malformed items yield an
    empty (or shorter) list rather than an error.
    """
    if not text or not text.strip():
        return []
    try:
        data = json.loads(_strip_code_fences(text))
    except ValueError:
        logger.warning("Expansion response was not valid JSON; treating as empty")
        return []
    prompts = data.get("prompts") if isinstance(data, dict) else None
    if not isinstance(prompts, list):
        logger.warning("Expansion response had no prompts array; treating as empty")
        return []
    drafts = []
    for item in prompts:
        if not isinstance(item, dict):
            continue
        title, content = item.get("title"), item.get("content")
        if isinstance(title, str) and isinstance(content, str):
            drafts.append(PromptDraft(title=title, content=content))
    return drafts


class GeminiProvider:
    """Gateway provider for the Gemini generateContent API."""

    def _api_key(self, request: RequestDescriptor, config: Config) -> str:
        """Return the key for the request's tier; raise ConfigurationError if none."""
        if request.model_tier is ModelTier.PRO:
            if not config.pro_api_key:
                raise ConfigurationError(PRO_KEY_REQUIRED_MESSAGE)
            return config.pro_api_key
        if not config.api_key:
            raise ConfigurationError("API Key not configured.")
        return config.api_key

    def _build_payload(self, request: RequestDescriptor) -> dict[str, Any]:
        """Build the generateContent payload for a compiled request."""
        parts: list[dict[str, Any]] = []
        if request.image is not None:
            parts.append(
                {
                    "inlineData": {
                        "mimeType": request.image.mime_type,
                        "data": base64.b64encode(request.image.data).decode("ascii"),
                    }
                }
            )
        parts.append({"text": request.text})
        payload: dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if request.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}

        generation_config: dict[str, Any] = {}
        if request.response_mime_type:
            generation_config["responseMimeType"] = request.response_mime_type
        if request.response_schema:
            generation_config["responseSchema"] = request.response_schema
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.response_modalities:
            generation_config["responseModalities"] = list(request.response_modalities)
            if request.image_aspect_ratio:
                generation_config["imageConfig"] = {"aspectRatio": request.image_aspect_ratio}
        elif request.model_tier is ModelTier.FLASH:
            # Flash text calls run without a thinking phase
            generation_config["thinkingConfig"] = {"thinkingBudget": 0}
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    def _do_request(
        self, request: RequestDescriptor, config: Config
    ) -> tuple[dict[str, Any], TokenUsage | None]:
        """Perform the HTTP POST and decode JSON. Maps status codes to exceptions."""
        api_key = self._api_key(request, config)
        url = f"{config.base_url}/models/{request.model}:generateContent"
        headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
        payload = self._build_payload(request)
        timeout = config.request_timeout

        logger.debug(
            "API request op=%s url=%s model=%s timeout=%s",
            request.operation.value,
            url,
            request.model,
            timeout,
        )
        log_prompt_text(logger, "Prompt (sent)", request.text)
        if config.debug_api:
            logger.info(
                "API request payload (image data truncated): %s",
                json.dumps(_truncate_image_data_for_log(payload), indent=2, default=str),
            )

        start_time = time.time()
        try:
            response = requests.post(url, headers=headers, json=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise RequestTimeoutError(
                f"Request timed out after {timeout} seconds. "
                "The model may be taking longer than expected."
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(
                "AI Engine offline or network timeout. Please check your internet connection.",
                original_error=e,
            ) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                f"Network error during API request: {str(e)}", original_error=e
            ) from e
        elapsed = time.time() - start_time
        logger.debug(
            "API response status=%s op=%s time=%.2fs",
            response.status_code,
            request.operation.value,
            elapsed,
        )

        if response.status_code in (401, 403):
            raise APIError(
                "Authentication failed. Please check your Gemini API key.",
                status_code=response.status_code,
                response=response.text,
            )
        if response.status_code == 404:
            raise APIError(
                f"Model not found or endpoint unavailable: {request.model}",
                status_code=404,
                response=response.text,
            )
        if response.status_code == 429:
            raise APIError(
                "Quota or rate limit exceeded. Please wait before making more requests.",
                status_code=429,
                response=response.text,
            )
        if response.status_code >= 500:
            raise APIError(
                f"Gemini service error: {response.status_code}",
                status_code=response.status_code,
                response=response.text,
            )
        if response.status_code != 200:
            raise APIError(
                f"API request failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                response=response.text,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise APIError(
                f"Failed to parse API response as JSON: {str(e)}",
                response=response.text,
            ) from e
        if not isinstance(result, dict):
            raise APIError("Unexpected API response shape", response=str(result))
        if config.debug_api:
            logger.info(
                "API response (image data truncated): %s",
                json.dumps(_truncate_image_data_for_log(result), indent=2, default=str),
            )

        usage = TokenUsage.from_api(result.get("usageMetadata"))
        logger.info(
            "%s completed in %.1fs model=%s tokens=%s",
            request.operation.value,
            elapsed,
            request.model,
            usage.total_token_count if usage else 0,
        )
        return result, usage

    def expand(self, request: RequestDescriptor, config: Config) -> ExpansionResult:
        """Run an expansion request."""
        result, usage = self._do_request(request, config)
        return ExpansionResult(prompts=parse_expansion_text(_response_text(result)), usage=usage)

    def extract(self, request: RequestDescriptor, config: Config) -> TextResult:
        """Run an image extraction request; empty output yields empty text."""
        result, usage = self._do_request(request, config)
        return TextResult(text=_response_text(result).strip(), usage=usage)

    def modify(self, request: RequestDescriptor, config: Config) -> TextResult:
        """Run a modification request; empty output falls back to the original content."""
        result, usage = self._do_request(request, config)
        text = _response_text(result).strip()
        return TextResult(text=text or request.fallback_text, usage=usage)

    def preview(self, request: RequestDescriptor, config: Config) -> PreviewResult:
        """Render a preview; raises APIError when no inline image comes back."""
        result, usage = self._do_request(request, config)
        for part in _candidate_parts(result):
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, dict) and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                try:
                    data = base64.b64decode(inline["data"])
                except ValueError as e:
                    raise APIError(
                        f"Failed to decode preview image: {str(e)}", response=str(part)[:200]
                    ) from e
                return PreviewResult(image_url=create_data_url(data, mime_type), usage=usage)
        raise APIError("Visual generation failed.", response=str(result)[:2000])
