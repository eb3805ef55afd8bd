"""Unit tests for the promptcraft CLI."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from promptcraft.cli import cli
from promptcraft.core.config import DAILY_TOKEN_LIMIT, Config
from promptcraft.core.images import create_data_url
from promptcraft.core.models import (
    ExpansionResult,
    PreviewResult,
    PromptDraft,
    TextResult,
    TokenUsage,
)
from promptcraft.utils.exceptions import APIError, NetworkError


@pytest.fixture
def provider(png_bytes: bytes) -> MagicMock:
    provider = MagicMock()
    provider.expand.return_value = ExpansionResult(
        prompts=[PromptDraft(title=f"Title {i}", content=f"Prompt {i}: detailed {i}") for i in range(3)],
        usage=TokenUsage(total_token_count=120),
    )
    provider.extract.return_value = TextResult(text="a red square", usage=TokenUsage(total_token_count=30))
    provider.modify.return_value = TextResult(text="detailed 0, in snow", usage=TokenUsage(total_token_count=15))
    provider.preview.return_value = PreviewResult(
        image_url=create_data_url(png_bytes, "image/png"), usage=TokenUsage(total_token_count=10)
    )
    return provider


@pytest.fixture
def invoke(provider: MagicMock, tmp_path: Path):
    """Run the CLI against tmp storage and the mock provider; returns a callable(*args, api_key=...)."""
    storage = tmp_path / "store"

    def _invoke(*args: str, api_key: str = "test-key", pro_key: str = "") -> Result:
        with (
            patch("promptcraft.cli.commands.Config") as mock_config_cls,
            patch("promptcraft.cli.commands.default_provider", return_value=provider),
        ):
            mock_config_cls.from_env.side_effect = lambda: Config(
                api_key=api_key, pro_api_key=pro_key, storage_dir=storage
            )
            return CliRunner().invoke(cli, list(args), env={"GEMINI_API_KEY": None})

    return _invoke


def _expand_ids(invoke) -> list[str]:
    result = invoke("expand", "a lighthouse", "-q")
    assert result.exit_code == 0, result.output
    return result.output.split()


@pytest.mark.unit
class TestExpandCommand:
    def test_prints_record_ids(self, invoke, provider: MagicMock) -> None:
        ids = _expand_ids(invoke)
        assert len(ids) == 3
        assert len(set(ids)) == 3
        request = provider.expand.call_args[0][0]
        assert request.text == "a lighthouse"

    def test_option_flags_reach_request(self, invoke, provider: MagicMock) -> None:
        result = invoke(
            "expand", "a fox", "-q", "--style", "noir", "--lens", "macro", "-g", "flux", "--concise"
        )
        assert result.exit_code == 0, result.output
        system = provider.expand.call_args[0][0].system_instruction
        assert "Preferred Style: Film Noir / Monochrome" in system
        assert "View/Lens: Macro / Close-up" in system
        assert "Generator Target: Flux.1 (Realism)." in system

    def test_surprise_needs_no_seed(self, invoke, provider: MagicMock) -> None:
        result = invoke("expand", "--surprise", "-q")
        assert result.exit_code == 0, result.output
        assert provider.expand.call_args[0][0].text == "Generate 3 random masterpiece prompts."

    def test_empty_seed_exit_code(self, invoke, provider: MagicMock) -> None:
        result = invoke("expand", "-q")
        assert result.exit_code == 2
        assert "Seed cannot be empty" in result.output
        provider.expand.assert_not_called()

    def test_missing_key_exit_code(self, invoke, provider: MagicMock) -> None:
        result = invoke("expand", "a fox", "-q", api_key="")
        assert result.exit_code == 2
        assert "API Key not configured" in result.output
        provider.expand.assert_not_called()

    def test_api_error_exit_code(self, invoke, provider: MagicMock) -> None:
        provider.expand.side_effect = APIError("Quota or rate limit exceeded.", status_code=429)
        result = invoke("expand", "a fox", "-q")
        assert result.exit_code == 1
        assert "Quota or rate limit exceeded." in result.output

    def test_network_error_exit_code(self, invoke, provider: MagicMock) -> None:
        provider.expand.side_effect = NetworkError("Network error: refused")
        result = invoke("expand", "a fox")
        assert result.exit_code == 1

    def test_unknown_style_exit_code(self, invoke) -> None:
        result = invoke("expand", "a fox", "-q", "--style", "nonsense")
        assert result.exit_code == 2
        assert "nonsense" in result.output

    def test_pro_tier_requires_pro_key(self, invoke, provider: MagicMock) -> None:
        result = invoke("expand", "a fox", "-q", "--tier", "pro")
        assert result.exit_code == 2
        assert "GEMINI_PRO_API_KEY" in result.output

        result = invoke("expand", "a fox", "-q", "--tier", "pro", pro_key="pro-key")
        assert result.exit_code == 0, result.output
        assert provider.expand.call_args[0][0].model == Config().pro_text_model

    def test_progress_output_not_quiet(self, invoke) -> None:
        result = invoke("expand", "a fox")
        assert result.exit_code == 0, result.output
        assert "Title 0" in result.output


@pytest.mark.unit
class TestExtractCommand:
    def test_extract_prints_vision_record(self, invoke, provider: MagicMock, tmp_path: Path, png_bytes: bytes) -> None:
        image = tmp_path / "input.png"
        image.write_bytes(png_bytes)
        result = invoke("extract", str(image), "-q")
        assert result.exit_code == 0, result.output
        assert result.output.strip().endswith("-vision")
        assert provider.extract.call_args[0][0].image.mime_type == "image/png"

    def test_missing_file(self, invoke, tmp_path: Path) -> None:
        result = invoke("extract", str(tmp_path / "nope.png"), "-q")
        assert result.exit_code == 2


@pytest.mark.unit
class TestRecordCommands:
    def test_modify_prints_new_content(self, invoke, provider: MagicMock) -> None:
        ids = _expand_ids(invoke)
        result = invoke("modify", ids[0], "add snow", "-q")
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "detailed 0, in snow"

        shown = invoke("show", ids[0], "-q")
        assert shown.output.strip() == "detailed 0, in snow"

    def test_modify_unknown_record(self, invoke, provider: MagicMock) -> None:
        result = invoke("modify", "missing", "add snow", "-q")
        assert result.exit_code == 2
        provider.modify.assert_not_called()

    def test_preview_writes_file(self, invoke, tmp_path: Path) -> None:
        ids = _expand_ids(invoke)
        out = tmp_path / "preview.png"
        result = invoke("preview", ids[1], "--out", str(out), "-q")
        assert result.exit_code == 0, result.output
        assert result.output.strip() == str(out)
        assert out.read_bytes().startswith(b"\x89PNG")

    def test_preview_failure_exit_code(self, invoke, provider: MagicMock, tmp_path: Path) -> None:
        ids = _expand_ids(invoke)
        provider.preview.side_effect = APIError("Visual generation failed.")
        out = tmp_path / "preview.png"
        result = invoke("preview", ids[0], "--out", str(out), "-q")
        assert result.exit_code == 1
        assert not out.exists()

    def test_show_clean(self, invoke) -> None:
        ids = _expand_ids(invoke)
        assert invoke("show", ids[2], "-q").output.strip() == "Prompt 2: detailed 2"
        assert invoke("show", ids[2], "--clean", "-q").output.strip() == "detailed 2"

    def test_show_unknown(self, invoke) -> None:
        result = invoke("show", "missing", "-q")
        assert result.exit_code == 2
        assert "Unknown record" in result.output

    def test_history_lists_newest_first(self, invoke) -> None:
        ids = _expand_ids(invoke)
        result = invoke("history", "-q", "-n", "2")
        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines == [f"{ids[0]}\tTitle 0", f"{ids[1]}\tTitle 1"]

    def test_history_without_key(self, invoke) -> None:
        result = invoke("history", "-q", api_key="")
        assert result.exit_code == 0
        assert result.output == ""

    def test_stats(self, invoke) -> None:
        _expand_ids(invoke)
        result = invoke("stats", "-q")
        assert result.exit_code == 0, result.output
        assert result.output.split() == ["120", str(DAILY_TOKEN_LIMIT - 120)]


@pytest.mark.unit
class TestMisc:
    def test_version(self, invoke) -> None:
        result = invoke("--version")
        assert result.exit_code == 0

    def test_onboard(self, invoke) -> None:
        result = invoke("onboard")
        assert result.exit_code == 0
        assert "Neural Architect" in result.output
