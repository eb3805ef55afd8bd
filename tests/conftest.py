"""
Pytest configuration: default runs most tests; use --run-slow to include slow tests.
"""

import io
from pathlib import Path

import pytest
from PIL import Image

from promptcraft.core.config import Config


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (live Gemini API calls). Default: skip them.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow", False):
        return
    skip_slow = pytest.mark.skip(reason="Slow test; run with --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config with a test key and storage under tmp_path."""
    return Config(api_key="test-key", storage_dir=tmp_path / "store", persist_delay=0.01)


@pytest.fixture
def png_bytes() -> bytes:
    """Minimal 2x2 PNG as bytes."""
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()
