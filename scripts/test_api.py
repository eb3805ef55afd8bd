#!/usr/bin/env python
"""
Test the Gemini API connection with one expansion.

Usage:
    python scripts/test_api.py [--preview]
"""

import asyncio
import sys
import tempfile
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from promptcraft.core.config import Config
from promptcraft.core.persistence import LocalStore
from promptcraft.core.session import PromptSession


def main() -> None:
    """Expand a seed (and optionally render a preview) against the live API."""
    print("Testing Gemini API connection...")
    print()

    config = Config.from_env()
    if not config.api_key:
        print("❌ GEMINI_API_KEY not set")
        print("Set it in .env file or environment variable")
        sys.exit(1)

    print(f"✓ API key found: {config.api_key[:8]}...")

    try:
        config.validate()
        print("✓ Config validated")
    except Exception as e:
        print(f"❌ Validation failed: {e}")
        sys.exit(1)

    scratch = Path(tempfile.mkdtemp(prefix="promptcraft-smoke-"))
    session = PromptSession(config=config, store=LocalStore(scratch))

    print()
    print(f"Expanding a seed with {config.flash_text_model}...")
    op = asyncio.run(session.submit_seed("a simple test image: blue circle on white background"))
    if op.failed:
        print(f"❌ Expansion failed: {op.error}")
        sys.exit(1)

    first = session.get_record(op.record_ids[0])
    print(f"✓ Expansion returned {len(op.record_ids)} prompt(s)")
    print(f"  - First: {first.title}")
    print(f"  - Tokens: {session.stats.cumulative_tokens}")

    if "--preview" in sys.argv[1:]:
        print()
        print(f"Rendering preview with {config.image_model} (this may take 10-30 seconds)...")
        op = asyncio.run(session.request_preview(first.id))
        if op.failed:
            print(f"❌ Preview failed: {op.error}")
            sys.exit(1)
        out = session.save_preview(first.id, scratch / "preview.png")
        print(f"✓ Preview saved to {out}")

    print()
    print("✅ All checks passed! Gemini API is working correctly.")


if __name__ == "__main__":
    main()
