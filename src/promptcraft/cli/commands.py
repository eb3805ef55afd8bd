"""
Click command definitions for the promptcraft CLI.

Every command opens a PromptSession over the local store, applies the option
flags, runs at most one session command on a fresh event loop, then writes
pending state before exiting.
"""

import asyncio
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

import click

from promptcraft import (
    Config,
    DensityMode,
    ImageGenerator,
    LightingMode,
    ModelTier,
    Operation,
    Perspective,
    PromptSession,
    ValidationError,
    VisualStyle,
    __version__,
)
from promptcraft.cli import progress
from promptcraft.cli.handlers import raise_if_failed, run_with_error_handling
from promptcraft.cli.utils import default_preview_path, extension_for_data_url
from promptcraft.core.compiler import text_model_for
from promptcraft.core.providers import default_provider
from promptcraft.logging_config import configure_logging, get_verbosity_from_env


def _choices(enum_cls: type) -> str:
    return ", ".join(f"{m.name.lower()}" for m in enum_cls)


def _session_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the option flags shared by every command that calls the API."""
    decorators = [
        click.option(
            "--style",
            help=f"Visual style (name or label): {_choices(VisualStyle)}.",
        ),
        click.option(
            "--lighting",
            help=f"Lighting mode (name or label): {_choices(LightingMode)}.",
        ),
        click.option(
            "--lens",
            "perspective",
            help=f"Perspective / lens (name or label): {_choices(Perspective)}.",
        ),
        click.option(
            "--generator",
            "-g",
            help=f"Target image generator (name or label): {_choices(ImageGenerator)}.",
        ),
        click.option(
            "--concise/--extended",
            "concise",
            default=None,
            help="Keyword-dense short prompts, or long descriptive ones (default: extended).",
        ),
        click.option(
            "--tier",
            type=click.Choice([t.value for t in ModelTier], case_sensitive=False),
            default=None,
            help="Text model tier; 'pro' requires GEMINI_PRO_API_KEY.",
        ),
        click.option(
            "--api-key",
            envvar="GEMINI_API_KEY",
            help="Gemini API key (overrides GEMINI_API_KEY environment variable).",
        ),
        click.option(
            "--debug-api",
            is_flag=True,
            help="Log raw API request payload and response (image data truncated) for debugging.",
        ),
    ]
    for decorator in reversed(decorators):
        fn = decorator(fn)
    return _output_options(fn)


def _output_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Attach -q/--quiet and -v/--verbose."""
    fn = click.option(
        "--verbose",
        "-v",
        "verbose_count",
        count=True,
        help="Increase verbosity: -v also show prompt text, -vv show API/storage detail.",
    )(fn)
    fn = click.option(
        "--quiet",
        "-q",
        is_flag=True,
        help="Minimize progress messages; only print ids, text or paths.",
    )(fn)
    return fn


def _configure_logging(quiet: bool, verbose_count: int) -> None:
    # CLI flags override PROMPTCRAFT_VERBOSITY
    verbose_level = min(verbose_count, 2) if verbose_count > 0 else get_verbosity_from_env()
    configure_logging(verbose_level=verbose_level, quiet=quiet)


def _open_session(
    quiet: bool,
    api_key: str | None = None,
    debug_api: bool = False,
    validate: bool = True,
    **selections: Any,
) -> PromptSession:
    """Load config, restore the session, show the first-run guide and apply option flags."""
    config = Config.from_env()
    if api_key is not None:
        config.set_api_key(api_key)
    if debug_api:
        config.debug_api = True
    if validate:
        config.validate()

    session = PromptSession(provider=default_provider(), config=config).start()
    if session.needs_onboarding:
        if not quiet:
            progress.print_onboarding()
        session.complete_onboarding()

    concise = selections.pop("concise", None)
    if concise is not None:
        selections["density"] = DensityMode.CONCISE if concise else DensityMode.EXTENDED
    tier = selections.pop("tier", None)
    if tier is not None:
        selections["model_tier"] = tier
    changes = {k: v for k, v in selections.items() if v is not None}
    if changes:
        session.apply_options(**changes)
    return session


def _run(
    session: PromptSession,
    command: Callable[[], Coroutine[Any, Any, Operation]],
    quiet: bool,
    label: str,
    model: str | None = None,
    detail: str | None = None,
) -> Operation:
    """Run one session command to completion, persist, and raise if it failed."""
    try:
        if quiet:
            op = asyncio.run(command())
        else:
            with progress.operation_progress(label, model=model, detail=detail):
                op = asyncio.run(command())
    finally:
        session.close()
    return raise_if_failed(op)


def _require_record(session: PromptSession, record_id: str):
    record = session.get_record(record_id)
    if record is None:
        raise ValidationError(f"Unknown record: {record_id}", field="record_id")
    return record


@click.group(
    help=f"""Prompt engineering studio for AI image generators (Gemini).

\b
Version: {__version__}
"""
)
@click.version_option(
    version=__version__,
    package_name="promptcraft",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


@cli.command()
@click.argument("seed", required=False, default="")
@click.option(
    "--surprise",
    is_flag=True,
    help="Ignore SEED and invent three random masterpiece concepts.",
)
@_session_options
def expand(
    seed: str,
    surprise: bool,
    style: str | None,
    lighting: str | None,
    perspective: str | None,
    generator: str | None,
    concise: bool | None,
    tier: str | None,
    api_key: str | None,
    debug_api: bool,
    quiet: bool,
    verbose_count: int,
) -> None:
    """Expand a short SEED concept into three detailed prompts."""
    _configure_logging(quiet, verbose_count)

    def do_expand() -> None:
        session = _open_session(
            quiet,
            api_key=api_key,
            debug_api=debug_api,
            style=style,
            lighting=lighting,
            perspective=perspective,
            generator=generator,
            concise=concise,
            tier=tier,
        )
        op = _run(
            session,
            lambda: session.submit_seed(seed, surprise=surprise),
            quiet,
            "Surprising you" if surprise else "Expanding seed",
            model=text_model_for(session.options.model_tier, session.config),
            detail=progress.describe_options(session.options),
        )
        records = [session.get_record(rid) for rid in op.record_ids]
        records = [r for r in records if r is not None]
        if not records:
            if not quiet:
                progress.print_warning("The model returned no usable prompts.")
            return
        if not quiet:
            progress.print_records(records)
        for record in records:
            click.echo(record.id)

    run_with_error_handling(do_expand, quiet=quiet)


@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_session_options
def extract(
    image: Path,
    style: str | None,
    lighting: str | None,
    perspective: str | None,
    generator: str | None,
    concise: bool | None,
    tier: str | None,
    api_key: str | None,
    debug_api: bool,
    quiet: bool,
    verbose_count: int,
) -> None:
    """Reverse-engineer IMAGE into a single generator-specific prompt."""
    _configure_logging(quiet, verbose_count)

    def do_extract() -> None:
        session = _open_session(
            quiet,
            api_key=api_key,
            debug_api=debug_api,
            style=style,
            lighting=lighting,
            perspective=perspective,
            generator=generator,
            concise=concise,
            tier=tier,
        )
        op = _run(
            session,
            lambda: session.submit_image(image),
            quiet,
            "Analyzing image",
            model=session.config.vision_model,
            detail=image.name,
        )
        record = session.get_record(op.record_ids[0])
        if record is None:
            return
        if not quiet:
            progress.print_records([record])
        click.echo(record.id)

    run_with_error_handling(do_extract, quiet=quiet)


@cli.command()
@click.argument("record_id")
@click.argument("instruction")
@_session_options
def modify(
    record_id: str,
    instruction: str,
    style: str | None,
    lighting: str | None,
    perspective: str | None,
    generator: str | None,
    concise: bool | None,
    tier: str | None,
    api_key: str | None,
    debug_api: bool,
    quiet: bool,
    verbose_count: int,
) -> None:
    """Rewrite record RECORD_ID in place following INSTRUCTION."""
    _configure_logging(quiet, verbose_count)

    def do_modify() -> None:
        session = _open_session(
            quiet,
            api_key=api_key,
            debug_api=debug_api,
            style=style,
            lighting=lighting,
            perspective=perspective,
            generator=generator,
            concise=concise,
            tier=tier,
        )
        _require_record(session, record_id)
        _run(
            session,
            lambda: session.submit_modification(record_id, instruction),
            quiet,
            "Refining prompt",
            detail=record_id,
        )
        record = _require_record(session, record_id)
        if not quiet:
            progress.print_record(record)
        click.echo(record.content)

    run_with_error_handling(do_modify, quiet=quiet)


@cli.command()
@click.argument("record_id")
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Output file path.")
@click.option(
    "--api-key",
    envvar="GEMINI_API_KEY",
    help="Gemini API key (overrides GEMINI_API_KEY environment variable).",
)
@click.option(
    "--debug-api",
    is_flag=True,
    help="Log raw API request payload and response (image data truncated) for debugging.",
)
@_output_options
def preview(
    record_id: str,
    out: Path | None,
    api_key: str | None,
    debug_api: bool,
    quiet: bool,
    verbose_count: int,
) -> None:
    """Render a square preview image for record RECORD_ID and save it."""
    _configure_logging(quiet, verbose_count)

    def do_preview() -> None:
        session = _open_session(quiet, api_key=api_key, debug_api=debug_api)
        _require_record(session, record_id)
        _run(
            session,
            lambda: session.request_preview(record_id),
            quiet,
            "Rendering preview",
            model=session.config.image_model,
            detail=record_id,
        )
        record = _require_record(session, record_id)
        out_path = out
        if out_path is None:
            out_path = Path(
                default_preview_path(record_id, extension_for_data_url(record.preview_url or ""))
            )
        session.save_preview(record_id, out_path)
        if not quiet:
            progress.print_success(f"Preview saved to {out_path}")
        click.echo(str(out_path))

    run_with_error_handling(do_preview, quiet=quiet)


@cli.command()
@click.option("--limit", "-n", type=int, default=10, show_default=True, help="Records to list.")
@_output_options
def history(limit: int, quiet: bool, verbose_count: int) -> None:
    """List the most recent records, newest first."""
    _configure_logging(quiet, verbose_count)

    def do_history() -> None:
        session = _open_session(quiet, validate=False)
        records = session.records[: max(limit, 0)]
        if quiet:
            for record in records:
                click.echo(f"{record.id}\t{record.title}")
            return
        if not records:
            progress.print_info("No records yet. Try: promptcraft expand \"a lighthouse at dusk\"")
            return
        progress.print_history(records)

    run_with_error_handling(do_history, quiet=quiet)


@cli.command()
@_output_options
def stats(quiet: bool, verbose_count: int) -> None:
    """Show cumulative token usage against the daily budget."""
    _configure_logging(quiet, verbose_count)

    def do_stats() -> None:
        session = _open_session(quiet, validate=False)
        ledger_stats = session.stats
        if quiet:
            click.echo(f"{ledger_stats.cumulative_tokens} {ledger_stats.remaining_budget}")
            return
        progress.print_stats(ledger_stats, len(session.records))

    run_with_error_handling(do_stats, quiet=quiet)


@cli.command()
@click.argument("record_id")
@click.option(
    "--clean",
    is_flag=True,
    help="Print the content with any leading 'Prompt:'/'Variation:' label removed, ready to reuse as a seed.",
)
@_output_options
def show(record_id: str, clean: bool, quiet: bool, verbose_count: int) -> None:
    """Print the full content of record RECORD_ID."""
    _configure_logging(quiet, verbose_count)

    def do_show() -> None:
        session = _open_session(quiet, validate=False)
        record = _require_record(session, record_id)
        if not quiet:
            progress.print_record(record, show_source=True)
        click.echo(session.bridge_to_seed(record_id) if clean else record.content)

    run_with_error_handling(do_show, quiet=quiet)


@cli.command()
def onboard() -> None:
    """Show the first-run guide again."""
    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    def do_onboard() -> None:
        session = _open_session(quiet=True, validate=False)
        progress.print_onboarding()
        session.complete_onboarding()

    run_with_error_handling(do_onboard)


def main() -> None:
    """Entry point for the promptcraft console script."""
    cli()


__all__ = [
    "cli",
    "main",
    "expand",
    "extract",
    "modify",
    "preview",
    "history",
    "stats",
    "show",
    "onboard",
]
