"""
Rich progress displays for CLI operations.

All output goes to stderr to preserve stdout for machine-readable output
(record ids, prompt text, file paths).
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from promptcraft import GenerationKind, LedgerStats, OptionSelection, PromptRecord

# Console for stderr output (preserves stdout for machine output)
console = Console(stderr=True)

ONBOARDING_STEPS = [
    (
        "Neural Architect",
        "Initialize concepts into hyper-precision prompts. "
        "Use Entropy mode for randomized structural inspiration.",
    ),
    (
        "Visual Deconstruct",
        "Reverse-engineer existing visual media into text-based blueprints "
        "using our native vision scan.",
    ),
    (
        "Target Engine",
        "Calibrate output for specific synthesis models like Midjourney, DALL-E, "
        "or FLUX for optimized syntax.",
    ),
]


@contextmanager
def operation_progress(label: str, model: str | None = None, detail: str | None = None) -> Iterator[None]:
    """
    Display a spinner while an API operation is outstanding.

    Args:
        label: What is happening, e.g. "Expanding seed"
        model: The model being called
        detail: Optional short suffix (target generator, record id)

    Yields:
        None while the operation is in progress
    """
    progress = Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn("[cyan]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,  # Disappears when done
    )

    desc_parts = [label]
    if model:
        model_display = model if len(model) <= 40 else f"{model[:37]}..."
        desc_parts.append(f"[dim]({model_display})[/dim]")
    if detail:
        desc_parts.append(f"• [dim cyan]{detail}[/dim cyan]")

    with progress:
        task = progress.add_task(" ".join(desc_parts), total=None)
        yield
        progress.update(task, completed=True)


def describe_options(options: OptionSelection) -> str:
    """One-line summary of the active selections, e.g. for spinner details."""
    parts = [options.generator.value, options.density.value]
    for member in (options.style, options.lighting, options.perspective):
        if member.name != "NEUTRAL":
            parts.append(member.value)
    if options.model_tier.name == "PRO":
        parts.append("pro")
    return " / ".join(parts)


def print_record(record: PromptRecord, show_source: bool = False) -> None:
    """Print one record as a panel with its title, style, preview state and content."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")

    table.add_row("Id", f"[bold]{record.id}[/bold]")
    table.add_row("Style", record.style)
    if record.kind is GenerationKind.VISION:
        table.add_row("Source", "[magenta]image extract[/magenta]")
        if show_source and record.source_image_url:
            table.add_row("Image", f"[dim]<data URL, {len(record.source_image_url)} chars>[/dim]")
    if record.is_generating_preview:
        table.add_row("Preview", "[yellow]rendering[/yellow]")
    elif record.preview_url:
        table.add_row("Preview", "[green]✓[/green] available")
    if record.usage:
        table.add_row("Tokens", f"{record.usage.total_token_count:,}")
    table.add_row("Prompt", record.content)

    border = "magenta" if record.kind is GenerationKind.VISION else "green"
    console.print(
        Panel(table, title=f"[bold]{record.title}[/bold]", border_style=border, padding=(1, 2))
    )


def print_records(records: Iterable[PromptRecord]) -> None:
    for record in records:
        console.print()
        print_record(record)


def print_history(records: Iterable[PromptRecord]) -> None:
    """Print a compact table of records, newest first."""
    table = Table(title="Session history", title_style="bold cyan", expand=False)
    table.add_column("Id", style="bold", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Title")
    table.add_column("Style", style="dim")
    table.add_column("Preview", justify="center")
    for record in records:
        table.add_row(
            record.id,
            record.kind.value,
            record.title,
            record.style,
            "✓" if record.preview_url else "",
        )
    console.print(table)


def print_stats(stats: LedgerStats, record_count: int) -> None:
    """Print the token budget readout."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right")
    table.add_column(style="white")
    color = "red" if stats.percent_used >= 90 else "yellow" if stats.percent_used >= 60 else "green"
    table.add_row("Used", f"{stats.cumulative_tokens:,} tokens")
    table.add_row("Remaining", f"[{color}]{stats.remaining_budget:,}[/{color}] tokens")
    table.add_row("Daily limit", f"{stats.daily_limit:,} tokens")
    table.add_row("Quota", f"[{color}]{stats.percent_used:.1f}%[/{color}]")
    table.add_row("Records", str(record_count))
    console.print(Panel(table, title="[bold cyan]Token budget[/bold cyan]", border_style="cyan"))


def print_onboarding() -> None:
    """Print the first-run guide."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right", vertical="top")
    table.add_column(style="white")
    for index, (title, description) in enumerate(ONBOARDING_STEPS, start=1):
        table.add_row(f"{index}. {title}", description)
    console.print()
    console.print(Panel(table, title="[bold]Welcome to promptcraft[/bold]", border_style="cyan"))


def print_info(message: str) -> None:
    """Print an info message in cyan."""
    console.print(f"[cyan]ℹ[/cyan] {message}")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]✗[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]✓[/green] {message}")
