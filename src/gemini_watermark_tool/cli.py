import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .core import LOGO_VALUE
from .core.detector import detect_watermark_region, is_watermark_detected
from .core.engine import AUTO, Forced, SizeSelection, WatermarkEngine
from .core.position import Rect, WatermarkSize
from .errors import WatermarkError
from .processors.image import SUPPORTED_IMAGE_FORMATS, is_supported_image, process_image, read_image

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="gwt",
    help="Remove or reapply the Gemini image watermark with reversible alpha blending.",
    add_completion=True,
)
console = Console()


class SizeChoice(str, Enum):
    auto = "auto"
    small = "small"
    large = "large"

    def to_selection(self) -> SizeSelection:
        if self is SizeChoice.auto:
            return AUTO
        return Forced(WatermarkSize(self.value))


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def parse_region(value: Optional[str]) -> Optional[Rect]:
    """Parse an ``X,Y,W,H`` region option."""
    if value is None:
        return None
    try:
        x, y, w, h = (int(part) for part in value.split(","))
    except ValueError:
        raise typer.BadParameter("Region must be four integers: X,Y,W,H")
    if w <= 0 or h <= 0:
        raise typer.BadParameter("Region width and height must be positive")
    return Rect(x, y, w, h)


def load_engine(
    bg_small: Optional[Path],
    bg_large: Optional[Path],
    logo_value: float,
) -> WatermarkEngine:
    """Build the engine from explicit captures or the bundled assets."""
    if (bg_small is None) != (bg_large is None):
        raise typer.BadParameter("--bg-small and --bg-large must be given together")

    try:
        if bg_small is not None and bg_large is not None:
            return WatermarkEngine.from_files(bg_small, bg_large, logo_value)
        return WatermarkEngine.from_assets(logo_value)
    except WatermarkError as e:
        console.print(f"[red]Cannot load background captures:[/red] {e}")
        raise typer.Exit(1)


def get_files_to_process(path: Path, recursive: bool = False) -> list[Path]:
    """Get all supported files from path (file or directory)."""
    if path.is_file():
        return [path]

    files = []
    pattern = "**/*" if recursive else "*"

    for f in path.glob(pattern):
        if f.is_file() and is_supported_image(f):
            files.append(f)

    return sorted(files)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    setup_logging(verbose)


@app.command()
def process(
    path: Path = typer.Argument(
        ...,
        help="Path to image file or directory for batch processing",
        exists=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path (file or directory). Defaults to input location with '_output' suffix.",
    ),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Process directories recursively",
    ),
    suffix: str = typer.Option(
        "_output",
        "--suffix",
        "-s",
        help="Suffix to add to output filenames",
    ),
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        "-y",
        help="Overwrite existing output files without prompting",
    ),
    add: bool = typer.Option(
        False,
        "--add",
        help="Add the watermark instead of removing it",
    ),
    size: SizeChoice = typer.Option(
        SizeChoice.auto,
        "--size",
        help="Watermark size; auto picks by image resolution",
    ),
    region: Optional[str] = typer.Option(
        None,
        "--region",
        help="Custom watermark region as X,Y,W,H (alpha map is resampled to fit)",
    ),
    min_confidence: Optional[float] = typer.Option(
        None,
        "--min-confidence",
        min=0.0,
        max=1.0,
        help="Skip images whose detection confidence is below this value",
    ),
    bg_small: Optional[Path] = typer.Option(
        None, "--bg-small", exists=True, help="48x48 background capture"
    ),
    bg_large: Optional[Path] = typer.Option(
        None, "--bg-large", exists=True, help="96x96 background capture"
    ),
    logo_value: float = typer.Option(
        LOGO_VALUE, "--logo-value", help="Overlay intensity (255 = white)"
    ),
):
    """
    Remove (or add) the Gemini watermark in images.

    Examples:
        gwt process image.png
        gwt process ./photos/ -r --suffix "_clean"
        gwt process image.jpg --region 900,900,64,64
        gwt process image.png --add --size large
    """
    custom_region = parse_region(region)
    engine = load_engine(bg_small, bg_large, logo_value)
    files = get_files_to_process(path, recursive)

    if not files:
        console.print(f"[red]No supported files found in {path}[/red]")
        console.print(f"Supported formats: {SUPPORTED_IMAGE_FORMATS}")
        raise typer.Exit(1)

    output_dir = None
    if path.is_dir() and output:
        output_dir = output
        output_dir.mkdir(parents=True, exist_ok=True)

    action = "adding" if add else "removing"
    console.print(
        Panel(
            f"Processing {len(files)} file(s) ({action} Gemini watermark)",
            title="Gemini Watermark Tool",
            border_style="blue",
        )
    )

    failures = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        main_task = progress.add_task("Processing files...", total=len(files))

        for file_path in files:
            progress.update(main_task, description=f"Processing {file_path.name}...")

            if output_dir:
                file_output = output_dir / f"{file_path.stem}{suffix}{file_path.suffix}"
            elif output and path.is_file():
                file_output = output
            else:
                file_output = None  # Use default naming

            if file_output and file_output.exists() and not overwrite:
                if not typer.confirm(f"Overwrite {file_output}?"):
                    progress.advance(main_task)
                    continue

            try:
                result = process_image(
                    file_path,
                    engine,
                    output_path=file_output,
                    suffix=suffix,
                    remove=not add,
                    size=size.to_selection(),
                    region=custom_region,
                    min_confidence=min_confidence,
                )
                if result is None:
                    console.print(f"  [yellow]Skipped (no watermark detected):[/yellow] {file_path}")
                else:
                    console.print(f"  [green]Image saved:[/green] {result}")
            except (WatermarkError, OSError) as e:
                failures += 1
                logger.error("Error processing %s: %s", file_path, e)
                console.print(f"  [red]Error processing {file_path}:[/red] {e}")

            progress.advance(main_task)

    console.print("[bold green]Done![/bold green]")
    if failures:
        raise typer.Exit(1)


@app.command()
def detect(
    path: Path = typer.Argument(..., help="Image file or directory", exists=True),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Scan directories recursively"),
    threshold: float = typer.Option(
        0.5, "--threshold", "-t", min=0.0, max=1.0, help="Confidence needed to report a watermark"
    ),
):
    """Score the expected watermark position of each image."""
    files = get_files_to_process(path, recursive)
    if not files:
        console.print(f"[red]No supported files found in {path}[/red]")
        raise typer.Exit(1)

    table = Table(title="Watermark detection")
    table.add_column("File")
    table.add_column("Region (x, y, w, h)")
    table.add_column("Brightness", justify="right")
    table.add_column("Variance", justify="right")
    table.add_column("Edge", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Watermark")

    for file_path in files:
        try:
            result = detect_watermark_region(read_image(file_path))
        except WatermarkError as e:
            logger.error("Error reading %s: %s", file_path, e)
            console.print(f"  [red]Error reading {file_path}:[/red] {e}")
            continue
        if result is None:
            continue

        r = result.region
        found = is_watermark_detected(result, threshold)
        table.add_row(
            file_path.name,
            f"{r.x}, {r.y}, {r.width}, {r.height}",
            f"{result.brightness_score:.2f}",
            f"{result.variance_score:.2f}",
            f"{result.edge_score:.2f}",
            f"{result.confidence:.2f}",
            "[green]yes[/green]" if found else "[dim]no[/dim]",
        )

    console.print(table)


@app.command()
def info():
    """Display information about supported formats and algorithm."""
    console.print(
        Panel(
            "[bold]Gemini Watermark Tool[/bold]\n\n"
            "Removes or reapplies the sparkle watermark on Gemini-generated images.\n\n"
            "[cyan]Placement:[/cyan]\n"
            "  - 48x48 logo, 32px margins (default)\n"
            "  - 96x96 logo, 64px margins (width AND height > 1024)\n\n"
            f"[cyan]Supported Image Formats:[/cyan] {', '.join(sorted(SUPPORTED_IMAGE_FORMATS))}\n\n"
            "[dim]Remove: original = (watermarked - alpha * logo) / (1 - alpha)[/dim]\n"
            "[dim]Add: watermarked = alpha * logo + (1 - alpha) * original[/dim]\n"
            "[dim]Detect: brightness, contrast and edge cues at the expected position[/dim]",
            title="About",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
