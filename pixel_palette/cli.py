"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pixel_palette.buffer import PixelBuffer
from pixel_palette.config import PixelateConfig
from pixel_palette.engine import PixelationEngine
from pixel_palette.errors import PixelPaletteError
from pixel_palette.image_io import load_image, make_comparison, save_image
from pixel_palette.palette import (
    CLASSIC_PALETTES,
    Palette,
    extract_palette,
    get_palette,
)

app = typer.Typer(
    name="pixel-palette",
    help="Turn any image into retro pixel art with classic display palettes.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _resolve_palette(
    palette_id: str,
    palette_source: Path | None,
    num_colors: int,
    seed: int | None,
) -> Palette:
    if palette_source is not None:
        palette = extract_palette(load_image(palette_source), num_colors, seed=seed)
        logging.getLogger("pixel_palette").info(
            "Palette extracted from %s (%d colours)", palette_source, len(palette),
        )
        return palette
    return get_palette(palette_id)


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[red]Error:[/red] {exc}")
    return typer.Exit(1)


def _convert_one(
    engine: PixelationEngine,
    cfg: PixelateConfig,
    palette: Palette,
    src_path: Path,
    out_path: Path,
    comparison: bool,
) -> PixelBuffer:
    source = load_image(src_path)
    result = engine.process(source, cfg.block_size, palette, resize=cfg.max_side)
    save_image(result, out_path, cfg.pixel_upscale)
    if comparison:
        comp_path = out_path.with_name(f"{out_path.stem}_comparison{out_path.suffix}")
        make_comparison(source, result, comp_path)
    return result


# Defaults come from PixelateConfig - single source of truth
_DEFAULTS = PixelateConfig()


# -- convert command ---------------------------------------------------

@app.command()
def convert(
    image: Path = typer.Argument(..., help="Path to the source image"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file (default: output/<name>_pixel.png)",
    ),
    block_size: int = typer.Option(
        _DEFAULTS.block_size, "--block-size", "-b", min=1, max=64,
        help="Side of each pixel block, in source pixels",
    ),
    palette_id: str = typer.Option(
        _DEFAULTS.palette_id, "--palette", "-p",
        help="Catalogue palette id (see the 'palettes' command)",
    ),
    palette_source: Path | None = typer.Option(
        None, "--palette-from", help="Extract the palette from another image",
    ),
    num_colors: int = typer.Option(
        16, "--colors", "-c", min=1, max=256,
        help="Palette size when using --palette-from",
    ),
    seed: int | None = typer.Option(None, "--seed", "-s", help="Seed for --palette-from"),
    sampling: str = typer.Option(
        _DEFAULTS.sampling, "--sampling", help="'average' or 'center'",
    ),
    max_side: int | None = typer.Option(
        _DEFAULTS.max_side, "--max-side", "-m",
        help="Downscale so the longest side fits (default: native size)",
    ),
    metric: str = typer.Option(
        _DEFAULTS.metric, "--metric", help="'redmean', 'rgb' or 'lab'",
    ),
    workers: int = typer.Option(_DEFAULTS.workers, "--workers", "-w", min=1),
    upscale: int = typer.Option(
        _DEFAULTS.pixel_upscale, "--upscale", "-u", min=1, help="Pixel upscale factor",
    ),
    comparison: bool = typer.Option(
        False, "--comparison/--no-comparison", help="Also save a side-by-side image",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Pixelate a single image."""
    _setup_logging(verbose)

    try:
        cfg = PixelateConfig(
            block_size=block_size,
            palette_id=palette_id,
            sampling=sampling,
            max_side=max_side,
            metric=metric,
            workers=workers,
            pixel_upscale=upscale,
        )
        palette = _resolve_palette(cfg.palette_id, palette_source, num_colors, seed)
        out_path = output or cfg.output_dir / f"{image.stem}_pixel.{cfg.output_format}"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        result = _convert_one(cfg.engine(), cfg, palette, image, out_path, comparison)
    except (PixelPaletteError, OSError) as exc:
        raise _fail(exc) from exc

    console.print(
        f"[green]✓[/green] Saved to {out_path}  "
        f"[dim]{result.width}x{result.height}  block={cfg.block_size}"
        f"  palette={palette.id}[/dim]"
    )


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    block_size: int = typer.Option(
        _DEFAULTS.block_size, "--block-size", "-b", min=1, max=64,
    ),
    palette_id: str = typer.Option(_DEFAULTS.palette_id, "--palette", "-p"),
    sampling: str = typer.Option(_DEFAULTS.sampling, "--sampling"),
    max_side: int | None = typer.Option(_DEFAULTS.max_side, "--max-side", "-m"),
    metric: str = typer.Option(_DEFAULTS.metric, "--metric"),
    workers: int = typer.Option(_DEFAULTS.workers, "--workers", "-w", min=1),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u", min=1),
    comparison: bool = typer.Option(False, "--comparison/--no-comparison"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Pixelate every image in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)
    logger = logging.getLogger("pixel_palette")

    try:
        cfg = PixelateConfig(
            block_size=block_size,
            palette_id=palette_id,
            sampling=sampling,
            max_side=max_side,
            metric=metric,
            workers=workers,
            pixel_upscale=upscale,
            input_dir=input_dir,
            output_dir=output_dir,
        )
        palette = get_palette(cfg.palette_id)
    except PixelPaletteError as exc:
        raise _fail(exc) from exc

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    output_dir.mkdir(parents=True, exist_ok=True)

    console.print(Panel.fit(
        f"[bold]PIXEL PALETTE[/bold]\n"
        f"Block: {cfg.block_size}  |  Palette: {palette.name}\n"
        f"Sampling: {cfg.sampling}  |  Metric: {cfg.metric}\n"
        f"Max side: {cfg.max_side or 'native'}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    # One engine for the whole batch so the colour cache carries over
    engine = cfg.engine()
    failures = 0
    for idx, img_path in enumerate(images, 1):
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t0 = time.perf_counter()
        out_path = output_dir / f"{img_path.stem}_pixel.{cfg.output_format}"
        try:
            result = _convert_one(engine, cfg, palette, img_path, out_path, comparison)
        except (PixelPaletteError, OSError) as exc:
            failures += 1
            logger.error("Skipping %s: %s", img_path.name, exc)
            continue
        console.print(
            f"  [green]✓[/green] {out_path.name}  "
            f"[dim]{result.width}x{result.height}"
            f"  time={time.perf_counter() - t0:.2f}s[/dim]"
        )

    if failures:
        console.print(Panel.fit(
            f"[bold yellow]{failures} of {len(images)} images failed[/bold yellow]",
            border_style="yellow",
        ))
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]",
        border_style="green",
    ))


# -- palettes command --------------------------------------------------

@app.command()
def palettes() -> None:
    """List the palette catalogue."""
    table = Table(title="Palette catalogue", header_style="bold cyan")
    table.add_column("id", style="bold")
    table.add_column("name")
    table.add_column("colours", justify="right")
    table.add_column("preview")

    for palette in CLASSIC_PALETTES:
        preview = Text()
        for hex_color in palette.colors[:8]:
            preview.append("██", style=hex_color.lower())
        table.add_row(
            palette.id,
            palette.name,
            str(len(palette)) if palette.colors else "-",
            preview,
        )
    console.print(table)


if __name__ == "__main__":
    app()
