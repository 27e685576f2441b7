"""Palette catalogue: classic display palettes, hex parsing, lookup."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from pixel_palette.buffer import PixelBuffer
from pixel_palette.errors import InvalidColor, InvalidParameter, UnknownPalette

logger = logging.getLogger(__name__)

Color = tuple[int, int, int]

_HEX_RE = re.compile(r"#?([0-9a-fA-F]{6})")


def parse_hex_color(text: str) -> Color:
    """Parse ``'#RRGGBB'`` (case-insensitive, ``#`` optional) to an RGB tuple.

    Raises:
        InvalidColor: for anything that is not exactly six hex digits.
    """
    if not isinstance(text, str):
        msg = f"Palette colour must be a hex string, got {text!r}"
        raise InvalidColor(msg)
    m = _HEX_RE.fullmatch(text)
    if m is None:
        msg = f"Invalid palette colour {text!r} (expected #RRGGBB)"
        raise InvalidColor(msg)
    h = m.group(1)
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def to_hex(color: Iterable[int]) -> str:
    r, g, b = (int(c) for c in color)
    return f"#{r:02X}{g:02X}{b:02X}"


@dataclass(frozen=True)
class Palette:
    """A named, ordered set of allowed output colours.

    An empty ``colors`` tuple means "no restriction": the engine passes the
    sampled colours through untouched.
    """

    id: str
    name: str
    colors: tuple[str, ...] = ()
    description: str = ""

    def __len__(self) -> int:
        return len(self.colors)

    @property
    def is_unrestricted(self) -> bool:
        return not self.colors

    @property
    def key(self) -> tuple[str, tuple[str, ...]]:
        """Identity used to scope colour-match caches."""
        return self.id, self.colors

    def rgb(self) -> list[Color]:
        return [parse_hex_color(c) for c in self.colors]

    def to_array(self) -> np.ndarray:
        """Parse every colour into an ``(N, 3)`` uint8 array.

        Raises:
            InvalidColor: on the first malformed entry, naming the palette.
        """
        try:
            rows = self.rgb()
        except InvalidColor as exc:
            msg = f"Palette '{self.id}': {exc}"
            raise InvalidColor(msg) from exc
        return np.array(rows, dtype=np.uint8).reshape(-1, 3)


def custom_palette(
    hex_colors: Sequence[str],
    palette_id: str = "custom",
    name: str = "Custom",
    description: str = "",
) -> Palette:
    """Build a caller-defined palette, validating every colour up front."""
    colors = tuple(hex_colors)
    for c in colors:
        parse_hex_color(c)
    return Palette(palette_id, name, colors, description)


def extract_palette(
    buffer: PixelBuffer,
    num_colors: int,
    seed: int | None = None,
    palette_id: str = "extracted",
) -> Palette:
    """Sample up to *num_colors* distinct colours out of an image.

    Fully transparent pixels are ignored. If the image holds fewer distinct
    colours than requested, all of them are returned.
    """
    if num_colors < 1:
        msg = f"num_colors must be >= 1, got {num_colors}"
        raise InvalidParameter(msg)
    rng = np.random.default_rng(seed)
    flat = buffer.data.reshape(-1, 4)
    rgb = flat[flat[:, 3] > 0, :3]
    distinct = np.unique(rgb, axis=0)
    if len(distinct) > num_colors:
        idx = np.sort(rng.choice(len(distinct), size=num_colors, replace=False))
        distinct = distinct[idx]
    return Palette(
        palette_id,
        "Extracted",
        tuple(to_hex(c) for c in distinct),
        f"{len(distinct)} colours sampled from a {buffer.width}x{buffer.height} image",
    )


# -- Generated palettes ------------------------------------------------


def _web_safe() -> tuple[str, ...]:
    levels = (0x00, 0x33, 0x66, 0x99, 0xCC, 0xFF)
    return tuple(to_hex((r, g, b)) for r in levels for g in levels for b in levels)


def _rgb332() -> tuple[str, ...]:
    """3 bits red, 3 bits green, 2 bits blue."""
    out = []
    for i in range(256):
        r = round(((i >> 5) & 0x7) * 255 / 7)
        g = round(((i >> 2) & 0x7) * 255 / 7)
        b = round((i & 0x3) * 255 / 3)
        out.append(to_hex((r, g, b)))
    return tuple(out)


# -- Catalogue ---------------------------------------------------------

CLASSIC_PALETTES: tuple[Palette, ...] = (
    Palette(
        "original",
        "Original",
        (),
        "The image's own colours, without any palette restriction.",
    ),
    Palette(
        "gameboy",
        "Game Boy",
        ("#0f380f", "#306230", "#8bac0f", "#9bbc0f"),
        "Nintendo Game Boy (1989): four shades of olive green on a "
        "reflective dot-matrix LCD.",
    ),
    Palette(
        "nes",
        "NES",
        (
            "#7C7C7C", "#0000FC", "#0000BC", "#4428BC",
            "#940084", "#A80020", "#A81000", "#881400",
            "#503000", "#007800", "#006800", "#005800",
            "#004058", "#000000", "#BCBCBC", "#0078F8",
            "#0058F8", "#6844FC", "#D800CC", "#E40058",
            "#F83800", "#E45C10", "#AC7C00", "#00B800",
            "#00A800", "#00A844", "#008888", "#000000",
            "#F8F8F8", "#3CBCFC", "#6888FC", "#9878F8",
            "#F878F8", "#F85898", "#F87858", "#FCA044",
            "#F8B800", "#B8F818", "#58D854", "#58F898",
            "#00E8D8", "#787878", "#FCFCFC", "#A4E4FC",
            "#B8B8F8", "#D8B8F8", "#F8B8F8", "#F8A4C0",
            "#F0D0B0", "#FCE0A8", "#F8D878", "#D8F878",
            "#B8F8B8", "#B8F8D8", "#00FCFC", "#F8D8F8",
        ),
        "Nintendo Entertainment System (1983): the PPU's master palette "
        "as seen on a CRT.",
    ),
    Palette(
        "intellivision",
        "Intellivision",
        (
            "#000000", "#002DFF", "#FF3E00", "#FF1F6F",
            "#00FF00", "#FFE700", "#0026FF", "#B200FF",
            "#FF8B00", "#00FFA4", "#FFFA00", "#00FF8A",
            "#FF0000", "#00FFFF", "#808080", "#FFFFFF",
        ),
        "Mattel Intellivision (1979): sixteen colours from the STIC chip.",
    ),
    Palette(
        "cga",
        "CGA",
        ("#000000", "#55FFFF", "#FF55FF", "#FFFFFF"),
        "IBM Color Graphics Adapter (1981), mode 4 high-intensity "
        "cyan/magenta palette.",
    ),
    Palette(
        "commodore64",
        "Commodore 64",
        (
            "#000000", "#FFFFFF", "#880000", "#AAFFEE",
            "#CC44CC", "#00CC55", "#0000AA", "#EEEE77",
            "#DD8855", "#664400", "#FF7777", "#333333",
            "#777777", "#AAFF66", "#0088FF", "#BBBBBB",
        ),
        "Commodore 64 (1982): the sixteen fixed colours of the VIC-II.",
    ),
    Palette(
        "zxspectrum",
        "ZX Spectrum",
        (
            "#000000", "#0000CD", "#CD0000", "#CD00CD",
            "#00CD00", "#00CDCD", "#CDCD00", "#CDCDCD",
        ),
        "Sinclair ZX Spectrum (1982): eight colours at normal brightness.",
    ),
    Palette(
        "msdos",
        "MS-DOS",
        tuple(to_hex((v, v, v)) for v in range(0, 256, 17)),
        "Sixteen evenly spaced greys, as used by early monochrome PC displays.",
    ),
    Palette(
        "pico8",
        "PICO-8",
        (
            "#000000", "#1D2B53", "#7E2553", "#008751",
            "#AB5236", "#5F574F", "#C2C3C7", "#FFF1E8",
            "#FF004D", "#FFA300", "#FFEC27", "#00E436",
            "#29ADFF", "#83769C", "#FF77A8", "#FFCCAA",
        ),
        "PICO-8 fantasy console: a hand-picked sixteen colour palette.",
    ),
    Palette(
        "web_safe",
        "Web Safe",
        _web_safe(),
        "The 216 browser-safe colours: six levels per RGB channel.",
    ),
    Palette(
        "rgb332",
        "RGB 3-3-2",
        _rgb332(),
        "8-bit truecolour: 3 bits red, 3 bits green, 2 bits blue.",
    ),
)

_BY_ID: dict[str, Palette] = {p.id: p for p in CLASSIC_PALETTES}


def palette_ids() -> list[str]:
    return [p.id for p in CLASSIC_PALETTES]


def get_palette(palette_id: str) -> Palette:
    """Return the catalogue palette with *palette_id*.

    Raises:
        UnknownPalette: if the id is not in the catalogue.
    """
    try:
        return _BY_ID[palette_id]
    except KeyError:
        available = ", ".join(palette_ids())
        msg = f"Unknown palette '{palette_id}'. Available: {available}"
        raise UnknownPalette(msg) from None


def lookup(palette_id: str | None) -> Palette | None:
    """Resolve *palette_id* for the engine.

    Returns ``None`` (no restriction) when the id is missing, unknown, or
    maps to an empty colour list.
    """
    if palette_id is None:
        return None
    palette = _BY_ID.get(palette_id)
    if palette is None:
        logger.debug("Palette '%s' not in catalogue; using source colours", palette_id)
        return None
    if palette.is_unrestricted:
        return None
    return palette
