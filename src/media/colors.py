# src/media/colors.py - v1
"""Dominant colours of a reference product photo.

The photo is shrunk to at most 200px per side, channels are quantized into
32-level buckets, transparent pixels (alpha < 128) are skipped, and the most
frequent buckets become the palette. The palette is turned into an English
prompt fragment that steers image generation toward the product's colours.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from io import BytesIO

from PIL import Image

from pmdesigner.core.language import LanguageMode

MAX_SIDE = 200
BUCKET = 32
MIN_ALPHA = 128
TOP_COLORS = 5

# (lower hue bound, zh-TW name, English name); hue in degrees.
_HUE_NAMES = (
    (0, "紅色", "red"),
    (30, "橙紅色", "red-orange"),
    (60, "橙色", "orange"),
    (90, "黃色", "yellow"),
    (150, "綠色", "green"),
    (210, "青色", "cyan"),
    (270, "藍色", "blue"),
    (330, "紫色", "purple"),
)
_DARK = ("深色", "dark")
_LIGHT = ("淺色", "light")
_NEUTRAL = ("中性色", "neutral")


class ColorExtractionError(Exception):
    """The reference image could not be decoded for colour analysis."""


@dataclass(frozen=True)
class ColorPalette:
    """Dominant colours, most frequent first."""

    dominant_colors: tuple[str, ...] = ()
    names: tuple[tuple[str, str], ...] = ()

    def description(self, language: LanguageMode = LanguageMode.ZH_TW) -> str:
        if LanguageMode(language) is LanguageMode.EN:
            return "dominant colors: " + ", ".join(en for _, en in self.names)
        return "主要顏色：" + "、".join(zh for zh, _ in self.names)


def hue_degrees(r: int, g: int, b: int) -> float | None:
    """Hue of an RGB colour in [0, 360), None for greys."""
    rf, gf, bf = r / 255, g / 255, b / 255
    high, low = max(rf, gf, bf), min(rf, gf, bf)
    delta = high - low
    if delta == 0:
        return None
    if high == rf:
        hue = ((gf - bf) / delta) % 6
    elif high == gf:
        hue = (bf - rf) / delta + 2
    else:
        hue = (rf - gf) / delta + 4
    return (hue * 60) % 360


def name_color(r: int, g: int, b: int) -> tuple[str, str]:
    """(zh-TW, English) name of a colour; greys are named by brightness."""
    hue = hue_degrees(r, g, b)
    if hue is None:
        brightness = (r + g + b) / 3
        if brightness < 50:
            return _DARK
        if brightness > 200:
            return _LIGHT
        return _NEUTRAL
    zh, en = _HUE_NAMES[0][1:]
    for lower, zh_name, en_name in _HUE_NAMES:
        if hue >= lower:
            zh, en = zh_name, en_name
    return zh, en


def extract_palette(image_bytes: bytes, top: int = TOP_COLORS) -> ColorPalette:
    """Dominant colours of an encoded image.

    Raises:
        ColorExtractionError: The bytes are not a decodable image.
    """
    try:
        with Image.open(BytesIO(image_bytes)) as img:
            rgba = img.convert("RGBA")
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise ColorExtractionError(f"Cannot decode reference image: {e}") from e

    rgba.thumbnail((MAX_SIDE, MAX_SIDE))
    raw = rgba.tobytes()

    buckets: Counter[tuple[int, int, int]] = Counter()
    for i in range(0, len(raw), 4):
        if raw[i + 3] < MIN_ALPHA:
            continue
        buckets[
            (
                raw[i] // BUCKET * BUCKET,
                raw[i + 1] // BUCKET * BUCKET,
                raw[i + 2] // BUCKET * BUCKET,
            )
        ] += 1

    # most_common keeps first-seen order among equal counts.
    dominant = [rgb for rgb, _ in buckets.most_common(top)]
    return ColorPalette(
        dominant_colors=tuple(f"#{r:02x}{g:02x}{b:02x}" for r, g, b in dominant),
        names=tuple(name_color(*rgb) for rgb in dominant),
    )


def color_prompt_fragment(
    palette: ColorPalette, language: LanguageMode = LanguageMode.ZH_TW
) -> str:
    """Prompt text asking the model to keep the reference colours, or ""."""
    if not palette.dominant_colors:
        return ""
    colors = ", ".join(palette.dominant_colors)
    return (
        "Use the following color palette extracted from the reference product "
        f"image: {colors}. Ensure the generated image prominently features these "
        "colors, especially for the product itself. The color scheme should be: "
        f"{palette.description(language)}"
    )
