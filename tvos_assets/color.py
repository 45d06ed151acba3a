"""Hex colour helpers and Apple colour-set component formatting."""

from __future__ import annotations

import colorsys
import re
from typing import NamedTuple

_HEX_DIGITS = re.compile(r"^#?([0-9A-Fa-f]{6})$")


class RGBA(NamedTuple):
    red: float
    green: float
    blue: float
    alpha: float = 1.0


def _parse_hex(hex_color: str) -> tuple[int, int, int]:
    match = _HEX_DIGITS.match(hex_color.strip())
    if not match:
        raise ValueError(f"Invalid hex colour: {hex_color!r}")
    digits = match.group(1)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _to_byte(channel: float) -> int:
    # half-up, not banker's rounding
    return int(channel * 255 + 0.5)


def hex_to_rgba(hex_color: str) -> RGBA:
    """Convert ``#RRGGBB`` (hash optional) to channels in [0, 1], 3 decimals."""
    r, g, b = _parse_hex(hex_color)
    return RGBA(round(r / 255, 3), round(g / 255, 3), round(b / 255, 3), 1.0)


def rgba_to_apple_components(color: RGBA) -> dict[str, str]:
    """Format channels the way Xcode writes them in a .colorset."""
    return {
        "red": f"{color.red:.3f}",
        "green": f"{color.green:.3f}",
        "blue": f"{color.blue:.3f}",
        "alpha": f"{color.alpha:.3f}",
    }


def darken_hex(hex_color: str, factor: float = 0.5) -> str:
    """Scale HSL lightness by ``1 - factor``; hue and saturation are kept.

    ``factor=0`` returns the colour unchanged, ``factor=1`` returns black.
    """
    if not 0 <= factor <= 1:
        raise ValueError(f"factor must be between 0 and 1, got {factor}")
    r, g, b = (c / 255 for c in _parse_hex(hex_color))
    h, lightness, s = colorsys.rgb_to_hls(r, g, b)
    r, g, b = colorsys.hls_to_rgb(h, lightness * (1 - factor), s)
    return "#{:02X}{:02X}{:02X}".format(_to_byte(r), _to_byte(g), _to_byte(b))
