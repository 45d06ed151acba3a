"""
Pixel operations behind every rendition in the catalog.

Each public function reads its source PNG(s) from disk and returns the
PNG-encoded result as ``bytes``. Codec failures never escape as raw Pillow
exceptions; they are re-raised as ``ImageProcessingError`` with the
operation and target size in the message.
"""

from __future__ import annotations

import io
from contextlib import contextmanager

from PIL import Image, ImageChops, ImageDraw, ImageOps

from .errors import DimensionError, ImageProcessingError

TRANSPARENT = (0, 0, 0, 0)
BLACK = (0, 0, 0, 255)
DEFAULT_ICON_SCALE = 0.6
MAX_OUTPUT_DIMENSION = 32768

_RESAMPLE = Image.Resampling.LANCZOS
_WIDE_GREY_MODES = ("I", "I;16", "I;16L", "I;16B")

# ---------------------------------------------------------------------------
# Size helpers
# ---------------------------------------------------------------------------


def _round_half_up(value):
    return int(value + 0.5)


def scale_multiplier(scale: str) -> int:
    """``"2x"`` -> ``2``."""
    if not scale.endswith("x"):
        raise ValueError(f"Unexpected scale: {scale}")
    return int(scale[:-1])


def scaled_radius(border_radius, rendition_size, source_icon_size) -> int:
    """Border radius given against the source icon, rescaled for a rendition."""
    if border_radius <= 0 or not source_icon_size or source_icon_size <= 0:
        return 0
    return _round_half_up(border_radius * rendition_size / source_icon_size)


def validate_output_dimensions(width, height, context):
    """Reject output sizes outside [1, 32768] before any pixel work starts."""
    if not (1 <= width <= MAX_OUTPUT_DIMENSION and 1 <= height <= MAX_OUTPUT_DIMENSION):
        raise DimensionError(
            f"Output dimensions {width}x{height} are out of range for {context}. "
            f"Each side must be between 1 and {MAX_OUTPUT_DIMENSION}px."
        )


def _icon_size(width, height, icon_scale):
    return max(1, _round_half_up(min(width, height) * icon_scale))


def _centered(outer, inner):
    return (outer[0] - inner[0]) // 2, (outer[1] - inner[1]) // 2


# ---------------------------------------------------------------------------
# Codec plumbing
# ---------------------------------------------------------------------------


@contextmanager
def _codec_errors(context):
    try:
        yield
    except (OSError, ValueError, Image.DecompressionBombError) as err:
        raise ImageProcessingError(f"Image processing failed ({context}): {err}") from err


def _load(path):
    with Image.open(path) as img:
        img.load()
        if img.mode in _WIDE_GREY_MODES:
            # 16-bit samples: rescale to 8 bits instead of clipping at 255
            return img.convert("I").point(lambda v: v * (1 / 257)).convert("L").convert("RGBA")
        return img.convert("RGBA")


def _encode(img):
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _decode(data):
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


# ---------------------------------------------------------------------------
# Image-level operations
# ---------------------------------------------------------------------------


def _cover(img, width, height):
    """Scale to fill and crop the overflow, anchored at the centre."""
    return ImageOps.fit(img, (width, height), method=_RESAMPLE, centering=(0.5, 0.5))


def _flatten(img):
    """Composite onto black and drop the alpha channel."""
    canvas = Image.new("RGBA", img.size, BLACK)
    return Image.alpha_composite(canvas, img.convert("RGBA")).convert("RGB")


def _round_corners(img, radius):
    """Keep only the pixels inside a rounded rectangle (destination-in)."""
    img = img.convert("RGBA")
    size = min(img.size)
    box = [0, 0, img.width - 1, img.height - 1]
    mask = Image.new("L", img.size, 0)
    draw = ImageDraw.Draw(mask)
    if radius * 2 >= size - 1:
        # corners meet: the mask is a full circle/pill
        draw.ellipse(box, fill=255)
    else:
        draw.rounded_rectangle(box, radius=radius, fill=255)
    img.putalpha(ImageChops.multiply(img.getchannel("A"), mask))
    return img


def _icon_square(path, size, border_radius, source_icon_size):
    """Contain-fit the icon in a transparent ``size`` x ``size`` square."""
    icon = ImageOps.pad(_load(path), (size, size), method=_RESAMPLE, color=TRANSPARENT)
    radius = scaled_radius(border_radius, size, source_icon_size)
    if radius > 0:
        icon = _round_corners(icon, radius)
    return icon


# ---------------------------------------------------------------------------
# Public renditions
# ---------------------------------------------------------------------------


def apply_border_radius(buffer: bytes, size: int, radius) -> bytes:
    """Mask a square PNG to rounded corners; any radius >= size/2 gives a circle."""
    if radius <= 0:
        return buffer
    with _codec_errors(f"applying border radius {radius} at {size}x{size}"):
        return _encode(_round_corners(_decode(buffer), min(radius, size / 2)))


def resize_cover(path, width: int, height: int) -> bytes:
    with _codec_errors(f"resizing {path} to {width}x{height}"):
        return _encode(_cover(_load(path), width, height))


def resize_cover_opaque(path, width: int, height: int) -> bytes:
    """Cover-fit like ``resize_cover`` but always RGB; used for back layers."""
    with _codec_errors(f"resizing opaque {path} to {width}x{height}"):
        return _encode(_flatten(_cover(_load(path), width, height)))


def render_on_transparent(path, size: int, border_radius=0, source_icon_size=0) -> bytes:
    with _codec_errors(f"rendering icon on transparent at {size}x{size}"):
        return _encode(_icon_square(path, size, border_radius, source_icon_size))


def render_on_transparent_canvas(
    path,
    width: int,
    height: int,
    icon_scale=DEFAULT_ICON_SCALE,
    border_radius=0,
    source_icon_size=0,
) -> bytes:
    """Centre the icon, sized to ``icon_scale`` of the short side, on a clear canvas."""
    icon_size = _icon_size(width, height, icon_scale)
    with _codec_errors(f"rendering icon on transparent canvas at {width}x{height}"):
        icon = _icon_square(path, icon_size, border_radius, source_icon_size)
        canvas = Image.new("RGBA", (width, height), TRANSPARENT)
        canvas.alpha_composite(icon, _centered(canvas.size, icon.size))
        return _encode(canvas)


def composite_icon_on_background(
    bg_path,
    icon_path,
    width: int,
    height: int,
    icon_scale=DEFAULT_ICON_SCALE,
    opaque=False,
    border_radius=0,
    source_icon_size=0,
) -> bytes:
    """Cover the background to ``width`` x ``height`` and centre the icon over it."""
    icon_size = _icon_size(width, height, icon_scale)
    with _codec_errors(f"compositing icon on background at {width}x{height}"):
        background = _cover(_load(bg_path), width, height)
        icon = _icon_square(icon_path, icon_size, border_radius, source_icon_size)
        background.alpha_composite(icon, _centered(background.size, icon.size))
        if opaque:
            background = background.convert("RGB")
        return _encode(background)
