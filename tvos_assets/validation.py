"""Pre-flight checks on the input images, run once before any generation."""

from __future__ import annotations

import os
from typing import NamedTuple

from PIL import Image, UnidentifiedImageError

from .errors import FormatError, ValidationError

MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB
MAX_DIMENSION = 8192
ICON_MIN = 1024
ICON_RECOMMENDED = 1280
BG_MIN = (2320, 720)
BG_RECOMMENDED = (4640, 1440)


class InputReport(NamedTuple):
    warnings: list
    icon_source_size: int


def _sniff(path, label):
    """Return (width, height) after confirming the file really is PNG data."""
    try:
        with Image.open(path) as img:
            fmt, size = img.format, img.size
    except Image.DecompressionBombError as err:
        raise ValidationError(f"{label} image is too large to process safely: {err}") from err
    except (UnidentifiedImageError, OSError) as err:
        raise FormatError(
            f"{label} file is not a valid PNG ({err}). "
            "Renaming is not enough; the file must contain PNG data."
        ) from err
    if fmt != "PNG":
        raise FormatError(
            f"{label} file is not a valid PNG (detected {fmt or 'unknown'} format). "
            "Renaming is not enough; the file must contain PNG data."
        )
    return size


def _file_size_warning(path, label):
    size = os.path.getsize(path)
    if size > MAX_FILE_SIZE:
        return f"{label} file is {size / 1024 / 1024:.1f}MB. Files over 50MB may cause high memory usage."
    return None


def validate_input_images(config) -> InputReport:
    """Check both inputs; raise on fatal problems, collect the rest as warnings."""
    inputs = config.inputs
    warnings = []

    for path, label in ((inputs.icon_image, "Icon"), (inputs.background_image, "Background")):
        warning = _file_size_warning(path, label)
        if warning:
            warnings.append(warning)

    icon_w, icon_h = _sniff(inputs.icon_image, "Icon")
    bg_w, bg_h = _sniff(inputs.background_image, "Background")

    if icon_w < ICON_MIN or icon_h < ICON_MIN:
        raise ValidationError(
            f"Icon image is too small ({icon_w}x{icon_h}). Minimum size is {ICON_MIN}x{ICON_MIN}px."
        )
    if icon_w < ICON_RECOMMENDED or icon_h < ICON_RECOMMENDED:
        warnings.append(
            f"Icon image ({icon_w}x{icon_h}) is below recommended "
            f"{ICON_RECOMMENDED}x{ICON_RECOMMENDED}px. Output may show upscaling artifacts."
        )

    if bg_w < BG_MIN[0] or bg_h < BG_MIN[1]:
        raise ValidationError(
            f"Background image is too small ({bg_w}x{bg_h}). "
            f"Minimum size is {BG_MIN[0]}x{BG_MIN[1]}px."
        )
    if bg_w < BG_RECOMMENDED[0] or bg_h < BG_RECOMMENDED[1]:
        warnings.append(
            f"Background image ({bg_w}x{bg_h}) is below recommended "
            f"{BG_RECOMMENDED[0]}x{BG_RECOMMENDED[1]}px. "
            "Top Shelf @2x output may show upscaling artifacts."
        )

    if icon_w > MAX_DIMENSION or icon_h > MAX_DIMENSION:
        warnings.append(f"Icon image is very large ({icon_w}x{icon_h}). Processing may use significant memory.")
    if bg_w > MAX_DIMENSION or bg_h > MAX_DIMENSION:
        warnings.append(f"Background image is very large ({bg_w}x{bg_h}). Processing may use significant memory.")

    if icon_w != icon_h:
        warnings.append(
            f"Icon image is not square ({icon_w}x{icon_h}). "
            "The icon will be letterboxed to fit a square canvas."
        )

    icon_source_size = min(icon_w, icon_h)
    if inputs.icon_border_radius > icon_source_size / 2:
        warnings.append(
            f"iconBorderRadius ({inputs.icon_border_radius}) exceeds half the icon size "
            f"({icon_source_size / 2:g}). Larger values are clamped to a circle."
        )

    return InputReport(warnings, icon_source_size)
