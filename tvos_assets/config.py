"""
Configuration: built-in defaults, JSON config file, CLI overrides.

The config file mirrors the default structure (camelCase keys) and may be
partial. It is deep-merged onto a fresh copy of the defaults and then coerced
field by field into the frozen dataclasses below. Every problem is reported
as ``ConfigError`` naming the offending key.
"""

from __future__ import annotations

import enum
import json
import logging
import os
import re
from dataclasses import dataclass

from . import fsutil
from .errors import ConfigError

_LOGGER = logging.getLogger(__name__)

DANGEROUS_KEYS = frozenset({"__proto__", "constructor", "prototype"})
MAX_MERGE_DEPTH = 10
MAX_CONFIG_SIZE = 1024 * 1024  # 1 MB

HEX_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
SAFE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 _-]*$")
VALID_SCALES = ("1x", "2x", "3x")
VALID_SOURCES = ("icon", "background")
APP_STORE_MARKER = "App Store"

# ---------------------------------------------------------------------------
# Resolved model
# ---------------------------------------------------------------------------


class Layout(enum.Enum):
    """How an image stack names and scales its layer renditions."""

    STANDARD = "standard"
    # one rendition per layer, no "scale" key, back layer written as back.png
    SINGLE_SCALE_NO_SUFFIX = "single-scale-no-suffix"


@dataclass(frozen=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True)
class Inputs:
    icon_image: str
    background_image: str
    background_color: str
    icon_border_radius: int = 0


@dataclass(frozen=True)
class Output:
    directory: str


@dataclass(frozen=True)
class Layers:
    front: str
    middle: str
    back: str


@dataclass(frozen=True)
class ImageStackAsset:
    enabled: bool
    name: str
    size: Size
    scales: tuple
    layers: Layers
    layout: Layout = Layout.STANDARD

    def layer_source(self, layer_name):
        return getattr(self.layers, layer_name.lower())


@dataclass(frozen=True)
class ImageSetAsset:
    enabled: bool
    name: str
    size: Size
    scales: tuple
    file_prefix: str


@dataclass(frozen=True)
class BrandAssets:
    name: str
    app_icon_small: ImageStackAsset
    app_icon_large: ImageStackAsset
    top_shelf_image: ImageSetAsset
    top_shelf_image_wide: ImageSetAsset


@dataclass(frozen=True)
class SplashLogo:
    enabled: bool
    name: str
    base_size: int
    file_prefix: str
    universal_scales: tuple
    tv_scales: tuple


@dataclass(frozen=True)
class ColorPair:
    light: str
    dark: str


@dataclass(frozen=True)
class SplashBackground:
    enabled: bool
    name: str
    universal: ColorPair
    tv: ColorPair


@dataclass(frozen=True)
class SplashScreen:
    logo: SplashLogo
    background: SplashBackground


@dataclass(frozen=True)
class XcassetsMeta:
    author: str = "xcode"
    version: int = 1


@dataclass(frozen=True)
class ResolvedConfig:
    inputs: Inputs
    output: Output
    brand_assets: BrandAssets
    splash_screen: SplashScreen
    xcassets_meta: XcassetsMeta


# ---------------------------------------------------------------------------
# Defaults and merging
# ---------------------------------------------------------------------------


def default_output_directory():
    home = os.path.expanduser("~")
    desktop = os.path.join(home, "Desktop")
    return desktop if os.path.isdir(desktop) else home


def _default_layers():
    return {
        "front": {"source": "icon"},
        "middle": {"source": "icon"},
        "back": {"source": "background"},
    }


def default_config(icon_image="", background_image="", background_color=""):
    """A fresh default tree in config-file shape; callers may not share it."""
    return {
        "inputs": {
            "iconImage": icon_image,
            "backgroundImage": background_image,
            "backgroundColor": background_color,
            "iconBorderRadius": 0,
        },
        "output": {"directory": default_output_directory()},
        "brandAssets": {
            "name": "AppIcon",
            "appIconSmall": {
                "enabled": True,
                "name": "App Icon",
                "size": {"width": 400, "height": 240},
                "scales": ["1x", "2x"],
                "layers": _default_layers(),
            },
            "appIconLarge": {
                "enabled": True,
                "name": "App Icon - App Store",
                "size": {"width": 1280, "height": 768},
                "scales": ["1x"],
                "layers": _default_layers(),
            },
            "topShelfImage": {
                "enabled": True,
                "name": "Top Shelf Image",
                "size": {"width": 1920, "height": 720},
                "scales": ["1x", "2x"],
                "filePrefix": "top",
            },
            "topShelfImageWide": {
                "enabled": True,
                "name": "Top Shelf Image Wide",
                "size": {"width": 2320, "height": 720},
                "scales": ["1x", "2x"],
                "filePrefix": "wide",
            },
        },
        "splashScreen": {
            "logo": {
                "enabled": True,
                "name": "SplashScreenLogo",
                "baseSize": 200,
                "filePrefix": "200-icon",
                "universal": {"scales": ["1x", "2x", "3x"]},
                "tv": {"scales": ["1x", "2x"]},
            },
            "background": {
                "enabled": True,
                "name": "SplashScreenBackground",
                "universal": {"light": background_color, "dark": background_color},
                "tv": {"light": background_color, "dark": background_color},
            },
        },
        "xcassetsMeta": {"author": "xcode", "version": 1},
    }


def deep_merge(target, source, depth=0):
    """Return ``target`` overlaid with ``source``; neither argument is modified.

    Only branches that are dicts on both sides are merged recursively;
    scalars and lists from ``source`` replace the target value wholesale.
    """
    if depth > MAX_MERGE_DEPTH:
        raise ConfigError(
            f"Config nesting too deep (max {MAX_MERGE_DEPTH} levels). "
            "Check for excessively nested objects."
        )
    result = dict(target)
    for key, value in source.items():
        if key in DANGEROUS_KEYS:
            continue
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            result[key] = deep_merge(target[key], value, depth + 1)
        else:
            result[key] = value
    return result


def _drop_dangerous_keys(pairs):
    result = {}
    for key, value in pairs:
        if key in DANGEROUS_KEYS:
            _LOGGER.warning("Ignoring reserved key %r in config file", key)
            continue
        result[key] = value
    return result


def load_config_file(path):
    """Read and parse a JSON config file into a plain dict."""
    config_path = os.path.abspath(os.path.expanduser(path))
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")
    size = os.path.getsize(config_path)
    if size > MAX_CONFIG_SIZE:
        raise ConfigError(f"Config file too large ({size // 1024}KB). Maximum is 1MB.")
    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f, object_pairs_hook=_drop_dangerous_keys)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise ConfigError(
            f"Invalid JSON in config file: {config_path} ({err}). "
            "Check for missing commas, trailing commas or unquoted keys."
        ) from err
    except OSError as err:
        raise ConfigError(f"Could not read config file {config_path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a JSON object: {config_path}")
    return data


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _section(tree, key, path):
    value = tree.get(key)
    if not isinstance(value, dict):
        raise ConfigError(f"{path} must be an object")
    return value


def _bool(value, path):
    if not isinstance(value, bool):
        raise ConfigError(f"{path} must be true or false (got {value!r})")
    return value


def _int(value, path, minimum=1):
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{path} must be an integer >= {minimum} (got {value!r})")
    return value


def _str(value, path):
    if not isinstance(value, str):
        raise ConfigError(f"{path} must be a string (got {value!r})")
    return value


def _name(value, path):
    if not isinstance(value, str) or not SAFE_NAME_PATTERN.match(value):
        raise ConfigError(
            f'Invalid {path} name: "{value}". Names must start with a letter or number '
            "and contain only letters, numbers, spaces, hyphens, and underscores."
        )
    return value


def _color(value, path):
    if not isinstance(value, str) or not HEX_PATTERN.match(value):
        raise ConfigError(f'Invalid color in {path}: "{value}". Use hex format like "#B43939".')
    return value


def _scales(value, path):
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{path} must be a non-empty list of scales")
    for scale in value:
        if scale not in VALID_SCALES:
            raise ConfigError(f"{path} contains unsupported scale {scale!r}; use {', '.join(VALID_SCALES)}")
    return tuple(value)


def _size(tree, path):
    size = _section(tree, "size", f"{path}.size")
    return Size(
        _int(size.get("width"), f"{path}.size.width"),
        _int(size.get("height"), f"{path}.size.height"),
    )


def _layers(tree, path):
    layers = _section(tree, "layers", f"{path}.layers")
    sources = {}
    for layer in ("front", "middle", "back"):
        source = _section(layers, layer, f"{path}.layers.{layer}").get("source")
        if source not in VALID_SOURCES:
            raise ConfigError(
                f"{path}.layers.{layer}.source must be one of {', '.join(VALID_SOURCES)} (got {source!r})"
            )
        sources[layer] = source
    return Layers(**sources)


def _layout(tree, name, scales, path):
    raw = tree.get("layout")
    if raw is None:
        # Both conditions are required; a single-scale stack without
        # "App Store" in its name keeps the standard layout.
        if len(scales) == 1 and APP_STORE_MARKER in name:
            return Layout.SINGLE_SCALE_NO_SUFFIX
        return Layout.STANDARD
    try:
        return Layout(raw)
    except ValueError:
        choices = ", ".join(layout.value for layout in Layout)
        raise ConfigError(f"{path}.layout must be one of {choices} (got {raw!r})") from None


def _image_stack(tree, key, path):
    tree = _section(tree, key, path)
    name = _name(tree.get("name"), f"{path}.name")
    scales = _scales(tree.get("scales"), f"{path}.scales")
    return ImageStackAsset(
        enabled=_bool(tree.get("enabled"), f"{path}.enabled"),
        name=name,
        size=_size(tree, path),
        scales=scales,
        layers=_layers(tree, path),
        layout=_layout(tree, name, scales, path),
    )


def _image_set(tree, key, path):
    tree = _section(tree, key, path)
    return ImageSetAsset(
        enabled=_bool(tree.get("enabled"), f"{path}.enabled"),
        name=_name(tree.get("name"), f"{path}.name"),
        size=_size(tree, path),
        scales=_scales(tree.get("scales"), f"{path}.scales"),
        file_prefix=_name(tree.get("filePrefix"), f"{path}.filePrefix"),
    )


def _brand_assets(tree):
    path = "brandAssets"
    brand = _section(tree, "brandAssets", path)
    return BrandAssets(
        name=_name(brand.get("name"), f"{path}.name"),
        app_icon_small=_image_stack(brand, "appIconSmall", f"{path}.appIconSmall"),
        app_icon_large=_image_stack(brand, "appIconLarge", f"{path}.appIconLarge"),
        top_shelf_image=_image_set(brand, "topShelfImage", f"{path}.topShelfImage"),
        top_shelf_image_wide=_image_set(brand, "topShelfImageWide", f"{path}.topShelfImageWide"),
    )


def _splash_screen(tree):
    splash = _section(tree, "splashScreen", "splashScreen")

    logo_path = "splashScreen.logo"
    logo = _section(splash, "logo", logo_path)
    splash_logo = SplashLogo(
        enabled=_bool(logo.get("enabled"), f"{logo_path}.enabled"),
        name=_name(logo.get("name"), f"{logo_path}.name"),
        base_size=_int(logo.get("baseSize"), f"{logo_path}.baseSize"),
        file_prefix=_name(logo.get("filePrefix"), f"{logo_path}.filePrefix"),
        universal_scales=_scales(
            _section(logo, "universal", f"{logo_path}.universal").get("scales"),
            f"{logo_path}.universal.scales",
        ),
        tv_scales=_scales(
            _section(logo, "tv", f"{logo_path}.tv").get("scales"),
            f"{logo_path}.tv.scales",
        ),
    )

    bg_path = "splashScreen.background"
    background = _section(splash, "background", bg_path)
    enabled = _bool(background.get("enabled"), f"{bg_path}.enabled")
    # colours are only validated when the colour set is enabled
    check = _color if enabled else _str

    def pair(idiom):
        colors = _section(background, idiom, f"{bg_path}.{idiom}")
        return ColorPair(
            light=check(colors.get("light"), f"{bg_path}.{idiom}.light"),
            dark=check(colors.get("dark"), f"{bg_path}.{idiom}.dark"),
        )

    splash_background = SplashBackground(
        enabled=enabled,
        name=_name(background.get("name"), f"{bg_path}.name"),
        universal=pair("universal"),
        tv=pair("tv"),
    )
    return SplashScreen(logo=splash_logo, background=splash_background)


def _xcassets_meta(tree):
    meta = _section(tree, "xcassetsMeta", "xcassetsMeta")
    return XcassetsMeta(
        author=_str(meta.get("author"), "xcassetsMeta.author"),
        version=_int(meta.get("version"), "xcassetsMeta.version", minimum=0),
    )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


def _validate_image_path(raw, label):
    resolved = os.path.abspath(os.path.expanduser(raw))
    if not os.path.lexists(resolved):
        raise ConfigError(f"{label} not found: {resolved}")
    if os.path.islink(resolved):
        raise ConfigError(f"{label} must not be a symbolic link: {resolved}")
    if not os.path.isfile(resolved):
        raise ConfigError(f"{label} is not a file: {resolved}")
    ext = os.path.splitext(resolved)[1].lower()
    if ext != ".png":
        raise ConfigError(f'{label} must be a PNG file (got "{ext}"): {resolved}')
    return resolved


def _parse_border_radius(raw):
    if raw is None:
        return 0
    value = raw
    if isinstance(raw, str):
        text = raw.strip()
        value = int(text) if text.isdigit() else None
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f'Invalid icon border radius: "{raw}". Must be a non-negative integer.')
    return value


def _required(cli_value, file_inputs, key, label, flag):
    value = cli_value if cli_value is not None else file_inputs.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"inputs.{key} must be a string")
    value = (value or "").strip()
    if not value:
        raise ConfigError(f"{label} is required. Use {flag} or set inputs.{key} in config.")
    return value


def resolve_config(
    icon=None,
    background=None,
    color=None,
    config=None,
    output=None,
    icon_border_radius=None,
) -> ResolvedConfig:
    """Merge defaults, the optional config file and CLI values into a ResolvedConfig."""
    file_config = load_config_file(config) if config else {}
    file_inputs = file_config.get("inputs", {})
    if not isinstance(file_inputs, dict):
        raise ConfigError("inputs must be an object")

    icon_image = _required(icon, file_inputs, "iconImage", "Icon image", "--icon")
    background_image = _required(
        background, file_inputs, "backgroundImage", "Background image", "--background"
    )
    background_color = _required(color, file_inputs, "backgroundColor", "Background color", "--color")

    resolved_icon = _validate_image_path(icon_image, "Icon image")
    resolved_bg = _validate_image_path(background_image, "Background image")
    if not HEX_PATTERN.match(background_color):
        raise ConfigError(
            f'Invalid color format: "{background_color}". Use hex format like "#B43939".'
        )
    border_radius = _parse_border_radius(
        icon_border_radius if icon_border_radius is not None else file_inputs.get("iconBorderRadius")
    )

    merged = deep_merge(default_config(resolved_icon, resolved_bg, background_color), file_config)

    out_dir = output if output is not None else _section(merged, "output", "output").get("directory")
    out_dir = os.path.abspath(os.path.expanduser(_str(out_dir, "output.directory")))
    fsutil.check_writable(out_dir)

    return ResolvedConfig(
        inputs=Inputs(
            icon_image=resolved_icon,
            background_image=resolved_bg,
            background_color=background_color,
            icon_border_radius=border_radius,
        ),
        output=Output(directory=out_dir),
        brand_assets=_brand_assets(merged),
        splash_screen=_splash_screen(merged),
        xcassets_meta=_xcassets_meta(merged),
    )
