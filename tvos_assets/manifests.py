"""
Builders for the ``Contents.json`` documents inside an asset catalog.

Everything here is pure: the functions return plain dicts/lists ready for
``fsutil.write_manifest``. Key order matches what Xcode itself writes.
"""

from __future__ import annotations

from .color import hex_to_rgba, rgba_to_apple_components

LAYER_NAMES = ("Front", "Middle", "Back")
IDIOM_TV = "tv"
IDIOM_UNIVERSAL = "universal"

ROLE_APP_ICON = "primary-app-icon"
ROLE_TOP_SHELF = "top-shelf-image"
ROLE_TOP_SHELF_WIDE = "top-shelf-image-wide"

DARK_APPEARANCE = {"appearance": "luminosity", "value": "dark"}


def _info(meta):
    return {"author": meta.author, "version": meta.version}


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def root_contents(meta):
    """Images.xcassets/Contents.json"""
    return {"info": _info(meta)}


def image_stack_layer_contents(meta):
    """<Layer>.imagestacklayer/Contents.json"""
    return {"info": _info(meta)}


def brand_assets_contents(assets, meta):
    return {"assets": list(assets), "info": _info(meta)}


def image_stack_contents(layer_dirs, meta):
    return {
        "info": _info(meta),
        "layers": [{"filename": name} for name in layer_dirs],
    }


def image_set_contents(images, meta):
    return {"images": list(images), "info": _info(meta)}


def color_set_contents(universal_light, universal_dark, tv_light, tv_dark, meta):
    """Four colours: universal light/dark then tv light/dark."""

    def color_value(hex_color):
        return {
            "color-space": "srgb",
            "components": rgba_to_apple_components(hex_to_rgba(hex_color)),
        }

    colors = [
        {"color": color_value(universal_light), "idiom": IDIOM_UNIVERSAL},
        {
            "appearances": [dict(DARK_APPEARANCE)],
            "color": color_value(universal_dark),
            "idiom": IDIOM_UNIVERSAL,
        },
        {"color": color_value(tv_light), "idiom": IDIOM_TV},
        {
            "appearances": [dict(DARK_APPEARANCE)],
            "color": color_value(tv_dark),
            "idiom": IDIOM_TV,
        },
    ]
    return {"colors": colors, "info": _info(meta)}


# ---------------------------------------------------------------------------
# Entry rules
# ---------------------------------------------------------------------------


def _size(size):
    return f"{size.width}x{size.height}"


def build_brand_asset_entries(brand_assets):
    """Rows of the .brandassets manifest, enabled assets only, in Xcode's order."""
    ordered = [
        (brand_assets.app_icon_large, "imagestack", ROLE_APP_ICON),
        (brand_assets.app_icon_small, "imagestack", ROLE_APP_ICON),
        (brand_assets.top_shelf_image_wide, "imageset", ROLE_TOP_SHELF_WIDE),
        (brand_assets.top_shelf_image, "imageset", ROLE_TOP_SHELF),
    ]
    return [
        {
            "filename": f"{asset.name}.{extension}",
            "idiom": IDIOM_TV,
            "role": role,
            "size": _size(asset.size),
        }
        for asset, extension, role in ordered
        if asset.enabled
    ]


def build_image_stack_image_entries(layer_name, scales, app_store):
    """Image rows for one layer's Content.imageset.

    The App Store variant has a single rendition and no ``scale`` key; its
    back layer is plain ``back.png`` while front/middle keep ``@1x``.
    """
    prefix = layer_name.lower()
    if app_store:
        filename = f"{prefix}.png" if prefix == "back" else f"{prefix}@1x.png"
        return [{"filename": filename, "idiom": IDIOM_TV}]
    return [
        {"filename": f"{prefix}@{scale}.png", "idiom": IDIOM_TV, "scale": scale}
        for scale in scales
    ]


def build_top_shelf_image_entries(file_prefix, scales):
    return [
        {"filename": f"{file_prefix}@{scale}.png", "idiom": IDIOM_TV, "scale": scale}
        for scale in scales
    ]


def build_splash_logo_image_entries(file_prefix, universal_scales, tv_scales):
    """Universal rows first, then tv rows named ``<prefix>@<scale> 1.png``."""
    entries = [
        {"filename": f"{file_prefix}@{scale}.png", "idiom": IDIOM_UNIVERSAL, "scale": scale}
        for scale in universal_scales
    ]
    entries.extend(
        {"filename": f"{file_prefix}@{scale} 1.png", "idiom": IDIOM_TV, "scale": scale}
        for scale in tv_scales
    )
    return entries
