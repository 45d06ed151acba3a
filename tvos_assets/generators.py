"""
Asset generators, one coroutine per asset family.

Every generator owns a disjoint subtree of the catalog, so siblings can be
awaited together. Pixel work and file writes run in worker threads via
``asyncio.to_thread``. Disabled assets are skipped without creating anything.
"""

from __future__ import annotations

import asyncio
import logging
import os

from . import fsutil, imaging, manifests
from .config import Layout
from .errors import AssetGenerationError, TvOSAssetsError

_LOGGER = logging.getLogger(__name__)

CONTENTS = "Contents.json"
STANDALONE_ICON_SIZE = 1024
STANDALONE_ICON_NAME = "icon.png"

# ---------------------------------------------------------------------------
# Plumbing
# ---------------------------------------------------------------------------


async def gather_all(*aws):
    """Await concurrently; on the first failure cancel the others and re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def _attributed(asset_name, aw):
    try:
        return await aw
    except AssetGenerationError:
        raise
    except (TvOSAssetsError, OSError) as err:
        raise AssetGenerationError(asset_name, err) from err


async def _write_manifest(path, value):
    await asyncio.to_thread(fsutil.write_manifest, path, value)


async def _render(path, render, *args, **kwargs):
    data = await asyncio.to_thread(render, *args, **kwargs)
    await asyncio.to_thread(fsutil.write_binary, path, data)


def _border_options(config, icon_source_size):
    radius = config.inputs.icon_border_radius
    if radius > 0 and icon_source_size:
        return {"border_radius": radius, "source_icon_size": icon_source_size}
    return {}


def _scaled(size, scale, context):
    multiplier = imaging.scale_multiplier(scale)
    width, height = size.width * multiplier, size.height * multiplier
    imaging.validate_output_dimensions(width, height, context)
    return width, height


# ---------------------------------------------------------------------------
# Image stacks (layered app icons)
# ---------------------------------------------------------------------------


async def _generate_layer(stack_dir, layer_name, asset, config, icon_source_size):
    meta = config.xcassets_meta
    layer_dir = os.path.join(stack_dir, f"{layer_name}.imagestacklayer")
    imageset_dir = os.path.join(layer_dir, "Content.imageset")
    fsutil.ensure_dir(imageset_dir)

    entries = manifests.build_image_stack_image_entries(
        layer_name, asset.scales, asset.layout is Layout.SINGLE_SCALE_NO_SUFFIX
    )
    jobs = [
        (
            os.path.join(imageset_dir, entry["filename"]),
            _scaled(asset.size, entry.get("scale", "1x"), f"{asset.name} {layer_name} @{entry.get('scale', '1x')}"),
        )
        for entry in entries
    ]

    await _write_manifest(os.path.join(layer_dir, CONTENTS), manifests.image_stack_layer_contents(meta))
    await _write_manifest(os.path.join(imageset_dir, CONTENTS), manifests.image_set_contents(entries, meta))

    if asset.layer_source(layer_name) == "background":
        renders = [
            _render(path, imaging.resize_cover_opaque, config.inputs.background_image, w, h)
            for path, (w, h) in jobs
        ]
    else:
        border = _border_options(config, icon_source_size)
        renders = [
            _render(path, imaging.render_on_transparent_canvas, config.inputs.icon_image, w, h, **border)
            for path, (w, h) in jobs
        ]
    await gather_all(*renders)


async def generate_image_stack(parent_dir, asset, config, icon_source_size=None):
    """``<name>.imagestack`` with Front/Middle/Back layers."""
    if not asset.enabled:
        return
    stack_dir = os.path.join(parent_dir, f"{asset.name}.imagestack")
    fsutil.ensure_dir(stack_dir)
    layer_dirs = [f"{name}.imagestacklayer" for name in manifests.LAYER_NAMES]
    await _write_manifest(
        os.path.join(stack_dir, CONTENTS),
        manifests.image_stack_contents(layer_dirs, config.xcassets_meta),
    )
    await gather_all(
        *(
            _generate_layer(stack_dir, name, asset, config, icon_source_size)
            for name in manifests.LAYER_NAMES
        )
    )
    _LOGGER.debug("generated image stack %s", stack_dir)


# ---------------------------------------------------------------------------
# Image sets
# ---------------------------------------------------------------------------


async def generate_top_shelf_image_set(parent_dir, asset, config, icon_source_size=None):
    """Opaque background+icon composites, one per scale."""
    if not asset.enabled:
        return
    imageset_dir = os.path.join(parent_dir, f"{asset.name}.imageset")
    fsutil.ensure_dir(imageset_dir)

    entries = manifests.build_top_shelf_image_entries(asset.file_prefix, asset.scales)
    jobs = [
        (os.path.join(imageset_dir, entry["filename"]), _scaled(asset.size, entry["scale"], f"{asset.name} @{entry['scale']}"))
        for entry in entries
    ]
    await _write_manifest(
        os.path.join(imageset_dir, CONTENTS),
        manifests.image_set_contents(entries, config.xcassets_meta),
    )

    border = _border_options(config, icon_source_size)
    await gather_all(
        *(
            _render(
                path,
                imaging.composite_icon_on_background,
                config.inputs.background_image,
                config.inputs.icon_image,
                w,
                h,
                opaque=True,
                **border,
            )
            for path, (w, h) in jobs
        )
    )


async def generate_splash_logo_image_set(parent_dir, logo, config, icon_source_size=None):
    """Icon on transparent at every universal and tv scale."""
    if not logo.enabled:
        return
    imageset_dir = os.path.join(parent_dir, f"{logo.name}.imageset")
    fsutil.ensure_dir(imageset_dir)

    jobs = []
    for idiom, scales, suffix in (
        ("universal", logo.universal_scales, ""),
        ("tv", logo.tv_scales, "-tv"),
    ):
        for scale in scales:
            size = logo.base_size * imaging.scale_multiplier(scale)
            imaging.validate_output_dimensions(size, size, f"{logo.name} {idiom} @{scale}")
            jobs.append((os.path.join(imageset_dir, f"{logo.file_prefix}{suffix}@{scale}.png"), size))

    entries = manifests.build_splash_logo_image_entries(
        logo.file_prefix, logo.universal_scales, logo.tv_scales
    )
    await _write_manifest(
        os.path.join(imageset_dir, CONTENTS),
        manifests.image_set_contents(entries, config.xcassets_meta),
    )

    border = _border_options(config, icon_source_size)
    await gather_all(
        *(
            _render(path, imaging.render_on_transparent, config.inputs.icon_image, size, **border)
            for path, size in jobs
        )
    )


async def generate_color_set(parent_dir, background, config):
    """Splash background colour set; manifest only."""
    if not background.enabled:
        return
    colorset_dir = os.path.join(parent_dir, f"{background.name}.colorset")
    fsutil.ensure_dir(colorset_dir)
    contents = manifests.color_set_contents(
        background.universal.light,
        background.universal.dark,
        background.tv.light,
        background.tv.dark,
        config.xcassets_meta,
    )
    await _write_manifest(os.path.join(colorset_dir, CONTENTS), contents)


async def generate_icon(config, output_path, icon_source_size=None):
    """Standalone 1024x1024 opaque icon."""
    border = _border_options(config, icon_source_size)
    await _render(
        output_path,
        imaging.composite_icon_on_background,
        config.inputs.background_image,
        config.inputs.icon_image,
        STANDALONE_ICON_SIZE,
        STANDALONE_ICON_SIZE,
        opaque=True,
        **border,
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


async def generate_brand_assets(parent_dir, config, icon_source_size=None):
    """``<name>.brandassets`` with its manifest and the four asset families."""
    brand = config.brand_assets
    brand_dir = os.path.join(parent_dir, f"{brand.name}.brandassets")
    fsutil.ensure_dir(brand_dir)
    await _write_manifest(
        os.path.join(brand_dir, CONTENTS),
        manifests.brand_assets_contents(
            manifests.build_brand_asset_entries(brand), config.xcassets_meta
        ),
    )

    await gather_all(
        _attributed(brand.app_icon_small.name, generate_image_stack(brand_dir, brand.app_icon_small, config, icon_source_size)),
        _attributed(brand.app_icon_large.name, generate_image_stack(brand_dir, brand.app_icon_large, config, icon_source_size)),
        _attributed(brand.top_shelf_image.name, generate_top_shelf_image_set(brand_dir, brand.top_shelf_image, config, icon_source_size)),
        _attributed(brand.top_shelf_image_wide.name, generate_top_shelf_image_set(brand_dir, brand.top_shelf_image_wide, config, icon_source_size)),
    )


async def generate_catalog(xcassets_dir, icon_path, config, icon_source_size=None):
    """Write the whole ``Images.xcassets`` tree plus the standalone icon."""
    fsutil.ensure_dir(xcassets_dir)
    await _write_manifest(
        os.path.join(xcassets_dir, CONTENTS), manifests.root_contents(config.xcassets_meta)
    )
    splash = config.splash_screen
    await gather_all(
        generate_brand_assets(xcassets_dir, config, icon_source_size),
        _attributed(splash.logo.name, generate_splash_logo_image_set(xcassets_dir, splash.logo, config, icon_source_size)),
        _attributed(splash.background.name, generate_color_set(xcassets_dir, splash.background, config)),
        _attributed(STANDALONE_ICON_NAME, generate_icon(config, icon_path, icon_source_size)),
    )
