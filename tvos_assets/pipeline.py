"""
End-to-end build: validate, generate into a scratch directory, zip, promote.

Everything is written under a private temporary directory. The output
directory is neither created nor written until the finished zip is moved
into it, so a failed or interrupted run never leaves a partial catalog behind.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import signal
import tempfile
import threading
from typing import NamedTuple

from . import archive, fsutil
from .config import Layout
from .generators import STANDALONE_ICON_NAME, generate_catalog
from .validation import validate_input_images

_LOGGER = logging.getLogger(__name__)

XCASSETS_NAME = "Images.xcassets"
TEMP_PREFIX = "tvos-assets-"


class BuildResult(NamedTuple):
    zip_path: str
    contents_json: int
    pngs: int
    warnings: list

    @property
    def total(self):
        return self.contents_json + self.pngs


def count_outputs(config):
    """Expected (Contents.json count, PNG count) for a config; PNGs include icon.png."""
    brand = config.brand_assets
    splash = config.splash_screen
    contents_json = 2  # Images.xcassets + .brandassets
    pngs = 1  # icon.png

    for stack in (brand.app_icon_small, brand.app_icon_large):
        if not stack.enabled:
            continue
        # stack manifest + (layer manifest + Content.imageset manifest) per layer
        contents_json += 1 + 3 * 2
        per_layer = 1 if stack.layout is Layout.SINGLE_SCALE_NO_SUFFIX else len(stack.scales)
        pngs += 3 * per_layer

    for imageset in (brand.top_shelf_image, brand.top_shelf_image_wide):
        if imageset.enabled:
            contents_json += 1
            pngs += len(imageset.scales)

    if splash.logo.enabled:
        contents_json += 1
        pngs += len(splash.logo.universal_scales) + len(splash.logo.tv_scales)
    if splash.background.enabled:
        contents_json += 1

    return contents_json, pngs


@contextlib.contextmanager
def handle_signals(cleanup):
    """On SIGINT/SIGTERM run ``cleanup`` and exit 130/143; restore handlers after."""

    def on_signal(signum, frame):
        cleanup()
        raise SystemExit(128 + signum)

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, on_signal)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def _describe(asset):
    scales = " + ".join(f"@{scale}" for scale in asset.scales)
    return f"Generating {asset.name} ({asset.size.width}x{asset.size.height}, {scales})..."


def _steps(config):
    brand = config.brand_assets
    splash = config.splash_screen
    steps = ["Creating xcassets directory..."]
    for asset in (brand.app_icon_small, brand.app_icon_large, brand.top_shelf_image, brand.top_shelf_image_wide):
        if asset.enabled:
            steps.append(_describe(asset))
    if splash.logo.enabled:
        steps.append(f"Generating {splash.logo.name}...")
    if splash.background.enabled:
        steps.append(f"Generating {splash.background.name} colorset...")
    steps.append(f"Generating {STANDALONE_ICON_NAME} (1024x1024)...")
    return steps


def build_assets(config, progress=None) -> BuildResult:
    """Run the whole pipeline and return where the zip ended up.

    ``progress`` receives one human-readable line per warning and step.
    """
    progress = progress or _LOGGER.info
    report = validate_input_images(config)
    fsutil.check_writable(config.output.directory)
    for warning in report.warnings:
        progress(f"  Warning: {warning}")

    temp_dir = tempfile.mkdtemp(prefix=TEMP_PREFIX)
    _LOGGER.debug("working in %s", temp_dir)

    def cleanup():
        shutil.rmtree(temp_dir, ignore_errors=True)

    try:
        with handle_signals(cleanup):
            xcassets_dir = os.path.join(temp_dir, XCASSETS_NAME)
            icon_path = os.path.join(temp_dir, STANDALONE_ICON_NAME)

            generation = _steps(config)
            total = len(generation) + 1
            for number, message in enumerate(generation, start=1):
                progress(f"  [{number}/{total}] {message}")
            asyncio.run(generate_catalog(xcassets_dir, icon_path, config, report.icon_source_size))

            progress(f"  [{total}/{total}] Creating zip archive...")
            zip_name = archive.zip_filename()
            temp_zip = os.path.join(temp_dir, zip_name)
            archive.create_zip(
                [(xcassets_dir, XCASSETS_NAME), (icon_path, STANDALONE_ICON_NAME)], temp_zip
            )

            final_zip = os.path.join(config.output.directory, zip_name)
            fsutil.promote(temp_zip, final_zip)
    finally:
        cleanup()

    contents_json, pngs = count_outputs(config)
    return BuildResult(final_zip, contents_json, pngs, report.warnings)
