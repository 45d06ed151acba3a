import os

import pytest
from PIL import Image

from tvos_assets.config import resolve_config

ICON_COLOR = (255, 0, 0, 128)
BACKGROUND_COLOR = (100, 150, 200)


def _make_png(path, width, height, color=ICON_COLOR, fmt="PNG"):
    mode = "RGBA" if len(color) == 4 else "RGB"
    Image.new(mode, (width, height), color).save(path, format=fmt)
    return str(path)


@pytest.fixture
def png_factory(tmp_path):
    """Paint a solid PNG (or another format, for sniffing tests) into tmp_path."""

    def make(name, width, height, color=ICON_COLOR, fmt="PNG"):
        return _make_png(tmp_path / name, width, height, color, fmt)

    return make


@pytest.fixture(scope="session")
def inputs_dir(tmp_path_factory):
    return tmp_path_factory.mktemp("inputs")


@pytest.fixture(scope="session")
def icon_path(inputs_dir):
    """1280x1280 half-transparent icon (the recommended size)."""
    return _make_png(inputs_dir / "icon.png", 1280, 1280, ICON_COLOR)


@pytest.fixture(scope="session")
def background_path(inputs_dir):
    """4640x1440 opaque background (the recommended size)."""
    return _make_png(inputs_dir / "background.png", 4640, 1440, BACKGROUND_COLOR)


@pytest.fixture
def output_dir(tmp_path):
    return os.path.join(str(tmp_path), "out")


@pytest.fixture
def config(icon_path, background_path, output_dir):
    return resolve_config(
        icon=icon_path, background=background_path, color="#F39C12", output=output_dir
    )
