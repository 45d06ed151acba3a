import asyncio
import dataclasses
import json
import os

import pytest
from PIL import Image

from tvos_assets import generators
from tvos_assets.config import Size
from tvos_assets.errors import AssetGenerationError, DimensionError


def _manifest(path):
    with open(os.path.join(path, "Contents.json")) as f:
        return json.load(f)


def _image(path):
    img = Image.open(path)
    img.load()
    return img


def _replace_brand(config, **changes):
    return dataclasses.replace(
        config, brand_assets=dataclasses.replace(config.brand_assets, **changes)
    )


def test_app_store_stack_layout(config, tmp_path):
    asset = config.brand_assets.app_icon_large
    asyncio.run(generators.generate_image_stack(str(tmp_path), asset, config, 1280))

    stack = tmp_path / "App Icon - App Store.imagestack"
    assert [layer["filename"] for layer in _manifest(stack)["layers"]] == [
        "Front.imagestacklayer",
        "Middle.imagestacklayer",
        "Back.imagestacklayer",
    ]
    assert _manifest(stack / "Front.imagestacklayer") == {"info": {"author": "xcode", "version": 1}}

    front = stack / "Front.imagestacklayer" / "Content.imageset"
    back = stack / "Back.imagestacklayer" / "Content.imageset"
    assert sorted(os.listdir(front)) == ["Contents.json", "front@1x.png"]
    assert sorted(os.listdir(back)) == ["Contents.json", "back.png"]
    assert _manifest(back)["images"] == [{"filename": "back.png", "idiom": "tv"}]

    back_img = _image(back / "back.png")
    assert (back_img.mode, back_img.size) == ("RGB", (1280, 768))
    front_img = _image(front / "front@1x.png")
    assert (front_img.mode, front_img.size) == ("RGBA", (1280, 768))
    assert front_img.getpixel((0, 0))[3] == 0


def test_standard_stack_scales(config, tmp_path):
    asset = config.brand_assets.app_icon_small
    asyncio.run(generators.generate_image_stack(str(tmp_path), asset, config))

    back = tmp_path / "App Icon.imagestack" / "Back.imagestacklayer" / "Content.imageset"
    assert sorted(os.listdir(back)) == ["Contents.json", "back@1x.png", "back@2x.png"]
    assert _image(back / "back@2x.png").size == (800, 480)
    middle = tmp_path / "App Icon.imagestack" / "Middle.imagestacklayer" / "Content.imageset"
    assert [e["scale"] for e in _manifest(middle)["images"]] == ["1x", "2x"]


def test_layer_sources_follow_config(config, tmp_path):
    asset = config.brand_assets.app_icon_small
    swapped = dataclasses.replace(asset, layers=dataclasses.replace(asset.layers, front="background"))
    asyncio.run(generators.generate_image_stack(str(tmp_path), swapped, config))

    front = tmp_path / "App Icon.imagestack" / "Front.imagestacklayer" / "Content.imageset"
    assert _image(front / "front@1x.png").mode == "RGB"


def test_border_radius_cuts_front_layer_corners(config, tmp_path):
    rounded = dataclasses.replace(
        config, inputs=dataclasses.replace(config.inputs, icon_border_radius=640)
    )
    asset = config.brand_assets.app_icon_small
    asyncio.run(generators.generate_image_stack(str(tmp_path), asset, rounded, 1280))

    front = tmp_path / "App Icon.imagestack" / "Front.imagestacklayer" / "Content.imageset"
    img = _image(front / "front@1x.png")
    # the 144px icon square starts at (128, 48); a circle leaves its corner empty
    assert img.getpixel((128, 48))[3] == 0
    assert img.getpixel((200, 120))[3] > 0


def test_disabled_asset_writes_nothing(config, tmp_path):
    asset = dataclasses.replace(config.brand_assets.app_icon_small, enabled=False)
    asyncio.run(generators.generate_image_stack(str(tmp_path), asset, config))
    assert os.listdir(tmp_path) == []


def test_top_shelf_image_set(config, tmp_path):
    asset = config.brand_assets.top_shelf_image
    asyncio.run(generators.generate_top_shelf_image_set(str(tmp_path), asset, config))

    imageset = tmp_path / "Top Shelf Image.imageset"
    assert sorted(os.listdir(imageset)) == ["Contents.json", "top@1x.png", "top@2x.png"]
    img = _image(imageset / "top@2x.png")
    assert (img.mode, img.size) == ("RGB", (3840, 1440))
    assert img.getpixel((0, 0)) == (100, 150, 200)


def test_top_shelf_disabled_omitted_from_brand_assets(config, tmp_path):
    config = _replace_brand(
        config,
        top_shelf_image=dataclasses.replace(config.brand_assets.top_shelf_image, enabled=False),
    )
    asyncio.run(generators.generate_brand_assets(str(tmp_path), config))

    brand = tmp_path / "AppIcon.brandassets"
    assert not (brand / "Top Shelf Image.imageset").exists()
    assert (brand / "Top Shelf Image Wide.imageset").is_dir()
    filenames = [a["filename"] for a in _manifest(brand)["assets"]]
    assert "Top Shelf Image.imageset" not in filenames
    assert len(filenames) == 3


def test_oversize_asset_is_attributed(config, tmp_path):
    config = _replace_brand(
        config,
        top_shelf_image=dataclasses.replace(
            config.brand_assets.top_shelf_image, size=Size(20000, 720)
        ),
    )
    with pytest.raises(AssetGenerationError) as excinfo:
        asyncio.run(generators.generate_brand_assets(str(tmp_path), config))
    assert excinfo.value.asset_name == "Top Shelf Image"
    assert isinstance(excinfo.value.cause, DimensionError)
    assert str(excinfo.value).startswith('Failed generating "Top Shelf Image": ')


def test_splash_logo_image_set(config, tmp_path):
    logo = config.splash_screen.logo
    asyncio.run(generators.generate_splash_logo_image_set(str(tmp_path), logo, config))

    imageset = tmp_path / "SplashScreenLogo.imageset"
    assert sorted(os.listdir(imageset)) == [
        "200-icon-tv@1x.png",
        "200-icon-tv@2x.png",
        "200-icon@1x.png",
        "200-icon@2x.png",
        "200-icon@3x.png",
        "Contents.json",
    ]
    images = _manifest(imageset)["images"]
    assert [(e["idiom"], e["scale"]) for e in images] == [
        ("universal", "1x"),
        ("universal", "2x"),
        ("universal", "3x"),
        ("tv", "1x"),
        ("tv", "2x"),
    ]
    img = _image(imageset / "200-icon@3x.png")
    assert (img.mode, img.size) == ("RGBA", (600, 600))
    assert _image(imageset / "200-icon-tv@2x.png").size == (400, 400)


def test_color_set(config, tmp_path):
    background = config.splash_screen.background
    asyncio.run(generators.generate_color_set(str(tmp_path), background, config))

    colorset = tmp_path / "SplashScreenBackground.colorset"
    assert os.listdir(colorset) == ["Contents.json"]
    colors = _manifest(colorset)["colors"]
    assert len(colors) == 4
    assert colors[0]["color"]["components"] == {
        "red": "0.953",
        "green": "0.612",
        "blue": "0.071",
        "alpha": "1.000",
    }


def test_standalone_icon(config, tmp_path):
    path = str(tmp_path / "icon.png")
    asyncio.run(generators.generate_icon(config, path))
    img = _image(path)
    assert (img.mode, img.size) == ("RGB", (1024, 1024))


def test_gather_all_cancels_siblings():
    cancelled = []

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def boom():
        await asyncio.sleep(0)
        raise DimensionError("bad size")

    with pytest.raises(DimensionError):
        asyncio.run(generators.gather_all(slow(), boom()))
    assert cancelled == [True]
