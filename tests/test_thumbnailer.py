"""Tests for thumbnail sizing and transparency: pure image math, no IO."""

import io

import pytest
from PIL import Image

import errors as err
from thumbnailer import encode, resize, target_size


def test_wide_image_fits_box():
    out = resize(Image.new("RGB", (800, 400)), 250, 250)
    assert out.size == (250, 125)


def test_tall_image_fits_box():
    out = resize(Image.new("RGB", (400, 1000)), 250, 250)
    assert out.size == (100, 250)


def test_small_image_is_enlarged_by_default():
    assert resize(Image.new("RGB", (50, 25)), 250, 250).size == (250, 125)


def test_upscale_can_be_turned_off():
    assert resize(Image.new("RGB", (50, 25)), 250, 250, upscale=False).size == (50, 25)
    assert target_size(800, 400, 250, 250, upscale=False) == (250, 125)


def test_sides_never_drop_below_one_pixel():
    assert target_size(1000, 1, 250, 250) == (250, 1)
    assert resize(Image.new("RGB", (1000, 1)), 250, 250).size == (250, 1)


def test_source_is_not_modified():
    src = Image.new("RGB", (800, 400))
    resize(src, 250, 250)
    assert src.size == (800, 400)


def test_transparency_survives_resize():
    src = Image.new("RGBA", (100, 100), (0, 0, 0, 0))
    src.paste((255, 0, 0, 255), (50, 0, 100, 100))

    out = resize(src, 250, 250)

    assert out.mode == "RGBA"
    assert out.getpixel((10, 10))[3] == 0
    # opaque side keeps its colour; nothing was blended onto black
    assert out.getpixel((240, 125)) == (255, 0, 0, 255)


def test_palette_gif_with_transparency_gets_alpha_canvas():
    src = Image.new("P", (40, 20), 0)
    src.info["transparency"] = 0
    assert resize(src, 250, 250).mode == "RGBA"


def test_opaque_images_stay_opaque():
    assert resize(Image.new("RGB", (800, 400)), 250, 250).mode == "RGB"
    assert resize(Image.new("L", (800, 400)), 250, 250).mode == "L"
    assert resize(Image.new("CMYK", (800, 400)), 250, 250).mode == "RGB"


def test_resample_is_smooth_not_nearest():
    src = Image.new("L", (2, 1), 0)
    src.putpixel((1, 0), 255)
    out = resize(src, 250, 250)
    middle = out.getpixel((125, 0))
    assert 0 < middle < 255


def test_empty_image_fails_to_resample():
    with pytest.raises(err.ResampleFailure):
        resize(Image.new("RGB", (0, 0)), 250, 250)


def test_encode_jpeg():
    data = encode(Image.new("RGB", (10, 10)), "JPEG", quality=85)
    assert data[:2] == b"\xff\xd8"


def test_encode_png_keeps_alpha():
    src = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
    again = Image.open(io.BytesIO(encode(src, "PNG")))
    assert again.mode == "RGBA"
    assert again.getpixel((0, 0))[3] == 0
