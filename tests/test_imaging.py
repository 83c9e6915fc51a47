from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from basis_api.core.errors import DimensionError, InputError
from basis_api.core.imaging import (
    convert_to_png,
    next_multiple,
    pad_to_multiple_of_four,
    validate_image_dimensions,
)

from tests.conftest import make_png


@pytest.mark.parametrize("value, expected", [(1, 4), (4, 4), (5, 8), (10, 12), (12, 12), (13, 16)])
def test_next_multiple(value, expected):
    assert next_multiple(value) == expected


def test_conforming_image_is_returned_unchanged():
    data = make_png(8, 12)
    padded = pad_to_multiple_of_four(data, "tile.png")

    assert padded.data is data
    assert padded.filename == "tile.png"
    assert (padded.width, padded.height) == (8, 12)
    assert not padded.changed
    assert padded.summary == "no change"


def test_padding_is_transparent_and_anchored_top_left():
    data = make_png(10, 7, color=(10, 20, 30, 255))
    padded = pad_to_multiple_of_four(data, "photo.jpg")

    assert (padded.width, padded.height) == (12, 8)
    assert padded.changed
    assert padded.filename == "photo.png"
    assert "10x7" in padded.summary and "12x8" in padded.summary

    pixels = np.asarray(Image.open(BytesIO(padded.data)).convert("RGBA"))
    assert pixels.shape == (8, 12, 4)
    assert (pixels[:7, :10] == (10, 20, 30, 255)).all()
    assert (pixels[7:, :, 3] == 0).all()
    assert (pixels[:, 10:, 3] == 0).all()


def test_padding_rejects_non_images():
    with pytest.raises(InputError):
        pad_to_multiple_of_four(b"definitely not an image", "x.png")


def test_validate_dimensions_accepts_multiples_of_four(tmp_path):
    path = tmp_path / "ok.png"
    path.write_bytes(make_png(16, 8))
    assert validate_image_dimensions(path) == (16, 8)


def test_validate_dimensions_rejects_other_sizes(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(make_png(10, 10))

    with pytest.raises(DimensionError) as exc_info:
        validate_image_dimensions(path)

    assert str(exc_info.value) == "Image dimensions must be multiples of 4. Current: 10x10"
    assert exc_info.value.status_code == 500


def test_validate_dimensions_rejects_unreadable_file(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"garbage")

    with pytest.raises(InputError) as exc_info:
        validate_image_dimensions(path)
    assert exc_info.value.status_code == 400


def test_convert_webp_to_png(tmp_path):
    source = tmp_path / "in.webp"
    Image.new("RGBA", (8, 8), (0, 255, 0, 128)).save(source, format="WEBP")

    target = convert_to_png(source, tmp_path / "out.png")

    with Image.open(target) as img:
        assert img.format == "PNG"
        assert img.size == (8, 8)
