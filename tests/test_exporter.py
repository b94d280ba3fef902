"""Tests for image encoding and writing."""

from __future__ import annotations

import base64

import numpy as np
import pytest
from PIL import Image

from chartraster.errors import ConfigurationError
from chartraster.exporter import (
    encode_image,
    format_from_path,
    normalize_format,
    save_image,
    to_data_url,
    to_image,
    write_image,
)


def _array(width: int = 8, height: int = 4) -> np.ndarray:
    array = np.zeros((height, width, 4), dtype=np.uint8)
    array[..., 0] = 200
    array[..., 3] = 255
    return array


def test_normalize_format() -> None:
    assert normalize_format("PNG") == "png"
    assert normalize_format(".jpg") == "jpeg"
    assert normalize_format("svg") == "svg"
    with pytest.raises(ConfigurationError):
        normalize_format("gif")
    assert format_from_path("out/chart.JPEG") == "jpeg"


def test_png_round_trip_keeps_pixels(tmp_path) -> None:
    data = encode_image(_array(), "png")
    assert data.startswith(b"\x89PNG")
    path = tmp_path / "c.png"
    path.write_bytes(data)
    with Image.open(path) as img:
        assert img.size == (8, 4)
        assert img.mode == "RGBA"
        assert img.getpixel((0, 0)) == (200, 0, 0, 255)


def test_jpeg_drops_alpha() -> None:
    data = encode_image(_array(), "jpg")
    assert data.startswith(b"\xff\xd8")


def test_svg_embeds_png() -> None:
    svg = encode_image(_array(), "svg").decode("utf-8")
    assert svg.startswith("<svg")
    assert 'width="8" height="4"' in svg
    encoded = svg.split("base64,", 1)[1].split('"', 1)[0]
    assert base64.b64decode(encoded).startswith(b"\x89PNG")


def test_to_data_url() -> None:
    url = to_data_url(b"abc", "png")
    assert url == "data:image/png;base64,YWJj"


def test_save_image_creates_parent_directories(tmp_path) -> None:
    path = tmp_path / "nested" / "dir" / "chart.png"
    data = save_image(_array(), path)
    assert path.read_bytes() == data


def test_write_image_creates_parent_directories(tmp_path) -> None:
    path = tmp_path / "a" / "b" / "chart.jpg"
    data = encode_image(_array(), "jpeg")
    write_image(data, str(path))
    assert path.read_bytes() == data


def test_to_image_rejects_rgb_arrays() -> None:
    with pytest.raises(ValueError):
        to_image(np.zeros((4, 4, 3), dtype=np.uint8))
