"""Encode rendered rasters and write them to disk.

The renderer hands over an ``(height, width, 4)`` uint8 RGBA array; this
module turns it into PNG, JPEG or SVG bytes with Pillow.  JPEG has no
alpha channel, so the image is flattened first.  SVG output wraps the
PNG encoding in an ``<image>`` element.
"""

from __future__ import annotations

import base64
import io
import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from .config import SUPPORTED_EXTENSIONS
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 90

_MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "svg": "image/svg+xml",
}


def normalize_format(fmt: str) -> str:
    """Map an extension or format name to ``png``, ``jpeg`` or ``svg``.

    Raises:
        ConfigurationError: For unsupported formats.
    """
    fmt = (fmt or "").lower().lstrip(".")
    if fmt not in SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported image format: {fmt or '<none>'}. "
            f"Use one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    return "jpeg" if fmt == "jpg" else fmt


def format_from_path(path: Union[str, Path]) -> str:
    return normalize_format(Path(path).suffix)


def to_image(array: np.ndarray) -> Image.Image:
    """Wrap an RGBA array in a Pillow image."""
    if array.ndim != 3 or array.shape[2] != 4:
        raise ValueError(f"expected an (H, W, 4) RGBA array, got shape {array.shape}")
    return Image.fromarray(np.ascontiguousarray(array, dtype=np.uint8))


def _png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def encode_image(array: np.ndarray, fmt: str = "png", quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """Encode ``array`` as ``fmt``.

    Args:
        array: ``(H, W, 4)`` uint8 RGBA pixels.
        fmt: ``png``, ``jpg``/``jpeg`` or ``svg``.
        quality: JPEG quality (1-95).

    Returns:
        The encoded image bytes.
    """
    fmt = normalize_format(fmt)
    img = to_image(array)
    if fmt == "png":
        return _png_bytes(img)
    if fmt == "jpeg":
        buffer = io.BytesIO()
        img.convert("RGB").save(buffer, format="JPEG", quality=quality)
        return buffer.getvalue()
    encoded = base64.b64encode(_png_bytes(img)).decode("ascii")
    width, height = img.size
    svg = (
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
        f'<image width="{width}" height="{height}" '
        f'xlink:href="data:image/png;base64,{encoded}"/></svg>'
    )
    return svg.encode("utf-8")


def to_data_url(data: bytes, fmt: str = "png") -> str:
    """Return a ``data:`` URL for already encoded image bytes."""
    mime = _MIME_TYPES[normalize_format(fmt)]
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def write_image(data: bytes, path: Union[str, Path]) -> None:
    """Write encoded image bytes to ``path``, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.debug("Wrote %d bytes to %s", len(data), path)


def save_image(array: np.ndarray, path: Union[str, Path], quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """Encode ``array`` according to the extension of ``path`` and write it.

    Returns the written bytes.
    """
    data = encode_image(array, format_from_path(path), quality=quality)
    write_image(data, path)
    return data


__all__ = [
    "normalize_format",
    "format_from_path",
    "to_image",
    "encode_image",
    "to_data_url",
    "write_image",
    "save_image",
]
