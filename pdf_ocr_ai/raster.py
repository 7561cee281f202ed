"""Normalize decoded image samples into 4-channel RGBA rasters."""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from .document import BYTES_PER_PIXEL, DecodedImage, ImageKind
from .schema import RasterImage
from .utils import UnsupportedImageEncodingError


def normalize_image(image: DecodedImage) -> RasterImage:
    """Expand packed gray/RGB/RGBA samples to interleaved RGBA.

    Alpha is 255 unless the source carries its own alpha channel. Any other
    kind, or a buffer too short for the declared size, raises
    :class:`UnsupportedImageEncodingError`.
    """
    bpp = BYTES_PER_PIXEL.get(image.kind)
    if bpp is None:
        raise UnsupportedImageEncodingError(
            f"Unsupported image kind {image.kind!r} ({image.width}x{image.height})"
        )
    if image.width <= 0 or image.height <= 0:
        raise UnsupportedImageEncodingError(
            f"Invalid image size {image.width}x{image.height}"
        )
    pixels = image.width * image.height
    if len(image.data) < pixels * bpp:
        raise UnsupportedImageEncodingError(
            f"Image buffer has {len(image.data)} bytes, expected {pixels * bpp} "
            f"for kind {ImageKind(image.kind).name}"
        )

    samples = np.frombuffer(image.data, dtype=np.uint8, count=pixels * bpp)
    samples = samples.reshape(pixels, bpp)
    if image.kind == ImageKind.RGBA:
        rgba = samples
    else:
        rgba = np.empty((pixels, 4), dtype=np.uint8)
        if image.kind == ImageKind.GRAYSCALE:
            rgba[:, :3] = samples
        else:
            rgba[:, :3] = samples[:, :3]
        rgba[:, 3] = 255
    return RasterImage(width=image.width, height=image.height, data=rgba.tobytes())


def to_pil_image(raster: RasterImage) -> Image.Image:
    return Image.frombytes("RGBA", (raster.width, raster.height), raster.data)


def encode_png(raster: RasterImage) -> bytes:
    """Encode a raster as PNG bytes for the description service."""
    buf = BytesIO()
    to_pil_image(raster).save(buf, format="PNG")
    return buf.getvalue()
