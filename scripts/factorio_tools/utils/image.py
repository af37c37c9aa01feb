"""
Image helpers for icon decoding and sprite sheet encoding.
"""

import io
from typing import BinaryIO, Tuple
from PIL import Image
import numpy as np


class ImageUtils:
    """Utility class for the image operations the atlas needs."""

    @staticmethod
    def decode(stream: BinaryIO) -> Image.Image:
        """
        Fully decode an image from an open stream.

        The pixels are loaded before returning so the stream can be closed.

        Raises:
            OSError: If the bytes are not a supported image
        """
        image = Image.open(stream)
        image.load()
        return image

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def crop_region(image: Image.Image, origin: Tuple[int, int],
                    size: Tuple[int, int]) -> Image.Image:
        """Cut a size-sized region at origin; area outside the source stays transparent."""
        x, y = origin
        width, height = size
        return image.crop((x, y, x + width, y + height))

    @staticmethod
    def resize_bilinear(image: Image.Image, target_size: Tuple[int, int]) -> Image.Image:
        """Resample the whole image to target_size with bilinear interpolation."""
        return image.resize(target_size, Image.Resampling.BILINEAR)

    @staticmethod
    def is_fully_transparent(image: Image.Image) -> bool:
        """Check whether every pixel has zero alpha."""
        alpha = np.asarray(ImageUtils.ensure_rgba(image))[:, :, 3]
        return not alpha.any()

    @staticmethod
    def encode_png(image: Image.Image, compress_level: int = 6) -> bytes:
        """Encode image as PNG bytes; equal pixels and settings give equal bytes."""
        buffer = io.BytesIO()
        image.save(buffer, format='PNG', compress_level=compress_level)
        return buffer.getvalue()
