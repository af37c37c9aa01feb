"""
Sprite sheet generation for item icons.

Icons are packed into a fixed-column grid of 32x32 cells in the order the
script layer listed them; cell i sits at column i % columns, row i // columns.
"""

import hashlib
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple
from PIL import Image

from ..errors import LoaderError
from ..providers.resolver import IconSourceResolver
from ..utils.image import ImageUtils


logger = logging.getLogger(__name__)

CELL_SIZE = 32

# Mipmapped icons are strips whose 32x32 level starts at this offset.
MIPMAP_HEIGHT = 64
MIPMAP_OFFSET = (64, 0)


class AtlasGenerationError(LoaderError):
    """Raised when the sprite sheet cannot be laid out or encoded."""

    def __init__(self, message: str):
        super().__init__(message, "atlas")


class IconDecodeError(LoaderError):
    """Raised when an icon's bytes are not a readable image."""

    def __init__(self, icon: str, reason: str):
        super().__init__(f"Cannot decode icon {icon}: {reason}", "atlas")
        self.icon = icon


@dataclass
class AtlasConfig:
    """Configuration for sprite sheet generation."""
    compression_level: int = 6
    format: str = "RGBA"
    background: Tuple[int, int, int, int] = (0, 0, 0, 0)


@dataclass
class Rectangle:
    """Pixel rectangle of one cell on the sheet."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class AtlasGeometry:
    """Grid dimensions for a given icon count and column count."""
    columns: int
    count: int
    cell_size: int = CELL_SIZE

    def __post_init__(self):
        if self.columns <= 0:
            raise AtlasGenerationError(f"column count must be positive, got {self.columns}")
        if self.count < 0:
            raise AtlasGenerationError(f"icon count cannot be negative, got {self.count}")

    @property
    def rows(self) -> int:
        return math.ceil(self.count / self.columns)

    @property
    def pixel_width(self) -> int:
        return self.columns * self.cell_size

    @property
    def pixel_height(self) -> int:
        return self.rows * self.cell_size

    @property
    def size(self) -> Tuple[int, int]:
        return (self.pixel_width, self.pixel_height)

    def cell(self, index: int) -> Tuple[int, int]:
        """(column, row) of the icon at index."""
        if not 0 <= index < self.count:
            raise IndexError(f"icon index {index} out of range for {self.count} icons")
        return (index % self.columns, index // self.columns)

    def cell_rect(self, index: int) -> Rectangle:
        column, row = self.cell(index)
        return Rectangle(column * self.cell_size, row * self.cell_size,
                         self.cell_size, self.cell_size)


class IconSizing(Enum):
    """How a decoded icon is fitted into its cell."""
    COPY = "copy"
    MIPMAP_CROP = "mipmap_crop"
    SCALE = "scale"


def choose_sizing(width: int, height: int) -> IconSizing:
    """
    Pick the sizing rule for an icon of the given pixel dimensions.

    Exactly 32x32 icons are copied. Strips wider than 64 and exactly 64 high
    are mipmaps: the 32x32 level at (64, 0) is copied. Everything else is
    resampled to 32x32.
    """
    if width == CELL_SIZE and height == CELL_SIZE:
        return IconSizing.COPY
    if width > 64 and height == MIPMAP_HEIGHT:
        return IconSizing.MIPMAP_CROP
    return IconSizing.SCALE


@dataclass
class AtlasResult:
    """Encoded sprite sheet and its content hash."""
    atlas: Image.Image
    sprite_sheet: bytes
    sprite_hash: str
    geometry: AtlasGeometry
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.geometry.pixel_width

    @property
    def height(self) -> int:
        return self.geometry.pixel_height

    def save_atlas(self, path: str) -> None:
        """Write the encoded bytes unchanged, so the file matches the hash."""
        with open(path, 'wb') as f:
            f.write(self.sprite_sheet)


class AtlasBuilder:
    """Builds the icon sprite sheet."""

    def __init__(self, config: AtlasConfig = None):
        self.config = config or AtlasConfig()

    def fit_icon(self, icon: Image.Image) -> Image.Image:
        """Apply the sizing rule and return a 32x32 RGBA tile."""
        icon = ImageUtils.ensure_rgba(icon)
        sizing = choose_sizing(*icon.size)

        if sizing is IconSizing.COPY:
            return icon
        if sizing is IconSizing.MIPMAP_CROP:
            return ImageUtils.crop_region(icon, MIPMAP_OFFSET, (CELL_SIZE, CELL_SIZE))
        return ImageUtils.resize_bilinear(icon, (CELL_SIZE, CELL_SIZE))

    def compose(self, images: Sequence[Image.Image], columns: int) -> Image.Image:
        """
        Place already decoded icons into a new canvas.

        Args:
            images: Icons in atlas order
            columns: Number of grid columns

        Returns:
            RGBA canvas of columns*32 by rows*32 pixels
        """
        geometry = AtlasGeometry(columns, len(images))
        atlas = Image.new(self.config.format, geometry.size, self.config.background)
        for index, image in enumerate(images):
            self._place(atlas, geometry, index, image)
        return atlas

    def _place(self, atlas: Image.Image, geometry: AtlasGeometry, index: int,
               image: Image.Image) -> None:
        rect = geometry.cell_rect(index)
        # paste without a mask replaces the cell's pixels, alpha included
        atlas.paste(self.fit_icon(image), (rect.x, rect.y))

    def build(self, icons: List, columns: int, resolver: IconSourceResolver) -> AtlasResult:
        """
        Resolve, decode and place every icon, then encode and hash the sheet.

        Args:
            icons: Icon descriptors in atlas order
            columns: Number of grid columns
            resolver: Run-scoped icon source resolver

        Returns:
            AtlasResult with PNG bytes and the MD5 hex digest of those bytes

        Raises:
            AtlasGenerationError: If the layout is empty or encoding fails
            IconDecodeError: If an icon cannot be decoded
            IconSourceError: If an icon cannot be opened
        """
        if not icons:
            raise AtlasGenerationError("no icons to pack into the sprite sheet")

        geometry = AtlasGeometry(columns, len(icons))
        logger.info(f"Building {geometry.pixel_width}x{geometry.pixel_height} sprite sheet "
                    f"for {geometry.count} icons in {geometry.columns} columns")

        atlas = Image.new(self.config.format, geometry.size, self.config.background)
        sizing_counts = {sizing.value: 0 for sizing in IconSizing}

        for index, icon in enumerate(icons):
            image = self._decode(icon, resolver)
            if ImageUtils.is_fully_transparent(image):
                logger.debug(f"Icon {icon.describe()} is fully transparent")
            sizing_counts[choose_sizing(*image.size).value] += 1
            self._place(atlas, geometry, index, image)

        sprite_sheet = self.encode(atlas)
        sprite_hash = hashlib.md5(sprite_sheet).hexdigest()
        logger.info(f"Sprite sheet hash: {sprite_hash}")

        return AtlasResult(
            atlas=atlas,
            sprite_sheet=sprite_sheet,
            sprite_hash=sprite_hash,
            geometry=geometry,
            metadata={"sizing": sizing_counts},
        )

    def _decode(self, icon, resolver: IconSourceResolver) -> Image.Image:
        with resolver.open(icon) as stream:
            try:
                return ImageUtils.decode(stream)
            except (OSError, ValueError, Image.DecompressionBombError) as e:
                raise IconDecodeError(icon.describe(), str(e)) from e

    def encode(self, atlas: Image.Image) -> bytes:
        try:
            return ImageUtils.encode_png(atlas, self.config.compression_level)
        except (OSError, ValueError) as e:
            raise AtlasGenerationError(f"Failed to encode sprite sheet: {e}") from e
