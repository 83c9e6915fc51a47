"""
Image inspection and preparation ahead of basisu.

basisu only accepts images whose width and height are multiples of 4.
The server rejects anything else; the client pads images before upload.
"""
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from basis_api.core.errors import DimensionError, InputError

# Set up logging
logger = logging.getLogger(__name__)

BLOCK_SIZE = 4


@dataclass
class PaddedImage:
    """Result of padding an image to block-aligned dimensions"""
    data: bytes
    width: int
    height: int
    original_width: int
    original_height: int
    filename: str

    @property
    def changed(self) -> bool:
        return (self.width, self.height) != (self.original_width, self.original_height)

    @property
    def summary(self) -> str:
        if not self.changed:
            return "no change"
        return (
            f"padded from {self.original_width}x{self.original_height} "
            f"to {self.width}x{self.height}"
        )


def next_multiple(value: int, block: int = BLOCK_SIZE) -> int:
    """Smallest multiple of block that is >= value."""
    return -(-value // block) * block


def get_image_dimensions(path: Path) -> Tuple[int, int]:
    """
    Read width and height of an image file.

    Raises:
        InputError: If the file is not an image Pillow can read
    """
    try:
        with Image.open(path) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        raise InputError(f"Unsupported or corrupt image file: {path.name}") from e


def validate_image_dimensions(path: Path) -> Tuple[int, int]:
    """
    Ensure both image dimensions are multiples of 4.

    Returns:
        (width, height) of the image

    Raises:
        DimensionError: If either dimension is not a multiple of 4
    """
    width, height = get_image_dimensions(path)
    if width % BLOCK_SIZE or height % BLOCK_SIZE:
        raise DimensionError(width, height)
    return width, height


def convert_to_png(source: Path, target: Path) -> Path:
    """Re-encode an image as PNG, keeping alpha where present."""
    with Image.open(source) as img:
        if img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA")
        img.save(target, format="PNG")
    logger.info(f"Converted {source.name} to PNG")
    return target


def pad_to_multiple_of_four(data: bytes, filename: str = "image.png") -> PaddedImage:
    """
    Pad an image to the next multiple of 4 in each dimension.

    The original pixels are anchored at the top-left corner and the added
    region is fully transparent. Images that already conform are returned
    unchanged, bytes and filename included.

    Args:
        data: Encoded image bytes
        filename: Name of the source file

    Returns:
        PaddedImage with the (possibly new) PNG bytes and dimensions
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InputError("Failed to load image") from e

    width, height = img.size
    new_width, new_height = next_multiple(width), next_multiple(height)

    if (new_width, new_height) == (width, height):
        return PaddedImage(data, width, height, width, height, filename)

    pixels = np.asarray(img.convert("RGBA"))
    canvas = np.zeros((new_height, new_width, 4), dtype=np.uint8)
    canvas[:height, :width] = pixels

    buffer = BytesIO()
    Image.fromarray(canvas).save(buffer, format="PNG")

    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    logger.debug(f"Padded {filename} from {width}x{height} to {new_width}x{new_height}")
    return PaddedImage(
        data=buffer.getvalue(),
        width=new_width,
        height=new_height,
        original_width=width,
        original_height=height,
        filename=f"{stem}.png",
    )


def load_image_bytes(source: Union[str, Path, bytes]) -> bytes:
    if isinstance(source, bytes):
        return source
    with open(source, 'rb') as f:
        return f.read()
