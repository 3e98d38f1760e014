"""
docforensics.raster: Raster loader and normaliser.

Turns raw encoded image bytes into an immutable :class:`RasterImage`:

1. Decode with Pillow (any format Pillow understands) and honour the
   EXIF orientation tag.
2. Composite alpha / palette transparency onto a white background so
   transparent regions read as blank paper rather than black ink.
3. Downscale with area averaging (``cv2.INTER_AREA``) when either side
   exceeds the profile's maximum dimension.  Images are never upscaled.
4. Derive the luminance plane with the ITU-R BT.601 weights
   ``Y = 0.299*R + 0.587*G + 0.114*B`` (kept as float, not rounded).

Both arrays are flagged read-only so extractors can share one raster
without copying.
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image, ImageOps

from .errors import DecodeError, EmptyImageError

LUMA_WEIGHTS = (0.299, 0.587, 0.114)


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Decoded, size-bounded document image.

    Attributes
    ----------
    rgb : np.ndarray
        ``(H, W, 3)`` ``uint8`` pixel buffer, read-only.
    luma : np.ndarray
        ``(H, W)`` ``float64`` luminance plane, read-only.
    source_size : tuple of int
        ``(width, height)`` of the image before downscaling.
    """

    rgb: np.ndarray
    luma: np.ndarray
    source_size: Tuple[int, int]

    @property
    def width(self) -> int:
        return int(self.rgb.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgb.shape[0])

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @classmethod
    def from_rgb(cls, rgb: np.ndarray, source_size: Optional[Tuple[int, int]] = None) -> "RasterImage":
        """Build a raster from an ``(H, W, 3)`` ``uint8`` array (copied)."""
        rgb = np.array(rgb, dtype=np.uint8, copy=True)
        if rgb.ndim != 3 or rgb.shape[2] != 3:
            raise ValueError(f"expected an (H, W, 3) array, got shape {rgb.shape}")
        if rgb.shape[0] == 0 or rgb.shape[1] == 0:
            raise EmptyImageError(f"image has zero extent: {rgb.shape[1]}x{rgb.shape[0]}")
        luma = to_luma(rgb)
        rgb.setflags(write=False)
        luma.setflags(write=False)
        if source_size is None:
            source_size = (int(rgb.shape[1]), int(rgb.shape[0]))
        return cls(rgb=rgb, luma=luma, source_size=source_size)


def to_luma(rgb: np.ndarray) -> np.ndarray:
    """Convert an RGB ``uint8`` array to a float64 luminance plane."""
    wr, wg, wb = LUMA_WEIGHTS
    px = rgb.astype(np.float64)
    return wr * px[..., 0] + wg * px[..., 1] + wb * px[..., 2]


def _flatten_alpha(img: Image.Image) -> Image.Image:
    """Return an RGB image with any transparency composited onto white."""
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA", "PA"):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != "RGB":
        # Covers L, P, CMYK, I, F, etc.
        return img.convert("RGB")
    return img


def bounded_size(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Target size for a ``width x height`` image under *max_dimension*.

    The scale is ``min(max/w, max/h, 1)`` and the result is floored, so an
    extremely thin image can collapse to zero along one axis.
    """
    if width <= 0 or height <= 0:
        return 0, 0
    scale = min(max_dimension / width, max_dimension / height, 1.0)
    return int(math.floor(width * scale)), int(math.floor(height * scale))


def load_raster(data: bytes, max_dimension: int = 512) -> RasterImage:
    """Decode *data* into a :class:`RasterImage` no larger than *max_dimension*.

    Parameters
    ----------
    data : bytes
        Encoded image (PNG, JPEG, WebP, BMP, TIFF, ...).
    max_dimension : int
        Cap on both width and height after downscaling.

    Raises
    ------
    DecodeError
        If *data* is not a decodable raster image.
    EmptyImageError
        If the decoded or downscaled image has zero width or height.
    """
    if max_dimension <= 0:
        raise ValueError(f"max_dimension must be positive, got {max_dimension}")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        img = ImageOps.exif_transpose(img)
        img = _flatten_alpha(img)
    except Exception as exc:
        raise DecodeError(f"cannot decode image: {type(exc).__name__}: {exc}") from exc

    src_w, src_h = img.size
    if src_w == 0 or src_h == 0:
        raise EmptyImageError(f"decoded image has zero extent: {src_w}x{src_h}")

    rgb = np.asarray(img, dtype=np.uint8)
    new_w, new_h = bounded_size(src_w, src_h, max_dimension)
    if new_w == 0 or new_h == 0:
        raise EmptyImageError(
            f"image {src_w}x{src_h} collapses to {new_w}x{new_h} at max dimension {max_dimension}"
        )
    if (new_w, new_h) != (src_w, src_h):
        rgb = cv2.resize(rgb, (new_w, new_h), interpolation=cv2.INTER_AREA)

    return RasterImage.from_rgb(rgb, source_size=(src_w, src_h))
