"""
Raster drawing surfaces.

The membership index and the texture synthesizer only need three drawing
primitives: fill a polygon with a solid colour, read a pixel back and write
a whole pixel block. Two surfaces provide them:

- BufferSurface: pure NumPy scanline fill, no imaging library involved
- PillowSurface: Pillow ImageDraw backed, the default for interactive use

Neither surface antialiases polygon edges, so colour keys written by the
membership index read back exactly.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import numpy as np
import structlog
from PIL import Image, ImageDraw

logger = structlog.get_logger()

Color = Tuple[int, int, int, int]
Point = Tuple[float, float]

BACKENDS = ("pillow", "buffer", "none")


class RasterUnavailableError(Exception):
    """Raised when no raster surface can be created in this environment."""


class RasterSurface(ABC):
    """A width x height RGBA drawing surface, initially transparent black."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)

    @abstractmethod
    def fill_polygon(self, points: Sequence[Point], color: Color) -> None:
        """Fill a closed polygon given in pixel coordinates."""

    @abstractmethod
    def get_pixel(self, x: int, y: int) -> Color:
        """Read one RGBA pixel."""

    @abstractmethod
    def put_pixels(self, pixels: np.ndarray) -> None:
        """Replace the surface content with an (height, width, 4) uint8 array."""

    @abstractmethod
    def to_array(self) -> np.ndarray:
        """Copy the surface content into an (height, width, 4) uint8 array."""

    def _check_block(self, pixels: np.ndarray) -> np.ndarray:
        pixels = np.asarray(pixels)
        if pixels.shape != (self.height, self.width, 4):
            raise ValueError(
                f"Expected pixel block of shape {(self.height, self.width, 4)}, got {pixels.shape}"
            )
        return pixels.astype(np.uint8, copy=False)


class BufferSurface(RasterSurface):
    """Headless surface backed by a NumPy array."""

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self._pixels = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    def fill_polygon(self, points: Sequence[Point], color: Color) -> None:
        """
        Even-odd scanline fill sampled at pixel centres.

        A pixel is painted when its centre (x + 0.5, y + 0.5) lies inside
        the polygon.
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.ndim != 2 or len(pts) < 3:
            return

        x0, y0 = pts[:, 0], pts[:, 1]
        x1, y1 = np.roll(x0, -1), np.roll(y0, -1)

        row_min = max(0, int(np.floor(y0.min())))
        row_max = min(self.height - 1, int(np.ceil(y0.max())))
        value = np.asarray(color, dtype=np.uint8)

        for row in range(row_min, row_max + 1):
            yc = row + 0.5
            crosses = ((y0 <= yc) & (y1 > yc)) | ((y1 <= yc) & (y0 > yc))
            if not crosses.any():
                continue
            ax, ay, bx, by = x0[crosses], y0[crosses], x1[crosses], y1[crosses]
            xs = np.sort(ax + (yc - ay) * (bx - ax) / (by - ay))
            for xa, xb in zip(xs[0::2], xs[1::2]):
                start = max(0, int(np.ceil(xa - 0.5)))
                end = min(self.width, int(np.ceil(xb - 0.5)))
                if start < end:
                    self._pixels[row, start:end] = value

    def get_pixel(self, x: int, y: int) -> Color:
        return tuple(int(c) for c in self._pixels[y, x])

    def put_pixels(self, pixels: np.ndarray) -> None:
        self._pixels = self._check_block(pixels).copy()

    def to_array(self) -> np.ndarray:
        return self._pixels.copy()


class PillowSurface(RasterSurface):
    """Surface drawn with Pillow's ImageDraw."""

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self._image = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self._image)

    def fill_polygon(self, points: Sequence[Point], color: Color) -> None:
        if len(points) < 3:
            return
        self._draw.polygon([(float(x), float(y)) for x, y in points], fill=tuple(color))

    def get_pixel(self, x: int, y: int) -> Color:
        return tuple(self._image.getpixel((x, y)))

    def put_pixels(self, pixels: np.ndarray) -> None:
        self._image = Image.fromarray(np.ascontiguousarray(self._check_block(pixels)))
        self._draw = ImageDraw.Draw(self._image)

    def to_array(self) -> np.ndarray:
        return np.array(self._image, dtype=np.uint8)


def create_surface(width: int, height: int, backend: str = "pillow") -> RasterSurface:
    """
    Create a raster surface.

    Args:
        width: Surface width in pixels
        height: Surface height in pixels
        backend: "pillow", "buffer" or "none"

    Returns:
        RasterSurface instance

    Raises:
        RasterUnavailableError: If the backend is "none" (no raster capability)
        ValueError: If the backend name is unknown
    """
    backend = backend.lower()
    if backend == "pillow":
        return PillowSurface(width, height)
    if backend == "buffer":
        return BufferSurface(width, height)
    if backend == "none":
        raise RasterUnavailableError("Raster drawing is disabled for this environment")
    raise ValueError(f"Unknown raster backend {backend!r}, expected one of {BACKENDS}")
