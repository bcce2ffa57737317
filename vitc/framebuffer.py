"""
Framebuffers for rendering VITC lines into video frames.

One Framebuffer subclass per pixel format. Intensities are normalized
(0.0 = black, 1.0 = white) and converted to the format's sample range on
write. Buffers are numpy arrays laid out exactly as the raw frame bytes, so
input frames can be loaded and written back without conversion.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

_logger = logging.getLogger(__name__)


class UnsupportedPixelFormatError(NotImplementedError):
    """Raised when no framebuffer exists for a requested pixel format."""


class PixelFormat(Enum):
    """Raw frame pixel formats."""
    NULL = "Null"
    BINARY = "Binary"
    BINARY_INVERTED = "BinaryInverted"
    GRAYSCALE8 = "Grayscale8"
    GRAYSCALE16 = "Grayscale16"
    R8G8B8 = "R8G8B8"
    R16G16B16 = "R16G16B16"
    YUV444P8 = "YUV444P8"
    YUV444P16 = "YUV444P16"

    @property
    def bit_depth(self) -> int:
        """Bits per pixel (all channels), or -1 for NULL."""
        return {
            PixelFormat.BINARY: 1,
            PixelFormat.BINARY_INVERTED: 1,
            PixelFormat.GRAYSCALE8: 8,
            PixelFormat.GRAYSCALE16: 16,
            PixelFormat.R8G8B8: 24,
            PixelFormat.R16G16B16: 48,
            PixelFormat.YUV444P8: 24,
            PixelFormat.YUV444P16: 48,
        }.get(self, -1)

    @classmethod
    def from_name(cls, name: str) -> "PixelFormat":
        """Look up a format by value ("Grayscale8") or member name, ignoring case."""
        key = name.strip().lower()
        for pixel_format in cls:
            if key in (pixel_format.value.lower(), pixel_format.name.lower()):
                return pixel_format
        raise ValueError(f"Unrecognised pixel format: {name}")


@dataclass
class FrameFormat:
    """Frame dimensions and pixel format."""
    width: int
    height: int
    pixel_format: PixelFormat = PixelFormat.GRAYSCALE8


class Framebuffer:
    """
    Base framebuffer.

    Subclasses set `pixel_format` and `dtype` and implement `_shape()` and
    `_fill()`; the base class handles allocation, clamping and raw I/O.
    """

    pixel_format = PixelFormat.NULL
    dtype = np.dtype(np.uint8)

    def __init__(self, width: int = -1, height: int = -1):
        self.width = -1
        self.height = -1
        self._data: Optional[np.ndarray] = None
        if width != -1 and height != -1:
            self.new(width, height)

    def new(self, width: int = -1, height: int = -1):
        """
        Allocate a blank buffer.

        Args:
            width: New width in pixels (-1 keeps the current size)
            height: New height in pixels (-1 keeps the current size)
        """
        if width != -1 and height != -1:
            self.width = width
            self.height = height
        if self.width < 0 or self.height < 0:
            raise ValueError("Framebuffer size has not been set")
        self._data = np.zeros(self._shape(), dtype=self.dtype)
        self._fill(0, 0, self.width, self.height, 0.0)

    @property
    def buffer(self) -> np.ndarray:
        """Underlying pixel array."""
        return self._data

    @property
    def frame_size(self) -> int:
        """Size of one raw frame in bytes."""
        return self._data.nbytes

    def tobytes(self) -> bytes:
        return self._data.tobytes()

    def load(self, data: bytes):
        """Replace the frame with raw bytes in this pixel format."""
        if len(data) != self.frame_size:
            raise ValueError(f"Frame must be {self.frame_size} bytes, got {len(data)}")
        self._data = np.frombuffer(data, dtype=self.dtype).reshape(self._shape()).copy()

    def set_pixel_value(self, x: int, y: int, v: float):
        """Set one pixel to normalized intensity v."""
        self._fill(x, y, 1, 1, v)

    def draw_rectangle(self, x: int, y: int, w: int, h: int, v: float):
        """Fill a rectangle with normalized intensity v, clipped to the frame."""
        x = min(max(x, 0), self.width)
        y = min(max(y, 0), self.height)
        w = min(max(w, 0), self.width - x)
        h = min(max(h, 0), self.height - y)
        if w > 0 and h > 0:
            self._fill(x, y, w, h, v)

    def _shape(self) -> tuple:
        raise NotImplementedError

    def _fill(self, x: int, y: int, w: int, h: int, v: float):
        raise NotImplementedError

    def _sample(self, v: float) -> int:
        """Convert a normalized intensity to a sample value of this format."""
        top = np.iinfo(self.dtype).max
        return int(min(max(v * (top + 1), 0), top))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"


class Grayscale8Framebuffer(Framebuffer):
    """One 8-bit luma sample per pixel."""

    pixel_format = PixelFormat.GRAYSCALE8
    dtype = np.dtype(np.uint8)

    def _shape(self) -> tuple:
        return (self.height, self.width)

    def _fill(self, x, y, w, h, v):
        self._data[y:y + h, x:x + w] = self._sample(v)


class Grayscale16Framebuffer(Grayscale8Framebuffer):
    """One 16-bit little-endian luma sample per pixel."""

    pixel_format = PixelFormat.GRAYSCALE16
    dtype = np.dtype("<u2")


class R8G8B8Framebuffer(Framebuffer):
    """Packed RGB, 8 bits per channel. All channels carry the same value."""

    pixel_format = PixelFormat.R8G8B8
    dtype = np.dtype(np.uint8)

    def _shape(self) -> tuple:
        return (self.height, self.width, 3)

    def _fill(self, x, y, w, h, v):
        self._data[y:y + h, x:x + w, :] = self._sample(v)


class R16G16B16Framebuffer(R8G8B8Framebuffer):
    """Packed RGB, 16 bits per channel (little-endian)."""

    pixel_format = PixelFormat.R16G16B16
    dtype = np.dtype("<u2")


class YUV444P8Framebuffer(Framebuffer):
    """
    Planar Y, U, V at full resolution, 8 bits per sample.

    Luma carries the intensity; chroma is kept at the neutral midpoint so the
    line stays grey.
    """

    pixel_format = PixelFormat.YUV444P8
    dtype = np.dtype(np.uint8)

    def _shape(self) -> tuple:
        return (3, self.height, self.width)

    def _fill(self, x, y, w, h, v):
        neutral = (np.iinfo(self.dtype).max + 1) // 2
        self._data[0, y:y + h, x:x + w] = self._sample(v)
        self._data[1:, y:y + h, x:x + w] = neutral


class YUV444P16Framebuffer(YUV444P8Framebuffer):
    """Planar Y, U, V, 16 bits per sample (little-endian)."""

    pixel_format = PixelFormat.YUV444P16
    dtype = np.dtype("<u2")


class BinaryFramebuffer(Framebuffer):
    """
    One bit per pixel.

    Rows are packed MSB first and padded to a whole byte. A pixel is set when
    its intensity is at least 0.5.
    """

    pixel_format = PixelFormat.BINARY
    dtype = np.dtype(np.bool_)
    inverted = False

    def _shape(self) -> tuple:
        return (self.height, self.width)

    def _fill(self, x, y, w, h, v):
        self._data[y:y + h, x:x + w] = v >= 0.5

    @property
    def frame_size(self) -> int:
        return self.height * ((self.width + 7) // 8)

    def tobytes(self) -> bytes:
        bits = ~self._data if self.inverted else self._data
        return np.packbits(bits, axis=1).tobytes()

    def load(self, data: bytes):
        if len(data) != self.frame_size:
            raise ValueError(f"Frame must be {self.frame_size} bytes, got {len(data)}")
        packed = np.frombuffer(data, dtype=np.uint8).reshape(self.height, -1)
        bits = np.unpackbits(packed, axis=1, count=self.width).astype(np.bool_)
        self._data = ~bits if self.inverted else bits


class BinaryInvertedFramebuffer(BinaryFramebuffer):
    """One bit per pixel, stored inverted (0 = white)."""

    pixel_format = PixelFormat.BINARY_INVERTED
    inverted = True


_FRAMEBUFFERS = {
    cls.pixel_format: cls
    for cls in (
        BinaryFramebuffer,
        BinaryInvertedFramebuffer,
        Grayscale8Framebuffer,
        Grayscale16Framebuffer,
        R8G8B8Framebuffer,
        R16G16B16Framebuffer,
        YUV444P8Framebuffer,
        YUV444P16Framebuffer,
    )
}


def create_framebuffer(frame_format: FrameFormat) -> Framebuffer:
    """
    Create and allocate a framebuffer for a frame format.

    Raises:
        UnsupportedPixelFormatError: No framebuffer for the pixel format
    """
    cls = _FRAMEBUFFERS.get(frame_format.pixel_format)
    if cls is None:
        raise UnsupportedPixelFormatError(
            f"Pixel format not implemented: {frame_format.pixel_format.value}"
        )
    _logger.debug(
        f"Creating {cls.__name__} {frame_format.width}x{frame_format.height}"
    )
    return cls(frame_format.width, frame_format.height)
