"""
VITC - Vertical Interval Time Code generator
Produces 90-bit VITC lines as raw byte streams or burned into video frames.
"""

__version__ = "0.1.0"

# Line structure
LINE_BITS = 90  # bits per VITC line (one line per field)
USER_BITS = 32  # 8 nibbles of user data
SYNC_BITS = (0, 10, 20, 30, 40, 50, 60, 70, 80)  # always 1, one per 10-bit group
CHECKSUM_START = 82  # bits 82-89

# Defaults
DEFAULT_FPS = 25  # PAL
DEFAULT_FRAME_WIDTH = 90  # one pixel per bit
DEFAULT_FRAME_HEIGHT = 2  # one row per field

from .vitc_line import LineFlags, DiagonalChecksum, encode_90bit, line_to_bytes
from .timecode import (
    FrameRateType,
    TimecodeClock,
    is_dropped_timecode,
    parse_timecode,
    timecode_to_frames,
)
from .codec import VITCLine
from .framebuffer import (
    PixelFormat,
    FrameFormat,
    Framebuffer,
    UnsupportedPixelFormatError,
    create_framebuffer,
)
from .events import EventType, Event, EventSchedule, parse_event
from .encoder import Encoder, EndOfStreamError

__all__ = [
    "LineFlags",
    "DiagonalChecksum",
    "encode_90bit",
    "line_to_bytes",
    "FrameRateType",
    "TimecodeClock",
    "is_dropped_timecode",
    "parse_timecode",
    "timecode_to_frames",
    "VITCLine",
    "PixelFormat",
    "FrameFormat",
    "Framebuffer",
    "UnsupportedPixelFormatError",
    "create_framebuffer",
    "EventType",
    "Event",
    "EventSchedule",
    "parse_event",
    "Encoder",
    "EndOfStreamError",
]
