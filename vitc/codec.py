"""
VITC line codec.

Combines the timecode clock, user bits and flags into one VITC line per call
to generate(). Each output channel owns its own VITCLine.
"""

from typing import Optional

from . import DEFAULT_FPS
from .timecode import FrameRateType, TimecodeClock
from .vitc_line import (
    LineFlags,
    encode_90bit,
    line_to_bytes,
    user_bits_from_bytes,
    user_bits_to_bytes,
)


class VITCLine:
    """
    VITC line generator.

    Typical use, once per frame:

        line.generate()          # first field
        line.switch_field_type()
        line.generate()          # second field (interlaced)
        line.step_one_frame()
    """

    def __init__(
        self,
        fps: int = DEFAULT_FPS,
        drop_frame: bool = False,
        interlaced: bool = False,
    ):
        """
        Initialize codec at 00:00:00:00 with empty user bits.

        Args:
            fps: Integer frame rate (24, 25 or 30)
            drop_frame: Enable drop-frame timecode (NTSC only)
            interlaced: Enable second field flags
        """
        self.clock = TimecodeClock(fps=fps, drop_frame=drop_frame, interlaced=interlaced)
        self._user_bits = 0

        # Caller-set flags
        self.colour_framing = False  # bit 15
        self.user_bits_format = False  # bit 55
        self.external_clock = False  # bit 74

        self._flags = LineFlags()
        self._result: tuple[int, ...] = ()

    # Timecode state, delegated to the clock

    @property
    def hours(self) -> int:
        return self.clock.hours

    @hours.setter
    def hours(self, value: int):
        self.clock.hours = value

    @property
    def minutes(self) -> int:
        return self.clock.minutes

    @minutes.setter
    def minutes(self, value: int):
        self.clock.minutes = value

    @property
    def seconds(self) -> int:
        return self.clock.seconds

    @seconds.setter
    def seconds(self, value: int):
        self.clock.seconds = value

    @property
    def frames(self) -> int:
        return self.clock.frames

    @frames.setter
    def frames(self, value: int):
        self.clock.frames = value

    @property
    def fps(self) -> int:
        return self.clock.fps

    @fps.setter
    def fps(self, value: int):
        self.clock.fps = value

    @property
    def current_frame(self) -> int:
        return self.clock.current_frame

    @current_frame.setter
    def current_frame(self, value: int):
        self.clock.current_frame = value

    @property
    def frame_rate_type(self) -> Optional[FrameRateType]:
        return self.clock.frame_rate_type

    @property
    def drop_frame(self) -> bool:
        return self.clock.drop_frame

    @drop_frame.setter
    def drop_frame(self, value: bool):
        self.clock.drop_frame = value

    @property
    def interlaced(self) -> bool:
        return self.clock.interlaced

    @interlaced.setter
    def interlaced(self, value: bool):
        self.clock.interlaced = value

    @property
    def is_second_field(self) -> bool:
        return self.clock.is_second_field

    def set_timecode(self, hours: int, minutes: int, seconds: int, frames: int):
        self.clock.set_timecode(hours, minutes, seconds, frames)

    def step_one_frame(self):
        self.clock.step_one_frame()

    def switch_field_type(self):
        self.clock.switch_field_type()

    # User bits

    @property
    def user_bits(self) -> int:
        """32-bit user payload (user bit n is bit n)."""
        return self._user_bits

    @user_bits.setter
    def user_bits(self, value: int):
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError("user_bits must be 32-bit unsigned")
        self._user_bits = value

    def set_user_bits(self, data: bytes):
        """Set user bits from 4 bytes (first byte in user bits fields 1-2)."""
        self._user_bits = user_bits_from_bytes(data)

    def get_user_bits(self) -> bytes:
        return user_bits_to_bytes(self._user_bits)

    def clear_user_bits(self):
        self._user_bits = 0

    # Line generation

    @property
    def flags(self) -> LineFlags:
        """Flags used by the last generate() call."""
        return self._flags

    @property
    def result(self) -> tuple[int, ...]:
        """Last generated line (empty before the first generate() call)."""
        return self._result

    def _build_flags(self) -> LineFlags:
        rate = self.clock.frame_rate_type
        second_field = self.clock.is_second_field
        return LineFlags(
            frame_drop=self.clock.drop_frame and rate == FrameRateType.NTSC,
            colour_framing=self.colour_framing,
            ntsc_second_field=second_field and rate == FrameRateType.NTSC,
            user_bits_format=self.user_bits_format,
            external_clock=self.external_clock,
            pal_second_field=second_field and rate == FrameRateType.PAL,
        )

    def generate(self) -> tuple[int, ...]:
        """
        Generate the VITC line for the current state.

        Returns:
            Tuple of 90 bits (0 or 1), also kept in `result`
        """
        self._flags = self._build_flags()
        bits = encode_90bit(
            self.clock.hours,
            self.clock.minutes,
            self.clock.seconds,
            self.clock.frames,
            self._flags,
            self._user_bits,
        )
        self._result = tuple(bits)
        return self._result

    def to_bytes(self) -> bytes:
        """Last generated line as 90 bytes (0xFF / 0x00)."""
        return line_to_bytes(self._result)

    def __str__(self) -> str:
        return str(self.clock)

    def __repr__(self) -> str:
        return (
            f"VITCLine({self.clock}, fps={self.fps}, "
            f"user_bits=0x{self._user_bits:08X})"
        )
