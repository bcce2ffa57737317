"""
Timecode clock for VITC generation.

Keeps a running HH:MM:SS:FF timecode together with its absolute frame count.
Both views are updated together on every change.
"""

from enum import IntEnum
from typing import Optional

from . import DEFAULT_FPS


class FrameRateType(IntEnum):
    """Nominal frame rates. The value is the integer fps used for counting."""
    FILM = 24
    PAL = 25
    NTSC = 30  # 29.97 fps, counted as 30


def timecode_to_frames(hours: int, minutes: int, seconds: int, frames: int, fps: int) -> int:
    """Convert a timecode to an absolute frame count (no drop-frame compensation)."""
    return frames + seconds * fps + minutes * fps * 60 + hours * fps * 3600


def is_dropped_timecode(hours: int, minutes: int, seconds: int, frames: int) -> bool:
    """True if an NTSC drop-frame clock never shows this timecode."""
    return minutes % 10 != 0 and seconds == 0 and frames < 2


def parse_timecode(time_str: str) -> tuple:
    """
    Parse timecode string to hours, minutes, seconds, frames.

    Formats:
    - "01:02:03:04" -> HH:MM:SS:FF
    - "01:02:03;04" -> drop-frame notation
    - "01:02:03.04" -> alternative frame separator

    Returns:
        tuple: (hours, minutes, seconds, frames)
    """
    text = time_str.strip().replace(";", ":").replace(".", ":")
    parts = text.split(":")
    if len(parts) != 4:
        raise ValueError(f"Invalid timecode format: {time_str}")

    values = tuple(int(part) for part in parts)
    if any(value < 0 for value in values):
        raise ValueError(f"Timecode fields cannot be negative: {time_str}")
    return values


class TimecodeClock:
    """
    Running timecode with frame-rate, drop-frame and field awareness.

    Field setters store values as given, without range checks; only
    step_one_frame() wraps fields into range.
    """

    def __init__(
        self,
        fps: int = DEFAULT_FPS,
        drop_frame: bool = False,
        interlaced: bool = False,
    ):
        """
        Initialize clock at 00:00:00:00.

        Args:
            fps: Integer frame rate (24, 25 or 30 for standard VITC)
            drop_frame: Enable drop-frame counting (applies to NTSC only)
            interlaced: Enable second field switching
        """
        self._hours = 0
        self._minutes = 0
        self._seconds = 0
        self._frames = 0
        self._fps = fps
        self._current_frame = 0
        self._second_field = False

        self.drop_frame = drop_frame
        self.interlaced = interlaced

    def _update_time_data(self):
        """Derive timecode fields from the absolute frame count."""
        fps = self._fps
        self._frames = self._current_frame % fps
        self._seconds = (self._current_frame // fps) % 60
        self._minutes = (self._current_frame // fps // 60) % 60
        self._hours = (self._current_frame // fps // 3600) % 24

    def _update_frame_count(self):
        """Derive the absolute frame count from the timecode fields."""
        self._current_frame = timecode_to_frames(
            self._hours, self._minutes, self._seconds, self._frames, self._fps
        )

    @property
    def hours(self) -> int:
        return self._hours

    @hours.setter
    def hours(self, value: int):
        self._hours = value
        self._update_frame_count()

    @property
    def minutes(self) -> int:
        return self._minutes

    @minutes.setter
    def minutes(self, value: int):
        self._minutes = value
        self._update_frame_count()

    @property
    def seconds(self) -> int:
        return self._seconds

    @seconds.setter
    def seconds(self, value: int):
        self._seconds = value
        self._update_frame_count()

    @property
    def frames(self) -> int:
        return self._frames

    @frames.setter
    def frames(self, value: int):
        self._frames = value
        self._update_frame_count()

    @property
    def fps(self) -> int:
        """
        Frames per second.

        Changing it rescales the absolute frame count so the position in
        wall-clock time is kept. Values above 30 break VITC, and values above
        39 cannot be represented in the frame tens bits.
        """
        return self._fps

    @fps.setter
    def fps(self, value: int):
        if value <= 0:
            raise ValueError(f"fps must be positive (got {value})")
        self._current_frame = self._current_frame * value // self._fps
        self._fps = value
        self._update_time_data()

    @property
    def current_frame(self) -> int:
        """Absolute frame count."""
        return self._current_frame

    @current_frame.setter
    def current_frame(self, value: int):
        self._current_frame = value
        self._update_time_data()

    @property
    def frame_rate_type(self) -> Optional[FrameRateType]:
        """Rate type for the current fps, or None for non-standard rates."""
        try:
            return FrameRateType(self._fps)
        except ValueError:
            return None

    @property
    def is_second_field(self) -> bool:
        """True while the second (even) field of an interlaced frame is active."""
        return self._second_field

    def set_timecode(self, hours: int, minutes: int, seconds: int, frames: int):
        """Set all four timecode fields at once."""
        self._hours = hours
        self._minutes = minutes
        self._seconds = seconds
        self._frames = frames
        self._update_frame_count()

    def step_one_frame(self):
        """Advance the timecode by one frame and return to the first field."""
        self._frames += 1
        if self._frames >= self._fps:
            self._frames = 0
            self._seconds += 1
        if self._seconds > 59:
            self._seconds = 0
            self._minutes += 1
        if self._minutes > 59:
            self._minutes = 0
            self._hours += 1
        if self._hours > 23:
            self._hours = 0
        self._update_frame_count()

        # SMPTE drop-frame: frames 0 and 1 are skipped at the start of every
        # minute except minutes 00, 10, 20, 30, 40 and 50
        if self.drop_frame and self.frame_rate_type == FrameRateType.NTSC:
            if self._minutes % 10 != 0 and self._seconds == 0 and self._frames == 0:
                self.frames = 2

        self._second_field = False

    def switch_field_type(self):
        """Switch between first and second field (interlaced mode only)."""
        if self.interlaced:
            self._second_field = not self._second_field

    def __str__(self) -> str:
        """Format timecode as HH:MM:SS:FF (or HH:MM:SS;FF for drop-frame)."""
        separator = ";" if self.drop_frame else ":"
        return f"{self._hours:02d}:{self._minutes:02d}:{self._seconds:02d}{separator}{self._frames:02d}"

    def __repr__(self) -> str:
        return (
            f"TimecodeClock({self}, fps={self._fps}, "
            f"frame={self._current_frame}, second_field={self._second_field})"
        )
