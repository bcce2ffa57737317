"""
Scripted events applied to a VITC line at given frames.

Command-line syntax:

    HH:MM:SS:FF TYPE[=DATA]

    00:00:10:00 UserBits=TEST      # set user bits to the ASCII bytes "TEST"
    00:00:20:00 UserBitsClear      # clear user bits
    00:00:30:00 Timecode=10:00:00:00
    00:00:40:00 Flags=colour_framing,external_clock
    00:00:50:00 FPS=30

Event times are converted to absolute frame numbers with the frame rate
in effect when the event is parsed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .codec import VITCLine
from .timecode import parse_timecode, timecode_to_frames

_logger = logging.getLogger(__name__)

# Flag names accepted by Flags events
SETTABLE_FLAGS = ("colour_framing", "user_bits_format", "external_clock")


class EventType(Enum):
    USER_BITS = "UserBits"
    TIMECODE = "Timecode"
    USER_BITS_CLEAR = "UserBitsClear"
    FLAGS = "Flags"
    FPS = "FPS"

    @classmethod
    def from_name(cls, name: str) -> "EventType":
        key = name.strip().lower()
        for event_type in cls:
            if key in (event_type.value.lower(), event_type.name.lower()):
                return event_type
        raise ValueError(f"Unrecognised event type: {name}")


@dataclass
class Event:
    """A single mutation of a VITC line."""
    event_type: EventType
    data: Optional[str] = None

    def __post_init__(self):
        """Validate the payload (raises ValueError)."""
        if self.event_type == EventType.USER_BITS:
            if self.data is None or len(self.data) < 4:
                raise ValueError(f"UserBits event needs 4 ASCII characters (got {self.data!r})")
            self.data[:4].encode("ascii")
        elif self.event_type == EventType.TIMECODE:
            if self.data is None:
                raise ValueError("Timecode event needs a timecode")
            parse_timecode(self.data)
        elif self.event_type == EventType.FLAGS:
            for name in self._flag_names():
                if name not in SETTABLE_FLAGS:
                    raise ValueError(f"Unrecognised flag: {name}")
        elif self.event_type == EventType.FPS:
            if self.data is None or int(self.data) <= 0:
                raise ValueError(f"FPS event needs a positive frame rate (got {self.data!r})")

    def _flag_names(self) -> list[str]:
        if not self.data:
            return []
        return [name.strip().lower() for name in self.data.split(",") if name.strip()]

    def apply(self, line: VITCLine):
        """Apply this event to a line."""
        if self.event_type == EventType.USER_BITS:
            line.set_user_bits(self.data[:4].encode("ascii"))
        elif self.event_type == EventType.TIMECODE:
            line.set_timecode(*parse_timecode(self.data))
        elif self.event_type == EventType.USER_BITS_CLEAR:
            line.clear_user_bits()
        elif self.event_type == EventType.FLAGS:
            names = self._flag_names()
            for name in SETTABLE_FLAGS:
                setattr(line, name, name in names)
        elif self.event_type == EventType.FPS:
            line.fps = int(self.data)

    def __str__(self) -> str:
        if self.data is None:
            return self.event_type.value
        return f"{self.event_type.value}={self.data}"


def parse_event(when: str, spec: str, fps: int) -> tuple[int, Event]:
    """
    Parse a command-line event.

    Args:
        when: Event time (HH:MM:SS:FF)
        spec: Event type and optional data (TYPE or TYPE=DATA)
        fps: Frame rate used to convert the event time to a frame number

    Returns:
        Tuple of (absolute frame number, Event)

    Raises:
        ValueError: Malformed time, type or data
    """
    frame = timecode_to_frames(*parse_timecode(when), fps)
    name, _, data = spec.partition("=")
    event_type = EventType.from_name(name)
    return frame, Event(event_type, data.strip('"') if data else None)


class EventSchedule:
    """Events keyed by absolute frame number, at most one per frame."""

    def __init__(self):
        self._events: dict[int, Event] = {}
        self._applied: set[int] = set()

    def add(self, frame: int, event: Event):
        """Schedule an event, replacing any event already at that frame."""
        if frame in self._events:
            _logger.warning(f"Replacing event at frame {frame}: {self._events[frame]} -> {event}")
        self._events[frame] = event

    def get(self, frame: int) -> Optional[Event]:
        return self._events.get(frame)

    def apply(self, line: VITCLine) -> Optional[Event]:
        """
        Apply the event scheduled for the line's current frame, if any.

        Each scheduled event fires at most once until reset().

        Returns:
            The applied event, or None
        """
        frame = line.current_frame
        if frame in self._applied:
            return None
        event = self._events.get(frame)
        if event is None:
            return None

        _logger.debug(f"Frame {frame} ({line}): applying {event}")
        event.apply(line)
        self._applied.add(frame)
        return event

    def reset(self):
        """Re-arm all events."""
        self._applied.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, frame: int) -> bool:
        return frame in self._events
