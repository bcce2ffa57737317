"""
VITC Encoder

Drives a VITCLine frame by frame and writes the result in one of two modes:
- Generator: VITC lines drawn onto blank frames (or raw 90-byte line records)
- Embedder: VITC lines drawn over frames read from an input stream

Frames are raw, headerless pixel data, so the output can be piped straight
into tools such as ffmpeg (-f rawvideo).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Optional, Union

from . import LINE_BITS, DEFAULT_FPS, DEFAULT_FRAME_WIDTH, DEFAULT_FRAME_HEIGHT
from .codec import VITCLine
from .events import EventSchedule, parse_event
from .framebuffer import (
    FrameFormat,
    PixelFormat,
    UnsupportedPixelFormatError,
    create_framebuffer,
)
from .timecode import FrameRateType, is_dropped_timecode, parse_timecode, timecode_to_frames

# Module-level logger
_logger = logging.getLogger(__name__)


class EndOfStreamError(EOFError):
    """Input stream ended before the requested frames were read."""


def read_frame(stream: BinaryIO, size: int) -> Optional[bytes]:
    """
    Read exactly one frame from a stream.

    Returns:
        The frame, or None if the stream ended before any byte of it

    Raises:
        EndOfStreamError: The stream ended in the middle of the frame
    """
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)

    if remaining == size:
        return None
    if remaining > 0:
        raise EndOfStreamError(f"Truncated frame: got {size - remaining} of {size} bytes")
    return b"".join(chunks)


class Encoder:
    """
    VITC frame encoder.

    Each frame: apply scheduled events, copy the input frame (embedder mode),
    draw the first field's line, switch field, draw the second field's line,
    write, then step the timecode.
    """

    def __init__(
        self,
        line: Optional[VITCLine] = None,
        frame_format: Optional[FrameFormat] = None,
        bit_width: Optional[int] = None,
        raw: bool = False,
        events: Optional[EventSchedule] = None,
    ):
        """
        Initialize encoder.

        Args:
            line: VITC line codec (default: 25 fps, 00:00:00:00)
            frame_format: Output frame format (default: 90x2 Grayscale8)
            bit_width: Pixels per VITC bit (default: frame width // 90)
            raw: Write 90-byte line records instead of frames
            events: Scheduled events

        Raises:
            UnsupportedPixelFormatError: No framebuffer for the pixel format
        """
        self.line = line if line is not None else VITCLine()
        self.frame_format = frame_format or FrameFormat(
            DEFAULT_FRAME_WIDTH, DEFAULT_FRAME_HEIGHT, PixelFormat.GRAYSCALE8
        )
        self.raw = raw
        self.events = events if events is not None else EventSchedule()

        if bit_width is None:
            bit_width = self.frame_format.width // LINE_BITS
        self.bit_width = bit_width
        self.bit_height = 1

        # Raw mode needs no framebuffer
        self.framebuffer = None if raw else create_framebuffer(self.frame_format)

    def _margins(self, embed: bool) -> tuple[int, int]:
        """Left and top margin of the VITC line."""
        left = max(0, (self.frame_format.width - LINE_BITS * self.bit_width) // 2)
        if embed:
            top = 1
        else:
            top = max(0, self.frame_format.height // 2 - self.bit_height)
        return left, top

    def _draw_line(self, bits, left: int, top: int):
        for i, bit in enumerate(bits):
            self.framebuffer.draw_rectangle(
                left + i * self.bit_width,
                top,
                self.bit_width,
                self.bit_height,
                1.0 if bit else 0.0,
            )

    def render_frame(self, input_frame: Optional[bytes] = None) -> bytes:
        """
        Render the current frame (both fields) without stepping the timecode.

        Args:
            input_frame: Raw input frame to draw over (embedder mode)

        Returns:
            Raw frame bytes
        """
        self.events.apply(self.line)

        embed = input_frame is not None
        left, top = self._margins(embed)

        if embed:
            self.framebuffer.load(input_frame)
            # Blank the VITC rows and the margin above them
            self.framebuffer.draw_rectangle(
                0, 0, self.frame_format.width, 2 * top + 2 * self.bit_height, 0.0
            )
        else:
            self.framebuffer.new()

        self._draw_line(self.line.generate(), left, top)
        self.line.switch_field_type()
        self._draw_line(self.line.generate(), left, top + self.bit_height)

        return self.framebuffer.tobytes()

    def render_raw(self) -> bytes:
        """
        Render the current frame as raw line records (0xFF / 0x00 per bit).

        One 90-byte record per field: two when interlaced, one otherwise.
        """
        self.events.apply(self.line)

        self.line.generate()
        data = self.line.to_bytes()
        if self.line.interlaced:
            self.line.switch_field_type()
            self.line.generate()
            data += self.line.to_bytes()
        return data

    def generate(
        self,
        output: BinaryIO,
        input_stream: Optional[BinaryIO] = None,
        total_frames: Optional[int] = None,
    ) -> int:
        """
        Encode frames to an output stream.

        Args:
            output: Binary output stream
            input_stream: Binary input stream of raw frames (embedder mode)
            total_frames: Number of frames to write (None: until the input
                ends, or forever without input)

        Returns:
            Number of frames written

        Raises:
            EndOfStreamError: Input ended before total_frames were read, or in
                the middle of a frame
        """
        if self.raw and input_stream is not None:
            _logger.warning("Raw output ignores the input stream")
            input_stream = None

        count = 0
        while total_frames is None or count < total_frames:
            if input_stream is not None:
                input_frame = read_frame(input_stream, self.framebuffer.frame_size)
                if input_frame is None:
                    if total_frames is not None:
                        raise EndOfStreamError(
                            f"Input ended after {count} of {total_frames} frames"
                        )
                    _logger.info(f"Input ended after {count} frames")
                    break
                data = self.render_frame(input_frame)
            elif self.raw:
                data = self.render_raw()
            else:
                data = self.render_frame()

            output.write(data)
            _logger.debug(f"Frame {count}: {self.line}")

            self.line.step_one_frame()
            count += 1

        output.flush()
        return count

    def generate_to_file(
        self,
        output_path: Union[str, Path, None] = None,
        input_path: Union[str, Path, None] = None,
        total_frames: Optional[int] = None,
    ) -> int:
        """
        Encode frames to a file.

        Args:
            output_path: Output file path ("-" or None: standard output)
            input_path: Input file path ("-": standard input, None: generator mode)
            total_frames: Number of frames to write

        Returns:
            Number of frames written
        """
        input_file = None
        output_file = None
        try:
            if input_path is not None:
                if str(input_path) == "-":
                    input_file = sys.stdin.buffer
                else:
                    input_file = open(input_path, "rb")

            if output_path is None or str(output_path) == "-":
                output = sys.stdout.buffer
            else:
                output_file = open(output_path, "wb")
                output = output_file

            return self.generate(output, input_file, total_frames)
        finally:
            if input_file is not None and input_file is not sys.stdin.buffer:
                input_file.close()
            if output_file is not None:
                output_file.close()


def parse_size(size_str: str) -> tuple[int, int]:
    """Parse a frame size such as "720x576"."""
    width, sep, height = size_str.lower().partition("x")
    if not sep:
        raise ValueError(f"Invalid frame size: {size_str}")
    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive: {size_str}")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate VITC (Vertical Interval Time Code) lines as raw video frames.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -t 00:00:10:00 -o vitc.raw                    # 10 s of 90x2 Grayscale8 frames
  %(prog)s -fps 30 -d -I -tc 01:00:00:00 -n 300 --raw    # NTSC drop-frame line records
  %(prog)s -i in.yuv -s 720x576 -f YUV444P8 -I -o out.yuv  # burn VITC into a PAL video
  %(prog)s -n 100 -ev 00:00:02:00 UserBits=TEST          # set user bits after 2 s

Event types (-ev HH:MM:SS:FF TYPE[=DATA]):
  UserBits=ABCD              set user bits to 4 ASCII characters
  UserBitsClear              clear user bits
  Timecode=HH:MM:SS:FF       jump to a timecode
  Flags=name[,name...]       colour_framing, user_bits_format, external_clock
  FPS=N                      change frame rate

Pixel formats:
  Binary, BinaryInverted, Grayscale8, Grayscale16, R8G8B8, R16G16B16,
  YUV444P8, YUV444P16

Invalid option values are reported and the default is used instead.
        """,
    )
    parser.add_argument("-o", "--output", type=str, default=None,
                        help="Output file path (default: standard output)")
    parser.add_argument("-i", "--input", type=str, default=None,
                        help="Input file of raw frames, '-' for standard input (enables embedder mode)")
    parser.add_argument("-f", "--pixel-format", type=str, default=None,
                        help="Pixel format (default: Grayscale8)")
    parser.add_argument("-s", "--size", type=str, default=None,
                        help=f"Frame size WxH (default: {DEFAULT_FRAME_WIDTH}x{DEFAULT_FRAME_HEIGHT})")
    parser.add_argument("--bit-width", type=str, default=None,
                        help="Pixels per VITC bit (default: frame width / 90)")
    parser.add_argument("-fps", "--framerate", type=str, default=None,
                        help=f"Frame rate: 24, 25 or 30 (default: {DEFAULT_FPS})")
    parser.add_argument("-tc", "--timecode", type=str, default=None,
                        help="Initial timecode HH:MM:SS:FF (default: 00:00:00:00)")
    parser.add_argument("-t", "--length", type=str, default=None,
                        help="Duration HH:MM:SS:FF")
    parser.add_argument("-n", "--frames", type=str, default=None,
                        help="Number of frames (overrides --length)")
    parser.add_argument("-ev", "--event", nargs=2, action="append", default=[],
                        metavar=("TIME", "TYPE[=DATA]"),
                        help="Scheduled event (repeatable)")
    parser.add_argument("-I", "--interlaced", action="store_true",
                        help="Interlaced video (sets second field bits)")
    parser.add_argument("-d", "--drop-frames", action="store_true",
                        help="Drop-frame timecode (NTSC only)")
    parser.add_argument("--raw", action="store_true",
                        help="Write 90-byte line records (0xFF/0x00 per bit) instead of frames")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose output with detailed logging")
    return parser


def main(argv: Optional[list[str]] = None):
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    for arg in unknown:
        _logger.warning(f"Unrecognized argument: {arg}")

    # Invalid values fall back to the default, they never abort the run
    line = VITCLine(drop_frame=args.drop_frames, interlaced=args.interlaced)

    if args.framerate is not None:
        try:
            line.fps = int(args.framerate)
        except ValueError as e:
            _logger.warning(f"Unable to parse frame rate '{args.framerate}': {e}")

    if args.timecode is not None:
        try:
            line.set_timecode(*parse_timecode(args.timecode))
        except ValueError as e:
            _logger.warning(f"Unable to parse initial timecode '{args.timecode}': {e}")

    total_frames = None
    if args.length is not None:
        try:
            total_frames = timecode_to_frames(*parse_timecode(args.length), line.fps)
        except ValueError as e:
            _logger.warning(f"Unable to parse duration '{args.length}': {e}")
    if args.frames is not None:
        try:
            frames = int(args.frames)
            if frames < 0:
                raise ValueError("frame count cannot be negative")
            total_frames = frames
        except ValueError as e:
            _logger.warning(f"Unable to parse frame count '{args.frames}': {e}")

    width, height = DEFAULT_FRAME_WIDTH, DEFAULT_FRAME_HEIGHT
    if args.size is not None:
        try:
            width, height = parse_size(args.size)
        except ValueError as e:
            _logger.warning(f"Unable to parse frame size '{args.size}': {e}")

    pixel_format = PixelFormat.GRAYSCALE8
    if args.pixel_format is not None:
        try:
            pixel_format = PixelFormat.from_name(args.pixel_format)
        except ValueError as e:
            _logger.warning(str(e))

    bit_width = None
    if args.bit_width is not None:
        try:
            bit_width = int(args.bit_width)
            if bit_width <= 0:
                raise ValueError("bit width must be positive")
        except ValueError as e:
            _logger.warning(f"Unable to parse bit width '{args.bit_width}': {e}")
            bit_width = None

    events = EventSchedule()
    for when, spec in args.event:
        try:
            frame, event = parse_event(when, spec, line.fps)
        except ValueError as e:
            _logger.warning(f"Unable to parse event '{when} {spec}': {e}")
            continue
        if line.drop_frame and line.frame_rate_type == FrameRateType.NTSC:
            if is_dropped_timecode(*parse_timecode(when)):
                _logger.warning(f"Event at {when} falls on a dropped frame and will never fire")
        events.add(frame, event)

    frame_format = FrameFormat(width, height, pixel_format)
    try:
        encoder = Encoder(
            line=line,
            frame_format=frame_format,
            bit_width=bit_width,
            raw=args.raw,
            events=events,
        )
    except UnsupportedPixelFormatError as e:
        _logger.error(str(e))
        sys.exit(1)

    mode = "Embedder" if args.input and not args.raw else "Generator"
    output_kind = "raw lines" if args.raw else f"{width}x{height} {pixel_format.value}"
    _logger.info(f"Mode is {mode}, {output_kind}")
    _logger.info(f"Input is '{args.input or '<none>'}', output is '{args.output or '-'}'")
    _logger.info(
        f"{line.fps} fps ({line.frame_rate_type.name if line.frame_rate_type else 'non-standard'}) "
        f"drop={line.drop_frame} interlaced={line.interlaced} start={line}"
    )
    if len(events):
        _logger.info(f"{len(events)} event(s) scheduled")

    try:
        count = encoder.generate_to_file(
            output_path=args.output,
            input_path=args.input,
            total_frames=total_frames,
        )
    except BrokenPipeError:
        # Reader went away (e.g. piped into head)
        _logger.debug("Output closed by reader")
        return
    except EndOfStreamError as e:
        _logger.error(f"End of input stream: {e}")
        sys.exit(1)
    except OSError as e:
        _logger.error(f"I/O error: {e}")
        sys.exit(1)

    _logger.info(f"Wrote {count} frames, ended at {line}")


if __name__ == "__main__":
    main()
