"""
VITC Line Structure

VITC uses 90 bits per field, split into nine 10-bit groups. Each group starts
with a synchronisation bit (always 1); bit 0 of a digit is its least
significant bit.

- Bit 0: Sync
- Bits 2-5: Frame units (BCD, 0-9)
- Bits 6-9: User bits field 1
- Bit 10: Sync
- Bits 12-13: Frame tens (BCD, 0-2)
- Bit 14: Drop frame flag
- Bit 15: Colour frame flag
- Bits 16-19: User bits field 2
- Bit 20: Sync
- Bits 22-25: Seconds units (BCD, 0-9)
- Bits 26-29: User bits field 3
- Bit 30: Sync
- Bits 32-34: Seconds tens (BCD, 0-5)
- Bit 35: NTSC second field flag
- Bits 36-39: User bits field 4
- Bit 40: Sync
- Bits 42-45: Minutes units (BCD, 0-9)
- Bits 46-49: User bits field 5
- Bit 50: Sync
- Bits 52-54: Minutes tens (BCD, 0-5)
- Bit 55: User bits format flag
- Bits 56-59: User bits field 6
- Bit 60: Sync
- Bits 62-65: Hours units (BCD, 0-9)
- Bits 66-69: User bits field 7
- Bit 70: Sync
- Bits 72-73: Hours tens (BCD, 0-2)
- Bit 74: External clock flag (BGF1)
- Bit 75: PAL second field flag
- Bits 76-79: User bits field 8
- Bit 80: Sync
- Bit 81: Unused (always 0)
- Bits 82-89: Checksum

Bits 1, 11, 21, ... 71 follow each sync bit and are always 0.
"""

from dataclasses import dataclass
from typing import Optional

from . import LINE_BITS, SYNC_BITS, CHECKSUM_START


@dataclass
class LineFlags:
    """Single-bit markers carried by a VITC line."""
    frame_drop: bool = False  # bit 14
    colour_framing: bool = False  # bit 15
    ntsc_second_field: bool = False  # bit 35
    user_bits_format: bool = False  # bit 55
    external_clock: bool = False  # bit 74
    pal_second_field: bool = False  # bit 75


class DiagonalChecksum:
    """
    VITC checksum (bits 82-89).

    Each checksum bit is the even parity of every eighth bit of the line
    below bit 82, so bit 82+k covers bits (k+2) % 8, (k+2) % 8 + 8, ...
    Bits 88 and 89 cover eleven bits each (including sync bits), the others
    cover ten.
    """

    TAPS = {
        CHECKSUM_START + k: tuple(range((k + 2) % 8, CHECKSUM_START, 8))
        for k in range(8)
    }

    @classmethod
    def compute(cls, bits: list[int]) -> list[int]:
        """Compute the 8 checksum bits from bits 0-81."""
        checksum = []
        for target in range(CHECKSUM_START, LINE_BITS):
            parity = 0
            for i in cls.TAPS[target]:
                parity ^= bits[i]
            checksum.append(parity)
        return checksum

    @classmethod
    def apply(cls, bits: list[int]) -> None:
        """Write the checksum into bits 82-89 of a line, in place."""
        bits[CHECKSUM_START:LINE_BITS] = cls.compute(bits)

    @classmethod
    def verify(cls, bits) -> bool:
        """Check the checksum bits of a complete line."""
        return list(bits[CHECKSUM_START:LINE_BITS]) == cls.compute(bits)


def _set_digit(bits: list[int], base: int, value: int, width: int) -> None:
    """Write the low `width` bits of `value` starting at `base` (LSB first)."""
    for i in range(width):
        bits[base + i] = (value >> i) & 1


def encode_90bit(
    hours: int,
    minutes: int,
    seconds: int,
    frames: int,
    flags: Optional[LineFlags] = None,
    user_bits: int = 0,
) -> list[int]:
    """
    Encode a timecode to a 90-bit VITC line.

    Values are not validated. Each field is split into units (value % 10)
    and tens (value // 10); tens bits that do not fit their slot are dropped.

    Args:
        hours: Hours (0-23)
        minutes: Minutes (0-59)
        seconds: Seconds (0-59)
        frames: Frames (0 to fps - 1)
        flags: Flag bits (default: all clear)
        user_bits: 32-bit user payload, user bit n at bit n

    Returns:
        List of 90 bits (0 or 1), checksum included
    """
    if flags is None:
        flags = LineFlags()

    bits = [0] * LINE_BITS

    for i in SYNC_BITS:
        bits[i] = 1

    # Frames (bits 2-5 units, 12-13 tens)
    _set_digit(bits, 2, frames % 10, 4)
    _set_digit(bits, 12, frames // 10, 2)
    bits[14] = int(flags.frame_drop)
    bits[15] = int(flags.colour_framing)

    # Seconds (bits 22-25 units, 32-34 tens)
    _set_digit(bits, 22, seconds % 10, 4)
    _set_digit(bits, 32, seconds // 10, 3)
    bits[35] = int(flags.ntsc_second_field)

    # Minutes (bits 42-45 units, 52-54 tens)
    _set_digit(bits, 42, minutes % 10, 4)
    _set_digit(bits, 52, minutes // 10, 3)
    bits[55] = int(flags.user_bits_format)

    # Hours (bits 62-65 units, 72-73 tens)
    _set_digit(bits, 62, hours % 10, 4)
    _set_digit(bits, 72, hours // 10, 2)
    bits[74] = int(flags.external_clock)
    bits[75] = int(flags.pal_second_field)

    # User bits: nibble k goes to bits 10k+6 .. 10k+9
    for k in range(8):
        _set_digit(bits, 10 * k + 6, (user_bits >> (4 * k)) & 0xF, 4)

    # Checksum goes last, it covers every bit above
    DiagonalChecksum.apply(bits)

    return bits


def line_to_bytes(bits) -> bytes:
    """Serialize a line as one byte per bit: 0xFF for 1, 0x00 for 0."""
    return bytes(0xFF if bit else 0x00 for bit in bits)


def user_bits_from_bytes(data: bytes) -> int:
    """
    Pack 4 bytes into a 32-bit user payload.

    User bit n is bit n % 8 of byte n // 8, so the first byte fills
    user bits fields 1 and 2 (low nibble first).
    """
    if len(data) != 4:
        raise ValueError(f"User bits must be 4 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def user_bits_to_bytes(user_bits: int) -> bytes:
    """Inverse of user_bits_from_bytes."""
    return user_bits.to_bytes(4, "little")
