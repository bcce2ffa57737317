"""
Tests for VITC line layout and checksum.
"""

import pytest

from vitc import LineFlags, DiagonalChecksum, encode_90bit, line_to_bytes, SYNC_BITS
from vitc.vitc_line import user_bits_from_bytes, user_bits_to_bytes


def read_field(bits, base, width):
    """Read a little-endian field of `width` bits starting at `base`."""
    return sum(bits[base + i] << i for i in range(width))


# 01:02:03:04 at 25 fps, no flags, no user bits
REFERENCE_ONES = {0, 4, 10, 20, 22, 23, 30, 40, 43, 50, 60, 62, 70, 80, 83, 84, 87, 88}
REFERENCE_LINE = [1 if i in REFERENCE_ONES else 0 for i in range(90)]


class TestLayout:
    """Test the 90-bit layout."""

    def test_length(self):
        assert len(encode_90bit(0, 0, 0, 0)) == 90

    def test_reference_vector(self):
        """01:02:03:04, PAL, no flags, no user bits."""
        assert encode_90bit(1, 2, 3, 4) == REFERENCE_LINE

    def test_zero_timecode(self):
        """Only sync bits (and the checksum bits they feed) are set."""
        bits = encode_90bit(0, 0, 0, 0)
        ones = {i for i, bit in enumerate(bits) if bit}
        # Sync bits 0, 40 and 80 feed bit 88; 10, 50 feed 82; 20, 60 feed 84; 30, 70 feed 86
        assert ones == set(SYNC_BITS) | {88}

    @pytest.mark.parametrize("hours,minutes,seconds,frames", [
        (0, 0, 0, 0),
        (23, 59, 59, 29),
        (12, 34, 56, 24),
        (9, 9, 9, 9),
        (10, 50, 40, 20),
    ])
    def test_sync_bits_always_set(self, hours, minutes, seconds, frames):
        flags = LineFlags(True, True, True, True, True, True)
        bits = encode_90bit(hours, minutes, seconds, frames, flags, 0xFFFFFFFF)
        for i in SYNC_BITS:
            assert bits[i] == 1

    def test_bits_after_sync_are_zero(self):
        """Bit following each sync bit is never set, bit 81 included."""
        flags = LineFlags(True, True, True, True, True, True)
        bits = encode_90bit(23, 59, 59, 29, flags, 0xFFFFFFFF)
        for i in (1, 11, 21, 31, 41, 51, 61, 71, 81):
            assert bits[i] == 0

    @pytest.mark.parametrize("frames", range(30))
    def test_frame_digits(self, frames):
        bits = encode_90bit(0, 0, 0, frames)
        assert read_field(bits, 12, 2) * 10 + read_field(bits, 2, 4) == frames

    @pytest.mark.parametrize("seconds", range(60))
    def test_seconds_digits(self, seconds):
        bits = encode_90bit(0, 0, seconds, 0)
        assert read_field(bits, 32, 3) * 10 + read_field(bits, 22, 4) == seconds

    @pytest.mark.parametrize("minutes", range(60))
    def test_minutes_digits(self, minutes):
        bits = encode_90bit(0, minutes, 0, 0)
        assert read_field(bits, 52, 3) * 10 + read_field(bits, 42, 4) == minutes

    @pytest.mark.parametrize("hours", range(24))
    def test_hours_digits(self, hours):
        bits = encode_90bit(hours, 0, 0, 0)
        assert read_field(bits, 72, 2) * 10 + read_field(bits, 62, 4) == hours

    def test_flag_positions(self):
        """Each flag sets exactly its own bit (outside the checksum)."""
        positions = {
            "frame_drop": 14,
            "colour_framing": 15,
            "ntsc_second_field": 35,
            "user_bits_format": 55,
            "external_clock": 74,
            "pal_second_field": 75,
        }
        base = encode_90bit(0, 0, 0, 0)
        for name, position in positions.items():
            bits = encode_90bit(0, 0, 0, 0, LineFlags(**{name: True}))
            changed = {i for i in range(82) if bits[i] != base[i]}
            assert changed == {position}, name

    def test_user_bits_embedding(self):
        """Nibbles read back from bits 6-9, 16-19, ... 76-79 rebuild the bytes."""
        data = bytes([0x12, 0x34, 0x56, 0x78])
        bits = encode_90bit(1, 2, 3, 4, user_bits=user_bits_from_bytes(data))

        nibbles = [read_field(bits, 10 * k + 6, 4) for k in range(8)]
        rebuilt = bytes(nibbles[2 * j] | (nibbles[2 * j + 1] << 4) for j in range(4))
        assert rebuilt == data
        assert nibbles == [0x2, 0x1, 0x4, 0x3, 0x6, 0x5, 0x8, 0x7]

    def test_user_bits_do_not_touch_timecode(self):
        plain = encode_90bit(12, 34, 56, 12)
        loaded = encode_90bit(12, 34, 56, 12, user_bits=0xFFFFFFFF)
        for k in range(8):
            for i in range(10 * k, 10 * k + 6):
                assert plain[i] == loaded[i]

    def test_out_of_range_values_are_packed(self):
        """Out-of-range fields are not rejected; tens bits that don't fit are dropped."""
        bits = encode_90bit(0, 75, 0, 0)
        assert read_field(bits, 42, 4) == 5
        assert read_field(bits, 52, 3) == 7

        bits = encode_90bit(0, 0, 0, 45)
        # frame tens 4 needs 3 bits, only 2 are available
        assert read_field(bits, 2, 4) == 5
        assert read_field(bits, 12, 2) == 0
        assert bits[14] == 0


class TestChecksum:
    """Test the diagonal checksum."""

    def test_taps(self):
        assert DiagonalChecksum.TAPS[82] == (2, 10, 18, 26, 34, 42, 50, 58, 66, 74)
        assert DiagonalChecksum.TAPS[83] == (3, 11, 19, 27, 35, 43, 51, 59, 67, 75)
        assert DiagonalChecksum.TAPS[87] == (7, 15, 23, 31, 39, 47, 55, 63, 71, 79)
        assert DiagonalChecksum.TAPS[88] == (0, 8, 16, 24, 32, 40, 48, 56, 64, 72, 80)
        assert DiagonalChecksum.TAPS[89] == (1, 9, 17, 25, 33, 41, 49, 57, 65, 73, 81)

    def test_reference_checksum(self):
        assert DiagonalChecksum.compute(REFERENCE_LINE) == [0, 1, 1, 0, 0, 1, 1, 0]

    @pytest.mark.parametrize("hours,minutes,seconds,frames,user_bits", [
        (0, 0, 0, 0, 0),
        (23, 59, 59, 29, 0xFFFFFFFF),
        (1, 2, 3, 4, 0x78563412),
        (19, 45, 30, 17, 0xDEADBEEF),
    ])
    def test_recompute_matches(self, hours, minutes, seconds, frames, user_bits):
        flags = LineFlags(frame_drop=True, pal_second_field=True)
        bits = encode_90bit(hours, minutes, seconds, frames, flags, user_bits)
        assert DiagonalChecksum.compute(bits) == bits[82:90]
        assert DiagonalChecksum.verify(bits) is True

    def test_verify_detects_error(self):
        bits = encode_90bit(1, 2, 3, 4)
        bits[22] ^= 1
        assert DiagonalChecksum.verify(bits) is False

    def test_verify_accepts_tuple(self):
        assert DiagonalChecksum.verify(tuple(REFERENCE_LINE)) is True


class TestSerialization:
    """Test byte stream output and user bits conversion."""

    def test_line_to_bytes(self):
        data = line_to_bytes(REFERENCE_LINE)
        assert len(data) == 90
        assert data[0] == 0xFF
        assert data[1] == 0x00
        assert set(data) == {0x00, 0xFF}
        assert [i for i, b in enumerate(data) if b == 0xFF] == sorted(REFERENCE_ONES)

    def test_user_bits_from_bytes(self):
        assert user_bits_from_bytes(b"\x12\x34\x56\x78") == 0x78563412
        assert user_bits_to_bytes(0x78563412) == b"\x12\x34\x56\x78"

    def test_user_bits_wrong_length(self):
        with pytest.raises(ValueError):
            user_bits_from_bytes(b"abc")
        with pytest.raises(ValueError):
            user_bits_from_bytes(b"abcde")
