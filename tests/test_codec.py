"""
Tests for the VITC line codec.
"""

import pytest

from vitc import VITCLine, DiagonalChecksum, FrameRateType


class TestGenerate:
    """Test line generation from codec state."""

    def test_result_empty_before_generate(self):
        line = VITCLine()
        assert line.result == ()

    def test_end_to_end_reference(self):
        """PAL 01:02:03:04, progressive, no drop frame, no user bits."""
        line = VITCLine(fps=25)
        line.set_timecode(1, 2, 3, 4)
        bits = line.generate()

        ones = {i for i, bit in enumerate(bits) if bit}
        assert ones == {0, 4, 10, 20, 22, 23, 30, 40, 43, 50, 60, 62, 70, 80, 83, 84, 87, 88}
        assert line.result == bits
        assert isinstance(bits, tuple)

    def test_generate_is_idempotent(self):
        line = VITCLine(fps=30, drop_frame=True, interlaced=True)
        line.set_timecode(10, 20, 30, 15)
        line.set_user_bits(b"ABCD")
        assert line.generate() == line.generate()

    def test_checksum_valid_over_many_frames(self):
        line = VITCLine(fps=30, drop_frame=True, interlaced=True)
        line.set_user_bits(b"\x12\x34\x56\x78")
        for _ in range(200):
            assert DiagonalChecksum.verify(line.generate())
            line.switch_field_type()
            assert DiagonalChecksum.verify(line.generate())
            line.step_one_frame()

    def test_pal_second_field_flag(self):
        """Bit 75 is set on the second field; only bit 75 and checksum bit 83 differ."""
        line = VITCLine(fps=25, interlaced=True)
        line.set_timecode(1, 2, 3, 4)
        first = line.generate()
        line.switch_field_type()
        second = line.generate()

        assert first[75] == 0
        assert second[75] == 1
        assert second[35] == 0
        changed = {i for i in range(90) if first[i] != second[i]}
        assert changed == {75, 83}

    def test_ntsc_second_field_flag(self):
        line = VITCLine(fps=30, interlaced=True)
        first = line.generate()
        line.switch_field_type()
        second = line.generate()

        assert first[35] == 0
        assert second[35] == 1
        assert second[75] == 0
        assert line.flags.ntsc_second_field is True
        assert line.flags.pal_second_field is False

    def test_film_has_no_field_flag(self):
        line = VITCLine(fps=24, interlaced=True)
        first = line.generate()
        line.switch_field_type()
        assert line.is_second_field is True
        assert line.generate() == first

    def test_progressive_second_field_identical(self):
        line = VITCLine(fps=25, interlaced=False)
        first = line.generate()
        line.switch_field_type()
        assert line.generate() == first

    def test_drop_frame_bit(self):
        line = VITCLine(fps=30, drop_frame=True)
        assert line.generate()[14] == 1
        assert line.flags.frame_drop is True

    def test_drop_frame_bit_ntsc_only(self):
        line = VITCLine(fps=25, drop_frame=True)
        assert line.generate()[14] == 0

    def test_caller_flags(self):
        line = VITCLine()
        line.colour_framing = True
        line.user_bits_format = True
        line.external_clock = True
        bits = line.generate()
        assert (bits[15], bits[55], bits[74]) == (1, 1, 1)
        assert DiagonalChecksum.verify(bits)

    def test_out_of_range_minutes(self):
        """Out-of-range direct sets are accepted and packed as-is."""
        line = VITCLine(fps=25)
        line.minutes = 75
        bits = line.generate()
        assert line.minutes == 75
        assert [bits[i] for i in (42, 43, 44, 45)] == [1, 0, 1, 0]
        assert [bits[i] for i in (52, 53, 54)] == [1, 1, 1]

    def test_to_bytes(self):
        line = VITCLine()
        line.generate()
        data = line.to_bytes()
        assert len(data) == 90
        assert data[0] == 0xFF and data[10] == 0xFF and data[1] == 0x00


class TestUserBits:
    """Test user bits handling."""

    def test_set_user_bits(self):
        line = VITCLine()
        line.set_user_bits(b"\x12\x34\x56\x78")
        assert line.user_bits == 0x78563412
        assert line.get_user_bits() == b"\x12\x34\x56\x78"

        bits = line.generate()
        nibbles = [sum(bits[10 * k + 6 + i] << i for i in range(4)) for k in range(8)]
        rebuilt = bytes(nibbles[2 * j] | (nibbles[2 * j + 1] << 4) for j in range(4))
        assert rebuilt == b"\x12\x34\x56\x78"

    def test_clear_user_bits(self):
        line = VITCLine()
        line.set_user_bits(b"TEST")
        line.clear_user_bits()
        assert line.user_bits == 0
        bits = line.generate()
        for k in range(8):
            assert bits[10 * k + 6:10 * k + 10] == (0, 0, 0, 0)

    def test_user_bits_limits(self):
        line = VITCLine()
        line.user_bits = 0xFFFFFFFF
        with pytest.raises(ValueError):
            line.user_bits = 0x100000000
        with pytest.raises(ValueError):
            line.user_bits = -1
        with pytest.raises(ValueError):
            line.set_user_bits(b"abc")


class TestDelegation:
    """Test clock state exposed by the codec."""

    def test_properties(self):
        line = VITCLine(fps=30, drop_frame=True, interlaced=True)
        assert line.fps == 30
        assert line.frame_rate_type == FrameRateType.NTSC
        assert line.drop_frame is True
        assert line.interlaced is True

        line.hours = 1
        line.minutes = 2
        line.seconds = 3
        line.frames = 4
        assert line.current_frame == 4 + 3 * 30 + 2 * 1800 + 108000
        assert str(line) == "01:02:03;04"

    def test_step_and_fps_change(self):
        line = VITCLine(fps=25)
        line.current_frame = 250
        line.step_one_frame()
        assert (line.seconds, line.frames) == (10, 1)
        line.fps = 50
        assert line.current_frame == 502
        assert line.frame_rate_type is None

    def test_independent_instances(self):
        a = VITCLine()
        b = VITCLine()
        a.step_one_frame()
        a.set_user_bits(b"AAAA")
        assert b.current_frame == 0
        assert b.user_bits == 0
