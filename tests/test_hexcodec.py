"""Tests for the hex/word codec."""

import pytest

from arbitrace.core.hexcodec import (
    byte_to_hex,
    bytes_from_sparse_map,
    bytes_to_hex,
    hex_to_int,
    hex_to_word,
    normalize_address,
    word_to_address,
    word_to_hex,
    word_to_int,
)


class TestBytes:
    def test_byte_to_hex_pads_to_two_digits(self):
        assert byte_to_hex(0) == "00"
        assert byte_to_hex(10) == "0a"
        assert byte_to_hex(255) == "ff"

    def test_byte_to_hex_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            byte_to_hex(256)

    def test_bytes_to_hex(self):
        assert bytes_to_hex([1, 171]) == "0x01ab"
        assert bytes_to_hex(b"") == "0x"

    def test_sparse_map_sorted_numerically(self):
        """Key "10" must come after key "2"."""
        assert bytes_from_sparse_map({"10": 1, "2": 0, "0": 255}) == bytes([255, 0, 1])

    def test_sparse_map_accepts_lists_and_hex(self):
        assert bytes_from_sparse_map([1, 2, 3]) == b"\x01\x02\x03"
        assert bytes_from_sparse_map("0x0102") == b"\x01\x02"
        assert bytes_from_sparse_map("0x102") == b"\x01\x02"


class TestWords:
    def test_word_to_hex_is_canonical(self):
        assert word_to_hex("2a") == "0x" + "0" * 62 + "2a"
        assert word_to_hex("0x2A") == word_to_hex(42)
        assert word_to_hex("") == "0x" + "0" * 64

    def test_word_out_of_range(self):
        with pytest.raises(ValueError):
            word_to_hex(1 << 256)

    def test_word_round_trip_through_bytes(self):
        word = word_to_hex(0xDEADBEEF)
        assert len(hex_to_word(word)) == 32
        assert word_to_int(hex_to_word(word)) == 0xDEADBEEF

    def test_word_to_address_takes_low_20_bytes(self):
        word = "0x" + "ff" * 12 + "ab" * 20
        assert word_to_address(word) == "0x" + "ab" * 20


class TestAddresses:
    def test_normalize_lowercases(self):
        assert normalize_address("0x" + "AB" * 20) == "0x" + "ab" * 20

    def test_normalize_sparse_buffer(self):
        buffer = {str(i): 0x11 for i in range(20)}
        assert normalize_address(buffer) == "0x" + "11" * 20

    def test_normalize_left_pads_short_values(self):
        assert normalize_address("0xaa") == "0x" + "00" * 19 + "aa"


def test_hex_to_int():
    assert hex_to_int("0x10") == 16
    assert hex_to_int(None) == 0
    assert hex_to_int("not hex", default=-1) == -1
    assert hex_to_int(7) == 7
