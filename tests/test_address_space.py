"""Tests for AddressSpace."""
import ipaddress

import pytest

from addr_alloc.address_space import AddressSpace


def ip(s):
    return ipaddress.IPv4Address(s)


class TestSuccessor:

    def test_increments_last_byte(self):
        assert AddressSpace.successor(ip("10.8.0.2")) == ip("10.8.0.3")

    def test_carry_into_third_byte(self):
        assert AddressSpace.successor(ip("10.8.0.255")) == ip("10.8.1.0")

    def test_carry_through_all_higher_bytes(self):
        assert AddressSpace.successor(ip("10.255.255.255")) == ip("11.0.0.0")

    def test_wraps_to_zero(self):
        assert AddressSpace.successor(ip("255.255.255.255")) == ip("0.0.0.0")


class TestBounds:

    def test_defaults(self):
        space = AddressSpace.from_strings()
        assert space.first == ip("10.8.0.2")
        assert space.last == ip("10.92.255.255")

    def test_contains_is_half_open(self):
        space = AddressSpace.from_strings("10.8.0.2", "10.8.0.4")
        assert not space.contains(ip("10.8.0.1"))
        assert space.contains(ip("10.8.0.2"))
        assert space.contains(ip("10.8.0.3"))
        assert not space.contains(ip("10.8.0.4"))

    def test_size(self):
        assert AddressSpace.from_strings("10.8.0.2", "10.8.0.4").size == 2
        assert AddressSpace.from_strings("10.8.0.2", "10.8.0.2").size == 0

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError, match="above pool end"):
            AddressSpace.from_strings("10.8.0.4", "10.8.0.2")

    def test_rejects_bad_address(self):
        with pytest.raises(ValueError):
            AddressSpace.from_strings("10.8.0.300", "10.9.0.0")


class TestCodec:

    def test_encode_is_big_endian(self):
        assert AddressSpace.encode(ip("10.8.1.2")) == b"\x0a\x08\x01\x02"

    def test_decode(self):
        assert AddressSpace.decode(b"\x0a\x08\x01\x02") == ip("10.8.1.2")

    def test_decode_rejects_wrong_width(self):
        with pytest.raises(ValueError, match="expected 4"):
            AddressSpace.decode(b"\x0a\x08\x01")
