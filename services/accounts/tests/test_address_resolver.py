"""Tests for client address resolution behind a trusted proxy."""

import ipaddress

import pytest

from pal_accounts_service.address_resolver import AddressResolver, parse_address
from pal_errors import AddressResolutionError, ErrorCode


@pytest.fixture
def resolver() -> AddressResolver:
    return AddressResolver()


def test_loopback_source_uses_real_ip_header(resolver):
    address = resolver.resolve("127.0.0.1", [("x-real-ip", "203.0.113.7")])
    assert address == ipaddress.ip_address("203.0.113.7")


def test_direct_source_is_used_as_is(resolver):
    address = resolver.resolve("203.0.113.7", [])
    assert address == ipaddress.ip_address("203.0.113.7")


def test_loopback_source_without_header_fails(resolver):
    with pytest.raises(AddressResolutionError) as exc_info:
        resolver.resolve("127.0.0.1", [("user-agent", "test")])
    assert exc_info.value.error_code == ErrorCode.ADDRESS_UNAVAILABLE


def test_whole_ipv4_loopback_range_is_trusted(resolver):
    address = resolver.resolve("127.8.9.10", [("x-real-ip", "198.51.100.1")])
    assert address == ipaddress.ip_address("198.51.100.1")


def test_ipv6_loopback_is_trusted(resolver):
    address = resolver.resolve("::1", [("x-real-ip", "2001:db8::42")])
    assert address == ipaddress.ip_address("2001:db8::42")


def test_ipv4_mapped_loopback_is_trusted(resolver):
    address = resolver.resolve("::ffff:127.0.0.1", [("x-real-ip", "203.0.113.7")])
    assert address == ipaddress.ip_address("203.0.113.7")


def test_header_is_ignored_for_untrusted_source(resolver):
    address = resolver.resolve("198.51.100.20", [("x-real-ip", "203.0.113.7")])
    assert address == ipaddress.ip_address("198.51.100.20")


def test_first_header_occurrence_wins(resolver):
    headers = [("x-real-ip", "203.0.113.7"), ("x-real-ip", "198.51.100.1")]
    assert resolver.resolve("127.0.0.1", headers) == ipaddress.ip_address("203.0.113.7")


def test_header_name_is_case_insensitive(resolver):
    address = resolver.resolve("127.0.0.1", [("X-Real-IP", "203.0.113.7")])
    assert address == ipaddress.ip_address("203.0.113.7")


def test_unparseable_header_fails(resolver):
    with pytest.raises(AddressResolutionError):
        resolver.resolve("127.0.0.1", [("x-real-ip", "not-an-address")])


@pytest.mark.parametrize("source", [None, "", "testclient", "300.1.1.1"])
def test_missing_or_invalid_source_fails(resolver, source):
    with pytest.raises(AddressResolutionError):
        resolver.resolve(source, [("x-real-ip", "203.0.113.7")])


def test_trusted_proxies_are_configurable():
    resolver = AddressResolver(trusted_proxies=["10.0.0.0/8"], real_ip_header="x-client-ip")

    assert resolver.resolve("10.1.2.3", [("x-client-ip", "203.0.113.7")]) == ipaddress.ip_address("203.0.113.7")
    # Loopback is no longer special once the trusted set is replaced.
    assert resolver.resolve("127.0.0.1", [("x-client-ip", "203.0.113.7")]) == ipaddress.ip_address("127.0.0.1")


def test_empty_trusted_set_never_reads_headers():
    resolver = AddressResolver(trusted_proxies=[])
    assert resolver.resolve("127.0.0.1", [("x-real-ip", "203.0.113.7")]) == ipaddress.ip_address("127.0.0.1")


def test_parse_address_unwraps_ipv4_mapped():
    assert parse_address("::ffff:203.0.113.7") == ipaddress.ip_address("203.0.113.7")
    assert parse_address(" 203.0.113.7 ") == ipaddress.ip_address("203.0.113.7")
    assert parse_address("bogus") is None
