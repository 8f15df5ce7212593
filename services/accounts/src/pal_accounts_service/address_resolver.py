"""
Client Address Resolution
=========================

Determines which address counts as "the client" for a request. When the
transport peer is a trusted reverse proxy, the proxy's own address is
discarded and the real client address is taken from a single forwarding
header. This is only sound behind exactly one controlled proxy hop: any
other topology would let callers choose their own address.
"""

import ipaddress
from typing import Iterable, List, Optional, Tuple, Union

from pal_errors import AddressResolutionError
from pal_logging import get_logger

logger = get_logger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

DEFAULT_TRUSTED_PROXIES = ("127.0.0.0/8", "::1/128")
DEFAULT_REAL_IP_HEADER = "x-real-ip"


def parse_address(value: Optional[str]) -> Optional[IPAddress]:
    """Parse an address literal, unwrapping IPv4-mapped IPv6 forms."""
    if not value:
        return None
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


class AddressResolver:
    """Resolve the trust-adjusted client address of a request."""

    def __init__(
        self,
        trusted_proxies: Iterable[str] = DEFAULT_TRUSTED_PROXIES,
        real_ip_header: str = DEFAULT_REAL_IP_HEADER,
    ) -> None:
        self.trusted_networks: List[IPNetwork] = [
            ipaddress.ip_network(network, strict=False) for network in trusted_proxies
        ]
        self.real_ip_header = real_ip_header.lower()

    def is_trusted_proxy(self, address: IPAddress) -> bool:
        return any(address in network for network in self.trusted_networks)

    def _forwarded_address(self, headers: Iterable[Tuple[str, str]]) -> Optional[IPAddress]:
        for key, value in headers:
            if key.lower() == self.real_ip_header:
                # First occurrence wins, even if it does not parse.
                return parse_address(value)
        return None

    def resolve(self, source: Optional[str], headers: Iterable[Tuple[str, str]]) -> IPAddress:
        """
        Resolve the client address.

        Args:
            source: Observed transport-layer peer address
            headers: Request headers as (name, value) pairs, duplicates kept

        Returns:
            The client address

        Raises:
            AddressResolutionError: If no usable address can be determined
        """
        observed = parse_address(source)
        if observed is None:
            raise AddressResolutionError("Transport source address is missing or invalid")

        if not self.is_trusted_proxy(observed):
            return observed

        forwarded = self._forwarded_address(headers)
        if forwarded is None:
            logger.warning(
                "Request from trusted proxy carried no usable client address",
                header=self.real_ip_header,
            )
            raise AddressResolutionError(
                f"Trusted proxy request without a valid '{self.real_ip_header}' header"
            )
        return forwarded
