"""
Hostname resolution with an address family preference.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ipaddress import IPv4Address, IPv6Address


logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when a hostname cannot be resolved to an IP address."""


def resolve_host(hostname: str, prefer_ipv6: bool = False) -> IPv4Address | IPv6Address:
    """
    Resolve a hostname to a single IP address.

    The first address of the preferred family is returned. When the host has
    no address of that family, the first address of the other family is used.

    Parameters
    ----------
    hostname : str
        Hostname (or literal address) to resolve.
    prefer_ipv6 : bool, optional
        Prefer IPv6 over IPv4.

    Returns
    -------
    IPv4Address | IPv6Address
        The chosen address.

    Raises
    ------
    ResolutionError
        If the lookup fails or returns no usable address.
    """
    logger.info("Looking up %s.", hostname)
    try:
        infos = socket.getaddrinfo(hostname, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        msg = f'Failed to resolve "{hostname}": {e}'
        raise ResolutionError(msg) from e

    ipv4: IPv4Address | None = None
    ipv6: IPv6Address | None = None
    for family, _, _, _, sockaddr in infos:
        # Drop any IPv6 scope suffix ("fe80::1%eth0")
        address = ipaddress.ip_address(str(sockaddr[0]).split("%", 1)[0])
        logger.debug("Got IP: %s", address)
        if family == socket.AF_INET6 and ipv6 is None:
            ipv6 = address  # type: ignore[assignment]
        elif family == socket.AF_INET and ipv4 is None:
            ipv4 = address  # type: ignore[assignment]

    preferred, fallback = (ipv6, ipv4) if prefer_ipv6 else (ipv4, ipv6)
    chosen = preferred or fallback
    if chosen is None:
        msg = f'No IP address found for "{hostname}".'
        raise ResolutionError(msg)
    return chosen
