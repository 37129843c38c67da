"""
Keep a RouterOS OpenVPN client pointed at the current server address.

When the OpenVPN client is not running, the configured server hostname is
resolved again and the client's ``connect-to`` endpoint is patched if it no
longer matches. A running tunnel is left alone.
"""

from __future__ import annotations

import ipaddress
import logging
from typing import TYPE_CHECKING

from ovpn_ip_updater.models import UpdateOutcome, UpdateResult
from ovpn_ip_updater.resolver import resolve_host
from ovpn_ip_updater.routeros import REPLY

if TYPE_CHECKING:
    from collections.abc import Callable
    from ipaddress import IPv4Address, IPv6Address
    from typing import Final

    from ovpn_ip_updater.config import VPNConfig
    from ovpn_ip_updater.routeros import Sentence, Session


PRINT_COMMAND: Final[str] = "/interface/ovpn-client/print"
SET_COMMAND: Final[str] = "/interface/ovpn-client/set"


logger = logging.getLogger(__name__)


class UpdaterError(Exception):
    """Raised when the router state does not allow an update."""


def get_ovpn_client(session: Session, interface: str | None = None) -> Sentence:
    """
    Fetch the configuration of an OpenVPN client interface.

    Parameters
    ----------
    session : Session
        Connected router session.
    interface : str | None, optional
        Interface name to select; the first interface when None.

    Returns
    -------
    Sentence
        The ``!re`` data sentence describing the interface.

    Raises
    ------
    UpdaterError
        If no matching interface exists.
    """
    query = {"?name": interface} if interface else None
    reply = session.run_command(PRINT_COMMAND, query)

    for sentence in reply:
        if sentence.command == REPLY:
            return sentence

    if interface:
        msg = f'OpenVPN client interface "{interface}" not found.'
    else:
        msg = "No OpenVPN client interface is configured."
    raise UpdaterError(msg)


def set_connect_to(
    session: Session,
    interface_id: str,
    address: IPv4Address | IPv6Address,
) -> None:
    """
    Point an OpenVPN client interface at a new server address.

    Parameters
    ----------
    session : Session
        Connected router session.
    interface_id : str
        RouterOS item id of the interface (``*1``).
    address : IPv4Address | IPv6Address
        New server address.
    """
    logger.info("Setting IP to %s.", address)
    reply = session.run_command(
        SET_COMMAND,
        {"=.id": interface_id, "=connect-to": str(address)},
    )
    logger.debug("Set reply: %s", ", ".join(str(sentence) for sentence in reply))


def _same_address(endpoint: str | None, address: IPv4Address | IPv6Address) -> bool:
    """Whether a configured endpoint is the given IP address."""
    if not endpoint:
        return False
    try:
        return ipaddress.ip_address(endpoint) == address
    except ValueError:
        # Endpoint is a hostname
        return False


def check_and_update(
    session: Session,
    vpn_config: VPNConfig,
    resolve: Callable[[str, bool], IPv4Address | IPv6Address] = resolve_host,
) -> UpdateResult:
    """
    Check the OpenVPN client and fix its endpoint if it went stale.

    Parameters
    ----------
    session : Session
        Connected router session.
    vpn_config : VPNConfig
        VPN server hostname, family preference and interface selection.
    resolve : Callable[[str, bool], IPv4Address | IPv6Address], optional
        Hostname resolver, called as ``resolve(host, prefer_ipv6)``.

    Returns
    -------
    UpdateResult
        What was found and done.

    Raises
    ------
    UpdaterError
        If no OpenVPN client interface exists or it has no id.
    ResolutionError
        If the VPN host cannot be resolved.
    RouterOSError
        If a router command fails.
    """
    client = get_ovpn_client(session, vpn_config.interface)
    endpoint = client.get("=connect-to")
    interface_id = client.get("=.id")

    if client.get("=running") == "true":
        logger.info("VPN running to %s.", endpoint)
        return UpdateResult(
            outcome=UpdateOutcome.RUNNING,
            interface_id=interface_id,
            previous_endpoint=endpoint,
        )

    logger.info("VPN not running to %s.", endpoint)
    address = resolve(vpn_config.host, vpn_config.prefer_ipv6)

    if _same_address(endpoint, address):
        logger.info("IP is correct, can not fix.")
        return UpdateResult(
            outcome=UpdateOutcome.UNCHANGED,
            interface_id=interface_id,
            previous_endpoint=endpoint,
            resolved_address=str(address),
        )

    if not interface_id:
        msg = "OpenVPN client interface has no id."
        raise UpdaterError(msg)

    set_connect_to(session, interface_id, address)
    return UpdateResult(
        outcome=UpdateOutcome.UPDATED,
        interface_id=interface_id,
        previous_endpoint=endpoint,
        resolved_address=str(address),
    )
