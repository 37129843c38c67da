"""
Challenge-response login.

The router issues a random seed, the client answers with
``"00" + md5(b"\\x00" + password + seed)`` in lowercase hex.
"""

from __future__ import annotations

import binascii
import hashlib
from typing import TYPE_CHECKING

from ovpn_ip_updater.routeros.exceptions import (
    AuthenticationError,
    CommandFault,
    ProtocolFramingError,
)

if TYPE_CHECKING:
    from typing import Final

    from ovpn_ip_updater.routeros.session import Session


LOGIN_COMMAND: Final[str] = "/login"


def login_response(password: str, seed: bytes) -> str:
    """
    Compute the response string for a login seed.

    Parameters
    ----------
    password : str
        Plain text password.
    seed : bytes
        Raw (hex-decoded) seed issued by the router.

    Returns
    -------
    str
        ``"00"`` followed by the lowercase hex MD5 digest.
    """
    digest = hashlib.md5(usedforsecurity=False)
    digest.update(b"\x00")
    digest.update(password.encode("utf-8"))
    digest.update(seed)
    return "00" + digest.hexdigest()


def login(session: Session, user: str, password: str) -> None:
    """
    Authenticate an open session.

    Parameters
    ----------
    session : Session
        Session with an open, not yet authenticated connection.
    user : str
        User name.
    password : str
        Password.

    Raises
    ------
    AuthenticationError
        If the router refuses the login request or rejects the credentials.
    ProtocolFramingError
        If the router does not send a usable seed.
    TransportError
        If the connection fails during either round trip.
    """
    try:
        reply = session.run_command(LOGIN_COMMAND)
    except CommandFault as e:
        msg = f"Login refused: {e.message}" if e.message else "Login refused"
        raise AuthenticationError(msg) from e

    seed_hex = reply[0].get("=ret")
    if seed_hex is None:
        msg = "Login reply carries no seed."
        raise ProtocolFramingError(msg)
    try:
        seed = binascii.unhexlify(seed_hex)
    except (binascii.Error, ValueError) as e:
        msg = f'Login seed is not valid hex: "{seed_hex}".'
        raise ProtocolFramingError(msg) from e

    attributes = {
        "=name": user,
        "=response": login_response(password, seed),
    }
    try:
        reply = session.run_command(LOGIN_COMMAND, attributes)
    except CommandFault as e:
        msg = f"Access denied: {e.message}" if e.message else "Access denied"
        raise AuthenticationError(msg) from e

    if reply[0].get("=ret") == "error":
        msg = "Access denied"
        raise AuthenticationError(msg)
