"""
Exceptions raised by the RouterOS API client.

Only `CommandFault` leaves the session usable. Every other error means the
connection can no longer be trusted and the session must be discarded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ovpn_ip_updater.routeros.sentence import Sentence


class RouterOSError(Exception):
    """Base class for all RouterOS API client errors."""


class TransportError(RouterOSError):
    """Dial, read or write failure, or the peer closed the connection."""


class ProtocolFramingError(RouterOSError):
    """Malformed length prefix, truncated word or malformed login data."""


class AuthenticationError(RouterOSError):
    """The router rejected the supplied credentials."""


class CommandFault(RouterOSError):
    """
    The router answered a command with a ``!trap`` sentence.

    Attributes
    ----------
    message : str
        The ``=message`` attribute of the trap sentence.
    reply : list[Sentence]
        Every sentence received for the command, in wire order,
        including the trap and the terminating ``!done``.
    """

    def __init__(self, message: str, reply: list[Sentence] | None = None) -> None:
        """
        Initialize CommandFault.

        Parameters
        ----------
        message : str
            Message reported by the router.
        reply : list[Sentence] | None, optional
            Sentences received for the failed command.
        """
        self.message = message
        self.reply = reply or []
        super().__init__(message)
