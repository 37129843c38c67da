"""
RouterOS API client.

Implements the binary RouterOS API protocol over a plain TCP connection:
- length: variable-width word length prefix
- words: word framing over a byte stream
- sentence: command/reply sentences built from words
- auth: challenge-response login
- session: the public client (connect, run_command, close)
- exceptions: error types
"""

from ovpn_ip_updater.routeros.auth import login_response
from ovpn_ip_updater.routeros.exceptions import (
    AuthenticationError,
    CommandFault,
    ProtocolFramingError,
    RouterOSError,
    TransportError,
)
from ovpn_ip_updater.routeros.sentence import Sentence
from ovpn_ip_updater.routeros.session import DEFAULT_PORT, DONE, REPLY, TRAP, Session

__all__ = [
    # Client
    "Session",
    "Sentence",
    "login_response",
    # Constants
    "DEFAULT_PORT",
    "DONE",
    "REPLY",
    "TRAP",
    # Exceptions
    "RouterOSError",
    "TransportError",
    "ProtocolFramingError",
    "AuthenticationError",
    "CommandFault",
]
