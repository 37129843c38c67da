"""
RouterOS API session.

A session owns one TCP connection, authenticates on `Session.connect` and
then runs commands one at a time. The protocol is strictly synchronous:
each command is written, then reply sentences are read until ``!done``.
There is no internal locking; callers must not share a session between
threads.
"""

from __future__ import annotations

import logging
import socket
from typing import TYPE_CHECKING

from ovpn_ip_updater.routeros.auth import login
from ovpn_ip_updater.routeros.exceptions import (
    CommandFault,
    ProtocolFramingError,
    TransportError,
)
from ovpn_ip_updater.routeros.sentence import Sentence, read_sentence, write_sentence
from ovpn_ip_updater.routeros.words import WordStream

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Final, Self

    from ovpn_ip_updater.routeros.words import ByteStream


DEFAULT_PORT: Final[int] = 8728

# Reply markers
REPLY: Final[str] = "!re"
DONE: Final[str] = "!done"
TRAP: Final[str] = "!trap"
FATAL: Final[str] = "!fatal"


class Session:
    """
    A single authenticated connection to a RouterOS API service.

    Usage::

        with Session("192.168.88.1", user="admin", password="secret") as api:
            reply = api.run_command("/interface/ovpn-client/print")

    Attributes
    ----------
    host : str
        Router host name or address.
    port : int
        API service port.
    user : str
        User name to log in with.
    timeout : float | None
        Socket timeout in seconds applied to dial, reads and writes.
        ``None`` blocks indefinitely.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        user: str = "admin",
        password: str = "",
        *,
        timeout: float | None = None,
        encoding: str = "utf-8",
        logger: logging.Logger | None = None,
        socket_factory: Callable[..., ByteStream] = socket.create_connection,
    ) -> None:
        """
        Initialize an unconnected session.

        Parameters
        ----------
        host : str
            Router host name or address.
        port : int, optional
            API service port.
        user : str, optional
            User name.
        password : str, optional
            Password.
        timeout : float | None, optional
            Socket timeout in seconds, or None to block indefinitely.
        encoding : str, optional
            Text encoding of words on the wire.
        logger : logging.Logger | None, optional
            Logger for protocol tracing; defaults to this module's logger.
        socket_factory : Callable[..., ByteStream], optional
            Called as ``socket_factory((host, port), timeout)`` to dial.
        """
        self.host = host
        self.port = port
        self.user = user
        self._password = password
        self.timeout = timeout
        self.encoding = encoding
        self._logger = logger or logging.getLogger(__name__)
        self._socket_factory = socket_factory
        self._sock: ByteStream | None = None
        self._stream: WordStream | None = None

    @property
    def connected(self) -> bool:
        """Whether the session holds an open connection."""
        return self._stream is not None

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def connect(self) -> None:
        """
        Dial the router and log in.

        Raises
        ------
        RuntimeError
            If the session is already connected.
        TransportError
            If the router cannot be reached or the connection fails.
        AuthenticationError
            If the router rejects the credentials.
        ProtocolFramingError
            If the router sends malformed data.

        Notes
        -----
        On any failure the connection is closed before the error is raised.
        """
        if self.connected:
            msg = "Session is already connected"
            raise RuntimeError(msg)

        self._logger.debug("Connecting to %s:%d.", self.host, self.port)
        try:
            self._sock = self._socket_factory((self.host, self.port), self.timeout)
        except OSError as e:
            msg = f"Failed to connect to {self.host}:{self.port}: {e}"
            raise TransportError(msg) from e
        self._stream = WordStream(self._sock, self.encoding)

        self._logger.debug("Logging in as %s.", self.user)
        try:
            login(self, self.user, self._password)
        except BaseException:
            self.close()
            raise
        self._logger.debug("Logged in to %s:%d.", self.host, self.port)

    def close(self) -> None:
        """Close the connection. Closing a closed session does nothing."""
        sock = self._sock
        self._sock = None
        self._stream = None
        if sock is None:
            return
        self._logger.debug("Closing connection to %s:%d.", self.host, self.port)
        try:
            sock.close()
        except OSError as e:
            self._logger.debug("Error while closing connection: %s", e)

    def run_command(
        self,
        command: str | Sentence,
        attributes: dict[str, str] | None = None,
    ) -> list[Sentence]:
        """
        Send one command and collect its reply.

        Parameters
        ----------
        command : str | Sentence
            Command path, or a complete sentence.
        attributes : dict[str, str] | None, optional
            Attribute words keyed by name, sigil included (``=.id``).
            Merged over the sentence's own attributes when ``command`` is a
            `Sentence`.

        Returns
        -------
        list[Sentence]
            Reply sentences in wire order; the last one is ``!done``.

        Raises
        ------
        CommandFault
            If the router answered with ``!trap``. The full reply is
            available as ``CommandFault.reply``; the session stays usable.
        TransportError
            If the session is not connected, the connection fails, or the
            router closes it before ``!done``.
        ProtocolFramingError
            If the router sends malformed data.
        ValueError
            If the command word is empty. Nothing is sent in that case.
        """
        stream = self._stream
        if stream is None:
            msg = "Session is not connected"
            raise TransportError(msg)

        if isinstance(command, Sentence):
            sentence = command
            if attributes:
                sentence = Sentence(
                    command=command.command,
                    attributes={**command.attributes, **attributes},
                )
        else:
            sentence = Sentence(command=command, attributes=attributes or {})

        # An empty first word would be read by the router as a terminator.
        if not sentence.command:
            msg = "Command word must not be empty"
            raise ValueError(msg)

        self._logger.debug("Running command: %s", sentence.command)
        self._logger.debug("Sending sentence: %s", str(sentence))
        try:
            write_sentence(stream, sentence)
            reply, fault = self._read_reply(stream)
        except (TransportError, ProtocolFramingError):
            self.close()
            raise

        if fault is not None:
            raise CommandFault(fault, reply)
        return reply

    def _read_reply(self, stream: WordStream) -> tuple[list[Sentence], str | None]:
        """Read sentences up to and including ``!done``."""
        reply: list[Sentence] = []
        fault: str | None = None
        while True:
            received = read_sentence(stream)
            if received.is_empty:
                continue

            self._logger.debug("Read sentence: %s", str(received))
            reply.append(received)

            if received.command == TRAP:
                fault = received.get("=message") or ""
            elif received.command == FATAL:
                msg = f"Router closed the session: {_fatal_reason(received)}"
                raise TransportError(msg)
            elif received.command == DONE:
                return reply, fault


def _fatal_reason(sentence: Sentence) -> str:
    """Return the text of a ``!fatal`` sentence."""
    words = [
        f"{name}={value}" if value else name
        for name, value in sentence.attributes.items()
    ]
    if words:
        return " ".join(words)
    return "no reason given"
