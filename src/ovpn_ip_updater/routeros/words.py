"""
Word framing over a connected byte stream.

A word is a length prefix (see `ovpn_ip_updater.routeros.length`) followed by
exactly that many raw bytes. A zero-length word terminates a sentence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ovpn_ip_updater.routeros.exceptions import ProtocolFramingError, TransportError
from ovpn_ip_updater.routeros.length import decode_length, encode_length

if TYPE_CHECKING:
    from typing import Final


# Upper bound for a single recv() call while reading a word body
RECV_CHUNK_SIZE: Final[int] = 65536


class ByteStream(Protocol):
    """The subset of `socket.socket` used by `WordStream`."""

    def recv(self, bufsize: int, /) -> bytes: ...

    def sendall(self, data: bytes, /) -> None: ...

    def close(self) -> None: ...


class WordStream:
    """
    Read and write RouterOS API words on a duplex byte stream.

    This is *not* a threadsafe object, do not share it between threads.
    """

    def __init__(self, sock: ByteStream, encoding: str = "utf-8") -> None:
        """
        Initialize the word stream.

        Parameters
        ----------
        sock : ByteStream
            Connected stream providing ``recv`` and ``sendall``.
        encoding : str, optional
            Text encoding of words on the wire.
        """
        self._sock = sock
        self.encoding = encoding

    def write_word(self, text: str) -> None:
        """
        Send one word.

        Parameters
        ----------
        text : str
            Word content; the empty string sends the sentence terminator.

        Raises
        ------
        TransportError
            If the underlying stream fails.
        """
        data = text.encode(self.encoding)
        self.write_raw(encode_length(len(data)) + data)

    def write_raw(self, data: bytes) -> None:
        """Send already framed bytes."""
        try:
            self._sock.sendall(data)
        except OSError as e:
            msg = f"Failed to send to router: {e}"
            raise TransportError(msg) from e

    def read_word(self) -> str:
        """
        Receive one word, blocking until it is complete.

        Returns
        -------
        str
            The word content, ``""`` for the terminator word.

        Raises
        ------
        TransportError
            If the stream fails, or the peer closes between two words.
        ProtocolFramingError
            If the prefix is invalid or the peer closes inside a word.
        """
        started = False

        def read_byte() -> int:
            nonlocal started
            byte = self._recv_exact(1, mid_word=started)[0]
            started = True
            return byte

        length = decode_length(read_byte)
        if length == 0:
            return ""
        data = self._recv_exact(length, mid_word=True)
        return data.decode(self.encoding, errors="replace")

    def _recv_exact(self, size: int, *, mid_word: bool) -> bytes:
        """
        Receive exactly ``size`` bytes, retrying short reads.

        Parameters
        ----------
        size : int
            Number of bytes to read.
        mid_word : bool
            Whether a word has already been started. Decides the error raised
            when the peer closes the connection.

        Returns
        -------
        bytes
            Exactly ``size`` bytes.
        """
        chunks: list[bytes] = []
        received = 0
        while received < size:
            try:
                chunk = self._sock.recv(min(size - received, RECV_CHUNK_SIZE))
            except OSError as e:
                msg = f"Failed to receive from router: {e}"
                raise TransportError(msg) from e
            if not chunk:
                if mid_word or received:
                    msg = f"Connection closed inside a word ({received} of {size} bytes read)."
                    raise ProtocolFramingError(msg)
                msg = "Connection closed by peer."
                raise TransportError(msg)
            chunks.append(chunk)
            received += len(chunk)
        return b"".join(chunks)
