"""Shared fixtures: an in-memory socket double for protocol tests."""

from __future__ import annotations

import pytest

from ovpn_ip_updater.routeros.sentence import Sentence, encode_sentence


class FakeSocket:
    """
    Scripted stand-in for a connected socket.

    Everything the "router" will say is queued up front; everything the
    client sends is recorded. ``chunk_size`` caps each ``recv`` to exercise
    short reads.
    """

    def __init__(self, incoming: bytes = b"", chunk_size: int | None = None) -> None:
        self.incoming = bytearray(incoming)
        self.sent = bytearray()
        self.chunk_size = chunk_size
        self.closed = False
        self.recv_calls = 0

    def recv(self, bufsize: int) -> bytes:
        self.recv_calls += 1
        size = min(bufsize, self.chunk_size or bufsize)
        data = bytes(self.incoming[:size])
        del self.incoming[:size]
        return data

    def sendall(self, data: bytes) -> None:
        if self.closed:
            msg = "Bad file descriptor"
            raise OSError(msg)
        self.sent.extend(data)

    def close(self) -> None:
        self.closed = True


def wire(*sentences: Sentence) -> bytes:
    """Encode sentences back to back, as a router would send them."""
    return b"".join(encode_sentence(sentence) for sentence in sentences)


@pytest.fixture
def make_socket():
    """Return a factory building a FakeSocket preloaded with sentences."""

    def factory(*sentences: Sentence, raw: bytes = b"", chunk_size: int | None = None):
        return FakeSocket(wire(*sentences) + raw, chunk_size=chunk_size)

    return factory


@pytest.fixture
def login_replies():
    """Sentences a router sends for a successful login with seed 01 02."""
    return [
        Sentence(command="!done", attributes={"=ret": "0102"}),
        Sentence(command="!done"),
    ]
