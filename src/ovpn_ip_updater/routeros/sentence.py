"""
Sentences: a command word plus attribute words, ended by an empty word.

Wire form of ``/interface/ovpn-client/set`` with two attributes::

    /interface/ovpn-client/set
    =.id=*1
    =connect-to=203.0.113.9
    <empty word>

Attribute names keep their leading sigil (``=`` for arguments and reply
values, ``?`` for queries, ``.`` for API attributes such as ``.tag``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from ovpn_ip_updater.routeros.length import encode_length

if TYPE_CHECKING:
    from ovpn_ip_updater.routeros.words import WordStream


class Sentence(BaseModel):
    """
    One RouterOS API sentence.

    Attributes
    ----------
    command : str
        Command path (``/login``) or reply marker (``!re``, ``!done``,
        ``!trap``). Empty for the no-data sentence.
    attributes : dict[str, str]
        Attribute values keyed by name, sigil included (``=ret``).
    """

    command: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """Whether this is the no-data sentence."""
        return not self.command and not self.attributes

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the value of attribute ``name`` (sigil included)."""
        return self.attributes.get(name, default)

    def to_words(self) -> list[str]:
        """
        Return the sentence as words, terminator excluded.

        Returns
        -------
        list[str]
            The command word followed by one ``name=value`` word per attribute.
        """
        words = [self.command]
        words.extend(f"{name}={value}" for name, value in self.attributes.items())
        return words

    def __str__(self) -> str:
        return " ".join(self.to_words())


def split_attribute(word: str) -> tuple[str, str]:
    """
    Split an attribute word into name and value.

    The first character is the sigil and may itself be ``=``; the name ends
    at the first ``=`` after it. Values may contain ``=``.

    Parameters
    ----------
    word : str
        Attribute word, e.g. ``"=comment=a=b"``.

    Returns
    -------
    tuple[str, str]
        ``(name, value)``, e.g. ``("=comment", "a=b")``. A word without a
        separator is returned as ``(word, "")``.
    """
    sep = word.find("=", 1)
    if sep == -1:
        return word, ""
    return word[:sep], word[sep + 1 :]


def parse_sentence(words: list[str]) -> Sentence:
    """
    Build a sentence from the words read before a terminator.

    Parameters
    ----------
    words : list[str]
        Non-empty words, command first.

    Returns
    -------
    Sentence
        The parsed sentence, or the empty sentence when ``words`` is empty.
    """
    if not words:
        return Sentence()

    attributes = dict(split_attribute(word) for word in words[1:])
    return Sentence(command=words[0], attributes=attributes)


def encode_sentence(sentence: Sentence, encoding: str = "utf-8") -> bytes:
    """
    Encode a sentence into its complete wire form.

    Parameters
    ----------
    sentence : Sentence
        Sentence to encode.
    encoding : str, optional
        Text encoding of words on the wire.

    Returns
    -------
    bytes
        Length-prefixed words followed by the zero-length terminator.
    """
    parts: list[bytes] = []
    for word in sentence.to_words():
        data = word.encode(encoding)
        parts.append(encode_length(len(data)))
        parts.append(data)
    parts.append(encode_length(0))
    return b"".join(parts)


def write_sentence(stream: WordStream, sentence: Sentence) -> None:
    """Send a sentence, terminator included, as a single write."""
    stream.write_raw(encode_sentence(sentence, stream.encoding))


def read_sentence(stream: WordStream) -> Sentence:
    """
    Read words up to the next terminator and parse them.

    Parameters
    ----------
    stream : WordStream
        Stream to read from.

    Returns
    -------
    Sentence
        The sentence read; the empty sentence if the terminator came first.
    """
    words: list[str] = []
    while True:
        word = stream.read_word()
        if not word:
            return parse_sentence(words)
        words.append(word)
