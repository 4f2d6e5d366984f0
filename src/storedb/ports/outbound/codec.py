"""Codec port for typed keys and values.

A codec turns one Python type into opaque bytes and back. The store never
inspects those bytes; it only compares them (for key equality and ordering)
and records the codec's ``type_tag`` per collection.

Contract:
    - ``encode`` is deterministic: equal values give equal bytes. Key
      lookups depend on this.
    - ``decode(encode(v))`` equals ``v``.
    - ``encode`` raises ``EncodeError``; ``decode`` raises ``DecodeError``
      on malformed input or on a payload of the wrong type.
    - ``type_tag`` is a stable, explicit name for the encoded type. Two
      codecs with the same tag must be able to read each other's bytes.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, TypeVar

T = TypeVar("T")


class Codec(Protocol[T]):
    """Protocol for encoding one value type to bytes."""

    @property
    @abstractmethod
    def type_tag(self) -> str:
        """Return the tag recorded in ``collection_meta`` for this type."""
        ...

    @abstractmethod
    def encode(self, value: T) -> bytes:
        """Encode a value.

        Raises:
            EncodeError: If the value cannot be represented.
        """
        ...

    @abstractmethod
    def decode(self, data: bytes) -> T:
        """Decode bytes produced by ``encode``.

        Raises:
            DecodeError: If the bytes are malformed or hold another type.
        """
        ...
