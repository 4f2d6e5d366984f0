"""Identifiers and type tags for collections.

A collection's type identity is a pair of plain strings supplied by its
codecs. Tags are compared verbatim, so bumping a tag (``"user.v1"`` to
``"user.v2"``) is how a caller declares an incompatible value layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

TypeTag = NewType("TypeTag", str)
"""Opaque, caller-chosen identifier of a key or value type."""


@dataclass(frozen=True, slots=True)
class CollectionSchema:
    """The (key tag, value tag) pair persisted in ``collection_meta``.

    Attributes:
        key_type: Tag of the key codec
        value_type: Tag of the value codec

    Example:
        >>> CollectionSchema(TypeTag("int"), TypeTag("user.v1"))
        CollectionSchema(key=int, value=user.v1)
    """

    key_type: TypeTag
    value_type: TypeTag

    def __post_init__(self) -> None:
        """Validate the tags."""
        for field_name in ("key_type", "value_type"):
            tag = getattr(self, field_name)
            if not isinstance(tag, str) or not tag:
                raise ValueError(f"{field_name} must be a non-empty string, got {tag!r}")

    def __repr__(self) -> str:
        return f"CollectionSchema(key={self.key_type}, value={self.value_type})"


def validate_collection_name(name: str) -> str:
    """Return ``name`` if it is usable as a collection name.

    Raises:
        ValueError: If the name is not a non-empty string.
    """
    if not isinstance(name, str) or not name:
        raise ValueError(f"Collection name must be a non-empty string, got {name!r}")
    return name
