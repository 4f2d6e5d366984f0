"""Unit tests for collection identifiers."""

from __future__ import annotations

import pytest

from storedb.domain.value_objects import CollectionSchema, TypeTag, validate_collection_name


@pytest.mark.unit
class TestCollectionSchema:
    """Tests for CollectionSchema."""

    def test_equality_is_by_tags(self) -> None:
        """Schemas with the same tags compare equal."""
        a = CollectionSchema(TypeTag("int"), TypeTag("user.v1"))
        b = CollectionSchema(TypeTag("int"), TypeTag("user.v1"))

        assert a == b
        assert hash(a) == hash(b)

    def test_value_tag_change_is_inequality(self) -> None:
        """Bumping a tag version makes the schemas differ."""
        v1 = CollectionSchema(TypeTag("int"), TypeTag("user.v1"))
        v2 = CollectionSchema(TypeTag("int"), TypeTag("user.v2"))

        assert v1 != v2

    def test_swapped_tags_differ(self) -> None:
        """Key and value tags are not interchangeable."""
        assert CollectionSchema(TypeTag("int"), TypeTag("str")) != CollectionSchema(
            TypeTag("str"), TypeTag("int")
        )

    def test_empty_tag_rejected(self) -> None:
        """Empty tags are invalid."""
        with pytest.raises(ValueError):
            CollectionSchema(TypeTag(""), TypeTag("str"))

    def test_immutable(self) -> None:
        """Schemas cannot be modified."""
        schema = CollectionSchema(TypeTag("int"), TypeTag("str"))
        with pytest.raises(AttributeError):
            schema.key_type = TypeTag("bytes")  # type: ignore

    def test_repr(self) -> None:
        """Test string representation."""
        schema = CollectionSchema(TypeTag("int"), TypeTag("user.v1"))
        assert repr(schema) == "CollectionSchema(key=int, value=user.v1)"


@pytest.mark.unit
class TestCollectionName:
    """Tests for validate_collection_name."""

    def test_valid_name(self) -> None:
        """Non-empty names pass through."""
        assert validate_collection_name("users") == "users"

    def test_empty_name(self) -> None:
        """Empty names are rejected."""
        with pytest.raises(ValueError):
            validate_collection_name("")

    def test_non_string_name(self) -> None:
        """Non-string names are rejected."""
        with pytest.raises(ValueError):
            validate_collection_name(42)  # type: ignore
