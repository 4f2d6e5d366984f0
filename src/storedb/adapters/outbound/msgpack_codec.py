"""msgpack-based codecs.

``MsgpackCodec`` handles plain Python values (ints, strings, bytes, floats,
bools, lists, dicts). ``ModelCodec`` handles pydantic models by packing
their JSON-mode dump and validating on the way back.

Both pack a canonical form: map entries are sorted by their packed key
and negative zero is folded into zero, so equal values always give equal
bytes regardless of dict insertion order.

Ordering note:
    msgpack is not order-preserving. Integers 0..127 encode to a single
    byte and sort naturally, but larger integers gain a type prefix
    (``0xcc``, ``0xcd``...) and negative integers sort after all positive
    ones. Collections order keys by these raw bytes.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

import msgpack
from pydantic import BaseModel, ValidationError

from storedb.domain.errors import DecodeError, EncodeError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def _canonical(value: Any) -> Any:
    """Return an equal value whose msgpack encoding is unique.

    Maps are rebuilt with entries sorted by their packed key, recursively,
    and ``-0.0`` becomes ``0.0``. Equal inputs then pack to equal bytes,
    which key lookups rely on.
    """
    if isinstance(value, dict):
        items = [(_canonical(k), _canonical(v)) for k, v in value.items()]
        items.sort(key=lambda item: msgpack.packb(item[0], use_bin_type=True))
        return dict(items)
    if isinstance(value, list):
        return [_canonical(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_canonical(v) for v in value)
    if isinstance(value, float) and value == 0.0:
        return 0.0
    return value


def _pack(value: Any, type_tag: str) -> bytes:
    try:
        return msgpack.packb(_canonical(value), use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise EncodeError(f"Cannot encode {type(value).__name__} as {type_tag!r}: {e}") from e


def _unpack(data: bytes, type_tag: str) -> Any:
    try:
        return msgpack.unpackb(data, raw=False, strict_map_key=False)
    except (ValueError, TypeError, msgpack.exceptions.UnpackException) as e:
        raise DecodeError(f"Malformed {type_tag!r} payload: {e}") from e


class MsgpackCodec(Generic[T]):
    """Codec for plain msgpack-representable values.

    Args:
        type_tag: Tag recorded for collections using this codec.
        py_type: Optional type (or tuple of types) every value must be an
            instance of. Checked on encode and on decode.
    """

    def __init__(
        self, type_tag: str, py_type: type | tuple[type, ...] | None = None
    ) -> None:
        if not type_tag:
            raise ValueError("type_tag must be a non-empty string")
        self._type_tag = type_tag
        self._py_type = py_type

    @property
    def type_tag(self) -> str:
        return self._type_tag

    def _check(self, value: Any) -> bool:
        if self._py_type is None:
            return True
        # bool is an int subclass; keep int and bool codecs apart
        if isinstance(value, bool) and not self._accepts_bool():
            return False
        return isinstance(value, self._py_type)

    def _accepts_bool(self) -> bool:
        types = self._py_type if isinstance(self._py_type, tuple) else (self._py_type,)
        return bool in types

    def encode(self, value: T) -> bytes:
        if not self._check(value):
            raise EncodeError(
                f"Codec {self._type_tag!r} cannot encode {type(value).__name__}"
            )
        return _pack(value, self._type_tag)

    def decode(self, data: bytes) -> T:
        value = _unpack(data, self._type_tag)
        if not self._check(value):
            raise DecodeError(
                f"Codec {self._type_tag!r} decoded unexpected {type(value).__name__}"
            )
        return value

    def __repr__(self) -> str:
        return f"MsgpackCodec({self._type_tag!r})"


class ModelCodec(Generic[M]):
    """Codec for pydantic models.

    The tag must be passed explicitly; it is what ties stored rows to a
    model layout, so change it whenever the layout changes incompatibly.

    Example:
        >>> class User(BaseModel):
        ...     id: int
        ...     name: str
        >>> codec = ModelCodec(User, "user.v1")
    """

    def __init__(self, model: type[M], type_tag: str) -> None:
        if not type_tag:
            raise ValueError("type_tag must be a non-empty string")
        self._model = model
        self._type_tag = type_tag

    @property
    def type_tag(self) -> str:
        return self._type_tag

    @property
    def model(self) -> type[M]:
        return self._model

    def encode(self, value: M) -> bytes:
        if not isinstance(value, self._model):
            raise EncodeError(
                f"Codec {self._type_tag!r} expects {self._model.__name__}, "
                f"got {type(value).__name__}"
            )
        return _pack(value.model_dump(mode="json"), self._type_tag)

    def decode(self, data: bytes) -> M:
        payload = _unpack(data, self._type_tag)
        try:
            return self._model.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                f"Payload does not match {self._model.__name__} ({self._type_tag!r}): {e}"
            ) from e

    def __repr__(self) -> str:
        return f"ModelCodec({self._model.__name__}, {self._type_tag!r})"


INT_CODEC: MsgpackCodec[int] = MsgpackCodec("int", int)
STR_CODEC: MsgpackCodec[str] = MsgpackCodec("str", str)
BYTES_CODEC: MsgpackCodec[bytes] = MsgpackCodec("bytes", bytes)
FLOAT_CODEC: MsgpackCodec[float] = MsgpackCodec("float", float)
BOOL_CODEC: MsgpackCodec[bool] = MsgpackCodec("bool", bool)
