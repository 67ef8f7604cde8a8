"""
Module to support encoding and decoding of JSON values.

Records exchanged with the API are expressed as dataclasses. A codec for a Python type is
obtained through JSONCodec.get, which dispatches on the type hint:

  codec = JSONCodec.get(list[ZoneRecord])
  zones = codec.decode(json.loads(body))

Fields whose name on the wire differs from the dataclass field name are annotated with a
Key annotation:

  @dataclass
  class ZoneRecord:
      id: int
      type: Annotated[ZoneType, Key("zone_type")]
"""

import dataclasses
import enum
import functools
import iso8601
import json
import keyword
import typing

from collections.abc import Iterable, Mapping, Set
from contextlib import contextmanager, suppress
from crowdfiber.types import is_optional, is_subclass, is_union, split_annotated
from crowdfiber.types import strip_annotations
from datetime import datetime, timezone
from types import NoneType
from typing import Any, Generic, TypeVar, get_args, get_origin


JSONType = Any


# ----- utilities -----


@contextmanager
def _wrap(exception):
    try:
        yield
    except Exception as e:
        if isinstance(e, exception):
            raise
        raise exception(str(e) or None) from e


def _to_utc(value):
    if value.tzinfo is None:  # naive value interpreted as UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ----- errors -----


class CodecError(ValueError):
    """
    Error raised in the event that a value cannot be encoded or decoded.

    Attributes:
    • message: description of the error
    • path: location of the offending value, as a list of keys and indexes
    """

    __slots__ = {"message", "path"}

    def __init__(self, message: str | None = None, path: list[str | int] | None = None):
        self.message = message
        self.path = path

    def __repr__(self):
        return f"{self.__class__.__name__}({self.message!r}, {self.path!r})"

    def __str__(self):
        return " ".join(str(s) for s in (self.message, self.path) if s is not None)

    @staticmethod
    @contextmanager
    def path_on_error(path: list[str | int] | str | int) -> None:
        """Context manager to add to error path in the event that a CodecError is raised."""
        try:
            yield
        except CodecError as ce:
            if ce.path is None:
                ce.path = []
            match path:
                case str() | int():
                    ce.path.insert(0, path)
                case list():
                    ce.path = path + ce.path
            raise


class EncodeError(CodecError):
    """Error raised in the event that a value cannot be encoded."""


class DecodeError(CodecError):
    """Error raised in the event that a value cannot be decoded."""


# ----- annotations -----


class Key:
    """
    Type annotation to express the key of a dataclass field in its JSON object.

    Parameters:
    • value: the name of the field in the JSON object
    """

    __slots__ = {"value"}

    def __init__(self, value: str):
        self.value = value

    def __repr__(self):
        return f"Key({self.value!r})"

    def __eq__(self, other: Any):
        return type(self) is type(other) and self.value == other.value

    def __hash__(self):
        return hash((Key, self.value))


# ----- base -----


PT = TypeVar("PT")  # Python type hint


class JSONCodec(Generic[PT]):
    """
    Base class for codecs that encode Python types to/from JSON representations. A JSON
    representation is a value composed of dict, list, str, int, float, bool and None, as
    accepted by json.dumps and returned by json.loads.
    """

    _cache = {}

    def __init__(self, python_type: Any):
        self.python_type = python_type

    @staticmethod
    def handles(python_type: Any) -> bool:
        """Return True if the codec handles the specified Python type."""
        raise NotImplementedError

    @classmethod
    def get(cls, python_type: Any) -> "JSONCodec[PT]":
        """Return a codec that handles the specified Python type."""
        with suppress(KeyError, TypeError):  # TypeError: unhashable type hint
            return cls._cache[python_type]
        for codec_class in JSONCodec.__subclasses__():
            if codec_class.handles(python_type):
                codec = codec_class(python_type)
                with suppress(TypeError):
                    cls._cache[python_type] = codec
                return codec
        raise TypeError(f"no codec for {python_type}")

    def encode(self, value: PT) -> JSONType:
        """Encode value from Python type to JSON type."""
        raise NotImplementedError

    def decode(self, value: JSONType) -> PT:
        """Decode value from JSON type to Python type."""
        raise NotImplementedError


# ----- enum -----


class EnumJSONCodec(JSONCodec[enum.Enum]):
    """JSON codec for enumerations; members are represented by their values."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), enum.Enum)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.enum = strip_annotations(python_type)

    def encode(self, value: enum.Enum) -> JSONType:
        if not isinstance(value, self.enum):
            raise EncodeError
        return value.value

    def decode(self, value: JSONType) -> enum.Enum:
        with _wrap(DecodeError):
            return self.enum(value)


# ----- str -----


class StrJSONCodec(JSONCodec[str]):
    """JSON codec for Unicode character strings."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), str)

    def encode(self, value: str) -> JSONType:
        if not isinstance(value, str):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> str:
        if not isinstance(value, str):
            raise DecodeError
        return value


# ----- int -----


class IntJSONCodec(JSONCodec[int]):
    """JSON codec for integers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, int) and not is_subclass(python_type, bool)

    def encode(self, value: int) -> JSONType:
        if not isinstance(value, int) or isinstance(value, bool):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> int:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError
        result = value
        if isinstance(result, float):
            result = int(result)
            if result != value:  # 1.0 == 1
                raise DecodeError
        return result


# ----- float -----


class FloatJSONCodec(JSONCodec[float]):
    """JSON codec for floating point numbers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), float)

    def encode(self, value: float) -> JSONType:
        if not isinstance(value, float | int) or isinstance(value, bool):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> float:
        if not isinstance(value, float | int) or isinstance(value, bool):
            raise DecodeError
        return float(value)


# ----- bool -----


class BoolJSONCodec(JSONCodec[bool]):
    """JSON codec for boolean values."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), bool)

    def encode(self, value: bool) -> JSONType:
        if not isinstance(value, bool):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> bool:
        if not isinstance(value, bool):
            raise DecodeError
        return value


# ----- NoneType -----


class NoneTypeJSONCodec(JSONCodec[NoneType]):
    """JSON codec for None value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return python_type is NoneType or python_type is None

    def encode(self, value: NoneType) -> JSONType:
        if value is not None:
            raise EncodeError
        return None

    def decode(self, value: JSONType) -> NoneType:
        if value is not None:
            raise DecodeError
        return None


# ----- datetime -----


class DatetimeJSONCodec(JSONCodec[datetime]):
    """
    JSON codec for datetime.

    It will decode a datetime represented in an ISO 8601 formatted string. It will encode a
    datetime to an RFC 3339 (subset of ISO 8601) formatted string.

    Datetimes always encode and decode to UTC timezone offset.

    Example: "2020-04-07T12:34:56.789012Z".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), datetime)

    def encode(self, value: datetime) -> JSONType:
        if not isinstance(value, datetime):
            raise EncodeError
        result = _to_utc(value).isoformat()
        if result.endswith("+00:00"):
            result = result[0:-6]
        if "+" not in result and not result.endswith("Z"):
            result = f"{result}Z"
        return result

    def decode(self, value: JSONType) -> datetime:
        if not isinstance(value, str):
            raise DecodeError
        with _wrap(DecodeError):
            return _to_utc(iso8601.parse_date(value))


# ----- Union -----


class UnionJSONCodec(JSONCodec[PT]):
    """
    JSON codec for union types. Member types are tried in order of declaration; the first
    codec that successfully encodes or decodes the value wins.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_union(python_type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        args = get_args(strip_annotations(python_type))
        if NoneType in args:  # None first, so it is never mistaken for another type
            args = (NoneType, *(a for a in args if a is not NoneType))
        self.codecs = tuple(JSONCodec.get(arg) for arg in args)

    def encode(self, value: PT) -> JSONType:
        for codec in self.codecs:
            with suppress(EncodeError):
                return codec.encode(value)
        raise EncodeError

    def decode(self, value: JSONType) -> PT:
        for codec in self.codecs:
            with suppress(DecodeError):
                return codec.decode(value)
        raise DecodeError


# ----- Mapping -----


class MappingJSONCodec(JSONCodec[PT]):
    """JSON codec for mappings with string keys."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Mapping)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        args = get_args(strip_annotations(python_type)) or (str, Any)
        if len(args) != 2:
            raise TypeError("expecting Mapping[KT, VT]")
        if args[0] is not str:
            raise TypeError("codec only supports mappings with str keys")
        self.value_codec = JSONCodec.get(args[1])

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Mapping):
            raise EncodeError
        result = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodeError
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.encode(v)
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, Mapping):
            raise DecodeError
        result = {}
        for k, v in value.items():
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.decode(v)
        return result


# ----- Iterable -----


class IterableJSONCodec(JSONCodec[PT]):
    """JSON codec for lists, sets and other iterables; represented as JSON arrays."""

    _AVOID = str | bytes | bytearray | Mapping

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Iterable) and not is_subclass(
            origin, IterableJSONCodec._AVOID
        )

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        args = get_args(python_type) or (Any,)
        if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
            args = args[:1]
        if len(args) != 1:
            raise TypeError("expecting Iterable[T]")
        self.decode_type = origin if origin in {list, set, frozenset, tuple} else list
        self.codec = JSONCodec.get(args[0])
        self.is_set = is_subclass(origin, Set)

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Iterable) or isinstance(value, IterableJSONCodec._AVOID):
            raise EncodeError
        if self.is_set:
            value = sorted(value)
        result = []
        for index, item in enumerate(value):
            with CodecError.path_on_error(index):
                result.append(self.codec.encode(item))
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, list):
            raise DecodeError
        result = []
        for index, item in enumerate(value):
            with CodecError.path_on_error(index):
                result.append(self.codec.decode(item))
        return self.decode_type(result)


# ----- Any -----


class AnyJSONCodec(JSONCodec[Any]):
    """JSON codec for Any; values pass through unaltered."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return strip_annotations(python_type) is Any

    def encode(self, value: Any) -> JSONType:
        return value

    def decode(self, value: JSONType) -> Any:
        return value


# ----- dataclass -----


class DataclassJSONCodec(JSONCodec[PT]):
    """
    JSON codec for dataclasses; represented as JSON objects.

    Fields with None values are omitted when encoding. When decoding, a missing optional
    field without a default value is set to None. Field names that are Python keywords have
    a trailing underscore stripped (e.g. "in_" → "in"), unless a Key annotation is provided.
    """

    # keywords have _ suffix in dataclass fields (e.g. "in_", "for_", ...)
    _dc_kw = {k + "_": k for k in keyword.kwlist}

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return dataclasses.is_dataclass(python_type) and isinstance(python_type, type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)
        self.hints = typing.get_type_hints(self.raw_type, include_extras=True)
        self.fields = [f for f in dataclasses.fields(self.raw_type) if f.init]
        self.keys = {f.name: self._key(f.name) for f in self.fields}

    def _key(self, name: str) -> str:
        _, annotations = split_annotated(self.hints[name])
        for annotation in annotations:
            if isinstance(annotation, Key):
                return annotation.value
        return DataclassJSONCodec._dc_kw.get(name, name)

    @functools.cached_property
    def _codecs(self) -> dict[str, JSONCodec[Any]]:
        return {f.name: JSONCodec.get(self.hints[f.name]) for f in self.fields}

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, self.raw_type):
            raise EncodeError
        result = {}
        for field in self.fields:
            v = getattr(value, field.name, None)
            if v is not None:
                with CodecError.path_on_error(field.name):
                    result[self.keys[field.name]] = self._codecs[field.name].encode(v)
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, dict):
            raise DecodeError
        kwargs = {}
        for field in self.fields:
            try:
                item = value[self.keys[field.name]]
            except KeyError:
                if (
                    is_optional(self.hints[field.name])
                    and field.default is dataclasses.MISSING
                    and field.default_factory is dataclasses.MISSING
                ):
                    kwargs[field.name] = None
                continue
            with CodecError.path_on_error(field.name):
                kwargs[field.name] = self._codecs[field.name].decode(item)
        with _wrap(DecodeError):
            return self.raw_type(**kwargs)


# ----- JSON text -----


def loads(content: bytes | bytearray | str) -> JSONType:
    """Parse JSON text into a JSON value; raises DecodeError if the text is not valid JSON."""
    with _wrap(DecodeError):
        return json.loads(content)


def dumps(value: JSONType) -> bytes:
    """Serialize a JSON value into UTF-8 encoded JSON text."""
    with _wrap(EncodeError):
        return json.dumps(value).encode()


def decode(python_type: Any, content: bytes | bytearray | str) -> Any:
    """Decode JSON text into a value of the specified Python type."""
    return JSONCodec.get(python_type).decode(loads(content))


def encode(python_type: Any, value: Any) -> bytes:
    """Encode a value of the specified Python type into UTF-8 encoded JSON text."""
    return dumps(JSONCodec.get(python_type).encode(value))
