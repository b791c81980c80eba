"""Small combinators shared by the JSON encoders and decoders.

Encoders build plain ``dict``/``list`` trees. Optional fields go through
:func:`try_include` and are dropped by :func:`choose` when absent, so an
absent value never shows up as ``null``.

Decoders are callables ``decoder(value, path) -> T``. ``path`` is a JSONPath
style location used in error messages.
"""
import json
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar

from isa_crate.errors import DecodeError, MissingRequiredField, TypeMismatch, UnexpectedField

T = TypeVar("T")

Decoder = Callable[[Any, str], T]
Field = Optional[Tuple[str, Any]]


def identity(value):
    return value


def try_include(key: str, encoder: Callable[[Any], Any], value) -> Field:
    if value is None:
        return None
    return key, encoder(value)


def try_include_list(key: str, encoder: Callable[[Any], Any], values: Optional[Iterable]) -> Field:
    if not values:
        return None
    return key, [encoder(value) for value in values]


def choose(fields: Iterable[Field]) -> dict:
    return {field[0]: field[1] for field in fields if field is not None}


def to_json_string(value, spaces: int = 0) -> str:
    if spaces == 0:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(value, ensure_ascii=False, indent=spaces)


def child_path(path: str, key: str) -> str:
    return f"{path}.{key}"


def index_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


def field_name(path: str) -> Optional[str]:
    tail = path.rsplit(".", 1)[-1]
    if tail.startswith("$"):
        return None
    return tail


def expect_object(value, path: str = "$") -> dict:
    if not isinstance(value, dict):
        raise TypeMismatch(field_name(path), "object", path)
    return value


def expect_list(value, path: str = "$") -> list:
    if not isinstance(value, list):
        raise TypeMismatch(field_name(path), "array", path)
    return value


def expect_string(value, path: str = "$") -> str:
    if not isinstance(value, str):
        raise TypeMismatch(field_name(path), "string", path)
    return value


def expect_int(value, path: str = "$") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeMismatch(field_name(path), "integer", path)
    return value


def expect_number(value, path: str = "$") -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatch(field_name(path), "number", path)
    return value


def list_of(decoder: Decoder) -> Decoder:
    def decode(value, path: str = "$") -> list:
        items = expect_list(value, path)
        return [decoder(item, index_path(path, i)) for i, item in enumerate(items)]

    return decode


def optional_field(obj: dict, key: str, decoder: Decoder, path: str = "$"):
    """Decode ``obj[key]`` when the key is present, otherwise return ``None``."""
    if key not in obj or obj[key] is None:
        return None
    return decoder(obj[key], child_path(path, key))


def optional_list(obj: dict, key: str, decoder: Decoder, path: str = "$") -> List:
    values = optional_field(obj, key, list_of(decoder), path)
    return values if values is not None else []


def required_field(obj: dict, key: str, decoder: Decoder, path: str = "$"):
    if key not in obj:
        raise MissingRequiredField(key, path)
    return decoder(obj[key], child_path(path, key))


def check_allowed_fields(obj: dict, allowed: Iterable[str], path: str = "$") -> None:
    allowed = set(allowed)
    for key in obj:
        if key not in allowed:
            raise UnexpectedField(key, path)


def from_json_string(decoder: Decoder, text: str):
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid JSON: {exc.msg}") from exc
    return decoder(value, "$")
