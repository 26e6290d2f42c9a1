"""Typed conversion between Lua values and host records.

Decoding is driven by ordinary Python type annotations: ``str``, ``int``,
``bool``, ``list[T]``/``tuple[T, ...]`` (Lua arrays), ``dict[str, T]`` (Lua
maps) and ``msgspec.Struct`` subclasses, whose fields are looked up by their
encoded name (falling back to the attribute name). Nil arrays and maps
decode as empty containers, nil strings as ``""`` and nil booleans as
``False``; a nil struct or integer is a mismatch.
"""

from __future__ import annotations

import types
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar, cast, get_args, get_origin

import msgspec
from lupa.lua54 import lua_type

from core.errors import TypeMismatchError

if TYPE_CHECKING:
    from lupa.lua54 import LuaRuntime

T = TypeVar("T")


def lua_type_name(value: object) -> str:
    """Return the Lua type name observed for ``value``.

    Parameters
    ----------
    value
        Value received from the Lua runtime.

    Returns
    -------
    str
        Lua type name (``nil``, ``boolean``, ``number``, ``string``,
        ``table``, ``function``, ``userdata`` or ``thread``).
    """
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (str, bytes)):
        return "string"
    return lua_type(value) or "userdata"


def _is_table(value: object) -> bool:
    return value is not None and lua_type(value) == "table"


def _describe(target: object) -> str:
    if isinstance(target, type):
        if issubclass(target, msgspec.Struct):
            return f"struct {target.__name__}"
        return target.__name__
    return str(target)


class ScriptValueCodec:
    """Bidirectional converter between Lua values and typed Python values.

    Parameters
    ----------
    runtime
        Lua runtime used to allocate tables when encoding. Decoding does not
        need one.
    """

    def __init__(self, runtime: LuaRuntime | None = None) -> None:
        self._runtime = runtime

    def decode(self, value: object, target: type[T], *, path: str = "$") -> T:
        """Decode a Lua value into ``target``.

        Parameters
        ----------
        value
            Value handed over by the Lua runtime.
        target
            Annotation describing the expected host type.
        path
            Location used in mismatch messages.

        Returns
        -------
        T
            Decoded host value.

        Raises
        ------
        TypeError
            Raised when ``target`` is not a supported annotation.
        """
        origin = get_origin(target)
        if origin in (list, tuple):
            return cast("T", self._decode_sequence(value, target, path=path))
        if origin is dict:
            return cast("T", self._decode_mapping(value, target, path=path))
        if origin in (types.UnionType,):
            msg = f"Unsupported union annotation for script values: {target!r}"
            raise TypeError(msg)
        if isinstance(target, type) and issubclass(target, msgspec.Struct):
            return cast("T", self._decode_struct(value, target, path=path))
        if target is str:
            return cast("T", _decode_string(value, path=path))
        if target is bool:
            return cast("T", _decode_bool(value, path=path))
        if target is int:
            return cast("T", _decode_integer(value, path=path))
        msg = f"Unsupported annotation for script values: {target!r}"
        raise TypeError(msg)

    def _decode_sequence(self, value: object, target: Any, *, path: str) -> list[Any] | tuple[Any, ...]:
        origin = get_origin(target)
        args = get_args(target)
        item_type = args[0] if args else str
        if value is None:
            return () if origin is tuple else []
        if not _is_table(value):
            raise TypeMismatchError(_describe(target), lua_type_name(value), path)
        table = cast("Any", value)
        items = [
            self.decode(table[index], item_type, path=f"{path}[{index}]")
            for index in range(1, len(table) + 1)
        ]
        return tuple(items) if origin is tuple else items

    def _decode_mapping(self, value: object, target: Any, *, path: str) -> dict[Any, Any]:
        key_type, value_type = get_args(target) or (str, str)
        if value is None:
            return {}
        if not _is_table(value):
            raise TypeMismatchError(_describe(target), lua_type_name(value), path)
        table = cast("Any", value)
        decoded: dict[Any, Any] = {}
        for raw_key, raw_value in table.items():
            key = self.decode(raw_key, key_type, path=f"{path}.<key>")
            decoded[key] = self.decode(raw_value, value_type, path=f"{path}.{key}")
        # Lua tables carry no insertion order.
        return {key: decoded[key] for key in sorted(decoded)}

    def _decode_struct(self, value: object, target: type[msgspec.Struct], *, path: str) -> msgspec.Struct:
        if not _is_table(value):
            raise TypeMismatchError(_describe(target), lua_type_name(value), path)
        table = cast("Any", value)
        kwargs: dict[str, object] = {}
        for field in msgspec.structs.fields(target):
            raw = table[field.encode_name]
            if raw is None and field.encode_name != field.name:
                raw = table[field.name]
            kwargs[field.name] = self.decode(raw, field.type, path=f"{path}.{field.name}")
        return target(**kwargs)

    def encode(self, value: object) -> object:
        """Encode a host value into Lua values.

        Strings, numbers, booleans and ``None`` pass through unchanged;
        paths become strings; sequences, mappings and structs become Lua
        tables (sequences are 1-indexed).

        Parameters
        ----------
        value
            Host value to convert.

        Returns
        -------
        object
            Value suitable for handing to the Lua runtime.

        Raises
        ------
        RuntimeError
            Raised when a table is needed but the codec has no runtime.
        TypeError
            Raised for values with no Lua representation.
        """
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, Path):
            return str(value)
        if self._runtime is None:
            msg = "ScriptValueCodec needs a Lua runtime to encode tables."
            raise RuntimeError(msg)
        if isinstance(value, msgspec.Struct):
            table = self._runtime.table()
            for field in msgspec.structs.fields(value):
                table[field.encode_name] = self.encode(getattr(value, field.name))
            return table
        if isinstance(value, dict):
            table = self._runtime.table()
            for key, item in value.items():
                table[self.encode(key)] = self.encode(item)
            return table
        if isinstance(value, (list, tuple)):
            table = self._runtime.table()
            for index, item in enumerate(value, start=1):
                table[index] = self.encode(item)
            return table
        msg = f"Cannot encode {type(value).__name__} as a Lua value."
        raise TypeError(msg)


def _decode_string(value: object, *, path: str) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise TypeMismatchError("string", lua_type_name(value), path)
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    # Lua coerces numbers to strings implicitly.
    if isinstance(value, (int, float)):
        return _number_to_string(value)
    raise TypeMismatchError("string", lua_type_name(value), path)


def _number_to_string(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _decode_integer(value: object, *, path: str) -> int:
    if isinstance(value, bool) or value is None:
        raise TypeMismatchError("int", lua_type_name(value), path)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise TypeMismatchError("int", lua_type_name(value), path) from None
    raise TypeMismatchError("int", lua_type_name(value), path)


def _decode_bool(value: object, *, path: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    raise TypeMismatchError("bool", lua_type_name(value), path)


__all__ = ["ScriptValueCodec", "lua_type_name"]
