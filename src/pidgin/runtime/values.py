"""
Runtime values for the Pidgin interpreter.

A ``Value`` pairs Python data with its ``ValueKind``. Values are immutable:
arrays hold tuples and objects hold dicts that are copied, never modified,
whenever a method produces an updated aggregate.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterable, Tuple
import math

if TYPE_CHECKING:
    from ..ast import Block
    from .environment import Environment


class ValueKind(Enum):
    """The closed set of runtime value variants."""
    NUMBER = "Number"
    STRING = "String"
    BOOLEAN = "Boolean"
    NIL = "Nil"
    FIXED_ARRAY = "FixedArray"
    DYNAMIC_ARRAY = "DynamicArray"
    OBJECT = "Object"
    DATE = "Date"
    FUNCTION = "Function"

    def __str__(self) -> str:
        return self.value


ARRAY_KINDS = (ValueKind.FIXED_ARRAY, ValueKind.DYNAMIC_ARRAY)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(eq=False)
class Function:
    """A user-defined function together with its defining environment."""
    name: str
    parameters: Tuple[str, ...]
    body: "Block"
    closure: "Environment" = field(repr=False)

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True)
class Value:
    """
    A runtime value.

    The ``data`` field holds the Python representation:
    float, str, bool, None, tuple of Values, dict of str to Value,
    datetime or Function, depending on ``kind``.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.kind})"

    def __str__(self) -> str:
        return format_value(self)

    def is_truthy(self) -> bool:
        """Booleans are themselves, nil is false, everything else is true."""
        if self.kind == ValueKind.BOOLEAN:
            return self.data
        return self.kind != ValueKind.NIL

    @property
    def is_array(self) -> bool:
        return self.kind in ARRAY_KINDS


NIL = Value(None, ValueKind.NIL)
TRUE = Value(True, ValueKind.BOOLEAN)
FALSE = Value(False, ValueKind.BOOLEAN)


# Convenience constructors

def number_val(n: float) -> Value:
    """Create a number value."""
    return Value(float(n), ValueKind.NUMBER)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def bool_val(b: bool) -> Value:
    return TRUE if b else FALSE


def nil_val() -> Value:
    return NIL


def fixed_array_val(items: Iterable[Value]) -> Value:
    """Create a fixed-length array value."""
    return Value(tuple(items), ValueKind.FIXED_ARRAY)


def dynamic_array_val(items: Iterable[Value]) -> Value:
    """Create a growable array value."""
    return Value(tuple(items), ValueKind.DYNAMIC_ARRAY)


def object_val(entries: Dict[str, Value]) -> Value:
    """Create an object value from a copy of ``entries``."""
    return Value(dict(entries), ValueKind.OBJECT)


def date_val(moment: datetime) -> Value:
    return Value(moment, ValueKind.DATE)


def function_val(function: Function) -> Value:
    return Value(function, ValueKind.FUNCTION)


# Display

def format_number(x: float) -> str:
    """Canonical decimal text for a number: 30, 0.5, 1.25, NaN, inf."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x.is_integer():
        return str(int(x))
    text = repr(x)
    if "e" in text:
        # Expand exponent notation to plain digits
        text = format(Decimal(text), "f")
    return text


def format_value(value: Value) -> str:
    """Render a value the way ``print`` shows it."""
    kind = value.kind
    if kind == ValueKind.STRING:
        return value.data
    if kind == ValueKind.NUMBER:
        return format_number(value.data)
    if kind == ValueKind.BOOLEAN:
        return "true" if value.data else "false"
    if kind == ValueKind.NIL:
        return "nil"
    if kind == ValueKind.FIXED_ARRAY:
        return "[" + ", ".join(format_value(v) for v in value.data) + "]"
    if kind == ValueKind.DYNAMIC_ARRAY:
        return "{" + ", ".join(format_value(v) for v in value.data) + "}"
    if kind == ValueKind.OBJECT:
        if not value.data:
            return "{}"
        body = ", ".join(f"{k}: {format_value(v)}" for k, v in value.data.items())
        return "{ " + body + " }"
    if kind == ValueKind.DATE:
        return value.data.strftime(DATE_FORMAT)
    if kind == ValueKind.FUNCTION:
        return f"function({', '.join(value.data.parameters)}) {{ ... }}"
    raise ValueError(f"unknown value kind: {kind}")


def describe_value(value: Value) -> str:
    """Kind and display form, used in error messages: Number(3), String("a")."""
    if value.kind == ValueKind.STRING:
        return f'String("{value.data}")'
    if value.kind == ValueKind.NIL:
        return "Nil"
    return f"{value.kind}({format_value(value)})"


# Comparison

def values_equal(left: Value, right: Value) -> bool:
    """Structural equality; values of different kinds are never equal."""
    if left.kind != right.kind:
        return False
    kind = left.kind
    if kind in ARRAY_KINDS:
        if len(left.data) != len(right.data):
            return False
        return all(values_equal(a, b) for a, b in zip(left.data, right.data))
    if kind == ValueKind.OBJECT:
        if left.data.keys() != right.data.keys():
            return False
        return all(values_equal(v, right.data[k]) for k, v in left.data.items())
    if kind == ValueKind.FUNCTION:
        return left.data is right.data
    return left.data == right.data


# Conversion

def to_python(value: Value) -> Any:
    """Convert a value into plain Python data (lists, dicts, floats, ...)."""
    if value.kind in ARRAY_KINDS:
        return [to_python(v) for v in value.data]
    if value.kind == ValueKind.OBJECT:
        return {k: to_python(v) for k, v in value.data.items()}
    return value.data


def from_python(data: Any) -> Value:
    """Wrap plain Python data; lists become dynamic arrays."""
    if isinstance(data, Value):
        return data
    if data is None:
        return NIL
    if isinstance(data, bool):
        return bool_val(data)
    if isinstance(data, (int, float)):
        return number_val(data)
    if isinstance(data, str):
        return string_val(data)
    if isinstance(data, datetime):
        return date_val(data)
    if isinstance(data, tuple):
        return fixed_array_val(from_python(item) for item in data)
    if isinstance(data, list):
        return dynamic_array_val(from_python(item) for item in data)
    if isinstance(data, dict):
        return object_val({str(k): from_python(v) for k, v in data.items()})
    raise ValueError(f"cannot convert {type(data).__name__} to a Pidgin value")
