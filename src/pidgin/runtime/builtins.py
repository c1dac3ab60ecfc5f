"""
Built-in methods and functions for the Pidgin interpreter.

Methods live in a capability table keyed by (ValueKind, method name), so a
method is available on exactly the receiver kinds registered for it. Every
aggregate method returns a new value and leaves its receiver untouched.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple
import logging

from .values import (
    Value, ValueKind, NIL, ARRAY_KINDS,
    number_val, string_val, bool_val, dynamic_array_val, object_val, date_val,
    format_value, describe_value,
)
from ..errors import (
    error_method_not_supported,
    error_arity_mismatch,
    error_invalid_argument,
    error_invalid_date,
    error_index_out_of_range,
    error_undefined_name,
)
from ..tokens import SourceSpan

if TYPE_CHECKING:
    from .interpreter import Interpreter

logger = logging.getLogger(__name__)

DATE_INPUT_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


@dataclass
class BuiltinMethod:
    """A method callable on one or more receiver kinds.

    ``implementation(receiver, *args, span=...)`` returns the result Value.
    """
    name: str
    arity: int
    implementation: Callable[..., Value]


@dataclass
class BuiltinFunction:
    """A free function such as readline() or printErr(x).

    ``implementation(interpreter, *args, span=...)`` returns the result Value.
    """
    name: str
    arity: int
    implementation: Callable[..., Value]


# --- Argument helpers ---

def check_index(index: Value, length: int, operation: str,
                span: Optional[SourceSpan], allow_end: bool = False) -> int:
    """
    Validate an array index and return it as an int.

    The index must be a whole Number in 0..length-1, or 0..length when
    ``allow_end`` is set (insertion point).
    """
    if index.kind != ValueKind.NUMBER or not float(index.data).is_integer():
        raise error_invalid_argument(operation, "index must be a whole Number",
                                     describe_value(index), span)
    position = int(index.data)
    limit = length + 1 if allow_end else length
    if position < 0 or position >= limit:
        raise error_index_out_of_range(position, length, span)
    return position


def _string_key(key: Value, operation: str, span: Optional[SourceSpan]) -> str:
    if key.kind != ValueKind.STRING:
        raise error_invalid_argument(operation, "object keys must be Strings",
                                     describe_value(key), span)
    return key.data


# --- Array methods ---

def _length(receiver: Value, span=None) -> Value:
    return number_val(len(receiver.data))


def _reverse(receiver: Value, span=None) -> Value:
    return Value(tuple(reversed(receiver.data)), receiver.kind)


def _push(receiver: Value, item: Value, span=None) -> Value:
    return dynamic_array_val(receiver.data + (item,))


def _pop(receiver: Value, span=None) -> Value:
    if not receiver.data:
        raise error_index_out_of_range(-1, 0, span)
    return receiver.data[-1]


def _insert(receiver: Value, index: Value, item: Value, span=None) -> Value:
    items = receiver.data
    position = check_index(index, len(items), "insert", span, allow_end=True)
    return dynamic_array_val(items[:position] + (item,) + items[position:])


def _remove(receiver: Value, index: Value, span=None) -> Value:
    items = receiver.data
    position = check_index(index, len(items), "remove", span)
    return dynamic_array_val(items[:position] + items[position + 1:])


def _clear(receiver: Value, span=None) -> Value:
    return dynamic_array_val(())


# --- String methods ---

def _to_upper(receiver: Value, span=None) -> Value:
    return string_val(receiver.data.upper())


def _to_lower(receiver: Value, span=None) -> Value:
    return string_val(receiver.data.lower())


def _trim(receiver: Value, span=None) -> Value:
    return string_val(receiver.data.strip())


def _replace_char(receiver: Value, source: Value, target: Value, span=None) -> Value:
    if not source.data:
        raise error_invalid_argument("replaceChar", "text to replace must not be empty",
                                     describe_value(source), span)
    return string_val(receiver.data.replace(source.data, target.data))


# --- Object methods ---

def _set(receiver: Value, key: Value, item: Value, span=None) -> Value:
    entries = dict(receiver.data)
    entries[_string_key(key, "set", span)] = item
    return object_val(entries)


def _get(receiver: Value, key: Value, span=None) -> Value:
    return receiver.data.get(_string_key(key, "get", span), NIL)


def _has(receiver: Value, key: Value, span=None) -> Value:
    return bool_val(_string_key(key, "has", span) in receiver.data)


def _keys(receiver: Value, span=None) -> Value:
    return dynamic_array_val(string_val(k) for k in receiver.data)


# --- Date methods ---

def _get_year(receiver: Value, span=None) -> Value:
    return number_val(receiver.data.year)


def _get_month(receiver: Value, span=None) -> Value:
    return number_val(receiver.data.month)


def _get_day(receiver: Value, span=None) -> Value:
    return number_val(receiver.data.day)


def _format_date(receiver: Value, pattern: Value, span=None) -> Value:
    if pattern.kind != ValueKind.STRING:
        raise error_invalid_argument("format", "pattern must be a String",
                                     describe_value(pattern), span)
    return string_val(receiver.data.strftime(pattern.data))


# --- Date construction ---

def make_date(args: List[Value], span: Optional[SourceSpan] = None,
              now: Callable[[], datetime] = datetime.now) -> Value:
    """
    Build a Date value.

    Date()                        current local time
    Date("YYYY-MM-DD")            midnight of that day
    Date("YYYY-MM-DD HH:MM:SS")
    Date(year, month, day)
    """
    if not args:
        return date_val(now().replace(microsecond=0))

    if len(args) == 1:
        text = args[0]
        if text.kind != ValueKind.STRING:
            raise error_invalid_date(describe_value(text), span)
        for pattern in DATE_INPUT_FORMATS:
            try:
                return date_val(datetime.strptime(text.data.strip(), pattern))
            except ValueError:
                continue
        raise error_invalid_date(f'"{text.data}"', span)

    if len(args) == 3:
        shown = ", ".join(describe_value(a) for a in args)
        if any(a.kind != ValueKind.NUMBER or not float(a.data).is_integer() for a in args):
            raise error_invalid_date(f"({shown})", span)
        year, month, day = (int(a.data) for a in args)
        try:
            return date_val(datetime(year, month, day))
        except ValueError:
            raise error_invalid_date(f"({shown})", span) from None

    raise error_arity_mismatch("Date", 3, len(args), span)


# --- Free functions ---

def _readline(interpreter: "Interpreter", span=None) -> Value:
    line = interpreter.input.readline()
    if not line:
        return NIL
    return string_val(line.rstrip("\r\n"))


def _print_err(interpreter: "Interpreter", value: Value, span=None) -> Value:
    interpreter.err.write(format_value(value) + "\n")
    return NIL


class BuiltinRegistry:
    """
    Registry of built-in methods and free functions.

    Methods are registered per receiver kind and looked up by
    (ValueKind, method name).
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._methods: Dict[Tuple[ValueKind, str], BuiltinMethod] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a free function by name."""
        return self._functions.get(name)

    def get_method(self, kind: ValueKind, method_name: str) -> Optional[BuiltinMethod]:
        """Look up a method by receiver kind and method name."""
        return self._methods.get((kind, method_name))

    def register(self, func: BuiltinFunction) -> None:
        self._functions[func.name] = func

    def register_method(self, kinds: Iterable[ValueKind], method: BuiltinMethod) -> None:
        """Register a method for each of the given receiver kinds."""
        for kind in kinds:
            self._methods[(kind, method.name)] = method

    def methods_for(self, kind: ValueKind) -> List[str]:
        """Names of the methods available on a receiver kind."""
        return sorted(name for (k, name) in self._methods if k == kind)

    def _register_all(self) -> None:
        self._register_array_methods()
        self._register_string_methods()
        self._register_object_methods()
        self._register_date_methods()
        self._register_functions()

    def _register_array_methods(self) -> None:
        dynamic = (ValueKind.DYNAMIC_ARRAY,)
        self.register_method(ARRAY_KINDS, BuiltinMethod("length", 0, _length))
        self.register_method(ARRAY_KINDS, BuiltinMethod("reverse", 0, _reverse))
        self.register_method(dynamic, BuiltinMethod("push", 1, _push))
        # pop returns the last element and leaves the receiver alone
        self.register_method(dynamic, BuiltinMethod("pop", 0, _pop))
        self.register_method(dynamic, BuiltinMethod("insert", 2, _insert))
        self.register_method(dynamic, BuiltinMethod("remove", 1, _remove))
        self.register_method(dynamic, BuiltinMethod("clear", 0, _clear))

    def _register_string_methods(self) -> None:
        string = (ValueKind.STRING,)
        self.register_method(string, BuiltinMethod("toUpper", 0, _to_upper))
        self.register_method(string, BuiltinMethod("toLower", 0, _to_lower))
        self.register_method(string, BuiltinMethod("trim", 0, _trim))
        self.register_method(string, BuiltinMethod("replaceChar", 2, _replace_char))

    def _register_object_methods(self) -> None:
        obj = (ValueKind.OBJECT,)
        self.register_method(obj, BuiltinMethod("set", 2, _set))
        self.register_method(obj, BuiltinMethod("get", 1, _get))
        self.register_method(obj, BuiltinMethod("has", 1, _has))
        self.register_method(obj, BuiltinMethod("keys", 0, _keys))

    def _register_date_methods(self) -> None:
        date = (ValueKind.DATE,)
        self.register_method(date, BuiltinMethod("getYear", 0, _get_year))
        self.register_method(date, BuiltinMethod("getMonth", 0, _get_month))
        self.register_method(date, BuiltinMethod("getDay", 0, _get_day))
        self.register_method(date, BuiltinMethod("format", 1, _format_date))

    def _register_functions(self) -> None:
        self.register(BuiltinFunction("readline", 0, _readline))
        self.register(BuiltinFunction("printErr", 1, _print_err))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_method(receiver: Value, method_name: str, args: List[Value],
                span: Optional[SourceSpan] = None) -> Value:
    """
    Call a method on a value.

    Raises TypeError if the receiver kind does not define the method.
    """
    method = get_builtin_registry().get_method(receiver.kind, method_name)
    if method is None:
        raise error_method_not_supported(method_name, str(receiver.kind), span)
    if len(args) != method.arity:
        raise error_arity_mismatch(method_name, method.arity, len(args), span)
    logger.debug("method %s.%s", receiver.kind, method_name)
    return method.implementation(receiver, *args, span=span)


def call_builtin(interpreter: "Interpreter", name: str, args: List[Value],
                 span: Optional[SourceSpan] = None) -> Value:
    """
    Call a built-in free function by name.

    Raises NameError if no such function exists.
    """
    func = get_builtin_registry().get_function(name)
    if func is None:
        raise error_undefined_name(name, span)
    if len(args) != func.arity:
        raise error_arity_mismatch(name, func.arity, len(args), span)
    return func.implementation(interpreter, *args, span=span)
