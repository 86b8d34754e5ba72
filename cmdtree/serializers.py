"""
Token serializers: turning one raw token into a typed value.

Overview
- Serializer: base class of every serializer. serialize(token) returns the
  value, or a Failure describing why the token was rejected. Serializers never
  raise for bad user input.
- Failure: the rejection value (falsy, carries a human-readable reason).
- Byte, Short, Long, Double, Char: scalar marker types with the value ranges of
  fixed-width integers and characters; plain int, float and bool are supported
  too.
- SerializerRegistry: owns the built-in serializers (one per scalar type) and
  a lazy cache of custom serializers keyed by (value type, serializer class).

Custom serializers
    class MaterialSerializer(Serializer):
        typename = "material"

        def serialize(self, token):
            try:
                return Material[token]
            except KeyError:
                return Failure("material %r does not exist" % token)

        def complete(self):
            return sorted(member.name for member in Material)
"""
import builtins
import logging
import re
from typing import final

from .messages import Messages
from .utils import Introspective, Unset, coalesce

log = logging.getLogger(__name__)


@final
class Failure(metaclass=Introspective):
    """
    A serializer's verdict that a token is not a valid value.

    Failures are values, not exceptions: the dispatcher reports the reason to
    the sender and stops processing further tokens.
    """
    __introspectable__ = ("reason",)

    def __init__(self, reason, /):
        if not isinstance(reason, str):
            raise TypeError("failure 'reason' must be a string")
        self._reason = reason

    def __bool__(self):
        return False

    def __eq__(self, other):
        if not isinstance(other, Failure):
            return NotImplemented
        return self._reason == other._reason

    def __hash__(self):
        return hash((Failure, self._reason))


class Serializer:
    """
    Base class for serializers.

    Attributes
    - typename: display type used in help ("integer", "material", ...). When
      None, the parameter's own type name is shown.

    Methods
    - serialize(token): value or Failure.
    - complete(): candidate tokens for tab-completion, or None when the
      serializer offers no completion (the host's default applies).
    """
    typename = None

    def serialize(self, token, /):
        raise NotImplementedError

    def complete(self):
        return None


class ScalarSerializer(Serializer):
    """
    Serializer backed by a converter callable.

    The converter raises ValueError (or IndexError/OverflowError) on bad input;
    that is turned into a Failure naming the token and the display type.
    """

    def __init__(self, convert, typename, /, completions=(), *, messages=Unset):
        if not callable(convert):
            raise TypeError("scalar serializer converter must be callable")
        self._convert = convert
        self._messages = coalesce(messages, Messages())
        self._completions = tuple(sorted(completions))
        self.typename = typename

    def serialize(self, token, /):
        try:
            return self._convert(token)
        except (ValueError, IndexError, OverflowError):
            return Failure(self._messages.format("serialization-failure", token, self.typename))

    def complete(self):
        return list(self._completions) if self._completions else None

    def __repr__(self):
        return f"scalar-serializer(typename={self.typename!r})"


class _Bounded(int):
    __bounds__ = (None, None)

    def __new__(cls, value=0, /):
        self = super().__new__(cls, value)
        lower, upper = cls.__bounds__
        if not lower <= self <= upper:
            raise ValueError(f"{cls.__name__.lower()} value {int(self)} out of range [{lower}, {upper}]")
        return self

    def __repr__(self):
        return f"{type(self).__name__}({int(self)})"

    __str__ = int.__repr__


class Byte(_Bounded):
    __bounds__ = (-2 ** 7, 2 ** 7 - 1)


class Short(_Bounded):
    __bounds__ = (-2 ** 15, 2 ** 15 - 1)


class Long(_Bounded):
    __bounds__ = (-2 ** 63, 2 ** 63 - 1)


class Double(float):
    def __repr__(self):
        return f"Double({float(self)!r})"

    __str__ = float.__repr__


class Char(str):
    def __new__(cls, value, /):
        if len(value) != 1:
            raise ValueError(f"char value must be a single character, not {value!r}")
        return super().__new__(cls, value)


_INTEGER = re.compile(r"[+-]?\d+")


def _integer(cls):
    def convert(token):
        if not _INTEGER.fullmatch(token):
            raise ValueError(token)
        return cls(int(token))
    return convert


_DECIMAL = re.compile(r"[+-]?(?:NaN|Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _decimal(cls):
    def convert(token):
        if not _DECIMAL.fullmatch(token):
            raise ValueError(token)
        return cls(token)
    return convert


def _boolean(token):
    return token.lower() == "true"


def _character(token):
    return Char(token[0])


class SerializerRegistry:
    """
    Registry of serializers by value type.

    Built-in serializers exist for bool, int, float and the scalar marker
    types; hosts add their own value types (players, worlds, ...) through
    register() during start-up. Custom serializers named by a parameter are
    instantiated on first use and cached per (value type, serializer class).

    After start-up the registry is only read; a race on first population of the
    custom cache stores behaviorally identical instances, last write wins.
    """

    def __init__(self, messages=Unset, /):
        messages = coalesce(messages, Messages())
        if not isinstance(messages, Messages):
            raise TypeError("SerializerRegistry() argument must be a messages service")
        self._messages = messages
        self._custom = {}

        def scalar(convert, key, completions=()):
            return ScalarSerializer(convert, messages.get("serializer-names." + key), completions, messages=messages)

        self._builtins = {
            bool: scalar(_boolean, "boolean", ("false", "true")),
            Byte: scalar(_integer(Byte), "byte"),
            Short: scalar(_integer(Short), "short"),
            int: scalar(_integer(int), "integer"),
            Long: scalar(_integer(Long), "long"),
            float: scalar(_decimal(float), "float"),
            Double: scalar(_decimal(Double), "double"),
            Char: scalar(_character, "character"),
        }

    @property
    def messages(self):
        return self._messages

    def register(self, type, serializer, /):
        """
        Register a built-in serializer for a host value type.
        """
        if not isinstance(type, builtins.type):
            raise TypeError("register() first argument must be a type")
        if not isinstance(serializer, Serializer):
            raise TypeError("register() second argument must be a serializer")
        self._builtins[type] = serializer
        return serializer

    def get(self, type, /):
        """
        Return the built-in serializer for type, or None.
        """
        return self._builtins.get(type)

    def __contains__(self, type):
        return type in self._builtins

    def custom(self, type, serializer, /):
        """
        Return the cached instance of a custom serializer class for type.
        """
        try:
            return self._custom[type, serializer]
        except KeyError:
            pass
        if not isinstance(serializer, builtins.type) or not callable(getattr(serializer, "serialize", None)):
            raise TypeError("custom serializer must be a class providing serialize()")
        instance = self._custom[type, serializer] = serializer()
        log.debug("instantiated serializer %s for %r", serializer.__qualname__, type)
        return instance

    def __repr__(self):
        return f"serializer-registry(builtins={len(self._builtins)}, custom={len(self._custom)})"


__all__ = (
    "Failure",
    "Serializer",
    "ScalarSerializer",
    "Byte",
    "Short",
    "Long",
    "Double",
    "Char",
    "SerializerRegistry",
)
