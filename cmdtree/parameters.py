"""
Parameter compilation: turning declared Params into ParameterSpecs.

A ParameterSpec is the compiled, immutable descriptor of one argument: its value
kind, display name and display type, optional flag, and the serializer or
choice table used to bind tokens.

Resolution order for a scalar type
1. an explicit custom serializer                  -> Kind.CUSTOM
2. an Enum subclass or typing.Literal[...]        -> Kind.CHOICE
3. a type with a registered built-in serializer   -> Kind.SCALAR
4. str                                            -> Kind.STRING
5. anything else is an UnresolvedTypeError

The trailing array (list[T] or tuple[T, ...], last parameter only) resolves
its element type the same way and records the array counterpart of the kind.
"""
import logging
import types
import typing
from enum import Enum

from .faults import *
from .utils import *

log = logging.getLogger(__name__)


class Kind(Enum):
    """
    closed set of argument value kinds.
    """
    STRING = "string"
    SCALAR = "scalar"
    CUSTOM = "custom"
    CHOICE = "choice"
    SERIALIZED_ARRAY = "serialized-array"
    CHOICE_ARRAY = "choice-array"
    STRING_ARRAY = "string-array"

    @property
    def array(self):
        return self in (Kind.SERIALIZED_ARRAY, Kind.CHOICE_ARRAY, Kind.STRING_ARRAY)

    def plural(self):
        """
        Return the array counterpart of a scalar kind.
        """
        match self:
            case Kind.STRING:
                return Kind.STRING_ARRAY
            case Kind.CHOICE:
                return Kind.CHOICE_ARRAY
            case Kind.SCALAR | Kind.CUSTOM:
                return Kind.SERIALIZED_ARRAY
        raise ValueError(f"{self} is already an array kind")


class ParameterSpec(metaclass=Introspective):
    """
    Compiled argument descriptor.

    Binding a token (bind) returns the value, a Failure for tokens rejected by
    a serializer, or Unset for tokens missing from a choice table.
    An omitted optional scalar binds default (None unless the Param sets one).
    """
    __introspectable__ = (
        "kind",
        "name",
        "type",
        "descr",
        "optional",
        "serializer",
        "choices",
        "container",
        "default",
    )
    __displayable__ = (
        "kind",
        "name",
        "type",
        "optional",
    )

    def __init__(self, kind, name, type, /, optional=False, descr=None, *, serializer=None, choices=None, container=list, default=None):
        if not isinstance(kind, Kind):
            raise TypeError(f"{ParameterSpec.__typename__} 'kind' must be a kind")
        if kind in (Kind.CHOICE, Kind.CHOICE_ARRAY) and choices is None:
            raise ValueError(f"{ParameterSpec.__typename__} of kind {kind.value} requires a choice table")
        if kind in (Kind.SCALAR, Kind.CUSTOM, Kind.SERIALIZED_ARRAY) and serializer is None:
            raise ValueError(f"{ParameterSpec.__typename__} of kind {kind.value} requires a serializer")
        self._kind = kind
        self._name = name
        self._type = type
        self._descr = descr
        self._optional = optional
        self._serializer = serializer
        self._choices = choices
        self._container = container
        self._default = default

    @property
    def array(self):
        return self._kind.array

    def bind(self, token, /):
        """
        Bind one token (one element for arrays).
        """
        if self._choices is not None:
            return self._choices.get(token, Unset)
        if self._serializer is not None:
            return self._serializer.serialize(token)
        return token

    def complete(self, prefix, /):
        """
        Return the sorted candidates starting with prefix, or None when this
        parameter has no completion source.
        """
        if self._choices is not None:
            source = self._choices.keys()
        elif self._serializer is not None:
            source = self._serializer.complete()
        else:
            source = None
        if source is None:
            return None
        return sorted(candidate for candidate in source if candidate.startswith(prefix))

    def usage(self, messages, /):
        """
        Simple-usage fragment: "<name>" or "[name]".
        """
        return messages.format("simple-usage-optional" if self._optional else "simple-usage-required", self._name)

    def help(self, messages, /):
        """
        Parameters-usage line: "name: type - description (optional)".
        """
        line = "%s: %s" % (self._name, self._type)
        if self._descr:
            line += messages.get("description-separator") + self._descr
        if self._optional:
            line += " " + messages.get("optional")
        return line


def _unwrap(annotation, /):
    """
    Split "T | None" into (T, True); anything else is (annotation, False).
    """
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        arguments = typing.get_args(annotation)
        if type(None) in arguments:
            remaining = tuple(argument for argument in arguments if argument is not type(None))
            return (remaining[0] if len(remaining) == 1 else typing.Union[remaining]), True
    return annotation, False


def _element(annotation, /):
    """
    Return (element type, container) for array annotations, or None.

    Accepted: list[T], tuple[T, ...], and the bare list/tuple (strings).
    """
    if annotation in (list, tuple):
        return str, annotation
    origin, arguments = typing.get_origin(annotation), typing.get_args(annotation)
    if origin is list and len(arguments) == 1:
        return arguments[0], list
    if origin is tuple and len(arguments) == 2 and arguments[1] is Ellipsis:
        return arguments[0], tuple
    return None


def _typename(type, /):
    return getattr(type, "__name__", None) or repr(type)


def _resolve(param, annotation, serializers, choices, /):
    """
    Resolve the kind of a scalar (or array element) type.

    Returns (kind, display type, serializer, choice table).
    """
    messages = serializers.messages
    if param.serializer is not None:
        serializer = serializers.custom(annotation, param.serializer)
        return Kind.CUSTOM, serializer.typename or _typename(annotation), serializer, None
    if choices.supports(annotation):
        table = choices.get(annotation)
        return Kind.CHOICE, choices.typename(annotation) or messages.get("separator").join(table), None, table
    if (serializer := serializers.get(annotation)) is not None:
        return Kind.SCALAR, serializer.typename or _typename(annotation), serializer, None
    if annotation is str:
        return Kind.STRING, messages.get("serializer-names.string"), None, None
    raise UnresolvedTypeError(
        "don't know how to serialize type %s" % _typename(annotation),
        type=annotation,
        hint="register a serializer for the type or bind one to the parameter",
    )


def compile_parameters(params, serializers, choices, /, *, command=Unset):
    """
    Compile declared Params into a tuple of ParameterSpecs.

    Parameters
    - params: ordered Params of a leaf (the sender is not a Param).
    - serializers: SerializerRegistry providing built-in and custom serializers.
    - choices: ChoiceListRegistry providing choice tables.
    - command: command label used in error messages.

    Raises
    - MisplacedArrayError: an array parameter that is not the last one.
    - UnresolvedTypeError: a type no serializer, choice table or str matches.
    - OptionalOrderError: a required scalar after an optional one.
    - NullableOptionalError: an optional scalar whose type does not admit None.
    """
    command = coalesce(command, "<anonymous>")
    messages = serializers.messages
    specs = []
    optional = False

    for index, param in enumerate(params := tuple(params)):
        name = param.usage or param.name or "arg%d" % index
        annotation, nullable = _unwrap(param.type)

        if (element := _element(annotation)) is not None:
            if index != len(params) - 1:
                raise MisplacedArrayError(
                    f"array parameter '{name}' of command '{command}' must be the last parameter",
                    hint="only the trailing parameter may consume the remaining tokens",
                )
            annotation, container = element
            kind, display, serializer, table = _resolve(param, _unwrap(annotation)[0], serializers, choices)
            kind = kind.plural()
            if kind is Kind.CHOICE_ARRAY:
                display = messages.get("separator").join(table)
            display += messages.get("compound-suffix")
        else:
            container = None
            kind, display, serializer, table = _resolve(param, annotation, serializers, choices)

            if param.optional:
                if not nullable:
                    raise NullableOptionalError(
                        f"optional parameter '{name}' of command '{command}' cannot be None",
                        hint="declare its type as '%s | None'" % _typename(annotation),
                    )
                optional = True
            elif optional:
                raise OptionalOrderError(
                    f"parameter '{name}' of command '{command}' follows an optional parameter",
                    hint="optional parameters must be the last parameters",
                )

        specs.append(ParameterSpec(
            kind,
            name,
            param.display or display,
            param.optional,
            param.descr,
            serializer=serializer,
            choices=table,
            container=container,
            default=None if container else coalesce(param.default),
        ))

    log.debug("compiled %d parameter(s) for command %r", len(specs), command)
    return tuple(specs)


__all__ = (
    "Kind",
    "ParameterSpec",
    "compile_parameters",
)
