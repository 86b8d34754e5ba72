r"""
cmdtree command definitions (the input side of tree construction).

Overview
- Param: one declared parameter of a command handler (after the sender).
- Definition: one command, either
  • a leaf: bound to a handler callable with an ordered tuple of Params, or
  • a compound: a tuple of child Definitions plus an optional default executor
    (a leaf Definition invoked when the compound receives no further tokens).

Both are immutable once constructed; metadata is sanitized up front so that
tree construction only has to deal with semantic problems (types that cannot
be serialized, ambiguous names, ...).

Labels
- When no label is given it is derived from the definition's identifier (the
  handler's __name__ unless an explicit identifier is passed) by lower-casing
  only the first character: "SayHey" -> "sayHey".
- Labels, aliases and permissions must be non-empty and free of whitespace,
  since input is tokenized on whitespace.

Quick example:
    >>> from cmdtree.definitions import Definition, Param
    >>> def give(sender, amount):
    ...     ...
    >>> leaf = Definition(handler=give, params=(Param(int | None, "amount", optional=True),))
    >>> root = Definition("shop", children=(leaf,), descr="shop commands")
    >>> root.children[0].label
    'give'
"""
import builtins
import re
from collections.abc import Iterable

from .faults import MalformedDefinitionError
from .senders import SenderType
from .utils import *


def _sanitize_words(cls, name, words, /):
    """
    Validate an iterable of labels/aliases/permissions and return a tuple.

    Entries are trimmed; empty strings, whitespace inside an entry and
    duplicates are rejected.
    """
    if isinstance(words, str) or not isinstance(words, Iterable):
        raise TypeError(f"{cls.__typename__} '{name}' must be an iterable of strings")

    sanitized = []
    for word in words:
        if not isinstance(word, str):
            raise TypeError(f"{cls.__typename__} '{name}' must contain only strings")
        elif not (word := word.strip()):
            raise ValueError(f"{cls.__typename__} '{name}' cannot contain empty strings")
        elif re.search(r"\s", word):
            raise ValueError(f"{cls.__typename__} '{name}' entries cannot contain whitespace")
        elif word in sanitized:
            raise ValueError(f"{cls.__typename__} '{name}' cannot contain duplicates")
        sanitized.append(word)
    return tuple(sanitized)


def _sanitize_text(cls, name, text, /):
    """
    Validate an optional free-text field; Unset becomes None.
    """
    if not isinstance(text, str | None | Unset):
        raise TypeError(f"{cls.__typename__} '{name}' must be a string")
    elif isinstance(text, str) and not (text := text.strip()):
        raise ValueError(f"{cls.__typename__} '{name}' cannot be empty")
    return coalesce(text)


class Param(metaclass=Introspective):
    """
    Declared parameter of a command handler.

    Fields
    - type: declared type. A Python type (str, int, bool, float, a scalar
      marker type, a host type with a registered serializer), an Enum subclass
      or typing.Literal[...] (choice list), "T | None" for a nullable type,
      list[T] or tuple[T, ...] for the trailing array.
    - name: identifier of the parameter, shown in usage unless 'usage' is
      set. Defaults to "arg{index}" when compiled.
    - optional: the argument may be omitted (binds None, or an empty array).
    - serializer: Serializer subclass used instead of the built-in resolution.
    - descr: description shown in the parameters usage.
    - usage: display name override.
    - display: display type override.
    - default: value bound when an optional scalar is omitted (None when unset).
    """
    __introspectable__ = (
        "type",
        "name",
        "optional",
        "serializer",
        "descr",
        "usage",
        "display",
        "default",
    )

    def __init__(self, type, name=Unset, /, optional=False, serializer=None, *, descr=Unset, usage=Unset, display=Unset, default=Unset):
        if type is None:
            raise TypeError(f"{Param.__typename__} 'type' cannot be None")
        self._type = type

        if not isinstance(name, str | Unset):
            raise TypeError(f"{Param.__typename__} 'name' must be a string")
        elif isinstance(name, str) and not name.isidentifier():
            raise ValueError(f"{Param.__typename__} 'name' must be a valid identifier")
        self._name = coalesce(name)

        if not isinstance(optional, bool):
            raise TypeError(f"{Param.__typename__} 'optional' must be a boolean")
        self._optional = optional

        if serializer is not None and not isinstance(serializer, builtins.type):
            raise TypeError(f"{Param.__typename__} 'serializer' must be a serializer class")
        self._serializer = serializer

        self._descr = _sanitize_text(Param, "descr", descr)
        self._usage = _sanitize_text(Param, "usage", usage)
        self._display = _sanitize_text(Param, "display", display)
        if default is not Unset and not optional:
            raise ValueError(f"{Param.__typename__} 'default' requires an optional parameter")
        self._default = default

    def __eq__(self, other):
        if not isinstance(other, Param):
            return NotImplemented
        return dict(self.__rich_repr__()) == dict(other.__rich_repr__())

    __hash__ = None


class Definition(metaclass=Introspective):
    """
    Immutable description of one command (leaf or compound).

    Leaf fields
    - handler: callable invoked as handler(sender, *arguments).
    - params: ordered Params (the sender is not a Param).
    - variadic: spread the trailing array into the handler call instead of
      passing it as one list (used for *args handlers).

    Compound fields
    - children: child Definitions (leaves or compounds).
    - executor: default executor, a leaf Definition without Params.

    Shared fields
    - label, aliases, permissions, descr and the sender tag (SenderType, its
      value, or a sender class resolved by the engine's SenderResolver).
    """
    __introspectable__ = (
        "label",
        "aliases",
        "permissions",
        "descr",
        "sender",
        "params",
        "handler",
        "variadic",
        "children",
        "executor",
    )

    def __init__(
            self,
            label=Unset,
            /,
            *,
            handler=None,
            params=(),
            variadic=False,
            children=(),
            executor=None,
            descr=Unset,
            permissions=(),
            aliases=(),
            sender=SenderType.ANY,
            identifier=Unset,
    ):
        if handler is not None and not callable(handler):
            raise TypeError(f"{Definition.__typename__} 'handler' must be callable")
        self._handler = handler

        if not isinstance(label, str | Unset):
            raise TypeError(f"{Definition.__typename__} 'label' must be a string")
        if label is Unset:
            if not isinstance(identifier, str | Unset):
                raise TypeError(f"{Definition.__typename__} 'identifier' must be a string")
            if (identifier := coalesce(identifier, getattr(handler, "__name__", None))) is None:
                raise MalformedDefinitionError(
                    "command definition has neither a label nor an identifier to derive one from",
                    hint="pass a label, a handler, or identifier='Name'",
                )
            label = lowerfirst(identifier)
        self._label, = _sanitize_words(Definition, "label", (label,))

        if not isinstance(params, Iterable):
            raise TypeError(f"{Definition.__typename__} 'params' must be an iterable of params")
        params = tuple(params)
        if not all(isinstance(param, Param) for param in params):
            raise TypeError(f"{Definition.__typename__} 'params' must contain only params")
        self._params = params

        if not isinstance(variadic, bool):
            raise TypeError(f"{Definition.__typename__} 'variadic' must be a boolean")
        self._variadic = variadic

        if not isinstance(children, Iterable):
            raise TypeError(f"{Definition.__typename__} 'children' must be an iterable of definitions")
        children = tuple(children)
        if not all(isinstance(child, Definition) for child in children):
            raise TypeError(f"{Definition.__typename__} 'children' must contain only definitions")
        self._children = children

        if executor is not None and not isinstance(executor, Definition):
            raise TypeError(f"{Definition.__typename__} 'executor' must be a definition")
        self._executor = executor

        self._descr = _sanitize_text(Definition, "descr", descr)
        self._permissions = _sanitize_words(Definition, "permissions", permissions)
        self._aliases = _sanitize_words(Definition, "aliases", aliases)

        if not isinstance(sender, SenderType | str | builtins.type):
            raise TypeError(f"{Definition.__typename__} 'sender' must be a sender type, its value, or a class")
        self._sender = sender

        if handler is not None and (self._children or executor is not None):
            raise MalformedDefinitionError(
                f"command '{self._label}' has both a handler and sub-commands",
                hint="a command is either a leaf (handler) or a compound (children/executor)",
            )
        if handler is None and (self._params or variadic):
            raise MalformedDefinitionError(
                f"compound command '{self._label}' cannot declare parameters",
            )
        if variadic and not self._params:
            raise MalformedDefinitionError(
                f"command '{self._label}' is variadic but declares no trailing array",
            )

    @property
    def compound(self):
        """
        True when this definition describes a compound command.
        """
        return self._handler is None

    def __replace__(self, **overrides):
        fields = dict(self.__rich_repr__()) | overrides
        return type(self)(fields.pop("label"), **fields)


__all__ = (
    "Param",
    "Definition",
)
