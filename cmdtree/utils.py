"""
cmdtree utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the definition, parameter and node layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr).

- lowerfirst(text)
  • Lower-case only the first character ("SayHey" -> "sayHey"); used to derive labels.

- Introspective
  • Metaclass publishing __introspectable__ fields as mirrored properties with a
    stable __repr__/__rich_repr__.
"""
import builtins
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | UnsetType).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish “no input” from “explicitly passed None”.
"""


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or () are preserved; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Return a read-only view of container values.

    - Mapping: MappingProxyType over the original mapping (no copy, O(1)).
    - list: converted to a tuple.
    - Set (mutable): frozen.
    - Anything else (tuples, strings, scalars, nodes) is returned unchanged.

    Nodes are shared read-only across dispatch threads, so views are preferred
    over copies here.
    """
    if isinstance(object, Mapping) and not isinstance(object, MappingProxyType):
        return MappingProxyType(object)
    elif isinstance(object, list):
        return tuple(object)
    elif isinstance(object, Set) and not isinstance(object, frozenset):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and wraps
    containers in read-only views (see _immortalize).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def lowerfirst(text, /):
    """
    Lower-case only the first character of text, preserving the rest.

    Examples
    - lowerfirst("Admin")   -> "admin"
    - lowerfirst("SayHey")  -> "sayHey"
    - lowerfirst("URLTool") -> "uRLTool"
    """
    if not isinstance(text, str):
        raise TypeError("lowerfirst() argument must be a string")
    return text[:1].lower() + text[1:]


class Introspective(type):
    """
    Metaclass for the immutable, introspectable value types of the package.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      backed by "_{name}" (see mirror()).
    - Derive __typename__ from the class name (camel-case split with hyphens)
      for consistent error messages ("parameter-spec 'name' must be ...").
    - Provide stable __repr__/__rich_repr__ built from __displayable__ when set,
      otherwise from __introspectable__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__typename__}({
                    ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
                })"
            self.__repr__ = __repr__

        if "__rich_repr__" not in namespace:
            @rename("__rich_repr__")
            def __rich_repr__(self):
                for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                    yield name, getattr(self, name)
            self.__rich_repr__ = __rich_repr__

        return self


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "lowerfirst",

    # Types
    "UnsetType",
    "Introspective",

    # Constants
    "Unset",
)
