"""
Choice lists: closed sets of named values usable as parameter types.

Supported closed sets
- Enum subclasses. A member is named by str(member) when the enum defines its
  own string form (StrEnum, or a custom __str__), otherwise by member.name:

      class Field(StrEnum):
          EXP = "exp"
          LVL = "lvl"            # tokens: "exp", "lvl"

- typing.Literal[...] of strings, ints or bools; each value is named str(value).

Tokens are matched by exact, case-sensitive lookup.
"""
import builtins
import logging
import typing
from enum import Enum
from types import MappingProxyType

from .faults import MalformedDefinitionError

log = logging.getLogger(__name__)


def _is_literal(type, /):
    return typing.get_origin(type) is typing.Literal


def _name(member, /):
    if type(member).__str__ is Enum.__str__:
        return member.name
    return str(member)


class ChoiceListRegistry:
    """
    Per-engine cache of choice tables.

    A table is built once per closed-set type, on first request, and shared by
    every parameter of that type for the lifetime of the registry.
    """

    def __init__(self):
        self._tables = {}

    def supports(self, type, /):
        return _is_literal(type) or (isinstance(type, builtins.type) and issubclass(type, Enum))

    def get(self, type, /):
        """
        Return the read-only name -> value table for a closed-set type.
        """
        try:
            return self._tables[type]
        except KeyError:
            pass

        if _is_literal(type):
            members = [(str(value), value) for value in typing.get_args(type)]
        elif self.supports(type):
            members = [(_name(member), member) for member in type]
        else:
            raise MalformedDefinitionError(
                "%r is not an enum or a literal, so it cannot be used as a choice list" % (type,),
                type=type,
            )

        table = {}
        for name, value in members:
            if name in table:
                raise MalformedDefinitionError(
                    "choice list %r names two values %r" % (type, name),
                    type=type,
                    hint="give every member a distinct string form",
                )
            table[name] = value

        table = self._tables[type] = MappingProxyType(table)
        log.debug("built choice list for %r: %s", type, ", ".join(table))
        return table

    def typename(self, type, /):
        """
        Display name of a closed-set type, or None for anonymous literals.
        """
        return None if _is_literal(type) else type.__name__

    def __repr__(self):
        return f"choice-list-registry(tables={len(self._tables)})"


__all__ = (
    "ChoiceListRegistry",
)
