"""
Sender categories, sender classification and the default permission predicate.

A command declares which category of sender may run it (player, console or
any). The host describes its own sender classes to a SenderResolver, in
priority order, e.g.:

    senders = SenderResolver({Player: SenderType.PLAYER, Console: SenderType.CONSOLE, Sender: SenderType.ANY})
"""
from collections.abc import Mapping
from enum import Enum

from .utils import Unset, coalesce


class SenderType(Enum):
    """
    closed set of sender categories.

    ANY accepts every sender, including senders the resolver cannot classify.
    """
    PLAYER = "player"
    CONSOLE = "console"
    ANY = "any"

    def accepts(self, category, /):
        return self is SenderType.ANY or category is self

    def describe(self, messages, /):
        return messages.get("sender-types." + self.value)


class SenderResolver:
    """
    Map senders and sender classes to a SenderType.

    Lookups walk the mapping in insertion order and stop at the first match,
    so subclasses must be listed before their bases.
    """

    def __init__(self, classes=Unset, /):
        if not isinstance(classes := coalesce(classes, {}), Mapping):
            raise TypeError("SenderResolver() argument must be a mapping of classes to sender types")
        for cls, category in classes.items():
            if not isinstance(cls, type):
                raise TypeError("SenderResolver() keys must be classes")
            if not isinstance(category, SenderType):
                raise TypeError("SenderResolver() values must be sender types")
        self._classes = tuple(classes.items())

    def __call__(self, sender, /):
        """
        Return the category of a concrete sender, or None when unknown.
        """
        for cls, category in self._classes:
            if isinstance(sender, cls):
                return category
        return None

    def resolve(self, tag, /):
        """
        Resolve a declared sender tag (SenderType, its value, or a class).

        Returns None when the tag cannot be resolved; callers turn that into a
        build error.
        """
        if isinstance(tag, SenderType):
            return tag
        if isinstance(tag, str):
            try:
                return SenderType(tag)
            except ValueError:
                return None
        if isinstance(tag, type):
            for cls, category in self._classes:
                if issubclass(tag, cls):
                    return category
            if tag is object:
                return SenderType.ANY
        return None

    def __repr__(self):
        return f"sender-resolver({", ".join(f"{cls.__name__}={category.value}" for cls, category in self._classes)})"


def has_permission(sender, permissions, /):
    """
    Default permission predicate.

    An empty permission list always holds; otherwise every entry must be
    granted by sender.has_permission(entry). Senders without a has_permission
    method hold no permission at all.
    """
    if not permissions:
        return True
    if (check := getattr(sender, "has_permission", None)) is None:
        return False
    return all(check(permission) for permission in permissions)


__all__ = (
    "SenderType",
    "SenderResolver",
    "has_permission",
)
