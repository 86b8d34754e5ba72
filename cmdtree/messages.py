"""
Message templates used to render help, usage and user-facing errors.

Lookup order for a key
1. the overrides mapping given to Messages(...) (per engine)
2. a __messages__ mapping defined in __main__ (host-wide)
3. the bundled DEFAULTS
4. the key itself

Templates use printf-style placeholders ("%s"), rendered by Messages.format().
"""
import logging
from collections.abc import Mapping
from types import MappingProxyType

from .utils import Unset, coalesce

log = logging.getLogger(__name__)

DEFAULTS = MappingProxyType({
    # help
    "help-header": "usage: %s",
    "help-entry": "  %s",
    "optional": "(optional)",
    "description-separator": " - ",

    # simple usage
    "simple-usage-required": "<%s>",
    "simple-usage-optional": "[%s]",
    "simple-usage-compound": "{%s}",
    "compound-suffix": "...",
    "separator": "|",

    # errors
    "no-permission": "you do not have permission to use this command",
    "invalid-sender-type": "this command cannot be used by a %s",
    "serialization-error": "invalid argument: %s",
    "serialization-failure": "input %r is not of type %s",

    # serializer display names
    "serializer-names.string": "string",
    "serializer-names.boolean": "boolean",
    "serializer-names.byte": "byte",
    "serializer-names.short": "short",
    "serializer-names.integer": "integer",
    "serializer-names.long": "long",
    "serializer-names.float": "float",
    "serializer-names.double": "double",
    "serializer-names.character": "character",

    # sender categories
    "sender-types.player": "player",
    "sender-types.console": "console",
    "sender-types.any": "sender",
    "sender-types.unknown": "unknown sender",
})


class Messages:
    """
    Message/template lookup service.

    Messages are read when a command tree is built (usage strings) and on every
    rendered failure; lookups never fail, an unknown key is its own message.
    """

    def __init__(self, overrides=Unset, /):
        if not isinstance(overrides := coalesce(overrides, {}), Mapping):
            raise TypeError("Messages() argument must be a mapping")
        for key, value in overrides.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError("Messages() argument must map strings to strings")
        self._overrides = MappingProxyType(dict(overrides))

    def get(self, key, /):
        for source in (self._overrides, getattr(__import__("__main__"), "__messages__", {}), DEFAULTS):
            try:
                return source[key]
            except KeyError:
                continue
        return key

    def format(self, key, /, *arguments):
        """
        Render a template with printf-style arguments.

        Overrides may drop placeholders; surplus arguments are then ignored and
        the template is returned as is.
        """
        template = self.get(key)
        if not arguments:
            return template
        try:
            return template % arguments
        except (TypeError, ValueError):
            log.debug("message %r does not take %d argument(s), rendered as is", key, len(arguments))
            return template

    def __getitem__(self, key):
        return self.get(key)

    def __repr__(self):
        return f"messages(overrides={dict(self._overrides)!r})"


__all__ = (
    "DEFAULTS",
    "Messages",
)
