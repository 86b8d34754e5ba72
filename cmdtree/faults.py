"""
cmdtree faults (build errors and dispatch faults) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every exception the
  package raises. Codes are grouped by domain so logs and searches stay
  predictable.
- CommandException: base type carrying a message plus read-only options that
  knows how to render itself with rich.
- BuildError family: raised while compiling definitions into a command tree.
  Always fatal; a failed build registers nothing.
- DispatchError: a fault raised by a command handler, wrapped with the command
  route and re-raised to the embedding host.

What is NOT here
- Expected user errors (missing permission, wrong sender, bad arity, unknown
  choice, unparsable token) are not exceptions; they are reported to the sender
  and returned as outcomes (see cmdtree.outcomes).

Integration
- Hosts may print any fault with a rich console: console.print(fault).
- A __codes__ mapping in __main__ remaps numeric codes to friendlier labels and
  a __styles__ mapping overrides the palette.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - definitions (2110x)
      • MALFORMED_DEFINITION, AMBIGUOUS_NAME, MULTIPLE_EXECUTORS, UNRESOLVED_SENDER
    - parameters (2111x)
      • UNRESOLVED_TYPE, OPTIONAL_ORDER, NULLABLE_OPTIONAL, MISPLACED_ARRAY
    - handlers (2210x)
      • HANDLER_FAULT
    """
    # --- definition errors (21xxx) ---
    MALFORMED_DEFINITION        = 21101
    AMBIGUOUS_NAME              = 21102
    MULTIPLE_EXECUTORS          = 21103
    UNRESOLVED_SENDER           = 21104

    # --- parameter errors (21xxx) ---
    UNRESOLVED_TYPE             = 21111
    OPTIONAL_ORDER              = 21112
    NULLABLE_OPTIONAL           = 21113
    MISPLACED_ARRAY             = 21114

    # --- handler faults (22xxx) ---
    HANDLER_FAULT               = 22101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of every exception raised by cmdtree.

    Options are free-form context (title, code, hint, route, token, type, ...)
    exposed through a read-only mapping. Subclasses pin a default title and
    code through __title__/__code__ so call sites only pass context.
    """
    __title__ = "command fault"
    __code__ = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*((message,) if message else ()))
        self.message = message
        self.options = MappingProxyType({
            "title": self.__title__,
            "code": self.__code__,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.code.normalize() if isinstance(self.code, FaultCode) else "?"
        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", "cmdtree"), "prog-name"),
            " - ",
            text(code, "code"),
            " | ",
            text(self.options["title"].title(), "error-title"),
            " ]"
        )
        renders = [header, text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*renders)

    def report(self, target=Unset, /):
        """
        Print this fault to a rich console (stderr by default).
        """
        coalesce(target, console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class BuildError(CommandException):
    __title__ = "invalid command definition"
    __code__ = FaultCode.MALFORMED_DEFINITION


class MalformedDefinitionError(BuildError): ...


class AmbiguousNameError(BuildError):
    __title__ = "ambiguous command name"
    __code__ = FaultCode.AMBIGUOUS_NAME


class MultipleExecutorsError(BuildError):
    __title__ = "multiple default executors"
    __code__ = FaultCode.MULTIPLE_EXECUTORS


class UnresolvedSenderError(BuildError):
    __title__ = "unresolved sender type"
    __code__ = FaultCode.UNRESOLVED_SENDER


class UnresolvedTypeError(BuildError):
    __title__ = "unresolved parameter type"
    __code__ = FaultCode.UNRESOLVED_TYPE


class OptionalOrderError(BuildError):
    __title__ = "misplaced optional parameter"
    __code__ = FaultCode.OPTIONAL_ORDER


class NullableOptionalError(BuildError):
    __title__ = "non-nullable optional parameter"
    __code__ = FaultCode.NULLABLE_OPTIONAL


class MisplacedArrayError(BuildError):
    __title__ = "misplaced array parameter"
    __code__ = FaultCode.MISPLACED_ARRAY


class DispatchError(CommandException):
    """
    A fault raised by a command handler.

    The original exception is chained (__cause__); options["route"] holds the
    labels from the root command down to the failing leaf.
    """
    __title__ = "command handler failed"
    __code__ = FaultCode.HANDLER_FAULT

    @property
    def route(self):
        return self.options.get("route", ())


__all__ = (
    "FaultCode",
    "CommandException",
    "BuildError",
    "MalformedDefinitionError",
    "AmbiguousNameError",
    "MultipleExecutorsError",
    "UnresolvedSenderError",
    "UnresolvedTypeError",
    "OptionalOrderError",
    "NullableOptionalError",
    "MisplacedArrayError",
    "DispatchError",
)
