r"""
cmdtree builder API: Definitions from plain functions and classes.

Overview
- @command(...): build a leaf Definition from a handler function. The first
  parameter receives the sender; its annotation (a sender class, a SenderType
  or its value) is the sender constraint. Every following parameter becomes a
  Param, typed by its annotation (str when missing).
- @compound(...): build a compound Definition from a class used as a
  namespace. Definitions found in the class body become children, in
  declaration order; nested decorated classes become nested compounds.
- @executor: mark a function of a compound class as its default executor.
- Arg(...): parameter default carrying the per-argument metadata (display
  name, description, display type, optional flag, custom serializer).

Parameter rules
- A parameter with a default is optional (Arg(optional=...) decides when the
  default is an Arg); optional scalars must be annotated "T | None". An
  omitted argument binds the default, or None when the default is an Arg.
- list[T] or tuple[T, ...] as the last parameter consumes the remaining tokens.
- *args: T is an optional trailing array spread into the handler call.
- Keyword-only parameters need a default and are never bound from tokens.

Quick example:
    >>> from cmdtree.decorators import command, compound, executor, Arg
    >>> @compound("myplugin")
    ... class MyPlugin:
    ...     @command(aliases=("rl",))
    ...     def reload(sender):
    ...         sender.send_message("reloading")
    ...
    ...     @executor
    ...     def execute(sender):
    ...         sender.send_message("hello from the default executor")
    ...
    ...     @command(descr="sets admin mode")
    ...     def mode(sender: Player, enabled: bool):
    ...         ...
"""
import inspect
import logging
from inspect import Parameter

from .definitions import Definition, Param
from .faults import MalformedDefinitionError, MultipleExecutorsError
from .senders import SenderType
from .utils import *

log = logging.getLogger(__name__)


class Arg(metaclass=Introspective):
    """
    Per-argument metadata, given as the parameter's default value.

        def give(sender: Player, material: Material = Arg("item", serializer=MaterialSerializer), amount: int | None = Arg(optional=True)):
            ...

    Fields
    - usage: display name (defaults to the parameter name).
    - descr: description shown in the parameters usage.
    - display: display type (defaults to the serializer's or type's name).
    - optional: the argument may be omitted.
    - serializer: Serializer subclass binding the argument.
    """
    __introspectable__ = (
        "usage",
        "descr",
        "display",
        "optional",
        "serializer",
    )

    def __init__(self, usage=Unset, /, descr=Unset, display=Unset, *, optional=False, serializer=None):
        self._usage = usage
        self._descr = descr
        self._display = display
        self._optional = optional
        self._serializer = serializer


def _sender(parameter, /):
    if parameter.annotation is Parameter.empty:
        return SenderType.ANY
    return parameter.annotation


def _parameters(function, /):
    """
    Translate a handler signature into (sender tag, Params, variadic).
    """
    try:
        signature = inspect.signature(function, eval_str=True)
    except (TypeError, ValueError):
        raise TypeError("@command() must be applied to an inspectable callable") from None

    parameters = list(signature.parameters.values())
    if not parameters or parameters[0].kind not in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD):
        raise MalformedDefinitionError(
            f"command handler {function.__qualname__} doesn't accept any command sender",
            hint="the first positional parameter receives the sender",
        )

    params = []
    variadic = False
    for parameter in parameters[1:]:
        name, annotation, default = parameter.name, parameter.annotation, parameter.default
        if annotation is Parameter.empty:
            annotation = str

        match parameter.kind:
            case Parameter.KEYWORD_ONLY if default is not Parameter.empty:
                continue
            case Parameter.KEYWORD_ONLY:
                raise MalformedDefinitionError(
                    f"keyword-only parameter {name!r} of command handler {function.__qualname__} must have a default",
                    hint="arguments are bound positionally from tokens",
                )
            case Parameter.VAR_KEYWORD:
                continue
            case Parameter.VAR_POSITIONAL:
                annotation = list[annotation]
                variadic = True

        if isinstance(default, Arg):
            metadata, optional, default = default, default.optional, Unset
        elif default is Parameter.empty:
            metadata, optional, default = Arg(), variadic, Unset
        else:
            metadata, optional = Arg(), True

        params.append(Param(
            annotation,
            name,
            optional,
            metadata.serializer,
            descr=metadata.descr,
            usage=metadata.usage,
            display=metadata.display,
            default=default,
        ))

    return _sender(parameters[0]), tuple(params), variadic


def command(source=Unset, /, label=Unset, *, descr=Unset, permissions=(), aliases=(), sender=Unset):
    """
    Create a Definition or return a decorator to build it later.

    Invocation modes
    - Direct:
        definition = command(func, "label", ...)
    - Decorator:
        @command("label", ...)
        def func(sender, ...): ...
    - Bare decorator (label derived from the function name):
        @command
        def func(sender, ...): ...

    Classes are forwarded to compound().
    """
    @rename("command")
    def wrapper(source, /):
        if isinstance(source, type):
            return compound(source, label, descr=descr, permissions=permissions, aliases=aliases)
        if not callable(source):
            raise TypeError("@command() must be applied to a callable or a class")

        tag, params, variadic = _parameters(source)
        definition = Definition(
            label,
            handler=source,
            params=params,
            variadic=variadic,
            descr=descr,
            permissions=permissions,
            aliases=aliases,
            sender=coalesce(sender, tag),
        )
        log.debug("defined command %r from %s", definition.label, source.__qualname__)
        return definition

    if callable(source) and label is Unset:
        return wrapper(source)
    if isinstance(source, str) and label is Unset:
        label = source
    elif source is not Unset:
        return wrapper(source)
    return wrapper


def executor(source=Unset, /, *, permissions=(), sender=Unset):
    """
    Mark a function of a compound class as its default executor.

    The function keeps working as a plain function; compound() collects it.
    """
    @rename("executor")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@executor() must be applied to a callable")
        source.__executor__ = dict(permissions=permissions, sender=sender)
        return source

    return wrapper(source) if source is not Unset else wrapper


def _executor(function, /):
    options = function.__executor__
    tag, params, variadic = _parameters(function)
    return Definition(
        handler=function,
        params=params,
        variadic=variadic,
        permissions=options["permissions"],
        sender=coalesce(options["sender"], tag),
    )


def compound(source=Unset, /, label=Unset, *, descr=Unset, permissions=(), aliases=()):
    """
    Create a compound Definition from a class, or return a decorator.

    The label defaults to the class name with its first character lower-cased
    ("Admin" -> "admin").
    """
    @rename("compound")
    def wrapper(source, /):
        if not isinstance(source, type):
            raise TypeError("@compound() must be applied to a class")

        children = []
        executors = []
        for member in vars(source).values():
            if isinstance(member, staticmethod | classmethod):
                member = member.__func__
            if isinstance(member, Definition):
                children.append(member)
            elif callable(member) and hasattr(member, "__executor__"):
                executors.append(member)

        if len(executors) > 1:
            raise MultipleExecutorsError(
                f"compound command {source.__qualname__} declares {len(executors)} default executors",
                hint="keep a single @executor per compound",
            )

        definition = Definition(
            label,
            children=children,
            executor=_executor(executors[0]) if executors else None,
            descr=descr,
            permissions=permissions,
            aliases=aliases,
            identifier=source.__name__,
        )
        log.debug("defined compound %r from %s", definition.label, source.__qualname__)
        return definition

    if isinstance(source, type) and label is Unset:
        return wrapper(source)
    if isinstance(source, str) and label is Unset:
        label = source
    elif source is not Unset:
        return wrapper(source)
    return wrapper


__all__ = (
    "Arg",
    "command",
    "compound",
    "executor",
)
