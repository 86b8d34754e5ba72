r"""
cmdtree command nodes: tree construction, dispatch and tab-completion.

Overview
- CommandNode: shared contract (label, aliases, permissions, description,
  cached usage strings, help rendering).
  • Leaf: bound to a handler with compiled ParameterSpecs and a sender type.
  • Compound: routes the next token to a child (label first, then alias), or
    runs its default executor when no token is left.
- Context: per-call state of one walk (sender, tokens, route, sent messages).
- build(): recursive conversion of a Definition into a CommandNode.

Dispatch walk
    Compound  permission -> end of tokens ? executor | help
                         -> child by label, then by alias -> recurse(cursor + 1)
                         -> unknown token: help
    Leaf      permission -> sender type -> arity -> positional binding -> handler

Expected user errors are rendered to the sender and settle the walk with an
Outcome; the only exception leaving a walk is DispatchError, raised when the
handler itself fails.

Completion walk
    Compound  permission -> last token ? sorted child labels by prefix
                         -> descend by label or alias
    Leaf      the parameter under the last token (or the trailing array) offers
              its sorted, prefix-filtered candidates

None is returned where no candidate source exists, leaving the host free to
apply its own default completion; an empty list means "no candidates".

Nodes are immutable after build() and are safe to walk from several threads.
"""
import logging

from .faults import *
from .outcomes import Outcome, Status
from .parameters import compile_parameters
from .serializers import Failure
from .utils import *

log = logging.getLogger(__name__)


class Context:
    """
    State of one dispatch or completion walk.

    Attributes
    - sender: the invoking sender.
    - label: root label as typed by the sender (label or alias).
    - tokens: argument tokens after the root label.
    - route: labels of the nodes entered so far.
    - sent: messages sent to the sender so far.
    """

    def __init__(self, sender, label, tokens, /, *, messages, permission, senders, reply, colorful=True):
        self.sender = sender
        self.label = label
        self.tokens = tuple(tokens)
        self.messages = messages
        self.colorful = colorful
        self.route = []
        self.sent = []
        self._permission = permission
        self._senders = senders
        self._reply = reply
        self._category = Unset

    @property
    def category(self):
        """
        SenderType of the sender (None when the resolver cannot classify it).
        """
        if self._category is Unset:
            self._category = self._senders(self.sender)
        return self._category

    def permitted(self, permissions, /):
        return not permissions or self._permission(self.sender, permissions)

    def send(self, text, /):
        self.sent.append(text)
        self._reply(self.sender, text)

    def settle(self, status, /):
        log.debug("dispatch of %r settled: %s", " ".join(self.route), status.value)
        return Outcome(status, self.route, self.sent)


class CommandNode(metaclass=Introspective):
    """
    Base class of command tree nodes.
    """
    __introspectable__ = (
        "label",
        "aliases",
        "permissions",
        "descr",
        "simple_usage",
        "parameters_usage",
    )
    __displayable__ = (
        "label",
        "aliases",
        "permissions",
    )

    def __init__(self, label, /, aliases=(), permissions=(), descr=None):
        self._label = label
        self._aliases = tuple(aliases)
        self._permissions = tuple(permissions)
        self._descr = descr
        self._simple_usage = label
        self._parameters_usage = ()

    @property
    def names(self):
        """
        Label followed by every alias.
        """
        return self._label, *self._aliases

    def dispatch(self, context, cursor=0, /):
        raise NotImplementedError

    def complete(self, context, cursor=0, /):
        raise NotImplementedError

    def render_help(self, context, cursor, /):
        """
        Send the tree-path qualified usage followed by one line per entry.
        """
        if cursor == 0:
            path = self._simple_usage
        else:
            path = " ".join((context.label, *context.tokens[:cursor - 1], self._simple_usage))
        context.send(context.messages.format("help-header", path))
        for line in self._parameters_usage:
            context.send(context.messages.format("help-entry", line))

    def _deny(self, context, /):
        context.send(context.messages.get("no-permission"))
        return context.settle(Status.NO_PERMISSION)

    def _refuse(self, context, /):
        if (category := context.category) is None:
            name = context.messages.get("sender-types.unknown")
        else:
            name = category.describe(context.messages)
        context.send(context.messages.format("invalid-sender-type", name))
        return context.settle(Status.INVALID_SENDER)


class Leaf(CommandNode):
    """
    Command bound to a handler.

    Arity
    - no optional parameter and no trailing array: exactly as many tokens as
      parameters;
    - optional parameters from index k: between k and the parameter count;
    - trailing array: at least the required scalars, plus one token when the
      array itself is required; no upper bound.
    """
    __introspectable__ = CommandNode.__introspectable__ + (
        "sender",
        "params",
        "optional",
        "handler",
        "variadic",
    )

    def __init__(self, label, /, aliases=(), permissions=(), descr=None, *, sender, params=(), handler, variadic=False, messages):
        super().__init__(label, aliases, permissions, descr)
        self._sender = sender
        self._params = tuple(params)
        self._handler = handler
        self._variadic = variadic
        self._array = self._params[-1] if self._params and self._params[-1].array else None
        self._scalars = len(self._params) - (self._array is not None)
        self._optional = next((index for index, spec in enumerate(self._params[:self._scalars]) if spec.optional), None)
        self._simple_usage = " ".join((label, *(spec.usage(messages) for spec in self._params)))
        self._parameters_usage = tuple(spec.help(messages) for spec in self._params)

    @property
    def arity(self):
        """
        (minimum, maximum) token counts; maximum is None with a trailing array.
        """
        required = self._scalars if self._optional is None else self._optional
        if self._array is None:
            return required, self._scalars
        if self._array.optional:
            return required, None
        return self._scalars + 1, None

    def dispatch(self, context, cursor=0, /):
        context.route.append(self._label)
        if not context.permitted(self._permissions):
            return self._deny(context)
        if not self._sender.accepts(context.category):
            return self._refuse(context)

        tokens = context.tokens[cursor:]
        minimum, maximum = self.arity
        if len(tokens) < minimum or (maximum is not None and len(tokens) > maximum):
            self.render_help(context, cursor)
            return context.settle(Status.ARGUMENT_COUNT_MISMATCH)

        arguments = []
        for index, spec in enumerate(self._params):
            if spec.array:
                values = []
                for token in tokens[index:]:
                    if isinstance(value := self._bind(context, cursor, spec, token), Outcome):
                        return value
                    values.append(value)
                arguments.append(spec.container(values))
            elif index < len(tokens):
                if isinstance(value := self._bind(context, cursor, spec, tokens[index]), Outcome):
                    return value
                arguments.append(value)
            else:
                arguments.append(spec.default)

        return self.invoke(context, arguments)

    def _bind(self, context, cursor, spec, token, /):
        value = spec.bind(token)
        if value is Unset:
            self.render_help(context, cursor)
            return context.settle(Status.UNKNOWN_CHOICE)
        if isinstance(value, Failure):
            context.send(context.messages.format("serialization-error", value.reason))
            return context.settle(Status.SERIALIZATION_FAILURE)
        return value

    def invoke(self, context, arguments, /):
        """
        Call the handler with the sender prepended to the bound arguments.

        None (or any value but False) settles as SUCCESS, False as REJECTED;
        an exception is wrapped in a DispatchError carrying the route.
        """
        arguments = list(arguments)
        if self._variadic and arguments:
            arguments.extend(arguments.pop())
        try:
            result = self._handler(context.sender, *arguments)
        except Exception as exception:
            route = tuple(context.route)
            log.debug("handler of %r raised %s", " ".join(route), type(exception).__name__, exc_info=True)
            raise DispatchError(
                "command '%s' raised %s: %s" % (" ".join(route), type(exception).__name__, exception),
                route=route,
                colorful=context.colorful,
            ) from exception
        return context.settle(Status.REJECTED if result is False else Status.SUCCESS)

    def complete(self, context, cursor=0, /):
        if (index := len(context.tokens) - 1 - cursor) < 0:
            return None
        if self._array is not None and index >= self._scalars:
            spec = self._array
        elif index < len(self._params):
            spec = self._params[index]
        else:
            return None
        return spec.complete(context.tokens[-1])


class Compound(CommandNode):
    """
    Command routing to named children.

    Labels and aliases share one namespace per compound; a collision is an
    AmbiguousNameError when the compound is built.
    """
    __introspectable__ = CommandNode.__introspectable__ + (
        "executor",
        "children",
        "alias_map",
    )

    def __init__(self, label, /, aliases=(), permissions=(), descr=None, *, children=(), executor=None, messages):
        super().__init__(label, aliases, permissions, descr)
        self._executor = executor
        self._children = {}
        self._alias_map = {}
        for child in children:
            self._attach(child)

        labels = sorted(self._children)
        match len(labels):
            case 0:
                self._simple_usage = label
            case 1:
                self._simple_usage = "%s %s%s" % (label, labels[0], messages.get("compound-suffix"))
            case _:
                self._simple_usage = "%s %s %s" % (
                    label,
                    messages.format("simple-usage-compound", messages.get("separator").join(labels)),
                    messages.get("compound-suffix"),
                )

        separator = messages.get("description-separator")
        self._parameters_usage = tuple(
            child.simple_usage + separator + child.descr if child.descr else child.simple_usage
            for child in map(self._children.__getitem__, labels)
        )

    def _attach(self, child, /):
        names = child.names
        for index, name in enumerate(names):
            if name in self._children or name in self._alias_map or name in names[:index]:
                raise AmbiguousNameError(
                    f"name '{name}' of command '{child.label}' is already taken in command '{self._label}'",
                    name=name,
                    hint="labels and aliases of sibling commands must all be distinct",
                )
        self._children[child.label] = child
        for alias in child.aliases:
            self._alias_map[alias] = child

    def lookup(self, name, /):
        """
        Return the child registered under name (label first, then alias).
        """
        if (child := self._children.get(name)) is None:
            child = self._alias_map.get(name)
        return child

    def dispatch(self, context, cursor=0, /):
        context.route.append(self._label)
        if not context.permitted(self._permissions):
            return self._deny(context)

        if cursor >= len(context.tokens):
            if self._executor is None:
                self.render_help(context, cursor)
                return context.settle(Status.HELP)
            if not context.permitted(self._executor.permissions):
                return self._deny(context)
            if not self._executor.sender.accepts(context.category):
                return self._refuse(context)
            return self._executor.invoke(context, ())

        if (child := self.lookup(context.tokens[cursor])) is None:
            self.render_help(context, cursor)
            return context.settle(Status.UNKNOWN_COMMAND)
        return child.dispatch(context, cursor + 1)

    def complete(self, context, cursor=0, /):
        if not context.permitted(self._permissions) or cursor >= len(context.tokens):
            return None
        token = context.tokens[cursor]
        if cursor == len(context.tokens) - 1:
            return sorted(label for label in self._children if label.startswith(token))
        if (child := self.lookup(token)) is None:
            return None
        return child.complete(context, cursor + 1)


def _resolve_sender(definition, senders, /):
    if (sender := senders.resolve(definition.sender)) is None:
        raise UnresolvedSenderError(
            f"sender type {definition.sender!r} of command '{definition.label}' cannot be resolved",
            hint="register the sender class with the engine's sender resolver",
        )
    return sender


def _leaf(definition, serializers, choices, senders, messages, /):
    return Leaf(
        definition.label,
        definition.aliases,
        definition.permissions,
        definition.descr,
        sender=_resolve_sender(definition, senders),
        params=compile_parameters(definition.params, serializers, choices, command=definition.label),
        handler=definition.handler,
        variadic=definition.variadic,
        messages=messages,
    )


def build(definition, /, *, serializers, choices, senders, messages=Unset):
    """
    Convert a Definition (leaf or compound, possibly nested) into a CommandNode.

    Raises a BuildError subclass on the first problem found; nothing built
    before the failure escapes.
    """
    messages = coalesce(messages, serializers.messages)

    if not definition.compound:
        node = _leaf(definition, serializers, choices, senders, messages)
        log.debug("built leaf %r (%s)", node.label, node.simple_usage)
        return node

    executor = None
    if (default := definition.executor) is not None:
        if default.compound or default.params:
            raise MalformedDefinitionError(
                f"default executor of command '{definition.label}' must take the sender only",
                hint="a default executor runs when no token is left, so it has no parameters",
            )
        executor = _leaf(default, serializers, choices, senders, messages)

    node = Compound(
        definition.label,
        definition.aliases,
        definition.permissions,
        definition.descr,
        children=[
            build(child, serializers=serializers, choices=choices, senders=senders, messages=messages)
            for child in definition.children
        ],
        executor=executor,
        messages=messages,
    )
    log.debug("built compound %r (%s)", node.label, node.simple_usage)
    return node


__all__ = (
    "Context",
    "CommandNode",
    "Leaf",
    "Compound",
    "build",
)
