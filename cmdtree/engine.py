"""
cmdtree engine: the object a host talks to.

An Engine owns the serializer and choice registries, the message service, the
permission predicate, the sender resolver and the reply channel. It builds
command trees from Definitions, keeps the registered roots, and routes
dispatch and completion requests to them by root label (or alias).

Typical host glue:

    engine = Engine(senders=SenderResolver({Player: SenderType.PLAYER, Console: SenderType.CONSOLE}))
    engine.register(shop)

    def on_command(sender, label, arguments):
        try:
            return bool(engine.dispatch(sender, label, arguments))
        except DispatchError as fault:
            fault.report()
            return False

    def on_tab(sender, label, arguments):
        return engine.complete(sender, label, arguments) or []
"""
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from rich.console import Console

from .choices import ChoiceListRegistry
from .definitions import Definition
from .faults import AmbiguousNameError
from .messages import Messages
from .nodes import Context, build
from .outcomes import Outcome, Status
from .senders import SenderResolver, has_permission
from .serializers import SerializerRegistry
from .utils import *

log = logging.getLogger(__name__)


class Engine:
    """
    Command engine (build, register, dispatch, complete).

    Options
    - messages: Messages service or a mapping of template overrides.
    - permission: predicate(sender, permissions) -> bool; defaults to
      has_permission (every entry granted by sender.has_permission).
    - senders: SenderResolver classifying senders and sender classes.
    - reply: callable(sender, text) sending one line to the sender; defaults to
      sender.send_message(text), or printing to the console when the sender
      has no such method.
    - colorful: style the console output and rendered faults.

    Build and register run once at start-up; afterwards the engine is only
    read, and dispatch/complete may run concurrently.
    """

    def __init__(self, *, messages=Unset, permission=Unset, senders=Unset, reply=Unset, colorful=True):
        if isinstance(messages := coalesce(messages, Messages()), Mapping):
            messages = Messages(messages)
        if not isinstance(messages, Messages):
            raise TypeError("Engine() 'messages' must be a messages service or a mapping")
        self._messages = messages

        if not callable(permission := coalesce(permission, has_permission)):
            raise TypeError("Engine() 'permission' must be callable")
        self._permission = permission

        if not isinstance(senders := coalesce(senders, SenderResolver()), SenderResolver):
            raise TypeError("Engine() 'senders' must be a sender resolver")
        self._senders = senders

        if not callable(reply := coalesce(reply, self._print_reply)):
            raise TypeError("Engine() 'reply' must be callable")
        self._reply = reply

        if not isinstance(colorful, bool):
            raise TypeError("Engine() 'colorful' must be a boolean")
        self._colorful = colorful
        self._console = Console(no_color=not colorful, highlight=False)

        self._serializers = SerializerRegistry(messages)
        self._choices = ChoiceListRegistry()
        self._roots = {}
        self._aliases = {}

    @property
    def messages(self):
        return self._messages

    @property
    def serializers(self):
        return self._serializers

    @property
    def choices(self):
        return self._choices

    @property
    def senders(self):
        return self._senders

    @property
    def roots(self):
        """
        Read-only mapping of registered root labels to their nodes.
        """
        return MappingProxyType(self._roots)

    def _print_reply(self, sender, text, /):
        if callable(send := getattr(sender, "send_message", None)):
            send(text)
        else:
            self._console.print(text, markup=False)

    def build(self, definitions, /):
        """
        Build a node from one Definition, or a list of nodes from an iterable
        of Definitions. Raises a BuildError on the first problem.
        """
        options = dict(serializers=self._serializers, choices=self._choices, senders=self._senders, messages=self._messages)
        if isinstance(definitions, Definition):
            return build(definitions, **options)
        if not isinstance(definitions, Iterable):
            raise TypeError("build() argument must be a definition or an iterable of definitions")
        nodes = []
        for definition in definitions:
            if not isinstance(definition, Definition):
                raise TypeError("build() argument must contain only definitions")
            nodes.append(build(definition, **options))
        return nodes

    def register(self, definitions, /):
        """
        Build and register root commands under their labels and aliases.

        Either every root is registered or none is: a build error, or a name
        already taken by another root, leaves the engine unchanged.
        """
        nodes = self.build(definitions)
        nodes = [nodes] if not isinstance(nodes, list) else nodes

        roots, aliases = dict(self._roots), dict(self._aliases)
        for node in nodes:
            for index, name in enumerate(names := node.names):
                if name in roots or name in aliases or name in names[:index]:
                    raise AmbiguousNameError(
                        f"root command name '{name}' is already registered",
                        name=name,
                        hint="root labels and aliases must be distinct across the engine",
                    )
            roots[node.label] = node
            for alias in node.aliases:
                aliases[alias] = node

        self._roots, self._aliases = roots, aliases
        log.debug("registered %s", ", ".join(repr(node.label) for node in nodes) or "nothing")
        return nodes[0] if isinstance(definitions, Definition) else nodes

    def lookup(self, label, /):
        """
        Return the root registered under label (label first, then alias).
        """
        if (node := self._roots.get(label)) is None:
            node = self._aliases.get(label)
        return node

    def _context(self, sender, label, tokens, /):
        return Context(
            sender,
            label,
            tokens,
            messages=self._messages,
            permission=self._permission,
            senders=self._senders,
            reply=self._reply,
            colorful=self._colorful,
        )

    def dispatch(self, sender, label, tokens=(), /):
        """
        Dispatch tokens to the root command registered under label.

        tokens is a sequence of strings or a raw string split on whitespace.
        Returns an Outcome (truthy on success); raises DispatchError when the
        handler fails.
        """
        tokens = _tokenize(tokens)
        if (node := self.lookup(label)) is None:
            log.debug("no root command registered under %r", label)
            return Outcome(Status.UNKNOWN_COMMAND, (label,))
        return node.dispatch(self._context(sender, label, tokens))

    def complete(self, sender, label, tokens=(), /):
        """
        Tab-complete the last token for the root command registered under label.

        A raw string ending in whitespace completes a fresh, empty token.
        Returns a sorted list of candidates, or None to let the host apply its
        own default completion.
        """
        if isinstance(tokens, str):
            tokens = tokens.split() + ([""] if not tokens or tokens[-1].isspace() else [])
        tokens = _tokenize(tokens) or ("",)
        if (node := self.lookup(label)) is None:
            return None
        return node.complete(self._context(sender, label, tokens))

    def __contains__(self, label):
        return self.lookup(label) is not None

    def __repr__(self):
        return f"engine(roots={sorted(self._roots)!r})"


def _tokenize(tokens, /):
    if isinstance(tokens, str):
        return tuple(tokens.split())
    if not isinstance(tokens, Iterable):
        raise TypeError("tokens must be a string or an iterable of strings")
    tokens = tuple(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("tokens must contain only strings")
    return tokens


__all__ = (
    "Engine",
)
