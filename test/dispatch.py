"""
Dispatch behavioral tests (routing, arity, binding, outcomes, faults).

Scope
- Validate routing through compounds by label and alias, default executors
  and help rendering.
- Validate permission, sender-type, arity, choice and serialization outcomes.
- Validate handler results (None/True/False) and wrapped handler faults.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Engine, Definition, Param, SenderResolver).
"""
import contextlib
import io
import unittest
from enum import Enum
from unittest import TestCase

from cmdtree import Definition, DispatchError, Engine, Param, SenderResolver, SenderType, Status


class Sender:
    def __init__(self, *permissions):
        self.permissions = set(permissions)
        self.received = []

    def send_message(self, text):
        self.received.append(text)

    def has_permission(self, permission):
        return permission in self.permissions


class Player(Sender): ...


class Terminal(Sender): ...


class Letter(Enum):
    A = "a"
    B = "b"


SENDERS = SenderResolver({Player: SenderType.PLAYER, Terminal: SenderType.CONSOLE, Sender: SenderType.ANY})


class TestRootAlphaBeta(TestCase):
    """Compound 'root' with a one-int leaf 'alpha' and a default executor 'beta'."""

    def setUp(self):
        self.calls = []

        def alpha(sender, value):
            self.calls.append(("alpha", value))

        def beta(sender):
            self.calls.append(("beta",))

        self.engine = Engine(senders=SENDERS)
        self.engine.register(Definition(
            "root",
            children=(Definition(handler=alpha, params=(Param(int, "value"),)),),
            executor=Definition(handler=beta),
        ))
        self.sender = Player()

    def testAlphaReceivesInteger(self):
        outcome = self.engine.dispatch(self.sender, "root", ["alpha", "5"])
        self.assertTrue(outcome)
        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(self.calls, [("alpha", 5)])
        self.assertEqual(outcome.route, ("root", "alpha"))

    def testNoTokensInvokesDefaultExecutor(self):
        outcome = self.engine.dispatch(self.sender, "root", [])
        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(self.calls, [("beta",)])

    def testMissingIntegerRendersHelp(self):
        outcome = self.engine.dispatch(self.sender, "root", ["alpha"])
        self.assertFalse(outcome)
        self.assertIs(outcome.status, Status.ARGUMENT_COUNT_MISMATCH)
        self.assertEqual(self.calls, [])
        self.assertEqual(self.sender.received, ["usage: root alpha <value>", "  value: integer"])
        self.assertEqual(outcome.messages, tuple(self.sender.received))

    def testTooManyTokensRendersHelp(self):
        outcome = self.engine.dispatch(self.sender, "root", ["alpha", "5", "6"])
        self.assertIs(outcome.status, Status.ARGUMENT_COUNT_MISMATCH)
        self.assertEqual(self.calls, [])

    def testRawStringIsSplitOnWhitespace(self):
        outcome = self.engine.dispatch(self.sender, "root", "  alpha\t42 ")
        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(self.calls, [("alpha", 42)])

    def testUnknownChildRendersCompoundHelp(self):
        outcome = self.engine.dispatch(self.sender, "root", ["gamma"])
        self.assertIs(outcome.status, Status.UNKNOWN_COMMAND)
        self.assertEqual(self.sender.received, ["usage: root alpha...", "  alpha <value>"])

    def testSerializationFailureStopsDispatch(self):
        outcome = self.engine.dispatch(self.sender, "root", ["alpha", "five"])
        self.assertIs(outcome.status, Status.SERIALIZATION_FAILURE)
        self.assertEqual(self.sender.received, ["invalid argument: input 'five' is not of type integer"])
        self.assertEqual(self.calls, [])

    def testUnregisteredRootIsUnknown(self):
        outcome = self.engine.dispatch(self.sender, "nothing", ["alpha", "5"])
        self.assertIs(outcome.status, Status.UNKNOWN_COMMAND)
        self.assertEqual(self.sender.received, [])


class TestChoiceWithOptionalArray(TestCase):
    """Leaf with (name: choice{A,B}, values: optional string array)."""

    def setUp(self):
        self.bound = []

        def pick(sender, name, values):
            self.bound.append((name, values))

        self.engine = Engine(senders=SENDERS)
        self.engine.register(Definition(
            handler=pick,
            params=(Param(Letter, "name"), Param(list[str], "values", optional=True)),
        ))
        self.sender = Sender()

    def testChoiceWithEmptyArray(self):
        outcome = self.engine.dispatch(self.sender, "pick", ["A"])
        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(self.bound, [(Letter.A, [])])

    def testChoiceWithArrayTokens(self):
        self.engine.dispatch(self.sender, "pick", ["B", "x", "y", "z"])
        self.assertEqual(self.bound, [(Letter.B, ["x", "y", "z"])])

    def testUnknownChoice(self):
        outcome = self.engine.dispatch(self.sender, "pick", ["C"])
        self.assertIs(outcome.status, Status.UNKNOWN_CHOICE)
        self.assertEqual(self.bound, [])
        self.assertEqual(self.sender.received[0], "usage: pick <name> [values]")


class TestLeafBinding(TestCase):
    """Optional scalars, arrays, variadic spreading and handler results."""

    def setUp(self):
        self.engine = Engine(senders=SENDERS)
        self.sender = Sender()
        self.bound = []

    def register(self, *params, handler=None, **options):
        def record(sender, *arguments):
            self.bound.append(arguments)

        return self.engine.register(Definition("cmd", handler=handler or record, params=params, **options))

    def testMissingOptionalScalarBindsNone(self):
        self.register(Param(str, "key"), Param(int | None, "amount", optional=True))
        self.engine.dispatch(self.sender, "cmd", ["dirt"])
        self.engine.dispatch(self.sender, "cmd", ["dirt", "64"])
        self.assertEqual(self.bound, [("dirt", None), ("dirt", 64)])

    def testMissingOptionalScalarBindsParamDefault(self):
        self.register(Param(str, "key"), Param(int | None, "amount", optional=True, default=5))
        self.engine.dispatch(self.sender, "cmd", ["dirt"])
        self.assertEqual(self.bound, [("dirt", 5)])

    def testDefaultNeedsOptionalParam(self):
        with self.assertRaises(ValueError):
            Param(int, "amount", default=5)

    def testRequiredArrayNeedsOneToken(self):
        self.register(Param(str, "target"), Param(list[int], "values"))
        outcome = self.engine.dispatch(self.sender, "cmd", ["me"])
        self.assertIs(outcome.status, Status.ARGUMENT_COUNT_MISMATCH)
        self.engine.dispatch(self.sender, "cmd", ["me", "1", "2"])
        self.assertEqual(self.bound, [("me", [1, 2])])

    def testArrayElementFailureStopsDispatch(self):
        self.register(Param(list[int], "values"))
        outcome = self.engine.dispatch(self.sender, "cmd", ["1", "x", "3"])
        self.assertIs(outcome.status, Status.SERIALIZATION_FAILURE)
        self.assertEqual(self.bound, [])

    def testTupleArrayBindsTuple(self):
        self.register(Param(tuple[Letter, ...], "letters", optional=True))
        self.engine.dispatch(self.sender, "cmd", ["A", "B", "A"])
        self.engine.dispatch(self.sender, "cmd", [])
        self.assertEqual(self.bound, [((Letter.A, Letter.B, Letter.A),), ((),)])

    def testVariadicArraySpreads(self):
        self.register(Param(str, "receiver"), Param(list[str], "message", optional=True), variadic=True)
        self.engine.dispatch(self.sender, "cmd", ["bob", "hello", "there"])
        self.assertEqual(self.bound, [("bob", "hello", "there")])

    def testFalseResultIsRejected(self):
        self.register(handler=lambda sender: False)
        outcome = self.engine.dispatch(self.sender, "cmd")
        self.assertIs(outcome.status, Status.REJECTED)
        self.assertFalse(outcome)

    def testTruthyResultIsSuccess(self):
        self.register(handler=lambda sender: 0)
        self.assertIs(self.engine.dispatch(self.sender, "cmd").status, Status.SUCCESS)

    def testHandlerFaultIsWrapped(self):
        def explode(sender):
            raise RuntimeError("boom")

        self.engine.register(Definition("outer", children=(Definition("inner", handler=explode),)))
        with self.assertRaises(DispatchError) as context:
            self.engine.dispatch(self.sender, "outer", ["inner"])
        self.assertEqual(context.exception.route, ("outer", "inner"))
        self.assertIsInstance(context.exception.__cause__, RuntimeError)
        self.assertIn("boom", context.exception.message)


class TestAccessChecks(TestCase):
    """Permissions and sender types at compound, leaf and executor level."""

    def setUp(self):
        self.calls = []
        self.engine = Engine(senders=SENDERS)
        self.engine.register(Definition(
            "admin",
            aliases=("adm",),
            permissions=("demo.admin",),
            children=(
                Definition("mode", handler=lambda sender, enabled: self.calls.append(enabled), params=(Param(bool, "enabled"),), sender=Player),
                Definition("stop", handler=lambda sender: self.calls.append("stop"), sender=SenderType.CONSOLE, aliases=("halt",)),
            ),
            executor=Definition(handler=lambda sender: self.calls.append("executor"), sender="player"),
        ))

    def testMissingPermission(self):
        sender = Player()
        outcome = self.engine.dispatch(sender, "admin", ["mode", "true"])
        self.assertIs(outcome.status, Status.NO_PERMISSION)
        self.assertEqual(sender.received, ["you do not have permission to use this command"])
        self.assertEqual(self.calls, [])

    def testPlayerOnlyLeaf(self):
        self.engine.dispatch(Player("demo.admin"), "admin", ["mode", "TRUE"])
        terminal = Terminal("demo.admin")
        outcome = self.engine.dispatch(terminal, "admin", ["mode", "true"])
        self.assertIs(outcome.status, Status.INVALID_SENDER)
        self.assertEqual(terminal.received, ["this command cannot be used by a console"])
        self.assertEqual(self.calls, [True])

    def testUnknownSenderCategory(self):
        class Stranger:
            def __init__(self):
                self.received = []

            def send_message(self, text):
                self.received.append(text)

        stranger = Stranger()
        engine = Engine(senders=SENDERS, permission=lambda sender, permissions: True)
        engine.register(Definition("solo", handler=lambda sender: None, sender=SenderType.PLAYER))
        outcome = engine.dispatch(stranger, "solo")
        self.assertIs(outcome.status, Status.INVALID_SENDER)
        self.assertEqual(stranger.received, ["this command cannot be used by a unknown sender"])

    def testAliasesRouteAtEveryLevel(self):
        self.engine.dispatch(Terminal("demo.admin"), "adm", ["halt"])
        self.assertEqual(self.calls, ["stop"])

    def testExecutorSenderMismatch(self):
        terminal = Terminal("demo.admin")
        outcome = self.engine.dispatch(terminal, "admin")
        self.assertIs(outcome.status, Status.INVALID_SENDER)
        self.engine.dispatch(Player("demo.admin"), "admin")
        self.assertEqual(self.calls, ["executor"])

    def testCompoundWithoutExecutorRendersHelp(self):
        self.engine.register(Definition("info", children=(Definition("about", handler=print, descr="about us"),)))
        sender = Sender()
        outcome = self.engine.dispatch(sender, "info")
        self.assertIs(outcome.status, Status.HELP)
        self.assertEqual(sender.received, ["usage: info about...", "  about - about us"])


class TestReplyChannel(TestCase):
    """Custom reply callables and the console fallback."""

    def testCustomReply(self):
        lines = []
        engine = Engine(reply=lambda sender, text: lines.append((sender, text)))
        engine.register(Definition("empty", children=()))
        outcome = engine.dispatch("someone", "empty")
        self.assertEqual(lines, [("someone", "usage: empty")])
        self.assertEqual(outcome.messages, ("usage: empty",))

    def testConsoleFallback(self):
        engine = Engine(colorful=False)
        engine.register(Definition("empty", children=()))
        with contextlib.redirect_stdout(buffer := io.StringIO()):
            engine.dispatch(object(), "empty")
        self.assertEqual(buffer.getvalue().strip(), "usage: empty")

    def testMessageOverrides(self):
        engine = Engine(messages={"help-header": "Usage -> %s"})
        engine.register(Definition("empty", children=()))
        sender = Sender()
        engine.dispatch(sender, "empty")
        self.assertEqual(sender.received, ["Usage -> empty"])


if __name__ == "__main__":
    unittest.main()
