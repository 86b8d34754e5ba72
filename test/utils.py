"""
Tests for the internal building blocks in cmdtree.utils.

This module verifies:
- The Unset sentinel (singleton identity, falsy semantics, unions, finality,
  copy/pickle identity).
- coalesce(), lowerfirst() and rename() behavior.
- The Introspective metaclass (mirrored read-only fields, type names, reprs).
"""
import copy
import pickle
import unittest
from unittest import TestCase

from rich.console import Console

from cmdtree.utils import *
from cmdtree.utils import UnsetType


class Sample(metaclass=Introspective):
    __introspectable__ = ("name", "tags", "table")

    def __init__(self, name, tags, table):
        self._name = name
        self._tags = tags
        self._table = table


class UnsetTest(TestCase):
    """
    Test suite for the Unset sentinel.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the module-level instance on every call.
        """
        self.assertIs(UnsetType(), Unset)

    def testFalsy(self) -> None:
        """
        Unset is falsy but not equal to None or False.
        """
        self.assertFalse(Unset)
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionWithTypes(self) -> None:
        """
        Unset takes part in PEP 604 unions used by isinstance checks.
        """
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("label", str | Unset))
        self.assertFalse(isinstance(3, str | Unset))

    def testCopyAndPicklePreserveIdentity(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinalClass(self) -> None:
        """
        The class is final: attempts to subclass must fail with TypeError.
        """
        with self.assertRaises(TypeError):
            type("UnsetSubtype", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    coalesce(), lowerfirst() and rename().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testLowerfirst(self) -> None:
        self.assertEqual(lowerfirst("Admin"), "admin")
        self.assertEqual(lowerfirst("SayHey"), "sayHey")
        self.assertEqual(lowerfirst(""), "")
        with self.assertRaises(TypeError):
            lowerfirst(None)

    def testRename(self) -> None:
        """
        rename() works directly and as a decorator factory.
        """
        @rename("generated")
        def function():
            pass

        self.assertEqual(function.__name__, "generated")
        self.assertEqual(function.__qualname__, "generated")
        self.assertIs(rename(function, "other"), function)
        with self.assertRaises(TypeError):
            rename()


class IntrospectiveTest(TestCase):
    """
    Mirrored fields, type names and reprs.
    """

    def setUp(self) -> None:
        self.sample = Sample("demo", ["a", "b"], {"x": 1})

    def testReadOnlyFields(self) -> None:
        self.assertEqual(self.sample.name, "demo")
        with self.assertRaises(AttributeError):
            self.sample.name = "other"

    def testContainersAreViews(self) -> None:
        """
        Lists are exposed as tuples and mappings as read-only proxies.
        """
        self.assertEqual(self.sample.tags, ("a", "b"))
        with self.assertRaises(TypeError):
            self.sample.table["y"] = 2

    def testDisplayableDefaultsToUnset(self) -> None:
        """
        The metaclass default for __displayable__ is the Unset sentinel.
        """
        self.assertIs(Introspective.__displayable__, Unset)
        self.assertIs(Sample.__displayable__, Unset)

    def testTypename(self) -> None:
        self.assertEqual(Sample.__typename__, "sample")

    def testRepr(self) -> None:
        self.assertEqual(repr(self.sample), "sample(name='demo', tags=('a', 'b'), table=mappingproxy({'x': 1}))")

    def testRichPrint(self) -> None:
        console = Console(color_system=None, force_terminal=False)
        with console.capture() as capture:
            console.print(self.sample)
        self.assertIn("demo", capture.get())


if __name__ == "__main__":
    unittest.main()
