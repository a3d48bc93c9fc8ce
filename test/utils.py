"""
Tests for the internal helpers (Unset, coalesce, rename, freeze, mirror, ordinal).

Scope
- Sentinel identity, falsiness and sealing.
- coalesce only replaces the sentinel.
- rename in both call forms.
- freeze shallow-freezes the container kinds descriptors publish.
- ordinal labels used in fault messages.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from types import MappingProxyType
from unittest import TestCase

from argosy.utils import *


class UnsetTest(TestCase):
    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyButDistinct(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testSealed(self):
        with self.assertRaises(TypeError):
            class Subtype(UnsetType):  # NOQA
                pass


class CoalesceTest(TestCase):
    def testReplacesUnsetOnly(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertEqual(coalesce("name", "fallback"), "name")

    def testPreservesFalseyValues(self):
        for value in (None, 0, "", ()):
            self.assertIs(coalesce(value, "fallback"), value)

    def testDefaultIsNone(self):
        self.assertIsNone(coalesce(Unset))


class RenameTest(TestCase):
    def testDirectForm(self):
        def function():
            pass
        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self):
        @rename("decorated")
        def function():
            pass
        self.assertEqual(function.__name__, "decorated")

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(3, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 3)
        with self.assertRaises(TypeError):
            rename()


class FreezeTest(TestCase):
    def testSequenceBecomesTuple(self):
        self.assertEqual(freeze([1, 2]), (1, 2))

    def testStringUntouched(self):
        self.assertEqual(freeze("abc"), "abc")

    def testMappingBecomesReadOnlySnapshot(self):
        source = {"a": 1}
        frozen = freeze(source)
        self.assertIsInstance(frozen, MappingProxyType)
        source["b"] = 2
        self.assertNotIn("b", frozen)
        with self.assertRaises(TypeError):
            frozen["c"] = 3  # NOQA

    def testSetBecomesFrozenset(self):
        self.assertEqual(freeze({1, 2}), frozenset({1, 2}))


class MirrorTest(TestCase):
    def testReadOnlyProperty(self):
        class Holder:
            value = mirror("value")

            def __init__(self):
                self._value = 42

        holder = Holder()
        self.assertEqual(holder.value, 42)
        with self.assertRaises(AttributeError):
            holder.value = 1


class OrdinalTest(TestCase):
    def testWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testNumericSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(112), "112th")


if __name__ == "__main__":
    unittest.main()
