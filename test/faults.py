"""
Faults module tests.

Scope
- FaultCode stability and normalization.
- Exception hierarchy: construction errors, parse errors, command errors,
  internal assertions.
- trigger(): raising outside the shell, rendering and exiting inside it.
- Warnings: warnings.warn outside the shell, rendering inside it.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering goes to a rich Console writing to a StringIO, without colors.
"""
import copy
import io
import unittest
from unittest import TestCase

from rich.console import Console

from argosy.faults import *


class FaultCodeTest(TestCase):
    def testValuesAreStable(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND, 11101)
        self.assertEqual(FaultCode.MISSING_OPTIONS, 11206)
        self.assertEqual(FaultCode.MISSING_ARGUMENT, 11301)
        self.assertEqual(FaultCode.UNEXPECTED_ERROR, 11402)

    def testValuesAreUnique(self):
        self.assertEqual(len(set(FaultCode)), len(list(FaultCode.__members__.values())))

    def testNormalizeWithoutOverrides(self):
        self.assertEqual(FaultCode.UNKNOWN_COMMAND.normalize(), "11101")

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.UNKNOWN_COMMAND))
        with self.assertRaises(TypeError):
            getdoc(11101)


class HierarchyTest(TestCase):
    def testDescriptorErrors(self):
        self.assertTrue(issubclass(DescriptorError, ValueError))
        self.assertTrue(issubclass(OptionConflictError, DescriptorError))
        self.assertTrue(issubclass(BindingAssertionError, AssertionError))
        self.assertFalse(issubclass(BindingAssertionError, CommandException))

    def testParseErrors(self):
        for fault in (
            UnknownCommandError, CommandRequiredError, MalformedTokenError, UnknownOptionError,
            FlagAssignmentError, OptionValueRequiredError, AlreadySelectedError, MissingOptionsError,
            MissingOptionGroupError, MissingArgumentError, NotEnoughValuesError, UnhandledArgumentError,
        ):
            with self.subTest(fault=fault.__name__):
                self.assertTrue(issubclass(fault, ParseError))
                self.assertFalse(issubclass(fault, CommandError))

    def testCommandErrors(self):
        self.assertTrue(issubclass(CommandExecutionError, CommandError))
        self.assertFalse(issubclass(CommandError, ParseError))

    def testDescriptorErrorOptions(self):
        fault = DescriptorError("broken", code=FaultCode.EMPTY_ROUTE)
        self.assertEqual(str(fault), "broken")
        self.assertEqual(fault.code, FaultCode.EMPTY_ROUTE)
        self.assertIsNone(fault.violation)
        with self.assertRaises(TypeError):
            fault.options["code"] = None  # NOQA


class CommandExceptionTest(TestCase):
    def testDefaults(self):
        fault = ParseError("bad input")
        self.assertEqual(fault.message, "bad input")
        self.assertEqual(fault.code, FaultCode.INVALID_INPUT)
        self.assertEqual(fault.title, "invalid input")
        self.assertIsNone(fault.hint)

    def testSubclassCodes(self):
        self.assertEqual(UnknownCommandError().code, FaultCode.UNKNOWN_COMMAND)
        self.assertEqual(CommandError().code, FaultCode.COMMAND_FAILED)
        self.assertEqual(CommandExecutionError().code, FaultCode.UNEXPECTED_ERROR)

    def testOverrides(self):
        fault = CommandError("failed", code=FaultCode.UNEXPECTED_ERROR, title="boom", hint="retry")
        self.assertEqual(fault.code, FaultCode.UNEXPECTED_ERROR)
        self.assertEqual(fault.title, "boom")
        self.assertEqual(fault.hint, "retry")

    def testReplace(self):
        fault = UnknownCommandError("unknown command: x", input="x")
        changed = copy.replace(fault, hint="try y")
        self.assertIsInstance(changed, UnknownCommandError)
        self.assertEqual(changed.message, "unknown command: x")
        self.assertEqual(changed.options["input"], "x")
        self.assertEqual(changed.hint, "try y")
        self.assertIsNone(fault.hint)

    def testReplaceKeepsCause(self):
        try:
            try:
                1 / 0
            except ZeroDivisionError as exception:
                raise CommandExecutionError("unexpected error: division by zero") from exception
        except CommandExecutionError as fault:
            changed = copy.replace(fault, status=1)
        self.assertIsInstance(changed.__cause__, ZeroDivisionError)
        self.assertIsNotNone(changed.__traceback__)

    def testMissingOptions(self):
        self.assertEqual(MissingOptionsError().missing, ())
        self.assertEqual(MissingOptionsError(missing=("a",)).missing, ("a",))


class TriggerTest(TestCase):
    def setUp(self):
        self.console = Console(file=io.StringIO(), width=100, color_system=None)

    def testRaisesOutsideShell(self):
        with self.assertRaises(UnknownCommandError) as context:
            trigger(UnknownCommandError("unknown command: x"), hint="check the spelling")
        self.assertEqual(context.exception.hint, "check the spelling")

    def testKeepsCauseOutsideShell(self):
        cause = RuntimeError("boom")
        fault = CommandExecutionError("unexpected error: boom")
        fault.__cause__ = cause
        with self.assertRaises(CommandExecutionError) as context:
            trigger(fault, status=1)
        self.assertIs(context.exception.__cause__, cause)

    def testRendersAndExitsInShell(self):
        fault = UnknownCommandError("unknown command: x", hint="run 'git --help'")
        with self.assertRaises(SystemExit) as context:
            trigger(fault, shell=True, console=self.console, prog="git", status=2, colorful=False)
        self.assertEqual(context.exception.code, 2)
        output = self.console.file.getvalue()
        self.assertIn("[ git — 11101 | Unknown Command ]", output)
        self.assertIn("unknown command: x", output)
        self.assertIn("→ run 'git --help'", output)

    def testDefaultStatus(self):
        with self.assertRaises(SystemExit) as context:
            trigger(CommandError("failed"), shell=True, console=self.console)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Command Failed", self.console.file.getvalue())

    def testFancyRendering(self):
        with self.assertRaises(SystemExit):
            trigger(CommandError("failed"), shell=True, fancy=True, console=self.console, prog="git")
        output = self.console.file.getvalue()
        self.assertIn("git — 11401", output)
        self.assertIn("failed", output)

    def testWarningOutsideShell(self):
        with self.assertWarns(DeprecatedOptionWarning):
            trigger(DeprecatedOptionWarning("option '--old' is deprecated"))

    def testWarningInShell(self):
        trigger(EmptyOptionValueWarning("empty value"), shell=True, console=self.console, prog="git")
        output = self.console.file.getvalue()
        self.assertIn("12111", output)
        self.assertIn("empty value", output)

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("x"))


if __name__ == "__main__":
    unittest.main()
