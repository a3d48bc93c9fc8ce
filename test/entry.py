"""
Entry point tests (Main, MainBuilder, invoke).

Scope
- execute(): tokenize, resolve, build the context and run the command.
- Help detection (-h/--help, custom or disabled help option).
- Faults: command required, unknown commands, unexpected errors wrapped into
  CommandExecutionError, CommandError passed through, validate() hooks.
- main(): prompt forms, shell rendering with exit statuses, raising outside the shell.
- Builder rules: a single root, typed data.

Conventions
- Test method names follow CamelCase per project convention.
- Help output goes to the console stored under the help.console context key.
"""
import contextlib
import io
import unittest
from unittest import TestCase

from rich.console import Console

from argosy import (
    Argument, Main, Option, UNLIMITED,
    HELP_AUTO_ADD_KEY, HELP_CONSOLE_KEY, HELP_OPTION_KEY,
    command, invoke, route,
)
from argosy.faults import *


class Recorder:
    def __init__(self):
        self.calls = []

    def tree(self):
        cli = route("my-cli", "tool under test")
        record = self.calls

        @cli.command(
            "1-cmd", "first command",
            arguments=[Argument("ARG1", "values", multiplicity=UNLIMITED)],
            options=[Option("--opt1", nargs=1), Option("--old", deprecated=True)],
        )
        def first(context):
            record.append(("1-cmd", context.argument_values("ARG1"), context.option_value("opt1")))
            return "first"

        @cli.command(
            "2-cmd", "second command",
            arguments=[Argument("NAME", "a name", required=True), Argument("COUNT", "how many", required=True)],
        )
        def second(context):
            record.append(("2-cmd", context.argument_value("NAME"), context.argument_value("COUNT")))

        @cli.command("fail", "raises an unexpected error")
        def fail(context):
            raise RuntimeError("boom")

        @cli.command("refuse", "raises a command error")
        def refuse(context):
            raise CommandError("refused", hint="ask nicely")

        class Checked:
            def __init__(self, context):
                self.context = context

            def validate(self):
                if self.context.argument_value("LEVEL") not in ("low", "high"):
                    raise ParseError("level must be low or high")

            def __call__(self):
                record.append(("checked", self.context.argument_value("LEVEL")))

        cli.subcommand(
            command("checked", "validated command").argument(
                Argument("LEVEL", "low or high", required=True),
            ).factory(Checked),
        )
        return cli.build()


class ExecuteTest(TestCase):
    def setUp(self):
        self.recorder = Recorder()
        self.help = Console(file=io.StringIO(), width=100, color_system=None)
        self.main = Main.builder().main_route(self.recorder.tree()).data({HELP_CONSOLE_KEY: self.help}).build()

    def testRunsCommand(self):
        self.assertEqual(self.main.execute(["1-cmd", "a", "b"]), "first")
        self.assertEqual(self.recorder.calls, [("1-cmd", ("a", "b"), None)])

    def testInterleavedOptions(self):
        self.main.execute(["1-cmd", "VALUE1", "--opt1", "opt1-value", "VALUE2"])
        self.assertEqual(self.recorder.calls, [("1-cmd", ("VALUE1", "VALUE2"), "opt1-value")])

    def testCommandRequired(self):
        with self.assertRaises(CommandRequiredError) as context:
            self.main.execute([])
        self.assertEqual(str(context.exception), "command is required for route: my-cli <CMD>")

    def testUnknownCommand(self):
        with self.assertRaises(UnknownCommandError):
            self.main.execute(["3-cmd"])

    def testMissingArgument(self):
        with self.assertRaises(MissingArgumentError):
            self.main.execute(["2-cmd", "alice"])
        self.assertEqual(self.recorder.calls, [])

    def testHelpForRoute(self):
        self.assertIsNone(self.main.execute(["-h"]))
        output = self.help.file.getvalue()
        self.assertIn("usage: my-cli <CMD> [OPTIONS]", output)
        self.assertIn("2-cmd", output)
        self.assertEqual(self.recorder.calls, [])

    def testHelpForCommand(self):
        self.main.execute(["-h", "2-cmd"])
        self.assertIn("usage: my-cli 2-cmd [OPTIONS] <NAME> <COUNT>", self.help.file.getvalue())

    def testHelpSkipsBinding(self):
        self.main.execute(["2-cmd", "--help"])
        self.assertIn("usage: my-cli 2-cmd", self.help.file.getvalue())
        self.assertEqual(self.recorder.calls, [])

    def testHelpStillRejectsUnknownCommand(self):
        with self.assertRaises(UnknownCommandError):
            self.main.execute(["--help", "3-cmd"])

    def testUnexpectedErrorWrapped(self):
        with self.assertRaises(CommandExecutionError) as context:
            self.main.execute(["fail"])
        self.assertEqual(str(context.exception), "unexpected error: boom")
        self.assertIsInstance(context.exception.__cause__, RuntimeError)

    def testCommandErrorPassesThrough(self):
        with self.assertRaises(CommandError) as context:
            self.main.execute(["refuse"])
        self.assertNotIsInstance(context.exception, CommandExecutionError)
        self.assertEqual(context.exception.hint, "ask nicely")

    def testValidateHook(self):
        self.main.execute(["checked", "low"])
        self.assertEqual(self.recorder.calls, [("checked", "low")])
        with self.assertRaises(ParseError):
            self.main.execute(["checked", "medium"])

    def testDeprecatedOptionWarns(self):
        with self.assertWarns(DeprecatedOptionWarning):
            self.main.execute(["1-cmd", "--old"])

    def testRepeatedExecutionsAreIndependent(self):
        self.main.execute(["2-cmd", "alice", "1"])
        self.main.execute(["2-cmd", "bob", "2"])
        self.assertEqual(self.recorder.calls, [("2-cmd", "alice", "1"), ("2-cmd", "bob", "2")])


class HelpOptionTest(TestCase):
    def build(self, data):
        return Main.builder().main_route(Recorder().tree()).data(data).build()

    def testDisabled(self):
        main = self.build({HELP_AUTO_ADD_KEY: False})
        with self.assertRaises(UnknownOptionError):
            main.execute(["-h"])

    def testCustom(self):
        console = Console(file=io.StringIO(), width=100, color_system=None)
        main = self.build({HELP_OPTION_KEY: Option("-H", "--usage"), HELP_CONSOLE_KEY: console})
        main.execute(["--usage"])
        self.assertIn("-H, --usage", console.file.getvalue())
        with self.assertRaises(UnknownOptionError):
            main.execute(["--help"])

    def testConflictingHelpOption(self):
        tree = route("tool", "tool").subcommand(
            command("run", "run").option(Option("-h", "--host", nargs=1)).factory(lambda context: lambda: None),
        ).build()
        with self.assertRaises(OptionConflictError):
            Main.builder().main_route(tree).build()


class MainTest(TestCase):
    def setUp(self):
        self.recorder = Recorder()
        self.tree = self.recorder.tree()

    def build(self, shell):
        return Main.builder().main_route(self.tree).shell(shell).colorful(False).build()

    def testStringPrompt(self):
        self.assertEqual(self.build(True).main("1-cmd 'a b' c"), "first")
        self.assertEqual(self.recorder.calls, [("1-cmd", ("a b", "c"), None)])

    def testIterablePrompt(self):
        self.build(True).main(("2-cmd", "alice", "3"))
        self.assertEqual(self.recorder.calls, [("2-cmd", "alice", "3")])

    def testPromptTypes(self):
        with self.assertRaises(TypeError):
            self.build(True).main(["2-cmd", 3])
        with self.assertRaises(TypeError):
            self.build(True).main(3)

    def testParseFaultExitsWithTwo(self):
        with self.assertRaises(SystemExit) as context:
            self.build(True).main(["3-cmd"])
        self.assertEqual(context.exception.code, 2)

    def testCommandFaultExitsWithOne(self):
        with self.assertRaises(SystemExit) as context:
            self.build(True).main(["fail"])
        self.assertEqual(context.exception.code, 1)

    def testUsageOfDeepestRouteAfterParseFault(self):
        git = route("git", "tracker").option(Option("-C", nargs=1, descr="run as if started in PATH"))
        git.route("remote", "manage remotes").subcommand(
            command("add", "add a remote").factory(lambda context: lambda: None),
        )
        main = Main.builder().main_route(git).colorful(False).build()
        for args in (["-C", "dir", "remote", "zzz"], ["-C", "dir", "remote", "--nope"]):
            stderr = io.StringIO()
            with self.subTest(args=args), contextlib.redirect_stderr(stderr), contextlib.redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit) as context:
                    main.main(args)
                self.assertEqual(context.exception.code, 2)
                self.assertIn("usage: git remote <CMD> [OPTIONS]", stderr.getvalue())

    def testRaisesOutsideShell(self):
        with self.assertRaises(UnknownCommandError) as context:
            self.build(False).main(["3-cmd"])
        self.assertEqual(context.exception.options["status"], 2)
        with self.assertRaises(CommandRequiredError):
            self.build(False).main([])
        with self.assertRaises(CommandExecutionError) as context:
            self.build(False).main(["fail"])
        self.assertIsInstance(context.exception.__cause__, RuntimeError)
        self.assertEqual(context.exception.options["status"], 1)

    def testInvoke(self):
        self.assertEqual(invoke(self.tree, ["1-cmd", "x"]), "first")
        self.assertEqual(invoke(self.build(False), ["1-cmd", "y"]), "first")
        self.assertEqual([call[1] for call in self.recorder.calls], [("x",), ("y",)])

    def testInvokeRejectsOtherObjects(self):
        with self.assertRaises(TypeError):
            invoke("my-cli", [])


class CommandRootTest(TestCase):
    def testMainCommand(self):
        seen = []
        node = command("echo", "print values").argument(
            Argument("WORDS", "words", required=True, multiplicity=UNLIMITED),
        ).factory(lambda context: lambda: seen.append(context.argument_values("WORDS"))).build()
        main = Main.builder().main_command(node).build()
        main.execute(["hello", "world"])
        self.assertEqual(seen, [("hello", "world")])
        with self.assertRaises(MissingArgumentError):
            main.execute([])


class BuilderTest(TestCase):
    def testRootRequired(self):
        with self.assertRaises(DescriptorError):
            Main.builder().build()

    def testRootOnlyOnce(self):
        tree = Recorder().tree()
        builder = Main.builder().main_route(tree)
        with self.assertRaises(DescriptorError):
            builder.main_route(tree)

    def testRootKind(self):
        with self.assertRaises(TypeError):
            Main.builder().main_command(Recorder().tree())

    def testAcceptsBuilders(self):
        builder = route("tool", "tool").subcommand(
            command("run", "run").factory(lambda context: lambda: "ran"),
        )
        self.assertEqual(Main.builder().main_route(builder).build().execute(["run"]), "ran")

    def testDataMustBeMapping(self):
        with self.assertRaises(TypeError):
            Main.builder().data([("a", 1)])

    def testFlags(self):
        main = Main.builder().main_route(Recorder().tree()).shell(False).fancy().colorful(False).build()
        self.assertFalse(main.shell)
        self.assertTrue(main.fancy)
        self.assertFalse(main.colorful)


if __name__ == "__main__":
    unittest.main()
