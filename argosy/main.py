"""
Argosy entry point: wire a descriptor tree into a runnable command-line tool.

    tool = Main.builder().main_route(tree).data({...}).build()
    tool.main()                      # sys.argv[1:], renders faults and exits
    tool.execute(["remote", "add"])  # raises faults, for embedding and tests

execute(args)
1. tokenize args against the tree's aggregated options (plus the help option);
2. decide whether help was requested (the help option is present);
3. resolve the route, skipping validation and binding when help was requested;
4. build a CommandContext; on help, print usage and return;
5. without a resolved command, raise CommandRequiredError;
6. call the command factory, run the runnable's validate() when it has one,
   then run it. CommandException subclasses pass through; any other
   exception becomes CommandExecutionError with the original as __cause__.

main(args)
- accepts Unset (sys.argv[1:]), a str (shlex.split) or an iterable of str;
- triggers collected warnings;
- on ParseError: prints usage of the deepest resolvable route, then renders the
  fault and exits with status 2;
- on CommandError: renders the fault as fatal and exits with status 1.
With shell=False, main() raises instead of exiting (warnings go through the
warnings module).
"""
import shlex
import sys
from collections.abc import Iterable, Mapping

from rich.console import Console

from .aggregator import aggregate
from .arguments import UNLIMITED
from .context import CommandContext
from .descriptors import Route, Command, DescriptorBuilder
from .faults import *
from .routes import CommandRoute, resolve
from .tokenizer import CommandLine, tokenize
from .usage import help_option, show
from .utils import *


class Main:
    """
    Runnable command-line tool around one descriptor tree.

    Runtime flags
    - shell: render faults with rich and exit (True) or raise them (False)
    - fancy: wrap help and faults in panels
    - colorful: apply the palette (see argosy.usage / argosy.faults)
    """

    def __init__(self, builder, /):
        if builder._root is Unset:
            raise DescriptorError("main tool requires a main route or a main command")
        self._root = builder._root
        self._data = dict(builder._data)
        self._shell = builder._shell
        self._fancy = builder._fancy
        self._colorful = builder._colorful
        self._options = aggregate(self._root)
        if (helper := help_option(self._data)) is not None:
            self._options = self._options.extend(helper)

    root = mirror("root")
    options = mirror("options")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def __repr__(self):
        return f"main(root={self._root.name!r}, shell={self._shell!r})"

    @staticmethod
    def builder():
        return MainBuilder()

    def _help_requested(self, line, /):
        if (helper := help_option(self._data)) is None:
            return False
        return line.has(helper.long or helper.short)

    def _context(self, line, route, /):
        return CommandContext(line, route, self._data)

    def execute(self, args=(), /):
        """
        Run the tool once with pre-tokenized `args`; faults are raised and
        warnings go through the warnings module.

        Returns the value returned by the command's runnable (None on help).
        """
        return self._execute(args, prog=self._root.name, shell=False)

    def _execute(self, args, /, **options):
        line = tokenize(self._options, args)
        for warning in line.warnings:
            trigger(warning, **options)
        helped = self._help_requested(line)
        route = resolve(self._root, line, skip=helped)
        context = self._context(line, route)
        if helped:
            show(context, fancy=self._fancy, colorful=self._colorful)
            return None
        return self.run(context)

    def run(self, context, /):
        route = context.route
        if route.command is None:
            raise CommandRequiredError(
                "command is required for route: %s" % route,
                route=str(route),
                hint="run '%s --help' to see available commands" % " ".join(step.name for step in route.path),
            )
        runnable = route.command.factory(context)
        if not callable(runnable):
            raise TypeError(f"factory of command {route.command.name!r} must return a callable")
        if callable(validate := getattr(runnable, "validate", None)):
            validate()
        try:
            return runnable()
        except CommandException:
            raise
        except Exception as exception:
            raise CommandExecutionError(
                "unexpected error: %s" % (str(exception) or type(exception).__name__),
                hint="this is likely a bug in command %r" % route.command.name,
            ) from exception

    def _tokens(self, prompt, /):
        if prompt is Unset:
            return sys.argv[1:]
        elif isinstance(prompt, str):
            return shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            for token in tokens:
                if not isinstance(token, str):
                    raise TypeError("main() argument must be a string or an iterable of strings")
            return tokens
        raise TypeError("main() argument must be a string or an iterable of strings")

    def _positionals(self, args, /):
        """
        Positional tokens of `args`, even when tokenizing them fails.

        On a tokenizer fault, the values of recognized options are skipped and
        unknown options are dropped.
        """
        try:
            return list(tokenize(self._options, args).positionals)
        except ParseError:
            tokens, positionals = list(args), []
        while tokens:
            token = tokens.pop(0)
            if token == "--":
                positionals.extend(tokens)
                break
            if token == "-" or not token.startswith("-"):
                positionals.append(token)
                continue
            name = token.partition("=")[0] if token.startswith("--") else token[:2]
            if (option := self._options.find(name)) is None or option.flag or token != name:
                continue
            count = 0
            while tokens and not tokens[0].startswith("-") and (option.nargs is UNLIMITED or count < option.nargs):
                tokens.pop(0)
                count += 1
        return positionals

    def _partial_context(self, args, /):
        """
        Best-effort context for printing usage after a parse fault.
        """
        positionals = self._positionals(args)
        descriptor, path = self._root, []
        while isinstance(descriptor, Route):
            path.append(descriptor)
            if not positionals or (child := descriptor.children.get(positionals.pop(0))) is None:
                descriptor = None
                break
            descriptor = child
        return CommandContext(CommandLine(), CommandRoute(path, descriptor), self._data)

    def main(self, prompt=Unset, /):
        """
        Run the tool as a program; see the module documentation.
        """
        args = self._tokens(prompt)
        options = {
            "prog": self._root.name,
            "shell": self._shell,
            "fancy": self._fancy,
            "colorful": self._colorful,
        }
        try:
            return self._execute(args, **options)
        except ParseError as fault:
            if self._shell:
                show(self._partial_context(args), console=Console(stderr=True), fancy=self._fancy, colorful=self._colorful)
            trigger(fault, status=2, **options)
        except CommandError as fault:
            trigger(fault, status=1, **options)

    def __invoke__(self, prompt=Unset):
        return self.main(prompt)


class MainBuilder:
    def __init__(self):
        self._root = Unset
        self._data = {}
        self._shell = True
        self._fancy = False
        self._colorful = True

    def _set_root(self, descriptor, kind, /):
        if self._root is not Unset:
            raise DescriptorError("main root descriptor is already set")
        if isinstance(descriptor, DescriptorBuilder):
            descriptor = descriptor.build()
        if not isinstance(descriptor, kind):
            raise TypeError(f"main {kind.__typename__} must be a {kind.__typename__}")
        self._root = descriptor
        return self

    def main_route(self, descriptor, /):
        return self._set_root(descriptor, Route)

    def main_command(self, descriptor, /):
        return self._set_root(descriptor, Command)

    def data(self, data, /):
        if not isinstance(data, Mapping):
            raise TypeError("main 'data' must be a mapping")
        self._data.update(data)
        return self

    def shell(self, shell=True, /):
        self._shell = bool(shell)
        return self

    def fancy(self, fancy=True, /):
        self._fancy = bool(fancy)
        return self

    def colorful(self, colorful=True, /):
        self._colorful = bool(colorful)
        return self

    def build(self):
        return Main(self)


def invoke(object, prompt=Unset, /):
    """
    Convenience runner: accepts a Main, a descriptor or a descriptor builder.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    if isinstance(object, DescriptorBuilder):
        object = object.build()
    if isinstance(object, Route):
        return invoke(Main.builder().main_route(object).build(), prompt)
    if isinstance(object, Command):
        return invoke(Main.builder().main_command(object).build(), prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must be a tool, a route or a command")


__all__ = (
    "Main",
    "MainBuilder",
    "invoke",
)
