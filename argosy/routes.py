"""
Argosy route resolution and argument binding.

resolve(root, line) walks the descriptor tree with the positional tokens of a
command line and binds the tokens left after the walk to the resolved
command's arguments.

Resolution
- a cursor starts at the first positional token;
- at a Route: the route joins the path; the token under the cursor must name
  one of its children exactly (case-sensitive). A match advances the cursor;
  no token left ends the walk without a command; an unmatched token raises
  UnknownCommandError;
- at a Command: the command is the resolved one and the walk stops.

Validation (skipped when skip=True, i.e. when help was requested)
- required options: every required option declared directly on the active
  descriptor (the command, or the deepest route) must be present; all the
  missing ones are reported by a single MissingOptionsError;
- required option groups on the active descriptor need one selected member.

Binding (skipped when skip=True or when no command was resolved)
- arguments claim tokens left to right, greedily, without backtracking:
  UNLIMITED claims everything left, a fixed N claims up to N;
- a required argument with nothing claimed raises MissingArgumentError;
- a fixed-N argument with 1..N-1 values raises NotEnoughValuesError;
- tokens left after the last argument raise UnhandledArgumentError.

The tree is never touched; values live in the returned route's Binding.
"""
import difflib
from collections.abc import Iterable
from types import MappingProxyType

from .arguments import Argument, UNLIMITED
from .descriptors import Descriptor, Route, Command
from .faults import *
from .tokenizer import CommandLine
from .utils import *


class Binding:
    """
    Values bound to a command's arguments for one invocation.

    Keys are the Argument objects themselves; lookups also accept the
    argument name. Every declared argument of a bound command has an entry
    (an empty tuple when it claimed nothing).
    """

    def __init__(self, values=()):
        self._values = MappingProxyType(dict(values))

    values = mirror("values")

    def __repr__(self):
        return f"binding({", ".join(f"{argument.name}={values!r}" for argument, values in self._values.items())})"

    def __eq__(self, other):
        if not isinstance(other, Binding):
            return NotImplemented
        return self._values == other._values

    __hash__ = None

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __bool__(self):
        return bool(self._values)

    def _lookup(self, key, /):
        if isinstance(key, Argument):
            return key if key in self._values else None
        if not isinstance(key, str):
            raise TypeError("binding keys must be arguments or argument names")
        return next((argument for argument in self._values if argument.name == key), None)

    def __contains__(self, key):
        return self._lookup(key) is not None

    def __getitem__(self, key):
        if (argument := self._lookup(key)) is None:
            raise KeyError(key)
        return self._values[argument]

    def get(self, key, default=(), /):
        if (argument := self._lookup(key)) is None:
            return default
        return self._values[argument]

    def items(self):
        return self._values.items()


class CommandRoute:
    """
    Outcome of resolve(): the routes walked (root first), the resolved command
    (None when the tokens ran out inside a route) and the bound values.
    """

    def __init__(self, path, command=None, binding=Unset):
        self._path = tuple(path)
        self._command = command
        self._binding = coalesce(binding, Binding())

    path = mirror("path")
    command = mirror("command")
    binding = mirror("binding")

    def __repr__(self):
        return f"command-route({str(self)!r}, binding={self._binding!r})"

    def __str__(self):
        return " ".join((*(route.name for route in self._path), self._command.name if self._command else "<CMD>"))

    def __eq__(self, other):
        if not isinstance(other, CommandRoute):
            return NotImplemented
        return (
            len(self._path) == len(other._path) and
            all(mine is theirs for mine, theirs in zip(self._path, other._path)) and
            self._command is other._command and
            self._binding == other._binding
        )

    __hash__ = None

    @property
    def descriptor(self):
        """
        Active descriptor: the command when resolved, else the deepest route.
        """
        return self._command if self._command is not None else self._path[-1]

    @property
    def fullpath(self):
        return str(self)


def _validate_options(descriptor, line, /):
    if missing := [option for option in descriptor.options if option.required and not line.has(option.key)]:
        names = ", ".join(repr(option.long or option.short) for option in missing)
        raise MissingOptionsError(
            "missing required option%s: %s" % ("s" * (len(missing) > 1), names),
            missing=tuple(missing),
            hint="add %s to the command line" % names,
        )
    for group in descriptor.groups:
        if group.required and not any(line.has(key) for key in group.keys):
            names = ", ".join(member.long or member.short for member in group.options)
            raise MissingOptionGroupError(
                "one of the options %s is required" % names,
                group=group,
                hint="add exactly one of: %s" % names,
            )


def _bind(command, tokens, /):
    values = {}
    cursor = 0
    for argument in command.arguments:
        if argument.multiplicity is UNLIMITED:
            claimed = tokens[cursor:]
        else:
            claimed = tokens[cursor:cursor + argument.multiplicity]
        cursor += len(claimed)

        if argument.required and not claimed:
            raise MissingArgumentError(
                "argument is required: %s" % argument.name,
                argument=argument,
                hint="add a value for <%s>" % argument.name,
            )
        if argument.multiplicity is not UNLIMITED:
            if 0 < len(claimed) < argument.multiplicity:
                raise NotEnoughValuesError(
                    "argument has too few values: %s (expected: %d, got: %d)" % (
                        argument.name, argument.multiplicity, len(claimed)
                    ),
                    argument=argument,
                    values=tuple(claimed),
                    hint="<%s> takes exactly %d values" % (argument.name, argument.multiplicity),
                )
            if len(claimed) > argument.multiplicity:
                raise BindingAssertionError(
                    "argument %s claimed %d values, more than its multiplicity %d" % (
                        argument.name, len(claimed), argument.multiplicity
                    )
                )
        values[argument] = tuple(claimed)

    if cursor < len(tokens):
        raise UnhandledArgumentError(
            "there is at least one unhandled argument: %s" % tokens[cursor],
            input=tokens[cursor],
            leftover=tuple(tokens[cursor:]),
            hint="remove the extra value(s) or check the expected arguments with --help",
        )
    return Binding(values)


def resolve(root, line, /, *, skip=False):
    """
    Resolve `line` against the tree rooted at `root`.

    Parameters
    - root: Route | Command
    - line: CommandLine, or an iterable of positional tokens (no options)
    - skip: when True, only walk the tree (no option validation, no binding)

    Returns
    - CommandRoute

    Raises
    - UnknownCommandError, MissingOptionsError, MissingOptionGroupError,
      MissingArgumentError, NotEnoughValuesError, UnhandledArgumentError
    - BindingAssertionError on internal inconsistency
    """
    if not isinstance(root, Descriptor):
        raise TypeError("resolve() first argument must be a route or a command")
    if not isinstance(line, CommandLine):
        if isinstance(line, str) or not isinstance(line, Iterable):
            raise TypeError("resolve() second argument must be a command line or an iterable of strings")
        line = CommandLine(line)

    tokens = line.positionals
    path = []
    cursor = 0
    descriptor = root
    command = None

    while command is None:
        match descriptor:
            case Route():
                path.append(descriptor)
                if cursor >= len(tokens):
                    break
                token = tokens[cursor]
                try:
                    descriptor = descriptor.children[token]
                except KeyError:
                    route = " ".join(step.name for step in path)
                    suggestions = difflib.get_close_matches(token, descriptor.children.keys(), 5)
                    try:
                        hint = "did you mean %r? run '%s --help' to see available commands" % (suggestions[0], route)
                    except IndexError:
                        hint = "run '%s --help' to see available commands" % route
                    raise UnknownCommandError(
                        "unknown command: %s" % token,
                        input=token,
                        index=cursor + 1,
                        route=route,
                        suggestions=suggestions,
                        hint=hint,
                    ) from None
                cursor += 1
            case Command():
                command = descriptor
            case _:
                raise TypeError(f"unexpected descriptor {descriptor!r}")

    if skip:
        return CommandRoute(path, command)

    resolved = CommandRoute(path, command)
    _validate_options(resolved.descriptor, line)
    if command is None:
        return resolved
    return CommandRoute(path, command, _bind(command, tokens[cursor:]))


__all__ = (
    "Binding",
    "CommandRoute",
    "resolve",
)
