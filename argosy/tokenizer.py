r"""
Argosy command-line tokenizer.

tokenize(options, tokens) splits raw argv tokens into option values and
positional tokens, against an aggregated OptionSet. Positional tokens keep
their order; the resolver later uses them both as sub-command names and as
argument values.

Accepted forms
- long options: '--name', '--name=value', '--name value'
- short options: '-n', '-nvalue', '-n=value', '-n value'
- clustered presence-only flags: '-abc' (every member must take no value)
- '--' ends option parsing; everything after it is positional
- a lone '-' and negative numbers ('-1', '-2.5') are positional unless an
  option with that exact name exists

Values
- nargs=N takes up to N values (inline value first, then following tokens
  that do not look like options); nargs=UNLIMITED takes every such token.
- without optional=True, at least one value is required, and a fixed N
  requires all N values.
- a separator splits every raw value further ('-Dkey=value' with '=').
- repeated options accumulate their values.

Faults (raised, never rendered here)
- MalformedTokenError, UnknownOptionError (with close-match suggestions),
  FlagAssignmentError, OptionValueRequiredError, AlreadySelectedError.
Warnings are collected on CommandLine.warnings, never emitted here:
- DeprecatedOptionWarning, EmptyOptionValueWarning.
"""
import difflib
import re
from collections import deque
from collections.abc import Iterable
from types import MappingProxyType

from .aggregator import OptionSet
from .arguments import UNLIMITED
from .faults import *
from .utils import *

_LONG = re.compile(r"(?P<input>--[^\W\d_](-?[^\W_]+)*)(=(?P<value>[^\r\n]*))?")
_SHORT = re.compile(r"(?P<input>-[^\W_])(?P<tail>[^\r\n]*)")
_NUMBER = re.compile(r"-\d+(\.\d*)?([eE][-+]?\d+)?")


class CommandLine:
    """
    Result of tokenizing one command line.

    - positionals: tuple of non-option tokens, in order.
    - flags: read-only mapping of every name of every option present to its
      values (an empty tuple for presence-only flags).
    - warnings: non-fatal notices collected while tokenizing.
    """

    def __init__(self, positionals=(), flags=(), warnings=()):
        self._positionals = tuple(positionals)
        self._flags = MappingProxyType(dict(flags))
        self._warnings = tuple(warnings)

    positionals = mirror("positionals")
    flags = mirror("flags")
    warnings = mirror("warnings")

    def __repr__(self):
        return f"command-line(positionals={self._positionals!r}, flags={dict(self._flags)!r})"

    def __eq__(self, other):
        if not isinstance(other, CommandLine):
            return NotImplemented
        return self._positionals == other._positionals and self._flags == other._flags

    __hash__ = None

    @staticmethod
    def _normalize(name, /):
        if not isinstance(name, str):
            raise TypeError("option name must be a string")
        if name.startswith("-"):
            return name
        return ("-" if len(name) == 1 else "--") + name

    def has(self, name, /):
        """
        True when the option called `name` (short or long, hyphens optional) was given.
        """
        return self._normalize(name) in self._flags

    def values(self, name, /):
        """
        Values given to `name`; an empty tuple when absent or presence-only.
        """
        return self._flags.get(self._normalize(name), ())

    def value(self, name, default=None, /):
        """
        First value given to `name`, or `default`.
        """
        try:
            return self.values(name)[0]
        except IndexError:
            return default


def _looks_like_option(token, options, /):
    if token == "-" or not token.startswith("-"):
        return False
    if _NUMBER.fullmatch(token):
        return options.find(token) is not None
    return True


class _Tokenizer:
    def __init__(self, options, tokens, /):
        self.options = options
        self.tokens = deque(tokens)
        self.index = 0
        self.positionals = []
        self.found = {}
        self.selected = {}
        self.warnings = []

    def next(self):
        self.index += 1
        return self.tokens.popleft()

    def run(self):
        while self.tokens:
            token = self.next()
            if token == "--":
                while self.tokens:
                    self.positionals.append(self.next())
                break
            if not _looks_like_option(token, self.options):
                self.positionals.append(token)
            elif token.startswith("--"):
                self.long(token)
            else:
                self.short(token)

        flags = {}
        for option, values in self.found.items():
            for name in option.names:
                flags[name] = tuple(values)
        return CommandLine(self.positionals, flags, self.warnings)

    def resolve(self, input, token, /):
        if (option := self.options.find(input)) is not None:
            return option
        suggestions = difflib.get_close_matches(input, self.options.names.keys(), 5)
        try:
            hint = "did you mean %r? run with --help to see all options" % suggestions[0]
        except IndexError:
            hint = "run with --help to see all available options"
        raise UnknownOptionError(
            "unknown option %r at %s position" % (input, ordinal(self.index)),
            input=input,
            token=token,
            index=self.index,
            suggestions=suggestions,
            hint=hint,
        )

    def long(self, token, /):
        # shape: --<name>[=<value>]
        if not (match := _LONG.fullmatch(token)):
            raise MalformedTokenError(
                "bad form of option %r at %s position" % (token, ordinal(self.index)),
                token=token,
                index=self.index,
                hint="long options are spelled --name or --name=value",
            )
        option = self.resolve(match["input"], token)
        self.consume(option, match["input"], match["value"])

    def short(self, token, /):
        # shape: -<char>[<tail>]; tail is a cluster, an attached value or '=value'
        if not (match := _SHORT.fullmatch(token)):
            raise MalformedTokenError(
                "bad form of option %r at %s position" % (token, ordinal(self.index)),
                token=token,
                index=self.index,
                hint="short options are spelled -x, -xvalue or -x=value",
            )
        input, tail = match["input"], match["tail"]
        option = self.resolve(input, token)

        if not option.flag:
            value = tail[1:] if tail.startswith("=") else tail or None
            return self.consume(option, input, value)

        if tail.startswith("="):
            return self.consume(option, input, tail[1:])

        self.consume(option, input, None)
        for char in tail:
            member = self.resolve("-" + char, token)
            if not member.flag:
                raise OptionValueRequiredError(
                    "option %r clustered in %r at %s position requires a value" % (
                        "-" + char, token, ordinal(self.index)
                    ),
                    input="-" + char,
                    token=token,
                    index=self.index,
                    hint="pass it on its own (for example: %s <value>)" % ("-" + char),
                )
            self.consume(member, "-" + char, None)

    def select(self, option, input, /):
        if (group := self.options.group_of(option)) is None:
            return
        if (previous := self.selected.setdefault(group, option)).key != option.key:
            raise AlreadySelectedError(
                "option %r at %s position cannot be used together with %r" % (
                    input, ordinal(self.index), previous.long or previous.short
                ),
                input=input,
                index=self.index,
                group=group,
                selected=previous,
                hint="keep only one of: %s" % ", ".join(member.long or member.short for member in group.options),
            )

    def consume(self, option, input, inline, /):
        self.select(option, input)

        if option.deprecated:
            self.warnings.append(DeprecatedOptionWarning(
                "option %r at %s position is deprecated" % (input, ordinal(self.index)),
                input=input,
                index=self.index,
                hint="run with --help to see current usage and alternatives",
            ))

        values = self.found.setdefault(option, [])

        if option.flag:
            if inline is not None:
                raise FlagAssignmentError(
                    "flag %r at %s position cannot have a value" % (input, ordinal(self.index)),
                    input=input,
                    index=self.index,
                    hint="remove everything from '=' (for example: %s)" % input,
                )
            return

        start = self.index
        limit = option.nargs
        raw = []
        if inline is not None:
            if not inline:
                self.warnings.append(EmptyOptionValueWarning(
                    "empty inline value for option %r at %s position" % (input, ordinal(start)),
                    input=input,
                    index=start,
                    hint="add a value after '=' (for example: %s=<value>)" % input,
                ))
            raw.extend(self.split(option, inline))

        while (
            self.tokens and
            (limit is UNLIMITED or len(raw) < limit) and
            not _looks_like_option(self.tokens[0], self.options)
        ):
            raw.extend(self.split(option, self.next()))

        if limit is not UNLIMITED and len(raw) > limit:
            raise OptionValueRequiredError(
                "option %r at %s position takes at most %d value(s) but %d were given" % (
                    input, ordinal(start), limit, len(raw)
                ),
                input=input,
                index=start,
                hint="pass at most %d value(s) to %s" % (limit, input),
            )
        if not option.optional:
            expected = 1 if limit is UNLIMITED else limit
            if len(raw) < expected:
                raise OptionValueRequiredError(
                    "option %r at %s position requires %s" % (
                        input, ordinal(start), "a value" if expected == 1 else "%d values" % expected
                    ),
                    input=input,
                    index=start,
                    hint="provide a value (for example: %s=<value>)" % input,
                )
        values.extend(raw)

    @staticmethod
    def split(option, value, /):
        if option.separator is None:
            return [value]
        return value.split(option.separator)


def tokenize(options, tokens, /):
    """
    Split raw tokens into a CommandLine according to `options`.

    Parameters
    - options: OptionSet (usually aggregate(root), plus the help option)
    - tokens: iterable of str (argv without the program name)
    """
    if not isinstance(options, OptionSet):
        raise TypeError("tokenize() first argument must be an option set")
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("tokenize() second argument must be an iterable of strings")
    tokens = list(tokens)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("tokenize() second argument must be an iterable of strings")
    return _Tokenizer(options, tokens).run()


__all__ = (
    "CommandLine",
    "tokenize",
)
