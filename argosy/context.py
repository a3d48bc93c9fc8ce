"""
Argosy command context.

A CommandContext is created by the entry point for every invocation and is
the only thing a command factory receives. It gathers:
- the tokenized command line (option values),
- the resolved CommandRoute (path, command, bound argument values),
- a private copy of the entry point's context data (free-form key/value
  settings such as the help option), which commands may extend with put().
"""
from .routes import CommandRoute
from .tokenizer import CommandLine
from .utils import *


class CommandContext:
    def __init__(self, line, route, data=()):
        if not isinstance(line, CommandLine):
            raise TypeError("context 'line' must be a command line")
        if not isinstance(route, CommandRoute):
            raise TypeError("context 'route' must be a command route")
        self._line = line
        self._route = route
        self._data = dict(data)

    line = mirror("line")
    route = mirror("route")

    def __repr__(self):
        return f"command-context({str(self._route)!r})"

    @property
    def command(self):
        return self._route.command

    def _argument(self, name, /):
        if self._route.command is None:
            raise KeyError(f"argument {name!r} not found: no command was resolved")
        try:
            return self._route.command.argument(name)
        except KeyError:
            raise KeyError(f"argument {name!r} not found") from None

    def argument_values(self, name, /):
        """
        All values bound to the argument called `name` (possibly empty).

        Raises KeyError when the command declares no such argument.
        """
        return self._route.binding.get(self._argument(name), ())

    def argument_value(self, name, default=None, /):
        """
        First value bound to `name`, or `default` when it claimed nothing.
        """
        try:
            return self.argument_values(name)[0]
        except IndexError:
            return default

    def required_argument_value(self, name, /):
        """
        First value bound to `name`; LookupError when it claimed nothing.
        """
        if not (values := self.argument_values(name)):
            raise LookupError(f"argument {name!r} has no value")
        return values[0]

    def has_option(self, name, /):
        return self._line.has(name)

    def option_values(self, name, /):
        return self._line.values(name)

    def option_value(self, name, default=None, /):
        return self._line.value(name, default)

    def value(self, key, default=None, /):
        return self._data.get(key, default)

    def required_value(self, key, /):
        try:
            return self._data[key]
        except KeyError:
            raise LookupError(f"context value {key!r} is required") from None

    def put(self, key, value, /):
        if not isinstance(key, str):
            raise TypeError("context keys must be strings")
        self._data[key] = value
        return self


__all__ = (
    "CommandContext",
)
