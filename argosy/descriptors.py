"""
Argosy descriptor tree: routes and commands.

What this module provides
- Descriptor: common base (name, descr, options, groups) of the two node kinds.
- Route: inner node owning an ordered, read-only mapping of named children.
- Command: leaf node owning ordered positional arguments and a factory that
  builds the runnable for one invocation.
- RouteBuilder / CommandBuilder: fluent builders that validate every step
  eagerly. Each invariant is a pure check returning a Violation (or None), so
  a caller may ask "would this be accepted?" without committing anything.
- route(name) / command(name): shorthand for Route.builder / Command.builder.

Invariants
- Route: at least one child; child names are unique within the route.
- Command, checked as each argument is appended:
  • argument names are unique within the command,
  • nothing may follow an optional argument,
  • nothing may follow an UNLIMITED argument.
- Every descriptor has a name and a description; commands have a factory.

Once built, descriptors never change. A tree may be resolved any number of
times, including from several threads at once.

Quick start
    from argosy import Argument, Option, UNLIMITED, route

    git = route("git").describe("the stupid content tracker")

    @git.command("add", descr="add file contents to the index",
                 arguments=[Argument("PATHSPEC", "files to add", multiplicity=UNLIMITED)])
    def add(context):
        print(context.argument_values("PATHSPEC"))

    tree = git.build()
"""
import collections
import functools
import inspect
import operator
import re

from .arguments import Argument, Option, OptionGroup, UNLIMITED
from .faults import DescriptorError, FaultCode
from .utils import *

Violation = collections.namedtuple("Violation", (
    "code",
    "subject",
    "offender",
    "message",
))
Violation.__doc__ = """
Structured outcome of a failed construction check.

- code: FaultCode identifying the broken invariant
- subject: name of the descriptor being built
- offender: name of the child/argument that was rejected (None for whole-node checks)
- message: human-readable explanation
"""


class DescriptorType(type):
    """
    Metaclass for descriptor nodes.

    Responsibilities
    - Derive __typename__ from the class name for messages ("route", "command").
    - Expose every name in __introspectable__ as a read-only property (mirror()).
    - Provide stable __repr__/__rich_repr__ limited to __displayable__ fields, so
      printing a large tree does not recurse through every child.
    - Set __match_args__ so the resolver can dispatch with class patterns.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
                "__match_args__": ("name",),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_name(cls, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise DescriptorError(f"{cls.__typename__} 'name' cannot be empty")
    elif re.search(r"\s", name) or name.startswith("-"):
        raise DescriptorError(
            f"{cls.__typename__} name {name!r} must be a single word that does not start with '-'"
        )
    return name


def _sanitize_descr(cls, name, descr, /):
    if descr is Unset:
        raise DescriptorError(
            f"{cls.__typename__} {name!r} has no description",
            code=FaultCode.MISSING_DESCRIPTION,
        )
    elif not isinstance(descr, str):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    return descr.strip()


class Descriptor(metaclass=DescriptorType):
    """
    Common shape of routes and commands.

    Not instantiated directly; use Route.builder(...) or Command.builder(...).
    """

    __introspectable__ = (
        "name",
        "descr",
        "options",
        "groups",
    )

    def __init_subclass__(cls, **options):
        # exactly two node kinds exist; the resolver dispatches on them
        if cls.__name__ not in ("Route", "Command") or cls.__module__ != __name__:
            raise TypeError(f"type {Descriptor.__name__!r} is not an acceptable base type")
        super().__init_subclass__(**options)

    def __new__(cls, builder, /):
        if cls is Descriptor:
            raise TypeError("descriptor cannot be instantiated directly, use route() or command()")
        self = super().__new__(cls)
        self._name = builder._name
        self._descr = _sanitize_descr(cls, builder._name, builder._descr)
        self._options = tuple(builder._options)
        self._groups = tuple(builder._groups)
        return self

    @classmethod
    def builder(cls, name, /):
        raise NotImplementedError


class Route(Descriptor):
    """
    Inner node of the tree: a named group of sub-commands.

    Children are kept in declaration order and looked up by exact,
    case-sensitive name.
    """

    __introspectable__ = Descriptor.__introspectable__ + (
        "children",
    )

    __displayable__ = (
        "name",
        "descr",
    )

    def __new__(cls, builder, /):
        if violation := _check_nonempty(builder._name, builder._children):
            raise DescriptorError(violation.message, violation=violation, code=violation.code)
        self = super().__new__(cls, builder)
        self._children = freeze(builder._children)
        return self

    @classmethod
    def builder(cls, name, /):
        return RouteBuilder(name)


class Command(Descriptor):
    """
    Leaf node of the tree: a runnable command with ordered positional arguments.

    factory(context) is called once per invocation and must return a
    zero-argument callable that performs the work. The callable may expose a
    validate() method; it runs first and may raise ParseError.
    """

    __introspectable__ = Descriptor.__introspectable__ + (
        "arguments",
        "factory",
    )

    __displayable__ = (
        "name",
        "descr",
        "arguments",
    )

    def __new__(cls, builder, /):
        if builder._factory is Unset:
            raise DescriptorError(
                f"command {builder._name!r} has no factory",
                code=FaultCode.MISSING_FACTORY,
            )
        self = super().__new__(cls, builder)
        self._arguments = tuple(builder._arguments)
        self._factory = builder._factory
        return self

    @classmethod
    def builder(cls, name, /):
        return CommandBuilder(name)

    def argument(self, name, /):
        """
        Return the declared argument called `name`; KeyError when there is none.
        """
        for argument in self.arguments:
            if argument.name == name:
                return argument
        raise KeyError(f"argument {name!r} not found in command {self.name!r}")


def _check_nonempty(route, children, /):
    if not children:
        return Violation(
            FaultCode.EMPTY_ROUTE,
            route,
            None,
            f"route {route!r} must have at least one sub-command",
        )
    return None


def _check_subcommand(route, children, descriptor, /):
    """
    Pure check: may `descriptor` be added under a route holding `children`?
    """
    if descriptor.name in children:
        return Violation(
            FaultCode.DUPLICATE_SUBCOMMAND,
            route,
            descriptor.name,
            f"sub-command {descriptor.name!r} already exists for route {route!r}",
        )
    return None


def _check_argument(command, arguments, argument, /):
    """
    Pure check: may `argument` be appended after `arguments` on `command`?

    Order of checks: duplicate name, after-optional, after-unlimited. All of
    them only apply once at least one argument was declared.
    """
    if not arguments:
        return None
    if any(existing.name == argument.name for existing in arguments):
        return Violation(
            FaultCode.DUPLICATE_ARGUMENT,
            command,
            argument.name,
            f"argument {argument.name!r} already exists for command {command!r}",
        )
    last = arguments[-1]
    if not last.required:
        return Violation(
            FaultCode.ARGUMENT_AFTER_OPTIONAL,
            command,
            argument.name,
            f"argument {argument.name!r} cannot come after an optional argument {last.name!r} for command {command!r}",
        )
    if last.multiplicity is UNLIMITED:
        return Violation(
            FaultCode.ARGUMENT_AFTER_UNLIMITED,
            command,
            argument.name,
            f"argument {argument.name!r} cannot come after an argument {last.name!r} with unlimited values "
            f"for command {command!r}",
        )
    return None


class DescriptorBuilder:
    """
    Shared fluent builder state: name, description, options and option groups.
    """
    __kind__ = Descriptor

    def __init__(self, name, /):
        self._name = _sanitize_name(self.__kind__, name)
        self._descr = Unset
        self._options = []
        self._groups = []

    def __repr__(self):
        return f"{type(self).__name__}({self._name!r})"

    def describe(self, descr, /):
        if not isinstance(descr, str):
            raise TypeError(f"{self.__kind__.__typename__} 'descr' must be a string")
        self._descr = descr
        return self

    def option(self, *options):
        for option in options:
            if not isinstance(option, Option):
                raise TypeError(f"{self.__kind__.__typename__} options must be options")
            self._options.append(option)
        return self

    def group(self, *groups):
        """
        Add option groups. Members of a group are also declared as options
        of this descriptor.
        """
        for group in groups:
            if not isinstance(group, OptionGroup):
                raise TypeError(f"{self.__kind__.__typename__} groups must be option groups")
            self._groups.append(group)
            self._options.extend(option for option in group.options if option not in self._options)
        return self

    def build(self):
        return self.__kind__(self)


class RouteBuilder(DescriptorBuilder):
    __kind__ = Route

    def __init__(self, name, /):
        super().__init__(name)
        self._children = {}
        self._pending = []

    def check_subcommand(self, descriptor, /):
        """
        Return the Violation adding `descriptor` would cause, or None.
        """
        if not isinstance(descriptor, Descriptor):
            raise TypeError("route sub-commands must be routes or commands")
        return _check_subcommand(self._name, self._children, descriptor)

    def subcommand(self, *descriptors):
        for descriptor in descriptors:
            if isinstance(descriptor, DescriptorBuilder):
                descriptor = descriptor.build()
            if violation := self.check_subcommand(descriptor):
                raise DescriptorError(violation.message, violation=violation, code=violation.code)
            self._children[descriptor.name] = descriptor
        return self

    def check(self):
        """
        Return the Violation building this route now would cause, or None.
        """
        return _check_nonempty(self._name, self._children or self._pending)

    def command(self, name, /, descr=Unset, *, arguments=(), options=(), groups=()):
        """
        Decorator: turn `handler(context)` into a child command.

        The description defaults to the handler's docstring. The handler is
        returned unchanged so it stays directly callable.
        """
        @rename("command")
        def wrapper(handler, /):
            if not callable(handler):
                raise TypeError("@command() must be applied to a callable")
            builder = CommandBuilder(name)
            builder.describe(coalesce(descr, inspect.getdoc(handler) or ""))
            builder.argument(*arguments)
            builder.option(*options)
            builder.group(*groups)
            builder.factory(lambda context: functools.partial(handler, context))
            self.subcommand(builder.build())
            return handler

        return wrapper

    def route(self, name, /, descr=Unset):
        """
        Start a nested route builder.

        The nested route is attached to this builder by its own build(), or
        by this builder's build() when it was not built before.
        """
        builder = _NestedRouteBuilder(name, self)
        if descr is not Unset:
            builder.describe(descr)
        self._pending.append(builder)
        return builder

    def build(self):
        for builder in list(self._pending):
            builder.build()
        return super().build()


class _NestedRouteBuilder(RouteBuilder):
    """
    Route builder whose build() attaches the result to its parent builder.
    """

    def __init__(self, name, parent, /):
        super().__init__(name)
        self._parent = parent

    def build(self):
        route = super().build()
        if self in self._parent._pending:
            self._parent._pending.remove(self)
            self._parent.subcommand(route)
        return route


class CommandBuilder(DescriptorBuilder):
    __kind__ = Command

    def __init__(self, name, /):
        super().__init__(name)
        self._arguments = []
        self._factory = Unset

    def check_argument(self, argument, /):
        """
        Return the Violation appending `argument` would cause, or None.
        """
        if not isinstance(argument, Argument):
            raise TypeError("command arguments must be arguments")
        return _check_argument(self._name, self._arguments, argument)

    def argument(self, *arguments):
        for argument in arguments:
            if violation := self.check_argument(argument):
                raise DescriptorError(violation.message, violation=violation, code=violation.code)
            self._arguments.append(argument)
        return self

    def factory(self, factory, /):
        if not callable(factory):
            raise TypeError("command 'factory' must be callable")
        self._factory = factory
        return self


def route(name, /, descr=Unset):
    """
    Shorthand for Route.builder(name), optionally described in the same call.
    """
    builder = RouteBuilder(name)
    return builder.describe(descr) if descr is not Unset else builder


def command(name, /, descr=Unset):
    """
    Shorthand for Command.builder(name), optionally described in the same call.
    """
    builder = CommandBuilder(name)
    return builder.describe(descr) if descr is not Unset else builder


def walk(root, /):
    """
    Yield (path, descriptor) pairs depth-first, path being the routes above
    the descriptor (root first).
    """
    if not isinstance(root, Descriptor):
        raise TypeError("walk() argument must be a route or a command")
    stack = [((), root)]
    while stack:
        path, descriptor = stack.pop()
        yield path, descriptor
        if isinstance(descriptor, Route):
            stack.extend((path + (descriptor,), child) for child in reversed(descriptor.children.values()))


__all__ = (
    "Violation",
    "Descriptor",
    "Route",
    "Command",
    "DescriptorBuilder",
    "RouteBuilder",
    "CommandBuilder",
    "route",
    "command",
    "walk",
)

del DescriptorType
