r"""
Argosy argument and option specifications.

Overview
- Specs
  • Argument: positional slot declared on a command (name, descr, required, multiplicity).
    Pure schema; bound values live in a per-invocation Binding (see argosy.routes).
  • Option: named flag with a short (-o) and/or long (--opt) name, an arity
    (nargs), an optional-argument flag, a value separator, a declared type and a
    required flag.
  • OptionGroup: mutually exclusive set of options, optionally required.

- Sentinel
  • UNLIMITED: multiplicity/arity marker meaning "every remaining value".

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes selected
    fields via read-only properties declared in __introspectable__/__displayable__.
  • Specs support copy.replace(spec, **changes) to derive modified copies.

Validation highlights
- Names must match r"--?[^\W\d_](-?[^\W_]+)*" for options; short names are one
  character after a single hyphen, long names use a double hyphen.
- Multiplicity/nargs must be a positive integer or UNLIMITED (options also accept 0 for flags).
- Wrong Python types raise TypeError; wrong values raise DescriptorError (a ValueError).

Quick example:
    >>> from argosy.arguments import Argument, Option, UNLIMITED
    >>> Argument("FILES", "files to process", required=True, multiplicity=UNLIMITED)
    >>> Option("-o", "--output", descr="output path", nargs=1)
"""
import functools
import operator
import re
from typing import final

from .faults import DescriptorError
from .utils import *


@final
class UnlimitedType:
    """
    Sentinel type for "no upper bound" on how many values a slot accepts.

    A single instance, UNLIMITED, is exposed. It is truthy, compares only by
    identity and renders as "UNLIMITED" in diagnostics.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __repr__(self):
        return "UNLIMITED"

    def __reduce__(self):
        return "UNLIMITED"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnlimitedType' is not an acceptable base type")


UNLIMITED = UnlimitedType()


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide __replace__ so copy.replace(spec, **changes) re-runs validation
      on the merged metadata.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and help output.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
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
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(name='FILE', descr='input file', required=True, multiplicity=1)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__replace__")
        def __replace__(self, /, **changes):
            unknown = changes.keys() - set(type(self).__introspectable__)
            if unknown:
                raise TypeError(f"{type(self).__typename__} got unexpected field(s): {", ".join(sorted(unknown))}")
            return type(self)._from_metadata({
                name: getattr(self, name) for name in type(self).__introspectable__
            } | changes)
        self.__replace__ = __replace__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the 'descr' field shared by every spec.

    - descr: required string; surrounding whitespace is trimmed. An empty
      description is allowed (help simply shows nothing).
    """
    if not isinstance(descr := metadata["descr"], str):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    metadata["descr"] = descr.strip()


def _sanitize_argument_metadata(cls, metadata, /):
    """
    Internal: validate name/required/multiplicity of a positional Argument.

    Raises
    - TypeError: name is not a string, required is not a bool, multiplicity
      is neither an int nor UNLIMITED (bool is rejected explicitly).
    - DescriptorError: empty name, or multiplicity < 1.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise DescriptorError(f"{cls.__typename__} 'name' cannot be empty")
    elif re.search(r"\s", name):
        raise DescriptorError(f"{cls.__typename__} 'name' cannot contain whitespace: {name!r}")
    metadata["name"] = name

    if not isinstance(metadata["required"], bool):
        raise TypeError(f"{cls.__typename__} 'required' must be a boolean")

    multiplicity = metadata["multiplicity"]
    if multiplicity is UNLIMITED:
        return
    if isinstance(multiplicity, bool) or not isinstance(multiplicity, int):
        raise TypeError(f"{cls.__typename__} 'multiplicity' must be a positive integer or UNLIMITED")
    if multiplicity < 1:
        raise DescriptorError(f"illegal multiplicity for {cls.__typename__} {name!r}, must be positive: {multiplicity}")


def _sanitize_option_metadata(cls, metadata, /):
    r"""
    Internal: validate and normalize the named part of an Option.

    Responsibilities
    - names: one or two strings; at most one short ("-x", single character)
      and at most one long ("--name", "--long-name"). Unicode letters are
      allowed; underscores and leading digits are not (shell style).
    - nargs: 0 (presence-only flag), positive int or UNLIMITED.
    - type: callable, declarative only (never applied by the engine).
    - separator: None or a single non-whitespace character; only meaningful
      when the option takes values.
    - optional: only meaningful when the option takes values.
    - metavar: None or a non-empty string (label in help).
    """
    short = long = None
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise DescriptorError(f"{cls.__typename__} names cannot be empty-strings")
        elif re.fullmatch(r"-[^\W_]", name):
            if short is not None:
                raise DescriptorError(f"{cls.__typename__} cannot have two short names ({short!r}, {name!r})")
            short = name
        elif re.fullmatch(r"--[^\W\d_](-?[^\W_]+)*", name):
            if long is not None:
                raise DescriptorError(f"{cls.__typename__} cannot have two long names ({long!r}, {name!r})")
            long = name
        else:
            raise DescriptorError(
                f"{cls.__typename__} name {name!r} must be a short (-x) or long (--name) shell-style option name"
            )
    metadata["names"] = tuple(filter(None, (short, long)))

    nargs = metadata["nargs"]
    if nargs is not UNLIMITED:
        if isinstance(nargs, bool) or not isinstance(nargs, int):
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer or UNLIMITED")
        if nargs < 0:
            raise DescriptorError(f"{cls.__typename__} 'nargs' cannot be negative: {nargs}")

    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")

    if (separator := metadata["separator"]) is not None:
        if not isinstance(separator, str):
            raise TypeError(f"{cls.__typename__} 'separator' must be a string")
        elif len(separator) != 1 or separator.isspace():
            raise DescriptorError(f"{cls.__typename__} 'separator' must be a single visible character")
        elif nargs == 0:
            raise DescriptorError(f"{cls.__typename__} {long or short!r} takes no values, it cannot have a 'separator'")

    for name in ("optional", "required", "deprecated"):
        if not isinstance(metadata[name], bool):
            raise TypeError(f"{cls.__typename__} {name!r} must be a boolean")
    if metadata["optional"] and nargs == 0:
        raise DescriptorError(f"{cls.__typename__} {long or short!r} takes no values, its value cannot be optional")

    if (metavar := metadata["metavar"]) is not None:
        if not isinstance(metavar, str):
            raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
        elif not (metavar := metavar.strip()):
            raise DescriptorError(f"{cls.__typename__} 'metavar' cannot be empty")
        metadata["metavar"] = metavar


class Argument(metaclass=ArgumentType):
    """
    Positional argument declared on a command.

    Highlights
    - name: unique within its command, shown as <NAME> in usage.
    - required: when True, binding fails if no value is claimed.
    - multiplicity: how many values the argument claims (positive int), or
      UNLIMITED to claim every remaining positional token.

    Arguments hold no values. Identity is the binding key, so two arguments
    with the same fields are still distinct slots.
    """

    __introspectable__ = (
        "name",
        "descr",
        "required",
        "multiplicity",
    )

    def __new__(cls, name, descr, /, required=False, multiplicity=1):
        return cls._from_metadata({
            "name": name,
            "descr": descr,
            "required": required,
            "multiplicity": multiplicity,
        })

    @classmethod
    def _from_metadata(cls, metadata, /):
        _sanitize_argument_metadata(cls, metadata)
        _sanitize_metadata(cls, metadata)
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, freeze(object))
        return self

    @property
    def unlimited(self):
        return self.multiplicity is UNLIMITED


class Option(metaclass=ArgumentType):
    """
    Named option (flag) declared on a route or a command.

    Highlights
    - names: a short (-o) and/or a long (--opt) name; `key` is the short name
      when present, otherwise the long one.
    - nargs: 0 for presence-only flags, N to take up to N values, or
      UNLIMITED to take every following non-option token.
    - optional: the value(s) may be omitted even though the option takes values.
    - separator: splits each raw value further (e.g. -Dkey=value with "=").
    - type: declarative value type; the engine never converts values, but the
      type takes part in conflict checks and is shown in help.
    - required: the option must be present when its descriptor is the one
      being run. The aggregated option set always carries required=False.
    - deprecated: still accepted, but using it emits a DeprecatedOptionWarning.
    """

    __introspectable__ = (
        "names",
        "descr",
        "nargs",
        "type",
        "optional",
        "separator",
        "required",
        "metavar",
        "deprecated",
    )

    __displayable__ = (
        "names",
        "descr",
        "nargs",
        "required",
    )

    def __new__(
            cls,
            *names,
            descr="",
            nargs=0,
            type=str,
            optional=False,
            separator=None,
            required=False,
            metavar=None,
            deprecated=False
    ):
        return cls._from_metadata({
            "names": names,
            "descr": descr,
            "nargs": nargs,
            "type": type,
            "optional": optional,
            "separator": separator,
            "required": required,
            "metavar": metavar,
            "deprecated": deprecated,
        })

    @classmethod
    def _from_metadata(cls, metadata, /):
        _sanitize_option_metadata(cls, metadata)
        _sanitize_metadata(cls, metadata)
        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, freeze(object))
        return self

    @property
    def short(self):
        return next((name for name in self.names if not name.startswith("--")), None)

    @property
    def long(self):
        return next((name for name in self.names if name.startswith("--")), None)

    @property
    def key(self):
        return self.short or self.long

    @property
    def flag(self):
        return self.nargs == 0


class OptionGroup(metaclass=ArgumentType):
    """
    Mutually exclusive set of options: at most one member may be used per
    command line. A required group needs exactly one.
    """

    __introspectable__ = (
        "options",
        "required",
    )

    def __new__(cls, *options, required=False):
        return cls._from_metadata({"options": options, "required": required})

    @classmethod
    def _from_metadata(cls, metadata, /):
        if not (options := tuple(metadata["options"])):
            raise DescriptorError(f"{cls.__typename__} must contain at least one option")
        keys = set()
        for option in options:
            if not isinstance(option, Option):
                raise TypeError(f"{cls.__typename__} members must be options")
            if option.key in keys:
                raise DescriptorError(f"{cls.__typename__} cannot contain {option.key!r} twice")
            keys.add(option.key)
        if not isinstance(metadata["required"], bool):
            raise TypeError(f"{cls.__typename__} 'required' must be a boolean")
        self = super().__new__(cls)
        self._options = options
        self._required = metadata["required"]
        return self

    @property
    def keys(self):
        return tuple(option.key for option in self.options)


def describe(argument, /):
    """
    Usage syntax of an argument: <NAME>, <NAME>{N}, <NAME>..., bracketed when optional.
    """
    if not isinstance(argument, Argument):
        raise TypeError("describe() argument must be an argument")
    syntax = "<%s>" % argument.name
    if argument.multiplicity is UNLIMITED:
        syntax += "..."
    elif argument.multiplicity > 1:
        syntax += "{%d}" % argument.multiplicity
    return syntax if argument.required else "[%s]" % syntax


__all__ = (
    # Classes (specifications)
    "Argument",
    "Option",
    "OptionGroup",

    # Sentinel
    "UnlimitedType",
    "UNLIMITED",

    # Helpers
    "describe",
)

del ArgumentType
