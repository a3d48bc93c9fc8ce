"""
Argosy faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the engine can
  report. Codes are grouped by domain to keep copy consistent and make
  logs/searches predictable.
- DescriptorError: construction-time failures (malformed trees). These are
  programming errors; they are raised immediately and never rendered.
- CommandException / CommandWarning: base types for user-facing faults that carry
  message + options and know how to render themselves in a friendly, lowercased,
  and actionable way.
- BindingAssertionError: internal-consistency failure of the argument binder.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The resolver and tokenizer raise input faults directly (non-shell semantics).
- The entry point catches them and calls trigger(fault, shell=True, ...) to render
  through rich and exit with the fault's status.
"""
import copy
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - construction (110xx): malformed descriptor trees
    - routing (111xx): sub-command lookup
    - options (112xx): flag tokenizing and required options
    - arguments (113xx): positional binding
    - execution (114xx): failures raised while running a command
    - warnings (12xxx): non-fatal notices

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- construction errors (110xx) ---
    DUPLICATE_SUBCOMMAND        = 11001
    EMPTY_ROUTE                 = 11002
    DUPLICATE_ARGUMENT          = 11003
    ARGUMENT_AFTER_OPTIONAL     = 11004
    ARGUMENT_AFTER_UNLIMITED    = 11005
    MISSING_FACTORY             = 11006
    MISSING_DESCRIPTION         = 11007
    OPTION_CONFLICT             = 11008

    # --- routing errors (111xx) ---
    UNKNOWN_COMMAND             = 11101
    COMMAND_REQUIRED            = 11102

    # --- option errors (112xx) ---
    MALFORMED_TOKEN             = 11201
    UNKNOWN_OPTION              = 11202
    FLAG_ASSIGNMENT             = 11203
    OPTION_VALUE_REQUIRED       = 11204
    ALREADY_SELECTED            = 11205
    MISSING_OPTIONS             = 11206
    MISSING_OPTION_GROUP        = 11207

    # --- argument errors (113xx) ---
    MISSING_ARGUMENT            = 11301
    NOT_ENOUGH_VALUES           = 11302
    UNHANDLED_ARGUMENT          = 11303
    INVALID_INPUT               = 11304

    # --- execution errors (114xx) ---
    COMMAND_FAILED              = 11401
    UNEXPECTED_ERROR            = 11402

    # --- warnings (12xxx) ---
    EMPTY_INLINE_VALUE          = 12111
    DEPRECATED_OPTION           = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class DescriptorError(ValueError):
    """
    Raised while building a descriptor tree whose shape breaks an invariant.

    The structured violation (when the failure came from a pure check) is
    available as `violation`; extra context lives in the read-only `options`.
    """

    def __init__(self, message, /, **options):
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def violation(self):
        return self.options.get("violation")

    @property
    def code(self):
        return self.options.get("code")


class OptionConflictError(DescriptorError):
    """
    Two options reachable from the same root share a name but disagree on shape.

    options: new, existing, field
    """


class BindingAssertionError(AssertionError):
    """
    The binder claimed more values than an argument's multiplicity allows.

    This cannot be caused by user input; it signals a defect in the binder.
    """


def _render(fault, palette, /):
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    width = coalesce(options.get("console", Unset), console).width - 4 * fancy

    prog = text(getattr(main, "__prog__", options.get("prog", "argosy")), styler("prog-name"))

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.code.normalize(), styler("code")),
        " | ",
        text(fault.title.title(), styler("title")),
        " ]"
    )
    renders = [text(fault.message, styler("message"))]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
    if docs := getdoc(fault.code):
        renders.append(text(docs, styler("docs")))

    if fancy:
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*renders), title=header, title_align="left", width=width)

    return Group(header, *renders)


class CommandException(Exception):
    """
    Base of every user-facing failure (bad input or failed execution).

    Subclasses pin a default code/title pair; callers may override both
    (and add hint/context) through keyword options.
    """
    __code__ = FaultCode.INVALID_INPUT
    __title__ = "invalid input"

    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "title": "bold #FF4DA6",  # friendly pinky title

        # body
        "message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
        "docs": "underline #00E5FF dim",
    }

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    @property
    def hint(self):
        return self.options.get("hint")

    def __rich__(self):
        return _render(self, type(self).__palette__)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from self.__cause__
        coalesce(self.options.get("console", Unset), console).print(self)
        sys.exit(self.options.get("status", 1))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replacement = type(self)(self.message, **{**self.options, **overrides})
        replacement.__cause__ = self.__cause__
        return replacement.with_traceback(self.__traceback__)


class ParseError(CommandException):
    """
    The command line cannot be reconciled with the declared tree.

    Commands may raise it from their validate() hook to reject input
    the tree cannot express.
    """


class UnknownCommandError(ParseError):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"


class CommandRequiredError(ParseError):
    __code__ = FaultCode.COMMAND_REQUIRED
    __title__ = "command required"


class MalformedTokenError(ParseError):
    __code__ = FaultCode.MALFORMED_TOKEN
    __title__ = "malformed option"


class UnknownOptionError(ParseError):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"


class FlagAssignmentError(ParseError):
    __code__ = FaultCode.FLAG_ASSIGNMENT
    __title__ = "flag cannot take a value"


class OptionValueRequiredError(ParseError):
    __code__ = FaultCode.OPTION_VALUE_REQUIRED
    __title__ = "missing option value"


class AlreadySelectedError(ParseError):
    __code__ = FaultCode.ALREADY_SELECTED
    __title__ = "conflicting options"


class MissingOptionsError(ParseError):
    __code__ = FaultCode.MISSING_OPTIONS
    __title__ = "missing options"

    @property
    def missing(self):
        return self.options.get("missing", ())


class MissingOptionGroupError(ParseError):
    __code__ = FaultCode.MISSING_OPTION_GROUP
    __title__ = "missing option"


class MissingArgumentError(ParseError):
    __code__ = FaultCode.MISSING_ARGUMENT
    __title__ = "missing argument"


class NotEnoughValuesError(ParseError):
    __code__ = FaultCode.NOT_ENOUGH_VALUES
    __title__ = "not enough values"


class UnhandledArgumentError(ParseError):
    __code__ = FaultCode.UNHANDLED_ARGUMENT
    __title__ = "unhandled argument"


class CommandError(CommandException):
    """
    A command failed while running. Command code raises it to report an
    expected failure with a friendly message.
    """
    __code__ = FaultCode.COMMAND_FAILED
    __title__ = "command failed"

    __palette__ = CommandException.__palette__ | {
        "code": "bold #FF5F5F",  # red fault code for execution failures
        "title": "bold #FF5F5F",
    }


class CommandExecutionError(CommandError):
    """
    An unexpected exception escaped a command; the original is the __cause__.
    """
    __code__ = FaultCode.UNEXPECTED_ERROR
    __title__ = "unexpected error"


class CommandWarning(ABC, Warning):
    __code__ = Unset
    __title__ = "warning"

    __palette__ = {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #FFB400",  # amber fault code for warnings
        "title": "bold #FFC2E0",  # softer pinky title for warnings

        # body
        "message": "#D6D6DE",  # slightly lighter gray body
        "hint-arrow": "#B8EFAF dim",  # softer green arrow
        "hint": "italic #B8EFAF",  # softer green hint text
        "docs": "underline #FFB400 dim",
    }

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", type(self).__code__)

    @property
    def title(self):
        return self.options.get("title", type(self).__title__)

    def __rich__(self):
        return _render(self, type(self).__palette__)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        coalesce(self.options.get("console", Unset), console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyOptionValueWarning(CommandWarning):
    __code__ = FaultCode.EMPTY_INLINE_VALUE
    __title__ = "empty inline value"


class DeprecatedOptionWarning(CommandWarning):
    __code__ = FaultCode.DEPRECATED_OPTION
    __title__ = "deprecated option"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions
      are raised and warnings go through warnings.warn.

    typical options
    - prog, shell, fancy, colorful, console, status, title, code, hint, and any
      other context the reporter may want to show (e.g., input/index/argument).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "DescriptorError",
    "OptionConflictError",
    "BindingAssertionError",
    "CommandException",
    "ParseError",
    "UnknownCommandError",
    "CommandRequiredError",
    "MalformedTokenError",
    "UnknownOptionError",
    "FlagAssignmentError",
    "OptionValueRequiredError",
    "AlreadySelectedError",
    "MissingOptionsError",
    "MissingOptionGroupError",
    "MissingArgumentError",
    "NotEnoughValuesError",
    "UnhandledArgumentError",
    "CommandError",
    "CommandExecutionError",
    "CommandWarning",
    "EmptyOptionValueWarning",
    "DeprecatedOptionWarning",
    "trigger",
    "getdoc",
)
