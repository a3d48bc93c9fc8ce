"""
Argosy usage help.

render(context) builds a rich renderable describing the active descriptor of a
resolved route (the command, or the deepest route when no command was given):

    usage: <path> [OPTIONS] <ARG>...

    <description>

    Options:
      -h, --help        show this help message and exit

    Commands / Arguments:
      name              description

Only the options declared on the active descriptor are listed, plus the help
option when it is auto-added. show(context) prints the result.

Context data keys
- help.option: Option used as the help switch (default -h/--help)
- help.option.auto.add: add the help option everywhere (default True)
- help.console: rich Console to print to (default: a stdout console)

Palette keys
- usage-label, program-name, arguments-syntax, description-section, group-label,
  option-name, deprecated-name, metavar, children, children-description,
  children-table, argument-name, argument-description, panel-title
Define a mapping named __styles__ in __main__ to override any palette entry.
"""
import itertools
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Option, UNLIMITED, describe
from .context import CommandContext
from .descriptors import Descriptor, Route, Command, walk

HELP_OPTION = Option("-h", "--help", descr="show this help message and exit")

HELP_OPTION_KEY = "help.option"
HELP_AUTO_ADD_KEY = "help.option.auto.add"
HELP_CONSOLE_KEY = "help.console"


def help_option(data, /):
    """
    The help option configured in `data` (a mapping or a CommandContext),
    or None when auto-adding it was turned off.
    """
    get = data.value if isinstance(data, CommandContext) else data.get
    if get(HELP_AUTO_ADD_KEY, True) is False:
        return None
    if not isinstance(option := get(HELP_OPTION_KEY, HELP_OPTION), Option):
        raise TypeError(f"context value {HELP_OPTION_KEY!r} must be an option")
    return option


def _metavar(option, /):
    if option.flag:
        return ""
    metavar = "<%s>" % (option.metavar or "VALUE")
    if option.nargs is UNLIMITED:
        metavar += "..."
    elif option.nargs > 1:
        metavar += "{%d}" % option.nargs
    return "[%s]" % metavar if option.optional else metavar


def syntax(route, options=(), /):
    """
    Plain-text command line syntax of a resolved route:
    "<path> [OPTIONS] <ARG>..." (arguments only when a command was resolved).
    """
    parts = [str(route)]
    if options:
        parts.append("[OPTIONS]")
    if route.command is not None:
        parts.extend(map(describe, route.command.arguments))
    return " ".join(parts)


def synopsis(root, /):
    """
    One syntax line per command reachable from `root`, in declaration order.
    """
    if not isinstance(root, Descriptor):
        raise TypeError("synopsis() argument must be a route or a command")
    return [
        " ".join(itertools.chain(
            (step.name for step in path),
            (descriptor.name,),
            map(describe, descriptor.arguments),
        ))
        for path, descriptor in walk(root) if isinstance(descriptor, Command)
    ]


def render(context, /, *, fancy=False, colorful=True, width=None):
    """
    Build the usage help of `context.route` as a rich renderable.
    """
    if not isinstance(context, CommandContext):
        raise TypeError("render() argument must be a command context")

    main = __import__("__main__")
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "arguments-syntax": "bold #36C5F0",  # SKY-BLUE
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Groups / options ===
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "deprecated-name": "bold #F97316 strike",
        "metavar": "bold #FFD600",

        # === Children / arguments ===
        "children-table": "#4B5563",  # Slate border
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",
        "argument-name": "bold #FFD600",
        "argument-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(main, "__styles__", {}))

    def styler(style):
        if "deprecated" in style and not colorful:
            return "strike"
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), style)

    route = context.route
    descriptor = route.descriptor
    options = list(descriptor.options)
    if (helper := help_option(context)) is not None and all(helper.key != option.key for option in options):
        options.append(helper)

    renders = []

    # usage: <path> [OPTIONS] <ARG>...
    usage = Text()
    usage.append("usage", styler("usage-label")).append(": ")
    usage.append(text(str(route), styler("program-name")))
    if options:
        usage.append(" ").append(text("[OPTIONS]", styler("arguments-syntax")))
    if route.command is not None:
        for argument in route.command.arguments:
            usage.append(" ").append(text(describe(argument), styler("arguments-syntax")))
    renders.append(usage.append("\n"))

    if descriptor.descr:
        renders.append(text(descriptor.descr, styler("description-section")).append("\n"))

    if options:
        section = Text()
        section.append(text("Options", styler("group-label"))).append(":\n")
        rows = []
        for option in options:
            name = Text(", ").join(
                text(name, styler("deprecated-name" if option.deprecated else "option-name"))
                for name in option.names
            )
            if metavar := _metavar(option):
                name.append(" ").append(text(metavar, styler("metavar")))
            rows.append((name, option.descr))
        indent = 2 + max(len(name) for name, _ in rows) + 3
        for name, descr in rows:
            section.append("  ").append(name)
            if descr:
                section.append(" " * (indent - 2 - len(name)))
                section.append(text(descr, styler("argument-description")))
            section.append("\n")
        renders.append(section)

    match descriptor:
        case Route():
            table = Table(
                "name", "description",
                title=text("Commands", styler("group-label")),
                title_justify="left",
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("group-label"),
                width=int(width * (2 / 3)) if width else None,
            )
            prefix = " ".join(step.name for step in route.path)
            for name, child in descriptor.children.items():
                table.add_row(
                    text(name, styler("children")),
                    text(child.descr or "run '%s %s --help' for details" % (prefix, name), styler("children-description")),
                )
            renders.append(table)
        case Command() if descriptor.arguments:
            section = Text()
            section.append(text("Arguments", styler("group-label"))).append(":\n")
            indent = 2 + max(len(argument.name) for argument in descriptor.arguments) + 3
            for argument in descriptor.arguments:
                section.append("  ").append(text(argument.name, styler("argument-name")))
                if argument.descr:
                    section.append(" " * (indent - 2 - len(argument.name)))
                    section.append(text(argument.descr, styler("argument-description")))
                section.append("\n")
            renders.append(section)

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()

    renderable = Group(*renders)

    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{route} help".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    return renderable


def show(context, /, console=None, **options):
    """
    Print the usage help of `context` to `console`, or to the console stored
    under help.console, or to stdout.
    """
    console = console or context.value(HELP_CONSOLE_KEY) or Console()
    console.print(render(context, width=console.width, **options))


__all__ = (
    "HELP_OPTION",
    "HELP_OPTION_KEY",
    "HELP_AUTO_ADD_KEY",
    "HELP_CONSOLE_KEY",
    "help_option",
    "syntax",
    "synopsis",
    "render",
    "show",
)
