"""
Argosy help renderer: schema node → usage/help text.

The layout is part of the observable contract and is byte-for-byte stable for a
given schema:

    <name>

    Usage:
      <name> [options] <placeholders> COMMAND

    Commands:
      <name>           <first line of help>

    Arguments:
      <placeholder>    <help> (default: X)

    Options:
      -s, --long=VAR             <help> (default: X)

- The left column is padded to 16 characters for commands/arguments and to 26 for
  options. A left part wider than its column pushes the help onto the next line,
  at the same indentation.
- Placeholders: `name`, `[name]` (single with default), `[name ...]` (unlimited),
  `name name` (fixed nargs > 1, repeated), then `COMMAND` when there are children.
- Empty sections are skipped.

render() returns a rich Text so the same characters can be printed with colors;
render_help() returns its plain string.

Styling
- Palette keys: program-name, section, command, metavar, flag-name, option-name, help.
- Define a mapping named __styles__ in __main__ to override any palette entry.
- With colorful=False no style is applied at all.
"""
from collections import defaultdict

from rich.text import Text

from .components import Flag, Option, Argument

COMMAND_WIDTH = 16
ARGUMENT_WIDTH = 16
OPTION_WIDTH = 26

PALETTE = {
    "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
    "section": "bold #FFFFFF",  # Pure white headers
    "command": "bold #36C5F0",  # Sky-blue subcommands
    "metavar": "bold #FFD600",  # AMBER for positionals
    "flag-name": "bold #22C55E",  # GREEN for flags
    "option-name": "bold #00E6FF",  # CYAN for options
    "help": "#9CA3AF",  # Muted gray
}


def placeholder(argument, /):
    """
    Return the usage placeholder of a positional argument.
    """
    if argument.unlimited:
        return f"[{argument.varname} ...]"
    if argument.nargs == 1:
        return f"[{argument.varname}]" if argument.default else argument.varname
    return " ".join([argument.varname] * argument.nargs)


def render(schema, /, *, colorful=False):
    """
    Render the help of a schema node as a rich Text.

    Parameters
    - schema: Schema
      The frozen node to describe (root or subcommand).
    - colorful: bool (keyword-only)
      Apply the palette; the characters are the same either way.
    """
    styles = defaultdict(str, PALETTE | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def entry(left, help, default="", *, width, style):
        line = Text("  ")
        line.append(left, styler(style))
        if default:
            help += f" (default: {default})"
        if help:
            if len(left) > width:
                line.append("\n").append("  ").append(" " * (width + 1))
            else:
                line.append(" " * (width - len(left))).append(" ")
            line.append(help, styler("help"))
        return line.append("\n")

    usage = []
    commands = Text()
    arguments = Text()
    options = Text()

    for component in schema.components:
        match component:
            case Flag():
                options.append(entry(
                    ", ".join(component.names), component.help, width=OPTION_WIDTH, style="flag-name"
                ))
            case Option():
                options.append(entry(
                    ", ".join(component.names) + "=" + component.varname.upper(),
                    component.help,
                    component.default,
                    width=OPTION_WIDTH,
                    style="option-name",
                ))
            case Argument():
                usage.append(left := placeholder(component))
                arguments.append(entry(
                    left, component.help, component.default, width=ARGUMENT_WIDTH, style="metavar"
                ))

    if children := schema.children:
        usage.append("COMMAND")
        for child in children:
            commands.append(entry(
                child.name, child.help.split("\n")[0], width=COMMAND_WIDTH, style="command"
            ))

    text = Text()
    text.append(schema.name, styler("program-name")).append("\n\n")

    if usage or options.plain:
        text.append("Usage:", styler("section")).append("\n").append("  ")
        text.append(schema.name, styler("program-name")).append(" ")
        if options.plain:
            text.append("[options] ")
        text.append(" ".join(usage)).append("\n\n")

    for title, section in (("Commands:", commands), ("Arguments:", arguments), ("Options:", options)):
        if section.plain:
            text.append(title, styler("section")).append("\n")
            text.append(section).append("\n")

    return text


def render_help(schema, /):
    """
    Return the plain help text of a schema node.

    Pure and deterministic: the same schema always yields the same string.
    """
    return render(schema).plain


__all__ = (
    "render",
    "render_help",
    "placeholder",
)
