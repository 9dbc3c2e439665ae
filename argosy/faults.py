"""
Argosy faults (errors and warnings) and rendering.

Scope
- SchemaError: build-time problems in a declared schema, raised immediately.
- FaultCode: stable numeric identifiers for every parse-time issue.
- ParseError / ParseWarning: runtime faults that carry a message plus options
  and know how to render themselves (plain, colorful or inside a panel).
- trigger(): central entry point that surfaces a parse-time fault.
- getdoc(): optional description lookup for a code from the host application.

Two tiers
- Schema errors are programming mistakes: they are plain ValueErrors raised while
  the schema is declared and never go through trigger().
- Parse errors/warnings come from user input. Outside shell mode, errors are raised
  and warnings go through the warnings module; in shell mode both are printed on
  stderr with rich and errors terminate the process with status 1.

Integration
- The engine builds a fault with a lowercase message and calls
  ParseState.trigger(fault, node, **context), which merges the runtime options
  (shell/fancy/colorful) before calling trigger().
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .help import render
from .utils import Unset

console = Console(stderr=True)


class SchemaError(ValueError):
    """
    raised while a schema is declared, before any token is parsed.
    """


class DuplicateNameError(SchemaError):
    """
    a varname, flag spelling or subcommand name is already used in the node.
    """


class UnlimitedArgumentError(SchemaError):
    """
    a node declares more than one unlimited argument.
    """


class FaultCode(IntEnum):
    """
    canonical fault codes used by the parser (stable identifiers).

    grouping
    - flags and options (1111x)
      • MISSING_VALUE
    - positionals (1112x)
      • UNEXPECTED_ARGUMENT, MISSING_ARGUMENT
    - warnings (12xxx)
      • UNKNOWN_FLAG

    normalize() lets the host remap codes to its own labels.
    """
    # --- flag/option errors (11xxx) ---
    MISSING_VALUE               = 11117

    # --- positional errors (11xxx) ---
    UNEXPECTED_ARGUMENT         = 11121
    MISSING_ARGUMENT            = 11125

    # --- warnings (12xxx) ---
    UNKNOWN_FLAG                = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: "[ prog — code | Title ]"
    - body: the message, then " → hint"
    - fancy=True wraps the body in a panel titled with the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    schema = options.get("schema")
    prog = getattr(main, "__prog__", schema.root.name if schema is not None else "argosy")
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(code.normalize() if code is not None else "?", "code"),
        " | ",
        text(str(options.get("title", "")).title(), "title"),
        " ]"
    )
    message = text(fault.message, "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(options.get("hint", ""), "hint"))

    if options.get("fancy", False):
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class ParseError(Exception):
    """
    fatal parse-time fault; aborts the whole subcommand chain.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # pinky title
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        # show where the user went wrong before the error itself
        if (schema := self.options.get("schema")) is not None:
            console.print(render(schema, colorful=self.options.get("colorful", False)), end="", soft_wrap=True)
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingValueError(ParseError): ...
class UnexpectedArgumentError(ParseError): ...
class MissingArgumentError(ParseError): ...


class ParseWarning(Warning):
    """
    non-fatal parse-time fault; parsing continues after it is surfaced.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownFlagWarning(ParseWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.

    typical options
    - schema, shell, fancy, colorful, title, code, hint, docs, and any other
      context the reporter may want to show (token, index, ...).
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
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "SchemaError",
    "DuplicateNameError",
    "UnlimitedArgumentError",
    "FaultCode",
    "ParseError",
    "MissingValueError",
    "UnexpectedArgumentError",
    "MissingArgumentError",
    "ParseWarning",
    "UnknownFlagWarning",
    "trigger",
    "getdoc",
)
