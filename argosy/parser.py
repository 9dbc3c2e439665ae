"""
Argosy parser facade: wrap a frozen Schema and run the engine on token streams.

What this module provides
- Parser: owns a root Schema and the runtime options (shell, fancy, colorful),
  precomputes the help text, and exposes parse()/run()/help()/print_help().
- parser(...): factory building a Parser from a configuration function, or a
  decorator doing the same with the decorated function.

Quick start
    from argosy import parser

    @parser("fetch", help="fetch remote files", shell=True, colorful=True)
    def fetch(builder):
        builder.add_flag("-n", "--dryrun")
        builder.add_argument("urls", nargs=-1)

        @builder.run
        def download(result):
            print(result.urls)

    if __name__ == "__main__":
        fetch.run()

Token sources
- Unset: sys.argv[1:].
- str: shell-like string, split with shlex.split.
- Iterable[str]: used as-is (each item must be a string).
"""
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .engine import ParseState, parse
from .help import render, render_help
from .schema import Builder, Schema
from .utils import *


def _tokenize(prompt, /):
    if prompt is Unset:
        return sys.argv[1:]
    elif isinstance(prompt, str):
        return shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() 'tokens' must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() 'tokens' must be a string or an iterable of strings")


class Parser:
    """
    Runnable parser over a root Schema.

    Parameters
    - schema: Schema
      The frozen tree to parse with; usually Builder.build() of a root builder.
    - shell: bool (keyword-only)
      Print faults on stderr and exit with status 1 on errors instead of raising.
    - fancy: bool (keyword-only)
      Wrap printed faults in panels.
    - colorful: bool (keyword-only)
      Style printed faults and help.

    The parser holds no per-call state: every parse() creates its own ParseState,
    so one Parser can serve any number of calls.
    """

    def __init__(self, schema, /, *, shell=False, fancy=False, colorful=False):
        if not isinstance(schema, Schema):
            raise TypeError("parser 'schema' must be a schema")
        self._schema = schema
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._help = render_help(schema)

    def __repr__(self):
        return f"parser({self._schema.name!r}, shell={self._shell!r}, fancy={self._fancy!r}, colorful={self._colorful!r})"

    @property
    def schema(self):
        return self._schema

    @property
    def shell(self):
        return self._shell

    @property
    def fancy(self):
        return self._fancy

    @property
    def colorful(self):
        return self._colorful

    def parse(self, tokens=Unset, /, also_run=False):
        """
        Parse tokens against the schema and return the root Result.

        With also_run=True the deferred actions queued during the parse are run,
        in order, once the whole chain parsed without a fatal error.
        """
        state = ParseState(
            _tokenize(tokens),
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
        )
        result = parse(self._schema, state)
        if also_run:
            state.run()
        return result

    def run(self, tokens=Unset, /):
        """
        Parse tokens and run the deferred actions; the result is discarded.
        """
        self.parse(tokens, also_run=True)

    def help(self):
        return self._help

    def print_help(self, file=None):
        """
        Print the help of the root node with rich (styled when colorful).
        """
        console = Console(file=file, highlight=False)
        console.print(render(self._schema, colorful=self._colorful), end="", soft_wrap=True)


def parser(name, /, help="", configure=Unset, **options):
    """
    Build a Parser from a configuration function.

    Forms
    - parser(name, help, configure, **options) -> Parser
    - @parser(name, help=..., **options) -> decorator returning a Parser

    configure(builder) receives the root Builder; options are forwarded to Parser.
    """
    @rename("parser")
    def wrapper(configure, /):
        if not callable(configure):
            raise TypeError("@parser() must be applied to a callable")
        builder = Builder(name, help)
        configure(builder)
        return Parser(builder.build(), **options)

    return wrapper(configure) if configure is not Unset else wrapper


__all__ = (
    "Parser",
    "parser",
)
