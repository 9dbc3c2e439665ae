"""
Argosy parsing engine: one generic scan over a token stream, driven by a Schema.

What this module provides
- ParseState: everything a single root parse owns (tokens, cursor, shared
  positional counter, unclaimed buffer, deferred-action queue, runtime options).
  Subcommand recursion passes the same state by reference.
- Result: the read-only record a node produces, keyed by varname, linked to
  the parent and child records of the subcommand chain.
- parse(schema, state): scan tokens for one node, recursing into a subcommand
  when its name shows up past the node's leading positional slots.

Token grammar
- A token is flag-like iff it starts with '-'.
- "--name=value" is rewritten in place into "--name" "value" (split on the first
  '=' when it sits after the first two characters).
- An option always takes the next token as its value, whatever its shape.

Positional routing (per node)
- The first `minargs` positionals fill the fixed arguments declared before the
  unlimited one, by position.
- Past those, a token naming a child dispatches to it; any other token goes to
  the unclaimed buffer when the node has an unlimited argument, and is an
  unexpected argument otherwise.
- Flush: arguments declared after the unlimited one take their values from the
  tail of the buffer (last declared first); the unlimited argument gets the rest.
"""
import difflib
import functools
from collections.abc import Mapping
from types import MappingProxyType

from .components import Flag, Option, Argument
from .faults import *
from .utils import *


def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"
    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def _route(schema):
    return " ".join(step.name for step in schema.path)


class ParseState:
    """
    Mutable, single-parse state shared by every node of the subcommand chain.

    Attributes
    - tokens: list[str], rewritten in place when "--name=value" is split.
    - cursor: index of the token being examined.
    - positionals: positional tokens seen so far, across the whole chain.
    - unclaimed: positional tokens waiting for the flush of the current node.
    - queue: deferred actions (already bound to their results), in order.
    - options: runtime options merged into every fault (shell, fancy, colorful).
    """

    def __init__(self, tokens, /, *, shell=False, fancy=False, colorful=False):
        self.tokens = list(tokens)
        self.cursor = 0
        self.positionals = 0
        self.unclaimed = []
        self.queue = []
        self.options = MappingProxyType({
            "shell": bool(shell),
            "fancy": bool(fancy),
            "colorful": bool(colorful),
        })

    @property
    def exhausted(self):
        return self.cursor >= len(self.tokens)

    def trigger(self, fault, schema, /, **context):
        """
        Surface a fault raised while parsing the given node.
        """
        trigger(fault, schema=schema, index=self.cursor + 1, **self.options, **context)

    def run(self):
        """
        Execute the queued deferred actions once, in registration order.
        """
        queue, self.queue = self.queue, []
        for action in queue:
            action()


class Result(Mapping):
    """
    Parse result of one schema node.

    Values are keyed by varname and can be read as items or as attributes
    (result["dry_run"] or result.dry_run); the record's own properties win over
    varnames of the same name. Lists are handed out as copies.

    - Flag: bool
    - Option, Argument with nargs=1: str ("" when absent without default)
    - Argument with nargs != 1: list[str]

    A result is frozen as soon as its node finishes parsing.
    """

    def __init__(self, schema, /, parent=None):
        self._schema = schema
        self._parent = parent
        self._child = None
        self._values = {}
        self._frozen = False

    def __getitem__(self, key, /):
        value = self._values[key]
        return list(value) if isinstance(value, list) else value

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"{self._schema.name!r} result has no value {name!r}") from None

    def __setattr__(self, name, value):
        if not name.startswith("_"):
            raise AttributeError(f"result values are read-only (tried to set {name!r})")
        super().__setattr__(name, value)

    def __repr__(self):
        return f"result({self._schema.name!r}, {self._values!r})"

    def __rich_repr__(self):
        yield self._schema.name
        yield from self._values.items()

    @property
    def schema(self):
        return self._schema

    @property
    def parent(self):
        return self._parent

    @property
    def child(self):
        return self._child

    @property
    def command(self):
        """
        Name of the subcommand dispatched from this node, or None.
        """
        return self._child.schema.name if self._child is not None else None

    @property
    def root(self):
        result = self
        while result.parent is not None:
            result = result.parent
        return result

    @property
    def path(self):
        """
        Results from the root down to the deepest dispatched subcommand.
        """
        path = [result := self.root]
        while result.child is not None:
            path.append(result := result.child)
        return tuple(path)

    @property
    def frozen(self):
        return self._frozen

    def _store(self, key, value, /):
        if self._frozen:
            raise RuntimeError(f"{self._schema.name!r} result is frozen")
        self._values[key] = value

    def _append(self, key, value, /):
        if self._frozen:
            raise RuntimeError(f"{self._schema.name!r} result is frozen")
        self._values[key].append(value)

    def _freeze(self):
        self._frozen = True


def _seed(schema, result):
    """
    Store the starting value of every component: False for flags, the default
    ("" or an empty list when there is none) for the others.
    """
    for component in schema.components:
        match component:
            case Flag():
                result._store(component.varname, False)
            case Option():
                result._store(component.varname, component.default)
            case Argument() if component.listed:
                result._store(component.varname, [component.default] if component.default else [])
            case Argument():
                result._store(component.varname, component.default)


def _flush(schema, state, result):
    """
    Resolve the tail-anchored arguments, then hand the rest to the unlimited one.
    """
    buffer = state.unclaimed
    for argument in reversed(schema.trailing):
        if len(buffer) < argument.nargs and not argument.default:
            state.trigger(MissingArgumentError(
                "missing value for argument %r" % argument.varname,
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENT,
                hint="%r takes %d value%s from the end of the input; run '%s --help' for usage" % (
                    argument.varname, argument.nargs, "s" * (argument.nargs != 1), _route(schema)
                ),
                argument=argument,
                docs=getdoc(FaultCode.MISSING_ARGUMENT),
            ), schema)
            continue
        if not (count := min(argument.nargs, len(buffer))):
            continue  # default is kept
        values = buffer[len(buffer) - count:]
        del buffer[len(buffer) - count:]
        result._store(argument.varname, values if argument.listed else values[0])

    if (unlimited := schema.unlimited) is not None and (buffer or not unlimited.default):
        result._store(unlimited.varname, list(buffer))
    buffer.clear()


def parse(schema, state, /, parent=None):
    """
    Parse the tokens of state from its cursor on, for one schema node.

    Parameters
    - schema: Schema
      The node being parsed.
    - state: ParseState
      Shared state; the cursor, counters, buffer and queue are mutated.
    - parent: Result | None
      Result of the node that dispatched to this one.

    Returns
    - Result: this node's record; the records of dispatched subcommands hang
      off it through `child`.

    Faults
    - UnknownFlagWarning: a flag-like token matches nothing; scanning goes on.
    - MissingValueError: an option is the last token.
    - UnexpectedArgumentError: a positional token has nowhere to go.
    - MissingArgumentError: a tail-anchored argument without default lacks values.
    """
    result = Result(schema, parent)
    if parent is not None:
        parent._child = result
    state.queue.extend(functools.partial(action, result) for action in schema.actions)
    _seed(schema, result)

    base = state.positionals
    assigned = set()

    while not state.exhausted:
        token = state.tokens[state.cursor]

        if token.startswith("-") and token.find("=") > 1:
            token, value = token.split("=", 1)
            state.tokens[state.cursor:state.cursor + 1] = [token, value]

        if token.startswith("-"):
            component = schema.flag(token)
            if component is None:
                suggestions = difflib.get_close_matches(token, schema.flags.keys(), 5)
                try:
                    hint = "did you mean %r? you can also run '%s --help' to see all options" % (
                        suggestions[0], _route(schema)
                    )
                except IndexError:
                    hint = "run '%s --help' to see all available options" % _route(schema)
                state.trigger(UnknownFlagWarning(
                    "unknown flag %r at %s position" % (token, _ordinal(state.cursor + 1)),
                    title="unknown flag",
                    code=FaultCode.UNKNOWN_FLAG,
                    hint=hint,
                    token=token,
                    suggestions=suggestions,
                    docs=getdoc(FaultCode.UNKNOWN_FLAG),
                ), schema)
            elif isinstance(component, Flag):
                result._store(component.varname, True)
            elif state.cursor + 1 >= len(state.tokens):
                state.trigger(MissingValueError(
                    "missing value for option %r at %s position" % (token, _ordinal(state.cursor + 1)),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    hint="pass a value after it (for example: %s <value> or %s=<value>)" % (token, token),
                    token=token,
                    argument=component,
                    docs=getdoc(FaultCode.MISSING_VALUE),
                ), schema)
            else:
                state.cursor += 1
                result._store(component.varname, state.tokens[state.cursor])
            state.cursor += 1
            continue

        seen = state.positionals - base
        state.positionals += 1

        if (argument := schema.slot(seen)) is not None:
            if not argument.listed:
                result._store(argument.varname, token)
            else:
                # the first explicit value replaces the seeded default
                if argument.varname not in assigned:
                    result._store(argument.varname, [])
                result._append(argument.varname, token)
            assigned.add(argument.varname)
        elif (child := schema.command(token)) is not None:
            state.cursor += 1
            _flush(schema, state, result)
            result._freeze()
            parse(child, state, result)
            return result
        elif schema.unlimited is not None:
            state.unclaimed.append(token)
        else:
            suggestions = difflib.get_close_matches(token, schema.commands.keys(), 5)
            try:
                hint = "did you mean %r? you can also run '%s --help' to see available commands" % (
                    suggestions[0], _route(schema)
                )
            except IndexError:
                hint = "remove it, or run '%s --help' to see what %r accepts" % (_route(schema), schema.name)
            state.trigger(UnexpectedArgumentError(
                "unexpected argument: %s" % token,
                title="unexpected argument",
                code=FaultCode.UNEXPECTED_ARGUMENT,
                hint="found at %s position; %s" % (_ordinal(state.cursor + 1), hint),
                token=token,
                suggestions=suggestions,
                docs=getdoc(FaultCode.UNEXPECTED_ARGUMENT),
            ), schema)

        state.cursor += 1

    _flush(schema, state, result)
    result._freeze()
    return result


__all__ = (
    "ParseState",
    "Result",
    "parse",
)
