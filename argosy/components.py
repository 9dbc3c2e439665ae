r"""
Argosy components: the elements a schema node is made of.

Overview
- Flag: named, presence-only switch, e.g. -n/--dryrun. Parses to a bool.
- Option: named switch that takes exactly the next token as its value.
- Argument: positional slot that takes a fixed number of tokens (nargs >= 1)
  or, with nargs=UNLIMITED, every positional token nobody else claims.

Naming
- Flag and Option take up to two spellings in any order; a spelling that starts
  with "--" is the long one, the other is the short one.
- Every component has a varname, the key of its value in a parse result: it is
  derived from the long spelling when present, else from the short spelling (or
  the argument name), see utils.varname().

Values
- Defaults are raw strings; the empty string means "no default". Type coercion
  is left to the caller.

Introspection & representation
- ComponentType metaclass provides stable __repr__/__rich_repr__ and exposes the
  fields listed in __introspectable__ as read-only properties.

Examples
    >>> Flag("--dryrun", "-n").varname
    'dryrun'
    >>> Argument("files", nargs=UNLIMITED).unlimited
    True
"""
import functools
import operator
import re

from .utils import *

UNLIMITED = -1
"""nargs value of an argument that takes every unclaimed positional token."""


class ComponentType(type):
    """
    Metaclass that turns component classes into introspectable descriptors.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
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
            - option(short='-a', long='--apple', varname='apple', ...)
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

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate the fields shared by every component.

    - help: must be a string; it is kept as given (empty means "no help").
    - default (when present): must be a string; empty means "no default".

    Raises
    - TypeError: when 'help' or 'default' is not a string.
    """
    if not isinstance(metadata["help"], str):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")

    if "default" in metadata and not isinstance(metadata["default"], str):
        raise TypeError(f"{cls.__typename__} 'default' must be a string")


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate and order the spellings of a Flag or Option.

    Responsibilities
    - Both spellings must be strings and at least one must be non-empty.
    - A non-empty spelling must start with '-', carry at least one character after
      its dashes, and contain neither '=' nor whitespace (an '=' would be split
      away by the token classifier and could never match).
    - A first spelling that starts with "--" is the long one; the other becomes
      the short one.
    - The varname is derived from the long spelling if any, else the short one.

    Raises
    - TypeError: when a spelling is not a string or both are empty.
    - ValueError: when a spelling is malformed, both are equal, or the derived
      varname is empty.
    """
    spellings = []
    for spelling in (metadata["short"], metadata["long"]):
        if not isinstance(spelling, str):
            raise TypeError(f"{cls.__typename__} spellings must be strings")
        if not (spelling := spelling.strip()):
            spellings.append("")
            continue
        if not re.fullmatch(r"-+[^\s=-][^\s=]*", spelling):
            raise ValueError(f"{cls.__typename__} spelling {spelling!r} must look like -x or --name")
        spellings.append(spelling)

    if not any(spellings):
        raise TypeError(f"{cls.__typename__} must specify at least one spelling")
    if spellings[0] == spellings[1]:
        raise ValueError(f"{cls.__typename__} spellings cannot be duplicated")

    short, long = spellings
    if short.startswith("--"):
        short, long = long, short

    metadata["short"] = short
    metadata["long"] = long
    metadata["varname"] = varname(long or short)
    if not metadata["varname"]:
        raise ValueError(f"{cls.__typename__} spelling {long or short!r} gives an empty varname")


class Flag(metaclass=ComponentType):
    """
    Named, presence-only switch.

    A Flag's value is False unless its short or long spelling shows up in the
    token stream, in which case it is True.
    """

    __introspectable__ = (
        "short",
        "long",
        "help",
        "varname",
    )

    def __new__(cls, short, long="", /, help=""):
        metadata = {
            "short": short,
            "long": long,
            "help": help,
            "varname": Unset,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        """
        Spellings that select this component, short first.
        """
        return tuple(name for name in (self.short, self.long) if name)


class Option(metaclass=ComponentType):
    """
    Named switch followed by exactly one value token.

    The value token is taken as-is whatever its shape (it may even start with
    a dash). `--name=value` is treated as `--name value`.

    Parameters
    - short, long: spellings, in either order.
    - help: one-line description for the help text.
    - default: string used when the option is absent; "" means no default.
    """

    __introspectable__ = (
        "short",
        "long",
        "help",
        "default",
        "varname",
    )

    def __new__(cls, short, long="", /, help="", default=""):
        metadata = {
            "short": short,
            "long": long,
            "help": help,
            "default": default,
            "varname": Unset,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def names(self):
        """
        Spellings that select this component, short first.
        """
        return tuple(name for name in (self.short, self.long) if name)


class Argument(metaclass=ComponentType):
    """
    Positional slot.

    Arity
    - nargs=1: the value is a single string.
    - nargs=N (N > 1): the value is a list of exactly N strings.
    - nargs=UNLIMITED (or ...): the value is the list of every positional token
      left unclaimed; a node holds at most one of these.

    Arguments declared after the unlimited one are tail-anchored: they are filled
    from the end of the input.
    """

    __introspectable__ = (
        "name",
        "nargs",
        "help",
        "default",
        "varname",
    )

    def __new__(cls, name, /, nargs=1, help="", default=""):
        metadata = {
            "name": name,
            "nargs": nargs,
            "help": help,
            "default": default,
            "varname": Unset,
        }
        _sanitize_metadata(cls, metadata)

        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        metadata["varname"] = varname(name.strip())
        if not metadata["varname"]:
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        metadata["name"] = name.strip()

        if nargs is Ellipsis:
            nargs = UNLIMITED
        if not isinstance(nargs, int) or isinstance(nargs, bool):
            raise TypeError(f"{cls.__typename__} 'nargs' must be an integer or ellipsis")
        if nargs < 1 and nargs != UNLIMITED:
            raise ValueError(f"{cls.__typename__} 'nargs' must be a positive integer or UNLIMITED")
        metadata["nargs"] = nargs

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def unlimited(self):
        return self.nargs == UNLIMITED

    @property
    def listed(self):
        """
        True when the parsed value is a list rather than a single string.
        """
        return self.nargs != 1


__all__ = (
    # Classes (components)
    "Flag",
    "Option",
    "Argument",

    # Constants
    "UNLIMITED",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ComponentType
