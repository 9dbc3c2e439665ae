"""
Argosy schema layer: declare, validate and freeze parser trees.

What this module provides
- Builder: the explicit context a configuration function receives. It collects
  flags, options, arguments, help text, deferred actions and child builders
  (subcommands) for one node, and validates every addition immediately.
- Schema: the frozen node produced by Builder.build(). It is read-only and can be
  shared by any number of parse calls, from any number of threads.

Quick start
    from argosy import Builder

    builder = Builder("fetch")
    builder.add_flag("-n", "--dryrun", help="don't actually fetch")
    builder.add_argument("urls", nargs=-1)

    @builder.command(help="show the local cache")
    def cache(sub):
        sub.add_option("-f", "--format", default="table")

    schema = builder.build()

Build-time rules (SchemaError, raised by the offending add_* call)
- varnames are unique within a node;
- flag spellings and subcommand names are unique within a node;
- a node holds at most one unlimited argument;
- a builder cannot be changed once built.
"""
import functools
import inspect
import operator
import re
import weakref

from .components import Flag, Option, Argument
from .faults import SchemaError, DuplicateNameError, UnlimitedArgumentError
from .utils import *


class SchemaType(type):
    """
    Metaclass giving Schema nodes read-only properties and stable representations.

    - Every name listed in __introspectable__ becomes a mirror() property over the
      matching private field ("_" + name).
    - __typename__ is derived from the class name and used in messages.
    - __repr__/__rich_repr__ show the fields in __displayable__ (or __introspectable__).
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


class Builder:
    """
    Mutable description of one parser or subcommand under construction.

    Builders are threaded explicitly through configuration functions: a child
    builder is handed to the function that configures the subcommand, and the
    root builder is frozen with build() once the whole tree is declared.

    Parameters
    - name: str
      Display name of the parser (root) or the token that selects the subcommand.
    - help: str
      Help text; the first line is shown in the parent's "Commands:" section.
    """

    def __init__(self, name, /, help="", *, parent=Unset):
        if not isinstance(name, str):
            raise TypeError("builder 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError("builder 'name' cannot be empty")
        if not isinstance(parent, Builder | Unset):
            raise TypeError("builder 'parent' must be a builder")

        self._name = name
        self._help = ""
        self._parent = parent
        self._components = []
        self._children = []
        self._actions = []
        self._varnames = {}
        self._spellings = {}
        self._unlimited = None
        self._built = False
        self.set_help(help)

    @property
    def name(self):
        return self._name

    @property
    def help(self):
        return self._help

    @property
    def parent(self):
        return coalesce(self._parent)

    def _ensure_open(self):
        if self._built:
            raise SchemaError(f"builder {self._name!r} is already built")

    def _add(self, component, /):
        """
        Register a component after checking the node-level constraints.
        """
        self._ensure_open()

        if (other := self._varnames.get(component.varname)) is not None:
            raise DuplicateNameError(
                f"{self._name!r} varname {component.varname!r} is already used by {other!r}"
            )
        if isinstance(component, Flag | Option):
            for spelling in component.names:
                if spelling in self._spellings:
                    raise DuplicateNameError(f"{self._name!r} spelling {spelling!r} is already in use")
        if isinstance(component, Argument) and component.unlimited:
            if self._unlimited is not None:
                raise UnlimitedArgumentError(
                    f"{self._name!r} argument {component.name!r} cannot be unlimited, "
                    f"{self._unlimited.name!r} already is"
                )
            self._unlimited = component

        self._varnames[component.varname] = component
        if isinstance(component, Flag | Option):
            self._spellings.update(dict.fromkeys(component.names, component))
        self._components.append(component)
        return component

    def add_flag(self, short, long="", /, help=""):
        """
        Add a boolean flag; its value is True when either spelling is present.
        """
        return self._add(Flag(short, long, help=help))

    def add_option(self, short, long="", /, help="", default=""):
        """
        Add an option taking the next token as its value.
        """
        return self._add(Option(short, long, help=help, default=default))

    def add_argument(self, name, /, nargs=1, help="", default=""):
        """
        Add a positional argument (nargs >= 1, or UNLIMITED to collect the rest).
        """
        return self._add(Argument(name, nargs=nargs, help=help, default=default))

    def add_subcommand(self, name, /, help="", configure=None):
        """
        Add a child node and return its builder.

        When given, configure(child) is called right away so the subcommand can be
        declared in the same place it is added.
        """
        self._ensure_open()
        if configure is not None and not callable(configure):
            raise TypeError("add_subcommand() 'configure' must be callable")

        child = Builder(name, help, parent=self)
        if any(other.name == child.name for other in self._children):
            raise DuplicateNameError(f"{self._name!r} subcommand name {child.name!r} is already in use")
        self._children.append(child)

        if configure is not None:
            try:
                configure(child)
            except BaseException:
                # a failed configuration leaves no trace in the node
                self._children.remove(child)
                raise
        return child

    def set_help(self, text, /):
        self._ensure_open()
        if not isinstance(text, str):
            raise TypeError("builder 'help' must be a string")
        self._help = text

    def add_deferred_action(self, action, /):
        """
        Register a callable to run after a successful parse with also-run semantics.

        The action receives this node's parse result. Actions are queued in
        registration order whenever the node takes part in a parse.
        """
        self._ensure_open()
        if not callable(action):
            raise TypeError("deferred action must be callable")
        self._actions.append(action)
        return action

    def command(self, name=Unset, /, help=Unset):
        """
        Decorator form of add_subcommand().

        The decorated function configures the child; the subcommand name defaults
        to the function name (underscores become dashes) and its help to the
        function docstring.

            @builder.command(help="remove files")
            def remove(sub):
                sub.add_flag("-f", "--force")
        """
        if callable(name):
            return self.command()(name)

        @rename("command")
        def wrapper(configure, /):
            if not callable(configure):
                raise TypeError("@command() must be applied to a callable")
            return self.add_subcommand(
                coalesce(name, getattr(configure, "__name__", "").replace("_", "-")),
                coalesce(help, inspect.getdoc(configure) or ""),
                configure,
            )

        return wrapper

    def run(self, action, /):
        """
        Decorator form of add_deferred_action().
        """
        return self.add_deferred_action(action)

    def build(self):
        """
        Freeze this builder (and its children) into a Schema tree.
        """
        return Schema(self)


class Schema(metaclass=SchemaType):
    """
    Frozen description of one parser or subcommand.

    Fields are exposed as read-only properties (containers come back as copies).
    The parent link is a weak reference; root/path walk it upwards.

    Lookups used by the engine
    - flag(spelling): the Flag/Option selected by a spelling, or None.
    - command(name): the child selected by a name, or None.
    - slot(position): the argument owning the n-th positional slot before the
      unlimited argument, or None past those slots.
    - minargs: number of such slots (fixed arguments before the unlimited one).
    - unlimited: the unlimited argument, or None.
    - trailing: fixed arguments declared after the unlimited one (tail-anchored).
    """

    __introspectable__ = (
        "name",
        "help",
        "components",
        "children",
        "actions",
        "flags",
        "commands",
        "trailing",
    )

    __displayable__ = (
        "name",
        "help",
        "components",
        "children",
    )

    def __new__(cls, builder, /, parent=Unset):
        if not isinstance(builder, Builder):
            raise TypeError(f"{cls.__typename__} source must be a builder")
        if not isinstance(parent, Schema | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a schema")

        self = super().__new__(cls)
        self._name = builder.name
        self._help = builder.help
        self._parent = weakref.ref(parent) if parent else None
        self._components = tuple(builder._components)
        self._actions = tuple(builder._actions)
        self._flags = dict(builder._spellings)
        self._unlimited = builder._unlimited

        slots = []
        trailing = []
        seen = False
        for argument in filter(lambda x: isinstance(x, Argument), self._components):
            if argument.unlimited:
                seen = True
            elif seen:
                trailing.append(argument)
            else:
                slots.extend([argument] * argument.nargs)
        self._slots = tuple(slots)
        self._trailing = tuple(trailing)

        builder._built = True
        self._children = tuple(Schema(child, self) for child in builder._children)
        self._commands = {child.name: child for child in self._children}
        return self

    @property
    def parent(self):
        return self._parent() if self._parent else None

    @property
    def root(self):
        """
        Return the topmost node of the tree this node belongs to.
        """
        child, parent = self, self.parent
        while parent:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root down to this node as a tuple.
        """
        path = [schema := self]
        while schema.parent:
            path.append(schema := schema.parent)
        return tuple(reversed(path))

    @property
    def unlimited(self):
        return self._unlimited

    @property
    def minargs(self):
        return len(self._slots)

    def flag(self, spelling, /):
        return self._flags.get(spelling)

    def command(self, name, /):
        return self._commands.get(name)

    def slot(self, position, /):
        try:
            return self._slots[position]
        except IndexError:
            return None


__all__ = (
    "Builder",
    "Schema",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del SchemaType
