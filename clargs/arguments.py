r"""
clargs argument specifications.

Overview
- Specs (a tagged sum: one variant per shape, the scalar type carried by `kind`)
  • Flag: named, presence-only switch (no payload), e.g., -v/--verbose.
  • Option[_T]: named, value-bearing option tagged with one of the fourteen scalar
    kinds (STRING, CHAR, SHORT, ..., DOUBLE); carries only that kind's default/value.
  • Positional: identified by position, always string-valued; its name doubles as
    placeholder and lookup key.

- Parse state
  • present: set the first time the argument is matched during a parse.
  • value: pre-seeded with the default at construction, replaced on assignment.
  Both are exposed read-only; only the owning registry mutates them.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- short: Unset | str, exactly one character, not '-', '=' or whitespace.
- long: Unset | str, non-empty, no '=' or whitespace, not starting with '-'.
  At least one of short/long is required for Flag and Option.
- descr: Unset | str, short help text; None when omitted.
- metavar: Unset | str, placeholder in help; defaults to the kind's placeholder.
- required: bool (Option, Positional).
- default: validated against the kind (see clargs.kinds.normalize).

Quick example:
    >>> from clargs.arguments import Flag, Option, Positional
    >>> from clargs.kinds import Kind
    >>> Option(Kind.INT, "n", "count", default=3).value
    3
"""
import functools
import operator
import re

from rich.text import Text

from .kinds import Kind, normalize
from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns spec classes into introspectable descriptors.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printing.

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
            - option(kind=<Kind.INT: 4>, short='n', long='count', ...)
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
    Internal: normalize and validate shared argument metadata ('descr').

    - descr: optional short description. If omitted (Unset), it becomes None.
      If provided, it must be a non-empty string after trimming.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate identity metadata for named specs (Flag, Option).

    - short: one character matching r"[^\s=-]".
    - long: matching r"[^\s=-][^\s=]*" (the leading dashes are not part of the name).
    - at least one of them must be provided.
    """
    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif isinstance(short, str) and not re.fullmatch(r"[^\s=-]", short):
        raise ValueError(f"{cls.__typename__} 'short' must be a single character other than '-' or '='")

    if not isinstance(long := metadata["long"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'long' must be a string")
    elif isinstance(long, str) and not re.fullmatch(r"[^\s=-][^\s=]*", long):
        raise ValueError(f"{cls.__typename__} 'long' must be a name without dashes prefix, '=' or spaces")

    if short is Unset and long is Unset:
        raise TypeError(f"{cls.__typename__} must specify a short or a long name")

    metadata["short"] = coalesce(short)
    metadata["long"] = coalesce(long)


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate and normalize metadata for value-bearing specs (Option).

    - kind: must be a scalar Kind (not FLAG nor POSITIONAL).
    - metavar: Unset or a non-empty string; defaults to the kind's placeholder.
    - default: validated against the kind; Unset becomes the kind's zero
      (None for STRING, i.e. "no default").
    """
    if not isinstance(kind := metadata["kind"], Kind):
        raise TypeError(f"{cls.__typename__} 'kind' must be a kind")
    elif not kind.scalar:
        raise ValueError(f"{cls.__typename__} 'kind' must be a value-bearing kind")

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar, kind.metavar)

    try:
        metadata["default"] = normalize(kind, coalesce(metadata["default"], kind.zero))
    except TypeError as exception:
        raise TypeError(f"{cls.__typename__} {exception}") from None
    except ValueError as exception:
        raise ValueError(f"{cls.__typename__} {exception}") from None


class Flag(metaclass=ArgumentType):
    """
    Named, presence-only switch.

    A Flag carries no payload: its presence on the command line is the signal,
    so `value` is always equal to `present`. Flags are never required.
    """

    __introspectable__ = (
        "kind",
        "short",
        "long",
        "descr",
        "present",
    )
    __displayable__ = (
        "short",
        "long",
        "descr",
        "present",
    )

    def __new__(cls, short=Unset, long=Unset, descr=Unset):
        metadata = {
            "kind": Kind.FLAG,
            "short": short,
            "long": long,
            "descr": descr,
            "present": False,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    metavar = None
    required = False
    default = False

    @property
    def value(self):
        return self._present

    @property
    def aliases(self):
        """
        Dashed spellings in help order: "-x" first, then "--name".
        """
        return tuple(filter(None, (
            self._short and "-" + self._short,
            self._long and "--" + self._long,
        )))

    @property
    def display(self):
        """
        Bare display name: the long name if present, else the short character.
        """
        return coalesce(self._long or Unset, self._short)

    @property
    def switch(self):
        """
        Preferred dashed spelling used in diagnostics ("--name", else "-x").
        """
        return self.aliases[-1]

    def _reset(self):
        self._present = False

    def _mark(self):
        self._present = True


class Option[_T](metaclass=ArgumentType):
    """
    Named, value-bearing option tagged with a scalar kind.

    Highlights
    - kind selects the grammar used to coerce raw tokens (see clargs.kinds).
    - default pre-seeds value at construction, so an optional option that never
      appears on the command line reads back as its default.
    - STRING options may have no default (None); every other kind defaults to its
      zero ("\\0", 0 or 0.0) when none is given.
    - value is replaced on every assignment (aliases or repeated occurrences).
    """

    __introspectable__ = (
        "kind",
        "short",
        "long",
        "metavar",
        "descr",
        "required",
        "default",
        "present",
        "value",
    )

    def __new__(cls, kind, short=Unset, long=Unset, metavar=Unset, descr=Unset, required=False, default=Unset):
        metadata = {
            "kind": kind,
            "short": short,
            "long": long,
            "metavar": metavar,
            "descr": descr,
            "required": bool(required),
            "default": default,
            "present": False,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)
        metadata["value"] = metadata["default"]

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    aliases = Flag.aliases
    display = Flag.display
    switch = Flag.switch

    def _reset(self):
        self._present = False
        self._value = self._default

    def _mark(self):
        self._present = True

    def _assign(self, value):
        self._value = value


class Positional(metaclass=ArgumentType):
    """
    Positional, string-valued argument.

    Positionals receive the non-option tokens in registration order: each token
    fills the first positional that is not yet present. The name is used as the
    placeholder in help and as the lookup key for accessors.
    """

    __introspectable__ = (
        "kind",
        "name",
        "descr",
        "required",
        "present",
        "value",
    )
    __displayable__ = (
        "name",
        "descr",
        "required",
        "present",
        "value",
    )

    def __new__(cls, name, descr=Unset, required=False):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not re.fullmatch(r"[^\s=-][^\s=]*", name):
            raise ValueError(f"{cls.__typename__} 'name' must be a non-empty name without dashes prefix, '=' or spaces")

        metadata = {
            "kind": Kind.POSITIONAL,
            "name": name,
            "descr": descr,
            "required": bool(required),
            "present": False,
            "value": None,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    short = None
    default = None

    @property
    def long(self):
        # lookup treats a positional's name like a long name ("--src value" works)
        return self._name

    @property
    def metavar(self):
        return self._name

    @property
    def display(self):
        return self._name

    @property
    def aliases(self):
        return (self._name,)

    switch = display

    def _reset(self):
        self._present = False
        self._value = None

    def _mark(self):
        self._present = True

    def _assign(self, value):
        self._value = value


__all__ = (
    # Classes (specifications)
    "Flag",
    "Option",
    "Positional",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
