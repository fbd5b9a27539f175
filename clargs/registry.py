"""
clargs registry layer: register, parse, look up and render arguments.

What this module provides
- Registry: an ordered, append-only collection of argument specs with:
  • One adder per kind (add_flag, add_string, add_char, ..., add_double, add_positional),
    each returning a stable integer handle.
  • A single-pass parser over an argv-like vector (long options, '=' values,
    short clusters, positional slots) with a required-argument sweep.
  • Typed accessors by name (get_flag, get_string, get_int, ...).
  • Help rendering (rich-based, color-aware).

- Factories and helpers:
  • create(program, descr, **options): build a Registry.
  • invoke(registry, argv): parse, print help or diagnostics, exit like a CLI would.

Core ideas
- Registration order is everything: it drives help layout, positional slots and
  lookup priority (first registered wins on ambiguous names).
- Parsing never terminates the process: --help/-h yields Outcome.HELP and faults
  are raised (library mode) or rendered while FAILURE is returned (shell mode).
  invoke() is the layer that prints and exits.
- A failed parse leaves no partial state behind: every spec is rolled back to its
  pre-parse value.

Quick start
    from clargs import create, invoke

    registry = create("copy", "copy a file somewhere else")
    registry.add_flag("v", "verbose", "talk more")
    registry.add_int("n", "count", descr="how many copies", default=1)
    registry.add_positional("src", "source file", required=True)
    registry.add_positional("dst", "destination file", required=True)

    if __name__ == "__main__":
        invoke(registry)
        copies, _ = registry.get_int("count")
"""
import difflib
import shlex
import sys
from collections import deque, namedtuple
from collections.abc import Iterable
from enum import Enum

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .arguments import Flag, Option, Positional
from .faults import *
from .kinds import Kind, CoercionError, coerce
from .utils import *


class Outcome(Enum):
    """
    result tag of Registry.parse().

    - SUCCESS: every token was consumed and every required argument is present.
    - FAILURE: a fault was rendered (shell mode); no argument state survives.
    - HELP: '--help' or '-h' was seen; the caller decides whether to print and exit.
    """
    SUCCESS = "success"
    FAILURE = "failure"
    HELP = "help"


Lookup = namedtuple("Lookup", ("value", "found"))
Lookup.__doc__ = """
(value, found) pair returned by typed getters.

found is False (and value is the kind's zero) when no argument matches the name,
which distinguishes "not recognized" from "present but falsy/zero".
"""


def _adder(kind):
    """
    Build a typed add_<kind> method forwarding to Registry.add(kind, ...).
    """
    @rename("add_" + kind.name.lower())
    def adder(self, short=Unset, long=Unset, metavar=Unset, descr=Unset, required=False, default=Unset):
        return self.add(kind, short, long, metavar, descr, required, default)

    adder.__doc__ = f"""
        Register a {kind.label} option and return its handle.

        Parameters
        - short: one character (e.g. "n" for -n), optional.
        - long: long name without dashes (e.g. "count" for --count), optional.
        - metavar: placeholder in help (default: {kind.metavar!r}).
        - descr: help text.
        - required: fail the parse when the option never appears.
        - default: initial value (default: {kind.zero!r}).
    """
    return adder


def _getter(kind):
    """
    Build a typed get_<kind> accessor returning a Lookup(value, found).
    """
    @rename("get_" + kind.name.lower())
    def getter(self, name, /):
        if (argument := self.find(name)) is None:
            return Lookup(kind.zero, False)
        if argument.kind is not kind:
            raise TypeError(f"argument {name!r} is a {argument.kind.label}, not a {kind.label}")
        return Lookup(argument.value, True)

    getter.__doc__ = f"""
        Return Lookup(value, found) for a {kind.label} argument.

        - found=False and value={kind.zero!r} when no argument matches `name`.
        - TypeError when the matching argument is of another kind.
    """
    return getter


def _process_strings(cls, metadata):
    """
    Normalize the scalar string metadata ('program', 'descr').

    - Validates type: each value must be str | Text | Unset.
    - 'program' cannot be empty after trimming; defaults to "program".
    - 'descr' defaults to the empty string.
    """
    if not isinstance(program := metadata["program"], str | Unset):
        raise TypeError(f"{cls.__name__.lower()} 'program' must be a string")
    elif isinstance(program, str) and not (program := program.strip()):
        raise ValueError(f"{cls.__name__.lower()} 'program' cannot be empty")
    metadata["program"] = coalesce(program, "program")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__name__.lower()} 'descr' must be a string")
    metadata["descr"] = coalesce(descr, "")


class Registry:
    """
    Ordered collection of argument specs plus the parser that fills them.

    Lifecycle
    - Created empty (program name and description only).
    - Specs appended with add_* (each returns its index as a stable handle).
    - parse() performs all mutation of present/value state.
    - After a successful parse the registry is read through accessors; adding
      arguments after a parse raises RuntimeError.

    Runtime options
    - shell: render faults to stderr and return Outcome.FAILURE instead of raising.
    - fancy: wrap help and diagnostics in rich panels.
    - colorful: apply the palette (overridable through __styles__ in __main__).
    """

    def __new__(cls, program=Unset, descr=Unset, *, shell=False, fancy=False, colorful=False):
        metadata = {
            "program": program,
            "descr": descr,
            "shell": bool(shell),
            "fancy": bool(fancy),
            "colorful": bool(colorful),
        }
        _process_strings(cls, metadata)

        self = super().__new__(cls)
        self._specs = []
        self._parsed = False
        self._index = 0
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    program = mirror("program")
    descr = mirror("descr")
    specs = mirror("specs")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def __len__(self):
        return len(self._specs)

    def __iter__(self):
        return iter(tuple(self._specs))

    def __getitem__(self, handle):
        if not isinstance(handle, int) or isinstance(handle, bool):
            raise TypeError("registry handles must be integers")
        return self._specs[handle]

    def __repr__(self):
        return "registry(program=%r, descr=%r, specs=%d)" % (self.program, self.descr, len(self))

    def __rich_repr__(self):
        yield "program", self.program
        yield "descr", self.descr
        yield "specs", self.specs
        yield "shell", self.shell
        yield "fancy", self.fancy
        yield "colorful", self.colorful

    # ── Registration ─────────────────────────────────────────────────────────

    def _append(self, argument):
        if self._parsed:
            raise RuntimeError("cannot register arguments after parsing")

        # Lookups stay first-registered-wins; shadowed names are only reported.
        for identity in dict.fromkeys(filter(None, (argument.short, argument.long))):
            if (other := self.find(identity)) is not None:
                self.trigger(DuplicatedIdentityWarning(
                    "name %r of %s %r is already used by %s %r; lookups resolve to the first one" % (
                        identity, type(argument).__typename__, argument.display,
                        type(other).__typename__, other.display
                    ),
                    title="duplicated name",
                    code=FaultCode.DUPLICATED_IDENTITY,
                    hint="give each argument its own short and long names",
                    identity=identity,
                    argument=argument,
                ))

        self._specs.append(argument)
        return len(self._specs) - 1

    def add(self, kind, short=Unset, long=Unset, metavar=Unset, descr=Unset, required=False, default=Unset):
        """
        Register a value-bearing option of any scalar kind and return its handle.

        The typed adders (add_string, add_int, ...) forward here. FLAG and
        POSITIONAL have their own adders and are rejected with ValueError.
        """
        return self._append(Option(kind, short, long, metavar, descr, required, default))

    def add_flag(self, short=Unset, long=Unset, descr=Unset):
        """
        Register a presence-only flag and return its handle.
        """
        return self._append(Flag(short, long, descr))

    def add_positional(self, name, descr=Unset, required=False):
        """
        Register a positional argument and return its handle.

        Positionals are filled in registration order by the non-option tokens.
        """
        return self._append(Positional(name, descr, required))

    add_string = _adder(Kind.STRING)
    add_char = _adder(Kind.CHAR)
    add_short = _adder(Kind.SHORT)
    add_int = _adder(Kind.INT)
    add_long = _adder(Kind.LONG)
    add_llong = _adder(Kind.LLONG)
    add_uchar = _adder(Kind.UCHAR)
    add_ushort = _adder(Kind.USHORT)
    add_uint = _adder(Kind.UINT)
    add_ulong = _adder(Kind.ULONG)
    add_ullong = _adder(Kind.ULLONG)
    add_size = _adder(Kind.SIZE)
    add_float = _adder(Kind.FLOAT)
    add_double = _adder(Kind.DOUBLE)

    # ── Lookup ───────────────────────────────────────────────────────────────

    def find(self, name, /):
        """
        Resolve a bare name to a spec, first match in registration order.

        A spec matches when:
        1. its long name equals `name`, or
        2. `name` is exactly one character and equals its short name, or
        3. it is a positional whose name equals `name`.
        Returns None when nothing matches.
        """
        if not isinstance(name, str):
            raise TypeError("find() argument must be a string")
        for argument in self._specs:
            if argument.long is not None and argument.long == name:
                return argument
            if len(name) == 1 and argument.short == name:
                return argument
            if isinstance(argument, Positional) and argument.name == name:
                return argument
        return None

    def get_flag(self, name, /):
        """
        Return True when the named argument was present on the command line.

        Works for any kind (presence is tracked for all); False when unknown.
        """
        argument = self.find(name)
        return argument is not None and argument.present

    def get_string(self, name, /):
        """
        Return the value of a string option or positional, or None.

        None when no argument matches, when a string option has no default and
        was not given, or when a positional was not filled.
        """
        if (argument := self.find(name)) is None:
            return None
        if argument.kind not in (Kind.STRING, Kind.POSITIONAL):
            raise TypeError(f"argument {name!r} is a {argument.kind.label}, not a string")
        return argument.value

    get_char = _getter(Kind.CHAR)
    get_short = _getter(Kind.SHORT)
    get_int = _getter(Kind.INT)
    get_long = _getter(Kind.LONG)
    get_llong = _getter(Kind.LLONG)
    get_uchar = _getter(Kind.UCHAR)
    get_ushort = _getter(Kind.USHORT)
    get_uint = _getter(Kind.UINT)
    get_ulong = _getter(Kind.ULONG)
    get_ullong = _getter(Kind.ULLONG)
    get_size = _getter(Kind.SIZE)
    get_float = _getter(Kind.FLOAT)
    get_double = _getter(Kind.DOUBLE)

    # ── Faults ───────────────────────────────────────────────────────────────

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this registry's runtime options merged in.

        Non-shell: exceptions are raised, warnings go through `warnings`.
        Shell: both are rendered to stderr.
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        code = options.get("code", fault.options.get("code"))
        trigger(
            fault,
            **options,
            registry=self,
            shell=self.shell,
            fancy=self.fancy,
            colorful=self.colorful,
            docs=getdoc(code) if isinstance(code, FaultCode) else None,
        )

    def _hint(self):
        return "try '%s --help' to see all available options" % self.program

    # ── Parsing ──────────────────────────────────────────────────────────────

    def parse(self, argv=Unset, /):
        """
        Parse an argument vector into the registered specs.

        Parameters
        - argv:
          • Unset: sys.argv.
          • str: shell-like string split with shlex.split (first word is the program).
          • Iterable[str]: the vector itself; element 0 is the program name.

        Returns
        - Outcome.SUCCESS, Outcome.HELP ('--help' / '-h' seen, scanning stopped),
          or Outcome.FAILURE (shell mode, after rendering the fault).

        Raises
        - ParseException subclasses in non-shell mode, after rolling back every spec.
        - ParseWarning subclasses escalated to errors by warning filters, after the
          same rollback.
        - TypeError when argv is not a string or an iterable of strings.
        """
        if argv is Unset:
            tokens = list(sys.argv)
        elif isinstance(argv, str):
            tokens = shlex.split(argv)
        elif isinstance(argv, Iterable):
            tokens = list(argv)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._parsed = True
        for argument in self._specs:
            argument._reset()

        tokens = deque(tokens)
        if tokens:
            self._program = tokens.popleft()
        self._index = 0

        try:
            return self._parseargs(tokens)
        except ParseException as fault:
            # no partial results survive a failed parse
            for argument in self._specs:
                argument._reset()
            self.trigger(fault)
            return Outcome.FAILURE
        except ParseWarning:
            # warnings escalated to errors by the host filters
            for argument in self._specs:
                argument._reset()
            raise

    def _parseargs(self, tokens):
        """
        single left-to-right pass; dispatch order per token:
        help → long option → short cluster → positional; then the required sweep.
        """
        while tokens:
            token = tokens.popleft()
            self._index += 1

            if token in ("--help", "-h"):
                return Outcome.HELP
            if token.startswith("--"):
                self._parse_long(token, tokens)
            elif token.startswith("-") and len(token) > 1:
                self._parse_cluster(token, tokens)
            else:
                self._parse_positional(token)

        self._sweep()
        return Outcome.SUCCESS

    def _unknown(self, input):
        aliases = [alias for argument in self._specs if not isinstance(argument, Positional) for alias in argument.aliases]
        suggestions = difflib.get_close_matches(input, aliases, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], self.program)
        except IndexError:
            hint = self._hint()
        return UnknownSwitchError(
            "unknown option %r at %s position" % (input, ordinal(self._index)),
            title="unknown option",
            code=FaultCode.UNKNOWN_SWITCH,
            input=input,
            index=self._index,
            suggestions=suggestions,
            hint=hint,
        )

    def _parse_long(self, token, tokens):
        name, separator, value = token[2:].partition("=")
        input = "--" + name

        if (argument := self.find(name)) is None:
            raise self._unknown(token if not separator else input)
        argument._mark()

        if isinstance(argument, Flag):
            if separator:
                self.trigger(FlagAssignmentWarning(
                    "flag %r at %s position cannot take a value; %r is ignored" % (input, ordinal(self._index), value),
                    title="flag cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    input=input,
                    index=self._index,
                    argument=argument,
                    hint="remove everything from '=' (for example: %s)" % input,
                ))
            return

        if not separator:
            value = self._consume(argument, input, tokens)
        elif not value:
            self.trigger(EmptyInlineValueWarning(
                "empty inline value for option %r at %s position" % (input, ordinal(self._index)),
                title="empty inline value",
                code=FaultCode.EMPTY_INLINE_VALUE,
                input=input,
                index=self._index,
                argument=argument,
                hint="add a value after '=' (for example: %s=<value>)" % input,
            ))
        self._store(argument, input, value)

    def _parse_cluster(self, token, tokens):
        cluster = token[1:]
        for offset, character in enumerate(cluster):
            input = "-" + character
            if (argument := self.find(character)) is None:
                raise self._unknown(input)
            argument._mark()

            if isinstance(argument, Flag):
                continue

            # -n5: the rest of the cluster is the value
            if value := cluster[offset + 1:]:
                self._store(argument, input, value)
            else:
                self._store(argument, input, self._consume(argument, input, tokens))
            return

    def _parse_positional(self, token):
        for argument in self._specs:
            if isinstance(argument, Positional) and not argument.present:
                argument._mark()
                self._store(argument, argument.name, token)
                return
        raise UnexpectedPositionalError(
            "unexpected positional argument %r at %s position" % (token, ordinal(self._index)),
            title="unexpected positional",
            code=FaultCode.UNEXPECTED_POSITIONAL,
            input=token,
            index=self._index,
            hint="remove this extra value or run '%s --help' to see the expected usage" % self.program,
        )

    def _consume(self, argument, input, tokens):
        if not tokens:
            raise OptionValueRequiredError(
                "option %r at %s position requires a value" % (input, ordinal(self._index)),
                title="missing option value",
                code=FaultCode.OPTION_VALUE_REQUIRED,
                input=input,
                index=self._index,
                argument=argument,
                hint="pass a value after a space or inline (for example: %s <%s>)" % (input, argument.metavar),
            )
        self._index += 1
        return tokens.popleft()

    def _store(self, argument, input, text):
        try:
            value = coerce(argument.kind, text)
        except CoercionError as error:
            raise ConversionError(
                "invalid %s value %r for %r at %s position (%s)" % (
                    error.kind.label, text, argument.display, ordinal(self._index), error.reason
                ),
                title="invalid value",
                code=FaultCode.CONVERSION_FAILURE,
                input=input,
                index=self._index,
                argument=argument,
                value=text,
                hint="%r expects a %s (for example: %s <%s>)" % (
                    argument.display, error.kind.label, input, argument.metavar
                ),
            ) from None
        argument._assign(value)

    def _sweep(self):
        for argument in self._specs:
            match argument:
                case Option(kind=Kind.STRING):
                    if argument.value is None and argument.default is not None:
                        argument._assign(argument.default)
                    if argument.required and argument.value is None:
                        raise self._missing(argument)
                case Option():
                    if argument.required and not argument.present:
                        raise self._missing(argument)
                case Positional():
                    if argument.required and not argument.present:
                        raise MissingRequiredError(
                            "missing required positional %r" % argument.name,
                            title="missing positional",
                            code=FaultCode.MISSING_POSITIONAL,
                            argument=argument,
                            hint="add the missing values; run '%s --help' to see the expected order" % self.program,
                        )

    def _missing(self, argument):
        return MissingRequiredError(
            "missing required option %r" % argument.switch,
            title="missing option",
            code=FaultCode.MISSING_REQUIRED,
            argument=argument,
            hint="pass %s <%s>; run '%s --help' to see all options" % (argument.switch, argument.metavar, self.program),
        )

    # ── Help ─────────────────────────────────────────────────────────────────

    def _render_help(self):
        """
        Build the help text.

        Sections, in order
        - usage line: program, options (short spelling preferred, metavar when typed,
          bracketed when optional), then positional names.
        - description paragraph.
        - "Options:" one row per option/flag: aliases, metavar, help, default, [required].
        - "Positional:" (only when positionals exist): name, help, [required].

        Palette keys (override through __styles__ in __main__)
        - usage-label, program-name, description-section, group-label,
          option-name, flag-name, metavar, argument-description, default, required
        """
        styles = {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "description-section": "italic #A3A3A3",
            "group-label": "bold #FFFFFF",
            "option-name": "bold #00E6FF",
            "flag-name": "bold #22C55E",
            "metavar": "bold #FFD600",
            "argument-description": "#9CA3AF",
            "default": "#737373",
            "required": "bold #EF4444",
        } | getattr(__import__("__main__"), "__styles__", {})

        def text(fragment, style=""):
            if isinstance(fragment, Text):
                return fragment if self.colorful else Text(fragment.plain)
            return Text(str(fragment), styles.get(style, "") if self.colorful else "")

        options = [argument for argument in self._specs if not isinstance(argument, Positional)]
        positionals = [argument for argument in self._specs if isinstance(argument, Positional)]

        def names(argument):
            style = "flag-name" if isinstance(argument, Flag) else "option-name"
            return Text(", ").join(text(alias, style) for alias in argument.aliases)

        usage = Text.assemble(text("Usage", "usage-label"), ": ", text(self.program, "program-name"))
        for argument in options:
            item = text(argument.aliases[0], "flag-name" if isinstance(argument, Flag) else "option-name")
            if not isinstance(argument, Flag):
                item = Text.assemble(item, " ", text(argument.metavar, "metavar"))
            if not argument.required:
                item = Text.assemble("[", item, "]")
            usage.append(" ").append(item)
        for argument in positionals:
            usage.append(" ").append(text(argument.name, "metavar"))

        body = Text()
        body.append(usage).append("\n\n")
        body.append(text(self.descr, "description-section")).append("\n\n")

        body.append(text("Options", "group-label")).append(":\n")
        for argument in options:
            column = names(argument)
            if not isinstance(argument, Flag):
                column.append(" ").append(text(argument.metavar, "metavar"))
            row = Text("  ").append(column)
            row.append(" " * max(1, 31 - len(column)))
            if argument.descr:
                row.append(text(argument.descr, "argument-description"))
            if (default := _format_default(argument)) is not None:
                row.append(text(" (default: %s)" % default, "default"))
            if argument.required:
                row.append(" ").append(text("[required]", "required"))
            body.append(row).append("\n")

        if positionals:
            body.append("\n").append(text("Positional", "group-label")).append(":\n")
            for argument in positionals:
                row = Text("  ").append(text(argument.name, "metavar"))
                row.append(" " * max(1, 31 - len(argument.name)))
                if argument.descr:
                    row.append(text(argument.descr, "argument-description"))
                if argument.required:
                    row.append(" ").append(text("[required]", "required"))
                body.append(row).append("\n")

        body.rstrip()
        return body

    def format_help(self):
        """
        Return the help text as a plain string (no styles, no panel).
        """
        return self._render_help().plain

    def help(self, *, stderr=False):
        """
        Print the help text to stdout (or stderr), in a panel when fancy.
        """
        console = Console(stderr=stderr)
        renderable = self._render_help()
        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[ ", f"{self.program} HELP".upper(), " ]"),
                title_align="left",
            )
        console.print(renderable)


def _format_default(argument):
    """
    Kind-specific rendering of a default for help; None when nothing is shown.
    """
    match argument:
        case Flag() | Positional():
            return None
        case Option(kind=Kind.STRING):
            return argument.default
        case Option(kind=Kind.CHAR):
            # a NUL default means "no character"
            return argument.default if argument.default != "\0" else None
        case Option(kind=Kind.FLOAT | Kind.DOUBLE):
            return "%.6g" % argument.default
        case _:
            return "%d" % argument.default


def create(program=Unset, descr=Unset, /, **options):
    """
    Create an empty Registry.

    Parameters
    - program: program name used in usage lines and diagnostics until parse()
      overwrites it with argv[0] (default: "program").
    - descr: description paragraph shown in help (default: "").
    - **options: runtime options (shell, fancy, colorful).
    """
    return Registry(program, descr, **options)


def invoke(registry, argv=Unset, /):
    """
    Parse like a command-line program would.

    Behavior
    - Outcome.HELP: print help to stdout and exit with status 0.
    - Outcome.FAILURE, or a fault raised in library mode: the diagnostic is rendered
      to stderr and the process exits with status 1.
    - Outcome.SUCCESS: return the registry for chaining.
    """
    if not isinstance(registry, Registry):
        raise TypeError("invoke() first argument must be a registry")

    try:
        outcome = registry.parse(argv)
    except ParseException as fault:
        trigger(fault, shell=True)
        sys.exit(1)

    match outcome:
        case Outcome.HELP:
            registry.help()
            sys.exit(0)
        case Outcome.FAILURE:
            sys.exit(1)
    return registry


__all__ = (
    "Registry",
    "Outcome",
    "Lookup",
    "create",
    "invoke",
)
