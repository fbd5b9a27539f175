"""
clargs faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- ParseException / ParseWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: every message names the offending token and its ordinal
  position so users can learn by trying (“at third position”, etc.).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.

Integration
- The registry builds a fault the moment parsing goes wrong and calls
  Registry.trigger(fault, **ctx), which merges runtime options and calls trigger().
- In non-shell mode, exceptions are raised and warnings go through `warnings`;
  in shell mode, both are rendered to stderr via rich.
"""
import copy
import inspect
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - switches (options/flags) (1111x)
      • UNKNOWN_SWITCH, OPTION_VALUE_REQUIRED, CONVERSION_FAILURE, MISSING_REQUIRED
    - positionals (1112x)
      • UNEXPECTED_POSITIONAL, MISSING_POSITIONAL
    - warnings (12xxx)
      • EMPTY_INLINE_VALUE, FLAG_ASSIGNMENT, DUPLICATED_IDENTITY

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- switch/flag/option errors (1111x) ---
    UNKNOWN_SWITCH              = 11112
    OPTION_VALUE_REQUIRED       = 11117
    CONVERSION_FAILURE          = 11118
    MISSING_REQUIRED            = 11119

    # --- positional errors (1112x) ---
    UNEXPECTED_POSITIONAL       = 11121
    MISSING_POSITIONAL          = 11125

    # --- warnings (12xxx) ---
    EMPTY_INLINE_VALUE          = 12111
    FLAG_ASSIGNMENT             = 12113
    DUPLICATED_IDENTITY         = 12115

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


_ERROR_PALETTE = {
    "prog-name": "bold #E6E6F0",  # near-white program name
    "code": "bold #00E5FF",  # neon cyan fault code
    "title": "bold #FF4DA6",  # friendly pinky title
    "message": "#C8C8D0",  # soft light gray message
    "hint-arrow": "#9CE19C dim",  # gentle green arrow
    "hint": "italic #9CE19C",  # gentle green hint text
}

_WARNING_PALETTE = {
    "prog-name": "bold #E6E6F0",
    "code": "bold #FFB400",  # amber fault code for warnings
    "title": "bold #FFC2E0",  # softer pinky title for warnings
    "message": "#D6D6DE",
    "hint-arrow": "#B8EFAF dim",
    "hint": "italic #B8EFAF",
}


def _render(fault, palette):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: "[ <program> — <code> | <Title> ]"
    - body:   message
    - footer: " → hint"
    a Panel wraps the body when options["fancy"] is set.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    registry = options.get("registry")
    program = getattr(main, "__prog__", getattr(registry, "program", "program"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        text(program, "prog-name"),
        " — ",
        text(code.normalize() if code is not None else "?", "code"),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), "title"),
        " ]"
    )
    message = text(_message(fault), "message")
    renders = [message]
    if hint := options.get("hint"):
        renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fancy:
        return Panel(Group(*renders), title=header, title_align="left")
    return Group(header, *renders)


def _message(fault):
    return fault.message if fault.message is not Unset else type(fault).__name__


class ParseException(Exception):
    """
    base type of every fatal parse fault.

    attributes
    - message: lowercase, one-sentence description naming the offending token.
    - options: read-only mapping of rendering/context options
      (registry, shell, fancy, colorful, title, code, hint, docs, plus
      fault-specific context like token, index, argument).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # context options double as attributes (fault.token, fault.argument, ...)
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __rich__(self):
        return _render(self, _ERROR_PALETTE)

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownSwitchError(ParseException): ...
class OptionValueRequiredError(ParseException): ...
class ConversionError(ParseException): ...
class MissingRequiredError(ParseException): ...
class UnexpectedPositionalError(ParseException): ...


class ParseWarning(Warning):
    """
    base type of every non-fatal parse fault.

    same shape as ParseException; in non-shell mode it is emitted through the
    `warnings` machinery so host applications can filter or escalate it.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __rich__(self):
        return _render(self, _WARNING_PALETTE)

    def __trigger__(self):
        if not self.options.get("shell"):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyInlineValueWarning(ParseWarning): ...
class FlagAssignmentWarning(ParseWarning): ...
class DuplicatedIdentityWarning(ParseWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via the rich stderr console; otherwise,
      exceptions are raised and warnings are emitted.
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
    returns None when not found.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParseException",
    "UnknownSwitchError",
    "OptionValueRequiredError",
    "ConversionError",
    "MissingRequiredError",
    "UnexpectedPositionalError",
    "ParseWarning",
    "EmptyInlineValueWarning",
    "FlagAssignmentWarning",
    "DuplicatedIdentityWarning",
    "trigger",
    "getdoc",
)
