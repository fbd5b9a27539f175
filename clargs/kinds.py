r"""
clargs kinds: the closed set of argument types and their strict coercers.

Overview
- Kind: the tag carried by every argument spec. There are sixteen members: FLAG
  (presence only), POSITIONAL (always a string) and the fourteen value-bearing
  scalar kinds STRING, CHAR, SHORT, INT, LONG, LLONG, UCHAR, USHORT, UINT, ULONG,
  ULLONG, SIZE, FLOAT and DOUBLE.
- coerce(kind, text): convert a raw token into the kind's Python value, or raise
  CoercionError. The whole string must be consumed; a numeric prefix followed by
  garbage is a failure, never a truncation.
- normalize(kind, object): validate a registration-time default for a kind.

Grammar (applied to the full value string)
- CHAR: non-empty; the first character is taken, the remainder is ignored.
- signed integers: [ws] [+|-] digits, base 10, within the kind's C width.
- unsigned integers: [ws] [+] digits, base 10, within 0..max of the kind.
- FLOAT/DOUBLE: [ws] [+|-] (decimal | hexadecimal | inf | infinity | nan | nan(...)),
  case-insensitive; finite literals overflowing the kind's range, or non-zero
  literals underflowing to zero, are rejected. FLOAT is rounded to single precision.
- STRING/POSITIONAL: verbatim, but an embedded NUL character is rejected.

Integer widths come from the platform C ABI (ctypes), so LONG and ULONG follow the
host's `long` exactly as a native program on the same machine would.
"""
import ctypes
import re
import struct
import sys
from enum import IntEnum

FLT_MAX = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]
DBL_MAX = sys.float_info.max

_SPACES = r"[ \t\n\v\f\r]*"

_INTEGER = re.compile(_SPACES + r"(?P<sign>[+-]?)(?P<digits>[0-9]+)")

_FLOATING = re.compile(_SPACES + r"""
    (?P<sign>[+-]?)
    (?:
        (?P<hex>0x(?P<hexdigits>[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)(?:p[+-]?[0-9]+)?)
      | (?P<decimal>(?P<digits>[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)
      | (?P<infinity>inf(?:inity)?)
      | (?P<nan>nan(?:\([0-9a-z_]*\))?)
    )
""", re.VERBOSE | re.IGNORECASE)


def _bounds(ctype, signed):
    bits = ctypes.sizeof(ctype) * 8
    if signed:
        return -(1 << bits - 1), (1 << bits - 1) - 1
    return 0, (1 << bits) - 1


class Kind(IntEnum):
    """
    argument kind tag (stable ordering, used for help and diagnostics).

    attributes (per member)
    - metavar: default placeholder shown in help when none is given.
    - label: human name used in diagnostics ("unsigned char", "long long", ...).
    - zero: the value reported by typed getters when no spec matches.
    - bounds: (low, high) for integer kinds, None otherwise.
    """
    FLAG       = 0
    STRING     = 1
    CHAR       = 2
    SHORT      = 3
    INT        = 4
    LONG       = 5
    LLONG      = 6
    UCHAR      = 7
    USHORT     = 8
    UINT       = 9
    ULONG      = 10
    ULLONG     = 11
    SIZE       = 12
    FLOAT      = 13
    DOUBLE     = 14
    POSITIONAL = 15

    @property
    def metavar(self):
        return _METAVARS[self]

    @property
    def label(self):
        return _LABELS[self]

    @property
    def zero(self):
        return _ZEROS[self]

    @property
    def bounds(self):
        return _BOUNDS.get(self)

    @property
    def integral(self):
        return self in _BOUNDS

    @property
    def floating(self):
        return self in (Kind.FLOAT, Kind.DOUBLE)

    @property
    def scalar(self):
        """
        True for the value-bearing kinds an Option may carry.
        """
        return self not in (Kind.FLAG, Kind.POSITIONAL)


_METAVARS = {
    Kind.FLAG: None,
    Kind.STRING: "STR",
    Kind.CHAR: "CHAR",
    Kind.SHORT: "SHORT",
    Kind.INT: "INT",
    Kind.LONG: "LONG",
    Kind.LLONG: "LLONG",
    Kind.UCHAR: "UCHAR",
    Kind.USHORT: "USHORT",
    Kind.UINT: "UINT",
    Kind.ULONG: "ULONG",
    Kind.ULLONG: "ULLONG",
    Kind.SIZE: "SIZE",
    Kind.FLOAT: "FLT",
    Kind.DOUBLE: "DBL",
    Kind.POSITIONAL: None,
}

_LABELS = {
    Kind.FLAG: "flag",
    Kind.STRING: "string",
    Kind.CHAR: "char",
    Kind.SHORT: "short",
    Kind.INT: "int",
    Kind.LONG: "long",
    Kind.LLONG: "long long",
    Kind.UCHAR: "unsigned char",
    Kind.USHORT: "unsigned short",
    Kind.UINT: "unsigned int",
    Kind.ULONG: "unsigned long",
    Kind.ULLONG: "unsigned long long",
    Kind.SIZE: "size",
    Kind.FLOAT: "float",
    Kind.DOUBLE: "double",
    Kind.POSITIONAL: "positional",
}

_ZEROS = {
    Kind.FLAG: False,
    Kind.STRING: None,
    Kind.CHAR: "\0",
    Kind.FLOAT: 0.0,
    Kind.DOUBLE: 0.0,
    Kind.POSITIONAL: None,
} | dict.fromkeys((
    Kind.SHORT,
    Kind.INT,
    Kind.LONG,
    Kind.LLONG,
    Kind.UCHAR,
    Kind.USHORT,
    Kind.UINT,
    Kind.ULONG,
    Kind.ULLONG,
    Kind.SIZE,
), 0)

_BOUNDS = {
    Kind.SHORT: _bounds(ctypes.c_short, True),
    Kind.INT: _bounds(ctypes.c_int, True),
    Kind.LONG: _bounds(ctypes.c_long, True),
    Kind.LLONG: _bounds(ctypes.c_longlong, True),
    Kind.UCHAR: _bounds(ctypes.c_ubyte, False),
    Kind.USHORT: _bounds(ctypes.c_ushort, False),
    Kind.UINT: _bounds(ctypes.c_uint, False),
    Kind.ULONG: _bounds(ctypes.c_ulong, False),
    Kind.ULLONG: _bounds(ctypes.c_ulonglong, False),
    Kind.SIZE: _bounds(ctypes.c_size_t, False),
}


class CoercionError(ValueError):
    """
    raised when a raw token does not satisfy a kind's grammar or range.

    attributes
    - kind: the target Kind.
    - text: the offending raw value.
    - reason: short lowercase explanation ("out of range", "not a number", ...).
    """

    def __init__(self, kind, text, reason):
        super().__init__("%r is not a valid %s (%s)" % (text, kind.label, reason))
        self.kind = kind
        self.text = text
        self.reason = reason


def _integer(kind, text):
    if not (match := _INTEGER.fullmatch(text)):
        raise CoercionError(kind, text, "not a base-10 integer")
    low, high = kind.bounds
    if match["sign"] == "-" and low == 0 and int(match["digits"]):
        raise CoercionError(kind, text, "negative values are not allowed")
    value = int(match["sign"] + match["digits"])
    if not low <= value <= high:
        raise CoercionError(kind, text, "out of range %d..%d" % (low, high))
    return value


def _narrow(value):
    # OverflowError when the value rounds beyond the single precision range
    return struct.unpack("f", struct.pack("f", value))[0]


def _floating(kind, text):
    if not (match := _FLOATING.fullmatch(text)):
        raise CoercionError(kind, text, "not a floating-point number")

    sign = match["sign"]
    if match["nan"]:
        return float(sign + "nan")
    if match["infinity"]:
        return float(sign + "inf")

    try:
        if match["hex"]:
            value = float.fromhex(sign + match["hex"])
            mantissa = match["hexdigits"]
        else:
            value = float(sign + match["decimal"])
            mantissa = match["digits"]
        if value in (float("inf"), float("-inf")):
            raise OverflowError
        if kind is Kind.FLOAT:
            value = _narrow(value)
    except OverflowError:
        raise CoercionError(kind, text, "out of range") from None

    if value == 0.0 and mantissa.strip("0."):
        raise CoercionError(kind, text, "underflows to zero")
    return value


def coerce(kind, text, /):
    """
    convert a raw token into the Python value of a kind.

    returns
    - STRING / POSITIONAL → str (verbatim)
    - CHAR                → str of length 1
    - integer kinds       → int
    - FLOAT / DOUBLE      → float

    raises
    - CoercionError (a ValueError) on any grammar or range violation.
    - TypeError when kind is FLAG (flags carry no value) or text is not a string.
    """
    if not isinstance(kind, Kind):
        raise TypeError("coerce() first argument must be a kind")
    if not isinstance(text, str):
        raise TypeError("coerce() second argument must be a string")

    match kind:
        case Kind.FLAG:
            raise TypeError("coerce() flags carry no value")
        case Kind.STRING | Kind.POSITIONAL:
            if "\0" in text:
                raise CoercionError(kind, text, "embedded NUL character")
            return text
        case Kind.CHAR:
            if not text:
                raise CoercionError(kind, text, "empty value")
            return text[0]
        case Kind.FLOAT | Kind.DOUBLE:
            return _floating(kind, text)
        case _:
            return _integer(kind, text)


def normalize(kind, object, /):
    """
    validate a registration-time default against a kind and return it normalized.

    - STRING: str or None (None means "no default").
    - CHAR: a single-character str.
    - integer kinds: int (bool rejected) within the kind's bounds.
    - FLOAT/DOUBLE: int or float; FLOAT defaults are rounded to single precision.

    raises
    - TypeError for a wrong Python type, ValueError for an out-of-range value.
    """
    match kind:
        case Kind.STRING:
            if object is not None and not isinstance(object, str):
                raise TypeError("%s default must be a string" % kind.label)
            if object is not None and "\0" in object:
                raise ValueError("%s default cannot contain a NUL character" % kind.label)
            return object
        case Kind.CHAR:
            if not isinstance(object, str):
                raise TypeError("%s default must be a string" % kind.label)
            if len(object) != 1:
                raise ValueError("%s default must be a single character" % kind.label)
            return object
        case Kind.FLOAT | Kind.DOUBLE:
            if isinstance(object, bool) or not isinstance(object, int | float):
                raise TypeError("%s default must be a number" % kind.label)
            if kind is Kind.FLOAT:
                try:
                    return _narrow(float(object))
                except OverflowError:
                    raise ValueError("%s default is out of range" % kind.label) from None
            return float(object)
        case _ if kind.integral:
            if isinstance(object, bool) or not isinstance(object, int):
                raise TypeError("%s default must be an integer" % kind.label)
            low, high = kind.bounds
            if not low <= object <= high:
                raise ValueError("%s default must be within %d..%d" % (kind.label, low, high))
            return object
        case _:
            raise TypeError("%s arguments have no default" % kind.label)


__all__ = (
    "Kind",
    "CoercionError",
    "coerce",
    "normalize",
    "FLT_MAX",
    "DBL_MAX",
)
