"""
Registry module behavioral tests (registration, parsing, lookup, outcomes).

Scope
- Validate handles, lookup order and duplicated-name warnings.
- Validate the parse state machine: long options, inline values, short clusters,
  positional slots, help short-circuit and the required sweep.
- Validate friendly faults (position-first messages) and rollback on failure.
- Validate shell mode (render and return FAILURE) and invoke() exits.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Registry, create, invoke, faults).
"""

from __future__ import annotations

import contextlib
import io
import unittest
import warnings
from unittest import TestCase

from clargs import Registry, Outcome, Lookup, Flag, Option, Positional, create, invoke
from clargs.faults import (
    FaultCode,
    UnknownSwitchError,
    OptionValueRequiredError,
    ConversionError,
    MissingRequiredError,
    UnexpectedPositionalError,
    EmptyInlineValueWarning,
    FlagAssignmentWarning,
    DuplicatedIdentityWarning,
)


def build(**options):
    registry = Registry("tool", "copies things", **options)
    registry.add_flag("v", "verbose", "talk more")
    registry.add_int("n", "count", descr="how many copies", default=1)
    registry.add_string("o", "output", descr="output file")
    registry.add_positional("src", "source file", required=True)
    registry.add_positional("dst", "destination file")
    return registry


class TestRegistration(TestCase):
    """Handles, lookup order and registration guards."""

    def testHandlesAreIndices(self):
        registry = Registry()
        self.assertEqual(registry.add_flag("v"), 0)
        self.assertEqual(registry.add_double("r", "ratio"), 1)
        self.assertEqual(registry.add_positional("file"), 2)
        self.assertEqual(len(registry), 3)
        self.assertIsInstance(registry[0], Flag)
        self.assertIsInstance(registry[1], Option)
        self.assertIsInstance(registry[2], Positional)
        self.assertEqual([spec.kind.name for spec in registry], ["FLAG", "DOUBLE", "POSITIONAL"])

    def testDefaults(self):
        registry = create()
        self.assertEqual(registry.program, "program")
        self.assertEqual(registry.descr, "")
        self.assertFalse(registry.shell)

    def testEmptyProgramRejected(self):
        with self.assertRaises(ValueError):
            Registry("  ")

    def testFindOrder(self):
        registry = build()
        self.assertIs(registry.find("verbose"), registry[0])
        self.assertIs(registry.find("v"), registry[0])
        self.assertIs(registry.find("src"), registry[3])
        self.assertIsNone(registry.find("nothing"))
        self.assertIsNone(registry.find("-v"))

    def testDuplicatedNameWarnsAndFirstWins(self):
        registry = Registry()
        registry.add_flag("a", "x")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            registry.add_int("b", "a")
        self.assertTrue(any(issubclass(w.category, DuplicatedIdentityWarning) for w in caught))
        self.assertIs(registry.find("a"), registry[0])

    def testDistinctNamesDoNotWarn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            build()

    def testAddAfterParseRejected(self):
        registry = build()
        registry.parse(["tool", "a"])
        with self.assertRaises(RuntimeError):
            registry.add_flag("z")

    def testGenericAdd(self):
        from clargs import Kind

        registry = Registry()
        registry.add(Kind.USHORT, "p", "port", default=8080)
        self.assertEqual(registry.get_ushort("port"), Lookup(8080, True))
        with self.assertRaises(ValueError):
            registry.add(Kind.FLAG, "f")


class TestParsing(TestCase):
    """Behavioral tests for the parse state machine."""

    def testMixedVector(self):
        registry = build()
        outcome = registry.parse(["tool", "-v", "--count", "5", "a", "b"])
        self.assertIs(outcome, Outcome.SUCCESS)
        self.assertTrue(registry.get_flag("verbose"))
        self.assertTrue(registry.get_flag("v"))
        self.assertEqual(registry.get_int("count"), Lookup(5, True))
        self.assertEqual(registry.get_int("n"), (5, True))
        self.assertEqual(registry.get_string("src"), "a")
        self.assertEqual(registry.get_string("dst"), "b")

    def testProgramTakenFromVector(self):
        registry = build()
        registry.parse(["/usr/bin/tool2", "a"])
        self.assertEqual(registry.program, "/usr/bin/tool2")

    def testShellLikeString(self):
        registry = build()
        registry.parse("tool --output 'my file.txt' a")
        self.assertEqual(registry.get_string("output"), "my file.txt")

    def testInlineValue(self):
        registry = build()
        registry.parse(["tool", "--count=7", "a"])
        self.assertEqual(registry.get_int("count").value, 7)

    def testInlineValueKeepsLaterEquals(self):
        registry = build()
        registry.parse(["tool", "--output=k=v", "a"])
        self.assertEqual(registry.get_string("output"), "k=v")

    def testAttachedShortValue(self):
        registry = build()
        registry.parse(["tool", "-n7", "a"])
        self.assertEqual(registry.get_int("count").value, 7)

    def testClusterFlagsThenValue(self):
        registry = build()
        registry.parse(["tool", "-vn", "9", "a"])
        self.assertTrue(registry.get_flag("verbose"))
        self.assertEqual(registry.get_int("count").value, 9)

    def testClusterAttachedValue(self):
        registry = build()
        registry.parse(["tool", "-vofile.txt", "a"])
        self.assertTrue(registry.get_flag("verbose"))
        self.assertEqual(registry.get_string("output"), "file.txt")

    def testValueMayStartWithDash(self):
        registry = build()
        registry.parse(["tool", "--count", "-3", "a"])
        self.assertEqual(registry.get_int("count").value, -3)

    def testLastOccurrenceWins(self):
        registry = build()
        registry.parse(["tool", "--count", "1", "-n", "2", "a"])
        self.assertEqual(registry.get_int("count").value, 2)

    def testLoneDashIsPositional(self):
        registry = build()
        registry.parse(["tool", "-"])
        self.assertEqual(registry.get_string("src"), "-")

    def testPositionalByName(self):
        registry = build()
        registry.parse(["tool", "--src", "a", "b"])
        self.assertEqual(registry.get_string("src"), "a")
        self.assertEqual(registry.get_string("dst"), "b")

    def testDefaultsWhenAbsent(self):
        registry = build()
        registry.parse(["tool", "a"])
        self.assertFalse(registry.get_flag("verbose"))
        self.assertFalse(registry.get_flag("count"))
        self.assertEqual(registry.get_int("count"), Lookup(1, True))
        self.assertIsNone(registry.get_string("output"))
        self.assertIsNone(registry.get_string("dst"))

    def testTypedDefaultsWhenAbsent(self):
        registry = Registry()
        registry.add_char("c", "sep", default=",")
        registry.add_uchar("u", "level", default=7)
        registry.add_float("f", "scale", default=0.25)
        registry.add_double("r", "ratio", default=0.5)
        registry.add_short("s", "small", default=-3)
        registry.add_size("z", "size")
        registry.add_string("o", "output", default="out.txt")
        registry.add_flag("v", "verbose")
        self.assertIs(registry.parse(["tool", "-v"]), Outcome.SUCCESS)
        self.assertEqual(registry.get_char("sep"), (",", True))
        self.assertEqual(registry.get_uchar("level"), (7, True))
        self.assertEqual(registry.get_float("scale"), (0.25, True))
        self.assertEqual(registry.get_double("ratio"), (0.5, True))
        self.assertEqual(registry.get_short("small"), (-3, True))
        self.assertEqual(registry.get_size("size"), (0, True))
        self.assertEqual(registry.get_string("output"), "out.txt")
        self.assertFalse(any(spec.present for spec in registry if spec.kind.scalar))

    def testReparseResetsState(self):
        registry = build()
        registry.parse(["tool", "-v", "-n", "4", "a", "b"])
        registry.parse(["tool", "c"])
        self.assertFalse(registry.get_flag("verbose"))
        self.assertEqual(registry.get_int("count").value, 1)
        self.assertEqual(registry.get_string("src"), "c")
        self.assertIsNone(registry.get_string("dst"))

    def testEmptyVector(self):
        registry = Registry("tool")
        registry.add_flag("v")
        self.assertIs(registry.parse([]), Outcome.SUCCESS)
        self.assertEqual(registry.program, "tool")

    def testRequiredStringSatisfiedByDefault(self):
        registry = Registry()
        registry.add_string("m", "mode", required=True, default="fast")
        self.assertIs(registry.parse(["tool"]), Outcome.SUCCESS)
        self.assertEqual(registry.get_string("mode"), "fast")

    def testTypedValues(self):
        registry = Registry()
        registry.add_char("c", "sep", default=",")
        registry.add_uchar("u", "level")
        registry.add_float("f", "ratio")
        registry.add_llong("l", "big")
        registry.add_size("z", "size")
        registry.parse(["tool", "-c", ";", "--level=255", "--ratio", "0.5", "-l", "-9000000000", "-z", "0"])
        self.assertEqual(registry.get_char("sep"), (";", True))
        self.assertEqual(registry.get_uchar("level"), (255, True))
        self.assertEqual(registry.get_float("ratio"), (0.5, True))
        self.assertEqual(registry.get_llong("big"), (-9000000000, True))
        self.assertEqual(registry.get_size("size"), (0, True))
        self.assertTrue(registry.get_flag("size"))

    def testArgvTypeChecked(self):
        registry = build()
        with self.assertRaises(TypeError):
            registry.parse(123)
        with self.assertRaises(TypeError):
            registry.parse(["tool", 1])


class TestHelpOutcome(TestCase):
    """--help / -h short-circuit."""

    def testLongHelp(self):
        self.assertIs(build().parse(["tool", "--help"]), Outcome.HELP)

    def testShortHelpStopsScanning(self):
        registry = build()
        self.assertIs(registry.parse(["tool", "-h", "--bogus"]), Outcome.HELP)

    def testHelpSkipsRequiredSweep(self):
        registry = build()
        self.assertIs(registry.parse(["tool", "-v", "-h"]), Outcome.HELP)
        self.assertTrue(registry.get_flag("verbose"))


class TestParseFaults(TestCase):
    """Friendly faults and rollback."""

    def testUnknownLongOption(self):
        registry = build()
        with self.assertRaises(UnknownSwitchError) as context:
            registry.parse(["tool", "-v", "--bogus", "a"])
        self.assertEqual(str(context.exception), "unknown option '--bogus' at second position")
        self.assertEqual(context.exception.code, FaultCode.UNKNOWN_SWITCH)
        self.assertIs(context.exception.registry, registry)

    def testUnknownOptionSuggestsCloseMatch(self):
        registry = build()
        with self.assertRaises(UnknownSwitchError) as context:
            registry.parse(["tool", "--verbos", "a"])
        self.assertIn("--verbose", context.exception.suggestions)
        self.assertIn("did you mean '--verbose'", context.exception.hint)

    def testUnknownInlineReportsName(self):
        with self.assertRaises(UnknownSwitchError) as context:
            build().parse(["tool", "--bogus=1", "a"])
        self.assertEqual(context.exception.input, "--bogus")

    def testDoubleDashAloneIsUnknown(self):
        with self.assertRaises(UnknownSwitchError):
            build().parse(["tool", "--", "a"])

    def testUnknownShortInCluster(self):
        registry = build()
        with self.assertRaises(UnknownSwitchError) as context:
            registry.parse(["tool", "-vx", "a"])
        self.assertEqual(context.exception.input, "-x")

    def testRollbackLeavesNoPartialState(self):
        registry = build()
        with self.assertRaises(UnknownSwitchError):
            registry.parse(["tool", "-v", "-n", "3", "a", "--bogus"])
        self.assertFalse(registry.get_flag("verbose"))
        self.assertEqual(registry.get_int("count").value, 1)
        self.assertIsNone(registry.get_string("src"))

    def testMissingValue(self):
        with self.assertRaises(OptionValueRequiredError) as context:
            build().parse(["tool", "a", "--count"])
        self.assertEqual(str(context.exception), "option '--count' at second position requires a value")

    def testMissingValueInCluster(self):
        with self.assertRaises(OptionValueRequiredError):
            build().parse(["tool", "a", "-vn"])

    def testConversionFailure(self):
        with self.assertRaises(ConversionError) as context:
            build().parse(["tool", "--count", "abc", "a"])
        self.assertEqual(context.exception.code, FaultCode.CONVERSION_FAILURE)
        self.assertIn("'count'", str(context.exception))
        self.assertIn("'abc'", str(context.exception))

    def testUnsignedRejectsNegative(self):
        registry = Registry()
        registry.add_uint("u", "units")
        with self.assertRaises(ConversionError):
            registry.parse(["tool", "--units", "-1"])

    def testShortRangeChecked(self):
        registry = Registry()
        registry.add_short("s", "small")
        with self.assertRaises(ConversionError):
            registry.parse(["tool", "--small", "40000"])

    def testUnexpectedPositional(self):
        with self.assertRaises(UnexpectedPositionalError) as context:
            build().parse(["tool", "a", "b", "c"])
        self.assertEqual(str(context.exception), "unexpected positional argument 'c' at third position")

    def testMissingRequiredPositional(self):
        with self.assertRaises(MissingRequiredError) as context:
            build().parse(["tool"])
        self.assertEqual(context.exception.code, FaultCode.MISSING_POSITIONAL)
        self.assertIn("'src'", str(context.exception))

    def testMissingRequiredOption(self):
        registry = build()
        registry.add_int("t", "threads", required=True)
        with self.assertRaises(MissingRequiredError) as context:
            registry.parse(["tool", "a"])
        self.assertEqual(context.exception.code, FaultCode.MISSING_REQUIRED)
        self.assertEqual(str(context.exception), "missing required option '--threads'")


class TestParseWarnings(TestCase):
    """Non-fatal faults go through the warnings machinery."""

    def testEmptyInlineValue(self):
        registry = build()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            outcome = registry.parse(["tool", "--output=", "a"])
        self.assertIs(outcome, Outcome.SUCCESS)
        self.assertEqual(registry.get_string("output"), "")
        self.assertTrue(any(issubclass(w.category, EmptyInlineValueWarning) for w in caught))

    def testFlagAssignmentIgnored(self):
        registry = build()
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            registry.parse(["tool", "--verbose=no", "a"])
        self.assertTrue(registry.get_flag("verbose"))
        self.assertTrue(any(issubclass(w.category, FlagAssignmentWarning) for w in caught))

    def testWarningsCanBeEscalated(self):
        registry = build()
        with warnings.catch_warnings():
            warnings.simplefilter("error", FlagAssignmentWarning)
            with self.assertRaises(FlagAssignmentWarning):
                registry.parse(["tool", "-n", "3", "--verbose=1", "a"])
        self.assertFalse(registry.get_flag("verbose"))
        self.assertFalse(registry.get_flag("count"))
        self.assertEqual(registry.get_int("count").value, 1)


class TestDocumentedProperties(TestCase):
    """End-to-end properties of the registration, parse and lookup cycle."""

    def testRequiredStringWithoutDefault(self):
        registry = Registry()
        registry.add_string(long="name", required=True)
        with self.assertRaises(MissingRequiredError) as context:
            registry.parse([])
        self.assertIn("name", str(context.exception))
        self.assertIsNone(registry.get_string("name"))

    def testInlineAndSeparateValuesAgree(self):
        inline, separate = Registry(), Registry()
        for registry in (inline, separate):
            registry.add_int(long="opt")
        inline.parse(["tool", "--opt=5"])
        separate.parse(["tool", "--opt", "5"])
        self.assertEqual(inline.get_int("opt"), separate.get_int("opt"))
        self.assertEqual(inline.get_int("opt").value, 5)
        self.assertTrue(inline.get_flag("opt") and separate.get_flag("opt"))

    def testClusterDecomposition(self):
        registry = Registry()
        a = registry.add_flag("a")
        b = registry.add_flag("b")
        n = registry.add_int("n")
        registry.parse(["tool", "-ab", "-n7"])
        self.assertTrue(registry[a].present)
        self.assertTrue(registry[b].present)
        self.assertTrue(registry[n].present)
        self.assertEqual(registry[n].value, 7)

    def testUnsignedCharOverflow(self):
        registry = Registry()
        registry.add_uchar("u", "level")
        with self.assertRaises(ConversionError):
            registry.parse(["tool", "--level", "300"])

    def testPositionalOrdering(self):
        registry = Registry()
        registry.add_positional("src", required=True)
        registry.add_positional("dst", required=True)
        registry.parse(["tool", "foo.txt", "bar.txt"])
        self.assertEqual((registry.get_string("src"), registry.get_string("dst")), ("foo.txt", "bar.txt"))
        with self.assertRaises(MissingRequiredError) as context:
            registry.parse(["tool", "foo.txt"])
        self.assertIn("dst", str(context.exception))

    def testLookupIsIdempotent(self):
        registry = build()
        registry.parse(["tool", "-v", "-n", "3", "a"])
        self.assertEqual(
            [registry.get_flag("verbose"), registry.get_int("count"), registry.get_string("src")],
            [registry.get_flag("verbose"), registry.get_int("count"), registry.get_string("src")],
        )

    def testUnknownOptionPopulatesNothing(self):
        registry = build()
        with self.assertRaises(UnknownSwitchError):
            registry.parse(["tool", "--bogus"])
        self.assertFalse(any(spec.present for spec in registry))


class TestShellMode(TestCase):
    """Shell mode renders faults and returns FAILURE."""

    def testFailureRendered(self):
        registry = build(shell=True)
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            outcome = registry.parse(["tool", "--bogus", "a"])
        self.assertIs(outcome, Outcome.FAILURE)
        self.assertIn("unknown option '--bogus' at first position", stream.getvalue())
        self.assertFalse(registry.get_flag("verbose"))

    def testWarningRendered(self):
        registry = build(shell=True)
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            outcome = registry.parse(["tool", "--verbose=1", "a"])
        self.assertIs(outcome, Outcome.SUCCESS)
        self.assertIn("cannot take a value", stream.getvalue())


class TestAccessors(TestCase):
    """Typed getters and kind mismatches."""

    def testNotFoundReportsZero(self):
        registry = build()
        registry.parse(["tool", "a"])
        self.assertEqual(registry.get_int("nope"), Lookup(0, False))
        self.assertEqual(registry.get_double("nope"), (0.0, False))
        self.assertEqual(registry.get_char("nope"), ("\0", False))
        self.assertIsNone(registry.get_string("nope"))
        self.assertFalse(registry.get_flag("nope"))

    def testKindMismatchRaises(self):
        registry = build()
        registry.parse(["tool", "a"])
        with self.assertRaises(TypeError):
            registry.get_int("verbose")
        with self.assertRaises(TypeError):
            registry.get_long("count")
        with self.assertRaises(TypeError):
            registry.get_string("count")

    def testGeneratedAccessorNames(self):
        self.assertEqual(Registry.get_ullong.__name__, "get_ullong")
        self.assertEqual(Registry.add_double.__name__, "add_double")


class TestInvoke(TestCase):
    """invoke() prints and exits like a command-line program."""

    def testSuccessReturnsRegistry(self):
        registry = build()
        self.assertIs(invoke(registry, ["tool", "a"]), registry)

    def testHelpExitsZero(self):
        stream = io.StringIO()
        with contextlib.redirect_stdout(stream):
            with self.assertRaises(SystemExit) as context:
                invoke(build(), ["tool", "--help"])
        self.assertEqual(context.exception.code, 0)
        self.assertIn("Usage: tool", stream.getvalue())

    def testFaultExitsOne(self):
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            with self.assertRaises(SystemExit) as context:
                invoke(build(), ["tool"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("missing required positional 'src'", stream.getvalue())

    def testShellFailureExitsOne(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as context:
                invoke(build(shell=True), ["tool", "--bogus"])
        self.assertEqual(context.exception.code, 1)

    def testRegistryRequired(self):
        with self.assertRaises(TypeError):
            invoke(object(), [])


if __name__ == "__main__":
    unittest.main()
