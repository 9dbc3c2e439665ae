"""
Fault layer tests.

Scope
- Fault codes and host overrides (__codes__, __docs__).
- trigger(): raise/warn outside shell mode, print (and exit on errors) in shell mode.
- Rendering in plain, colorful and fancy variants.
"""
import io
import unittest
from unittest import TestCase, mock

from rich.console import Console

import argosy.faults
from argosy import Builder
from argosy.faults import *


def capture():
    return Console(file=io.StringIO(), width=120, color_system=None)


class TestFaultCode(TestCase):

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.MISSING_VALUE.normalize(), "11117")

    def testNormalizeUsesHostMapping(self):
        main = __import__("__main__")
        with mock.patch.object(main, "__codes__", {FaultCode.UNKNOWN_FLAG: "W001"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_FLAG.normalize(), "W001")

    def testGetdoc(self):
        main = __import__("__main__")
        self.assertIsNone(getdoc(FaultCode.MISSING_ARGUMENT))
        with mock.patch.object(main, "__docs__", {FaultCode.MISSING_ARGUMENT: "docs"}, create=True):
            self.assertEqual(getdoc(FaultCode.MISSING_ARGUMENT), "docs")
        with self.assertRaises(TypeError):
            getdoc(11125)


class TestTrigger(TestCase):

    def setUp(self):
        builder = Builder("prog")
        builder.add_flag("-v", help="verbose")
        self.schema = builder.build()

    def testSchemaErrorsAreValueErrors(self):
        self.assertTrue(issubclass(DuplicateNameError, SchemaError))
        self.assertTrue(issubclass(UnlimitedArgumentError, SchemaError))
        self.assertTrue(issubclass(SchemaError, ValueError))

    def testReplaceMergesOptions(self):
        fault = MissingValueError("message", title="missing value")
        other = fault.__replace__(shell=True)
        self.assertIsInstance(other, MissingValueError)
        self.assertEqual(other.message, "message")
        self.assertEqual(dict(other.options), {"title": "missing value", "shell": True})
        self.assertEqual(dict(fault.options), {"title": "missing value"})

    def testErrorRaisedOutsideShell(self):
        with self.assertRaises(UnexpectedArgumentError) as context:
            trigger(UnexpectedArgumentError("unexpected argument: x"), schema=self.schema)
        self.assertIs(context.exception.options["schema"], self.schema)

    def testWarningWarnedOutsideShell(self):
        with self.assertWarns(UnknownFlagWarning):
            trigger(UnknownFlagWarning("unknown flag '--x'"), schema=self.schema)

    def testErrorExitsInShell(self):
        console = capture()
        with mock.patch.object(argosy.faults, "console", console):
            with self.assertRaises(SystemExit) as context:
                trigger(
                    MissingValueError(
                        "missing value for option '-o'",
                        title="missing value",
                        code=FaultCode.MISSING_VALUE,
                        hint="pass a value after it",
                    ),
                    schema=self.schema,
                    shell=True,
                )
        self.assertEqual(context.exception.code, 1)
        output = console.file.getvalue()
        self.assertIn("Usage:", output)
        self.assertIn("[ prog — 11117 | Missing Value ]", output)
        self.assertIn("missing value for option '-o'", output)
        self.assertIn("→ pass a value after it", output)
        self.assertLess(output.index("Usage:"), output.index("missing value for option"))

    def testWarningPrintedInShell(self):
        console = capture()
        with mock.patch.object(argosy.faults, "console", console):
            trigger(
                UnknownFlagWarning("unknown flag '--x'", title="unknown flag", code=FaultCode.UNKNOWN_FLAG),
                schema=self.schema,
                shell=True,
            )
        output = console.file.getvalue()
        self.assertIn("unknown flag '--x'", output)
        self.assertNotIn("Usage:", output)

    def testFancyShellOutputUsesPanel(self):
        console = capture()
        with mock.patch.object(argosy.faults, "console", console):
            trigger(
                UnknownFlagWarning("unknown flag '--x'", title="unknown flag", code=FaultCode.UNKNOWN_FLAG),
                schema=self.schema,
                shell=True,
                fancy=True,
                colorful=True,
            )
        output = console.file.getvalue()
        self.assertIn("╭", output)
        self.assertIn("unknown flag '--x'", output)

    def testProgOverride(self):
        main = __import__("__main__")
        console = capture()
        with mock.patch.object(main, "__prog__", "tool", create=True):
            console.print(UnknownFlagWarning("x", title="t", code=FaultCode.UNKNOWN_FLAG, schema=self.schema))
        self.assertIn("[ tool — 12112 | T ]", console.file.getvalue())

    def testTriggerRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))


if __name__ == "__main__":
    unittest.main()
