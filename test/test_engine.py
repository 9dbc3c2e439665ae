"""
Parsing engine tests (token classification, routing, flush, dispatch).

Scope
- Flags and options, including the inline "--name=value" form.
- Positional routing: leading slots, unlimited capture, tail-anchored arguments.
- Subcommand dispatch with parent/child links and a shared positional counter.
- Fatal errors and the non-fatal unknown-flag warning.
- Result records: read-only mapping, attribute access, freezing.

Conventions
- Test method names follow CamelCase per project convention.
- Most tests go through the engine directly (parse + ParseState).
"""
import threading
import unittest
import warnings
from unittest import TestCase

from argosy import Builder, UNLIMITED
from argosy.engine import ParseState, Result, parse
from argosy.faults import (
    MissingValueError,
    UnexpectedArgumentError,
    MissingArgumentError,
    UnknownFlagWarning,
)


def run(schema, tokens):
    return parse(schema, ParseState(tokens))


class TestFlagsAndOptions(TestCase):

    def setUp(self):
        builder = Builder("prog")
        builder.add_flag("-n", "--dryrun")
        builder.add_option("-o", "--output", default="out.txt")
        builder.add_option("--level")
        builder.add_argument("rest", nargs=UNLIMITED)
        self.schema = builder.build()

    def testFlagFalseWhenAbsent(self):
        self.assertIs(run(self.schema, [])["dryrun"], False)

    def testFlagTrueWithEitherSpelling(self):
        self.assertIs(run(self.schema, ["-n"])["dryrun"], True)
        self.assertIs(run(self.schema, ["--dryrun"])["dryrun"], True)

    def testOptionDefault(self):
        self.assertEqual(run(self.schema, [])["output"], "out.txt")

    def testOptionWithoutDefaultIsEmptyString(self):
        self.assertEqual(run(self.schema, [])["level"], "")

    def testOptionSpacedAndInline(self):
        for tokens in (["--output", "x.txt"], ["--output=x.txt"], ["-o", "x.txt"], ["-o=x.txt"]):
            with self.subTest(tokens=tokens):
                self.assertEqual(run(self.schema, tokens)["output"], "x.txt")

    def testInlineValueSplitsOnFirstEquals(self):
        self.assertEqual(run(self.schema, ["--output=a=b"])["output"], "a=b")

    def testInlineEmptyValue(self):
        self.assertEqual(run(self.schema, ["--output="])["output"], "")

    def testOptionTakesNextTokenWhateverItsShape(self):
        result = run(self.schema, ["-o", "-n"])
        self.assertEqual(result["output"], "-n")
        self.assertIs(result["dryrun"], False)

    def testLastValueWins(self):
        self.assertEqual(run(self.schema, ["-o", "a", "--output", "b"])["output"], "b")

    def testMissingValueIsFatal(self):
        with self.assertRaises(MissingValueError):
            run(self.schema, ["--level"])

    def testInlineSplitRewritesTokens(self):
        state = ParseState(["--output=x", "y"])
        parse(self.schema, state)
        self.assertEqual(state.tokens, ["--output", "x", "y"])

    def testUnknownFlagWarnsAndContinues(self):
        with self.assertWarns(UnknownFlagWarning) as context:
            result = run(self.schema, ["--bogus", "a", "-n", "b"])
        self.assertEqual(result["rest"], ["a", "b"])
        self.assertIs(result["dryrun"], True)
        self.assertEqual(context.warning.options["token"], "--bogus")

    def testUnknownFlagSuggestsCloseMatches(self):
        with self.assertWarns(UnknownFlagWarning) as context:
            run(self.schema, ["--dryrn"])
        self.assertIn("--dryrun", context.warning.options["suggestions"])
        self.assertIn("did you mean '--dryrun'?", context.warning.options["hint"])


class TestPositionals(TestCase):

    def testLeadingThenUnlimited(self):
        builder = Builder("prog")
        builder.add_argument("name")
        builder.add_argument("rest", nargs=UNLIMITED)
        result = run(builder.build(), ["cameo", "foo", "bar"])
        self.assertEqual(result["name"], "cameo")
        self.assertEqual(result["rest"], ["foo", "bar"])

    def testUnlimitedMayBeEmpty(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED)
        self.assertEqual(run(builder.build(), [])["rest"], [])

    def testUnlimitedKeepsDefaultWhenEmpty(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED, default=".")
        schema = builder.build()
        self.assertEqual(run(schema, [])["rest"], ["."])
        self.assertEqual(run(schema, ["a"])["rest"], ["a"])

    def testFixedNargsCollectsList(self):
        builder = Builder("prog")
        builder.add_argument("pair", nargs=2)
        builder.add_argument("last")
        result = run(builder.build(), ["a", "b", "c"])
        self.assertEqual(result["pair"], ["a", "b"])
        self.assertEqual(result["last"], "c")

    def testExplicitValuesReplaceListDefault(self):
        builder = Builder("prog")
        builder.add_argument("pair", nargs=2, default="d")
        schema = builder.build()
        self.assertEqual(run(schema, [])["pair"], ["d"])
        self.assertEqual(run(schema, ["a", "b"])["pair"], ["a", "b"])

    def testMissingLeadingArgumentsAreLenient(self):
        builder = Builder("prog")
        builder.add_argument("name")
        builder.add_argument("other", default="x")
        result = run(builder.build(), [])
        self.assertEqual(result["name"], "")
        self.assertEqual(result["other"], "x")

    def testAbsentSingleValuesAreStrings(self):
        builder = Builder("prog")
        builder.add_option("--level")
        builder.add_argument("name")
        result = run(builder.build(), [])
        self.assertIsInstance(result["level"], str)
        self.assertIsInstance(result["name"], str)
        self.assertEqual((result.level, result.name), ("", ""))

    def testTrailingTakesFromTheEnd(self):
        builder = Builder("prog")
        builder.add_argument("first")
        builder.add_argument("rest", nargs=UNLIMITED)
        builder.add_argument("last", nargs=2)
        result = run(builder.build(), ["a", "b", "c", "d", "e"])
        self.assertEqual(result["first"], "a")
        self.assertEqual(result["rest"], ["b", "c"])
        self.assertEqual(result["last"], ["d", "e"])

    def testSeveralTrailingInDeclarationOrder(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED)
        builder.add_argument("x")
        builder.add_argument("y")
        result = run(builder.build(), ["1", "2", "3", "4"])
        self.assertEqual(result["rest"], ["1", "2"])
        self.assertEqual(result["x"], "3")
        self.assertEqual(result["y"], "4")

    def testTrailingWithoutValuesIsFatal(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED)
        builder.add_argument("last")
        with self.assertRaises(MissingArgumentError):
            run(builder.build(), [])

    def testTrailingDefaultKeptWhenExhausted(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED)
        builder.add_argument("last", default="z")
        result = run(builder.build(), [])
        self.assertEqual(result["last"], "z")
        self.assertEqual(result["rest"], [])

    def testUnexpectedArgumentIsFatal(self):
        builder = Builder("prog")
        builder.add_flag("-v")
        with self.assertRaises(UnexpectedArgumentError) as context:
            run(builder.build(), ["foo"])
        self.assertEqual(context.exception.message, "unexpected argument: foo")

    def testExtraArgumentIsFatal(self):
        builder = Builder("prog")
        builder.add_argument("name")
        with self.assertRaises(UnexpectedArgumentError):
            run(builder.build(), ["a", "b"])

    def testFlagsDoNotConsumeSlots(self):
        builder = Builder("prog")
        builder.add_flag("-v")
        builder.add_argument("a")
        builder.add_argument("b")
        result = run(builder.build(), ["-v", "1", "-v", "2"])
        self.assertEqual((result["a"], result["b"]), ("1", "2"))


class TestSubcommands(TestCase):

    def setUp(self):
        builder = Builder("prog")
        builder.add_flag("-v", "--verbose")

        @builder.command
        def cmd(sub):
            sub.add_flag("-f")
            sub.add_argument("target", default="all")

            @sub.command
            def deep(leaf):
                leaf.add_argument("items", nargs=UNLIMITED)

        self.schema = builder.build()

    def testDispatch(self):
        result = run(self.schema, ["cmd", "-f"])
        self.assertEqual(result.command, "cmd")
        self.assertIs(result.child["f"], True)
        self.assertIs(result.child.parent, result)
        self.assertIs(result.child.schema, self.schema.command("cmd"))

    def testNoDispatch(self):
        result = run(self.schema, ["-v"])
        self.assertIsNone(result.command)
        self.assertIsNone(result.child)
        self.assertIs(result["verbose"], True)

    def testChildPositionalsStartAtZero(self):
        result = run(self.schema, ["-v", "cmd", "build"])
        self.assertEqual(result.child["target"], "build")

    def testNestedDispatch(self):
        result = run(self.schema, ["cmd", "x", "deep", "a", "b"])
        leaf = result.child.child
        self.assertEqual(result.child["target"], "x")
        self.assertEqual(leaf["items"], ["a", "b"])
        self.assertIs(leaf.root, result)
        self.assertEqual([step.schema.name for step in leaf.path], ["prog", "cmd", "deep"])
        self.assertEqual([step.schema.name for step in result.path], ["prog", "cmd", "deep"])

    def testCommandNameInsideLeadingSlotIsAValue(self):
        result = run(self.schema, ["cmd", "deep"])
        self.assertEqual(result.child["target"], "deep")
        self.assertIsNone(result.child.child)

    def testUnknownCommandIsFatal(self):
        with self.assertRaises(UnexpectedArgumentError) as context:
            run(self.schema, ["cdm"])
        self.assertIn("did you mean 'cmd'?", context.exception.options["hint"])

    def testParentFlagAfterDispatchIsUnknown(self):
        with self.assertWarns(UnknownFlagWarning):
            result = run(self.schema, ["cmd", "-v"])
        self.assertIs(result["verbose"], False)

    def testTokensBeforeCommandStayWithTheirNode(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED)
        builder.add_argument("last")
        sub = builder.add_subcommand("go")
        sub.add_argument("things", nargs=UNLIMITED)
        result = run(builder.build(), ["a", "b", "c", "go", "d", "e"])
        self.assertEqual(result["rest"], ["a", "b"])
        self.assertEqual(result["last"], "c")
        self.assertEqual(result.child["things"], ["d", "e"])

    def testUnlimitedCapturesNonCommands(self):
        builder = Builder("prog")
        builder.add_argument("rest", nargs=UNLIMITED)
        builder.add_subcommand("go")
        result = run(builder.build(), ["x", "y"])
        self.assertEqual(result["rest"], ["x", "y"])
        self.assertIsNone(result.command)


class TestDeferredActions(TestCase):

    def testQueuedInOrderWithTheirResults(self):
        calls = []
        builder = Builder("prog")
        builder.add_deferred_action(lambda result: calls.append(("first", result.schema.name)))
        builder.add_deferred_action(lambda result: calls.append(("second", result.schema.name)))
        sub = builder.add_subcommand("sub")
        sub.add_deferred_action(lambda result: calls.append(("sub", result.schema.name)))

        state = ParseState(["sub"])
        parse(builder.build(), state)
        self.assertEqual(calls, [])
        self.assertEqual(len(state.queue), 3)

        state.run()
        self.assertEqual(calls, [("first", "prog"), ("second", "prog"), ("sub", "sub")])
        state.run()
        self.assertEqual(len(calls), 3)

    def testNotQueuedForUnvisitedNodes(self):
        builder = Builder("prog")
        sub = builder.add_subcommand("sub")
        sub.add_deferred_action(lambda result: None)
        state = ParseState([])
        parse(builder.build(), state)
        self.assertEqual(state.queue, [])


class TestResult(TestCase):

    def setUp(self):
        builder = Builder("prog")
        builder.add_flag("-n", "--dry-run")
        builder.add_argument("files", nargs=UNLIMITED)
        self.result = run(builder.build(), ["-n", "a"])

    def testMapping(self):
        self.assertEqual(self.result, {"dry_run": True, "files": ["a"]})
        self.assertEqual(set(self.result), {"dry_run", "files"})
        self.assertEqual(len(self.result), 2)

    def testAttributeAccess(self):
        self.assertIs(self.result.dry_run, True)
        self.assertEqual(self.result.files, ["a"])
        with self.assertRaises(AttributeError):
            self.result.missing

    def testReadOnly(self):
        self.assertTrue(self.result.frozen)
        self.result["files"].append("b")
        self.assertEqual(self.result["files"], ["a"])
        with self.assertRaises(AttributeError):
            self.result.files = []
        with self.assertRaises(TypeError):
            self.result["files"] = []
        with self.assertRaises(RuntimeError):
            self.result._store("files", [])

    def testRepr(self):
        self.assertEqual(repr(self.result), "result('prog', {'dry_run': True, 'files': ['a']})")

    def testStandalone(self):
        builder = Builder("prog")
        result = Result(builder.build())
        self.assertFalse(result.frozen)
        self.assertIsNone(result.parent)
        self.assertEqual(result.path, (result,))


class TestSharedSchema(TestCase):

    def testConcurrentParses(self):
        builder = Builder("prog")
        builder.add_option("-o")
        builder.add_argument("rest", nargs=UNLIMITED)
        schema = builder.build()
        errors = []

        def worker(number):
            try:
                for _ in range(50):
                    result = run(schema, ["-o", str(number), str(number)])
                    if result["o"] != str(number) or result["rest"] != [str(number)]:
                        errors.append(number)
            except Exception as error:  # NOQA: BLE-001
                errors.append(error)

        threads = [threading.Thread(target=worker, args=(number,)) for number in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(errors, [])


if __name__ == "__main__":
    warnings.simplefilter("default")
    unittest.main()
