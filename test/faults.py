"""
Faults tests (ParseError values, trigger() and shell-mode invoke()).

Scope
- Validate ParseError fields, text composition, equality and codes.
- Validate trigger(): raising outside shell mode, printing and exiting inside it.
- Validate invoke() against sys.argv-shaped input.
- Validate rich rendering integration.

Conventions
- Test method names follow CamelCase per project convention.
- Shell output is captured by redirecting sys.stdout/sys.stderr.
"""
import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import TestCase

from rich.console import Console

from clispec import FaultCode, ParseError, ParseResult, Parser, invoke, trigger
from clispec.faults import HINT


def make_parser():
    return Parser({
        "name": "mytool",
        "version": "1.2.3",
        "options": [{"id": "verbose", "short": "v", "long": "verbose", "kind": "count"}],
        "positionals": [{"id": "input", "required": True}],
    })


class TestParseError(TestCase):
    """Behavioral tests for ParseError values."""

    def testTextComposition(self):
        fault = ParseError("unknown_option", "unknown option: --x", "--x", usage="Usage: mytool")
        self.assertIs(fault.code, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(fault.text, f"unknown option: --x\n\nUsage: mytool\n\n{HINT}\n")
        self.assertEqual(str(fault), "unknown option: --x")

    def testExplicitText(self):
        fault = ParseError(FaultCode.HELP, "help requested", text="help text\n")
        self.assertEqual(fault.text, "help text\n")
        self.assertIsNone(fault.usage)

    def testUnknownCodeRejected(self):
        with self.assertRaises(ValueError):
            ParseError("bogus", "message")

    def testCodesCompareAsStrings(self):
        self.assertEqual(FaultCode.MISSING_ONE_OF, "missing_one_of")
        self.assertTrue(FaultCode.HELP.terminal)
        self.assertTrue(FaultCode.VERSION.terminal)
        self.assertFalse(FaultCode.CALLBACK_ERROR.terminal)

    def testEquality(self):
        first = ParseError("missing_value", "missing value for option: -c", "-c", usage="Usage: mytool")
        second = ParseError("missing_value", "missing value for option: -c", "-c", usage="Usage: mytool")
        self.assertEqual(first, second)
        self.assertEqual(hash(first), hash(second))
        self.assertNotEqual(first, ParseError("missing_value", "other", "-c", usage="Usage: mytool"))

    def testRepr(self):
        fault = ParseError("unknown_command", "unknown command: x", "x")
        self.assertEqual(repr(fault), "ParseError(code='unknown_command', message='unknown command: x', token='x')")

    def testRichRendering(self):
        fault = make_parser().parse(["--weird"])
        console = Console(file=io.StringIO(), color_system=None, width=120)
        console.print(fault)
        output = console.file.getvalue()
        self.assertIn("unknown option: --weird", output)
        self.assertIn("Usage: mytool [OPTIONS] INPUT", output)
        self.assertIn(HINT, output)


class TestTrigger(TestCase):
    """Behavioral tests for trigger()."""

    def testRaisesOutsideShell(self):
        fault = make_parser().parse([])
        with self.assertRaises(ParseError) as context:
            trigger(fault)
        self.assertIs(context.exception, fault)

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger("unknown option")

    def testShellErrorGoesToStderr(self):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            trigger(make_parser().parse([]), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 2)
        self.assertEqual(stdout.getvalue(), "")
        self.assertIn("missing required positional: INPUT", stderr.getvalue())
        self.assertIn(HINT, stderr.getvalue())

    def testShellHelpGoesToStdout(self):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            trigger(make_parser().parse(["--help"]), shell=True, colorful=False)
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stderr.getvalue(), "")
        self.assertIn("Usage: mytool [OPTIONS] INPUT", stdout.getvalue())
        self.assertIn("-V, --version", stdout.getvalue())


class TestInvoke(TestCase):
    """Behavioral tests for invoke()."""

    def testSuccessReturnsResult(self):
        result = invoke(make_parser(), ["./mytool", "-v", "in.txt"])
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(result.argv0, "./mytool")
        self.assertEqual(result.values["verbose"], 1)

    def testParseOptionsAreForwarded(self):
        result = invoke(make_parser(), ["mytool", "in.txt", "extra"], allow_unknown=True)
        self.assertEqual(result.rest, ["extra"])

    def testVersionExitsZero(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            invoke(make_parser(), ["mytool", "--version"], colorful=False)
        self.assertEqual(context.exception.code, 0)
        self.assertEqual(stdout.getvalue().strip(), "mytool 1.2.3")

    def testErrorExitsTwo(self):
        stderr = io.StringIO()
        with redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            invoke(make_parser(), ["mytool", "--verboes", "in.txt"], colorful=False)
        self.assertEqual(context.exception.code, 2)
        self.assertIn("did you mean --verbose?", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
