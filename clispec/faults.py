"""
clispec faults (parse-time errors) and rendering.

Scope
- FaultCode: canonical, stable identifiers for everything parse() can hand back
  instead of a result, including the two non-error stops (help, version).
- ParseError: the value returned by parse() on failure. It is an Exception so
  callers may raise it, but the parser itself never does: user errors are data.
- trigger(): central entry point to surface a fault, either by raising it or,
  in shell mode, by printing it with rich and exiting.

Text contract
- For help/version, `text` is the rendered help/version output itself.
- For every other code, `text` is the message, a blank line, the usage line, a
  blank line and "Run with --help for more information.", so a minimal caller
  can print `text` and get a correct CLI error experience.

Styling
- Only trigger() in shell mode applies colors. The host application may define
  a __styles__ mapping in __main__ to override any palette entry.
"""
import sys
from collections import defaultdict
from enum import StrEnum

from rich.console import Console, Group
from rich.text import Text

HINT = "Run with --help for more information."


class FaultCode(StrEnum):
    """
    canonical fault codes (stable identifiers, compare equal to their strings).

    grouping
    - options: UNKNOWN_OPTION, MISSING_VALUE, INVALID_VALUE, OPTION_REPEATED,
      TOO_MANY_OCCURRENCES
    - structure: MISSING_REQUIRED, UNKNOWN_COMMAND, TOO_MANY_POSITIONALS
    - constraints: MUTUALLY_EXCLUSIVE, MISSING_ONE_OF
    - hooks: CALLBACK_ERROR (an on_event callback stopped the parse)
    - stops: HELP, VERSION (not errors; text carries the requested output)
    """
    UNKNOWN_OPTION = "unknown_option"
    MISSING_VALUE = "missing_value"
    INVALID_VALUE = "invalid_value"
    MISSING_REQUIRED = "missing_required"
    UNKNOWN_COMMAND = "unknown_command"
    OPTION_REPEATED = "option_repeated"
    TOO_MANY_OCCURRENCES = "too_many_occurrences"
    MUTUALLY_EXCLUSIVE = "mutually_exclusive"
    MISSING_ONE_OF = "missing_one_of"
    TOO_MANY_POSITIONALS = "too_many_positionals"
    CALLBACK_ERROR = "callback_error"
    HELP = "help"
    VERSION = "version"

    @property
    def terminal(self):
        """
        whether this code is a requested stop (help/version) rather than an error.
        """
        return self in (FaultCode.HELP, FaultCode.VERSION)


class ParseError(Exception):
    """
    structured parse failure: code, message, offending token and rendered text.

    - code: FaultCode
    - message: short human-readable message ("unknown option: --verboes (did you mean --verbose?)")
    - token: the offending token or label, when there is one
    - text: fully rendered output (see module docstring)
    - usage: usage line of the command that failed (None for help/version)
    """
    ok = False

    def __init__(self, code, message, /, token=None, *, usage=None, text=None):
        super().__init__(message)
        self.code = FaultCode(code)
        self.message = message
        self.token = token
        self.usage = usage
        if text is None:
            text = message if usage is None else f"{message}\n\n{usage}\n\n{HINT}\n"
        self.text = text

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self.code, self.message, self.token, self.text) == (other.code, other.message, other.token, other.text)

    def __hash__(self):
        return hash((self.code, self.message, self.token, self.text))

    def __repr__(self):
        return f"{type(self).__name__}(code={str(self.code)!r}, message={self.message!r}, token={self.token!r})"

    def __rich__(self):
        styles = defaultdict(str, {
            # help/version output
            "usage": "bold #36C5F0",  # sky-blue usage line
            "section": "bold #FFFFFF",  # pure white section headers
            "body": "",

            # errors
            "error-message": "bold #FF4DA6",  # friendly pinky message
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(__import__("__main__"), "__styles__", {}))

        if not self.code.terminal:
            return Group(
                Text(self.message, styles["error-message"]),
                Text(""),
                Text(self.usage or "", styles["usage"]),
                Text(""),
                Text(HINT, styles["hint"]),
            )

        text = Text()
        for line in self.text.rstrip("\n").split("\n"):
            if line.startswith("Usage: "):
                style = styles["usage"]
            elif line.endswith(":") and not line.startswith(" "):
                style = styles["section"]
            else:
                style = styles["body"]
            text.append(line, style).append("\n")
        text.rstrip()
        return text


def trigger(fault, /, *, shell=False, colorful=True):
    """
    surface a fault.

    - outside shell mode the fault is raised, to be handled by the caller.
    - in shell mode it is printed with rich (stdout for help/version, stderr
      otherwise) and the process exits with status 0 for help/version, 2 otherwise.
    """
    if not isinstance(fault, ParseError):
        raise TypeError("trigger() argument must be a parse error")
    if not shell:
        raise fault
    console = Console(
        stderr=not fault.code.terminal,
        color_system="auto" if colorful else None,
        highlight=False,
    )
    console.print(fault, soft_wrap=True)
    sys.exit(0 if fault.code.terminal else 2)


__all__ = (
    "FaultCode",
    "ParseError",
    "trigger",
)
