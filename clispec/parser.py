"""
clispec parser: a deterministic token state machine over a normalized spec.

What this module provides
- Parser: built once from a specification (normalized and indexed at
  construction time), then reused for any number of parse() calls.
- ParseResult / CommandResult: structured success values.
- Event: the value handed to the optional on_event observability hook.
- invoke(parser, argv): shell-style runner (prints help/errors and exits).

Token classification (while option parsing is active)
1. "--"            → stop option parsing for the rest of this command's tokens
2. "--name[=raw]"  → long option (also "--no-name" for negatable flags)
3. "-abc"          → short bundle; a value-bearing letter swallows the rest of
                     the bundle as its value (-cfooV gives "fooV")
4. "name"          → subcommand (canonical name or alias), when declared
5. anything else   → next positional slot

Failures are never raised out of parse(): they come back as ParseError values
(see faults), with help/version requests riding the same channel.

Quick start
    >>> parser = Parser({
    ...     "name": "mytool",
    ...     "options": [{"id": "verbose", "short": "v", "long": "verbose", "kind": "count"}],
    ...     "positionals": [{"id": "input", "metavar": "INPUT", "required": True}],
    ... })
    >>> result = parser.parse(["-vv", "in.txt"])
    >>> result.values["verbose"], result.positionals["input"]
    (2, 'in.txt')
"""
import logging
import math
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from . import formatting
from .constraints import check_constraints
from .faults import FaultCode, ParseError, trigger
from .normalizer import HELP_ID, VERSION_ID, normalize
from .specs import Kind, Type
from .suggestions import suggest

logger = logging.getLogger(__name__)

# plain decimal notation only: no digit separators, no non-ASCII digits, no nan/inf
_NUMERIC = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


@dataclass
class CommandResult:
    """
    the selected subcommand and what was parsed for it.

    name is the deepest selected command (last element of path); values,
    positionals and rest belong to this level; cmd holds the deeper levels.
    """
    name: str
    path: list[str]
    values: dict[str, Any]
    positionals: dict[str, Any]
    rest: list[str]
    cmd: "CommandResult | None" = None


@dataclass
class ParseResult:
    """
    a successful parse.

    - values: option id -> coerced value (lists for "values" options)
    - positionals: positional id -> value, or list for collecting positionals
    - rest: unrecognized tokens (only filled when allow_unknown is set)
    - cmd: selected subcommand, if any
    - argv0: program name as given, else the command's display name
    """
    ok: ClassVar[bool] = True

    values: dict[str, Any]
    positionals: dict[str, Any]
    rest: list[str] = field(default_factory=list)
    cmd: CommandResult | None = None
    argv0: str | None = None


@dataclass(frozen=True)
class Event:
    """
    observability record passed to on_event.

    type is one of: option, positional, command, unknown, rest, help, version.
    """
    type: str
    id: str | None = None
    value: Any = None
    raw: Any = None
    token: str | None = None
    index: int | None = None
    name: str | None = None
    path: tuple[str, ...] | None = None
    alias: str | None = None


class _Mode(Enum):
    OPTIONS = "options"
    POSITIONAL = "positional"


def _number(raw, /):
    if not _NUMERIC.fullmatch(raw):
        raise ValueError(raw)
    try:
        return int(raw)
    except ValueError:
        pass
    number = float(raw)
    if not math.isfinite(number):
        raise ValueError(raw)
    return number


def coerce(spec, raw, /):
    """
    convert a raw token according to spec.type.

    raises ValueError carrying a short reason when the token does not fit.
    """
    match spec.type:
        case Type.STRING:
            return raw
        case Type.NUMBER:
            try:
                return _number(raw)
            except ValueError:
                raise ValueError("expected a number") from None
        case Type.INTEGER:
            try:
                number = _number(raw)
            except ValueError:
                raise ValueError("expected an integer") from None
            if isinstance(number, float):
                if not number.is_integer():
                    raise ValueError("expected an integer")
                number = int(number)
            return number
        case Type.ENUM:
            if raw not in spec.choices:
                raise ValueError("expected one of: " + ", ".join(spec.choices))
            return raw


def run_validator(validate, value, /):
    """
    run a validate predicate; return a rejection reason, or None when accepted.

    accepted outcomes: True/None (accept), False (reject), (False, reason) or a
    plain reason string (reject with reason). A predicate that raises is a rejection.
    """
    if validate is None:
        return None
    try:
        outcome = validate(value)
    except Exception as exception:
        return f"validator raised error: {exception}"
    match outcome:
        case None | True:
            return None
        case False:
            return "validation failed"
        case (False, reason):
            return str(reason) if reason else "validation failed"
        case (True, *_):
            return None
        case str():
            return outcome or "validation failed"
        case _:
            return None if outcome else "validation failed"


def _default(option, /):
    if option.default is not None:
        if option.kind is Kind.VALUES and isinstance(option.default, list | tuple):
            return list(option.default)
        return option.default
    match option.kind:
        case Kind.FLAG:
            return False
        case Kind.COUNT:
            return 0
        case Kind.VALUES:
            return []
        case _:
            return None


class _Pass:
    """
    per-call scanning state; nothing here outlives a single parse() call.
    """

    def __init__(self, parser, tokens, /, *, allow_unknown, stop_at_first_positional, on_event, argv0):
        self.parser = parser
        self.node = node = parser.node
        self.tokens = tokens
        self.at = 0
        self.mode = _Mode.OPTIONS
        self.cursor = 0
        self.seen = set()
        self.allow_unknown = allow_unknown
        self.stop_at_first_positional = stop_at_first_positional
        self.on_event = on_event
        self.argv0 = argv0
        self.result = ParseResult(
            values={option.id: _default(option) for option in node.spec.options},
            positionals={
                positional.id: [] if positional.collects else None for positional in node.spec.positionals
            },
            argv0=argv0 if argv0 is not None else node.name,
        )

    def fault(self, code, message, token=None, /):
        return ParseError(code, message, token, usage=formatting.usage(self.node))

    def emit(self, event, /):
        if self.on_event is None:
            return
        try:
            outcome = self.on_event(event)
        except Exception as exception:
            raise self.fault(FaultCode.CALLBACK_ERROR, str(exception) or type(exception).__name__, event.token) from exception
        match outcome:
            case False:
                raise self.fault(FaultCode.CALLBACK_ERROR, "stopped", event.token)
            case (False, reason):
                raise self.fault(FaultCode.CALLBACK_ERROR, str(reason) if reason else "stopped", event.token)

    def next(self, message, token, /):
        self.at += 1
        if self.at >= len(self.tokens):
            raise self.fault(FaultCode.MISSING_VALUE, message, token)
        return self.tokens[self.at]

    def unknown(self, token, /):
        self.result.rest.append(token)
        self.emit(Event("unknown", token=token))

    def run(self):
        while self.at < len(self.tokens):
            token = self.tokens[self.at]
            if self.mode is _Mode.OPTIONS:
                if token == "--":
                    self.mode = _Mode.POSITIONAL
                    self.at += 1
                    continue
                if token.startswith("--"):
                    self.long(token)
                    self.at += 1
                    continue
                if token.startswith("-") and token != "-":
                    self.bundle(token)
                    self.at += 1
                    continue
                if self.command(token):
                    break
            self.positional(token)
            self.at += 1

        self.finish()
        return self.result

    def intercept(self, option, token, /):
        if not option.internal:
            return
        if option.id == HELP_ID:
            self.emit(Event("help", token=token))
            raise ParseError(FaultCode.HELP, "help requested", token, text=self.parser.help())
        if option.id == VERSION_ID:
            self.emit(Event("version", token=token))
            raise ParseError(FaultCode.VERSION, "version requested", token, text=self.parser.version())

    def long(self, token, /):
        index = self.node.index
        name, equals, raw = token[2:].partition("=")
        raw = raw if equals else None

        option = index.long_map.get(name)
        negated = False
        if option is None and raw is None and name.startswith("no-"):
            base = index.long_map.get(name[3:])
            if base is not None and base.kind is Kind.FLAG and base.negatable:
                option, negated = base, True

        if option is None:
            if self.allow_unknown:
                return self.unknown(token)
            candidates = [*index.long_map, *("no-" + known.long for known in self.node.spec.options if known.negatable)]
            message = "unknown option: --" + name
            if (hint := suggest(name, candidates)) is not None:
                message += f" (did you mean --{hint}?)"
            raise self.fault(FaultCode.UNKNOWN_OPTION, message, token)

        self.intercept(option, token)

        if negated:
            return self.apply(option, False, "--no-" + option.long, token)
        if option.bearing and raw is None:
            raw = self.next("missing value for option: --" + name, token)
        self.apply(option, raw, "--" + name, token)

    def bundle(self, token, /):
        index = self.node.index
        body = token[1:]
        position = 0
        while position < len(body):
            label = "-" + (char := body[position])
            option = index.short_map.get(char)
            if option is None:
                if not self.allow_unknown:
                    raise self.fault(FaultCode.UNKNOWN_OPTION, "unknown option: " + label, label)
                self.unknown(label)
                position += 1
                continue

            self.intercept(option, label)

            if option.bearing:
                # the untouched remainder of the bundle is the value, whatever it looks like
                if position + 1 < len(body):
                    raw = body[position + 1:]
                else:
                    raw = self.next("missing value for option: " + label, label)
                self.apply(option, raw, label, label)
                break

            self.apply(option, None, label, label)
            position += 1

    def apply(self, option, raw, label, token, /):
        values = self.result.values
        if option.kind is not Kind.VALUES and not option.repeatable and option.id in self.seen:
            raise self.fault(FaultCode.OPTION_REPEATED, "option may not be repeated: " + option.label, token)

        match option.kind:
            case Kind.FLAG:
                value = raw is not False
            case Kind.COUNT:
                current = values[option.id]
                if not isinstance(current, int) or isinstance(current, bool):
                    current = 0
                if option.max_count is not None and current + 1 > option.max_count:
                    raise self.fault(FaultCode.TOO_MANY_OCCURRENCES, "too many occurrences of option: " + option.label, token)
                value = current + 1
            case _:
                try:
                    value = coerce(option, raw)
                except ValueError as exception:
                    raise self.fault(FaultCode.INVALID_VALUE, f"invalid value for {label}: {exception}", token) from None

        if (reason := run_validator(option.validate, value)) is not None:
            raise self.fault(FaultCode.INVALID_VALUE, f"invalid value for {label}: {reason}", token)

        if option.kind is Kind.VALUES:
            if option.id not in self.seen:
                values[option.id] = []
            values[option.id].append(value)
        else:
            values[option.id] = value
        self.seen.add(option.id)
        self.emit(Event("option", id=option.id, value=value, raw=raw, token=label))

    def command(self, token, /):
        spec = self.node.spec
        if not spec.subcommands:
            return False

        command = self.node.index.command_map.get(token)
        if command is None:
            if not spec.positionals and self.cursor == 0:
                message = "unknown command: " + token
                if (hint := suggest(token, [known.name for known in spec.subcommands])) is not None:
                    message += f" (did you mean '{hint}'?)"
                raise self.fault(FaultCode.UNKNOWN_COMMAND, message, token)
            return False

        self.emit(Event(
            "command",
            name=command.name,
            path=(command.name,),
            token=token,
            alias=token if token != command.name else None,
        ))

        child = self.parser.child(command.name)
        logger.debug("descending from %r into %r", self.node.name, child.name)
        outcome = child._parse(
            self.tokens[self.at + 1:],
            allow_unknown=self.allow_unknown,
            stop_at_first_positional=self.stop_at_first_positional,
            on_event=self.on_event,
            argv0=self.argv0,
        )
        if isinstance(outcome, ParseError):
            raise outcome

        path = [command.name, *(outcome.cmd.path if outcome.cmd is not None else ())]
        self.result.cmd = CommandResult(
            name=path[-1],
            path=path,
            values=outcome.values,
            positionals=outcome.positionals,
            rest=outcome.rest,
            cmd=outcome.cmd,
        )
        return True

    def positional(self, token, /):
        if self.mode is _Mode.OPTIONS and self.stop_at_first_positional:
            self.mode = _Mode.POSITIONAL

        positionals = self.node.spec.positionals
        if self.cursor >= len(positionals):
            if not self.allow_unknown:
                raise self.fault(FaultCode.TOO_MANY_POSITIONALS, "too many positional arguments: " + token, token)
            self.result.rest.append(token)
            self.emit(Event("rest", token=token))
            return

        positional = positionals[self.cursor]
        try:
            value = coerce(positional, token)
        except ValueError as exception:
            raise self.fault(FaultCode.INVALID_VALUE, f"invalid value for {positional.metavar}: {exception}", token) from None
        if (reason := run_validator(positional.validate, value)) is not None:
            raise self.fault(FaultCode.INVALID_VALUE, f"invalid value for {positional.metavar}: {reason}", token)

        if positional.collects:
            self.result.positionals[positional.id].append(value)
        else:
            self.result.positionals[positional.id] = value
        self.emit(Event("positional", id=positional.id, value=value, raw=token, token=token, index=self.cursor))

        if not positional.variadic:
            self.cursor += 1

    def finish(self):
        spec = self.node.spec
        for option in spec.options:
            if option.required and option.id not in self.seen:
                raise self.fault(FaultCode.MISSING_REQUIRED, "missing required option: " + option.label, option.label)

        for positional in spec.positionals:
            if positional.required and self.result.positionals[positional.id] in (None, []):
                raise self.fault(
                    FaultCode.MISSING_REQUIRED,
                    "missing required positional: " + positional.metavar,
                    positional.metavar
                )

        if (violation := check_constraints(self.node, self.seen)) is not None:
            raise violation


class Parser:
    """
    declarative command-line parser.

    construction
    - Parser(spec, *, auto_help=True, auto_version=True, width=100)
      spec is a specs.Command or a plain mapping of the same fields. It is
      validated and normalized once; malformed specifications raise TypeError or
      ValueError here and never at parse time.

    parsing
    - parse(tokens, *, start_index=0, allow_unknown=False,
            stop_at_first_positional=False, on_event=None, argv0=None)
      returns a ParseResult on success and a ParseError otherwise. The parser
      is never mutated by parse(), so one instance can serve any number of calls.

    rendering
    - usage(), help(width=...), version(): text for this parser's command.
    """

    def __init__(self, spec, /, *, auto_help=True, auto_version=True, width=100):
        self._tree = normalize(spec, auto_help=auto_help, auto_version=auto_version)
        self._position = 0
        self._width = width

    @classmethod
    def _view(cls, tree, position, width, /):
        self = object.__new__(cls)
        self._tree = tree
        self._position = position
        self._width = width
        return self

    @property
    def tree(self):
        return self._tree

    @property
    def node(self):
        return self._tree[self._position]

    @property
    def spec(self):
        return self.node.spec

    @property
    def name(self):
        """
        full display name, e.g. "mytool run" for the run subcommand.
        """
        return self.node.name

    @property
    def path(self):
        return self.node.path

    def __repr__(self):
        return f"parser({self.name!r})"

    def child(self, name, /):
        """
        parser for a direct subcommand, looked up by canonical name or alias.

        raises KeyError for unknown names.
        """
        command = self.node.index.command_map[name]
        return Parser._view(self._tree, self.node.children[command.name], self._width)

    def usage(self):
        return formatting.usage(self.node)

    def help(self, *, width=None, include_description=True, include_defaults=True):
        return formatting.help(
            self._tree,
            self._position,
            width=self._width if width is None else width,
            include_description=include_description,
            include_defaults=include_defaults,
        )

    def version(self):
        return formatting.version(self.node)

    def parse(
            self,
            tokens,
            /,
            *,
            start_index=0,
            allow_unknown=False,
            stop_at_first_positional=False,
            on_event=None,
            argv0=None,
    ):
        """
        parse an ordered sequence of tokens.

        parameters
        - tokens: iterable of str (without the program name unless start_index skips it)
        - start_index: number of leading tokens to skip
        - allow_unknown: collect unrecognized options and surplus positionals into
          rest instead of failing
        - stop_at_first_positional: treat everything after the first positional as
          positional (as if "--" had been given right before it)
        - on_event: optional callable receiving an Event per recognized item; it may
          return False (or (False, reason)) to stop the parse with callback_error
        - argv0: program name reported back in the result

        returns
        - ParseResult on success, ParseError otherwise (never raised).
        """
        tokens = [str(token) for token in tokens][start_index:]
        logger.debug("parsing %r: %d tokens", self.name, len(tokens))
        outcome = self._parse(
            tokens,
            allow_unknown=allow_unknown,
            stop_at_first_positional=stop_at_first_positional,
            on_event=on_event,
            argv0=argv0,
        )
        if isinstance(outcome, ParseError):
            logger.debug("parse of %r stopped with %s: %s", self.name, outcome.code, outcome.message)
        return outcome

    def _parse(self, tokens, /, **options):
        try:
            return _Pass(self, tokens, **options).run()
        except ParseError as fault:
            return fault


def invoke(parser, argv=None, /, *, colorful=True, **options):
    """
    run a parser against sys.argv-shaped input, shell style.

    argv[0] is the program name (defaults to sys.argv). On success the
    ParseResult is returned; otherwise the fault is printed (help/version to
    stdout, errors to stderr) and the process exits (0 for help/version, 2 otherwise).
    """
    if argv is None:
        argv = sys.argv
    argv = list(argv)
    outcome = parser.parse(argv[1:], argv0=argv[0] if argv else None, **options)
    if isinstance(outcome, ParseError):
        trigger(outcome, shell=True, colorful=colorful)
    return outcome


__all__ = (
    "CommandResult",
    "Event",
    "ParseResult",
    "Parser",
    "coerce",
    "invoke",
    "run_validator",
)
