r"""
clispec specification objects.

Overview
- Specs
  • Option: one declared flag/value option (-v/--verbose, --config FILE, ...).
  • Positional: one positional argument slot (INPUT, ARGS...).
  • Constraints: mutual-exclusion ("mutex") and at-least-one ("one_of") groups.
  • Command: a named (sub)command carrying options, positionals, nested commands,
    help metadata and constraints. The root specification is a Command too.

- Enumerations
  • Kind: flag | count | value | values
  • Type: string | number | int | enum

Construction
- Every spec sanitizes its metadata at construction time. Invalid combinations
  (max_count on a flag, negatable without a long name, enum without choices,
  a non-last variadic positional, duplicated ids/names/aliases...) are programmer
  errors: they raise TypeError (wrong type) or ValueError (wrong value) right away
  and never surface at parse time.
- Plain mappings are accepted wherever a nested spec is expected, so a whole
  specification may be authored as data:

    >>> Command("mytool", options=[{"id": "verbose", "short": "v", "kind": "count"}])
    command(name='mytool', ...)

Immutability
- Sanitized metadata is stored in private fields and exposed through read-only
  properties (see SpecType and utils.mirror). Containers come back as fresh
  tuples/dicts, so nothing reachable from a spec can be mutated after the fact.
- __replace__(**overrides) builds a new, re-validated spec with some fields changed.
"""
import builtins
import functools
import operator
import re
from collections.abc import Iterable, Mapping
from enum import StrEnum

from .utils import *


class Kind(StrEnum):
    """
    what an option (or positional) does with its occurrences.

    - FLAG: boolean, True when present.
    - COUNT: number of occurrences.
    - VALUE: one token per occurrence, the latest wins.
    - VALUES: one token per occurrence, accumulated into a list.
    """
    FLAG = "flag"
    COUNT = "count"
    VALUE = "value"
    VALUES = "values"


class Type(StrEnum):
    """
    how a raw token is coerced before it is stored.
    """
    STRING = "string"
    NUMBER = "number"
    INTEGER = "int"
    ENUM = "enum"


class SpecType(type):
    """
    Metaclass that turns spec classes into introspectable, read-only records.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" field.
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    - Provide __replace__(**overrides), rebuilding (and re-validating) a spec.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in programmer-error messages.
    """
    __introspectable__ = ()

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

        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = rename(__repr__, "__repr__")

        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = rename(__rich_repr__, "__rich_repr__")

        def __replace__(self, /, **overrides):
            fields = {name: getattr(self, name) for name in type(self).__introspectable__}
            return type(self)(**(fields | overrides))
        self.__replace__ = rename(__replace__, "__replace__")

        return self


def _given(object, /):
    """
    Internal: read an explicit None as “not provided” (the form __replace__ hands back).
    """
    return Unset if object is None else object


def _text(cls, metadata, key, /, *, default=None, spaces=True):
    """
    Internal: validate an optional text field (Unset or non-empty string).

    Strings are trimmed; empty strings are rejected. With spaces=False any
    whitespace inside the value is rejected too (command-line tokens).
    """
    if not isinstance(value := metadata[key], str | Unset):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    elif isinstance(value, str):
        if not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
        if not spaces and re.search(r"\s", value):
            raise ValueError(f"{cls.__typename__} {key!r} must not contain whitespace")
    metadata[key] = coalesce(value, default)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize metadata shared by Option and Positional.

    - id: required, non-empty string without whitespace. Ids starting with "__"
      are reserved for the implicit --help/--version options.
    - help: optional text; defaults to None.
    - validate: optional callable receiving the coerced value.
    """
    if not isinstance(id := metadata["id"], str):
        raise TypeError(f"{cls.__typename__} 'id' must be a string")
    _text(cls, metadata, "id", spaces=False)
    if metadata["id"] is None:
        raise ValueError(f"{cls.__typename__} 'id' cannot be empty")
    if id.startswith("__") and not metadata.get("internal"):
        raise ValueError(f"{cls.__typename__} ids starting with '__' are reserved (got {id!r})")

    if not isinstance(help := metadata["help"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")
    metadata["help"] = coalesce(help) or None

    if metadata["validate"] is not Unset and not callable(metadata["validate"]):
        raise TypeError(f"{cls.__typename__} 'validate' must be callable")
    metadata["validate"] = coalesce(metadata["validate"])


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate the tokens that bind an option and its kind-specific controls.

    - short: a single character, not '-' and not whitespace.
    - long: a name without whitespace and without leading dashes.
    - kind: any Kind (strings accepted).
    - negatable: only for flags, and only when a long name is set (--no-<long>).
    - max_count: only for counts, a non-negative integer.
    """
    _text(cls, metadata, "short", spaces=False)
    if (short := metadata["short"]) is not None and (len(short) != 1 or short == "-"):
        raise ValueError(f"{cls.__typename__} 'short' must be a single character other than '-'")

    _text(cls, metadata, "long", spaces=False)
    if (long := metadata["long"]) is not None and long.startswith("-"):
        raise ValueError(f"{cls.__typename__} 'long' must be given without leading dashes")

    try:
        metadata["kind"] = kind = Kind(metadata["kind"])
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'kind' must be one of {', '.join(Kind)}") from None

    if metadata["negatable"]:
        if kind is not Kind.FLAG:
            raise ValueError(f"{cls.__typename__} 'negatable' is only valid for kind='flag'")
        if long is None:
            raise ValueError(f"negatable {cls.__typename__} requires a 'long' name")

    if (count := metadata["max_count"]) is not Unset:
        if kind is not Kind.COUNT:
            raise ValueError(f"{cls.__typename__} 'max_count' is only valid for kind='count'")
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError(f"{cls.__typename__} 'max_count' must be an integer")
        if count < 0:
            raise ValueError(f"{cls.__typename__} 'max_count' must be a non-negative integer")
    metadata["max_count"] = coalesce(count)


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate metadata for value-bearing specs.

    - type: any Type (strings accepted). When omitted, declaring choices implies
      Type.ENUM; otherwise Type.STRING.
    - choices: iterable of strings; duplicates are rejected and the collection is
      normalized to a tuple (declaration order is kept for help and messages).
      Enum types require at least one choice; other types accept none.
    - metavar: optional non-empty label used in usage/help.
    """
    if isinstance(choices := metadata["choices"], str) or not isinstance(choices, Iterable):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
    sanitized = []
    for choice in choices:
        if not isinstance(choice, str):
            raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    try:
        metadata["type"] = type = Type(coalesce(metadata["type"], Type.ENUM if sanitized else Type.STRING))
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'type' must be one of {', '.join(Type)}") from None

    if type is Type.ENUM and not sanitized:
        raise ValueError(f"enum {cls.__typename__} must define choices")
    if type is not Type.ENUM and sanitized:
        raise ValueError(f"{cls.__typename__} 'choices' require type='enum'")

    _text(cls, metadata, "metavar", spaces=False)


class Option(metaclass=SpecType):
    """
    One declared flag/value option.

    Highlights
    - Bound by a short letter (-v), a long name (--verbose), or both.
    - kind decides what an occurrence does (see Kind); type decides how the raw
      token of value-bearing kinds is coerced (see Type).
    - repeatable=False forbids repeated flag/count/value occurrences.
    - negatable flags also accept --no-<long>, which sets them back to False.
    - max_count caps the number of occurrences of a count option.
    - group is the help section label (defaults to "Options").
    """

    __introspectable__ = (
        "id",
        "short",
        "long",
        "kind",
        "type",
        "choices",
        "default",
        "required",
        "negatable",
        "repeatable",
        "max_count",
        "metavar",
        "group",
        "validate",
        "help",
        "internal",
    )

    def __init__(
            self,
            id,
            short=Unset,
            long=Unset,
            kind=Kind.FLAG,
            type=Unset,
            *,
            choices=(),
            default=None,
            required=False,
            negatable=False,
            repeatable=True,
            max_count=Unset,
            metavar=Unset,
            group=Unset,
            validate=Unset,
            help=Unset,
            internal=False,
    ):
        metadata = {
            "id": id,
            "short": _given(short),
            "long": _given(long),
            "kind": kind,
            "type": _given(type),
            "choices": choices,
            "default": default,
            "required": bool(required),
            "negatable": bool(negatable),
            "repeatable": bool(repeatable),
            "max_count": _given(max_count),
            "metavar": _given(metavar),
            "group": _given(group),
            "validate": _given(validate),
            "help": _given(help),
            "internal": bool(internal),
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_named_metadata(builtins.type(self), metadata)
        _sanitize_parametric_metadata(builtins.type(self), metadata)
        _text(builtins.type(self), metadata, "group")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def label(self):
        """
        human-readable label used in messages: --long, else -s, else the id.
        """
        if self._long is not None:
            return "--" + self._long
        if self._short is not None:
            return "-" + self._short
        return self._id

    @property
    def bearing(self):
        """
        whether occurrences consume a raw value token.
        """
        return self._kind in (Kind.VALUE, Kind.VALUES)


class Positional(metaclass=SpecType):
    """
    One positional argument slot.

    Positionals bind in declaration order. A "values" positional collects into a
    list; a variadic positional additionally keeps consuming every remaining
    token and therefore must be the last one declared.
    """

    __introspectable__ = (
        "id",
        "metavar",
        "kind",
        "type",
        "choices",
        "required",
        "variadic",
        "validate",
        "help",
    )

    def __init__(
            self,
            id,
            metavar=Unset,
            kind=Kind.VALUE,
            type=Unset,
            *,
            choices=(),
            required=False,
            variadic=False,
            validate=Unset,
            help=Unset,
    ):
        metadata = {
            "id": id,
            "metavar": _given(metavar),
            "kind": kind,
            "type": _given(type),
            "choices": choices,
            "required": bool(required),
            "variadic": bool(variadic),
            "validate": _given(validate),
            "help": _given(help),
        }
        cls = builtins.type(self)
        _sanitize_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)

        try:
            metadata["kind"] = Kind(metadata["kind"])
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'kind' must be 'value' or 'values'") from None
        if metadata["kind"] not in (Kind.VALUE, Kind.VALUES):
            raise ValueError(f"{cls.__typename__} 'kind' must be 'value' or 'values'")

        metadata["metavar"] = metadata["metavar"] or metadata["id"].upper()

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def collects(self):
        """
        whether bound values accumulate into a list.
        """
        return self._kind is Kind.VALUES or self._variadic


def _groups(cls, key, groups, minimum, /):
    """
    Internal: normalize one family of constraint groups into a tuple of id tuples.
    """
    if isinstance(groups, str) or not isinstance(groups, Iterable):
        raise TypeError(f"{cls.__typename__} {key!r} must be an iterable of id groups")
    sanitized = []
    for group in groups:
        if isinstance(group, str) or not isinstance(group, Iterable):
            raise TypeError(f"{cls.__typename__} {key!r} groups must be iterables of option ids")
        ids = []
        for id in group:
            if not isinstance(id, str) or not id:
                raise TypeError(f"{cls.__typename__} {key!r} groups must contain non-empty option ids")
            if id in ids:
                raise ValueError(f"duplicate option id in {cls.__typename__} {key!r} group: {id}")
            ids.append(id)
        if len(ids) < minimum:
            raise ValueError(f"{cls.__typename__} {key!r} groups must have at least {minimum} items")
        sanitized.append(tuple(ids))
    return tuple(sanitized)


class Constraints(metaclass=SpecType):
    """
    Declarative rules over which options may co-occur.

    - mutex: groups of at least two option ids; at most one of each may be given.
    - one_of: groups of at least one option id; at least one of each must be given.

    Ids are checked against the owning Command's options when the command is built.
    """

    __introspectable__ = (
        "mutex",
        "one_of",
    )

    def __init__(self, mutex=(), one_of=()):
        self._mutex = _groups(type(self), "mutex", mutex, 2)
        self._one_of = _groups(type(self), "one_of", one_of, 1)

    def __iter__(self):
        """
        iterate over every referenced option id (with repeats).
        """
        for group in (*self._mutex, *self._one_of):
            yield from group


def _coerce(cls, object, /):
    """
    Internal: accept either an instance of cls or a mapping of its fields.
    """
    if isinstance(object, cls):
        return object
    if isinstance(object, Mapping):
        return cls(**object)
    raise TypeError(f"expected {cls.__typename__} or mapping, got {type(object).__name__}")


def _sanitize_examples(cls, examples, /):
    """
    Internal: normalize examples into (command, description-or-None) pairs.

    Accepted forms: "cmd", ("cmd", "desc") and {"cmd": ..., "desc": ...}.
    """
    if isinstance(examples, str) or not isinstance(examples, Iterable):
        raise TypeError(f"{cls.__typename__} 'examples' must be an iterable")
    sanitized = []
    for example in examples:
        match example:
            case str():
                sanitized.append((example, None))
            case Mapping():
                sanitized.append((str(example.get("cmd", "")), example.get("desc")))
            case (cmd, desc):
                sanitized.append((str(cmd), None if desc is None else str(desc)))
            case (cmd,):
                sanitized.append((str(cmd), None))
            case _:
                raise TypeError(f"{cls.__typename__} examples must be strings or (command, description) pairs")
    return tuple(sanitized)


def _sanitize_aliases(cls, name, aliases, /):
    """
    Internal: normalize aliases (a string or an iterable of strings) into a tuple.
    """
    if isinstance(aliases, str):
        aliases = (aliases,)
    if not isinstance(aliases, Iterable):
        raise TypeError(f"{cls.__typename__} 'aliases' must be a string or an iterable of strings")
    sanitized = []
    for alias in aliases:
        if not isinstance(alias, str):
            raise TypeError(f"{cls.__typename__} 'aliases' must be a string or an iterable of strings")
        if not (alias := alias.strip()) or re.search(r"\s", alias):
            raise ValueError(f"{cls.__typename__} alias must be a non-empty token without whitespace: {alias!r}")
        if alias == name:
            raise ValueError(f"{cls.__typename__} alias must not equal command name: {name}")
        if alias in sanitized:
            raise ValueError(f"duplicate alias in {cls.__typename__} {name}: {alias}")
        sanitized.append(alias)
    return tuple(sanitized)


class Command(metaclass=SpecType):
    """
    A named (sub)command specification.

    Highlights
    - options/positionals/subcommands accept spec objects or plain mappings.
    - aliases are extra tokens resolving to this command; they never appear in
      result paths (canonical names only).
    - examples are inherited at display time from the nearest ancestor that
      declares at least one; declaring examples overrides the inheritance.
    - constraints accept a Constraints object or a mapping with "mutex"/"one_of".

    Invariants (checked here)
    - option ids, long names and short letters are unique within the command.
    - a variadic positional is the last positional; positional ids are unique.
    - constraint groups only reference ids of this command's options.
    - subcommand names and aliases are unique among siblings.
    """

    __introspectable__ = (
        "name",
        "aliases",
        "summary",
        "description",
        "version",
        "options",
        "positionals",
        "subcommands",
        "examples",
        "epilog",
        "constraints",
    )

    def __init__(
            self,
            name,
            *,
            aliases=(),
            summary=Unset,
            description=Unset,
            version=Unset,
            options=(),
            positionals=(),
            subcommands=(),
            examples=(),
            epilog=Unset,
            constraints=Unset,
    ):
        cls = type(self)
        metadata = {
            "name": name,
            "summary": _given(summary),
            "description": _given(description),
            "epilog": _given(epilog),
        }
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        _text(cls, metadata, "name", spaces=False)
        if metadata["name"] is None:
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        name = metadata["name"]

        for key in ("summary", "description", "epilog"):
            if not isinstance(metadata[key], str | Unset):
                raise TypeError(f"{cls.__typename__} {key!r} must be a string")
            metadata[key] = coalesce(metadata[key], "")

        if version is not Unset and version is not None:
            version = str(version)
        metadata["version"] = coalesce(version) or None

        metadata["aliases"] = _sanitize_aliases(cls, name, aliases)
        metadata["examples"] = _sanitize_examples(cls, examples)
        metadata["options"] = tuple(_coerce(Option, option) for option in options)
        metadata["positionals"] = tuple(_coerce(Positional, positional) for positional in positionals)
        metadata["subcommands"] = tuple(_coerce(Command, command) for command in subcommands)
        metadata["constraints"] = _coerce(Constraints, coalesce(constraints, None) or Constraints())

        self._check_options(metadata["options"])
        self._check_positionals(metadata["positionals"])
        self._check_subcommands(metadata["subcommands"])

        known = {option.id for option in metadata["options"]}
        for id in metadata["constraints"]:
            if id not in known:
                raise ValueError(f"unknown option id in constraints of {cls.__typename__} {name!r}: {id}")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def _check_options(self, options, /):
        ids, longs, shorts = set(), set(), set()
        for option in options:
            if option.id in ids:
                raise ValueError(f"duplicate option id: {option.id}")
            ids.add(option.id)
            if option.long is not None:
                if option.long in longs:
                    raise ValueError(f"duplicate --{option.long}")
                longs.add(option.long)
            if option.short is not None:
                if option.short in shorts:
                    raise ValueError(f"duplicate -{option.short}")
                shorts.add(option.short)

    def _check_positionals(self, positionals, /):
        ids = set()
        for index, positional in enumerate(positionals, 1):
            if positional.id in ids:
                raise ValueError(f"duplicate positional id: {positional.id}")
            ids.add(positional.id)
            if positional.variadic and index != len(positionals):
                raise ValueError(f"variadic positional must be the last positional: {positional.id}")

    def _check_subcommands(self, subcommands, /):
        tokens = set()
        for command in subcommands:
            for token in (command.name, *command.aliases):
                if token in tokens:
                    raise ValueError(f"duplicate subcommand/alias: {token}")
                tokens.add(token)


__all__ = (
    # Enumerations
    "Kind",
    "Type",

    # Classes (specifications)
    "Option",
    "Positional",
    "Constraints",
    "Command",
)
