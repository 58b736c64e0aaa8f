"""
Spec normalization and indexing.

normalize(spec) validates and canonicalizes a raw specification (a Command or a
plain mapping) into a Tree: an immutable arena of Nodes, one per (sub)command,
where each node knows its parent by position instead of by reference. Walking
up the tree (display names, inherited examples) is a simple index walk.

Per node:
- the implicit --help/-h and --version/-V options are injected unless one of
  their tokens is already claimed by the command's own options;
- an Index is built once: long name, short letter and id lookups for options,
  and command-token (canonical name or alias) lookups for subcommands.

Nothing here can fail on user input; every failure is a programmer error
raised by the spec objects themselves (TypeError/ValueError).
"""
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import NamedTuple

from .specs import Command, Option

logger = logging.getLogger(__name__)

HELP_ID = "__help"
VERSION_ID = "__version"


class Index(NamedTuple):
    """
    lookup tables for one normalized command.
    """
    long_map: Mapping[str, Option]
    short_map: Mapping[str, Option]
    by_id: Mapping[str, Option]
    command_map: Mapping[str, Command]


class Node(NamedTuple):
    """
    one normalized command inside a Tree.

    - spec: the normalized Command (implicit options injected).
    - parent: position of the parent node, None for the root.
    - name: full display name ("mytool run").
    - path: canonical names from the root's child down to this node.
    - index: lookup tables (see Index).
    - children: canonical subcommand name -> node position.
    """
    spec: Command
    parent: int | None
    name: str
    path: tuple[str, ...]
    index: Index
    children: Mapping[str, int]


def build_index(spec, /):
    """
    build the lookup tables of a normalized command.

    every subcommand is reachable from command_map by its canonical name and by
    each of its aliases; all of them resolve to the same Command object.
    """
    long_map = {}
    short_map = {}
    by_id = {}
    command_map = {}

    for option in spec.options:
        by_id[option.id] = option
        if option.long is not None:
            long_map[option.long] = option
        if option.short is not None:
            short_map[option.short] = option

    for command in spec.subcommands:
        command_map[command.name] = command
        for alias in command.aliases:
            command_map[alias] = command

    return Index(
        MappingProxyType(long_map),
        MappingProxyType(short_map),
        MappingProxyType(by_id),
        MappingProxyType(command_map),
    )


def _inject(spec, /, *, auto_help, auto_version):
    """
    append the implicit help/version flags when none of their tokens is taken.
    """
    options = list(spec.options)
    longs = {option.long for option in options}
    shorts = {option.short for option in options}

    if auto_help and "help" not in longs and "h" not in shorts:
        options.append(Option(HELP_ID, "h", "help", help="Show this help and exit", internal=True))
    if auto_version and "version" not in longs and "V" not in shorts:
        options.append(Option(VERSION_ID, "V", "version", help="Show version and exit", internal=True))

    return options


class Tree:
    """
    immutable arena of normalized command nodes; position 0 is the root.
    """

    def __init__(self, nodes, /):
        self._nodes = tuple(nodes)

    def __getitem__(self, position):
        return self._nodes[position]

    def __len__(self):
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes)

    def __repr__(self):
        return f"tree({', '.join(repr(node.name) for node in self._nodes)})"

    @property
    def root(self):
        return self._nodes[0]

    def lineage(self, position, /):
        """
        yield the node at position and then each of its ancestors up to the root.
        """
        while position is not None:
            node = self._nodes[position]
            yield node
            position = node.parent

    def examples(self, position, /):
        """
        examples shown for a node: its own, else those of the nearest ancestor declaring any.
        """
        for node in self.lineage(position):
            if node.spec.examples:
                return node.spec.examples
        return ()


def normalize(source, /, *, auto_help=True, auto_version=True):
    """
    validate and canonicalize a specification into a Tree.

    parameters
    - source: Command | Mapping
      the raw specification; mappings are converted into Command objects.
    - auto_help / auto_version: bool
      inject -h/--help and -V/--version into every command when unclaimed.

    raises
    - TypeError / ValueError: the specification violates an invariant.
    """
    if isinstance(source, Mapping):
        source = Command(**source)
    elif not isinstance(source, Command):
        raise TypeError(f"normalize() argument must be a command or a mapping, not {type(source).__name__}")

    nodes = []

    def visit(spec, parent, name, path):
        position = len(nodes)
        nodes.append(None)  # reserved until the children are known

        children = {}
        normalized = []
        for command in spec.subcommands:
            children[command.name] = visit(command, position, f"{name} {command.name}", (*path, command.name))
            normalized.append(nodes[children[command.name]].spec)

        spec = spec.__replace__(
            options=_inject(spec, auto_help=auto_help, auto_version=auto_version),
            subcommands=normalized,
        )
        nodes[position] = Node(spec, parent, name, path, build_index(spec), MappingProxyType(children))
        logger.debug(
            "normalized %r: %d options, %d positionals, %d subcommands",
            name, len(spec.options), len(spec.positionals), len(spec.subcommands)
        )
        return position

    visit(source, None, source.name, ())
    return Tree(nodes)


__all__ = (
    "HELP_ID",
    "VERSION_ID",
    "Index",
    "Node",
    "Tree",
    "build_index",
    "normalize",
)
