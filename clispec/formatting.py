"""
Help, usage and version rendering.

All output is plain, deterministic text: the same node always renders to the
same string, whatever the terminal. Styling (colors) is applied later, and only
in shell mode, by faults.ParseError.__rich__.

Layout
- title line ("name - summary" or bare "name"), blank line, usage line
- wrapped description
- option groups in first-seen order ("Options" by default); the implicit
  --help/--version options move to "Common options" when the command declares
  any explicit group of its own
- "Arguments:", "Commands:" (+ a hint line), "Examples:" (inherited), epilog

Every table is indented by two spaces; the left column is as wide as its
longest label, capped at 32 characters, and the right-hand text is wrapped with
continuation lines aligned under the text column.
"""
import textwrap

from .specs import Kind

COLUMN_CAP = 32
MINIMUM_WIDTH = 20


def wrap(text, width=100, /):
    """
    word-wrap text into lines, keeping its explicit line breaks.

    long words are never split; the width never drops below 20 columns.
    """
    width = max(width, MINIMUM_WIDTH)
    lines = []
    for line in str(text).rstrip("\n").split("\n"):
        if not (line := line.rstrip()):
            lines.append("")
            continue
        lines.extend(textwrap.wrap(line, width, break_long_words=False, break_on_hyphens=False))
    return lines


def _table(rows, width, /):
    """
    render (label, text) rows as a two-column table.
    """
    if not rows:
        return []
    column = min(max(len(label) for label, _ in rows), COLUMN_CAP)
    lines = []
    for label, text in rows:
        if not text:
            lines.append("  " + label)
            continue
        indent = max(column, len(label)) + 4
        first, *rest = wrap(text, width - indent) or [""]
        lines.append(("  " + label).ljust(indent) + first)
        lines.extend(" " * indent + line if line else "" for line in rest)
    return lines


def _option_label(option, /):
    names = []
    if option.short is not None:
        names.append("-" + option.short)
    if option.long is not None:
        names.append("--" + option.long)
    if option.negatable:
        names.append("--no-" + option.long)
    label = ", ".join(names) or option.id
    if option.bearing:
        label += " " + (option.metavar or "VALUE")
    return label


def _option_text(option, /, *, defaults):
    text = option.help or ""
    if defaults and option.default is not None:
        if option.kind is Kind.VALUES and isinstance(option.default, list | tuple):
            default = "[" + ", ".join(map(str, option.default)) + "]"
        else:
            default = str(option.default)
        text = (text + " " if text else "") + f"(default: {default})"
    return text


def _positional_label(positional, /):
    return positional.metavar + ("..." if positional.variadic else "")


def usage(node, /):
    """
    render the one-line usage of a node: Usage: <name> [OPTIONS] <COMMAND> <positionals...>
    """
    spec = node.spec
    parts = ["Usage: " + node.name]
    if spec.options:
        parts.append("[OPTIONS]")
    if spec.subcommands:
        parts.append("<COMMAND>")
    for positional in spec.positionals:
        label = _positional_label(positional)
        parts.append(label if positional.required else f"[{label}]")
    return " ".join(parts)


def version(node, /):
    """
    render the version output of a node: "<name> <version>" or just "<name>".
    """
    if node.spec.version:
        return f"{node.name} {node.spec.version}\n"
    return f"{node.name}\n"


def help(tree, position=0, /, *, width=100, include_description=True, include_defaults=True):
    """
    render the full help text of the node at position in tree.

    parameters
    - tree: normalize.Tree
    - position: int, the node to render (0 is the root command)
    - width: int, target line width (the right-hand column never drops below 20)
    - include_description: bool, render the wrapped description block
    - include_defaults: bool, append "(default: X)" to options declaring a default
    """
    node = tree[position]
    spec = node.spec

    lines = [f"{node.name} - {spec.summary}" if spec.summary else node.name, "", usage(node)]

    if include_description and spec.description:
        lines.append("")
        lines.extend(wrap(spec.description, width))

    declared = [option for option in spec.options if not option.internal]
    implicit = [option for option in spec.options if option.internal]
    explicit = any(option.group for option in declared)

    groups = {}
    for option in declared + implicit:
        group = "Common options" if option.internal and explicit else option.group or "Options"
        groups.setdefault(group, []).append(option)

    for group, options in groups.items():
        lines.append("")
        lines.append(group + ":")
        lines.extend(_table(
            [(_option_label(option), _option_text(option, defaults=include_defaults)) for option in options],
            width
        ))

    if spec.positionals:
        lines.append("")
        lines.append("Arguments:")
        lines.extend(_table(
            [(_positional_label(positional), positional.help or "") for positional in spec.positionals],
            width
        ))

    if spec.subcommands:
        rows = []
        for command in spec.subcommands:
            text = command.summary
            if command.aliases:
                aliases = "(aliases: " + ", ".join(command.aliases) + ")"
                text = f"{text} {aliases}" if text else aliases
            rows.append((command.name, text))
        lines.append("")
        lines.append("Commands:")
        lines.extend(_table(rows, width))
        lines.append("")
        lines.append(f"Run '{node.name} <command> --help' for more information.")

    if examples := tree.examples(position):
        lines.append("")
        lines.append("Examples:")
        lines.extend(_table([(command, description or "") for command, description in examples], width))

    if spec.epilog:
        lines.append("")
        lines.extend(wrap(spec.epilog, width))

    return "\n".join(lines) + "\n"


__all__ = (
    "usage",
    "version",
    "wrap",
)
