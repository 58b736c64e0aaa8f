"""
Post-scan constraint checks over the set of options that were supplied.

- mutex: more than one supplied option of a group is an error; the message
  lists every supplied member of the group, not just the first two.
- one_of: no supplied option of a group is an error; the message lists every
  member of the group.
"""
from .faults import FaultCode, ParseError
from .formatting import usage


def check_constraints(node, seen, /):
    """
    return the first violated constraint of node as a ParseError, or None.

    parameters
    - node: normalize.Node whose constraints are checked
    - seen: set of option ids supplied during the parse
    """
    constraints = node.spec.constraints
    by_id = node.index.by_id

    for group in constraints.mutex:
        chosen = [by_id[id].label for id in group if id in seen]
        if len(chosen) > 1:
            return ParseError(
                FaultCode.MUTUALLY_EXCLUSIVE,
                "options are mutually exclusive: " + ", ".join(chosen),
                chosen[0],
                usage=usage(node),
            )

    for group in constraints.one_of:
        if not any(id in seen for id in group):
            labels = [by_id[id].label for id in group]
            return ParseError(
                FaultCode.MISSING_ONE_OF,
                "missing one of: " + ", ".join(labels),
                labels[0],
                usage=usage(node),
            )

    return None


__all__ = (
    "check_constraints",
)
