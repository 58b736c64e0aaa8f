"""
Typo suggestions for unknown long options and unknown commands.

A bounded Levenshtein distance (unit-cost insert/delete/substitute) is computed
row by row and abandoned as soon as every cell of a row exceeds the bound, so
hopeless candidates cost almost nothing.

    >>> suggest("verboes", ["verbose", "version"])
    'verbose'
"""


def distance(source, target, /, bound=2):
    """
    edit distance between source and target, or bound + 1 once it is known to exceed bound.
    """
    if source == target:
        return 0
    if abs(len(source) - len(target)) > bound:
        return bound + 1
    if not source or not target:
        return len(source) + len(target)

    previous = list(range(len(target) + 1))
    for row, char in enumerate(source, 1):
        current = [row]
        for column, other in enumerate(target, 1):
            current.append(min(
                current[column - 1] + 1,               # insertion
                previous[column] + 1,                  # deletion
                previous[column - 1] + (char != other)  # substitution
            ))
        if min(current) > bound:
            return bound + 1
        previous = current
    return previous[-1]


def suggest(target, candidates, /, bound=2):
    """
    closest candidate within bound edits, or None.

    ties go to the candidate seen first, so callers control precedence through
    the iteration order of candidates.
    """
    best = None
    score = bound + 1
    for candidate in candidates:
        if (found := distance(target, candidate, bound)) < score:
            best, score = candidate, found
    return best


__all__ = (
    "distance",
    "suggest",
)
