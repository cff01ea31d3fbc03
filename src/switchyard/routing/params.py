"""Path parameter patterns.

Built-in converters usable as constraint shorthands, e.g. ``{id:int}``.
Anything that is not a converter name is treated as a raw regular
expression, e.g. ``{id:\\d{2,4}}``.
"""

# Pattern used for a parameter with no constraint at all
DEFAULT_PATTERN = r"[^/]+"

# converter name -> regex pattern
CONVERTERS: dict[str, str] = {
    "str": DEFAULT_PATTERN,
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}


def resolve_pattern(constraint: str | None) -> str:
    """Return the regex for a constraint, expanding converter names."""
    if constraint is None:
        return DEFAULT_PATTERN
    return CONVERTERS.get(constraint, constraint)
