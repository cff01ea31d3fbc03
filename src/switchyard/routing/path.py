"""Path template parsing and compilation.

A template alternates literal text and ``{name}`` / ``{name:pattern}``
parameters. Compilation produces an anchored regex, the ordered
parameter names, a canonical template (constraints written inline),
and the structural *shape* used for conflict detection.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from switchyard.errors import ConfigurationError
from switchyard.routing.params import resolve_pattern

_FLASK_STYLE = re.compile(r"<[A-Za-z_][A-Za-z0-9_]*(?::[^>]*)?>")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed piece of a path template.

    Literal:  ``/users/``       (is_param=False, value="/users/")
    Param:    ``{id}``          (is_param=True, value="id")
    Typed:    ``{id:\\d+}``     (is_param=True, value="id", constraint="\\d+")
    """

    value: str
    is_param: bool = False
    constraint: str | None = None


@dataclass(frozen=True, slots=True)
class CompiledPath:
    """An anchored matcher for one path template.

    ``shape`` holds the literal text of each literal segment and ``None``
    for each parameter, so ``/users/{id}`` and ``/users/{slug:\\w+}``
    share a shape.
    """

    template: str
    regex: re.Pattern[str]
    param_names: tuple[str, ...]
    shape: tuple[str | None, ...]

    def match(self, path: str) -> dict[str, str] | None:
        """Match the entire *path*; return captured parameters or ``None``."""
        m = self.regex.fullmatch(path)
        if m is None:
            return None
        return {name: m.group(name) for name in self.param_names}


def parse_template(template: str) -> list[PathSegment]:
    """Split a template into literal and parameter segments.

    Examples::

        "/users"            -> [PathSegment("/users")]
        "/users/{id}"       -> [PathSegment("/users/"), PathSegment("id", is_param=True)]
        "/y/{year:\\d{4}}"  -> [..., PathSegment("year", is_param=True, constraint="\\d{4}")]

    Raises ``ConfigurationError`` for unbalanced braces, invalid or
    repeated parameter names, and Flask-style ``<param>`` placeholders.
    """
    segments: list[PathSegment] = []
    seen: set[str] = set()
    literal: list[str] = []
    i = 0
    n = len(template)

    def flush() -> None:
        if literal:
            text = "".join(literal)
            if _FLASK_STYLE.search(text):
                msg = (
                    f"Route path {template!r} uses <param> syntax. "
                    "Use {param} placeholders instead, e.g. '/users/{id}'."
                )
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=text))
            literal.clear()

    while i < n:
        char = template[i]
        if char == "}":
            msg = f"Unbalanced '}}' at position {i} in route path {template!r}."
            raise ConfigurationError(msg)
        if char != "{":
            literal.append(char)
            i += 1
            continue

        flush()
        depth = 1
        j = i + 1
        while j < n and depth:
            if template[j] == "\\":
                j += 2
                continue
            if template[j] == "{":
                depth += 1
            elif template[j] == "}":
                depth -= 1
            j += 1
        if depth:
            msg = f"Unbalanced '{{' at position {i} in route path {template!r}."
            raise ConfigurationError(msg)

        inner = template[i + 1 : j - 1]
        name, sep, constraint = inner.partition(":")
        name = name.strip()
        if not name.isidentifier():
            msg = f"Invalid parameter name {name!r} in route path {template!r}."
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Parameter {name!r} appears more than once in route path {template!r}."
            raise ConfigurationError(msg)
        if sep and not constraint:
            msg = f"Empty constraint for parameter {name!r} in route path {template!r}."
            raise ConfigurationError(msg)
        seen.add(name)
        segments.append(PathSegment(value=name, is_param=True, constraint=constraint if sep else None))
        i = j

    flush()
    return segments


def compile_path(
    template: str,
    *,
    constraints: Mapping[str, str] | None = None,
    trailing_slash: bool = False,
) -> CompiledPath:
    """Compile *template* into an anchored matcher.

    *constraints* supplies patterns for parameters that have none inline.
    With *trailing_slash*, the matcher also accepts the path with exactly
    one trailing ``/`` (the root path is unaffected).
    """
    segments = parse_template(template)
    constraints = constraints or {}

    regex_parts: list[str] = []
    canonical: list[str] = []
    names: list[str] = []
    shape: list[str | None] = []

    for seg in segments:
        if not seg.is_param:
            regex_parts.append(re.escape(seg.value))
            canonical.append(seg.value)
            shape.append(seg.value)
            continue
        constraint = seg.constraint if seg.constraint is not None else constraints.get(seg.value)
        regex_parts.append(f"(?P<{seg.value}>{resolve_pattern(constraint)})")
        canonical.append("{" + seg.value + (f":{constraint}" if constraint is not None else "") + "}")
        names.append(seg.value)
        shape.append(None)

    canonical_template = "".join(canonical)
    source = "".join(regex_parts)
    if trailing_slash and canonical_template not in ("", "/") and not canonical_template.endswith("/"):
        source += "/?"

    try:
        regex = re.compile(source)
    except re.error as exc:
        msg = f"Invalid constraint pattern in route path {canonical_template!r}: {exc}"
        raise ConfigurationError(msg) from exc

    return CompiledPath(
        template=canonical_template,
        regex=regex,
        param_names=tuple(names),
        shape=tuple(shape),
    )


def join_paths(*parts: str) -> str:
    """Join path pieces outer-to-inner into one canonical template.

    Duplicate separators collapse, empty pieces vanish, the result has
    exactly one leading ``/`` and no trailing ``/`` (unless it is the
    root). Text inside ``{...}`` is never touched::

        join_paths("/api/", "//users/")  -> "/api/users"
        join_paths("/api", "")           -> "/api"
        join_paths("", "")               -> "/"
    """
    pieces: list[str] = []
    for part in parts:
        text = _collapse_separators(str(part or "").strip()).strip("/")
        if text:
            pieces.append(text)
    if not pieces:
        return "/"
    return "/" + "/".join(pieces)


def _collapse_separators(text: str) -> str:
    """Collapse runs of ``/`` that sit outside parameter braces."""
    out: list[str] = []
    depth = 0
    for char in text:
        if char == "{":
            depth += 1
        elif char == "}" and depth:
            depth -= 1
        if char == "/" and not depth and out and out[-1] == "/":
            continue
        out.append(char)
    return "".join(out)
