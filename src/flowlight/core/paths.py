"""Dotted-path projection — flatten, unflatten, pick and omit nested data.

Manifesto:
    Pipelines pass plain nested dicts around (inputs, params, validation
    rule sets).  Steps frequently need a *view* of that data: only a few
    nested fields, everything except a few fields, or a flat list of every
    addressable path.  This module is the single place where dotted paths
    are parsed and resolved so that ``Context`` readers, rule omission and
    diagnostics all agree on what ``"a.b[0].c"`` means.

ARCHITECTURE
────────────
::

    flatten(nested)            {"a": {"b": 1}}      → {"a.b": 1}
    unflatten(flat)            {"a.b": 1}           → {"a": {"b": 1}}
    list_paths(nested)         {"x": [{"y": 1}]}    → ["x.0.y"] / ["x.*.y"]
    pick(nested, paths)        keep only the requested paths
    omit(nested, paths)        drop the requested paths (boundary-safe)
    select_or_null(src, keys)  flat {key: value-or-None} view
    normalize_key_list(value)  str | iterable | None → list[str] | None

    Primitives: split_path, get_path, has_path, set_path, sort_keys_deep,
    list_prefixes_of

Path grammar:
    Segments are joined by a separator (``.`` by default).  List indices
    may also be written in bracket form: ``items[0].id`` ≡ ``items.0.id``.

Guardrails:
    ❌ DON'T: Prefix-match paths with ``str.startswith`` alone
    ✅ DO: Use ``omit`` — ``"a"`` never matches ``"ab"``

    ❌ DON'T: Rely on dict ordering of projected output
    ✅ DO: Expect deep-sorted dict keys; lists keep their order

Tags:
    flowlight, paths, dotted-keys, projection, flatten

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from flowlight.core.strings import stringify

WILDCARD = "*"

_MISSING = object()
_BRACKET_INDEX = re.compile(r"\[(\d+)\]")


# =============================================================================
# Primitives
# =============================================================================


def split_path(path: str, separator: str = ".") -> list[str]:
    """Split a dotted path into segments, expanding ``[n]`` list indices.

    >>> split_path("items[0].id")
    ['items', '0', 'id']
    >>> split_path("a..b")
    ['a', '', 'b']
    """
    normalised = _BRACKET_INDEX.sub(lambda m: separator + m.group(1), path)
    if path.startswith("[") and normalised.startswith(separator):
        normalised = normalised[len(separator):]
    return normalised.split(separator)


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, Mapping):
        if segment in container:
            return container[segment]
        return _MISSING
    if isinstance(container, list) and segment.isdigit():
        index = int(segment)
        if index < len(container):
            return container[index]
    return _MISSING


def _resolve(data: Any, segments: list[str]) -> Any:
    current = data
    for segment in segments:
        current = _child(current, segment)
        if current is _MISSING:
            return _MISSING
    return current


def get_path(data: Any, path: str, default: Any = None, separator: str = ".") -> Any:
    """Resolve a dotted path hierarchically, returning ``default`` when absent."""
    value = _resolve(data, split_path(path, separator))
    return default if value is _MISSING else value


def has_path(data: Any, path: str, separator: str = ".") -> bool:
    """True when every segment of ``path`` resolves."""
    return _resolve(data, split_path(path, separator)) is not _MISSING


def set_path(target: dict[str, Any], path: str, value: Any, separator: str = ".") -> dict[str, Any]:
    """Write ``value`` at ``path``, creating intermediate dicts as needed.

    Intermediate values that are not dicts are replaced.  Sibling keys are
    left untouched.  Returns ``target`` for chaining.
    """
    _assign(target, split_path(path, separator), value)
    return target


def _assign(target: dict[str, Any], segments: list[str], value: Any) -> None:
    node = target
    for segment in segments[:-1]:
        nxt = node.get(segment)
        if not isinstance(nxt, dict):
            nxt = {}
            node[segment] = nxt
        node = nxt
    node[segments[-1]] = value


def _resolve_with_fallback(source: Mapping[str, Any], path: str) -> Any:
    value = _resolve(source, split_path(path))
    if value is _MISSING and path in source:
        return source[path]
    return value


def sort_keys_deep(value: Any) -> Any:
    """Return a copy with dict keys sorted at every level; lists keep order."""
    if isinstance(value, Mapping):
        return {
            key: sort_keys_deep(value[key])
            for key in sorted(value, key=str)
        }
    if isinstance(value, list):
        return [sort_keys_deep(item) for item in value]
    return value


def _is_index_run(keys: Iterable[str]) -> bool:
    keys = list(keys)
    if not keys or not all(isinstance(k, str) and k.isdigit() for k in keys):
        return False
    return sorted(int(k) for k in keys) == list(range(len(keys)))


def _listify(value: Any, only: set[tuple[str, ...]] | None = None, prefix: tuple[str, ...] = ()) -> Any:
    """Turn dicts keyed ``"0".."n-1"`` back into lists.

    When ``only`` is given, just the nodes at those prefixes are candidates.
    """
    if isinstance(value, dict):
        converted = {k: _listify(v, only, prefix + (k,)) for k, v in value.items()}
        candidate = only is None or prefix in only
        if candidate and _is_index_run(converted):
            return [converted[str(i)] for i in range(len(converted))]
        return converted
    if isinstance(value, list):
        return [_listify(item, only, prefix + (str(i),)) for i, item in enumerate(value)]
    return value


# =============================================================================
# Flatten / unflatten
# =============================================================================


def flatten(
    nested: Mapping[str, Any],
    separator: str = ".",
    use_brackets: bool = False,
) -> dict[str, Any]:
    """Flatten a nested structure into ``{joined.path: leaf}``.

    List children are addressed as ``sep + index`` or ``[index]`` when
    ``use_brackets`` is set; dict children always join with ``separator``.
    Empty dicts and lists are kept as leaves.

    >>> flatten({"a": {"b": {"c": 1}}})
    {'a.b.c': 1}
    >>> flatten({"entries": [{"x": 1}]}, use_brackets=True)
    {'entries[0].x': 1}
    """
    result: dict[str, Any] = {}
    for key, value in nested.items():
        _flatten_into(value, str(key), result, separator, use_brackets)
    return result


def _flatten_into(value: Any, prefix: str, result: dict[str, Any], sep: str, use_brackets: bool) -> None:
    if isinstance(value, Mapping) and value:
        for key, child in value.items():
            _flatten_into(child, f"{prefix}{sep}{key}", result, sep, use_brackets)
        return
    if isinstance(value, list) and value:
        for index, child in enumerate(value):
            segment = f"{prefix}[{index}]" if use_brackets else f"{prefix}{sep}{index}"
            _flatten_into(child, segment, result, sep, use_brackets)
        return
    result[prefix] = value


def unflatten(
    flat: Mapping[str, Any],
    separator: str = ".",
    list_prefixes: set[tuple[str, ...]] | None = None,
) -> dict[str, Any]:
    """Inverse of :func:`flatten`; dict keys are deep-sorted on the way out.

    A flat map cannot tell a list from a dict keyed ``"0".."n-1"``, so by
    default every such container comes back as a list.  Pass
    ``list_prefixes`` (see :func:`list_prefixes_of`) to rebuild lists only
    where the source held one.
    """
    nested: dict[str, Any] = {}
    for key, value in flat.items():
        _assign(nested, split_path(str(key), separator), value)
    return sort_keys_deep(_listify(nested, only=list_prefixes))


def list_prefixes_of(nested: Any, prefix: tuple[str, ...] = ()) -> set[tuple[str, ...]]:
    """Segment tuples of every non-empty list inside ``nested``.

    Keys are split like :func:`unflatten` splits them, so a literal dotted
    key yields the nested location it will be rebuilt at.

    >>> sorted(list_prefixes_of({"a": [1, {"b": [2]}], "c": {"0": 3}}))
    [('a',), ('a', '1', 'b')]
    """
    found: set[tuple[str, ...]] = set()
    if isinstance(nested, Mapping):
        for key, child in nested.items():
            found |= list_prefixes_of(child, prefix + tuple(split_path(str(key))))
    elif isinstance(nested, list) and nested:
        found.add(prefix)
        for index, child in enumerate(nested):
            found |= list_prefixes_of(child, prefix + (str(index),))
    return found


def list_paths(
    nested: Mapping[str, Any],
    separator: str = ".",
    use_brackets: bool = False,
    collapse_indices: bool = False,
) -> list[str]:
    """Every leaf path of ``nested`` in walk order.

    With ``collapse_indices`` numeric index segments become ``*`` and
    duplicates are dropped, keeping first-seen order.  The match is on the
    segment text, so an all-digit dict key (``{"codes": {"404": ...}}``)
    collapses to ``*`` as well.

    >>> list_paths({"entries": [{"id": [1, 2]}]}, collapse_indices=True)
    ['entries.*.id.*']
    """
    paths = list(flatten(nested, separator=separator, use_brackets=use_brackets))
    if not collapse_indices:
        return paths

    sep = re.escape(separator)
    if use_brackets:
        pattern, replacement = re.compile(r"\[\d+\]"), f"[{WILDCARD}]"
    else:
        pattern = re.compile(rf"{sep}\d+(?={sep}|\[|$)")
        replacement = f"{separator}{WILDCARD}"

    collapsed: list[str] = []
    seen: set[str] = set()
    for path in paths:
        candidate = pattern.sub(replacement, path)
        if candidate not in seen:
            seen.add(candidate)
            collapsed.append(candidate)
    return collapsed


# =============================================================================
# Pick / omit
# =============================================================================


def pick(nested: Mapping[str, Any], paths: Iterable[str]) -> dict[str, Any]:
    """Keep only the requested paths, preserving their nested location.

    Hierarchical resolution wins.  When it fails but ``nested`` has a
    literal top-level key equal to the path (``{"a.b": 1}``), that key is
    re-read as a dotted path and written nested (``{"a": {"b": 1}}``).
    Unresolvable paths are skipped.

    >>> pick({"a": 1, "b": {"c": 3, "d": 4}}, ["b.c"])
    {'b': {'c': 3}}
    """
    out: dict[str, Any] = {}
    list_prefixes: set[tuple[str, ...]] = set()

    for path in paths:
        segments = split_path(path)
        value = _resolve(nested, segments)
        if value is not _MISSING:
            _assign(out, segments, value)
            node: Any = nested
            for depth, segment in enumerate(segments[:-1], start=1):
                node = _child(node, segment)
                if isinstance(node, list):
                    list_prefixes.add(tuple(segments[:depth]))
            continue
        if path in nested:
            _assign(out, path.split("."), nested[path])

    # only containers that were lists in the source are turned back into lists
    return sort_keys_deep(_listify(out, only=list_prefixes))


def omit(nested: Mapping[str, Any], paths: Iterable[str]) -> dict[str, Any]:
    """Drop the requested paths and everything beneath them.

    A flattened key is dropped when it equals a needle, or starts with the
    needle immediately followed by ``.`` or ``[``.  Empty needles never
    match.

    >>> omit({"a": 1, "b": {"c": 3, "d": [1, 2, 3]}}, ["b.c"])
    {'a': 1, 'b': {'d': [1, 2, 3]}}
    """
    needles = [str(p) for p in paths]
    flat = flatten(nested, separator=".", use_brackets=False)
    kept = {path: value for path, value in flat.items() if not matches_any(path, needles)}
    return unflatten(kept, list_prefixes=list_prefixes_of(nested))


def matches_any(path: str, needles: Iterable[str]) -> bool:
    """Boundary-safe prefix test used by :func:`omit`."""
    for needle in needles:
        if not needle:
            continue
        if path == needle:
            return True
        if path.startswith(needle) and path[len(needle)] in (".", "["):
            return True
    return False


# =============================================================================
# Key lists and flat selection
# =============================================================================


def normalize_key_list(value: str | Iterable[Any] | None) -> list[str] | None:
    """Normalise a key list input to ``list[str]``.

    ``None`` stays ``None``; a single string becomes a one-element list;
    any other iterable is stringified element-wise (see
    :func:`flowlight.core.strings.stringify`).  Mappings contribute their
    values.

    >>> normalize_key_list(["a", 1, "c"])
    ['a', '1', 'c']

    Raises:
        TypeError: If ``value`` is neither ``None``, a string nor iterable.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping):
        value = value.values()
    if not isinstance(value, Iterable):
        raise TypeError(f"Cannot normalise {type(value).__name__} to a key list")
    return [stringify(item) for item in value]


def select_or_null(source: Mapping[str, Any], keys: Iterable[str]) -> dict[str, Any]:
    """Flat ``{key: value}`` view; missing keys are present with ``None``.

    Keys may be dotted.  Output follows the order of ``keys``.

    >>> select_or_null({"a": {"b": 1}}, ["a.b", "z"])
    {'a.b': 1, 'z': None}
    """
    out: dict[str, Any] = {}
    for key in keys:
        key = str(key)
        value = _resolve_with_fallback(source, key)
        out[key] = None if value is _MISSING else value
    return out


__all__ = [
    "WILDCARD",
    "flatten",
    "get_path",
    "has_path",
    "list_paths",
    "list_prefixes_of",
    "matches_any",
    "normalize_key_list",
    "omit",
    "pick",
    "select_or_null",
    "set_path",
    "sort_keys_deep",
    "split_path",
    "unflatten",
]
