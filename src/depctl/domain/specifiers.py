"""Specifier extraction and classification.

Import records arrive in whatever shape the analyzer produced: a bare
string, a list of strings and dicts, or a dict keyed by specifier. They are
parsed once at the boundary into a tagged union and flattened into an
ordered, deduplicated list of specifier strings.

INVARIANT: A malformed record never blocks unrelated records. Unrecognized
shapes are dropped (logged at debug), never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from depctl.domain.types import Tier

logger = logging.getLogger(__name__)

# Checked in order; the first present string value wins.
SPECIFIER_FIELDS: tuple[str, ...] = ("source", "from", "module", "name")

LOCAL_PREFIXES: tuple[str, ...] = ("./", "../")

# Analyzer summary objects carry these keys and hold no specifiers.
_SUMMARY_KEYS = frozenset({"total", "resolutionRate"})

_PACKAGE_SCHEME = "package:"


# ---------------------------------------------------------------------------
# Tagged union
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StringSpecifier:
    """A specifier given directly as a string."""

    value: str


@dataclass(frozen=True)
class RecordSpecifier:
    """A specifier taken from one field of an import record."""

    field: str
    value: str


type ParsedSpecifier = StringSpecifier | RecordSpecifier


def parse_import_record(record: Any) -> ParsedSpecifier | None:
    """Parse a single import record, or return None if it names nothing."""
    if isinstance(record, str):
        return StringSpecifier(record) if record.strip() else None
    if isinstance(record, Mapping):
        for field_name in SPECIFIER_FIELDS:
            value = record.get(field_name)
            if isinstance(value, str) and value.strip():
                return RecordSpecifier(field_name, value)
    return None


def _is_record(value: Any) -> bool:
    return isinstance(value, Mapping) and any(
        isinstance(value.get(f), str) for f in SPECIFIER_FIELDS
    )


def _iter_parsed(records: Any) -> Iterable[ParsedSpecifier]:
    if records is None:
        return
    if isinstance(records, str) or _is_record(records):
        parsed = parse_import_record(records)
        if parsed is not None:
            yield parsed
        return
    if isinstance(records, Mapping):
        if _SUMMARY_KEYS & set(records):
            return
        for key, value in records.items():
            if isinstance(value, (list, tuple)) and isinstance(key, str):
                # {specifier: [imported names]}
                parsed = parse_import_record(key)
            else:
                parsed = parse_import_record(value)
            if parsed is None:
                logger.debug("Dropping unrecognized import record under key %r", key)
                continue
            yield parsed
        return
    if isinstance(records, Iterable):
        for item in records:
            parsed = parse_import_record(item)
            if parsed is None:
                logger.debug("Dropping unrecognized import record: %r", item)
                continue
            yield parsed
        return
    logger.debug("Ignoring import input of type %s", type(records).__name__)


def extract_specifiers(records: Any) -> list[str]:
    """Flatten *records* into an ordered, deduplicated list of specifiers.

    Examples:
        >>> extract_specifiers(None)
        []
        >>> extract_specifiers(["a", {"from": "b"}, {"bogus": 1}, "a"])
        ['a', 'b']
        >>> extract_specifiers({"x": {"module": "c"}, "./d": ["Widget"]})
        ['c', './d']
    """
    seen: dict[str, None] = {}
    for parsed in _iter_parsed(records):
        seen.setdefault(parsed.value.strip(), None)
    return list(seen)


# ---------------------------------------------------------------------------
# Classification and naming
# ---------------------------------------------------------------------------


def namespace_prefix(namespace: str) -> str:
    """``@builtin`` or ``@builtin/`` -> ``@builtin/``."""
    return namespace.rstrip("/") + "/"


def classify(specifier: str, namespace: str) -> Tier:
    """Assign a specifier to its source tier."""
    if specifier.startswith(namespace_prefix(namespace)):
        return Tier.BUILTIN
    if specifier.startswith(LOCAL_PREFIXES) or specifier in (".", ".."):
        return Tier.LOCAL
    return Tier.REGISTRY


def package_name(specifier: str) -> str:
    """Reduce a deep import to the package that provides it.

    Local specifiers are returned unchanged.

    Examples:
        >>> package_name("@scope/pkg/sub/file.js")
        '@scope/pkg'
        >>> package_name("left-pad/lib/index.js")
        'left-pad'
        >>> package_name("package:http/http.dart")
        'http'
        >>> package_name("./local/helpers")
        './local/helpers'
    """
    if specifier.startswith(LOCAL_PREFIXES) or specifier in (".", ".."):
        return specifier
    if specifier.startswith(_PACKAGE_SCHEME):
        specifier = specifier[len(_PACKAGE_SCHEME) :]
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def unqualified_name(name: str) -> str:
    """Strip the scope from a scoped package name.

    Examples:
        >>> unqualified_name("@builtin/widgets")
        'widgets'
        >>> unqualified_name("left-pad")
        'left-pad'
    """
    if name.startswith("@") and "/" in name:
        return name.split("/", 1)[1]
    return name
