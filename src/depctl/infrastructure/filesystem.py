"""Filesystem helpers: package file enumeration, descriptor reads, copying.

Enumeration is split in two. :func:`filter_package_paths` is pure and
decides which relative paths belong in a browser bundle; :func:`walk_package`
does the disk walk and feeds it. Copy execution lives in
:func:`copy_files` and knows nothing about filtering.
"""

from __future__ import annotations

import json
import shutil
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import Any

# Directory names never descended into.
SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".github",
        ".hg",
        ".svn",
        ".next",
        ".nuxt",
        ".cache",
        ".dart_tool",
        "coverage",
        ".nyc_output",
        "node_modules",
        "__pycache__",
    }
)

# File names never included.
SKIP_FILES: frozenset[str] = frozenset(
    {
        ".DS_Store",
        "Thumbs.db",
        "thumbs.db",
        "desktop.ini",
        ".env",
        ".env.local",
        ".gitignore",
        ".npmignore",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "npm-shrinkwrap.json",
    }
)

# Extensions a browser bundle can use.
BUNDLE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".js",
        ".mjs",
        ".cjs",
        ".jsx",
        ".ts",
        ".tsx",
        ".json",
        ".css",
        ".scss",
        ".less",
        ".html",
        ".svg",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".webp",
        ".ico",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        ".eot",
    }
)

_SKIP_SUFFIXES: tuple[str, ...] = (".map", ".test.js", ".spec.js", ".test.ts", ".spec.ts")


# ---------------------------------------------------------------------------
# Pure filtering
# ---------------------------------------------------------------------------


def is_bundle_path(relative: str | PurePosixPath) -> bool:
    """Whether a package-relative path belongs in the bundle."""
    path = PurePosixPath(relative)
    *dirs, name = path.parts
    if any(part in SKIP_DIRS for part in dirs):
        return False
    if name in SKIP_FILES or name.endswith(_SKIP_SUFFIXES):
        return False
    return path.suffix.lower() in BUNDLE_EXTENSIONS


def filter_package_paths(relative_paths: Iterable[str]) -> list[str]:
    """Keep bundle-relevant paths, sorted and deduplicated.

    Examples:
        >>> filter_package_paths(["b.js", ".git/HEAD", "a.css", "yarn.lock", "README.md"])
        ['a.css', 'b.js']
    """
    return sorted({p for p in relative_paths if is_bundle_path(p)})


# ---------------------------------------------------------------------------
# Disk walks
# ---------------------------------------------------------------------------


def iter_relative_files(root: Path) -> Iterable[str]:
    """Yield every file under *root* as a POSIX relative path.

    Skipped directories are pruned rather than filtered afterwards, so a
    large nested ``node_modules`` is never walked.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        for entry in current.iterdir():
            if entry.is_dir():
                if entry.name not in SKIP_DIRS and not entry.is_symlink():
                    stack.append(entry)
            elif entry.is_file():
                yield entry.relative_to(root).as_posix()


def walk_package(root: Path) -> list[str]:
    """Bundle-relevant files under *root*, as sorted relative paths."""
    if not root.is_dir():
        return []
    return filter_package_paths(iter_relative_files(root))


def find_embedded_packages(package_dir: Path, descriptor: str) -> list[tuple[str, Path]]:
    """Private dependency subtrees inside ``<package_dir>/node_modules``.

    Returns ``(name, path)`` pairs for ``node_modules/<name>`` and
    ``node_modules/@scope/<name>`` directories that carry a descriptor.
    """
    modules = package_dir / "node_modules"
    if not modules.is_dir():
        return []
    found: list[tuple[str, Path]] = []
    for entry in sorted(modules.iterdir()):
        if not entry.is_dir() or entry.name.startswith("."):
            continue
        if entry.name.startswith("@"):
            for scoped in sorted(entry.iterdir()):
                if scoped.is_dir() and (scoped / descriptor).is_file():
                    found.append((f"{entry.name}/{scoped.name}", scoped))
        elif (entry / descriptor).is_file():
            found.append((entry.name, entry))
    return found


def has_child_packages(directory: Path, descriptor: str) -> bool:
    """Whether at least one immediate child directory holds a descriptor."""
    if not directory.is_dir():
        return False
    try:
        return any(
            child.is_dir() and (child / descriptor).is_file() for child in directory.iterdir()
        )
    except OSError:
        return False


# ---------------------------------------------------------------------------
# Descriptor I/O
# ---------------------------------------------------------------------------


def read_json_object(path: Path) -> dict[str, Any]:
    """Read a JSON file that must contain an object.

    Raises:
        OSError: The file cannot be read.
        ValueError: The content is not valid JSON or not an object.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data


# ---------------------------------------------------------------------------
# Copy execution
# ---------------------------------------------------------------------------


def remove_tree(path: Path) -> None:
    """Remove *path* if it exists (directory or file)."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def copy_files(source_root: Path, dest_root: Path, relative_paths: Iterable[str]) -> tuple[list[Path], int]:
    """Copy each relative path from *source_root* to *dest_root*.

    Parent directories are created as needed. Fails fast on the first I/O
    error. Returns ``(copied destination paths, total bytes)``.
    """
    copied: list[Path] = []
    total = 0
    dest_root.mkdir(parents=True, exist_ok=True)
    for rel in relative_paths:
        src = source_root / rel
        dst = dest_root / rel
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
        total += dst.stat().st_size
        copied.append(dst)
    return copied, total
