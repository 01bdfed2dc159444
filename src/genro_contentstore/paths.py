# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Path algebra for slash-delimited item paths.

All functions are pure. Paths are absolute, '/' is the root and no path
other than the root ends with a slash.

Example:
    >>> normalize('/a//b/./c/../d/')
    '/a/b/d'
    >>> parent_of('/a/b')
    '/a'
    >>> relocate('/a/b/c', '/a/b', '/x')
    '/x/c'
"""

from __future__ import annotations

import re
from typing import Callable, Iterable

from .constants import ROOT_PATH
from .exceptions import InvalidArgumentError, NotFoundError

_INDEX_PATTERN = re.compile(r'^(?P<name>.+)\[(?P<index>\d+)\]$')


def normalize(path: str) -> str:
    """Return the canonical form of an absolute path.

    Duplicate slashes collapse, '.' segments drop and '..' segments
    remove their predecessor.

    Raises:
        InvalidArgumentError: If the path is empty, relative, or climbs
            above the root.
    """
    if not path or not path.startswith('/'):
        raise InvalidArgumentError(f"Not an absolute path: {path!r}")
    parts: list[str] = []
    for segment in path.split('/'):
        if segment in ('', '.'):
            continue
        if segment == '..':
            if not parts:
                raise InvalidArgumentError(f"Path climbs above root: {path!r}")
            parts.pop()
        else:
            parts.append(segment)
    return ROOT_PATH + '/'.join(parts)


def is_root(path: str) -> bool:
    return path == ROOT_PATH


def parent_of(path: str) -> str | None:
    """Parent path, or None for the root."""
    if path == ROOT_PATH:
        return None
    head = path.rsplit('/', 1)[0]
    return head or ROOT_PATH


def name_of(path: str) -> str:
    """Last segment of the path ('' for the root)."""
    return path.rsplit('/', 1)[1] if path != ROOT_PATH else ''


def depth(path: str) -> int:
    """Number of segments below the root (root=0)."""
    return 0 if path == ROOT_PATH else path.count('/')


def ancestor(path: str, level: int) -> str:
    """Ancestor of ``path`` at the given depth.

    Raises:
        NotFoundError: If ``level`` is negative or deeper than the path.
    """
    current = depth(path)
    if level < 0 or level > current:
        raise NotFoundError(f"No ancestor at depth {level} for {path!r}")
    if level == 0:
        return ROOT_PATH
    return '/'.join(path.split('/')[:level + 1])


def join(parent: str, *names: str) -> str:
    """Join names under a parent path."""
    result = parent
    for name in names:
        result = f"/{name}" if result == ROOT_PATH else f"{result}/{name}"
    return result


def is_descendant(path: str, other: str) -> bool:
    """True if ``path`` lies strictly below ``other``."""
    if other == ROOT_PATH:
        return path != ROOT_PATH
    return path.startswith(other + '/')


def relocate(path: str, src: str, dst: str) -> str:
    """Replace the ``src`` prefix of ``path`` with ``dst``."""
    if path == src:
        return dst
    return dst + path[len(src):]


def child_pattern(parent: str) -> re.Pattern[str]:
    """Anchored pattern matching the direct children of ``parent`` only.

    '/a/child1' must never match the children of '/a/child10', so a plain
    string-prefix test is not enough.
    """
    stripped = parent.rstrip('/')
    return re.compile(f"^{re.escape(stripped)}/[^/]+$")


def has_same_name_index(name: str) -> bool:
    """True if the segment carries a same-name-sibling suffix ('name[n]')."""
    return _INDEX_PATTERN.match(name) is not None


def split_index(name: str) -> tuple[str, int]:
    """Split 'name[n]' into ('name', n); plain names get index 1."""
    match = _INDEX_PATTERN.match(name)
    if match is None:
        return name, 1
    return match.group('name'), int(match.group('index'))


def check_segment(name: str) -> str:
    """Validate a single segment naming an existing child.

    Raises:
        InvalidArgumentError: For empty names, names containing '/',
            and '.' or '..'.
    """
    if not name or not name.strip():
        raise InvalidArgumentError("Item name must not be blank")
    if '/' in name:
        raise InvalidArgumentError(f"Item name must not contain '/': {name!r}")
    if name in ('.', '..'):
        raise InvalidArgumentError(f"Reserved item name: {name!r}")
    return name


def check_name(name: str) -> str:
    """Validate a single segment used to create an item.

    Raises:
        InvalidArgumentError: For names rejected by check_segment and
            names carrying an index suffix.
    """
    check_segment(name)
    if has_same_name_index(name):
        raise InvalidArgumentError(f"Item name must not carry an index: {name!r}")
    return name


def resolve(base: str, rel_path: str) -> str:
    """Resolve ``rel_path`` against ``base`` (absolute paths win)."""
    if rel_path.startswith('/'):
        return normalize(rel_path)
    return normalize(join(base, rel_path))


def name_matcher(patterns: str | Iterable[str] | None) -> Callable[[str], bool]:
    """Build a predicate from glob name patterns.

    ``patterns`` is either a string of '|' separated globs or an iterable
    of globs. Only '*' is a wildcard. None matches every name.

    Example:
        >>> match = name_matcher('jcr:* | foo')
        >>> match('jcr:content'), match('foo'), match('bar')
        (True, True, False)
    """
    if patterns is None:
        return lambda name: True
    if isinstance(patterns, str):
        globs = patterns.split('|')
    else:
        globs = list(patterns)
    alternatives = [
        '.*'.join(re.escape(part) for part in glob.strip().split('*'))
        for glob in globs
    ]
    regex = re.compile(f"^(?:{'|'.join(alternatives)})$")
    return lambda name: regex.match(name) is not None
