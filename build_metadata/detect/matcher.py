"""Marker-file matching against a directory's immediate entries.

Only the top level of the directory is listed; a manifest that lives in a
subdirectory never satisfies a rule for its parent.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from fnmatch import fnmatchcase
from pathlib import Path

from build_metadata.detect.rules import DetectionRule


def list_entries(directory: Path | str) -> list[str] | None:
    """Return the names of *directory*'s immediate entries, or None if unreadable."""
    try:
        with os.scandir(directory) as it:
            return [entry.name for entry in it]
    except OSError:
        return None


def pattern_matches(pattern: str, entries: Iterable[str]) -> bool:
    # fnmatchcase treats a wildcard-free pattern as an exact, case-sensitive name
    return any(fnmatchcase(name, pattern) for name in entries)


def rule_matches(rule: DetectionRule, entries: Iterable[str]) -> bool:
    names = list(entries)
    return all(pattern_matches(p, names) for p in rule.files)


def matches(directory: Path | str, rule: DetectionRule) -> bool:
    entries = list_entries(directory)
    if entries is None:
        return False
    return rule_matches(rule, entries)
