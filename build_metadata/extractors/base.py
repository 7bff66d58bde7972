"""Extractor contract and shared helpers.

Every ecosystem extractor exposes ``name``, ``priority``, ``detect(root)``
and ``extract(root)``. ``detect`` is the extractor's own guard, checked
again before extraction even when routing came from the rule table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from build_metadata.exceptions import ExtractionError
from build_metadata.types import ProjectMetadata


@runtime_checkable
class Extractor(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def priority(self) -> int: ...

    def detect(self, root: Path) -> bool: ...

    def extract(self, root: Path) -> ProjectMetadata: ...


class BaseExtractor:
    """Holds the name/priority pair and the marker files used by ``detect``."""

    markers: tuple[str, ...] = ()

    def __init__(self, name: str, priority: int) -> None:
        self._name = name
        self._priority = priority

    @property
    def name(self) -> str:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    def detect(self, root: Path) -> bool:
        root = Path(root)
        return any((root / m).is_file() for m in self.markers)

    def extract(self, root: Path) -> ProjectMetadata:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, priority={self._priority})"


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ExtractionError(f"failed to read {path.name}: {exc}") from exc


def as_str(value: Any) -> str:
    """Scalar manifest value as text. Null, tables and lists read as ``""``."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def format_person(name: str | None, email: str | None = None) -> str:
    if not name:
        return ""
    return f"{name} <{email}>" if email else name


def people(entries: Any) -> list[str]:
    """Format a list of ``{name, email}`` tables (or plain strings) as authors."""
    out: list[str] = []
    for entry in as_list(entries):
        if isinstance(entry, str):
            formatted = entry
        elif isinstance(entry, dict):
            formatted = format_person(as_str(entry.get("name")), as_str(entry.get("email")))
        else:
            continue
        if formatted:
            out.append(formatted)
    return out
