"""Detection API and dispatcher.

This module evaluates a rule table against a single directory and reports
either the winning project type or every type that matched (monorepos).
Each call lists the directory once and tests all rules against that
snapshot, so repeated calls on an unchanged directory return identical
results.
"""

from __future__ import annotations

from pathlib import Path

from build_metadata.detect.matcher import list_entries, rule_matches
from build_metadata.detect.rules import DetectionRule, ProjectType, RuleTable
from build_metadata.exceptions import NoProjectTypeDetectedError, UnreadableDirectoryError


class Detector:
    """Rule-table bound detector.

    Parameters
    ----------
    table: RuleTable | None
        Rules to evaluate. Defaults to a fresh copy of ``DEFAULT_RULES``.
    """

    def __init__(self, table: RuleTable | None = None) -> None:
        self.table = table if table is not None else RuleTable()

    def _matching(self, path: Path | str, *, all_types: bool) -> list[ProjectType]:
        entries = list_entries(path)
        if entries is None:
            raise UnreadableDirectoryError(str(path), all_types=all_types)
        return [ProjectType.from_rule(r) for r in self.table.ranked() if rule_matches(r, entries)]

    def detect(self, path: Path | str) -> ProjectType:
        detected = self._matching(path, all_types=False)
        if not detected:
            raise NoProjectTypeDetectedError(str(path))
        return detected[0]

    def detect_project_type(self, path: Path | str) -> str:
        return str(self.detect(path))

    def detect_all_project_types(self, path: Path | str) -> list[str]:
        detected = self._matching(path, all_types=True)
        if not detected:
            raise NoProjectTypeDetectedError(str(path), all_types=True)
        # Several rules may share one identifier (terraform-module); report it once
        return list(dict.fromkeys(str(pt) for pt in detected))

    def get_detection_rules(self) -> list[DetectionRule]:
        return self.table.rules

    def add_detection_rule(self, rule: DetectionRule) -> None:
        self.table.add(rule)


_default_detector = Detector()


def default_detector() -> Detector:
    return _default_detector


def _for_table(table: RuleTable | None) -> Detector:
    return Detector(table) if table is not None else _default_detector


def detect_project_type(path: Path | str, table: RuleTable | None = None) -> str:
    """Return the highest-priority matching type, e.g. ``"python-modern"``."""
    return _for_table(table).detect_project_type(path)


def detect_all_project_types(path: Path | str, table: RuleTable | None = None) -> list[str]:
    """Return every matching type. Callers must not rely on the order."""
    return _for_table(table).detect_all_project_types(path)


def get_detection_rules() -> list[DetectionRule]:
    return _default_detector.get_detection_rules()


def add_detection_rule(rule: DetectionRule) -> None:
    """Append *rule* to the process-wide table.

    Not synchronized: callers mutating the table while other threads detect
    must provide their own locking.
    """
    _default_detector.add_detection_rule(rule)
