from __future__ import annotations

from pathlib import Path

import pytest

from build_metadata.detect import base as detect_base
from build_metadata.detect.base import Detector, detect_all_project_types, detect_project_type, get_detection_rules
from build_metadata.detect.matcher import list_entries, matches
from build_metadata.detect.rules import DEFAULT_RULES, DetectionRule, ProjectType, RuleTable, compose_type
from build_metadata.exceptions import MalformedRuleError, NoProjectTypeDetectedError, UnreadableDirectoryError


def _touch(root: Path, *names: str) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for name in names:
        (root / name).write_text("", encoding="utf-8")
    return root


@pytest.fixture
def detector() -> Detector:
    # Fresh table per test so runtime additions never leak between tests
    return Detector(RuleTable(DEFAULT_RULES))


@pytest.mark.parametrize(
    ("files", "expected"),
    [
        (["pyproject.toml"], "python-modern"),
        (["setup.py"], "python-legacy"),
        (["setup.cfg"], "python-setup-cfg"),
        (["pyproject.toml", "setup.py"], "python-modern"),
        (["package.json"], "javascript-npm"),
        (["package.json", "tsconfig.json"], "typescript-npm"),
        (["pom.xml", "build.gradle"], "java-maven"),
        (["pom.xml", "build.gradle.kts"], "java-maven"),
        (["build.gradle"], "java-gradle"),
        (["build.gradle.kts"], "kotlin-gradle"),
        (["go.mod"], "go-module"),
        (["Cargo.toml"], "rust-cargo"),
        (["Dockerfile"], "docker"),
        (["Chart.yaml"], "helm-chart"),
        (["network.tf"], "terraform-module"),
    ],
)
def test_highest_priority_rule_wins(tmp_path: Path, detector: Detector, files, expected) -> None:
    _touch(tmp_path, *files)
    assert detector.detect_project_type(tmp_path) == expected


@pytest.mark.parametrize(
    ("filename", "expected"),
    [("thing.gemspec", "ruby-gemspec"), ("App.csproj", "csharp-project"), ("lib.cabal", "haskell-cabal")],
)
def test_wildcard_patterns(tmp_path: Path, detector: Detector, filename: str, expected: str) -> None:
    _touch(tmp_path, filename)
    assert detector.detect_project_type(tmp_path) == expected


def test_detection_is_deterministic(tmp_path: Path, detector: Detector) -> None:
    _touch(tmp_path, "pyproject.toml", "package.json", "Dockerfile", "go.mod")
    first = detector.detect_project_type(tmp_path)
    assert all(detector.detect_project_type(tmp_path) == first for _ in range(10))
    assert first == "javascript-npm"


def test_all_types_reports_monorepo_superset(tmp_path: Path, detector: Detector) -> None:
    _touch(tmp_path, "pyproject.toml", "package.json", "go.mod", "Cargo.toml")
    found = detector.detect_all_project_types(tmp_path)
    assert {"python-modern", "javascript-npm", "go-module", "rust-cargo"} <= set(found)
    assert len(found) >= 4
    assert detector.detect_project_type(tmp_path) in found


def test_all_types_reports_shared_identifier_once(tmp_path: Path, detector: Detector) -> None:
    _touch(tmp_path, "main.tf", "variables.tf")
    assert detector.detect_all_project_types(tmp_path) == ["terraform-module"]


def test_and_semantics_require_every_pattern(tmp_path: Path) -> None:
    rule = DetectionRule(type="combo", files=("a.txt", "b.txt"), priority=0)
    _touch(tmp_path, "a.txt")
    assert not matches(tmp_path, rule)
    _touch(tmp_path, "b.txt")
    assert matches(tmp_path, rule)


def test_tsconfig_alone_matches_nothing(tmp_path: Path, detector: Detector) -> None:
    _touch(tmp_path, "tsconfig.json")
    with pytest.raises(NoProjectTypeDetectedError):
        detector.detect_project_type(tmp_path)
    with pytest.raises(NoProjectTypeDetectedError):
        detector.detect_all_project_types(tmp_path)


def test_nested_manifest_is_ignored(tmp_path: Path, detector: Detector) -> None:
    _touch(tmp_path / "sub", "pyproject.toml")
    with pytest.raises(NoProjectTypeDetectedError):
        detector.detect_project_type(tmp_path)


def test_directory_named_like_marker_counts(tmp_path: Path, detector: Detector) -> None:
    (tmp_path / "Dockerfile").mkdir()
    assert detector.detect_project_type(tmp_path) == "docker"


def test_matching_is_case_sensitive(tmp_path: Path, detector: Detector) -> None:
    _touch(tmp_path, "dockerfile")
    with pytest.raises(NoProjectTypeDetectedError):
        detector.detect_project_type(tmp_path)


def test_empty_directory_fails(tmp_path: Path, detector: Detector) -> None:
    with pytest.raises(NoProjectTypeDetectedError, match="could not detect project type"):
        detector.detect_project_type(tmp_path)
    with pytest.raises(NoProjectTypeDetectedError, match="could not detect any project types"):
        detector.detect_all_project_types(tmp_path)


def test_missing_directory_is_unreadable(tmp_path: Path, detector: Detector) -> None:
    missing = tmp_path / "nope"
    assert list_entries(missing) is None
    with pytest.raises(UnreadableDirectoryError):
        detector.detect_project_type(missing)
    assert not matches(missing, DEFAULT_RULES[0])


def test_runtime_rule_addition(tmp_path: Path, detector: Detector) -> None:
    before = len(detector.get_detection_rules())
    detector.add_detection_rule(DetectionRule(type="custom", subtype="test", files=("custom.marker",), priority=0))
    assert len(detector.get_detection_rules()) == before + 1

    _touch(tmp_path, "custom.marker")
    assert detector.detect_project_type(tmp_path) == "custom-test"


def test_added_rule_with_equal_priority_ranks_after_existing(tmp_path: Path) -> None:
    table = RuleTable(DEFAULT_RULES).with_rule(DetectionRule(type="shadow", files=("pyproject.toml",), priority=2))
    _touch(tmp_path, "pyproject.toml")
    assert Detector(table).detect_project_type(tmp_path) == "python-modern"


def test_with_rule_leaves_source_table_untouched() -> None:
    base = RuleTable(DEFAULT_RULES)
    extended = base.with_rule(DetectionRule(type="x", files=("x",)))
    assert len(extended) == len(base) + 1
    assert len(base) == len(DEFAULT_RULES)


def test_add_rejects_non_rules() -> None:
    with pytest.raises(MalformedRuleError):
        RuleTable().add({"type": "python"})  # type: ignore[arg-type]


@pytest.mark.parametrize("kwargs", [{"type": "", "files": ("x",)}, {"type": "x", "files": ()}, {"type": "x", "files": ("",)}])
def test_malformed_rules_are_rejected(kwargs) -> None:
    with pytest.raises(MalformedRuleError):
        DetectionRule(**kwargs)


def test_name_composition() -> None:
    assert compose_type("python", "modern") == "python-modern"
    assert str(ProjectType(type="standalone")) == "standalone"
    assert DetectionRule(type="docker", files=("Dockerfile",)).name == "docker"
    pt = ProjectType.from_rule(DetectionRule(type="go", subtype="module", files=("go.mod",), priority=6))
    assert (str(pt), pt.file, pt.priority) == ("go-module", "go.mod", 6)


def test_module_functions_accept_an_explicit_table(tmp_path: Path) -> None:
    table = RuleTable([DetectionRule(type="only", files=("marker",))])
    _touch(tmp_path, "marker", "pyproject.toml")
    assert detect_project_type(tmp_path, table) == "only"
    assert detect_all_project_types(tmp_path, table) == ["only"]
    assert detect_project_type(tmp_path) == "python-modern"
    assert all(rule.type != "only" for rule in get_detection_rules())


def test_module_level_rule_addition(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(detect_base, "_default_detector", Detector(RuleTable(DEFAULT_RULES)))
    before = len(detect_base.get_detection_rules())
    detect_base.add_detection_rule(DetectionRule(type="custom", subtype="test", files=("custom.marker",), priority=0))
    assert len(detect_base.get_detection_rules()) == before + 1

    _touch(tmp_path, "custom.marker", "pyproject.toml")
    assert detect_base.detect_project_type(tmp_path) == "custom-test"
    assert "python-modern" in detect_base.detect_all_project_types(tmp_path)
