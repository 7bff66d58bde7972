"""Declarative detection rules and the rule table that holds them.

A rule names a project type (and optional subtype), the marker files that
must all be present in the project directory, and a priority. Lower
priority values win; rules sharing a priority are ranked by their position
in the table.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from build_metadata.exceptions import MalformedRuleError


def compose_type(type_: str, subtype: str = "") -> str:
    return f"{type_}-{subtype}" if subtype else type_


@dataclass(frozen=True)
class DetectionRule:
    type: str
    subtype: str = ""
    files: tuple[str, ...] = ()
    priority: int = 0

    def __post_init__(self) -> None:
        if not self.type:
            raise MalformedRuleError("detection rule type must not be empty")
        files = tuple(self.files) if not isinstance(self.files, str) else (self.files,)
        if not files or not all(files):
            raise MalformedRuleError(f"detection rule {self.type!r} needs at least one file pattern")
        object.__setattr__(self, "files", files)

    @property
    def name(self) -> str:
        return compose_type(self.type, self.subtype)


@dataclass(frozen=True)
class ProjectType:
    """Detection result; ``str()`` is the canonical dispatch key."""

    type: str
    subtype: str = ""
    file: str = ""
    priority: int = 0

    @classmethod
    def from_rule(cls, rule: DetectionRule) -> ProjectType:
        return cls(type=rule.type, subtype=rule.subtype, file=rule.files[0], priority=rule.priority)

    def __str__(self) -> str:
        return compose_type(self.type, self.subtype)


def _rule(type_: str, subtype: str, *files: str, priority: int) -> DetectionRule:
    return DetectionRule(type=type_, subtype=subtype, files=files, priority=priority)


DEFAULT_RULES: tuple[DetectionRule, ...] = (
    # JavaScript / TypeScript
    _rule("typescript", "npm", "package.json", "tsconfig.json", priority=0),
    _rule("javascript", "npm", "package.json", priority=1),
    # Python
    _rule("python", "modern", "pyproject.toml", priority=2),
    _rule("python", "legacy", "setup.py", priority=9),
    _rule("python", "setup-cfg", "setup.cfg", priority=9),
    # Java / Kotlin; build.gradle.kts is claimed by kotlin before java-gradle-kts
    _rule("java", "maven", "pom.xml", priority=3),
    _rule("kotlin", "gradle", "build.gradle.kts", priority=3),
    _rule("java", "gradle", "build.gradle", priority=4),
    _rule("java", "gradle-kts", "build.gradle.kts", priority=4),
    # .NET
    _rule("csharp", "project", "*.csproj", priority=5),
    _rule("csharp", "solution", "*.sln", priority=5),
    _rule("csharp", "props", "*.props", priority=6),
    _rule("go", "module", "go.mod", priority=6),
    _rule("php", "composer", "composer.json", priority=7),
    _rule("ruby", "gemspec", "*.gemspec", priority=8),
    _rule("ruby", "bundler", "Gemfile", priority=8),
    _rule("c", "autoconf", "configure.ac", priority=8),
    _rule("c", "autoconf-legacy", "configure.in", priority=9),
    _rule("rust", "cargo", "Cargo.toml", priority=11),
    _rule("swift", "package", "Package.swift", priority=12),
    _rule("dart", "flutter", "pubspec.yaml", priority=13),
    _rule("c", "cmake", "CMakeLists.txt", priority=14),
    _rule("c", "qmake", ".qmake.conf", priority=14),
    _rule("c", "meson", "meson.build", priority=14),
    _rule("elixir", "mix", "mix.exs", priority=15),
    _rule("scala", "sbt", "build.sbt", priority=16),
    _rule("haskell", "cabal", "*.cabal", priority=17),
    _rule("julia", "project", "Project.toml", priority=18),
    _rule("clojure", "leiningen", "project.clj", priority=19),
    _rule("clojure", "deps", "deps.edn", priority=19),
    _rule("erlang", "rebar", "rebar.config", priority=20),
    _rule("perl", "cpan", "Makefile.PL", priority=21),
    _rule("perl", "module-build", "Build.PL", priority=21),
    _rule("r", "package", "DESCRIPTION", priority=22),
    _rule("docker", "", "Dockerfile", priority=23),
    _rule("helm", "chart", "Chart.yaml", priority=24),
    _rule("terraform", "module", "main.tf", priority=25),
    _rule("terraform", "module", "variables.tf", priority=25),
    _rule("terraform", "module", "*.tf", priority=26),
)


class RuleTable:
    """Ordered, appendable collection of detection rules.

    Tables are plain values: build an isolated one with
    ``RuleTable(DEFAULT_RULES).with_rule(...)`` instead of mutating the
    process-wide default.
    """

    def __init__(self, rules: Iterable[DetectionRule] = DEFAULT_RULES) -> None:
        self._rules: list[DetectionRule] = list(rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[DetectionRule]:
        return iter(list(self._rules))

    @property
    def rules(self) -> list[DetectionRule]:
        return list(self._rules)

    def add(self, rule: DetectionRule) -> None:
        if not isinstance(rule, DetectionRule):
            raise MalformedRuleError(f"expected DetectionRule, got {type(rule).__name__}")
        self._rules.append(rule)

    def with_rule(self, rule: DetectionRule) -> RuleTable:
        table = RuleTable(self._rules)
        table.add(rule)
        return table

    def ranked(self) -> list[DetectionRule]:
        """Rules by ascending priority; equal priorities keep table order."""
        indexed = sorted(enumerate(self._rules), key=lambda item: (item[1].priority, item[0]))
        return [rule for _, rule in indexed]
