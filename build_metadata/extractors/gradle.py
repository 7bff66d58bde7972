"""Gradle extractor (build.gradle.kts / build.gradle).

The build script is scanned with regexes, never evaluated. The Kotlin DSL
file wins when both are present. ``settings.gradle[.kts]`` supplies the
root project name and subprojects; ``gradle.properties`` fills in a
version or group the build script leaves out.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, read_text
from build_metadata.types import ProjectMetadata

_CONFIGURATIONS = (
    "implementation",
    "api",
    "compileOnly",
    "runtimeOnly",
    "testImplementation",
    "testCompileOnly",
    "testRuntimeOnly",
    "annotationProcessor",
    "kapt",
)
_KOTLIN_PLUGINS = (
    (re.compile(r'id\("([^"]+)"\)\s+version\s+"([^"]+)"'), ""),
    (re.compile(r'kotlin\("([^"]+)"\)\s+version\s+"([^"]+)"'), "org.jetbrains.kotlin."),
    (re.compile(r'id\("([^"]+)"\)'), ""),
)
_GROOVY_PLUGINS = (
    (re.compile(r"id\s+['\"]([^'\"]+)['\"]\s+version\s+['\"]([^'\"]+)['\"]"), ""),
    (re.compile(r"id\s+['\"]([^'\"]+)['\"]"), ""),
    (re.compile(r"apply\s+plugin:\s*['\"]([^'\"]+)['\"]"), ""),
)
_FRAMEWORKS = {
    "org.springframework.boot": "Spring Boot",
    "io.quarkus": "Quarkus",
    "io.micronaut.application": "Micronaut",
    "java": "Java",
    "application": "Java Application",
    "java-library": "Java Library",
    "com.android.application": "Android",
    "com.android.library": "Android Library",
}
_DYNAMIC_MARKERS = ("SNAPSHOT", "project.version", "rootProject.version")


@dataclass
class GradleBuild:
    build_file: str
    kotlin_dsl: bool
    group: str = ""
    name: str = ""
    version: str = ""
    description: str = ""
    plugins: dict[str, str] = field(default_factory=dict)
    dependencies: list[dict[str, str]] = field(default_factory=list)
    subprojects: list[str] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)


def gradle_property(text: str, prop: str, kotlin_dsl: bool) -> str:
    if kotlin_dsl:
        patterns = (rf'\b{prop}\s*=\s*"([^"]+)"', rf"\b{prop}\s*=\s*'([^']+)'")
    else:
        patterns = (rf"\b{prop}\s+['\"]([^'\"]+)['\"]", rf"\b{prop}\s*=\s*['\"]([^'\"]+)['\"]")
    for pattern in patterns:
        m = re.search(pattern, text)
        if m:
            return m.group(1)
    return ""


def parse_plugins(text: str, kotlin_dsl: bool) -> dict[str, str]:
    """Plugin id -> version ("" when the script does not pin one)."""
    plugins: dict[str, str] = {}
    for pattern, prefix in _KOTLIN_PLUGINS if kotlin_dsl else _GROOVY_PLUGINS:
        for m in pattern.finditer(text):
            plugin_id = prefix + m.group(1)
            version = m.group(2) if pattern.groups > 1 else ""
            if plugin_id not in plugins or (version and not plugins[plugin_id]):
                plugins[plugin_id] = version
    return plugins


def parse_dependencies(text: str, kotlin_dsl: bool) -> list[dict[str, str]]:
    deps = []
    for config in _CONFIGURATIONS:
        if kotlin_dsl:
            pattern = rf'\b{config}\("([^:"]+):([^:"]+):([^"]+)"\)'
        else:
            pattern = rf"\b{config}\s*\(?\s*['\"]([^:'\"]+):([^:'\"]+):([^'\"]+)['\"]"
        for m in re.finditer(pattern, text):
            deps.append({"configuration": config, "group": m.group(1), "name": m.group(2), "version": m.group(3)})
    return deps


def parse_properties_file(text: str) -> dict[str, str]:
    props = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", "!")):
            continue
        key, sep, value = line.partition("=")
        if sep:
            props[key.strip()] = value.strip()
    return props


class GradleExtractor(BaseExtractor):
    markers = ("build.gradle.kts", "build.gradle")

    def __init__(self) -> None:
        super().__init__("java-gradle", 4)

    def extract(self, root: Path) -> ProjectMetadata:
        build = self._parse(Path(root))

        ls: dict[str, Any] = {
            "group_id": build.group,
            "artifact_id": build.name,
            "metadata_source": build.build_file,
            "build_system": "gradle",
            "build_dsl": "kotlin" if build.kotlin_dsl else "groovy",
        }
        if build.dependencies:
            ls["dependencies"] = build.dependencies
            ls["dependency_count"] = len(build.dependencies)
            ls["dependency_configurations"] = dict(Counter(d["configuration"] for d in build.dependencies))
        if build.plugins:
            ls["plugins"] = [f"{pid}:{ver}" if ver else pid for pid, ver in build.plugins.items()]
            ls["plugin_count"] = len(build.plugins)
            frameworks: list[str] = []
            for pid in build.plugins:
                label = _FRAMEWORKS.get(pid) or ("Kotlin" if "kotlin" in pid else None)
                if label and label not in frameworks:
                    frameworks.append(label)
            if frameworks:
                ls["frameworks"] = frameworks
        if build.subprojects:
            ls["is_multi_project"] = True
            ls["subprojects"] = build.subprojects
            ls["subproject_count"] = len(build.subprojects)
        if build.properties:
            ls["properties"] = build.properties
            java_version = build.properties.get("java.version") or build.properties.get("sourceCompatibility")
            if java_version:
                ls["java_version"] = java_version
        dynamic = any(marker in build.version for marker in _DYNAMIC_MARKERS)
        ls["versioning_type"] = "dynamic" if dynamic else "static"

        return ProjectMetadata(
            name=build.name,
            version=build.version,
            version_source=build.build_file,
            description=build.description,
            language_specific=ls,
        )

    def _parse(self, root: Path) -> GradleBuild:
        for filename in self.markers:
            path = root / filename
            if path.is_file():
                break
        else:
            raise ExtractionError(f"no Gradle build file found in {root}")

        kotlin_dsl = filename.endswith(".kts")
        text = read_text(path)
        build = GradleBuild(
            build_file=filename,
            kotlin_dsl=kotlin_dsl,
            group=gradle_property(text, "group", kotlin_dsl),
            version=gradle_property(text, "version", kotlin_dsl),
            description=gradle_property(text, "description", kotlin_dsl),
            plugins=parse_plugins(text, kotlin_dsl),
            dependencies=parse_dependencies(text, kotlin_dsl),
        )

        settings = root / ("settings.gradle.kts" if kotlin_dsl else "settings.gradle")
        if settings.is_file():
            settings_text = read_text(settings)
            m = re.search(r"rootProject\.name\s*=\s*['\"]([^'\"]+)['\"]", settings_text)
            if m:
                build.name = m.group(1)
            include = r'include\(\s*"([^"]+)"\s*\)' if kotlin_dsl else r"include\s*\(?\s*['\"]([^'\"]+)['\"]"
            build.subprojects = [sub.lstrip(":") for sub in re.findall(include, settings_text)]

        props_file = root / "gradle.properties"
        if props_file.is_file():
            build.properties = parse_properties_file(read_text(props_file))
            build.version = build.version or build.properties.get("version", "")
            build.group = build.group or build.properties.get("group", "")
        return build
