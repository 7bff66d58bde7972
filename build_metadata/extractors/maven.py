"""Maven extractor (pom.xml).

``${...}`` placeholders in the version and groupId are resolved against
``<properties>`` and the implicit ``project.*`` properties. Missing
version or groupId fall back to the ``<parent>`` coordinates.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections import Counter
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, format_person, read_text
from build_metadata.types import ProjectMetadata

_PLUGIN_FRAMEWORKS = {
    "spring-boot-maven-plugin": "Spring Boot",
    "quarkus-maven-plugin": "Quarkus",
    "micronaut-maven-plugin": "Micronaut",
    "maven-compiler-plugin": "Maven Compiler",
    "maven-surefire-plugin": "Maven Surefire",
}
_GROUP_FRAMEWORKS = (
    ("org.springframework.boot", "Spring Boot"),
    ("io.quarkus", "Quarkus"),
    ("io.micronaut", "Micronaut"),
    ("org.junit", "JUnit"),
    ("org.testng", "TestNG"),
    ("io.vertx", "Vert.x"),
    ("org.hibernate", "Hibernate"),
)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element | None, name: str) -> ET.Element | None:
    if elem is None:
        return None
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _children(elem: ET.Element | None, name: str) -> list[ET.Element]:
    if elem is None:
        return []
    return [child for child in elem if _local(child.tag) == name]


def _text(elem: ET.Element | None, name: str) -> str:
    child = _child(elem, name)
    return (child.text or "").strip() if child is not None else ""


def resolve_property(value: str, props: dict[str, str]) -> str:
    if "${" not in value:
        return value
    for key, replacement in props.items():
        value = value.replace("${" + key + "}", replacement)
    return value


def _frameworks(plugins: list[ET.Element], deps: list[ET.Element]) -> list[str]:
    found: list[str] = []
    for plugin in plugins:
        label = _PLUGIN_FRAMEWORKS.get(_text(plugin, "artifactId"))
        if label and label not in found:
            found.append(label)
    for dep in deps:
        group = _text(dep, "groupId")
        label = "JUnit" if group == "junit" else None
        for prefix, name in _GROUP_FRAMEWORKS:
            if label is None and group.startswith(prefix):
                label = name
        if label and label not in found:
            found.append(label)
    return found


class MavenExtractor(BaseExtractor):
    markers = ("pom.xml",)

    def __init__(self) -> None:
        super().__init__("java-maven", 3)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        pom_path = root / "pom.xml"
        if not pom_path.is_file():
            raise ExtractionError(f"pom.xml not found in {root}")
        try:
            pom = ET.fromstring(read_text(pom_path))
        except ET.ParseError as exc:
            raise ExtractionError(f"failed to parse pom.xml: {exc}") from exc
        if _local(pom.tag) != "project":
            raise ExtractionError(f"failed to parse pom.xml: unexpected root element <{_local(pom.tag)}>")

        properties = _child(pom, "properties")
        props = {_local(p.tag): (p.text or "").strip() for p in properties} if properties is not None else {}
        raw_group, artifact, raw_version = (_text(pom, k) for k in ("groupId", "artifactId", "version"))
        implicit = dict(props)
        for key, value in (("groupId", raw_group), ("artifactId", artifact), ("version", raw_version)):
            if value:
                implicit[f"project.{key}"] = value
        version = resolve_property(raw_version, implicit)
        group = resolve_property(raw_group, implicit)

        ls: dict[str, Any] = {
            "group_id": group,
            "artifact_id": artifact,
            "packaging": _text(pom, "packaging") or "jar",
            "metadata_source": "pom.xml",
            "model_version": _text(pom, "modelVersion"),
        }

        parent = _child(pom, "parent")
        if parent is not None:
            parent_version = _text(parent, "version")
            ls.update(
                has_parent=True,
                parent_group_id=_text(parent, "groupId"),
                parent_artifact_id=_text(parent, "artifactId"),
                parent_version=parent_version,
            )
            if not version and parent_version:
                version = parent_version
                ls["version_from_parent"] = True
            if not group and ls["parent_group_id"]:
                ls["group_id"] = ls["parent_group_id"]
                ls["group_id_from_parent"] = True

        if props:
            ls["properties"] = props
            ls["property_count"] = len(props)
            java_version = props.get("maven.compiler.source") or props.get("java.version")
            if java_version:
                ls["java_version"] = java_version
            if "revision" in props:
                ls["versioning_type"] = "dynamic"
                ls["version_property"] = "revision"

        deps = _children(_child(pom, "dependencies"), "dependency")
        if deps:
            entries = []
            for dep in deps:
                entry = {
                    "group_id": _text(dep, "groupId"),
                    "artifact_id": _text(dep, "artifactId"),
                    "version": _text(dep, "version"),
                }
                if _text(dep, "scope"):
                    entry["scope"] = _text(dep, "scope")
                entries.append(entry)
            ls["dependencies"] = entries
            ls["dependency_count"] = len(entries)
            ls["dependency_scopes"] = dict(Counter(e.get("scope", "compile") for e in entries))

        plugins = _children(_child(_child(pom, "build"), "plugins"), "plugin")
        if plugins:
            ids = []
            for plugin in plugins:
                plugin_id = f"{_text(plugin, 'groupId')}:{_text(plugin, 'artifactId')}"
                if _text(plugin, "version"):
                    plugin_id += f":{_text(plugin, 'version')}"
                ids.append(plugin_id)
            ls["build_plugins"] = ids
            ls["plugin_count"] = len(ids)
            frameworks = _frameworks(plugins, deps)
            if frameworks:
                ls["frameworks"] = frameworks

        modules = [(m.text or "").strip() for m in _children(_child(pom, "modules"), "module")]
        if modules:
            ls["is_multi_module"] = True
            ls["modules"] = modules
            ls["module_count"] = len(modules)

        profiles = [_text(p, "id") for p in _children(_child(pom, "profiles"), "profile")]
        if profiles:
            ls["profiles"] = profiles
            ls["profile_count"] = len(profiles)

        organization = _child(pom, "organization")
        if _text(organization, "name"):
            ls["organization"] = _text(organization, "name")
            if _text(organization, "url"):
                ls["organization_url"] = _text(organization, "url")

        ls.setdefault("versioning_type", "dynamic" if "${" in version else "static")

        licenses = _children(_child(pom, "licenses"), "license")
        authors = [
            format_person(_text(dev, "name"), _text(dev, "email"))
            for dev in _children(_child(pom, "developers"), "developer")
            if _text(dev, "name")
        ]

        return ProjectMetadata(
            name=_text(pom, "name") or artifact,
            version=version,
            version_source="pom.xml",
            description=_text(pom, "description"),
            license=_text(licenses[0], "name") if licenses else "",
            authors=authors,
            homepage=_text(pom, "url"),
            repository=_text(_child(pom, "scm"), "url"),
            language_specific=ls,
        )
