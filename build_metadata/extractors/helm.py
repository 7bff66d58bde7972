"""Helm chart extractor (Chart.yaml)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, as_str, people, read_text
from build_metadata.types import ProjectMetadata


def _strings(value: Any) -> list[str]:
    # YAML reads unquoted versions such as 1.10 as floats, so scalars go through as_str
    return [s for s in (as_str(v) for v in as_list(value)) if s]


def _dependency(dep: dict[str, Any]) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "name": as_str(dep.get("name")),
        "version": as_str(dep.get("version")),
        "repository": as_str(dep.get("repository")),
    }
    for key in ("alias", "condition"):
        if as_str(dep.get(key)):
            entry[key] = as_str(dep[key])
    tags = _strings(dep.get("tags"))
    if tags:
        entry["tags"] = tags
    return entry


class HelmExtractor(BaseExtractor):
    markers = ("Chart.yaml",)

    def __init__(self) -> None:
        super().__init__("helm", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        path = root / "Chart.yaml"
        if not path.is_file():
            raise ExtractionError(f"Chart.yaml not found in {root}")
        try:
            chart = yaml.safe_load(read_text(path))
        except yaml.YAMLError as exc:
            raise ExtractionError(f"failed to parse Chart.yaml: {exc}") from exc
        if not isinstance(chart, dict):
            raise ExtractionError("failed to parse Chart.yaml: top-level value is not a mapping")

        sources = _strings(chart.get("sources"))
        chart_type = as_str(chart.get("type"))
        ls: dict[str, Any] = {
            "chart_name": as_str(chart.get("name")),
            "api_version": as_str(chart.get("apiVersion")),
            "app_version": as_str(chart.get("appVersion")),
            "chart_type": chart_type,
            "kube_version": as_str(chart.get("kubeVersion")),
            "deprecated": chart.get("deprecated") is True,
            "metadata_source": "Chart.yaml",
            "is_library_chart": chart_type == "library",
            "versioning_type": "static",
        }
        if as_str(chart.get("icon")):
            ls["icon"] = as_str(chart["icon"])
        keywords = _strings(chart.get("keywords"))
        if keywords:
            ls["keywords"] = keywords
        if sources:
            ls["sources"] = sources
        annotations = as_dict(chart.get("annotations"))
        if annotations:
            ls["annotations"] = {str(k): as_str(v) for k, v in annotations.items()}
        deps = [_dependency(d) for d in as_list(chart.get("dependencies")) if isinstance(d, dict)]
        if deps:
            ls["dependencies"] = deps
            ls["dependency_count"] = len(deps)

        return ProjectMetadata(
            name=ls["chart_name"],
            version=as_str(chart.get("version")),
            version_source="Chart.yaml",
            description=as_str(chart.get("description")),
            authors=people(chart.get("maintainers")),
            homepage=as_str(chart.get("home")),
            repository=sources[0] if sources else "",
            language_specific=ls,
        )
