"""Julia extractor (Project.toml, or JuliaProject.toml)."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, as_str, read_text
from build_metadata.types import ProjectMetadata


def _layout(root: Path, name: str, ls: dict[str, Any]) -> None:
    if (root / "src").is_dir():
        ls["package_type"] = "package"
        if name and (root / "src" / f"{name}.jl").is_file():
            ls["has_main_module"] = True
    if (root / "test").is_dir():
        ls["has_tests"] = True
    if (root / "docs").is_dir():
        ls["has_docs"] = True
    notebooks = sorted(root.glob("*.ipynb"))
    if notebooks:
        ls["has_notebooks"] = True
        ls["notebook_count"] = len(notebooks)


class JuliaExtractor(BaseExtractor):
    markers = ("Project.toml", "JuliaProject.toml")

    def __init__(self) -> None:
        super().__init__("julia", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        path = next((root / m for m in self.markers if (root / m).is_file()), None)
        if path is None:
            raise ExtractionError(f"Project.toml not found in {root}")
        try:
            project = tomllib.loads(read_text(path))
        except tomllib.TOMLDecodeError as exc:
            raise ExtractionError(f"failed to parse {path.name}: {exc}") from exc

        name = as_str(project.get("name"))
        version = as_str(project.get("version"))
        compat = {str(k): as_str(v) for k, v in as_dict(project.get("compat")).items()}
        deps = list(as_dict(project.get("deps")))

        ls: dict[str, Any] = {
            "metadata_source": path.name,
            "build_tool": "Pkg",
            "versioning_type": "static",
        }
        if as_str(project.get("uuid")):
            ls["uuid"] = as_str(project["uuid"])
        if deps:
            ls["dependencies"] = deps
            ls["dependency_count"] = len(deps)
        if compat.get("julia"):
            ls["julia_version"] = compat["julia"]
        other_compat = {pkg: c for pkg, c in compat.items() if pkg != "julia"}
        if other_compat:
            ls["compat"] = other_compat
        if (root / "Manifest.toml").is_file():
            ls["has_manifest"] = True
        _layout(root, name, ls)

        return ProjectMetadata(
            name=name,
            version=version,
            version_source=path.name if version else "",
            authors=[a for a in (as_str(v) for v in as_list(project.get("authors"))) if a],
            language_specific=ls,
        )
