"""Rust extractor (Cargo.toml).

Package fields may be inherited from ``[workspace.package]`` with
``field.workspace = true``; both forms are resolved here.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, read_text
from build_metadata.types import ProjectMetadata

_FRAMEWORKS = {
    "tokio": "Tokio (Async Runtime)",
    "async-std": "async-std (Async Runtime)",
    "actix-web": "Actix Web (Web Framework)",
    "rocket": "Rocket (Web Framework)",
    "axum": "Axum (Web Framework)",
    "warp": "Warp (Web Framework)",
    "serde": "Serde (Serialization)",
    "clap": "Clap (CLI Parser)",
    "diesel": "Diesel (ORM)",
    "sqlx": "SQLx (SQL Toolkit)",
    "reqwest": "Reqwest (HTTP Client)",
    "hyper": "Hyper (HTTP Library)",
    "tonic": "Tonic (gRPC)",
    "tracing": "Tracing (Logging/Diagnostics)",
    "anyhow": "Anyhow (Error Handling)",
    "thiserror": "thiserror (Error Derive)",
    "rayon": "Rayon (Parallelism)",
    "bevy": "Bevy (Game Engine)",
    "tauri": "Tauri (Desktop Apps)",
}


def _inherited(value: Any, workspace_default: Any) -> Any:
    if value is None:
        return workspace_default
    if isinstance(value, dict):
        return workspace_default if value.get("workspace") is True else None
    return value


def _str(value: Any, workspace_default: Any = "") -> str:
    resolved = _inherited(value, workspace_default)
    return resolved if isinstance(resolved, str) else ""


def _str_list(value: Any, workspace_default: Any = None) -> list[str]:
    resolved = _inherited(value, workspace_default)
    if isinstance(resolved, list):
        return [v for v in resolved if isinstance(v, str)]
    return []


def _format_dependencies(deps: dict[str, Any]) -> list[str]:
    out = []
    for name, req in deps.items():
        text = name
        if isinstance(req, str):
            text += f"@{req}"
        elif isinstance(req, dict):
            if isinstance(req.get("version"), str):
                text += f"@{req['version']}"
            if req.get("optional") is True:
                text += " (optional)"
            features = [f for f in as_list(req.get("features")) if isinstance(f, str)]
            if features:
                text += f" [{', '.join(features)}]"
        out.append(text)
    return out


class RustExtractor(BaseExtractor):
    markers = ("Cargo.toml",)

    def __init__(self) -> None:
        super().__init__("rust-cargo", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        cargo_toml = root / "Cargo.toml"
        if not cargo_toml.is_file():
            raise ExtractionError(f"no Cargo.toml file found in {root}")
        try:
            cargo = tomllib.loads(read_text(cargo_toml))
        except tomllib.TOMLDecodeError as exc:
            raise ExtractionError(f"failed to parse Cargo.toml: {exc}") from exc

        package = as_dict(cargo.get("package"))
        workspace = as_dict(cargo.get("workspace"))
        ws_package = as_dict(workspace.get("package"))
        name = _str(package.get("name"))

        def inherit(key: str) -> str:
            return _str(package.get(key), ws_package.get(key, ""))

        version = inherit("version")
        # A bare boolean or "true"/"false" is never a release number
        if version in {"true", "false"}:
            version = ""

        ls: dict[str, Any] = {
            "package_name": name,
            "metadata_source": "Cargo.toml",
        }
        edition = inherit("edition")
        if edition:
            ls["edition"] = edition
        rust_version = inherit("rust-version")
        if rust_version:
            ls["rust_version"] = rust_version
            ls["msrv"] = rust_version
        for key in ("documentation", "license-file", "build"):
            if isinstance(package.get(key), str):
                ls[key.replace("-", "_")] = package[key]
        if "build" in ls:
            ls["build_script"] = ls.pop("build")
            ls["has_build_script"] = True
        for key in ("keywords", "categories"):
            values = _str_list(package.get(key), ws_package.get(key))
            if values:
                ls[key] = values
        if "publish" in package:
            ls["publish"] = package["publish"]
        readme = _str(package.get("readme"))
        if readme:
            ls["readme"] = readme

        deps = as_dict(cargo.get("dependencies"))
        dev_deps = as_dict(cargo.get("dev-dependencies"))
        build_deps = as_dict(cargo.get("build-dependencies"))
        if deps:
            ls["dependencies"] = _format_dependencies(deps)
            ls["dependency_count"] = len(deps)
            optional = [n for n, s in deps.items() if isinstance(s, dict) and s.get("optional") is True]
            if optional:
                ls["optional_dependencies"] = optional
        if dev_deps:
            ls["dev_dependencies"] = _format_dependencies(dev_deps)
            ls["dev_dependency_count"] = len(dev_deps)
        if build_deps:
            ls["build_dependencies"] = _format_dependencies(build_deps)
            ls["build_dependency_count"] = len(build_deps)
        total = len(deps) + len(dev_deps) + len(build_deps)
        if total:
            ls["total_dependency_count"] = total

        features = as_dict(cargo.get("features"))
        if features:
            ls["features"] = features
            ls["feature_count"] = len(features)
            ls["feature_names"] = list(features)

        members = as_list(workspace.get("members"))
        if members:
            ls["is_workspace"] = True
            ls["workspace_members"] = members
            ls["workspace_member_count"] = len(members)
            if workspace.get("resolver"):
                ls["workspace_resolver"] = workspace["resolver"]

        bins = [_str(b.get("name")) for b in as_list(cargo.get("bin")) if isinstance(b, dict)]
        if bins:
            ls["binary_targets"] = bins
            ls["binary_count"] = len(bins)
        lib = as_dict(cargo.get("lib"))
        if _str(lib.get("name")):
            ls["lib_name"] = lib["name"]
            if lib.get("crate-type"):
                ls["crate_types"] = lib["crate-type"]

        frameworks = [label for dep, label in _FRAMEWORKS.items() if dep in deps]
        if frameworks:
            ls["frameworks"] = frameworks

        return ProjectMetadata(
            name=name,
            version=version,
            version_source="Cargo.toml",
            description=inherit("description"),
            license=inherit("license"),
            authors=_str_list(package.get("authors"), ws_package.get("authors")),
            homepage=inherit("homepage"),
            repository=inherit("repository"),
            language_specific=ls,
        )
