"""Dart / Flutter extractor (pubspec.yaml).

Dependencies are reported as constraint strings: hosted packages keep
their version range, path and git dependencies read ``path: <dir>`` and
``git: <url>``, and SDK dependencies (``flutter``, ``flutter_test``) are
left out.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, as_str, read_text
from build_metadata.types import ProjectMetadata

_SDK_PACKAGES = {"flutter", "flutter_test"}


def _constraint(value: Any) -> str:
    if not isinstance(value, dict):
        return as_str(value)
    if as_str(value.get("version")):
        return as_str(value["version"])
    if as_str(value.get("path")):
        return f"path: {as_str(value['path'])}"
    git = value.get("git")
    url = as_str(git.get("url")) if isinstance(git, dict) else as_str(git)
    return f"git: {url}" if url else ""


def _dependencies(value: Any) -> dict[str, str]:
    out: dict[str, str] = {}
    for name, entry in as_dict(value).items():
        constraint = _constraint(entry)
        if name not in _SDK_PACKAGES and constraint:
            out[str(name)] = constraint
    return out


def _strings(value: Any) -> list[str]:
    return [s for s in (as_str(v) for v in as_list(value)) if s]


def _flutter(flutter: dict[str, Any], ls: dict[str, Any]) -> None:
    if flutter.get("uses-material-design") is True:
        ls["uses_material_design"] = True
    if flutter.get("generate") is True:
        ls["uses_code_generation"] = True
    assets = _strings(flutter.get("assets"))
    if assets:
        ls["assets"] = assets
        ls["asset_count"] = len(assets)
    fonts = [as_str(f.get("family")) for f in as_list(flutter.get("fonts")) if isinstance(f, dict)]
    if fonts:
        ls["custom_fonts"] = fonts
        ls["font_count"] = len(fonts)
    module = as_dict(flutter.get("module"))
    if as_str(module.get("androidPackage")):
        ls["android_package"] = as_str(module["androidPackage"])
        ls["uses_androidx"] = module.get("androidX") is True
    if as_str(module.get("iosBundleIdentifier")):
        ls["ios_bundle_id"] = as_str(module["iosBundleIdentifier"])


class DartExtractor(BaseExtractor):
    markers = ("pubspec.yaml",)

    def __init__(self) -> None:
        super().__init__("dart", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        path = root / "pubspec.yaml"
        if not path.is_file():
            raise ExtractionError(f"pubspec.yaml not found in {root}")
        try:
            pubspec = yaml.safe_load(read_text(path))
        except yaml.YAMLError as exc:
            raise ExtractionError(f"failed to parse pubspec.yaml: {exc}") from exc
        if not isinstance(pubspec, dict):
            raise ExtractionError("failed to parse pubspec.yaml: top-level value is not a mapping")

        name = as_str(pubspec.get("name"))
        raw_deps = as_dict(pubspec.get("dependencies"))
        is_flutter = "flutter" in raw_deps
        environment = as_dict(pubspec.get("environment"))
        flutter = as_dict(pubspec.get("flutter"))
        plugin_platforms = list(as_dict(as_dict(flutter.get("plugin")).get("platforms")))
        executables = as_dict(pubspec.get("executables"))

        ls: dict[str, Any] = {
            "package_name": name,
            "metadata_source": "pubspec.yaml",
            "is_flutter": is_flutter,
            "framework": "Flutter" if is_flutter else "Dart",
            "is_flutter_plugin": bool(plugin_platforms),
            "versioning_type": "static",
        }
        if as_str(environment.get("sdk")):
            ls["dart_sdk"] = as_str(environment["sdk"])
        if as_str(environment.get("flutter")):
            ls["flutter_sdk"] = as_str(environment["flutter"])

        deps = _dependencies(raw_deps)
        if deps:
            ls["dependencies"] = deps
            ls["dependency_count"] = len(deps)
        dev_deps = _dependencies(pubspec.get("dev_dependencies"))
        if dev_deps:
            ls["dev_dependencies"] = dev_deps
            ls["dev_dependency_count"] = len(dev_deps)

        publish_to = pubspec.get("publish_to")
        if isinstance(publish_to, bool):
            ls["is_publishable"] = publish_to
        elif publish_to is not None:
            ls["publish_to"] = as_str(publish_to)
            ls["is_publishable"] = ls["publish_to"] != "none"
        else:
            ls["is_publishable"] = True

        for key in ("issue_tracker", "documentation"):
            if as_str(pubspec.get(key)):
                ls[key] = as_str(pubspec[key])
        for key in ("topics", "funding"):
            values = _strings(pubspec.get(key))
            if values:
                ls[key] = values
        if executables:
            ls["executables"] = {str(k): as_str(v) for k, v in executables.items()}
            ls["executable_count"] = len(executables)

        if is_flutter:
            _flutter(flutter, ls)
        if plugin_platforms:
            ls["plugin_platforms"] = [str(p) for p in plugin_platforms]
            ls["plugin_platform_count"] = len(plugin_platforms)
            ls["package_type"] = "plugin"
        elif executables:
            ls["package_type"] = "application"
        else:
            ls["package_type"] = "library"

        return ProjectMetadata(
            name=name,
            version=as_str(pubspec.get("version")),
            version_source="pubspec.yaml",
            description=as_str(pubspec.get("description")),
            homepage=as_str(pubspec.get("homepage")),
            repository=as_str(pubspec.get("repository")),
            language_specific=ls,
        )
