"""Python extractor.

Sources, in order of preference:
- ``pyproject.toml`` ([project] table, PEP 621, plus poetry/pdm/hatch/setuptools tool tables)
- ``setup.cfg`` ([metadata] / [options])
- ``setup.py`` (keyword arguments scraped with regexes; the file is never executed)

A pyproject.toml without a [project] table or any recognised tool table
falls through to the legacy files.
"""

from __future__ import annotations

import configparser
import re
import tomllib
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, as_str, format_person, people, read_text
from build_metadata.logging import get_logger
from build_metadata.types import ProjectMetadata

log = get_logger()

_TOOL_FLAGS = ("poetry", "pdm", "hatch", "setuptools")
_UNQUOTED_VERSION = re.compile(r"^\s*version\s*=\s*([^\"'\s\[{][^\s]*)\s*$", re.MULTILINE)
_DYNAMIC_SETUP_PY = ("__version__", "version=get_version", "version=read_version")


def _setup_py_field(text: str, field: str) -> str:
    patterns = (
        rf"\b{field}\s*=\s*'''([^']+)'''",
        rf'\b{field}\s*=\s*"""([^"]+)"""',
        rf"\b{field}\s*=\s*['\"]([^'\"]+)['\"]",
    )
    for pattern in patterns:
        m = re.search(pattern, text)
        if m:
            return m.group(1).strip()
    return ""


def _license(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        if isinstance(value.get("text"), str):
            return value["text"]
        if isinstance(value.get("file"), str):
            return f"file:{value['file']}"
    return ""


def _multiline(value: str) -> list[str]:
    return [line.strip() for line in value.splitlines() if line.strip()]


class PythonExtractor(BaseExtractor):
    markers = ("pyproject.toml", "setup.cfg", "setup.py")

    def __init__(self) -> None:
        super().__init__("python", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        pyproject, setup_cfg, setup_py = (root / m for m in self.markers)

        if pyproject.is_file():
            fields = self._from_pyproject(pyproject)
            ls = fields["language_specific"]
            has_tool_config = any(ls.get(f"{tool}_config") for tool in _TOOL_FLAGS)
            if fields["name"] or has_tool_config:
                if not ls.get("requires_python"):
                    self._borrow_requires_python(ls, setup_py, setup_cfg)
                return ProjectMetadata(**fields)
            log.info("pyproject.toml in %s has no [project] table; trying legacy files", root)

        if setup_cfg.is_file():
            return ProjectMetadata(**self._from_setup_cfg(setup_cfg))
        if setup_py.is_file():
            return ProjectMetadata(**self._from_setup_py(setup_py))
        raise ExtractionError(
            f"no Python project files found in {root} (searched: {', '.join(self.markers)})"
        )

    def _borrow_requires_python(self, ls: dict, setup_py: Path, setup_cfg: Path) -> None:
        for path, parse in ((setup_py, self._from_setup_py), (setup_cfg, self._from_setup_cfg)):
            if not path.is_file():
                continue
            try:
                requires = parse(path)["language_specific"].get("requires_python")
            except ExtractionError:
                continue
            if requires:
                ls["requires_python"] = requires
                return

    # --- pyproject.toml --------------------------------------------------------

    def _from_pyproject(self, path: Path) -> dict[str, Any]:
        text = read_text(path)
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            bad = _UNQUOTED_VERSION.search(text)
            if bad:
                raise ExtractionError(
                    f"pyproject.toml contains invalid TOML syntax: unquoted version value {bad.group(1)!r}"
                ) from exc
            raise ExtractionError(f"found pyproject.toml but failed to parse it: {exc}") from exc

        project = as_dict(data.get("project"))
        build_system = as_dict(data.get("build-system"))
        tool = as_dict(data.get("tool"))

        name = as_str(project.get("name"))
        if not name:
            log.warning("pyproject.toml parsed but [project].name is empty: %s", path)

        homepage = repository = ""
        for key, url in as_dict(project.get("urls")).items():
            k = key.lower()
            if k in {"homepage", "home"}:
                homepage = as_str(url)
            elif k in {"repository", "source"}:
                repository = as_str(url)

        dynamic = "version" in as_list(project.get("dynamic"))
        ls: dict[str, Any] = {
            "package_name": name,
            "metadata_source": "pyproject.toml",
            "requires_python": as_str(project.get("requires-python")),
            "build_backend": as_str(build_system.get("build-backend")),
            "build_requires": as_list(build_system.get("requires")),
            "keywords": as_list(project.get("keywords")),
            "classifiers": as_list(project.get("classifiers")),
            "versioning_type": "dynamic" if dynamic else "static",
        }
        deps = as_list(project.get("dependencies"))
        if deps:
            ls["dependencies"] = deps
            ls["dependency_count"] = len(deps)
        optional = as_dict(project.get("optional-dependencies"))
        if optional:
            ls["optional_dependencies"] = optional
        if as_dict(project.get("scripts")):
            ls["scripts"] = project["scripts"]

        version = as_str(project.get("version"))
        version_source = "pyproject.toml"
        for flag in _TOOL_FLAGS:
            if isinstance(tool.get(flag), dict):
                ls[f"{flag}_config"] = True
        poetry = tool.get("poetry")
        if isinstance(poetry, dict):
            if not version and as_str(poetry.get("version")):
                version = as_str(poetry["version"])
                version_source = "pyproject.toml (poetry)"
            if not name and as_str(poetry.get("name")):
                name = as_str(poetry["name"])
                ls["package_name"] = name
        for flag in ("pdm", "hatch"):
            section = tool.get(flag)
            if isinstance(section, dict) and isinstance(section.get("version"), dict):
                ls[f"{flag}_version_source"] = as_str(section["version"].get("source"))

        if name:
            ls["project_match_package"] = name == name.replace("-", "_")

        return {
            "name": name,
            "version": version,
            "version_source": version_source,
            "description": as_str(project.get("description")),
            "license": _license(project.get("license")),
            "authors": people(project.get("authors")),
            "homepage": homepage,
            "repository": repository,
            "language_specific": ls,
        }

    # --- setup.cfg -------------------------------------------------------------

    def _from_setup_cfg(self, path: Path) -> dict[str, Any]:
        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read_string(read_text(path), source=str(path))
        except configparser.Error as exc:
            raise ExtractionError(f"found setup.cfg but failed to parse it: {exc}") from exc

        meta = parser["metadata"] if parser.has_section("metadata") else {}
        options = parser["options"] if parser.has_section("options") else {}
        name = meta.get("name", "")
        author = format_person(meta.get("author"), meta.get("author_email"))

        ls: dict[str, Any] = {
            "package_name": name,
            "metadata_source": "setup.cfg",
            "versioning_type": "dynamic" if meta.get("version", "").startswith(("attr:", "file:")) else "static",
        }
        requires = meta.get("python_requires") or options.get("python_requires", "")
        if requires:
            ls["requires_python"] = requires
        deps = _multiline(options.get("install_requires", ""))
        if deps:
            ls["dependencies"] = deps
            ls["dependency_count"] = len(deps)
        if name:
            ls["project_match_package"] = name == name.replace("-", "_")

        return {
            "name": name,
            "version": meta.get("version", ""),
            "version_source": "setup.cfg",
            "description": meta.get("description", ""),
            "license": meta.get("license", ""),
            "authors": [author] if author else [],
            "homepage": meta.get("url", ""),
            "repository": "",
            "language_specific": ls,
        }

    # --- setup.py --------------------------------------------------------------

    def _from_setup_py(self, path: Path) -> dict[str, Any]:
        text = read_text(path)
        name = _setup_py_field(text, "name")
        author = format_person(_setup_py_field(text, "author"), _setup_py_field(text, "author_email"))
        ls: dict[str, Any] = {
            "package_name": name,
            "metadata_source": "setup.py",
            "versioning_type": "dynamic" if any(p in text for p in _DYNAMIC_SETUP_PY) else "static",
        }
        requires = _setup_py_field(text, "python_requires")
        if requires:
            ls["requires_python"] = requires
        if name:
            ls["project_match_package"] = name == name.replace("-", "_")

        return {
            "name": name,
            "version": _setup_py_field(text, "version"),
            "version_source": "setup.py",
            "description": _setup_py_field(text, "description"),
            "license": _setup_py_field(text, "license"),
            "authors": [author] if author else [],
            "homepage": _setup_py_field(text, "url"),
            "repository": "",
            "language_specific": ls,
        }
