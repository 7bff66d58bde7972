from __future__ import annotations

from pathlib import Path

import pytest

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.python import PythonExtractor

PYPROJECT = """\
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "demo-pkg"
version = "1.2.3"
description = "A demo package"
license = {text = "MIT"}
requires-python = ">=3.11"
authors = [{name = "Ada Lovelace", email = "ada@example.org"}, {name = "Bob"}]
dependencies = ["requests>=2", "rich"]
keywords = ["demo"]

[project.optional-dependencies]
test = ["pytest"]

[project.urls]
Homepage = "https://example.org"
Repository = "https://github.com/example/demo"

[project.scripts]
demo = "demo.cli:main"

[tool.hatch.version]
source = "vcs"
"""


def _write(root: Path, name: str, text: str) -> None:
    (root / name).write_text(text, encoding="utf-8")


def test_pyproject_fields(tmp_path: Path) -> None:
    _write(tmp_path, "pyproject.toml", PYPROJECT)
    meta = PythonExtractor().extract(tmp_path)

    assert meta.name == "demo-pkg"
    assert meta.version == "1.2.3"
    assert meta.version_source == "pyproject.toml"
    assert meta.license == "MIT"
    assert meta.authors == ["Ada Lovelace <ada@example.org>", "Bob"]
    assert meta.homepage == "https://example.org"
    assert meta.repository == "https://github.com/example/demo"

    ls = meta.language_specific
    assert ls["metadata_source"] == "pyproject.toml"
    assert ls["requires_python"] == ">=3.11"
    assert ls["build_backend"] == "hatchling.build"
    assert ls["dependency_count"] == 2
    assert ls["optional_dependencies"] == {"test": ["pytest"]}
    assert ls["scripts"] == {"demo": "demo.cli:main"}
    assert ls["hatch_config"] is True
    assert ls["hatch_version_source"] == "vcs"
    assert ls["versioning_type"] == "static"
    assert ls["project_match_package"] is False


def test_dynamic_version(tmp_path: Path) -> None:
    _write(tmp_path, "pyproject.toml", '[project]\nname = "dyn"\ndynamic = ["version"]\n')
    meta = PythonExtractor().extract(tmp_path)
    assert meta.version == ""
    assert meta.language_specific["versioning_type"] == "dynamic"


def test_poetry_only_project(tmp_path: Path) -> None:
    _write(tmp_path, "pyproject.toml", '[tool.poetry]\nname = "poet"\nversion = "0.4.0"\n')
    meta = PythonExtractor().extract(tmp_path)
    assert meta.name == "poet"
    assert meta.version == "0.4.0"
    assert meta.version_source == "pyproject.toml (poetry)"
    assert meta.language_specific["poetry_config"] is True


def test_requires_python_borrowed_from_setup_py(tmp_path: Path) -> None:
    _write(tmp_path, "pyproject.toml", '[project]\nname = "mixed"\nversion = "1.0"\n')
    _write(tmp_path, "setup.py", "from setuptools import setup\nsetup(python_requires='>=3.9')\n")
    meta = PythonExtractor().extract(tmp_path)
    assert meta.language_specific["requires_python"] == ">=3.9"


def test_pyproject_without_project_table_falls_back(tmp_path: Path) -> None:
    _write(tmp_path, "pyproject.toml", "[tool.black]\nline-length = 100\n")
    _write(
        tmp_path,
        "setup.cfg",
        "[metadata]\nname = legacy_pkg\nversion = attr: legacy_pkg.__version__\n"
        "author = Grace\nauthor_email = grace@example.org\n\n"
        "[options]\npython_requires = >=3.8\ninstall_requires =\n    click\n    attrs\n",
    )
    meta = PythonExtractor().extract(tmp_path)
    assert meta.name == "legacy_pkg"
    assert meta.version_source == "setup.cfg"
    assert meta.authors == ["Grace <grace@example.org>"]
    ls = meta.language_specific
    assert ls["versioning_type"] == "dynamic"
    assert ls["dependencies"] == ["click", "attrs"]
    assert ls["requires_python"] == ">=3.8"
    assert ls["project_match_package"] is True


def test_setup_py_is_scraped_not_executed(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "setup.py",
        "raise SystemExit('never run me')\n"
        "setup(name='old-pkg', version='0.9', description=\"\"\"Old one\"\"\", license='BSD', url='https://old.example')\n",
    )
    meta = PythonExtractor().extract(tmp_path)
    assert (meta.name, meta.version, meta.description, meta.license) == ("old-pkg", "0.9", "Old one", "BSD")
    assert meta.homepage == "https://old.example"
    assert meta.language_specific["versioning_type"] == "static"


def test_unquoted_version_is_reported(tmp_path: Path) -> None:
    _write(tmp_path, "pyproject.toml", "[project]\nname = \"bad\"\nversion = 1.0.0\n")
    with pytest.raises(ExtractionError, match="unquoted version value"):
        PythonExtractor().extract(tmp_path)


def test_no_python_files(tmp_path: Path) -> None:
    extractor = PythonExtractor()
    assert not extractor.detect(tmp_path)
    with pytest.raises(ExtractionError, match="no Python project files"):
        extractor.extract(tmp_path)


def test_pyproject_with_misshapen_values(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "odd"\nversion = 2\ndescription = ["x"]\ndependencies = "requests"\n'
        'urls = "https://example.org"\nauthors = "Ann"\n',
        encoding="utf-8",
    )
    meta = PythonExtractor().extract(tmp_path)
    assert meta.name == "odd"
    assert meta.version == "2"
    assert meta.description == ""
    assert meta.authors == []
    assert meta.homepage == ""
    assert "dependencies" not in meta.language_specific
