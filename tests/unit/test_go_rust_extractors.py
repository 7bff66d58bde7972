from __future__ import annotations

from pathlib import Path

import pytest

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.golang import GoExtractor, base_name, parse_go_mod
from build_metadata.extractors.rust import RustExtractor

GO_MOD = """\
module github.com/example/service/v2

go 1.22

toolchain go1.22.3

require (
\tgithub.com/gin-gonic/gin v1.9.1
\tgithub.com/stretchr/testify v1.8.4 // indirect
)

require go.uber.org/zap v1.27.0

replace example.com/old => ../old
"""

CARGO = """\
[package]
name = "crate-demo"
version.workspace = true
edition = "2021"
rust-version = "1.75"
description = "A crate"
license = "MIT OR Apache-2.0"
authors = ["Ferris <ferris@example.org>"]
keywords = ["demo"]

[workspace]
members = ["crates/*"]
resolver = "2"

[workspace.package]
version = "0.3.0"
repository = "https://github.com/example/crate-demo"

[dependencies]
serde = { version = "1", features = ["derive"] }
tokio = { version = "1.36", optional = true }
anyhow = "1"

[dev-dependencies]
insta = "1"

[features]
default = []
rt = ["dep:tokio"]

[[bin]]
name = "demo"
"""


def test_parse_go_mod() -> None:
    mod = parse_go_mod(GO_MOD)
    assert mod.module == "github.com/example/service/v2"
    assert mod.go_version == "1.22"
    assert mod.toolchain == "go1.22.3"
    assert [(r.module, r.indirect) for r in mod.require] == [
        ("github.com/gin-gonic/gin", False),
        ("github.com/stretchr/testify", True),
        ("go.uber.org/zap", False),
    ]
    assert mod.replace == [{"old": "example.com/old", "new": "../old"}]


@pytest.mark.parametrize(
    ("path", "expected"),
    [("github.com/example/service/v2", "service"), ("github.com/example/tool", "tool"), ("example.com/v1", "v1")],
)
def test_base_name(path: str, expected: str) -> None:
    assert base_name(path) == expected


def test_go_extract(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text(GO_MOD, encoding="utf-8")
    (tmp_path / "VERSION").write_text("1.4.0\n", encoding="utf-8")
    meta = GoExtractor().extract(tmp_path)

    assert meta.name == "github.com/example/service/v2"
    assert meta.version == "1.4.0"
    assert meta.version_source == "version file or git tag"
    assert meta.repository == "https://github.com/example/service/v2"
    ls = meta.language_specific
    assert ls["dependency_count"] == 2
    assert ls["total_dependency_count"] == 3
    assert ls["indirect_dependencies"] == ["github.com/stretchr/testify@v1.8.4"]
    assert ls["replace_count"] == 1
    assert "Gin (Web Framework)" in ls["frameworks"]


def test_go_major_marker_is_not_a_version(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("module example.com/x\n\ngo 1.21\n", encoding="utf-8")
    (tmp_path / "main.go").write_text('package main\n\nconst version = "v2"\n', encoding="utf-8")
    meta = GoExtractor().extract(tmp_path)
    assert meta.version == ""
    assert meta.version_source == "go.mod"
    assert meta.homepage == ""


def test_go_without_module_directive(tmp_path: Path) -> None:
    (tmp_path / "go.mod").write_text("go 1.21\n", encoding="utf-8")
    with pytest.raises(ExtractionError, match="missing module directive"):
        GoExtractor().extract(tmp_path)


def test_rust_extract_with_workspace_inheritance(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text(CARGO, encoding="utf-8")
    meta = RustExtractor().extract(tmp_path)

    assert meta.name == "crate-demo"
    assert meta.version == "0.3.0"
    assert meta.repository == "https://github.com/example/crate-demo"
    assert meta.authors == ["Ferris <ferris@example.org>"]
    ls = meta.language_specific
    assert ls["edition"] == "2021"
    assert ls["msrv"] == "1.75"
    assert ls["dependencies"] == ["serde@1 [derive]", "tokio@1.36 (optional)", "anyhow@1"]
    assert ls["optional_dependencies"] == ["tokio"]
    assert ls["total_dependency_count"] == 4
    assert ls["feature_names"] == ["default", "rt"]
    assert ls["workspace_members"] == ["crates/*"]
    assert ls["workspace_resolver"] == "2"
    assert ls["binary_targets"] == ["demo"]
    assert "Tokio (Async Runtime)" in ls["frameworks"]


def test_rust_invalid_toml(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text("[package\nname=", encoding="utf-8")
    with pytest.raises(ExtractionError, match="failed to parse Cargo.toml"):
        RustExtractor().extract(tmp_path)


def test_cargo_with_misshapen_tables(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text(
        'dependencies = ["serde"]\nbin = "odd"\nlib = "odd"\n\n'
        '[package]\nname = "odd"\nversion = 1\nauthors = "Ann"\n',
        encoding="utf-8",
    )
    meta = RustExtractor().extract(tmp_path)
    assert meta.name == "odd"
    assert meta.version == ""
    assert meta.authors == []
    ls = meta.language_specific
    assert "dependencies" not in ls
    assert "binary_targets" not in ls
    assert "lib_name" not in ls
