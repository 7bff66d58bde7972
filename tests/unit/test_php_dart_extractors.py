from __future__ import annotations

import json
from pathlib import Path

import pytest

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.dart import DartExtractor
from build_metadata.extractors.php import PhpExtractor

COMPOSER = {
    "name": "acme/shop",
    "description": "Web shop",
    "version": "3.1.0",
    "type": "project",
    "license": ["MIT", "GPL-3.0-or-later"],
    "homepage": "https://shop.example",
    "authors": [{"name": "Ann", "email": "ann@example.org"}, {"name": "Ben"}, {"email": "nobody@example.org"}],
    "support": {"source": "https://github.com/acme/shop", "issues": "https://github.com/acme/shop/issues"},
    "require": {"php": "^8.2", "ext-json": "*", "ext-mbstring": "*", "laravel/framework": "^11.0"},
    "require-dev": {"phpunit/phpunit": "^11.0"},
    "autoload": {"psr-4": {"Acme\\Shop\\": "src/"}, "files": ["src/helpers.php"]},
    "minimum-stability": "stable",
    "prefer-stable": True,
    "scripts": {"test": "phpunit", "lint": "phpcs"},
    "bin": ["bin/shop"],
}

PUBSPEC = """\
name: gallery
description: Photo gallery app
version: 1.4.0+12
homepage: https://gallery.example
repository: https://github.com/example/gallery
publish_to: none
environment:
  sdk: ">=3.2.0 <4.0.0"
  flutter: ">=3.16.0"
dependencies:
  flutter:
    sdk: flutter
  http: ^1.2.0
  local_store:
    path: ../local_store
  shared:
    git:
      url: https://github.com/example/shared.git
dev_dependencies:
  flutter_test:
    sdk: flutter
  lints: ^3.0.0
topics: [photos, gallery]
flutter:
  uses-material-design: true
  assets:
    - assets/images/
  fonts:
    - family: Inter
      fonts:
        - asset: fonts/Inter.ttf
"""


def test_composer_json(tmp_path: Path) -> None:
    (tmp_path / "composer.json").write_text(json.dumps(COMPOSER), encoding="utf-8")
    meta = PhpExtractor().extract(tmp_path)

    assert meta.name == "acme/shop"
    assert meta.version == "3.1.0"
    assert meta.version_source == "composer.json"
    assert meta.license == "MIT, GPL-3.0-or-later"
    assert meta.authors == ["Ann <ann@example.org>", "Ben"]
    assert meta.repository == "https://github.com/acme/shop"

    ls = meta.language_specific
    assert ls["requires_php"] == "^8.2"
    assert ls["dependencies"] == {"laravel/framework": "^11.0"}
    assert ls["dependency_count"] == 1
    assert ls["dev_dependency_count"] == 1
    assert ls["php_extensions"] == ["json", "mbstring"]
    assert ls["autoload_types"] == ["psr-4", "files"]
    assert ls["psr4_namespaces"] == {"Acme\\Shop\\": "src/"}
    assert ls["scripts"] == ["test", "lint"]
    assert ls["binaries"] == ["bin/shop"]
    assert ls["issues_url"] == "https://github.com/acme/shop/issues"
    assert ls["framework"] == "Laravel"
    assert ls["is_library"] is False
    assert ls["prefer_stable"] is True
    assert ls["versioning_type"] == "static"
    assert "php_version_matrix" not in ls


def test_composer_defaults_and_odd_values(tmp_path: Path) -> None:
    (tmp_path / "composer.json").write_text(
        json.dumps({"name": "acme/lib", "license": None, "require": "php", "authors": "Ann"}), encoding="utf-8"
    )
    meta = PhpExtractor().extract(tmp_path)
    assert meta.version == ""
    assert meta.license == ""
    assert meta.authors == []
    ls = meta.language_specific
    assert ls["is_library"] is True
    assert ls["versioning_type"] == "dynamic"
    assert "dependencies" not in ls


def test_composer_invalid_json(tmp_path: Path) -> None:
    (tmp_path / "composer.json").write_text("[1, 2", encoding="utf-8")
    with pytest.raises(ExtractionError, match="failed to parse composer.json"):
        PhpExtractor().extract(tmp_path)


def test_pubspec_flutter_app(tmp_path: Path) -> None:
    (tmp_path / "pubspec.yaml").write_text(PUBSPEC, encoding="utf-8")
    meta = DartExtractor().extract(tmp_path)

    assert meta.name == "gallery"
    assert meta.version == "1.4.0+12"
    assert meta.version_source == "pubspec.yaml"
    assert meta.repository == "https://github.com/example/gallery"

    ls = meta.language_specific
    assert ls["is_flutter"] is True
    assert ls["framework"] == "Flutter"
    assert ls["dart_sdk"] == ">=3.2.0 <4.0.0"
    assert ls["flutter_sdk"] == ">=3.16.0"
    assert ls["dependencies"] == {
        "http": "^1.2.0",
        "local_store": "path: ../local_store",
        "shared": "git: https://github.com/example/shared.git",
    }
    assert ls["dev_dependencies"] == {"lints": "^3.0.0"}
    assert ls["publish_to"] == "none"
    assert ls["is_publishable"] is False
    assert ls["topics"] == ["photos", "gallery"]
    assert ls["uses_material_design"] is True
    assert ls["assets"] == ["assets/images/"]
    assert ls["custom_fonts"] == ["Inter"]
    assert ls["package_type"] == "library"
    assert ls["is_flutter_plugin"] is False


def test_pubspec_dart_cli_and_plugin(tmp_path: Path) -> None:
    (tmp_path / "pubspec.yaml").write_text(
        "name: tool\nversion: 0.1.0\nexecutables:\n  tool:\n", encoding="utf-8"
    )
    ls = DartExtractor().extract(tmp_path).language_specific
    assert ls["framework"] == "Dart"
    assert ls["is_publishable"] is True
    assert ls["package_type"] == "application"
    assert ls["executables"] == {"tool": ""}

    (tmp_path / "pubspec.yaml").write_text(
        "name: camera\ndependencies:\n  flutter:\n    sdk: flutter\n"
        "flutter:\n  plugin:\n    platforms:\n      android: {}\n      ios: {}\n",
        encoding="utf-8",
    )
    ls = DartExtractor().extract(tmp_path).language_specific
    assert ls["package_type"] == "plugin"
    assert ls["plugin_platforms"] == ["android", "ios"]
    assert ls["is_flutter_plugin"] is True


def test_pubspec_not_a_mapping(tmp_path: Path) -> None:
    (tmp_path / "pubspec.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ExtractionError, match="not a mapping"):
        DartExtractor().extract(tmp_path)
