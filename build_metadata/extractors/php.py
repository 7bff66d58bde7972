"""PHP extractor (composer.json)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, as_str, people, read_text
from build_metadata.types import ProjectMetadata

# First hit wins, in this order
_FRAMEWORKS = {
    "laravel/framework": "Laravel",
    "symfony/symfony": "Symfony",
    "symfony/framework-bundle": "Symfony",
    "cakephp/cakephp": "CakePHP",
    "yiisoft/yii2": "Yii2",
    "codeigniter4/framework": "CodeIgniter",
    "slim/slim": "Slim",
    "laminas/laminas-mvc": "Laminas",
    "zendframework/zendframework": "Zend Framework",
    "phalcon/cphalcon": "Phalcon",
    "drupal/core": "Drupal",
    "wordpress/wordpress": "WordPress",
}
_AUTOLOAD_KEYS = (
    ("psr-4", "psr4_namespaces"),
    ("psr-0", "psr0_namespaces"),
    ("classmap", "classmap_paths"),
    ("files", "autoload_files"),
)


def _license(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(s for s in value if isinstance(s, str))
    return as_str(value)


def _strings(value: Any) -> list[str]:
    return [s for s in as_list(value) if isinstance(s, str)]


class PhpExtractor(BaseExtractor):
    markers = ("composer.json",)

    def __init__(self) -> None:
        super().__init__("php", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        path = root / "composer.json"
        if not path.is_file():
            raise ExtractionError(f"composer.json not found in {root}")
        try:
            composer = json.loads(read_text(path))
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"failed to parse composer.json: {exc}") from exc
        if not isinstance(composer, dict):
            raise ExtractionError("failed to parse composer.json: top-level value is not an object")

        name = as_str(composer.get("name"))
        version = as_str(composer.get("version"))
        package_type = as_str(composer.get("type"))
        support = as_dict(composer.get("support"))
        require = as_dict(composer.get("require"))
        require_dev = as_dict(composer.get("require-dev"))

        ls: dict[str, Any] = {
            "package_name": name,
            "package_type": package_type,
            "metadata_source": "composer.json",
            "is_library": (package_type or "library") == "library",
            "prefer_stable": composer.get("prefer-stable") is True,
            # Without a "version" field Composer takes the version from VCS tags
            "versioning_type": "static" if version else "dynamic",
        }
        keywords = _strings(composer.get("keywords"))
        if keywords:
            ls["keywords"] = keywords
        if as_str(require.get("php")):
            ls["requires_php"] = as_str(require["php"])

        deps = {pkg: as_str(c) for pkg, c in require.items() if pkg != "php" and not pkg.startswith("ext-")}
        if deps:
            ls["dependencies"] = deps
            ls["dependency_count"] = len(deps)
        if require_dev:
            ls["dev_dependencies"] = {pkg: as_str(c) for pkg, c in require_dev.items()}
            ls["dev_dependency_count"] = len(require_dev)
        extensions = [pkg.removeprefix("ext-") for pkg in require if pkg.startswith("ext-")]
        if extensions:
            ls["php_extensions"] = extensions
            ls["extension_count"] = len(extensions)

        autoload = as_dict(composer.get("autoload"))
        autoload_types = []
        for key, out in _AUTOLOAD_KEYS:
            value = autoload.get(key)
            if isinstance(value, (dict, list)) and value:
                autoload_types.append(key)
                ls[out] = value
        if autoload_types:
            ls["autoload_types"] = autoload_types

        if as_str(composer.get("minimum-stability")):
            ls["minimum_stability"] = as_str(composer["minimum-stability"])
        scripts = as_dict(composer.get("scripts"))
        if scripts:
            ls["scripts"] = list(scripts)
            ls["script_count"] = len(scripts)
        binaries = _strings(composer.get("bin"))
        if binaries:
            ls["binaries"] = binaries
        if as_str(support.get("issues")):
            ls["issues_url"] = as_str(support["issues"])
        if as_str(support.get("docs")):
            ls["docs_url"] = as_str(support["docs"])
        framework = next((label for pkg, label in _FRAMEWORKS.items() if pkg in require), "")
        if framework:
            ls["framework"] = framework

        return ProjectMetadata(
            name=name,
            version=version,
            version_source="composer.json",
            description=as_str(composer.get("description")),
            license=_license(composer.get("license")),
            authors=people(composer.get("authors")),
            homepage=as_str(composer.get("homepage")),
            repository=as_str(support.get("source")),
            language_specific=ls,
        )
