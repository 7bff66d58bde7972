"""Terraform / OpenTofu extractor (``*.tf``).

The configuration is scanned, not evaluated: ``required_version``,
``required_providers``, the backend, module calls and resource types are
read with regular expressions and brace matching across every top-level
``.tf`` file. The project name is the directory name and the version is the
``required_version`` constraint.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, read_text
from build_metadata.types import ProjectMetadata

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.S)
_LINE_COMMENT = re.compile(r"^\s*(#|//).*$", re.M)
_TERRAFORM_BLOCK = re.compile(r"^\s*terraform\s*\{", re.M)
_REQUIRED_PROVIDERS = re.compile(r"\brequired_providers\s*\{")
_PROVIDER_ENTRY = re.compile(r'([\w-]+)\s*=\s*(\{|"([^"]*)")')
_BACKEND = re.compile(r'\bbackend\s+"([^"]+)"\s*\{')
_CLOUD = re.compile(r"^\s*cloud\s*\{", re.M)
_MODULE = re.compile(r'^\s*module\s+"([^"]+)"\s*\{', re.M)
_RESOURCE = re.compile(r'^\s*resource\s+"([^"]+)"\s+"([^"]+)"', re.M)
_TOFU_MARKERS = (".opentofu", ".terraform-version")


def _attr(body: str, name: str) -> str:
    m = re.search(rf'\b{name}\s*=\s*"([^"]*)"', body)
    return m.group(1) if m else ""


def block_body(text: str, open_brace: int) -> str:
    """Text between the ``{`` at *open_brace* and its matching ``}``."""
    depth = 0
    for i in range(open_brace, len(text)):
        if text[i] == "{":
            depth += 1
        elif text[i] == "}":
            depth -= 1
            if depth == 0:
                return text[open_brace + 1 : i]
    return text[open_brace + 1 :]


def parse_providers(body: str) -> dict[str, dict[str, str]]:
    """``required_providers`` entries, in both object and legacy string form."""
    providers: dict[str, dict[str, str]] = {}
    pos = 0
    while True:
        m = _PROVIDER_ENTRY.search(body, pos)
        if m is None:
            return providers
        name = m.group(1)
        entry = {"name": name}
        if m.group(2) == "{":
            inner = block_body(body, m.end() - 1)
            for key in ("source", "version"):
                if _attr(inner, key):
                    entry[key] = _attr(inner, key)
            pos = m.end() + len(inner) + 1
        else:
            if m.group(3):
                entry["version"] = m.group(3)
            pos = m.end()
        providers.setdefault(name, entry)


@dataclass
class TerraformConfig:
    required_version: str = ""
    version_file: str = ""
    backend: str = ""
    cloud_organization: str = ""
    providers: dict[str, dict[str, str]] = field(default_factory=dict)
    modules: list[dict[str, str]] = field(default_factory=list)
    resource_types: Counter = field(default_factory=Counter)
    is_opentofu: bool = False

    def scan(self, text: str, filename: str) -> None:
        if "opentofu" in text.lower():
            self.is_opentofu = True
        text = _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", text))

        for m in _TERRAFORM_BLOCK.finditer(text):
            body = block_body(text, m.end() - 1)
            version = _attr(body, "required_version")
            if version and not self.required_version:
                self.required_version = version
                self.version_file = filename
            for rp in _REQUIRED_PROVIDERS.finditer(body):
                for name, entry in parse_providers(block_body(body, rp.end() - 1)).items():
                    self.providers.setdefault(name, entry)
            backend = _BACKEND.search(body)
            if backend and not self.backend:
                self.backend = backend.group(1)
            cloud = _CLOUD.search(body)
            if cloud and not self.backend:
                self.backend = "cloud"
                self.cloud_organization = _attr(block_body(body, cloud.end() - 1), "organization")

        for m in _MODULE.finditer(text):
            body = block_body(text, m.end() - 1)
            module = {"name": m.group(1), "source": _attr(body, "source")}
            if _attr(body, "version"):
                module["version"] = _attr(body, "version")
            self.modules.append(module)

        for m in _RESOURCE.finditer(text):
            self.resource_types[m.group(1)] += 1


class TerraformExtractor(BaseExtractor):
    def __init__(self) -> None:
        super().__init__("terraform", 1)

    def detect(self, root: Path) -> bool:
        return any(p.is_file() for p in Path(root).glob("*.tf"))

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        files = sorted(p for p in root.glob("*.tf") if p.is_file())
        if not files:
            raise ExtractionError(f"no Terraform files found in {root}")

        config = TerraformConfig()
        for path in files:
            config.scan(read_text(path), path.name)
        for marker in _TOFU_MARKERS:
            marker_path = root / marker
            if marker_path.is_file() and "tofu" in read_text(marker_path).lower():
                config.is_opentofu = True

        ls: dict[str, Any] = {
            "terraform_version": config.required_version,
            "metadata_source": config.version_file or files[0].name,
            "is_opentofu": config.is_opentofu,
            "engine": "opentofu" if config.is_opentofu else "terraform",
            "file_count": len(files),
            "versioning_type": "static",
        }
        if config.backend:
            ls["backend"] = config.backend
        if config.cloud_organization:
            ls["cloud_organization"] = config.cloud_organization
        if config.providers:
            ls["providers"] = list(config.providers.values())
            ls["provider_count"] = len(config.providers)
        if config.modules:
            ls["modules"] = config.modules
            ls["module_count"] = len(config.modules)
        if config.resource_types:
            ls["resource_types"] = dict(config.resource_types)
            ls["resource_count"] = sum(config.resource_types.values())

        return ProjectMetadata(
            name=root.resolve().name,
            version=config.required_version,
            version_source="terraform.required_version" if config.required_version else "",
            language_specific=ls,
        )
