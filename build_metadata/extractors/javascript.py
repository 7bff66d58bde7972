"""JavaScript / TypeScript extractor (package.json).

Besides the common fields this reports the package manager (from the
``packageManager`` field or the lock file present), workspaces, and
well-known frameworks, build tools and test runners found among the
dependencies. When TypeScript is in use the parsed ``tsconfig.json`` is
included; comments and trailing commas are allowed there.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, as_dict, as_list, as_str, format_person, read_text
from build_metadata.logging import get_logger
from build_metadata.types import ProjectMetadata

_LOCK_FILES = {
    "npm": "package-lock.json",
    "yarn": "yarn.lock",
    "yarn-berry": "yarn.lock",
    "pnpm": "pnpm-lock.yaml",
    "bun": "bun.lockb",
}
_DYNAMIC_VERSIONS = {"0.0.0-development", "0.0.0-semantic-release"}
_SCRIPT_NAMES = ("build", "test", "start", "dev", "lint", "format", "prepare", "prepublishOnly")
_FRAMEWORKS = {
    "react": "React",
    "vue": "Vue.js",
    "@angular/core": "Angular",
    "next": "Next.js",
    "nuxt": "Nuxt",
    "svelte": "Svelte",
    "express": "Express",
    "fastify": "Fastify",
    "koa": "Koa",
    "@nestjs/core": "NestJS",
    "electron": "Electron",
}
_BUILD_TOOLS = {
    "webpack": "Webpack",
    "vite": "Vite",
    "rollup": "Rollup",
    "esbuild": "esbuild",
    "parcel": "Parcel",
    "typescript": "TypeScript",
    "@babel/core": "Babel",
}
_TEST_FRAMEWORKS = {
    "jest": "Jest",
    "mocha": "Mocha",
    "vitest": "Vitest",
    "jasmine": "Jasmine",
    "@playwright/test": "Playwright",
    "cypress": "Cypress",
}
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")

log = get_logger()


def strip_json_comments(text: str) -> str:
    """Drop ``//`` and ``/* */`` comments outside string literals.

    Newlines inside block comments are kept so parse errors still point at
    the right line.
    """
    out: list[str] = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            stop = n if end == -1 else end + 2
            out.append("\n" * text.count("\n", i, stop))
            i = stop
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def read_jsonc(path: Path) -> Any:
    """Parse a JSON file that may carry comments and trailing commas (tsconfig.json)."""
    text = _TRAILING_COMMA.sub(r"\1", strip_json_comments(read_text(path)))
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"failed to parse {path.name}: {exc}") from exc


def _license(value: Any) -> str:
    if isinstance(value, dict):
        return as_str(value.get("type"))
    return as_str(value)


def _person(value: Any) -> str:
    if isinstance(value, dict):
        return format_person(as_str(value.get("name")), as_str(value.get("email")))
    return as_str(value)


def _repository(value: Any) -> str:
    if isinstance(value, dict):
        return as_str(value.get("url"))
    return as_str(value)


def _workspaces(value: Any) -> list[str]:
    if isinstance(value, dict):
        value = value.get("packages")
    return [p for p in as_list(value) if isinstance(p, str)]


def _package_manager(root: Path, field: str) -> str:
    if field:
        return field.split("@", 1)[0]
    if (root / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (root / "yarn.lock").exists():
        return "yarn-berry" if (root / ".yarnrc.yml").exists() else "yarn"
    if (root / "package-lock.json").exists():
        return "npm"
    if (root / "bun.lockb").exists():
        return "bun"
    return "npm"


def _known(table: dict[str, str], deps: dict) -> list[str]:
    return sorted({label for dep, label in table.items() if dep in deps})


class JavaScriptExtractor(BaseExtractor):
    markers = ("package.json",)

    def __init__(self) -> None:
        super().__init__("javascript", 2)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        pj = root / "package.json"
        if not pj.is_file():
            raise ExtractionError(f"package.json not found in {root}")
        try:
            pkg = json.loads(read_text(pj))
        except json.JSONDecodeError as exc:
            raise ExtractionError(f"failed to parse package.json: {exc}") from exc
        if not isinstance(pkg, dict):
            raise ExtractionError("failed to parse package.json: top-level value is not an object")

        name = as_str(pkg.get("name"))
        people = [pkg.get("author"), *as_list(pkg.get("contributors"))]
        authors = [a for a in (_person(p) for p in people) if a]

        deps = as_dict(pkg.get("dependencies"))
        dev_deps = as_dict(pkg.get("devDependencies"))
        peer_deps = as_dict(pkg.get("peerDependencies"))
        optional_deps = as_dict(pkg.get("optionalDependencies"))
        all_deps = {**deps, **dev_deps}

        ls: dict[str, Any] = {
            "package_name": name,
            "metadata_source": "package.json",
            "is_private": pkg.get("private") is True,
            "module_type": as_str(pkg.get("type")) or "commonjs",
        }
        for key, out in (("main", "main_entry"), ("module", "module_entry"), ("types", "types_entry")):
            if as_str(pkg.get(key)):
                ls[out] = as_str(pkg[key])

        engines = as_dict(pkg.get("engines"))
        if engines:
            ls["engines"] = engines
            if as_str(engines.get("node")):
                ls["requires_node"] = as_str(engines["node"])
            if as_str(engines.get("npm")):
                ls["requires_npm"] = as_str(engines["npm"])

        manager = _package_manager(root, as_str(pkg.get("packageManager")))
        ls["package_manager"] = manager
        lock_file = _LOCK_FILES.get(manager)
        ls["has_lock_file"] = bool(lock_file and (root / lock_file).exists())
        if ls["has_lock_file"]:
            ls["lock_file"] = lock_file

        workspaces = _workspaces(pkg.get("workspaces"))
        if workspaces:
            ls["is_workspace"] = True
            ls["workspaces"] = workspaces
            ls["workspace_count"] = len(workspaces)

        total = len(deps) + len(dev_deps) + len(peer_deps) + len(optional_deps)
        if total:
            ls["dependency_count"] = len(deps)
            ls["dev_dependency_count"] = len(dev_deps)
            ls["peer_dependency_count"] = len(peer_deps)
            ls["optional_dependency_count"] = len(optional_deps)
            ls["total_dependency_count"] = total
            if deps:
                ls["dependencies"] = deps

        scripts = as_dict(pkg.get("scripts"))
        if scripts:
            ls["has_scripts"] = True
            ls["script_count"] = len(scripts)
            detected = [s for s in _SCRIPT_NAMES if s in scripts]
            if detected:
                ls["detected_scripts"] = detected

        for key, table in (
            ("frameworks", _FRAMEWORKS),
            ("build_tools", _BUILD_TOOLS),
            ("testing_frameworks", _TEST_FRAMEWORKS),
        ):
            found = _known(table, all_deps)
            if found:
                ls[key] = found

        keywords = [k for k in as_list(pkg.get("keywords")) if isinstance(k, str)]
        if keywords:
            ls["keywords"] = keywords

        version = as_str(pkg.get("version"))
        dynamic = version in _DYNAMIC_VERSIONS or "workspace:" in version
        ls["versioning_type"] = "dynamic" if dynamic else "static"

        tsconfig = root / "tsconfig.json"
        if tsconfig.is_file() or "typescript" in all_deps:
            ls["has_typescript"] = True
            if as_str(all_deps.get("typescript")):
                ls["typescript_version"] = as_str(all_deps["typescript"])
            if tsconfig.is_file():
                try:
                    ls["typescript_config"] = read_jsonc(tsconfig)
                except ExtractionError as exc:
                    log.warning("ignoring tsconfig.json in %s: %s", root, exc)

        return ProjectMetadata(
            name=name,
            version=version,
            version_source="package.json",
            description=as_str(pkg.get("description")),
            license=_license(pkg.get("license")),
            authors=authors,
            homepage=as_str(pkg.get("homepage")),
            repository=_repository(pkg.get("repository")),
            language_specific=ls,
        )
