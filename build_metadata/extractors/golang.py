"""Go module extractor (go.mod).

go.mod carries no version; one is looked up in a ``VERSION`` file or a
``version = "..."`` constant in version.go / main.go / cmd/*/main.go.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, read_text
from build_metadata.types import ProjectMetadata

_DIRECTIVE = re.compile(r"^(module|go|toolchain|require|replace|exclude|retract)\s+(.+)$")
_VERSION_CONST = re.compile(r"(?:Version|version)\s*=\s*\"([^\"]+)\"")
_MAJOR_ONLY = re.compile(r"^v\d+$")
_KNOWN_HOSTS = ("github.com/", "gitlab.com/", "bitbucket.org/")
_FRAMEWORKS = {
    "github.com/gin-gonic/gin": "Gin (Web Framework)",
    "github.com/labstack/echo": "Echo (Web Framework)",
    "github.com/gofiber/fiber": "Fiber (Web Framework)",
    "github.com/gorilla/mux": "Gorilla Mux (Router)",
    "github.com/go-chi/chi": "Chi (Router)",
    "gorm.io/gorm": "GORM (ORM)",
    "github.com/spf13/cobra": "Cobra (CLI)",
    "github.com/urfave/cli": "CLI (CLI Framework)",
    "github.com/stretchr/testify": "Testify (Testing)",
    "github.com/sirupsen/logrus": "Logrus (Logging)",
    "go.uber.org/zap": "Zap (Logging)",
    "google.golang.org/grpc": "gRPC",
    "k8s.io/client-go": "Kubernetes Client",
    "github.com/prometheus/client_golang": "Prometheus Client",
}


@dataclass
class Requirement:
    module: str
    version: str
    indirect: bool = False


@dataclass
class GoMod:
    module: str = ""
    go_version: str = ""
    toolchain: str = ""
    require: list[Requirement] = field(default_factory=list)
    replace: list[dict[str, str]] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    retract: list[str] = field(default_factory=list)


def _strip_comment(line: str) -> tuple[str, str]:
    code, _, comment = line.partition("//")
    return code.strip(), comment.strip()


def _add(mod: GoMod, directive: str, line: str, comment: str) -> None:
    if directive == "require":
        parts = line.split()
        if len(parts) >= 2:
            mod.require.append(Requirement(parts[0], parts[1], indirect=comment == "indirect"))
    elif directive == "replace":
        old, arrow, new = line.partition("=>")
        if arrow:
            mod.replace.append({"old": old.strip(), "new": new.strip()})
    elif directive == "exclude":
        mod.exclude.append(line)
    elif directive == "retract":
        mod.retract.append(line)


def parse_go_mod(text: str) -> GoMod:
    mod = GoMod()
    block: str | None = None
    for raw in text.splitlines():
        line, comment = _strip_comment(raw)
        if not line:
            continue
        if block:
            if line == ")":
                block = None
            else:
                _add(mod, block, line, comment)
            continue
        m = _DIRECTIVE.match(line)
        if not m:
            continue
        directive, rest = m.group(1), m.group(2).strip()
        if directive == "module":
            mod.module = rest.strip('"')
        elif directive == "go":
            mod.go_version = rest
        elif directive == "toolchain":
            mod.toolchain = rest
        elif rest == "(":
            block = directive
        else:
            _add(mod, directive, rest, comment)
    return mod


def base_name(module_path: str) -> str:
    """Last path element, skipping a semantic-import ``/vN`` suffix (N >= 2)."""
    parts = module_path.split("/")
    last = parts[-1]
    if len(parts) >= 4 and last[:1] == "v" and last[1:].isdigit() and int(last[1:]) >= 2:
        return parts[-2]
    return last


def _project_version(root: Path) -> str:
    version_file = root / "VERSION"
    if version_file.is_file():
        content = version_file.read_text(encoding="utf-8", errors="replace").strip()
        if content:
            return content
    candidates = [root / "version.go", root / "main.go", *sorted(root.glob("cmd/*/main.go"))]
    for path in candidates:
        if not path.is_file():
            continue
        m = _VERSION_CONST.search(path.read_text(encoding="utf-8", errors="replace"))
        if m:
            return m.group(1)
    return ""


class GoExtractor(BaseExtractor):
    markers = ("go.mod",)

    def __init__(self) -> None:
        super().__init__("go-module", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        go_mod = root / "go.mod"
        if not go_mod.is_file():
            raise ExtractionError(f"no go.mod file found in {root}")
        mod = parse_go_mod(read_text(go_mod))
        if not mod.module:
            raise ExtractionError("failed to parse go.mod: missing module directive")

        ls: dict[str, Any] = {
            "module_path": mod.module,
            "go_version": mod.go_version,
            "metadata_source": "go.mod",
            "base_name": base_name(mod.module),
        }
        if mod.toolchain:
            ls["toolchain"] = mod.toolchain
        if mod.require:
            direct = [f"{r.module}@{r.version}" for r in mod.require if not r.indirect]
            ls["dependencies"] = direct
            ls["indirect_dependencies"] = [f"{r.module}@{r.version}" for r in mod.require if r.indirect]
            ls["dependency_count"] = len(direct)
            ls["total_dependency_count"] = len(mod.require)
            ls["dependency_map"] = {r.module: r.version for r in mod.require}
        for key, values in (
            ("replace_directives", mod.replace),
            ("exclude_directives", mod.exclude),
            ("retract_directives", mod.retract),
        ):
            if values:
                ls[key] = values
                ls[key.replace("_directives", "_count")] = len(values)

        frameworks: list[str] = []
        for req in mod.require:
            for prefix, label in _FRAMEWORKS.items():
                if req.module.startswith(prefix) and label not in frameworks:
                    frameworks.append(label)
        if frameworks:
            ls["frameworks"] = frameworks

        homepage = repository = ""
        if mod.module.startswith(_KNOWN_HOSTS):
            homepage = repository = f"https://{mod.module}"

        version, version_source = "", "go.mod"
        found = _project_version(root)
        # "v2" alone is a module major-version marker, not a release
        if found and not _MAJOR_ONLY.match(found):
            version, version_source = found, "version file or git tag"

        return ProjectMetadata(
            name=mod.module,
            version=version,
            version_source=version_source,
            homepage=homepage,
            repository=repository,
            language_specific=ls,
        )
