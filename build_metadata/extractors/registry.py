"""Extractor registry and detected-type → extractor-name mapping.

The registry is an ordinary object; a process-wide instance backs the
module-level helpers. Extractors are added by an explicit startup call
(:func:`register_default_extractors`) rather than as an import side effect.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from build_metadata.exceptions import UnknownExtractorError
from build_metadata.extractors.base import Extractor

# Detected subtypes that share one extractor. Anything not listed maps to itself.
_EXTRACTOR_ALIASES: dict[str, tuple[str, ...]] = {
    "python": ("python-modern", "python-legacy", "python-setup-cfg"),
    "javascript": ("javascript-npm", "javascript-yarn", "javascript-pnpm", "typescript-npm"),
    "java-gradle": ("java-gradle", "java-gradle-kts", "kotlin-gradle"),
    "dotnet": ("csharp-project", "csharp-solution", "csharp-props", "dotnet-project"),
    "ruby": ("ruby-gemspec", "ruby-bundler"),
    "php": ("php-composer",),
    "swift": ("swift-package",),
    "dart": ("dart-flutter", "dart-package"),
    "elixir": ("elixir-mix",),
    "scala": ("scala-sbt",),
    "haskell": ("haskell-cabal",),
    "julia": ("julia-project",),
    "cpp": ("c-cmake", "c-qmake", "c-autoconf", "c-autoconf-legacy", "c-meson"),
    "helm": ("helm", "helm-chart"),
    "terraform": ("terraform", "terraform-module"),
}

PROJECT_TYPE_TO_EXTRACTOR: dict[str, str] = {
    detected: extractor for extractor, types in _EXTRACTOR_ALIASES.items() for detected in types
}

# Output prefixes for language-specific keys; unknown types fall back to the part before "-"
_LANGUAGE_OF_TYPE: dict[str, str] = {
    "typescript-npm": "javascript",
    "java-maven": "java",
    "java-gradle": "java",
    "java-gradle-kts": "java",
    "kotlin-gradle": "java",
    "dotnet-project": "dotnet",
}


def map_project_type_to_extractor_name(project_type: str) -> str:
    return PROJECT_TYPE_TO_EXTRACTOR.get(project_type, project_type)


def normalize_project_type_to_language(project_type: str) -> str:
    if project_type in _LANGUAGE_OF_TYPE:
        return _LANGUAGE_OF_TYPE[project_type]
    base, sep, _ = project_type.partition("-")
    if sep and base:
        return base
    return project_type.lower()


class Registry:
    def __init__(self) -> None:
        self._extractors: dict[str, Extractor] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._extractors

    def __len__(self) -> int:
        return len(self._extractors)

    def register(self, extractor: Extractor) -> None:
        # Last registration wins
        self._extractors[extractor.name] = extractor

    def get(self, name: str) -> Extractor:
        try:
            return self._extractors[name]
        except KeyError:
            raise UnknownExtractorError(name) from None

    def get_all(self) -> list[Extractor]:
        return list(self._extractors.values())

    def resolve(self, project_type: str) -> Extractor:
        """Look up the extractor for a detected type (``"python-modern"`` → ``python``)."""
        return self.get(map_project_type_to_extractor_name(project_type))


_global_registry = Registry()


def default_registry() -> Registry:
    return _global_registry


def register_extractor(extractor: Extractor) -> None:
    _global_registry.register(extractor)


def get_extractor(name: str) -> Extractor:
    return _global_registry.resolve(name)


def get_all_extractors() -> list[Extractor]:
    return _global_registry.get_all()


def default_extractor_factories() -> list[Callable[[], Extractor]]:
    from build_metadata.extractors.dart import DartExtractor
    from build_metadata.extractors.docker import DockerExtractor
    from build_metadata.extractors.golang import GoExtractor
    from build_metadata.extractors.gradle import GradleExtractor
    from build_metadata.extractors.helm import HelmExtractor
    from build_metadata.extractors.javascript import JavaScriptExtractor
    from build_metadata.extractors.julia import JuliaExtractor
    from build_metadata.extractors.maven import MavenExtractor
    from build_metadata.extractors.php import PhpExtractor
    from build_metadata.extractors.python import PythonExtractor
    from build_metadata.extractors.rust import RustExtractor
    from build_metadata.extractors.terraform import TerraformExtractor

    return [
        PythonExtractor,
        JavaScriptExtractor,
        MavenExtractor,
        GradleExtractor,
        GoExtractor,
        RustExtractor,
        DockerExtractor,
        HelmExtractor,
        PhpExtractor,
        DartExtractor,
        JuliaExtractor,
        TerraformExtractor,
    ]


def register_default_extractors(
    registry: Registry | None = None,
    factories: Iterable[Callable[[], Extractor]] | None = None,
) -> Registry:
    """Instantiate and register the built-in extractors. Safe to call repeatedly."""
    registry = registry if registry is not None else _global_registry
    for factory in factories if factories is not None else default_extractor_factories():
        registry.register(factory())
    return registry
