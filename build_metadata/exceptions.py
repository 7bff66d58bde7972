"""Error taxonomy for detection, dispatch and extraction."""

from __future__ import annotations


class BuildMetadataError(Exception):
    """Base class for every error raised by build_metadata."""


class NoProjectTypeDetectedError(BuildMetadataError):
    """No detection rule matched the target directory."""

    def __init__(self, path: str, *, all_types: bool = False) -> None:
        self.path = path
        what = "any project types" if all_types else "project type"
        super().__init__(f"could not detect {what} in {path}")


class UnreadableDirectoryError(NoProjectTypeDetectedError):
    """The target directory could not be listed (missing, permission denied)."""


class UnknownExtractorError(BuildMetadataError, LookupError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"no extractor found for type: {name}")


class MalformedRuleError(BuildMetadataError, ValueError):
    """A detection rule violates its structural invariants (programmer error)."""


class ExtractionError(BuildMetadataError):
    """An extractor could not read or parse the project's manifest."""
