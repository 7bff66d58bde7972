"""Shared Pydantic models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ProjectMetadata(BaseModel):
    """Normalized metadata produced by one ``extract`` call.

    Attributes
    ----------
    name, version, description, license, homepage, repository: str
        Common fields; empty string when the manifest does not declare them.
    version_source: str
        Which file (and field, where it matters) produced ``version``.
    authors: list[str]
        Ordered, usually formatted as ``"Name <email>"``.
    language_specific: dict
        Open map of ecosystem facts. Each extractor defines its own keys;
        ``metadata_source``, ``dependencies``, ``dependency_count`` and
        ``versioning_type`` are shared by convention.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    version: str = ""
    version_source: str = ""
    description: str = ""
    license: str = ""
    authors: list[str] = Field(default_factory=list)
    homepage: str = ""
    repository: str = ""
    language_specific: dict[str, Any] = Field(default_factory=dict)


class MetadataReport(BaseModel):
    project_type: str
    project_path: str
    extractor: str | None = None
    metadata: ProjectMetadata | None = None
    versioning_type: Literal["static", "dynamic"] = "static"
    warnings: list[str] = Field(default_factory=list)
