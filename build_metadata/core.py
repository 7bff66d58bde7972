"""Metadata pipeline: detect → map → lookup → guard → extract → report."""

from __future__ import annotations

from pathlib import Path

from build_metadata.detect.base import Detector, default_detector
from build_metadata.exceptions import ExtractionError, NoProjectTypeDetectedError, UnknownExtractorError
from build_metadata.extractors.registry import Registry, default_registry, map_project_type_to_extractor_name
from build_metadata.logging import get_logger
from build_metadata.types import MetadataReport

log = get_logger()

UNKNOWN = "unknown"


def collect_metadata(
    path: Path | str,
    detector: Detector | None = None,
    registry: Registry | None = None,
) -> MetadataReport:
    """Detect the project type of *path* and run the matching extractor.

    Stage failures never raise: each one is logged, recorded in
    ``warnings`` and the report is returned with whatever was gathered so
    far (``project_type="unknown"`` when detection fails).
    """
    detector = detector if detector is not None else default_detector()
    registry = registry if registry is not None else default_registry()
    root = Path(path)
    warnings: list[str] = []
    context: dict[str, str] = {"project_path": str(root)}

    def warn(message: str) -> None:
        log.warning(message, extra=context)
        warnings.append(message)

    try:
        project_type = detector.detect_project_type(root)
    except NoProjectTypeDetectedError as exc:
        warn(f"failed to detect project type: {exc}")
        return MetadataReport(project_type=UNKNOWN, project_path=str(root), warnings=warnings)
    context["project_type"] = project_type
    log.info("detected project type %s in %s", project_type, root, extra=context)

    try:
        extractor = registry.get(map_project_type_to_extractor_name(project_type))
    except UnknownExtractorError as exc:
        warn(f"no specific extractor for project type {project_type}: {exc}")
        return MetadataReport(project_type=project_type, project_path=str(root), warnings=warnings)
    context["extractor"] = extractor.name

    def report(**extra) -> MetadataReport:
        return MetadataReport(
            project_type=project_type,
            project_path=str(root),
            extractor=extractor.name,
            warnings=warnings,
            **extra,
        )

    if not extractor.detect(root):
        warn(f"extractor {extractor.name} does not recognise {root}")
        return report()

    try:
        metadata = extractor.extract(root)
    except ExtractionError as exc:
        warn(f"failed to extract project metadata: {exc}")
        return report()

    versioning_type = metadata.language_specific.get("versioning_type")
    if versioning_type not in ("static", "dynamic"):
        versioning_type = "static"
    return report(metadata=metadata, versioning_type=versioning_type)
