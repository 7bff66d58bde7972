"""Schema validation for emitted metadata reports."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator

from build_metadata.types import MetadataReport


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _report_schema() -> dict:
    return _load_schema("build_metadata.schema", "metadata.schema.json")


def validate_report(data: dict) -> None:
    Draft202012Validator(_report_schema()).validate(data)


def report_to_dict(report: MetadataReport) -> dict:
    """JSON-mode dump of *report*, validated before it is returned."""
    data = report.model_dump(mode="json")
    validate_report(data)
    return data
