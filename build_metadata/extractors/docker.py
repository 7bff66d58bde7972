"""Dockerfile extractor.

The image has no name field of its own, so the project directory name is
used. Version, description, license, authors and URLs come from ``LABEL``
instructions, plain keys first, then the OCI ``org.opencontainers.image.*``
annotations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from build_metadata.exceptions import ExtractionError
from build_metadata.extractors.base import BaseExtractor, read_text
from build_metadata.types import ProjectMetadata

_OCI = "org.opencontainers.image."
_KEY_VALUE = re.compile(r'([^\s=]+)\s*=\s*"([^"]*)"|([^\s=]+)\s*=\s*(\S+)')
_COPY_FROM = re.compile(r"--from=(\S+)")
_OCI_REQUIRED = tuple(_OCI + key for key in ("created", "version", "title", "description", "source"))


@dataclass
class Dockerfile:
    base_images: list[str] = field(default_factory=list)
    stages: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)
    exposed_ports: list[str] = field(default_factory=list)
    volumes: list[str] = field(default_factory=list)
    entrypoint: list[str] = field(default_factory=list)
    cmd: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    args: dict[str, str] = field(default_factory=dict)
    copy_from: list[str] = field(default_factory=list)
    workdir: str = ""
    user: str = ""
    healthcheck: str = ""


def _key_values(args: str) -> dict[str, str]:
    out = {}
    for m in _KEY_VALUE.finditer(args):
        if m.group(1):
            out[m.group(1).strip('"')] = m.group(2)
        else:
            out[m.group(3).strip('"')] = m.group(4).strip('"')
    return out


def _command(args: str) -> list[str]:
    if args.startswith("[") and args.endswith("]"):
        parts = (p.strip().strip('"') for p in args[1:-1].split(","))
        return [p for p in parts if p]
    return [args]


def logical_lines(text: str):
    """Yield instructions with comments dropped and ``\\`` continuations joined."""
    pending = ""
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.endswith("\\"):
            pending += line[:-1] + " "
            continue
        yield pending + line
        pending = ""
    if pending.strip():
        yield pending.strip()


def parse_dockerfile(text: str) -> Dockerfile:
    df = Dockerfile()
    for line in logical_lines(text):
        instruction, _, args = line.partition(" ")
        instruction, args = instruction.upper(), args.strip()
        if instruction == "FROM":
            parts = args.split()
            if parts:
                df.base_images.append(parts[0])
                for i, part in enumerate(parts[:-1]):
                    if part.upper() == "AS":
                        df.stages.append(parts[i + 1])
                        break
        elif instruction == "LABEL":
            df.labels.update(_key_values(args))
        elif instruction == "EXPOSE":
            df.exposed_ports.extend(args.split())
        elif instruction == "VOLUME":
            parts = (v.strip().strip('"') for v in args.strip("[]").split(","))
            df.volumes.extend(v for v in parts if v)
        elif instruction == "ENTRYPOINT":
            df.entrypoint = _command(args)
        elif instruction == "CMD":
            df.cmd = _command(args)
        elif instruction == "WORKDIR":
            df.workdir = args
        elif instruction == "USER":
            df.user = args
        elif instruction == "ENV":
            if "=" in args:
                df.env.update(_key_values(args))
            else:
                key, _, value = args.partition(" ")
                if value:
                    df.env[key] = value.strip().strip('"')
        elif instruction == "ARG":
            key, _, value = args.partition("=")
            df.args[key] = value
        elif instruction == "HEALTHCHECK":
            df.healthcheck = args
        elif instruction == "COPY":
            m = _COPY_FROM.search(args)
            if m:
                df.copy_from.append(m.group(1))
    return df


def _first_label(labels: dict[str, str], *keys: str) -> tuple[str, str]:
    for key in keys:
        if key in labels:
            return key, labels[key]
    return "", ""


class DockerExtractor(BaseExtractor):
    markers = ("Dockerfile",)

    def __init__(self) -> None:
        super().__init__("docker", 1)

    def extract(self, root: Path) -> ProjectMetadata:
        root = Path(root)
        path = root / "Dockerfile"
        if not path.is_file():
            raise ExtractionError(f"Dockerfile not found in {root}")
        df = parse_dockerfile(read_text(path))
        labels = df.labels

        version_key, version = _first_label(labels, "version", _OCI + "version")
        _, maintainer = _first_label(labels, "maintainer", _OCI + "authors")

        ls: dict[str, Any] = {"metadata_source": "Dockerfile", "base_images": df.base_images}
        if df.base_images:
            ls["primary_base_image"] = df.base_images[0]
            ls["base_image_count"] = len(df.base_images)
        if labels:
            ls["labels"] = labels
            ls["label_count"] = len(labels)
        for key, value in (
            ("exposed_ports", df.exposed_ports),
            ("volumes", df.volumes),
            ("entrypoint", df.entrypoint),
            ("cmd", df.cmd),
            ("workdir", df.workdir),
            ("user", df.user),
            ("env", df.env),
            ("build_args", df.args),
            ("healthcheck", df.healthcheck),
            ("copy_from_stages", df.copy_from),
        ):
            if value:
                ls[key] = value
        ls["is_multistage"] = bool(df.stages)
        if df.stages:
            ls["build_stages"] = df.stages
            ls["stage_count"] = len(df.stages)
        ls["oci_compliant"] = all(key in labels for key in _OCI_REQUIRED)
        ls["versioning_type"] = "dynamic" if "$" in version else "static"

        return ProjectMetadata(
            name=root.resolve().name,
            version=version,
            version_source=f"Dockerfile LABEL {version_key}" if version_key else "",
            description=_first_label(labels, "description", _OCI + "description")[1],
            license=_first_label(labels, "license", _OCI + "licenses")[1],
            authors=[maintainer] if maintainer else [],
            homepage=_first_label(labels, _OCI + "url", "url")[1],
            repository=_first_label(labels, _OCI + "source", "source")[1],
            language_specific=ls,
        )
