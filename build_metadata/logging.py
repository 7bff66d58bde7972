"""JSON-lines logging for the metadata pipeline.

The pipeline logs the detected type and every stage that degrades the
report (no match, no extractor, guard refusal, extraction failure);
extractors log their fallbacks, such as a pyproject.toml without a
``[project]`` table. Records go to stderr so ``extract`` output on stdout
stays parseable. Context passed through ``extra`` (``project_path``,
``project_type``, ``extractor``) becomes top-level JSON fields.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

LOG_LEVEL_ENV = "BUILD_METADATA_LOG_LEVEL"
CONTEXT_FIELDS = ("project_path", "project_type", "extractor")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def get_logger(name: str = "build_metadata") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(os.environ.get(LOG_LEVEL_ENV, "INFO").upper())
    return logger
