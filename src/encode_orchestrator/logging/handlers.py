"""JSON log formatting.

Every record becomes one JSON object per line. Records logged inside
encode_context() carry the output and stream they belong to, and session
failures carry the error kind, so log processors can filter one encode or
one failure category without parsing messages.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Record attributes promoted to top-level keys, with their JSON names.
_PROMOTED = {
    "encode_output": "output",
    "encode_stream": "stream",
    "error_kind": "error_kind",
}

# Attributes every LogRecord has, plus those added by formatters and the
# text-only encode_tag.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "encode_tag",
}


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Keys: timestamp (UTC, milliseconds), level, logger, message; output,
    stream and error_kind when set; extra for any other attributes passed
    through ``extra=``; exception when the record has exc_info.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": timestamp.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr, key in _PROMOTED.items():
            value = getattr(record, attr, None)
            if value is not None:
                entry[key] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _PROMOTED
            and not key.startswith("_")
            and value is not None
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
