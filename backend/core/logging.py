"""
Log formatters for the bookkeeping backend.

Every logger in the project passes its context through ``extra={...}``
(``action``, ``component``, ``severity`` and domain identifiers). These
formatters make that context visible: ``StructuredFormatter`` renders one JSON
object per line for log aggregation, ``KeyValueFormatter`` appends the extra
fields as ``key=value`` pairs for human-readable console output.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

# Attributes every LogRecord carries; anything else came from ``extra``.
_RESERVED_KEYS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record):
    """Return the ``extra`` payload attached to a log record."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_KEYS and not key.startswith("_")
    }


class _LogJSONEncoder(json.JSONEncoder):
    """Encode UUID, datetime and Decimal values found in log payloads."""

    def default(self, obj):
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record):
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in _extra_fields(record).items():
            payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_LogJSONEncoder, default=str)


class KeyValueFormatter(logging.Formatter):
    """Plain text formatter that appends ``extra`` fields as key=value pairs."""

    def format(self, record):
        base = super().format(record)
        extra = _extra_fields(record)
        if not extra:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(extra.items()))
        return f"{base} | {pairs}"
