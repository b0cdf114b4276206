"""
JSON log formatting, enabled with ``LOG_JSON=1``.

Records are rendered as one JSON object per line so that they can be
shipped to a log collector.  Request context attached by
``clinical.middleware.RequestLogMiddleware`` (method, path, status,
duration, user id) is carried over as top level keys.
"""
import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = ('method', 'path', 'status', 'duration_ms', 'user_id', 'patient_id', 'workspace_id')


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
        }
        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                payload[field] = getattr(record, field)
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)
