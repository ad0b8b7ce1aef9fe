from __future__ import annotations

import json
import logging
import sys
from typing import Any

_configured = False

# Extra attributes the responder attaches to per-event records.
_CONTEXT_FIELDS = ("event_id", "kind")


def _build_json_formatter() -> logging.Formatter:
    class JsonFormatter(logging.Formatter):
        def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
            payload: dict[str, Any] = {
                "ts": self.formatTime(record),
                "level": record.levelname,
                "name": record.name,
                "message": record.getMessage(),
            }
            for field in _CONTEXT_FIELDS:
                value = getattr(record, field, None)
                if value is not None:
                    payload[field] = str(value)
            if record.exc_info:
                payload["exc_info"] = self.formatException(record.exc_info)
            return json.dumps(payload, ensure_ascii=False)

    return JsonFormatter()


def setup_logging(json_logs: bool = False, level: int | str = logging.INFO) -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    formatter: logging.Formatter
    if json_logs:
        formatter = _build_json_formatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s | %(name)s | %(message)s",
        )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    root.addHandler(handler)

    # One INFO line per HTTP request is too chatty next to the responder's own logs
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
