"""
ss26 (reworked for research runs)
JSON-structured logging helpers: every line carries ts + event, plus whatever fields the caller adds
(run_id, pair, n_steps ...). level comes from LOG_LEVEL.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone


def get_logger(name: str = "statarb"):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log = logging.getLogger(name)
    if log.handlers:
        return log
    log.setLevel(level)
    h = logging.StreamHandler(sys.stdout)
    h.setLevel(level)
    log.addHandler(h)
    log.propagate = False
    return log


def _payload(event: str, fields: dict) -> str:
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        **fields,
    }
    return json.dumps(payload, default=str)


def log_event(log, event: str, **fields):
    log.info(_payload(event, fields))


def log_debug(log, event: str, **fields):
    # series dumps can be long, skip the json work unless someone is listening
    if log.isEnabledFor(logging.DEBUG):
        log.debug(_payload(event, fields))


def log_error(log, event: str, exc: Exception, **fields):
    log.error(_payload(event, {
        "error_type": type(exc).__name__,
        "error": str(exc),
        **fields,
    }))
